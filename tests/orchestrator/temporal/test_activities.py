"""
Tests for Temporal Activities

Tests activity functions in isolation (without Temporal).
"""

import pytest

from snapcloud.agents import GeneratedArtifacts
from snapcloud.agents.artifact_generator import STATIC_BLUEPRINT_WARNING, StaticArtifactGenerator
from snapcloud.orchestrator.errors import AuditError, GenerationError, SplitError, ValidationError
from snapcloud.orchestrator.models import ArtifactBundle, CostEstimation, TaskList
from snapcloud.orchestrator.temporal.activities import (
    _audit_artifacts_impl,
    _generate_artifacts_impl,
    _split_tasks_impl,
)

pytestmark = pytest.mark.asyncio(loop_scope="function")


@pytest.fixture
def task_list():
    return TaskList.from_descriptions([
        "Create a VPC with two public subnets",
        "Launch an auto scaling group behind a load balancer",
        "Provision an encrypted RDS MySQL instance",
    ])


@pytest.fixture
def bundle():
    return ArtifactBundle(
        diagram_mermaid="graph TD\n    A --> B",
        cfn_template="Resources:\n  Bucket:\n    Type: AWS::S3::Bucket",
        cost_estimation=CostEstimation(breakdown={"totalMonthlyCost": 1.0}, table=""),
    )


class TestSplitTasks:
    """Tests for split_tasks activity."""

    async def test_split_returns_ordered_task_list(self, fake_splitter):
        """Tasks keep the splitter's order with positions 0..n-1."""
        fake_splitter.tasks = ["first", "second", "third"]

        result = await _split_tasks_impl(fake_splitter, "build a three tier web app")

        assert result.descriptions() == ["first", "second", "third"]
        assert [task.position for task in result.tasks] == [0, 1, 2]
        assert result.degraded is False

    async def test_split_drops_blank_entries(self, fake_splitter):
        fake_splitter.tasks = ["  Create bucket  ", "", "   ", "Add CDN"]

        result = await _split_tasks_impl(fake_splitter, "static site")

        assert result.descriptions() == ["Create bucket", "Add CDN"]

    @pytest.mark.parametrize("requirement", ["", "   ", "\n\t"])
    async def test_empty_requirement_rejected(self, fake_splitter, requirement):
        """An empty requirement never reaches the splitter."""
        with pytest.raises(ValidationError):
            await _split_tasks_impl(fake_splitter, requirement)
        assert fake_splitter.calls == []

    async def test_unparseable_output_degrades_to_requirement(self, fake_splitter):
        """Unusable splitter output falls back to a single task equal to the requirement."""
        fake_splitter.error = SplitError("no task list in answer", unparseable=True)

        result = await _split_tasks_impl(fake_splitter, "simple static website")

        assert result.descriptions() == ["simple static website"]
        assert result.degraded is True
        assert "no task list" in result.degraded_reason

    async def test_empty_output_degrades_to_requirement(self, fake_splitter):
        fake_splitter.tasks = []

        result = await _split_tasks_impl(fake_splitter, "simple static website")

        assert result.descriptions() == ["simple static website"]
        assert result.degraded is True

    async def test_unparseable_output_fails_when_degrading_disabled(self, fake_splitter):
        fake_splitter.tasks = []

        with pytest.raises(SplitError) as exc_info:
            await _split_tasks_impl(fake_splitter, "simple static website", degrade_on_failure=False)
        assert exc_info.value.unparseable is True

    async def test_unreachable_splitter_is_not_degraded(self, fake_splitter):
        """Transport failures surface as SplitError so Temporal retries them."""
        fake_splitter.error = SplitError("connection refused")

        with pytest.raises(SplitError, match="connection refused"):
            await _split_tasks_impl(fake_splitter, "simple static website")

    async def test_unexpected_exception_becomes_split_error(self, fake_splitter):
        fake_splitter.error = RuntimeError("socket closed")

        with pytest.raises(SplitError, match="socket closed"):
            await _split_tasks_impl(fake_splitter, "simple static website")

    async def test_timeout_becomes_split_error(self, fake_splitter):
        fake_splitter.delay = 1.0

        with pytest.raises(SplitError, match="timed out"):
            await _split_tasks_impl(fake_splitter, "simple static website", timeout=0.05)


class TestGenerateArtifacts:
    """Tests for generate_artifacts activity."""

    async def test_generate_returns_bundle(self, fake_generator, task_list):
        result = await _generate_artifacts_impl(fake_generator, task_list)

        assert isinstance(result, ArtifactBundle)
        assert result.diagram_mermaid.startswith("graph TD")
        assert "AWS::S3::Bucket" in result.cfn_template
        assert result.cost_estimation.total_monthly_cost == 2.3
        assert result.warnings == []

    async def test_generator_receives_tasks_in_order(self, fake_generator, task_list):
        await _generate_artifacts_impl(fake_generator, task_list)

        assert fake_generator.calls == [task_list.descriptions()]

    async def test_same_answer_gives_equal_bundles(self, fake_generator, task_list):
        """Repeating the activity after a crash yields the same bundle."""
        first = await _generate_artifacts_impl(fake_generator, task_list)
        second = await _generate_artifacts_impl(fake_generator, task_list)

        assert first == second
        assert len(fake_generator.calls) == 2

    async def test_reference_blueprint_keeps_warning(self, task_list):
        result = await _generate_artifacts_impl(StaticArtifactGenerator(), task_list)

        assert result.warnings == [STATIC_BLUEPRINT_WARNING]

    async def test_missing_diagram_fails(self, fake_generator, task_list):
        fake_generator.artifacts.diagram = ""

        with pytest.raises(GenerationError, match="diagram_mermaid"):
            await _generate_artifacts_impl(fake_generator, task_list)

    async def test_blank_template_fails(self, fake_generator, task_list):
        fake_generator.artifacts.template = "   \n"

        with pytest.raises(GenerationError, match="cfn_template"):
            await _generate_artifacts_impl(fake_generator, task_list)

    async def test_malformed_cost_degrades_to_empty(self, fake_generator, task_list):
        """A cost estimate that is not an object becomes {} with a warning."""
        fake_generator.artifacts.cost_json = ["not", "an", "object"]

        result = await _generate_artifacts_impl(fake_generator, task_list)

        assert result.cost_estimation.breakdown == {}
        assert result.cost_estimation.total_monthly_cost is None
        assert any("not an object" in warning for warning in result.warnings)

    async def test_generator_warnings_are_kept(self, fake_generator, task_list):
        fake_generator.artifacts = GeneratedArtifacts(
            diagram="graph TD\n    A --> B",
            template="Resources: {}",
            cost_json={},
            warnings=["cost estimation JSON block missing"],
        )

        result = await _generate_artifacts_impl(fake_generator, task_list)

        assert result.warnings == ["cost estimation JSON block missing"]

    async def test_unreachable_generator_fails(self, fake_generator, task_list):
        fake_generator.error = ConnectionError("connection reset")

        with pytest.raises(GenerationError, match="connection reset"):
            await _generate_artifacts_impl(fake_generator, task_list)

    async def test_timeout_becomes_generation_error(self, fake_generator, task_list):
        fake_generator.delay = 1.0

        with pytest.raises(GenerationError, match="timed out"):
            await _generate_artifacts_impl(fake_generator, task_list, timeout=0.05)


class TestAuditArtifacts:
    """Tests for audit_artifacts activity."""

    async def test_audit_returns_report(self, fake_auditor, bundle):
        result = await _audit_artifacts_impl(fake_auditor, bundle)

        assert result.report == "No findings."
        assert fake_auditor.calls == [bundle.cfn_template]

    async def test_audit_error_propagates(self, fake_auditor, bundle):
        fake_auditor.error = AuditError("auditor unreachable")

        with pytest.raises(AuditError, match="auditor unreachable"):
            await _audit_artifacts_impl(fake_auditor, bundle)

    async def test_unexpected_exception_becomes_audit_error(self, fake_auditor, bundle):
        fake_auditor.error = ValueError("bad answer")

        with pytest.raises(AuditError, match="bad answer"):
            await _audit_artifacts_impl(fake_auditor, bundle)
