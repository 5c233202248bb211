"""
Template Auditors — best-effort security review of a CloudFormation template.

- RuleBasedAuditor: pattern checks on the template text
- LLMAuditor: free-text review from a completion provider
"""

import logging
import re
from typing import List, Tuple

from snapcloud.orchestrator.errors import AuditError, ProviderError
from snapcloud.orchestrator.models import AuditReport

from .base import ArtifactAuditor, CompletionProvider

logger = logging.getLogger(__name__)

# (pattern, finding) pairs matched against the raw template text.
# Tags such as !Ref/!Sub stop yaml.safe_load, so checks stay textual.
_RULES: List[Tuple[re.Pattern, str]] = [
    (
        re.compile(r"^\s*(BlockPublicAcls|BlockPublicPolicy|IgnorePublicAcls|RestrictPublicBuckets):\s*false\b", re.M),
        "S3 public access block is disabled",
    ),
    (
        re.compile(r"^\s*CidrIp:\s*['\"]?0\.0\.0\.0/0", re.M),
        "Security group ingress open to 0.0.0.0/0",
    ),
    (
        re.compile(r"^\s*PubliclyAccessible:\s*true\b", re.M),
        "Database instance is publicly accessible",
    ),
    (
        re.compile(r"^\s*MasterUserPassword:\s*(?!!Ref|!Sub|!GetAtt|\{\{resolve)\S+", re.M),
        "Database master password is hardcoded in the template",
    ),
]

_RDS_INSTANCE = re.compile(r"Type:\s*['\"]?AWS::RDS::DBInstance")
_ENCRYPTED = re.compile(r"^\s*StorageEncrypted:\s*true\b", re.M)


class RuleBasedAuditor(ArtifactAuditor):
    """Offline pattern checks."""

    async def audit(self, template: str) -> AuditReport:
        if not template or not template.strip():
            raise AuditError("Template is empty, nothing to audit")

        findings = [finding for pattern, finding in _RULES if pattern.search(template)]
        if _RDS_INSTANCE.search(template) and not _ENCRYPTED.search(template):
            findings.append("RDS storage encryption is not enabled")

        if findings:
            lines = "\n".join(f"- {finding}" for finding in findings)
            report = f"{len(findings)} finding(s):\n{lines}"
        else:
            report = "No findings."

        logger.info(f"Rule-based audit completed with {len(findings)} finding(s)")
        return AuditReport(report=report, findings=findings)


AUDIT_PROMPT = """Review this AWS CloudFormation template for security issues.
List each issue on its own line starting with "- ". If there are none, answer "No findings."

```yaml
{template}
```"""


class LLMAuditor(ArtifactAuditor):
    """Security review through a generative model."""

    def __init__(self, provider: CompletionProvider):
        self.provider = provider

    async def audit(self, template: str) -> AuditReport:
        if not template or not template.strip():
            raise AuditError("Template is empty, nothing to audit")

        try:
            answer = await self.provider.complete(AUDIT_PROMPT.format(template=template))
        except ProviderError as e:
            raise AuditError(f"Auditor unreachable: {e.message}") from e

        report = answer.strip()
        if not report:
            raise AuditError("Auditor returned an empty report")

        findings = [
            line.strip()[2:].strip()
            for line in report.splitlines()
            if line.strip().startswith("- ")
        ]
        return AuditReport(report=report, findings=findings)
