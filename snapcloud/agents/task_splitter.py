"""
Task Splitters — requirement text to an ordered list of atomic tasks.

- LLMTaskSplitter: asks a completion provider for a JSON array
- HeuristicTaskSplitter: offline splitting on lines, sentences and clauses
"""

import logging
import re
from typing import List

from snapcloud.orchestrator.errors import ProviderError, SplitError

from .base import CompletionProvider, TaskSplitter
from .extraction import parse_task_list

logger = logging.getLogger(__name__)

SPLIT_SYSTEM_PROMPT = (
    "You are SnapCloud AI, a senior AWS solutions architect. "
    "You break client requirements into small, ordered implementation tasks."
)

SPLIT_PROMPT = """Break the following client requirement into atomic AWS implementation tasks.
Keep the order in which they should be carried out.
Answer with a JSON array of strings only, for example:
["Provision an S3 bucket for static assets", "Configure a CloudFront distribution"]

Client requirement:
{requirement}"""


class LLMTaskSplitter(TaskSplitter):
    """Task splitting through a generative model."""

    def __init__(self, provider: CompletionProvider, max_tasks: int = 20):
        self.provider = provider
        self.max_tasks = max_tasks

    async def split(self, requirement: str) -> List[str]:
        prompt = SPLIT_PROMPT.format(requirement=requirement)
        try:
            answer = await self.provider.complete(prompt, system=SPLIT_SYSTEM_PROMPT)
        except ProviderError as e:
            raise SplitError(f"Task splitter unreachable: {e.message}") from e

        tasks = parse_task_list(answer)
        if not tasks:
            raise SplitError(
                "Task splitter answer contained no task list",
                unparseable=True,
            )

        logger.info(f"Split requirement into {len(tasks)} tasks via {self.provider.name}")
        if len(tasks) > self.max_tasks:
            logger.warning(
                f"Keeping the first {self.max_tasks} of {len(tasks)} tasks, "
                f"dropped: {tasks[self.max_tasks:]}"
            )
        return tasks[:self.max_tasks]


_BULLET = re.compile(r"^\s*(?:[-*+•]|\d+[.)])\s+")
_SENTENCE = re.compile(r"(?<=[.;!?])\s+")
_CLAUSE = re.compile(r",\s*(?:and\s+|then\s+)?|\s+(?:and then|then)\s+")


class HeuristicTaskSplitter(TaskSplitter):
    """
    Offline splitter.

    Splits on lines first, then sentences, then ``,``/``then`` clauses. A
    short single-clause requirement legitimately yields one task.
    """

    async def split(self, requirement: str) -> List[str]:
        text = requirement.strip()
        if not text:
            raise SplitError("Requirement is empty", unparseable=True)

        lines = [_BULLET.sub("", line).strip() for line in text.splitlines()]
        lines = [line for line in lines if line]
        if len(lines) > 1:
            return _finish(lines, text)
        text = lines[0]

        sentences = [s for s in _SENTENCE.split(text) if s.strip()]
        if len(sentences) > 1:
            return _finish(sentences, text)

        clauses = [c for c in _CLAUSE.split(text) if c and c.strip()]
        return _finish(clauses, text)


def _finish(parts: List[str], text: str) -> List[str]:
    cleaned = [part.strip().rstrip(".;!?").strip() for part in parts]
    return [part for part in cleaned if part] or [text]
