"""
Extraction helpers for free-text model answers.

Models answer in markdown with fenced code blocks; these helpers pull out
the pieces the LLM collaborators need. They are only used inside the
collaborator implementations, never by the workflow.
"""

import json
import re
from typing import Any, Dict, List, Optional, Tuple

_FENCE = re.compile(r"```[ \t]*([\w+-]*)[ \t]*\r?\n(.*?)```", re.DOTALL)
_LIST_ITEM = re.compile(r"^\s*(?:[-*+•]|\d+[.)])\s+(.*\S)\s*$")


def extract_code_block(text: str, *languages: str) -> Optional[str]:
    """
    Return the body of the first fenced block tagged with one of ``languages``.

    Matching is case-insensitive; returns None when there is no such block
    or the block is empty.
    """
    wanted = {lang.lower() for lang in languages}
    for match in _FENCE.finditer(text or ""):
        if match.group(1).lower() in wanted:
            body = match.group(2).strip()
            return body or None
    return None


def strip_code_fences(text: str) -> str:
    """Drop markdown fences, keeping their contents."""
    cleaned = re.sub(r"```[\w+-]*[ \t]*", "", text or "")
    return cleaned.strip()


def _json_span(text: str, opener: str, closer: str) -> Optional[str]:
    start = text.find(opener)
    end = text.rfind(closer)
    if start == -1 or end <= start:
        return None
    return text[start:end + 1]


def parse_task_list(text: str) -> List[str]:
    """
    Parse a task list out of a model answer.

    Accepts a JSON array of strings (fenced or bare) and falls back to a
    markdown bulleted/numbered list. Returns an empty list when nothing
    usable is found.
    """
    cleaned = strip_code_fences(text)

    span = _json_span(cleaned, "[", "]")
    if span is not None:
        try:
            data = json.loads(span)
        except json.JSONDecodeError:
            data = None
        if isinstance(data, list):
            tasks = [str(item).strip() for item in data if isinstance(item, (str, int, float))]
            tasks = [task for task in tasks if task]
            if tasks:
                return tasks

    tasks = []
    for line in cleaned.splitlines():
        match = _LIST_ITEM.match(line)
        if match:
            tasks.append(match.group(1).strip())
    return tasks


def parse_cost_json(text: str) -> Tuple[Dict[str, Any], Optional[str]]:
    """
    Parse the structured cost estimate.

    Returns ``(data, warning)``: on malformed or missing JSON the data is an
    empty dict and the warning says why.
    """
    block = extract_code_block(text, "json")
    if block is None:
        return {}, "cost estimation JSON block missing"

    span = _json_span(block, "{", "}")
    if span is None:
        return {}, "cost estimation JSON is not an object"

    try:
        data = json.loads(span)
    except json.JSONDecodeError as e:
        return {}, f"cost estimation JSON malformed: {e.msg}"

    if not isinstance(data, dict):
        return {}, "cost estimation JSON is not an object"
    return data, None


def extract_markdown_table(text: str) -> str:
    """Return the first markdown table (consecutive ``|`` lines), or ''."""
    rows: List[str] = []
    for line in (text or "").splitlines():
        stripped = line.strip()
        if stripped.startswith("|"):
            rows.append(stripped)
        elif rows:
            break
    return "\n".join(rows) if len(rows) >= 2 else ""
