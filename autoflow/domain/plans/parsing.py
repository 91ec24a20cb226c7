import json
import re
from typing import Any

from autoflow.core.errors import LLMParseError

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def extract_json_object(text: str) -> dict[str, Any]:
    """
    Extract a JSON object from model output.

    The whole text is tried first (after stripping Markdown fences); failing that,
    the span from the first ``{`` to the last ``}`` is parsed.
    """
    cleaned = _FENCE_RE.sub("", text.strip())
    try:
        obj = json.loads(cleaned)
    except json.JSONDecodeError:
        match = _OBJECT_RE.search(cleaned)
        if not match:
            raise LLMParseError(f"No JSON object found in model output:\n{text}")
        try:
            obj = json.loads(match.group(0))
        except json.JSONDecodeError as exc:
            raise LLMParseError(f"Failed to parse JSON from model output:\n{text}") from exc

    if not isinstance(obj, dict):
        raise LLMParseError("Model output must be a single JSON object.")
    return obj
