import json
import re


_FENCE_RE = re.compile(r"```[a-zA-Z]*")
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_JSON_ARRAY_RE = re.compile(r"\[[\s\S]*\]")


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences (```json, ```html, ```) the model sometimes adds."""
    return _FENCE_RE.sub("", text or "").strip()


def extract_first_json_object(text: str) -> dict:
    """
    Best-effort extraction of the first JSON object from a model response.
    Handles fenced blocks and cases where the model wraps JSON in prose.
    """
    raw = strip_code_fences(text)
    if not raw:
        raise ValueError("Empty AI response")

    # Fast path: pure JSON
    try:
        obj = json.loads(raw)
        if isinstance(obj, dict):
            return obj
    except json.JSONDecodeError:
        pass

    # Heuristic: take first {...} block
    m = _JSON_OBJECT_RE.search(raw)
    if not m:
        raise ValueError("No JSON object found in AI response")
    obj = json.loads(m.group(0))
    if not isinstance(obj, dict):
        raise ValueError("AI response JSON is not an object")
    return obj


def extract_json_array(text: str) -> list:
    """Same as `extract_first_json_object`, for responses that must be a JSON array."""
    raw = strip_code_fences(text)
    if not raw:
        raise ValueError("Empty AI response")

    try:
        obj = json.loads(raw)
        if isinstance(obj, list):
            return obj
    except json.JSONDecodeError:
        pass

    m = _JSON_ARRAY_RE.search(raw)
    if not m:
        raise ValueError("No JSON array found in AI response")
    obj = json.loads(m.group(0))
    if not isinstance(obj, list):
        raise ValueError("AI response JSON is not an array")
    return obj
