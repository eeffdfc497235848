"""
Helpers for logging API traffic
"""

import hashlib
import json
from typing import Any, Dict, List, Optional

import httpx


def truncate(value: str, max_length: int = 600) -> str:
    """Cut a string down to max_length characters"""
    if len(value) <= max_length:
        return value
    return value[:max_length]


def pretty_json(data: bytes) -> Optional[str]:
    """Pretty-print a JSON body, keeping every "marks" array on one line"""
    try:
        payload = json.loads(data)
    except (TypeError, ValueError):
        return None

    occurrences: Dict[str, str] = {}
    traversed = _replace_marks(payload, occurrences)
    pretty = json.dumps(traversed, indent=2, ensure_ascii=False)
    for placeholder, compact in occurrences.items():
        pretty = pretty.replace(f'"{placeholder}"', compact)
    return pretty


def body_text(data: bytes, max_length: int = 600) -> str:
    """Readable, truncated rendering of a request or response body"""
    if not data:
        return ""
    text = pretty_json(data)
    if text is None:
        text = data.decode("utf-8", errors="replace")
    return truncate(text, max_length)


def response_signature(response: httpx.Response) -> Optional[str]:
    """Identity of a response used to log only changed payloads"""
    etag = response.headers.get("ETag")
    if etag:
        return f"etag:{etag}"
    last_modified = response.headers.get("Last-Modified")
    if last_modified:
        return f"last:{last_modified}"
    if not response.content:
        return None
    digest = hashlib.sha1(response.content).hexdigest()
    return f"len:{len(response.content)}-hash:{digest}"


def _replace_marks(value: Any, occurrences: Dict[str, str]) -> Any:
    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            if key == "marks" and isinstance(item, list):
                placeholder = f"__MARKS_{len(occurrences)}__"
                occurrences[placeholder] = json.dumps(item, separators=(",", ":"), ensure_ascii=False)
                result[key] = placeholder
            else:
                result[key] = _replace_marks(item, occurrences)
        return result
    if isinstance(value, list):
        items: List[Any] = [_replace_marks(item, occurrences) for item in value]
        return items
    return value
