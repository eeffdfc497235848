"""
Error types shared by the API client and the game room model
"""

import json
from typing import Any, Optional, Tuple, Type

import httpx
from pydantic import ValidationError


class APIError(Exception):
    """Non-2xx response from the Wordsmoke API"""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body or ""
        super().__init__(self.description)

    @property
    def description(self) -> str:
        """User-facing text, preferring the server's own explanation"""
        detail = _message_from_body(self.body)
        if detail:
            return detail
        trimmed = self.body.strip()
        if not trimmed:
            return f"HTTP {self.status_code}"
        return f"HTTP {self.status_code}: {trimmed}"

    def __str__(self) -> str:
        return self.description


class InvalidResponseError(Exception):
    """A 2xx response whose body is not a JSON document"""

    def __init__(self, message: str = "Invalid server response"):
        super().__init__(message)


class ValidationFailure(Exception):
    """Local validation failure raised before any network call"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# Failures the game room model converts into error_message
TRANSPORT_ERRORS: Tuple[Type[Exception], ...] = (
    APIError,
    InvalidResponseError,
    httpx.HTTPError,
    ValidationError,
)


def describe_error(exc: BaseException) -> str:
    """Text shown in error_message for a failed operation"""
    text = str(exc).strip()
    return text or type(exc).__name__


def _message_from_body(body: str) -> Optional[str]:
    try:
        payload: Any = json.loads(body)
    except (TypeError, ValueError):
        return None
    if not isinstance(payload, dict):
        return None

    # {"details": {"phrase": ["contains language that is not allowed"]}}
    details = payload.get("details")
    if isinstance(details, dict):
        for value in details.values():
            if isinstance(value, list) and value and isinstance(value[0], str) and value[0].strip():
                return value[0].strip()
            if isinstance(value, str) and value.strip():
                return value.strip()

    for key in ("message", "error"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None
