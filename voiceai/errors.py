"""Voice.ai API errors."""

import json
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """What went wrong with a request."""

    AUTHENTICATION = "AUTHENTICATION"
    PAYMENT_REQUIRED = "PAYMENT_REQUIRED"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION = "VALIDATION"
    RATE_LIMIT = "RATE_LIMIT"
    GENERIC = "GENERIC"
    TIMEOUT = "TIMEOUT"


# Messages used when the server does not supply one
DEFAULT_MESSAGES = {
    ErrorKind.AUTHENTICATION: "Invalid or missing API key",
    ErrorKind.PAYMENT_REQUIRED: "Insufficient credits or voice slot limit reached",
    ErrorKind.NOT_FOUND: "Resource not found",
    ErrorKind.VALIDATION: "Validation failed",
    ErrorKind.RATE_LIMIT: "Rate limit exceeded",
    ErrorKind.GENERIC: "Request failed",
    ErrorKind.TIMEOUT: "Request timeout",
}

_STATUS_KINDS = {
    401: ErrorKind.AUTHENTICATION,
    402: ErrorKind.PAYMENT_REQUIRED,
    404: ErrorKind.NOT_FOUND,
    422: ErrorKind.VALIDATION,
    429: ErrorKind.RATE_LIMIT,
}


class VoiceAIError(Exception):
    """Voice.ai API error.

    A single exception type for every failure; inspect ``kind`` to tell them
    apart.

    Attributes:
        kind: Error category
        message: Human-readable message
        code: HTTP status code, or a symbolic code such as "TIMEOUT"
        details: Structured detail payload from the server, if any
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str | None = None,
        code: int | str | None = None,
        details: Any = None,
    ) -> None:
        self.kind = kind
        self.message = message or DEFAULT_MESSAGES[kind]
        self.code = code
        self.details = details
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"VoiceAIError(kind={self.kind.value}, code={self.code!r}, message={self.message!r})"


def kind_for_status(status_code: int) -> ErrorKind:
    """Map an HTTP error status to its error kind."""
    return _STATUS_KINDS.get(status_code, ErrorKind.GENERIC)


def error_from_response(status_code: int, body: bytes) -> VoiceAIError:
    """Build the error for a buffered non-2xx response."""
    data = _parse_error_body(body)
    kind = kind_for_status(status_code)

    message = None
    details = None
    if isinstance(data, dict):
        message = data.get("error") or data.get("message")
        details = data.get("detail")
    else:
        message = body.decode("utf-8", errors="replace") or "Unknown error"

    if kind in (ErrorKind.VALIDATION, ErrorKind.GENERIC):
        return VoiceAIError(kind, message, code=status_code, details=details)
    return VoiceAIError(kind, message, code=status_code)


def error_from_stream_response(status_code: int, body: bytes) -> VoiceAIError:
    """Build the error for a streaming request rejected by the server.

    Streaming errors are always GENERIC and keep the status code.
    """
    data = _parse_error_body(body)
    message = data.get("error") if isinstance(data, dict) else None
    return VoiceAIError(ErrorKind.GENERIC, message or "Request failed", code=status_code)


def _parse_error_body(body: bytes) -> Any:
    """Parse an error body as JSON, returning None when it is not JSON."""
    try:
        return json.loads(body)
    except ValueError:
        return None
