from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from src.directory.errors import ApiError


class SubmissionErrorKind(str, Enum):
    AUTHENTICATION_REQUIRED = "authentication_required"
    MALFORMED_REQUEST = "malformed_request"
    SERVER_FAULT = "server_fault"
    GENERIC = "generic"


CANNED_MESSAGES: Dict[SubmissionErrorKind, str] = {
    SubmissionErrorKind.AUTHENTICATION_REQUIRED: "Authentication failed. Please log in again.",
    SubmissionErrorKind.MALFORMED_REQUEST: "Invalid data provided. Please check all required fields and try again.",
    SubmissionErrorKind.SERVER_FAULT: "Server error occurred. Please try again later.",
    SubmissionErrorKind.GENERIC: "An unexpected error occurred while submitting the agent",
}


@dataclass(frozen=True)
class SubmissionError:
    kind: SubmissionErrorKind
    message: str
    status: Optional[int] = None


def kind_for_status(status: Optional[int]) -> SubmissionErrorKind:
    if status == 401:
        return SubmissionErrorKind.AUTHENTICATION_REQUIRED
    if status in (400, 422):
        return SubmissionErrorKind.MALFORMED_REQUEST
    if status is not None and status >= 500:
        return SubmissionErrorKind.SERVER_FAULT
    return SubmissionErrorKind.GENERIC


def _server_text(data: Dict[str, Any]) -> str:
    for key in ("detail", "message"):
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def classify_submission_error(exc: BaseException) -> SubmissionError:
    """Map a persistence failure to a kind and the message shown to the user."""
    status = exc.status if isinstance(exc, ApiError) else None
    kind = kind_for_status(status)
    server_text = _server_text(exc.data) if isinstance(exc, ApiError) else ""
    return SubmissionError(kind=kind, message=server_text or CANNED_MESSAGES[kind], status=status)
