from __future__ import annotations

from typing import Any, Dict, List, Optional

from src.validator.schema_validator import SchemaIssue, format_issues


class ApiError(Exception):
    """Non-2xx response or transport failure from the agent store API."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        detail: str = "",
        code: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.detail = detail
        self.code = code
        self.data = data or {}

    def __repr__(self) -> str:
        return f"ApiError(status={self.status!r}, message={self.message!r})"


class ResponseParseError(Exception):
    """Response body did not match the expected shape."""

    def __init__(self, what: str, issues: List[SchemaIssue]) -> None:
        super().__init__(f"Invalid {what} response: {format_issues(issues)}")
        self.what = what
        self.issues = issues
