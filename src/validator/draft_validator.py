"""
DESCRIPTION
-----------
draft_validator is the gatekeeper run before a wizard submission.
Every rule is evaluated so the user sees all violations at once, not just the first.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Sequence

from src.common.text_normalization import is_valid_url
from src.config.settings import FieldRule
from src.validator import error_codes


DEFAULT_REQUIRED_FIELDS = (
    FieldRule("agent_name", "Agent name is required"),
    FieldRule("description", "Agent description is required"),
    FieldRule("agent_type", "Agent type is required"),
    FieldRule("value_proposition", "Value proposition is required"),
    FieldRule("demo_link", "Demo link is required"),
    FieldRule("target_personas", "At least one target persona is required"),
    FieldRule("capability_ids", "At least one core capability is required"),
)

DEFAULT_URL_FIELDS = (
    FieldRule("api_documentation", "API documentation must be a valid URL"),
    FieldRule("demo_link", "Demo link must be a valid URL"),
)


@dataclass(frozen=True)
class ValidationIssue:
    code: str
    message: str
    path: str


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def validate_draft(
    draft: Any,
    required_fields: Sequence[FieldRule] = (),
    url_fields: Sequence[FieldRule] = (),
) -> List[ValidationIssue]:
    """Check a draft against required-field and URL-shape rules; returns every issue."""
    issues: List[ValidationIssue] = []

    for rule in required_fields or DEFAULT_REQUIRED_FIELDS:
        if _is_blank(getattr(draft, rule.field, None)):
            issues.append(
                ValidationIssue(
                    code=error_codes.MISSING_REQUIRED_FIELD,
                    message=rule.message,
                    path=f"$.{rule.field}",
                )
            )

    #note: URL shape is only checked for non-empty values; emptiness is the required rule's job.
    for rule in url_fields or DEFAULT_URL_FIELDS:
        value = str(getattr(draft, rule.field, "") or "")
        if value and not is_valid_url(value):
            issues.append(
                ValidationIssue(
                    code=error_codes.INVALID_URL_FORMAT,
                    message=rule.message,
                    path=f"$.{rule.field}",
                )
            )

    return issues
