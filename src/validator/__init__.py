"""Validator helpers for API response shapes and wizard drafts."""

from src.validator.draft_validator import ValidationIssue, validate_draft
from src.validator.schema_validator import SchemaIssue, format_issues, validate_schema

__all__ = [
    "SchemaIssue",
    "ValidationIssue",
    "format_issues",
    "validate_draft",
    "validate_schema",
]
