from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from jsonschema import Draft7Validator


@dataclass(frozen=True)
class SchemaIssue:
    path: str
    message: str


def validate_schema(payload: Any, schema: Dict[str, Any]) -> List[SchemaIssue]:
    """Validates payload against a JSON schema and returns issues."""
    validator = Draft7Validator(schema)
    issues: List[SchemaIssue] = []
    for error in sorted(validator.iter_errors(payload), key=lambda e: [str(p) for p in e.path]):
        path = "$"
        if error.path:
            path = "$." + ".".join(str(p) for p in error.path)
        issues.append(SchemaIssue(path=path, message=error.message))
    return issues


def format_issues(issues: List[SchemaIssue]) -> str:
    return "; ".join(f"{issue.path}: {issue.message}" for issue in issues)
