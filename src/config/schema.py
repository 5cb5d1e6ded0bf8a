"""JSON Schema for configs/onboarding/wizard.yml."""

from __future__ import annotations

from typing import Any, Dict


_NUMBER = {"type": "number", "minimum": 0}

_FIELD_RULES = {
    "type": "array",
    "items": {
        "type": "object",
        "required": ["field", "message"],
        "properties": {"field": {"type": "string"}, "message": {"type": "string"}},
    },
}

WIZARD_CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "http": {"type": "object", "properties": {"timeout_seconds": _NUMBER}},
        "transitions": {
            "type": "object",
            "properties": {"advance_delay_seconds": _NUMBER, "window_seconds": _NUMBER},
        },
        "storage": {
            "type": "object",
            "properties": {
                "bucket": {"type": "string"},
                "region": {"type": "string"},
                "proxy_path": {"type": "string", "pattern": "^/"},
            },
        },
        "assets": {
            "type": "object",
            "properties": {
                "dedup_key_mode": {"type": "string"},
                "video_extensions": {"type": "array", "items": {"type": "string"}, "minItems": 1},
            },
        },
        "validation": {
            "type": "object",
            "properties": {"required_fields": _FIELD_RULES, "url_fields": _FIELD_RULES},
        },
        "fallbacks": {
            "type": "object",
            "properties": {
                "capabilities": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "required": ["by_capability_id", "by_capability"],
                    },
                },
                "vocabulary": {
                    "type": "object",
                    "additionalProperties": {"type": "array", "items": {"type": "string"}},
                },
            },
        },
    },
}
