"""JSON Schemas for the agent store API responses the wizard consumes."""

from __future__ import annotations

from typing import Any, Dict


_STRING_OR_NULL = {"type": ["string", "null"]}
_STRING_LIST_OR_SCALAR = {
    "anyOf": [
        {"type": "array", "items": {"type": ["string", "number"]}},
        {"type": ["string", "null"]},
    ]
}

CAPABILITY_LIST_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["capabilities"],
    "properties": {
        "capabilities": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["by_capability_id", "by_capability"],
                "properties": {
                    "by_capability_id": {"type": ["string", "integer"]},
                    "by_capability": {"type": "string"},
                },
            },
        }
    },
}

DEPLOYMENT_LIST_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "capability_id": {"type": ["string", "integer", "null"]},
        "capability_name": _STRING_OR_NULL,
        "options": {
            "type": ["array", "null"],
            "items": {
                "type": "object",
                "properties": {
                    "service_provider": _STRING_OR_NULL,
                    "service_name": _STRING_OR_NULL,
                    "deployment": _STRING_OR_NULL,
                    "cloud_region": _STRING_OR_NULL,
                },
            },
        },
    },
}

VOCABULARY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "agent_types": _STRING_LIST_OR_SCALAR,
        "value_propositions": _STRING_LIST_OR_SCALAR,
        "tags": _STRING_LIST_OR_SCALAR,
        "target_personas": _STRING_LIST_OR_SCALAR,
    },
}

AGENT_RECORD_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["agent"],
    "properties": {
        "agent": {"type": "object"},
        "capabilities": {"type": ["array", "null"], "items": {"type": "object"}},
        "deployments": {"type": ["array", "null"], "items": {"type": "object"}},
        "documentation": {"type": ["array", "null"], "items": {"type": "object"}},
        "demo_assets": {"type": ["array", "null"], "items": {"type": "object"}},
    },
}
