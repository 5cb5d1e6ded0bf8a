"""
DESCRIPTION
-----------
Reference vocabularies offered as choices in the Agent Details step, plus the
write-back of a user's custom value so it becomes a choice for everyone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from src.directory.client import ApiClient
from src.directory.errors import ApiError, ResponseParseError
from src.directory.schemas import VOCABULARY_SCHEMA
from src.validator.schema_validator import SchemaIssue, validate_schema

logger = logging.getLogger(__name__)

VOCABULARY_PATH = "/api/agent-onboarding-filters"

VOCABULARY_FIELDS = ("agent_types", "value_propositions", "tags", "target_personas")

#note: The write-back endpoint expects every form field, unused ones empty.
WRITE_BACK_FORM_FIELDS = ("agent_type", "value_proposition", "tags", "target_personas")

#note: Draft fields a user may extend with a free-typed value.
CUSTOM_VALUE_FIELDS = ("agent_type", "value_proposition", "tags")


@dataclass(frozen=True)
class Vocabulary:
    agent_types: Tuple[str, ...] = ()
    value_propositions: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    target_personas: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not any(getattr(self, name) for name in VOCABULARY_FIELDS)

    def merge_personas(self, personas: Iterable[str]) -> "Vocabulary":
        """Append personas not already offered, keeping the existing order first."""
        merged = list(self.target_personas)
        for persona in personas:
            if persona and persona not in merged:
                merged.append(persona)
        return replace(self, target_personas=tuple(merged))

    @classmethod
    def from_tables(cls, tables: Mapping[str, Sequence[str]]) -> "Vocabulary":
        return cls(**{name: tuple(tables.get(name) or ()) for name in VOCABULARY_FIELDS})


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if str(v).strip()]
    text = str(value).strip()
    return [text] if text else []


def parse_vocabulary(payload: Any, fallback: Vocabulary) -> Vocabulary:
    """Scalars are wrapped, missing lists take the fallback; an all-empty response is an error."""
    issues = validate_schema(payload, VOCABULARY_SCHEMA)
    if issues:
        raise ResponseParseError("onboarding vocabulary", issues)

    values: Dict[str, Tuple[str, ...]] = {}
    for name in VOCABULARY_FIELDS:
        if name in payload and payload[name] is not None:
            values[name] = tuple(_as_list(payload[name]))
        else:
            values[name] = getattr(fallback, name)

    if not any(_as_list(payload.get(name)) for name in VOCABULARY_FIELDS):
        raise ResponseParseError(
            "onboarding vocabulary", [SchemaIssue(path="$", message="every vocabulary list is empty")]
        )
    return Vocabulary(**values)


def _merge_server(current: Vocabulary, payload: Any) -> Vocabulary:
    #note: Server lists replace local ones only when present in the response.
    if not isinstance(payload, dict):
        return current
    updates = {
        name: tuple(_as_list(payload[name]))
        for name in VOCABULARY_FIELDS
        if payload.get(name) is not None
    }
    return replace(current, **updates)


@dataclass
class VocabularyService:
    client: ApiClient
    fallback: Vocabulary = field(default_factory=Vocabulary)

    async def fetch(self) -> Vocabulary:
        try:
            payload = await self.client.get_json(VOCABULARY_PATH)
            return parse_vocabulary(payload, self.fallback)
        except (ApiError, ResponseParseError) as exc:
            logger.warning("Onboarding vocabulary unavailable, using fallback tables: %s", exc)
            return self.fallback

    async def save_custom_value(self, current: Vocabulary, field_name: str, value: Any) -> Vocabulary:
        """
        Persist a custom value and return the refreshed vocabulary.

        Failures are logged and the current vocabulary is returned unchanged.
        """
        if field_name not in CUSTOM_VALUE_FIELDS:
            raise ValueError(f"Custom values are not supported for {field_name}")

        form = {name: "" for name in WRITE_BACK_FORM_FIELDS}
        if isinstance(value, (list, tuple)):
            form[field_name] = ",".join(str(v) for v in value if v)
        else:
            form[field_name] = str(value or "")

        try:
            await self.client.put_form(VOCABULARY_PATH, form)
            payload = await self.client.get_json(VOCABULARY_PATH)
        except ApiError as exc:
            logger.error("Saving custom %s failed: %s", field_name, exc)
            return current
        return _merge_server(current, payload)
