from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Sequence

from src.directory.client import ApiClient
from src.directory.errors import ApiError, ResponseParseError
from src.directory.schemas import CAPABILITY_LIST_SCHEMA
from src.validator.schema_validator import validate_schema

logger = logging.getLogger(__name__)

CAPABILITIES_PATH = "/api/capabilities"


@dataclass(frozen=True)
class CapabilityRecord:
    capability_id: str
    name: str


def parse_capabilities(payload: Any) -> List[CapabilityRecord]:
    """Validate a capability listing and return records deduplicated and sorted by name."""
    issues = validate_schema(payload, CAPABILITY_LIST_SCHEMA)
    if issues:
        raise ResponseParseError("capability list", issues)
    return normalize_capabilities(payload["capabilities"])


def normalize_capabilities(raw: Iterable[Dict[str, Any]]) -> List[CapabilityRecord]:
    #note: First occurrence of a display name wins; blank names are dropped.
    by_name: Dict[str, CapabilityRecord] = {}
    for entry in raw:
        name = str(entry.get("by_capability") or "").strip()
        if not name or name in by_name:
            continue
        by_name[name] = CapabilityRecord(
            capability_id=str(entry.get("by_capability_id") or ""),
            name=name,
        )
    return sorted(by_name.values(), key=lambda c: c.name)


class CapabilityDirectory:
    def __init__(self, client: ApiClient, fallback: Sequence[Dict[str, str]] = ()) -> None:
        self._client = client
        self._fallback = normalize_capabilities(fallback)

    @property
    def fallback(self) -> List[CapabilityRecord]:
        return list(self._fallback)

    async def fetch(self) -> List[CapabilityRecord]:
        """Capability reference list; any failure degrades to the configured table."""
        try:
            payload = await self._client.get_json(CAPABILITIES_PATH)
            records = parse_capabilities(payload)
        except (ApiError, ResponseParseError) as exc:
            logger.warning("Capability list unavailable, using fallback table: %s", exc)
            return self.fallback
        logger.debug("Fetched %d capabilities", len(records))
        return records
