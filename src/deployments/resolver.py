"""
DESCRIPTION
-----------
DeploymentResolver turns capability activations into deployment options.

Each activation issues one independent fetch. Results may land in any order; each
one is merged into the collection as it stands when the fetch completes. There is
no cancellation: a result whose capability was deactivated meanwhile is discarded.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Protocol, Set, Tuple

from src.deployments.collection import DeploymentCollection
from src.deployments.options import DeploymentOption, FetchedOption
from src.directory.errors import ApiError, ResponseParseError

logger = logging.getLogger(__name__)

MERGED = "merged"
IN_FLIGHT = "in_flight"
INACTIVE = "inactive"
FAILED = "failed"


class OptionSource(Protocol):
    async def fetch(self, capability_id: str, capability_name: str = "") -> List[FetchedOption]:
        ...


@dataclass(frozen=True)
class ResolveReport:
    capability_id: str
    status: str
    added: int = 0
    skipped: int = 0


class DeploymentResolver:
    def __init__(
        self,
        directory: OptionSource,
        collection: DeploymentCollection,
        is_active: Callable[[str], bool],
    ) -> None:
        self._directory = directory
        self._collection = collection
        self._is_active = is_active
        self._in_flight: Set[str] = set()

    def is_loading(self, capability_id: str) -> bool:
        return capability_id in self._in_flight

    @property
    def any_loading(self) -> bool:
        return bool(self._in_flight)

    async def resolve(self, capability_id: str, capability_name: str = "") -> ResolveReport:
        #note: Check-and-set happens before the first await, so a second activation is a no-op.
        if capability_id in self._in_flight:
            return ResolveReport(capability_id=capability_id, status=IN_FLIGHT)
        self._in_flight.add(capability_id)

        try:
            try:
                candidates = await self._directory.fetch(capability_id, capability_name)
            except (ApiError, ResponseParseError) as exc:
                logger.warning("Deployment options for capability %s unavailable: %s", capability_id, exc)
                return ResolveReport(capability_id=capability_id, status=FAILED)

            if not self._is_active(capability_id):
                logger.info("Capability %s was deactivated before its options arrived", capability_id)
                return ResolveReport(capability_id=capability_id, status=INACTIVE)

            report = self._collection.merge_fetched(candidates)
            return ResolveReport(
                capability_id=capability_id,
                status=MERGED,
                added=report.added,
                skipped=report.skipped,
            )
        finally:
            self._in_flight.discard(capability_id)

    async def resolve_many(self, capabilities: Iterable[Tuple[str, str]]) -> List[ResolveReport]:
        return list(
            await asyncio.gather(*(self.resolve(cid, name) for cid, name in capabilities))
        )

    def deactivate(self, capability_id: str) -> List[DeploymentOption]:
        return self._collection.sweep_capability(capability_id)
