"""
DESCRIPTION
-----------
Loading state for the demo-asset preview.

Each asset is fetched on its own; a failure marks only that URL for retry and
never affects siblings. Hosted videos (YouTube/Vimeo) and local blob: previews
are rendered by the front end directly and are not fetched here.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set

import httpx

from src.assets.classifier import DisplayAsset
from src.assets.urls import BLOB_PREFIX, is_hosted_video

logger = logging.getLogger(__name__)


@dataclass
class AssetLoadTracker:
    loading: Set[str] = field(default_factory=set)
    loaded: Set[str] = field(default_factory=set)
    failed: Dict[str, str] = field(default_factory=dict)

    def start(self, url: str) -> None:
        self.loading.add(url)
        self.failed.pop(url, None)

    def succeed(self, url: str) -> None:
        self.loading.discard(url)
        self.loaded.add(url)

    def fail(self, url: str, reason: str) -> None:
        self.loading.discard(url)
        self.loaded.discard(url)
        self.failed[url] = reason

    def has_failed(self, url: str) -> bool:
        return url in self.failed

    def retry(self, url: str) -> None:
        """Clear the failure flag so the next load_assets call fetches url again."""
        self.failed.pop(url, None)
        self.loaded.discard(url)

    def reset(self) -> None:
        self.loading.clear()
        self.loaded.clear()
        self.failed.clear()


def needs_fetch(asset: DisplayAsset) -> bool:
    return not (asset.url.startswith(BLOB_PREFIX) or is_hosted_video(asset.url))


async def _load_one(client: httpx.AsyncClient, url: str, tracker: AssetLoadTracker) -> Optional[bytes]:
    tracker.start(url)
    try:
        response = await client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning("Demo asset failed to load: %s (%s)", url, exc)
        tracker.fail(url, str(exc))
        return None
    tracker.succeed(url)
    return response.content


async def load_assets(
    client: httpx.AsyncClient,
    assets: Sequence[DisplayAsset],
    tracker: AssetLoadTracker,
) -> Dict[str, bytes]:
    """Fetch every pending asset concurrently; returns the bodies that loaded."""
    pending = [
        a.url for a in assets
        if needs_fetch(a) and a.url not in tracker.loaded and not tracker.has_failed(a.url)
    ]
    bodies = await asyncio.gather(*(_load_one(client, url, tracker) for url in pending))
    return {url: body for url, body in zip(pending, bodies) if body is not None}


class AssetCarousel:
    """Wrap-around cursor over a classified asset sequence."""

    def __init__(self, assets: Sequence[DisplayAsset]) -> None:
        self._assets: List[DisplayAsset] = list(assets)
        self.index = 0

    def __len__(self) -> int:
        return len(self._assets)

    @property
    def current(self) -> Optional[DisplayAsset]:
        if not self._assets:
            return None
        return self._assets[self.index]

    def next(self) -> Optional[DisplayAsset]:
        if self._assets:
            self.index = (self.index + 1) % len(self._assets)
        return self.current

    def previous(self) -> Optional[DisplayAsset]:
        if self._assets:
            self.index = (self.index - 1) % len(self._assets)
        return self.current

    def select(self, index: int) -> DisplayAsset:
        if not 0 <= index < len(self._assets):
            raise IndexError(f"Asset position out of range: {index}")
        self.index = index
        return self._assets[index]

    def replace(self, assets: Sequence[DisplayAsset]) -> None:
        self._assets = list(assets)
        self.index = 0
