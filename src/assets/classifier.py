"""
DESCRIPTION
-----------
classify collapses the two demo-asset sources of an agent into one display sequence:

- asset records (one dict per stored asset, several legacy URL fields)
- the agent's demo_preview string (comma-separated URLs)

Output order: record videos, preview videos, record images, preview images.
Each logically distinct URL appears once; a URL seen from either source is skipped.
Re-classifying the output (as records, empty preview) yields the same sequence.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Pattern, Sequence, Set

from src.assets.media import extension_pattern, is_video_name, is_video_url
from src.assets.urls import dedup_key, normalize_asset_url
from src.common.text_normalization import split_delimited
from src.config.settings import StorageSettings

logger = logging.getLogger(__name__)

DEFAULT_VIDEO_EXTENSIONS = ("mp4", "webm", "ogg", "mov")


class MediaKind(str, Enum):
    VIDEO = "video"
    IMAGE = "image"


@dataclass(frozen=True)
class AssetRecord:
    name: str = ""
    asset_url: str = ""
    file_path: str = ""
    asset_link: str = ""
    demo_link: str = ""
    media_type: str = ""

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "AssetRecord":
        return cls(
            name=str(raw.get("demo_asset_name") or ""),
            asset_url=str(raw.get("asset_url") or ""),
            file_path=str(raw.get("asset_file_path") or ""),
            asset_link=str(raw.get("demo_asset_link") or ""),
            demo_link=str(raw.get("demo_link") or ""),
            media_type=str(raw.get("demo_asset_type") or ""),
        )

    @classmethod
    def from_upload(cls, upload: Any) -> "AssetRecord":
        """Record for a not-yet-persisted UploadedFile, addressed by its local preview ref."""
        return cls(name=upload.name, asset_url=upload.preview_ref, media_type=upload.content_type)

    @property
    def source_url(self) -> str:
        #note: Priority: primary asset URL > file path > legacy asset link > legacy demo link.
        for candidate in (self.asset_url, self.file_path, self.asset_link, self.demo_link):
            if candidate and candidate.strip():
                return candidate.strip()
        return ""


@dataclass(frozen=True)
class DisplayAsset:
    url: str
    kind: MediaKind

    @property
    def is_video(self) -> bool:
        return self.kind is MediaKind.VIDEO

    def as_record(self) -> AssetRecord:
        media_type = "video/*" if self.is_video else "image/*"
        return AssetRecord(name="", asset_url=self.url, media_type=media_type)


@dataclass
class _Seen:
    mode: str
    proxy_path: str
    raw_keys: Set[str] = field(default_factory=set)
    resolved_keys: Set[str] = field(default_factory=set)

    def claim(self, raw: str, resolved: str) -> bool:
        """Record both keys; False when either was already seen."""
        raw_key = dedup_key(raw, self.mode, self.proxy_path)
        resolved_key = dedup_key(resolved, self.mode, self.proxy_path)
        if raw_key in self.raw_keys or resolved_key in self.resolved_keys:
            return False
        self.raw_keys.add(raw_key)
        self.resolved_keys.add(resolved_key)
        return True


def _record_is_video(record: AssetRecord, raw: str, resolved: str, pattern: Pattern[str]) -> bool:
    if record.media_type.lower().startswith("video/"):
        return True
    if is_video_name(record.name, pattern):
        return True
    return is_video_url(raw, pattern) or is_video_url(resolved, pattern)


def classify(
    records: Iterable[Any],
    preview_csv: Optional[str] = "",
    *,
    storage: Optional[StorageSettings] = None,
    dedup_key_mode: str = "ignore_query",
    video_extensions: Sequence[str] = DEFAULT_VIDEO_EXTENSIONS,
) -> List[DisplayAsset]:
    """Merge asset records and a comma-separated preview string into one ordered display list."""
    storage = storage or StorageSettings()
    pattern = extension_pattern(video_extensions)
    seen = _Seen(mode=dedup_key_mode, proxy_path=storage.proxy_path)

    parsed = [r if isinstance(r, AssetRecord) else AssetRecord.from_dict(r) for r in records or []]
    parsed.sort(key=lambda r: r.name.lower())

    record_videos: List[DisplayAsset] = []
    record_images: List[DisplayAsset] = []
    for record in parsed:
        raw = record.source_url
        resolved = normalize_asset_url(raw, storage)
        if not resolved or not seen.claim(raw, resolved):
            continue
        if _record_is_video(record, raw, resolved, pattern):
            record_videos.append(DisplayAsset(resolved, MediaKind.VIDEO))
        else:
            record_images.append(DisplayAsset(resolved, MediaKind.IMAGE))

    preview_videos: List[DisplayAsset] = []
    preview_images: List[DisplayAsset] = []
    for raw in split_delimited(preview_csv):
        resolved = normalize_asset_url(raw, storage)
        if not resolved or not seen.claim(raw, resolved):
            logger.debug("Skipping duplicate preview URL %s", raw)
            continue
        if is_video_url(raw, pattern) or is_video_url(resolved, pattern):
            preview_videos.append(DisplayAsset(resolved, MediaKind.VIDEO))
        else:
            preview_images.append(DisplayAsset(resolved, MediaKind.IMAGE))

    return record_videos + preview_videos + record_images + preview_images


class AssetClassifier:
    """classify bound to one storage/dedup configuration."""

    def __init__(
        self,
        storage: Optional[StorageSettings] = None,
        dedup_key_mode: str = "ignore_query",
        video_extensions: Sequence[str] = DEFAULT_VIDEO_EXTENSIONS,
    ) -> None:
        self.storage = storage or StorageSettings()
        self.dedup_key_mode = dedup_key_mode
        self.video_extensions = tuple(video_extensions)

    @classmethod
    def from_settings(cls, settings: Any) -> "AssetClassifier":
        return cls(
            storage=settings.storage,
            dedup_key_mode=settings.dedup_key_mode,
            video_extensions=settings.video_extensions,
        )

    def classify(
        self,
        records: Iterable[Any],
        preview_csv: Optional[str] = "",
        uploads: Iterable[Any] = (),
    ) -> List[DisplayAsset]:
        combined = list(records or []) + [AssetRecord.from_upload(u) for u in uploads]
        return classify(
            combined,
            preview_csv,
            storage=self.storage,
            dedup_key_mode=self.dedup_key_mode,
            video_extensions=self.video_extensions,
        )
