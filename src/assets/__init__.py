"""Demo-asset URL resolution, classification and preview loading."""

from src.assets.classifier import AssetClassifier, AssetRecord, DisplayAsset, MediaKind, classify
from src.assets.loader import AssetCarousel, AssetLoadTracker, load_assets
from src.assets.urls import (
    dedup_key,
    is_hosted_video,
    normalize_asset_url,
    rewrite_github_raw,
    vimeo_embed_url,
    youtube_embed_url,
)

__all__ = [
    "AssetCarousel",
    "AssetClassifier",
    "AssetLoadTracker",
    "AssetRecord",
    "DisplayAsset",
    "MediaKind",
    "classify",
    "dedup_key",
    "is_hosted_video",
    "load_assets",
    "normalize_asset_url",
    "rewrite_github_raw",
    "vimeo_embed_url",
    "youtube_embed_url",
]
