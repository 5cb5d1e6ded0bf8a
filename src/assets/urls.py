"""
DESCRIPTION
-----------
URL helpers for demo assets: storage-proxy rewriting, hosted-video detection and
embedding, CDN rewriting, and the dedup key used to recognise the same asset
arriving from different sources.
"""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import parse_qs, quote, urlsplit, urlunsplit

from src.config.settings import StorageSettings


YOUTUBE_RE = re.compile(
    r"(?:youtube\.com/(?:[^/]+/.+/|(?:v|e(?:mbed)?)/|.*[?&]v=)|youtu\.be/)([^\"&?/\s]{11})",
    re.IGNORECASE,
)
VIMEO_RE = re.compile(r"vimeo\.com/(\d+)", re.IGNORECASE)

GITHUB_RAW_PREFIX = "https://raw.githubusercontent.com/"
JSDELIVR_PREFIX = "https://cdn.jsdelivr.net/gh/"

BLOB_PREFIX = "blob:"


def is_youtube(url: str) -> bool:
    return bool(YOUTUBE_RE.search(url or ""))


def is_vimeo(url: str) -> bool:
    return bool(VIMEO_RE.search(url or ""))


def is_hosted_video(url: str) -> bool:
    return is_youtube(url) or is_vimeo(url)


def youtube_embed_url(url: str) -> Optional[str]:
    match = YOUTUBE_RE.search(url or "")
    if not match:
        return None
    return f"https://www.youtube.com/embed/{match.group(1)}"


def vimeo_embed_url(url: str) -> Optional[str]:
    match = VIMEO_RE.search(url or "")
    if not match:
        return None
    return f"https://player.vimeo.com/video/{match.group(1)}"


def is_absolute(url: str) -> bool:
    return url.startswith("https://") or url.startswith("http://")


def is_storage_url(url: str) -> bool:
    return ".s3." in url or "amazonaws.com" in url


def is_proxied(url: str, proxy_path: str) -> bool:
    return url.startswith(f"{proxy_path}?")


def proxy_url(url: str, proxy_path: str) -> str:
    return f"{proxy_path}?url={quote(url, safe='')}"


def storage_object_url(key: str, storage: StorageSettings) -> str:
    return f"{storage.base_url}/{key.lstrip('/')}"


def rewrite_github_raw(url: str) -> str:
    if not url.startswith(GITHUB_RAW_PREFIX):
        return url
    rewritten = JSDELIVR_PREFIX + url[len(GITHUB_RAW_PREFIX):]
    return rewritten.replace("/main/", "@main/", 1).replace("/master/", "@master/", 1)


def normalize_asset_url(raw: str, storage: StorageSettings) -> str:
    """
    Resolve a stored asset reference to the URL the browser should load.

    - already-proxied, blob: and hosted-video URLs pass through unchanged
    - absolute storage-bucket URLs go through the proxy
    - other absolute URLs pass through (GitHub raw is moved to the CDN)
    - anything else is a bucket key: expanded to a bucket URL, then proxied
    """
    url = (raw or "").strip()
    if not url:
        return ""
    if is_proxied(url, storage.proxy_path) or url.startswith(BLOB_PREFIX) or is_hosted_video(url):
        return url
    if is_absolute(url):
        if is_storage_url(url):
            return proxy_url(url, storage.proxy_path)
        return rewrite_github_raw(url)
    return proxy_url(storage_object_url(url, storage), storage.proxy_path)


def upstream_url(url: str, proxy_path: str) -> str:
    """The URL the proxy would fetch, or url itself when it is not proxied."""
    if not is_proxied(url, proxy_path):
        return url
    values = parse_qs(url[len(proxy_path) + 1:]).get("url")
    return values[0] if values else url


def hosted_video_key(url: str) -> Optional[str]:
    match = YOUTUBE_RE.search(url)
    if match:
        return f"youtube:{match.group(1)}"
    match = VIMEO_RE.search(url)
    if match:
        return f"vimeo:{match.group(1)}"
    return None


def dedup_key(url: str, mode: str, proxy_path: str) -> str:
    """
    Identity of an asset URL for deduplication.

    In "ignore_query" mode a hosted video is keyed by its video id, and a storage
    bucket URL drops its query string and fragment so signed or cache-busted
    variants of one object collapse together. Any other URL keeps its query, which
    may be what addresses the asset.
    """
    target = upstream_url((url or "").strip(), proxy_path)
    if mode == "ignore_query":
        video_key = hosted_video_key(target)
        if video_key is not None:
            #note: Video ids are case-sensitive.
            return video_key
        if is_storage_url(target):
            parts = urlsplit(target)
            target = urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))
    return target.lower()
