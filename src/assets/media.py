from __future__ import annotations

import re
from typing import Iterable, Pattern
from urllib.parse import unquote

from src.assets.urls import is_hosted_video


def extension_pattern(extensions: Iterable[str]) -> Pattern[str]:
    #note: The extension must end the path segment; "a.mp4x" or "a.mov.png" are not videos.
    alternatives = "|".join(re.escape(e.lower().lstrip(".")) for e in extensions)
    return re.compile(rf"\.(?:{alternatives})(?:$|[?&#/]|%3F|%2F|%26)", re.IGNORECASE)


def has_video_extension(url: str, pattern: Pattern[str]) -> bool:
    if not url:
        return False
    return bool(pattern.search(url) or pattern.search(unquote(url)))


def is_video_name(name: str, pattern: Pattern[str]) -> bool:
    return bool(name) and bool(pattern.search(name))


def is_video_url(url: str, pattern: Pattern[str]) -> bool:
    return is_hosted_video(url) or has_video_extension(url, pattern)
