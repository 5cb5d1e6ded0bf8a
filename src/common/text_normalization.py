from __future__ import annotations

import re
from typing import Iterable, List


URL_RE = re.compile(r"^https?://.+\..+")
FEATURE_SPLIT_RE = re.compile(r"[;\n]+")


def is_valid_url(url: str) -> bool:
    return bool(URL_RE.match(url))


def split_delimited(raw: str | None, sep: str = ",") -> List[str]:
    """Split a delimited wire string into trimmed, non-empty parts."""
    if not raw:
        return []
    return [part.strip() for part in str(raw).split(sep) if part.strip()]


def split_features(raw: str | None) -> List[str]:
    if not raw:
        return []
    return [part.strip() for part in FEATURE_SPLIT_RE.split(str(raw)) if part.strip()]


def join_delimited(values: Iterable[str], sep: str = ",") -> str:
    return sep.join(v for v in values if v)


def unique_in_order(values: Iterable[str]) -> List[str]:
    """Deduplicate strings while preserving first-seen order."""
    seen = set()
    out: List[str] = []
    for value in values:
        v = value.strip()
        if not v or v in seen:
            continue
        seen.add(v)
        out.append(v)
    return out
