from __future__ import annotations

from typing import Iterable, List, Set

from src.deployments.options import DeploymentOption, FetchedOption, ManualOption, OptionKey


def existing_keys(options: Iterable[DeploymentOption]) -> Set[OptionKey]:
    """Dedup keys of every fetched option; manual options never contribute a key."""
    keys: Set[OptionKey] = set()
    for option in options:
        if isinstance(option, FetchedOption):
            keys.add(option.dedup_key)
        elif not isinstance(option, ManualOption):
            raise TypeError(f"Unsupported deployment option: {type(option).__name__}")
    return keys


def dedupe_options(
    existing: Iterable[DeploymentOption],
    candidates: Iterable[FetchedOption],
) -> List[FetchedOption]:
    """Return the candidates whose key is new, in candidate order."""
    seen = existing_keys(existing)
    novel: List[FetchedOption] = []

    for candidate in candidates:
        key = candidate.dedup_key
        if key in seen:
            continue
        seen.add(key)
        novel.append(candidate)

    return novel
