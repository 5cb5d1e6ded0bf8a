from __future__ import annotations

import os
from collections.abc import Mapping, MutableMapping

CANONICAL_API_BASE_URL = "AGENT_STORE_API_BASE_URL"
LEGACY_API_BASE_URLS = ("NEXT_PUBLIC_API_BASE_URL", "API_BASE_URL")

CANONICAL_API_TOKEN = "AGENT_STORE_API_TOKEN"
LEGACY_API_TOKENS = ("API_TOKEN",)

DEFAULT_API_BASE_URL = "http://localhost:8000"


def _resolve(source: Mapping[str, str], canonical: str, legacy: tuple[str, ...]) -> str:
    value = source.get(canonical, "").strip()
    if value:
        return value
    for legacy_key in legacy:
        legacy_value = source.get(legacy_key, "").strip()
        if legacy_value:
            return legacy_value
    return ""


def apply_api_env_compat(env: MutableMapping[str, str]) -> None:
    """Ensure canonical keys are populated from legacy keys without overwriting."""
    for canonical, legacy in (
        (CANONICAL_API_BASE_URL, LEGACY_API_BASE_URLS),
        (CANONICAL_API_TOKEN, LEGACY_API_TOKENS),
    ):
        if env.get(canonical):
            continue
        value = _resolve(env, canonical, legacy)
        if value:
            env[canonical] = value


def resolve_api_base_url(env: Mapping[str, str] | None = None) -> str:
    """Return the agent store API base URL without a trailing slash."""
    source = env if env is not None else os.environ
    value = _resolve(source, CANONICAL_API_BASE_URL, LEGACY_API_BASE_URLS)
    return (value or DEFAULT_API_BASE_URL).rstrip("/")


def resolve_api_token(env: Mapping[str, str] | None = None) -> str:
    """Return the bearer token for authenticated calls, or an empty string."""
    source = env if env is not None else os.environ
    return _resolve(source, CANONICAL_API_TOKEN, LEGACY_API_TOKENS)
