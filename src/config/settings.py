"""
DESCRIPTION
-----------
settings loads configs/onboarding/wizard.yml and the environment into one immutable
WizardSettings object. Fallback tables (capabilities, vocabulary) live here so the
directory clients receive them by injection instead of reading globals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from src.common.env_keys import resolve_api_base_url, resolve_api_token


DEDUP_KEY_MODES = ("exact", "ignore_query")

REPO_ROOT = Path(__file__).resolve().parents[2]


def default_config_path() -> Path:
    return REPO_ROOT / "configs" / "onboarding" / "wizard.yml"


@dataclass(frozen=True)
class FieldRule:
    field: str
    message: str


@dataclass(frozen=True)
class StorageSettings:
    bucket: str = "agentsstore"
    region: str = "us-east-1"
    proxy_path: str = "/api/image-proxy"

    @property
    def base_url(self) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com"


@dataclass(frozen=True)
class WizardSettings:
    api_base_url: str = "http://localhost:8000"
    api_token: str = ""
    timeout_seconds: float = 15.0
    advance_delay_seconds: float = 0.15
    transition_window_seconds: float = 0.3
    storage: StorageSettings = StorageSettings()
    dedup_key_mode: str = "ignore_query"
    video_extensions: Tuple[str, ...] = ("mp4", "webm", "ogg", "mov")
    required_fields: Tuple[FieldRule, ...] = ()
    url_fields: Tuple[FieldRule, ...] = ()
    fallback_capabilities: Tuple[Dict[str, str], ...] = ()
    fallback_vocabulary: Dict[str, Tuple[str, ...]] = field(default_factory=dict)


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    return yaml.safe_load(path.read_text(encoding="utf-8")) or {}


def _rules(raw: Any) -> Tuple[FieldRule, ...]:
    rules: List[FieldRule] = []
    for entry in raw or []:
        if not isinstance(entry, dict):
            continue
        name = str(entry.get("field") or "").strip()
        if not name:
            continue
        rules.append(FieldRule(field=name, message=str(entry.get("message") or f"{name} is invalid")))
    return tuple(rules)


def load_settings(
    path: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> WizardSettings:
    """Build WizardSettings from YAML (missing file -> defaults) plus environment."""
    data = _load_yaml(path or default_config_path())

    http = data.get("http") or {}
    transitions = data.get("transitions") or {}
    storage_raw = data.get("storage") or {}
    assets = data.get("assets") or {}
    validation = data.get("validation") or {}
    fallbacks = data.get("fallbacks") or {}

    dedup_mode = str(assets.get("dedup_key_mode") or "ignore_query")
    if dedup_mode not in DEDUP_KEY_MODES:
        raise ValueError(f"Unsupported assets.dedup_key_mode: {dedup_mode}")

    storage = StorageSettings(
        bucket=str(storage_raw.get("bucket") or StorageSettings.bucket),
        region=str(storage_raw.get("region") or StorageSettings.region),
        proxy_path=str(storage_raw.get("proxy_path") or StorageSettings.proxy_path),
    )

    capabilities = tuple(
        {
            "by_capability_id": str(c.get("by_capability_id", "")),
            "by_capability": str(c.get("by_capability", "")),
        }
        for c in (fallbacks.get("capabilities") or [])
        if isinstance(c, dict)
    )
    vocabulary = {
        str(k): tuple(str(v) for v in (values or []))
        for k, values in (fallbacks.get("vocabulary") or {}).items()
    }

    extensions = assets.get("video_extensions") or list(WizardSettings.video_extensions)

    return WizardSettings(
        api_base_url=resolve_api_base_url(env),
        api_token=resolve_api_token(env),
        timeout_seconds=float(http.get("timeout_seconds", 15.0)),
        advance_delay_seconds=float(transitions.get("advance_delay_seconds", 0.15)),
        transition_window_seconds=float(transitions.get("window_seconds", 0.3)),
        storage=storage,
        dedup_key_mode=dedup_mode,
        video_extensions=tuple(str(e).lower().lstrip(".") for e in extensions),
        required_fields=_rules(validation.get("required_fields")),
        url_fields=_rules(validation.get("url_fields")),
        fallback_capabilities=capabilities,
        fallback_vocabulary=vocabulary,
    )
