#!/usr/bin/env python3
from __future__ import annotations

from pathlib import Path
import sys
from typing import List, Optional

import yaml

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from src.config.schema import WIZARD_CONFIG_SCHEMA  # noqa: E402
from src.config.settings import default_config_path, load_settings  # noqa: E402
from src.validator.schema_validator import format_issues, validate_schema  # noqa: E402


def main(argv: Optional[List[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    config_path = Path(args[0]) if args else default_config_path()
    if not config_path.exists():
        print(f"Config file not found: {config_path}", file=sys.stderr)
        return 1

    data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    issues = validate_schema(data, WIZARD_CONFIG_SCHEMA)
    if issues:
        print(f"Invalid wizard config: {format_issues(issues)}", file=sys.stderr)
        return 1

    try:
        settings = load_settings(config_path, env={})
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    print(
        f"Validated {config_path.name}: {len(settings.fallback_capabilities)} fallback capabilities, "
        f"{len(settings.required_fields)} required-field rules, dedup mode {settings.dedup_key_mode}."
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
