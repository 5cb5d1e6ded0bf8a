"""
    DESCRIPTION
    -----------
    run_wizard is the headless CLI entrypoint for onboarding or editing one agent.

Usage:
    python -m src.wizard.run_wizard --draft-file draft.yml --user-id U [--agent-id ID] [--capability NAME ...]
    [--summary-out summary.json]

The draft file holds AgentDraft fields; files/readme_file are local paths. Manual
deployment options go under "manual_deployments". A YAML summary is printed.
    """

from __future__ import annotations

import argparse
import asyncio
import logging
import mimetypes
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from src.common.file_utils import write_json_atomic
from src.config.settings import load_settings
from src.deployments.options import option_to_payload
from src.wizard.draft import MULTI_VALUE_FIELDS, AgentDraft, UploadedFile
from src.wizard.steps import WizardMode
from src.wizard.wizard import OnboardingWizard, build_services

logger = logging.getLogger(__name__)

SCALAR_FIELDS = (
    "agent_name",
    "description",
    "agent_type",
    "value_proposition",
    "key_features",
    "roi_information",
    "demo_link",
    "sdk_details",
    "api_documentation",
    "sample_input",
    "sample_output",
    "security_details",
)


#note: Load the draft YAML; a missing or empty file is an empty draft.
def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    return yaml.safe_load(path.read_text(encoding="utf-8")) or {}


def upload_from_path(path: Path) -> UploadedFile:
    content = path.read_bytes()
    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return UploadedFile(name=path.name, size=len(content), content_type=content_type, content=content)


def apply_draft_fields(draft: AgentDraft, data: Dict[str, Any], base_dir: Path) -> None:
    """Overlay the draft file's values onto the draft; absent keys keep their value."""
    for name in SCALAR_FIELDS:
        if name in data and data[name] is not None:
            setattr(draft, name, str(data[name]))
    for name in MULTI_VALUE_FIELDS:
        if name in data:
            draft.set_choices(name, [str(v) for v in data[name] or []])
    for url in data.get("demo_links") or []:
        draft.add_demo_link(str(url))
    for url in data.get("related_links") or []:
        draft.add_related_link(str(url))
    draft.add_files([upload_from_path(base_dir / str(p)) for p in data.get("files") or []])
    if data.get("readme_file"):
        draft.set_readme(upload_from_path(base_dir / str(data["readme_file"])))


async def run(
    *,
    draft_data: Dict[str, Any],
    base_dir: Path,
    user_id: str,
    agent_id: Optional[str],
    capability_names: List[str],
    select_all: bool,
    config_path: Optional[Path] = None,
    audit_log: Optional[Path] = None,
) -> Dict[str, Any]:
    settings = load_settings(config_path)
    services = build_services(settings)
    mode = WizardMode.EDIT if agent_id else WizardMode.CREATE
    wizard = OnboardingWizard(
        services,
        settings,
        mode=mode,
        agent_id=agent_id,
        user_id=user_id,
        audit_log=audit_log,
    )

    try:
        await wizard.open()
        apply_draft_fields(wizard.draft, draft_data, base_dir)

        by_name = {c.name: c for c in wizard.capabilities}
        for name in capability_names:
            capability = by_name.get(name)
            if capability is None:
                logger.warning("Unknown capability %r; skipped", name)
                continue
            if not wizard.draft.has_capability(capability.capability_id):
                await wizard.toggle_capability(capability.capability_id, capability.name)

        for fields in draft_data.get("manual_deployments") or []:
            index = wizard.add_manual_option(**{k: str(v) for k, v in fields.items()})
            wizard.finish_editing_option(index)

        if select_all:
            wizard.select_all_options()

        deployments = [option_to_payload(o) for o in wizard.collection.selected_options()]
        preview = [{"url": a.url, "kind": a.kind.value} for a in wizard.preview_assets()]
        result = await wizard.submit()
    finally:
        await services.aclose()

    return {
        "mode": mode.value,
        "ok": result.ok,
        "message": result.message,
        "error_kind": result.error.kind.value if result.error else None,
        "deployments": deployments,
        "preview_assets": preview,
    }


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Onboard or edit an agent from a draft file")
    parser.add_argument("--draft-file", required=True, type=Path)
    parser.add_argument("--user-id", required=True)
    parser.add_argument("--agent-id", default=None, help="Edit this stored agent instead of creating one")
    parser.add_argument("--capability", action="append", default=[], help="Capability display name (repeatable)")
    parser.add_argument("--select-all-deployments", action="store_true")
    parser.add_argument("--config", type=Path, default=None)
    parser.add_argument("--audit-log", type=Path, default=None)
    parser.add_argument("--summary-out", type=Path, default=None, help="Also write the summary as JSON")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    summary = asyncio.run(
        run(
            draft_data=_load_yaml(args.draft_file),
            base_dir=args.draft_file.resolve().parent,
            user_id=args.user_id,
            agent_id=args.agent_id,
            capability_names=list(args.capability),
            select_all=args.select_all_deployments,
            config_path=args.config,
            audit_log=args.audit_log,
        )
    )
    sys.stdout.write(yaml.safe_dump(summary, sort_keys=False, allow_unicode=True))
    if args.summary_out is not None:
        write_json_atomic(args.summary_out, summary)
    return 0 if summary["ok"] else 1


if __name__ == "__main__":
    sys.exit(main())
