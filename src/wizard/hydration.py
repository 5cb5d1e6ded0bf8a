"""
DESCRIPTION
-----------
Edit-mode hydration: turn a stored AgentRecord back into an AgentDraft.

Capabilities are matched to the capability reference list by display name, since
the record service and the capability directory do not share ids. When a name has
no match, the record's own id is used (by_capability_id, capability_id, serial_id).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple

from src.common.text_normalization import split_delimited, split_features, unique_in_order
from src.deployments.options import FetchedOption, option_from_record
from src.directory.agents import AgentRecord
from src.directory.capabilities import CapabilityRecord
from src.wizard.draft import AgentDraft
from src.wizard.payload import PERSONA_SEP, RELATED_LINK_SEP, TAG_SEP

logger = logging.getLogger(__name__)

FEATURE_JOIN = "; "


@dataclass
class HydrationResult:
    draft: AgentDraft
    raw_capabilities: List[Dict[str, Any]] = field(default_factory=list)
    deployments: List[FetchedOption] = field(default_factory=list)
    demo_assets: List[Dict[str, Any]] = field(default_factory=list)
    demo_preview: str = ""
    isv_id: str = ""


def reconcile_capabilities(
    raw_capabilities: Sequence[Dict[str, Any]],
    reference: Sequence[CapabilityRecord],
) -> Tuple[List[str], Dict[str, str]]:
    """Map stored capabilities to reference ids by display name; returns (ids, id -> name)."""
    by_name = {c.name: c.capability_id for c in reference}
    ids: List[str] = []
    names: Dict[str, str] = {}

    for cap in raw_capabilities:
        name = str(cap.get("by_capability") or cap.get("capability_name") or "").strip()
        if not name:
            continue
        cid = by_name.get(name) or ""
        if not cid:
            cid = str(cap.get("by_capability_id") or cap.get("capability_id") or cap.get("serial_id") or "")
        if not cid:
            logger.warning("Stored capability %r has no usable id; dropped", name)
            continue
        if cid not in names:
            ids.append(cid)
        names[cid] = name

    return ids, names


def _demo_links(demo_assets: Sequence[Dict[str, Any]]) -> List[str]:
    links = [
        str(a.get("demo_link") or a.get("demo_asset_link") or a.get("asset_url") or "")
        for a in demo_assets
    ]
    return [link for link in links if link]


def hydrate_draft(record: AgentRecord, reference: Sequence[CapabilityRecord] = ()) -> HydrationResult:
    agent = record.agent
    docs = record.documentation

    demo_assets = record.demo_assets or list(agent.get("demo_assets") or [])
    demo_link = str(
        agent.get("demo_link")
        or agent.get("application_demo_url")
        or record.raw.get("demo_link")
        or record.raw.get("application_demo_url")
        or ""
    )
    related = docs.get("related_files")
    related_links = split_delimited(related, RELATED_LINK_SEP.strip()) if isinstance(related, str) else []

    capability_ids, capability_names = reconcile_capabilities(record.capabilities, reference)

    draft = AgentDraft(
        agent_name=str(agent.get("agent_name") or ""),
        description=str(agent.get("description") or ""),
        agent_type=str(agent.get("asset_type") or ""),
        value_proposition=str(agent.get("by_value") or ""),
        key_features=FEATURE_JOIN.join(split_features(agent.get("features"))),
        roi_information=str(agent.get("roi") or ""),
        demo_link=demo_link,
        tags=unique_in_order(split_delimited(agent.get("tags"), TAG_SEP)),
        target_personas=unique_in_order(split_delimited(agent.get("by_persona"), PERSONA_SEP.strip())),
        capability_ids=capability_ids,
        capability_names=capability_names,
        demo_links=_demo_links(demo_assets),
        sdk_details=str(docs.get("sdk_details") or ""),
        api_documentation=str(docs.get("swagger_details") or ""),
        sample_input=str(docs.get("sample_input") or ""),
        sample_output=str(docs.get("sample_output") or ""),
        security_details=str(docs.get("security_details") or ""),
        related_links=related_links,
    )

    return HydrationResult(
        draft=draft,
        raw_capabilities=list(record.capabilities),
        deployments=[option_from_record(d) for d in record.deployments],
        demo_assets=list(demo_assets),
        demo_preview=record.demo_preview,
        isv_id=str(agent.get("isv_id") or ""),
    )
