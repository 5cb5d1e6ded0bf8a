"""
DESCRIPTION
-----------
Wire shape of an agent submission. This is the only place (with hydration.py)
where draft collections become delimited strings.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Dict, List

from src.common.text_normalization import join_delimited
from src.deployments.collection import DeploymentCollection
from src.deployments.options import option_to_payload
from src.directory.client import FilePart
from src.wizard.draft import AgentDraft, UploadedFile


TAG_SEP = ","
PERSONA_SEP = "; "
CAPABILITY_NAME_SEP = ", "
CAPABILITY_ID_SEP = ","
DEMO_LINK_SEP = ","
RELATED_LINK_SEP = ", "


@dataclass
class SubmissionPayload:
    fields: Dict[str, str]
    files: List[FilePart] = field(default_factory=list)


def _file_part(name: str, upload: UploadedFile) -> FilePart:
    return (name, (upload.name, upload.content, upload.content_type or "application/octet-stream"))


def serialize_deployments(collection: DeploymentCollection) -> str:
    selected = [option_to_payload(option) for option in collection.selected_options()]
    return json.dumps(selected) if selected else "[]"


def build_submission_payload(
    draft: AgentDraft,
    collection: DeploymentCollection,
    *,
    isv_id: str,
) -> SubmissionPayload:
    """Serialize the draft plus only the selected deployment options."""
    fields = {
        "agent_name": draft.agent_name,
        "asset_type": draft.agent_type,
        "description": draft.description,
        "by_value": draft.value_proposition,
        "by_persona": join_delimited(draft.target_personas, PERSONA_SEP),
        "features": draft.key_features,
        "tags": join_delimited(draft.tags, TAG_SEP),
        "roi": draft.roi_information,
        "demo_link": draft.demo_link,
        "capabilities": join_delimited(draft.capability_display_names(), CAPABILITY_NAME_SEP),
        "capability_ids": join_delimited(draft.capability_ids, CAPABILITY_ID_SEP),
        "demo_assets": join_delimited(draft.demo_links, DEMO_LINK_SEP),
        "sdk_details": draft.sdk_details,
        "swagger_details": draft.api_documentation,
        "sample_input": draft.sample_input,
        "sample_output": draft.sample_output,
        "security_details": draft.security_details,
        "related_files": join_delimited(draft.related_links, RELATED_LINK_SEP),
        "deployments": serialize_deployments(collection),
        "isv_id": isv_id,
    }

    files = [_file_part("demo_files", upload) for upload in draft.files]
    if draft.readme_file is not None:
        files.append(_file_part("readme_file", draft.readme_file))

    return SubmissionPayload(fields=fields, files=files)
