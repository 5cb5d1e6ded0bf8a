"""
DESCRIPTION
-----------
AgentDraft is the in-progress agent record owned by one wizard instance.
All multi-valued fields are plain lists kept de-duplicated in insertion order;
delimited wire strings only appear in payload.py and hydration.py.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from src.common.text_normalization import unique_in_order


MULTI_VALUE_FIELDS = ("tags", "bundled_agents", "target_personas")


def _local_preview_ref() -> str:
    return f"blob:{uuid.uuid4().hex}"


#note: Descriptor for a file the user attached but that has not been persisted yet.
@dataclass
class UploadedFile:
    name: str
    size: int = 0
    content_type: str = ""
    content: bytes = b""
    preview_ref: str = field(default_factory=_local_preview_ref)

    @property
    def is_video(self) -> bool:
        return self.content_type.startswith("video/")

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")


@dataclass
class AgentDraft:
    # Agent details
    agent_name: str = ""
    description: str = ""
    agent_type: str = ""
    value_proposition: str = ""
    key_features: str = ""
    roi_information: str = ""
    demo_link: str = ""
    tags: List[str] = field(default_factory=list)
    bundled_agents: List[str] = field(default_factory=list)
    target_personas: List[str] = field(default_factory=list)

    # Capabilities: ordered ids plus id -> display name
    capability_ids: List[str] = field(default_factory=list)
    capability_names: Dict[str, str] = field(default_factory=dict)

    # Demo assets
    demo_links: List[str] = field(default_factory=list)
    files: List[UploadedFile] = field(default_factory=list)

    # Documentation
    sdk_details: str = ""
    api_documentation: str = ""
    sample_input: str = ""
    sample_output: str = ""
    security_details: str = ""
    readme_file: Optional[UploadedFile] = None
    related_links: List[str] = field(default_factory=list)

    # -- multi-valued selections ------------------------------------------------

    def set_choices(self, field_name: str, values: List[str]) -> None:
        if field_name not in MULTI_VALUE_FIELDS:
            raise ValueError(f"Not a multi-valued field: {field_name}")
        setattr(self, field_name, unique_in_order(values))

    def add_choice(self, field_name: str, value: str) -> None:
        current = list(getattr(self, field_name))
        current.append(value)
        self.set_choices(field_name, current)

    # -- capabilities -------------------------------------------------------------

    def has_capability(self, capability_id: str) -> bool:
        return capability_id in self.capability_ids

    def add_capability(self, capability_id: str, capability_name: str) -> None:
        if capability_id not in self.capability_ids:
            self.capability_ids.append(capability_id)
        self.capability_names[capability_id] = capability_name

    def remove_capability(self, capability_id: str) -> None:
        self.capability_ids = [c for c in self.capability_ids if c != capability_id]
        self.capability_names.pop(capability_id, None)

    def capability_display_names(self) -> List[str]:
        return [self.capability_names.get(cid) or cid for cid in self.capability_ids]

    # -- ordered link lists -----------------------------------------------------

    def add_demo_link(self, url: str) -> bool:
        url = url.strip()
        if not url:
            return False
        self.demo_links.append(url)
        return True

    def update_demo_link(self, index: int, value: str) -> str:
        """Replace the link at index and return the previous value."""
        old = self.demo_links[index]
        self.demo_links[index] = value
        return old

    def remove_demo_link(self, index: int) -> str:
        return self.demo_links.pop(index)

    def add_related_link(self, url: str) -> bool:
        url = url.strip()
        if not url:
            return False
        self.related_links.append(url)
        return True

    def update_related_link(self, index: int, value: str) -> None:
        self.related_links[index] = value

    def remove_related_link(self, index: int) -> str:
        return self.related_links.pop(index)

    # -- attachments --------------------------------------------------------------

    def add_files(self, files: List[UploadedFile]) -> None:
        self.files.extend(files)

    def remove_file(self, index: int) -> UploadedFile:
        return self.files.pop(index)

    def set_readme(self, readme: Optional[UploadedFile]) -> None:
        self.readme_file = readme
