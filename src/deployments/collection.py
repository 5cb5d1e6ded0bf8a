"""
DESCRIPTION
-----------
DeploymentCollection is the accumulated, ordered list of deployment options for one
draft, together with the selection set ("include in submission") and the set of
manual options currently open for editing.

Invariants:
- No two fetched options share a dedup key.
- Selection and editing positions always index into the current list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from src.deployments.deduper import dedupe_options
from src.deployments.options import DeploymentOption, FetchedOption, ManualOption
from src.deployments.selection import SelectionIndexSet

logger = logging.getLogger(__name__)

MANUAL_GROUP_KEY = "manual"
MANUAL_GROUP_NAME = "Manual Options"


@dataclass(frozen=True)
class MergeReport:
    added: int
    skipped: int


@dataclass
class OptionGroup:
    key: str
    name: str
    capability_id: str = ""
    items: List[Tuple[int, DeploymentOption]] = field(default_factory=list)


class DeploymentCollection:
    def __init__(self) -> None:
        self._options: List[DeploymentOption] = []
        self.selection = SelectionIndexSet()
        self.editing = SelectionIndexSet()

    def __len__(self) -> int:
        return len(self._options)

    def __iter__(self) -> Iterator[DeploymentOption]:
        return iter(list(self._options))

    def __getitem__(self, index: int) -> DeploymentOption:
        return self._options[index]

    @property
    def options(self) -> List[DeploymentOption]:
        return list(self._options)

    #note: Read-merge-append against the current list; callers never merge from a stale copy.
    def merge_fetched(self, candidates: Iterable[FetchedOption]) -> MergeReport:
        candidates = list(candidates)
        novel = dedupe_options(self._options, candidates)
        self._options.extend(novel)
        report = MergeReport(added=len(novel), skipped=len(candidates) - len(novel))
        logger.debug("Merged deployment options: added=%d skipped=%d", report.added, report.skipped)
        return report

    def load_existing(self, options: Iterable[FetchedOption], *, select: bool = True) -> MergeReport:
        """Seed the collection from a stored agent record; everything is selected by default."""
        start = len(self._options)
        report = self.merge_fetched(options)
        if select:
            self.selection.select_all(range(start, len(self._options)))
        return report

    def add_manual(self, option: Optional[ManualOption] = None) -> int:
        """Append a manual option, auto-select it and open it for editing."""
        index = len(self._options)
        self._options.append(option or ManualOption())
        self.selection.select(index)
        self.editing.select(index)
        return index

    def update_manual(self, index: int, **fields: str) -> ManualOption:
        option = self._options[index]
        if not isinstance(option, ManualOption):
            raise TypeError(f"Option at position {index} is not a manual option")
        updated = option.with_updates(**fields)
        self._options[index] = updated
        return updated

    def start_editing(self, index: int) -> None:
        if not isinstance(self._options[index], ManualOption):
            raise TypeError(f"Option at position {index} is not a manual option")
        self.editing.select(index)

    def finish_editing(self, index: int) -> None:
        self.editing.deselect(index)

    def toggle(self, index: int) -> bool:
        self._check_index(index)
        return self.selection.toggle(index)

    def select_all(self) -> None:
        self.selection.select_all(range(len(self._options)))

    def remove_at(self, index: int) -> DeploymentOption:
        self._check_index(index)
        removed = self._options.pop(index)
        self.selection.adjust_for_removal(index)
        self.editing.adjust_for_removal(index)
        return removed

    def sweep_capability(self, capability_id: str) -> List[DeploymentOption]:
        """Remove every option owned by capability_id, whatever its origin."""
        positions = [
            i for i, option in enumerate(self._options) if self._owned_by(option, capability_id)
        ]
        removed = [self._options[i] for i in positions]
        for i in reversed(positions):
            del self._options[i]
        self.selection.adjust_for_removals(positions)
        self.editing.adjust_for_removals(positions)
        if removed:
            logger.info("Swept %d deployment option(s) for capability %s", len(removed), capability_id)
        return removed

    def selected_options(self) -> List[DeploymentOption]:
        return [option for i, option in enumerate(self._options) if i in self.selection]

    def grouped(self) -> List[OptionGroup]:
        """Display groups: manual options first, then one group per capability in first-seen order."""
        groups: Dict[str, OptionGroup] = {}
        for index, option in enumerate(self._options):
            if isinstance(option, ManualOption):
                key, name = MANUAL_GROUP_KEY, MANUAL_GROUP_NAME
            else:
                key = option.capability_id or option.capability_name or "other"
                name = option.capability_name or "Other"
            group = groups.get(key)
            if group is None:
                group = OptionGroup(key=key, name=name, capability_id=option.capability_id)
                groups[key] = group
            group.items.append((index, option))

        ordered = list(groups.values())
        ordered.sort(key=lambda g: 0 if g.key == MANUAL_GROUP_KEY else 1)
        return ordered

    @staticmethod
    def _owned_by(option: DeploymentOption, capability_id: str) -> bool:
        if isinstance(option, (FetchedOption, ManualOption)):
            return bool(capability_id) and option.capability_id == capability_id
        raise TypeError(f"Unsupported deployment option: {type(option).__name__}")

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._options):
            raise IndexError(f"Deployment option position out of range: {index}")
