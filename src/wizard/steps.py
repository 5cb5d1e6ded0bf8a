"""
DESCRIPTION
-----------
StepMachine tracks which wizard step is visible.

Create mode: Agent Details, Capabilities, Demo Assets, Documentation, Preview & Submit.
Edit mode drops the preview step and submits when Documentation is completed.

The transition flag only guards against duplicate rapid advances; it never blocks
retreat or jump.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Tuple


class WizardMode(str, Enum):
    CREATE = "create"
    EDIT = "edit"


CREATE_STEPS: Tuple[str, ...] = (
    "Agent Details",
    "Capabilities",
    "Demo Assets",
    "Documentation",
    "Preview & Submit",
)
EDIT_STEPS: Tuple[str, ...] = CREATE_STEPS[:4]


class StepAction(str, Enum):
    ADVANCED = "advanced"
    SUBMIT = "submit"
    IGNORED = "ignored"
    RETREATED = "retreated"
    CLOSE = "close"
    DISABLED = "disabled"


@dataclass
class StepMachine:
    mode: WizardMode = WizardMode.CREATE
    transition_window_seconds: float = 0.3
    clock: Callable[[], float] = time.monotonic
    current: int = 1
    _transition_until: float = field(default=0.0, repr=False)

    @property
    def titles(self) -> Tuple[str, ...]:
        return EDIT_STEPS if self.mode is WizardMode.EDIT else CREATE_STEPS

    @property
    def total(self) -> int:
        return len(self.titles)

    @property
    def title(self) -> str:
        return self.titles[self.current - 1]

    @property
    def is_last(self) -> bool:
        return self.current == self.total

    @property
    def in_transition(self) -> bool:
        return self.clock() < self._transition_until

    def begin_transition(self) -> bool:
        """Raise the transition flag; False when one is already running."""
        if self.in_transition:
            return False
        self._transition_until = self.clock() + self.transition_window_seconds
        return True

    def advance(self) -> StepAction:
        if self.is_last:
            return StepAction.SUBMIT
        self.current += 1
        return StepAction.ADVANCED

    def retreat(self) -> StepAction:
        if self.current > 1:
            self.current -= 1
            return StepAction.RETREATED
        if self.mode is WizardMode.CREATE:
            return StepAction.CLOSE
        return StepAction.DISABLED

    def can_retreat(self) -> bool:
        return self.current > 1 or self.mode is WizardMode.CREATE

    def jump(self, step: int) -> None:
        if step < 1 or step > self.current:
            raise ValueError(f"Cannot jump to step {step} from step {self.current}")
        self.current = step

    def reset(self) -> None:
        self.current = 1
        self._transition_until = 0.0
