"""
DESCRIPTION
-----------
OnboardingWizard is the headless multi-step onboarding/edit wizard.

Responsibilities:
- Own one AgentDraft and its deployment-option collection for the wizard's lifetime
- Load reference data (vocabulary, capabilities) and, in edit mode, the stored agent
- Resolve deployment options whenever a capability is activated; sweep on deactivation
- Step navigation with a short transition guard against double advances
- Validate, serialize and submit; classify failures while keeping the draft intact

Front ends (CLI, Streamlit) drive this object; it never renders anything itself.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Union

import httpx

from src.assets.classifier import AssetClassifier, DisplayAsset
from src.common.logger import log_line
from src.common.text_normalization import join_delimited, split_delimited
from src.config.settings import WizardSettings
from src.deployments.collection import DeploymentCollection, OptionGroup
from src.deployments.options import DeploymentOption, ManualOption
from src.deployments.resolver import DeploymentResolver, ResolveReport
from src.directory.agents import AgentService
from src.directory.capabilities import CapabilityDirectory, CapabilityRecord
from src.directory.client import ApiClient
from src.directory.deployments import DeploymentDirectory
from src.directory.errors import ApiError, ResponseParseError
from src.directory.vocabulary import CUSTOM_VALUE_FIELDS, Vocabulary, VocabularyService
from src.validator.draft_validator import ValidationIssue, validate_draft
from src.wizard.draft import MULTI_VALUE_FIELDS, AgentDraft, UploadedFile
from src.wizard.errors import SubmissionError, classify_submission_error
from src.wizard.hydration import hydrate_draft, reconcile_capabilities
from src.wizard.payload import build_submission_payload
from src.wizard.steps import StepAction, StepMachine, WizardMode

logger = logging.getLogger(__name__)

LOGIN_REQUIRED = {
    WizardMode.CREATE: "You must be logged in to onboard an agent",
    WizardMode.EDIT: "You must be logged in to edit an agent",
}
SUBMISSION_IN_PROGRESS = "A submission is already in progress"
HYDRATION_FAILED = "Failed to load agent details"
SUCCESS_MESSAGE = "Agent submitted successfully"


class SuccessNotifier(Protocol):
    def show_success(self, message: str) -> None:
        ...


class LoggingNotifier:
    def show_success(self, message: str) -> None:
        logger.info(message)


@dataclass
class WizardServices:
    client: ApiClient
    capabilities: CapabilityDirectory
    deployments: DeploymentDirectory
    vocabulary: VocabularyService
    agents: AgentService

    async def aclose(self) -> None:
        await self.client.aclose()


def build_services(
    settings: WizardSettings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> WizardServices:
    client = ApiClient(
        settings.api_base_url,
        token=settings.api_token,
        timeout=settings.timeout_seconds,
        transport=transport,
    )
    return WizardServices(
        client=client,
        capabilities=CapabilityDirectory(client, settings.fallback_capabilities),
        deployments=DeploymentDirectory(client),
        vocabulary=VocabularyService(client, Vocabulary.from_tables(settings.fallback_vocabulary)),
        agents=AgentService(client),
    )


@dataclass(frozen=True)
class SubmitResult:
    ok: bool
    errors: List[str] = field(default_factory=list)
    error: Optional[SubmissionError] = None
    response: Any = None

    @property
    def message(self) -> str:
        if self.errors:
            return ". ".join(self.errors)
        if self.error is not None:
            return self.error.message
        return ""


class OnboardingWizard:
    def __init__(
        self,
        services: WizardServices,
        settings: WizardSettings,
        *,
        mode: WizardMode = WizardMode.CREATE,
        agent_id: Optional[str] = None,
        user_id: Optional[str] = None,
        notifier: Optional[SuccessNotifier] = None,
        on_saved: Optional[Callable[[], Union[None, Awaitable[None]]]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        audit_log: Optional[Path] = None,
    ) -> None:
        if mode is WizardMode.EDIT and not agent_id:
            raise ValueError("Edit mode requires an agent_id")

        self.services = services
        self.settings = settings
        self.mode = mode
        self.agent_id = agent_id
        self.user_id = user_id
        self.notifier: SuccessNotifier = notifier or LoggingNotifier()
        self.on_saved = on_saved
        self._sleep = sleep
        self.audit_log = audit_log

        self.steps = StepMachine(
            mode=mode,
            transition_window_seconds=settings.transition_window_seconds,
            clock=clock,
        )
        self.classifier = AssetClassifier.from_settings(settings)

        self.is_open = False
        self.submitting = False
        self.submit_error: Optional[str] = None

        self.vocabulary = Vocabulary()
        self.capabilities: List[CapabilityRecord] = []
        self._reset_draft()

    # -- lifecycle ------------------------------------------------------------------

    def _reset_draft(self) -> None:
        self.draft = AgentDraft()
        self.collection = DeploymentCollection()
        self.resolver = DeploymentResolver(
            self.services.deployments,
            self.collection,
            is_active=lambda cid: self.is_open and self.draft.has_capability(cid),
        )
        self.raw_capabilities: List[Dict[str, Any]] = []
        self.demo_assets: List[Dict[str, Any]] = []
        self.demo_preview = ""
        self.isv_id = ""
        self._hydrated = False

    async def open(self) -> None:
        """Reset state and load reference data (plus the stored agent in edit mode)."""
        self._reset_draft()
        self.steps.reset()
        self.submit_error = None
        self.is_open = True

        loaders = [self._load_vocabulary(), self._load_capabilities()]
        if self.mode is WizardMode.EDIT:
            loaders.append(self._hydrate())
        await asyncio.gather(*loaders)

    def close(self) -> None:
        """Close and discard the draft."""
        self.is_open = False
        self._reset_draft()
        self.steps.reset()

    async def _load_vocabulary(self) -> None:
        self.vocabulary = await self.services.vocabulary.fetch()
        self._reconcile()

    async def _load_capabilities(self) -> None:
        self.capabilities = await self.services.capabilities.fetch()
        self._reconcile()

    async def _hydrate(self) -> None:
        try:
            record = await self.services.agents.fetch_agent(str(self.agent_id))
        except (ApiError, ResponseParseError) as exc:
            logger.error("Loading agent %s failed: %s", self.agent_id, exc)
            self.submit_error = str(exc) or HYDRATION_FAILED
            return

        result = hydrate_draft(record, self.capabilities)
        self.draft = result.draft
        self.raw_capabilities = result.raw_capabilities
        self.demo_assets = result.demo_assets
        self.demo_preview = result.demo_preview
        self.isv_id = result.isv_id
        self.collection.load_existing(result.deployments, select=True)
        self._hydrated = True
        self._reconcile()

    #note: Runs after every reference/hydration load; whichever lands last completes the match.
    def _reconcile(self) -> None:
        if self.mode is not WizardMode.EDIT or not self._hydrated:
            return

        self.vocabulary = self.vocabulary.merge_personas(self.draft.target_personas)

        if not self.raw_capabilities or not self.capabilities:
            return
        ids, names = reconcile_capabilities(self.raw_capabilities, self.capabilities)
        if ids and sorted(ids) != sorted(self.draft.capability_ids):
            self.draft.capability_ids = ids
            self.draft.capability_names = names

    # -- navigation -----------------------------------------------------------------

    @property
    def current_step(self) -> int:
        return self.steps.current

    async def advance(self) -> StepAction:
        if not self.steps.begin_transition():
            return StepAction.IGNORED
        if self.steps.is_last:
            await self.submit()
            return StepAction.SUBMIT
        await self._sleep(self.settings.advance_delay_seconds)
        return self.steps.advance()

    def retreat(self) -> StepAction:
        action = self.steps.retreat()
        if action is StepAction.CLOSE:
            self.close()
        return action

    def jump(self, step: int) -> None:
        self.steps.jump(step)

    # -- vocabulary -----------------------------------------------------------------

    async def save_custom_value(self, field_name: str, value: str) -> None:
        """Apply a free-typed value to the draft and offer it in the shared vocabulary."""
        if field_name not in CUSTOM_VALUE_FIELDS:
            raise ValueError(f"Custom values are not supported for {field_name}")
        value = value.strip()
        if not value:
            return
        if field_name in MULTI_VALUE_FIELDS:
            self.draft.add_choice(field_name, value)
        else:
            setattr(self.draft, field_name, value)
        self.vocabulary = await self.services.vocabulary.save_custom_value(self.vocabulary, field_name, value)

    # -- capabilities and deployment options ----------------------------------------

    async def toggle_capability(self, capability_id: str, capability_name: str) -> Optional[ResolveReport]:
        if self.draft.has_capability(capability_id):
            self.draft.remove_capability(capability_id)
            self.resolver.deactivate(capability_id)
            return None
        self.draft.add_capability(capability_id, capability_name)
        return await self.resolver.resolve(capability_id, capability_name)

    def is_loading_deployments(self, capability_id: Optional[str] = None) -> bool:
        if capability_id is None:
            return self.resolver.any_loading
        return self.resolver.is_loading(capability_id)

    def deployment_groups(self) -> List[OptionGroup]:
        return self.collection.grouped()

    def add_manual_option(self, **fields: str) -> int:
        index = self.collection.add_manual(ManualOption())
        if fields:
            self.collection.update_manual(index, **fields)
        return index

    def update_manual_option(self, index: int, **fields: str) -> ManualOption:
        return self.collection.update_manual(index, **fields)

    def finish_editing_option(self, index: int) -> None:
        self.collection.finish_editing(index)

    def start_editing_option(self, index: int) -> None:
        self.collection.start_editing(index)

    def remove_option(self, index: int) -> DeploymentOption:
        return self.collection.remove_at(index)

    def toggle_option(self, index: int) -> bool:
        return self.collection.toggle(index)

    def select_all_options(self) -> None:
        self.collection.select_all()

    # -- demo assets ----------------------------------------------------------------

    def add_demo_link(self, url: str) -> bool:
        return self.draft.add_demo_link(url)

    def update_demo_link(self, index: int, value: str) -> None:
        old = self.draft.update_demo_link(index, value)
        if self.mode is WizardMode.EDIT and old and not value.strip():
            self._prune_asset(old)

    def remove_demo_link(self, index: int) -> str:
        old = self.draft.remove_demo_link(index)
        if self.mode is WizardMode.EDIT and old:
            self._prune_asset(old)
        return old

    def _prune_asset(self, url: str) -> None:
        self.demo_assets = [
            a for a in self.demo_assets
            if (a.get("demo_link") or a.get("demo_asset_link") or a.get("asset_url") or "") != url
        ]
        self.demo_preview = join_delimited(
            (u for u in split_delimited(self.demo_preview) if u != url), ","
        )

    def add_files(self, files: List[UploadedFile]) -> None:
        self.draft.add_files(files)

    def remove_file(self, index: int) -> UploadedFile:
        return self.draft.remove_file(index)

    def preview_assets(self) -> List[DisplayAsset]:
        return self.classifier.classify(self.demo_assets, self.demo_preview, uploads=self.draft.files)

    # -- submission -----------------------------------------------------------------

    def validate(self) -> List[ValidationIssue]:
        return validate_draft(
            self.draft,
            required_fields=self.settings.required_fields,
            url_fields=self.settings.url_fields,
        )

    async def submit(self) -> SubmitResult:
        if self.submitting:
            return SubmitResult(ok=False, errors=[SUBMISSION_IN_PROGRESS])

        if not self.user_id:
            self.submit_error = LOGIN_REQUIRED[self.mode]
            return SubmitResult(ok=False, errors=[self.submit_error])

        issues = self.validate()
        if issues:
            messages = [issue.message for issue in issues]
            self.submit_error = ". ".join(messages)
            return SubmitResult(ok=False, errors=messages)

        self.submitting = True
        self.submit_error = None
        try:
            isv_id = (self.isv_id or self.user_id) if self.mode is WizardMode.EDIT else self.user_id
            payload = build_submission_payload(self.draft, self.collection, isv_id=isv_id)
            self._audit(f"submit mode={self.mode.value} agent={payload.fields['agent_name']!r}")
            if self.mode is WizardMode.EDIT:
                response = await self.services.agents.update(str(self.agent_id), payload.fields, payload.files)
            else:
                response = await self.services.agents.create(payload.fields, payload.files)
        except ApiError as exc:
            error = classify_submission_error(exc)
            logger.error("Agent submission failed (%s): %s", error.kind.value, exc)
            self._audit(f"submit failed kind={error.kind.value} status={error.status}")
            self.submit_error = error.message
            return SubmitResult(ok=False, error=error)
        finally:
            self.submitting = False

        self._audit("submit ok")
        self.close()
        if self.mode is WizardMode.EDIT:
            if self.on_saved is not None:
                outcome = self.on_saved()
                if asyncio.iscoroutine(outcome):
                    await outcome
        else:
            self.notifier.show_success(SUCCESS_MESSAGE)
        return SubmitResult(ok=True, response=response)

    def _audit(self, msg: str) -> None:
        if self.audit_log is not None:
            log_line(self.audit_log, msg)
