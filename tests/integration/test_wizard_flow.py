from __future__ import annotations

import asyncio
import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qsl

import httpx
import pytest

from src.config.settings import default_config_path, load_settings
from src.deployments.options import ManualOption
from src.wizard.draft import UploadedFile
from src.wizard.errors import SubmissionErrorKind
from src.wizard.steps import StepAction, WizardMode
from src.wizard.wizard import SUBMISSION_IN_PROGRESS, OnboardingWizard, build_services

BASE = "https://store.example.com"
BUCKET = "https://agentsstore.s3.us-east-1.amazonaws.com"


def form_fields(request: httpx.Request) -> Dict[str, str]:
    body = request.content
    if request.headers.get("content-type", "").startswith("application/x-www-form-urlencoded"):
        return dict(parse_qsl(body.decode(), keep_blank_values=True))
    return {
        m.group(1).decode(): m.group(2).decode()
        for m in re.finditer(rb'name="([^"]+)"\r\n\r\n(.*?)\r\n--', body, re.DOTALL)
    }


class FakeAgentStore:
    """In-memory agent store API behind httpx.MockTransport."""

    def __init__(self) -> None:
        self.capabilities: Any = {
            "capabilities": [
                {"by_capability_id": "capa_002", "by_capability": "Speech"},
                {"by_capability_id": "capa_003", "by_capability": "Vision"},
            ]
        }
        self.deployments: Dict[str, List[Dict[str, str]]] = {
            "capa_002": [
                {"service_provider": "AWS", "service_name": "Transcribe", "deployment": "SaaS", "cloud_region": "us-east-1"},
                {"service_provider": "GCP", "service_name": "Speech-to-Text", "deployment": "SaaS", "cloud_region": ""},
            ],
            "capa_003": [
                {"service_provider": "Azure", "service_name": "Vision", "deployment": "PaaS", "cloud_region": "westeurope"},
            ],
        }
        self.vocabulary: Dict[str, Any] = {
            "agent_types": ["Agent", "Solution"],
            "value_propositions": ["Productivity"],
            "tags": ["AI/ML", "Cloud"],
            "target_personas": ["Developer"],
        }
        self.agent: Dict[str, Any] = {}
        self.submit_status = 200
        self.submit_body: Dict[str, Any] = {"agent_id": "new-1"}
        self.gate: Optional[asyncio.Event] = None
        self.capabilities_gate: Optional[asyncio.Event] = None
        self.agent_gate: Optional[asyncio.Event] = None
        self.submissions: List[httpx.Request] = []

    async def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.method == "GET" and path == "/api/capabilities":
            if self.capabilities_gate is not None:
                await self.capabilities_gate.wait()
            if self.capabilities is None:
                return httpx.Response(503, json={"message": "maintenance"})
            return httpx.Response(200, json=self.capabilities)
        if request.method == "GET" and path.startswith("/api/capabilities/"):
            cid = path.split("/")[3]
            return httpx.Response(200, json={"capability_id": cid, "options": self.deployments.get(cid, [])})
        if path == "/api/agent-onboarding-filters":
            return httpx.Response(200, json=self.vocabulary)
        if request.method == "GET" and path.startswith("/api/agents/"):
            if self.agent_gate is not None:
                await self.agent_gate.wait()
            return httpx.Response(200, json=self.agent)
        if (request.method, path) in (("POST", "/api/agent/onboard"), ("PUT", "/api/agents/a-7")):
            self.submissions.append(request)
            if self.gate is not None:
                await self.gate.wait()
            return httpx.Response(self.submit_status, json=self.submit_body)
        return httpx.Response(404, json={"detail": f"no route {request.method} {path}"})


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: List[str] = []

    def show_success(self, message: str) -> None:
        self.messages.append(message)


def make_wizard(store: FakeAgentStore, clock: FakeClock, **kwargs: Any) -> OnboardingWizard:
    settings = load_settings(default_config_path(), env={"AGENT_STORE_API_BASE_URL": BASE})
    services = build_services(settings, transport=httpx.MockTransport(store.handler))

    async def sleep(seconds: float) -> None:
        clock.now += seconds

    return OnboardingWizard(services, settings, sleep=sleep, clock=clock, **kwargs)


async def advance(wizard: OnboardingWizard, clock: FakeClock) -> StepAction:
    clock.now += 1.0
    return await wizard.advance()


def fill_required(wizard: OnboardingWizard) -> None:
    draft = wizard.draft
    draft.agent_name = "Meeting Scribe"
    draft.description = "Transcribes meetings"
    draft.agent_type = "Agent"
    draft.value_proposition = "Productivity"
    draft.demo_link = "https://demo.example.com"
    draft.set_choices("tags", ["AI/ML", "Cloud"])
    draft.set_choices("target_personas", ["Developer"])


@pytest.mark.asyncio
async def test_create_flow_submits_selected_deployments(tmp_path: Path) -> None:
    store = FakeAgentStore()
    clock = FakeClock()
    notifier = RecordingNotifier()
    wizard = make_wizard(store, clock, user_id="user-1", notifier=notifier, audit_log=tmp_path / "audit.log")

    await wizard.open()
    assert [c.name for c in wizard.capabilities] == ["Speech", "Vision"]
    assert wizard.vocabulary.tags == ("AI/ML", "Cloud")

    fill_required(wizard)
    assert await advance(wizard, clock) is StepAction.ADVANCED

    report = await wizard.toggle_capability("capa_002", "Speech")
    assert report is not None and report.added == 2
    await wizard.toggle_capability("capa_003", "Vision")
    assert len(wizard.collection.selection) == 0
    wizard.toggle_option(1)
    manual = wizard.add_manual_option(service_provider="OnPrem", service_name="Whisper", deployment_type="Self-hosted")
    wizard.finish_editing_option(manual)

    wizard.add_files([UploadedFile(name="demo.mp4", content_type="video/mp4", content=b"MP4")])
    assert await advance(wizard, clock) is StepAction.ADVANCED
    assert await advance(wizard, clock) is StepAction.ADVANCED
    assert await advance(wizard, clock) is StepAction.ADVANCED
    assert wizard.steps.title == "Preview & Submit"
    assert await advance(wizard, clock) is StepAction.SUBMIT

    assert len(store.submissions) == 1
    fields = form_fields(store.submissions[0])
    assert fields["tags"] == "AI/ML,Cloud"
    assert fields["by_persona"] == "Developer"
    assert fields["capabilities"] == "Speech, Vision"
    assert fields["capability_ids"] == "capa_002,capa_003"
    assert fields["isv_id"] == "user-1"
    deployments = json.loads(fields["deployments"])
    assert [(d["serviceProvider"], d["isManual"]) for d in deployments] == [("GCP", False), ("OnPrem", True)]
    assert b'filename="demo.mp4"' in store.submissions[0].content

    assert notifier.messages == ["Agent submitted successfully"]
    assert wizard.is_open is False
    assert wizard.draft.agent_name == ""
    assert "submit ok" in (tmp_path / "audit.log").read_text(encoding="utf-8")
    await wizard.services.aclose()


@pytest.mark.asyncio
async def test_rapid_duplicate_advance_is_ignored() -> None:
    clock = FakeClock()
    wizard = make_wizard(FakeAgentStore(), clock, user_id="u")
    await wizard.open()

    assert await wizard.advance() is StepAction.ADVANCED
    assert await wizard.advance() is StepAction.IGNORED
    assert wizard.current_step == 2
    clock.now += 1.0
    assert await wizard.advance() is StepAction.ADVANCED
    await wizard.services.aclose()


@pytest.mark.asyncio
async def test_deactivating_a_capability_sweeps_its_options() -> None:
    clock = FakeClock()
    wizard = make_wizard(FakeAgentStore(), clock, user_id="u")
    await wizard.open()

    await wizard.toggle_capability("capa_002", "Speech")
    await wizard.toggle_capability("capa_003", "Vision")
    wizard.select_all_options()
    assert await wizard.toggle_capability("capa_002", "Speech") is None

    assert [o.service_provider for o in wizard.collection] == ["Azure"]
    assert wizard.collection.selection == {0}
    assert wizard.draft.capability_ids == ["capa_003"]
    await wizard.services.aclose()


@pytest.mark.asyncio
async def test_submission_without_user_is_blocked() -> None:
    store = FakeAgentStore()
    wizard = make_wizard(store, FakeClock(), user_id=None)
    await wizard.open()
    fill_required(wizard)

    result = await wizard.submit()

    assert result.ok is False
    assert result.message == "You must be logged in to onboard an agent"
    assert store.submissions == []
    await wizard.services.aclose()


@pytest.mark.asyncio
async def test_validation_errors_are_collected_and_block_submission() -> None:
    store = FakeAgentStore()
    wizard = make_wizard(store, FakeClock(), user_id="u")
    await wizard.open()

    result = await wizard.submit()

    assert result.ok is False
    assert "Agent name is required" in result.errors
    assert "At least one core capability is required" in result.errors
    assert wizard.submit_error == ". ".join(result.errors)
    assert store.submissions == []
    await wizard.services.aclose()


@pytest.mark.asyncio
async def test_server_rejection_keeps_the_draft_and_uses_server_detail() -> None:
    store = FakeAgentStore()
    store.submit_status = 422
    store.submit_body = {"detail": "agent_name already exists"}
    wizard = make_wizard(store, FakeClock(), user_id="u")
    await wizard.open()
    fill_required(wizard)
    await wizard.toggle_capability("capa_003", "Vision")

    result = await wizard.submit()

    assert result.ok is False
    assert result.error is not None
    assert result.error.kind is SubmissionErrorKind.MALFORMED_REQUEST
    assert result.message == "agent_name already exists"
    assert wizard.is_open is True
    assert wizard.draft.agent_name == "Meeting Scribe"
    assert wizard.submitting is False
    await wizard.services.aclose()


@pytest.mark.asyncio
async def test_reentrant_submit_is_rejected() -> None:
    store = FakeAgentStore()
    store.gate = asyncio.Event()
    wizard = make_wizard(store, FakeClock(), user_id="u")
    await wizard.open()
    fill_required(wizard)
    await wizard.toggle_capability("capa_003", "Vision")

    first = asyncio.create_task(wizard.submit())
    for _ in range(100):
        if store.submissions:
            break
        await asyncio.sleep(0)
    second = await wizard.submit()
    store.gate.set()
    result = await first

    assert second.errors == [SUBMISSION_IN_PROGRESS]
    assert result.ok is True
    assert len(store.submissions) == 1
    await wizard.services.aclose()


@pytest.mark.asyncio
async def test_capability_outage_uses_the_configured_fallback_table() -> None:
    store = FakeAgentStore()
    store.capabilities = None
    wizard = make_wizard(store, FakeClock(), user_id="u")

    await wizard.open()

    assert len(wizard.capabilities) == 10
    assert {c.capability_id for c in wizard.capabilities} >= {"capa_001", "capa_010"}
    await wizard.services.aclose()


@pytest.mark.asyncio
async def test_cancel_on_first_create_step_discards_the_draft() -> None:
    wizard = make_wizard(FakeAgentStore(), FakeClock(), user_id="u")
    await wizard.open()
    wizard.draft.agent_name = "Draft"

    assert wizard.retreat() is StepAction.CLOSE
    assert wizard.is_open is False
    assert wizard.draft.agent_name == ""
    await wizard.services.aclose()


def _stored_agent() -> Dict[str, Any]:
    return {
        "agent": {
            "agent_id": "a-7",
            "agent_name": "Invoice Reader",
            "description": "Reads invoices",
            "asset_type": "Solution",
            "by_value": "Productivity",
            "tags": "AI/ML",
            "by_persona": "Developer; Finance Lead",
            "features": "OCR\nExport",
            "demo_link": "https://demo.example.com/reader",
            "demo_preview": f"{BUCKET}/reader/shot.png,https://cdn.example.com/extra.png",
            "isv_id": "isv-42",
        },
        "capabilities": [{"by_capability": "Vision", "by_capability_id": "legacy-vision"}],
        "deployments": [
            {
                "service_provider": "Azure",
                "service_name": "Vision",
                "deployment": "PaaS",
                "cloud_region": "westeurope",
                "by_capability": "Vision",
                "capability_id": "capa_003",
            }
        ],
        "documentation": [{"swagger_details": "https://api.example.com/docs"}],
        "demo_assets": [
            {"demo_asset_name": "shot", "demo_link": f"{BUCKET}/reader/shot.png"},
            {"demo_asset_name": "walkthrough", "asset_url": f"{BUCKET}/reader/walkthrough.mp4"},
        ],
    }


@pytest.mark.asyncio
async def test_edit_flow_hydrates_reconciles_and_updates() -> None:
    store = FakeAgentStore()
    store.agent = _stored_agent()
    clock = FakeClock()
    saved: List[bool] = []
    wizard = make_wizard(
        store,
        clock,
        mode=WizardMode.EDIT,
        agent_id="a-7",
        user_id="editor-1",
        on_saved=lambda: saved.append(True),
    )

    await wizard.open()

    draft = wizard.draft
    assert wizard.steps.total == 4
    assert draft.capability_ids == ["capa_003"]
    assert draft.capability_names == {"capa_003": "Vision"}
    assert draft.target_personas == ["Developer", "Finance Lead"]
    assert draft.key_features == "OCR; Export"
    assert "Finance Lead" in wizard.vocabulary.target_personas
    assert wizard.collection.selection == {0}

    preview = wizard.preview_assets()
    assert [a.kind.value for a in preview] == ["video", "image", "image"]

    shot = draft.demo_links.index(f"{BUCKET}/reader/shot.png")
    wizard.remove_demo_link(shot)
    assert len(wizard.preview_assets()) == 2
    assert "shot.png" not in wizard.demo_preview

    # re-activation fetches the capability options again after the sweep
    await wizard.toggle_capability("capa_003", "Vision")
    assert len(wizard.collection) == 0
    await wizard.toggle_capability("capa_003", "Vision")
    assert [o.service_provider for o in wizard.collection] == ["Azure"]
    wizard.select_all_options()

    assert wizard.retreat() is StepAction.DISABLED
    for _ in range(3):
        assert await advance(wizard, clock) is StepAction.ADVANCED
    assert await advance(wizard, clock) is StepAction.SUBMIT

    fields = form_fields(store.submissions[0])
    assert store.submissions[0].method == "PUT"
    assert fields["isv_id"] == "isv-42"
    assert fields["by_persona"] == "Developer; Finance Lead"
    assert fields["demo_assets"] == f"{BUCKET}/reader/walkthrough.mp4"
    assert saved == [True]
    assert wizard.is_open is False
    await wizard.services.aclose()


async def _until(condition: Any) -> None:
    for _ in range(1000):
        if condition():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


@pytest.mark.asyncio
async def test_capabilities_arriving_after_hydration_remap_the_draft() -> None:
    store = FakeAgentStore()
    store.agent = _stored_agent()
    store.capabilities_gate = asyncio.Event()
    wizard = make_wizard(store, FakeClock(), mode=WizardMode.EDIT, agent_id="a-7", user_id="editor-1")

    opening = asyncio.create_task(wizard.open())
    await _until(lambda: wizard.draft.agent_name == "Invoice Reader")

    assert wizard.capabilities == []
    assert wizard.draft.capability_ids == ["legacy-vision"]

    store.capabilities_gate.set()
    await opening

    assert wizard.draft.capability_ids == ["capa_003"]
    assert wizard.draft.capability_names == {"capa_003": "Vision"}
    await wizard.services.aclose()


@pytest.mark.asyncio
async def test_hydration_arriving_after_capabilities_is_reconciled() -> None:
    store = FakeAgentStore()
    store.agent = _stored_agent()
    store.agent_gate = asyncio.Event()
    wizard = make_wizard(store, FakeClock(), mode=WizardMode.EDIT, agent_id="a-7", user_id="editor-1")

    opening = asyncio.create_task(wizard.open())
    await _until(lambda: len(wizard.capabilities) == 2)

    assert wizard.draft.capability_ids == []

    store.agent_gate.set()
    await opening

    assert wizard.draft.capability_ids == ["capa_003"]
    assert "Finance Lead" in wizard.vocabulary.target_personas
    await wizard.services.aclose()


@pytest.mark.asyncio
async def test_edit_mode_requires_login_message() -> None:
    store = FakeAgentStore()
    store.agent = _stored_agent()
    wizard = make_wizard(store, FakeClock(), mode=WizardMode.EDIT, agent_id="a-7", user_id="")
    await wizard.open()

    result = await wizard.submit()

    assert result.message == "You must be logged in to edit an agent"
    await wizard.services.aclose()


@pytest.mark.asyncio
async def test_custom_values_land_on_the_draft_without_breaking_lists() -> None:
    store = FakeAgentStore()
    wizard = make_wizard(store, FakeClock(), user_id="u")
    await wizard.open()
    fill_required(wizard)

    await wizard.save_custom_value("tags", " Edge ")
    await wizard.save_custom_value("agent_type", "Copilot")
    for field_name in ("target_personas", "agent_name"):
        with pytest.raises(ValueError):
            await wizard.save_custom_value(field_name, "Developer")

    assert wizard.draft.tags == ["AI/ML", "Cloud", "Edge"]
    assert wizard.draft.agent_type == "Copilot"
    assert wizard.draft.target_personas == ["Developer"]
    assert wizard.draft.agent_name == "Meeting Scribe"

    await wizard.toggle_capability("capa_003", "Vision")
    result = await wizard.submit()

    assert result.ok is True
    fields = form_fields(store.submissions[0])
    assert fields["by_persona"] == "Developer"
    assert fields["tags"] == "AI/ML,Cloud,Edge"
    await wizard.services.aclose()


@pytest.mark.asyncio
async def test_manual_option_for_a_capability_is_swept_with_it() -> None:
    wizard = make_wizard(FakeAgentStore(), FakeClock(), user_id="u")
    await wizard.open()
    await wizard.toggle_capability("capa_002", "Speech")
    wizard.collection.add_manual(ManualOption("Own", "svc", "VM", "", "capa_002", "Speech"))
    free = wizard.add_manual_option(service_provider="Own", service_name="other", deployment_type="VM")

    await wizard.toggle_capability("capa_002", "Speech")

    assert wizard.collection.options == [ManualOption("Own", "other", "VM")]
    assert wizard.collection.selection == {0}
    assert wizard.collection.editing == {0}
    assert free == 3
    await wizard.services.aclose()
