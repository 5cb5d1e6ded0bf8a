from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any, Coroutine, List, Optional

import streamlit as st

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from src.config.settings import load_settings  # noqa: E402
from src.deployments.options import FetchedOption, ManualOption  # noqa: E402
from src.wizard.draft import UploadedFile  # noqa: E402
from src.wizard.steps import StepAction, WizardMode  # noqa: E402
from src.wizard.wizard import OnboardingWizard, build_services  # noqa: E402


AUDIT_LOG = REPO_ROOT / "artifacts" / "logs" / "wizard_audit.log"


# -------------------------
# Event loop + wizard lifetime
# -------------------------

#note: One loop per browser session; the wizard's httpx client is bound to it.
def _loop() -> asyncio.AbstractEventLoop:
    if "loop" not in st.session_state:
        st.session_state.loop = asyncio.new_event_loop()
    return st.session_state.loop


def run_async(coro: Coroutine[Any, Any, Any]) -> Any:
    return _loop().run_until_complete(coro)


class StreamlitNotifier:
    def show_success(self, message: str) -> None:
        st.session_state.flash = message


def start_wizard(user_id: str, agent_id: Optional[str]) -> OnboardingWizard:
    settings = load_settings()
    wizard = OnboardingWizard(
        build_services(settings),
        settings,
        mode=WizardMode.EDIT if agent_id else WizardMode.CREATE,
        agent_id=agent_id or None,
        user_id=user_id or None,
        notifier=StreamlitNotifier(),
        on_saved=lambda: setattr(st.session_state, "flash", "Agent updated"),
        audit_log=AUDIT_LOG,
    )
    run_async(wizard.open())
    return wizard


def _uploads(files: List[Any]) -> List[UploadedFile]:
    out: List[UploadedFile] = []
    for f in files or []:
        data = f.getvalue()
        out.append(UploadedFile(name=f.name, size=len(data), content_type=f.type or "", content=data))
    return out


# -------------------------
# Step renderers
# -------------------------

def render_details(wizard: OnboardingWizard) -> None:
    draft = wizard.draft
    vocab = wizard.vocabulary

    draft.agent_name = st.text_input("Agent name *", value=draft.agent_name)
    draft.description = st.text_area("Description *", value=draft.description)

    types = list(vocab.agent_types)
    if draft.agent_type and draft.agent_type not in types:
        types.append(draft.agent_type)
    draft.agent_type = st.selectbox(
        "Agent type *",
        options=[""] + types,
        index=([""] + types).index(draft.agent_type) if draft.agent_type in types else 0,
    )

    values = list(vocab.value_propositions)
    if draft.value_proposition and draft.value_proposition not in values:
        values.append(draft.value_proposition)
    draft.value_proposition = st.selectbox(
        "Value proposition *",
        options=[""] + values,
        index=([""] + values).index(draft.value_proposition) if draft.value_proposition in values else 0,
    )

    col1, col2 = st.columns(2)
    with col1:
        custom_field = st.selectbox("Add custom value to", ["agent_type", "value_proposition", "tags"])
    with col2:
        custom_value = st.text_input("Custom value")
    if st.button("Save custom value") and custom_value.strip():
        run_async(wizard.save_custom_value(custom_field, custom_value))
        st.rerun()

    tag_options = sorted(set(vocab.tags) | set(draft.tags))
    draft.set_choices("tags", st.multiselect("Tags", tag_options, default=draft.tags))
    persona_options = sorted(set(vocab.target_personas) | set(draft.target_personas))
    draft.set_choices(
        "target_personas",
        st.multiselect("Target personas *", persona_options, default=draft.target_personas),
    )

    draft.key_features = st.text_area("Key features (separate with ;)", value=draft.key_features)
    draft.roi_information = st.text_area("ROI information", value=draft.roi_information)
    draft.demo_link = st.text_input("Demo link *", value=draft.demo_link)


def render_capabilities(wizard: OnboardingWizard) -> None:
    st.write("Select core capabilities. Deployment options load for each selection.")
    for capability in wizard.capabilities:
        active = wizard.draft.has_capability(capability.capability_id)
        checked = st.checkbox(capability.name, value=active, key=f"cap_{capability.capability_id}")
        if checked != active:
            run_async(wizard.toggle_capability(capability.capability_id, capability.name))
            st.rerun()

    st.subheader("Deployment options")
    if st.button("Add manual option"):
        wizard.add_manual_option()
        st.rerun()
    if len(wizard.collection) and st.button("Select all"):
        wizard.select_all_options()
        st.rerun()

    for group in wizard.deployment_groups():
        st.markdown(f"**{group.name}**")
        for index, option in group.items:
            render_option(wizard, index, option)


def render_option(wizard: OnboardingWizard, index: int, option: Any) -> None:
    cols = st.columns([1, 6, 1])
    with cols[0]:
        selected = st.checkbox("", value=index in wizard.collection.selection, key=f"opt_sel_{index}")
        if selected != (index in wizard.collection.selection):
            wizard.toggle_option(index)
            st.rerun()
    with cols[1]:
        if isinstance(option, ManualOption) and index in wizard.collection.editing:
            provider = st.text_input("Provider", value=option.service_provider, key=f"opt_p_{index}")
            service = st.text_input("Service name", value=option.service_name, key=f"opt_s_{index}")
            dtype = st.text_input("Deployment type", value=option.deployment_type, key=f"opt_d_{index}")
            region = st.text_input("Cloud region", value=option.cloud_region, key=f"opt_r_{index}")
            updated = wizard.update_manual_option(
                index,
                service_provider=provider,
                service_name=service,
                deployment_type=dtype,
                cloud_region=region,
            )
            if st.button("Done", key=f"opt_done_{index}", disabled=not updated.is_complete):
                wizard.finish_editing_option(index)
                st.rerun()
        else:
            st.write(
                f"{option.service_provider} / {option.service_name} "
                f"({option.deployment_type}, {option.cloud_region or 'any region'})"
            )
    with cols[2]:
        if isinstance(option, FetchedOption):
            return
        if st.button("Remove", key=f"opt_rm_{index}"):
            wizard.remove_option(index)
            st.rerun()


def render_assets(wizard: OnboardingWizard) -> None:
    for i, link in enumerate(list(wizard.draft.demo_links)):
        cols = st.columns([6, 1])
        with cols[0]:
            value = st.text_input(f"Demo link {i + 1}", value=link, key=f"demo_{i}")
            if value != link:
                wizard.update_demo_link(i, value)
        with cols[1]:
            if st.button("Remove", key=f"demo_rm_{i}"):
                wizard.remove_demo_link(i)
                st.rerun()

    new_link = st.text_input("New demo link", key="demo_new")
    if st.button("Add link") and wizard.add_demo_link(new_link):
        st.rerun()

    files = st.file_uploader("Upload demo files", accept_multiple_files=True)
    if files and st.button("Attach files"):
        wizard.add_files(_uploads(files))
        st.rerun()

    st.subheader("Preview")
    for asset in wizard.preview_assets():
        if asset.is_video:
            st.video(asset.url)
        elif not asset.url.startswith("blob:"):
            st.image(asset.url)
        else:
            st.caption(asset.url)


def render_documentation(wizard: OnboardingWizard) -> None:
    draft = wizard.draft
    draft.sdk_details = st.text_area("SDK details", value=draft.sdk_details)
    draft.api_documentation = st.text_input("API documentation URL", value=draft.api_documentation)
    draft.sample_input = st.text_area("Sample input", value=draft.sample_input)
    draft.sample_output = st.text_area("Sample output", value=draft.sample_output)
    draft.security_details = st.text_area("Security details", value=draft.security_details)

    readme = st.file_uploader("README file", accept_multiple_files=False)
    if readme is not None:
        draft.set_readme(_uploads([readme])[0])

    for i, link in enumerate(list(draft.related_links)):
        cols = st.columns([6, 1])
        with cols[0]:
            value = st.text_input(f"Related link {i + 1}", value=link, key=f"rel_{i}")
            if value != link:
                draft.update_related_link(i, value)
        with cols[1]:
            if st.button("Remove", key=f"rel_rm_{i}"):
                draft.remove_related_link(i)
                st.rerun()
    new_related = st.text_input("New related link", key="rel_new")
    if st.button("Add related link") and draft.add_related_link(new_related):
        st.rerun()


def render_preview(wizard: OnboardingWizard) -> None:
    draft = wizard.draft
    st.json(
        {
            "agent_name": draft.agent_name,
            "agent_type": draft.agent_type,
            "value_proposition": draft.value_proposition,
            "tags": draft.tags,
            "target_personas": draft.target_personas,
            "capabilities": draft.capability_display_names(),
            "deployments_selected": len(wizard.collection.selected_options()),
            "demo_links": draft.demo_links,
            "files": [f.name for f in draft.files],
        }
    )


RENDERERS = {
    "Agent Details": render_details,
    "Capabilities": render_capabilities,
    "Demo Assets": render_assets,
    "Documentation": render_documentation,
    "Preview & Submit": render_preview,
}


# -------------------------
# Page
# -------------------------

st.set_page_config(page_title="Agent Onboarding", layout="wide")

if "wizard" not in st.session_state:
    st.session_state.wizard = None

if "flash" not in st.session_state:
    st.session_state.flash = None

st.markdown('<h3 style="color: #1e3a8a;">Agent Onboarding</h3>', unsafe_allow_html=True)

if st.session_state.flash:
    st.success(st.session_state.flash)
    st.session_state.flash = None

wizard: Optional[OnboardingWizard] = st.session_state.wizard

if wizard is None or not wizard.is_open:
    with st.sidebar:
        user_id = st.text_input("User id")
        agent_id = st.text_input("Agent id (leave empty to onboard a new agent)")
        if st.button("Open wizard", type="primary"):
            st.session_state.wizard = start_wizard(user_id.strip(), agent_id.strip() or None)
            st.rerun()
    st.info("Open the wizard from the sidebar.")
else:
    steps = wizard.steps
    st.progress(steps.current / steps.total, text=f"Step {steps.current} of {steps.total}: {steps.title}")

    tabs = st.columns(steps.total)
    for number, title in enumerate(steps.titles, start=1):
        with tabs[number - 1]:
            if st.button(title, key=f"tab_{number}", disabled=number > steps.current):
                wizard.jump(number)
                st.rerun()

    RENDERERS[steps.title](wizard)

    if wizard.submit_error:
        st.error(wizard.submit_error)

    back_col, next_col = st.columns(2)
    with back_col:
        if st.button("Back" if steps.current > 1 else "Cancel", disabled=not steps.can_retreat()):
            wizard.retreat()
            st.rerun()
    with next_col:
        label = "Submit" if steps.is_last else "Next"
        busy = wizard.submitting or wizard.is_loading_deployments()
        if st.button(label, type="primary", disabled=busy):
            action = run_async(wizard.advance())
            if action is not StepAction.IGNORED:
                st.rerun()
