"""Agent onboarding/edit wizard: draft model, step machine, hydration and submission."""

from src.wizard.draft import AgentDraft, UploadedFile
from src.wizard.errors import SubmissionError, SubmissionErrorKind, classify_submission_error
from src.wizard.payload import SubmissionPayload, build_submission_payload
from src.wizard.steps import StepAction, StepMachine, WizardMode
from src.wizard.wizard import (
    LoggingNotifier,
    OnboardingWizard,
    SubmitResult,
    WizardServices,
    build_services,
)

__all__ = [
    "AgentDraft",
    "LoggingNotifier",
    "OnboardingWizard",
    "StepAction",
    "StepMachine",
    "SubmissionError",
    "SubmissionErrorKind",
    "SubmissionPayload",
    "SubmitResult",
    "UploadedFile",
    "WizardMode",
    "WizardServices",
    "build_services",
    "classify_submission_error",
]
