from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import uuid4

import structlog

from .draft import DraftStore
from .exceptions import StoreUnavailable, SubmissionValidationFailed
from .schema import (
    ADDITIONAL_FIELDS,
    CONSENT_FIELDS,
    OPTIONAL_FIELDS,
    PERSONAL_FIELDS,
    RECORD_FIELDS,
    FieldError,
    validate,
)
from .submission import Submitter

SUBMITTED_MARKER = "formId"

FIELD_DEFAULTS: dict[str, Any] = {
    "birthPlace": "united-kingdom",
    "termsAndConditions": False,
}

SUBMISSION_INVALID_MESSAGE = "Some of your answers need attention. Please review the earlier steps and try again."
STORE_UNAVAILABLE_MESSAGE = "We could not submit your form right now. Please try again."


class WizardStep(str, Enum):
    PERSONAL = "personal"
    ADDITIONAL = "additional"
    CONSENT = "consent"
    SUBMITTED = "submitted"


STEP_ORDER: tuple[WizardStep, ...] = (
    WizardStep.PERSONAL,
    WizardStep.ADDITIONAL,
    WizardStep.CONSENT,
    WizardStep.SUBMITTED,
)

STEP_FIELDS: dict[WizardStep, tuple[str, ...]] = {
    WizardStep.PERSONAL: PERSONAL_FIELDS,
    WizardStep.ADDITIONAL: ADDITIONAL_FIELDS,
    WizardStep.CONSENT: CONSENT_FIELDS,
    WizardStep.SUBMITTED: (),
}


def next_step(step: WizardStep) -> WizardStep:
    index = STEP_ORDER.index(step)
    return STEP_ORDER[min(index + 1, len(STEP_ORDER) - 1)]


def previous_step(step: WizardStep) -> WizardStep:
    if step is WizardStep.SUBMITTED:
        return step
    index = STEP_ORDER.index(step)
    return STEP_ORDER[max(index - 1, 0)]


def required_fields_before(step: WizardStep) -> tuple[str, ...]:
    """Required fields of every group that precedes ``step``."""
    fields: list[str] = []
    for earlier in STEP_ORDER[: STEP_ORDER.index(step)]:
        fields.extend(name for name in STEP_FIELDS[earlier] if name not in OPTIONAL_FIELDS)
    return tuple(fields)


def check_completeness(draft: Mapping[str, Any] | None, step: WizardStep) -> WizardStep:
    """Return ``step`` when the draft may enter it, otherwise ``PERSONAL``.

    Only presence and truthiness are checked here; formats are enforced by
    per-step validation and by the final submission.
    """
    draft = draft or {}
    if step is WizardStep.PERSONAL:
        return step
    if any(not draft.get(name) for name in required_fields_before(step)):
        return WizardStep.PERSONAL
    if step is WizardStep.SUBMITTED and not draft.get(SUBMITTED_MARKER):
        return WizardStep.PERSONAL
    return step


def prefill(step: WizardStep, draft: Mapping[str, Any] | None) -> dict[str, Any]:
    draft = draft or {}
    values: dict[str, Any] = {}
    for name in STEP_FIELDS[step]:
        value = draft.get(name)
        values[name] = FIELD_DEFAULTS.get(name, "") if value is None or value == "" else value
    return values


@dataclass
class StepView:
    step: WizardStep
    values: dict[str, Any] = field(default_factory=dict)
    redirected_from: WizardStep | None = None
    record_id: str | None = None

    @property
    def redirected(self) -> bool:
        return self.redirected_from is not None


@dataclass
class StepOutcome:
    step: WizardStep
    errors: list[FieldError] = field(default_factory=list)
    message: str | None = None
    record_id: str | None = None
    redirected: bool = False

    @property
    def ok(self) -> bool:
        return not self.errors and self.message is None and not self.redirected


class OnboardingWizard:
    """Three-step onboarding flow over an explicitly owned draft."""

    def __init__(self, drafts: DraftStore, submitter: Submitter, *, correlation_id: str | None = None) -> None:
        self.drafts = drafts
        self.submitter = submitter
        self.correlation_id = correlation_id or str(uuid4())
        self._logger = structlog.get_logger("onboarding_wizard").bind(
            correlation_id=self.correlation_id,
            draft_key=drafts.key,
        )

    async def enter(self, step: WizardStep) -> StepView:
        draft = await self.drafts.load()
        if draft and draft.get(SUBMITTED_MARKER):
            allowed = WizardStep.SUBMITTED
        else:
            allowed = check_completeness(draft, step)

        if allowed is not step:
            self._logger.info("wizard_redirect", requested=step.value, allowed=allowed.value)
        return StepView(
            step=allowed,
            values=prefill(allowed, draft),
            redirected_from=step if allowed is not step else None,
            record_id=(draft or {}).get(SUBMITTED_MARKER) if allowed is WizardStep.SUBMITTED else None,
        )

    async def advance(self, step: WizardStep, data: Mapping[str, Any]) -> StepOutcome:
        view = await self.enter(step)
        if view.redirected:
            return StepOutcome(step=view.step, redirected=True, record_id=view.record_id)
        if step is WizardStep.SUBMITTED:
            return StepOutcome(step=step, record_id=view.record_id)

        result = validate(data, STEP_FIELDS[step])
        if not result.ok:
            self._logger.info(
                "wizard_step_invalid",
                step=step.value,
                fields=[error.field for error in result.errors],
            )
            return StepOutcome(step=step, errors=result.errors)

        await self.drafts.merge(result.record)
        if step is not WizardStep.CONSENT:
            target = next_step(step)
            self._logger.info("wizard_step_completed", step=step.value, next_step=target.value)
            return StepOutcome(step=target)
        return await self._submit()

    async def back(self, step: WizardStep) -> StepView:
        return await self.enter(previous_step(step))

    async def reset(self) -> StepView:
        await self.drafts.clear()
        self._logger.info("wizard_reset")
        return StepView(step=WizardStep.PERSONAL, values=prefill(WizardStep.PERSONAL, None))

    async def completion(self) -> StepView:
        return await self.enter(WizardStep.SUBMITTED)

    async def _submit(self) -> StepOutcome:
        draft = await self.drafts.load() or {}
        record = {name: draft[name] for name in RECORD_FIELDS if name in draft}
        try:
            record_id = await self.submitter.submit(record, correlation_id=self.correlation_id)
        except SubmissionValidationFailed as exc:
            self._logger.warning("wizard_submit_invalid", fields=[error.field for error in exc.errors])
            return StepOutcome(step=WizardStep.CONSENT, errors=exc.errors, message=SUBMISSION_INVALID_MESSAGE)
        except StoreUnavailable:
            self._logger.warning("wizard_submit_store_unavailable")
            return StepOutcome(step=WizardStep.CONSENT, message=STORE_UNAVAILABLE_MESSAGE)

        await self.drafts.merge({SUBMITTED_MARKER: record_id})
        self._logger.info("wizard_submitted", record_id=record_id)
        return StepOutcome(step=WizardStep.SUBMITTED, record_id=record_id)
