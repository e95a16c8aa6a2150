from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from aiogram import Router
from aiogram.enums import ChatAction
from aiogram.filters import Command, CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.fsm.state import State
from aiogram.types import Message, ReplyKeyboardMarkup

from bot import metrics
from bot.fsm_states import OnboardingFSM
from bot.keyboards.onboarding_kb import (
    AGREE_TEXT,
    BACK_TEXT,
    KEEP_TEXT,
    NEW_APPLICATION_TEXT,
    RESET_TEXT,
    SKIP_TEXT,
    completion_keyboard,
    consent_keyboard,
    field_keyboard,
)
from onboarding.catalog import label_for, options_for, value_for_label
from onboarding.draft import DRAFT_STORAGE_KEY, DraftStore, KeyValueStore
from onboarding.flow import (
    STEP_FIELDS,
    STEP_ORDER,
    OnboardingWizard,
    StepOutcome,
    StepView,
    WizardStep,
    check_completeness,
)
from onboarding.schema import FIELD_LABELS, OPTIONAL_FIELDS, FieldError, validate
from onboarding.submission import Submitter

STEP_STATES: dict[WizardStep, State] = {
    WizardStep.PERSONAL: OnboardingFSM.PERSONAL,
    WizardStep.ADDITIONAL: OnboardingFSM.ADDITIONAL,
    WizardStep.CONSENT: OnboardingFSM.CONSENT,
    WizardStep.SUBMITTED: OnboardingFSM.SUBMITTED,
}

STEP_TITLES: dict[WizardStep, str] = {
    WizardStep.PERSONAL: "Personal Information",
    WizardStep.ADDITIONAL: "Additional Information",
    WizardStep.CONSENT: "Terms & Conditions",
    WizardStep.SUBMITTED: "Submission Successful!",
}

FIELD_HINTS: dict[str, str] = {
    "firstName": "e.g. John",
    "surname": "e.g. Doe",
    "email": "e.g. john.doe@example.com",
    "phone": "e.g. 07700 900 900",
    "birthDate": "Format: YYYY-MM-DD",
    "nino": "e.g. AB123456C",
    "addressLine1": "e.g. 123 Main St",
    "addressLine2": "Apartment, suite, etc.",
    "addressLine3": "Area, district, etc.",
    "postTown": "e.g. London",
    "postcode": "e.g. SW1A 1AA",
    "enteredUK": "Format: YYYY-MM-DD",
    "currentSituation": "Please describe your current situation...",
}

TERMS_TEXT = "\n".join(
    [
        "Terms and Conditions",
        "By submitting this form, you agree to the following terms:",
        "• All information provided is accurate and complete",
        "• You consent to the processing of your personal data",
        "• You understand that false information may result in legal consequences",
        "• You agree to notify us of any changes to your information",
    ]
)

COMPLETION_TEXT = "\n".join(
    [
        "Submission Successful!",
        "Thank you for completing your onboarding information. Your details have been successfully submitted.",
        "",
        "What happens next?",
        "• Our team will review your information",
        "• You'll receive a confirmation email shortly",
        "• We'll contact you if we need any additional information",
    ]
)

REDIRECT_NOTICE = "Please complete the earlier steps first."
IN_FLIGHT_NOTICE = "Your application is already being submitted. Please wait."


@dataclass(slots=True)
class Reply:
    text: str
    state: WizardStep
    keyboard: ReplyKeyboardMarkup | None = None


@dataclass(slots=True)
class OnboardingConversation:
    """Drives the wizard one Telegram message at a time.

    The FSM data holds only the step-local form state; everything the user
    has completed lives in the persisted draft.
    """

    kv: KeyValueStore
    submitter: Submitter
    loading_delay_sec: float = 0.0
    _in_flight: set[int] = field(default_factory=set)
    _locks: dict[int, asyncio.Lock] = field(default_factory=dict)

    def _wizard(self, state: FSMContext, correlation_id: str) -> OnboardingWizard:
        drafts = DraftStore(self.kv, key=f"{DRAFT_STORAGE_KEY}:{state.key.chat_id}")
        return OnboardingWizard(drafts, self.submitter, correlation_id=correlation_id)

    def _chat_lock(self, state: FSMContext) -> asyncio.Lock:
        # One message per chat is handled at a time.
        chat_id = state.key.chat_id
        lock = self._locks.get(chat_id)
        if lock is None:
            lock = self._locks[chat_id] = asyncio.Lock()
        return lock

    def _busy(self, state: FSMContext) -> Reply | None:
        if state.key.chat_id in self._in_flight:
            return Reply(text=IN_FLIGHT_NOTICE, state=WizardStep.CONSENT)
        return None

    @staticmethod
    async def _correlation_id(state: FSMContext) -> str:
        data = await state.get_data()
        return data.get("correlation_id") or str(uuid4())

    async def start(self, state: FSMContext) -> Reply:
        busy = self._busy(state)
        if busy is not None:
            return busy
        async with self._chat_lock(state):
            return await self._start(state)

    async def reset(self, state: FSMContext) -> Reply:
        busy = self._busy(state)
        if busy is not None:
            return busy
        async with self._chat_lock(state):
            return await self._reset(state)

    async def on_answer(self, state: FSMContext, text: str) -> Reply:
        # Nothing may touch the draft while its submit is running.
        busy = self._busy(state)
        if busy is not None:
            return busy
        async with self._chat_lock(state):
            return await self._on_answer(state, text)

    async def _start(self, state: FSMContext) -> Reply:
        correlation_id = await self._correlation_id(state)
        wizard = self._wizard(state, correlation_id)
        draft = await wizard.drafts.load()
        target = WizardStep.PERSONAL
        for step in reversed(STEP_ORDER):
            if check_completeness(draft, step) is step:
                target = step
                break
        view = await wizard.enter(target)
        return await self.show_step(state, view, correlation_id=correlation_id)

    async def _reset(self, state: FSMContext) -> Reply:
        correlation_id = str(uuid4())
        view = await self._wizard(state, correlation_id).reset()
        metrics.inc("onboarding.reset")
        return await self.show_step(state, view, correlation_id=correlation_id)

    async def show_step(
        self,
        state: FSMContext,
        view: StepView,
        *,
        correlation_id: str,
        notice: str | None = None,
    ) -> Reply:
        await state.set_state(STEP_STATES[view.step])
        if view.step is WizardStep.SUBMITTED:
            await state.set_data({"correlation_id": correlation_id, "record_id": view.record_id})
            text = COMPLETION_TEXT
            if view.record_id:
                text += f"\n\nReference: {view.record_id}"
            return Reply(text=_with_notice(text, notice), state=view.step, keyboard=completion_keyboard())

        data = {
            "correlation_id": correlation_id,
            "step": view.step.value,
            "values": view.values,
            "answers": {},
            "field_index": 0,
        }
        await state.set_data(data)
        return Reply(text=_with_notice(self._prompt(data), notice), state=view.step, keyboard=self._keyboard(data))

    async def _on_answer(self, state: FSMContext, text: str) -> Reply:
        data = await state.get_data()
        if "step" not in data and "record_id" not in data:
            return await self._start(state)
        if text in {RESET_TEXT, NEW_APPLICATION_TEXT}:
            return await self._reset(state)

        correlation_id = data.get("correlation_id") or str(uuid4())
        wizard = self._wizard(state, correlation_id)
        if "step" not in data:
            view = await wizard.completion()
            return await self.show_step(state, view, correlation_id=correlation_id)

        step = WizardStep(data["step"])
        if text == BACK_TEXT:
            if step is WizardStep.PERSONAL:
                return Reply(text=self._prompt(data), state=step, keyboard=self._keyboard(data))
            view = await wizard.back(step)
            return await self.show_step(state, view, correlation_id=correlation_id)
        if step is WizardStep.CONSENT:
            return await self._consent(state, wizard, text)
        return await self._field_answer(state, wizard, data, step, text)

    async def _field_answer(
        self,
        state: FSMContext,
        wizard: OnboardingWizard,
        data: dict[str, Any],
        step: WizardStep,
        text: str,
    ) -> Reply:
        fields = STEP_FIELDS[step]
        index = data.get("field_index", 0)
        name = fields[index]
        current = data.get("values", {}).get(name)

        # Keep without a current value and Skip on a required field fail validation below.
        if text == KEEP_TEXT:
            value = current or ""
        elif text == SKIP_TEXT:
            value = ""
        elif options_for(name):
            value = value_for_label(name, text) or text.strip()
        else:
            value = text.strip()

        result = validate({name: value}, [name])
        if not result.ok:
            metrics.inc("onboarding.step.invalid")
            return Reply(
                text=_errors_text(result.errors) + "\n\n" + self._prompt(data),
                state=step,
                keyboard=self._keyboard(data),
            )

        data["answers"][name] = value
        data["field_index"] = index + 1
        if data["field_index"] < len(fields):
            await state.set_data(data)
            return Reply(text=self._prompt(data), state=step, keyboard=self._keyboard(data))

        outcome = await wizard.advance(step, data["answers"])
        if outcome.errors and not outcome.redirected:
            metrics.inc("onboarding.step.invalid")
            data["field_index"] = fields.index(outcome.errors[0].field)
            await state.set_data(data)
            return Reply(
                text=_errors_text(outcome.errors) + "\n\n" + self._prompt(data),
                state=step,
                keyboard=self._keyboard(data),
            )
        return await self._follow(state, wizard, outcome)

    async def _consent(self, state: FSMContext, wizard: OnboardingWizard, text: str) -> Reply:
        chat_id = state.key.chat_id
        self._in_flight.add(chat_id)
        try:
            outcome = await wizard.advance(WizardStep.CONSENT, {"termsAndConditions": text == AGREE_TEXT})
        finally:
            self._in_flight.discard(chat_id)

        if outcome.step is WizardStep.CONSENT and (outcome.errors or outcome.message):
            if outcome.message:
                metrics.inc("onboarding.submit.failed")
            lines = [outcome.message] if outcome.message else []
            if outcome.errors:
                lines.append(_errors_text(outcome.errors))
            return Reply(
                text="\n".join(lines) + "\n\n" + TERMS_TEXT,
                state=WizardStep.CONSENT,
                keyboard=consent_keyboard(),
            )
        if outcome.step is WizardStep.SUBMITTED and not outcome.redirected:
            metrics.inc("onboarding.submit.success")
        return await self._follow(state, wizard, outcome)

    async def _follow(self, state: FSMContext, wizard: OnboardingWizard, outcome: StepOutcome) -> Reply:
        notice = None
        if outcome.redirected:
            metrics.inc("onboarding.step.redirect")
            notice = REDIRECT_NOTICE
        view = await wizard.enter(outcome.step)
        return await self.show_step(state, view, correlation_id=wizard.correlation_id, notice=notice)

    @staticmethod
    def _prompt(data: dict[str, Any]) -> str:
        step = WizardStep(data["step"])
        if step is WizardStep.CONSENT:
            return f"{STEP_TITLES[step]}\n\n{TERMS_TEXT}\n\nTap “{AGREE_TEXT}” to submit your application."

        fields = STEP_FIELDS[step]
        index = data.get("field_index", 0)
        name = fields[index]
        lines = [f"{STEP_TITLES[step]} ({index + 1}/{len(fields)})", FIELD_LABELS[name]]
        if name in FIELD_HINTS:
            lines.append(FIELD_HINTS[name])
        if name in OPTIONAL_FIELDS:
            lines.append("Optional.")
        current = data.get("values", {}).get(name)
        if current:
            lines.append(f"Current: {label_for(name, current)}")
        return "\n".join(lines)

    @staticmethod
    def _keyboard(data: dict[str, Any]) -> ReplyKeyboardMarkup:
        step = WizardStep(data["step"])
        if step is WizardStep.CONSENT:
            return consent_keyboard()
        name = STEP_FIELDS[step][data.get("field_index", 0)]
        return field_keyboard(
            name,
            has_current=bool(data.get("values", {}).get(name)),
            optional=name in OPTIONAL_FIELDS,
            allow_back=step is not WizardStep.PERSONAL,
        )


def _errors_text(errors: list[FieldError]) -> str:
    return "\n".join(f"• {error.message}" for error in errors)


def _with_notice(text: str, notice: str | None) -> str:
    return f"{notice}\n\n{text}" if notice else text


def create_onboarding_router(conversation: OnboardingConversation) -> Router:
    router = Router(name="onboarding")

    async def send(message: Message, reply: Reply) -> None:
        await message.answer(reply.text, reply_markup=reply.keyboard)

    async def loading(message: Message) -> None:
        if conversation.loading_delay_sec and message.bot is not None:
            await message.bot.send_chat_action(message.chat.id, ChatAction.TYPING)
            await asyncio.sleep(conversation.loading_delay_sec)

    @router.message(CommandStart())
    async def cmd_start(message: Message, state: FSMContext) -> None:
        await loading(message)
        await send(message, await conversation.start(state))

    @router.message(Command("reset"))
    async def cmd_reset(message: Message, state: FSMContext) -> None:
        await send(message, await conversation.reset(state))

    @router.message(OnboardingFSM.CONSENT)
    async def on_consent(message: Message, state: FSMContext) -> None:
        await loading(message)
        await send(message, await conversation.on_answer(state, message.text or ""))

    @router.message(OnboardingFSM.PERSONAL)
    @router.message(OnboardingFSM.ADDITIONAL)
    @router.message(OnboardingFSM.SUBMITTED)
    async def on_answer(message: Message, state: FSMContext) -> None:
        await send(message, await conversation.on_answer(state, message.text or ""))

    @router.message()
    async def on_unknown(message: Message, state: FSMContext) -> None:
        await send(message, await conversation.start(state))

    return router
