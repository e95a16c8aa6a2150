import asyncio

from connectors.document_store import InMemoryDocumentStore
from onboarding.draft import DraftStore, InMemoryKeyValueStore
from onboarding.flow import (
    STORE_UNAVAILABLE_MESSAGE,
    SUBMISSION_INVALID_MESSAGE,
    SUBMITTED_MARKER,
    OnboardingWizard,
    WizardStep,
    check_completeness,
)
from onboarding.schema import ADDITIONAL_FIELDS, OPTIONAL_FIELDS, PERSONAL_FIELDS, RECORD_FIELDS
from onboarding.submission import SubmissionCoordinator


def _valid_record() -> dict:
    return {
        "firstName": "Jane",
        "surname": "Doe",
        "title": "ms",
        "email": "jane.doe@example.com",
        "phone": "07700900900",
        "birthDate": "1990-01-01",
        "gender": "female",
        "nino": "AB123456C",
        "birthPlace": "united-kingdom",
        "addressLine1": "1 High Street",
        "addressLine2": "",
        "addressLine3": "",
        "postTown": "London",
        "postcode": "SW1A 1AA",
        "country": "United Kingdom",
        "maritalStatus": "single",
        "nationality": "british",
        "enteredUK": "1990-01-01",
        "immigrationStatus": "british-citizen",
        "tenancyType": "council",
        "currentSituation": "Looking for housing support",
        "termsAndConditions": True,
    }


def _pick(fields) -> dict:
    record = _valid_record()
    return {name: record[name] for name in fields}


class FlakyStore:
    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.calls = 0
        self.created: list[dict] = []

    async def create(self, collection, payload):
        self.calls += 1
        if self.failures:
            self.failures -= 1
            raise ConnectionError("firestore down")
        self.created.append(dict(payload))
        return f"doc-{self.calls}"


def _wizard(kv, store) -> OnboardingWizard:
    return OnboardingWizard(DraftStore(kv), SubmissionCoordinator(store), correlation_id="corr-1")


def test_check_completeness_gates_on_prior_groups():
    personal = _pick(PERSONAL_FIELDS)
    additional = _pick(ADDITIONAL_FIELDS)

    assert check_completeness(None, WizardStep.PERSONAL) is WizardStep.PERSONAL
    assert check_completeness({}, WizardStep.ADDITIONAL) is WizardStep.PERSONAL
    assert check_completeness(personal, WizardStep.ADDITIONAL) is WizardStep.ADDITIONAL
    assert check_completeness(personal, WizardStep.CONSENT) is WizardStep.PERSONAL
    assert check_completeness({**personal, **additional}, WizardStep.CONSENT) is WizardStep.CONSENT

    # Optional address lines are not required to pass the gate.
    without_optional = {k: v for k, v in personal.items() if k not in {"addressLine2", "addressLine3"}}
    assert check_completeness(without_optional, WizardStep.ADDITIONAL) is WizardStep.ADDITIONAL

    blank_surname = {**personal, "surname": ""}
    assert check_completeness(blank_surname, WizardStep.ADDITIONAL) is WizardStep.PERSONAL


def test_missing_personal_field_redirects_even_with_later_groups_filled():
    full = {**_pick(PERSONAL_FIELDS), **_pick(ADDITIONAL_FIELDS), "termsAndConditions": True}
    required = [name for name in PERSONAL_FIELDS if name not in OPTIONAL_FIELDS]

    for name in required:
        draft = {key: value for key, value in full.items() if key != name}
        assert check_completeness(draft, WizardStep.ADDITIONAL) is WizardStep.PERSONAL, name
        assert check_completeness(draft, WizardStep.CONSENT) is WizardStep.PERSONAL, name


def test_submitted_requires_marker():
    complete = _valid_record()

    assert check_completeness(complete, WizardStep.SUBMITTED) is WizardStep.PERSONAL
    assert check_completeness({**complete, SUBMITTED_MARKER: "doc-1"}, WizardStep.SUBMITTED) is WizardStep.SUBMITTED


def test_enter_redirects_and_prefills_defaults():
    async def _run() -> None:
        wizard = _wizard(InMemoryKeyValueStore(), InMemoryDocumentStore())

        view = await wizard.enter(WizardStep.CONSENT)
        assert view.step is WizardStep.PERSONAL
        assert view.redirected_from is WizardStep.CONSENT
        assert view.values["birthPlace"] == "united-kingdom"
        assert view.values["firstName"] == ""

        view = await wizard.enter(WizardStep.PERSONAL)
        assert not view.redirected

    asyncio.run(_run())


def test_full_run_creates_one_document_with_the_union_of_steps():
    async def _run() -> None:
        kv = InMemoryKeyValueStore()
        store = InMemoryDocumentStore()
        wizard = _wizard(kv, store)

        outcome = await wizard.advance(WizardStep.PERSONAL, _pick(PERSONAL_FIELDS))
        assert outcome.ok and outcome.step is WizardStep.ADDITIONAL

        outcome = await wizard.advance(WizardStep.ADDITIONAL, _pick(ADDITIONAL_FIELDS))
        assert outcome.ok and outcome.step is WizardStep.CONSENT

        outcome = await wizard.advance(WizardStep.CONSENT, {"termsAndConditions": True})
        assert outcome.ok and outcome.step is WizardStep.SUBMITTED
        assert outcome.record_id

        documents = store.collections["onboardingForms"]
        assert list(documents) == [outcome.record_id]
        created = documents[outcome.record_id]
        assert {name: created[name] for name in RECORD_FIELDS} == _valid_record()
        assert "createdAt" in created
        assert SUBMITTED_MARKER not in created

        completion = await wizard.completion()
        assert completion.step is WizardStep.SUBMITTED
        assert completion.record_id == outcome.record_id

        # A submitted draft cannot be edited again.
        view = await _wizard(kv, store).enter(WizardStep.PERSONAL)
        assert view.step is WizardStep.SUBMITTED

    asyncio.run(_run())


def test_invalid_step_data_is_not_merged():
    async def _run() -> None:
        kv = InMemoryKeyValueStore()
        wizard = _wizard(kv, InMemoryDocumentStore())
        data = _pick(PERSONAL_FIELDS)
        data["email"] = "broken"

        outcome = await wizard.advance(WizardStep.PERSONAL, data)

        assert outcome.step is WizardStep.PERSONAL
        assert [error.field for error in outcome.errors] == ["email"]
        assert await wizard.drafts.load() is None

    asyncio.run(_run())


def test_advance_past_gate_is_redirected():
    async def _run() -> None:
        wizard = _wizard(InMemoryKeyValueStore(), InMemoryDocumentStore())

        outcome = await wizard.advance(WizardStep.ADDITIONAL, _pick(ADDITIONAL_FIELDS))

        assert outcome.redirected
        assert outcome.step is WizardStep.PERSONAL
        assert await wizard.drafts.load() is None

    asyncio.run(_run())


def test_store_failure_keeps_consent_and_retry_succeeds():
    async def _run() -> None:
        kv = InMemoryKeyValueStore()
        store = FlakyStore(failures=1)
        wizard = _wizard(kv, store)
        await wizard.drafts.merge(_pick(PERSONAL_FIELDS + ADDITIONAL_FIELDS))

        outcome = await wizard.advance(WizardStep.CONSENT, {"termsAndConditions": True})
        assert outcome.step is WizardStep.CONSENT
        assert outcome.message == STORE_UNAVAILABLE_MESSAGE
        assert (await wizard.drafts.load())["termsAndConditions"] is True
        assert SUBMITTED_MARKER not in await wizard.drafts.load()

        outcome = await wizard.advance(WizardStep.CONSENT, {"termsAndConditions": True})
        assert outcome.step is WizardStep.SUBMITTED
        assert outcome.record_id == "doc-2"
        assert store.calls == 2
        assert len(store.created) == 1

    asyncio.run(_run())


def test_invalid_draft_fails_final_validation_without_store_call():
    async def _run() -> None:
        store = FlakyStore(failures=0)
        wizard = _wizard(InMemoryKeyValueStore(), store)
        draft = _pick(PERSONAL_FIELDS + ADDITIONAL_FIELDS)
        draft["nino"] = "BG123456C"
        await wizard.drafts.merge(draft)

        outcome = await wizard.advance(WizardStep.CONSENT, {"termsAndConditions": True})

        assert outcome.step is WizardStep.CONSENT
        assert outcome.message == SUBMISSION_INVALID_MESSAGE
        assert [error.field for error in outcome.errors] == ["nino"]
        assert store.calls == 0

    asyncio.run(_run())


def test_unaccepted_terms_stay_on_consent():
    async def _run() -> None:
        store = FlakyStore(failures=0)
        wizard = _wizard(InMemoryKeyValueStore(), store)
        await wizard.drafts.merge(_pick(PERSONAL_FIELDS + ADDITIONAL_FIELDS))

        outcome = await wizard.advance(WizardStep.CONSENT, {"termsAndConditions": False})

        assert outcome.step is WizardStep.CONSENT
        assert outcome.errors[0].message == "You must accept the terms and conditions"
        assert store.calls == 0

    asyncio.run(_run())


def test_back_and_reset():
    async def _run() -> None:
        kv = InMemoryKeyValueStore()
        wizard = _wizard(kv, InMemoryDocumentStore())
        await wizard.drafts.merge(_pick(PERSONAL_FIELDS + ADDITIONAL_FIELDS))

        view = await wizard.back(WizardStep.CONSENT)
        assert view.step is WizardStep.ADDITIONAL
        assert view.values["nationality"] == "british"

        view = await wizard.back(WizardStep.PERSONAL)
        assert view.step is WizardStep.PERSONAL
        assert view.values["firstName"] == "Jane"

        view = await wizard.reset()
        assert view.step is WizardStep.PERSONAL
        assert view.values["firstName"] == ""
        assert kv.items == {}

        await wizard.reset()
        assert (await wizard.enter(WizardStep.ADDITIONAL)).step is WizardStep.PERSONAL

    asyncio.run(_run())


def test_completion_without_submission_redirects_to_personal():
    async def _run() -> None:
        wizard = _wizard(InMemoryKeyValueStore(), InMemoryDocumentStore())
        await wizard.drafts.merge(_valid_record())

        view = await wizard.completion()

        assert view.step is WizardStep.PERSONAL
        assert view.redirected_from is WizardStep.SUBMITTED

    asyncio.run(_run())
