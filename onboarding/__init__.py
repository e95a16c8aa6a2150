from .catalog import CATALOGS, Option, options_for, values
from .draft import (
    DRAFT_STORAGE_KEY,
    DraftStore,
    InMemoryKeyValueStore,
    KeyValueStore,
    RedisKeyValueStore,
    decode_draft,
    encode_draft,
)
from .exceptions import (
    DraftCorrupted,
    FieldValidationError,
    OnboardingError,
    StoreUnavailable,
    SubmissionError,
    SubmissionValidationFailed,
)
from .flow import (
    STEP_FIELDS,
    SUBMITTED_MARKER,
    OnboardingWizard,
    StepOutcome,
    StepView,
    WizardStep,
    check_completeness,
)
from .schema import (
    ADDITIONAL_FIELDS,
    CONSENT_FIELDS,
    PERSONAL_FIELDS,
    RECORD_FIELDS,
    FieldError,
    OnboardingRecord,
    ValidationResult,
    validate,
    validate_record,
)
from .submission import DocumentStore, SubmissionCoordinator, Submitter

__all__ = [
    "CATALOGS",
    "Option",
    "options_for",
    "values",
    "DRAFT_STORAGE_KEY",
    "DraftStore",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "RedisKeyValueStore",
    "decode_draft",
    "encode_draft",
    "DraftCorrupted",
    "FieldValidationError",
    "OnboardingError",
    "StoreUnavailable",
    "SubmissionError",
    "SubmissionValidationFailed",
    "STEP_FIELDS",
    "SUBMITTED_MARKER",
    "OnboardingWizard",
    "StepOutcome",
    "StepView",
    "WizardStep",
    "check_completeness",
    "ADDITIONAL_FIELDS",
    "CONSENT_FIELDS",
    "PERSONAL_FIELDS",
    "RECORD_FIELDS",
    "FieldError",
    "OnboardingRecord",
    "ValidationResult",
    "validate",
    "validate_record",
    "DocumentStore",
    "SubmissionCoordinator",
    "Submitter",
]
