from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .schema import FieldError


class OnboardingError(Exception):
    """Base class for onboarding wizard failures."""


class FieldValidationError(OnboardingError):
    """Raised when one or more fields violate their rule."""

    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = list(errors)
        fields = ", ".join(error.field for error in self.errors)
        super().__init__(f"Invalid fields: {fields}")


class DraftCorrupted(OnboardingError):
    """Raised when persisted draft bytes cannot be decoded."""


class SubmissionError(OnboardingError):
    """Base class for final submission failures."""


class SubmissionValidationFailed(SubmissionError):
    """Raised when the full record fails re-validation before the store is called."""

    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = list(errors)
        super().__init__("Validation error")


class StoreUnavailable(SubmissionError):
    """Raised when the document store rejects or cannot be reached."""
