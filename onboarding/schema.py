from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from . import catalog
from .exceptions import FieldValidationError

PERSONAL_FIELDS: tuple[str, ...] = (
    "firstName",
    "surname",
    "title",
    "email",
    "phone",
    "birthDate",
    "gender",
    "nino",
    "birthPlace",
    "addressLine1",
    "addressLine2",
    "addressLine3",
    "postTown",
    "postcode",
    "country",
    "maritalStatus",
)
ADDITIONAL_FIELDS: tuple[str, ...] = (
    "nationality",
    "enteredUK",
    "immigrationStatus",
    "tenancyType",
    "currentSituation",
)
CONSENT_FIELDS: tuple[str, ...] = ("termsAndConditions",)

RECORD_FIELDS: tuple[str, ...] = PERSONAL_FIELDS + ADDITIONAL_FIELDS + CONSENT_FIELDS
OPTIONAL_FIELDS: frozenset[str] = frozenset({"addressLine2", "addressLine3"})

FIELD_LABELS: dict[str, str] = {
    "firstName": "First name",
    "surname": "Surname",
    "title": "Title",
    "email": "Email",
    "phone": "Phone number",
    "birthDate": "Date of birth",
    "gender": "Gender",
    "nino": "National Insurance Number",
    "birthPlace": "Place of birth",
    "addressLine1": "Address line 1",
    "addressLine2": "Address line 2",
    "addressLine3": "Address line 3",
    "postTown": "Post town",
    "postcode": "Postcode",
    "country": "Country",
    "maritalStatus": "Marital status",
    "nationality": "Nationality",
    "enteredUK": "Date entered the UK",
    "immigrationStatus": "Immigration status",
    "tenancyType": "Tenancy type",
    "currentSituation": "Current situation",
    "termsAndConditions": "Terms and conditions",
}

_RULE_MESSAGES: dict[str, str] = {
    "firstName": "First name must be at least 2 characters",
    "surname": "Surname must be at least 2 characters",
    "title": "Please select a title",
    "email": "Please enter a valid email address",
    "phone": "Phone number must be at least 10 digits",
    "birthDate": "Date of birth is required",
    "gender": "Please select a gender",
    "nino": "Invalid National Insurance Number",
    "birthPlace": "Please select a birth place",
    "addressLine1": "Address line 1 is required",
    "addressLine2": "Address line 2 must be text",
    "addressLine3": "Address line 3 must be text",
    "postTown": "Post town is required",
    "postcode": "Please enter a valid UK postcode",
    "country": "Country is required",
    "maritalStatus": "Please select a marital status",
    "nationality": "Please select a nationality",
    "enteredUK": "Please enter a valid date",
    "immigrationStatus": "Please select an immigration status",
    "tenancyType": "Please select a tenancy type",
    "currentSituation": "Please select a current situation",
    "termsAndConditions": "You must accept the terms and conditions",
}

# Overrides used when the value is missing or an empty string.
_REQUIRED_MESSAGES: dict[str, str] = {
    "postcode": "Postcode is required",
}

NINO_PATTERN = re.compile(
    r"(?!BG|GB|NK|KN|TN|NT|ZZ)[A-CEGHJ-PR-TW-Z][A-CEGHJ-NPR-TW-Z](?:\s?[0-9]){6}\s?[A-D]",
    re.IGNORECASE | re.ASCII,
)
POSTCODE_PATTERN = re.compile(r"[A-Z]{1,2}[0-9][A-Z0-9]? ?[0-9][A-Z]{2}", re.IGNORECASE | re.ASCII)
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@.]+(?:\.[^\s@.]+)+")


def _matches(pattern: re.Pattern[str], error_type: str) -> AfterValidator:
    def check(value: str) -> str:
        if not pattern.fullmatch(value):
            raise PydanticCustomError(error_type, "value does not match the expected format")
        return value

    return AfterValidator(check)


def _catalog_member(field_name: str) -> AfterValidator:
    allowed = catalog.values(field_name)

    def check(value: str) -> str:
        if value not in allowed:
            raise PydanticCustomError("catalog_member", "value is not a permitted option")
        return value

    return AfterValidator(check)


def _accepted(value: bool) -> bool:
    if value is not True:
        raise PydanticCustomError("not_accepted", "terms must be accepted")
    return value


class OnboardingRecord(BaseModel):
    """The complete onboarding record, addressed by its camelCase wire names."""

    model_config = ConfigDict(
        extra="forbid",
        strict=True,
        alias_generator=to_camel,
        frozen=True,
    )

    first_name: str = Field(min_length=2)
    surname: str = Field(min_length=2)
    title: Annotated[str, _catalog_member("title")]
    email: Annotated[str, _matches(EMAIL_PATTERN, "email")]
    phone: str = Field(min_length=10)
    birth_date: str = Field(min_length=1)
    gender: Annotated[str, _catalog_member("gender")]
    nino: Annotated[str, _matches(NINO_PATTERN, "nino")]
    birth_place: Annotated[str, _catalog_member("birthPlace")]
    address_line1: str = Field(min_length=1)
    address_line2: str = ""
    address_line3: str = ""
    post_town: str = Field(min_length=1)
    postcode: Annotated[str, Field(min_length=1), _matches(POSTCODE_PATTERN, "postcode")]
    country: str = Field(min_length=1)
    marital_status: Annotated[str, _catalog_member("maritalStatus")]
    nationality: Annotated[str, _catalog_member("nationality")]
    entered_uk: str = Field(min_length=1, alias="enteredUK")
    immigration_status: Annotated[str, _catalog_member("immigrationStatus")]
    tenancy_type: Annotated[str, _catalog_member("tenancyType")]
    current_situation: str = Field(min_length=1)
    terms_and_conditions: Annotated[bool, AfterValidator(_accepted)]


# Error locations may carry either the wire name or the attribute name.
_WIRE_NAMES: dict[str, str] = {name: name for name in RECORD_FIELDS}
_WIRE_NAMES.update(
    {attr: info.alias for attr, info in OnboardingRecord.model_fields.items() if info.alias}
)
_FIELD_ORDER: dict[str, int] = {name: index for index, name in enumerate(RECORD_FIELDS)}


class FieldError(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    message: str
    code: str


@dataclass
class ValidationResult:
    record: dict[str, Any] = field(default_factory=dict)
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def messages(self) -> dict[str, str]:
        return {error.field: error.message for error in self.errors}


def validate(data: Mapping[str, Any], fields: Iterable[str] | None = None) -> ValidationResult:
    """Validate a partial or full record.

    With ``fields`` only those fields are checked and returned; keys outside
    the subset are ignored. Without it every record field is checked and
    unknown keys are rejected. Every violated field is reported, in record
    field order, and values are never coerced.
    """
    if not isinstance(data, Mapping):
        return ValidationResult(
            errors=[FieldError(field="record", message="Expected an object of form fields", code="model_type")]
        )

    subset: frozenset[str] | None = None
    if fields is not None:
        subset = frozenset(fields)
        unknown = subset.difference(RECORD_FIELDS)
        if unknown:
            raise ValueError(f"Unknown record fields: {sorted(unknown)}")

    try:
        OnboardingRecord.model_validate(dict(data))
        raw_errors: list[dict[str, Any]] = []
    except ValidationError as exc:
        raw_errors = exc.errors()

    errors = _field_errors(raw_errors, data, subset)
    if errors:
        return ValidationResult(errors=errors)

    selected = RECORD_FIELDS if subset is None else tuple(name for name in RECORD_FIELDS if name in subset)
    return ValidationResult(record={name: data[name] for name in selected if name in data})


def validate_record(data: Mapping[str, Any]) -> OnboardingRecord:
    result = validate(data)
    if not result.ok:
        raise FieldValidationError(result.errors)
    return OnboardingRecord.model_validate(result.record)


def _field_errors(
    raw_errors: list[dict[str, Any]],
    data: Mapping[str, Any],
    subset: frozenset[str] | None,
) -> list[FieldError]:
    by_field: dict[str, FieldError] = {}
    for raw in raw_errors:
        loc = raw.get("loc") or ()
        if not loc:
            continue
        name = _WIRE_NAMES.get(str(loc[0]), str(loc[0]))
        if subset is not None and name not in subset:
            continue
        if name in by_field:
            continue
        error_type = str(raw.get("type", "value_error"))
        if error_type == "extra_forbidden":
            message = f"Unknown field: {name}"
        else:
            message = _message_for(name, error_type, data.get(name))
        by_field[name] = FieldError(field=name, message=message, code=error_type)
    return sorted(by_field.values(), key=lambda error: _FIELD_ORDER.get(error.field, len(_FIELD_ORDER)))


def _message_for(name: str, error_type: str, value: Any) -> str:
    if (error_type == "missing" or value == "") and name in _REQUIRED_MESSAGES:
        return _REQUIRED_MESSAGES[name]
    return _RULE_MESSAGES.get(name, f"{FIELD_LABELS.get(name, name)} is invalid")
