import pytest

from onboarding.exceptions import FieldValidationError
from onboarding.schema import (
    ADDITIONAL_FIELDS,
    PERSONAL_FIELDS,
    RECORD_FIELDS,
    OnboardingRecord,
    validate,
    validate_record,
)


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
        "addressLine2": "Flat 2",
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


def test_valid_record_passes_unchanged():
    record = _valid_record()
    result = validate(record)

    assert result.ok
    assert result.errors == []
    assert result.record == record
    assert list(result.record) == list(RECORD_FIELDS)


def test_optional_address_lines_may_be_absent():
    record = _valid_record()
    del record["addressLine2"]
    del record["addressLine3"]

    result = validate(record)

    assert result.ok
    assert "addressLine2" not in result.record


def test_optional_address_lines_reject_null():
    record = _valid_record()
    record["addressLine2"] = None

    result = validate(record)

    assert not result.ok
    assert [error.field for error in result.errors] == ["addressLine2"]
    assert result.errors[0].code == "string_type"
    assert result.record == {}


def test_every_violated_field_is_reported_in_record_order():
    record = _valid_record()
    record.update({"firstName": "J", "email": "not-an-email", "postcode": "SW1A", "termsAndConditions": False})

    result = validate(record)

    assert not result.ok
    assert [error.field for error in result.errors] == ["firstName", "email", "postcode", "termsAndConditions"]
    assert result.messages() == {
        "firstName": "First name must be at least 2 characters",
        "email": "Please enter a valid email address",
        "postcode": "Please enter a valid UK postcode",
        "termsAndConditions": "You must accept the terms and conditions",
    }
    assert result.record == {}


@pytest.mark.parametrize("nino", ["AB123456C", "ab123456c", "AB 12 34 56 C", "JG103759A"])
def test_nino_accepts_valid_numbers(nino):
    record = _valid_record()
    record["nino"] = nino

    assert validate(record).ok


@pytest.mark.parametrize("nino", ["BG123456C", "GB123456A", "ZZ123456D", "AB123456E", "DA123456A", "AB12345C"])
def test_nino_rejects_invalid_numbers(nino):
    record = _valid_record()
    record["nino"] = nino

    result = validate(record)

    assert result.messages() == {"nino": "Invalid National Insurance Number"}


@pytest.mark.parametrize("postcode", ["SW1A 1AA", "sw1a1aa", "M1 1AE", "B33 8TH", "CR2 6XH"])
def test_postcode_accepts_uk_formats(postcode):
    record = _valid_record()
    record["postcode"] = postcode

    assert validate(record).ok


def test_postcode_messages_distinguish_empty_from_malformed():
    record = _valid_record()
    record["postcode"] = ""
    assert validate(record).messages() == {"postcode": "Postcode is required"}

    del record["postcode"]
    assert validate(record).messages() == {"postcode": "Postcode is required"}

    record["postcode"] = "SW1A"
    assert validate(record).messages() == {"postcode": "Please enter a valid UK postcode"}


def test_values_are_not_coerced():
    record = _valid_record()
    record["termsAndConditions"] = "true"
    record["phone"] = 7700900900

    result = validate(record)

    assert [error.field for error in result.errors] == ["phone", "termsAndConditions"]


def test_phone_length_counts_raw_characters():
    record = _valid_record()
    record["phone"] = "0770 900 9"

    assert validate(record).ok

    record["phone"] = "077009009"
    assert validate(record).messages() == {"phone": "Phone number must be at least 10 digits"}


def test_catalog_fields_reject_unknown_values():
    record = _valid_record()
    record["title"] = "sir"
    record["tenancyType"] = "castle"

    result = validate(record)

    assert result.messages() == {
        "title": "Please select a title",
        "tenancyType": "Please select a tenancy type",
    }


def test_full_validation_rejects_unknown_keys():
    record = _valid_record()
    record["favouriteColour"] = "green"

    result = validate(record)

    assert [(error.field, error.code) for error in result.errors] == [("favouriteColour", "extra_forbidden")]


def test_subset_validation_ignores_other_fields():
    data = {name: value for name, value in _valid_record().items() if name in PERSONAL_FIELDS}
    data["favouriteColour"] = "green"

    result = validate(data, PERSONAL_FIELDS)

    assert result.ok
    assert set(result.record) == set(PERSONAL_FIELDS)


def test_subset_validation_reports_only_subset_errors():
    result = validate({"nationality": "martian"}, ADDITIONAL_FIELDS)

    assert [error.field for error in result.errors] == list(ADDITIONAL_FIELDS)
    assert result.errors[0].message == "Please select a nationality"


def test_subset_with_unknown_field_name_is_a_programming_error():
    with pytest.raises(ValueError):
        validate({}, ["shoeSize"])


def test_non_mapping_input_is_a_validation_error():
    result = validate(["not", "a", "record"])

    assert [(error.field, error.code) for error in result.errors] == [("record", "model_type")]


def test_validate_record_returns_typed_model():
    model = validate_record(_valid_record())

    assert isinstance(model, OnboardingRecord)
    assert model.first_name == "Jane"
    assert model.entered_uk == "1990-01-01"
    assert model.model_dump(by_alias=True)["enteredUK"] == "1990-01-01"


def test_validate_record_raises_with_errors():
    record = _valid_record()
    record["surname"] = ""

    with pytest.raises(FieldValidationError) as exc_info:
        validate_record(record)

    assert [error.field for error in exc_info.value.errors] == ["surname"]
