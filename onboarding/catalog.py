from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType


@dataclass(frozen=True)
class Option:
    value: str
    label: str


TITLE_OPTIONS: tuple[Option, ...] = (
    Option("mr", "Mr"),
    Option("mrs", "Mrs"),
    Option("miss", "Miss"),
    Option("ms", "Ms"),
    Option("mx", "Mx"),
    Option("dr", "Dr"),
)

GENDER_OPTIONS: tuple[Option, ...] = (
    Option("male", "Male"),
    Option("female", "Female"),
    Option("non-binary", "Non-binary"),
    Option("prefer-not-to-say", "Prefer not to say"),
)

MARITAL_STATUS_OPTIONS: tuple[Option, ...] = (
    Option("single", "Single"),
    Option("married", "Married"),
    Option("civil-partnership", "Civil partnership"),
    Option("separated", "Separated"),
    Option("divorced", "Divorced"),
    Option("widowed", "Widowed"),
)

COUNTRY_OPTIONS: tuple[Option, ...] = (
    Option("united-kingdom", "United Kingdom"),
    Option("ireland", "Ireland"),
    Option("afghanistan", "Afghanistan"),
    Option("eritrea", "Eritrea"),
    Option("india", "India"),
    Option("iran", "Iran"),
    Option("iraq", "Iraq"),
    Option("nigeria", "Nigeria"),
    Option("pakistan", "Pakistan"),
    Option("poland", "Poland"),
    Option("romania", "Romania"),
    Option("somalia", "Somalia"),
    Option("sudan", "Sudan"),
    Option("syria", "Syria"),
    Option("ukraine", "Ukraine"),
    Option("other", "Other"),
)

NATIONALITY_OPTIONS: tuple[Option, ...] = (
    Option("british", "British"),
    Option("irish", "Irish"),
    Option("afghan", "Afghan"),
    Option("eritrean", "Eritrean"),
    Option("indian", "Indian"),
    Option("iranian", "Iranian"),
    Option("iraqi", "Iraqi"),
    Option("nigerian", "Nigerian"),
    Option("pakistani", "Pakistani"),
    Option("polish", "Polish"),
    Option("romanian", "Romanian"),
    Option("somali", "Somali"),
    Option("sudanese", "Sudanese"),
    Option("syrian", "Syrian"),
    Option("ukrainian", "Ukrainian"),
    Option("other", "Other"),
)

IMMIGRATION_STATUS_OPTIONS: tuple[Option, ...] = (
    Option("british-citizen", "British citizen"),
    Option("settled-status", "EU settled status"),
    Option("pre-settled-status", "EU pre-settled status"),
    Option("indefinite-leave-to-remain", "Indefinite leave to remain"),
    Option("limited-leave-to-remain", "Limited leave to remain"),
    Option("refugee-status", "Refugee status"),
    Option("humanitarian-protection", "Humanitarian protection"),
    Option("asylum-seeker", "Asylum seeker"),
    Option("no-recourse-to-public-funds", "No recourse to public funds"),
    Option("other", "Other"),
)

TENANCY_TYPE_OPTIONS: tuple[Option, ...] = (
    Option("council", "Council tenancy"),
    Option("housing-association", "Housing association"),
    Option("private-rented", "Private rented"),
    Option("owner-occupier", "Owner occupier"),
    Option("temporary-accommodation", "Temporary accommodation"),
    Option("supported-housing", "Supported housing"),
    Option("living-with-family-or-friends", "Living with family or friends"),
    Option("no-fixed-abode", "No fixed abode"),
)

# Field name -> catalog. birthPlace shares the country list.
CATALOGS: MappingProxyType[str, tuple[Option, ...]] = MappingProxyType(
    {
        "title": TITLE_OPTIONS,
        "gender": GENDER_OPTIONS,
        "maritalStatus": MARITAL_STATUS_OPTIONS,
        "birthPlace": COUNTRY_OPTIONS,
        "country": COUNTRY_OPTIONS,
        "nationality": NATIONALITY_OPTIONS,
        "immigrationStatus": IMMIGRATION_STATUS_OPTIONS,
        "tenancyType": TENANCY_TYPE_OPTIONS,
    }
)

_VALUE_SETS: MappingProxyType[str, frozenset[str]] = MappingProxyType(
    {name: frozenset(option.value for option in options) for name, options in CATALOGS.items()}
)


def options_for(field: str) -> tuple[Option, ...]:
    return CATALOGS.get(field, ())


def values(field: str) -> frozenset[str]:
    """Permitted values of a categorical field, empty for free-text fields."""
    return _VALUE_SETS.get(field, frozenset())


def label_for(field: str, value: str) -> str:
    for option in options_for(field):
        if option.value == value:
            return option.label
    return value


def value_for_label(field: str, label: str) -> str | None:
    for option in options_for(field):
        if option.label == label or option.value == label:
            return option.value
    return None
