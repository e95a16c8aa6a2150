from onboarding import catalog


def test_catalog_values_are_unique_and_ordered():
    for name, options in catalog.CATALOGS.items():
        option_values = [option.value for option in options]
        assert len(option_values) == len(set(option_values)), name
        assert catalog.values(name) == frozenset(option_values)


def test_birth_place_shares_country_list():
    assert catalog.options_for("birthPlace") is catalog.COUNTRY_OPTIONS
    assert catalog.COUNTRY_OPTIONS[0].value == "united-kingdom"


def test_free_text_fields_have_no_catalog():
    assert catalog.options_for("firstName") == ()
    assert catalog.values("firstName") == frozenset()


def test_label_lookup_both_ways():
    assert catalog.label_for("title", "dr") == "Dr"
    assert catalog.label_for("title", "unknown") == "unknown"
    assert catalog.value_for_label("tenancyType", "Private rented") == "private-rented"
    assert catalog.value_for_label("tenancyType", "private-rented") == "private-rented"
    assert catalog.value_for_label("tenancyType", "Castle") is None
