import math

import pytest

from formstate.errors import ConfigurationError, ErrorCode
from formstate.validation import (
    REQUIRED_MESSAGE,
    MappingCodebook,
    Subject,
    ValidationContext,
    custom,
    different_from,
    email,
    greater_than_variable,
    less_than_variable,
    max_length,
    max_selected,
    max_value,
    min_length,
    min_selected,
    min_value,
    pattern,
    required,
    same_as,
    unique,
)

from conftest import run


def messages(builder, value, form_values=None):
    result = run(builder(form_values or {}).safe_parse(value))
    return [] if result.is_ok() else result.unwrap_err().messages


# ============================================================================
# required
# ============================================================================

@pytest.mark.parametrize("value", [None, "", "   ", math.nan, []])
def test_required_rejects_blank_values(value):
    assert messages(required(), value) == [REQUIRED_MESSAGE]


@pytest.mark.parametrize("value", [0, False, "a", [1], {"x": 1}])
def test_required_accepts_zero_false_and_content(value):
    assert messages(required(), value) == []


def test_required_has_no_hint():
    assert required()({}).hint is None


# ============================================================================
# Length and value bounds
# ============================================================================

def test_min_length():
    build = min_length(3)
    assert messages(build, "ab") == ["Too short. Enter at least 3 characters."]
    assert messages(build, "abc") == []
    assert messages(build, None) == ["Too short. Enter at least 3 characters."]
    assert build({}).hint == "Enter at least 3 characters."


def test_max_length():
    build = max_length(2)
    assert messages(build, "abc") == ["Too long. Enter fewer than 2 characters."]
    assert messages(build, None) == []
    assert build({}).hint == "Enter at most 2 characters."


def test_length_rules_reject_non_text():
    assert messages(min_length(1), 12)


@pytest.mark.parametrize("factory", [min_length, max_length, min_value, max_value, min_selected, max_selected])
def test_bound_factories_require_parameter(factory):
    with pytest.raises(ConfigurationError) as exc_info:
        factory(None)
    assert exc_info.value.code is ErrorCode.E8001_MISSING_PARAMETER


def test_min_value_coerces_text():
    build = min_value(5)
    assert messages(build, "4") == ["Too small. Value must be at least 5."]
    assert messages(build, "5") == []
    assert messages(build, 10) == []
    assert messages(build, None) == ["Too small. Value must be at least 5."]
    assert build({}).hint == "Enter a value greater than or equal to 5."


def test_max_value_coerces_text():
    build = max_value(5)
    assert messages(build, "6") == ["Too large. Value must be at most 5."]
    assert messages(build, 5) == []
    assert messages(build, None) == []
    assert build({}).hint == "Enter a value less than or equal to 5."


@pytest.mark.parametrize("blank", ["", "  "])
def test_value_bounds_read_cleared_input_as_zero(blank):
    assert messages(max_value(10), blank) == []
    assert messages(min_value(-5), blank) == []
    assert messages(min_value(1), blank) == ["Too small. Value must be at least 1."]
    assert messages(max_value(-1), blank) == ["Too large. Value must be at most -1."]


def test_min_value_zero_is_a_valid_parameter():
    assert messages(min_value(0), -1) == ["Too small. Value must be at least 0."]


def test_selection_bounds_pluralize():
    assert messages(min_selected(1), []) == ["Too few selected. Select at least 1 option."]
    assert messages(min_selected(2), ["a"]) == ["Too few selected. Select at least 2 options."]
    assert messages(max_selected(1), ["a", "b"]) == ["Too many selected. Select a maximum of 1 option."]
    assert messages(max_selected(3), ["a", "b"]) == []
    assert min_selected(2)({}).hint == "Select at least 2 options."
    assert max_selected(1)({}).hint == "Select a maximum of 1 option."


def test_selection_prefaults():
    assert messages(min_selected(1), None) == ["Too few selected. Select at least 1 option."]
    assert messages(max_selected(2), None) == []


# ============================================================================
# Format
# ============================================================================

def test_pattern_matches_anywhere():
    build = pattern({"regex": r"\d{3}", "error_message": "Need three digits.", "hint": "Three digits."})
    assert messages(build, "ab123") == []
    assert messages(build, "ab12") == ["Need three digits."]
    assert build({}).hint == "Three digits."


@pytest.mark.parametrize("parameter", [{"hint": "h"}, {"regex": "a"}, None])
def test_pattern_requires_regex_and_hint(parameter):
    with pytest.raises(ConfigurationError):
        pattern(parameter)


def test_email():
    build = email()
    assert messages(build, "someone@example.org") == []
    assert messages(build, "someone@") == ["Enter a valid email address."]
    assert messages(build, None) == ["Enter a valid email address."]
    assert build({}).hint == "Must be a valid email address."


# ============================================================================
# unique
# ============================================================================

def network_context(entities, entity="node", current_id="n1"):
    return ValidationContext(subject=Subject(entity=entity, type="person", current_entity_id=current_id),
        network=lambda: entities)


ENTITIES = [
    {"uid": "n1", "type": "person", "attributes": {"name": "Ada"}},
    {"uid": "n2", "type": "person", "attributes": {"name": "Grace"}},
    {"uid": "n3", "type": "place", "attributes": {"name": "Alan"}},
]


def test_unique_compares_same_type_peers_excluding_current():
    build = unique("name", network_context(ENTITIES))
    assert messages(build, "Grace") == ["This value is used elsewhere. It must be unique."]
    assert messages(build, "Ada") == []
    assert messages(build, "Alan") == []
    assert build({}).hint == "Must be unique."


def test_unique_supports_async_network_query():
    async def query():
        return ENTITIES

    context = ValidationContext(subject=Subject(entity="edge", type="person"), network=query)
    assert messages(unique("name", context), "Ada") == ["This value is used elsewhere. It must be unique."]


def test_unique_configuration_errors():
    with pytest.raises(ConfigurationError):
        unique("name", None)
    with pytest.raises(ConfigurationError) as exc_info:
        unique("name", network_context(ENTITIES, entity="ego"))
    assert exc_info.value.code is ErrorCode.E8003_UNSUPPORTED_ENTITY
    with pytest.raises(ConfigurationError):
        unique(None, network_context(ENTITIES))


# ============================================================================
# Cross-field
# ============================================================================

def test_same_as_and_different_from_use_form_values():
    assert messages(same_as("password"), "abc", {"password": "abc"}) == []
    assert messages(same_as("password"), "abd", {"password": "abc"}) == [
        "Your answer must be the same as 'password'."]
    assert messages(different_from("first"), "x", {"first": "x"}) == [
        "Your answer must be different from 'first'."]
    assert messages(different_from("first"), "y", {"first": "x"}) == []


def test_cross_field_rules_only_fire_when_attribute_present():
    assert messages(same_as("other"), "abc", {}) == []
    assert messages(greater_than_variable({"attribute": "age", "type": "number"}), 1, {}) == []


def test_cross_field_display_name_from_codebook():
    codebook = MappingCodebook({"dob": {"name": "Date of birth", "type": "datetime"}})
    context = ValidationContext(codebook=codebook)
    build = greater_than_variable({"attribute": "dob", "type": "datetime"}, context)
    assert build({}).hint == "Must be greater than the value of 'Date of birth'."
    assert messages(build, "2020-01-01", {"dob": "2021-01-01"}) == [
        "Your answer must be greater than the value of 'Date of birth'."]
    with pytest.raises(ConfigurationError) as exc_info:
        same_as("missing", context)
    assert exc_info.value.code is ErrorCode.E8004_UNKNOWN_VARIABLE


def test_greater_and_less_than_variable_with_numeric_coercion():
    greater = greater_than_variable({"attribute": "low", "type": "number"})
    less = less_than_variable({"attribute": "high", "type": "number"})
    assert messages(greater, "3", {"low": 5}) == ["Your answer must be greater than the value of 'low'."]
    assert messages(greater, "7", {"low": 5}) == []
    assert messages(less, 10, {"high": "9"}) == ["Your answer must be less than the value of 'high'."]
    assert messages(less, 9, {"high": "9"}) == []
    assert less({}).hint == "Must be less than the value of 'high'."


def test_variable_comparison_requires_attribute_and_type():
    with pytest.raises(ConfigurationError):
        greater_than_variable({"attribute": "a"})
    with pytest.raises(ConfigurationError):
        less_than_variable({"type": "number"})


def test_custom_accepts_schema_types():
    entry = custom(int, hint="Whole number.")
    assert entry["hint"] == "Whole number."
    assert run(entry["schema"].safe_parse("12")).unwrap() == 12
    with pytest.raises(ConfigurationError):
        custom(None)
