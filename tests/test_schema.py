"""
Tests for the JSON Schema → pydantic extraction converter.

Validates:
- Object required/optional semantics
- String pattern and length constraints
- Number vs integer handling, bounds, bool rejection
- Arrays with and without items
- PermissiveType fallback for unknown types
- Top-level schema errors (InvalidSchema)
"""

from __future__ import annotations

import pytest
from pydantic import BaseModel, ValidationError

from stagehand_mcp.exceptions import InvalidSchema
from stagehand_mcp.extraction.schema import (
    PermissiveType,
    ROOT_MODEL_NAME,
    SchemaValidator,
    convert_schema,
    json_schema_to_validator,
)


def _object(properties: dict, required: list | None = None) -> dict:
    schema = {"type": "object", "properties": properties}
    if required is not None:
        schema["required"] = required
    return schema


# ─── Objects ─────────────────────────────────────────────────────────


class TestObjectRequired:
    """Required keys are mandatory only when `required` is non-empty."""

    def test_missing_required_key_fails(self):
        validator = json_schema_to_validator(
            _object({"title": {"type": "string"}, "price": {"type": "number"}}, ["title"])
        )
        assert not validator.is_valid({"price": 9.99})
        with pytest.raises(ValidationError):
            validator.validate({"price": 9.99})

    def test_present_required_key_passes(self):
        validator = json_schema_to_validator(
            _object({"title": {"type": "string"}, "price": {"type": "number"}}, ["title"])
        )
        assert validator.validate({"title": "Example Domain"}) == {"title": "Example Domain"}

    def test_wrongly_typed_required_key_fails(self):
        validator = json_schema_to_validator(_object({"title": {"type": "string"}}, ["title"]))
        assert not validator.is_valid({"title": 42})

    def test_non_required_keys_are_optional(self):
        validator = json_schema_to_validator(
            _object({"a": {"type": "string"}, "b": {"type": "string"}}, ["a"])
        )
        assert validator.is_valid({"a": "x"})

    def test_absent_required_makes_everything_optional(self):
        validator = json_schema_to_validator(
            _object({"a": {"type": "string"}, "b": {"type": "integer"}})
        )
        assert validator.validate({}) == {}
        assert validator.is_valid({"a": "only a"})

    def test_empty_required_makes_everything_optional(self):
        validator = json_schema_to_validator(_object({"a": {"type": "string"}}, []))
        assert validator.is_valid({})

    def test_optional_key_still_type_checked_when_present(self):
        validator = json_schema_to_validator(_object({"a": {"type": "string"}}))
        assert not validator.is_valid({"a": 1})

    def test_keys_keep_original_names(self):
        validator = json_schema_to_validator(
            _object({"search-results": {"type": "array", "items": {"type": "string"}}})
        )
        data = {"search-results": ["one", "two"]}
        assert validator.validate(data) == data

    def test_undeclared_keys_are_kept(self):
        validator = json_schema_to_validator(_object({"a": {"type": "string"}}))
        assert validator.validate({"a": "x", "extra": 1}) == {"a": "x", "extra": 1}

    def test_nested_objects(self):
        validator = json_schema_to_validator(
            _object({
                "results": {
                    "type": "array",
                    "items": _object(
                        {"title": {"type": "string"}, "url": {"type": "string"}},
                        ["title", "url"],
                    ),
                },
            }, ["results"])
        )
        ok = {"results": [{"title": "Example", "url": "https://example.com"}]}
        assert validator.validate(ok) == ok
        assert not validator.is_valid({"results": [{"title": "no url"}]})

    def test_object_root_exposes_model(self):
        validator = json_schema_to_validator(_object({"a": {"type": "string"}}))
        assert isinstance(validator.model, type)
        assert issubclass(validator.model, BaseModel)
        assert validator.model.__name__ == ROOT_MODEL_NAME

    def test_property_description_carried_into_json_schema(self):
        validator = json_schema_to_validator(
            _object({"title": {"type": "string", "description": "Page title"}}, ["title"])
        )
        schema = validator.json_schema()
        assert schema["properties"]["title"]["description"] == "Page title"
        assert schema["required"] == ["title"]

    def test_empty_object_schema_is_valid(self):
        validator = json_schema_to_validator({})
        assert validator.model is None
        assert validator.is_valid({"anything": [1, 2, 3]})


# ─── Strings ─────────────────────────────────────────────────────────


class TestStringConstraints:
    """Pattern and length constraints on string nodes."""

    def test_conforming_string_passes_pattern(self):
        validator = json_schema_to_validator({"type": "string", "pattern": r"^\d{3}-\d{4}$"})
        assert validator.validate("555-1234") == "555-1234"

    def test_non_conforming_string_fails_pattern(self):
        validator = json_schema_to_validator({"type": "string", "pattern": r"^\d{3}-\d{4}$"})
        assert not validator.is_valid("call me")

    def test_pattern_is_searched_not_anchored(self):
        validator = json_schema_to_validator({"type": "string", "pattern": "abc"})
        assert validator.is_valid("xxabcxx")

    def test_invalid_pattern_raises(self):
        with pytest.raises(InvalidSchema):
            json_schema_to_validator({"type": "string", "pattern": "(unclosed"})

    def test_length_bounds(self):
        validator = json_schema_to_validator({"type": "string", "minLength": 2, "maxLength": 4})
        assert validator.is_valid("abc")
        assert not validator.is_valid("a")
        assert not validator.is_valid("abcde")

    def test_numbers_are_not_strings(self):
        validator = json_schema_to_validator({"type": "string"})
        assert not validator.is_valid(123)


# ─── Numbers ─────────────────────────────────────────────────────────


class TestNumbers:
    """number accepts any numeric value; integer only integral ones."""

    def test_number_accepts_fraction(self):
        validator = json_schema_to_validator({"type": "number"})
        assert validator.validate(4.5) == 4.5

    def test_integer_rejects_fraction_number_accepts(self):
        number = json_schema_to_validator({"type": "number"})
        integer = json_schema_to_validator({"type": "integer"})
        assert number.is_valid(2.5)
        assert not integer.is_valid(2.5)

    def test_integer_accepts_whole_values(self):
        validator = json_schema_to_validator({"type": "integer"})
        assert validator.is_valid(7)
        assert validator.is_valid(7.0)

    def test_booleans_are_not_numbers(self):
        assert not json_schema_to_validator({"type": "number"}).is_valid(True)
        assert not json_schema_to_validator({"type": "integer"}).is_valid(False)

    def test_numeric_strings_rejected(self):
        assert not json_schema_to_validator({"type": "number"}).is_valid("4.5")

    def test_bounds(self):
        validator = json_schema_to_validator({"type": "number", "minimum": 0, "maximum": 5})
        assert validator.is_valid(0)
        assert validator.is_valid(5)
        assert not validator.is_valid(-0.1)
        assert not validator.is_valid(5.5)


# ─── Other Types ─────────────────────────────────────────────────────


class TestOtherTypes:

    def test_boolean(self):
        validator = json_schema_to_validator({"type": "boolean"})
        assert validator.is_valid(True)
        assert not validator.is_valid("true")

    def test_null(self):
        validator = json_schema_to_validator({"type": "null"})
        assert validator.is_valid(None)
        assert not validator.is_valid(0)

    def test_array_of_items(self):
        validator = json_schema_to_validator({"type": "array", "items": {"type": "string"}})
        assert validator.is_valid(["a", "b"])
        assert not validator.is_valid(["a", 1])

    def test_array_without_items_accepts_anything(self):
        validator = json_schema_to_validator({"type": "array"})
        assert validator.validate([1, "two", None]) == [1, "two", None]

    def test_array_length_bounds(self):
        validator = json_schema_to_validator(
            {"type": "array", "items": {"type": "integer"}, "minItems": 1, "maxItems": 2}
        )
        assert validator.is_valid([1])
        assert not validator.is_valid([])
        assert not validator.is_valid([1, 2, 3])


class TestPermissiveType:
    """Unknown or missing types degrade to PermissiveType."""

    @pytest.mark.parametrize("node", [
        {"type": "date"},
        {"description": "no type at all"},
        {"type": ["string", "null"]},
        "not a mapping",
        None,
    ])
    def test_unknown_nodes_convert_to_permissive(self, node):
        assert convert_schema(node) is PermissiveType

    def test_unknown_property_type_accepts_any_value(self):
        validator = json_schema_to_validator(_object({"when": {"type": "date"}}, ["when"]))
        assert validator.is_valid({"when": "2025-01-01"})
        assert validator.is_valid({"when": {"year": 2025}})


# ─── Top-level Errors ────────────────────────────────────────────────


class TestInvalidSchema:

    @pytest.mark.parametrize("schema", [None, "object", 42, ["type", "object"]])
    def test_non_mapping_schema_rejected(self, schema):
        with pytest.raises(InvalidSchema, match="Invalid schema"):
            json_schema_to_validator(schema)

    def test_validator_repr(self):
        validator = json_schema_to_validator({"type": "string"})
        assert isinstance(validator, SchemaValidator)
        assert repr(validator) == "SchemaValidator(type='string')"
