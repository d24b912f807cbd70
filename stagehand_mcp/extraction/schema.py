"""
JSON Schema → pydantic conversion for structured extraction.

The ``extract`` tool receives a plain JSON Schema describing the data to
pull out of the page. Stagehand needs a pydantic model, so this module
converts the supported subset into pydantic annotations:

    string   → StrictStr (+ pattern, minLength, maxLength)
    number   → int | float (+ minimum, maximum), bools rejected
    integer  → number that must be integral
    boolean  → StrictBool
    null     → None
    array    → list[items] (+ minItems, maxItems), list[Any] without items
    object   → create_model(...) with one aliased field per property
    other    → PermissiveType (accept anything)

Object properties listed in a non-empty ``required`` array are mandatory,
every other property is optional. Without ``required`` (or with an empty
one) every property is optional. Undeclared keys are kept as-is.

This is not a JSON Schema validator: $ref, anyOf, enum, formats and
additionalProperties are not interpreted.

Usage:
    from stagehand_mcp.extraction.schema import json_schema_to_validator

    validator = json_schema_to_validator({
        "type": "object",
        "properties": {"title": {"type": "string"}},
        "required": ["title"],
    })
    validator.validate({"title": "Example Domain"})
    await page.extract(instruction="...", schema=validator.model)
"""

from __future__ import annotations

import re
from typing import Annotated, Any, Callable, Mapping, Optional, Union

from pydantic import (
    AfterValidator,
    BeforeValidator,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    TypeAdapter,
    ValidationError,
    create_model,
)

from stagehand_mcp.exceptions import InvalidSchema

#: Annotation used for nodes with a missing or unrecognised ``type``.
PermissiveType = Any

ROOT_MODEL_NAME = "Extraction"

_OBJECT_CONFIG = ConfigDict(extra="allow")

_Number = Union[StrictInt, StrictFloat]


# ─── Constraint Validators ───────────────────────────────────────────


def _reject_bool(value: Any) -> Any:
    if isinstance(value, bool):
        raise ValueError("Expected number, received boolean")
    return value


def _pattern_validator(pattern: str) -> Callable[[str], str]:
    try:
        compiled = re.compile(pattern)
    except re.error as e:
        raise InvalidSchema(f"Invalid pattern {pattern!r}: {e}") from e

    def check(value: str) -> str:
        if compiled.search(value) is None:
            raise ValueError(f"String does not match pattern {pattern!r}")
        return value

    return check


def _number_validator(
    minimum: Optional[float],
    maximum: Optional[float],
    integral: bool,
) -> Callable[[Any], Any]:
    def check(value: Any) -> Any:
        if integral and isinstance(value, float) and not value.is_integer():
            raise ValueError("Expected integer, received float")
        if minimum is not None and value < minimum:
            raise ValueError(f"Number must be greater than or equal to {minimum}")
        if maximum is not None and value > maximum:
            raise ValueError(f"Number must be less than or equal to {maximum}")
        return value

    return check


def _length_field(min_length: Any, max_length: Any) -> Optional[Any]:
    kwargs = {}
    if isinstance(min_length, int) and not isinstance(min_length, bool):
        kwargs["min_length"] = min_length
    if isinstance(max_length, int) and not isinstance(max_length, bool):
        kwargs["max_length"] = max_length
    return Field(**kwargs) if kwargs else None


def _bound(node: Mapping[str, Any], key: str) -> Optional[float]:
    value = node.get(key)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return None


# ─── Per-type Converters ─────────────────────────────────────────────


def _string(node: Mapping[str, Any]) -> Any:
    metadata: list[Any] = []
    length = _length_field(node.get("minLength"), node.get("maxLength"))
    if length is not None:
        metadata.append(length)
    pattern = node.get("pattern")
    if isinstance(pattern, str) and pattern:
        metadata.append(Field(json_schema_extra={"pattern": pattern}))
        metadata.append(AfterValidator(_pattern_validator(pattern)))
    if not metadata:
        return StrictStr
    return Annotated[(StrictStr, *metadata)]


def _number(node: Mapping[str, Any], integral: bool) -> Any:
    check = _number_validator(_bound(node, "minimum"), _bound(node, "maximum"), integral)
    return Annotated[_Number, BeforeValidator(_reject_bool), AfterValidator(check)]


def _array(node: Mapping[str, Any], name: str) -> Any:
    items = node.get("items")
    if not items:
        return list[Any]

    item_type = convert_schema(items, _name=f"{name}_item")
    length = _length_field(node.get("minItems"), node.get("maxItems"))
    if length is None:
        return list[item_type]
    return Annotated[list[item_type], length]


def _object(node: Mapping[str, Any], name: str) -> Any:
    properties = node.get("properties")
    if not isinstance(properties, Mapping):
        properties = {}

    required = node.get("required")
    required_keys: Optional[set[str]] = None
    if isinstance(required, list) and required:
        required_keys = {key for key in required if isinstance(key, str)}

    fields: dict[str, Any] = {}
    for index, (key, prop) in enumerate(properties.items()):
        key = str(key)
        annotation = convert_schema(prop, _name=f"{name}_{_slug(key)}")

        field_kwargs: dict[str, Any] = {"alias": key}
        description = prop.get("description") if isinstance(prop, Mapping) else None
        if isinstance(description, str):
            field_kwargs["description"] = description

        # Property keys are arbitrary JSON strings; the Python field name is
        # generated and the original key lives in the alias.
        if required_keys is not None and key in required_keys:
            fields[f"field_{index}"] = (annotation, Field(..., **field_kwargs))
        else:
            fields[f"field_{index}"] = (annotation, Field(None, **field_kwargs))

    return create_model(name, __config__=_OBJECT_CONFIG, **fields)


def _slug(key: str) -> str:
    return re.sub(r"\W+", "_", key).strip("_") or "field"


# ─── Public API ──────────────────────────────────────────────────────


def convert_schema(node: Any, *, _name: str = ROOT_MODEL_NAME) -> Any:
    """
    Convert one schema node into a pydantic annotation.

    Never raises for unknown or malformed nested nodes: they degrade to
    PermissiveType. Only an uncompilable ``pattern`` raises InvalidSchema.
    """
    if not isinstance(node, Mapping):
        return PermissiveType

    schema_type = node.get("type")
    if schema_type == "string":
        return _string(node)
    if schema_type == "number":
        return _number(node, integral=False)
    if schema_type == "integer":
        return _number(node, integral=True)
    if schema_type == "boolean":
        return StrictBool
    if schema_type == "null":
        return None
    if schema_type == "array":
        return _array(node, _name)
    if schema_type == "object":
        return _object(node, _name)
    return PermissiveType


class SchemaValidator:
    """
    Validator derived from an extraction schema.

    Stateless and cheap to build; one is created per ``extract`` call.

    Attributes:
        annotation: The pydantic annotation built from the schema.
        model: The pydantic model class when the root schema is an
            object, else None. This is what Stagehand receives.
        source: The original JSON Schema.
    """

    def __init__(self, annotation: Any, source: Mapping[str, Any]):
        self.annotation = annotation
        self.source = source
        self.model = annotation if source.get("type") == "object" else None
        self._adapter = TypeAdapter(annotation)

    def validate(self, data: Any) -> Any:
        """
        Validate data and return it as plain JSON-compatible Python.

        Keys keep their original (aliased) names. Optional properties that
        were absent from the input stay absent.

        Raises:
            pydantic.ValidationError: If the data does not conform.
        """
        value = self._adapter.validate_python(data)
        return self._adapter.dump_python(
            value, mode="json", by_alias=True, exclude_unset=True
        )

    def is_valid(self, data: Any) -> bool:
        try:
            self.validate(data)
        except ValidationError:
            return False
        return True

    def json_schema(self) -> dict[str, Any]:
        """The JSON Schema pydantic derives back from the annotation."""
        return self._adapter.json_schema(by_alias=True)

    def __repr__(self) -> str:
        return f"SchemaValidator(type={self.source.get('type')!r})"


def json_schema_to_validator(schema: Any) -> SchemaValidator:
    """
    Build a SchemaValidator from a JSON Schema document.

    Args:
        schema: The JSON Schema (a mapping).

    Returns:
        SchemaValidator wrapping the converted annotation.

    Raises:
        InvalidSchema: If schema is missing or not a mapping, or if a
            ``pattern`` does not compile.
    """
    if not isinstance(schema, Mapping):
        raise InvalidSchema("Invalid schema")

    return SchemaValidator(convert_schema(schema), schema)
