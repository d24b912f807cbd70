"""
Structured extraction contracts.

Converts the JSON Schema subset accepted by the ``extract`` tool into
pydantic validators handed to Stagehand.
"""

from stagehand_mcp.extraction.schema import (
    PermissiveType,
    SchemaValidator,
    convert_schema,
    json_schema_to_validator,
)

__all__ = [
    "PermissiveType",
    "SchemaValidator",
    "convert_schema",
    "json_schema_to_validator",
]
