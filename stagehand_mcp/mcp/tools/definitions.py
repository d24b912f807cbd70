"""
Static definitions of the five browser tools.

Each tool has a pydantic argument model. The model validates incoming
arguments in the dispatcher and also produces the input schema advertised
to MCP clients, so both always agree.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# ─── Argument Models ─────────────────────────────────────────────────


class _ToolArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class NavigateArgs(_ToolArgs):
    url: str = Field(..., description="The URL to navigate to")


class ActArgs(_ToolArgs):
    action: str = Field(..., description="The action to perform")
    variables: Optional[dict[str, Any]] = Field(
        None,
        description="Variables used in the action template",
    )


class ExtractArgs(_ToolArgs):
    instruction: str = Field(
        ...,
        description="Clear instruction for what data to extract from the page",
    )
    # Left untyped so that a null or non-object schema reaches the
    # schema converter and is reported as an invalid schema.
    extraction_schema: Any = Field(
        ...,
        alias="schema",
        description="A JSON Schema object defining the structure of data to extract",
        json_schema_extra={"type": "object", "additionalProperties": True},
    )


class ObserveArgs(_ToolArgs):
    instruction: str = Field(..., description="Instruction for observation")


class ScreenshotArgs(_ToolArgs):
    name: str = Field(
        ...,
        description="Name for the screenshot file (will be sanitized)",
    )
    selector: Optional[str] = Field(
        None,
        description="Optional CSS or XPath selector to capture a specific element",
    )
    full_page: bool = Field(
        True,
        alias="fullPage",
        description="Whether to take full page screenshot (default: true)",
    )


# ─── Tool Definitions ────────────────────────────────────────────────


EXTRACT_SCHEMA_GUIDE = """\
**Instructions for providing the schema:**

- The `schema` should be a valid JSON Schema object that defines the structure of the data to extract.
- Use standard JSON Schema syntax.
- The server converts the JSON Schema to a pydantic model internally.

**Example schemas:**

1. **Extracting a list of search result titles:**

```json
{
  "type": "object",
  "properties": {
    "searchResults": {
      "type": "array",
      "items": {
        "type": "string",
        "description": "Title of a search result"
      }
    }
  },
  "required": ["searchResults"]
}
```

2. **Extracting product details:**

```json
{
  "type": "object",
  "properties": {
    "name": { "type": "string" },
    "price": { "type": "string" },
    "rating": { "type": "number" },
    "reviews": {
      "type": "array",
      "items": { "type": "string" }
    }
  },
  "required": ["name", "price", "rating", "reviews"]
}
```

**Example usage:**

- **Instruction**: "Extract the titles and URLs of the main search results, excluding any ads."
- **Schema**:
  ```json
  {
    "type": "object",
    "properties": {
      "results": {
        "type": "array",
        "items": {
          "type": "object",
          "properties": {
            "title": { "type": "string", "description": "The title of the search result" },
            "url": { "type": "string", "description": "The URL of the search result" }
          },
          "required": ["title", "url"]
        }
      }
    },
    "required": ["results"]
  }
  ```

**Note:**

- Ensure the schema is valid JSON.
- Use standard JSON Schema types like `string`, `number`, `array`, `object`, etc.
- Properties not listed in `required` are optional. Without `required`, every property is optional.
- You can add descriptions to help clarify the expected data.
"""


class ToolDefinition(BaseModel):
    """One tool as advertised to MCP clients."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    args_model: type[_ToolArgs]

    @property
    def input_schema(self) -> dict[str, Any]:
        schema = self.args_model.model_json_schema(by_alias=True)
        schema.pop("title", None)
        return schema

    @property
    def required(self) -> list[str]:
        return list(self.input_schema.get("required", []))


TOOL_DEFINITIONS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="navigate",
        description="Navigate to a URL in the browser",
        args_model=NavigateArgs,
    ),
    ToolDefinition(
        name="screenshot",
        description="Takes a screenshot of the current page or a specific element",
        args_model=ScreenshotArgs,
    ),
    ToolDefinition(
        name="act",
        description="Performs an action on the web page",
        args_model=ActArgs,
    ),
    ToolDefinition(
        name="extract",
        description=(
            "Extracts structured data from the web page based on an instruction "
            "and a JSON schema.\n\n" + EXTRACT_SCHEMA_GUIDE
        ),
        args_model=ExtractArgs,
    ),
    ToolDefinition(
        name="observe",
        description="Observes actions that can be performed on the web page",
        args_model=ObserveArgs,
    ),
)

TOOLS_BY_NAME: dict[str, ToolDefinition] = {tool.name: tool for tool in TOOL_DEFINITIONS}


def get_tool_definition(name: str) -> Optional[ToolDefinition]:
    return TOOLS_BY_NAME.get(name)
