"""
ToolResult: the single output contract of every browser tool.

Serialises to the MCP CallToolResult shape:
    {"content": [{"type": "text", "text": "..."}], "isError": false}
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: list[TextContent] = Field(default_factory=list)
    is_error: bool = Field(False, alias="isError")

    @classmethod
    def ok(cls, *texts: str) -> "ToolResult":
        return cls(content=[TextContent(text=text) for text in texts], is_error=False)

    @classmethod
    def error(cls, *texts: str) -> "ToolResult":
        return cls(content=[TextContent(text=text) for text in texts], is_error=True)

    @property
    def texts(self) -> list[str]:
        return [block.text for block in self.content]

    @property
    def text(self) -> str:
        """All content blocks joined by blank lines."""
        return "\n\n".join(self.texts)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
