"""Transcript messages and the tool call requests carried by assistant turns."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from ecppbridge.errors import ParseError

Role = Literal["system", "user", "assistant", "tool"]


class ToolCallRequest(BaseModel):
    """A tool invocation requested by the model."""

    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)
    call_id: Optional[str] = None  # only OpenAI-style providers assign ids

    @classmethod
    def from_wire(cls, raw: Dict[str, Any]) -> "ToolCallRequest":
        """
        Parse one ``tool_calls`` entry: ``{"id"?, "function": {"name", "arguments"}}``.

        Arguments may be an object (Ollama) or a JSON-encoded string (OpenAI).
        """
        function = raw.get("function") or {}
        name = function.get("name")
        if not name:
            raise ParseError(f"Tool call without a function name: {raw!r}")

        arguments = function.get("arguments")
        if arguments is None or arguments == "":
            arguments = {}
        elif isinstance(arguments, str):
            try:
                arguments = json.loads(arguments)
            except ValueError as exc:
                raise ParseError(
                    f"Tool call arguments for {name} are not JSON: {exc}", raw=function["arguments"]
                )
        if not isinstance(arguments, dict):
            raise ParseError(f"Tool call arguments for {name} must be an object")

        return cls(name=name, arguments=arguments, call_id=raw.get("id"))


class Message(BaseModel):
    """One transcript entry."""

    role: Role
    content: str = ""
    tool_calls: List[ToolCallRequest] = Field(default_factory=list)
    name: Optional[str] = None  # originating tool, for tool messages
    tool_call_id: Optional[str] = None

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role="user", content=content)

    @classmethod
    def tool(cls, name: str, content: str, call_id: Optional[str] = None) -> "Message":
        return cls(role="tool", name=name, content=content, tool_call_id=call_id)

    @classmethod
    def assistant_from_wire(cls, raw: Dict[str, Any]) -> "Message":
        """Parse the assistant message of a chat response."""
        tool_calls = [ToolCallRequest.from_wire(call) for call in raw.get("tool_calls") or []]
        return cls(role="assistant", content=raw.get("content") or "", tool_calls=tool_calls)

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)
