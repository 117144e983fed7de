"""Conversation message and tool result models."""

import uuid
from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_id() -> str:
    """Generate a unique message id."""
    return uuid.uuid4().hex[:12]


class ToolResult(BaseModel):
    """Envelope returned by every tool.

    Tool-specific fields (old_content, line_range, results, ...) are kept
    as extra attributes.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    status: Literal["success", "error"]
    message: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, message: str, **fields: Any) -> "ToolResult":
        return cls(status="success", message=message, **fields)

    @classmethod
    def failure(cls, error: str, **fields: Any) -> "ToolResult":
        return cls(status="error", error=error, **fields)

    @property
    def ok(self) -> bool:
        return self.status == "success"

    def to_wire(self) -> str:
        """Serialize for a tool_result content block."""
        return self.model_dump_json(exclude_none=True)


class ToolCall(BaseModel):
    """A tool invocation requested by the model."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class _BaseMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=generate_id)
    timestamp: datetime = Field(default_factory=_utcnow)


class UserMessage(_BaseMessage):
    type: Literal["user_message"] = "user_message"
    content: str


class AssistantMessage(_BaseMessage):
    type: Literal["assistant_message"] = "assistant_message"
    content: str


class ToolCallMessage(_BaseMessage):
    type: Literal["tool_call"] = "tool_call"
    tool_call: ToolCall


class ToolResultMessage(_BaseMessage):
    type: Literal["tool_result"] = "tool_result"
    tool_call_id: str
    result: ToolResult


Message = Annotated[
    Union[UserMessage, AssistantMessage, ToolCallMessage, ToolResultMessage],
    Field(discriminator="type"),
]

MessageList = TypeAdapter(list[Message])


def dump_messages(messages: list) -> str:
    """Serialize messages to a JSON array with ISO-8601 timestamps."""
    return MessageList.dump_json(messages, indent=2).decode("utf-8")


def load_messages(data: str) -> list:
    """Parse a JSON array produced by dump_messages.

    Raises:
        pydantic.ValidationError: If the data is malformed
    """
    return MessageList.validate_json(data)
