"""LLM abstraction layer for Anthropic Claude models."""

from dataclasses import dataclass
from typing import Any, Literal, Optional, Protocol, Union

import anthropic
from anthropic import AsyncAnthropic

from sandcrew.constants import DEFAULT_REQUEST_TIMEOUT, SUPPORTED_MODELS
from sandcrew.errors import ExternalServiceError
from sandcrew.messages import (
    AssistantMessage,
    ToolCallMessage,
    ToolResultMessage,
    UserMessage,
)


@dataclass
class ModelDescriptor:
    """Descriptor for an LLM model."""

    provider: Literal["anthropic"]
    name: str
    max_output_tokens: int
    temperature: float = 0.7


@dataclass(frozen=True)
class TextBlock:
    text: str


@dataclass(frozen=True)
class ToolUseBlock:
    id: str
    name: str
    input: dict[str, Any]


ContentBlock = Union[TextBlock, ToolUseBlock]


class CompletionClient(Protocol):
    """Anything that can turn a conversation into content blocks."""

    async def complete(
        self,
        system: str,
        messages: list[dict[str, Any]],
        tools: list[dict],
    ) -> list[ContentBlock]: ...


class LLM:
    """Anthropic Claude LLM interface."""

    def __init__(
        self,
        descriptor: ModelDescriptor,
        api_key: str,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        """Initialize LLM client.

        Args:
            descriptor: Model descriptor
            api_key: Anthropic API key
            timeout: Request timeout in seconds
        """
        self.descriptor = descriptor
        self.api_key = api_key

        if descriptor.provider != "anthropic":
            raise ValueError(f"Only Anthropic models are supported. Got: {descriptor.provider}")

        self.client = AsyncAnthropic(api_key=api_key, timeout=timeout)

    async def complete(
        self,
        system: str,
        messages: list[dict[str, Any]],
        tools: list[dict],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> list[ContentBlock]:
        """Generate a completion.

        Args:
            system: System prompt
            messages: Wire-format messages (see to_wire_messages)
            tools: Tool definitions in Anthropic format (may be empty)
            temperature: Optional temperature override
            max_tokens: Optional max tokens override

        Returns:
            Text and tool-use blocks in response order

        Raises:
            ExternalServiceError: If the API call fails
        """
        kwargs: dict[str, Any] = {
            "model": self.descriptor.name,
            "messages": messages,
            "temperature": temperature if temperature is not None else self.descriptor.temperature,
            "max_tokens": max_tokens if max_tokens is not None else self.descriptor.max_output_tokens,
        }

        if system:
            # The system prompt is stable across calls in a turn, so cache it
            kwargs["system"] = [
                {"type": "text", "text": system, "cache_control": {"type": "ephemeral"}}
            ]

        if tools:
            kwargs["tools"] = tools

        try:
            response = await self.client.messages.create(**kwargs)
        except anthropic.APIStatusError as e:
            raise ExternalServiceError(f"Anthropic API error: {e.message}", status_code=e.status_code)
        except anthropic.APIError as e:
            raise ExternalServiceError(f"Anthropic API error: {e}")

        blocks: list[ContentBlock] = []
        for block in response.content:
            if block.type == "text":
                blocks.append(TextBlock(text=block.text))
            elif block.type == "tool_use":
                blocks.append(ToolUseBlock(id=block.id, name=block.name, input=dict(block.input)))
        return blocks

    @classmethod
    def parse_model_string(cls, model_str: str) -> ModelDescriptor:
        """Parse model string into ModelDescriptor.

        Args:
            model_str: Model string (e.g., "anthropic:claude-sonnet-4-5")

        Returns:
            ModelDescriptor

        Raises:
            ValueError: If model string is invalid
        """
        if model_str not in SUPPORTED_MODELS:
            raise ValueError(
                f"Unsupported model: {model_str}. "
                f"Supported: {', '.join(SUPPORTED_MODELS.keys())}"
            )

        model_config = SUPPORTED_MODELS[model_str]
        return ModelDescriptor(
            provider=model_config["provider"],
            name=model_config["name"],
            max_output_tokens=model_config["max_output_tokens"],
        )

    @classmethod
    def list_models(cls) -> list[str]:
        """List all supported model strings.

        Returns:
            List of model strings
        """
        return list(SUPPORTED_MODELS.keys())


def to_wire_messages(log: list) -> list[dict[str, Any]]:
    """Translate the conversation log into Anthropic messages.

    Tool calls without a recorded result are left out, as are results whose
    call is missing. Leading assistant messages are dropped since the
    conversation must open with the user. Adjacent entries with the same
    role are merged into one block list.

    Args:
        log: Conversation messages in order

    Returns:
        List of {"role", "content"} dicts
    """
    answered = {m.tool_call_id for m in log if isinstance(m, ToolResultMessage)}
    emitted_calls: set[str] = set()

    entries: list[tuple[str, dict[str, Any]]] = []
    for message in log:
        if isinstance(message, UserMessage):
            entries.append(("user", {"type": "text", "text": message.content}))
        elif isinstance(message, AssistantMessage):
            if message.content:
                entries.append(("assistant", {"type": "text", "text": message.content}))
        elif isinstance(message, ToolCallMessage):
            call = message.tool_call
            if call.id not in answered:
                continue
            emitted_calls.add(call.id)
            entries.append(
                ("assistant", {"type": "tool_use", "id": call.id, "name": call.name, "input": call.arguments})
            )
        elif isinstance(message, ToolResultMessage):
            if message.tool_call_id not in emitted_calls:
                continue
            entries.append(
                (
                    "user",
                    {
                        "type": "tool_result",
                        "tool_use_id": message.tool_call_id,
                        "content": message.result.to_wire(),
                    },
                )
            )

    while entries and entries[0][0] == "assistant":
        entries.pop(0)

    wire: list[dict[str, Any]] = []
    for role, block in entries:
        if wire and wire[-1]["role"] == role:
            wire[-1]["content"].append(block)
        else:
            wire.append({"role": role, "content": [block]})

    # Plain single-text messages go out as strings
    for message in wire:
        blocks = message["content"]
        if len(blocks) == 1 and blocks[0]["type"] == "text":
            message["content"] = blocks[0]["text"]

    return wire
