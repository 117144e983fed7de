"""Tests for the model layer and wire-format translation."""

import pytest

from sandcrew.constants import DEFAULT_MODEL
from sandcrew.conversation import greeting
from sandcrew.llm import LLM, to_wire_messages
from sandcrew.messages import (
    AssistantMessage,
    ToolCall,
    ToolCallMessage,
    ToolResult,
    ToolResultMessage,
    UserMessage,
)


def test_parse_model_string():
    descriptor = LLM.parse_model_string(DEFAULT_MODEL)

    assert descriptor.provider == "anthropic"
    assert descriptor.name.startswith("claude-")
    assert descriptor.max_output_tokens > 0


def test_parse_unknown_model():
    with pytest.raises(ValueError, match="Unsupported model"):
        LLM.parse_model_string("openai:gpt-4")


def test_list_models_contains_default():
    assert DEFAULT_MODEL in LLM.list_models()


def test_leading_greeting_is_dropped():
    wire = to_wire_messages([greeting(), UserMessage(content="hi")])

    assert wire == [{"role": "user", "content": "hi"}]


def test_answered_tool_call_round_trip():
    log = [
        UserMessage(content="list files"),
        AssistantMessage(content="Looking."),
        ToolCallMessage(tool_call=ToolCall(id="c1", name="list_dir", arguments={"relative_workspace_path": "/"})),
        ToolResultMessage(tool_call_id="c1", result=ToolResult.success("ok", files=["a.js"])),
        AssistantMessage(content="One file."),
    ]

    wire = to_wire_messages(log)

    assert [m["role"] for m in wire] == ["user", "assistant", "user", "assistant"]
    assert wire[1]["content"] == [
        {"type": "text", "text": "Looking."},
        {"type": "tool_use", "id": "c1", "name": "list_dir", "input": {"relative_workspace_path": "/"}},
    ]
    result_block = wire[2]["content"][0]
    assert result_block["type"] == "tool_result"
    assert result_block["tool_use_id"] == "c1"
    assert '"files":["a.js"]' in result_block["content"]
    assert wire[3]["content"] == "One file."


def test_unanswered_tool_call_is_omitted():
    log = [
        UserMessage(content="go"),
        ToolCallMessage(tool_call=ToolCall(id="c1", name="list_dir")),
        AssistantMessage(content="Interrupted."),
    ]

    wire = to_wire_messages(log)

    assert wire == [
        {"role": "user", "content": "go"},
        {"role": "assistant", "content": "Interrupted."},
    ]


def test_orphan_result_is_omitted():
    log = [
        UserMessage(content="go"),
        ToolResultMessage(tool_call_id="ghost", result=ToolResult.failure("lost")),
    ]

    assert to_wire_messages(log) == [{"role": "user", "content": "go"}]


def test_empty_assistant_text_is_skipped():
    log = [UserMessage(content="a"), AssistantMessage(content=""), UserMessage(content="b")]

    wire = to_wire_messages(log)

    assert len(wire) == 1
    assert [b["text"] for b in wire[0]["content"]] == ["a", "b"]
