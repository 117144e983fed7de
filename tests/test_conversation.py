"""Tests for the conversation log and its persistence."""

import pytest

from sandcrew.constants import GREETING, STATE_DIR
from sandcrew.conversation import ConversationLog, SessionStore
from sandcrew.messages import (
    AssistantMessage,
    ToolCall,
    ToolCallMessage,
    ToolResult,
    ToolResultMessage,
    UserMessage,
)


def _sample_log() -> ConversationLog:
    log = ConversationLog()
    log.append(UserMessage(content="show the readme"))
    log.append(ToolCallMessage(tool_call=ToolCall(id="c1", name="read_file", arguments={"target_file": "/README.md"})))
    log.append(ToolResultMessage(tool_call_id="c1", result=ToolResult.success("ok", content="# Demo\n", line_count=2)))
    log.append(AssistantMessage(content="Here it is."))
    return log


def test_new_log_holds_greeting():
    log = ConversationLog()

    assert len(log) == 1
    assert log[0].content == GREETING


def test_duplicate_result_is_rejected():
    log = _sample_log()

    with pytest.raises(ValueError, match="already has a result"):
        log.append(ToolResultMessage(tool_call_id="c1", result=ToolResult.success("again")))


def test_messages_returns_a_copy():
    log = ConversationLog()
    log.messages().append(UserMessage(content="sneaky"))

    assert len(log) == 1


def test_store_round_trip(temp_dir):
    store = SessionStore(temp_dir)
    log = _sample_log()

    store.save(log)
    restored = store.load()

    assert restored.messages() == log.messages()
    assert restored[3].result.line_count == 2
    assert restored[2].tool_call.arguments == {"target_file": "/README.md"}


def test_store_writes_iso_timestamps(temp_dir):
    store = SessionStore(temp_dir)
    store.save(ConversationLog())

    raw = (temp_dir / STATE_DIR / "session.json").read_text()
    assert '"type": "assistant_message"' in raw
    assert '"timestamp": "' in raw


def test_missing_store_gives_greeting(temp_dir):
    restored = SessionStore(temp_dir).load()

    assert [m.content for m in restored] == [GREETING]


@pytest.mark.parametrize(
    "raw",
    ["not json", '{"type": "user_message"}', '[{"type": "bogus"}]', "[]"],
)
def test_malformed_store_gives_greeting(temp_dir, raw):
    path = temp_dir / STATE_DIR / "session.json"
    path.parent.mkdir(parents=True)
    path.write_text(raw)

    restored = SessionStore(temp_dir).load()

    assert [m.content for m in restored] == [GREETING]


def test_reset():
    log = _sample_log()
    log.reset()

    assert len(log) == 1
    assert not log.has_result("c1")
