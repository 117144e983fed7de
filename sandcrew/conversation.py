"""Conversation log and its persistence."""

from pathlib import Path
from typing import Iterator, Optional

from pydantic import ValidationError as PydanticValidationError

from sandcrew.constants import GREETING, STATE_DIR
from sandcrew.messages import AssistantMessage, ToolResultMessage, dump_messages, load_messages


def greeting() -> AssistantMessage:
    return AssistantMessage(content=GREETING)


class ConversationLog:
    """Append-only, ordered list of conversation messages."""

    def __init__(self, messages: Optional[list] = None):
        self._messages: list = list(messages) if messages else [greeting()]

    def append(self, message) -> None:
        """Append a message.

        Raises:
            ValueError: If a second result is appended for the same tool call
        """
        if isinstance(message, ToolResultMessage) and self.has_result(message.tool_call_id):
            raise ValueError(f"Tool call {message.tool_call_id} already has a result")
        self._messages.append(message)

    def has_result(self, tool_call_id: str) -> bool:
        return any(
            isinstance(m, ToolResultMessage) and m.tool_call_id == tool_call_id
            for m in self._messages
        )

    def reset(self) -> None:
        """Replace the log with the single greeting."""
        self._messages = [greeting()]

    def messages(self) -> list:
        return list(self._messages)

    def __iter__(self) -> Iterator:
        return iter(list(self._messages))

    def __len__(self) -> int:
        return len(self._messages)

    def __getitem__(self, index):
        return self._messages[index]


class SessionStore:
    """Persists the conversation log as a JSON array under .sandcrew/."""

    def __init__(self, project_root: Path, filename: str = "session.json"):
        self.path = project_root / STATE_DIR / filename

    def load(self) -> ConversationLog:
        """Restore the saved log.

        Returns:
            The saved log, or a fresh log holding only the greeting when
            nothing is saved or the saved data is malformed
        """
        if not self.path.exists():
            return ConversationLog()

        try:
            messages = load_messages(self.path.read_text(encoding="utf-8"))
        except (PydanticValidationError, OSError, UnicodeDecodeError):
            return ConversationLog()

        if not messages:
            return ConversationLog()
        return ConversationLog(messages)

    def save(self, log: ConversationLog) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(dump_messages(log.messages()), encoding="utf-8")
