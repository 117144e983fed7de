"""Conversation state machine: one turn at a time, extra input queued."""

import asyncio
from collections import deque
from enum import Enum
from typing import Optional

from sandcrew.constants import DEFAULT_MAX_TOOL_ROUNDS
from sandcrew.conversation import ConversationLog, SessionStore
from sandcrew.graph import TurnGraph, error_reply
from sandcrew.llm import CompletionClient
from sandcrew.messages import AssistantMessage, UserMessage
from sandcrew.system_prompt import SystemPromptBuilder
from sandcrew.tools.dispatcher import ToolDispatcher
from sandcrew.utils.logging import SessionLogger


class AgentStatus(str, Enum):
    IDLE = "idle"
    PROCESSING_TURN = "processing_turn"


class Agent:
    """Drives conversational turns against the completion client.

    Input submitted while a turn is running is queued and processed in
    arrival order once the turn completes. Turns never interleave.
    """

    def __init__(
        self,
        client: CompletionClient,
        dispatcher: ToolDispatcher,
        store: Optional[SessionStore] = None,
        max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
        system_prompt: Optional[str] = None,
        logger: Optional[SessionLogger] = None,
    ):
        """Initialize the agent.

        Args:
            client: Completion client
            dispatcher: Tool dispatcher bound to the session workspace
            store: Optional persistence for the conversation log
            max_tool_rounds: Maximum tool batches per turn
            system_prompt: Fixed agent prompt (workspace context is appended)
            logger: Optional session logger
        """
        self.client = client
        self.dispatcher = dispatcher
        self.store = store
        self.logger = logger
        self.log = store.load() if store else ConversationLog()
        self.status = AgentStatus.IDLE
        self.prompt_builder = SystemPromptBuilder(dispatcher.workspace, system_prompt)

        self._queue: deque[str] = deque()
        self._idle = asyncio.Event()
        self._idle.set()

        self.turn_graph = TurnGraph(
            client,
            dispatcher,
            system_prompt=self.prompt_builder.build,
            messages=self.log.messages,
            append=self.append,
            max_tool_rounds=max_tool_rounds,
        )

    @property
    def pending(self) -> list[str]:
        """Queued input not yet started."""
        return list(self._queue)

    async def submit(self, text: str) -> None:
        """Submit user input.

        If no turn is active, runs the turn and then drains the queue.
        Otherwise the input is queued and this returns immediately.
        """
        if self.status == AgentStatus.PROCESSING_TURN:
            self._queue.append(text)
            return

        self.status = AgentStatus.PROCESSING_TURN
        self._idle.clear()
        try:
            await self._run_turn(text)
            while self._queue:
                await self._run_turn(self._queue.popleft())
        finally:
            self.status = AgentStatus.IDLE
            self._idle.set()

    async def wait_idle(self) -> None:
        """Wait until no turn is running and the queue is empty."""
        await self._idle.wait()

    def clear(self) -> None:
        """Reset the log to the greeting and drop queued input."""
        self.log.reset()
        self._queue.clear()
        self._persist()

    def append(self, message) -> None:
        """Append a message to the log, persist it and write it to the transcript."""
        self.log.append(message)
        self._persist()
        if self.logger:
            self.logger.log_message(message)

    async def _run_turn(self, text: str) -> None:
        self.append(UserMessage(content=text))
        try:
            await self.turn_graph.run()
        except Exception as e:
            # Completion failures are handled inside the graph; this covers the rest
            self.append(AssistantMessage(content=error_reply(e)))

    def _persist(self) -> None:
        if self.store:
            self.store.save(self.log)
