"""LangGraph turn loop: call the model, run the tools it asks for, repeat."""

from typing import Any, Callable

from langgraph.graph import END, StateGraph

from sandcrew.llm import CompletionClient, TextBlock, ToolUseBlock, to_wire_messages
from sandcrew.messages import AssistantMessage, ToolCall, ToolCallMessage, ToolResultMessage
from sandcrew.state import TurnState
from sandcrew.tools.dispatcher import ToolDispatcher
from sandcrew.tools.schema import TOOL_SCHEMAS


def error_reply(error: Exception) -> str:
    return f"Error: {error}. Please check your settings and try again."


class TurnGraph:
    """Runs one conversational turn as an explicit, bounded loop.

    ``call_model`` appends the reply text and collects tool uses;
    ``run_tools`` executes them in order and loops back. After
    ``max_tool_rounds`` tool batches the turn ends with a notice instead of
    another completion call.
    """

    def __init__(
        self,
        client: CompletionClient,
        dispatcher: ToolDispatcher,
        system_prompt: Callable[[], str],
        messages: Callable[[], list],
        append: Callable[[Any], None],
        max_tool_rounds: int = 10,
    ):
        """Initialize the graph.

        Args:
            client: Completion client
            dispatcher: Tool dispatcher for the session
            system_prompt: Builds the system prompt; called before every completion
            messages: Returns the current conversation log
            append: Appends (and persists) one message to the log
            max_tool_rounds: Maximum tool batches per turn
        """
        self.client = client
        self.dispatcher = dispatcher
        self.system_prompt = system_prompt
        self.messages = messages
        self.append = append
        self.max_tool_rounds = max_tool_rounds
        self.graph = self.build_graph()

    def build_graph(self):
        """Build the LangGraph workflow.

        Returns:
            Compiled StateGraph
        """
        workflow = StateGraph(TurnState)

        workflow.add_node("call_model", self.call_model)
        workflow.add_node("run_tools", self.run_tools)
        workflow.add_node("round_limit", self.round_limit)

        workflow.set_entry_point("call_model")
        workflow.add_conditional_edges(
            "call_model",
            self.route_after_model,
            {"run_tools": "run_tools", "end": END},
        )
        workflow.add_conditional_edges(
            "run_tools",
            self.route_after_tools,
            {"call_model": "call_model", "round_limit": "round_limit"},
        )
        workflow.add_edge("round_limit", END)

        return workflow.compile()

    async def run(self) -> TurnState:
        state: TurnState = {"pending": [], "rounds": 0}
        # Two steps per round, plus the final model call and the limit notice
        limit = 2 * self.max_tool_rounds + 5
        return await self.graph.ainvoke(state, config={"recursion_limit": limit})

    async def call_model(self, state: TurnState) -> dict:
        """Call the completion client with the whole log.

        The system prompt is rebuilt each time so it reflects files touched
        by the previous tool round.
        """
        try:
            blocks = await self.client.complete(
                self.system_prompt(),
                to_wire_messages(self.messages()),
                TOOL_SCHEMAS,
            )
        except Exception as e:
            self.append(AssistantMessage(content=error_reply(e)))
            return {"pending": []}

        text = "\n\n".join(b.text for b in blocks if isinstance(b, TextBlock) and b.text)
        if text:
            self.append(AssistantMessage(content=text))

        pending = [
            {"id": b.id, "name": b.name, "input": b.input}
            for b in blocks
            if isinstance(b, ToolUseBlock)
        ]
        return {"pending": pending}

    async def run_tools(self, state: TurnState) -> dict:
        """Execute pending tool uses sequentially, recording call and result."""
        for use in state["pending"]:
            self.append(
                ToolCallMessage(
                    tool_call=ToolCall(id=use["id"], name=use["name"], arguments=use["input"] or {})
                )
            )
            result = await self.dispatcher.dispatch(use["name"], use["input"] or {})
            self.append(ToolResultMessage(tool_call_id=use["id"], result=result))

        return {"pending": [], "rounds": state["rounds"] + 1}

    async def round_limit(self, state: TurnState) -> dict:
        self.append(
            AssistantMessage(
                content=(
                    f"Stopped after reaching the limit of {self.max_tool_rounds} tool rounds "
                    "in one turn. Send another message to continue."
                )
            )
        )
        return {"pending": []}

    def route_after_model(self, state: TurnState) -> str:
        return "run_tools" if state["pending"] else "end"

    def route_after_tools(self, state: TurnState) -> str:
        if state["rounds"] >= self.max_tool_rounds:
            return "round_limit"
        return "call_model"
