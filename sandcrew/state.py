"""State models for LangGraph."""

from typing import Any, TypedDict


class TurnState(TypedDict):
    """The state object passed through the turn graph.

    Messages themselves live in the conversation log; the graph state only
    carries what the nodes need to decide where to go next.

    Attributes:
        pending: Tool uses from the latest reply, not yet executed
        rounds: Tool batches executed so far in this turn
    """

    pending: list[dict[str, Any]]
    rounds: int
