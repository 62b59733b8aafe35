"""
Delegation: a parent agent calls a sub-agent as if it were a tool.

The sub-agent's raw events are relayed into the parent run as they happen,
each wrapped in ``Delegated`` so the gateway can tell which agent and run
produced them. The parent's model only sees a compact summary as the tool
result.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

from google.adk.tools import FunctionTool

from ..domain.events import Delegated, TextDelta, ToolCall
from ..logging import get_logger
from ..ports import AgentPort

logger = get_logger(__name__)


@dataclass(frozen=True)
class DelegationScope:
    """Where a running parent accepts nested events."""

    thread_id: str
    emit: Callable[[object], None]


_current_scope: ContextVar[DelegationScope | None] = ContextVar(
    "delegation_scope", default=None
)


@contextmanager
def delegation_scope(scope: DelegationScope) -> Iterator[DelegationScope]:
    token = _current_scope.set(scope)
    try:
        yield scope
    finally:
        _current_scope.reset(token)


def make_delegate(
    agent: AgentPort, *, name: str, description: str
) -> Callable[[str], Awaitable[dict[str, Any]]]:
    async def delegate(request: str) -> dict[str, Any]:
        scope = _current_scope.get()
        if scope is None:
            return {
                "status": "error",
                "message": "Delegation is only available inside an agent run.",
            }

        run = agent.stream(request, thread_id=scope.thread_id)
        logger.info("delegation_started", agent_id=agent.agent_id, run_id=run.run_id)
        text: list[str] = []
        gated: list[str] = []
        async for event in run.events:
            scope.emit(Delegated(agent_id=agent.agent_id, run_id=run.run_id, event=event))
            if isinstance(event, TextDelta):
                text.append(event.text)
            elif isinstance(event, ToolCall) and event.requires_approval:
                gated.append(event.tool_call_id)

        if any(agent.holds_approval(run.run_id, tool_call_id) for tool_call_id in gated):
            return {
                "status": "awaiting_approval",
                "message": (
                    "The request is waiting for the user to approve or decline it. "
                    "Do not retry it and do not ask for approval in text."
                ),
            }
        return {"status": "success", "response": "".join(text)}

    delegate.__name__ = name
    delegate.__doc__ = (
        f"{description}\n\n"
        "Args:\n"
        "    request: The complete request for the agent, including every parameter the user gave."
    )
    return delegate


def build_delegation_tool(agent: AgentPort, *, name: str, description: str) -> FunctionTool:
    return FunctionTool(make_delegate(agent, name=name, description=description))
