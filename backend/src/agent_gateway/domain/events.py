"""Producer-side execution events emitted by agent runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class TextDelta:
    text: str


@dataclass(frozen=True)
class ReasoningDelta:
    text: str


@dataclass(frozen=True)
class ToolCall:
    tool_call_id: str
    tool_name: str
    args: dict[str, Any] = field(default_factory=dict)
    requires_approval: bool = False


@dataclass(frozen=True)
class ToolResult:
    tool_call_id: str
    tool_name: str
    result: Any = None


@dataclass(frozen=True)
class ExecutionFailed:
    message: str


@dataclass(frozen=True)
class Delegated:
    """An event emitted by a sub-agent run, one delegation level deeper."""

    agent_id: str
    run_id: str
    event: Any = None


RawEvent = Union[TextDelta, ReasoningDelta, ToolCall, ToolResult, ExecutionFailed, Delegated]
