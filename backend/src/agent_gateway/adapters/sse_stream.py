"""
Wire event models and SSE framing helpers.
"""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel

WireEventType = Literal[
    "text",
    "reasoning",
    "tool-call",
    "tool-result",
    "tool-approval",
    "error",
    "finish",
]

FinishReason = Literal["stop", "approval", "error"]


class BaseWireEvent(BaseModel):
    type: WireEventType


class TextEvent(BaseWireEvent):
    type: Literal["text"] = "text"
    text: str


class ReasoningEvent(BaseWireEvent):
    type: Literal["reasoning"] = "reasoning"
    text: str


class ToolCallEvent(BaseWireEvent):
    type: Literal["tool-call"] = "tool-call"
    toolCallId: str
    toolName: str
    args: Any


class ToolResultEvent(BaseWireEvent):
    type: Literal["tool-result"] = "tool-result"
    toolCallId: str
    toolName: str
    result: Any


class ApprovalRequestEvent(BaseWireEvent):
    type: Literal["tool-approval"] = "tool-approval"
    toolCallId: str
    toolName: str
    args: Any
    runId: str


class ErrorEvent(BaseWireEvent):
    type: Literal["error"] = "error"
    error: str


class FinishEvent(BaseWireEvent):
    type: Literal["finish"] = "finish"
    finishReason: FinishReason = "stop"


WireEvent = (
    TextEvent
    | ReasoningEvent
    | ToolCallEvent
    | ToolResultEvent
    | ApprovalRequestEvent
    | ErrorEvent
    | FinishEvent
)


def encode_event(event: WireEvent) -> str:
    payload = json.dumps(event.model_dump(), ensure_ascii=False, default=str)
    return f"data: {payload}\n\n"


def encode_done() -> str:
    return "data: [DONE]\n\n"


def decode_frames(body: str) -> list[dict[str, Any] | str]:
    """Split an SSE body back into JSON payloads (and the ``[DONE]`` sentinel)."""
    frames: list[dict[str, Any] | str] = []
    for block in body.split("\n\n"):
        for line in block.splitlines():
            if not line.startswith("data: "):
                continue
            data = line[len("data: ") :]
            frames.append(data if data == "[DONE]" else json.loads(data))
    return frames
