"""Translate ADK events into raw gateway events."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from google.adk.events.event import Event
from google.adk.flows.llm_flows.functions import REQUEST_CONFIRMATION_FUNCTION_CALL_NAME
from google.genai import types

from ..domain.events import ExecutionFailed, ReasoningDelta, TextDelta, ToolCall, ToolResult


@dataclass(frozen=True)
class ConfirmationRequest:
    """ADK paused an invocation until ``tool_call_id`` is confirmed."""

    tool_call_id: str
    tool_name: str
    args: dict[str, Any]
    invocation_id: str
    confirmation_call_id: str


@dataclass
class AdkEventTranslator:
    gated_tools: frozenset[str]
    on_confirmation: Callable[[ConfirmationRequest], None]
    # Tools whose calls stay off the stream (delegation tools: their nested events are the output).
    hidden_tools: frozenset[str] = frozenset()
    _text: str = field(default="", init=False)
    _reasoning: str = field(default="", init=False)
    # Call id to whether it has been announced as awaiting approval.
    _calls: dict[str, bool] = field(default_factory=dict, init=False)

    def translate(self, event: Event) -> list[object]:
        raw: list[object] = []
        if event.error_code or event.error_message:
            raw.append(ExecutionFailed(message=event.error_message or str(event.error_code)))

        content = event.content
        if not content or not content.parts:
            return raw

        for part in content.parts:
            if part.text:
                thought = bool(part.thought)
                delta = self._text_delta(part.text, partial=bool(event.partial), thought=thought)
                if delta:
                    raw.append(ReasoningDelta(text=delta) if thought else TextDelta(text=delta))

            if part.function_call:
                raw.extend(self._function_call(event, part.function_call))

            if part.function_response:
                raw.extend(self._function_response(event, part.function_response))
        return raw

    def _text_delta(self, text: str, *, partial: bool, thought: bool) -> str:
        attr = "_reasoning" if thought else "_text"
        accumulated = getattr(self, attr)
        if partial:
            setattr(self, attr, accumulated + text)
            return text
        # A non-partial event closes the turn; with streaming it repeats the whole text.
        setattr(self, attr, "")
        if accumulated and text.startswith(accumulated):
            return text[len(accumulated) :]
        return text

    def _function_call(self, event: Event, function_call: types.FunctionCall) -> list[object]:
        if function_call.name == REQUEST_CONFIRMATION_FUNCTION_CALL_NAME:
            return self._confirmation_call(event, function_call)
        if function_call.name in self.hidden_tools:
            return []

        tool_call_id = function_call.id or f"tool_{uuid.uuid4().hex}"
        if tool_call_id in self._calls:
            return []
        self._calls[tool_call_id] = False
        if function_call.name in self.gated_tools:
            # Announced with its confirmation request, once the call is parked.
            return []
        return [
            ToolCall(
                tool_call_id=tool_call_id,
                tool_name=function_call.name or "",
                args=dict(function_call.args or {}),
            )
        ]

    def _confirmation_call(
        self, event: Event, function_call: types.FunctionCall
    ) -> list[object]:
        args = function_call.args or {}
        original_call = args.get("originalFunctionCall") or {}
        tool_call_id = original_call.get("id")
        tool_name = original_call.get("name")
        if not tool_call_id or not tool_name or not function_call.id:
            return []
        tool_args = dict(original_call.get("args") or {})

        self.on_confirmation(
            ConfirmationRequest(
                tool_call_id=tool_call_id,
                tool_name=tool_name,
                args=tool_args,
                invocation_id=event.invocation_id,
                confirmation_call_id=function_call.id,
            )
        )
        if self._calls.get(tool_call_id):
            return []
        self._calls[tool_call_id] = True
        return [
            ToolCall(
                tool_call_id=tool_call_id,
                tool_name=tool_name,
                args=tool_args,
                requires_approval=True,
            )
        ]

    def _function_response(
        self, event: Event, function_response: types.FunctionResponse
    ) -> list[object]:
        if function_response.name == REQUEST_CONFIRMATION_FUNCTION_CALL_NAME:
            return []
        if function_response.name in self.hidden_tools:
            return []
        if (
            event.actions.requested_tool_confirmations
            and function_response.id in event.actions.requested_tool_confirmations
        ):
            return []
        if not function_response.id:
            return []

        return [
            ToolResult(
                tool_call_id=function_response.id,
                tool_name=function_response.name or "",
                result=extract_tool_result(function_response.response),
            )
        ]


def extract_tool_result(response: dict[str, Any] | None) -> Any:
    """Unwrap the ``{"result": ...}`` envelope ADK puts around non-dict tool returns."""
    if response is None:
        return None
    if set(response) == {"result"}:
        return response["result"]
    return response
