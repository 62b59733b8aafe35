"""
ADK-backed agent runtime.

Each ``AdkAgent`` owns one resumable ADK ``Runner``. A run is driven by a
producer task that translates ADK events into raw gateway events and pushes
them onto a queue; the consumer side is the lazy ``AgentRun.events`` stream.
Running the model in its own task lets delegated sub-agents push their nested
events into the same queue while the parent's tool call is still executing.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass

from google.adk.agents.run_config import RunConfig, StreamingMode
from google.adk.runners import Runner
from google.genai import types

from ..adapters.adk_content import (
    build_confirmation_response,
    build_function_response_content,
    build_user_content,
)
from ..adapters.adk_events import AdkEventTranslator, ConfirmationRequest
from ..domain.events import ExecutionFailed
from ..logging import get_logger
from ..ports import AgentPort, AgentRun
from .delegation import DelegationScope, delegation_scope

logger = get_logger(__name__)

_END = object()


@dataclass(frozen=True)
class ParkedCall:
    """An ADK invocation paused on a tool confirmation."""

    run_id: str
    thread_id: str
    tool_call_id: str
    tool_name: str
    invocation_id: str
    confirmation_call_id: str


class AdkAgent:
    def __init__(
        self,
        *,
        agent_id: str,
        runner: Runner,
        user_id: str,
        gated_tools: frozenset[str] = frozenset(),
        hidden_tools: frozenset[str] = frozenset(),
        sub_agents: Mapping[str, AgentPort] | None = None,
        streaming: bool = True,
    ) -> None:
        self._agent_id = agent_id
        self.runner = runner
        self.user_id = user_id
        self.gated_tools = gated_tools
        self.hidden_tools = hidden_tools
        self._sub_agents = dict(sub_agents or {})
        self.run_config = RunConfig(
            streaming_mode=StreamingMode.SSE if streaming else StreamingMode.NONE
        )
        self._parked: dict[tuple[str, str], ParkedCall] = {}

    @property
    def agent_id(self) -> str:
        return self._agent_id

    @property
    def sub_agents(self) -> Mapping[str, AgentPort]:
        return self._sub_agents

    def stream(self, message: str, *, thread_id: str) -> AgentRun:
        run_id = uuid.uuid4().hex
        events = self._relay(
            run_id=run_id,
            thread_id=thread_id,
            new_message=build_user_content(message),
        )
        return AgentRun(run_id=run_id, events=events)

    def holds_approval(self, run_id: str, tool_call_id: str) -> bool:
        return (run_id, tool_call_id) in self._parked

    def resume(
        self, *, run_id: str, tool_call_id: str, approved: bool, thread_id: str
    ) -> AgentRun:
        parked = self._parked.pop((run_id, tool_call_id), None)
        if parked is None:
            raise LookupError(f"{self.agent_id} holds no parked call {tool_call_id} in run {run_id}")

        response = build_confirmation_response(parked.confirmation_call_id, approved)
        events = self._relay(
            run_id=run_id,
            thread_id=thread_id,
            new_message=build_function_response_content([response]),
            invocation_id=parked.invocation_id,
        )
        return AgentRun(run_id=run_id, events=events)

    def release(self, run_id: str, tool_call_id: str) -> bool:
        released = self._parked.pop((run_id, tool_call_id), None) is not None
        if released:
            logger.info(
                "adk_call_released", agent_id=self.agent_id, run_id=run_id, tool_call_id=tool_call_id
            )
        return released

    async def close_thread(self, thread_id: str) -> None:
        """Drop the thread's parked calls and its ADK session."""
        for key, parked in list(self._parked.items()):
            if parked.thread_id == thread_id:
                del self._parked[key]

        session_service = self.runner.session_service
        session = await session_service.get_session(
            app_name=self.runner.app_name,
            user_id=self.user_id,
            session_id=thread_id,
        )
        if session is None:
            return
        await session_service.delete_session(
            app_name=self.runner.app_name,
            user_id=self.user_id,
            session_id=thread_id,
        )
        logger.info("adk_session_deleted", agent_id=self.agent_id, thread_id=thread_id)

    def parked_calls(self) -> list[ParkedCall]:
        return list(self._parked.values())

    async def _relay(
        self,
        *,
        run_id: str,
        thread_id: str,
        new_message: types.Content,
        invocation_id: str | None = None,
    ) -> AsyncIterator[object]:
        queue: asyncio.Queue[object] = asyncio.Queue()
        producer = asyncio.create_task(
            self._produce(
                queue,
                run_id=run_id,
                thread_id=thread_id,
                new_message=new_message,
                invocation_id=invocation_id,
            )
        )
        try:
            while True:
                item = await queue.get()
                if item is _END:
                    break
                yield item
        finally:
            producer.cancel()
            await asyncio.wait([producer])

    async def _produce(
        self,
        queue: asyncio.Queue[object],
        *,
        run_id: str,
        thread_id: str,
        new_message: types.Content,
        invocation_id: str | None,
    ) -> None:
        def park(request: ConfirmationRequest) -> None:
            self._parked[(run_id, request.tool_call_id)] = ParkedCall(
                run_id=run_id,
                thread_id=thread_id,
                tool_call_id=request.tool_call_id,
                tool_name=request.tool_name,
                invocation_id=request.invocation_id,
                confirmation_call_id=request.confirmation_call_id,
            )
            logger.debug(
                "adk_call_parked",
                agent_id=self.agent_id,
                run_id=run_id,
                tool_call_id=request.tool_call_id,
                invocation_id=request.invocation_id,
            )

        translator = AdkEventTranslator(
            gated_tools=self.gated_tools,
            on_confirmation=park,
            hidden_tools=self.hidden_tools,
        )
        scope = DelegationScope(thread_id=thread_id, emit=queue.put_nowait)
        try:
            with delegation_scope(scope):
                await self._ensure_session(thread_id)
                async for event in self.runner.run_async(
                    user_id=self.user_id,
                    session_id=thread_id,
                    invocation_id=invocation_id,
                    new_message=new_message,
                    run_config=self.run_config,
                ):
                    for raw in translator.translate(event):
                        queue.put_nowait(raw)
        except Exception as exc:
            logger.exception("agent_run_failed", agent_id=self.agent_id, run_id=run_id)
            queue.put_nowait(ExecutionFailed(message=str(exc) or type(exc).__name__))
        finally:
            queue.put_nowait(_END)

    async def _ensure_session(self, thread_id: str) -> None:
        session_service = self.runner.session_service
        session = await session_service.get_session(
            app_name=self.runner.app_name,
            user_id=self.user_id,
            session_id=thread_id,
        )
        if session is not None:
            return
        await session_service.create_session(
            app_name=self.runner.app_name,
            user_id=self.user_id,
            session_id=thread_id,
        )
