"""
Command line entry point: run the HTTP server or chat in the terminal.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import uuid
from collections.abc import Awaitable, Callable
from typing import TextIO

from .adapters.sse_stream import (
    ApprovalRequestEvent,
    ErrorEvent,
    FinishEvent,
    ReasoningEvent,
    TextEvent,
    ToolCallEvent,
    ToolResultEvent,
    WireEvent,
)
from .gateway import ChatGateway, Segment

Prompt = Callable[[str], Awaitable[str]]


def render(event: WireEvent, out: TextIO) -> None:
    if isinstance(event, TextEvent):
        out.write(event.text)
    elif isinstance(event, ReasoningEvent):
        return
    elif isinstance(event, ToolCallEvent):
        out.write(f"\n[Tool Call: {event.toolName}]\n")
    elif isinstance(event, ToolResultEvent):
        out.write(f"\n[Tool Result: {event.toolName}]\n")
    elif isinstance(event, ApprovalRequestEvent):
        out.write(f"\n[Approval Required: {event.toolName} {event.args}]\n")
    elif isinstance(event, ErrorEvent):
        out.write(f"\n[Error: {event.error}]\n")
    elif isinstance(event, FinishEvent):
        out.write("\n")
    out.flush()


async def _drain(segment: Segment, out: TextIO) -> list[ApprovalRequestEvent]:
    requested: list[ApprovalRequestEvent] = []
    async for event in segment.events:
        render(event, out)
        if isinstance(event, ApprovalRequestEvent):
            requested.append(event)
    return requested


async def run_turn(
    gateway: ChatGateway,
    message: str,
    *,
    thread_id: str,
    prompt: Prompt,
    out: TextIO = sys.stdout,
) -> None:
    """Send one message, then ask for every approval it (or its resumptions) requests."""
    segment = await gateway.open_chat(message=message, thread_id=thread_id)
    queue = await _drain(segment, out)
    while queue:
        request = queue.pop(0)
        answer = await prompt(f"Approve {request.toolName}? [y/N] ")
        segment = await gateway.approve(
            run_id=request.runId,
            tool_call_id=request.toolCallId,
            approved=answer.strip().lower() in {"y", "yes"},
            thread_id=thread_id,
        )
        queue.extend(await _drain(segment, out))


async def _ask(text: str) -> str:
    return await asyncio.to_thread(input, text)


async def chat_loop(gateway: ChatGateway, *, prompt: Prompt = _ask) -> None:
    thread_id = uuid.uuid4().hex
    print("CLI chat. Type 'exit' to quit.\n")
    while True:
        line = (await prompt("\nAsk a question (or 'exit' to quit): ")).strip()
        if not line:
            continue
        if line.lower() == "exit":
            break
        await run_turn(gateway, line, thread_id=thread_id, prompt=prompt)
    await gateway.close_chat(thread_id)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Agent gateway")
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the HTTP server")
    serve.add_argument("--host", default=None, help="Bind address (default: settings.host)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: settings.port)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")

    chat = commands.add_parser("chat", help="Chat with an agent in the terminal")
    chat.add_argument("--agent", default=None, help="Agent id (default: settings.default_agent_id)")

    args = parser.parse_args(argv)

    from .logging import configure_logging
    from .settings import get_settings

    settings = get_settings()

    if args.command == "serve":
        import uvicorn

        uvicorn.run(
            "agent_gateway.main:app",
            host=args.host or settings.host,
            port=args.port or settings.port,
            reload=args.reload,
        )
        return 0

    from .deps import build_gateway
    from .llm import configure_genai_credentials

    configure_logging("WARNING", json_logs=settings.log_json)
    configure_genai_credentials(settings)
    if args.agent:
        settings = settings.model_copy(update={"default_agent_id": args.agent})
    gateway = build_gateway(settings)
    try:
        asyncio.run(chat_loop(gateway))
    except (KeyboardInterrupt, EOFError):
        pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
