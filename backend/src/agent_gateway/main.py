"""
FastAPI application for the agent gateway.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import aclosing, asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, Field, StrictBool
from structlog.contextvars import bound_contextvars

from . import __version__
from .adapters.sse_stream import encode_done, encode_event
from .deps import build_gateway, get_gateway
from .errors import GatewayError
from .gateway import ChatGateway, Segment
from .llm import configure_genai_credentials
from .logging import configure_logging, get_logger
from .settings import Settings, get_settings

logger = get_logger(__name__)


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)
    chatId: str = Field(min_length=1)
    agentId: str | None = None


class ApprovalRequest(BaseModel):
    runId: str = Field(min_length=1)
    toolCallId: str = Field(min_length=1)
    approved: StrictBool
    chatId: str = Field(min_length=1)
    agentId: str | None = None


def _sse_headers(run_id: str) -> dict[str, str]:
    """Standard SSE response headers."""
    return {
        "Cache-Control": "no-cache",
        "Connection": "keep-alive",
        "X-Run-Id": run_id,
    }


def _stream_response(segment: Segment, *, thread_id: str) -> StreamingResponse:
    run_id = segment.handle.run_id

    async def stream() -> AsyncIterator[bytes]:
        with bound_contextvars(thread_id=thread_id, run_id=run_id):
            async with aclosing(segment.events) as events:
                async for event in events:
                    yield encode_event(event).encode("utf-8")
            yield encode_done().encode("utf-8")

    return StreamingResponse(
        stream(),
        media_type="text/event-stream",
        headers=_sse_headers(run_id),
    )


def create_app(
    *, gateway: ChatGateway | None = None, settings: Settings | None = None
) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if getattr(app.state, "gateway", None) is None:
            configure_genai_credentials(settings)
            app.state.gateway = build_gateway(settings)
        logger.info("gateway_ready", agents=app.state.gateway.registry.ids())
        yield

    app = FastAPI(
        title="Agent Gateway",
        description="Streaming agent gateway with human-in-the-loop tool approval",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.gateway = gateway
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Run-Id"],
    )

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
        log = logger.error if exc.http_status >= 500 else logger.warning
        log(
            "request_failed",
            path=request.url.path,
            code=exc.code,
            error=exc.message,
            **exc.context,
        )
        return JSONResponse(exc.to_response(), status_code=exc.http_status)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        fields = [".".join(str(part) for part in error["loc"][1:]) for error in exc.errors()]
        logger.warning("request_invalid", path=request.url.path, fields=fields)
        message = f"Invalid request body: {', '.join(fields) or 'malformed'}"
        return JSONResponse({"error": message, "code": "invalid_request"}, status_code=400)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("request_crashed", path=request.url.path)
        return JSONResponse({"error": str(exc) or "Internal server error"}, status_code=500)

    @app.post("/api/chat")
    async def chat(
        body: ChatRequest, gateway: ChatGateway = Depends(get_gateway)
    ) -> StreamingResponse:
        """Stream one segment for the thread.

        An unrecognized ``agentId`` does not fail: the thread keeps the agent it
        already has, and a new thread gets the default agent.
        """
        with bound_contextvars(thread_id=body.chatId):
            logger.info("chat_received", agent_id=body.agentId)
            segment = await gateway.open_chat(
                message=body.message,
                thread_id=body.chatId,
                agent_id=body.agentId,
            )
        return _stream_response(segment, thread_id=body.chatId)

    @app.post("/api/chat/approve")
    async def approve(
        body: ApprovalRequest, gateway: ChatGateway = Depends(get_gateway)
    ) -> StreamingResponse:
        """Decide a parked call and stream the resumed segment.

        Stale ids answer 409 before streaming. The decision is applied when the
        body is read, so a dropped request leaves the call awaiting.
        """
        with bound_contextvars(thread_id=body.chatId, run_id=body.runId):
            logger.info("approval_received", tool_call_id=body.toolCallId, approved=body.approved)
            segment = await gateway.approve(
                run_id=body.runId,
                tool_call_id=body.toolCallId,
                approved=body.approved,
                thread_id=body.chatId,
                agent_id=body.agentId,
            )
        return _stream_response(segment, thread_id=body.chatId)

    @app.delete("/api/chat/{chat_id}")
    async def close_chat(
        chat_id: str, gateway: ChatGateway = Depends(get_gateway)
    ) -> dict[str, int]:
        removed = await gateway.close_chat(chat_id)
        return {"removedApprovals": removed}

    @app.get("/api/chat/{chat_id}/approvals")
    async def list_approvals(
        chat_id: str, gateway: ChatGateway = Depends(get_gateway)
    ) -> dict[str, list[dict[str, Any]]]:
        """Approvals still awaiting a decision, so a reconnecting client can re-render them."""
        return {
            "approvals": [
                {
                    "runId": pending.run_id,
                    "toolCallId": pending.tool_call_id,
                    "toolName": pending.tool_name,
                    "args": pending.args,
                    "createdAt": pending.created_at.isoformat(),
                }
                for pending in gateway.pending_approvals(chat_id)
            ]
        }

    @app.get("/api/agents")
    async def list_agents(gateway: ChatGateway = Depends(get_gateway)) -> dict[str, Any]:
        registry = gateway.registry
        return {"agents": registry.ids(), "default": registry.default_agent_id}

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "model": settings.llm_model}

    return app


settings = get_settings()
configure_logging(settings.log_level, json_logs=settings.log_json)
app = create_app(settings=settings)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
