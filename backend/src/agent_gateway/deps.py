"""
Application wiring: build the gateway from settings and expose it to routes.
"""

from __future__ import annotations

from fastapi import Request

from .agents.registry import AgentRegistry
from .gateway import ApprovalGate, ChatGateway
from .settings import Settings
from .store import InMemorySessionDirectory, build_approval_store


def build_gateway(settings: Settings, *, registry: AgentRegistry | None = None) -> ChatGateway:
    if registry is None:
        from .agents.catalog import build_default_registry

        registry = build_default_registry(settings)
    gate = ApprovalGate(
        build_approval_store(settings),
        ttl_seconds=settings.approval_ttl_seconds,
    )
    return ChatGateway(registry=registry, sessions=InMemorySessionDirectory(), gate=gate)


def get_gateway(request: Request) -> ChatGateway:
    return request.app.state.gateway
