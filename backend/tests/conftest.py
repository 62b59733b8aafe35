"""Root conftest: shared fixtures wired around scripted agents."""

import os

# Ensure tests never pick up real credentials
os.environ["GEMINI_API_KEY"] = ""
os.environ["SEARCH_API_KEY"] = ""
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from httpx import ASGITransport, AsyncClient

from agent_gateway.agents.registry import AgentRegistry
from agent_gateway.gateway import ApprovalGate, ChatGateway
from agent_gateway.main import create_app
from agent_gateway.settings import Settings
from agent_gateway.store import InMemoryApprovalStore, InMemorySessionDirectory

from .fakes import ScriptedAgent


@pytest.fixture
def settings():
    return Settings(_env_file=None, gemini_api_key=None, search_api_key=None)


@pytest.fixture
def store():
    return InMemoryApprovalStore()


@pytest.fixture
def gate(store):
    return ApprovalGate(store, ttl_seconds=3600)


@pytest.fixture
def sessions():
    return InMemorySessionDirectory()


@pytest.fixture
def azure():
    return ScriptedAgent("azure-agent")


@pytest.fixture
def web():
    return ScriptedAgent("web-agent")


@pytest.fixture
def triage(azure, web):
    return ScriptedAgent("triage-agent", sub_agents={"azure-agent": azure, "web-agent": web})


@pytest.fixture
def essay():
    return ScriptedAgent("essay-agent")


@pytest.fixture
def registry(triage, azure, web, essay):
    registry = AgentRegistry(default_agent_id="triage-agent")
    for agent in (triage, azure, web, essay):
        registry.register(agent)
    return registry


@pytest.fixture
def gateway(registry, sessions, gate):
    return ChatGateway(registry=registry, sessions=sessions, gate=gate)


@pytest.fixture
async def client(gateway, settings):
    """HTTP client against an app wired to the scripted gateway."""
    app = create_app(gateway=gateway, settings=settings)
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
