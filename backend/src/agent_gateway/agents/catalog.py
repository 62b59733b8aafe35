"""
ADK agent definitions and the default registry.
"""

from __future__ import annotations

from collections.abc import Mapping

from google.adk.agents import LlmAgent
from google.adk.apps.app import App, ResumabilityConfig
from google.adk.planners import BuiltInPlanner
from google.adk.runners import Runner
from google.adk.sessions.base_session_service import BaseSessionService
from google.adk.sessions.in_memory_session_service import InMemorySessionService
from google.adk.tools import BaseTool
from google.genai import types

from ..ports import AgentPort
from ..settings import Settings
from ..tools import (
    APPROVAL_REQUIRED_TOOLS,
    build_artifact_tool,
    build_search_tool,
    build_vm_tools,
)
from .adk_agent import AdkAgent
from .delegation import build_delegation_tool
from .prompts import AZURE_PROMPT, ESSAY_PROMPT, WEB_PROMPT, build_triage_prompt
from .registry import AgentRegistry

TRIAGE_AGENT_ID = "triage-agent"
AZURE_AGENT_ID = "azure-agent"
WEB_AGENT_ID = "web-agent"
ESSAY_AGENT_ID = "essay-agent"

# Delegation tool name per sub-agent id, in declaration order.
DELEGATION_TOOLS = {
    AZURE_AGENT_ID: (
        "ask_azure_agent",
        "Delegate Azure virtual machine operations (create, update, delete).",
    ),
    WEB_AGENT_ID: (
        "ask_web_agent",
        "Delegate information retrieval and research that needs a web search.",
    ),
}


def create_runner(
    *,
    agent_id: str,
    settings: Settings,
    session_service: BaseSessionService,
    model: str,
    description: str,
    instruction: str,
    tools: list[BaseTool] | None = None,
    planner: BuiltInPlanner | None = None,
) -> Runner:
    name = agent_id.replace("-", "_")
    agent = LlmAgent(
        name=name,
        model=model,
        description=description,
        instruction=instruction,
        tools=list(tools or []),
        planner=planner,
    )
    app = App(
        name=f"{settings.adk_app_name}_{name}",
        root_agent=agent,
        resumability_config=ResumabilityConfig(is_resumable=True),
    )
    return Runner(app=app, session_service=session_service)


def build_adk_agent(
    *,
    agent_id: str,
    settings: Settings,
    session_service: BaseSessionService,
    model: str,
    description: str,
    instruction: str,
    tools: list[BaseTool] | None = None,
    sub_agents: Mapping[str, AgentPort] | None = None,
    hidden_tools: frozenset[str] = frozenset(),
    planner: BuiltInPlanner | None = None,
) -> AdkAgent:
    runner = create_runner(
        agent_id=agent_id,
        settings=settings,
        session_service=session_service,
        model=model,
        description=description,
        instruction=instruction,
        tools=tools,
        planner=planner,
    )
    return AdkAgent(
        agent_id=agent_id,
        runner=runner,
        user_id=settings.adk_user_id,
        gated_tools=APPROVAL_REQUIRED_TOOLS,
        hidden_tools=hidden_tools,
        sub_agents=sub_agents,
    )


def build_default_registry(
    settings: Settings, *, session_service: BaseSessionService | None = None
) -> AgentRegistry:
    if session_service is None:
        session_service = InMemorySessionService()

    azure = build_adk_agent(
        agent_id=AZURE_AGENT_ID,
        settings=settings,
        session_service=session_service,
        model=settings.sub_agent_model,
        description="Creates, updates, and deletes VMs in Azure.",
        instruction=AZURE_PROMPT,
        tools=[*build_vm_tools()],
    )
    web = build_adk_agent(
        agent_id=WEB_AGENT_ID,
        settings=settings,
        session_service=session_service,
        model=settings.sub_agent_model,
        description="Searches the web and provides information.",
        instruction=WEB_PROMPT,
        tools=[build_search_tool(settings)],
    )
    essay = build_adk_agent(
        agent_id=ESSAY_AGENT_ID,
        settings=settings,
        session_service=session_service,
        model=settings.sub_agent_model,
        description="Writes structured, well-argued essays.",
        instruction=ESSAY_PROMPT,
    )

    sub_agents: dict[str, AgentPort] = {AZURE_AGENT_ID: azure, WEB_AGENT_ID: web}
    delegation_tools: list[BaseTool] = [
        build_delegation_tool(sub_agents[agent_id], name=name, description=description)
        for agent_id, (name, description) in DELEGATION_TOOLS.items()
    ]
    triage = build_adk_agent(
        agent_id=TRIAGE_AGENT_ID,
        settings=settings,
        session_service=session_service,
        model=settings.llm_model,
        description="Routes requests to the Azure and web specialists.",
        instruction=build_triage_prompt(),
        tools=[*delegation_tools, build_artifact_tool()],
        sub_agents=sub_agents,
        hidden_tools=frozenset(name for name, _ in DELEGATION_TOOLS.values()),
        planner=BuiltInPlanner(thinking_config=types.ThinkingConfig(include_thoughts=True)),
    )

    registry = AgentRegistry(default_agent_id=settings.default_agent_id)
    for agent in (triage, azure, web, essay):
        registry.register(agent)
    return registry
