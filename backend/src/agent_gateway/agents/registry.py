"""
Registry of the agent variants a conversation can be routed to.
"""

from __future__ import annotations

from ..errors import UnknownAgentError
from ..ports import AgentPort


class AgentRegistry:
    def __init__(self, *, default_agent_id: str) -> None:
        self.default_agent_id = default_agent_id
        self._agents: dict[str, AgentPort] = {}

    def register(self, agent: AgentPort) -> AgentPort:
        self._agents[agent.agent_id] = agent
        return agent

    def get(self, agent_id: str) -> AgentPort:
        agent = self._agents.get(agent_id)
        if agent is None:
            raise UnknownAgentError(agent_id)
        return agent

    def resolve_id(self, agent_id: str | None, *, fallback: str | None = None) -> str:
        """Pick a registered id: the requested one, else ``fallback``, else the default."""
        for candidate in (agent_id, fallback):
            if candidate and candidate in self._agents:
                return candidate
        if self.default_agent_id not in self._agents:
            raise UnknownAgentError(self.default_agent_id)
        return self.default_agent_id

    def ids(self) -> list[str]:
        return list(self._agents)

    def walk(self) -> list[AgentPort]:
        """Registered agents and their direct sub-agents, each instance once."""
        seen: dict[int, AgentPort] = {}
        for agent in self._agents.values():
            for candidate in (agent, *agent.sub_agents.values()):
                seen.setdefault(id(candidate), candidate)
        return list(seen.values())

    def clear(self) -> None:
        self._agents.clear()

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self._agents

    def __len__(self) -> int:
        return len(self._agents)
