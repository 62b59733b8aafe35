from .registry import AgentRegistry

__all__ = ["AgentRegistry"]
