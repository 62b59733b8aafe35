"""Event streaming and approval gateway for delegating conversational agents."""

__version__ = "0.1.0"
