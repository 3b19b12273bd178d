"""Agent package exports."""

from .base import Agent, AgentCategory
from .registry import AgentRegistry

__all__ = ["Agent", "AgentCategory", "AgentRegistry"]
