"""Flat task-list orchestration in sequential, parallel and ultrathink modes."""

from .base import (
    AgentResult,
    ChainStep,
    ExecutionMode,
    OrchestrationReport,
    OrchestrationSummary,
    OrchestratorConfig,
)
from .orchestrator import Orchestrator

__all__ = [
    "AgentResult",
    "ChainStep",
    "ExecutionMode",
    "OrchestrationReport",
    "OrchestrationSummary",
    "Orchestrator",
    "OrchestratorConfig",
]
