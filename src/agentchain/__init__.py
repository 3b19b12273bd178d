"""Agent task orchestration: runners, registries, orchestrators and reasoning loops."""

from importlib import metadata

from .agents import Agent, AgentCategory, AgentRegistry
from .config import ConfigError, ProjectConfig
from .orchestration import ExecutionMode, Orchestrator, OrchestratorConfig
from .project import Project
from .reasoning import EvaluatorOptimizer, ReasoningEngine
from .tasks import Priority, Runner, Task, TaskResult, TaskStatus

try:
    __version__ = metadata.version("agentchain")
except metadata.PackageNotFoundError:  # pragma: no cover - fallback for dev
    __version__ = "0.0.0"

__all__ = [
    "Agent",
    "AgentCategory",
    "AgentRegistry",
    "ConfigError",
    "EvaluatorOptimizer",
    "ExecutionMode",
    "Orchestrator",
    "OrchestratorConfig",
    "Priority",
    "Project",
    "ProjectConfig",
    "ReasoningEngine",
    "Runner",
    "Task",
    "TaskResult",
    "TaskStatus",
    "__version__",
]
