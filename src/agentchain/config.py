"""Configuration helpers for agentchain projects."""

from __future__ import annotations

import importlib
import pathlib
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, MutableMapping, Optional

import yaml


class ConfigError(RuntimeError):
    """Raised when configuration files are invalid."""


PRIORITIES = ("critical", "high", "medium", "low")
CATEGORIES = ("console-fix", "uxui-improvement", "performance", "accessibility")
MODES = ("sequential", "parallel", "ultrathink")
BATCH_POLICIES = ("collect_all", "fail_fast")
THINKING_DEPTHS = ("quick", "standard", "deep", "ultrathink")


def _choice(value: Any, allowed: Iterable[str], what: str) -> str:
    text = str(value).lower()
    if text not in allowed:
        raise ConfigError(f"Unknown {what} '{value}' (expected one of: {', '.join(allowed)})")
    return text


@dataclass
class OrchestratorSpec:
    """Execution settings for the flat task orchestrator."""

    mode: str = "sequential"
    max_iterations: int = 10
    target_confidence: int = 95
    parallel_limit: int = 4
    batch_policy: str = "collect_all"
    dry_run: bool = False
    thinking_depth: str = "deep"

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "OrchestratorSpec":
        if not data:
            return cls()
        spec = cls(
            mode=_choice(data.get("mode", "sequential"), MODES, "mode"),
            max_iterations=int(data.get("max_iterations", 10)),
            target_confidence=int(data.get("target_confidence", 95)),
            parallel_limit=int(data.get("parallel_limit", 4)),
            batch_policy=_choice(data.get("batch_policy", "collect_all"), BATCH_POLICIES, "batch policy"),
            dry_run=bool(data.get("dry_run", False)),
            thinking_depth=_choice(data.get("thinking_depth", "deep"), THINKING_DEPTHS, "thinking depth"),
        )
        if spec.max_iterations < 1:
            raise ConfigError("orchestrator.max_iterations must be at least 1")
        if spec.parallel_limit < 1:
            raise ConfigError("orchestrator.parallel_limit must be at least 1")
        if not 1 <= spec.target_confidence <= 100:
            raise ConfigError("orchestrator.target_confidence must be between 1 and 100")
        return spec


@dataclass
class HandlerSpec:
    """Configuration for a handler instance."""

    name: str
    type: str
    args: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, name: str, data: Mapping[str, Any]) -> "HandlerSpec":
        if "type" not in data:
            raise ConfigError(f"Handler '{name}' requires a type path")
        return cls(name=name, type=str(data["type"]), args=dict(data.get("args") or {}))


@dataclass
class TaskSpec:
    """A task declared under an agent."""

    id: str
    name: str
    priority: str = "medium"
    kind: Optional[str] = None
    handler: Optional[str] = None
    dependencies: List[str] = field(default_factory=list)
    target_files: List[str] = field(default_factory=list)
    estimated_minutes: int = 0
    description: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TaskSpec":
        if "id" not in data:
            raise ConfigError("Task is missing required key: id")
        task_id = str(data["id"])
        return cls(
            id=task_id,
            name=str(data.get("name", task_id)),
            priority=_choice(data.get("priority", "medium"), PRIORITIES, "priority"),
            kind=data.get("kind"),
            handler=data.get("handler"),
            dependencies=[str(item) for item in ensure_iterable(data.get("dependencies"))],
            target_files=[str(item) for item in ensure_iterable(data.get("target_files"))],
            estimated_minutes=int(data.get("estimated_minutes", 0)),
            description=str(data.get("description", "")),
        )


@dataclass
class AgentSpec:
    """Definition of an agent from config."""

    id: str
    category: str
    tasks: List[TaskSpec]
    name: Optional[str] = None
    description: str = ""
    emoji: str = ""
    handler: Optional[str] = None

    @classmethod
    def from_mapping(cls, agent_id: str, data: Mapping[str, Any]) -> "AgentSpec":
        if "category" not in data:
            raise ConfigError(f"Agent '{agent_id}' requires a category")
        tasks = [TaskSpec.from_mapping(item) for item in data.get("tasks") or []]
        ids = [task.id for task in tasks]
        duplicates = sorted({task_id for task_id in ids if ids.count(task_id) > 1})
        if duplicates:
            raise ConfigError(f"Agent '{agent_id}' declares duplicate task ids: {', '.join(duplicates)}")
        return cls(
            id=agent_id,
            category=_choice(data["category"], CATEGORIES, "category"),
            tasks=tasks,
            name=data.get("name"),
            description=str(data.get("description", "")),
            emoji=str(data.get("emoji", "")),
            handler=data.get("handler"),
        )


@dataclass
class ProjectConfig:
    """Representation of the YAML configuration."""

    name: str
    description: Optional[str]
    orchestrator: OrchestratorSpec
    agents: Dict[str, AgentSpec]
    handler_specs: Dict[str, HandlerSpec]

    @classmethod
    def from_file(cls, path: str | pathlib.Path) -> "ProjectConfig":
        path = pathlib.Path(path)
        try:
            text = path.read_text()
        except OSError as exc:
            raise ConfigError(f"Cannot read configuration '{path}': {exc}") from exc
        return cls.from_yaml(text, default_name=path.stem)

    @classmethod
    def from_yaml(cls, text: str, *, default_name: str = "project") -> "ProjectConfig":
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML: {exc}") from exc
        if not isinstance(data, MutableMapping):
            raise ConfigError("Configuration root must be a mapping")
        return cls.from_mapping(data, default_name=default_name)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, default_name: str = "project") -> "ProjectConfig":
        agents = {
            str(agent_id): AgentSpec.from_mapping(str(agent_id), info or {})
            for agent_id, info in (data.get("agents") or {}).items()
        }
        if not agents:
            raise ConfigError("At least one agent must be defined")
        handler_specs = {
            name: HandlerSpec.from_mapping(name, info or {})
            for name, info in (data.get("handlers") or {}).items()
        }
        return cls(
            name=data.get("name", default_name),
            description=data.get("description"),
            orchestrator=OrchestratorSpec.from_mapping(data.get("orchestrator")),
            agents=agents,
            handler_specs=handler_specs,
        )

    def get_agent(self, agent_id: str) -> AgentSpec:
        try:
            return self.agents[agent_id]
        except KeyError as exc:
            raise ConfigError(f"Unknown agent '{agent_id}'") from exc


def import_string(path: str) -> Any:
    """Return attribute from module specified by path "module:qualname"."""

    if ":" not in path:
        raise ConfigError(f"Import path '{path}' must use module:qualname format")
    module_path, attr = path.split(":", 1)
    try:
        module = importlib.import_module(module_path)
    except ImportError as exc:
        raise ConfigError(f"Cannot import module '{module_path}': {exc}") from exc
    target: Any = module
    try:
        for part in attr.split("."):
            target = getattr(target, part)
    except AttributeError as exc:
        raise ConfigError(f"Module '{module_path}' has no attribute '{attr}'") from exc
    return target


def instantiate_from_path(path: str, *args: Any, **kwargs: Any) -> Any:
    """Import and instantiate a class given its dotted path."""

    cls = import_string(path)
    return cls(*args, **kwargs)


def ensure_iterable(value: Any) -> Iterable[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return value
    return [value]
