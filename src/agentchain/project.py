"""Builds handlers, agents and orchestrators from a project configuration."""

from __future__ import annotations

from typing import Awaitable, Dict, List, Optional, Union

from .agents.base import Agent, AgentCategory
from .agents.registry import AgentRegistry
from .config import AgentSpec, ConfigError, ProjectConfig, TaskSpec
from .handlers.builtin import register_builtin_handlers
from .handlers.registry import HandlerRegistry
from .orchestration import ExecutionMode, OrchestrationReport, Orchestrator, OrchestratorConfig
from .reasoning.chain import ReasoningEngine
from .reasoning.scoring import Scorer
from .tasks.base import Task, TaskResult
from .tasks.runner import AgentExecutionResult


class Project:
    """Materialises a ``ProjectConfig`` into runnable agents and tasks."""

    def __init__(
        self,
        config: ProjectConfig,
        *,
        handler_registry: Optional[HandlerRegistry] = None,
        scorer: Optional[Scorer] = None,
    ) -> None:
        self.config = config
        self.scorer = scorer
        self.handler_registry = handler_registry or HandlerRegistry()
        register_builtin_handlers(self.handler_registry)
        self.handler_registry.declare(self.config.handler_specs.values())
        self.registry = AgentRegistry()
        for spec in self.config.agents.values():
            self.registry.register(self._materialize_agent(spec))

    def _materialize_agent(self, spec: AgentSpec) -> Agent:
        tasks = [self._build_task(item) for item in spec.tasks]
        handlers = self.handler_registry.route(
            spec.id, zip(tasks, (item.handler for item in spec.tasks)), default=spec.handler
        )
        return Agent(
            id=spec.id,
            category=spec.category,
            tasks=tasks,
            executor=handlers,
            name=spec.name,
            description=spec.description,
            emoji=spec.emoji,
        )

    @staticmethod
    def _build_task(spec: TaskSpec) -> Task:
        return Task(
            id=spec.id,
            name=spec.name,
            priority=spec.priority,
            dependencies=spec.dependencies,
            kind=spec.kind,
            description=spec.description,
            target_files=spec.target_files,
            estimated_minutes=spec.estimated_minutes,
        )

    @staticmethod
    def _category(value: Union[AgentCategory, str]) -> AgentCategory:
        try:
            return AgentCategory(value)
        except ValueError as exc:
            raise ConfigError(f"Unknown category '{value}'") from exc

    def _select(self, category: Union[AgentCategory, str, None]) -> List[Agent]:
        if category:
            return self.registry.get_by_category(self._category(category))
        return self.registry.get_all()

    @property
    def agents(self) -> List[Agent]:
        return self.registry.get_all()

    def build_orchestrator(
        self,
        mode: Union[ExecutionMode, str, None] = None,
        *,
        dry_run: Optional[bool] = None,
        category: Union[AgentCategory, str, None] = None,
    ) -> Orchestrator:
        """Flatten the agents' tasks into one orchestrator task list."""
        agents = self._select(category)
        owners: Dict[str, Agent] = {}
        tasks: List[Task] = []
        for agent in agents:
            for task in agent.tasks:
                if task.id in owners:
                    raise ConfigError(
                        f"Task id '{task.id}' is used by agents '{owners[task.id].id}' and '{agent.id}'"
                    )
                owners[task.id] = agent
                tasks.append(task)

        def executor(task: Task) -> Union[TaskResult, Awaitable[TaskResult]]:
            return owners[task.id].execute(task)

        spec = self.config.orchestrator
        config = OrchestratorConfig(
            mode=mode or spec.mode,
            max_iterations=spec.max_iterations,
            target_confidence=spec.target_confidence,
            parallel_limit=spec.parallel_limit,
            batch_policy=spec.batch_policy,
            dry_run=spec.dry_run if dry_run is None else dry_run,
        )
        return Orchestrator(tasks, executor, config, scorer=self.scorer)

    async def run_agents(self, category: Union[AgentCategory, str, None] = None) -> List[AgentExecutionResult]:
        if category:
            return await self.registry.run_by_category(self._category(category))
        return await self.registry.run_all()

    async def orchestrate(
        self,
        mode: Union[ExecutionMode, str, None] = None,
        *,
        dry_run: Optional[bool] = None,
        category: Union[AgentCategory, str, None] = None,
    ) -> OrchestrationReport:
        orchestrator = self.build_orchestrator(mode, dry_run=dry_run, category=category)
        return await orchestrator.run()

    def reasoning_engine(self, depth: Optional[str] = None) -> ReasoningEngine:
        """Reasoning engine at ``depth``, or the configured ``thinking_depth``."""
        return ReasoningEngine(depth or self.config.orchestrator.thinking_depth, scorer=self.scorer)
