"""Registry that keeps track of agents and runs them in isolation."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Union

from ..tasks.runner import AgentExecutionResult, Runner
from .base import Agent, AgentCategory

logger = logging.getLogger(__name__)


class AgentRegistry:
    """Stores agents by id and runs them one after another.

    A failure escaping an agent's run is converted into an all-failed
    result so that one broken agent cannot abort the whole batch.
    """

    def __init__(self, runner: Optional[Runner] = None) -> None:
        self.runner = runner or Runner()
        self._agents: Dict[str, Agent] = {}

    def register(self, agent: Agent) -> None:
        if agent.id in self._agents:
            logger.warning("Agent %s already registered; replacing previous definition", agent.id)
        self._agents[agent.id] = agent

    def unregister(self, agent_id: str) -> Optional[Agent]:
        return self._agents.pop(agent_id, None)

    def get(self, agent_id: str) -> Optional[Agent]:
        return self._agents.get(agent_id)

    def get_all(self) -> List[Agent]:
        return list(self._agents.values())

    def get_by_category(self, category: Union[AgentCategory, str]) -> List[Agent]:
        category = AgentCategory(category)
        return [agent for agent in self._agents.values() if agent.category is category]

    def __contains__(self, agent_id: str) -> bool:
        return agent_id in self._agents

    def __len__(self) -> int:
        return len(self._agents)

    def __iter__(self) -> Iterator[Agent]:
        return iter(self.get_all())

    async def run_all(self) -> List[AgentExecutionResult]:
        return await self._run_isolated(self.get_all())

    async def run_by_category(self, category: Union[AgentCategory, str]) -> List[AgentExecutionResult]:
        return await self._run_isolated(self.get_by_category(category))

    async def _run_isolated(self, agents: Iterable[Agent]) -> List[AgentExecutionResult]:
        results: List[AgentExecutionResult] = []
        for agent in agents:
            try:
                results.append(await self.runner.run(agent))
            except Exception as exc:
                logger.error("Agent %s failed: %s", agent.id, exc, exc_info=True)
                results.append(AgentExecutionResult.for_failed_agent(agent, exc))
        return results
