"""Command line interface for agentchain projects."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, List, NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import ConfigError, ProjectConfig
from .logging_config import setup_logging
from .orchestration import OrchestrationReport
from .project import Project
from .reasoning.chain import ChainOutcome, ReasoningEngine, ThinkingDepth
from .tasks.runner import AgentExecutionResult

app = typer.Typer(help="Run agents and orchestrate their tasks")
console = Console()

_STATUS_STYLE = {
    "completed": "[green]completed[/]",
    "failed": "[red]failed[/]",
    "skipped": "[yellow]skipped[/]",
}


def _load(config_path: Path) -> Project:
    try:
        return Project(ProjectConfig.from_file(config_path))
    except ConfigError as exc:
        _config_error(exc)


def _config_error(exc: Exception) -> NoReturn:
    console.print(f"[bold red]Configuration error:[/] {exc}")
    raise typer.Exit(code=2)


def _write_report(path: Optional[Path], payload: Any) -> None:
    if path is None:
        return
    path.write_text(json.dumps(payload, indent=2))
    console.print(f"Report written to {path}")


def _render_plan(project: Project, stages: List[List[str]]) -> None:
    owners = {task.id: (agent, task) for agent in project.agents for task in agent.tasks}
    plan = Table(title="Execution Plan", show_lines=True)
    plan.add_column("Stage")
    plan.add_column("Task ID")
    plan.add_column("Agent")
    plan.add_column("Priority")
    plan.add_column("Depends on")
    for index, stage in enumerate(stages, start=1):
        for task_id in stage:
            agent, task = owners[task_id]
            plan.add_row(str(index), task.id, agent.id, task.priority.value, ", ".join(task.dependencies))
    console.print(plan)


def _render_report(report: OrchestrationReport) -> None:
    table = Table(title="Task results", show_lines=True)
    table.add_column("Task ID")
    table.add_column("Status")
    table.add_column("Confidence", justify="right")
    table.add_column("Issues fixed", justify="right")
    table.add_column("Message")
    for result in report.results:
        table.add_row(
            result.task_id,
            _STATUS_STYLE[result.status.value],
            f"{result.confidence}%",
            f"{result.issues_fixed}/{result.issues_found}",
            escape(result.message),
        )
    console.print(table)

    summary = report.summary
    line = (
        f"[bold]{summary.completed}/{summary.total_tasks}[/] tasks completed, "
        f"{summary.files_modified} files modified, confidence {summary.overall_confidence}% "
        f"({summary.mode.value}, {summary.duration:.0f}ms)"
    )
    if summary.converged is not None:
        line += f", {summary.iterations} iterations, " + ("converged" if summary.converged else "not converged")
    console.print(line)


def _render_agent_results(results: List[AgentExecutionResult]) -> None:
    table = Table(title="Agent results", show_lines=True)
    table.add_column("Agent")
    table.add_column("Completed", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("Skipped", justify="right")
    table.add_column("Issues fixed", justify="right")
    table.add_column("Summary")
    for result in results:
        table.add_row(
            result.agent_id,
            str(result.completed_tasks),
            str(result.failed_tasks),
            str(result.skipped_tasks),
            f"{result.issues_fixed}/{result.issues_found}",
            escape(result.error or result.summary),
        )
    console.print(table)


@app.command()
def run(
    config_path: Path = typer.Argument(..., help="Path to YAML configuration"),
    mode: Optional[str] = typer.Option(None, help="Override orchestrator mode: sequential, parallel or ultrathink"),
    agents: bool = typer.Option(False, "--agents", help="Run each agent with its own runner instead of orchestrating"),
    category: Optional[str] = typer.Option(None, help="Only use agents of this category"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Plan and report without invoking handlers"),
    report: Optional[Path] = typer.Option(None, help="Write a JSON report to this path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every reasoning step"),
) -> None:
    """Execute the tasks described in the given config file."""

    setup_logging(verbose)
    project = _load(config_path)
    console.print(f"[bold green]Running project[/] {project.config.name}")

    try:
        if agents:
            results = asyncio.run(project.run_agents(category))
            _render_agent_results(results)
            _write_report(report, [result.to_dict() for result in results])
            if any(result.failed_tasks or result.error for result in results):
                raise typer.Exit(code=1)
            return

        orchestrator = project.build_orchestrator(mode, dry_run=True if dry_run else None, category=category)
        if orchestrator.config.dry_run:
            _render_plan(project, orchestrator.plan())
        outcome = asyncio.run(orchestrator.run())
    except ConfigError as exc:
        _config_error(exc)

    _render_report(outcome)
    _write_report(report, outcome.to_dict())
    if not orchestrator.config.dry_run and not outcome.succeeded:
        raise typer.Exit(code=1)


@app.command()
def plan(
    config_path: Path = typer.Argument(..., help="Path to YAML configuration"),
    mode: Optional[str] = typer.Option(None, help="Override orchestrator mode"),
) -> None:
    """Show the execution stages without running anything."""

    project = _load(config_path)
    try:
        orchestrator = project.build_orchestrator(mode)
    except ConfigError as exc:
        _config_error(exc)
    console.print(f"[bold]Mode:[/] {orchestrator.mode.value}")
    _render_plan(project, orchestrator.plan())


@app.command()
def inspect(config_path: Path = typer.Argument(..., help="Config to inspect")) -> None:
    """Print the agents, tasks, and handlers defined by a configuration file."""

    project = _load(config_path)
    config = project.config
    console.print(f"[bold]Project:[/] {config.name}\n{config.description or ''}")
    console.print("[bold]Agents[/]")
    for agent in project.agents:
        console.print(f"- {agent.name} ({agent.category.value}): {len(agent.tasks)} tasks")
        for task in agent.tasks:
            handler = agent.handler_for(task)
            console.print(f"    - {task.id} ({task.priority.value}) -> {escape(str(getattr(handler, 'name', handler)))}")
    console.print("[bold]Handlers[/]")
    registry = project.handler_registry
    try:
        handlers = [(name, registry.resolve(name)) for name in registry.names()]
    except ConfigError as exc:
        _config_error(exc)
    for name, handler in handlers:
        console.print(f"- {name}: {handler.__class__.__name__}")


@app.command()
def think(
    goal: str = typer.Argument(..., help="Goal to reason about"),
    depth: Optional[ThinkingDepth] = typer.Option(None, help="Thinking depth preset (default: deep)"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Use the thinking depth configured here"),
) -> None:
    """Run a reasoning chain for GOAL and print its steps."""

    if config_path:
        engine = _load(config_path).reasoning_engine(depth)
    else:
        engine = ReasoningEngine(depth or ThinkingDepth.DEEP)
    chain = asyncio.run(engine.execute_chain(goal))

    table = Table(title=f"Reasoning chain ({engine.config.depth.value})", show_lines=True)
    table.add_column("#", justify="right")
    table.add_column("Phase")
    table.add_column("Confidence", justify="right")
    table.add_column("Thought")
    for index, step in enumerate(chain.steps, start=1):
        table.add_row(str(index), step.phase.label, f"{step.confidence:.0%}", step.thought)
    console.print(table)
    console.print(
        f"Outcome [bold]{chain.outcome.value}[/] after {chain.iterations} iterations, "
        f"final confidence {chain.final_confidence:.0%}"
    )
    if chain.outcome is ChainOutcome.FAILED:
        raise typer.Exit(code=1)


if __name__ == "__main__":  # pragma: no cover
    app()
