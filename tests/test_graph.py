import logging

import pytest

from agentchain.config import ConfigError
from agentchain.tasks.base import Task, TaskResult
from agentchain.tasks.graph import (
    DependencyCycleError,
    chunk,
    find_cycle,
    partition_by_dependencies,
    sort_by_priority,
    unmet_dependencies,
    validate_dependencies,
)


def _tasks(*specs):
    return [Task(id=task_id, name=task_id, priority=priority, dependencies=deps) for task_id, priority, deps in specs]


def test_sort_by_priority_is_stable():
    tasks = _tasks(("a", "low", ()), ("b", "high", ()), ("c", "high", ()), ("d", "critical", ()))

    assert [t.id for t in sort_by_priority(tasks)] == ["d", "b", "c", "a"]


def test_partition_keeps_declaration_order():
    tasks = _tasks(("a", "low", ()), ("b", "high", ("a",)), ("c", "high", ()))
    independent, dependent = partition_by_dependencies(tasks)

    assert [t.id for t in independent] == ["a", "c"]
    assert [t.id for t in dependent] == ["b"]


def test_chunk_sizes():
    tasks = _tasks(*[(str(i), "medium", ()) for i in range(5)])

    assert [len(batch) for batch in chunk(tasks, 2)] == [2, 2, 1]
    assert chunk([], 3) == []
    with pytest.raises(ValueError):
        chunk(tasks, 0)


def test_unmet_dependencies_tracks_completion():
    a, b = _tasks(("a", "medium", ()), ("b", "medium", ("a",)))
    lookup = {"a": a, "b": b}

    assert unmet_dependencies(b, lookup) == ["a"]
    a.start()
    a.finish(TaskResult(success=True))
    assert unmet_dependencies(b, lookup) == []


def test_failed_dependency_stays_unmet():
    a, b = _tasks(("a", "medium", ()), ("b", "medium", ("a",)))
    a.start()
    a.finish(TaskResult(success=False))

    assert unmet_dependencies(b, {"a": a, "b": b}) == ["a"]


def test_unknown_dependency_is_unmet_and_logged(caplog):
    (task,) = _tasks(("b", "medium", ("ghost",)))
    with caplog.at_level(logging.WARNING, logger="agentchain.tasks.graph"):
        assert unmet_dependencies(task, {"b": task}) == ["ghost"]
    assert "unknown task ghost" in caplog.text


def test_find_cycle_reports_loop():
    tasks = _tasks(("a", "medium", ("c",)), ("b", "medium", ("a",)), ("c", "medium", ("b",)), ("d", "medium", ()))
    cycle = find_cycle(tasks)

    assert cycle[0] == cycle[-1]
    assert set(cycle) == {"a", "b", "c"}


def test_self_dependency_is_a_cycle():
    tasks = _tasks(("a", "medium", ("a",)))

    assert find_cycle(tasks) == ["a", "a"]


def test_acyclic_graph_validates():
    tasks = _tasks(("a", "medium", ()), ("b", "medium", ("a",)), ("c", "medium", ("a", "b", "missing")))

    assert find_cycle(tasks) == []
    validate_dependencies(tasks)


def test_validate_raises_config_error_subclass():
    tasks = _tasks(("a", "medium", ("b",)), ("b", "medium", ("a",)))

    with pytest.raises(DependencyCycleError) as excinfo:
        validate_dependencies(tasks)
    assert isinstance(excinfo.value, ConfigError)
    assert set(excinfo.value.cycle) == {"a", "b"}
