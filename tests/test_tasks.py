import pytest

from agentchain.tasks.base import InvalidTransitionError, Priority, Task, TaskResult, TaskStatus, round_half_up


def test_task_defaults():
    task = Task(id="lint", name="Lint sources")

    assert task.status is TaskStatus.PENDING
    assert task.priority is Priority.MEDIUM
    assert task.kind == "lint"
    assert task.dependencies == ()
    assert task.result is None


def test_task_accepts_string_priority_and_lists():
    task = Task(id="a", name="A", priority="critical", dependencies=["b"], target_files=["src/*.ts"])

    assert task.priority is Priority.CRITICAL
    assert task.dependencies == ("b",)
    assert task.target_files == ("src/*.ts",)


def test_lifecycle_completed():
    task = Task(id="a", name="A")
    task.start()
    assert task.status is TaskStatus.IN_PROGRESS

    task.finish(TaskResult(success=True, issues_found=2, issues_fixed=2))

    assert task.status is TaskStatus.COMPLETED
    assert task.result.task_id == "a"
    assert task.is_terminal


def test_lifecycle_failed():
    task = Task(id="a", name="A")
    task.start()
    task.finish(TaskResult.failure("boom"))

    assert task.status is TaskStatus.FAILED
    assert task.result.message == "boom"


def test_skip_from_pending_records_result():
    task = Task(id="a", name="A")
    result = task.skip("Unmet dependencies: b")

    assert task.status is TaskStatus.SKIPPED
    assert result is task.result
    assert result.success is False
    assert result.details["skipped"] is True


@pytest.mark.parametrize(
    "steps",
    [
        ["finish"],
        ["start", "start"],
        ["start", "finish", "start"],
        ["skip", "start"],
    ],
)
def test_illegal_transitions_raise(steps):
    task = Task(id="a", name="A")
    with pytest.raises(InvalidTransitionError):
        for step in steps:
            if step == "start":
                task.start()
            elif step == "finish":
                task.finish(TaskResult(success=True))
            else:
                task.skip("reason")


def test_reset_returns_to_pending():
    task = Task(id="a", name="A")
    task.start()
    task.finish(TaskResult(success=False))
    task.reset()

    assert task.status is TaskStatus.PENDING
    assert task.result is None
    task.start()


def test_priority_rank_order():
    ranks = [p.rank for p in (Priority.CRITICAL, Priority.HIGH, Priority.MEDIUM, Priority.LOW)]
    assert ranks == sorted(ranks)


@pytest.mark.parametrize(
    "found, fixed, expected",
    [(0, 0, 100), (4, 4, 100), (4, 1, 25), (3, 2, 67), (3, 0, 0), (8, 1, 13), (8, 5, 63)],
)
def test_result_confidence(found, fixed, expected):
    assert TaskResult(success=True, issues_found=found, issues_fixed=fixed).confidence == expected


def test_result_rejects_negative_counts():
    with pytest.raises(ValueError):
        TaskResult(success=True, issues_found=-1)
    with pytest.raises(ValueError):
        TaskResult(success=True, issues_fixed=-2)


def test_result_is_immutable_and_serialisable():
    result = TaskResult(success=True, message="ok", files_modified=["a.ts", "b.ts"], issues_found=1)

    assert result.files_modified == ("a.ts", "b.ts")
    with pytest.raises(AttributeError):
        result.success = False  # type: ignore[misc]
    assert result.with_task_id("t1").to_dict() == {
        "task_id": "t1",
        "success": True,
        "message": "ok",
        "files_modified": ["a.ts", "b.ts"],
        "issues_found": 1,
        "issues_fixed": 0,
        "details": {},
    }


@pytest.mark.parametrize("value, expected", [(12.5, 13), (62.5, 63), (0.5, 1), (2.5, 3), (62.4, 62), (88.00000000000001, 88)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected
