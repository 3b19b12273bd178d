import pytest

from agentchain.config import ConfigError
from agentchain.reasoning import Criterion, EvaluatorOptimizer


def _fixed(value):
    return lambda input, output: value


def test_all_targets_met_passes_without_improvements():
    optimizer = EvaluatorOptimizer()
    criteria = [Criterion("clarity", _fixed(90)), Criterion("accuracy", _fixed(85), target=85)]

    loop = optimizer.evaluate_and_optimize("prompt", "answer", criteria)

    assert loop.evaluation.pass_threshold is True
    assert loop.evaluation.improvements == []
    assert loop.evaluation.feedback == []
    assert loop.applied_improvements == []
    assert loop.evaluation.score == pytest.approx(87.5)


def test_failing_loop_applies_critical_and_high_suggestions():
    optimizer = EvaluatorOptimizer()
    criteria = [Criterion("coverage", _fixed(40)), Criterion("style", _fixed(70))]

    loop = optimizer.evaluate_and_optimize("in", "out", criteria)
    evaluation = loop.evaluation

    assert evaluation.score == pytest.approx(55)
    assert evaluation.pass_threshold is False
    assert [(s.area, s.priority) for s in evaluation.improvements] == [("coverage", "critical"), ("style", "high")]
    assert evaluation.improvements[0].expected_impact == pytest.approx(40)
    assert evaluation.feedback[0] == "coverage: 40.0/80 (needs improvement)"
    assert loop.applied_improvements == ["Improve coverage from 40.0 to 80", "Improve style from 70.0 to 80"]


def test_passing_score_keeps_suggestions_but_applies_none():
    optimizer = EvaluatorOptimizer()
    criteria = [Criterion("speed", _fixed(100)), Criterion("size", _fixed(70))]

    loop = optimizer.evaluate_and_optimize("in", "out", criteria)

    assert loop.evaluation.pass_threshold is True
    assert [s.area for s in loop.evaluation.improvements] == ["size"]
    assert loop.applied_improvements == []


def test_delta_tracks_previous_iteration():
    scores = iter([50, 75, 60])
    optimizer = EvaluatorOptimizer(metric=lambda name, input, output: next(scores))

    first = optimizer.evaluate_and_optimize("in", "v1", ["quality"])
    second = optimizer.evaluate_and_optimize("in", "v2", ["quality"])
    third = optimizer.evaluate_and_optimize("in", "v3", ["quality"])

    assert (first.iteration, second.iteration, third.iteration) == (1, 2, 3)
    assert first.delta_score == 0
    assert second.delta_score == pytest.approx(25)
    assert third.delta_score == pytest.approx(-15)
    assert len(optimizer.history) == 3

    optimizer.reset()
    assert optimizer.history == []


def test_weights_split_remainder():
    optimizer = EvaluatorOptimizer()
    criteria = [
        Criterion("a", _fixed(100), weight=0.6),
        Criterion("b", _fixed(50)),
        Criterion("c", _fixed(0)),
    ]

    evaluation = optimizer.evaluate("in", "out", criteria)

    assert [m.weight for m in evaluation.metrics] == pytest.approx([0.6, 0.2, 0.2])
    assert evaluation.score == pytest.approx(70)


def test_explicit_weights_over_one_with_unset_criteria_is_an_error():
    with pytest.raises(ConfigError):
        EvaluatorOptimizer().evaluate("in", "out", [Criterion("a", _fixed(1), weight=1.2), Criterion("b", _fixed(1))])



def test_explicit_weights_are_normalised():
    criteria = [Criterion("a", _fixed(90), weight=0.4), Criterion("b", _fixed(90), weight=0.4)]

    loop = EvaluatorOptimizer().evaluate_and_optimize("in", "out", criteria)

    assert [m.weight for m in loop.evaluation.metrics] == pytest.approx([0.5, 0.5])
    assert loop.evaluation.score == pytest.approx(90)
    assert loop.evaluation.pass_threshold is True
    assert loop.evaluation.improvements == []
    assert loop.applied_improvements == []


def test_relative_explicit_weights_keep_their_proportions():
    criteria = [Criterion("a", _fixed(100), weight=3), Criterion("b", _fixed(60), weight=1)]

    evaluation = EvaluatorOptimizer().evaluate("in", "out", criteria)

    assert [m.weight for m in evaluation.metrics] == pytest.approx([0.75, 0.25])
    assert evaluation.score == pytest.approx(90)


@pytest.mark.parametrize("weights", [(0, 0), (-0.5, 1.5)])
def test_zero_or_negative_weights_are_an_error(weights):
    criteria = [Criterion(name, _fixed(90), weight=weight) for name, weight in zip("ab", weights)]
    with pytest.raises(ConfigError):
        EvaluatorOptimizer().evaluate("in", "out", criteria)


def test_targets_below_pass_score_can_fail_without_improvements():
    optimizer = EvaluatorOptimizer()

    loop = optimizer.evaluate_and_optimize("in", "out", [Criterion("recall", _fixed(60), target=50)])

    assert loop.evaluation.improvements == []
    assert loop.evaluation.pass_threshold is False
    assert loop.applied_improvements == []

def test_named_criterion_without_metric_is_an_error():
    with pytest.raises(ConfigError, match="tone"):
        EvaluatorOptimizer().evaluate("in", "out", ["tone"])


def test_custom_pass_score_and_metric_arguments():
    calls = []

    def metric(name, input, output):
        calls.append((name, input, output))
        return 65

    optimizer = EvaluatorOptimizer(metric=metric, pass_score=60)
    evaluation = optimizer.evaluate("question", "reply", [Criterion("relevance", target=60)])

    assert calls == [("relevance", "question", "reply")]
    assert evaluation.pass_threshold is True
    assert evaluation.metrics[0].passed is True


def test_loop_to_dict():
    loop = EvaluatorOptimizer().evaluate_and_optimize("in", "out", [Criterion("a", _fixed(10))])

    payload = loop.to_dict()
    assert payload["iteration"] == 1
    assert payload["evaluation"]["improvements"][0]["priority"] == "critical"
    assert payload["evaluation"]["metrics"][0]["name"] == "a"
