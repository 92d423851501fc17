"""Tests for unmask.signals.evaluator."""

from __future__ import annotations

import asyncio
import math

import pytest

from tests._fixtures.judges import CV_DATA, LINKEDIN_DATA, ScriptedJudge
from unmask.models import Signal, SignalEvaluation, SignalEvaluationResult
from unmask.signals.catalog import ALL_SIGNALS
from unmask.signals.evaluator import (
    EvaluationContext,
    SignalEvaluator,
    applicable_signals,
    calculate_overall_score,
    evaluate_all_signals,
    get_high_risk_signals,
)


def _result(score: float, importance: float, name: str = "signal") -> SignalEvaluationResult:
    return SignalEvaluationResult(
        signal=Signal(
            name=name,
            description="test signal",
            importance=importance,
            requires_cv=False,
            requires_linkedin=False,
        ),
        evaluation=SignalEvaluation(evaluation_score=score, reason="test"),
    )


def test_cv_only_context_excludes_linkedin_signals() -> None:
    judge = ScriptedJudge(signal={"evaluation_score": 0.8, "reason": "fine"})

    results = asyncio.run(evaluate_all_signals(EvaluationContext(cv_data=CV_DATA), judge=judge))

    expected = [signal for signal in ALL_SIGNALS if signal.requires_cv and not signal.requires_linkedin]
    assert [result.signal for result in results] == expected
    assert not any(result.signal.requires_linkedin for result in results)
    assert len(judge.calls) == len(expected)


def test_results_preserve_catalog_order_regardless_of_completion() -> None:
    names = [signal.name for signal in ALL_SIGNALS]

    class SlowFirstJudge(ScriptedJudge):
        async def judge(self, prompt, *, system=None):
            # Earlier catalog entries finish last.
            name = system.split("Signal to evaluate: ")[1].split()[0]
            await asyncio.sleep(0.001 * (len(names) - names.index(name)))
            return {"evaluation_score": 0.5, "reason": name}

    context = EvaluationContext(cv_data=CV_DATA, linkedin_data=LINKEDIN_DATA)
    results = asyncio.run(SignalEvaluator(SlowFirstJudge()).evaluate_all(context))

    assert [result.signal.name for result in results] == names
    assert [result.evaluation.reason for result in results] == names


def test_no_applicable_signals_skips_the_judge(judge: ScriptedJudge) -> None:
    results = asyncio.run(SignalEvaluator(judge).evaluate_all(EvaluationContext()))

    assert results == []
    assert judge.calls == []


@pytest.mark.parametrize(
    "response",
    [
        {"evaluation_score": 1.5, "reason": "too high"},
        {"evaluation_score": -0.1, "reason": "too low"},
        {"evaluation_score": "0.5", "reason": "string"},
        {"evaluation_score": True, "reason": "bool"},
        {"evaluation_score": math.nan, "reason": "nan"},
        {"reason": "missing"},
        ["not", "an", "object"],
        RuntimeError("service unavailable"),
    ],
)
def test_invalid_judgment_becomes_zero_with_diagnostic(response) -> None:
    judge = ScriptedJudge(signal=response)
    signal = ALL_SIGNALS[-1]

    result = asyncio.run(
        SignalEvaluator(judge).evaluate_signal(
            signal, EvaluationContext(cv_data=CV_DATA, linkedin_data=LINKEDIN_DATA)
        )
    )

    assert result.signal == signal
    assert result.evaluation.evaluation_score == 0
    assert result.evaluation.reason.startswith("Evaluation failed:")


def test_one_failing_signal_does_not_abort_the_batch() -> None:
    judge = ScriptedJudge(
        signal={"evaluation_score": 0.9, "reason": "consistent"},
        signals={"cv_verifiable_claims": TimeoutError("timed out")},
    )

    results = asyncio.run(SignalEvaluator(judge).evaluate_all(EvaluationContext(cv_data=CV_DATA)))

    by_name = {result.signal.name: result.evaluation for result in results}
    assert by_name["cv_verifiable_claims"].evaluation_score == 0
    assert "timed out" in by_name["cv_verifiable_claims"].reason
    assert by_name["cv_timeline_consistency"].evaluation_score == pytest.approx(0.9)
    assert by_name["cv_project_specificity"].evaluation_score == pytest.approx(0.9)


def test_missing_required_data_is_reported_without_a_call(judge: ScriptedJudge) -> None:
    signal = next(signal for signal in ALL_SIGNALS if signal.requires_linkedin)

    result = asyncio.run(SignalEvaluator(judge).evaluate_signal(signal, EvaluationContext(cv_data=CV_DATA)))

    assert result.evaluation.evaluation_score == 0
    assert result.evaluation.reason == "LinkedIn data required but not provided"
    assert judge.calls == []


def test_prompt_only_carries_required_sources() -> None:
    judge = ScriptedJudge(signal={"evaluation_score": 1, "reason": "ok"})
    cv_only = next(signal for signal in ALL_SIGNALS if signal.requires_cv and not signal.requires_linkedin)

    asyncio.run(
        SignalEvaluator(judge).evaluate_signal(
            cv_only, EvaluationContext(cv_data=CV_DATA, linkedin_data=LINKEDIN_DATA)
        )
    )

    prompt = judge.calls[0]["prompt"]
    assert "jane.doe@example.com" in prompt
    assert "Senior Software Engineer at Tech Corp" not in prompt
    assert f"Signal to evaluate: {cv_only.name}" in judge.calls[0]["system"]


def test_applicable_signals_requires_both_for_combined() -> None:
    linkedin_only = applicable_signals(EvaluationContext(linkedin_data=LINKEDIN_DATA))
    assert linkedin_only
    assert all(not signal.requires_cv for signal in linkedin_only)


def test_overall_score_equal_importance() -> None:
    score = calculate_overall_score([_result(1.0, 1.0), _result(0.0, 1.0)])

    assert score.overall_score == pytest.approx(0.5)
    assert score.weighted_score == pytest.approx(0.5)
    assert score.summary.total_signals == 2
    assert score.summary.passed_signals == 1
    assert score.summary.failed_signals == 1
    assert score.summary.average_score == pytest.approx(0.5)


def test_overall_score_weights_by_importance() -> None:
    score = calculate_overall_score([_result(1.0, 0.8), _result(0.0, 0.2)])

    assert score.weighted_score == pytest.approx(0.8)
    assert score.overall_score == pytest.approx(0.5)


def test_overall_score_empty_input_is_all_zero() -> None:
    score = calculate_overall_score([])

    assert score.overall_score == 0
    assert score.weighted_score == 0
    assert score.summary.total_signals == 0
    assert score.summary.passed_signals == 0
    assert score.summary.failed_signals == 0
    assert score.summary.average_score == 0


def test_overall_score_zero_importance_does_not_divide_by_zero() -> None:
    score = calculate_overall_score([_result(0.6, 0.0)])

    assert score.weighted_score == 0
    assert score.overall_score == pytest.approx(0.6)


def test_pass_and_fail_boundaries() -> None:
    score = calculate_overall_score([_result(0.7, 1.0), _result(0.3, 1.0), _result(0.29, 1.0)])

    assert score.summary.passed_signals == 1
    assert score.summary.failed_signals == 1


def test_high_risk_signals_sorted_by_importance() -> None:
    results = [
        _result(0.1, 0.9, "first"),
        _result(0.2, 0.5, "second"),
        _result(0.5, 1.0, "third"),
    ]

    high_risk = get_high_risk_signals(results, threshold=0.3)

    assert [result.signal.name for result in high_risk] == ["first", "second"]


def test_high_risk_ties_keep_catalog_order() -> None:
    results = [_result(0.0, 0.5, "a"), _result(0.1, 0.9, "b"), _result(0.2, 0.5, "c")]

    assert [result.signal.name for result in get_high_risk_signals(results)] == ["b", "a", "c"]
