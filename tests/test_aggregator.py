"""Tests for the final credibility aggregation."""

from __future__ import annotations

import asyncio

import pytest

from tests._fixtures.judges import ScriptedJudge
from unmask.aggregator import Aggregator, aggregate, build_source_summaries
from unmask.models import (
    Applicant,
    Flag,
    Signal,
    SignalEvaluation,
    SignalEvaluationResult,
    SourceAnalysis,
)


def _analysis(source: str, score: int = 80) -> SourceAnalysis:
    return SourceAnalysis(
        source=source,
        metrics={"a_score": score, "b_score": score},
        flags=[Flag(type="yellow", category="profile", message=f"{source} concern", severity=3)],
        evidence={"strengths": ["ok"]},
        indicators={"has_activity": True},
        summary=f"{source} looks fine",
    )


def _signal_result(name: str, score: float, importance: float = 0.5) -> SignalEvaluationResult:
    return SignalEvaluationResult(
        signal=Signal(name=name, description=name, importance=importance, requires_cv=True, requires_linkedin=False),
        evaluation=SignalEvaluation(evaluation_score=score, reason=f"{name} reason"),
    )


def test_no_sources_returns_insufficient_data_without_calling(judge: ScriptedJudge) -> None:
    result = asyncio.run(Aggregator(judge).aggregate())

    assert judge.calls == []
    assert result.credibility_score == 50
    assert result.summary == "No data sources available for credibility analysis."
    assert result.flags[0].type == "yellow"
    assert result.sources == []
    assert result.error is None


def test_score_of_zero_is_kept() -> None:
    judge = ScriptedJudge(aggregate={"score": 0, "summary": "Fabricated profile"})

    result = asyncio.run(Aggregator(judge).aggregate(cv_analysis=_analysis("cv")))

    assert result.credibility_score == 0
    assert result.summary == "Fabricated profile"


@pytest.mark.parametrize("score", [None, "high", [90], True])
def test_invalid_score_defaults_to_midpoint(score) -> None:
    judge = ScriptedJudge(aggregate={"score": score})

    result = asyncio.run(Aggregator(judge).aggregate(cv_analysis=_analysis("cv")))

    assert result.credibility_score == 50
    assert result.summary == "Credibility analysis completed."


def test_flags_are_ranked_and_questions_capped() -> None:
    judge = ScriptedJudge(
        aggregate={
            "score": 64,
            "flags": [
                {"type": "yellow", "category": "profile", "message": "thin profile", "severity": 9},
                {"type": "red", "category": "timeline", "message": "overlap", "severity": 4},
                {"type": "red", "category": "identity", "message": "name mismatch", "severity": 9},
            ],
            "suggestedQuestions": ["Q1", "Q2", "", "Q3", "Q4"],
        }
    )

    result = asyncio.run(Aggregator(judge).aggregate(cv_analysis=_analysis("cv")))

    assert [flag.message for flag in result.flags] == ["name mismatch", "overlap", "thin profile"]
    assert result.suggested_questions == ["Q1", "Q2", "Q3"]


def test_snake_case_questions_are_accepted() -> None:
    judge = ScriptedJudge(aggregate={"score": 70, "suggested_questions": ["Why the gap?"]})

    result = asyncio.run(Aggregator(judge).aggregate(linkedin_analysis=_analysis("linkedin")))

    assert result.suggested_questions == ["Why the gap?"]


@pytest.mark.parametrize("failure", [RuntimeError("model offline"), "not json", ["list"]])
def test_failure_returns_technical_error_result(failure) -> None:
    judge = ScriptedJudge(aggregate=failure)

    result = asyncio.run(Aggregator(judge).aggregate(cv_analysis=_analysis("cv")))

    assert result.credibility_score == 50
    assert result.summary == "Analysis could not be completed due to technical error."
    assert result.error
    assert len(result.suggested_questions) == 1


def test_sources_are_built_from_supplied_analyses() -> None:
    judge = ScriptedJudge(
        aggregate={
            "score": 75,
            # Model-provided sources are ignored.
            "sources": [{"type": "github", "available": True, "score": 99}],
        }
    )

    result = asyncio.run(
        Aggregator(judge).aggregate(cv_analysis=_analysis("cv", 80), github_analysis=_analysis("github", 60))
    )

    by_type = {source.type: source for source in result.sources}
    assert [source.type for source in result.sources] == ["cv", "linkedin", "github"]
    assert by_type["cv"].available is True
    assert by_type["cv"].score == 80
    assert by_type["github"].score == 60
    assert by_type["linkedin"].available is False
    assert by_type["linkedin"].score is None
    assert by_type["cv"].analysis_details["summary"] == "cv looks fine"


def test_signal_summary_and_high_risk_reach_the_prompt() -> None:
    judge = ScriptedJudge(aggregate={"score": 40})
    signals = [_signal_result("cv_verifiable_claims", 0.1, 0.9), _signal_result("cv_timeline_consistency", 0.9)]

    result = asyncio.run(
        Aggregator(judge).aggregate(
            Applicant(id="a1", name="Jane Doe", email="jane.doe@example.com"),
            cv_analysis=_analysis("cv"),
            signal_results=signals,
        )
    )

    assert result.signal_summary is not None
    assert result.signal_summary.summary.total_signals == 2
    assert result.signal_summary.summary.passed_signals == 1
    assert result.signal_summary.summary.failed_signals == 1
    prompt = judge.calls[0]["prompt"]
    assert "Jane Doe" in prompt
    assert "cv_verifiable_claims" in prompt


def test_module_level_aggregate(judge: ScriptedJudge) -> None:
    result = asyncio.run(aggregate(cv_analysis=_analysis("cv"), judge=judge))

    assert result.credibility_score == 50
    assert judge.stages_called() == ["aggregate"]


def test_build_source_summaries_marks_fallbacks() -> None:
    fallback = _analysis("linkedin")
    fallback.fallback = True

    summaries = build_source_summaries({"cv": None, "linkedin": fallback, "github": None})

    assert [summary.available for summary in summaries] == [False, True, False]
    assert summaries[1].analysis_details["fallback"] is True
