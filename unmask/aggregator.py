"""Final credibility aggregation over per-source reports and signal results."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from .analyzers.normalize import clamp_score, normalize_flags, normalize_string_list, normalize_text, rank_flags
from .failsafe import build_error_result, build_insufficient_data_result
from .llm.judgment import JudgmentService
from .logging import get_logger
from .models import (
    SOURCE_CV,
    SOURCE_GITHUB,
    SOURCE_LINKEDIN,
    SOURCES,
    AnalysisResult,
    Applicant,
    CrossReferenceAnalysis,
    SignalEvaluationResult,
    SourceAnalysis,
    SourceSummary,
    utc_now,
)
from .prompting.builder import PromptBuilder
from .signals.evaluator import (
    FAILED_THRESHOLD,
    HIGH_RISK_THRESHOLD,
    PASSED_THRESHOLD,
    calculate_overall_score,
    get_high_risk_signals,
)

MAX_SUGGESTED_QUESTIONS = 3
DEFAULT_SUMMARY = "Credibility analysis completed."


class Aggregator:
    """Combines every upstream report into one :class:`AnalysisResult`.

    ``aggregate`` is total. With no source report at all it answers without
    calling the judgment service; a failed or malformed final call yields the
    technical-error result instead of an exception.
    """

    def __init__(
        self,
        judge: JudgmentService,
        prompt_builder: PromptBuilder | None = None,
        *,
        passed_threshold: float = PASSED_THRESHOLD,
        failed_threshold: float = FAILED_THRESHOLD,
        high_risk_threshold: float = HIGH_RISK_THRESHOLD,
    ) -> None:
        self.judge = judge
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.passed_threshold = passed_threshold
        self.failed_threshold = failed_threshold
        self.high_risk_threshold = high_risk_threshold
        self.logger = get_logger("aggregator")

    async def aggregate(
        self,
        applicant: Optional[Applicant] = None,
        cv_analysis: Optional[SourceAnalysis] = None,
        linkedin_analysis: Optional[SourceAnalysis] = None,
        github_analysis: Optional[SourceAnalysis] = None,
        cross_reference: Optional[CrossReferenceAnalysis] = None,
        signal_results: Sequence[SignalEvaluationResult] = (),
    ) -> AnalysisResult:
        analyses: Dict[str, Optional[SourceAnalysis]] = {
            SOURCE_CV: cv_analysis,
            SOURCE_LINKEDIN: linkedin_analysis,
            SOURCE_GITHUB: github_analysis,
        }
        available = [source for source, analysis in analyses.items() if analysis is not None]
        if not available:
            self.logger.info("No source reports available; returning insufficient-data result")
            return build_insufficient_data_result()

        signal_summary = None
        high_risk: List[SignalEvaluationResult] = []
        if signal_results:
            signal_summary = calculate_overall_score(
                signal_results,
                passed_threshold=self.passed_threshold,
                failed_threshold=self.failed_threshold,
            )
            high_risk = get_high_risk_signals(signal_results, self.high_risk_threshold)

        self.logger.info("Aggregating %d source report(s)", len(available))
        try:
            request = self.prompt_builder.build_aggregate_prompt(
                name=applicant.name if applicant is not None else None,
                email=applicant.email if applicant is not None else None,
                analyses=analyses,
                cross_reference=cross_reference,
                signal_score=signal_summary,
                high_risk_signals=high_risk,
            )
            payload = await self.judge.judge(request.prompt, system=request.system)
            if not isinstance(payload, dict):
                raise TypeError(f"expected a JSON object, got {type(payload).__name__}")
        except Exception as exc:
            self.logger.warning("Aggregation failed, using technical-error result: %s", exc)
            return build_error_result(str(exc))

        return AnalysisResult(
            credibility_score=clamp_score(payload.get("score")),
            summary=normalize_text(payload.get("summary"), DEFAULT_SUMMARY),
            flags=rank_flags(normalize_flags(payload.get("flags"))),
            suggested_questions=normalize_string_list(
                _first_present(payload, "suggestedQuestions", "suggested_questions"),
                limit=MAX_SUGGESTED_QUESTIONS,
            ),
            analysis_date=utc_now(),
            sources=build_source_summaries(analyses),
            signal_summary=signal_summary,
        )


def build_source_summaries(analyses: Mapping[str, Optional[SourceAnalysis]]) -> List[SourceSummary]:
    """One summary per known source, built from the reports actually supplied."""
    summaries: List[SourceSummary] = []
    for source in SOURCES:
        analysis = analyses.get(source)
        if analysis is None:
            summaries.append(SourceSummary(type=source, available=False, score=None))
            continue
        summaries.append(
            SourceSummary(
                type=source,
                available=True,
                score=analysis.overall_score,
                flags=list(analysis.flags),
                analysis_details={
                    "metrics": dict(analysis.metrics),
                    "evidence": {key: list(values) for key, values in analysis.evidence.items()},
                    "indicators": dict(analysis.indicators),
                    "summary": analysis.summary,
                    "fallback": analysis.fallback,
                },
            )
        )
    return summaries


def _first_present(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in payload:
            return payload[key]
    return None


async def aggregate(
    applicant: Optional[Applicant] = None,
    cv_analysis: Optional[SourceAnalysis] = None,
    linkedin_analysis: Optional[SourceAnalysis] = None,
    github_analysis: Optional[SourceAnalysis] = None,
    cross_reference: Optional[CrossReferenceAnalysis] = None,
    signal_results: Sequence[SignalEvaluationResult] = (),
    *,
    judge: JudgmentService,
    prompt_builder: PromptBuilder | None = None,
) -> AnalysisResult:
    return await Aggregator(judge, prompt_builder).aggregate(
        applicant,
        cv_analysis,
        linkedin_analysis,
        github_analysis,
        cross_reference,
        signal_results,
    )


__all__ = ["Aggregator", "MAX_SUGGESTED_QUESTIONS", "aggregate", "build_source_summaries"]
