"""Canned degraded results used when an analysis stage cannot complete."""

from __future__ import annotations

from typing import Iterable, Mapping, Optional, Sequence

from .models import (
    FLAG_YELLOW,
    AnalysisResult,
    CrossReferenceAnalysis,
    Flag,
    SourceAnalysis,
    utc_now,
)

NEUTRAL_SCORE = 50
FALLBACK_CATEGORY = "verification"

_SOURCE_LABELS = {"cv": "CV", "linkedin": "LinkedIn", "github": "GitHub"}


def source_label(source: str) -> str:
    return _SOURCE_LABELS.get(source, source.replace("_", " ").title())


def build_source_fallback(
    source: str,
    metric_keys: Iterable[str],
    *,
    array_fields: Iterable[str] = (),
    boolean_defaults: Mapping[str, bool] | None = None,
    reason: str | None = None,
) -> SourceAnalysis:
    """Return mid-range scores, empty evidence and a single failure flag."""
    label = source_label(source)
    return SourceAnalysis(
        source=source,
        metrics={key: NEUTRAL_SCORE for key in metric_keys},
        flags=[
            Flag(
                type=FLAG_YELLOW,
                category=FALLBACK_CATEGORY,
                message=f"{label} analysis failed; manual review required",
                severity=5,
            )
        ],
        evidence={key: [] for key in array_fields},
        indicators=dict(boolean_defaults or {}),
        summary=_with_reason(f"{label} analysis could not be completed.", reason),
        fallback=True,
    )


def build_cross_reference_fallback(
    compared_sources: Sequence[str],
    *,
    reason: str | None = None,
) -> CrossReferenceAnalysis:
    """Mid-range scores for applicable pairs only; absent pairs stay ``None``."""
    present = set(compared_sources)

    def _pair(left: str, right: str) -> Optional[int]:
        return NEUTRAL_SCORE if left in present and right in present else None

    return CrossReferenceAnalysis(
        cv_linkedin_consistency=_pair("cv", "linkedin"),
        cv_github_consistency=_pair("cv", "github"),
        linkedin_github_consistency=_pair("linkedin", "github"),
        overall_consistency=NEUTRAL_SCORE,
        name_match=None,
        discrepancies=[],
        flags=[
            Flag(
                type=FLAG_YELLOW,
                category=FALLBACK_CATEGORY,
                message="Cross-reference analysis failed; manual review required",
                severity=5,
            )
        ],
        compared_sources=list(compared_sources),
        summary=_with_reason("Cross-reference analysis could not be completed.", reason),
        fallback=True,
    )


def build_error_result(error: str | None = None) -> AnalysisResult:
    """Total fallback for the aggregation stage."""
    return AnalysisResult(
        credibility_score=NEUTRAL_SCORE,
        summary="Analysis could not be completed due to technical error.",
        flags=[
            Flag(
                type=FLAG_YELLOW,
                category=FALLBACK_CATEGORY,
                message="Analysis could not be completed due to technical error",
                severity=5,
            )
        ],
        suggested_questions=["Could you provide additional information about your background?"],
        analysis_date=utc_now(),
        sources=[],
        error=_format_reason(error),
    )


def build_insufficient_data_result() -> AnalysisResult:
    return AnalysisResult(
        credibility_score=NEUTRAL_SCORE,
        summary="No data sources available for credibility analysis.",
        flags=[
            Flag(
                type=FLAG_YELLOW,
                category=FALLBACK_CATEGORY,
                message="No data sources (CV, LinkedIn, or GitHub) available for analysis.",
                severity=5,
            )
        ],
        suggested_questions=[
            "Could you provide a CV, LinkedIn profile, or GitHub profile for analysis?"
        ],
        analysis_date=utc_now(),
        sources=[],
    )


def _with_reason(text: str, reason: str | None) -> str:
    cleaned = _format_reason(reason)
    if not cleaned:
        return text
    return f"{text} ({cleaned})"


def _format_reason(reason: str | None) -> str | None:
    if not reason:
        return None
    cleaned = " ".join(reason.strip().split())
    if not cleaned:
        return None
    return cleaned[:200] + ("…" if len(cleaned) > 200 else "")


__all__ = [
    "FALLBACK_CATEGORY",
    "NEUTRAL_SCORE",
    "build_cross_reference_fallback",
    "build_error_result",
    "build_insufficient_data_result",
    "build_source_fallback",
    "source_label",
]
