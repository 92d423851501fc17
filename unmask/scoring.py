"""Tiered pre-analysis score based on data completeness.

- LinkedIn + CV: 30 (eligible for automatic full analysis)
- LinkedIn only: 20
- CV only: 15
- Neither: 10

The tier is cheap and deterministic; it gates the expensive aggregation run.
"""

from __future__ import annotations

from typing import Any

FULL_ANALYSIS_THRESHOLD = 30

SCORE_FILTER_OPTIONS: tuple[dict[str, object], ...] = (
    {"label": "Complete Data (30+)", "value": 30, "description": "Both LinkedIn and CV available"},
    {"label": "LinkedIn Only (20+)", "value": 20, "description": "LinkedIn profile available"},
    {"label": "CV Only (15+)", "value": 15, "description": "CV document available"},
    {"label": "Any Data (10+)", "value": 10, "description": "At least some data available"},
    {"label": "All Candidates", "value": 0, "description": "Show all candidates"},
)


def tier_score(has_linkedin: bool, has_cv: bool) -> int:
    if has_linkedin and has_cv:
        return 30
    if has_linkedin:
        return 20
    if has_cv:
        return 15
    return 10


def is_eligible_for_full_analysis(score: float, *, threshold: int = FULL_ANALYSIS_THRESHOLD) -> bool:
    return score >= threshold


def has_linkedin_url(linkedin_url: str | None) -> bool:
    return bool(linkedin_url and linkedin_url.strip())


def has_resume_file(resume_file: Any) -> bool:
    """True for a non-empty file handle given as a mapping or a string."""
    if isinstance(resume_file, str):
        return bool(resume_file.strip())
    if isinstance(resume_file, dict):
        return bool(resume_file)
    return False


def calculate_applicant_score(linkedin_url: str | None, resume_file: Any) -> int:
    return tier_score(has_linkedin_url(linkedin_url), has_resume_file(resume_file))


def score_tier_description(score: float) -> str:
    if score >= 30:
        return "Complete Data (LinkedIn + CV)"
    if score >= 20:
        return "LinkedIn Only"
    if score >= 15:
        return "CV Only"
    if score >= 10:
        return "Minimal Data"
    return "No Data"


__all__ = [
    "FULL_ANALYSIS_THRESHOLD",
    "SCORE_FILTER_OPTIONS",
    "calculate_applicant_score",
    "has_linkedin_url",
    "has_resume_file",
    "is_eligible_for_full_analysis",
    "score_tier_description",
    "tier_score",
]
