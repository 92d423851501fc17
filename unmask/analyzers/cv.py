"""CV document analyzer."""

from __future__ import annotations

from ..models import SOURCE_CV
from ..prompting.builder import RubricDimension
from .base import SourceAnalyzer


class CvAnalyzer(SourceAnalyzer):
    source = SOURCE_CV
    DIMENSIONS = (
        RubricDimension("completeness_score", "contact details, experience, education and skills are present and detailed"),
        RubricDimension("consistency_score", "titles, dates and descriptions agree with each other throughout the document"),
        RubricDimension("experience_realism_score", "career progression, seniority and tenure are plausible"),
        RubricDimension("skills_credibility_score", "claimed skills are backed by the described experience and projects"),
        RubricDimension("education_verification_score", "institutions and degrees look real and match the timeline"),
        RubricDimension("timeline_gaps_score", "absence of unexplained gaps or overlapping full-time roles (100 = no gaps)"),
    )
    ARRAY_FIELDS = {
        "strengths": "signals that make the CV credible",
        "concerns": "specific issues a recruiter should check",
        "timeline_gaps": "each unexplained gap or overlap, described with dates",
    }
    BOOLEAN_FIELDS = {
        "has_verifiable_claims": ("public work, publications or OSS contributions can be checked", False),
    }


__all__ = ["CvAnalyzer"]
