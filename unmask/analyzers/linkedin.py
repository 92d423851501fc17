"""LinkedIn profile analyzer."""

from __future__ import annotations

from ..models import SOURCE_LINKEDIN
from ..prompting.builder import RubricDimension
from .base import SourceAnalyzer


class LinkedInAnalyzer(SourceAnalyzer):
    source = SOURCE_LINKEDIN
    DIMENSIONS = (
        RubricDimension("profile_completeness_score", "headline, experience, education and skills are filled in"),
        RubricDimension("network_authenticity_score", "connection count and relevance look like a real professional network"),
        RubricDimension("activity_score", "posts, likes and comments show genuine engagement"),
        RubricDimension("experience_consistency_score", "roles, companies and durations are coherent and plausible"),
        RubricDimension("endorsement_credibility_score", "recommendations and certifications come from credible sources"),
        RubricDimension("account_maturity_score", "the account is old enough and not freshly created"),
    )
    ARRAY_FIELDS = {
        "strengths": "signals that make the profile credible",
        "concerns": "specific issues a recruiter should check",
    }
    BOOLEAN_FIELDS = {
        "has_activity": ("the profile shows any posts, likes or comments", False),
        "has_recommendations": ("the profile lists at least one recommendation", False),
    }


__all__ = ["LinkedInAnalyzer"]
