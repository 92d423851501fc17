"""GitHub account analyzer."""

from __future__ import annotations

from ..models import SOURCE_GITHUB
from ..prompting.builder import RubricDimension
from .base import SourceAnalyzer


class GitHubAnalyzer(SourceAnalyzer):
    source = SOURCE_GITHUB
    DIMENSIONS = (
        RubricDimension("code_quality_score", "repositories are documented, structured and tested"),
        RubricDimension("activity_consistency_score", "commit history shows steady, genuine activity rather than bursts"),
        RubricDimension("contribution_realism_score", "contribution counts and patterns are plausible for a real developer"),
        RubricDimension("profile_completeness_score", "bio, name, location and links are filled in"),
        RubricDimension("skills_alignment_score", "languages and projects match the skills the candidate claims"),
        RubricDimension("project_quality_score", "projects are substantial and original rather than tutorial copies or forks"),
    )
    ARRAY_FIELDS = {
        "notable_projects": "repository names worth discussing with the candidate",
        "primary_languages": "main programming languages in use",
        "concerns": "specific issues a recruiter should check",
    }
    BOOLEAN_FIELDS = {
        "has_activity": ("there is commit activity within the last year", False),
        "has_original_projects": ("at least one substantial non-fork repository exists", False),
    }


__all__ = ["GitHubAnalyzer"]
