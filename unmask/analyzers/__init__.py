"""Per-source and cross-reference analyzers."""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional

from ..llm.judgment import JudgmentService
from ..models import CrossReferenceAnalysis, SourceAnalysis
from ..prompting.builder import PromptBuilder
from .base import SourceAnalyzer
from .cross_reference import CrossReferenceAnalyzer
from .cv import CvAnalyzer
from .github import GitHubAnalyzer
from .linkedin import LinkedInAnalyzer

_BUILTIN_ANALYZERS: Dict[str, Callable[..., SourceAnalyzer]] = {
    CvAnalyzer.source: CvAnalyzer,
    LinkedInAnalyzer.source: LinkedInAnalyzer,
    GitHubAnalyzer.source: GitHubAnalyzer,
}


def build_source_analyzers(
    judge: JudgmentService, prompt_builder: PromptBuilder | None = None
) -> Dict[str, SourceAnalyzer]:
    """Return one analyzer per source, keyed by source name, sharing ``judge``."""
    builder = prompt_builder or PromptBuilder()
    return {source: factory(judge, builder) for source, factory in _BUILTIN_ANALYZERS.items()}


async def analyze_cv(
    data: Optional[Mapping[str, Any]], *, judge: JudgmentService, prompt_builder: PromptBuilder | None = None
) -> Optional[SourceAnalysis]:
    return await CvAnalyzer(judge, prompt_builder).analyze(data)


async def analyze_linkedin(
    data: Optional[Mapping[str, Any]], *, judge: JudgmentService, prompt_builder: PromptBuilder | None = None
) -> Optional[SourceAnalysis]:
    return await LinkedInAnalyzer(judge, prompt_builder).analyze(data)


async def analyze_github(
    data: Optional[Mapping[str, Any]], *, judge: JudgmentService, prompt_builder: PromptBuilder | None = None
) -> Optional[SourceAnalysis]:
    return await GitHubAnalyzer(judge, prompt_builder).analyze(data)


async def cross_reference_analysis(
    cv: Optional[Mapping[str, Any]],
    linkedin: Optional[Mapping[str, Any]] = None,
    github: Optional[Mapping[str, Any]] = None,
    *,
    judge: JudgmentService,
    prompt_builder: PromptBuilder | None = None,
) -> Optional[CrossReferenceAnalysis]:
    return await CrossReferenceAnalyzer(judge, prompt_builder).analyze(cv, linkedin, github)


__all__ = [
    "CrossReferenceAnalyzer",
    "CvAnalyzer",
    "GitHubAnalyzer",
    "LinkedInAnalyzer",
    "SourceAnalyzer",
    "analyze_cv",
    "analyze_github",
    "analyze_linkedin",
    "build_source_analyzers",
    "cross_reference_analysis",
]
