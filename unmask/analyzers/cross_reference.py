"""Consistency comparison between the CV and the other supplied sources."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from ..failsafe import build_cross_reference_fallback
from ..llm.judgment import JudgmentService
from ..logging import get_logger
from ..models import (
    DISCREPANCY_SEVERITIES,
    SEVERITY_MODERATE,
    SOURCE_CV,
    SOURCE_GITHUB,
    SOURCE_LINKEDIN,
    CrossReferenceAnalysis,
    Discrepancy,
)
from ..prompting.builder import PromptBuilder
from .normalize import clamp_score, normalize_flags, normalize_text

_PAIRS = (
    ("cv_linkedin", SOURCE_CV, SOURCE_LINKEDIN),
    ("cv_github", SOURCE_CV, SOURCE_GITHUB),
    ("linkedin_github", SOURCE_LINKEDIN, SOURCE_GITHUB),
)


class CrossReferenceAnalyzer:
    """Pairwise consistency scoring.

    Without a CV there is no baseline to compare against, so the result is
    ``None``. Pair scores for a pair with a missing side are always ``None``,
    whatever the judgment service returns for them.
    """

    def __init__(self, judge: JudgmentService, prompt_builder: PromptBuilder | None = None) -> None:
        self.judge = judge
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.logger = get_logger("analyzers.cross_reference")

    async def analyze(
        self,
        cv: Optional[Mapping[str, Any]],
        linkedin: Optional[Mapping[str, Any]] = None,
        github: Optional[Mapping[str, Any]] = None,
    ) -> Optional[CrossReferenceAnalysis]:
        if not cv:
            return None

        present = {SOURCE_CV: True, SOURCE_LINKEDIN: bool(linkedin), SOURCE_GITHUB: bool(github)}
        compared = [source for source, available in present.items() if available]
        pairs = [name for name, left, right in _PAIRS if present[left] and present[right]]

        try:
            request = self.prompt_builder.build_cross_reference_prompt(
                cv,
                linkedin or None,
                github or None,
                pairs=pairs,
            )
            payload = await self.judge.judge(request.prompt, system=request.system)
            if not isinstance(payload, dict):
                raise TypeError(f"expected a JSON object, got {type(payload).__name__}")
            return self.normalize(payload, present, compared)
        except Exception as exc:
            self.logger.warning("Cross-reference analysis failed, using fallback: %s", exc)
            return build_cross_reference_fallback(compared, reason=str(exc))

    def normalize(
        self,
        payload: Mapping[str, Any],
        present: Mapping[str, bool],
        compared: List[str],
    ) -> CrossReferenceAnalysis:
        pair_scores = {}
        for name, left, right in _PAIRS:
            key = f"{name}_consistency"
            if present[left] and present[right]:
                # Applicable pair: an unusable value degrades to the neutral midpoint.
                pair_scores[key] = clamp_score(payload.get(key))
            else:
                pair_scores[key] = None

        applicable = [value for value in pair_scores.values() if value is not None]
        default_overall = round(sum(applicable) / len(applicable)) if applicable else 50
        name_match = payload.get("name_match")

        return CrossReferenceAnalysis(
            cv_linkedin_consistency=pair_scores["cv_linkedin_consistency"],
            cv_github_consistency=pair_scores["cv_github_consistency"],
            linkedin_github_consistency=pair_scores["linkedin_github_consistency"],
            overall_consistency=clamp_score(payload.get("overall_consistency"), default=default_overall),
            name_match=name_match if isinstance(name_match, bool) else None,
            discrepancies=self._normalize_discrepancies(payload.get("discrepancies"), present),
            flags=normalize_flags(payload.get("flags")),
            compared_sources=compared,
            summary=normalize_text(payload.get("summary")),
        )

    @staticmethod
    def _normalize_discrepancies(raw: Any, present: Mapping[str, bool]) -> List[Discrepancy]:
        if not isinstance(raw, list):
            return []
        discrepancies: List[Discrepancy] = []
        for item in raw:
            if not isinstance(item, dict):
                continue
            field_name = normalize_text(item.get("field"))
            if not field_name:
                continue
            severity = item.get("severity")
            discrepancies.append(
                Discrepancy(
                    field=field_name,
                    cv_value=_side_value(item.get("cv_value", item.get("cvValue")), present[SOURCE_CV]),
                    linkedin_value=_side_value(
                        item.get("linkedin_value", item.get("linkedinValue")), present[SOURCE_LINKEDIN]
                    ),
                    github_value=_side_value(
                        item.get("github_value", item.get("githubValue")), present[SOURCE_GITHUB]
                    ),
                    severity=severity if severity in DISCREPANCY_SEVERITIES else SEVERITY_MODERATE,
                    description=normalize_text(item.get("description"), f"Mismatch in {field_name}"),
                )
            )
        return discrepancies


def _side_value(value: Any, available: bool) -> Optional[str]:
    if not available or value is None:
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, (int, float, bool)):
        return str(value)
    return None


__all__ = ["CrossReferenceAnalyzer"]
