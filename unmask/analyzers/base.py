"""Base class for per-source analyzers (CV, LinkedIn, GitHub)."""

from __future__ import annotations

from typing import Any, ClassVar, Dict, Mapping, Optional

from ..failsafe import build_source_fallback, source_label
from ..llm.judgment import JudgmentService
from ..logging import get_logger
from ..models import SourceAnalysis
from ..prompting.builder import PromptBuilder, RubricDimension
from .normalize import (
    clamp_score,
    normalize_bool,
    normalize_flags,
    normalize_string_list,
    normalize_text,
)


class SourceAnalyzer:
    """Scores one source against a fixed rubric through the judgment service.

    Subclasses only declare the rubric. ``analyze`` never raises: a missing
    source short-circuits to ``None`` and any failure of the external call
    yields the canned fallback from :mod:`unmask.failsafe`.
    """

    source: ClassVar[str] = ""
    DIMENSIONS: ClassVar[tuple[RubricDimension, ...]] = ()
    ARRAY_FIELDS: ClassVar[Mapping[str, str]] = {}
    # key -> (description, default)
    BOOLEAN_FIELDS: ClassVar[Mapping[str, tuple[str, bool]]] = {}

    def __init__(self, judge: JudgmentService, prompt_builder: PromptBuilder | None = None) -> None:
        self.judge = judge
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.logger = get_logger(f"analyzers.{self.source}")

    @property
    def label(self) -> str:
        return source_label(self.source)

    @property
    def metric_keys(self) -> list[str]:
        return [dimension.key for dimension in self.DIMENSIONS]

    @property
    def boolean_defaults(self) -> Dict[str, bool]:
        return {key: default for key, (_, default) in self.BOOLEAN_FIELDS.items()}

    async def analyze(self, data: Optional[Mapping[str, Any]]) -> Optional[SourceAnalysis]:
        if not data:
            return None

        self.logger.debug("Requesting %s analysis (%d dimensions)", self.label, len(self.DIMENSIONS))
        try:
            request = self.prompt_builder.build_source_prompt(
                self.source,
                self.label,
                data,
                self.DIMENSIONS,
                array_fields=self.ARRAY_FIELDS,
                boolean_fields={key: description for key, (description, _) in self.BOOLEAN_FIELDS.items()},
            )
            payload = await self.judge.judge(request.prompt, system=request.system)
            if not isinstance(payload, dict):
                raise TypeError(f"expected a JSON object, got {type(payload).__name__}")
            return self.normalize(payload)
        except Exception as exc:
            self.logger.warning("%s analysis failed, using fallback: %s", self.label, exc)
            return self.fallback(str(exc))

    def normalize(self, payload: Mapping[str, Any]) -> SourceAnalysis:
        raw_scores = payload.get("scores")
        scores: Mapping[str, Any] = raw_scores if isinstance(raw_scores, dict) else payload
        metrics = {key: clamp_score(scores.get(key)) for key in self.metric_keys}
        evidence = {key: normalize_string_list(payload.get(key)) for key in self.ARRAY_FIELDS}
        indicators = {
            key: normalize_bool(payload.get(key), default)
            for key, default in self.boolean_defaults.items()
        }
        return SourceAnalysis(
            source=self.source,
            metrics=metrics,
            flags=normalize_flags(payload.get("flags")),
            evidence=evidence,
            indicators=indicators,
            summary=normalize_text(payload.get("summary")),
        )

    def fallback(self, reason: str | None = None) -> SourceAnalysis:
        return build_source_fallback(
            self.source,
            self.metric_keys,
            array_fields=self.ARRAY_FIELDS,
            boolean_defaults=self.boolean_defaults,
            reason=reason,
        )


__all__ = ["SourceAnalyzer"]
