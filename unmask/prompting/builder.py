"""Builds rubric prompts for the reasoning service from Jinja2 templates."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..models import CrossReferenceAnalysis, OverallScore, Signal, SignalEvaluationResult, SourceAnalysis

_DEFAULT_TEMPLATES = Path(__file__).with_name("templates")


@dataclass(frozen=True)
class RubricDimension:
    """One scored dimension of a source rubric."""

    key: str
    description: str


@dataclass(frozen=True)
class PromptRequest:
    """A rendered prompt ready to send to the judgment service."""

    stage: str
    system: str
    prompt: str
    metadata: Dict[str, object] = field(default_factory=dict)


def _to_pretty_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


class PromptBuilder:
    """Renders stage prompts; every prompt asks for a single JSON object."""

    SYSTEM_PROMPT = (
        "You are an expert background verification specialist working for hiring managers. "
        "You assess authenticity and consistency, not technical ability. Only use the structured "
        "data provided, never invent facts, and always answer with a single JSON object."
    )

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir
        self._env = self._create_env(templates_dir)

    def build_signal_prompt(self, signal: Signal, context_data: Mapping[str, Any]) -> PromptRequest:
        system = self._render("signal_system.j2", signal=signal)
        prompt = self._render("signal.j2", context=context_data)
        return PromptRequest(
            stage="signal",
            system=system,
            prompt=prompt,
            metadata={"signal": signal.name},
        )

    def build_source_prompt(
        self,
        source: str,
        label: str,
        data: Mapping[str, Any],
        dimensions: Sequence[RubricDimension],
        *,
        array_fields: Mapping[str, str],
        boolean_fields: Mapping[str, str],
    ) -> PromptRequest:
        prompt = self._render(
            "source.j2",
            source=source,
            label=label,
            data=data,
            dimensions=dimensions,
            array_fields=array_fields,
            boolean_fields=boolean_fields,
        )
        return PromptRequest(
            stage=source,
            system=self.SYSTEM_PROMPT,
            prompt=prompt,
            metadata={"dimensions": [dimension.key for dimension in dimensions]},
        )

    def build_cross_reference_prompt(
        self,
        cv: Mapping[str, Any],
        linkedin: Optional[Mapping[str, Any]],
        github: Optional[Mapping[str, Any]],
        *,
        pairs: Sequence[str],
    ) -> PromptRequest:
        prompt = self._render(
            "cross_reference.j2",
            cv=cv,
            linkedin=linkedin,
            github=github,
            pairs=pairs,
        )
        return PromptRequest(
            stage="cross_reference",
            system=self.SYSTEM_PROMPT,
            prompt=prompt,
            metadata={"pairs": list(pairs)},
        )

    def build_aggregate_prompt(
        self,
        *,
        name: str | None,
        email: str | None,
        analyses: Mapping[str, Optional[SourceAnalysis]],
        cross_reference: Optional[CrossReferenceAnalysis],
        signal_score: Optional[OverallScore],
        high_risk_signals: Sequence[SignalEvaluationResult],
    ) -> PromptRequest:
        available = [source for source, analysis in analyses.items() if analysis is not None]
        prompt = self._render(
            "aggregate.j2",
            name=name,
            email=email,
            analyses={
                source: analysis.to_dict() if analysis is not None else None
                for source, analysis in analyses.items()
            },
            available_count=len(available),
            cross_reference=cross_reference.to_dict() if cross_reference is not None else None,
            signal_score=signal_score.to_dict() if signal_score is not None else None,
            high_risk_signals=[
                {
                    "name": result.signal.name,
                    "importance": result.signal.importance,
                    "score": result.evaluation.evaluation_score,
                    "reason": result.evaluation.reason,
                }
                for result in high_risk_signals
            ],
        )
        return PromptRequest(
            stage="aggregate",
            system=self.SYSTEM_PROMPT,
            prompt=prompt,
            metadata={"available_sources": available},
        )

    def _render(self, template_name: str, **context: Any) -> str:
        template = self._env.get_template(template_name)
        return template.render(**context).strip()

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(_DEFAULT_TEMPLATES))
        env = Environment(
            loader=FileSystemLoader(directories),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        env.filters["pretty_json"] = _to_pretty_json
        return env


__all__ = ["PromptBuilder", "PromptRequest", "RubricDimension"]
