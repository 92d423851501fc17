"""Parallel evaluation of authenticity signals through the judgment service."""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ..llm.judgment import JudgmentService
from ..logging import get_logger
from ..models import OverallScore, ScoreSummary, Signal, SignalEvaluation, SignalEvaluationResult
from ..prompting.builder import PromptBuilder
from .catalog import ALL_SIGNALS

PASSED_THRESHOLD = 0.7
FAILED_THRESHOLD = 0.3
HIGH_RISK_THRESHOLD = 0.3


@dataclass
class EvaluationContext:
    """Source snapshots available to the signal evaluator."""

    cv_data: Optional[Mapping[str, Any]] = None
    linkedin_data: Optional[Mapping[str, Any]] = None
    extra: Dict[str, Any] = field(default_factory=dict)


def applicable_signals(
    context: EvaluationContext, signals: Sequence[Signal] = ALL_SIGNALS
) -> List[Signal]:
    """Signals whose data requirements are met by ``context``, in catalog order."""
    return [
        signal
        for signal in signals
        if not (signal.requires_cv and not context.cv_data)
        and not (signal.requires_linkedin and not context.linkedin_data)
    ]


def _validated_score(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"evaluation_score must be a number, got {value!r}")
    score = float(value)
    if not math.isfinite(score) or score < 0.0 or score > 1.0:
        raise ValueError(f"evaluation_score {value!r} is outside [0, 1]")
    return score


class SignalEvaluator:
    """Issues one judgment request per applicable signal and collects the results."""

    def __init__(self, judge: JudgmentService, prompt_builder: PromptBuilder | None = None) -> None:
        self.judge = judge
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.logger = get_logger("signals")

    async def evaluate_signal(self, signal: Signal, context: EvaluationContext) -> SignalEvaluationResult:
        """Evaluate one signal; any failure becomes a zero score with a diagnostic reason."""
        if signal.requires_cv and not context.cv_data:
            return self._failed(signal, "CV data required but not provided")
        if signal.requires_linkedin and not context.linkedin_data:
            return self._failed(signal, "LinkedIn data required but not provided")

        context_data = {
            "cv_data": context.cv_data if signal.requires_cv else None,
            "linkedin_data": context.linkedin_data if signal.requires_linkedin else None,
            "additional_context": dict(context.extra),
        }
        try:
            request = self.prompt_builder.build_signal_prompt(signal, context_data)
            payload = await self.judge.judge(request.prompt, system=request.system)
            if not isinstance(payload, dict):
                raise TypeError(f"expected a JSON object, got {type(payload).__name__}")
            score = _validated_score(payload.get("evaluation_score"))
            reason = payload.get("reason")
            evaluation = SignalEvaluation(
                evaluation_score=score,
                reason=reason.strip() if isinstance(reason, str) and reason.strip() else "No reason given",
            )
        except Exception as exc:
            self.logger.warning("Signal %s evaluation failed: %s", signal.name, exc)
            return self._failed(signal, f"Evaluation failed: {exc}")
        return SignalEvaluationResult(signal=signal, evaluation=evaluation)

    async def evaluate_all(
        self,
        context: EvaluationContext,
        signals: Sequence[Signal] = ALL_SIGNALS,
    ) -> List[SignalEvaluationResult]:
        """Evaluate every applicable signal concurrently, preserving catalog order."""
        applicable = applicable_signals(context, signals)
        self.logger.info(
            "Evaluating %d of %d signals", len(applicable), len(signals)
        )
        if not applicable:
            return []

        outcomes = await asyncio.gather(
            *(self.evaluate_signal(signal, context) for signal in applicable),
            return_exceptions=True,
        )
        results: List[SignalEvaluationResult] = []
        for signal, outcome in zip(applicable, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, BaseException):
                self.logger.warning("Signal %s evaluation crashed: %s", signal.name, outcome)
                results.append(self._failed(signal, f"Evaluation failed: {outcome}"))
            else:
                results.append(outcome)
        self.logger.info("Completed evaluation of %d signals", len(results))
        return results

    @staticmethod
    def _failed(signal: Signal, reason: str) -> SignalEvaluationResult:
        return SignalEvaluationResult(
            signal=signal,
            evaluation=SignalEvaluation(evaluation_score=0.0, reason=reason),
        )


def calculate_overall_score(
    results: Sequence[SignalEvaluationResult],
    *,
    passed_threshold: float = PASSED_THRESHOLD,
    failed_threshold: float = FAILED_THRESHOLD,
) -> OverallScore:
    """Unweighted and importance-weighted averages plus pass/fail counts."""
    if not results:
        return OverallScore(
            overall_score=0.0,
            weighted_score=0.0,
            summary=ScoreSummary(total_signals=0, passed_signals=0, failed_signals=0, average_score=0.0),
        )

    scores = [result.evaluation.evaluation_score for result in results]
    total_weight = sum(result.signal.importance for result in results)
    weighted_sum = sum(
        result.evaluation.evaluation_score * result.signal.importance for result in results
    )
    average = sum(scores) / len(scores)
    # All-zero importances would otherwise divide by zero.
    weighted = weighted_sum / total_weight if total_weight > 0 else 0.0

    return OverallScore(
        overall_score=average,
        weighted_score=weighted,
        summary=ScoreSummary(
            total_signals=len(results),
            passed_signals=sum(1 for score in scores if score >= passed_threshold),
            failed_signals=sum(1 for score in scores if score < failed_threshold),
            average_score=average,
        ),
    )


def get_high_risk_signals(
    results: Iterable[SignalEvaluationResult], threshold: float = HIGH_RISK_THRESHOLD
) -> List[SignalEvaluationResult]:
    """Results scoring below ``threshold``, most important first (stable on ties)."""
    failing = [result for result in results if result.evaluation.evaluation_score < threshold]
    return sorted(failing, key=lambda result: -result.signal.importance)


async def evaluate_all_signals(
    context: EvaluationContext,
    signals: Sequence[Signal] = ALL_SIGNALS,
    *,
    judge: JudgmentService,
    prompt_builder: PromptBuilder | None = None,
) -> List[SignalEvaluationResult]:
    return await SignalEvaluator(judge, prompt_builder).evaluate_all(context, signals)


__all__ = [
    "EvaluationContext",
    "FAILED_THRESHOLD",
    "HIGH_RISK_THRESHOLD",
    "PASSED_THRESHOLD",
    "SignalEvaluator",
    "applicable_signals",
    "calculate_overall_score",
    "evaluate_all_signals",
    "get_high_risk_signals",
]
