"""Signal catalog and evaluator."""

from .catalog import ALL_SIGNALS, COMBINED_SIGNALS, CV_SIGNALS, LINKEDIN_SIGNALS, select_signals, signal_names
from .evaluator import (
    EvaluationContext,
    SignalEvaluator,
    applicable_signals,
    calculate_overall_score,
    evaluate_all_signals,
    get_high_risk_signals,
)

__all__ = [
    "ALL_SIGNALS",
    "COMBINED_SIGNALS",
    "CV_SIGNALS",
    "EvaluationContext",
    "LINKEDIN_SIGNALS",
    "SignalEvaluator",
    "applicable_signals",
    "calculate_overall_score",
    "evaluate_all_signals",
    "get_high_risk_signals",
    "select_signals",
    "signal_names",
]
