"""Multi-source applicant verification pipeline."""

from .aggregator import Aggregator, aggregate
from .analyzers import (
    CrossReferenceAnalyzer,
    CvAnalyzer,
    GitHubAnalyzer,
    LinkedInAnalyzer,
    analyze_cv,
    analyze_github,
    analyze_linkedin,
    cross_reference_analysis,
)
from .models import AnalysisResult, Applicant, CrossReferenceAnalysis, Flag, Signal, SourceAnalysis
from .orchestrator import AnalysisOutcome, AnalysisPipeline
from .scoring import is_eligible_for_full_analysis, tier_score
from .signals import (
    ALL_SIGNALS,
    EvaluationContext,
    SignalEvaluator,
    calculate_overall_score,
    evaluate_all_signals,
    get_high_risk_signals,
)
from .status import derive_overall_status

__all__ = [
    "ALL_SIGNALS",
    "Aggregator",
    "AnalysisOutcome",
    "AnalysisPipeline",
    "AnalysisResult",
    "Applicant",
    "CrossReferenceAnalysis",
    "CrossReferenceAnalyzer",
    "CvAnalyzer",
    "EvaluationContext",
    "Flag",
    "GitHubAnalyzer",
    "LinkedInAnalyzer",
    "Signal",
    "SignalEvaluator",
    "SourceAnalysis",
    "aggregate",
    "analyze_cv",
    "analyze_github",
    "analyze_linkedin",
    "calculate_overall_score",
    "cross_reference_analysis",
    "derive_overall_status",
    "evaluate_all_signals",
    "get_high_risk_signals",
    "is_eligible_for_full_analysis",
    "tier_score",
]
