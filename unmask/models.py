"""Core data models shared across unmask components."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any, Dict, List, Mapping, Optional

SOURCE_CV = "cv"
SOURCE_LINKEDIN = "linkedin"
SOURCE_GITHUB = "github"
SOURCES: tuple[str, ...] = (SOURCE_CV, SOURCE_LINKEDIN, SOURCE_GITHUB)
OPTIONAL_SOURCES: frozenset[str] = frozenset({SOURCE_LINKEDIN, SOURCE_GITHUB})

FLAG_RED = "red"
FLAG_YELLOW = "yellow"
FLAG_TYPES: frozenset[str] = frozenset({FLAG_RED, FLAG_YELLOW})

SEVERITY_MINOR = "minor"
SEVERITY_MODERATE = "moderate"
SEVERITY_MAJOR = "major"
DISCREPANCY_SEVERITIES: frozenset[str] = frozenset(
    {SEVERITY_MINOR, SEVERITY_MODERATE, SEVERITY_MAJOR}
)


def utc_now() -> str:
    """Return the current UTC time as an ISO-8601 string with a ``Z`` suffix."""
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class Signal:
    """A named authenticity check with its data requirements and weight."""

    name: str
    description: str
    importance: float
    requires_cv: bool
    requires_linkedin: bool


@dataclass(frozen=True)
class SignalEvaluation:
    """Judgment outcome for one signal: a score in [0, 1] and the reasoning."""

    evaluation_score: float
    reason: str


@dataclass(frozen=True)
class SignalEvaluationResult:
    signal: Signal
    evaluation: SignalEvaluation
    timestamp: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ScoreSummary:
    total_signals: int
    passed_signals: int
    failed_signals: int
    average_score: float


@dataclass(frozen=True)
class OverallScore:
    """Aggregate view over a batch of signal evaluations."""

    overall_score: float
    weighted_score: float
    summary: ScoreSummary

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Flag:
    """A structured concern raised by any analysis stage."""

    type: str
    category: str
    message: str
    severity: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SourceAnalysis:
    """Per-source report: named 0-100 metrics, evidence lists, indicators and flags."""

    source: str
    metrics: Dict[str, int]
    flags: List[Flag] = field(default_factory=list)
    evidence: Dict[str, List[Any]] = field(default_factory=dict)
    indicators: Dict[str, bool] = field(default_factory=dict)
    summary: str = ""
    fallback: bool = False
    analyzed_at: str = field(default_factory=utc_now)

    @property
    def overall_score(self) -> int:
        """Mean of the declared metrics, rounded to an integer."""
        if not self.metrics:
            return 0
        return round(sum(self.metrics.values()) / len(self.metrics))

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["overall_score"] = self.overall_score
        return data


@dataclass(frozen=True)
class Discrepancy:
    field: str
    cv_value: Optional[str]
    linkedin_value: Optional[str]
    github_value: Optional[str]
    severity: str
    description: str


@dataclass
class CrossReferenceAnalysis:
    """Pairwise consistency between available sources.

    A pair score is ``None`` when either side of the pair was not supplied, so
    "not applicable" stays distinct from "inconsistent".
    """

    cv_linkedin_consistency: Optional[int]
    cv_github_consistency: Optional[int]
    linkedin_github_consistency: Optional[int]
    overall_consistency: int
    name_match: Optional[bool] = None
    discrepancies: List[Discrepancy] = field(default_factory=list)
    flags: List[Flag] = field(default_factory=list)
    compared_sources: List[str] = field(default_factory=list)
    summary: str = ""
    fallback: bool = False
    analyzed_at: str = field(default_factory=utc_now)

    def pair_scores(self) -> Dict[str, Optional[int]]:
        return {
            "cv_linkedin": self.cv_linkedin_consistency,
            "cv_github": self.cv_github_consistency,
            "linkedin_github": self.linkedin_github_consistency,
        }

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SourceSummary:
    type: str
    available: bool
    score: Optional[int]
    flags: List[Flag] = field(default_factory=list)
    analysis_details: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AnalysisResult:
    """Final credibility artifact. Immutable; a new run produces a new instance."""

    credibility_score: int
    summary: str
    flags: List[Flag]
    suggested_questions: List[str]
    analysis_date: str
    sources: List[SourceSummary]
    signal_summary: Optional[OverallScore] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Applicant:
    """Persisted applicant record.

    ``status`` and ``score`` are derived from the stage fields and are never
    stored independently.
    """

    id: str
    name: str = ""
    email: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    cv_status: str = "pending"
    li_status: str = "pending"
    gh_status: str = "pending"
    ai_status: str = "pending"
    cv_data: Optional[Dict[str, Any]] = None
    li_data: Optional[Dict[str, Any]] = None
    gh_data: Optional[Dict[str, Any]] = None
    analysis_result: Optional[AnalysisResult] = None
    individual_analysis: Dict[str, SourceAnalysis] = field(default_factory=dict)
    cross_reference: Optional[CrossReferenceAnalysis] = None
    previous_results: List[AnalysisResult] = field(default_factory=list)
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)

    @property
    def status(self) -> str:
        from .status import derive_overall_status

        return derive_overall_status(
            self.cv_status, self.li_status, self.gh_status, self.ai_status
        )

    @property
    def score(self) -> Optional[int]:
        if self.analysis_result is None:
            return None
        return self.analysis_result.credibility_score

    def source_status(self, source: str) -> str:
        return getattr(self, STATUS_FIELDS[source])

    def source_data(self, source: str) -> Optional[Dict[str, Any]]:
        return getattr(self, DATA_FIELDS[source])

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status
        data["score"] = self.score
        return data


STATUS_FIELDS: Mapping[str, str] = {
    SOURCE_CV: "cv_status",
    SOURCE_LINKEDIN: "li_status",
    SOURCE_GITHUB: "gh_status",
}

DATA_FIELDS: Mapping[str, str] = {
    SOURCE_CV: "cv_data",
    SOURCE_LINKEDIN: "li_data",
    SOURCE_GITHUB: "gh_data",
}


__all__ = [
    "AnalysisResult",
    "Applicant",
    "CrossReferenceAnalysis",
    "DATA_FIELDS",
    "Discrepancy",
    "FLAG_RED",
    "FLAG_TYPES",
    "FLAG_YELLOW",
    "Flag",
    "OPTIONAL_SOURCES",
    "OverallScore",
    "SOURCES",
    "SOURCE_CV",
    "SOURCE_GITHUB",
    "SOURCE_LINKEDIN",
    "STATUS_FIELDS",
    "ScoreSummary",
    "Signal",
    "SignalEvaluation",
    "SignalEvaluationResult",
    "SourceAnalysis",
    "SourceSummary",
    "utc_now",
]
