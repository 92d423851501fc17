"""Applicant persistence: in-memory records with optional JSON file backing."""

from __future__ import annotations

import copy
import json
import threading
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol

from ..logging import get_logger
from ..models import (
    DATA_FIELDS,
    STATUS_FIELDS,
    AnalysisResult,
    Applicant,
    CrossReferenceAnalysis,
    Discrepancy,
    Flag,
    OverallScore,
    ScoreSummary,
    SourceAnalysis,
    SourceSummary,
    utc_now,
)
from ..status import (
    PENDING,
    PROCESSING,
    READY,
    StatusTransitionError,
    validate_ai_transition,
    validate_source_transition,
)

_STORE_VERSION = 1


class ApplicantNotFoundError(KeyError):
    """Raised when an applicant id is unknown to the store."""

    def __str__(self) -> str:
        return f"Applicant '{self.args[0]}' not found" if self.args else "Applicant not found"


class ProcessingConflictError(RuntimeError):
    """Raised when a stage is claimed while it is already being processed."""


@dataclass(frozen=True)
class SourceClaim:
    """Outcome of :meth:`ApplicantStore.claim_source`.

    ``claimed`` is False when the source was already ready; ``data`` then
    holds the stored snapshot and the extractor must not run again.
    """

    claimed: bool
    applicant: Applicant
    data: Optional[Dict[str, Any]] = None


class ApplicantStore(Protocol):
    """Persistence collaborator used by the pipeline. Every method is atomic."""

    def create_applicant(self, **fields: Any) -> Applicant:
        ...

    def read_applicant(self, applicant_id: str) -> Applicant:
        ...

    def write_source_status(
        self, applicant_id: str, source: str, status: str, data: Optional[Dict[str, Any]] = None
    ) -> Applicant:
        ...

    def write_ai_status(self, applicant_id: str, status: str) -> Applicant:
        ...

    def claim_source(self, applicant_id: str, source: str) -> SourceClaim:
        ...

    def claim_analysis(self, applicant_id: str) -> Applicant:
        ...

    def write_analysis_result(
        self,
        applicant_id: str,
        result: AnalysisResult,
        *,
        individual_analysis: Optional[Mapping[str, SourceAnalysis]] = None,
        cross_reference: Optional[CrossReferenceAnalysis] = None,
    ) -> Applicant:
        ...


class JsonApplicantStore:
    """Thread-safe applicant store; writes through to ``path`` when one is given.

    Reads hand out deep copies so callers always work on a snapshot.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._applicants: Dict[str, Applicant] = {}
        self.logger = get_logger("stores.applicants")
        if self._path is not None:
            self._load(self._path)

    def create_applicant(
        self,
        *,
        name: str = "",
        email: Optional[str] = None,
        linkedin_url: Optional[str] = None,
        github_url: Optional[str] = None,
        applicant_id: Optional[str] = None,
    ) -> Applicant:
        applicant = Applicant(
            id=applicant_id or uuid.uuid4().hex,
            name=name,
            email=email,
            linkedin_url=linkedin_url,
            github_url=github_url,
        )
        with self._lock:
            if applicant.id in self._applicants:
                raise ValueError(f"Applicant '{applicant.id}' already exists")
            self._applicants[applicant.id] = applicant
            self._persist_locked()
            return copy.deepcopy(applicant)

    def read_applicant(self, applicant_id: str) -> Applicant:
        with self._lock:
            return copy.deepcopy(self._get(applicant_id))

    def list_applicants(self) -> List[Applicant]:
        with self._lock:
            return [copy.deepcopy(applicant) for applicant in self._applicants.values()]

    def write_source_status(
        self, applicant_id: str, source: str, status: str, data: Optional[Dict[str, Any]] = None
    ) -> Applicant:
        with self._lock:
            applicant = self._get(applicant_id)
            current = applicant.source_status(source) if source in STATUS_FIELDS else PENDING
            validate_source_transition(source, current, status)
            setattr(applicant, STATUS_FIELDS[source], status)
            if data is not None:
                setattr(applicant, DATA_FIELDS[source], dict(data))
            applicant.updated_at = utc_now()
            self.logger.debug("%s %s status %s -> %s", applicant_id, source, current, status)
            self._persist_locked()
            return copy.deepcopy(applicant)

    def write_ai_status(self, applicant_id: str, status: str) -> Applicant:
        with self._lock:
            applicant = self._get(applicant_id)
            validate_ai_transition(applicant.ai_status, status)
            self.logger.debug("%s ai status %s -> %s", applicant_id, applicant.ai_status, status)
            applicant.ai_status = status
            applicant.updated_at = utc_now()
            self._persist_locked()
            return copy.deepcopy(applicant)

    def claim_source(self, applicant_id: str, source: str) -> SourceClaim:
        """Atomically move ``source`` from pending to processing."""
        with self._lock:
            applicant = self._get(applicant_id)
            current = applicant.source_status(source) if source in STATUS_FIELDS else PENDING
            if current == PROCESSING:
                raise ProcessingConflictError(f"{source} processing already in progress for '{applicant_id}'")
            if current == READY:
                return SourceClaim(
                    claimed=False,
                    applicant=copy.deepcopy(applicant),
                    data=copy.deepcopy(applicant.source_data(source)),
                )
            validate_source_transition(source, current, PROCESSING)
            setattr(applicant, STATUS_FIELDS[source], PROCESSING)
            applicant.updated_at = utc_now()
            self._persist_locked()
            return SourceClaim(claimed=True, applicant=copy.deepcopy(applicant))

    def claim_analysis(self, applicant_id: str) -> Applicant:
        """Atomically move ``ai_status`` from pending to processing."""
        with self._lock:
            applicant = self._get(applicant_id)
            if applicant.ai_status == PROCESSING:
                raise ProcessingConflictError(f"analysis already in progress for '{applicant_id}'")
            validate_ai_transition(applicant.ai_status, PROCESSING)
            applicant.ai_status = PROCESSING
            applicant.updated_at = utc_now()
            self._persist_locked()
            return copy.deepcopy(applicant)

    def write_analysis_result(
        self,
        applicant_id: str,
        result: AnalysisResult,
        *,
        individual_analysis: Optional[Mapping[str, SourceAnalysis]] = None,
        cross_reference: Optional[CrossReferenceAnalysis] = None,
    ) -> Applicant:
        """Store a new result, keeping the one it replaces in ``previous_results``.

        A first run must have claimed the analysis and finishes it as ready.
        A re-analysis also finishes as ready: a stored result means the run
        succeeded, even if an earlier attempt ended in error.
        """
        with self._lock:
            applicant = self._get(applicant_id)
            if applicant.ai_status == PENDING:
                raise StatusTransitionError(
                    f"Analysis for '{applicant_id}' was never started; claim it before writing a result"
                )
            # processing -> ready on a first run. error -> ready is only
            # reachable here, never through write_ai_status.
            applicant.ai_status = READY
            if applicant.analysis_result is not None:
                applicant.previous_results.append(applicant.analysis_result)
            applicant.analysis_result = result
            applicant.individual_analysis = dict(individual_analysis or {})
            applicant.cross_reference = cross_reference
            applicant.updated_at = utc_now()
            self._persist_locked()
            return copy.deepcopy(applicant)

    def persist(self) -> None:
        with self._lock:
            self._persist_locked()

    # ------------------------------------------------------------------
    # Internal helpers

    def _get(self, applicant_id: str) -> Applicant:
        try:
            return self._applicants[applicant_id]
        except KeyError:
            raise ApplicantNotFoundError(applicant_id) from None

    def _persist_locked(self) -> None:
        if self._path is None:
            return
        payload = {
            "version": _STORE_VERSION,
            "applicants": {key: _applicant_to_dict(value) for key, value in self._applicants.items()},
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")

    def _load(self, path: Path) -> None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, json.JSONDecodeError) as exc:
            self.logger.warning("Ignoring unreadable applicant store %s: %s", path, exc)
            return
        if not isinstance(data, dict) or data.get("version") != _STORE_VERSION:
            return
        entries = data.get("applicants")
        if not isinstance(entries, dict):
            return
        for key, raw in entries.items():
            try:
                applicant = _applicant_from_dict(raw)
            except (KeyError, TypeError) as exc:
                self.logger.warning("Skipping malformed applicant record %s in %s: %s", key, path, exc)
                continue
            if applicant is not None and applicant.id == key:
                self._applicants[key] = applicant


def _applicant_to_dict(applicant: Applicant) -> Dict[str, Any]:
    data = applicant.to_dict()
    # Derived on read; never stored.
    data.pop("status", None)
    data.pop("score", None)
    return data


def _applicant_from_dict(payload: object) -> Optional[Applicant]:
    if not isinstance(payload, dict) or not isinstance(payload.get("id"), str):
        return None
    result = _result_from_dict(payload.get("analysis_result"))
    individual = payload.get("individual_analysis") or {}
    previous = payload.get("previous_results") or []
    return Applicant(
        id=payload["id"],
        name=payload.get("name") or "",
        email=payload.get("email"),
        linkedin_url=payload.get("linkedin_url"),
        github_url=payload.get("github_url"),
        cv_status=payload.get("cv_status", PENDING),
        li_status=payload.get("li_status", PENDING),
        gh_status=payload.get("gh_status", PENDING),
        ai_status=payload.get("ai_status", PENDING),
        cv_data=payload.get("cv_data"),
        li_data=payload.get("li_data"),
        gh_data=payload.get("gh_data"),
        analysis_result=result,
        individual_analysis={
            source: _source_analysis_from_dict(raw) for source, raw in individual.items() if isinstance(raw, dict)
        },
        cross_reference=_cross_reference_from_dict(payload.get("cross_reference")),
        previous_results=[item for item in (_result_from_dict(raw) for raw in previous) if item is not None],
        created_at=payload.get("created_at") or utc_now(),
        updated_at=payload.get("updated_at") or utc_now(),
    )


def _flags_from_list(raw: object) -> List[Flag]:
    if not isinstance(raw, list):
        return []
    return [Flag(**item) for item in raw if isinstance(item, dict)]


def _source_analysis_from_dict(raw: Dict[str, Any]) -> SourceAnalysis:
    fields = {key: value for key, value in raw.items() if key != "overall_score"}
    fields["flags"] = _flags_from_list(raw.get("flags"))
    return SourceAnalysis(**fields)


def _cross_reference_from_dict(raw: object) -> Optional[CrossReferenceAnalysis]:
    if not isinstance(raw, dict):
        return None
    return CrossReferenceAnalysis(
        **{
            **raw,
            "flags": _flags_from_list(raw.get("flags")),
            "discrepancies": [Discrepancy(**item) for item in raw.get("discrepancies") or []],
        }
    )


def _result_from_dict(raw: object) -> Optional[AnalysisResult]:
    if not isinstance(raw, dict):
        return None
    signal_summary = raw.get("signal_summary")
    return AnalysisResult(
        credibility_score=raw["credibility_score"],
        summary=raw.get("summary", ""),
        flags=_flags_from_list(raw.get("flags")),
        suggested_questions=list(raw.get("suggested_questions") or []),
        analysis_date=raw.get("analysis_date") or utc_now(),
        sources=[
            SourceSummary(**{**item, "flags": _flags_from_list(item.get("flags"))})
            for item in raw.get("sources") or []
            if isinstance(item, dict)
        ],
        signal_summary=(
            OverallScore(
                overall_score=signal_summary["overall_score"],
                weighted_score=signal_summary["weighted_score"],
                summary=ScoreSummary(**signal_summary["summary"]),
            )
            if isinstance(signal_summary, dict)
            else None
        ),
        error=raw.get("error"),
    )


__all__ = [
    "ApplicantNotFoundError",
    "ApplicantStore",
    "JsonApplicantStore",
    "ProcessingConflictError",
    "SourceClaim",
]
