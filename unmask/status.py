"""Applicant lifecycle: per-stage status transitions and the derived overall status."""

from __future__ import annotations

from typing import Iterable, Mapping

from .models import OPTIONAL_SOURCES, SOURCES

PENDING = "pending"
PROCESSING = "processing"
READY = "ready"
ERROR = "error"
NOT_PROVIDED = "not_provided"

SOURCE_STATUSES: frozenset[str] = frozenset({PENDING, PROCESSING, READY, ERROR, NOT_PROVIDED})
AI_STATUSES: frozenset[str] = frozenset({PENDING, PROCESSING, READY, ERROR})
RESOLVED_STATUSES: frozenset[str] = frozenset({READY, ERROR, NOT_PROVIDED})

OVERALL_UPLOADING = "uploading"
OVERALL_PROCESSING = "processing"
OVERALL_ANALYZING = "analyzing"
OVERALL_COMPLETED = "completed"
OVERALL_FAILED = "failed"
OVERALL_STATUSES: tuple[str, ...] = (
    OVERALL_UPLOADING,
    OVERALL_PROCESSING,
    OVERALL_ANALYZING,
    OVERALL_COMPLETED,
    OVERALL_FAILED,
)

_SOURCE_TRANSITIONS: Mapping[str, frozenset[str]] = {
    PENDING: frozenset({PROCESSING, ERROR, NOT_PROVIDED}),
    PROCESSING: frozenset({READY, ERROR}),
    READY: frozenset(),
    ERROR: frozenset(),
    NOT_PROVIDED: frozenset(),
}

_AI_TRANSITIONS: Mapping[str, frozenset[str]] = {
    PENDING: frozenset({PROCESSING}),
    PROCESSING: frozenset({READY, ERROR}),
    READY: frozenset(),
    ERROR: frozenset(),
}


class StatusTransitionError(ValueError):
    """Raised when a status write is unknown, regressive, or not allowed for the stage."""


def validate_source_transition(source: str, current: str, new: str) -> None:
    """Raise ``StatusTransitionError`` unless ``current -> new`` is legal for ``source``."""
    if source not in SOURCES:
        raise StatusTransitionError(f"Unknown source '{source}'")
    if new not in SOURCE_STATUSES:
        raise StatusTransitionError(f"Invalid status '{new}' for source '{source}'")
    if new == NOT_PROVIDED and source not in OPTIONAL_SOURCES:
        raise StatusTransitionError(f"Source '{source}' is required and cannot be marked not_provided")
    allowed = _SOURCE_TRANSITIONS.get(current, frozenset())
    if new not in allowed:
        raise StatusTransitionError(
            f"Illegal {source} status transition {current} -> {new}"
        )


def validate_ai_transition(current: str, new: str) -> None:
    if new not in AI_STATUSES:
        raise StatusTransitionError(f"Invalid ai status '{new}'")
    if new not in _AI_TRANSITIONS.get(current, frozenset()):
        raise StatusTransitionError(f"Illegal ai status transition {current} -> {new}")


def requested_sources(statuses: Mapping[str, str]) -> list[str]:
    """Sources that were supplied for this applicant (everything except not_provided)."""
    return [source for source in SOURCES if statuses.get(source, PENDING) != NOT_PROVIDED]


def is_ready_for_analysis(statuses: Mapping[str, str]) -> bool:
    """True once every requested source has left pending/processing."""
    return all(statuses.get(source, PENDING) in RESOLVED_STATUSES for source in SOURCES)


def _all_errored(statuses: Iterable[str]) -> bool:
    values = list(statuses)
    return bool(values) and all(value == ERROR for value in values)


def derive_overall_status(cv_status: str, li_status: str, gh_status: str, ai_status: str) -> str:
    """Compute the applicant's overall status from its four stage statuses.

    Pure derivation; recomputed on every stage write and never stored on its own.
    """
    statuses = {"cv": cv_status, "linkedin": li_status, "github": gh_status}
    requested = [statuses[source] for source in requested_sources(statuses)]

    if ai_status == READY:
        return OVERALL_COMPLETED
    if ai_status == ERROR:
        return OVERALL_FAILED
    if is_ready_for_analysis(statuses) and _all_errored(requested):
        return OVERALL_FAILED
    if ai_status == PROCESSING and is_ready_for_analysis(statuses):
        return OVERALL_ANALYZING
    if all(status == PENDING for status in statuses.values()):
        return OVERALL_UPLOADING
    return OVERALL_PROCESSING


__all__ = [
    "AI_STATUSES",
    "ERROR",
    "NOT_PROVIDED",
    "OVERALL_ANALYZING",
    "OVERALL_COMPLETED",
    "OVERALL_FAILED",
    "OVERALL_PROCESSING",
    "OVERALL_STATUSES",
    "OVERALL_UPLOADING",
    "PENDING",
    "PROCESSING",
    "READY",
    "RESOLVED_STATUSES",
    "SOURCE_STATUSES",
    "StatusTransitionError",
    "derive_overall_status",
    "is_ready_for_analysis",
    "requested_sources",
    "validate_ai_transition",
    "validate_source_transition",
]
