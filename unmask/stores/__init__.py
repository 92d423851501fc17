"""Persistence helpers for unmask."""

from .applicant_store import (
    ApplicantNotFoundError,
    ApplicantStore,
    JsonApplicantStore,
    ProcessingConflictError,
    SourceClaim,
)

__all__ = [
    "ApplicantNotFoundError",
    "ApplicantStore",
    "JsonApplicantStore",
    "ProcessingConflictError",
    "SourceClaim",
]
