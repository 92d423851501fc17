"""Static registry of authenticity signals.

Signals are grouped by the data they need and concatenated into ``ALL_SIGNALS``
in a fixed order; downstream aggregation relies on that order for determinism.
"""

from __future__ import annotations

from typing import Iterable

from ..models import Signal

LINKEDIN_SIGNALS: tuple[Signal, ...] = (
    Signal(
        name="linkedin_identity_match",
        description="Full name matches CV and GitHub handle/email with clear consistency",
        importance=0.9,
        requires_cv=True,
        requires_linkedin=True,
    ),
    Signal(
        name="linkedin_account_age",
        description="Account creation date is more than 1 year old",
        importance=0.7,
        requires_cv=False,
        requires_linkedin=True,
    ),
    Signal(
        name="linkedin_job_history_match",
        description="Job titles and dates match CV with tenure at each company of more than 3 months",
        importance=0.8,
        requires_cv=True,
        requires_linkedin=True,
    ),
    Signal(
        name="linkedin_company_verification",
        description="Companies mentioned have existing LinkedIn pages and are real organizations",
        importance=0.9,
        requires_cv=False,
        requires_linkedin=True,
    ),
    Signal(
        name="linkedin_education_match",
        description="Education degrees and institutions match CV and link to real universities",
        importance=0.85,
        requires_cv=True,
        requires_linkedin=True,
    ),
    Signal(
        name="linkedin_connection_count",
        description="Has more than 50 connections",
        importance=0.4,
        requires_cv=False,
        requires_linkedin=True,
    ),
    Signal(
        name="linkedin_connection_relevance",
        description="Connections include people from companies they claim to have worked for",
        importance=0.7,
        requires_cv=False,
        requires_linkedin=True,
    ),
    Signal(
        name="linkedin_engagement_activity",
        description="Shows authentic activity: posts, likes, comments",
        importance=0.4,
        requires_cv=False,
        requires_linkedin=True,
    ),
)

CV_SIGNALS: tuple[Signal, ...] = (
    Signal(
        name="cv_timeline_consistency",
        description="Chronological order with no overlapping full-time jobs unless explicitly freelance",
        importance=0.9,
        requires_cv=True,
        requires_linkedin=False,
    ),
    Signal(
        name="cv_verifiable_claims",
        description="OSS contributions, patents, or public work can be verified on GitHub/Google/Arxiv",
        importance=0.85,
        requires_cv=True,
        requires_linkedin=False,
    ),
    Signal(
        name="cv_project_specificity",
        description="Project descriptions are specific and technical, not just buzzwords",
        importance=0.3,
        requires_cv=True,
        requires_linkedin=False,
    ),
    Signal(
        name="cv_contact_info_consistency",
        description="Email matches GitHub/LinkedIn or shows obvious consistency",
        importance=0.8,
        requires_cv=True,
        requires_linkedin=True,
    ),
)

COMBINED_SIGNALS: tuple[Signal, ...] = (
    Signal(
        name="cross_platform_consistency",
        description="Overall consistency between CV and LinkedIn profiles",
        importance=0.95,
        requires_cv=True,
        requires_linkedin=True,
    ),
    Signal(
        name="timeline_cross_verification",
        description="Employment timelines match across CV and LinkedIn",
        importance=0.9,
        requires_cv=True,
        requires_linkedin=True,
    ),
    Signal(
        name="contact_info_alignment",
        description="Contact information is consistent across all platforms",
        importance=0.8,
        requires_cv=True,
        requires_linkedin=True,
    ),
)

ALL_SIGNALS: tuple[Signal, ...] = LINKEDIN_SIGNALS + CV_SIGNALS + COMBINED_SIGNALS


def signal_names(signals: tuple[Signal, ...] = ALL_SIGNALS) -> list[str]:
    return [signal.name for signal in signals]


def select_signals(
    enabled: Iterable[str] = (),
    disabled: Iterable[str] = (),
    signals: tuple[Signal, ...] = ALL_SIGNALS,
) -> tuple[Signal, ...]:
    """Filter ``signals`` by name, keeping catalog order.

    An empty ``enabled`` list means every signal; ``disabled`` always wins.
    """
    enabled_set = set(enabled)
    disabled_set = set(disabled)
    return tuple(
        signal
        for signal in signals
        if (not enabled_set or signal.name in enabled_set) and signal.name not in disabled_set
    )


__all__ = ["ALL_SIGNALS", "COMBINED_SIGNALS", "CV_SIGNALS", "LINKEDIN_SIGNALS", "select_signals", "signal_names"]
