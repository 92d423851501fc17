"""Tests for status transitions and the derived overall status."""

from __future__ import annotations

import pytest

from unmask.status import (
    ERROR,
    NOT_PROVIDED,
    PENDING,
    PROCESSING,
    READY,
    StatusTransitionError,
    derive_overall_status,
    is_ready_for_analysis,
    requested_sources,
    validate_ai_transition,
    validate_source_transition,
)


def test_fresh_applicant_is_uploading() -> None:
    assert derive_overall_status(PENDING, PENDING, PENDING, PENDING) == "uploading"


@pytest.mark.parametrize(
    "statuses",
    [
        (PROCESSING, PENDING, PENDING),
        (READY, PENDING, NOT_PROVIDED),
        (READY, PROCESSING, READY),
        # Sources resolved but the analysis has not started yet.
        (READY, READY, NOT_PROVIDED),
    ],
)
def test_in_flight_sources_are_processing(statuses) -> None:
    assert derive_overall_status(*statuses, PENDING) == "processing"


def test_analysis_lifecycle() -> None:
    sources = (READY, NOT_PROVIDED, ERROR)

    assert derive_overall_status(*sources, PROCESSING) == "analyzing"
    assert derive_overall_status(*sources, READY) == "completed"
    assert derive_overall_status(*sources, ERROR) == "failed"


def test_every_requested_source_failing_is_failed() -> None:
    assert derive_overall_status(ERROR, ERROR, NOT_PROVIDED, PENDING) == "failed"
    assert derive_overall_status(ERROR, ERROR, ERROR, PENDING) == "failed"


def test_partial_failure_is_not_failed() -> None:
    assert derive_overall_status(ERROR, READY, NOT_PROVIDED, PENDING) == "processing"


def test_requested_sources_and_readiness() -> None:
    statuses = {"cv": READY, "linkedin": NOT_PROVIDED, "github": PROCESSING}

    assert requested_sources(statuses) == ["cv", "github"]
    assert is_ready_for_analysis(statuses) is False
    assert is_ready_for_analysis({**statuses, "github": ERROR}) is True


@pytest.mark.parametrize(
    ("current", "new"),
    [
        (PENDING, PROCESSING),
        (PENDING, ERROR),
        (PROCESSING, READY),
        (PROCESSING, ERROR),
    ],
)
def test_legal_source_transitions(current, new) -> None:
    validate_source_transition("cv", current, new)


@pytest.mark.parametrize(
    ("current", "new"),
    [
        (READY, PENDING),
        (READY, PROCESSING),
        (ERROR, READY),
        (PENDING, READY),
        (NOT_PROVIDED, PROCESSING),
        (PROCESSING, "done"),
    ],
)
def test_illegal_source_transitions(current, new) -> None:
    with pytest.raises(StatusTransitionError):
        validate_source_transition("linkedin", current, new)


def test_only_optional_sources_may_be_not_provided() -> None:
    validate_source_transition("linkedin", PENDING, NOT_PROVIDED)
    validate_source_transition("github", PENDING, NOT_PROVIDED)
    with pytest.raises(StatusTransitionError, match="required"):
        validate_source_transition("cv", PENDING, NOT_PROVIDED)


def test_unknown_source_is_rejected() -> None:
    with pytest.raises(StatusTransitionError, match="Unknown source"):
        validate_source_transition("twitter", PENDING, PROCESSING)


def test_ai_transitions() -> None:
    validate_ai_transition(PENDING, PROCESSING)
    validate_ai_transition(PROCESSING, READY)
    validate_ai_transition(PROCESSING, ERROR)
    for current, new in [(PENDING, READY), (READY, PROCESSING), (ERROR, PENDING), (PENDING, NOT_PROVIDED)]:
        with pytest.raises(StatusTransitionError):
            validate_ai_transition(current, new)
