from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.judges import ScriptedJudge
from unmask.stores.applicant_store import JsonApplicantStore


@pytest.fixture
def judge() -> ScriptedJudge:
    """A judgment double that answers every stage with an empty object."""
    return ScriptedJudge()


@pytest.fixture
def store(tmp_path: Path) -> JsonApplicantStore:
    return JsonApplicantStore(tmp_path / "applicants.json")
