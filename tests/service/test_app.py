"""Tests for the FastAPI service mode."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from tests._fixtures.judges import CV_DATA, LINKEDIN_DATA, ScriptedJudge
from unmask.config import UnmaskConfig
from unmask.orchestrator import AnalysisPipeline
from unmask.service import create_app
from unmask.stores.applicant_store import JsonApplicantStore


@pytest.fixture
def judge() -> ScriptedJudge:
    return ScriptedJudge(
        aggregate={"score": 84, "summary": "Consistent profile"},
        signal={"evaluation_score": 0.9, "reason": "consistent"},
    )


@pytest.fixture
def client(tmp_path: Path, judge: ScriptedJudge) -> TestClient:
    factory_calls = []

    def factory() -> AnalysisPipeline:
        factory_calls.append(1)
        return AnalysisPipeline(JsonApplicantStore(), judge, config=UnmaskConfig(root=tmp_path))

    app = create_app(factory)
    app.state.factory_calls = factory_calls  # type: ignore[attr-defined]
    return TestClient(app)


def _set_status(client: TestClient, applicant_id: str, source: str, status: str, data=None):
    body = {"status": status}
    if data is not None:
        body["data"] = data
    return client.put(f"/applicants/{applicant_id}/sources/{source}", json=body)


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_create_and_read_applicant(client: TestClient) -> None:
    response = client.post("/applicants", json={"name": "Jane Doe", "email": "jane.doe@example.com"})
    assert response.status_code == 201
    created = response.json()
    assert created["status"] == "uploading"
    assert created["tier"] == 10
    assert created["score"] is None

    fetched = client.get(f"/applicants/{created['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["name"] == "Jane Doe"
    # The store outlives a single request.
    assert client.app.state.factory_calls == [1]


def test_unknown_applicant_is_404(client: TestClient) -> None:
    response = client.get("/applicants/nope")
    assert response.status_code == 404
    assert response.json() == {"detail": "Applicant 'nope' not found"}


def test_source_writes_trigger_analysis(client: TestClient, judge: ScriptedJudge) -> None:
    applicant_id = client.post(
        "/applicants", json={"name": "Jane Doe", "linkedin_url": "https://linkedin.com/in/janedoe"}
    ).json()["id"]

    _set_status(client, applicant_id, "cv", "processing")
    _set_status(client, applicant_id, "cv", "ready", CV_DATA)
    _set_status(client, applicant_id, "linkedin", "processing")
    midway = _set_status(client, applicant_id, "linkedin", "ready", LINKEDIN_DATA).json()
    assert midway["status"] == "processing"
    assert midway["ai_status"] == "pending"

    final = _set_status(client, applicant_id, "github", "not_provided")
    assert final.status_code == 200
    body = final.json()
    assert body["status"] == "completed"
    assert body["score"] == 84
    assert body["tier"] == 30
    assert body["analysis_result"]["summary"] == "Consistent profile"
    assert judge.stages_called().count("aggregate") == 1


def test_illegal_transition_is_409(client: TestClient) -> None:
    applicant_id = client.post("/applicants", json={}).json()["id"]

    response = _set_status(client, applicant_id, "cv", "not_provided")

    assert response.status_code == 409
    assert "required" in response.json()["detail"]


def test_analyze_before_ready_is_409(client: TestClient) -> None:
    applicant_id = client.post("/applicants", json={}).json()["id"]

    response = client.post(f"/applicants/{applicant_id}/analyze")

    assert response.status_code == 409


def test_analyze_runs_then_reanalyzes(client: TestClient, judge: ScriptedJudge) -> None:
    applicant_id = client.post("/applicants", json={}).json()["id"]
    _set_status(client, applicant_id, "cv", "processing")
    _set_status(client, applicant_id, "cv", "ready", CV_DATA)
    _set_status(client, applicant_id, "linkedin", "not_provided")
    waiting = _set_status(client, applicant_id, "github", "not_provided").json()
    # Tier 15 stays below the automatic-analysis gate.
    assert waiting["ai_status"] == "pending"

    first = client.post(f"/applicants/{applicant_id}/analyze")
    assert first.status_code == 200
    assert first.json()["status"] == "completed"

    second = client.post(f"/applicants/{applicant_id}/analyze")
    assert second.status_code == 200
    assert judge.stages_called().count("aggregate") == 2


def test_signal_evaluation_endpoint(client: TestClient) -> None:
    response = client.post("/signals/evaluate", json={"cv_data": CV_DATA})

    assert response.status_code == 200
    data = response.json()
    assert len(data["results"]) == 3
    assert data["overall"]["summary"]["passed_signals"] == 3
    assert data["high_risk"] == []


def test_tier_endpoint(client: TestClient) -> None:
    response = client.get("/tier", params={"linkedin": "true", "cv": "false"})

    assert response.json() == {"score": 20, "description": "LinkedIn Only", "eligible": False}
