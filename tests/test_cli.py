"""CLI behaviour tests."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from tests._fixtures.judges import CV_DATA, ScriptedJudge
from unmask import cli
from unmask.cli import _build_parser
from unmask.orchestrator import AnalysisPipeline
from unmask.stores.applicant_store import JsonApplicantStore


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    logger = logging.getLogger("unmask")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True


def test_cli_accepts_verbose_before_command() -> None:
    args = _build_parser().parse_args(["--verbose", "tier"])
    assert args.verbose is True
    assert args.command == "tier"


def test_cli_accepts_verbose_after_command() -> None:
    args = _build_parser().parse_args(["analyze", "--verbose", "--cv", "cv.json"])
    assert args.verbose is True
    assert args.cv == Path("cv.json")
    assert args.github is None


def test_cli_serve_defaults() -> None:
    args = _build_parser().parse_args(["serve"])
    assert args.host == "127.0.0.1"
    assert args.port == 8000
    assert args.config == "."


def test_signals_command_has_no_github_option() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args(["signals", "--github", "gh.json"])


def test_tier_command_prints_score(capsys) -> None:
    cli.main(["tier", "--linkedin", "--cv"])

    assert json.loads(capsys.readouterr().out) == {
        "score": 30,
        "description": "Complete Data (LinkedIn + CV)",
        "eligible": True,
    }


def test_tier_command_without_data(capsys) -> None:
    cli.main(["tier"])

    assert json.loads(capsys.readouterr().out)["eligible"] is False


@pytest.fixture
def scripted_pipeline(monkeypatch, tmp_path: Path) -> ScriptedJudge:
    judge = ScriptedJudge(
        aggregate={"score": 72, "summary": "Mostly consistent", "suggestedQuestions": ["Why leave Tech Corp?"]},
        signal={"evaluation_score": 0.2, "reason": "vague"},
    )

    def _fake_build(config):
        return AnalysisPipeline(JsonApplicantStore(), judge, config=config)

    monkeypatch.setattr(cli, "_build_pipeline", _fake_build)
    return judge


def test_analyze_command_prints_result(scripted_pipeline, tmp_path: Path, capsys) -> None:
    cv_path = tmp_path / "cv.json"
    cv_path.write_text(json.dumps(CV_DATA), encoding="utf-8")

    cli.main(["analyze", "--config", str(tmp_path), "--cv", str(cv_path)])

    output = json.loads(capsys.readouterr().out)
    assert output["credibility_score"] == 72
    assert output["summary"] == "Mostly consistent"
    assert output["suggested_questions"] == ["Why leave Tech Corp?"]
    assert [source["available"] for source in output["sources"]] == [True, False, False]


def test_signals_command_prints_high_risk(scripted_pipeline, tmp_path: Path, capsys) -> None:
    cv_path = tmp_path / "cv.json"
    cv_path.write_text(json.dumps(CV_DATA), encoding="utf-8")

    cli.main(["signals", "--config", str(tmp_path), "--cv", str(cv_path)])

    output = json.loads(capsys.readouterr().out)
    assert len(output["results"]) == 3
    assert output["overall"]["summary"]["failed_signals"] == 3
    assert set(output["high_risk"]) == {
        "cv_timeline_consistency",
        "cv_verifiable_claims",
        "cv_project_specificity",
    }
    assert "aggregate" not in scripted_pipeline.stages_called()


def test_invalid_source_file_exits(scripted_pipeline, tmp_path: Path, capsys) -> None:
    cv_path = tmp_path / "cv.json"
    cv_path.write_text("[1, 2, 3]", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["analyze", "--config", str(tmp_path), "--cv", str(cv_path)])

    assert excinfo.value.code == 1
    assert "must contain a JSON object" in capsys.readouterr().err


def test_invalid_config_exits(tmp_path: Path, capsys) -> None:
    (tmp_path / ".unmask.yml").write_text("pipeline:\n  failed_threshold: 7\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["analyze", "--config", str(tmp_path)])

    assert excinfo.value.code == 1
    assert "between 0 and 1" in capsys.readouterr().err
