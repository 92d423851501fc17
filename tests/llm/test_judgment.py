"""Tests for the judgment service adapter."""

from __future__ import annotations

import asyncio

import pytest

from unmask.llm.judgment import JudgmentError, LLMJudgmentService, parse_json_object
from unmask.llm.runner import LLMRunner


def _service(reply) -> LLMJudgmentService:
    def fake_runner(request):
        if isinstance(reply, Exception):
            raise reply
        return reply

    runner = LLMRunner("m", base_url=None, api_key=None, runner=fake_runner)
    return LLMJudgmentService(runner, max_concurrency=2)


@pytest.mark.parametrize(
    "text",
    ['{"score": 70}', '  {"score": 70}\n', '```json\n{"score": 70}\n```', '```\n{"score": 70}\n```'],
)
def test_parse_json_object_accepts_fenced_and_bare_objects(text) -> None:
    assert parse_json_object(text) == {"score": 70}


@pytest.mark.parametrize(
    ("text", "message"),
    [("", "empty"), ("score: 70", "not valid JSON"), ("[1, 2]", "must be a JSON object"), ('"text"', "must be")],
)
def test_parse_json_object_rejects_non_objects(text, message) -> None:
    with pytest.raises(JudgmentError, match=message):
        parse_json_object(text)


def test_judge_returns_parsed_object() -> None:
    service = _service('{"evaluation_score": 0.8, "reason": "ok"}')
    try:
        result = asyncio.run(service.judge("prompt", system="system"))
    finally:
        service.close()

    assert result == {"evaluation_score": 0.8, "reason": "ok"}


def test_judge_wraps_runner_failures() -> None:
    service = _service(RuntimeError("LLM HTTP runner failed with status 429: rate limited"))
    try:
        with pytest.raises(JudgmentError, match="429"):
            asyncio.run(service.judge("prompt"))
    finally:
        service.close()


def test_judge_rejects_prose() -> None:
    service = _service("I think this candidate is fine.")
    try:
        with pytest.raises(JudgmentError):
            asyncio.run(service.judge("prompt"))
    finally:
        service.close()


def test_max_concurrency_is_at_least_one() -> None:
    service = LLMJudgmentService(LLMRunner("m", base_url=None), max_concurrency=0)
    service.close()

    assert service.max_concurrency == 1
