"""Judgment service contract: rubric prompt in, validated JSON object out."""

from __future__ import annotations

import asyncio
import json
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Protocol

from ..logging import get_logger
from .runner import LLMRunner

_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class JudgmentError(RuntimeError):
    """Raised when the reasoning backend fails or returns something other than a JSON object."""


class JudgmentService(Protocol):
    """Anything that can turn a rubric prompt into a JSON object."""

    async def judge(self, prompt: str, *, system: str | None = None) -> Dict[str, Any]:
        ...


def parse_json_object(text: str) -> Dict[str, Any]:
    """Parse ``text`` as a JSON object, tolerating a surrounding markdown code fence."""
    cleaned = text.strip()
    match = _FENCE_PATTERN.match(cleaned)
    if match:
        cleaned = match.group(1)
    if not cleaned:
        raise JudgmentError("Judgment response was empty")
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise JudgmentError(f"Judgment response is not valid JSON: {exc.msg}") from exc
    if not isinstance(payload, dict):
        raise JudgmentError(
            f"Judgment response must be a JSON object, got {type(payload).__name__}"
        )
    return payload


class LLMJudgmentService:
    """Runs blocking ``LLMRunner`` calls on a bounded thread pool.

    One instance is shared for the process lifetime; the pool size caps how
    many external calls are in flight at once.
    """

    def __init__(self, runner: LLMRunner | None = None, *, max_concurrency: int = 8) -> None:
        self.runner = runner or LLMRunner()
        self.max_concurrency = max(1, max_concurrency)
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_concurrency, thread_name_prefix="unmask-judge"
        )
        self.logger = get_logger("llm")

    async def judge(self, prompt: str, *, system: str | None = None) -> Dict[str, Any]:
        loop = asyncio.get_running_loop()

        def _call() -> str:
            return self.runner.run(prompt, system=system, json_mode=True)

        try:
            text = await loop.run_in_executor(self._executor, _call)
        except RuntimeError as exc:
            raise JudgmentError(str(exc)) from exc
        self.logger.debug("Judgment response received (%d chars)", len(text))
        return parse_json_object(text)

    def close(self) -> None:
        self._executor.shutdown(wait=False)


__all__ = ["JudgmentError", "JudgmentService", "LLMJudgmentService", "parse_json_object"]
