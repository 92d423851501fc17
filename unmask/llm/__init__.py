"""Reasoning backend adapters."""

from .judgment import JudgmentError, JudgmentService, LLMJudgmentService, parse_json_object
from .runner import ChatCompletionError, LLMRequest, LLMRunner

__all__ = [
    "ChatCompletionError",
    "JudgmentError",
    "JudgmentService",
    "LLMJudgmentService",
    "LLMRequest",
    "LLMRunner",
    "parse_json_object",
]
