"""Chat-completion client for the reasoning model.

Talks to any OpenAI-compatible ``/chat/completions`` endpoint; Groq is the
default host. Transient failures (rate limits, upstream 5xx, dropped
connections) are retried with exponential backoff before surfacing as a
``ChatCompletionError``.
"""

from __future__ import annotations

import json
import os
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..logging import get_logger

__all__ = ["ChatCompletionError", "LLMRequest", "LLMRunner"]

# Sentinel meaning "look in the environment, then fall back to the default".
_FROM_ENV = object()

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class ChatCompletionError(RuntimeError):
    """The completion endpoint could not produce a usable answer."""

    def __init__(self, message: str, *, status: int | None = None, retryable: bool = False) -> None:
        super().__init__(message)
        self.status = status
        self.retryable = retryable


@dataclass
class LLMRequest:
    """One prompt, fully resolved against the runner's settings."""

    prompt: str
    system: Optional[str]
    model: str
    temperature: Optional[float]
    max_tokens: Optional[int]
    base_url: Optional[str]
    api_key: Optional[str]
    request_timeout: Optional[float]
    json_mode: bool = True

    def endpoint(self) -> str:
        if not self.base_url:
            raise ChatCompletionError("HTTP runner requires a base_url to be configured.")
        return f"{self.base_url}/chat/completions"

    def payload(self) -> Dict[str, Any]:
        messages: List[Dict[str, str]] = []
        if self.system:
            messages.append({"role": "system", "content": self.system})
        messages.append({"role": "user", "content": self.prompt})

        body: Dict[str, Any] = {"model": self.model, "messages": messages}
        if self.temperature is not None:
            body["temperature"] = self.temperature
        if self.max_tokens is not None:
            body["max_tokens"] = self.max_tokens
        if self.json_mode:
            body["response_format"] = {"type": "json_object"}
        return body

    def headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers


class LLMRunner:
    """Blocking client; ``LLMJudgmentService`` moves calls off the event loop."""

    DEFAULT_MODEL = "llama-3.3-70b-versatile"
    DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"
    DEFAULT_TIMEOUT = 60.0
    ENV_MODEL_KEYS = ("UNMASK_LLM_MODEL", "GROQ_MODEL", "OPENAI_MODEL")
    ENV_BASE_URL_KEYS = ("UNMASK_LLM_BASE_URL", "GROQ_BASE_URL", "OPENAI_BASE_URL")
    ENV_API_KEY_KEYS = ("UNMASK_LLM_API_KEY", "GROQ_API_KEY", "OPENAI_API_KEY")

    def __init__(
        self,
        model: str | None = None,
        *,
        base_url: str | None | object = _FROM_ENV,
        temperature: Optional[float] = 0.2,
        max_tokens: Optional[int] = None,
        api_key: str | None | object = _FROM_ENV,
        request_timeout: Optional[float] = DEFAULT_TIMEOUT,
        max_retries: int = 2,
        retry_delay: float = 1.0,
        runner: Callable[[LLMRequest], str] | None = None,
    ) -> None:
        self.model = model or _env_setting(self.ENV_MODEL_KEYS) or self.DEFAULT_MODEL
        if base_url is _FROM_ENV:
            base_url = _env_setting(self.ENV_BASE_URL_KEYS) or self.DEFAULT_BASE_URL
        self.base_url = str(base_url).rstrip("/") if base_url else None
        self.api_key = _env_setting(self.ENV_API_KEY_KEYS) if api_key is _FROM_ENV else api_key
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.request_timeout = request_timeout
        self.max_retries = max(0, max_retries)
        self.retry_delay = retry_delay
        self.logger = get_logger("llm.runner")
        self._send = runner if runner is not None else self._complete_with_retries

    def run(self, prompt: str, *, system: str | None = None, json_mode: bool = True) -> str:
        """Send one prompt and return the model's reply text."""
        request = LLMRequest(
            prompt=prompt,
            system=system,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            base_url=self.base_url,
            api_key=self.api_key,
            request_timeout=self.request_timeout,
            json_mode=json_mode,
        )
        return self._send(request)

    def _complete_with_retries(self, request: LLMRequest) -> str:
        attempt = 0
        while True:
            try:
                return _complete(request)
            except ChatCompletionError as exc:
                if not exc.retryable or attempt >= self.max_retries:
                    raise
                delay = self.retry_delay * (2**attempt)
                self.logger.warning("%s; retrying in %.1fs", exc, delay)
                time.sleep(delay)
                attempt += 1


def _complete(request: LLMRequest) -> str:
    http_request = Request(
        request.endpoint(),
        data=json.dumps(request.payload()).encode("utf-8"),
        headers=request.headers(),
        method="POST",
    )
    timeout = request.request_timeout or LLMRunner.DEFAULT_TIMEOUT

    try:
        with urlopen(http_request, timeout=timeout) as response:
            raw = response.read()
    except HTTPError as exc:  # pragma: no cover - depends on remote service
        body = exc.read().decode("utf-8", errors="ignore")
        raise ChatCompletionError(
            f"LLM HTTP runner failed with status {exc.code}: {body.strip() or exc.reason}",
            status=exc.code,
            retryable=exc.code in RETRYABLE_STATUS_CODES,
        ) from exc
    except URLError as exc:  # pragma: no cover - depends on network
        raise ChatCompletionError(f"LLM HTTP runner failed: {exc.reason}", retryable=True) from exc
    except TimeoutError as exc:  # pragma: no cover - depends on network
        raise ChatCompletionError(f"LLM HTTP runner timed out after {timeout}s", retryable=True) from exc

    try:
        completion = json.loads(raw.decode("utf-8"))
    except json.JSONDecodeError as exc:
        raise ChatCompletionError("LLM HTTP runner returned invalid JSON") from exc

    text = _reply_text(completion)
    if not text.strip():
        raise ChatCompletionError("LLM HTTP runner returned an empty response")
    return text.strip()


def _reply_text(completion: Any) -> str:
    """First choice's message content; legacy ``text`` completions are accepted too."""
    choices = completion.get("choices") if isinstance(completion, dict) else None
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    choice = choices[0]
    message = choice.get("message")
    if isinstance(message, dict) and isinstance(message.get("content"), str):
        return message["content"]
    return choice["text"] if isinstance(choice.get("text"), str) else ""


def _env_setting(keys: Sequence[str]) -> str | None:
    return next((os.environ[key] for key in keys if os.environ.get(key)), None)
