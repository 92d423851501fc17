"""Configuration loading for unmask (.unmask.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .signals.catalog import signal_names

CONFIG_FILENAME = ".unmask.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class LLMConfig:
    """Reasoning backend settings from .unmask.yml."""

    model: Optional[str] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    request_timeout: Optional[float] = None
    max_retries: Optional[int] = None


@dataclass
class PipelineConfig:
    """Fan-out limits, auto-analysis gate and signal thresholds."""

    max_concurrency: int = 8
    auto_analyze: bool = True
    auto_analyze_min_tier: int = 30
    high_risk_threshold: float = 0.3
    passed_threshold: float = 0.7
    failed_threshold: float = 0.3


@dataclass
class SignalConfig:
    """Signal enablement by name."""

    enabled: List[str] = field(default_factory=list)
    disabled: List[str] = field(default_factory=list)


@dataclass
class StoreConfig:
    path: Optional[Path] = None


@dataclass
class UnmaskConfig:
    """Represents the settings defined in .unmask.yml."""

    root: Path
    llm: Optional[LLMConfig] = None
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    signals: SignalConfig = field(default_factory=SignalConfig)
    store: StoreConfig = field(default_factory=StoreConfig)


def load_config(config_path: Path) -> UnmaskConfig:
    """Load configuration from disk; a missing file yields defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return UnmaskConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    llm_data = _as_dict(data.get("llm"))
    llm = None
    if llm_data:
        llm = LLMConfig(
            model=_as_str(llm_data.get("model")),
            base_url=_as_str(llm_data.get("base_url")),
            api_key=_as_str(llm_data.get("api_key")),
            temperature=_as_float(llm_data.get("temperature")),
            max_tokens=_as_int(llm_data.get("max_tokens")),
            request_timeout=_as_float(llm_data.get("request_timeout")),
            max_retries=_as_int(llm_data.get("max_retries")),
        )
        if not any(
            value is not None
            for value in (
                llm.model,
                llm.base_url,
                llm.api_key,
                llm.temperature,
                llm.max_tokens,
                llm.request_timeout,
                llm.max_retries,
            )
        ):
            llm = None

    pipeline = PipelineConfig()
    pipeline_data = _as_dict(data.get("pipeline"))
    if pipeline_data:
        max_concurrency = _as_int(pipeline_data.get("max_concurrency"))
        if max_concurrency is not None and max_concurrency > 0:
            pipeline.max_concurrency = max_concurrency
        auto_analyze = _as_bool(pipeline_data.get("auto_analyze"))
        if auto_analyze is not None:
            pipeline.auto_analyze = auto_analyze
        min_tier = _as_int(pipeline_data.get("auto_analyze_min_tier"))
        if min_tier is not None:
            pipeline.auto_analyze_min_tier = min_tier
        for name in ("high_risk_threshold", "passed_threshold", "failed_threshold"):
            value = _as_float(pipeline_data.get(name))
            if value is not None:
                if not 0.0 <= value <= 1.0:
                    raise ConfigError(f"pipeline.{name} must be between 0 and 1, got {value}")
                setattr(pipeline, name, value)

    signals = SignalConfig()
    signal_data = _as_dict(data.get("signals"))
    if signal_data:
        signals.enabled = _as_str_list(signal_data.get("enabled"))
        signals.disabled = _as_str_list(signal_data.get("disabled"))
        known = set(signal_names())
        unknown = sorted({*signals.enabled, *signals.disabled} - known)
        if unknown:
            raise ConfigError(f"Unknown signal name(s) in {CONFIG_FILENAME}: {', '.join(unknown)}")

    store = StoreConfig()
    store_data = _as_dict(data.get("store"))
    store_path = _as_str(store_data.get("path")) if store_data else None
    if store_path:
        store.path = root / store_path

    return UnmaskConfig(root=root, llm=llm, pipeline=pipeline, signals=signals, store=store)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "LLMConfig",
    "PipelineConfig",
    "SignalConfig",
    "StoreConfig",
    "UnmaskConfig",
    "load_config",
]
