"""CLI entrypoints for unmask commands."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from .config import ConfigError, UnmaskConfig, load_config
from .logging import configure_logging
from .orchestrator import AnalysisPipeline
from .scoring import is_eligible_for_full_analysis, score_tier_description, tier_score
from .signals.evaluator import EvaluationContext, calculate_overall_score, get_high_risk_signals


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_config_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=".",
        help="Path to .unmask.yml or the directory containing it (defaults to current directory).",
    )


def _add_source_options(parser: argparse.ArgumentParser, *, github: bool = True) -> None:
    parser.add_argument("--cv", type=Path, help="JSON file with extracted CV data.")
    parser.add_argument("--linkedin", type=Path, help="JSON file with LinkedIn profile data.")
    if github:
        parser.add_argument("--github", type=Path, help="JSON file with GitHub account data.")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="unmask",
        description="Verify applicant authenticity across CV, LinkedIn and GitHub sources.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Run the full credibility analysis on source snapshots.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    _add_config_option(analyze_parser)
    _add_source_options(analyze_parser)

    signals_parser = subparsers.add_parser(
        "signals",
        help="Evaluate authenticity signals only.",
    )
    _add_verbose_option(signals_parser, suppress_default=True)
    _add_config_option(signals_parser)
    _add_source_options(signals_parser, github=False)

    tier_parser = subparsers.add_parser(
        "tier",
        help="Show the pre-analysis tier score for the available data.",
    )
    _add_verbose_option(tier_parser, suppress_default=True)
    tier_parser.add_argument("--linkedin", action="store_true", help="A LinkedIn profile is available.")
    tier_parser.add_argument("--cv", action="store_true", help="A CV document is available.")

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    _add_config_option(serve_parser)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for unmask commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    if args.command == "tier":
        score = tier_score(bool(args.linkedin), bool(args.cv))
        _print_json(
            {
                "score": score,
                "description": score_tier_description(score),
                "eligible": is_eligible_for_full_analysis(score),
            }
        )
        return

    try:
        config = load_config(Path(args.config))
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port, config=config)
        return

    try:
        sources = {
            name: _read_source(getattr(args, name, None))
            for name in ("cv", "linkedin", "github")
        }
    except (OSError, ValueError) as exc:
        parser.exit(1, f"{exc}\n")

    pipeline = _build_pipeline(config)
    try:
        if args.command == "analyze":
            outcome = asyncio.run(pipeline.analyze_sources(**sources))
            _print_json(outcome.result.to_dict())
        elif args.command == "signals":
            context = EvaluationContext(cv_data=sources["cv"], linkedin_data=sources["linkedin"])
            results = asyncio.run(pipeline.signal_evaluator.evaluate_all(context, pipeline.signals))
            pipeline_cfg = config.pipeline
            overall = calculate_overall_score(
                results,
                passed_threshold=pipeline_cfg.passed_threshold,
                failed_threshold=pipeline_cfg.failed_threshold,
            )
            high_risk = get_high_risk_signals(results, pipeline_cfg.high_risk_threshold)
            _print_json(
                {
                    "results": [result.to_dict() for result in results],
                    "overall": overall.to_dict(),
                    "high_risk": [result.signal.name for result in high_risk],
                }
            )
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except Exception as exc:  # pragma: no cover - defensive guard
        parser.exit(1, f"unmask {args.command} failed: {exc}\nRun with --verbose for more details.\n")
    finally:
        pipeline.close()


def _build_pipeline(config: UnmaskConfig) -> AnalysisPipeline:
    return AnalysisPipeline(config=config)


def _read_source(path: Optional[Path]) -> Optional[Dict[str, Any]]:
    if path is None:
        return None
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"{path} is not valid JSON: {exc.msg}") from exc
    if not isinstance(payload, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return payload


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main(sys.argv[1:])
