"""Pipeline orchestration: readiness tracking, analysis fan-out and result write-back."""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Union

from .aggregator import Aggregator
from .analyzers import CrossReferenceAnalyzer, SourceAnalyzer, build_source_analyzers
from .config import LLMConfig, UnmaskConfig
from .failsafe import build_cross_reference_fallback
from .llm.judgment import JudgmentService, LLMJudgmentService
from .llm.runner import LLMRunner
from .logging import get_logger, log_exception
from .models import (
    SOURCE_CV,
    SOURCE_GITHUB,
    SOURCE_LINKEDIN,
    SOURCES,
    AnalysisResult,
    Applicant,
    CrossReferenceAnalysis,
    Signal,
    SignalEvaluationResult,
    SourceAnalysis,
    utc_now,
)
from .prompting.builder import PromptBuilder
from .scoring import has_linkedin_url, is_eligible_for_full_analysis, tier_score
from .signals.catalog import ALL_SIGNALS, select_signals
from .signals.evaluator import EvaluationContext, SignalEvaluator
from .status import (
    ERROR,
    PENDING,
    READY,
    StatusTransitionError,
    is_ready_for_analysis,
)
from .stores.applicant_store import ApplicantStore, JsonApplicantStore, ProcessingConflictError

Extractor = Callable[[Applicant], Union[Mapping[str, Any], Awaitable[Mapping[str, Any]]]]


@dataclass
class AnalysisOutcome:
    """Everything one analysis run produced."""

    result: AnalysisResult
    individual_analysis: Dict[str, SourceAnalysis] = field(default_factory=dict)
    cross_reference: Optional[CrossReferenceAnalysis] = None
    signal_results: List[SignalEvaluationResult] = field(default_factory=list)


class AnalysisPipeline:
    """Coordinates the analysis stages for applicants held in a store.

    Every source-status write re-checks readiness; the aggregator runs only
    once all requested sources have resolved and the analysis claim succeeds.
    """

    def __init__(
        self,
        store: ApplicantStore | None = None,
        judge: JudgmentService | None = None,
        *,
        config: UnmaskConfig | None = None,
        prompt_builder: PromptBuilder | None = None,
        source_analyzers: Optional[Mapping[str, SourceAnalyzer]] = None,
        cross_reference_analyzer: CrossReferenceAnalyzer | None = None,
        signal_evaluator: SignalEvaluator | None = None,
        aggregator: Aggregator | None = None,
        signals: Optional[Sequence[Signal]] = None,
    ) -> None:
        self.config = config or UnmaskConfig(root=Path.cwd())
        pipeline_cfg = self.config.pipeline
        self.logger = get_logger("orchestrator")
        self._owns_judge = judge is None
        self.judge = judge or self._build_judge(self.config.llm, pipeline_cfg.max_concurrency)
        self.store = store or JsonApplicantStore(self.config.store.path)
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.source_analyzers = dict(source_analyzers or build_source_analyzers(self.judge, self.prompt_builder))
        self.cross_reference_analyzer = cross_reference_analyzer or CrossReferenceAnalyzer(
            self.judge, self.prompt_builder
        )
        self.signal_evaluator = signal_evaluator or SignalEvaluator(self.judge, self.prompt_builder)
        self.aggregator = aggregator or Aggregator(
            self.judge,
            self.prompt_builder,
            passed_threshold=pipeline_cfg.passed_threshold,
            failed_threshold=pipeline_cfg.failed_threshold,
            high_risk_threshold=pipeline_cfg.high_risk_threshold,
        )
        if signals is not None:
            self.signals = tuple(signals)
        else:
            self.signals = select_signals(
                self.config.signals.enabled, self.config.signals.disabled, ALL_SIGNALS
            )

    # ------------------------------------------------------------------
    # Stateless analysis

    async def analyze_sources(
        self,
        applicant: Optional[Applicant] = None,
        *,
        cv: Optional[Mapping[str, Any]] = None,
        linkedin: Optional[Mapping[str, Any]] = None,
        github: Optional[Mapping[str, Any]] = None,
    ) -> AnalysisOutcome:
        """Run every analysis stage concurrently and aggregate the outcomes.

        Stages are collected independently; an exception escaping any one of
        them is replaced by that stage's fallback and never cancels siblings.
        """
        data = {SOURCE_CV: cv, SOURCE_LINKEDIN: linkedin, SOURCE_GITHUB: github}
        context = EvaluationContext(
            cv_data=cv,
            linkedin_data=linkedin,
            extra={"evaluation_date": utc_now()},
        )
        self.logger.info(
            "Starting analysis fan-out (%d source(s), %d signal(s))",
            sum(1 for value in data.values() if value),
            len(self.signals),
        )
        outcomes = await asyncio.gather(
            *(self.source_analyzers[source].analyze(data[source]) for source in SOURCES),
            self.cross_reference_analyzer.analyze(cv, linkedin, github),
            self.signal_evaluator.evaluate_all(context, self.signals),
            return_exceptions=True,
        )
        for outcome in outcomes:
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome

        individual: Dict[str, SourceAnalysis] = {}
        for source, outcome in zip(SOURCES, outcomes[: len(SOURCES)]):
            if isinstance(outcome, BaseException):
                self.logger.warning("%s stage crashed, using fallback: %s", source, outcome)
                outcome = self.source_analyzers[source].fallback(str(outcome)) if data[source] else None
            if outcome is not None:
                individual[source] = outcome

        cross_reference = outcomes[len(SOURCES)]
        if isinstance(cross_reference, BaseException):
            self.logger.warning("Cross-reference stage crashed, using fallback: %s", cross_reference)
            compared = [source for source in SOURCES if data[source]]
            cross_reference = (
                build_cross_reference_fallback(compared, reason=str(cross_reference)) if cv else None
            )

        signal_results = outcomes[len(SOURCES) + 1]
        if isinstance(signal_results, BaseException):
            self.logger.warning("Signal evaluation crashed, continuing without signals: %s", signal_results)
            signal_results = []

        result = await self.aggregator.aggregate(
            applicant,
            individual.get(SOURCE_CV),
            individual.get(SOURCE_LINKEDIN),
            individual.get(SOURCE_GITHUB),
            cross_reference,
            signal_results,
        )
        self.logger.info("Analysis fan-out finished with credibility score %d", result.credibility_score)
        return AnalysisOutcome(
            result=result,
            individual_analysis=individual,
            cross_reference=cross_reference,
            signal_results=list(signal_results),
        )

    # ------------------------------------------------------------------
    # Stateful flows

    async def run(self, applicant_id: str) -> Optional[Applicant]:
        """Analyze a ready applicant on demand, ignoring the tier gate.

        Returns None when sources are still outstanding. Raises
        ``ProcessingConflictError`` if an analysis is already running.
        """
        applicant = self.store.read_applicant(applicant_id)
        if not is_ready_for_analysis(_source_statuses(applicant)):
            self.logger.info("Applicant %s is not ready for analysis yet", applicant_id)
            return None
        applicant = self.store.claim_analysis(applicant_id)
        return await self._analyze_and_store(applicant)

    async def reanalyze(self, applicant_id: str) -> Applicant:
        """Produce a fresh result for an applicant whose analysis already finished."""
        applicant = self.store.read_applicant(applicant_id)
        if applicant.ai_status not in (READY, ERROR):
            raise StatusTransitionError(
                f"Applicant '{applicant_id}' has ai status '{applicant.ai_status}'; only finished analyses can be re-run"
            )
        outcome = await self.analyze_sources(applicant, **_ready_source_data(applicant))
        return self.store.write_analysis_result(
            applicant_id,
            outcome.result,
            individual_analysis=outcome.individual_analysis,
            cross_reference=outcome.cross_reference,
        )

    async def on_source_status(
        self,
        applicant_id: str,
        source: str,
        status: str,
        data: Optional[Mapping[str, Any]] = None,
    ) -> Applicant:
        """Record a source status write and start the analysis once everything resolved."""
        applicant = self.store.write_source_status(
            applicant_id, source, status, dict(data) if data is not None else None
        )
        return await self._maybe_auto_analyze(applicant)

    async def process_source(self, applicant_id: str, source: str, extractor: Extractor) -> Applicant:
        """Claim ``source``, run the extraction collaborator and record its outcome.

        A source that is already ready is returned untouched; the extractor
        does not run twice.
        """
        claim = self.store.claim_source(applicant_id, source)
        if not claim.claimed:
            self.logger.info("%s for %s already ready; reusing stored data", source, applicant_id)
            return claim.applicant

        try:
            extracted = extractor(claim.applicant)
            if inspect.isawaitable(extracted):
                extracted = await extracted
        except Exception as exc:
            log_exception(self.logger, f"{source} extraction failed for {applicant_id}", exc)
            return await self.on_source_status(
                applicant_id,
                source,
                ERROR,
                {"error": str(exc), "processed_at": utc_now()},
            )
        if not isinstance(extracted, Mapping) or not extracted:
            return await self.on_source_status(
                applicant_id,
                source,
                ERROR,
                {"error": "Extractor returned no data", "processed_at": utc_now()},
            )
        return await self.on_source_status(applicant_id, source, READY, extracted)

    def tier_for(self, applicant: Applicant) -> int:
        has_linkedin = has_linkedin_url(applicant.linkedin_url) or (
            applicant.li_status == READY and bool(applicant.li_data)
        )
        has_cv = applicant.cv_status == READY and bool(applicant.cv_data)
        return tier_score(has_linkedin, has_cv)

    def close(self) -> None:
        if self._owns_judge and isinstance(self.judge, LLMJudgmentService):
            self.judge.close()

    # ------------------------------------------------------------------
    # Internal helpers

    async def _maybe_auto_analyze(self, applicant: Applicant) -> Applicant:
        pipeline_cfg = self.config.pipeline
        if applicant.ai_status != PENDING or not is_ready_for_analysis(_source_statuses(applicant)):
            return applicant
        if not pipeline_cfg.auto_analyze:
            self.logger.info("Applicant %s is ready; automatic analysis disabled", applicant.id)
            return applicant
        tier = self.tier_for(applicant)
        if not is_eligible_for_full_analysis(tier, threshold=pipeline_cfg.auto_analyze_min_tier):
            self.logger.info(
                "Applicant %s is ready but tier %d is below %d; waiting for an on-demand run",
                applicant.id,
                tier,
                pipeline_cfg.auto_analyze_min_tier,
            )
            return applicant

        try:
            claimed = self.store.claim_analysis(applicant.id)
        except (ProcessingConflictError, StatusTransitionError) as exc:
            # Another status write already triggered the analysis.
            self.logger.debug("Skipping analysis trigger for %s: %s", applicant.id, exc)
            return self.store.read_applicant(applicant.id)
        self.logger.info("Applicant %s ready (tier %d); starting analysis", applicant.id, tier)
        return await self._analyze_and_store(claimed)

    async def _analyze_and_store(self, applicant: Applicant) -> Applicant:
        # Any exit without a stored result marks the analysis as error, cancellation included.
        try:
            outcome = await self.analyze_sources(applicant, **_ready_source_data(applicant))
            return self.store.write_analysis_result(
                applicant.id,
                outcome.result,
                individual_analysis=outcome.individual_analysis,
                cross_reference=outcome.cross_reference,
            )
        except asyncio.CancelledError:
            self.logger.warning("Analysis for %s was cancelled", applicant.id)
            self.store.write_ai_status(applicant.id, ERROR)
            raise
        except Exception as exc:
            log_exception(self.logger, f"Analysis for {applicant.id} did not complete", exc)
            self.store.write_ai_status(applicant.id, ERROR)
            raise

    @staticmethod
    def _build_judge(llm_cfg: LLMConfig | None, max_concurrency: int) -> LLMJudgmentService:
        llm_cfg = llm_cfg or LLMConfig()
        kwargs: Dict[str, Any] = {}
        if llm_cfg.base_url:
            kwargs["base_url"] = llm_cfg.base_url
        if llm_cfg.api_key:
            kwargs["api_key"] = llm_cfg.api_key
        if llm_cfg.temperature is not None:
            kwargs["temperature"] = llm_cfg.temperature
        if llm_cfg.max_tokens is not None:
            kwargs["max_tokens"] = llm_cfg.max_tokens
        if llm_cfg.request_timeout is not None:
            kwargs["request_timeout"] = llm_cfg.request_timeout
        if llm_cfg.max_retries is not None:
            kwargs["max_retries"] = llm_cfg.max_retries
        runner = LLMRunner(llm_cfg.model, **kwargs)
        return LLMJudgmentService(runner, max_concurrency=max_concurrency)


def _source_statuses(applicant: Applicant) -> Dict[str, str]:
    return {source: applicant.source_status(source) for source in SOURCES}


def _ready_source_data(applicant: Applicant) -> Dict[str, Optional[Mapping[str, Any]]]:
    """Source snapshots for sources that reached ready; everything else is absent."""
    return {
        source: applicant.source_data(source) if applicant.source_status(source) == READY else None
        for source in SOURCES
    }


__all__ = ["AnalysisOutcome", "AnalysisPipeline", "Extractor"]
