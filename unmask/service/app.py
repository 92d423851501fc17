"""FastAPI application exposing the pipeline to an external scheduler."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import UnmaskConfig
from ..models import Applicant
from ..orchestrator import AnalysisPipeline
from ..scoring import is_eligible_for_full_analysis, score_tier_description, tier_score
from ..signals.evaluator import (
    EvaluationContext,
    calculate_overall_score,
    get_high_risk_signals,
)
from ..status import ERROR, READY, StatusTransitionError
from ..stores.applicant_store import ApplicantNotFoundError, ProcessingConflictError


class HealthResponse(BaseModel):
    status: str


class CreateApplicantRequest(BaseModel):
    name: str = ""
    email: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None


class SourceStatusRequest(BaseModel):
    status: str
    data: Optional[Dict[str, Any]] = None


class ApplicantResponse(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    status: str
    score: Optional[int] = None
    tier: int
    cv_status: str
    li_status: str
    gh_status: str
    ai_status: str
    analysis_result: Optional[Dict[str, Any]] = None
    created_at: str
    updated_at: str


class SignalEvaluationRequest(BaseModel):
    cv_data: Optional[Dict[str, Any]] = None
    linkedin_data: Optional[Dict[str, Any]] = None
    extra: Dict[str, Any] = {}


class SignalEvaluationResponse(BaseModel):
    results: List[Dict[str, Any]]
    overall: Dict[str, Any]
    high_risk: List[str]


class TierResponse(BaseModel):
    score: int
    description: str
    eligible: bool


def _default_pipeline() -> AnalysisPipeline:
    return AnalysisPipeline()


def create_app(
    pipeline_factory: Callable[[], AnalysisPipeline] = _default_pipeline,
) -> FastAPI:
    """Create the FastAPI application exposing unmask operations."""

    app = FastAPI(title="Unmask Service", version="0.1.0")

    async def get_pipeline(request: Request) -> AnalysisPipeline:
        # One pipeline per app so the applicant store survives across requests.
        pipeline = getattr(request.app.state, "pipeline", None)
        if pipeline is None:
            pipeline = pipeline_factory()
            request.app.state.pipeline = pipeline
        return pipeline

    def _to_response(pipeline: AnalysisPipeline, applicant: Applicant) -> ApplicantResponse:
        result = applicant.analysis_result
        return ApplicantResponse(
            id=applicant.id,
            name=applicant.name,
            email=applicant.email,
            status=applicant.status,
            score=applicant.score,
            tier=pipeline.tier_for(applicant),
            cv_status=applicant.cv_status,
            li_status=applicant.li_status,
            gh_status=applicant.gh_status,
            ai_status=applicant.ai_status,
            analysis_result=result.to_dict() if result is not None else None,
            created_at=applicant.created_at,
            updated_at=applicant.updated_at,
        )

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/applicants", response_model=ApplicantResponse, status_code=201)
    async def create_applicant(
        payload: CreateApplicantRequest,
        pipeline: AnalysisPipeline = Depends(get_pipeline),
    ) -> ApplicantResponse:
        applicant = pipeline.store.create_applicant(
            name=payload.name,
            email=payload.email,
            linkedin_url=payload.linkedin_url,
            github_url=payload.github_url,
        )
        return _to_response(pipeline, applicant)

    @app.get("/applicants/{applicant_id}", response_model=ApplicantResponse)
    async def read_applicant(
        applicant_id: str,
        pipeline: AnalysisPipeline = Depends(get_pipeline),
    ) -> ApplicantResponse:
        return _to_response(pipeline, pipeline.store.read_applicant(applicant_id))

    @app.put("/applicants/{applicant_id}/sources/{source}", response_model=ApplicantResponse)
    async def write_source_status(
        applicant_id: str,
        source: str,
        payload: SourceStatusRequest,
        pipeline: AnalysisPipeline = Depends(get_pipeline),
    ) -> ApplicantResponse:
        applicant = await pipeline.on_source_status(applicant_id, source, payload.status, payload.data)
        return _to_response(pipeline, applicant)

    @app.post("/applicants/{applicant_id}/analyze", response_model=ApplicantResponse)
    async def analyze_applicant(
        applicant_id: str,
        pipeline: AnalysisPipeline = Depends(get_pipeline),
    ) -> ApplicantResponse:
        applicant = pipeline.store.read_applicant(applicant_id)
        if applicant.ai_status in (READY, ERROR):
            applicant = await pipeline.reanalyze(applicant_id)
        else:
            analyzed = await pipeline.run(applicant_id)
            if analyzed is None:
                raise HTTPException(
                    status_code=409,
                    detail=f"Applicant '{applicant_id}' still has sources pending or processing",
                )
            applicant = analyzed
        return _to_response(pipeline, applicant)

    @app.post("/signals/evaluate", response_model=SignalEvaluationResponse)
    async def evaluate_signals(
        payload: SignalEvaluationRequest,
        pipeline: AnalysisPipeline = Depends(get_pipeline),
    ) -> SignalEvaluationResponse:
        context = EvaluationContext(
            cv_data=payload.cv_data,
            linkedin_data=payload.linkedin_data,
            extra=dict(payload.extra),
        )
        results = await pipeline.signal_evaluator.evaluate_all(context, pipeline.signals)
        pipeline_cfg = pipeline.config.pipeline
        overall = calculate_overall_score(
            results,
            passed_threshold=pipeline_cfg.passed_threshold,
            failed_threshold=pipeline_cfg.failed_threshold,
        )
        high_risk = get_high_risk_signals(results, pipeline_cfg.high_risk_threshold)
        return SignalEvaluationResponse(
            results=[result.to_dict() for result in results],
            overall=overall.to_dict(),
            high_risk=[result.signal.name for result in high_risk],
        )

    @app.get("/tier", response_model=TierResponse)
    async def tier(linkedin: bool = False, cv: bool = False) -> TierResponse:
        score = tier_score(linkedin, cv)
        return TierResponse(
            score=score,
            description=score_tier_description(score),
            eligible=is_eligible_for_full_analysis(score),
        )

    @app.exception_handler(ApplicantNotFoundError)
    async def not_found_handler(_: Any, exc: ApplicantNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(StatusTransitionError)
    async def transition_handler(_: Any, exc: StatusTransitionError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(ProcessingConflictError)
    async def conflict_handler(_: Any, exc: ProcessingConflictError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "0.0.0.0", port: int = 8000, config: UnmaskConfig | None = None
) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app(lambda: AnalysisPipeline(config=config))
    uvicorn.run(app, host=host, port=port)


__all__ = ["create_app", "run_service"]
