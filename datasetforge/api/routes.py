"""Wizard endpoints."""

from dataclasses import asdict
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request

from ..formats import all_formats, get_format_info
from ..orchestrator import GenerationOrchestrator
from ..quality import projection
from ..session import Step
from .schemas import (
    ActionResponse,
    BatchSizeAnalysisInfo,
    ConfigUpdateRequest,
    ExportResponse,
    FormatInfo,
    ImprovePromptRequest,
    ImprovePromptResponse,
    QualityAnalysisResponse,
    SelectModelRequest,
    SessionInfo,
    StepRequest,
    UseCaseRequest,
    UseCaseResponse,
)

router = APIRouter(prefix="/api", tags=["wizard"])


def _orchestrator(request: Request) -> GenerationOrchestrator:
    return request.app.state.orchestrator


def _session(orchestrator: GenerationOrchestrator) -> SessionInfo:
    return SessionInfo(**orchestrator.snapshot())


def _action(orchestrator: GenerationOrchestrator, ok: bool) -> ActionResponse:
    return ActionResponse(ok=ok, session=_session(orchestrator))


@router.get("/session", response_model=SessionInfo)
def get_session(request: Request):
    """Current wizard state, including notifications."""
    return _session(_orchestrator(request))


@router.post("/models/discover", response_model=ActionResponse)
def discover_models(request: Request):
    orchestrator = _orchestrator(request)
    return _action(orchestrator, orchestrator.discover_models())


@router.post("/models/select", response_model=ActionResponse)
def select_model(request: Request, body: SelectModelRequest):
    orchestrator = _orchestrator(request)
    return _action(orchestrator, orchestrator.select_model(body.model_id))


@router.patch("/config", response_model=ActionResponse)
def update_config(request: Request, body: ConfigUpdateRequest):
    orchestrator = _orchestrator(request)
    changes = body.model_dump(exclude_none=True)
    if "format" in changes:
        try:
            get_format_info(changes["format"])
        except KeyError as e:
            raise HTTPException(400, str(e.args[0]))
    orchestrator.update_config(**changes)
    return _action(orchestrator, True)


@router.post("/step", response_model=ActionResponse)
def set_step(request: Request, body: StepRequest):
    orchestrator = _orchestrator(request)
    orchestrator.advance(Step(body.step))
    return _action(orchestrator, True)


@router.post("/back", response_model=ActionResponse)
def go_back(request: Request):
    orchestrator = _orchestrator(request)
    orchestrator.back()
    return _action(orchestrator, True)


@router.post("/generation/start", response_model=ActionResponse)
def start_generation(request: Request):
    orchestrator = _orchestrator(request)
    return _action(orchestrator, orchestrator.start_generation())


@router.post("/reset", response_model=ActionResponse)
def reset(request: Request):
    orchestrator = _orchestrator(request)
    orchestrator.reset()
    return _action(orchestrator, True)


@router.post("/export", response_model=ExportResponse)
def export_dataset(request: Request):
    """Save the finished dataset on the server side and report where it went."""
    orchestrator = _orchestrator(request)
    path = orchestrator.export_dataset()
    return ExportResponse(path=path, session=_session(orchestrator))


@router.post("/prompt/improve", response_model=ImprovePromptResponse)
def improve_prompt(request: Request, body: ImprovePromptRequest):
    orchestrator = _orchestrator(request)
    improved = orchestrator.request_prompt_improvement(body.prompt)
    return ImprovePromptResponse(prompt=improved, session=_session(orchestrator))


@router.post("/use-cases", response_model=UseCaseResponse)
def use_case_suggestions(request: Request, body: UseCaseRequest):
    orchestrator = _orchestrator(request)
    suggestions = orchestrator.request_use_case_suggestions(body.domain_context, body.format)
    return UseCaseResponse(suggestions=suggestions, session=_session(orchestrator))


@router.get("/formats", response_model=List[FormatInfo])
def list_formats():
    """List supported dataset formats."""
    return [FormatInfo(**asdict(info)) for info in all_formats()]


@router.get("/quality/analysis", response_model=QualityAnalysisResponse)
def quality_analysis(
    request: Request,
    sizes: Optional[List[int]] = Query(None, description="Candidate batch sizes"),
    target: float = Query(0.85, gt=0, le=1),
):
    """Batch size projection for the current config."""
    if sizes and any(size < 1 for size in sizes):
        raise HTTPException(400, "Batch sizes must be positive")
    result = _orchestrator(request).analyze_batch_sizes(sizes, target)
    recommendation = result["recommendation"]
    return QualityAnalysisResponse(
        analyses=[BatchSizeAnalysisInfo(**asdict(a)) for a in result["analyses"]],
        recommended_batch_size=recommendation.recommended.batch_size,
        reasoning=recommendation.reasoning,
        tradeoffs=recommendation.tradeoffs,
        explanation=projection.explain(),
    )
