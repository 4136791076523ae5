"""Pydantic schemas for API requests/responses."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

StepName = Literal["idle", "models", "configuration", "generating", "export"]


class NotificationsInfo(BaseModel):
    error: Optional[str] = None
    success: Optional[str] = None


class RunInfo(BaseModel):
    """Progress of the current run."""
    status: str
    current_batch: int
    total_batches: int
    entries_generated: int
    estimated_completion: str = ""
    generation_id: Optional[str] = None
    concurrent_batches: int = 0
    entries_per_second: float = 0.0
    errors_count: int = 0
    retries_count: int = 0


class ConfigInfo(BaseModel):
    target_entries: int
    batch_size: int
    fine_tuning_goal: str
    domain_context: str
    format: str


class ModelInfo(BaseModel):
    """Model information for UI."""
    id: str
    name: str
    size: str
    modified: str
    provider: str
    capabilities: List[str] = Field(default_factory=list)


class SessionInfo(BaseModel):
    """Full wizard state."""
    step: StepName
    models: List[ModelInfo]
    selected_model_id: Optional[str] = None
    config: ConfigInfo
    active_run: Optional[RunInfo] = None
    is_discovering: bool
    is_generating: bool
    notifications: NotificationsInfo


class SelectModelRequest(BaseModel):
    model_id: str = Field(..., min_length=1)


class ConfigUpdateRequest(BaseModel):
    """Partial config update; omitted fields are left alone."""
    target_entries: Optional[int] = Field(None, ge=1)
    batch_size: Optional[int] = Field(None, ge=1)
    fine_tuning_goal: Optional[str] = None
    domain_context: Optional[str] = None
    format: Optional[str] = None


class StepRequest(BaseModel):
    step: StepName


class ActionResponse(BaseModel):
    """Result of a command plus the session after it."""
    ok: bool
    session: SessionInfo


class ExportResponse(BaseModel):
    path: Optional[str] = None
    session: SessionInfo


class ImprovePromptRequest(BaseModel):
    prompt: str = Field(..., max_length=10000)


class ImprovePromptResponse(BaseModel):
    prompt: Optional[str] = None
    session: SessionInfo


class UseCaseRequest(BaseModel):
    domain_context: str = ""
    format: str = "alpaca"


class UseCaseResponse(BaseModel):
    suggestions: Optional[List[str]] = None
    session: SessionInfo


class FormatInfo(BaseModel):
    """Dataset format information for UI."""
    id: str
    name: str
    description: str
    structure: str
    good_for: List[str]
    not_ideal_for: List[str]
    examples: List[str]
    file_extension: str


class QualityMetricsInfo(BaseModel):
    average_score: float
    improvement_rate: float
    feedback_cycles: int
    compounding_factor: float
    projected_final_quality: float


class BatchSizeAnalysisInfo(BaseModel):
    batch_size: int
    total_batches: int
    quality_metrics: QualityMetricsInfo
    total_quality_value: float
    efficiency_score: float


class QualityAnalysisResponse(BaseModel):
    analyses: List[BatchSizeAnalysisInfo]
    recommended_batch_size: int
    reasoning: List[str]
    tradeoffs: List[str]
    explanation: Dict[str, Any]
