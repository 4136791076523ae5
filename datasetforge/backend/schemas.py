"""Pydantic models for payloads exchanged with the generation service."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

RunStatusValue = Literal["pending", "running", "completed", "failed"]


class ModelDescriptor(BaseModel):
    """A model the generation service can use."""
    id: str = Field(..., min_length=1)
    name: str
    size: str = "unknown"
    modified: str = "unknown"
    provider: Literal["Ollama", "OpenAI"] = "Ollama"
    capabilities: List[str] = Field(default_factory=list)


class GenerationRequest(BaseModel):
    """Body of the start-generation call."""
    target_entries: int = Field(..., ge=1)
    batch_size: int = Field(..., ge=1)
    fine_tuning_goal: str
    domain_context: str = ""
    format: str = "alpaca"
    selected_model: str


class RunHandle(BaseModel):
    """What the service hands back when a run starts."""
    generation_id: Optional[str] = None
    message: str = ""


class RunStatus(BaseModel):
    """Progress snapshot of a run."""
    current_batch: int = 0
    total_batches: int = 0
    entries_generated: int = 0
    estimated_completion: str = ""
    status: RunStatusValue
    generation_id: Optional[str] = None
    concurrent_batches: int = 0
    entries_per_second: float = 0.0
    errors_count: int = 0
    retries_count: int = 0

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value):
        # Crashes come as "error: <reason>", user aborts as "cancelled". Anything
        # else that isn't terminal ("Generating batch 3/40", ...) is a live run.
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered.startswith("error") or lowered in ("cancelled", "failed"):
                return "failed"
            if lowered == "completed":
                return "completed"
            if lowered in ("pending", "idle", ""):
                return "pending"
            return "running"
        return value

    @property
    def is_terminal(self) -> bool:
        return self.status in ("completed", "failed")
