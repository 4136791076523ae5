"""
Generation session state.

One Session per wizard run. It is plain data: the orchestrator owns the lock
and is the only thing that mutates it.
"""

import math
from dataclasses import dataclass, field, asdict, fields
from enum import Enum
from typing import List, Optional

from .backend.schemas import ModelDescriptor, RunStatus
from .config import settings
from .errors import ValidationError


class Step(Enum):
    """Wizard steps, in canonical order."""
    IDLE = "idle"                        # before the first model discovery finishes
    SELECTING_MODEL = "models"
    CONFIGURING = "configuration"
    GENERATING = "generating"
    EXPORTING = "export"


CANONICAL_FLOW = [Step.SELECTING_MODEL, Step.CONFIGURING, Step.GENERATING, Step.EXPORTING]


@dataclass
class GenerationConfig:
    """What to generate."""
    target_entries: int = settings.DEFAULT_TARGET_ENTRIES
    batch_size: int = settings.DEFAULT_BATCH_SIZE
    fine_tuning_goal: str = ""
    domain_context: str = ""
    format: str = settings.DEFAULT_FORMAT

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def validate(self) -> None:
        if not isinstance(self.target_entries, int) or self.target_entries < 1:
            raise ValidationError(f"target_entries must be a positive integer, got {self.target_entries!r}")
        if not isinstance(self.batch_size, int) or self.batch_size < 1:
            raise ValidationError(f"batch_size must be a positive integer, got {self.batch_size!r}")

    @property
    def total_batches(self) -> int:
        return math.ceil(self.target_entries / self.batch_size)


@dataclass
class RunState:
    """The in-flight (or last finished) generation run."""
    total_batches: int
    status: str = "pending"
    current_batch: int = 0
    entries_generated: int = 0
    estimated_completion: str = ""
    generation_id: Optional[str] = None
    concurrent_batches: int = 0
    entries_per_second: float = 0.0
    errors_count: int = 0
    retries_count: int = 0

    @property
    def is_terminal(self) -> bool:
        return self.status in ("completed", "failed")

    def merge(self, progress: RunStatus) -> None:
        """Fold a fresh progress snapshot into this run."""
        self.status = progress.status
        self.current_batch = progress.current_batch
        self.total_batches = progress.total_batches or self.total_batches
        self.entries_generated = progress.entries_generated
        self.estimated_completion = progress.estimated_completion
        self.generation_id = progress.generation_id or self.generation_id
        self.concurrent_batches = progress.concurrent_batches
        self.entries_per_second = progress.entries_per_second
        self.errors_count = progress.errors_count
        self.retries_count = progress.retries_count


@dataclass
class Session:
    """Everything the wizard knows."""
    step: Step = Step.IDLE
    models: List[ModelDescriptor] = field(default_factory=list)
    selected_model_id: Optional[str] = None
    config: GenerationConfig = field(default_factory=GenerationConfig)
    active_run: Optional[RunState] = None
    is_discovering: bool = False
    is_generating: bool = False

    def has_model(self, model_id: str) -> bool:
        return any(m.id == model_id for m in self.models)

    def find_model(self, model_id: Optional[str]) -> Optional[ModelDescriptor]:
        for model in self.models:
            if model.id == model_id:
                return model
        return None

    def snapshot(self) -> dict:
        """JSON-friendly copy of the session."""
        return {
            "step": self.step.value,
            "models": [m.model_dump() for m in self.models],
            "selected_model_id": self.selected_model_id,
            "config": asdict(self.config),
            "active_run": asdict(self.active_run) if self.active_run else None,
            "is_discovering": self.is_discovering,
            "is_generating": self.is_generating,
        }
