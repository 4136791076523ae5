"""
datasetforge
============
Drive synthetic fine-tuning dataset generation: pick a model, describe the
objective, run batches against a generation service, export the result.

Usage:
    from datasetforge import GenerationOrchestrator, HttpGenerationBackend

    orchestrator = GenerationOrchestrator(HttpGenerationBackend())
    orchestrator.start()
    orchestrator.update_config(fine_tuning_goal="Answer billing questions", target_entries=500)
    orchestrator.start_generation()
"""

__version__ = "0.1.0"

# =============================================================================
# Main API
# =============================================================================
from .orchestrator import GenerationOrchestrator
from .session import Session, Step, GenerationConfig, RunState
from .notifications import NotificationChannel, NotificationKind
from .poller import ProgressPoller
from .clock import Scheduler, ThreadingScheduler, ManualScheduler

# Backends and persistence
from .backend import (
    GenerationBackend,
    HttpGenerationBackend,
    ModelDescriptor,
    GenerationRequest,
    RunHandle,
    RunStatus,
)
from .persistence import (
    DatasetSaver,
    SaveDialog,
    DownloadFallback,
    PromptSaveDialog,
    DirectorySaveDialog,
    DownloadsFolder,
)

# Quality projection
from .quality import analyze_batch_sizes, recommend, quality_at_batch
from .formats import DATASET_FORMATS, get_format_info

from .errors import DatasetForgeError, ValidationError, BackendError, PollError

__all__ = [
    "GenerationOrchestrator",
    "Session",
    "Step",
    "GenerationConfig",
    "RunState",
    "NotificationChannel",
    "NotificationKind",
    "ProgressPoller",
    "Scheduler",
    "ThreadingScheduler",
    "ManualScheduler",
    "GenerationBackend",
    "HttpGenerationBackend",
    "ModelDescriptor",
    "GenerationRequest",
    "RunHandle",
    "RunStatus",
    "DatasetSaver",
    "SaveDialog",
    "DownloadFallback",
    "PromptSaveDialog",
    "DirectorySaveDialog",
    "DownloadsFolder",
    "analyze_batch_sizes",
    "recommend",
    "quality_at_batch",
    "DATASET_FORMATS",
    "get_format_info",
    "DatasetForgeError",
    "ValidationError",
    "BackendError",
    "PollError",
]
