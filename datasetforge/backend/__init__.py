# Generation backends (HTTP service, or anything implementing the port)
from .base import GenerationBackend
from .http import HttpGenerationBackend, clean_improved_prompt
from .schemas import ModelDescriptor, GenerationRequest, RunHandle, RunStatus

__all__ = [
    "GenerationBackend",
    "HttpGenerationBackend",
    "clean_improved_prompt",
    "ModelDescriptor",
    "GenerationRequest",
    "RunHandle",
    "RunStatus",
]
