"""Base class for generation backends."""

from abc import ABC, abstractmethod
from typing import List

from .schemas import GenerationRequest, ModelDescriptor, RunHandle, RunStatus


class GenerationBackend(ABC):
    """
    The service that actually generates datasets.

    Every method may block for as long as the service takes. Implementations
    raise BackendError on any failure, including malformed or empty replies.
    """

    @abstractmethod
    def discover_models(self) -> List[ModelDescriptor]:
        """List models available for generation."""
        pass

    @abstractmethod
    def start_generation(self, request: GenerationRequest) -> RunHandle:
        """
        Kick off a run. Returns immediately; progress comes from get_progress().
        """
        pass

    @abstractmethod
    def get_progress(self) -> RunStatus:
        """Progress of the current run."""
        pass

    @abstractmethod
    def export_dataset(self) -> str:
        """Serialized dataset (JSONL) of the finished run."""
        pass

    @abstractmethod
    def improve_prompt(self, prompt: str) -> str:
        """Rewrite a fine-tuning goal to be more specific."""
        pass

    @abstractmethod
    def generate_use_case_suggestions(
        self,
        domain_context: str,
        format: str,
        model_id: str,
    ) -> List[str]:
        """Suggest fine-tuning goals for a domain and dataset format."""
        pass
