"""HTTP backend: local Ollama for model discovery, generation service for the rest."""

import logging
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError as PydanticValidationError

from ..config import settings
from ..errors import BackendError
from .base import GenerationBackend
from .schemas import GenerationRequest, ModelDescriptor, RunHandle, RunStatus

logger = logging.getLogger(__name__)

# Chatty openings models like to put before the actual rewritten goal
_PREAMBLES = [
    "certainly, here is your improved",
    "here is an improved version",
    "here's the improved",
    "improved fine-tuning goal:",
    "here is the refined",
    "certainly! here is",
    "sure, here is",
    "here's a more",
    "i'll improve",
    "let me improve",
]


def clean_improved_prompt(prompt: str) -> str:
    """Strip a leading preamble sentence and wrapping quotes from a model reply."""
    cleaned = prompt.strip()
    result = cleaned

    if any(result.lower().startswith(p) for p in _PREAMBLES):
        if ":" in result:
            result = result[result.index(":") + 1:].strip()
        elif "." in result:
            rest = result[result.index(".") + 1:].strip()
            if len(rest) > 20:
                result = rest

    result = result.strip().strip("\"'").strip()

    # Too short to be a real goal: the cleanup probably ate it
    if len(result) < 20:
        return cleaned
    return result


class HttpGenerationBackend(GenerationBackend):
    """
    Talks to the generation service over JSON/HTTP.

    Model discovery merges locally installed Ollama models with the hosted
    OpenAI catalog from settings. If Ollama isn't running only the hosted
    models are returned.
    """

    def __init__(
        self,
        service_url: Optional[str] = None,
        ollama_url: Optional[str] = None,
        timeout: Optional[float] = None,
        hosted_models: Optional[List[Dict[str, Any]]] = None,
        session: Optional[requests.Session] = None,
    ):
        self.service_url = (service_url or settings.GENERATION_SERVICE_URL).rstrip("/")
        self.ollama_url = (ollama_url or settings.OLLAMA_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self.hosted_models = hosted_models if hosted_models is not None else settings.OPENAI_MODELS
        self._http = session or requests.Session()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(self, method: str, url: str, **kwargs) -> Any:
        """Send a request and return the decoded JSON body."""
        try:
            response = self._http.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.exceptions.ConnectionError:
            raise BackendError(f"Cannot connect to {url}. Is the service running?")
        except requests.exceptions.Timeout:
            raise BackendError(f"Request to {url} timed out after {self.timeout}s")
        except requests.exceptions.RequestException as e:
            raise BackendError(f"Request to {url} failed: {e}")

        try:
            return response.json()
        except ValueError:
            raise BackendError(f"Malformed JSON from {url}")

    def _service(self, method: str, path: str, **kwargs) -> Any:
        return self._request(method, f"{self.service_url}{path}", **kwargs)

    # ------------------------------------------------------------------
    # Model discovery
    # ------------------------------------------------------------------

    def list_ollama_models(self) -> List[ModelDescriptor]:
        """Models installed in the local Ollama (GET /api/tags)."""
        data = self._request("GET", f"{self.ollama_url}/api/tags")
        if not isinstance(data, dict):
            raise BackendError("Malformed /api/tags response")
        models = []
        for entry in data.get("models") or []:
            if not isinstance(entry, dict):
                continue
            name = entry.get("name") or "unknown"
            size = entry.get("size")
            models.append(ModelDescriptor(
                id=name,
                name=name,
                size=str(size) if size is not None else "unknown",
                modified=entry.get("modified_at") or "unknown",
                provider="Ollama",
                capabilities=["text-generation"],
            ))
        return models

    def discover_models(self) -> List[ModelDescriptor]:
        models: List[ModelDescriptor] = []
        try:
            models.extend(self.list_ollama_models())
        except BackendError as e:
            logger.warning(f"Could not discover Ollama models: {e}")

        for entry in self.hosted_models:
            models.append(ModelDescriptor(provider="OpenAI", **entry))

        if not models:
            raise BackendError("No models available (Ollama not reachable and no hosted models configured)")

        logger.info(f"Discovered {len(models)} models")
        return models

    # ------------------------------------------------------------------
    # Generation service
    # ------------------------------------------------------------------

    def start_generation(self, request: GenerationRequest) -> RunHandle:
        data = self._service("POST", "/api/generation", json={"config": request.model_dump()})
        if isinstance(data, str):
            return RunHandle(message=data)
        try:
            return RunHandle.model_validate(data)
        except PydanticValidationError as e:
            raise BackendError(f"Malformed start response: {e}")

    def get_progress(self) -> RunStatus:
        data = self._service("GET", "/api/generation/progress")
        try:
            return RunStatus.model_validate(data)
        except PydanticValidationError as e:
            raise BackendError(f"Malformed progress response: {e}")

    def export_dataset(self) -> str:
        data = self._service("GET", "/api/dataset/export")
        payload = data.get("dataset") if isinstance(data, dict) else data
        if not isinstance(payload, str):
            raise BackendError("Export response did not contain a serialized dataset")
        return payload

    def improve_prompt(self, prompt: str) -> str:
        data = self._service("POST", "/api/prompt/improve", json={"prompt": prompt})
        improved = data.get("prompt") if isinstance(data, dict) else data
        if not isinstance(improved, str) or not improved.strip():
            raise BackendError("Prompt improvement returned nothing")
        return clean_improved_prompt(improved)

    def generate_use_case_suggestions(
        self,
        domain_context: str,
        format: str,
        model_id: str,
    ) -> List[str]:
        data = self._service("POST", "/api/use-cases", json={
            "domain_context": domain_context,
            "format": format,
            "model_id": model_id,
        })
        suggestions = data.get("suggestions") if isinstance(data, dict) else data
        if not isinstance(suggestions, list):
            raise BackendError("Use case suggestions response was not a list")
        return [str(s).strip() for s in suggestions if str(s).strip()]
