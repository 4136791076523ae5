"""Shared fixtures for datasetforge tests."""

from typing import List, Optional

import pytest

from datasetforge.backend.base import GenerationBackend
from datasetforge.backend.schemas import GenerationRequest, ModelDescriptor, RunHandle, RunStatus
from datasetforge.clock import ManualScheduler
from datasetforge.errors import BackendError
from datasetforge.orchestrator import GenerationOrchestrator
from datasetforge.persistence import DatasetSaver, DownloadFallback, ExtensionFilter, SaveDialog


def make_models(*ids: str) -> List[ModelDescriptor]:
    return [ModelDescriptor(id=i, name=i, provider="Ollama", capabilities=["text-generation"]) for i in ids]


def status(state: str, batch: int = 0, total: int = 4, entries: int = 0) -> RunStatus:
    return RunStatus(status=state, current_batch=batch, total_batches=total, entries_generated=entries)


class FakeBackend(GenerationBackend):
    """Scripted backend that counts calls."""

    def __init__(self):
        self.models = make_models("llama3.2:3b", "qwen2.5:7b")
        self.progress: List[RunStatus] = []   # consumed one per get_progress()
        self.payload = '{"instruction": "a", "input": "", "output": "b"}'
        self.improved = "Generate concise, polite billing support answers with one follow-up question."
        self.suggestions = ["Goal one", "Goal two"]
        self.fail = set()                     # names of methods that should raise
        self.on_progress = None               # hook run inside get_progress()
        self.calls = {}
        self.last_request: Optional[GenerationRequest] = None

    def _call(self, name):
        self.calls[name] = self.calls.get(name, 0) + 1
        if name in self.fail:
            raise BackendError(f"{name} exploded")

    def count(self, name) -> int:
        return self.calls.get(name, 0)

    def discover_models(self):
        self._call("discover_models")
        return list(self.models)

    def start_generation(self, request):
        self._call("start_generation")
        self.last_request = request
        return RunHandle(generation_id="gen-1", message="Concurrent generation started")

    def get_progress(self):
        self._call("get_progress")
        if self.on_progress is not None:
            self.on_progress()
        if self.progress:
            return self.progress.pop(0)
        return status("running")

    def export_dataset(self):
        self._call("export_dataset")
        return self.payload

    def improve_prompt(self, prompt):
        self._call("improve_prompt")
        return self.improved

    def generate_use_case_suggestions(self, domain_context, format, model_id):
        self._call("generate_use_case_suggestions")
        self.last_suggestion_args = (domain_context, format, model_id)
        return list(self.suggestions)


class FakeDialog(SaveDialog):
    def __init__(self, available=True, answer="/tmp/chosen.jsonl"):
        self.available = available
        self.answer = answer
        self.written = {}
        self.asked: List[tuple] = []

    def is_available(self):
        return self.available

    def save(self, suggested_name, filters: List[ExtensionFilter]):
        self.asked.append((suggested_name, filters))
        return self.answer

    def write(self, path, content):
        self.written[path] = content


class FakeDownloads(DownloadFallback):
    def __init__(self):
        self.downloads = []

    def download(self, file_name, content, mime_type):
        self.downloads.append((file_name, content, mime_type))
        return f"/downloads/{file_name}"


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def dialog():
    return FakeDialog()


@pytest.fixture
def downloads():
    return FakeDownloads()


@pytest.fixture
def orchestrator(backend, scheduler, dialog, downloads):
    orch = GenerationOrchestrator(
        backend,
        scheduler=scheduler,
        saver=DatasetSaver(dialog, downloads),
        poll_interval=1.0,
        notification_timeout=5.0,
    )
    yield orch
    orch.shutdown()


@pytest.fixture
def ready(orchestrator):
    """Orchestrator with models discovered and a goal configured."""
    orchestrator.start()
    orchestrator.update_config(fine_tuning_goal="Answer billing questions politely", target_entries=200, batch_size=50)
    orchestrator.notifications.clear()
    return orchestrator
