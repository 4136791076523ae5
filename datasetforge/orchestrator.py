"""
Generation Orchestrator
=======================
The wizard's state machine: discover models -> configure -> generate -> export.

All session mutations happen under one lock. Backend calls are made outside
it, so a slow call (e.g. prompt improvement) never holds up progress polling
or other commands. Failures never escape: they land in the notification
channel and leave the session in a consistent step.
"""

import logging
import threading
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence

from .backend.base import GenerationBackend
from .backend.schemas import GenerationRequest, RunStatus
from .clock import Scheduler, ThreadingScheduler
from .config import settings
from .errors import BackendError, ValidationError
from .formats import get_format_info
from .notifications import NotificationChannel
from .persistence import DatasetSaver, DirectorySaveDialog, DownloadsFolder
from .poller import ProgressPoller
from .quality import projection
from .session import CANONICAL_FLOW, GenerationConfig, RunState, Session, Step

logger = logging.getLogger(__name__)

_EMPTY_PAYLOADS = {"", "[]", "{}"}


class GenerationOrchestrator:
    """
    Drives one Session against a GenerationBackend.

    Usage:
        orchestrator = GenerationOrchestrator(HttpGenerationBackend())
        orchestrator.start()                     # discovers models
        orchestrator.update_config(fine_tuning_goal="Customer support replies")
        orchestrator.start_generation()
        ...
        orchestrator.export_dataset()
    """

    def __init__(
        self,
        backend: GenerationBackend,
        scheduler: Optional[Scheduler] = None,
        saver: Optional[DatasetSaver] = None,
        poll_interval: Optional[float] = None,
        notification_timeout: Optional[float] = None,
    ):
        self.backend = backend
        self.scheduler = scheduler or ThreadingScheduler()
        self.saver = saver or DatasetSaver(
            DirectorySaveDialog(settings.EXPORT_DIR),
            DownloadsFolder(settings.DOWNLOADS_DIR),
        )

        self._lock = threading.RLock()
        self.session = Session()
        self.notifications = NotificationChannel(
            self.scheduler,
            timeout=notification_timeout if notification_timeout is not None
            else settings.NOTIFICATION_TIMEOUT_SECONDS,
        )
        self.poller = ProgressPoller(
            self.scheduler,
            fetch=self.backend.get_progress,
            on_status=self._on_progress,
            on_error=self._on_poll_error,
            interval=poll_interval if poll_interval is not None else settings.POLL_INTERVAL_SECONDS,
        )
        # Run the poller is currently tracking (identity check on merge)
        self._polled_run: Optional[RunState] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Bring the wizard up: discover models straight away."""
        self.discover_models()

    def shutdown(self) -> None:
        """Stop polling and cancel pending notification timers."""
        with self._lock:
            self.poller.stop()
            self._polled_run = None
            self.notifications.clear()

    def snapshot(self) -> Dict[str, Any]:
        """Session plus notifications, safe to serialize."""
        with self._lock:
            data = self.session.snapshot()
        data["notifications"] = self.notifications.snapshot()
        return data

    # ------------------------------------------------------------------
    # Models
    # ------------------------------------------------------------------

    def discover_models(self) -> bool:
        """Refresh the model list from the backend. Returns True on success."""
        with self._lock:
            self.session.is_discovering = True

        try:
            models = self.backend.discover_models()
        except Exception as e:
            self._log_failure("Model discovery", e)
            with self._lock:
                self.session.is_discovering = False
                if self.session.step is Step.IDLE:
                    self.session.step = Step.SELECTING_MODEL
            self.notifications.error("Failed to discover models")
            return False

        with self._lock:
            self.session.models = list(models)
            if not self.session.has_model(self.session.selected_model_id or ""):
                self.session.selected_model_id = models[0].id if models else None
            self.session.is_discovering = False
            if self.session.step is Step.IDLE:
                self.session.step = Step.SELECTING_MODEL
        logger.info(f"Model list refreshed: {[m.id for m in models]}")
        return True

    def select_model(self, model_id: str) -> bool:
        """Select a discovered model. Unknown ids are rejected."""
        with self._lock:
            if not self.session.has_model(model_id):
                selectable = False
            else:
                self.session.selected_model_id = model_id
                selectable = True
        if not selectable:
            self.notifications.error(f"Unknown model '{model_id}'")
            return False
        return True

    # ------------------------------------------------------------------
    # Navigation & config
    # ------------------------------------------------------------------

    def advance(self, step: Step) -> None:
        """Jump to `step`. Leaving GENERATING stops progress polling."""
        with self._lock:
            if self.session.step is Step.GENERATING and step is not Step.GENERATING:
                self._stop_polling()
            self.session.step = step

    def back(self) -> Step:
        """Go one step back in the canonical flow."""
        with self._lock:
            current = self.session.step
            if current in CANONICAL_FLOW:
                index = max(CANONICAL_FLOW.index(current) - 1, 0)
            else:
                index = 0
            self.advance(CANONICAL_FLOW[index])
            return self.session.step

    def update_config(self, **changes: Any) -> GenerationConfig:
        """Shallow-merge `changes` into the config. Returns the new config."""
        unknown = set(changes) - set(GenerationConfig.field_names())
        if unknown:
            raise ValidationError(f"Unknown config fields: {', '.join(sorted(unknown))}")
        with self._lock:
            updated = replace(self.session.config, **changes)
            updated.validate()
            self.session.config = updated
            return updated

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def start_generation(self) -> bool:
        """
        Start a run with the current model and config.

        Returns True if the backend accepted the run. Validation failures and
        backend failures are reported through notifications.
        """
        with self._lock:
            problem = self._start_problem()
            if problem is None:
                config = self.session.config
                request = GenerationRequest(
                    target_entries=config.target_entries,
                    batch_size=config.batch_size,
                    fine_tuning_goal=config.fine_tuning_goal,
                    domain_context=config.domain_context,
                    format=config.format,
                    selected_model=self.session.selected_model_id,
                )
                run = RunState(total_batches=config.total_batches)
                self.session.active_run = run
                self.session.is_generating = True
                self.session.step = Step.GENERATING
        if problem is not None:
            self.notifications.error(problem)
            return False

        self.notifications.clear()
        logger.info(
            f"Starting generation: model={request.selected_model}, "
            f"entries={request.target_entries}, batch_size={request.batch_size}, format={request.format}"
        )

        try:
            handle = self.backend.start_generation(request)
        except Exception as e:
            self._log_failure("Start generation", e)
            with self._lock:
                if self.session.active_run is run:
                    self.session.active_run = None
                    self.session.is_generating = False
                    self.session.step = Step.CONFIGURING
            self.notifications.error("Failed to start generation")
            return False

        with self._lock:
            # reset() while the start call was in flight wins
            if self.session.active_run is not run:
                logger.info("Run was discarded while starting, not polling it")
                return False
            if handle.generation_id:
                run.generation_id = handle.generation_id
            self._polled_run = run
            self.poller.start()
        self.notifications.success("Generation started!")
        return True

    def _start_problem(self) -> Optional[str]:
        """Reason the run can't start, or None. Caller holds the lock."""
        session = self.session
        if not session.selected_model_id or not session.config.fine_tuning_goal.strip():
            return "Please select a model and provide a fine-tuning goal"
        if session.active_run is not None and not session.active_run.is_terminal and session.is_generating:
            return "A generation is already running"
        return None

    def _on_progress(self, generation: int, status: RunStatus) -> None:
        # Notifications are raised under the lock so a concurrent reset() can't
        # land between the state change and its message.
        with self._lock:
            run = self.session.active_run
            if not self.poller.is_current(generation) or run is None or run is not self._polled_run:
                logger.debug("Dropping stale progress update")
                return
            run.merge(status)
            if not status.is_terminal:
                return
            self._stop_polling()
            if status.status == "completed":
                self.session.step = Step.EXPORTING
                logger.info(f"Generation completed: {status.entries_generated} entries")
                self.notifications.success("Dataset generation completed!")
            else:
                logger.warning(f"Generation failed after {status.entries_generated} entries")
                self.notifications.error("Dataset generation failed")

    def _on_poll_error(self, generation: int, error: Exception) -> None:
        with self._lock:
            if not self.poller.is_current(generation):
                return
            # Keep active_run so the last known numbers stay visible
            self._stop_polling()
            self._log_failure("Progress fetch", error)
            self.notifications.error("Error fetching progress.")

    def _stop_polling(self) -> None:
        """Caller holds the lock."""
        self.poller.stop()
        self._polled_run = None
        self.session.is_generating = False

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_dataset(self) -> Optional[str]:
        """
        Fetch the finished dataset and save it.

        Returns the destination path, or None if the export failed or the
        user cancelled the save dialog.
        """
        with self._lock:
            run = self.session.active_run
            completed = run is not None and run.status == "completed"
            format_id = self.session.config.format
        if not completed:
            self.notifications.error("No completed generation to export")
            return None

        try:
            payload = self.backend.export_dataset()
        except Exception as e:
            self._log_failure("Export", e)
            self.notifications.error(str(e) if isinstance(e, BackendError) else "Failed to export dataset")
            return None

        if payload is None or payload.strip() in _EMPTY_PAYLOADS:
            self.notifications.error("Dataset is empty or invalid")
            return None

        try:
            info = get_format_info(format_id)
            result = self.saver.save(info.export_filename(), payload, info.mime_type)
        except (KeyError, OSError) as e:
            self._log_failure("Saving dataset", e)
            self.notifications.error(f"Failed to save dataset: {e}")
            return None

        if result.cancelled:
            return None
        if result.via_dialog:
            self.notifications.success(f"Dataset exported to {result.path}")
        else:
            self.notifications.success(f"Dataset downloaded to {result.path}")
        return result.path

    # ------------------------------------------------------------------
    # Assistants
    # ------------------------------------------------------------------

    def request_prompt_improvement(self, text: str) -> Optional[str]:
        """Ask the backend to improve a goal. Does not change the config."""
        if not text or not text.strip():
            self.notifications.error("Please provide a fine-tuning goal to improve")
            return None
        try:
            improved = self.backend.improve_prompt(text)
        except Exception as e:
            self._log_failure("Prompt improvement", e)
            self.notifications.error(str(e) if isinstance(e, BackendError) else "Failed to improve prompt")
            return None
        if not improved or not improved.strip():
            self.notifications.error("Failed to improve prompt")
            return None
        self.notifications.success("Prompt improved successfully!")
        return improved

    def request_use_case_suggestions(self, domain_context: str, format: str) -> Optional[List[str]]:
        """Ask the selected model for fine-tuning goal ideas."""
        with self._lock:
            model_id = self.session.selected_model_id
        if not model_id:
            self.notifications.error("Please select a model first")
            return None
        try:
            suggestions = self.backend.generate_use_case_suggestions(domain_context, format, model_id)
        except Exception as e:
            self._log_failure("Use case suggestions", e)
            self.notifications.error(str(e) if isinstance(e, BackendError) else "Failed to generate suggestions")
            return None
        if not suggestions:
            self.notifications.error("Failed to generate suggestions")
            return None
        self.notifications.success("Use case suggestions generated successfully!")
        return suggestions

    def analyze_batch_sizes(
        self,
        candidates: Optional[Sequence[int]] = None,
        target_quality: float = settings.TARGET_QUALITY,
    ) -> Dict[str, Any]:
        """Quality projection for the current config. Applying it is up to the caller."""
        with self._lock:
            total_entries = self.session.config.target_entries
            current_batch = self.session.active_run.current_batch if self.session.active_run else 0
        analyses = projection.analyze_batch_sizes(
            total_entries, current_batch, candidates or settings.BATCH_SIZE_CANDIDATES
        )
        return {
            "analyses": analyses,
            "recommendation": projection.recommend(analyses, target_quality),
        }

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Back to model selection. Keeps models and config."""
        with self._lock:
            self._stop_polling()
            self.session.active_run = None
            self.session.step = Step.SELECTING_MODEL
        self.notifications.clear()
        logger.info("Session reset")

    def _log_failure(self, what: str, error: Exception) -> None:
        if isinstance(error, BackendError):
            logger.error(f"{what} failed: {error}")
        else:
            logger.exception(f"{what} failed unexpectedly: {error}")
