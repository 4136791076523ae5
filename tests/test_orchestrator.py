"""Test the generation orchestrator state machine against a scripted backend."""

import threading

import pytest

from datasetforge.session import Step

from .conftest import make_models, status


class TestDiscovery:

    def test_start_discovers_and_selects_first(self, orchestrator, backend):
        assert orchestrator.session.step is Step.IDLE
        orchestrator.start()
        session = orchestrator.session
        assert backend.count("discover_models") == 1
        assert [m.id for m in session.models] == ["llama3.2:3b", "qwen2.5:7b"]
        assert session.selected_model_id == "llama3.2:3b"
        assert session.step is Step.SELECTING_MODEL
        assert not session.is_discovering

    def test_keeps_selection_if_still_present(self, orchestrator, backend):
        orchestrator.start()
        orchestrator.select_model("qwen2.5:7b")
        backend.models = make_models("phi3.5", "qwen2.5:7b")
        orchestrator.discover_models()
        assert orchestrator.session.selected_model_id == "qwen2.5:7b"

    def test_selection_replaced_when_model_disappears(self, orchestrator, backend):
        orchestrator.start()
        backend.models = make_models("phi3.5")
        orchestrator.discover_models()
        assert orchestrator.session.selected_model_id == "phi3.5"

    def test_models_replaced_not_merged(self, orchestrator, backend):
        orchestrator.start()
        backend.models = make_models("phi3.5")
        orchestrator.discover_models()
        assert [m.id for m in orchestrator.session.models] == ["phi3.5"]

    def test_empty_discovery_clears_selection(self, orchestrator, backend):
        orchestrator.start()
        backend.models = []
        assert orchestrator.discover_models()
        assert orchestrator.session.selected_model_id is None

    def test_failure_keeps_previous_models(self, orchestrator, backend):
        orchestrator.start()
        backend.fail.add("discover_models")
        assert not orchestrator.discover_models()
        assert len(orchestrator.session.models) == 2
        assert not orchestrator.session.is_discovering
        assert orchestrator.notifications.error_message == "Failed to discover models"

    def test_first_discovery_failure_still_leaves_idle(self, orchestrator, backend):
        backend.fail.add("discover_models")
        orchestrator.start()
        assert orchestrator.session.step is Step.SELECTING_MODEL
        assert orchestrator.session.models == []


class TestSelectAndNavigate:

    def test_select_unknown_model_rejected(self, orchestrator):
        orchestrator.start()
        assert not orchestrator.select_model("gpt-9")
        assert orchestrator.session.selected_model_id == "llama3.2:3b"
        assert orchestrator.notifications.error_message is not None

    def test_select_known_model(self, orchestrator):
        orchestrator.start()
        assert orchestrator.select_model("qwen2.5:7b")
        assert orchestrator.session.selected_model_id == "qwen2.5:7b"

    def test_advance_and_back(self, orchestrator):
        orchestrator.start()
        orchestrator.advance(Step.CONFIGURING)
        assert orchestrator.session.step is Step.CONFIGURING
        assert orchestrator.back() is Step.SELECTING_MODEL
        assert orchestrator.back() is Step.SELECTING_MODEL

    def test_update_config_merges(self, orchestrator):
        orchestrator.update_config(batch_size=25)
        orchestrator.update_config(fine_tuning_goal="x")
        config = orchestrator.session.config
        assert config.batch_size == 25
        assert config.fine_tuning_goal == "x"
        assert config.target_entries == 2000

    def test_update_config_rejects_unknown_fields(self, orchestrator):
        with pytest.raises(ValueError):
            orchestrator.update_config(temperature=0.3)

    def test_update_config_rejects_non_positive(self, orchestrator):
        with pytest.raises(ValueError):
            orchestrator.update_config(batch_size=0)
        assert orchestrator.session.config.batch_size == 50


class TestStartGeneration:

    def test_empty_goal_rejected_without_rpc(self, orchestrator, backend):
        orchestrator.start()
        orchestrator.advance(Step.CONFIGURING)
        orchestrator.notifications.clear()
        orchestrator.update_config(fine_tuning_goal="   ")

        assert not orchestrator.start_generation()
        assert orchestrator.session.step is Step.CONFIGURING
        assert orchestrator.session.active_run is None
        assert backend.count("start_generation") == 0
        assert orchestrator.notifications.snapshot() == {
            "error": "Please select a model and provide a fine-tuning goal",
            "success": None,
        }

    def test_no_model_rejected(self, orchestrator, backend):
        orchestrator.update_config(fine_tuning_goal="something")
        assert not orchestrator.start_generation()
        assert backend.count("start_generation") == 0

    def test_start_success(self, ready, backend):
        assert ready.start_generation()
        session = ready.session
        assert session.step is Step.GENERATING
        assert session.is_generating
        assert session.active_run.status == "pending"
        assert session.active_run.total_batches == 4
        assert session.active_run.generation_id == "gen-1"
        assert backend.last_request.selected_model == "llama3.2:3b"
        assert backend.last_request.fine_tuning_goal == "Answer billing questions politely"
        assert ready.notifications.success_message == "Generation started!"
        assert ready.poller.is_running

    def test_start_rpc_failure_rolls_back(self, ready, backend):
        backend.fail.add("start_generation")
        assert not ready.start_generation()
        session = ready.session
        assert session.step is Step.CONFIGURING
        assert session.active_run is None
        assert not session.is_generating
        assert ready.notifications.error_message == "Failed to start generation"
        assert not ready.poller.is_running

    def test_second_start_while_running_rejected(self, ready, backend):
        ready.start_generation()
        assert not ready.start_generation()
        assert backend.count("start_generation") == 1
        assert ready.notifications.error_message == "A generation is already running"


class TestPolling:

    def test_progress_merged(self, ready, backend, scheduler):
        backend.progress = [status("running", batch=1, entries=50)]
        ready.start_generation()
        scheduler.advance(1)
        run = ready.session.active_run
        assert run.status == "running"
        assert run.current_batch == 1
        assert run.entries_generated == 50

    def test_completed_moves_to_export_once_and_stops(self, ready, backend, scheduler):
        backend.progress = [status("running", 2, entries=100), status("completed", 4, entries=200)]
        ready.start_generation()
        scheduler.advance(2)

        session = ready.session
        assert session.step is Step.EXPORTING
        assert not session.is_generating
        assert session.active_run.status == "completed"
        assert session.active_run.entries_generated == 200
        assert ready.notifications.success_message == "Dataset generation completed!"

        fetches = backend.count("get_progress")
        scheduler.advance(10)
        assert backend.count("get_progress") == fetches == 2

    def test_failed_status_stops_and_keeps_step(self, ready, backend, scheduler):
        backend.progress = [status("error: model crashed", 1)]
        ready.start_generation()
        scheduler.advance(1)
        session = ready.session
        assert session.step is Step.GENERATING
        assert not session.is_generating
        assert session.active_run.status == "failed"
        assert ready.notifications.error_message == "Dataset generation failed"
        scheduler.advance(5)
        assert backend.count("get_progress") == 1

    def test_fetch_error_stops_and_keeps_run(self, ready, backend, scheduler):
        backend.progress = [status("running", 1, entries=50)]
        ready.start_generation()
        scheduler.advance(1)
        backend.fail.add("get_progress")
        scheduler.advance(1)

        session = ready.session
        assert session.active_run is not None
        assert session.active_run.entries_generated == 50
        assert not session.is_generating
        assert session.step is Step.GENERATING
        assert ready.notifications.error_message == "Error fetching progress."
        scheduler.advance(5)
        assert backend.count("get_progress") == 2

    def test_can_retry_after_failure(self, ready, backend, scheduler):
        backend.progress = [status("failed", 1)]
        ready.start_generation()
        scheduler.advance(1)
        assert ready.start_generation()
        assert backend.count("start_generation") == 2

    def test_leaving_generating_stops_polling(self, ready, backend, scheduler):
        ready.start_generation()
        ready.advance(Step.CONFIGURING)
        scheduler.advance(5)
        assert backend.count("get_progress") == 0


class TestReset:

    def test_reset_mid_generation(self, ready, backend, scheduler):
        ready.start_generation()
        scheduler.advance(1)
        ready.reset()

        session = ready.session
        assert session.active_run is None
        assert session.step is Step.SELECTING_MODEL
        assert not session.is_generating
        assert ready.notifications.snapshot() == {"error": None, "success": None}
        assert len(session.models) == 2
        assert session.config.fine_tuning_goal == "Answer billing questions politely"

        scheduler.advance(10)
        assert backend.count("get_progress") == 1
        assert session.active_run is None

    def test_late_poll_response_after_reset_discarded(self, ready, backend, scheduler):
        # reset() lands while a progress fetch is in flight
        def reset_during_fetch():
            backend.on_progress = None
            ready.reset()
        backend.on_progress = reset_during_fetch
        backend.progress = [status("completed", 4, entries=200)]

        ready.start_generation()
        scheduler.advance(1)

        assert ready.session.active_run is None
        assert ready.session.step is Step.SELECTING_MODEL
        assert ready.notifications.success_message is None

    def test_restart_during_fetch_never_overlaps_fetches(self, ready, backend, scheduler):
        depth = {"now": 0, "max": 0}

        def restart_during_fetch():
            depth["now"] += 1
            depth["max"] = max(depth["max"], depth["now"])
            try:
                if backend.count("get_progress") == 1:
                    ready.reset()
                    assert ready.start_generation()
                    scheduler.advance(1)
            finally:
                depth["now"] -= 1
        backend.on_progress = restart_during_fetch
        backend.progress = [status("completed", 4, entries=200)]

        ready.start_generation()
        scheduler.advance(1)

        assert depth["max"] == 1
        assert backend.count("get_progress") == 1
        # The first run's "completed" must not land on the new run
        assert ready.session.step is Step.GENERATING
        assert ready.session.active_run.status == "pending"

        scheduler.advance(1)
        assert backend.count("get_progress") == 2
        assert ready.session.active_run.status == "running"

    def test_reset_racing_completion_leaves_no_message(self, ready, backend, scheduler):
        backend.progress = [status("completed", 4, entries=200)]
        ready.start_generation()
        ready.notifications.clear()

        racers = []
        raise_success = ready.notifications.success

        def success_with_racing_reset(message):
            racer = threading.Thread(target=ready.reset)
            racer.start()
            racer.join(timeout=0.2)
            racers.append(racer)
            raise_success(message)
        ready.notifications.success = success_with_racing_reset

        scheduler.advance(1)
        racers[0].join(timeout=5)

        assert not racers[0].is_alive()
        assert ready.session.step is Step.SELECTING_MODEL
        assert ready.notifications.success_message is None

    def test_shutdown_stops_everything(self, ready, backend, scheduler):
        ready.start_generation()
        ready.shutdown()
        scheduler.advance(10)
        assert backend.count("get_progress") == 0
        assert scheduler.pending == 0


class TestAssistants:

    def test_improve_prompt_returns_text_without_applying(self, ready, backend):
        improved = ready.request_prompt_improvement("billing bot")
        assert improved == backend.improved
        assert ready.session.config.fine_tuning_goal == "Answer billing questions politely"
        assert ready.notifications.success_message == "Prompt improved successfully!"

    def test_improve_prompt_blank_rejected(self, ready, backend):
        assert ready.request_prompt_improvement("  ") is None
        assert backend.count("improve_prompt") == 0
        assert ready.notifications.error_message == "Please provide a fine-tuning goal to improve"

    def test_improve_prompt_backend_error(self, ready, backend):
        backend.fail.add("improve_prompt")
        assert ready.request_prompt_improvement("billing bot") is None
        assert ready.notifications.error_message == "improve_prompt exploded"

    def test_suggestions_use_selected_model(self, ready, backend):
        ready.select_model("qwen2.5:7b")
        suggestions = ready.request_use_case_suggestions("fintech", "alpaca")
        assert suggestions == ["Goal one", "Goal two"]
        assert backend.last_suggestion_args == ("fintech", "alpaca", "qwen2.5:7b")
        assert ready.notifications.success_message == "Use case suggestions generated successfully!"

    def test_suggestions_need_model(self, orchestrator, backend):
        assert orchestrator.request_use_case_suggestions("fintech", "alpaca") is None
        assert backend.count("generate_use_case_suggestions") == 0
        assert orchestrator.notifications.error_message == "Please select a model first"

    def test_empty_suggestions_are_an_error(self, ready, backend):
        backend.suggestions = []
        assert ready.request_use_case_suggestions("fintech", "alpaca") is None
        assert ready.notifications.error_message is not None

    def test_batch_size_analysis_uses_config(self, ready):
        ready.update_config(target_entries=1000)
        result = ready.analyze_batch_sizes([70, 100, 200])
        assert [a.total_batches for a in result["analyses"]] == [15, 10, 5]
        assert result["recommendation"].recommended.batch_size == 70


class TestSnapshot:

    def test_snapshot_is_plain_data(self, ready, backend, scheduler):
        ready.start_generation()
        snap = ready.snapshot()
        assert snap["step"] == "generating"
        assert snap["active_run"]["status"] == "pending"
        assert snap["notifications"]["success"] == "Generation started!"
        assert snap["models"][0]["id"] == "llama3.2:3b"
