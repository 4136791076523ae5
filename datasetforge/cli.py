#!/usr/bin/env python3
"""
datasetforge CLI - run the generation wizard from a terminal.

Usage:
    datasetforge models                                  # List available models
    datasetforge formats                                 # List dataset formats
    datasetforge analyze --entries 2000                  # Batch size projection
    datasetforge generate --goal "Support replies"       # Generate + export
    datasetforge serve --port 8000                       # HTTP API
"""

import argparse
import logging
import sys
import time

from .backend import HttpGenerationBackend
from .config import settings
from .formats import DATASET_FORMATS, all_formats
from .orchestrator import GenerationOrchestrator
from .persistence import DatasetSaver, DirectorySaveDialog, DownloadsFolder, PromptSaveDialog
from .quality import analyze_batch_sizes, recommend
from .session import Step


def print_banner():
    """Print welcome banner."""
    print()
    print("=" * 60)
    print("  datasetforge - Synthetic Fine-Tuning Datasets")
    print("=" * 60)
    print()


def positive_int(value: str) -> int:
    """argparse type for counts that must be >= 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not an integer")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {number}")
    return number


def format_progress(run) -> str:
    """One status line for the current run."""
    if run is None:
        return "  (no run)"
    pct = 100 * run["current_batch"] / run["total_batches"] if run["total_batches"] else 0
    return (
        f"  [{run['status']:<9}] batch {run['current_batch']}/{run['total_batches']} "
        f"({pct:5.1f}%) | {run['entries_generated']} entries | "
        f"{run['entries_per_second']:.1f}/s | errors {run['errors_count']} retries {run['retries_count']}"
    )


def _make_orchestrator(args, saver=None) -> GenerationOrchestrator:
    backend = HttpGenerationBackend(service_url=args.service_url, ollama_url=args.ollama_url)
    return GenerationOrchestrator(backend, saver=saver)


def _report(orchestrator: GenerationOrchestrator) -> None:
    """Print and clear whatever the orchestrator wants to tell the user."""
    notes = orchestrator.notifications.snapshot()
    if notes["error"]:
        print(f"\nError: {notes['error']}")
    if notes["success"]:
        print(f"\n{notes['success']}")
    orchestrator.notifications.clear()


def run_models(args):
    """List discovered models."""
    orchestrator = _make_orchestrator(args)
    try:
        if not orchestrator.discover_models():
            _report(orchestrator)
            print("\nMake sure Ollama or the generation service is running:")
            print("  ollama serve")
            return 1
        session = orchestrator.snapshot()
        print(f"\nAvailable models ({len(session['models'])}):")
        print("-" * 50)
        for model in session["models"]:
            marker = "*" if model["id"] == session["selected_model_id"] else " "
            caps = ", ".join(model["capabilities"])
            print(f" {marker} {model['id']:<24} {model['provider']:<7} {model['size']:<12} {caps}")
        return 0
    finally:
        orchestrator.shutdown()


def run_formats(args):
    """List dataset formats."""
    print("\nDataset formats:")
    print("-" * 50)
    for info in all_formats():
        print(f"  {info.id:<22} {info.name}")
        print(f"      {info.description}")
        print(f"      good for: {', '.join(info.good_for)}")
    return 0


def run_analyze(args):
    """Print the batch size projection and the recommendation."""
    analyses = analyze_batch_sizes(args.entries, args.current_batch, args.sizes)
    result = recommend(analyses, args.target)

    print(f"\nQuality projection for {args.entries} entries (target {args.target:.0%})")
    print("=" * 72)
    print(f"  {'size':>6} {'batches':>8} {'cycles':>7} {'final q':>8} {'value':>10} {'efficiency':>11}")
    for a in analyses:
        m = a.quality_metrics
        marker = " <-" if a is result.recommended else ""
        print(
            f"  {a.batch_size:>6} {a.total_batches:>8} {m.feedback_cycles:>7} "
            f"{m.projected_final_quality:>8.3f} {a.total_quality_value:>10.1f} {a.efficiency_score:>11.3f}{marker}"
        )
    print(f"\nRecommended batch size: {result.recommended.batch_size}")
    for reason in result.reasoning:
        print(f"  + {reason}")
    for tradeoff in result.tradeoffs:
        print(f"  - {tradeoff}")
    return 0


def run_generate(args):
    """Headless wizard: select model, configure, generate, export."""
    print_banner()

    dialog = DirectorySaveDialog(args.output) if args.output else PromptSaveDialog()
    saver = DatasetSaver(dialog, DownloadsFolder(settings.DOWNLOADS_DIR))
    orchestrator = _make_orchestrator(args, saver=saver)

    try:
        orchestrator.start()
        if not orchestrator.session.models:
            _report(orchestrator)
            return 1

        if args.model and not orchestrator.select_model(args.model):
            _report(orchestrator)
            return 1
        orchestrator.advance(Step.CONFIGURING)

        orchestrator.update_config(
            target_entries=args.entries,
            batch_size=args.batch_size,
            fine_tuning_goal=args.goal,
            domain_context=args.domain,
            format=args.format,
        )

        if args.improve:
            improved = orchestrator.request_prompt_improvement(args.goal)
            if improved:
                print(f"\nImproved goal:\n  {improved}")
                orchestrator.update_config(fine_tuning_goal=improved)

        print(f"Model:   {orchestrator.session.selected_model_id}")
        print(f"Entries: {args.entries} in batches of {args.batch_size} ({args.format})")

        if not orchestrator.start_generation():
            _report(orchestrator)
            return 1

        last_line = None
        while True:
            time.sleep(args.refresh)
            session = orchestrator.snapshot()
            line = format_progress(session["active_run"])
            if line != last_line:
                print(line)
                last_line = line
            if not session["is_generating"]:
                break

        if orchestrator.session.step is not Step.EXPORTING:
            _report(orchestrator)
            return 1

        path = orchestrator.export_dataset()
        _report(orchestrator)
        if path is None:
            return 1 if orchestrator.notifications.error_message else 0
        return 0

    except KeyboardInterrupt:
        print("\n\nInterrupted. Stopping progress tracking.")
        orchestrator.reset()
        return 130

    finally:
        orchestrator.shutdown()


def run_serve(args):
    """Serve the HTTP API."""
    import uvicorn
    from .api import create_app

    orchestrator = _make_orchestrator(args)
    uvicorn.run(create_app(orchestrator), host=args.host, port=args.port)
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="datasetforge - synthetic fine-tuning dataset generation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  datasetforge models
  datasetforge analyze --entries 1000 --sizes 10 25 50 100
  datasetforge generate --goal "Answer billing questions" --entries 500 --batch-size 25
  datasetforge serve --port 8000
"""
    )
    parser.add_argument("--service-url", default=None, help="Generation service URL")
    parser.add_argument("--ollama-url", default=None, help="Ollama URL (for model discovery)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("models", help="List available models")
    subparsers.add_parser("formats", help="List dataset formats")

    analyze_parser = subparsers.add_parser("analyze", help="Batch size quality projection")
    analyze_parser.add_argument("--entries", type=positive_int, default=settings.DEFAULT_TARGET_ENTRIES,
                                help="Target dataset size")
    analyze_parser.add_argument("--sizes", type=positive_int, nargs="+", default=settings.BATCH_SIZE_CANDIDATES,
                                help="Candidate batch sizes")
    analyze_parser.add_argument("--current-batch", type=int, default=0,
                                help="Batches already generated")
    analyze_parser.add_argument("--target", type=float, default=settings.TARGET_QUALITY,
                                help="Target quality (0-1)")

    gen_parser = subparsers.add_parser("generate", help="Generate and export a dataset")
    gen_parser.add_argument("--goal", required=True, help="Fine-tuning goal")
    gen_parser.add_argument("--model", help="Model id (default: first discovered)")
    gen_parser.add_argument("--entries", type=positive_int, default=settings.DEFAULT_TARGET_ENTRIES)
    gen_parser.add_argument("--batch-size", type=positive_int, default=settings.DEFAULT_BATCH_SIZE)
    gen_parser.add_argument("--format", default=settings.DEFAULT_FORMAT, choices=list(DATASET_FORMATS))
    gen_parser.add_argument("--domain", default="", help="Domain context")
    gen_parser.add_argument("--improve", action="store_true", help="Improve the goal before generating")
    gen_parser.add_argument("--output", "-o", help="Directory to save into (skips the save prompt)")
    gen_parser.add_argument("--refresh", type=float, default=1.0, help="Seconds between progress lines")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "models": run_models,
        "formats": run_formats,
        "analyze": run_analyze,
        "generate": run_generate,
        "serve": run_serve,
    }
    if args.command not in commands:
        parser.print_help()
        return 2
    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
