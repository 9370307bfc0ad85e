"""Command-line interface for the mangrove verification service using Typer and Rich."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from mangrove_system.config.logging import get_logger
from mangrove_system.config.settings import settings
from mangrove_system.data_management.ledger_store import LedgerStore
from mangrove_system.data_management.schemas import Submission, SubmissionKind
from mangrove_system.data_management.submission_store import SubmissionStore

app = typer.Typer(
    help="Mangrove Evidence Verification - complaint and plantation claim verification",
    add_completion=False,
)

console = Console()

logger = get_logger("cli")

StorePath = typer.Option(None, "--store", help="Submission JSON file (overrides settings)")
LedgerPath = typer.Option(None, "--ledger", help="Ledger JSON file (overrides settings)")


def _open_stores(
    store_path: Optional[Path],
    ledger_path: Optional[Path],
) -> tuple[SubmissionStore, LedgerStore]:
    submissions = str(store_path) if store_path else settings.submission_store_path
    ledger = str(ledger_path) if ledger_path else settings.ledger_store_path
    if not submissions:
        console.print(
            "[yellow]⚠ No submission store path configured; "
            "using a memory-only store (set SUBMISSION_STORE_PATH or --store)[/yellow]"
        )
    return SubmissionStore(submissions), LedgerStore(ledger)


EventsOption = typer.Option(
    None,
    "--events",
    help="Progress channel: none, log or hub (defaults to PROGRESS_EVENTS)",
)


def _print_event(key, message: dict) -> None:
    payload = message["payload"]
    details = " ".join(f"{k}={v}" for k, v in payload.items() if k != "submission_id")
    console.print(
        f"[dim]{message['timestamp']}[/dim] [cyan]{message['event']}[/cyan] "
        f"{payload.get('submission_id', '')} {details}"
    )


def _build_observer(events: Optional[str]):
    """Build the progress observer; the hub channel is echoed to the console.

    Must be called inside a running event loop (aiopubsub listeners run as tasks).

    Raises:
        ValueError: Unknown channel name
    """
    from aiopubsub import Hub, Key, Subscriber

    from mangrove_system.orchestration.events import build_observer

    mode = events or settings.progress_events
    hub = Hub() if mode == "hub" else None
    observer = build_observer(mode, hub)
    if hub is not None:
        subscriber = Subscriber(hub, "cli")
        subscriber.add_sync_listener(Key(observer.namespace, "*"), _print_event)
    return observer


def _build_service(store: SubmissionStore, ledger: LedgerStore, observer=None):
    """Build the service with the Gemini client created up front.

    Raises:
        ValueError: If GEMINI_API_KEY is not configured
    """
    from mangrove_system.llm.gemini_client import get_client
    from mangrove_system.orchestration.service import VerificationService
    from mangrove_system.pipeline.verification_pipeline import VerificationPipeline

    pipeline = VerificationPipeline(analyzer=get_client(), observer=observer)
    return VerificationService(pipeline=pipeline, submission_store=store, ledger_store=ledger)


@app.command()
def status(
    store_path: Optional[Path] = StorePath,
    ledger_path: Optional[Path] = LedgerPath,
) -> None:
    """
    Display configuration and submission counts by status.
    """
    logger.info("Displaying system status")
    store, _ = _open_stores(store_path, ledger_path)

    table = Table(title="Mangrove Verification Status", show_header=True, header_style="bold magenta")
    table.add_column("Component", style="cyan", width=20)
    table.add_column("Status", style="green", width=15)
    table.add_column("Details", style="yellow")

    python_version = f"Python {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    table.add_row("Environment", "✓ Ready", python_version)

    api_status = "✓ Configured" if settings.gemini_api_key else "⚠ Not Configured"
    api_details = f"{settings.gemini_model} (RPM: {settings.max_rpm}, TPM: {settings.max_tpm:,})"
    table.add_row("Gemini API", api_status, api_details)

    table.add_row(
        "Complaints",
        f"every {settings.complaint_interval_seconds:g}s",
        f"batch {settings.complaint_batch_size}",
    )
    table.add_row(
        "Plantations",
        f"every {settings.plantation_interval_seconds:g}s",
        f"batch {settings.plantation_batch_size}",
    )

    log_details = f"Level: {settings.log_level}, Format: {settings.log_format}"
    table.add_row("Logging", "✓ Active", log_details)
    console.print(table)

    counts = Table(title="Submissions", show_header=True, header_style="bold magenta")
    counts.add_column("Kind", style="cyan")
    counts.add_column("Total", justify="right")
    counts.add_column("By status", style="yellow")
    for kind in SubmissionKind:
        stats = asyncio.run(store.get_stats(kind))
        by_status = ", ".join(f"{k}: {v}" for k, v in sorted(stats["status_counts"].items()))
        counts.add_row(kind.value, str(stats["total"]), by_status or "-")
    console.print(counts)


@app.command()
def submit(
    path: Path = typer.Argument(..., exists=True, readable=True, help="Submission JSON file"),
    store_path: Optional[Path] = StorePath,
    ledger_path: Optional[Path] = LedgerPath,
) -> None:
    """
    Queue a submission (one JSON object) for verification.
    """
    try:
        raw = json.loads(path.read_text())
        submission = Submission.model_validate(raw)
    except (json.JSONDecodeError, ValidationError) as e:
        console.print(f"[red]✗[/red] Invalid submission: {e}")
        raise typer.Exit(1)

    store, _ = _open_stores(store_path, ledger_path)
    try:
        asyncio.run(store.add(submission))
    except ValueError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(1)

    logger.info(f"Submission queued: {submission.id}")
    console.print(
        f"[green]✓[/green] Queued {submission.kind.value} submission "
        f"[bold]{submission.id}[/bold] ({submission.status.value})"
    )


@app.command("run-once")
def run_once(
    store_path: Optional[Path] = StorePath,
    ledger_path: Optional[Path] = LedgerPath,
    events: Optional[str] = EventsOption,
) -> None:
    """
    Run a single verification tick for complaints and plantations.
    """
    store, ledger = _open_stores(store_path, ledger_path)

    async def _run_once():
        service = _build_service(store, ledger, _build_observer(events))
        results = await service.run_once()
        await asyncio.sleep(0)  # let hub listeners drain
        return results

    try:
        results = asyncio.run(_run_once())
    except ValueError as e:
        console.print(f"[red]✗[/red] {e}")
        logger.error(f"run-once failed: {e}")
        raise typer.Exit(1)

    table = Table(title="Tick Results", show_header=True, header_style="bold magenta")
    for column in ("Kind", "Claimed", "Verified", "Review", "Rejected", "Retry", "Failed", "Rewards"):
        table.add_column(column, justify="right" if column != "Kind" else "left")
    for kind, stats in results.items():
        table.add_row(
            kind,
            str(stats.claimed),
            str(stats.verified),
            str(stats.needs_review),
            str(stats.rejected),
            str(stats.released),
            str(stats.failed),
            str(stats.rewards_applied + stats.rewards_reconciled),
        )
    console.print(table)


@app.command()
def serve(
    store_path: Optional[Path] = StorePath,
    ledger_path: Optional[Path] = LedgerPath,
    events: Optional[str] = EventsOption,
) -> None:
    """
    Run both schedulers until interrupted (Ctrl+C).
    """
    store, ledger = _open_stores(store_path, ledger_path)

    async def _serve() -> None:
        service = _build_service(store, ledger, _build_observer(events))
        await service.start()
        try:
            await asyncio.Event().wait()
        finally:
            await service.stop()

    console.print(Panel("Verification service running. Press Ctrl+C to stop.", border_style="green"))
    try:
        asyncio.run(_serve())
    except KeyboardInterrupt:
        console.print("\n[dim]Shutting down[/dim]")
    except ValueError as e:
        console.print(f"[red]✗[/red] {e}")
        logger.error(f"serve failed: {e}")
        raise typer.Exit(1)


@app.command()
def show(
    submission_id: str = typer.Argument(..., help="Submission id"),
    store_path: Optional[Path] = StorePath,
    ledger_path: Optional[Path] = LedgerPath,
) -> None:
    """
    Show a submission's status and verification result.
    """
    store, _ = _open_stores(store_path, ledger_path)
    submission = asyncio.run(store.get(submission_id))
    if submission is None:
        console.print(f"[red]✗[/red] Submission {submission_id} not found")
        raise typer.Exit(1)

    console.print(f"[bold cyan]{submission.kind.value}[/bold cyan] {submission.id}: "
                  f"[bold]{submission.status.value}[/bold] (attempts: {submission.attempts})")
    if submission.last_error:
        console.print(f"[yellow]Last error:[/yellow] {submission.last_error}")

    result = submission.result
    if result is None:
        return

    table = Table(title=result.summary, show_header=True, header_style="bold magenta")
    table.add_column("Facet", style="cyan")
    table.add_column("Passed")
    table.add_column("Confidence", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Error", style="yellow")
    for check in result.per_facet_results:
        table.add_row(
            check.facet.value,
            "✓" if check.passed else "✗",
            f"{check.confidence:.2f}",
            f"{check.score:.0f}",
            check.error or "",
        )
    console.print(table)
    if result.flags:
        console.print(f"[yellow]Flags:[/yellow] {', '.join(result.flags)}")
    if result.narrative:
        console.print(Panel(result.narrative, title="Reviewer summary", border_style="green"))


@app.command()
def leaderboard(
    limit: int = typer.Option(10, help="Entries to show"),
    store_path: Optional[Path] = StorePath,
    ledger_path: Optional[Path] = LedgerPath,
) -> None:
    """
    Show users ranked by points and carbon credits.
    """
    _, ledger = _open_stores(store_path, ledger_path)
    entries = asyncio.run(ledger.leaderboard(limit))

    table = Table(title="Leaderboard", show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right")
    table.add_column("User", style="cyan")
    table.add_column("Points", justify="right", style="green")
    table.add_column("Credits", justify="right", style="yellow")
    table.add_column("Submissions", justify="right")
    for rank, entry in enumerate(entries, start=1):
        table.add_row(
            str(rank),
            entry.user_id,
            str(entry.points),
            f"{entry.credits_earned:.2f}",
            str(len(entry.applied_submissions)),
        )
    console.print(table)


@app.command()
def version() -> None:
    """Display version information."""
    console.print("[bold]Mangrove Evidence Verification[/bold]")
    console.print("Version: 0.1.0")


if __name__ == "__main__":
    app()
