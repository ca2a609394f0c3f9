"""CLI interface for hackfeed — admin triggers and the scheduler daemon."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from hackfeed.config import HackfeedConfig, load_config, merge_cli_overrides
from hackfeed.content.models import DeletionReason
from hackfeed.content.services import (
    moderate_content,
    pool_stats,
    purge_deleted,
    rate_content,
    restore_deleted,
)
from hackfeed.errors import HackfeedError, SchedulerAbort
from hackfeed.pipeline.lifecycle import LifecycleScheduler, RefreshSummary
from hackfeed.pipeline.schedule import build_daily_schedule

app = typer.Typer(
    name="hackfeed",
    help="Content lifecycle and deduplication engine for the hacks feed.",
)
duplicates_app = typer.Typer(help="Find and resolve duplicate content.")
archive_app = typer.Typer(help="Inspect, restore and purge archived content.")
content_app = typer.Typer(help="Rate, moderate and inspect live content.")
app.add_typer(duplicates_app, name="duplicates")
app.add_typer(archive_app, name="archive")
app.add_typer(content_app, name="content")

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from hackfeed import __version__

        console.print(f"hackfeed {__version__}")
        raise typer.Exit()


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to a .hackfeed.toml file."),
    ] = None,
    data_dir: Annotated[
        Optional[str],
        typer.Option("--data-dir", help="Directory holding the JSON collections."),
    ] = None,
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="Logging level (DEBUG, INFO, WARNING...)."),
    ] = None,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """hackfeed - generate, rotate and deduplicate feed content."""
    config = merge_cli_overrides(load_config(config_path), data_dir=data_dir, log_level=log_level)
    _setup_logging(config.logging.level)
    ctx.obj = config


def _config(ctx: typer.Context) -> HackfeedConfig:
    return ctx.obj if isinstance(ctx.obj, HackfeedConfig) else load_config()


def _scheduler(ctx: typer.Context) -> LifecycleScheduler:
    return LifecycleScheduler.from_config(_config(ctx))


def _fail(message: str) -> None:
    console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(1)


def _print_summary(summary: RefreshSummary) -> None:
    table = Table(title="Content refresh" + (" (manual)" if summary.manual else ""))
    table.add_column("Metric")
    table.add_column("Count", justify="right")
    rows = [
        ("Categories processed", summary.categories),
        ("Items generated", summary.generated),
        ("Published items retired", summary.retired),
        ("Drafts published", summary.published),
        ("Duplicates detected", summary.duplicates.detected),
        ("Duplicates archived", summary.duplicates.archived),
        ("Failures", summary.failures.total),
    ]
    for label, count in rows:
        table.add_row(label, str(count))
    console.print(table)


# ── Lifecycle jobs ───────────────────────────────────────────────


@app.command()
def refresh(ctx: typer.Context) -> None:
    """Run the full refresh now: generate, retire, promote, then sweep duplicates."""
    scheduler = _scheduler(ctx)
    try:
        summary = scheduler.run_manual_refresh()
    except SchedulerAbort as exc:
        _fail(str(exc))
        return
    _print_summary(summary)


@app.command()
def recycle(ctx: typer.Context) -> None:
    """Republish proven high performers by refreshing their publish date."""
    count = _scheduler(ctx).recycle_popular_content()
    console.print(f"[green]Recycled {count} item(s)[/green]")


@app.command()
def streaks(ctx: typer.Context) -> None:
    """Reset streaks of inactive users."""
    count = _scheduler(ctx).check_user_streaks()
    console.print(f"[green]Reset {count} streak(s)[/green]")


@app.command()
def subscriptions(ctx: typer.Context) -> None:
    """Expire subscriptions past their end date."""
    count = _scheduler(ctx).check_expired_subscriptions()
    console.print(f"[green]Expired {count} subscription(s)[/green]")


@app.command()
def reconcile(ctx: typer.Context) -> None:
    """Finish content moves left half-done between content and archive."""
    count = _scheduler(ctx).reconcile_archive()
    console.print(f"[green]Reconciled {count} record(s)[/green]")


@app.command()
def serve(
    ctx: typer.Context,
    poll_seconds: Annotated[
        Optional[int],
        typer.Option("--poll", help="Seconds between schedule checks."),
    ] = None,
) -> None:
    """Run the daily job scheduler until interrupted."""
    scheduler = _scheduler(ctx)
    schedule = build_daily_schedule(scheduler)
    try:
        schedule.run_forever(poll_seconds or scheduler.config.schedule.poll_seconds)
    except KeyboardInterrupt:
        console.print("Scheduler stopped.")


# ── Duplicates ───────────────────────────────────────────────────


@duplicates_app.command("find")
def duplicates_find(
    ctx: typer.Context,
    content_id: Annotated[str, typer.Argument(help="Content id to compare against.")],
    category: Annotated[
        Optional[str], typer.Option("--category", help="Limit to one category id.")
    ] = None,
) -> None:
    """List potential duplicates of one item, most similar first."""
    scheduler = _scheduler(ctx)
    try:
        candidates = scheduler.detector.find_potential_duplicates(content_id, category)
    except HackfeedError as exc:
        _fail(str(exc))
        return

    if not candidates:
        console.print("[yellow]No potential duplicates found.[/yellow]")
        return
    table = Table(title=f"Potential duplicates of {content_id}")
    for column in ("Id", "Title", "Title sim", "Body sim", "Overall"):
        table.add_column(column)
    for c in candidates:
        table.add_row(
            c.id,
            c.title[:50],
            f"{c.title_similarity:.2f}",
            f"{c.body_similarity:.2f}",
            f"{c.overall_similarity:.2f}",
        )
    console.print(table)


@duplicates_app.command("resolve")
def duplicates_resolve(
    ctx: typer.Context,
    content_ids: Annotated[
        list[str], typer.Argument(help="Ids ordered best first; the first is kept.")
    ],
) -> None:
    """Keep the first id and archive the rest as its duplicates."""
    scheduler = _scheduler(ctx)
    try:
        result = scheduler.detector.resolve_duplicates(content_ids)
    except HackfeedError as exc:
        _fail(str(exc))
        return
    console.print(
        f"[green]Kept {result.kept}; archived {len(result.marked_as_duplicates)} duplicate(s)[/green]"
    )


@duplicates_app.command("sweep")
def duplicates_sweep(ctx: typer.Context) -> None:
    """Run the corpus-wide duplicate sweep on its own."""
    result = _scheduler(ctx).detector.sweep()
    console.print(
        f"Processed {result.processed}, detected {result.detected}, "
        f"archived {result.archived}, failed {result.failed}"
    )


# ── Archive ──────────────────────────────────────────────────────


@archive_app.command("list")
def archive_list(
    ctx: typer.Context,
    reason: Annotated[
        Optional[DeletionReason], typer.Option("--reason", help="Filter by reason.")
    ] = None,
    limit: Annotated[int, typer.Option("--limit", help="Maximum rows.")] = 50,
) -> None:
    """List archived content, newest first."""
    records = _scheduler(ctx).archive_store.find(reason=reason, limit=limit)
    if not records:
        console.print("[yellow]Archive is empty.[/yellow]")
        return
    table = Table(title="Archived content")
    for column in ("Id", "Original id", "Reason", "Deleted at", "Title"):
        table.add_column(column)
    for r in records:
        table.add_row(
            r.id, r.original_content_id, r.reason.value, r.deleted_at.isoformat(), r.title[:40]
        )
    console.print(table)


@archive_app.command("restore")
def archive_restore(
    ctx: typer.Context,
    archive_id: Annotated[str, typer.Argument(help="Archive record id.")],
) -> None:
    """Copy an archived item back into live content under a new id."""
    scheduler = _scheduler(ctx)
    try:
        restored = restore_deleted(scheduler.content_store, scheduler.archive_store, archive_id)
    except HackfeedError as exc:
        _fail(str(exc))
        return
    console.print(f"[green]Restored as {restored.id}[/green]")


@archive_app.command("purge")
def archive_purge(
    ctx: typer.Context,
    archive_id: Annotated[str, typer.Argument(help="Archive record id.")],
) -> None:
    """Permanently delete an archived item."""
    try:
        purge_deleted(_scheduler(ctx).archive_store, archive_id)
    except HackfeedError as exc:
        _fail(str(exc))
        return
    console.print(f"[green]Purged {archive_id}[/green]")


# ── Content ──────────────────────────────────────────────────────


@content_app.command("rate")
def content_rate(
    ctx: typer.Context,
    content_id: Annotated[str, typer.Argument(help="Content id.")],
    rating: Annotated[str, typer.Argument(help="like or dislike")],
) -> None:
    """Record a like or dislike and show the resulting pool."""
    try:
        record = rate_content(_scheduler(ctx).content_store, content_id, rating)
    except HackfeedError as exc:
        _fail(str(exc))
        return
    console.print(
        f"likes={record.stats.likes} dislikes={record.stats.dislikes} pool={record.pool.value}"
    )


@content_app.command("moderate")
def content_moderate(
    ctx: typer.Context,
    content_id: Annotated[str, typer.Argument(help="Content id.")],
    action: Annotated[str, typer.Argument(help="approve or reject")],
    moderator: Annotated[str, typer.Option("--moderator", help="Moderator user id.")] = "admin",
    notes: Annotated[Optional[str], typer.Option("--notes")] = None,
) -> None:
    """Approve (publish) or reject a content item."""
    try:
        record = moderate_content(
            _scheduler(ctx).content_store,
            content_id,
            action,
            moderator_id=moderator,
            notes=notes,
        )
    except HackfeedError as exc:
        _fail(str(exc))
        return
    console.print(f"Content {record.id} is now {record.status.value}")


@content_app.command("pools")
def content_pools(
    ctx: typer.Context,
    category: Annotated[Optional[str], typer.Option("--category")] = None,
) -> None:
    """Count published content per pool."""
    counts = pool_stats(_scheduler(ctx).content_store, category)
    table = Table(title="Pools")
    table.add_column("Pool")
    table.add_column("Published", justify="right")
    for pool, count in counts.items():
        table.add_row(pool.value, str(count))
    console.print(table)


if __name__ == "__main__":
    app()
