"""cadence CLI: drive review sittings against the local SQLite store."""

import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Annotated

import typer

from cadence.application.config import AppConfig, resolve_config
from cadence.application.factory import get_item_store, get_review_queue
from cadence.application.intervals import relative_due_label
from cadence.application.log import setup_logging
from cadence.application.review_queue import ReviewQueueManager
from cadence.domain.errors import ReviewPersistenceError, UnknownRatingError
from cadence.domain.models import Rating

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="cadence: spaced-repetition review scheduler.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage cadence configuration.")
app.add_typer(config_app, name="config")

item_app = typer.Typer(help="Register or remove learning items.", no_args_is_help=True)
app.add_typer(item_app, name="item")

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
    data_dir: Annotated[
        Path | None, typer.Option(help="Directory holding the database and session file.")
    ] = None,
    user: Annotated[str | None, typer.Option(help="User whose items are reviewed.")] = None,
    new_per_day: Annotated[
        int | None, typer.Option(help="Daily new-item limit (0 = unlimited).")
    ] = None,
):
    """Global settings for cadence."""
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {
        "data_dir": data_dir,
        "user_id": user,
        "new_items_per_day": new_per_day,
    }
    ctx.obj["verbose"] = verbose


def _config(ctx: typer.Context) -> AppConfig:
    obj = ctx.ensure_object(dict)
    config = resolve_config(obj.get("overrides"))
    setup_logging(config.log_dir, obj.get("verbose", 0))
    return config


def _run(coro):
    return asyncio.run(coro)


async def _loaded(config: AppConfig) -> ReviewQueueManager:
    manager = get_review_queue(config)
    await manager.load()
    return manager


def _echo_current(manager: ReviewQueueManager) -> None:
    item_id = manager.current_item_id
    if item_id is None:
        typer.secho("Nothing due. Session complete.", fg="green")
        return

    state = manager.current_state
    label = relative_due_label(state.due_at if state else None)
    typer.echo(
        f"[{manager.reviewed_count + 1}/{manager.total_items}] {item_id}  ({label})"
    )
    previews = manager.preview() or {}
    typer.echo("  " + "  ".join(f"{r.value}: {previews[r]}" for r in Rating if r in previews))


# ---------------------------------------------------------------------------
# Review commands
# ---------------------------------------------------------------------------


@app.command()
def status(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show progress of the current review sitting."""
    config = _config(ctx)
    manager = _run(_loaded(config))

    data = {
        "phase": manager.phase.value,
        "reviewed": manager.reviewed_count,
        "total": manager.total_items,
        "current": manager.current_item_id,
        "new_items_total": manager.total_new_items,
        "new_items_available_today": manager.new_items_available_today,
        "new_items_per_day": config.new_items_per_day,
    }
    if json_output:
        typer.echo(json.dumps(data, indent=2))
        return

    typer.echo(f"Phase: {data['phase']}  Progress: {data['reviewed']}/{data['total']}")
    limit = config.new_items_per_day or "unlimited"
    typer.echo(
        f"New items: {manager.new_items_available_today} available today "
        f"({manager.total_new_items} total, limit {limit})"
    )
    _echo_current(manager)


@app.command("next")
def next_item(ctx: typer.Context):
    """Show the current item with interval previews for each rating."""
    config = _config(ctx)
    manager = _run(_loaded(config))
    _echo_current(manager)


@app.command()
def rate(
    ctx: typer.Context,
    rating: Annotated[str, typer.Argument(help="again, hard, good or easy.")],
):
    """[bold green]Rate[/bold green] the current item and advance."""
    config = _config(ctx)

    try:
        parsed = Rating.parse(rating.lower())
    except UnknownRatingError as e:
        typer.secho(str(e), fg="red")
        raise typer.Exit(2)

    async def run():
        manager = await _loaded(config)
        if manager.current_item_id is None:
            typer.secho("Nothing to rate.", fg="yellow")
            return manager
        outcome = await manager.submit_rating(parsed)
        state = outcome.new_state
        typer.echo(
            f"{outcome.item_id}: {state.status.value}, next {relative_due_label(state.due_at)}"
            f" (interval {state.interval_days:.2f}d, ease {state.ease_factor:.2f})"
        )
        for warning in outcome.warnings:
            typer.secho(f"WARNING: {warning}", fg="yellow")
        return manager

    try:
        manager = _run(run())
    except ReviewPersistenceError as e:
        typer.secho(f"Rating not saved: {e}", fg="red")
        raise typer.Exit(1)

    _echo_current(manager)


@app.command()
def skip(ctx: typer.Context):
    """Move the current item to the end of the queue without rating it."""
    config = _config(ctx)

    async def run():
        manager = await _loaded(config)
        if manager.current_item_id is not None:
            await manager.skip()
        return manager

    _echo_current(_run(run()))


@app.command()
def restart(ctx: typer.Context):
    """Discard saved progress and build a fresh queue."""
    config = _config(ctx)

    async def run():
        manager = get_review_queue(config)
        await manager.restart()
        return manager

    manager = _run(run())
    typer.echo(f"Queue rebuilt: {manager.total_items} items.")
    _echo_current(manager)


@app.command("new")
def new_items(
    ctx: typer.Context,
    ignore_limit: Annotated[
        bool, typer.Option("--ignore-limit", help="Bypass today's new-item quota.")
    ] = False,
):
    """Start a sitting with only never-reviewed items."""
    config = _config(ctx)

    async def run():
        manager = get_review_queue(config)
        await manager.start_new_items_session(ignore_limit=ignore_limit)
        return manager

    manager = _run(run())
    typer.echo(f"New-item queue: {manager.total_items} items.")
    _echo_current(manager)


# ---------------------------------------------------------------------------
# Item subgroup
# ---------------------------------------------------------------------------


@item_app.command("add")
def item_add(
    ctx: typer.Context,
    item_ids: Annotated[list[str], typer.Argument(help="Item IDs to register.")],
):
    """Register learning items for the configured user."""
    config = _config(ctx)
    added = get_item_store(config).add_items(config.user_id, item_ids)
    typer.secho(f"Added {added} item(s).", fg="green")


@item_app.command("remove")
def item_remove(
    ctx: typer.Context,
    item_id: Annotated[str, typer.Argument(help="Item ID to remove.")],
):
    """Remove a learning item; review history is kept."""
    config = _config(ctx)
    get_item_store(config).remove_item(config.user_id, item_id)
    typer.echo(f"Removed {item_id}.")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    obj = ctx.ensure_object(dict)
    config = resolve_config(obj.get("overrides"))
    typer.echo(config.model_dump_json(indent=2))


@app.command()
def logs(ctx: typer.Context):
    """Open the log directory for the resolved configuration."""
    import subprocess

    log_dir = _config(ctx).log_dir
    typer.echo(f"Logs: {log_dir}")

    if sys.platform == "win32":
        os.startfile(str(log_dir))
        return
    opener = "open" if sys.platform == "darwin" else "xdg-open"
    subprocess.run([opener, str(log_dir)])
