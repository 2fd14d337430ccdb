"""CLI commands for Nudge using Typer."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from nudge import __version__
from nudge.core.config import get_config

app = typer.Typer(
    name="nudge",
    help="Focus session timer with crash-safe resume.",
    add_completion=False,
)

console = Console()

MODE_STYLES = {
    "focus": "green",
    "break": "cyan",
    "paused": "yellow",
    "idle": "dim",
}


def setup_logging(log_level: str, log_file: Path | None = None) -> None:
    """Configure logging for the application."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    handlers: list[logging.Handler] = []
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))
    else:
        handlers.append(logging.StreamHandler())

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )

    # Reduce noise from external libraries
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def write_control(control_file: Path, action: str, minutes: int | None = None) -> None:
    """Write a control command for the running timer."""
    control_file.parent.mkdir(parents=True, exist_ok=True)
    payload = {"action": action, "timestamp": datetime.now().isoformat()}
    if minutes is not None:
        payload["minutes"] = minutes
    control_file.write_text(json.dumps(payload))


def read_control(control_file: Path) -> dict | None:
    """Read and clear the control command."""
    if not control_file.exists():
        return None
    try:
        data = json.loads(control_file.read_text())
    except (OSError, ValueError) as e:
        logging.getLogger(__name__).warning(f"Discarding unreadable control file: {e}")
        data = None
    control_file.unlink(missing_ok=True)
    return data


def _deliver_notification(title: str, body: str) -> None:
    console.bell()
    console.print(f"\n[bold green]{title}[/bold green] {body}")


@app.command()
def run(
    minutes: int = typer.Option(
        None,
        "--minutes",
        "-m",
        help="Focus length in minutes (defaults to the configured length)",
    ),
    break_minutes: int = typer.Option(
        None,
        "--break",
        "-b",
        help="Start a break of this many minutes instead of a focus session",
    ),
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        "-l",
        help="Log level (DEBUG, INFO, WARNING, ERROR)",
    ),
) -> None:
    """Run the timer in the foreground.

    A session left over from a previous run is resumed instead of starting
    a new one. Ctrl+C pauses a focus session and keeps it for next time.

    Examples:
        nudge run -m 50
        nudge run --break 10
    """
    config = get_config()

    async def run_timer():
        from nudge.focus.clock import AsyncioTickSource
        from nudge.focus.controller import FocusController
        from nudge.focus.state import FocusMode
        from nudge.focus.stats import StatsRecorder
        from nudge.notifications.scheduler import LoopNotificationScheduler
        from nudge.storage.database import Database
        from nudge.storage.kv_store import JsonFileStore

        db = Database(config.db_path)
        await db.connect()

        notifier = LoopNotificationScheduler(deliver=_deliver_notification)
        controller = FocusController(
            JsonFileStore(config.session_store_path),
            ticks=AsyncioTickSource(),
            notifier=notifier,
            stats=StatsRecorder(db),
            config=config.focus,
        )

        try:
            restored = controller.bootstrap()
            if restored:
                console.print(
                    f"[yellow]Resuming {restored.mode.value} session "
                    f"({restored.remaining_display} left)[/yellow]"
                )
            elif break_minutes is not None:
                controller.start_break(break_minutes)
            else:
                if minutes is not None:
                    controller.set_preset(minutes)
                controller.start_focus()

            console.print("Press Ctrl+C to pause and exit\n")

            # Keep the loop alive until a due notification has been shown
            while controller.timer.mode != FocusMode.IDLE or notifier.pending:
                ctrl = read_control(config.control_file)
                if ctrl:
                    action = ctrl.get("action")
                    if action == "pause":
                        controller.pause()
                    elif action == "resume":
                        controller.resume()
                    elif action == "break":
                        controller.start_break(ctrl.get("minutes"))
                    elif action == "stop":
                        controller.stop()
                        break

                state = controller.timer.state
                style = MODE_STYLES.get(state.mode.value, "white")
                console.print(
                    f"\r[{style}]{state.mode.value:>6}[/{style}] {state.remaining_display} "
                    f"({state.progress_percent:.0f}%)    ",
                    end="",
                    highlight=False,
                )
                await asyncio.sleep(0.5)

            console.print()
            if controller.completed_this_run:
                console.print(f"[green]Focus sessions completed: {controller.completed_this_run}[/green]")

        finally:
            if controller.timer.mode == FocusMode.FOCUS:
                controller.pause()
            controller.timer.ticks.cancel()
            await controller.drain()
            await db.close()

    try:
        config.ensure_directories()
        setup_logging(log_level, config.log_dir / "nudge.log")
        asyncio.run(run_timer())
    except KeyboardInterrupt:
        console.print("\n[yellow]Paused. Run 'nudge run' to continue.[/yellow]")
    except Exception as e:
        console.print(f"[red]Error running timer: {e}[/red]")
        raise typer.Exit(1)


def _send(action: str, minutes: int | None = None) -> None:
    config = get_config()
    write_control(config.control_file, action, minutes)
    console.print(f"[green]Sent {action} command[/green]")


@app.command()
def pause() -> None:
    """Pause the running focus session."""
    _send("pause")


@app.command()
def resume() -> None:
    """Resume a paused focus session."""
    _send("resume")


@app.command()
def stop() -> None:
    """Stop the running session."""
    _send("stop")


@app.command(name="break")
def break_cmd(
    minutes: int = typer.Option(None, "--minutes", "-m", help="Break length in minutes"),
) -> None:
    """Switch the running timer to a break."""
    _send("break", minutes)


@app.command()
def status() -> None:
    """Show the persisted session."""
    from nudge.focus.persistence import SessionPersistence
    from nudge.focus.state import SessionState
    from nudge.storage.kv_store import JsonFileStore

    config = get_config()
    persisted = SessionPersistence(JsonFileStore(config.session_store_path)).load()

    if persisted is None:
        console.print(Panel(
            "[dim]No session in progress.[/dim]\n\nUse 'nudge run' to start one.",
            title="Nudge Status",
            border_style="dim",
        ))
        return

    state = SessionState(
        mode=persisted.mode,
        remaining_ms=persisted.remaining_ms,
        total_ms=persisted.total_ms,
    )
    style = MODE_STYLES.get(state.mode.value, "white")

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    table.add_row("Mode", f"[{style} bold]{state.mode.value.upper()}[/{style} bold]")
    table.add_row("Remaining", state.remaining_display)
    table.add_row("Length", f"{state.total_ms // 60_000} min")
    table.add_row("Progress", f"{state.progress_percent:.0f}%")
    table.add_row("Break", "Yes" if persisted.is_break else "No")

    console.print(Panel(table, title="Nudge Status", border_style=style))


@app.command()
def stats(
    days: int = typer.Option(7, "--days", "-d", help="Days of history to show"),
) -> None:
    """Show focus statistics."""
    config = get_config()

    async def get_stats():
        from nudge.focus.stats import StatsRecorder
        from nudge.storage.database import Database

        db = Database(config.db_path)
        await db.connect()
        try:
            recorder = StatsRecorder(db)
            return await recorder.get_stats(), await recorder.history(days)
        finally:
            await db.close()

    try:
        totals, history = asyncio.run(get_stats())
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    summary = Table(show_header=False, box=None, padding=(0, 2))
    summary.add_column("Key", style="cyan")
    summary.add_column("Value")
    summary.add_row("Sessions", str(totals.sessions_completed))
    summary.add_row("Focus time", totals.format_total())
    summary.add_row("Current streak", f"{totals.current_streak} days")
    summary.add_row("Longest streak", f"{totals.longest_streak} days")
    console.print(Panel(summary, title="Focus Stats", border_style="blue"))

    table = Table(title=f"Last {days} days", show_header=True, header_style="bold cyan")
    table.add_column("Date")
    table.add_column("Sessions", justify="right")
    table.add_column("Minutes", justify="right")
    for day in history:
        table.add_row(day["date"], str(day["sessions"]), str(day["minutes"]))
    console.print(table)


@app.command()
def config_show() -> None:
    """Show current configuration."""
    config = get_config()

    table = Table(title="Nudge Configuration", show_header=True, header_style="bold cyan")
    table.add_column("Setting")
    table.add_column("Value")

    table.add_row("[bold]Paths[/bold]", "")
    table.add_row("  Data Directory", str(config.data_dir))
    table.add_row("  Log Directory", str(config.log_dir))
    table.add_row("  Config File", str(config.config_file))
    table.add_row("  Database", str(config.db_path))
    table.add_row("  Session Store", str(config.session_store_path))

    table.add_row("[bold]Focus[/bold]", "")
    table.add_row("  Focus Length", f"{config.focus.default_focus_minutes} min")
    table.add_row("  Break Length", f"{config.focus.default_break_minutes} min")
    table.add_row("  Presets", ", ".join(str(p) for p in config.focus.presets))
    table.add_row("  Notifications", str(config.focus.notifications_enabled))
    table.add_row("  Auto-start Breaks", str(config.focus.auto_start_breaks))

    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"Nudge v{__version__}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
