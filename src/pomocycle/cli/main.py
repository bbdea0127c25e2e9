"""CLI commands for pomocycle using Typer."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console, Group
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from pomocycle import __version__
from pomocycle.app import PomodoroApp
from pomocycle.core import events as ev
from pomocycle.core.clock import format_countdown, format_date_label, local_today
from pomocycle.core.config import Config, get_config
from pomocycle.core.errors import PomocycleError
from pomocycle.schemas import SessionType, Task
from pomocycle.timer.cycle import SESSIONS_PER_CYCLE

# Initialize Typer app
app = typer.Typer(
    name="pomocycle",
    help="Work/break cycle timer with task tracking and focus statistics.",
    add_completion=False,
)

console = Console()

TYPE_COLORS = {
    SessionType.WORK: "red",
    SessionType.SHORT_BREAK: "green",
    SessionType.LONG_BREAK: "blue",
}


def setup_logging(log_level: str, log_file: Path | None = None) -> None:
    """Configure logging for the application."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )

    logging.getLogger("asyncio").setLevel(logging.WARNING)


def _open_app(config: Config, **kwargs) -> PomodoroApp:
    pomo = PomodoroApp.from_config(config, **kwargs)
    for warning in pomo.warnings:
        console.print(f"[yellow]Warning: {escape(warning)}[/yellow]")
    pomo.events.subscribe(
        ev.PERSISTENCE_WARNING,
        lambda message: console.print(f"[yellow]Warning: {escape(message)}[/yellow]"),
    )
    return pomo


def _task_at(pomo: PomodoroApp, position: int) -> Task:
    task = pomo.tasks.task_at(position)
    if task is None:
        console.print(f"[red]No task at position {position}[/red]")
        raise typer.Exit(1)
    return task


def _render(pomo: PomodoroApp) -> Panel:
    state = pomo.state
    color = TYPE_COLORS[state.session_type]

    if state.running:
        status = "[green]running[/green]"
    elif state.paused:
        status = "[yellow]paused[/yellow]"
    else:
        status = "[dim]idle[/dim]"

    active = pomo.tasks.active_task
    lines = [
        Text.from_markup(f"[bold {color}]{state.session_type.label}[/bold {color}]  {status}"),
        Text(format_countdown(state.remaining_ms), style="bold"),
        ProgressBar(total=100, completed=state.progress * 100, complete_style=color),
        Text.from_markup(f"Session {state.session_count}/{SESSIONS_PER_CYCLE}"),
    ]
    if active:
        lines.append(Text.from_markup(f"Task: [cyan]{escape(active.text)}[/cyan]"))

    return Panel(Group(*lines), title="pomocycle", border_style=color)


@app.command()
def run(
    task: int = typer.Option(None, "--task", "-t", help="Select task at this position before starting"),
    auto_breaks: bool = typer.Option(None, "--auto-breaks/--no-auto-breaks", help="Start breaks automatically"),
    auto_work: bool = typer.Option(False, "--auto-work", help="Start the next work session after a break"),
    minutes_scale: float = typer.Option(
        1.0, "--minutes-scale", min=0.001, help="Length of a minute relative to real time (0.01 for a quick demo)"
    ),
    log_level: str = typer.Option("WARNING", "--log-level", "-l", help="Log level (DEBUG, INFO, WARNING, ERROR)"),
) -> None:
    """Run the timer in the foreground. Press Ctrl+C to stop."""
    config = get_config()
    setup_logging(log_level, config.log_dir / "pomocycle.log")

    if auto_breaks is None:
        auto_breaks = config.timer.auto_start_breaks

    try:
        asyncio.run(_run_timer(config, task, auto_breaks, auto_work, minutes_scale))
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped[/yellow]")


async def _run_timer(
    config: Config,
    task: int | None,
    auto_breaks: bool,
    auto_work: bool,
    minutes_scale: float = 1.0,
) -> None:
    loop = asyncio.get_running_loop()
    pomo = _open_app(config, minutes_scale=minutes_scale)
    delay = config.timer.auto_start_delay_seconds

    try:
        if task is not None:
            pomo.select_task(_task_at(pomo, task).id)

        with Live(_render(pomo), console=console, refresh_per_second=4) as live:

            def refresh(*_args) -> None:
                live.update(_render(pomo))

            def start_if_idle() -> None:
                if not pomo.state.running:
                    pomo.start_timer()

            def on_completed(record) -> None:
                name = f" - {escape(record.task_name)}" if record.task_name else ""
                console.print(f"[green]{record.type.label} complete ({record.duration_minutes:g} min){name}[/green]")
                if auto_work and pomo.state.session_type is SessionType.WORK:
                    loop.call_later(delay, start_if_idle)

            def on_break_eligible(session_type: SessionType) -> None:
                if auto_breaks:
                    loop.call_later(delay, start_if_idle)

            pomo.events.subscribe(ev.TICK, refresh)
            pomo.events.subscribe(ev.STATE_CHANGED, refresh)
            pomo.events.subscribe(ev.SESSION_COMPLETED, on_completed)
            pomo.events.subscribe(ev.BREAK_AUTO_START_ELIGIBLE, on_break_eligible)

            pomo.start_timer()
            await asyncio.Event().wait()
    finally:
        pomo.close()


@app.command(name="task-add")
def task_add(text: str = typer.Argument(..., help="Task description (1-100 characters)")) -> None:
    """Add a task to the top of the list."""
    pomo = _open_app(get_config())
    try:
        task = pomo.add_task(text)
        console.print(f"[green]Task added:[/green] {escape(task.text)}")
    except PomocycleError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    finally:
        pomo.close()


@app.command()
def tasks() -> None:
    """List tasks, newest first."""
    pomo = _open_app(get_config())
    try:
        task_list = pomo.list_tasks()
        if not task_list:
            console.print("[dim]No tasks yet. Add one with 'pomocycle task-add'[/dim]")
            return

        table = Table(title="Tasks", show_header=True, header_style="bold cyan")
        table.add_column("#")
        table.add_column("Task")
        table.add_column("Sessions")
        table.add_column("Status")

        for position, t in enumerate(task_list, start=1):
            marker = " [yellow](active)[/yellow]" if t.id == pomo.tasks.active_task_id else ""
            status = "[green]Done[/green]" if t.completed else "[dim]Open[/dim]"
            table.add_row(str(position), f"{escape(t.text)}{marker}", str(t.sessions_spent), status)

        console.print(table)
    finally:
        pomo.close()


@app.command(name="task-edit")
def task_edit(
    position: int = typer.Argument(..., help="Task position from 'pomocycle tasks'"),
    text: str = typer.Argument(..., help="New description"),
) -> None:
    """Rename a task."""
    pomo = _open_app(get_config())
    try:
        task = _task_at(pomo, position)
        pomo.edit_task(task.id, text)
        console.print("[green]Task updated[/green]")
    except PomocycleError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    finally:
        pomo.close()


@app.command(name="task-done")
def task_done(position: int = typer.Argument(..., help="Task position")) -> None:
    """Toggle a task between done and open."""
    pomo = _open_app(get_config())
    try:
        task = pomo.toggle_task_complete(_task_at(pomo, position).id)
        state = "done" if task.completed else "open"
        console.print(f"[green]Marked {state}:[/green] {escape(task.text)}")
    finally:
        pomo.close()


@app.command(name="task-delete")
def task_delete(position: int = typer.Argument(..., help="Task position")) -> None:
    """Delete a task."""
    pomo = _open_app(get_config())
    try:
        task = _task_at(pomo, position)
        pomo.delete_task(task.id)
        console.print(f"[yellow]Task deleted:[/yellow] {escape(task.text)}")
    finally:
        pomo.close()


@app.command(name="task-select")
def task_select(position: int = typer.Argument(..., help="Task position")) -> None:
    """Select the task that receives credit for work sessions (again to deselect)."""
    pomo = _open_app(get_config())
    try:
        task = _task_at(pomo, position)
        active = pomo.select_task(task.id)
        if active:
            console.print(f"[green]Selected:[/green] {escape(task.text)}")
        else:
            console.print("[dim]No active task[/dim]")
    except PomocycleError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    finally:
        pomo.close()


@app.command()
def stats() -> None:
    """Show focus statistics."""
    pomo = _open_app(get_config())
    try:
        s = pomo.stats()

        table = Table(show_header=False, box=None)
        table.add_column("Metric", style="cyan")
        table.add_column("Value")
        table.add_row("Sessions today", str(s.sessions_today))
        table.add_row("Focus today", f"{round(s.focus_minutes_today)}m")
        table.add_row("Total sessions", str(s.total_sessions))
        table.add_row("Total focus", s.total_focus_display)
        table.add_row("Streak", f"{s.streak_days} day(s)")
        table.add_row("Longest streak", f"{s.longest_streak_days} day(s)")
        table.add_row("Tasks completed", str(s.tasks_completed))

        console.print(Panel(table, title="Focus Statistics", border_style="green"))
    finally:
        pomo.close()


@app.command()
def history(limit: int = typer.Option(7, "--days", "-d", help="Number of days to show")) -> None:
    """Show completed sessions grouped by day."""
    pomo = _open_app(get_config())
    try:
        groups = pomo.history()
        if not groups:
            console.print("[dim]No sessions recorded yet[/dim]")
            return

        today = local_today()
        for day, records in list(groups.items())[:limit]:
            console.print(f"[bold]{format_date_label(day, today)}[/bold]")
            for r in records:
                color = TYPE_COLORS[r.type]
                task = f" - {escape(r.task_name)}" if r.task_name else ""
                console.print(
                    f"  [{color}]●[/{color}] {r.end_time.strftime('%H:%M')}  "
                    f"{round(r.duration_minutes)}min {r.type.label}{task}"
                )
    finally:
        pomo.close()


@app.command(name="history-clear")
def history_clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete all session history. This cannot be undone."""
    if not yes and not typer.confirm("Clear all session history? This cannot be undone."):
        console.print("[dim]Cancelled[/dim]")
        raise typer.Exit(0)

    pomo = _open_app(get_config())
    try:
        pomo.clear_history()
        console.print("[green]History cleared[/green]")
    finally:
        pomo.close()


@app.command()
def backup(
    backup_dir: Path = typer.Option(None, "--dir", "-d", help="Target directory (default: <data_dir>/backups)"),
) -> None:
    """Copy the database file to a timestamped backup."""
    pomo = _open_app(get_config())
    try:
        path = pomo.backup(backup_dir)
        console.print(f"[green]Backup written:[/green] {escape(str(path))}")
    except PomocycleError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    finally:
        pomo.close()


@app.command()
def durations() -> None:
    """Show configured session durations."""
    pomo = _open_app(get_config())
    try:
        d = pomo.durations
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Session")
        table.add_column("Minutes")
        table.add_row("Work", str(d.work_minutes))
        table.add_row("Short Break", str(d.short_break_minutes))
        table.add_row("Long Break", str(d.long_break_minutes))
        console.print(table)
    finally:
        pomo.close()


@app.command(name="durations-set")
def durations_set(
    work: str = typer.Option(None, "--work", "-w", help="Work minutes (1-60)"),
    short: str = typer.Option(None, "--short", "-s", help="Short break minutes (1-60)"),
    long: str = typer.Option(None, "--long", "-L", help="Long break minutes (1-60)"),
) -> None:
    """Change session durations."""
    pomo = _open_app(get_config())
    try:
        current = pomo.durations
        saved = pomo.save_duration_config(
            work if work is not None else current.work_minutes,
            short if short is not None else current.short_break_minutes,
            long if long is not None else current.long_break_minutes,
        )
        console.print(
            f"[green]Durations saved:[/green] {saved.work_minutes}/"
            f"{saved.short_break_minutes}/{saved.long_break_minutes} min"
        )
    except PomocycleError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    finally:
        pomo.close()


@app.command(name="durations-reset")
def durations_reset() -> None:
    """Restore the default 25/5/15 durations."""
    pomo = _open_app(get_config())
    try:
        pomo.reset_duration_config()
        console.print("[green]Durations reset to defaults[/green]")
    finally:
        pomo.close()


@app.command()
def prefs(
    sound: bool = typer.Option(None, "--sound/--no-sound", help="Completion sounds"),
    notifications: bool = typer.Option(None, "--notifications/--no-notifications", help="Desktop notifications"),
    flash: bool = typer.Option(None, "--flash/--no-flash", help="Screen flash on completion"),
    theme: str = typer.Option(None, "--theme", help="dark, light or focus"),
) -> None:
    """Show or change feedback preferences."""
    pomo = _open_app(get_config())
    try:
        changes = {
            key: value
            for key, value in {
                "sound_enabled": sound,
                "notifications_enabled": notifications,
                "flash_enabled": flash,
                "theme": theme,
            }.items()
            if value is not None
        }
        p = pomo.save_preferences(**changes) if changes else pomo.preferences

        table = Table(show_header=False, box=None)
        table.add_column("Preference", style="cyan")
        table.add_column("Value")
        table.add_row("Sound", str(p.sound_enabled))
        table.add_row("Notifications", str(p.notifications_enabled))
        table.add_row("Flash", str(p.flash_enabled))
        table.add_row("Theme", p.theme)
        console.print(table)
    except PomocycleError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    finally:
        pomo.close()


@app.command(name="config-show")
def config_show() -> None:
    """Show current configuration."""
    config = get_config()

    table = Table(title="pomocycle Configuration", show_header=True, header_style="bold cyan")
    table.add_column("Setting")
    table.add_column("Value")

    table.add_row("[bold]Paths[/bold]", "")
    table.add_row("  Data Directory", escape(str(config.data_dir)))
    table.add_row("  Log Directory", escape(str(config.log_dir)))
    table.add_row("  Config Directory", escape(str(config.config_dir)))
    table.add_row("  Database", escape(str(config.db_path)))

    table.add_row("[bold]Timer[/bold]", "")
    table.add_row("  Tick Interval", f"{config.timer.tick_interval_ms}ms")
    table.add_row("  Auto-start Breaks", str(config.timer.auto_start_breaks))
    table.add_row("  Auto-start Delay", f"{config.timer.auto_start_delay_seconds}s")

    table.add_row("[bold]Storage[/bold]", "")
    table.add_row("  Backend", config.storage.backend)

    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"pomocycle v{__version__}")


if __name__ == "__main__":
    app()
