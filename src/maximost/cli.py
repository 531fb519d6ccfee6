"""Command-line dashboard for MaxiMost."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import click

from .config import BaseConfig
from .context import AppContext, create_app_context
from .forms.habit import HabitValidationError
from .logging_config import setup_logging
from .services.frequency import HabitFrequency
from .services.local_storage import export_snapshot, import_snapshot, load_snapshot

FREQUENCY_CHOICES = [member.value for member in HabitFrequency]


@click.group()
@click.option("--database-url", envvar="MAXIMOST_DATABASE_URL", default=None, help="SQLAlchemy URL")
@click.pass_context
def cli(ctx: click.Context, database_url: str | None) -> None:
    """Track habits, streaks and weekly targets."""

    config = BaseConfig()
    if database_url:
        config.DATABASE_URL = database_url
    setup_logging(config)
    ctx.obj = create_app_context(config)


@cli.command("add")
@click.argument("title")
@click.option("--frequency", type=click.Choice(FREQUENCY_CHOICES), default="daily", show_default=True)
@click.option("--absolute/--flexible", default=None, help="Must-do habit (forced for daily)")
@click.option("--time", "time_commitment", default="5 min", show_default=True)
@click.option("--category", default="health", show_default=True)
@click.option("--description", default="")
@click.pass_obj
def add_habit(
    app: AppContext,
    title: str,
    frequency: str,
    absolute: bool | None,
    time_commitment: str,
    category: str,
    description: str,
) -> None:
    """Create a new habit."""

    try:
        habit = app.tracker.create_habit(
            {
                "title": title,
                "frequency": frequency,
                "is_absolute": absolute,
                "time_commitment": time_commitment,
                "category": category,
                "description": description,
            }
        )
    except HabitValidationError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Created {habit.title} ({habit.frequency}) id={habit.id}")


@cli.command("list")
@click.pass_obj
def list_habits(app: AppContext) -> None:
    """Show habits with streaks and weekly progress."""

    rows = app.tracker.dashboard()
    if not rows:
        click.echo("No habits yet. Add one with `maximost add`.")
        return
    for row in rows:
        mark = "x" if row.completed_today else " "
        goal = "met" if row.met_weekly_target else f"{row.weekly_count}/{row.weekly_target}"
        click.echo(
            f"[{mark}] {row.habit.id}  {row.habit.title}  "
            f"{row.habit.frequency}  streak {row.streak.current} {row.streak.unit}  week {goal}"
        )


@cli.command("toggle")
@click.argument("habit_id")
@click.option("--date", "day", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
@click.pass_obj
def toggle(app: AppContext, habit_id: str, day) -> None:
    """Mark a habit done (or undo it) for today or --date."""

    target: date = day.date() if day else app.tracker.clock()
    result = app.tracker.toggle_completion(habit_id, target)
    if result is None:
        click.echo(f"No habit with id {habit_id}.")
        return
    state = "completed" if result.completed else "reopened"
    click.echo(f"{state} on {result.day.isoformat()}; streak {result.streak}")
    if result.perfect_day:
        click.echo("Perfect day! Every habit is done today.")
        app.tracker.acknowledge("perfect_day")
    if result.perfect_week:
        click.echo("Perfect week! Every weekly target is met.")
        app.tracker.acknowledge("perfect_week")


@cli.command("status")
@click.pass_obj
def status(app: AppContext) -> None:
    """Summarize today's and this week's progress."""

    tracker = app.tracker
    click.echo(f"Perfect day: {'yes' if tracker.is_perfect_day() else 'no'}")
    click.echo(f"Perfect week: {'yes' if tracker.is_perfect_week() else 'no'}")
    click.echo(f"Completion rate (7 days): {tracker.completion_rate()}%")


@cli.command("delete")
@click.argument("habit_id")
@click.pass_obj
def delete(app: AppContext, habit_id: str) -> None:
    """Delete a habit and its history."""

    if app.tracker.delete_habit(habit_id):
        click.echo(f"Deleted {habit_id}")
    else:
        click.echo(f"No habit with id {habit_id}.")


@cli.command("reorder")
@click.argument("habit_ids", nargs=-1, required=True)
@click.pass_obj
def reorder(app: AppContext, habit_ids: tuple[str, ...]) -> None:
    """Move the given habits to the top, in order."""

    for habit in app.tracker.reorder_habits(list(habit_ids)):
        click.echo(f"{habit.position}. {habit.title}")


@cli.command("export")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path), required=False)
@click.pass_obj
def export(app: AppContext, path: Path | None) -> None:
    """Write a JSON snapshot in the web dashboard's format."""

    written = export_snapshot(app.tracker, path or app.config.snapshot_path)
    click.echo(f"Snapshot written: {written}")


@cli.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def import_(app: AppContext, path: Path) -> None:
    """Load a JSON snapshot, skipping malformed records."""

    snapshot = load_snapshot(path)
    habits, completions = import_snapshot(app.tracker, snapshot)
    click.echo(f"Imported {habits} habits and {completions} completions ({snapshot.skipped} skipped)")


@cli.command("audit")
@click.option("--fix", is_flag=True, default=False, help="Rewrite drifted streak caches")
@click.pass_obj
def audit(app: AppContext, fix: bool) -> None:
    """Compare cached streaks with a full history replay."""

    drift = app.tracker.audit_streaks(fix=fix)
    if not drift:
        click.echo("All streaks match history.")
        return
    for habit_id, (cached, replayed) in drift.items():
        click.echo(f"{habit_id}: cached {cached}, history {replayed}")


def main() -> None:
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
