"""
PIMX CLI Interface
Command line interface implemented using Typer
"""

import asyncio
import json
from typing import Optional

import typer

from pimx.config.loader import load_config
from pimx.core.auth import AuthenticationError
from pimx.core.logger import get_logger
from pimx.system.runtime import Runtime, start_runtime, stop_runtime
from pimx.tracking import scoring
from pimx.tracking.dates import date_range, iso_day, today_iso
from pimx.tracking.purge import Section

logger = get_logger(__name__)

PASSCODE_OPTION = typer.Option(
    ..., "--passcode", envvar="PIMX_PASSCODE", prompt=True, hide_input=True, help="Dashboard passcode"
)
CONFIG_OPTION = typer.Option(None, help="Configuration file path")


def _echo_json(payload) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


def _open_session(config_file: Optional[str], passcode: str) -> Runtime:
    """Start the runtime and unlock it, exiting with status 1 on a bad passcode"""
    runtime = asyncio.run(start_runtime(config_file))
    try:
        runtime.gate.unlock(passcode)
    except AuthenticationError as e:
        typer.echo(str(e), err=True)
        _close_session()
        raise typer.Exit(1)
    return runtime


def _close_session() -> None:
    asyncio.run(stop_runtime(quiet=True))


def serve(
    host: Optional[str] = typer.Option(None, help="Server host address"),
    port: Optional[int] = typer.Option(None, help="Server port"),
    config_file: Optional[str] = CONFIG_OPTION,
    debug: bool = typer.Option(False, help="Enable debug mode"),
):
    """Start the PIMX remote store"""
    from pimx.app import run_server

    try:
        load_config(config_file)
        run_server(host=host, port=port, debug=debug)
    except Exception as e:
        logger.error(f"Failed to start service: {e}")
        raise typer.Exit(1)


def pull(
    passcode: str = PASSCODE_OPTION,
    config_file: Optional[str] = CONFIG_OPTION,
):
    """Hydrate the local cache from the remote store and list cached keys"""
    runtime = _open_session(config_file, passcode)
    try:
        for key in runtime.cache.keys.all():
            present = runtime.cache.get(key) is not None
            typer.echo(f"{'✓' if present else '-'} {key}")
    finally:
        _close_session()


def today(
    date: Optional[str] = typer.Option(None, "--date", help="Day to show (YYYY-MM-DD), defaults to today"),
    passcode: str = PASSCODE_OPTION,
    config_file: Optional[str] = CONFIG_OPTION,
):
    """Show the plan, its score and the visible goals for a day"""
    runtime = _open_session(config_file, passcode)
    try:
        day = iso_day(date) if date else today_iso()
        plan = runtime.planner.get_plan(day)
        _echo_json(
            {
                "date": day,
                "score": scoring.score_plan(plan).to_dict(),
                "habits": [h.to_document() for h in plan.habits],
                "tasks": [t.to_document() for t in plan.tasks],
                "goals": [g.to_document() for g in runtime.goals.visible_goals(day)],
            }
        )
    except ValueError as e:
        typer.echo(f"Invalid date: {e}", err=True)
        raise typer.Exit(1)
    finally:
        _close_session()


def progress(
    passcode: str = PASSCODE_OPTION,
    config_file: Optional[str] = CONFIG_OPTION,
):
    """Show window averages and their deltas"""
    runtime = _open_session(config_file, passcode)
    try:
        day = today_iso()
        _echo_json(
            {
                "date": day,
                "summary": scoring.summarize_progress(
                    runtime.planner.plans(), runtime.goals.get_goals(), day
                ),
                "ranges": runtime.planner.range_progress(day),
            }
        )
    finally:
        _close_session()


def reset(
    section: Section = typer.Argument(..., help="Section to reset"),
    start: Optional[str] = typer.Option(None, help="First day to purge (YYYY-MM-DD)"),
    end: Optional[str] = typer.Option(None, help="Last day to purge, defaults to --start"),
    clear_all: bool = typer.Option(False, "--all", help="Remove everything the section owns"),
    passcode: str = PASSCODE_OPTION,
    config_file: Optional[str] = CONFIG_OPTION,
):
    """Purge a section for a date range or entirely"""
    if not clear_all and not start:
        typer.echo("Pass --start [--end] or --all", err=True)
        raise typer.Exit(2)

    try:
        dates = [] if clear_all else date_range(start, end or start)
    except ValueError as e:
        typer.echo(f"Invalid date: {e}", err=True)
        raise typer.Exit(2)

    runtime = _open_session(config_file, passcode)
    try:
        report = runtime.purge(section, dates, clear_all)
        _echo_json(report.to_dict())
    finally:
        _close_session()


def create_cli() -> typer.Typer:
    app = typer.Typer()

    app.command()(serve)  # Start the remote store
    app.command()(pull)  # Hydrate the local cache
    app.command()(today)  # Show a day's plan
    app.command()(progress)  # Show progress summary
    app.command()(reset)  # Purge a section

    return app


def main():
    """Main function"""
    create_cli()()


if __name__ == "__main__":
    main()
