"""Typer CLI entry point for playing truth or dare in the terminal."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional

import structlog
import typer

from ..config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from ..core.catalog import ContentCatalog
from ..core.engine import DrawEngine, DrawResult
from ..core.errors import CatalogUnavailable, Notice, NoticeKind
from ..core.schemas import Category
from ..core.sources import DirectorySource
from ..core.store import FileKeyValueStore, SessionStore, SettingsStore
from ..utils.rng import build_rng
from .narrator import Narrator

LOGGER = structlog.get_logger(__name__)

app = typer.Typer(help="Draw truth or dare prompts from your chosen packages.", no_args_is_help=True)


class Toggle(str, Enum):
    ON = "on"
    OFF = "off"


@dataclass
class Runtime:
    """Everything one command needs, built from configuration."""

    config: AppConfig
    catalog: ContentCatalog
    engine: DrawEngine
    settings: SettingsStore
    narrator: Narrator


def configure_logging(level: int = logging.WARNING) -> None:
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        # Resolve stderr per logger so redirected streams are honoured.
        logger_factory=lambda *_args: structlog.PrintLogger(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def _build_runtime(ctx: typer.Context, *, quiet_resume: bool = True) -> Runtime:
    try:
        app_config = load_config(ctx.obj["config_path"])
    except ValueError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    backend = FileKeyValueStore(app_config.state_dir)
    settings = SettingsStore(backend)
    narrator = Narrator(dark_mode=settings.load().dark_mode)
    source = DirectorySource(app_config.assets_dir)

    try:
        catalog = ContentCatalog.load(source, app_config.catalog_path)
    except CatalogUnavailable as exc:
        narrator.notice(Notice(NoticeKind.CATALOG_UNAVAILABLE, "Error: could not load the prompt packages."))
        raise typer.Exit(code=1) from exc

    def on_notice(notice: Notice) -> None:
        if quiet_resume and notice.kind is NoticeKind.SESSION_RESUMED:
            return
        narrator.notice(notice)

    engine = DrawEngine(
        catalog,
        source,
        SessionStore(backend, ttl_days=app_config.session_ttl_days),
        rng=build_rng(seed=app_config.seed),
        listener=on_notice,
    )
    return Runtime(config=app_config, catalog=catalog, engine=engine, settings=settings, narrator=narrator)


def _resume_or_exit(runtime: Runtime) -> None:
    if not runtime.engine.resume_session():
        typer.echo("No game in progress. Run `truthdare start` first.")
        raise typer.Exit(code=1)


def _show(runtime: Runtime, result: Optional[DrawResult]) -> None:
    if result is None:
        raise typer.Exit(code=1)
    runtime.narrator.card(result)


@app.callback()
def main(
    ctx: typer.Context,
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, help="Path to the JSON configuration file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show engine logs"),
) -> None:
    """Truth or dare with fair, resumable draws."""
    configure_logging(logging.DEBUG if verbose else logging.WARNING)
    ctx.obj = {"config_path": config}


@app.command("packages")
def list_packages(ctx: typer.Context) -> None:
    """List the available packages; selected ones are ticked."""
    runtime = _build_runtime(ctx)
    runtime.narrator.packages(runtime.catalog, runtime.settings.load().selected_package_ids)


@app.command("select")
def select(ctx: typer.Context, package_ids: List[int] = typer.Argument(..., help="Package ids to play with")) -> None:
    """Remember a package selection for the next `start`."""
    runtime = _build_runtime(ctx)
    unknown = [package_id for package_id in package_ids if package_id not in runtime.catalog]
    if unknown:
        typer.echo(f"Unknown package ids: {', '.join(map(str, unknown))}")
        raise typer.Exit(code=1)
    settings = runtime.settings.set_selected(package_ids)
    runtime.narrator.packages(runtime.catalog, settings.selected_package_ids)


@app.command("start")
def start(
    ctx: typer.Context,
    package_ids: Optional[List[int]] = typer.Argument(None, help="Package ids; defaults to the saved selection"),
    new: bool = typer.Option(False, "--new", help="Discard any running game and start over"),
) -> None:
    """Start a game, or continue the running one with a changed selection."""
    runtime = _build_runtime(ctx)
    engine = runtime.engine
    selected = list(package_ids) if package_ids else runtime.settings.load().selected_package_ids
    if package_ids:
        runtime.settings.set_selected(selected)

    snapshot = engine.saved_session()
    if snapshot is not None and not new:
        runtime.narrator.saved_game(snapshot)
        engine.resume_session()
        if engine.reconcile(selected) is None:
            raise typer.Exit(code=1)
    elif not engine.start_session(selected):
        raise typer.Exit(code=1)

    assert engine.session is not None
    runtime.narrator.status(engine.session)


@app.command("truth")
def truth(ctx: typer.Context) -> None:
    """Draw a truth card."""
    runtime = _build_runtime(ctx)
    _resume_or_exit(runtime)
    _show(runtime, runtime.engine.draw(Category.TRUTH))


@app.command("dare")
def dare(ctx: typer.Context) -> None:
    """Draw a dare card."""
    runtime = _build_runtime(ctx)
    _resume_or_exit(runtime)
    _show(runtime, runtime.engine.draw(Category.DARE))


@app.command("pass")
def pass_card(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation"),
) -> None:
    """Swap the last card for another from the same package."""
    runtime = _build_runtime(ctx)
    _resume_or_exit(runtime)
    if not yes and not typer.confirm("Really pass this card?"):
        raise typer.Abort()
    _show(runtime, runtime.engine.pass_card())


@app.command("status")
def status(ctx: typer.Context) -> None:
    """Show the round and the cards left in each package."""
    runtime = _build_runtime(ctx)
    _resume_or_exit(runtime)
    assert runtime.engine.session is not None
    runtime.narrator.status(runtime.engine.session)


@app.command("reset")
def reset(ctx: typer.Context) -> None:
    """Throw away the saved game."""
    runtime = _build_runtime(ctx)
    runtime.engine.abandon()
    typer.echo("Saved game cleared.")


@app.command("dark-mode")
def dark_mode(ctx: typer.Context, state: Toggle = typer.Argument(..., help="on or off")) -> None:
    """Switch the card colours for dark terminals."""
    runtime = _build_runtime(ctx)
    settings = runtime.settings.set_dark_mode(state is Toggle.ON)
    typer.echo(f"Dark mode {'on' if settings.dark_mode else 'off'}.")


@app.command("play")
def play(ctx: typer.Context) -> None:
    """Interactive loop: pick truth, dare or pass until you quit."""
    runtime = _build_runtime(ctx, quiet_resume=False)
    engine = runtime.engine

    snapshot = engine.saved_session()
    resumed = False
    if snapshot is not None:
        runtime.narrator.saved_game(snapshot)
        if typer.confirm("Continue the saved game?", default=True):
            resumed = engine.resume_session()

    if not resumed:
        selected = runtime.settings.load().selected_package_ids
        if not selected:
            runtime.narrator.packages(runtime.catalog)
            answer = typer.prompt("Package ids (comma separated)")
            selected = [int(part) for part in answer.replace(",", " ").split() if part.strip().isdigit()]
            runtime.settings.set_selected(selected)
        if not engine.start_session(selected):
            raise typer.Exit(code=1)

    while True:
        choice = typer.prompt("[t]ruth, [d]are, [p]ass, [s]tatus, [q]uit").strip().lower()[:1]
        if choice == "t":
            result = engine.draw(Category.TRUTH)
        elif choice == "d":
            result = engine.draw(Category.DARE)
        elif choice == "p":
            if not typer.confirm("Really pass this card?"):
                continue
            result = engine.pass_card()
        elif choice == "s":
            assert engine.session is not None
            runtime.narrator.status(engine.session)
            continue
        elif choice == "q":
            typer.echo("Game saved. See you next time!")
            return
        else:
            continue
        if result is not None:
            runtime.narrator.card(result)


if __name__ == "__main__":  # pragma: no cover
    app()
