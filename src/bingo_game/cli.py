from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.table import Table

from .autoplay import run_simulation
from .calls import LETTERS, letter_for
from .card import layout_rows
from .catalog import CardCatalog, default_catalog, load_catalog
from .config import SessionSettings, resolve_parameters, seed_of
from .errors import UnknownCard
from .logging_setup import make_console, setup_logging
from .rng import create_rng
from .serialize import build_run_meta, emit_catalog_json, emit_transcript_json
from .version import __version__

app = typer.Typer(help="Single-player bingo game engine CLI")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(0)


@app.callback()
def common_options(
    version: bool = typer.Option(
        False,
        "--version",
        help="Show application version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Global options."""


def _resolve(config: Optional[str], overrides: dict) -> tuple[dict, str]:
    try:
        resolved, params_hash, _cfg_path = resolve_parameters(
            config_path_str=config, cli_overrides=overrides
        )
    except (FileNotFoundError, ValueError, yaml.YAMLError) as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    setup_logging(
        level=str(resolved.get("log_level", "INFO")),
        log_file=resolved.get("log_file"),
        json_format=(str(resolved.get("log_format", "text")) == "json"),
        colors=str(resolved.get("colors", "auto")),
    )
    return resolved, params_hash


def _catalog_from(resolved: dict) -> CardCatalog:
    path = resolved.get("catalog_path")
    try:
        if path:
            return load_catalog(Path(path))
        return default_catalog(int(resolved.get("catalog_seed")))
    except (FileNotFoundError, ValueError, yaml.YAMLError) as exc:
        typer.echo(f"Catalog error: {exc}", err=True)
        raise typer.Exit(code=2) from exc


def _card_table(title: str, rows: list) -> Table:
    table = Table(title=title, show_lines=True)
    for letter in LETTERS:
        table.add_column(letter, justify="center")
    for row in rows:
        table.add_row(*row)
    return table


@app.command()
def simulate(
    config: str = typer.Option(None, "--config", help="Path to config file (YAML/JSON)"),
    card: int = typer.Option(None, "--card", help="Card id to play (random when omitted)"),
    spectator: bool = typer.Option(False, "--spectator", help="Watch without a card"),
    no_claim: bool = typer.Option(False, "--no-claim", help="Mark numbers but never claim"),
    seed: int = typer.Option(None, "--seed", help="Seed for draws and the selection board"),
    stake: int = typer.Option(None, "--stake", help="Stake shown for the session"),
    game_seconds: int = typer.Option(None, "--game-seconds", help="Game duration"),
    out: str = typer.Option(None, "--out", help="Write a JSON transcript here"),
    force: bool = typer.Option(False, "--force", help="Overwrite the transcript if it exists"),
    colors: str = typer.Option(None, "--colors", help="auto|always|never"),
    log_level: str = typer.Option(None, "--log-level", help="DEBUG|INFO|WARN|ERROR"),
) -> None:
    """Play one round on a virtual clock with an auto-marking player."""
    overrides: dict = {}
    if seed is not None:
        overrides["seed.value"] = seed
    if stake is not None:
        overrides["stake"] = stake
    if game_seconds is not None:
        overrides["game_seconds"] = game_seconds
    if out:
        overrides["out_transcript"] = out
    if colors:
        overrides["colors"] = colors
    if log_level:
        overrides["log_level"] = log_level

    resolved, params_hash = _resolve(config, overrides)
    try:
        settings = SessionSettings.from_resolved(resolved)
        engine_name, seed_value = seed_of(resolved)
        rng = create_rng(engine_name, seed_value)
    except (ValueError, RuntimeError) as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    cards = _catalog_from(resolved)

    result = run_simulation(
        settings=settings,
        catalog=cards,
        rng=rng,
        card_id=card,
        spectator=spectator,
        claim=not no_claim,
    )

    console = make_console(str(resolved.get("colors", "auto")))
    who = f"card {result.card_id}" if result.card_id else "spectator"
    console.print(f"[bold]Stake {settings.stake}[/bold], playing as {who}")
    calls = ", ".join(f"{letter_for(n)}-{n}" for n in result.calls) or "none"
    console.print(f"Calls ({len(result.calls)}): {calls}")
    if result.card_id is not None:
        layout = cards.get(result.card_id)
        console.print(_card_table(f"Card {result.card_id}", layout_rows(layout, result.marked)))
    console.print(f"Outcome: [bold]{result.outcome}[/bold] after {result.elapsed:.0f}s")

    out_path = resolved.get("out_transcript")
    if out_path:
        run_meta = build_run_meta(
            app_version=__version__,
            params_hash=params_hash,
            seed=seed_value,
            rng_engine=engine_name,
        )
        try:
            emit_transcript_json(
                Path(out_path),
                events=result.events,
                summary=result.summary(),
                run_meta=run_meta,
                mkdirs=True,
                overwrite=force,
            )
        except FileExistsError as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(code=1) from exc
        typer.echo(f"Transcript written to {out_path}")


@app.command()
def catalog(
    config: str = typer.Option(None, "--config", help="Path to config file (YAML/JSON)"),
    out: str = typer.Option(None, "--out", help="Write the catalog as JSON"),
    check: str = typer.Option(None, "--check", help="Validate a catalog file and exit"),
    force: bool = typer.Option(False, "--force", help="Overwrite outputs if they exist"),
) -> None:
    """Export the card catalog or validate a catalog file."""
    resolved, _hash = _resolve(config, {})
    if check:
        try:
            checked = load_catalog(Path(check))
        except (FileNotFoundError, ValueError, yaml.YAMLError) as exc:
            typer.echo(f"Invalid catalog: {exc}", err=True)
            raise typer.Exit(code=1) from exc
        typer.echo(f"OK: {len(checked)} cards")
        raise typer.Exit(code=0)

    cards = _catalog_from(resolved)
    if not out:
        ids = list(cards)
        span = f" (ids {ids[0]}..{ids[-1]})" if ids else ""
        typer.echo(f"{len(cards)} cards{span}")
        raise typer.Exit(code=0)
    try:
        emit_catalog_json(Path(out), catalog=cards, mkdirs=True, overwrite=force)
    except FileExistsError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"Wrote {len(cards)} cards to {out}")


@app.command("show-card")
def show_card(
    card_id: int = typer.Argument(..., help="Card id"),
    config: str = typer.Option(None, "--config", help="Path to config file (YAML/JSON)"),
) -> None:
    """Print one catalog card."""
    resolved, _hash = _resolve(config, {})
    cards = _catalog_from(resolved)
    try:
        layout = cards.get(card_id)
    except UnknownCard as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    console = make_console(str(resolved.get("colors", "auto")))
    console.print(_card_table(f"Card {card_id}", layout_rows(layout)))


def main(_argv: list[str] | None = None) -> int:
    try:
        app(standalone_mode=True)
        return 0
    except SystemExit as e:
        return int(e.code) if e.code is not None else 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
