"""
topic-explorer CLI: explore a topic with a local Ollama model from the terminal.

Registered as `topic-explorer` console script via pyproject.toml.
"""

import asyncio
import json
import logging

import click

from .config import load_config
from .console import ClickConsole
from .exceptions import ExplorerError
from .explorer import explore

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ── Main group ────────────────────────────────────────────────────────────────


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="topic-explorer")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="TOML config file (defaults to $TOPIC_EXPLORER_CONFIG or ~/.config/topic-explorer/config.toml).",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="warning",
    show_default=True,
    help="Logging level for diagnostics on stderr.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, log_level: str) -> None:
    """Topic Explorer: long-form explanations and follow-up chat from a local Ollama model."""
    _configure_logging(log_level)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


# ── Explore ───────────────────────────────────────────────────────────────────


@cli.command(name="explore")
@click.argument("topic", required=False)
@click.option("--model", default=None, help="Model tag to use (overrides OLLAMA_MODEL).")
@click.option("--base-url", default=None, help="Ollama base URL (overrides OLLAMA_BASE_URL).")
@click.option(
    "--notes",
    "notes_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="File that saved notes are appended to.",
)
@click.pass_context
def explore_cmd(
    ctx: click.Context,
    topic: str | None,
    model: str | None,
    base_url: str | None,
    notes_path: str | None,
) -> None:
    """Explore a topic, then scroll, save, or ask follow-up questions.

    \b
    Examples:
        topic-explorer explore
        topic-explorer explore "Entropy"
        topic-explorer explore "Raft consensus" --model llama3:8b
    """
    config = load_config(
        ctx.obj.get("config_path"),
        model=model,
        base_url=base_url,
        notes_path=notes_path,
    )
    asyncio.run(explore(ClickConsole(), config, topic=topic))


# ── Config ────────────────────────────────────────────────────────────────────


@cli.command(name="config")
@click.option("--json", "as_json", is_flag=True, help="Print the configuration as JSON.")
@click.pass_context
def config_cmd(ctx: click.Context, as_json: bool) -> None:
    """Show the effective configuration (flags > environment > file > defaults)."""
    config = load_config(ctx.obj.get("config_path"))
    values = config.as_dict()
    if as_json:
        click.echo(json.dumps(values, indent=2))
        return

    click.secho("\nEffective configuration:\n", fg="cyan", bold=True)
    for key, value in values.items():
        click.echo(f"  {key:<20}{value if value is not None else '-'}")
    click.echo()


# ── Entry point ───────────────────────────────────────────────────────────────


def cli_entry() -> None:
    """Entry point for the console_scripts."""
    try:
        cli(obj={})
    except ExplorerError as exc:
        click.secho(str(exc), fg="red", err=True)
        raise SystemExit(2) from exc


if __name__ == "__main__":
    cli_entry()
