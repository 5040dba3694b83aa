"""CLI entry point for deltascape.

Commands:
  pulls        — list PRs merged in a week
  store-prs    — summarize and store every PR merged in a week
  repo-update  — roll a week of stored PR reports into a repository update
  org-update   — roll a week of repository updates into an organisation update
  show         — display stored updates and PR reports
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from deltascape_cli.commands.pulls import pulls_cmd, store_prs_cmd
from deltascape_cli.commands.show import show_cmd
from deltascape_cli.commands.updates import org_update_cmd, repo_update_cmd

console = Console()


def _build_store(config: dict):
    """Instantiate the configured store from .deltascape.yml settings.

    Lives in the CLI so neither deltascape_core nor deltascape_store know
    about the config file format.
    """
    store_type = config.get("store", "sqlite")
    if store_type == "sqlite":
        from deltascape_store.sqlite import SQLiteStore

        return SQLiteStore(db_path=config.get("store_path", ".deltascape.db"))
    raise click.UsageError(f"Unknown store {store_type!r}. Supported: 'sqlite'.")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("deltascape"),
    prog_name="deltascape",
)
@click.option(
    "--config",
    "config_path",
    default=".deltascape.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="DELTASCAPE_CONFIG",
)
@click.option(
    "--model",
    type=click.Choice(["openai", "anthropic"]),
    default=None,
    help="AI model provider. Overrides config file.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, model: str | None, verbose: bool):
    """Weekly AI summaries of merged pull requests."""
    from deltascape_core.config import PipelineConfig, load_config
    from deltascape_cli.auth import resolve_github_token

    _configure_logging(verbose)
    ctx.ensure_object(dict)

    config = load_config(config_path, cli_overrides={"model": model})

    token = resolve_github_token()
    if token:
        config["github_token"] = token

    try:
        pipeline = PipelineConfig.from_config(config)
    except ValueError as e:
        raise click.UsageError(f"Invalid configuration: {e}")

    store = _build_store(config)
    ctx.obj["config"] = config
    ctx.obj["pipeline"] = pipeline
    ctx.obj["store"] = store
    # Released on every exit path, including failed rollups.
    ctx.call_on_close(store.close)


main.add_command(pulls_cmd)
main.add_command(store_prs_cmd)
main.add_command(repo_update_cmd)
main.add_command(org_update_cmd)
main.add_command(show_cmd)
