"""Helpers shared by the commands: pulling collaborators out of the click context."""

from __future__ import annotations

import click

from deltascape_core.config import PipelineConfig
from deltascape_core.rollup import WeekWindow, week_window


def get_config(ctx: click.Context) -> dict:
    return ctx.obj["config"]


def get_pipeline(ctx: click.Context) -> PipelineConfig:
    return ctx.obj["pipeline"]


def get_store(ctx: click.Context):
    return ctx.obj["store"]


def get_window(weeks_ago: int) -> WeekWindow:
    try:
        return week_window(weeks_ago=weeks_ago)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--weeks-ago")


def require_github_token(config: dict) -> str:
    token = config.get("github_token")
    if not token:
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )
    return token


def require_summarizer(config: dict):
    from deltascape_core.providers.factory import get_summarizer

    if config["model"] == "openai" and not config.get("openai_api_key"):
        raise click.UsageError("OPENAI_API_KEY environment variable is not set.")
    if config["model"] == "anthropic" and not config.get("anthropic_api_key"):
        raise click.UsageError("ANTHROPIC_API_KEY environment variable is not set.")
    try:
        return get_summarizer(config)
    except (ValueError, ImportError) as e:
        raise click.UsageError(str(e))


weeks_ago_option = click.option(
    "--weeks-ago",
    default=1,
    show_default=True,
    type=int,
    help="Which Monday-aligned week to process: 1 is last week, 0 the current one.",
)
