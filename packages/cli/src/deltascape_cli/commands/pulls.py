"""pulls / store-prs commands — PRs merged during a week."""

from __future__ import annotations

import asyncio

import click
from rich.console import Console

from deltascape_cli.context import (
    get_config,
    get_pipeline,
    get_store,
    get_window,
    require_github_token,
    require_summarizer,
    weeks_ago_option,
)
from deltascape_core.errors import DeltascapeError
from deltascape_core.gh.pull_request import GitHubSource
from deltascape_core.rollup import store_week_pull_reports

console = Console()


@click.command("pulls")
@click.argument("owner")
@click.argument("repo")
@weeks_ago_option
@click.pass_context
def pulls_cmd(ctx, owner: str, repo: str, weeks_ago: int):
    """List the numbers of PRs merged into OWNER/REPO during a week."""
    window = get_window(weeks_ago)
    source = GitHubSource(require_github_token(get_config(ctx)))

    try:
        numbers = asyncio.run(source.list_merged_pulls(owner, repo, window.start, window.end))
    except DeltascapeError as e:
        raise click.ClickException(str(e))

    if not numbers:
        console.print(f"[yellow]No pull requests merged in {owner}/{repo} during {window}.[/yellow]")
        return
    console.print(f"[bold]{len(numbers)}[/bold] pull request(s) merged in {owner}/{repo} during {window}:")
    for number in numbers:
        console.print(f"  #{number}")


@click.command("store-prs")
@click.argument("owner")
@click.argument("repo")
@weeks_ago_option
@click.pass_context
def store_prs_cmd(ctx, owner: str, repo: str, weeks_ago: int):
    """Summarize every PR merged into OWNER/REPO during a week and store the reports.

    \b
    Required environment variables:
      GITHUB_TOKEN         GitHub personal access token (or use gh CLI)
      OPENAI_API_KEY       Required when using --model openai
      ANTHROPIC_API_KEY    Required when using --model anthropic
    """
    config = get_config(ctx)
    window = get_window(weeks_ago)
    source = GitHubSource(require_github_token(config))
    summarizer = require_summarizer(config)

    console.print(f"[cyan]Summarizing pull requests of {owner}/{repo} merged during {window}...[/cyan]")
    try:
        result = asyncio.run(
            store_week_pull_reports(owner, repo, window, source, summarizer, get_store(ctx), get_pipeline(ctx))
        )
    except DeltascapeError as e:
        raise click.ClickException(str(e))

    for report in result.stored:
        console.print(f"  [green]stored[/green]  #{report.number}  {report.title}")
    for number in result.skipped:
        console.print(f"  [yellow]skipped[/yellow] #{number}  not merged")
    for number, error in result.failed.items():
        console.print(f"  [red]failed[/red]  #{number}  {error}")

    console.print(
        f"\n[bold]{len(result.stored)}[/bold] stored, {len(result.skipped)} skipped, {len(result.failed)} failed."
    )
    if result.failed:
        ctx.exit(1)
