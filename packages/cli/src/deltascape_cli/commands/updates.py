"""repo-update / org-update commands — weekly rollups of stored summaries."""

from __future__ import annotations

import asyncio

import click
from rich.console import Console
from rich.panel import Panel

from deltascape_cli.context import get_config, get_pipeline, get_store, get_window, require_summarizer, weeks_ago_option
from deltascape_core.errors import DeltascapeError
from deltascape_core.rollup import store_org_week_update, store_repo_week_update

console = Console()


@click.command("repo-update")
@click.argument("owner")
@click.argument("repo")
@weeks_ago_option
@click.pass_context
def repo_update_cmd(ctx, owner: str, repo: str, weeks_ago: int):
    """Roll the stored PR reports of OWNER/REPO for a week into one update.

    Run `store-prs` for the same week first.
    """
    window = get_window(weeks_ago)
    summarizer = require_summarizer(get_config(ctx))

    try:
        update = asyncio.run(
            store_repo_week_update(owner, repo, window, summarizer, get_store(ctx), get_pipeline(ctx))
        )
    except DeltascapeError as e:
        raise click.ClickException(str(e))

    if update is None:
        console.print(f"[yellow]No stored pull request reports for {owner}/{repo} during {window}.[/yellow]")
        return
    console.print(Panel(update.update, title=f"{owner}/{repo} · week of {window.start:%Y-%m-%d}"))


@click.command("org-update")
@click.argument("owner")
@weeks_ago_option
@click.pass_context
def org_update_cmd(ctx, owner: str, weeks_ago: int):
    """Roll the stored repository updates of OWNER for a week into one update.

    Run `repo-update` for each repository of the week first.
    """
    window = get_window(weeks_ago)
    summarizer = require_summarizer(get_config(ctx))

    try:
        update = asyncio.run(store_org_week_update(owner, window, summarizer, get_store(ctx), get_pipeline(ctx)))
    except DeltascapeError as e:
        raise click.ClickException(str(e))

    if update is None:
        console.print(f"[yellow]No stored repository updates for {owner} during {window}.[/yellow]")
        return
    console.print(f"[bold]{update.short_update}[/bold]\n")
    console.print(Panel(update.update, title=f"{owner} · week of {window.start:%Y-%m-%d}"))
