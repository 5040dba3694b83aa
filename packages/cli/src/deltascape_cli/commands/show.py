"""show command — display stored weekly updates and PR reports."""

from __future__ import annotations

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from deltascape_cli.context import get_store

console = Console()


@click.command("show")
@click.argument("owner")
@click.argument("repo", required=False)
@click.option("--limit", default=20, show_default=True, help="Maximum number of PR reports to show.")
@click.pass_context
def show_cmd(ctx, owner: str, repo: str | None, limit: int):
    """Show the latest update of OWNER, or of OWNER/REPO with its PR reports."""
    store = get_store(ctx)

    if repo is None:
        org_update = store.latest_org_update(owner)
        if org_update is None:
            console.print(f"[yellow]No organisation updates stored for {owner}.[/yellow]")
            return
        console.print(f"[bold]{org_update.short_update}[/bold]\n")
        console.print(Panel(org_update.update, title=f"{owner} · week of {org_update.week_start_at[:10]}"))
        return

    update = store.latest_repo_update(owner, repo)
    if update is not None:
        console.print(Panel(update.update, title=f"{owner}/{repo} · week of {update.week_start_at[:10]}"))

    reports = store.list_pull_reports(owner, repo, limit=limit)
    if not reports:
        console.print(f"[yellow]No pull request reports stored for {owner}/{repo}.[/yellow]")
        return

    table = Table(title=f"Merged pull requests — {owner}/{repo}", show_header=True, header_style="bold cyan")
    table.add_column("PR", style="bold", width=6)
    table.add_column("Title", max_width=40)
    table.add_column("Author", width=16)
    table.add_column("Merged At", width=20)
    table.add_column("Summary", max_width=60)

    for r in reports:
        table.add_row(
            f"#{r.number}",
            r.title[:40],
            r.author or "",
            r.merged_at[:19].replace("T", " "),
            r.summary,
        )

    console.print(table)
