"""
Command Line Interface for Tokenscope.

Commands:
    - scan: Scan configured repositories for token usage
    - changes: Incremental change detection on the design-system repository
    - recent: Preview design-system changes of the last N hours
    - reset-pointer: Forget the last processed design-system commit
    - report: Summarize the most recent scan report
    - config-show: Show current configuration

Example Usage:
    $ tokenscope --config tokenscope.json scan --team "Marketing"
    $ tokenscope --config tokenscope.json changes
    $ tokenscope recent --hours 48 --repo-path ~/src/design-system

Author: Tokenscope Team
"""

import json
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from .config import Config, get_config, set_config
from .exceptions import ConfigurationError
from .logging import setup_logging
from .services.change_service import DesignSystemChangeService, IncrementalScanResult
from .services.report import ScanReportService
from .services.scanner import RepositoryScanOrchestrator

console = Console()


def _fail(message: str) -> None:
    console.print(f"[red]Error: {message}[/red]")
    raise SystemExit(1)


def _design_system_path(repo_path: Optional[str]) -> Path:
    if repo_path:
        return Path(repo_path)
    config = get_config()
    if config.design_system_path is None:
        _fail("design_system_path not configured; pass --repo-path")
    return config.design_system_path


@click.group()
@click.option(
    "--config", "config_file",
    type=click.Path(exists=True, dir_okay=False),
    help="JSON configuration file",
)
@click.option("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
@click.pass_context
def main(ctx, config_file, log_level):
    """Tokenscope - design token usage and change tracking.

    \b
    Quick Start:
        # Scan every configured repository
        tokenscope --config tokenscope.json scan

        # What changed in the design system since the last run?
        tokenscope --config tokenscope.json changes
    """
    ctx.ensure_object(dict)
    setup_logging(log_level=log_level)

    if config_file:
        try:
            set_config(Config.from_file(Path(config_file)))
        except ConfigurationError as e:
            _fail(str(e))


@main.command()
@click.option("--team", "-t", help="Only scan repositories owned by this team")
@click.option("--repo", "-r", "repo_names", multiple=True, help="Only scan these repositories (by name)")
@click.option("--no-report", is_flag=True, help="Do not write a JSON scan report")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
def scan(team, repo_names, no_report, as_json):
    """Scan repositories for design token usage.

    \b
    Examples:
        tokenscope scan
        tokenscope scan --team "Design System"
        tokenscope scan -r marketing-website -r checkout-app --no-report
    """
    config = get_config()

    targets = config.repositories_for_team(team) if team else list(config.repositories)
    if repo_names:
        wanted = set(repo_names)
        targets = [t for t in targets if t.name in wanted]

    if not targets:
        console.print("[yellow]No repositories match the selection[/yellow]")
        return

    orchestrator = RepositoryScanOrchestrator(config)
    results = orchestrator.scan_all(targets)

    report_path = None
    if not no_report:
        report_path = orchestrator.report_service.write_report(results)

    if as_json:
        console.print_json(json.dumps([r.to_dict() for r in results], default=str))
        return

    table = Table(title="Token Usage")
    table.add_column("Repository", style="cyan")
    table.add_column("Team")
    table.add_column("Files", justify="right")
    table.add_column("Usage", justify="right", style="green")
    table.add_column("Unique", justify="right")
    table.add_column("Coverage", justify="right")
    table.add_column("Top Token", style="magenta")
    table.add_column("Errors", justify="right")

    for result in results:
        table.add_row(
            result.repository.name,
            result.repository.team,
            str(result.summary.total_files),
            str(result.total_usage),
            str(result.summary.unique_tokens),
            f"{result.coverage}%",
            result.summary.most_used_token or "[dim]-[/dim]",
            f"[red]{len(result.errors)}[/red]" if result.errors else "0",
        )

    console.print(table)

    for result in results:
        if result.errors and not result.summary.total_files:
            console.print(f"[red]  {result.repository.name}: {result.errors[0]}[/red]")

    if report_path:
        console.print(f"\n[dim]Report written to {report_path}[/dim]")


def _print_changes(result: IncrementalScanResult) -> None:
    if not result.success:
        _fail(result.message)

    console.print(f"[green]{result.message}[/green]")
    if not result.commits:
        return

    commits_table = Table(title="Commits")
    commits_table.add_column("Commit", style="cyan")
    commits_table.add_column("Author")
    commits_table.add_column("Date", style="dim")
    commits_table.add_column("Message")
    commits_table.add_column("Token Files", justify="right")
    for commit in result.commits:
        commits_table.add_row(
            commit.short_hash, commit.author, commit.date, commit.message, str(len(commit.changes))
        )
    console.print(commits_table)

    if result.token_changes:
        changes_table = Table(title="Token Changes")
        changes_table.add_column("Change")
        changes_table.add_column("Token", style="magenta")
        changes_table.add_column("Category")
        changes_table.add_column("Old", style="red")
        changes_table.add_column("New", style="green")
        changes_table.add_column("File", style="dim")
        for delta in result.token_changes:
            changes_table.add_row(
                delta.change_type.value,
                delta.token_name,
                delta.category,
                delta.old_value or "",
                delta.new_value or "",
                delta.file_path,
            )
        console.print(changes_table)


@main.command()
@click.option("--repo-path", type=click.Path(exists=True, file_okay=False), help="Design-system checkout")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
def changes(repo_path, as_json):
    """Detect token changes committed since the last run.

    Advances the stored commit pointer only when the whole range was
    processed successfully.
    """
    service = DesignSystemChangeService(get_config().git)
    result = service.perform_incremental_scan(_design_system_path(repo_path))

    if as_json:
        console.print_json(json.dumps(result.to_dict(), default=str))
        if not result.success:
            raise SystemExit(1)
        return
    _print_changes(result)


@main.command()
@click.option("--hours", "-h", type=int, default=None, help="Look-back window in hours (default 24)")
@click.option("--repo-path", type=click.Path(exists=True, file_okay=False), help="Design-system checkout")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
def recent(hours, repo_path, as_json):
    """Preview recent design-system changes without moving the pointer."""
    service = DesignSystemChangeService(get_config().git)
    result = service.get_recent_changes(_design_system_path(repo_path), hours)

    if as_json:
        console.print_json(json.dumps(result.to_dict(), default=str))
        if not result.success:
            raise SystemExit(1)
        return
    _print_changes(result)


@main.command("reset-pointer")
@click.option("--repo-path", type=click.Path(exists=True, file_okay=False), help="Design-system checkout")
@click.option("--force", is_flag=True, help="Skip confirmation prompt")
def reset_pointer(repo_path, force):
    """Forget the last processed commit.

    The next 'changes' run bootstraps again and may report commits that
    were already announced.
    """
    path = _design_system_path(repo_path)
    if not force and not click.confirm(f"Reset the commit pointer of {path}?"):
        console.print("[dim]Cancelled.[/dim]")
        return

    DesignSystemChangeService(get_config().git).reset_pointer(path)
    console.print(f"[green]✓ Commit pointer reset for {path}[/green]")


@main.command()
def report():
    """Summarize the most recent scan report."""
    config = get_config()
    latest = ScanReportService(config.scan.output_path).latest_report()

    if latest is None:
        console.print(f"[yellow]No scan reports found in {config.scan.output_path}[/yellow]")
        return

    summary = latest.get("summary", {})

    console.print(f"\n[bold]Scan {latest['scan_id']}[/bold] [dim]{latest['scan_date']}[/dim]\n")

    table = Table()
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Repositories", str(latest["total_repositories"]))
    table.add_row("Token Usage", str(latest["total_tokens_found"]))
    table.add_row("Unique Tokens", str(latest["total_unique_tokens"]))
    table.add_row("Average Coverage", f"{summary.get('average_coverage', 0)}%")
    console.print(table)

    top_tokens = summary.get("top_tokens", [])
    if top_tokens:
        console.print("\n[bold]Top Tokens:[/bold]")
        top_table = Table()
        top_table.add_column("Token", style="magenta")
        top_table.add_column("Category")
        top_table.add_column("Usage", justify="right")
        for token in top_tokens:
            top_table.add_row(token["name"], token["category"], str(token["usage"]))
        console.print(top_table)

    team_usage = summary.get("team_usage", {})
    if team_usage:
        console.print("\n[bold]Usage by Team:[/bold]")
        team_table = Table()
        team_table.add_column("Team")
        team_table.add_column("Usage", justify="right")
        for team, usage in sorted(team_usage.items(), key=lambda x: -x[1]):
            team_table.add_row(team, str(usage))
        console.print(team_table)


@main.command("config-show")
def config_show():
    """Show current configuration."""
    config = get_config()

    console.print("\n[bold]Tokenscope Configuration[/bold]\n")

    table = Table()
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Data Directory", str(config.data_dir))
    table.add_row("Report Directory", str(config.scan.output_path))
    table.add_row("Design System", str(config.design_system_path) if config.design_system_path else "[dim]Not set[/dim]")
    table.add_row("Token Formats", ", ".join(f.name for f in config.scan.token_formats))
    table.add_row("Include Patterns", ", ".join(config.scan.include_patterns))
    table.add_row("Exclude Patterns", ", ".join(config.scan.exclude_patterns[:5]) +
                  ("..." if len(config.scan.exclude_patterns) > 5 else ""))
    table.add_row("Workers", f"{config.scan.max_workers} repositories / {config.scan.file_workers} files")
    table.add_row("Git Timeout", f"{config.git.timeout_seconds}s")
    table.add_row("Pointer Directory", str(config.git.state_dir))
    table.add_row("Bootstrap", config.git.bootstrap.value)

    console.print(table)

    if config.repositories:
        console.print("\n[bold]Repositories[/bold]\n")
        repos_table = Table()
        repos_table.add_column("Repository", style="cyan")
        repos_table.add_column("Team")
        repos_table.add_column("Kind")
        repos_table.add_column("Source", style="dim")
        for repo in config.repositories:
            repos_table.add_row(repo.name, repo.team, repo.kind.value, repo.url)
        console.print(repos_table)
    else:
        console.print("\n[yellow]No repositories configured[/yellow]")


if __name__ == "__main__":
    main()
