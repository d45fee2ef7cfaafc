"""
Command-line interface for the feed condenser.

Uses Typer to expose the "run now" trigger plus management of feeds,
the WordPress publish target and the processing log. Loads a .env file
for API keys before reading configuration.
"""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import AppConfig, load_config
from .core.errors import ConfigError, ValidationError
from .core.types import ProcessingLogEntry, PublishTarget
from .llm.providers.factory import create_provider
from .llm.tracing import flush, setup_langfuse
from .logging_utils import setup_llm_logger, setup_logging
from .pipeline import PipelineOrchestrator
from .storage import Storage, open_json_storage

app = typer.Typer(add_completion=False, help="Poll feeds, summarize new articles, publish summaries.")
feeds_app = typer.Typer(help="Manage configured feeds.")
target_app = typer.Typer(help="Manage the WordPress publish target.")
app.add_typer(feeds_app, name="feeds")
app.add_typer(target_app, name="target")

console = Console()

_STATUS_STYLES = {
    "pending": "cyan",
    "unsuitable": "yellow",
    "summarized": "blue",
    "posted": "green",
    "error": "red",
}


@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, help="YAML config file."),
    data_dir: Path | None = typer.Option(None, "--data-dir", help="Directory for the JSON data files."),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
):
    """Load configuration shared by every command."""
    load_dotenv()
    cfg = load_config(str(config) if config else None)
    if data_dir is not None:
        cfg.storage.data_dir = str(data_dir)
    if log_level:
        cfg.logging.level = log_level
    ctx.obj = cfg


def _storage(cfg: AppConfig) -> Storage:
    return open_json_storage(Path(cfg.storage.data_dir), cfg.storage.log_retention)


@app.command()
def run(ctx: typer.Context):
    """Process all feeds now and print the new log entries."""
    cfg: AppConfig = ctx.obj
    log_dir = Path(cfg.logging.log_dir)
    logger = setup_logging(cfg.logging, log_dir)
    llm_logger = setup_llm_logger(cfg.logging, log_dir)
    setup_langfuse(cfg.langfuse)

    try:
        summarizer = create_provider(cfg.provider, cfg.summary, cfg.logging, llm_logger)
    except ConfigError as exc:
        console.print(f"[red]Configuration error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc

    orchestrator = PipelineOrchestrator(_storage(cfg), summarizer, cfg, logger=logger.getChild("pipeline"))
    result = orchestrator.run()
    flush()

    if result.new_log_entries:
        console.print(_log_table(result.new_log_entries, title="New log entries"))
    console.print(result.message)
    if not result.success:
        raise typer.Exit(code=1)


@feeds_app.command("add")
def feeds_add(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Feed URL."),
    name: str | None = typer.Option(None, "--name", "-n", help="Display name."),
):
    """Add a feed to the registry."""
    try:
        feed = _storage(ctx.obj).feeds.add(url, name)
    except ValidationError as exc:
        _print_field_errors(exc)
        raise typer.Exit(code=2) from exc
    console.print(f"Feed added: {escape(feed.label)} ([dim]{feed.id}[/dim])")


@feeds_app.command("list")
def feeds_list(ctx: typer.Context):
    """List feeds in processing order."""
    feeds = _storage(ctx.obj).feeds.list()
    if not feeds:
        console.print("No feeds configured.")
        return
    table = Table(title="Feeds")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("URL")
    table.add_column("Last fetched")
    for feed in feeds:
        table.add_row(feed.id, escape(feed.display_name or ""), escape(feed.url), feed.last_fetched_at or "never")
    console.print(table)


@feeds_app.command("remove")
def feeds_remove(ctx: typer.Context, feed_id: str = typer.Argument(..., help="Feed ID.")):
    """Remove a feed by id."""
    _storage(ctx.obj).feeds.remove(feed_id)
    console.print(f"Feed removed: {feed_id}")


@target_app.command("set")
def target_set(
    ctx: typer.Context,
    site_url: str = typer.Option(..., "--site-url", help="WordPress site URL."),
    username: str = typer.Option(..., "--username", help="WordPress user name."),
    credential: str = typer.Option(
        ...,
        "--credential",
        envvar="WORDPRESS_APP_PASSWORD",
        prompt="Application password",
        hide_input=True,
        help="Application password (or set WORDPRESS_APP_PASSWORD).",
    ),
):
    """Save the WordPress publish target, replacing any previous one."""
    try:
        target = PublishTarget(site_url=site_url, username=username, credential=credential)
    except ValidationError as exc:
        _print_field_errors(exc)
        raise typer.Exit(code=2) from exc
    _storage(ctx.obj).publish_target.save(target)
    console.print("WordPress configuration saved.")


@target_app.command("show")
def target_show(ctx: typer.Context):
    """Show the current publish target without its credential."""
    target = _storage(ctx.obj).publish_target.get()
    if target is None:
        console.print("No WordPress configuration saved. Summaries will not be posted.")
        return
    console.print(f"Site: {target.site_url}\nUser: {target.username}\nCredential: ********")


@app.command("log")
def show_log(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Number of entries to show."),
):
    """Show the most recent processing log entries."""
    entries = _storage(ctx.obj).log.list()[:limit]
    if not entries:
        console.print("Processing log is empty.")
        return
    console.print(_log_table(entries, title="Processing log"))


def _log_table(entries: list[ProcessingLogEntry], title: str) -> Table:
    table = Table(title=title)
    table.add_column("Time", style="dim")
    table.add_column("Status")
    table.add_column("Title")
    table.add_column("Details")
    for entry in entries:
        style = _STATUS_STYLES.get(entry.status, "white")
        details = entry.published_url or entry.error_message or entry.summary or ""
        table.add_row(
            entry.timestamp,
            f"[{style}]{entry.status}[/{style}]",
            escape(entry.article_title),
            escape(details),
        )
    return table


def _print_field_errors(exc: ValidationError) -> None:
    console.print("[red]Invalid input.[/red]")
    for name, problems in exc.field_errors.items():
        for problem in problems:
            console.print(f"  {name}: {problem}")


if __name__ == "__main__":
    app()
