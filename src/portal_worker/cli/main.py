"""
Main CLI application for the portal automation worker.

Provides the command-line interface for:
- Serving the HTTP worker
- Running a precheck or a pipeline once, without the server
- Calling the search and expansion adapters
- Managing configuration
"""

import asyncio
import base64
import json
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from portal_worker import __version__
from portal_worker.config import Settings, load_config
from portal_worker.core.exceptions import PortalWorkerError
from portal_worker.utils.logging import setup_logging, get_logger

# Initialize Typer app
app = typer.Typer(
    name="portal-worker",
    help="Portal Automation Worker - discover, precheck and automate portal pages",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
logger = get_logger(__name__)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(
            f"[bold blue]Portal Automation Worker[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file",
        exists=True,
        dir_okay=False,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Enable verbose logging",
    ),
) -> None:
    """
    Portal Automation Worker.

    Use 'portal-worker --help' for command list.
    """
    ctx.obj = {"config_file": config_file, "verbose": verbose}


def _settings(ctx: typer.Context, headless: bool | None = None) -> Settings:
    """Load settings once per invocation and configure logging."""
    options = ctx.obj or {}

    try:
        settings = load_config(options.get("config_file"))
    except PortalWorkerError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(2)

    if headless is not None:
        settings = settings.model_copy(update={
            "browser": settings.browser.model_copy(update={"headless": headless}),
        })

    setup_logging(settings.logging, level="DEBUG" if options.get("verbose") else None)
    return settings


@app.command()
def serve(
    ctx: typer.Context,
    host: Optional[str] = typer.Option(
        None,
        "--host",
        help="Interface to bind (defaults to server.host)",
    ),
    port: Optional[int] = typer.Option(
        None,
        "--port",
        "-p",
        help="Port to listen on (defaults to server.port)",
        min=1,
        max=65535,
    ),
) -> None:
    """
    Run the HTTP worker.

    Example:
        portal-worker serve --port 10000
    """
    from portal_worker.server import run_server

    settings = _settings(ctx)
    run_server(settings, host=host, port=port)


@app.command()
def precheck(
    ctx: typer.Context,
    url: str = typer.Argument(
        ...,
        help="Page URL to classify",
    ),
    headless: bool = typer.Option(
        True,
        "--headless/--no-headless",
        help="Run browser in headless mode",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the raw result as JSON",
    ),
) -> None:
    """
    Classify how automatable a page is.

    Example:
        portal-worker precheck https://example.gov.in/apply
    """
    settings = _settings(ctx, headless=headless)

    try:
        with console.status("[cyan]Loading page..."):
            result = asyncio.run(_precheck_async(settings, url))
    except PortalWorkerError as e:
        console.print(f"[red]Precheck failed:[/red] {e}")
        raise typer.Exit(1)

    if as_json:
        console.print_json(data=result.to_dict())
        return

    table = Table(title="Precheck", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("URL", result.url)
    table.add_row("Category", result.category.value)
    table.add_row("Score", str(result.auto_score))
    table.add_row("PDF links", "\n".join(result.pdf_links) or "-")
    table.add_row("Apply links", "\n".join(result.apply_urls) or "-")
    console.print(table)


async def _precheck_async(settings: Settings, url: str):
    from portal_worker.browser import SessionManager
    from portal_worker.precheck import PageClassifier

    sessions = SessionManager(settings.browser, max_concurrent=1)
    classifier = PageClassifier(settings.precheck)

    async with sessions.session() as session:
        return await classifier.classify(session, url)


@app.command()
def run(
    ctx: typer.Context,
    pipeline_file: Path = typer.Argument(
        ...,
        help="JSON file with a step list or an object with a 'pipeline' list",
        exists=True,
        dir_okay=False,
    ),
    headless: bool = typer.Option(
        True,
        "--headless/--no-headless",
        help="Run browser in headless mode",
    ),
    screenshots: Optional[Path] = typer.Option(
        None,
        "--screenshots",
        "-s",
        help="Directory to write screenshot steps to as PNG files",
        file_okay=False,
    ),
) -> None:
    """
    Execute a pipeline file against a fresh browser session.

    Example:
        portal-worker run steps.json --screenshots ./shots
    """
    from portal_worker.pipeline import parse_pipeline

    settings = _settings(ctx, headless=headless)

    try:
        raw = json.loads(pipeline_file.read_text(encoding="utf-8"))
    except ValueError as e:
        console.print(f"[red]Invalid JSON:[/red] {e}")
        raise typer.Exit(2)

    if isinstance(raw, dict):
        raw = raw.get("pipeline")

    try:
        steps = parse_pipeline(raw)
        pipeline_run = asyncio.run(_run_async(settings, steps))
    except PortalWorkerError as e:
        console.print(f"[red]Pipeline failed:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title=f"Run {pipeline_run.run_id}", show_header=True)
    table.add_column("#", style="dim", width=3)
    table.add_column("Action")
    table.add_column("Status")
    table.add_column("Detail")

    for i, step in enumerate(pipeline_run.steps, 1):
        detail = escape(step.error or "")
        shot = step.data.get("screenshot")
        if shot and screenshots is not None:
            detail = str(_write_screenshot(screenshots, pipeline_run.run_id, i, shot))
        table.add_row(
            str(i),
            step.action or "-",
            "[green]ok[/green]" if step.ok else "[red]failed[/red]",
            detail,
        )

    console.print(table)
    console.print(
        f"{len(pipeline_run.steps)}/{len(steps)} step(s) attempted")

    if not pipeline_run.ok:
        raise typer.Exit(1)


async def _run_async(settings: Settings, steps: list):
    from portal_worker.browser import SessionManager
    from portal_worker.pipeline import ActionInterpreter

    sessions = SessionManager(settings.browser, max_concurrent=1)
    interpreter = ActionInterpreter(settings.browser)

    async with sessions.session() as session:
        return await interpreter.execute(session, steps)


def _write_screenshot(directory: Path, run_id: str, index: int, data: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{run_id}-{index:02d}.png"
    path.write_bytes(base64.b64decode(data))
    return path


@app.command()
def search(
    ctx: typer.Context,
    query: str = typer.Argument(
        ...,
        help="Search query",
    ),
    limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-l",
        help="Maximum results (1-10)",
    ),
) -> None:
    """
    Find candidate portal URLs with the search API.

    Example:
        portal-worker search "income certificate apply online"
    """
    from portal_worker.adapters import PortalSearchClient

    settings = _settings(ctx)
    client = PortalSearchClient(settings.search)

    if not client.is_configured:
        console.print("[yellow]Search API not configured; no results[/yellow]")
        return

    try:
        results = asyncio.run(client.search(query, limit=limit))
    except PortalWorkerError as e:
        console.print(f"[red]Search failed:[/red] {e}")
        raise typer.Exit(1)

    if not results:
        console.print("[yellow]No results found[/yellow]")
        return

    table = Table(
        title=f"Search Results ({len(results)} found)", show_header=True)
    table.add_column("#", style="dim", width=3)
    table.add_column("Title")
    table.add_column("Link", style="cyan")

    for i, result in enumerate(results, 1):
        table.add_row(str(i), result.title, result.link)

    console.print(table)


@app.command()
def expand(
    ctx: typer.Context,
    service_name: str = typer.Argument(
        ...,
        help="Service name to expand",
    ),
    variant: Optional[str] = typer.Option(
        None,
        "--variant",
        help="Variant type (e.g. new, renewal, correction)",
    ),
) -> None:
    """
    Expand a service into related variant flows.

    Example:
        portal-worker expand "Birth Certificate" --variant correction
    """
    from portal_worker.adapters import ExpansionClient

    settings = _settings(ctx)
    client = ExpansionClient(settings.text_generation)

    try:
        expansions = asyncio.run(client.expand(service_name, variant))
    except PortalWorkerError as e:
        console.print(f"[red]Expansion failed:[/red] {e}")
        raise typer.Exit(1)

    console.print_json(data=expansions)


@app.command()
def config(
    ctx: typer.Context,
    show: bool = typer.Option(
        False,
        "--show",
        "-s",
        help="Show current configuration",
    ),
    init: bool = typer.Option(
        False,
        "--init",
        help="Create default configuration file",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output path for config file",
    ),
) -> None:
    """
    Configuration management.

    View or initialize configuration files.

    Examples:
        portal-worker config --show
        portal-worker config --init --output ./worker.yaml
    """
    if init:
        _init_config(output)
    elif show:
        _show_config(_settings(ctx))
    else:
        console.print(
            "Use --show to view config or --init to create default config")


def _redact(values: dict[str, Any]) -> dict[str, Any]:
    secret_keys = {"secret", "api_key"}
    return {
        key: ("***" if key in secret_keys and value else value)
        for key, value in values.items()
    }


def _show_config(settings: Settings) -> None:
    """Show current configuration with secrets masked."""
    config_dict = settings.model_dump(mode="json")

    console.print(Panel(
        "[bold]Current Configuration[/bold]",
        border_style="blue",
    ))

    for section, values in config_dict.items():
        console.print(f"\n[bold cyan]{section}:[/bold cyan]")
        for key, value in _redact(values).items():
            console.print(f"  {key}: [dim]{escape(str(value))}[/dim]")


def _init_config(output: Optional[Path]) -> None:
    """Create default configuration file."""
    import yaml

    config_dict = Settings().model_dump(mode="json")
    output_path = output or Path("config.yaml")

    if output_path.exists():
        if not typer.confirm(f"File {output_path} exists. Overwrite?"):
            raise typer.Exit(0)

    with open(output_path, "w", encoding="utf-8") as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)

    console.print(f"[green]✓[/green] Configuration saved to: {output_path}")


if __name__ == "__main__":
    app()
