"""CLI entrypoint for llmci."""

from __future__ import annotations

import json
import logging
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from llmci.analyzer import Analyzer, CollectingReporter, RunStats
from llmci.config import ConfigurationError, load_config
from llmci.schemas import Diagnostic
from llmci.sources import discover_files

app = typer.Typer(
    name="llmci",
    help="Send source files to an LLM for review and report its comments.",
    add_completion=False,
)
console = Console()

EXIT_FAILURES = 1
EXIT_CONFIG = 2


def _setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=True)],
    )


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------

@app.command()
def check(
    paths: List[str] = typer.Argument(..., help="Files or directories to review"),
    patterns: Optional[str] = typer.Option(
        None, "--patterns", "-p", help="Comma-separated glob patterns (e.g. '*.py,*.pyi')"
    ),
    prompt: Optional[str] = typer.Option(None, "--prompt", help="System instruction sent with every file"),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="Chat-completion endpoint URL"),
    api_token: Optional[str] = typer.Option(None, "--api-token", help="Bearer token for the endpoint"),
    model: Optional[str] = typer.Option(None, "--model", help="Model identifier"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Request timeout in seconds (0 = none)"),
    enabled: Optional[bool] = typer.Option(
        None, "--enable/--disable", help="Turn LLM analysis on or off (overrides the config file)"
    ),
    stream: Optional[bool] = typer.Option(None, "--stream/--no-stream", help="Ask the endpoint to stream"),
    output_format: str = typer.Option("text", "--format", help="Output format: text or json"),
    config_file: Optional[str] = typer.Option(None, "--config", help="Path to config YAML"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Review every matching file under PATHS."""
    _setup_logging(verbose)

    if output_format not in ("text", "json"):
        console.print(f"[red]Error: unknown format {output_format!r}[/red]")
        raise typer.Exit(EXIT_CONFIG)

    overrides: dict = {
        "file_patterns": patterns,
        "prompt": prompt,
        "api_url": api_url,
        "api_token": api_token,
        "model": model,
        "timeout": timeout,
        "enabled": enabled,
        "stream": stream,
    }

    reporter = CollectingReporter()
    try:
        cfg = load_config(config_path=config_file, overrides=overrides)
        files = discover_files(paths)
        with console.status(f"Reviewing {len(files)} file(s)..."):
            stats = Analyzer(cfg).run(files, reporter)
    except ConfigurationError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]", soft_wrap=True)
        raise typer.Exit(EXIT_CONFIG)

    if output_format == "json":
        for diag in reporter.diagnostics:
            typer.echo(diag.model_dump_json())
    else:
        _print_text(reporter.diagnostics, stats, enabled=cfg.enabled)

    if stats.failures:
        raise typer.Exit(EXIT_FAILURES)


def _print_text(diagnostics: list[Diagnostic], stats: RunStats, enabled: bool) -> None:
    for diag in diagnostics:
        console.print(f"[bold cyan]{escape(str(diag.position))}[/bold cyan]: {escape(diag.message)}", soft_wrap=True)
        console.print("")

    if enabled:
        table = Table(title="Review Summary")
        table.add_column("Metric", style="cyan")
        table.add_column("Count", style="green", justify="right")
        for key, val in stats.as_dict().items():
            table.add_row(key.replace("_", " ").title(), str(val))
        console.print(table, highlight=False)
    else:
        console.print("[yellow]LLM analysis is disabled.[/yellow]")


# ---------------------------------------------------------------------------
# show-config
# ---------------------------------------------------------------------------

@app.command("show-config")
def show_config(
    config_file: Optional[str] = typer.Option(None, "--config", help="Path to config YAML"),
) -> None:
    """Print the effective configuration (token masked)."""
    try:
        cfg = load_config(config_path=config_file)
    except ConfigurationError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]", soft_wrap=True)
        raise typer.Exit(EXIT_CONFIG)

    table = Table(title="llmci configuration")
    table.add_column("Option", style="cyan")
    table.add_column("Value")
    for key, val in cfg.model_dump().items():
        if key == "api_token":
            val = "(set)" if cfg.api_token.get_secret_value() else "(not set)"
        elif isinstance(val, list):
            val = ", ".join(val)
        table.add_row(key, escape(json.dumps(val) if isinstance(val, bool) else str(val)))
    console.print(table)


if __name__ == "__main__":
    app()
