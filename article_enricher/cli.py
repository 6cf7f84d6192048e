"""
Command-line interface for the Article Enricher.

Uses Typer to provide a CLI with options for the most common configuration
settings. Supports loading .env files for API key configuration.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from .config import load_config
from .errors import EnricherError
from .runner import run_pipeline

try:
    from dotenv import load_dotenv
except ImportError:
    load_dotenv = None

app = typer.Typer(add_completion=False)
console = Console()


@app.callback()
def main() -> None:
    """Enrich an article with a similarity annotation and diff it against the last run."""


@app.command()
def run(
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, readable=True),
    root: Path | None = typer.Option(None, "--root", help="Directory that channel keys resolve against."),
    source: str | None = typer.Option(None, "--source", help="Key of the article to enrich."),
    corpus: str | None = typer.Option(None, "--corpus", help="Key of the prior article corpus."),
    previous: str | None = typer.Option(None, "--previous", help="Key of the previous output."),
    output: str | None = typer.Option(None, "--output", "-o", help="Key to write the output to."),
    diff: str | None = typer.Option(None, "--diff", help="Key to write the diff to."),
    simulate_faults: bool | None = typer.Option(
        None,
        "--simulate-faults/--no-simulate-faults",
        help="Inject storage failures, stalls and truncation.",
    ),
    seed: int | None = typer.Option(None, "--seed", help="Seed for the fault simulator."),
    max_attempts: int | None = typer.Option(
        None, "--max-attempts", min=1, help="Attempts per storage operation."
    ),
    attempt_timeout: float | None = typer.Option(
        None, "--attempt-timeout", help="Seconds allowed per storage attempt."
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
    log_file: bool | None = typer.Option(
        None, "--log-file/--no-log-file", help="Enable or disable file logging."
    ),
    api_key: str | None = typer.Option(
        None,
        "--api-key",
        help="Override provider API key (or set the configured env var / .env).",
    ),
):
    """Run one enrichment.

    Reads the source article and prior corpus, asks the similarity
    provider for the closest prior article, diffs against the previous
    output and writes the new output and diff.

    Exits with status 1 if any step fails after its retries.
    """
    # Load environment variables from .env if available
    if load_dotenv is not None:
        load_dotenv()

    cfg = load_config(str(config) if config else None)

    # Override with CLI options
    if api_key:
        cfg.provider.api_key = api_key
    if root is not None:
        cfg.channel.root = str(root)
    if source:
        cfg.keys.source = source
    if corpus:
        cfg.keys.corpus = corpus
    if previous:
        cfg.keys.previous_output = previous
    if output:
        cfg.keys.output = output
    if diff:
        cfg.keys.diff = diff
    if simulate_faults is not None:
        cfg.channel.simulate_faults = simulate_faults
    if seed is not None:
        cfg.channel.seed = seed
    if max_attempts is not None:
        cfg.retry.max_attempts = max_attempts
    if attempt_timeout is not None:
        cfg.retry.attempt_timeout_seconds = attempt_timeout
    if log_level:
        cfg.logging.level = log_level
    if log_file is not None:
        cfg.logging.file = log_file

    try:
        run_pipeline(cfg, console=console)
    except (EnricherError, ValueError, OSError) as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    console.print("Files written successfully.")


if __name__ == "__main__":
    app()
