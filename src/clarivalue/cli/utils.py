"""
Shared CLI utilities and decorators for ClariValue
"""

import asyncio
import functools
import logging
import os
import sys
from typing import Callable, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from clarivalue.domain.models.valuation import ValuationOutcome

console = Console()


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None):
    """
    Configure application logging.

    Use CLARIVALUE_LOG_PROFILE=debug to keep the per-period math logs at INFO.
    """
    profile = os.getenv("CLARIVALUE_LOG_PROFILE", "prod").strip().lower()
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    handlers = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=numeric_level,
        format=log_format,
        handlers=handlers,
        force=True,
    )

    # Quiet noisy third-party loggers
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    if profile != "debug" and numeric_level >= logging.INFO:
        for name in ("clarivalue.domain.services.valuation.method_aggregator",):
            logging.getLogger(name).setLevel(logging.WARNING)


def async_command(f: Callable) -> Callable:
    """Decorator to run async functions in Click commands"""

    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        return asyncio.run(f(*args, **kwargs))

    return wrapper


def error_exit(message: str, code: int = 1):
    """Print error message and exit"""
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(code)


def format_currency(value: Optional[float], symbol: str = "€") -> str:
    """Format a value as currency"""
    if value is None:
        return "N/A"
    if abs(value) >= 1_000_000_000:
        return f"{value/1_000_000_000:.2f}B {symbol}"
    if abs(value) >= 1_000_000:
        return f"{value/1_000_000:.2f}M {symbol}"
    if abs(value) >= 1_000:
        return f"{value/1_000:.1f}K {symbol}"
    return f"{value:.0f} {symbol}"


def render_outcome(outcome: ValuationOutcome, company_name: Optional[str] = None):
    """Print a valuation outcome as rich tables"""
    title = f"Valuation: {company_name}" if company_name else "Valuation"
    console.print(
        Panel(
            f"[bold green]{format_currency(outcome.most_likely_value)}[/bold green]\n"
            f"Range {format_currency(outcome.range.low)} - {format_currency(outcome.range.high)}\n"
            f"Methods in average: {outcome.methods_used_count}",
            title=title,
        )
    )

    table = Table(title="Fiscal periods")
    table.add_column("Period end", style="cyan")
    table.add_column("Most likely", justify="right")
    table.add_column("Low", justify="right")
    table.add_column("High", justify="right")
    table.add_column("Methods", justify="left")
    table.add_column("Weight", justify="right")

    weights = outcome.weighting.weights if outcome.weighting else (1.0,) * len(outcome.period_aggregates)
    for aggregate, weight in zip(outcome.period_aggregates, weights):
        if aggregate.computable:
            methods = ", ".join(
                f"{r.method.label} {format_currency(r.value)}" for r in aggregate.display_methods
            )
            row = [
                aggregate.period_end or "-",
                format_currency(aggregate.most_likely_value),
                format_currency(aggregate.range.low),
                format_currency(aggregate.range.high),
                methods,
                f"{weight:.0%}",
            ]
        else:
            row = [aggregate.period_end or "-", "[red]not computable[/red]", "-", "-", "-", f"{weight:.0%}"]
        if aggregate.negative_substance_value:
            row[4] += f" [yellow](negative substance value {format_currency(aggregate.substance_value)})[/yellow]"
        table.add_row(*row)

    console.print(table)
    if outcome.weighting:
        console.print(f"[dim]{outcome.weighting.rationale}[/dim]")
