"""Main entry point for the sheetsguard application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import json
import logging
from typing import Any, Coroutine, List, Optional

import typer
from typing_extensions import Annotated

from sheetsguard.core.client_factory import build_client_stack
from sheetsguard.core.command_handler import CommandHandler
from sheetsguard.domain.interfaces.sheets_client import SheetsClient
from sheetsguard.domain.models.common import CellValues
from sheetsguard.infrastructure.cli.display import ConsoleDisplay
from sheetsguard.infrastructure.config.settings import (
    get_adaptive_limiter_config,
    get_cache_config,
    get_config,
    get_credentials_path,
    get_rate_limit_strategy,
    get_retry_policy,
    get_token_bucket_config,
    is_cache_enabled,
    is_metrics_enabled,
    load_configuration,
    set_config_overrides,
)
from sheetsguard.infrastructure.monitoring.logger_setup import setup_logging
from sheetsguard.infrastructure.sheets.google_sheets_client import GoogleSheetsTransport

logger = logging.getLogger(__name__)


# --- Dependency Injection (Manual) ---

def create_transport() -> SheetsClient:
    """Builds the innermost client from the configured credentials."""
    return GoogleSheetsTransport(credentials_path=get_credentials_path())


def create_command_handler(transport: Optional[SheetsClient] = None, ui: Optional[ConsoleDisplay] = None) -> CommandHandler:
    """Creates and wires up all dependencies for one CLI invocation.

    This acts as the Composition Root.
    """
    ui = ui or ConsoleDisplay()
    stack = build_client_stack(
        transport or create_transport(),
        retry_policy=get_retry_policy(),
        cache_config=get_cache_config(),
        use_cache=is_cache_enabled(),
        rate_limit_strategy=get_rate_limit_strategy(),
        token_bucket_config=get_token_bucket_config(),
        adaptive_config=get_adaptive_limiter_config(),
        use_metrics=is_metrics_enabled(),
    )
    return CommandHandler(stack=stack, ui=ui)


# --- Typer App Definition ---
app = typer.Typer(
    name="sheetsguard",
    help="sheetsguard: Google Sheets values API with retries, caching, rate limiting and metrics.",
    add_completion=False,
)


def run_async(coro: Coroutine[Any, Any, Any]) -> Any:
    """Runs an async handler from a sync Typer command."""
    return asyncio.run(coro)


def parse_values(raw: str) -> CellValues:
    """Parses a JSON 2D array such as '[["a", 1], ["b", 2]]'."""
    try:
        values = json.loads(raw)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"Values must be JSON: {e}") from e
    if not isinstance(values, list) or not all(isinstance(row, list) for row in values):
        raise typer.BadParameter("Values must be a JSON array of arrays (rows).")
    return values


def _handler(ctx: typer.Context) -> CommandHandler:
    if ctx.obj is None:
        ctx.obj = create_command_handler()
    return ctx.obj


def _finish(ctx: typer.Context) -> None:
    handler = _handler(ctx)
    if get_config('cli.show_metrics', False):
        handler.show_metrics()


# --- CLI Commands ---

SpreadsheetArg = Annotated[str, typer.Argument(help="Spreadsheet ID (from the sheet URL).")]
RangeArg = Annotated[str, typer.Argument(help="A1 range, e.g. 'Sheet1!A1:B10'.")]
ValuesOption = Annotated[str, typer.Option("--values", "-v", help="Rows as a JSON array of arrays.")]


@app.command()
def read(ctx: typer.Context, spreadsheet_id: SpreadsheetArg, range_: RangeArg):
    """Read the values of a range."""
    run_async(_handler(ctx).handle_read(spreadsheet_id, range_))
    _finish(ctx)


@app.command(name="batch-read")
def batch_read(
    ctx: typer.Context,
    spreadsheet_id: SpreadsheetArg,
    ranges: Annotated[List[str], typer.Argument(help="One or more A1 ranges.")],
):
    """Read several ranges at once (split into requests of 100 ranges)."""
    run_async(_handler(ctx).handle_batch_read(spreadsheet_id, ranges))
    _finish(ctx)


@app.command()
def write(ctx: typer.Context, spreadsheet_id: SpreadsheetArg, range_: RangeArg, values: ValuesOption):
    """Overwrite the values of a range."""
    run_async(_handler(ctx).handle_write(spreadsheet_id, range_, parse_values(values)))
    _finish(ctx)


@app.command()
def append(ctx: typer.Context, spreadsheet_id: SpreadsheetArg, range_: RangeArg, values: ValuesOption):
    """Append rows after the table in a range."""
    run_async(_handler(ctx).handle_append(spreadsheet_id, range_, parse_values(values)))
    _finish(ctx)


@app.command()
def clear(ctx: typer.Context, spreadsheet_id: SpreadsheetArg, range_: RangeArg):
    """Clear the values of a range."""
    run_async(_handler(ctx).handle_clear(spreadsheet_id, range_))
    _finish(ctx)


@app.command()
def metadata(ctx: typer.Context, spreadsheet_id: SpreadsheetArg):
    """Show the spreadsheet title and its sheets."""
    run_async(_handler(ctx).handle_metadata(spreadsheet_id))
    _finish(ctx)


@app.callback()
def main_callback(
    credentials: Annotated[
        Optional[str],
        typer.Option("--credentials", "-c", help="Service-account JSON key file."),
    ] = None,
    rate_limit: Annotated[
        Optional[str],
        typer.Option("--rate-limit", help="Rate limiting strategy: adaptive, token_bucket or none."),
    ] = None,
    no_cache: Annotated[bool, typer.Option("--no-cache", help="Disable the response cache.")] = False,
    show_metrics: Annotated[
        bool, typer.Option("--show-metrics", help="Print request metrics after the command.")
    ] = False,
    log_level: Annotated[Optional[str], typer.Option("--log-level", help="DEBUG, INFO, WARNING...")] = None,
):
    """Load configuration and logging; command-line flags override config files."""
    load_configuration()
    overrides = {}
    if credentials:
        overrides['credentials.path'] = credentials
    if rate_limit:
        overrides['rate_limit.strategy'] = rate_limit
    if no_cache:
        overrides['cache.enabled'] = False
    if show_metrics:
        overrides['cli.show_metrics'] = True
    if overrides:
        set_config_overrides(overrides)

    setup_logging(
        log_level=log_level or get_config('logging.level', 'WARNING'),
        log_file=get_config('logging.file'),
        log_format=get_config('logging.format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
    )


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
