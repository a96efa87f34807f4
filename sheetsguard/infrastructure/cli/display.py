import logging
from typing import Any, Optional

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from sheetsguard.domain.interfaces.user_interface import UserInterface
from sheetsguard.domain.models.common import ApiResponse, CellValues
from sheetsguard.domain.models.metrics import Metrics, MetricsSummary

logger = logging.getLogger(__name__)


def _column_label(index: int) -> str:
    """0 -> 'A', 25 -> 'Z', 26 -> 'AA'."""
    label = ""
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        label = chr(ord("A") + remainder) + label
    return label


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        """Initializes the rich Console."""
        self._console = console or Console()

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    def display_values(self, values: CellValues, title: Optional[str] = None) -> None:
        """Renders cell values as a table with spreadsheet-style column letters."""
        if not values:
            self.display_info(f"{title or 'Range'} is empty.")
            return

        width = max(len(row) for row in values)
        table = Table(title=title, box=ROUNDED, border_style="cyan", show_lines=False)
        table.add_column("#", style="dim", justify="right")
        for index in range(width):
            table.add_column(_column_label(index), style="white")
        for row_number, row in enumerate(values, start=1):
            cells = ["" if cell is None else str(cell) for cell in row]
            cells.extend([""] * (width - len(cells)))
            table.add_row(str(row_number), *cells)
        self.console.print(table)

    def display_metadata(self, metadata: ApiResponse) -> None:
        properties = metadata.get("properties", {})
        table = Table(
            title=properties.get("title", metadata.get("spreadsheetId", "Spreadsheet")),
            box=ROUNDED,
            border_style="cyan",
        )
        table.add_column("Sheet", style="bold")
        table.add_column("ID", justify="right")
        table.add_column("Rows", justify="right")
        table.add_column("Columns", justify="right")
        for sheet in metadata.get("sheets", []):
            sheet_props = sheet.get("properties", {})
            grid = sheet_props.get("gridProperties", {})
            table.add_row(
                str(sheet_props.get("title", "")),
                str(sheet_props.get("sheetId", "")),
                str(grid.get("rowCount", "")),
                str(grid.get("columnCount", "")),
            )
        self.console.print(table)

    def display_metrics(self, summary: MetricsSummary, metrics: Metrics) -> None:
        table = Table(title="Request metrics", show_header=False, box=SIMPLE, border_style="cyan", padding=(0, 1))
        table.add_column("Metric", style="cyan")
        table.add_column("Value", justify="right")
        table.add_row("Total requests", str(summary["total_requests"]))
        table.add_row("Success rate", f"{summary['success_rate']:.1%}")
        table.add_row("Average latency", f"{summary['average_latency']:.1f} ms")
        table.add_row("Retries", str(metrics.retry_count))
        table.add_row("Rate limit hits", str(summary["rate_limit_hits"]))
        table.add_row("Requests / second", f"{summary['requests_per_second']:.2f}")
        for method, count in sorted(metrics.requests_by_method.items()):
            table.add_row(f"  {method}", str(count))
        for code, count in metrics.errors_by_code.items():
            table.add_row(f"  error {code}", f"[red]{count}[/red]")
        self.console.print(table)

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style.

        Args:
            error_message: The error message to display.
        """
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)
