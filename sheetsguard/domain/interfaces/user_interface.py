"""Interface for presenting results to the user.

Defines the contract for displaying cell values, metadata, metrics,
errors, warnings and information, allowing different UI implementations.
"""

import abc
from typing import Any, Optional

from sheetsguard.domain.models.common import ApiResponse, CellValues
from sheetsguard.domain.models.metrics import Metrics, MetricsSummary


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_values(self, values: CellValues, title: Optional[str] = None) -> None:
        """Displays a grid of cell values.

        Args:
            values: Row-major cell values.
            title: Optional caption, usually the range.
        """
        pass

    @abc.abstractmethod
    def display_metadata(self, metadata: ApiResponse) -> None:
        """Displays spreadsheet metadata (title and sheets)."""
        pass

    @abc.abstractmethod
    def display_metrics(self, summary: MetricsSummary, metrics: Metrics) -> None:
        """Displays the metrics summary and detailed counters."""
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        pass
