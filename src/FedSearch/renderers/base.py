"""Base classes for output writers.

Separates what a search found from where it is written.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

from FedSearch.core.models import SearchOutcome


class OutputWriter(ABC):
    """Abstract base class for search result writers."""

    @abstractmethod
    def write_outcome(self, outcome: SearchOutcome) -> None:
        """Write the merged result of one dispatch."""

    @abstractmethod
    def finalize(self, action: str) -> None:
        """Finalize output (e.g., write accumulated results to file).

        Args:
            action: The CLI command name (e.g., 'search').
        """


@dataclass(slots=True)
class MultiOutputWriter(OutputWriter):
    """Delegate output to multiple writers."""

    writers: Sequence[OutputWriter]

    def write_outcome(self, outcome: SearchOutcome) -> None:
        for writer in self.writers:
            writer.write_outcome(outcome)

    def finalize(self, action: str) -> None:
        for writer in self.writers:
            writer.finalize(action)
