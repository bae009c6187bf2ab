"""
Base rollup source interface.

A source is anything that can answer the four Glowroot queries the poller
walks through. Keeps the poller decoupled from where the data comes from
(a live Glowroot server or the mock generator).
"""

from abc import ABC, abstractmethod
from typing import List

from glowroot_exporter.models import (
    ErrorSummary,
    Group,
    Member,
    TimeWindow,
    TransactionSummary,
)


class RollupSource(ABC):
    """Interface for all Glowroot data sources.

    Implementations raise FetchError (or a subclass) for anything that
    goes wrong talking to the backend.
    """

    @abstractmethod
    def fetch_groups(self, window: TimeWindow) -> List[Group]:
        """Top-level agent rollups active in the window."""
        ...

    @abstractmethod
    def fetch_members(self, group_id: str, window: TimeWindow) -> List[Member]:
        """Child agents of one top-level rollup."""
        ...

    @abstractmethod
    def fetch_error_summary(self, member_id: str, window: TimeWindow) -> ErrorSummary:
        ...

    @abstractmethod
    def fetch_transaction_summary(self, member_id: str, window: TimeWindow) -> TransactionSummary:
        ...

    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this source."""
        ...

    def close(self):
        pass
