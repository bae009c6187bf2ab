"""
Source that reads from the mock generator.
Used for local development without a Glowroot server.
"""

from typing import Iterable, List

from glowroot_exporter.collector.base import RollupSource
from glowroot_exporter.errors import TransportError
from glowroot_exporter.mock.generator import MockGlowroot
from glowroot_exporter.models import (
    ErrorSummary,
    Group,
    Member,
    TimeWindow,
    TransactionSummary,
    parse_error_summary,
    parse_groups,
    parse_members,
    parse_transaction_summary,
)


class MockSource(RollupSource):
    """Wraps the mock generator as a standard source.

    `failing` holds ids (group or member) whose fetches should raise, to
    show what partial collection looks like on the dashboard.
    """

    def __init__(self, seed: int = 42, failing: Iterable[str] = ()):
        self._mock = MockGlowroot(seed=seed)
        self._failing = set(failing)

    def _check(self, node_id: str):
        if node_id in self._failing:
            raise TransportError(f"simulated failure for {node_id}")

    def fetch_groups(self, window: TimeWindow) -> List[Group]:
        # One groups call per cycle, so this is where the mock clock ticks
        self._mock.advance()
        return parse_groups(self._mock.groups_payload())

    def fetch_members(self, group_id: str, window: TimeWindow) -> List[Member]:
        self._check(group_id)
        return parse_members(self._mock.members_payload(group_id))

    def fetch_error_summary(self, member_id: str, window: TimeWindow) -> ErrorSummary:
        self._check(member_id)
        return parse_error_summary(self._mock.error_summary_payload(member_id))

    def fetch_transaction_summary(self, member_id: str, window: TimeWindow) -> TransactionSummary:
        self._check(member_id)
        return parse_transaction_summary(self._mock.transaction_summary_payload(member_id))

    def name(self) -> str:
        return "Mock Glowroot (3 rollups, simulated traffic)"
