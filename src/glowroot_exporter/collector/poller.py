"""
The poll loop. Walks rollups -> child agents -> summaries and writes gauges.

Failures are contained at the node where they happen: a broken child agent
never hides its siblings, a broken rollup never hides other rollups. Only a
failed rollup listing skips the whole cycle, since nothing below it can run.
There are no retries within a cycle; the next cycle is the retry.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from glowroot_exporter.collector.base import RollupSource
from glowroot_exporter.errors import FetchError
from glowroot_exporter.metrics import (
    ALL_FAMILIES,
    ERROR_TOTAL_COUNT,
    GROUP_INFO,
    MEMBER_OF_GROUP,
    SLOW_TRACE_TOTAL_COUNT,
    SLOW_TRACE_TRANSACTION_COUNT,
    TRANSACTION_ERROR_COUNT,
    TRANSACTION_TOTAL_COUNT,
    MetricFamily,
)
from glowroot_exporter.models import Group, Member, TimeWindow
from glowroot_exporter.storage.snapshot_store import SnapshotStore

log = logging.getLogger(__name__)


@dataclass
class CycleReport:
    window: TimeWindow
    groups: int = 0
    members: int = 0
    points_written: int = 0
    failures: List[str] = field(default_factory=list)
    skipped: bool = False  # True when the rollup listing itself failed

    @property
    def ok(self) -> bool:
        return not self.failures


class Poller:

    def __init__(
        self,
        source: RollupSource,
        store: SnapshotStore,
        time_interval_minutes: int = 5,
        poll_interval_seconds: float = 60.0,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._source = source
        self._store = store
        self._time_interval_minutes = time_interval_minutes
        self._poll_interval = poll_interval_seconds
        self._clock = clock
        self._sleep = sleep

        for family in ALL_FAMILIES:
            store.define(family.name, family.help_text, family.label_names)

    def run(self, max_cycles: Optional[int] = None):
        """Poll forever (or `max_cycles` times), sleeping between cycles."""
        log.info(
            "Polling %s: window=%dm, interval=%.0fs",
            self._source.name(), self._time_interval_minutes, self._poll_interval,
        )
        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            self.run_cycle()
            cycles += 1
            self._sleep(self._poll_interval)

    def run_cycle(self) -> CycleReport:
        window = TimeWindow.ending_at(self._clock(), self._time_interval_minutes)
        report = CycleReport(window=window)

        try:
            groups = self._source.fetch_groups(window)
        except FetchError as e:
            log.warning("Error fetching agent rollups: %s", e)
            report.failures.append("groups")
            report.skipped = True
            return report

        for group in groups:
            self._collect_group(group, window, report)

        log.info(
            "Cycle done: %d rollups, %d agents, %d points written, %d failures",
            report.groups, report.members, report.points_written, len(report.failures),
        )
        return report

    def _set(self, family: MetricFamily, labels, value: float, report: CycleReport):
        self._store.set(family.name, labels, value)
        report.points_written += 1

    def _collect_group(self, group: Group, window: TimeWindow, report: CycleReport):
        report.groups += 1
        self._set(GROUP_INFO, (group.id, group.display_name), 1, report)

        try:
            members = self._source.fetch_members(group.id, window)
        except FetchError as e:
            log.warning("Error fetching child agents for %s: %s", group.id, e)
            report.failures.append(f"members:{group.id}")
            return

        for member in members:
            self._collect_member(group, member, window, report)

    def _collect_member(self, group: Group, member: Member, window: TimeWindow, report: CycleReport):
        report.members += 1
        key = (group.id, member.id)
        self._set(MEMBER_OF_GROUP, key, 1, report)

        # Either summary failing skips the rest of this agent; gauges from
        # earlier cycles stay as they were.
        try:
            errors = self._source.fetch_error_summary(member.id, window)
        except FetchError as e:
            log.warning("Error fetching error summary for agent %s: %s", member.id, e)
            report.failures.append(f"error_summary:{member.id}")
            return

        self._set(ERROR_TOTAL_COUNT, key, errors.error_count, report)
        self._set(TRANSACTION_TOTAL_COUNT, key, errors.transaction_count, report)
        for t in errors.transactions:
            self._set(TRANSACTION_ERROR_COUNT, key + (t.transaction_name,), t.error_count, report)

        try:
            timings = self._source.fetch_transaction_summary(member.id, window)
        except FetchError as e:
            log.warning("Error fetching transaction summary for agent %s: %s", member.id, e)
            report.failures.append(f"transaction_summary:{member.id}")
            return

        self._set(SLOW_TRACE_TOTAL_COUNT, key, timings.transaction_count, report)
        for t in timings.transactions:
            self._set(SLOW_TRACE_TRANSACTION_COUNT, key + (t.transaction_name,), t.transaction_count, report)
