"""
Gauge families the exporter publishes.

Every family is a plain gauge keyed by its label values. Names here are
unprefixed; the exposition layer adds the configured namespace
(``glowroot_`` by default) when serving /metrics.
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class MetricFamily:
    name: str
    help_text: str
    label_names: Tuple[str, ...]


@dataclass(frozen=True)
class MetricPoint:
    """One exported sample: family name, label values in family order, value."""

    name: str
    label_values: Tuple[str, ...]
    value: float


GROUP_INFO = MetricFamily(
    "group_info",
    "Top-level agent rollups known to Glowroot (value is always 1)",
    ("group_id", "group_display_name"),
)

MEMBER_OF_GROUP = MetricFamily(
    "member_of_group",
    "Child agents belonging to each agent rollup (value is always 1)",
    ("group_id", "member_id"),
)

ERROR_TOTAL_COUNT = MetricFamily(
    "error_total_count",
    "Total error count from overall error statistics",
    ("group_id", "member_id"),
)

TRANSACTION_TOTAL_COUNT = MetricFamily(
    "transaction_total_count",
    "Total transaction count from overall error statistics",
    ("group_id", "member_id"),
)

TRANSACTION_ERROR_COUNT = MetricFamily(
    "transaction_error_count",
    "Error count per individual transaction",
    ("group_id", "member_id", "transaction_name"),
)

SLOW_TRACE_TOTAL_COUNT = MetricFamily(
    "slow_trace_total_count",
    "Total transaction count from transaction summary overall statistics",
    ("group_id", "member_id"),
)

SLOW_TRACE_TRANSACTION_COUNT = MetricFamily(
    "slow_trace_transaction_count",
    "Transaction count per transaction among the slowest by total time",
    ("group_id", "member_id", "transaction_name"),
)

# Order here is the order families appear on /metrics
ALL_FAMILIES = (
    GROUP_INFO,
    MEMBER_OF_GROUP,
    ERROR_TOTAL_COUNT,
    TRANSACTION_TOTAL_COUNT,
    TRANSACTION_ERROR_COUNT,
    SLOW_TRACE_TOTAL_COUNT,
    SLOW_TRACE_TRANSACTION_COUNT,
)
