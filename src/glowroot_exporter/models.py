"""
Typed records for the four Glowroot API responses we consume.

Glowroot calls the top level an "agent rollup" and its members "child
agents"; here they are Group and Member. Decoding is strict about shape
(wrong JSON type, missing id) but lenient about missing counters, which
default to zero the same way the Glowroot UI treats them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List

from glowroot_exporter.errors import DecodeError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimeWindow:
    """Query window in epoch milliseconds, shared by every call in a cycle."""

    from_ms: int
    to_ms: int

    @classmethod
    def ending_at(cls, now_seconds: float, minutes: int) -> "TimeWindow":
        to_ms = int(now_seconds * 1000)
        return cls(from_ms=to_ms - minutes * 60 * 1000, to_ms=to_ms)


@dataclass
class Group:
    id: str
    display_name: str = ""


@dataclass
class Member:
    id: str
    display_name: str = ""


@dataclass
class TransactionErrors:
    transaction_name: str
    error_count: float = 0
    transaction_count: float = 0


@dataclass
class ErrorSummary:
    error_count: float = 0
    transaction_count: float = 0
    transactions: List[TransactionErrors] = field(default_factory=list)


@dataclass
class TransactionTiming:
    transaction_name: str
    total_duration_nanos: float = 0
    transaction_count: float = 0


@dataclass
class TransactionSummary:
    total_duration_nanos: float = 0
    transaction_count: float = 0
    transactions: List[TransactionTiming] = field(default_factory=list)


class UnencodableString(DecodeError):
    """A string field holds lone surrogates. Only its own entry is dropped."""


def _expect(value: Any, kind: type, what: str):
    if not isinstance(value, kind):
        raise DecodeError(f"{what}: expected {kind.__name__}, got {type(value).__name__}")
    return value


def _number(obj: dict, key: str, what: str) -> float:
    value = obj.get(key)
    if value is None:
        return 0
    # bool is an int subclass but never a valid counter
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"{what}.{key}: expected number, got {value!r}")
    return value


def _string(obj: dict, key: str, what: str, required: bool = False) -> str:
    if key not in obj or obj[key] is None:
        if required:
            raise DecodeError(f"{what}: missing '{key}'")
        return ""
    value = _expect(obj[key], str, f"{what}.{key}")
    try:
        # Lone surrogates survive json.loads but can be neither sent in a
        # query string nor served on /metrics
        value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise UnencodableString(f"{what}.{key}: not valid UTF-8: {value!r}") from e
    return value


def _decode_entries(items: list, what: str, decode_one) -> list:
    decoded = []
    for i, raw in enumerate(items):
        entry_what = f"{what}[{i}]"
        try:
            decoded.append(decode_one(_expect(raw, dict, entry_what), entry_what))
        except UnencodableString as e:
            log.warning("Dropping %s: %s", entry_what, e)
    return decoded


def _group(obj: dict, what: str) -> Group:
    return Group(id=_string(obj, "id", what, required=True), display_name=_string(obj, "display", what))


def _member(obj: dict, what: str) -> Member:
    return Member(id=_string(obj, "id", what, required=True), display_name=_string(obj, "display", what))


def _transaction_errors(obj: dict, what: str) -> TransactionErrors:
    return TransactionErrors(
        transaction_name=_string(obj, "transactionName", what),
        error_count=_number(obj, "errorCount", what),
        transaction_count=_number(obj, "transactionCount", what),
    )


def _transaction_timing(obj: dict, what: str) -> TransactionTiming:
    return TransactionTiming(
        transaction_name=_string(obj, "transactionName", what),
        total_duration_nanos=_number(obj, "totalDurationNanos", what),
        transaction_count=_number(obj, "transactionCount", what),
    )


def parse_groups(payload: Any) -> List[Group]:
    return _decode_entries(_expect(payload, list, "agent rollups"), "agent rollups", _group)


def parse_members(payload: Any) -> List[Member]:
    return _decode_entries(_expect(payload, list, "child agents"), "child agents", _member)


def _overall_and_entries(payload: Any, what: str):
    obj = _expect(payload, dict, what)
    overall = obj.get("overall")
    entries = obj.get("transactions")
    overall = {} if overall is None else _expect(overall, dict, f"{what}.overall")
    entries = [] if entries is None else _expect(entries, list, f"{what}.transactions")
    return overall, entries


def parse_error_summary(payload: Any) -> ErrorSummary:
    overall, entries = _overall_and_entries(payload, "error summary")
    return ErrorSummary(
        error_count=_number(overall, "errorCount", "error summary.overall"),
        transaction_count=_number(overall, "transactionCount", "error summary.overall"),
        transactions=_decode_entries(entries, "error summary.transactions", _transaction_errors),
    )


def parse_transaction_summary(payload: Any) -> TransactionSummary:
    overall, entries = _overall_and_entries(payload, "transaction summary")
    return TransactionSummary(
        total_duration_nanos=_number(overall, "totalDurationNanos", "transaction summary.overall"),
        transaction_count=_number(overall, "transactionCount", "transaction summary.overall"),
        transactions=_decode_entries(entries, "transaction summary.transactions", _transaction_timing),
    )
