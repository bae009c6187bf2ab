"""
Source for a live Glowroot server. Calls the same /backend endpoints the
Glowroot web UI uses and decodes them into models.

Every request shares one httpx.Client with a bounded timeout so a hung
Glowroot can't stall the poll loop.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, TypeVar

import httpx

from glowroot_exporter.collector.base import RollupSource
from glowroot_exporter.errors import DecodeError, TransportError
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

log = logging.getLogger(__name__)

T = TypeVar("T")

GROUPS_PATH = "/backend/top-level-agent-rollups"
MEMBERS_PATH = "/backend/child-agent-rollups"
ERROR_SUMMARY_PATH = "/backend/error/summaries"
TRANSACTION_SUMMARY_PATH = "/backend/transaction/summaries"

TRANSACTION_TYPE = "Web"
ERROR_SUMMARY_LIMIT = 1000
TRANSACTION_SUMMARY_LIMIT = 10


class GlowrootClient(RollupSource):

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=transport,
        )

    def _get(self, path: str, params: Dict[str, Any], parse: Callable[[Any], T]) -> T:
        # httpx encodes params, so rollup ids with spaces or "::" are safe
        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeError) as e:
            # InvalidURL and UnicodeError come from building the request URL
            raise TransportError(f"GET {path} failed: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise DecodeError(
                f"GET {path} returned invalid JSON: {e}, body: {response.text[:200]!r}"
            ) from e

        log.debug("GET %s %s -> %d", path, params, response.status_code)
        return parse(payload)

    def fetch_groups(self, window: TimeWindow) -> List[Group]:
        return self._get(
            GROUPS_PATH,
            {"from": window.from_ms, "to": window.to_ms},
            parse_groups,
        )

    def fetch_members(self, group_id: str, window: TimeWindow) -> List[Member]:
        return self._get(
            MEMBERS_PATH,
            {"top-level-id": group_id, "from": window.from_ms, "to": window.to_ms},
            parse_members,
        )

    def fetch_error_summary(self, member_id: str, window: TimeWindow) -> ErrorSummary:
        return self._get(
            ERROR_SUMMARY_PATH,
            {
                "agent-rollup-id": member_id,
                "transaction-type": TRANSACTION_TYPE,
                "from": window.from_ms,
                "to": window.to_ms,
                "sort-order": "error-count",
                "limit": ERROR_SUMMARY_LIMIT,
            },
            parse_error_summary,
        )

    def fetch_transaction_summary(self, member_id: str, window: TimeWindow) -> TransactionSummary:
        return self._get(
            TRANSACTION_SUMMARY_PATH,
            {
                "agent-rollup-id": member_id,
                "transaction-type": TRANSACTION_TYPE,
                "from": window.from_ms,
                "to": window.to_ms,
                "sort-order": "total-time",
                "limit": TRANSACTION_SUMMARY_LIMIT,
            },
            parse_transaction_summary,
        )

    def name(self) -> str:
        return f"Glowroot ({self._base_url})"

    def close(self):
        self._client.close()
