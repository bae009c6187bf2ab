"""
Mock Glowroot data generator.

Produces fake but plausible API payloads so we can develop and test without
a running Glowroot. Shapes match the /backend JSON the real server returns;
numbers follow a sinusoidal traffic pattern with occasional error bursts.
"""

import math
import random
from typing import Dict, List

DEFAULT_GROUPS = {
    "checkout": ["checkout::web-1", "checkout::web-2"],
    "catalog": ["catalog::api-1"],
    "auth service": ["auth service::node a", "auth service::node b"],
}

TRANSACTION_NAMES = [
    "GET /",
    "GET /api/items",
    "POST /api/cart",
    "POST /api/checkout",
    "GET /api/users/{id}",
    "GET /health",
    "PUT /api/items/{id}",
    "DELETE /api/cart/{id}",
    "GET /api/search",
    "POST /login",
    "GET /static/*",
    "POST /api/orders",
]


class MockGlowroot:

    def __init__(self, seed: int = 42, groups: Dict[str, List[str]] = None):
        self._seed = seed
        self._groups = groups if groups is not None else DEFAULT_GROUPS
        self._tick = 0

    def advance(self):
        """Move the simulation clock forward one poll."""
        self._tick += 1

    def _rng(self, *key) -> random.Random:
        # Same (tick, key) always yields the same numbers within one poll
        return random.Random(f"{self._seed}:{self._tick}:{':'.join(key)}")

    def groups_payload(self) -> list:
        return [
            {"id": group_id, "display": group_id.title(), "children": []}
            for group_id in self._groups
        ]

    def members_payload(self, group_id: str) -> list:
        return [
            {"id": member_id, "display": member_id.split("::")[-1]}
            for member_id in self._groups.get(group_id, [])
        ]

    def _traffic(self, member_id: str) -> int:
        base = 400 + 250 * math.sin(self._tick * 0.1 + len(member_id))
        return max(10, int(base))

    def _transactions_for(self, member_id: str) -> List[str]:
        rng = self._rng(member_id, "names")
        return rng.sample(TRANSACTION_NAMES, k=min(len(TRANSACTION_NAMES), 4 + len(member_id) % 6))

    def error_summary_payload(self, member_id: str) -> dict:
        rng = self._rng(member_id, "errors")
        total = self._traffic(member_id)
        burst = rng.random() > 0.9

        transactions = []
        for name in self._transactions_for(member_id):
            count = rng.randint(1, max(1, total // 4))
            rate = rng.uniform(0.05, 0.4) if burst else rng.uniform(0.0, 0.03)
            errors = int(count * rate)
            if errors:
                transactions.append({
                    "transactionName": name,
                    "errorCount": errors,
                    "transactionCount": count,
                })

        transactions.sort(key=lambda t: t["errorCount"], reverse=True)
        return {
            "overall": {
                "errorCount": sum(t["errorCount"] for t in transactions),
                "transactionCount": total,
            },
            "transactions": transactions,
        }

    def transaction_summary_payload(self, member_id: str, limit: int = 10) -> dict:
        rng = self._rng(member_id, "timings")
        total = self._traffic(member_id)

        transactions = []
        for name in self._transactions_for(member_id):
            count = rng.randint(1, max(1, total // 4))
            avg_ms = rng.lognormvariate(3.5, 0.8)
            transactions.append({
                "transactionName": name,
                "totalDurationNanos": count * avg_ms * 1_000_000,
                "transactionCount": count,
            })

        transactions.sort(key=lambda t: t["totalDurationNanos"], reverse=True)
        return {
            "overall": {
                "totalDurationNanos": sum(t["totalDurationNanos"] for t in transactions),
                "transactionCount": total,
            },
            "transactions": transactions[:limit],
        }
