"""
Serves the snapshot store on /metrics via prometheus_client.

The store is read fresh on every scrape through a custom collector, so
there is no second copy of the data to keep in sync.
"""

from __future__ import annotations

import logging
from typing import Iterator

from prometheus_client import CollectorRegistry, start_http_server
from prometheus_client.core import GaugeMetricFamily

from glowroot_exporter.storage.snapshot_store import SnapshotStore

log = logging.getLogger(__name__)


class SnapshotCollector:
    """prometheus_client custom collector backed by a SnapshotStore."""

    def __init__(self, store: SnapshotStore, namespace: str = "glowroot"):
        self._store = store
        self._namespace = namespace

    def _full_name(self, name: str) -> str:
        return f"{self._namespace}_{name}" if self._namespace else name

    def describe(self) -> Iterator[GaugeMetricFamily]:
        for family in self._store.families():
            yield GaugeMetricFamily(
                self._full_name(family.name), family.help_text, labels=list(family.label_names)
            )

    def collect(self) -> Iterator[GaugeMetricFamily]:
        for family in self._store.families():
            gauge = GaugeMetricFamily(
                self._full_name(family.name), family.help_text, labels=list(family.label_names)
            )
            for labels, value in self._store.samples(family.name):
                gauge.add_metric(list(labels), value)
            yield gauge


def build_registry(store: SnapshotStore, namespace: str = "glowroot") -> CollectorRegistry:
    """A fresh registry holding only our gauges (no process/python defaults)."""
    registry = CollectorRegistry()
    registry.register(SnapshotCollector(store, namespace=namespace))
    return registry


def serve(registry: CollectorRegistry, port: int, address: str = "0.0.0.0"):
    """Start the /metrics endpoint on a daemon thread."""
    start_http_server(port, addr=address, registry=registry)
    log.info("Serving metrics on http://%s:%d/metrics", address, port)
