"""
In-memory snapshot of the latest value for every (metric, labels) key.

One writer (the poller) and any number of readers (scrapes) share a single
lock. Writes are last-write-wins upserts; nothing is ever removed, so a
rollup that disappears from Glowroot keeps its last value until restart.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from glowroot_exporter.metrics import MetricFamily, MetricPoint

log = logging.getLogger(__name__)


class SnapshotStore:

    def __init__(self, families: Sequence[MetricFamily] = ()):
        self._lock = threading.Lock()
        self._families: "OrderedDict[str, MetricFamily]" = OrderedDict()
        self._values: Dict[str, Dict[Tuple[str, ...], float]] = {}
        for family in families:
            self.define(family.name, family.help_text, family.label_names)

    def define(self, name: str, help_text: str, label_names: Sequence[str]) -> MetricFamily:
        """Register a family. Re-defining with the same label names is a no-op."""
        family = MetricFamily(name, help_text, tuple(label_names))
        with self._lock:
            existing = self._families.get(name)
            if existing is not None:
                if existing.label_names != family.label_names:
                    raise ValueError(
                        f"{name} already defined with labels {existing.label_names}"
                    )
                return existing
            self._families[name] = family
            self._values[name] = {}
        return family

    def set(self, name: str, label_values: Sequence[str], value: float):
        labels = tuple(str(v) for v in label_values)
        with self._lock:
            family = self._families.get(name)
            if family is None:
                # Undeclared family: label names are positional
                family = MetricFamily(name, "", tuple(f"label_{i}" for i in range(len(labels))))
                self._families[name] = family
                self._values[name] = {}
                log.debug("Implicitly defined metric family %s", name)
            if len(labels) != len(family.label_names):
                raise ValueError(
                    f"{name} expects {len(family.label_names)} label values, got {len(labels)}"
                )
            self._values[name][labels] = float(value)

    def get(self, name: str, label_values: Sequence[str]) -> Optional[float]:
        labels = tuple(str(v) for v in label_values)
        with self._lock:
            return self._values.get(name, {}).get(labels)

    def families(self) -> List[MetricFamily]:
        with self._lock:
            return list(self._families.values())

    def samples(self, name: str) -> List[Tuple[Tuple[str, ...], float]]:
        """Copy of one family's samples, taken under the lock."""
        with self._lock:
            return list(self._values.get(name, {}).items())

    def collect_all(self) -> Iterator[MetricPoint]:
        """Yield every point, family by family.

        The lock is held only while copying one family, never while the
        caller consumes the points, so a slow scrape can't stall the poller.
        """
        for family in self.families():
            for labels, value in self.samples(family.name):
                yield MetricPoint(family.name, labels, value)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(values) for values in self._values.values())
