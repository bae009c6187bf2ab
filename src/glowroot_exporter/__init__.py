"""Glowroot exporter - republishes Glowroot APM counters as Prometheus gauges."""

__version__ = "0.3.0"
