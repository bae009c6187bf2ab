"""
Glowroot exporter entry point.

Usage:
    glowroot-exporter                          Run with ./config.yaml
    glowroot-exporter --config /etc/ge.yaml    Run with an explicit config
    glowroot-exporter --mock                   Serve simulated Glowroot data
    glowroot-exporter snapshot --mock          One cycle, print the gauges
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from glowroot_exporter import __version__
from glowroot_exporter.collector.base import RollupSource
from glowroot_exporter.collector.glowroot_client import GlowrootClient
from glowroot_exporter.collector.mock_source import MockSource
from glowroot_exporter.collector.poller import Poller
from glowroot_exporter.config import DEFAULT_CONFIG_PATH, ExporterConfig, load_config
from glowroot_exporter.errors import ConfigError
from glowroot_exporter.exposition import build_registry, serve
from glowroot_exporter.metrics import ALL_FAMILIES
from glowroot_exporter.storage.snapshot_store import SnapshotStore


log = logging.getLogger("glowroot_exporter")


def _load(config_path: str, mock: bool) -> ExporterConfig:
    if mock and not Path(config_path).exists():
        log.info("No config at %s, using defaults for mock mode", config_path)
        return ExporterConfig(glowroot_url="")
    try:
        return load_config(config_path, require_url=not mock)
    except ConfigError as e:
        log.error("Error loading config: %s", e)
        raise click.ClickException(f"Error loading config: {e}")


def _build_source(config: ExporterConfig, mock: bool) -> RollupSource:
    if mock:
        return MockSource()
    return GlowrootClient(config.glowroot_url, timeout_seconds=config.request_timeout_seconds)


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="glowroot-exporter")
@click.option("--config", "config_path", default=DEFAULT_CONFIG_PATH, show_default=True,
              help="Path to the YAML config file")
@click.option("--mock", is_flag=True, default=False, help="Use simulated Glowroot data")
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging")
@click.pass_context
def cli(ctx, config_path: str, mock: bool, verbose: bool):
    """Glowroot exporter - Glowroot APM counters as Prometheus metrics."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    ctx.ensure_object(dict)
    ctx.obj["config"] = _load(config_path, mock)
    ctx.obj["mock"] = mock

    if ctx.invoked_subcommand is None:
        config = ctx.obj["config"]
        store = SnapshotStore(ALL_FAMILIES)
        source = _build_source(config, mock)
        poller = Poller(
            source,
            store,
            time_interval_minutes=config.time_interval_minutes,
            poll_interval_seconds=config.update_interval_seconds,
        )

        serve(build_registry(store, namespace=config.metric_prefix),
              config.exporter_port, config.listen_address)
        log.info("Starting Glowroot exporter v%s on %s:%d",
                 __version__, config.listen_address, config.exporter_port)

        try:
            poller.run()
        except KeyboardInterrupt:
            log.info("Exporter stopped.")
        finally:
            source.close()


@cli.command()
@click.pass_context
def snapshot(ctx):
    """Run a single collection cycle and print every gauge."""
    from rich.console import Console
    from rich.markup import escape
    from rich.table import Table

    config = ctx.obj["config"]
    store = SnapshotStore(ALL_FAMILIES)
    source = _build_source(config, ctx.obj["mock"])
    poller = Poller(source, store, time_interval_minutes=config.time_interval_minutes)

    try:
        report = poller.run_cycle()
    finally:
        source.close()

    console = Console()
    console.print(f"\n[bold]{source.name()}[/bold]")
    console.print(
        f"[dim]window {report.window.from_ms} -> {report.window.to_ms}, "
        f"{report.groups} rollups, {report.members} agents[/dim]"
    )

    if report.skipped:
        console.print("\n[bold red]Could not list agent rollups; nothing collected.[/bold red]")
        raise SystemExit(1)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Metric", no_wrap=True)
    table.add_column("Labels", overflow="fold")
    table.add_column("Value", justify="right")

    prefix = f"{config.metric_prefix}_" if config.metric_prefix else ""
    label_names = {f.name: f.label_names for f in store.families()}
    for point in store.collect_all():
        labels = ", ".join(
            f"{k}=[cyan]{escape(v)}[/cyan]" for k, v in zip(label_names[point.name], point.label_values)
        )
        table.add_row(f"{prefix}{point.name}", labels, f"{point.value:g}")
    console.print(table)

    if report.failures:
        console.print(f"\n[yellow]{len(report.failures)} fetches failed:[/yellow]")
        for failure in report.failures:
            console.print(f"  [dim]{failure}[/dim]")
    console.print()


if __name__ == "__main__":
    cli()
