"""Exception types shared across the exporter."""


class ExporterError(Exception):
    """Base class for everything the exporter raises on purpose."""


class ConfigError(ExporterError):
    """Config file is missing, unreadable or invalid. Fatal at startup."""


class FetchError(ExporterError):
    """A single call to the Glowroot API failed. Recovered by the poller."""


class TransportError(FetchError):
    """Server unreachable, timed out, or answered with a non-2xx status."""


class DecodeError(FetchError):
    """Response body was not the JSON shape we expected."""
