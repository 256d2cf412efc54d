"""Output sinks for identifier lifecycle audit events."""

from qr_vault.sinks.console import ConsoleSink

__all__ = ["ConsoleSink"]
