"""Console sink for debugging and development."""

import json
import logging

from qr_vault.models import Event
from qr_vault.sinks.serialization import to_dict

logger = logging.getLogger(__name__)


class ConsoleSink:
    """Write audit events to the log as JSON lines."""

    def __init__(self, pretty: bool = False) -> None:
        """Initialize console sink.

        Parameters
        ----------
        pretty : bool
            Pretty-print JSON output.
        """
        self.pretty = pretty
        self._counts: dict[str, int] = {}

    def send(self, event: Event) -> None:
        """Write one event."""
        data = to_dict(event)
        indent = 2 if self.pretty else None
        logger.info("%s", json.dumps(data, indent=indent, ensure_ascii=False, default=str))
        self._counts[event.event_type] = self._counts.get(event.event_type, 0) + 1

    def close(self) -> None:
        """Log a summary of what was written."""
        for event_type, count in self._counts.items():
            logger.info("Console sink summary: %s=%d", event_type, count)
