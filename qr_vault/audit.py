"""Lifecycle audit events."""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Protocol

from qr_vault.exceptions import SinkError
from qr_vault.models import Event

logger = logging.getLogger(__name__)


class EventSink(Protocol):
    def send(self, event: Event) -> None: ...

    def close(self) -> None: ...


class AuditTrail:
    """Wrap lifecycle changes in ``Event`` envelopes and hand them to a sink.

    A sink failure is logged and dropped; it never undoes the mutation that
    produced the event.
    """

    def __init__(self, sink: EventSink | None = None, source: str = "qr-vault") -> None:
        self.sink = sink
        self.source = source

    def emit(self, event_type: str, subject: str, data: dict[str, Any]) -> Event | None:
        if self.sink is None:
            return None
        event = Event(
            event_id=str(uuid.uuid4()),
            event_type=event_type,
            event_time=datetime.now(timezone.utc),
            source=self.source,
            subject=subject,
            data=data,
        )
        try:
            self.sink.send(event)
        except SinkError as e:
            logger.warning("Audit event %s for %s not delivered: %s", event_type, subject, e)
        return event

    def close(self) -> None:
        if self.sink is not None:
            self.sink.close()
