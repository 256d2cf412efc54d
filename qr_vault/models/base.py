"""Base models shared across entities."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Address:
    """Physical address of a property.

    ``street`` and ``number`` are the parts hidden from public viewers
    unless the owner discloses the full address; ``city`` and ``state``
    are always public.
    """

    street: str
    number: str
    city: str
    state: str
    postal_code: str
    complement: str = ""
    country: str = "US"

    @property
    def line1(self) -> str:
        """Street line as printed on an envelope."""
        return f"{self.number} {self.street}".strip()

    def city_state(self) -> dict[str, str]:
        """Reduced form disclosed when the full address is hidden."""
        return {"city": self.city, "state": self.state}

    def full(self) -> dict[str, str]:
        """Every address field."""
        return {
            "line1": self.line1,
            "complement": self.complement,
            "city": self.city,
            "state": self.state,
            "postalCode": self.postal_code,
            "country": self.country,
        }


@dataclass
class Event:
    """Standard event envelope for audit streaming."""

    event_id: str
    event_type: str  # entity.action (e.g., master_identifier.revoked)
    event_time: datetime
    source: str  # Service/system that generated
    subject: str  # Entity ID affected
    data: dict
    metadata: dict = field(default_factory=dict)
