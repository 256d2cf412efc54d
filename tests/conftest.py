"""Pytest configuration and fixtures."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from itertools import count

import pytest

from qr_vault.audit import AuditTrail
from qr_vault.models import (
    Address,
    Asset,
    AssetEvent,
    AssetEventType,
    AssetType,
    Document,
    DocumentType,
    OwnerSession,
    Property,
)
from qr_vault.registry import IdentifierRegistry
from qr_vault.service import IdentifierService
from qr_vault.store.memory import PropertyDataStore

OWNER_ID = "owner-001"
PROPERTY_ID = "prop-001"
HVAC_ID = "asset-hvac"
RING_ID = "asset-ring"
HEATER_ID = "asset-heater"


class RecordingSink:
    """Collects audit events in memory."""

    def __init__(self) -> None:
        self.events: list = []
        self.closed = False

    def send(self, event) -> None:
        self.events.append(event)

    def close(self) -> None:
        self.closed = True


class StepClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self) -> None:
        self._ticks = count()
        self.start = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.start + timedelta(seconds=next(self._ticks))


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def owner() -> OwnerSession:
    """Session of the property owner."""
    return OwnerSession(account_id=OWNER_ID)


@pytest.fixture
def stranger() -> OwnerSession:
    """Session of an unrelated account."""
    return OwnerSession(account_id="owner-999")


@pytest.fixture
def sample_property() -> Property:
    """Create a sample property."""
    return Property(
        property_id=PROPERTY_ID,
        owner_id=OWNER_ID,
        name="Maple House",
        address=Address(
            street="Maple Avenue",
            number="42",
            city="Springfield",
            state="IL",
            postal_code="62704",
        ),
        created_at=datetime(2020, 5, 1),
    )


@pytest.fixture
def store(sample_property: Property) -> PropertyDataStore:
    """Store holding one property with public and private assets."""
    store = PropertyDataStore()
    store.add_property(sample_property)

    store.add_asset(
        Asset(
            asset_id=HVAC_ID,
            property_id=PROPERTY_ID,
            name="Central Air Conditioner",
            category="HVAC",
            asset_type=AssetType.INFRASTRUCTURE,
            brand="Carrier",
            installed_at=datetime(2021, 6, 1),
            warranty_until=date(2031, 6, 1),
            installer_id="contractor-7",
            installer_name="Cool Air LLC",
            purchase_price=Decimal("6400.00"),
        )
    )
    store.add_asset(
        Asset(
            asset_id=RING_ID,
            property_id=PROPERTY_ID,
            name="Engagement Ring",
            category="JEWELRY",
            asset_type=AssetType.PERSONAL,
            purchase_price=Decimal("9000.00"),
        )
    )
    # Infrastructure asset without any service history
    store.add_asset(
        Asset(
            asset_id=HEATER_ID,
            property_id=PROPERTY_ID,
            name="Water Heater",
            category="WATER_HEATER",
            asset_type=AssetType.INFRASTRUCTURE,
        )
    )

    store.add_event(
        AssetEvent(
            event_id="evt-install",
            asset_id=HVAC_ID,
            event_type=AssetEventType.INSTALL,
            description="Installed unit",
            performed_by="contractor-7",
            contractor_name="Cool Air LLC",
            amount=Decimal("6400.00"),
            created_at=datetime(2021, 6, 1),
        )
    )
    store.add_event(
        AssetEvent(
            event_id="evt-service",
            asset_id=HVAC_ID,
            event_type=AssetEventType.SERVICE,
            description="Annual tune-up",
            performed_by="contractor-7",
            contractor_name="Cool Air LLC",
            amount=Decimal("150.00"),
            created_at=datetime(2023, 6, 1),
        )
    )
    store.add_event(
        AssetEvent(
            event_id="evt-note",
            asset_id=HVAC_ID,
            event_type=AssetEventType.NOTE,
            description="Owner note",
            created_at=datetime(2023, 7, 1),
        )
    )
    store.add_event(
        AssetEvent(
            event_id="evt-ring",
            asset_id=RING_ID,
            event_type=AssetEventType.INSTALL,
            description="Appraised",
            amount=Decimal("9000.00"),
            created_at=datetime(2022, 2, 14),
        )
    )

    store.add_document(
        Document(
            document_id="doc-hvac",
            property_id=PROPERTY_ID,
            asset_id=HVAC_ID,
            title="HVAC receipt",
            document_type=DocumentType.RECEIPT,
            uploaded_by=OWNER_ID,
            amount=Decimal("6400.00"),
            uploaded_at=datetime(2021, 6, 2),
        )
    )
    store.add_document(
        Document(
            document_id="doc-ring",
            property_id=PROPERTY_ID,
            asset_id=RING_ID,
            title="Ring appraisal",
            document_type=DocumentType.OTHER,
            uploaded_by=OWNER_ID,
            uploaded_at=datetime(2022, 2, 15),
        )
    )
    store.add_document(
        Document(
            document_id="doc-inspection",
            property_id=PROPERTY_ID,
            title="Home inspection",
            document_type=DocumentType.INSPECTION,
            uploaded_by=OWNER_ID,
            uploaded_at=datetime(2020, 5, 2),
        )
    )
    return store


@pytest.fixture
def sink() -> RecordingSink:
    """In-memory audit sink."""
    return RecordingSink()


@pytest.fixture
def registry(store: PropertyDataStore, sink: RecordingSink) -> IdentifierRegistry:
    """Registry over the sample store with a deterministic clock."""
    return IdentifierRegistry(store, audit=AuditTrail(sink), clock=StepClock())


@pytest.fixture
def service(registry: IdentifierRegistry) -> IdentifierService:
    """Service wired to the sample registry."""
    return IdentifierService(registry)
