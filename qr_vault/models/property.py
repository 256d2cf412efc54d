"""Property, asset and service-history models."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from qr_vault.models.base import Address
from qr_vault.models.enums import AssetEventType, AssetType, DocumentType, PropertyType


@dataclass
class Property:
    """A home registered by its owner."""

    property_id: str
    owner_id: str  # Account that may mint identifiers for this property
    name: str
    address: Address
    property_type: PropertyType = PropertyType.HOUSE
    created_at: datetime | None = None


@dataclass
class Asset:
    """An item tracked at a property.

    ``asset_type`` is the disclosure axis: only ``INFRASTRUCTURE`` assets
    ever reach a public projection. ``None`` marks an unclassified row and
    is treated as ``INFRASTRUCTURE``.
    """

    asset_id: str
    property_id: str
    name: str
    category: str
    asset_type: AssetType | None = AssetType.INFRASTRUCTURE
    brand: str | None = None
    model: str | None = None
    serial: str | None = None
    status: str = "ACTIVE"
    installed_at: datetime | None = None
    warranty_until: date | None = None
    installer_id: str | None = None
    installer_name: str | None = None
    purchase_price: Decimal | None = None
    created_at: datetime | None = None


@dataclass
class AssetEvent:
    """Service-history entry for an asset."""

    event_id: str
    asset_id: str
    event_type: AssetEventType
    description: str = ""
    performed_by: str | None = None  # Contractor account id
    contractor_name: str | None = None
    amount: Decimal | None = None
    created_at: datetime | None = None


@dataclass
class Document:
    """Metadata of an uploaded document (the file itself lives elsewhere)."""

    document_id: str
    property_id: str
    title: str
    document_type: DocumentType = DocumentType.OTHER
    asset_id: str | None = None
    uploaded_by: str | None = None
    amount: Decimal | None = None
    issued_on: date | None = None
    uploaded_at: datetime | None = None
