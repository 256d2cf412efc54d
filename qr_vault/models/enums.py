"""Enumeration types for property and identifier entities."""

from enum import Enum


class AssetType(str, Enum):
    INFRASTRUCTURE = "INFRASTRUCTURE"
    PERSONAL = "PERSONAL"


class PropertyType(str, Enum):
    HOUSE = "HOUSE"
    APARTMENT = "APARTMENT"
    CONDO = "CONDO"
    TOWNHOUSE = "TOWNHOUSE"


class AssetCategory(str, Enum):
    HVAC = "HVAC"
    PLUMBING = "PLUMBING"
    ELECTRICAL = "ELECTRICAL"
    APPLIANCE = "APPLIANCE"
    ROOFING = "ROOFING"
    WATER_HEATER = "WATER_HEATER"
    JEWELRY = "JEWELRY"
    ELECTRONICS = "ELECTRONICS"
    FURNITURE = "FURNITURE"
    OTHER = "OTHER"


class AssetEventType(str, Enum):
    INSTALL = "INSTALL"
    SERVICE = "SERVICE"
    INSPECTION = "INSPECTION"
    WARRANTY = "WARRANTY"
    RECALL = "RECALL"
    TRANSFER = "TRANSFER"
    NOTE = "NOTE"

    @property
    def disclosable(self) -> bool:
        """Whether events of this type may appear in a public projection."""
        return self in PUBLIC_EVENT_TYPES


PUBLIC_EVENT_TYPES = frozenset({
    AssetEventType.INSTALL,
    AssetEventType.SERVICE,
    AssetEventType.INSPECTION,
    AssetEventType.WARRANTY,
    AssetEventType.RECALL,
})


class DocumentType(str, Enum):
    RECEIPT = "RECEIPT"
    WARRANTY = "WARRANTY"
    MANUAL = "MANUAL"
    INSPECTION = "INSPECTION"
    PERMIT = "PERMIT"
    OTHER = "OTHER"


class IdentifierState(str, Enum):
    UNISSUED = "UNISSUED"
    ACTIVE = "ACTIVE"
    REVOKED = "REVOKED"
