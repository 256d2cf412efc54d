"""Domain models for properties, assets and master identifiers."""

from qr_vault.models.base import Address, Event
from qr_vault.models.enums import (
    AssetCategory,
    AssetEventType,
    AssetType,
    DocumentType,
    IdentifierState,
    PropertyType,
)
from qr_vault.models.identifier import (
    DEFAULT_PRIVACY,
    IdentifierStatus,
    MasterIdentifier,
    PrivacySettings,
)
from qr_vault.models.projection import ProjectedAsset, ProjectedView
from qr_vault.models.property import Asset, AssetEvent, Document, Property
from qr_vault.models.viewer import OwnerSession, OwnerViewer, PublicViewer, Viewer

__all__ = [
    "Address",
    "Asset",
    "AssetCategory",
    "AssetEvent",
    "AssetEventType",
    "AssetType",
    "DEFAULT_PRIVACY",
    "Document",
    "DocumentType",
    "Event",
    "IdentifierState",
    "IdentifierStatus",
    "MasterIdentifier",
    "OwnerSession",
    "OwnerViewer",
    "PrivacySettings",
    "ProjectedAsset",
    "ProjectedView",
    "Property",
    "PropertyType",
    "PublicViewer",
    "Viewer",
]
