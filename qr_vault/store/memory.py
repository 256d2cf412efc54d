"""In-memory property store with referential integrity."""

import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime

from qr_vault.exceptions import ConflictError, EntityNotFoundError, ReferentialIntegrityError
from qr_vault.models import (
    Asset,
    AssetEvent,
    AssetType,
    Document,
    MasterIdentifier,
    PrivacySettings,
    Property,
)
from qr_vault.store.base import PropertyStore


@dataclass
class PropertyDataStore(PropertyStore):
    """In-memory store for properties, assets and identifiers with relationship tracking."""

    # Primary entities
    properties: dict[str, Property] = field(default_factory=dict)
    assets: dict[str, Asset] = field(default_factory=dict)
    events: list[AssetEvent] = field(default_factory=list)
    documents: list[Document] = field(default_factory=list)
    identifiers: dict[str, MasterIdentifier] = field(default_factory=dict)  # by token

    # Relationship indexes
    _property_assets: dict[str, list[str]] = field(default_factory=dict)
    _asset_events: dict[str, list[int]] = field(default_factory=dict)
    _property_documents: dict[str, list[int]] = field(default_factory=dict)
    _property_identifiers: dict[str, list[str]] = field(default_factory=dict)  # tokens, issue order
    _seeded_settings: dict[str, PrivacySettings] = field(default_factory=dict)

    # Guards identifier issue/revoke and settings writes
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def add_property(self, prop: Property) -> None:
        """Add a property to the store."""
        if prop.created_at is None:
            prop.created_at = datetime.now()
        self.properties[prop.property_id] = prop
        self._property_assets.setdefault(prop.property_id, [])
        self._property_documents.setdefault(prop.property_id, [])
        self._property_identifiers.setdefault(prop.property_id, [])

    def add_asset(self, asset: Asset) -> None:
        """Add an asset to the store."""
        if asset.property_id not in self.properties:
            raise ReferentialIntegrityError(f"Property {asset.property_id} not found")

        if asset.created_at is None:
            asset.created_at = datetime.now()
        self.assets[asset.asset_id] = asset
        self._property_assets[asset.property_id].append(asset.asset_id)
        self._asset_events[asset.asset_id] = []

    def add_event(self, event: AssetEvent) -> None:
        """Add a service-history event to the store."""
        if event.asset_id not in self.assets:
            raise ReferentialIntegrityError(f"Asset {event.asset_id} not found")

        if event.created_at is None:
            event.created_at = datetime.now()
        idx = len(self.events)
        self.events.append(event)
        self._asset_events[event.asset_id].append(idx)

    def add_document(self, document: Document) -> None:
        """Add a document record to the store."""
        if document.property_id not in self.properties:
            raise ReferentialIntegrityError(f"Property {document.property_id} not found")

        if document.asset_id is not None:
            asset = self.assets.get(document.asset_id)
            if asset is None:
                raise ReferentialIntegrityError(f"Asset {document.asset_id} not found")
            if asset.property_id != document.property_id:
                raise ReferentialIntegrityError(
                    f"Asset {document.asset_id} does not belong to property {document.property_id}"
                )

        if document.uploaded_at is None:
            document.uploaded_at = datetime.now()
        idx = len(self.documents)
        self.documents.append(document)
        self._property_documents[document.property_id].append(idx)

    # Query methods
    def get_property(self, property_id: str) -> Property:
        """Get a property by id."""
        prop = self.properties.get(property_id)
        if prop is None:
            raise EntityNotFoundError(f"Property {property_id} not found")
        return replace(prop)

    def get_asset(self, asset_id: str) -> Asset:
        """Get an asset by id."""
        asset = self.assets.get(asset_id)
        if asset is None:
            raise EntityNotFoundError(f"Asset {asset_id} not found")
        return replace(asset)

    def list_assets(self, property_id: str) -> list[Asset]:
        """Get all assets for a property."""
        asset_ids = self._property_assets.get(property_id, [])
        return [replace(self.assets[aid]) for aid in asset_ids]

    def list_asset_events(self, asset_id: str) -> list[AssetEvent]:
        """Get all events for an asset."""
        indices = self._asset_events.get(asset_id, [])
        return [replace(self.events[i]) for i in indices]

    def list_events(self, property_id: str) -> list[AssetEvent]:
        """Get all events for every asset of a property."""
        result: list[AssetEvent] = []
        for asset_id in self._property_assets.get(property_id, []):
            result.extend(self.list_asset_events(asset_id))
        return result

    def list_documents(self, property_id: str) -> list[Document]:
        """Get all documents for a property."""
        indices = self._property_documents.get(property_id, [])
        return [replace(self.documents[i]) for i in indices]

    def set_asset_type(self, asset_id: str, asset_type: AssetType) -> Asset:
        """Change an asset's classification."""
        asset = self.assets.get(asset_id)
        if asset is None:
            raise EntityNotFoundError(f"Asset {asset_id} not found")
        asset.asset_type = asset_type
        return replace(asset)

    # Identifier lifecycle
    def current_identifier(self, property_id: str) -> MasterIdentifier | None:
        """Most recently issued identifier of a property."""
        tokens = self._property_identifiers.get(property_id)
        if not tokens:
            return None
        return replace(self.identifiers[tokens[-1]])

    def find_identifier(self, token: str) -> MasterIdentifier | None:
        """Look an identifier up by token."""
        identifier = self.identifiers.get(token)
        return replace(identifier) if identifier is not None else None

    def issue_identifier(
        self,
        property_id: str,
        token: str,
        settings: PrivacySettings,
        issued_at: datetime,
    ) -> MasterIdentifier:
        """Revoke the active identifier and issue a new one under a single lock."""
        with self._lock:
            if property_id not in self.properties:
                raise EntityNotFoundError(f"Property {property_id} not found")
            if token in self.identifiers:
                raise ConflictError("Token already issued")

            for existing in self._property_identifiers[property_id]:
                self.identifiers[existing].revoke(issued_at)

            identifier = MasterIdentifier(
                identifier_id=str(uuid.uuid4()),
                property_id=property_id,
                token=token,
                issued_at=issued_at,
                privacy_settings=settings,
            )
            self.identifiers[token] = identifier
            self._property_identifiers[property_id].append(token)
            self._seeded_settings.pop(property_id, None)
            return replace(identifier)

    def revoke_identifier(self, property_id: str, revoked_at: datetime) -> MasterIdentifier | None:
        """Revoke the active identifier of a property, if any."""
        with self._lock:
            if property_id not in self.properties:
                raise EntityNotFoundError(f"Property {property_id} not found")
            tokens = self._property_identifiers[property_id]
            if not tokens:
                return None
            identifier = self.identifiers[tokens[-1]]
            identifier.revoke(revoked_at)
            return replace(identifier)

    def save_privacy_settings(self, identifier_id: str, settings: PrivacySettings) -> None:
        """Overwrite the settings of an active identifier."""
        with self._lock:
            for identifier in self.identifiers.values():
                if identifier.identifier_id == identifier_id:
                    if not identifier.is_active:
                        raise ConflictError("Identifier has been revoked", revoked=True)
                    identifier.privacy_settings = settings
                    return
            raise EntityNotFoundError(f"Identifier {identifier_id} not found")

    def seeded_privacy_settings(self, property_id: str) -> PrivacySettings | None:
        """Settings stored before any identifier was issued."""
        return self._seeded_settings.get(property_id)

    def seed_privacy_settings(self, property_id: str, settings: PrivacySettings) -> None:
        """Store settings for the first identifier of a property."""
        with self._lock:
            if property_id not in self.properties:
                raise EntityNotFoundError(f"Property {property_id} not found")
            if self._property_identifiers[property_id]:
                raise ConflictError("Identifier already issued for property")
            self._seeded_settings[property_id] = settings

    def active_identifier_count(self, property_id: str) -> int:
        """Number of non-revoked identifiers for a property (0 or 1)."""
        return sum(
            1
            for token in self._property_identifiers.get(property_id, [])
            if self.identifiers[token].is_active
        )

    def summary(self) -> dict[str, int]:
        """Return summary counts of all entities."""
        return {
            "properties": len(self.properties),
            "assets": len(self.assets),
            "events": len(self.events),
            "documents": len(self.documents),
            "identifiers": len(self.identifiers),
            "active_identifiers": sum(1 for i in self.identifiers.values() if i.is_active),
        }
