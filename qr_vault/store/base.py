"""Persistence contract shared by every store backend."""

from abc import ABC, abstractmethod
from datetime import datetime

from qr_vault.models import (
    Asset,
    AssetEvent,
    AssetType,
    Document,
    MasterIdentifier,
    PrivacySettings,
    Property,
)


class PropertyStore(ABC):
    """Persisted record read and written by the registry, settings store and resolver.

    Every method is request-scoped: implementations hand out copies, never
    live references into shared state.
    """

    # Property data
    @abstractmethod
    def get_property(self, property_id: str) -> Property:
        """Return a property or raise ``EntityNotFoundError``."""

    @abstractmethod
    def get_asset(self, asset_id: str) -> Asset:
        """Return an asset or raise ``EntityNotFoundError``."""

    @abstractmethod
    def list_assets(self, property_id: str) -> list[Asset]:
        """All assets of a property, both classifications."""

    @abstractmethod
    def list_events(self, property_id: str) -> list[AssetEvent]:
        """Events of every asset at a property."""

    @abstractmethod
    def list_documents(self, property_id: str) -> list[Document]:
        """Documents filed against a property or any of its assets."""

    @abstractmethod
    def set_asset_type(self, asset_id: str, asset_type: AssetType) -> Asset:
        """Persist a new classification and return the updated asset."""

    # Identifiers
    @abstractmethod
    def current_identifier(self, property_id: str) -> MasterIdentifier | None:
        """Most recently issued identifier of a property, active or revoked."""

    @abstractmethod
    def find_identifier(self, token: str) -> MasterIdentifier | None:
        """Look an identifier up by its public token."""

    @abstractmethod
    def issue_identifier(
        self,
        property_id: str,
        token: str,
        settings: PrivacySettings,
        issued_at: datetime,
    ) -> MasterIdentifier:
        """Revoke any active identifier and issue a new one in one atomic step.

        Raises
        ------
        EntityNotFoundError
            If the property does not exist.
        ConflictError
            If the token collides or a concurrent issue won the race.
        """

    @abstractmethod
    def revoke_identifier(self, property_id: str, revoked_at: datetime) -> MasterIdentifier | None:
        """Revoke the active identifier.

        Returns the current identifier (already-revoked ones keep their
        original timestamp) or ``None`` if none was ever issued.
        """

    @abstractmethod
    def save_privacy_settings(self, identifier_id: str, settings: PrivacySettings) -> None:
        """Overwrite the settings of an active identifier.

        Raises ``ConflictError`` if the identifier has been revoked.
        """

    @abstractmethod
    def seeded_privacy_settings(self, property_id: str) -> PrivacySettings | None:
        """Settings stored before any identifier was issued."""

    @abstractmethod
    def seed_privacy_settings(self, property_id: str, settings: PrivacySettings) -> None:
        """Store settings to be used by the first ``generate``.

        Raises ``ConflictError`` once any identifier has been issued.
        """

    def snapshot(self, property_id: str) -> tuple[Property, list[Asset], list[AssetEvent], list[Document]]:
        """Everything the resolver needs for one property."""
        prop = self.get_property(property_id)
        return (
            prop,
            self.list_assets(property_id),
            self.list_events(property_id),
            self.list_documents(property_id),
        )
