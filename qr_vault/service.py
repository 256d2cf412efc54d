"""Request-scoped orchestration behind the HTTP contract."""

import logging
from collections.abc import Mapping
from typing import Any

from qr_vault.audit import AuditTrail, EventSink
from qr_vault.classifier import AssetVisibilityClassifier
from qr_vault.config import QrVaultConfig
from qr_vault.exceptions import NOT_ACCESSIBLE, EntityNotFoundError
from qr_vault.models import (
    Asset,
    AssetType,
    IdentifierStatus,
    OwnerSession,
    OwnerViewer,
    ProjectedAsset,
    ProjectedView,
    PublicViewer,
)
from qr_vault.privacy import PrivacySettingsStore
from qr_vault.registry import IdentifierRegistry
from qr_vault.resolver import resolve, resolve_asset
from qr_vault.store.base import PropertyStore

logger = logging.getLogger(__name__)


class IdentifierService:
    """One entry point per HTTP route.

    Owner routes take the ``OwnerSession`` produced by the auth
    collaborator; public routes take nothing but the token or asset id.
    """

    def __init__(self, registry: IdentifierRegistry) -> None:
        self.registry = registry
        self.store: PropertyStore = registry.store
        self.privacy = PrivacySettingsStore(registry)
        self.classifier = AssetVisibilityClassifier(registry)

    # Owner routes
    def get_identifier(self, property_id: str, session: OwnerSession | None) -> IdentifierStatus:
        return self.registry.status(property_id, session)

    def submit(
        self,
        property_id: str,
        session: OwnerSession | None,
        privacy_settings: Mapping[str, Any] | None = None,
        regenerate: bool = False,
    ) -> IdentifierStatus:
        """Generate (``regenerate=True``) or update privacy settings only."""
        if regenerate:
            self.registry.generate(property_id, session, privacy_settings)
        elif privacy_settings is not None:
            self.privacy.update(property_id, session, privacy_settings)
        return self.registry.status(property_id, session)

    def revoke(self, property_id: str, session: OwnerSession | None) -> None:
        self.registry.revoke(property_id, session)

    def owner_property(self, property_id: str, session: OwnerSession | None) -> ProjectedView:
        """Full, unfiltered view for the owner."""
        self.registry.authorize(property_id, session)
        prop, assets, events, documents = self.store.snapshot(property_id)
        identifier = self.store.current_identifier(property_id)
        return resolve(
            OwnerViewer(account_id=session.account_id, property_id=property_id),
            prop,
            assets,
            identifier,
            events=events,
            documents=documents,
            settings=self.registry.settings_for(property_id, identifier),
        )

    def reclassify_asset(
        self,
        asset_id: str,
        session: OwnerSession | None,
        asset_type: AssetType | str,
    ) -> Asset:
        return self.classifier.reclassify(asset_id, session, asset_type)

    # Public routes
    def public_property(self, token: str) -> ProjectedView:
        resolved = self.registry.resolve_token(token)
        prop, assets, events, documents = self.store.snapshot(resolved.property.property_id)
        return resolve(
            PublicViewer(token=token),
            prop,
            assets,
            resolved.identifier,
            events=events,
            documents=documents,
        )

    def public_asset(self, asset_id: str, token: str | None = None) -> ProjectedAsset:
        """Single-asset projection.

        The asset's property must have an active identifier; when ``token``
        is given it must be that identifier's token.
        """
        try:
            asset = self.store.get_asset(asset_id)
            prop = self.store.get_property(asset.property_id)
        except EntityNotFoundError:
            raise EntityNotFoundError(NOT_ACCESSIBLE) from None

        identifier = self.store.current_identifier(prop.property_id)
        if identifier is None or (token is not None and token != identifier.token):
            raise EntityNotFoundError(NOT_ACCESSIBLE)

        return resolve_asset(
            PublicViewer(token=identifier.token),
            prop,
            asset,
            identifier,
            events=self.store.list_events(prop.property_id),
            documents=self.store.list_documents(prop.property_id),
        )


def create_store(config: QrVaultConfig) -> PropertyStore:
    """Instantiate the configured store backend."""
    if config.store_backend == "postgres":
        from qr_vault.store.postgres import PostgresPropertyStore

        store = PostgresPropertyStore(config.postgres.connection_string)
        store.create_tables()
        return store

    from qr_vault.store.memory import PropertyDataStore

    return PropertyDataStore()


def create_sink(config: QrVaultConfig) -> EventSink | None:
    """Instantiate the configured audit sink."""
    if config.audit_sink == "kafka":
        from qr_vault.sinks.kafka import KafkaSink

        return KafkaSink(config.kafka)
    if config.audit_sink == "console":
        from qr_vault.sinks.console import ConsoleSink

        return ConsoleSink()
    return None


def build_service(config: QrVaultConfig, store: PropertyStore | None = None) -> IdentifierService:
    """Wire store, audit trail and registry from configuration."""
    registry = IdentifierRegistry(
        store or create_store(config),
        config=config.identifier,
        server=config.server,
        audit=AuditTrail(create_sink(config)),
    )
    logger.info(
        "Service ready: store=%s, audit_sink=%s",
        config.store_backend,
        config.audit_sink,
    )
    return IdentifierService(registry)
