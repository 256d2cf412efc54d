"""Identifier registry: minting, revoking and resolving master identifiers."""

import logging
import secrets
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from qr_vault.audit import AuditTrail
from qr_vault.config import IdentifierConfig, ServerConfig
from qr_vault.exceptions import NOT_ACCESSIBLE, EntityNotFoundError, ForbiddenError
from qr_vault.logging import short_token
from qr_vault.models import (
    DEFAULT_PRIVACY,
    IdentifierState,
    IdentifierStatus,
    MasterIdentifier,
    OwnerSession,
    PrivacySettings,
    Property,
)
from qr_vault.store.base import PropertyStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ResolvedToken:
    """A public token that currently grants access."""

    property: Property
    identifier: MasterIdentifier


class IdentifierRegistry:
    """Owns the mapping from public tokens to properties and their lifecycle.

    Parameters
    ----------
    store : PropertyStore
        Persisted record.
    config : IdentifierConfig | None
        Token minting options.
    server : ServerConfig | None
        Used to build public URLs for the owner view.
    audit : AuditTrail | None
        Receives lifecycle events.
    clock : Callable[[], datetime] | None
        Time source, UTC by default.
    """

    def __init__(
        self,
        store: PropertyStore,
        config: IdentifierConfig | None = None,
        server: ServerConfig | None = None,
        audit: AuditTrail | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.config = config or IdentifierConfig()
        self.server = server or ServerConfig()
        self.audit = audit or AuditTrail()
        self.clock = clock or _utcnow

    def authorize(self, property_id: str, session: OwnerSession | None) -> Property:
        """Return the property if ``session`` belongs to its owner.

        Raises
        ------
        EntityNotFoundError
            If the property does not exist.
        ForbiddenError
            If the session is missing or belongs to another account.
        """
        prop = self.store.get_property(property_id)
        if session is None or session.account_id != prop.owner_id:
            raise ForbiddenError(f"Not the owner of property {property_id}")
        return prop

    def settings_for(
        self,
        property_id: str,
        current: MasterIdentifier | None = None,
    ) -> PrivacySettings:
        """Settings shown to the owner and inherited by the next identifier."""
        if current is None:
            current = self.store.current_identifier(property_id)
        if current is not None:
            return current.privacy_settings
        return self.store.seeded_privacy_settings(property_id) or DEFAULT_PRIVACY

    def mint_token(self) -> str:
        return secrets.token_urlsafe(self.config.token_bytes)

    def generate(
        self,
        property_id: str,
        session: OwnerSession | None,
        privacy_settings: Mapping[str, Any] | None = None,
    ) -> MasterIdentifier:
        """Issue a new identifier, revoking the active one in the same transaction.

        Holders of the previous token lose access permanently.
        """
        self.authorize(property_id, session)
        previous = self.store.current_identifier(property_id)
        settings = self.settings_for(property_id, previous).merged(privacy_settings)

        identifier = self.store.issue_identifier(
            property_id,
            self.mint_token(),
            settings,
            self.clock(),
        )

        if previous is not None and previous.is_active:
            logger.info(
                "Regenerated identifier for property %s: %s replaced %s",
                property_id,
                short_token(identifier.token),
                short_token(previous.token),
            )
        else:
            logger.info(
                "Issued identifier for property %s: %s",
                property_id,
                short_token(identifier.token),
            )
        self.audit.emit(
            "master_identifier.generated",
            property_id,
            {
                "identifier_id": identifier.identifier_id,
                "replaced_identifier_id": previous.identifier_id if previous else None,
                "privacy_settings": settings.to_dict(),
            },
        )
        return identifier

    def revoke(self, property_id: str, session: OwnerSession | None) -> None:
        """Revoke the active identifier. Repeated calls are no-ops."""
        self.authorize(property_id, session)
        current = self.store.current_identifier(property_id)
        if current is None:
            logger.debug("Revoke on property %s with no identifier ignored", property_id)
            return
        if not current.is_active:
            logger.debug("Identifier for property %s already revoked", property_id)
            return

        revoked = self.store.revoke_identifier(property_id, self.clock())
        logger.info(
            "Revoked identifier %s for property %s",
            short_token(current.token),
            property_id,
        )
        self.audit.emit(
            "master_identifier.revoked",
            property_id,
            {
                "identifier_id": current.identifier_id,
                "revoked_at": revoked.revoked_at.isoformat() if revoked and revoked.revoked_at else None,
            },
        )

    def resolve_token(self, token: str) -> ResolvedToken:
        """Resolve a public token.

        Unknown and revoked tokens raise the same ``EntityNotFoundError`` so a
        public caller cannot tell them apart.
        """
        identifier = self.store.find_identifier(token) if token else None
        if identifier is None or not identifier.is_active:
            logger.debug("Public lookup of %s refused", short_token(token))
            raise EntityNotFoundError(NOT_ACCESSIBLE)
        try:
            prop = self.store.get_property(identifier.property_id)
        except EntityNotFoundError:
            raise EntityNotFoundError(NOT_ACCESSIBLE) from None
        return ResolvedToken(property=prop, identifier=identifier)

    def status(self, property_id: str, session: OwnerSession | None) -> IdentifierStatus:
        """Owner-facing state, which does distinguish revoked from unissued."""
        self.authorize(property_id, session)
        current = self.store.current_identifier(property_id)
        settings = self.settings_for(property_id, current)
        if current is None:
            return IdentifierStatus(
                property_id=property_id,
                state=IdentifierState.UNISSUED,
                privacy_settings=settings,
            )
        return IdentifierStatus(
            property_id=property_id,
            state=current.state,
            privacy_settings=settings,
            token=current.token,
            revoked_at=current.revoked_at,
            public_url=self.server.public_url(current.token) if current.is_active else None,
        )
