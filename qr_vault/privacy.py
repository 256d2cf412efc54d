"""Per-property privacy settings."""

import logging
from collections.abc import Mapping
from typing import Any

from qr_vault.exceptions import ConflictError
from qr_vault.models import OwnerSession, PrivacySettings
from qr_vault.registry import IdentifierRegistry

logger = logging.getLogger(__name__)

REGENERATE_TO_MODIFY = "Master QR code has been revoked. Regenerate to modify privacy settings."


class PrivacySettingsStore:
    """Reads and merges the four disclosure flags of a property.

    Settings belong to the property's current identifier. Before the first
    identifier exists they are kept as a pre-seed; once the current
    identifier is revoked they are frozen until a new one is generated.
    """

    def __init__(self, registry: IdentifierRegistry) -> None:
        self.registry = registry
        self.store = registry.store

    def current(self, property_id: str) -> PrivacySettings:
        return self.registry.settings_for(property_id)

    def update(
        self,
        property_id: str,
        session: OwnerSession | None,
        settings: Mapping[str, Any],
    ) -> PrivacySettings:
        """Merge ``settings`` into the stored record and return the full result.

        Raises
        ------
        ForbiddenError
            If ``session`` is not the owner's.
        ValidationError
            If the payload has unknown keys or non-boolean values.
        ConflictError
            If the current identifier is revoked. A pre-seed that loses the
            race to the first ``generate`` is applied to the new identifier.
        """
        self.registry.authorize(property_id, session)
        partial = PrivacySettings.validate_partial(settings)

        current = self.store.current_identifier(property_id)
        seeded = current is None
        if seeded:
            base = self.store.seeded_privacy_settings(property_id) or PrivacySettings()
            merged = base.merged(partial)
            try:
                self.store.seed_privacy_settings(property_id, merged)
                logger.info("Pre-seeded privacy settings for property %s", property_id)
            except ConflictError:
                # First identifier issued since the read; it owns the settings now
                current = self.store.current_identifier(property_id)
                if current is None:
                    raise
                seeded = False
                logger.info("Identifier issued during pre-seed for property %s", property_id)

        if not seeded:
            if not current.is_active:
                raise ConflictError(REGENERATE_TO_MODIFY, revoked=True)
            merged = current.privacy_settings.merged(partial)
            try:
                self.store.save_privacy_settings(current.identifier_id, merged)
            except ConflictError as e:
                # Revoked between read and write
                raise ConflictError(REGENERATE_TO_MODIFY, revoked=True) from e
            logger.info("Updated privacy settings for property %s", property_id)

        self.registry.audit.emit(
            "privacy_settings.updated",
            property_id,
            {"privacy_settings": merged.to_dict(), "seeded": seeded},
        )
        return merged
