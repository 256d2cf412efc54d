"""Master identifier and privacy settings models."""

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from typing import Any

from qr_vault.exceptions import ValidationError
from qr_vault.models.enums import IdentifierState

# Wire name -> attribute name
WIRE_KEYS: dict[str, str] = {
    "showFullAddress": "show_full_address",
    "showContractors": "show_contractors",
    "showDocuments": "show_documents",
    "showCosts": "show_costs",
}


@dataclass(frozen=True)
class PrivacySettings:
    """Four independent all-or-nothing disclosure flags."""

    show_full_address: bool = False
    show_contractors: bool = True
    show_documents: bool = False
    show_costs: bool = False

    @staticmethod
    def validate_partial(settings: Any) -> dict[str, bool]:
        """Validate a partial settings payload.

        Accepts wire names (``showCosts``) or attribute names
        (``show_costs``) and returns a dict keyed by attribute name.

        Raises
        ------
        ValidationError
            If the payload is not a mapping, carries an unknown key or a
            non-boolean value.
        """
        if not isinstance(settings, Mapping):
            raise ValidationError("Privacy settings must be an object")

        attrs = set(WIRE_KEYS.values())
        result: dict[str, bool] = {}
        for key, value in settings.items():
            attr = WIRE_KEYS.get(key, key)
            if attr not in attrs:
                raise ValidationError(f"Invalid privacy settings key: {key}")
            if not isinstance(value, bool):
                raise ValidationError(f"Privacy setting {key} must be boolean")
            result[attr] = value
        return result

    def merged(self, partial: Mapping[str, Any] | None) -> "PrivacySettings":
        """Return a copy with the supplied fields replaced."""
        if not partial:
            return self
        return replace(self, **self.validate_partial(partial))

    def to_dict(self) -> dict[str, bool]:
        """Serialize using wire names."""
        return {wire: getattr(self, attr) for wire, attr in WIRE_KEYS.items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "PrivacySettings":
        """Build settings from a (possibly partial) stored record."""
        return cls().merged(data)

    @classmethod
    def all_combinations(cls) -> list["PrivacySettings"]:
        """Every one of the 16 flag combinations."""
        names = [f.name for f in fields(cls)]
        return [
            cls(**{name: bool(mask & (1 << i)) for i, name in enumerate(names)})
            for mask in range(1 << len(names))
        ]


DEFAULT_PRIVACY = PrivacySettings()


@dataclass
class MasterIdentifier:
    """One issued public token for a property.

    A property may accumulate many instances over time; at most one of them
    has ``revoked_at`` unset.
    """

    identifier_id: str
    property_id: str
    token: str
    issued_at: datetime
    privacy_settings: PrivacySettings = field(default_factory=PrivacySettings)
    revoked_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        """Whether the token currently grants public access."""
        return self.revoked_at is None

    @property
    def state(self) -> IdentifierState:
        """Lifecycle state of this instance."""
        return IdentifierState.ACTIVE if self.is_active else IdentifierState.REVOKED

    def revoke(self, when: datetime) -> bool:
        """Mark this instance revoked.

        Returns ``False`` when already revoked; the original timestamp is
        kept.
        """
        if self.revoked_at is not None:
            return False
        self.revoked_at = when
        return True


@dataclass
class IdentifierStatus:
    """Owner-facing view of a property's identifier."""

    property_id: str
    state: IdentifierState
    privacy_settings: PrivacySettings
    token: str | None = None
    revoked_at: datetime | None = None
    public_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the ``GET /identifier/{id}`` response shape."""
        return {
            "masterIdentifier": self.token,
            "publicVisibility": self.privacy_settings.to_dict(),
            "revokedAt": self.revoked_at.isoformat() if self.revoked_at else None,
            "publicUrl": self.public_url,
            "state": self.state.value,
        }
