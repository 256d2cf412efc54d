"""Projected (field-filtered) views returned to viewers."""

from dataclasses import dataclass, field
from typing import Any

from qr_vault.models.identifier import PrivacySettings


@dataclass
class ProjectedView:
    """Property-level projection."""

    property: dict[str, Any]
    assets: list[dict[str, Any]] = field(default_factory=list)
    events: list[dict[str, Any]] = field(default_factory=list)
    documents: list[dict[str, Any]] = field(default_factory=list)
    timeline: list[dict[str, Any]] = field(default_factory=list)
    is_owner: bool = False
    privacy_settings: PrivacySettings | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "property": self.property,
            "assets": self.assets,
            "events": self.events,
            "documents": self.documents,
            "timeline": self.timeline,
            "isOwner": self.is_owner,
        }
        if self.privacy_settings is not None:
            data["privacySettings"] = self.privacy_settings.to_dict()
        return data


@dataclass
class ProjectedAsset:
    """Single-asset projection."""

    asset: dict[str, Any]
    events: list[dict[str, Any]] = field(default_factory=list)
    documents: list[dict[str, Any]] = field(default_factory=list)
    is_owner: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.asset,
            "events": self.events,
            "documents": self.documents,
            "isOwner": self.is_owner,
        }
