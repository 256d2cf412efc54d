"""Asset visibility classification."""

import logging
from collections.abc import Iterable

from qr_vault.exceptions import ForbiddenError, ValidationError
from qr_vault.models import Asset, AssetType, OwnerSession
from qr_vault.registry import IdentifierRegistry

logger = logging.getLogger(__name__)


def classification(asset: Asset) -> AssetType:
    """Effective classification of an asset."""
    # Unclassified legacy rows count as infrastructure
    return asset.asset_type or AssetType.INFRASTRUCTURE


def is_disclosable(asset: Asset) -> bool:
    """Whether an asset may appear in a non-owner projection."""
    return classification(asset) is AssetType.INFRASTRUCTURE


def partition(assets: Iterable[Asset]) -> tuple[list[Asset], list[Asset]]:
    """Split assets into (disclosable, owner-only)."""
    public: list[Asset] = []
    private: list[Asset] = []
    for asset in assets:
        (public if is_disclosable(asset) else private).append(asset)
    return public, private


class AssetVisibilityClassifier:
    """Owner-side control over each asset's ``asset_type``."""

    def __init__(self, registry: IdentifierRegistry) -> None:
        self.registry = registry
        self.store = registry.store

    is_disclosable = staticmethod(is_disclosable)
    partition = staticmethod(partition)

    def reclassify(
        self,
        asset_id: str,
        session: OwnerSession | None,
        asset_type: AssetType | str,
    ) -> Asset:
        """Change an asset's classification.

        Raises
        ------
        ValidationError
            If ``asset_type`` is not a known classification.
        ForbiddenError
            If ``session`` does not own the asset's property.
        """
        try:
            new_type = AssetType(asset_type)
        except ValueError as e:
            raise ValidationError(f"Invalid asset type: {asset_type!r}") from e

        asset = self.store.get_asset(asset_id)
        try:
            self.registry.authorize(asset.property_id, session)
        except ForbiddenError:
            raise ForbiddenError(f"Not the owner of asset {asset_id}") from None

        if asset.asset_type == new_type:
            return asset

        previous = classification(asset)
        updated = self.store.set_asset_type(asset_id, new_type)
        logger.info("Asset %s reclassified %s -> %s", asset_id, previous.value, new_type.value)
        self.registry.audit.emit(
            "asset.reclassified",
            asset.property_id,
            {"asset_id": asset_id, "from": previous.value, "to": new_type.value},
        )
        return updated
