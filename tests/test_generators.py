"""Tests for demo data generators."""

from qr_vault.generators import PropertyGenerator
from qr_vault.models import AssetEventType, AssetType, OwnerSession
from qr_vault.registry import IdentifierRegistry
from qr_vault.service import IdentifierService
from qr_vault.store.memory import PropertyDataStore


class TestPropertyGenerator:
    """Tests for PropertyGenerator."""

    def test_generate(self, seed: int) -> None:
        """Test property generation."""
        bundle = PropertyGenerator(seed=seed).generate("owner-001")

        assert bundle.property.owner_id == "owner-001"
        assert bundle.property.address.city
        assert len(bundle.assets) == 6
        assert all(a.property_id == bundle.property.property_id for a in bundle.assets)

    def test_mixed_classifications(self, seed: int) -> None:
        """Full catalog yields both public and private assets."""
        bundle = PropertyGenerator(seed=seed).generate("owner-001", assets_per_property=20)

        types = {a.asset_type for a in bundle.assets}
        assert types == {AssetType.INFRASTRUCTURE, AssetType.PERSONAL}
        assert len(bundle.assets) == len(PropertyGenerator.CATALOG)

    def test_every_asset_has_install_event(self, seed: int) -> None:
        bundle = PropertyGenerator(seed=seed).generate("owner-001")

        installed = {e.asset_id for e in bundle.events if e.event_type is AssetEventType.INSTALL}
        assert installed == {a.asset_id for a in bundle.assets}

    def test_personal_assets_have_no_contractor(self, seed: int) -> None:
        bundle = PropertyGenerator(seed=seed).generate("owner-001", assets_per_property=20)

        for asset in bundle.assets:
            if asset.asset_type is AssetType.PERSONAL:
                assert asset.installer_id is None

    def test_reproducible(self, seed: int) -> None:
        first = PropertyGenerator(seed=seed).generate("owner-001")
        second = PropertyGenerator(seed=seed).generate("owner-001")

        assert first.property.property_id == second.property.property_id
        assert [a.name for a in first.assets] == [a.name for a in second.assets]

    def test_populate(self, seed: int) -> None:
        store = PropertyDataStore()

        bundles = PropertyGenerator(seed=seed).populate(store, "owner-001", count=3, assets_per_property=4)

        summary = store.summary()
        assert summary["properties"] == 3
        assert summary["assets"] == 12
        assert summary["events"] == sum(len(b.events) for b in bundles)
        assert summary["documents"] == sum(len(b.documents) for b in bundles)

    def test_public_projection_of_generated_property(self, seed: int) -> None:
        store = PropertyDataStore()
        bundle = PropertyGenerator(seed=seed).populate(store, "owner-001", assets_per_property=20)[0]
        service = IdentifierService(IdentifierRegistry(store))
        session = OwnerSession(account_id="owner-001")

        token = service.submit(bundle.property.property_id, session, regenerate=True).token
        view = service.public_property(token)

        personal = {a.asset_id for a in bundle.assets if a.asset_type is AssetType.PERSONAL}
        assert personal
        assert not personal & {a["id"] for a in view.assets}
