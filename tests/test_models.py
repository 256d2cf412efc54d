"""Tests for domain models."""

from datetime import datetime, timezone

import pytest

from qr_vault.exceptions import ValidationError
from qr_vault.models import (
    DEFAULT_PRIVACY,
    Address,
    AssetEventType,
    IdentifierState,
    IdentifierStatus,
    MasterIdentifier,
    PrivacySettings,
    ProjectedAsset,
    ProjectedView,
)

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)
T1 = datetime(2024, 2, 1, tzinfo=timezone.utc)


class TestAddress:
    """Tests for Address."""

    @pytest.fixture
    def address(self) -> Address:
        return Address(
            street="Maple Avenue",
            number="42",
            city="Springfield",
            state="IL",
            postal_code="62704",
            complement="Unit B",
        )

    def test_line1(self, address: Address) -> None:
        assert address.line1 == "42 Maple Avenue"

    def test_city_state_hides_street(self, address: Address) -> None:
        reduced = address.city_state()

        assert reduced == {"city": "Springfield", "state": "IL"}
        assert "Maple" not in str(reduced)

    def test_full(self, address: Address) -> None:
        full = address.full()

        assert full["line1"] == "42 Maple Avenue"
        assert full["complement"] == "Unit B"
        assert full["postalCode"] == "62704"
        assert full["country"] == "US"


class TestPrivacySettings:
    """Tests for PrivacySettings."""

    def test_defaults(self) -> None:
        assert DEFAULT_PRIVACY.to_dict() == {
            "showFullAddress": False,
            "showContractors": True,
            "showDocuments": False,
            "showCosts": False,
        }

    def test_validate_partial_accepts_wire_and_attribute_names(self) -> None:
        result = PrivacySettings.validate_partial({"showCosts": True, "show_documents": False})

        assert result == {"show_costs": True, "show_documents": False}

    def test_validate_partial_rejects_unknown_key(self) -> None:
        with pytest.raises(ValidationError, match="showEverything"):
            PrivacySettings.validate_partial({"showEverything": True})

    @pytest.mark.parametrize("value", ["true", 1, None, 0.0])
    def test_validate_partial_rejects_non_boolean(self, value: object) -> None:
        with pytest.raises(ValidationError):
            PrivacySettings.validate_partial({"showCosts": value})

    def test_validate_partial_rejects_non_mapping(self) -> None:
        with pytest.raises(ValidationError):
            PrivacySettings.validate_partial(["showCosts"])

    def test_merged_replaces_only_supplied_fields(self) -> None:
        merged = DEFAULT_PRIVACY.merged({"showCosts": True})

        assert merged.show_costs is True
        assert merged.show_contractors is True
        assert merged.show_full_address is False
        assert DEFAULT_PRIVACY.show_costs is False

    def test_merged_empty_returns_self(self) -> None:
        assert DEFAULT_PRIVACY.merged(None) is DEFAULT_PRIVACY
        assert DEFAULT_PRIVACY.merged({}) is DEFAULT_PRIVACY

    def test_from_dict_partial_record(self) -> None:
        settings = PrivacySettings.from_dict({"showDocuments": True})

        assert settings.show_documents is True
        assert settings.show_contractors is True

    def test_all_combinations(self) -> None:
        combos = PrivacySettings.all_combinations()

        assert len(combos) == 16
        assert len(set(combos)) == 16
        assert DEFAULT_PRIVACY in combos

    def test_frozen(self) -> None:
        with pytest.raises(AttributeError):
            DEFAULT_PRIVACY.show_costs = True  # type: ignore[misc]


class TestMasterIdentifier:
    """Tests for MasterIdentifier."""

    def test_new_identifier_is_active(self) -> None:
        identifier = MasterIdentifier("id-1", "prop-001", "tok", T0)

        assert identifier.is_active
        assert identifier.state is IdentifierState.ACTIVE
        assert identifier.privacy_settings == DEFAULT_PRIVACY

    def test_revoke(self) -> None:
        identifier = MasterIdentifier("id-1", "prop-001", "tok", T0)

        assert identifier.revoke(T1) is True
        assert not identifier.is_active
        assert identifier.state is IdentifierState.REVOKED

    def test_revoke_is_monotonic(self) -> None:
        identifier = MasterIdentifier("id-1", "prop-001", "tok", T0)
        identifier.revoke(T0)

        assert identifier.revoke(T1) is False
        assert identifier.revoked_at == T0


class TestIdentifierStatus:
    """Tests for IdentifierStatus serialization."""

    def test_unissued(self) -> None:
        data = IdentifierStatus("prop-001", IdentifierState.UNISSUED, DEFAULT_PRIVACY).to_dict()

        assert data["masterIdentifier"] is None
        assert data["revokedAt"] is None
        assert data["publicUrl"] is None
        assert data["state"] == "UNISSUED"
        assert data["publicVisibility"] == DEFAULT_PRIVACY.to_dict()

    def test_revoked(self) -> None:
        data = IdentifierStatus(
            "prop-001",
            IdentifierState.REVOKED,
            DEFAULT_PRIVACY,
            token="tok",
            revoked_at=T1,
        ).to_dict()

        assert data["masterIdentifier"] == "tok"
        assert data["revokedAt"] == T1.isoformat()


class TestEventTypes:
    """Tests for event type disclosure."""

    def test_public_event_types(self) -> None:
        assert AssetEventType.INSTALL.disclosable
        assert AssetEventType.SERVICE.disclosable
        assert AssetEventType.RECALL.disclosable

    def test_private_event_types(self) -> None:
        assert not AssetEventType.NOTE.disclosable
        assert not AssetEventType.TRANSFER.disclosable


class TestProjections:
    """Tests for projection serialization."""

    def test_view_without_settings(self) -> None:
        data = ProjectedView(property={"id": "p"}).to_dict()

        assert data["isOwner"] is False
        assert "privacySettings" not in data

    def test_view_with_settings(self) -> None:
        data = ProjectedView(property={"id": "p"}, is_owner=True, privacy_settings=DEFAULT_PRIVACY).to_dict()

        assert data["isOwner"] is True
        assert data["privacySettings"] == DEFAULT_PRIVACY.to_dict()

    def test_asset_flattens_record(self) -> None:
        data = ProjectedAsset(asset={"id": "a", "name": "Boiler"}).to_dict()

        assert data["id"] == "a"
        assert data["events"] == []
        assert data["isOwner"] is False
