"""Tests for the property stores."""

from collections.abc import Iterator
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import psycopg
import pytest

from qr_vault.exceptions import ConflictError, EntityNotFoundError, ReferentialIntegrityError
from qr_vault.models import (
    Address,
    Asset,
    AssetEvent,
    AssetEventType,
    AssetType,
    Document,
    PrivacySettings,
    Property,
)
from qr_vault.store.memory import PropertyDataStore
from qr_vault.store.postgres import SCHEMA, PostgresPropertyStore

PROPERTY_ID = "prop-001"
HVAC_ID = "asset-hvac"
RING_ID = "asset-ring"
HEATER_ID = "asset-heater"

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)
T1 = datetime(2024, 2, 1, tzinfo=timezone.utc)
T2 = datetime(2024, 3, 1, tzinfo=timezone.utc)


class TestReferentialIntegrity:
    """Writes must reference existing parents."""

    def test_asset_requires_property(self) -> None:
        store = PropertyDataStore()
        with pytest.raises(ReferentialIntegrityError):
            store.add_asset(Asset("a", "missing", "Boiler", "HVAC"))

    def test_event_requires_asset(self, store: PropertyDataStore) -> None:
        with pytest.raises(ReferentialIntegrityError):
            store.add_event(AssetEvent("e", "missing", AssetEventType.SERVICE))

    def test_document_requires_property(self, store: PropertyDataStore) -> None:
        with pytest.raises(ReferentialIntegrityError):
            store.add_document(Document("d", "missing", "Receipt"))

    def test_document_asset_must_belong_to_property(self, store: PropertyDataStore) -> None:
        store.add_property(
            Property("prop-002", "owner-002", "Other", Address("Elm", "1", "Austin", "TX", "73301"))
        )
        with pytest.raises(ReferentialIntegrityError, match="does not belong"):
            store.add_document(Document("d", "prop-002", "Receipt", asset_id=HVAC_ID))

    def test_defaults_timestamps(self) -> None:
        store = PropertyDataStore()
        prop = Property("p", "o", "Home", Address("Elm", "1", "Austin", "TX", "73301"))
        store.add_property(prop)

        assert store.get_property("p").created_at is not None


class TestMemoryQueries:
    """Tests for read methods of PropertyDataStore."""

    def test_get_property_missing(self, store: PropertyDataStore) -> None:
        with pytest.raises(EntityNotFoundError):
            store.get_property("missing")

    def test_get_asset_missing(self, store: PropertyDataStore) -> None:
        with pytest.raises(EntityNotFoundError):
            store.get_asset("missing")

    def test_list_assets_includes_both_classifications(self, store: PropertyDataStore) -> None:
        ids = {a.asset_id for a in store.list_assets(PROPERTY_ID)}

        assert ids == {HVAC_ID, RING_ID, HEATER_ID}

    def test_list_events(self, store: PropertyDataStore) -> None:
        assert len(store.list_events(PROPERTY_ID)) == 4
        assert store.list_asset_events(HEATER_ID) == []

    def test_list_documents(self, store: PropertyDataStore) -> None:
        assert len(store.list_documents(PROPERTY_ID)) == 3

    def test_getters_return_copies(self, store: PropertyDataStore) -> None:
        asset = store.get_asset(HVAC_ID)
        asset.asset_type = AssetType.PERSONAL

        assert store.get_asset(HVAC_ID).asset_type is AssetType.INFRASTRUCTURE

    def test_set_asset_type(self, store: PropertyDataStore) -> None:
        updated = store.set_asset_type(RING_ID, AssetType.INFRASTRUCTURE)

        assert updated.asset_type is AssetType.INFRASTRUCTURE
        assert store.get_asset(RING_ID).asset_type is AssetType.INFRASTRUCTURE

    def test_set_asset_type_missing(self, store: PropertyDataStore) -> None:
        with pytest.raises(EntityNotFoundError):
            store.set_asset_type("missing", AssetType.PERSONAL)

    def test_snapshot(self, store: PropertyDataStore) -> None:
        prop, assets, events, documents = store.snapshot(PROPERTY_ID)

        assert prop.property_id == PROPERTY_ID
        assert len(assets) == 3
        assert len(events) == 4
        assert len(documents) == 3


class TestMemoryIdentifiers:
    """Tests for identifier lifecycle in PropertyDataStore."""

    def test_no_identifier(self, store: PropertyDataStore) -> None:
        assert store.current_identifier(PROPERTY_ID) is None
        assert store.find_identifier("nope") is None

    def test_issue(self, store: PropertyDataStore) -> None:
        identifier = store.issue_identifier(PROPERTY_ID, "tok-1", PrivacySettings(), T0)

        assert identifier.is_active
        assert store.current_identifier(PROPERTY_ID).token == "tok-1"
        assert store.find_identifier("tok-1").property_id == PROPERTY_ID

    def test_issue_unknown_property(self, store: PropertyDataStore) -> None:
        with pytest.raises(EntityNotFoundError):
            store.issue_identifier("missing", "tok-1", PrivacySettings(), T0)

    def test_reissue_revokes_previous(self, store: PropertyDataStore) -> None:
        store.issue_identifier(PROPERTY_ID, "tok-1", PrivacySettings(), T0)
        store.issue_identifier(PROPERTY_ID, "tok-2", PrivacySettings(), T1)

        assert store.find_identifier("tok-1").revoked_at == T1
        assert store.current_identifier(PROPERTY_ID).token == "tok-2"
        assert store.active_identifier_count(PROPERTY_ID) == 1

    def test_reissue_keeps_original_revocation_time(self, store: PropertyDataStore) -> None:
        store.issue_identifier(PROPERTY_ID, "tok-1", PrivacySettings(), T0)
        store.revoke_identifier(PROPERTY_ID, T1)
        store.issue_identifier(PROPERTY_ID, "tok-2", PrivacySettings(), T2)

        assert store.find_identifier("tok-1").revoked_at == T1

    def test_token_collision(self, store: PropertyDataStore) -> None:
        store.issue_identifier(PROPERTY_ID, "tok-1", PrivacySettings(), T0)

        with pytest.raises(ConflictError):
            store.issue_identifier(PROPERTY_ID, "tok-1", PrivacySettings(), T1)

    def test_revoke_without_identifier(self, store: PropertyDataStore) -> None:
        assert store.revoke_identifier(PROPERTY_ID, T0) is None

    def test_revoke(self, store: PropertyDataStore) -> None:
        store.issue_identifier(PROPERTY_ID, "tok-1", PrivacySettings(), T0)

        revoked = store.revoke_identifier(PROPERTY_ID, T1)

        assert revoked.revoked_at == T1
        assert store.active_identifier_count(PROPERTY_ID) == 0

    def test_save_privacy_settings(self, store: PropertyDataStore) -> None:
        identifier = store.issue_identifier(PROPERTY_ID, "tok-1", PrivacySettings(), T0)

        store.save_privacy_settings(identifier.identifier_id, PrivacySettings(show_costs=True))

        assert store.current_identifier(PROPERTY_ID).privacy_settings.show_costs is True

    def test_save_privacy_settings_revoked(self, store: PropertyDataStore) -> None:
        identifier = store.issue_identifier(PROPERTY_ID, "tok-1", PrivacySettings(), T0)
        store.revoke_identifier(PROPERTY_ID, T1)

        with pytest.raises(ConflictError) as exc_info:
            store.save_privacy_settings(identifier.identifier_id, PrivacySettings(show_costs=True))

        assert exc_info.value.revoked is True

    def test_save_privacy_settings_unknown(self, store: PropertyDataStore) -> None:
        with pytest.raises(EntityNotFoundError):
            store.save_privacy_settings("missing", PrivacySettings())

    def test_seed_cleared_on_issue(self, store: PropertyDataStore) -> None:
        seeded = PrivacySettings(show_documents=True)
        store.seed_privacy_settings(PROPERTY_ID, seeded)

        assert store.seeded_privacy_settings(PROPERTY_ID) == seeded

        store.issue_identifier(PROPERTY_ID, "tok-1", seeded, T0)
        assert store.seeded_privacy_settings(PROPERTY_ID) is None

    def test_seed_unknown_property(self, store: PropertyDataStore) -> None:
        with pytest.raises(EntityNotFoundError):
            store.seed_privacy_settings("missing", PrivacySettings())

    def test_seed_after_issue_conflicts(self, store: PropertyDataStore) -> None:
        store.issue_identifier(PROPERTY_ID, "tok-1", PrivacySettings(), T0)

        with pytest.raises(ConflictError):
            store.seed_privacy_settings(PROPERTY_ID, PrivacySettings(show_costs=True))

        assert store.seeded_privacy_settings(PROPERTY_ID) is None

    def test_summary(self, store: PropertyDataStore) -> None:
        store.issue_identifier(PROPERTY_ID, "tok-1", PrivacySettings(), T0)
        store.issue_identifier(PROPERTY_ID, "tok-2", PrivacySettings(), T1)

        assert store.summary() == {
            "properties": 1,
            "assets": 3,
            "events": 4,
            "documents": 3,
            "identifiers": 2,
            "active_identifiers": 1,
        }


@pytest.fixture
def pg() -> Iterator[tuple[PostgresPropertyStore, MagicMock, MagicMock]]:
    """Postgres store with a mocked connection and cursor."""
    with patch("qr_vault.store.postgres.psycopg.connect") as mock_connect:
        conn = MagicMock()
        cur = MagicMock()
        mock_connect.return_value.__enter__.return_value = conn
        conn.cursor.return_value.__enter__.return_value = cur
        yield PostgresPropertyStore("postgresql://test"), conn, cur


class TestPostgresStore:
    """Tests for PostgresPropertyStore with psycopg mocked."""

    def test_create_tables(self, pg) -> None:
        store, conn, _ = pg

        store.create_tables()

        conn.execute.assert_called_once_with(SCHEMA)

    def test_schema_enforces_single_active_identifier(self) -> None:
        assert "WHERE revoked_at IS NULL" in SCHEMA
        assert "CREATE UNIQUE INDEX" in SCHEMA

    def test_get_property(self, pg) -> None:
        store, _, cur = pg
        cur.fetchone.return_value = {
            "property_id": PROPERTY_ID,
            "owner_id": "owner-001",
            "name": "Maple House",
            "street": "Maple Avenue",
            "number": "42",
            "city": "Springfield",
            "state": "IL",
            "postal_code": "62704",
            "complement": "",
            "country": "US",
            "property_type": "HOUSE",
            "created_at": T0,
        }

        prop = store.get_property(PROPERTY_ID)

        assert prop.owner_id == "owner-001"
        assert prop.address.city == "Springfield"

    def test_get_property_missing(self, pg) -> None:
        store, _, cur = pg
        cur.fetchone.return_value = None

        with pytest.raises(EntityNotFoundError):
            store.get_property("missing")

    def test_find_identifier(self, pg) -> None:
        store, _, cur = pg
        cur.fetchone.return_value = {
            "identifier_id": "id-1",
            "property_id": PROPERTY_ID,
            "token": "tok-1",
            "issued_at": T0,
            "revoked_at": None,
            "privacy_settings": {"showCosts": True},
        }

        identifier = store.find_identifier("tok-1")

        assert identifier.is_active
        assert identifier.privacy_settings.show_costs is True

    def test_issue_identifier(self, pg) -> None:
        store, conn, cur = pg
        cur.fetchone.return_value = {"property_id": PROPERTY_ID}

        identifier = store.issue_identifier(PROPERTY_ID, "tok-1", PrivacySettings(), T0)

        assert identifier.token == "tok-1"
        conn.transaction.assert_called_once()
        statements = [c.args[0] for c in cur.execute.call_args_list]
        assert "FOR UPDATE" in statements[0]
        assert statements[1].startswith("UPDATE master_identifiers SET revoked_at")
        assert statements[2].startswith("INSERT INTO master_identifiers")

    def test_issue_identifier_unknown_property(self, pg) -> None:
        store, _, cur = pg
        cur.fetchone.return_value = None

        with pytest.raises(EntityNotFoundError):
            store.issue_identifier("missing", "tok-1", PrivacySettings(), T0)

    def test_issue_identifier_race(self, pg) -> None:
        store, _, cur = pg
        cur.fetchone.return_value = {"property_id": PROPERTY_ID}

        def execute(query: str, params: tuple = ()) -> None:
            if query.startswith("INSERT"):
                raise psycopg.errors.UniqueViolation("duplicate key")

        cur.execute.side_effect = execute

        with pytest.raises(ConflictError):
            store.issue_identifier(PROPERTY_ID, "tok-1", PrivacySettings(), T0)

    def test_save_privacy_settings_revoked(self, pg) -> None:
        store, _, cur = pg
        cur.rowcount = 0

        with pytest.raises(ConflictError) as exc_info:
            store.save_privacy_settings("id-1", PrivacySettings())

        assert exc_info.value.revoked is True

    def test_seeded_privacy_settings(self, pg) -> None:
        store, _, cur = pg
        cur.fetchone.return_value = {"seeded_privacy": {"showDocuments": True}}

        assert store.seeded_privacy_settings(PROPERTY_ID).show_documents is True

    def test_seeded_privacy_settings_absent(self, pg) -> None:
        store, _, cur = pg
        cur.fetchone.return_value = {"seeded_privacy": None}

        assert store.seeded_privacy_settings(PROPERTY_ID) is None

    def test_seed_is_conditional_on_no_identifier(self, pg) -> None:
        store, _, cur = pg
        cur.rowcount = 1

        store.seed_privacy_settings(PROPERTY_ID, PrivacySettings(show_costs=True))

        query = cur.execute.call_args_list[0].args[0]
        assert "NOT EXISTS (SELECT 1 FROM master_identifiers" in query

    def test_seed_after_issue_conflicts(self, pg) -> None:
        store, _, cur = pg
        cur.rowcount = 0
        cur.fetchone.return_value = (1,)

        with pytest.raises(ConflictError):
            store.seed_privacy_settings(PROPERTY_ID, PrivacySettings())

    def test_seed_unknown_property(self, pg) -> None:
        store, _, cur = pg
        cur.rowcount = 0
        cur.fetchone.return_value = None

        with pytest.raises(EntityNotFoundError):
            store.seed_privacy_settings("missing", PrivacySettings())
