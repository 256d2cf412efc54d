"""PostgreSQL-backed property store."""

import logging
import uuid
from datetime import datetime
from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from qr_vault.exceptions import ConflictError, EntityNotFoundError
from qr_vault.models import (
    Address,
    Asset,
    AssetEvent,
    AssetEventType,
    AssetType,
    Document,
    DocumentType,
    MasterIdentifier,
    PrivacySettings,
    Property,
    PropertyType,
)
from qr_vault.store.base import PropertyStore

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS properties (
    property_id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    name TEXT NOT NULL,
    street TEXT NOT NULL,
    number TEXT NOT NULL,
    city TEXT NOT NULL,
    state TEXT NOT NULL,
    postal_code TEXT NOT NULL,
    complement TEXT NOT NULL DEFAULT '',
    country TEXT NOT NULL DEFAULT 'US',
    property_type TEXT NOT NULL DEFAULT 'HOUSE',
    seeded_privacy JSONB,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS assets (
    asset_id TEXT PRIMARY KEY,
    property_id TEXT NOT NULL REFERENCES properties(property_id),
    name TEXT NOT NULL,
    category TEXT NOT NULL,
    asset_type TEXT NOT NULL DEFAULT 'INFRASTRUCTURE',
    brand TEXT,
    model TEXT,
    serial TEXT,
    status TEXT NOT NULL DEFAULT 'ACTIVE',
    installed_at TIMESTAMPTZ,
    warranty_until DATE,
    installer_id TEXT,
    installer_name TEXT,
    purchase_price NUMERIC(12, 2),
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);
CREATE INDEX IF NOT EXISTS idx_assets_property ON assets(property_id);

CREATE TABLE IF NOT EXISTS asset_events (
    event_id TEXT PRIMARY KEY,
    asset_id TEXT NOT NULL REFERENCES assets(asset_id),
    event_type TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    performed_by TEXT,
    contractor_name TEXT,
    amount NUMERIC(12, 2),
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);
CREATE INDEX IF NOT EXISTS idx_asset_events_asset ON asset_events(asset_id);

CREATE TABLE IF NOT EXISTS documents (
    document_id TEXT PRIMARY KEY,
    property_id TEXT NOT NULL REFERENCES properties(property_id),
    asset_id TEXT REFERENCES assets(asset_id),
    title TEXT NOT NULL,
    document_type TEXT NOT NULL,
    uploaded_by TEXT,
    amount NUMERIC(12, 2),
    issued_on DATE,
    uploaded_at TIMESTAMPTZ NOT NULL DEFAULT now()
);
CREATE INDEX IF NOT EXISTS idx_documents_property ON documents(property_id);

CREATE TABLE IF NOT EXISTS master_identifiers (
    identifier_id TEXT PRIMARY KEY,
    property_id TEXT NOT NULL REFERENCES properties(property_id),
    token TEXT NOT NULL UNIQUE,
    issued_at TIMESTAMPTZ NOT NULL,
    revoked_at TIMESTAMPTZ,
    privacy_settings JSONB NOT NULL
);
CREATE UNIQUE INDEX IF NOT EXISTS uq_master_identifiers_one_active
    ON master_identifiers(property_id) WHERE revoked_at IS NULL;
"""

_IDENTIFIER_COLUMNS = "identifier_id, property_id, token, issued_at, revoked_at, privacy_settings"


class PostgresPropertyStore(PropertyStore):
    """Property store on PostgreSQL via psycopg.

    Each call opens its own connection, so the store holds no state between
    requests.
    """

    def __init__(self, connection_string: str) -> None:
        """Initialize the store.

        Parameters
        ----------
        connection_string : str
            PostgreSQL connection string.
        """
        self.connection_string = connection_string

    def _connect(self) -> psycopg.Connection:
        return psycopg.connect(self.connection_string, row_factory=dict_row)

    def _fetch_one(self, query: str, params: tuple) -> dict[str, Any] | None:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                return cur.fetchone()

    def _fetch_all(self, query: str, params: tuple) -> list[dict[str, Any]]:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                return cur.fetchall()

    def create_tables(self) -> None:
        """Create tables and indexes if missing."""
        with self._connect() as conn:
            conn.execute(SCHEMA)
        logger.info("PostgreSQL schema ready")

    # Writes used by seeding
    def add_property(self, prop: Property) -> None:
        """Insert a property."""
        addr = prop.address
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO properties (property_id, owner_id, name, street, number, city, state,"
                " postal_code, complement, country, property_type, created_at)"
                " VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, COALESCE(%s, now()))",
                (
                    prop.property_id, prop.owner_id, prop.name, addr.street, addr.number,
                    addr.city, addr.state, addr.postal_code, addr.complement, addr.country,
                    prop.property_type.value, prop.created_at,
                ),
            )

    def add_asset(self, asset: Asset) -> None:
        """Insert an asset."""
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO assets (asset_id, property_id, name, category, asset_type, brand, model,"
                " serial, status, installed_at, warranty_until, installer_id, installer_name,"
                " purchase_price, created_at)"
                " VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, COALESCE(%s, now()))",
                (
                    asset.asset_id, asset.property_id, asset.name, asset.category,
                    (asset.asset_type or AssetType.INFRASTRUCTURE).value, asset.brand, asset.model,
                    asset.serial, asset.status,
                    asset.installed_at, asset.warranty_until, asset.installer_id,
                    asset.installer_name, asset.purchase_price, asset.created_at,
                ),
            )

    def add_event(self, event: AssetEvent) -> None:
        """Insert a service-history event."""
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO asset_events (event_id, asset_id, event_type, description,"
                " performed_by, contractor_name, amount, created_at)"
                " VALUES (%s, %s, %s, %s, %s, %s, %s, COALESCE(%s, now()))",
                (
                    event.event_id, event.asset_id, event.event_type.value, event.description,
                    event.performed_by, event.contractor_name, event.amount, event.created_at,
                ),
            )

    def add_document(self, document: Document) -> None:
        """Insert a document record."""
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO documents (document_id, property_id, asset_id, title, document_type,"
                " uploaded_by, amount, issued_on, uploaded_at)"
                " VALUES (%s, %s, %s, %s, %s, %s, %s, %s, COALESCE(%s, now()))",
                (
                    document.document_id, document.property_id, document.asset_id,
                    document.title, document.document_type.value, document.uploaded_by,
                    document.amount, document.issued_on, document.uploaded_at,
                ),
            )

    # Queries
    def get_property(self, property_id: str) -> Property:
        row = self._fetch_one("SELECT * FROM properties WHERE property_id = %s", (property_id,))
        if row is None:
            raise EntityNotFoundError(f"Property {property_id} not found")
        return _row_to_property(row)

    def get_asset(self, asset_id: str) -> Asset:
        row = self._fetch_one("SELECT * FROM assets WHERE asset_id = %s", (asset_id,))
        if row is None:
            raise EntityNotFoundError(f"Asset {asset_id} not found")
        return _row_to_asset(row)

    def list_assets(self, property_id: str) -> list[Asset]:
        rows = self._fetch_all(
            "SELECT * FROM assets WHERE property_id = %s ORDER BY created_at", (property_id,)
        )
        return [_row_to_asset(r) for r in rows]

    def list_events(self, property_id: str) -> list[AssetEvent]:
        rows = self._fetch_all(
            "SELECT e.* FROM asset_events e JOIN assets a ON a.asset_id = e.asset_id"
            " WHERE a.property_id = %s ORDER BY e.created_at",
            (property_id,),
        )
        return [_row_to_event(r) for r in rows]

    def list_documents(self, property_id: str) -> list[Document]:
        rows = self._fetch_all(
            "SELECT * FROM documents WHERE property_id = %s ORDER BY uploaded_at", (property_id,)
        )
        return [_row_to_document(r) for r in rows]

    def set_asset_type(self, asset_id: str, asset_type: AssetType) -> Asset:
        row = self._fetch_one(
            "UPDATE assets SET asset_type = %s WHERE asset_id = %s RETURNING *",
            (asset_type.value, asset_id),
        )
        if row is None:
            raise EntityNotFoundError(f"Asset {asset_id} not found")
        return _row_to_asset(row)

    def current_identifier(self, property_id: str) -> MasterIdentifier | None:
        row = self._fetch_one(
            f"SELECT {_IDENTIFIER_COLUMNS} FROM master_identifiers WHERE property_id = %s"
            " ORDER BY issued_at DESC LIMIT 1",
            (property_id,),
        )
        return _row_to_identifier(row) if row else None

    def find_identifier(self, token: str) -> MasterIdentifier | None:
        row = self._fetch_one(
            f"SELECT {_IDENTIFIER_COLUMNS} FROM master_identifiers WHERE token = %s",
            (token,),
        )
        return _row_to_identifier(row) if row else None

    def issue_identifier(
        self,
        property_id: str,
        token: str,
        settings: PrivacySettings,
        issued_at: datetime,
    ) -> MasterIdentifier:
        """Revoke and issue inside one transaction.

        The property row is locked first so concurrent regenerations queue;
        the partial unique index rejects any writer that slips past.
        """
        identifier_id = str(uuid.uuid4())
        try:
            with self._connect() as conn:
                with conn.transaction():
                    with conn.cursor() as cur:
                        cur.execute(
                            "SELECT property_id FROM properties WHERE property_id = %s FOR UPDATE",
                            (property_id,),
                        )
                        if cur.fetchone() is None:
                            raise EntityNotFoundError(f"Property {property_id} not found")
                        cur.execute(
                            "UPDATE master_identifiers SET revoked_at = %s"
                            " WHERE property_id = %s AND revoked_at IS NULL",
                            (issued_at, property_id),
                        )
                        cur.execute(
                            f"INSERT INTO master_identifiers ({_IDENTIFIER_COLUMNS})"
                            " VALUES (%s, %s, %s, %s, NULL, %s)",
                            (identifier_id, property_id, token, issued_at, Jsonb(settings.to_dict())),
                        )
                        cur.execute(
                            "UPDATE properties SET seeded_privacy = NULL WHERE property_id = %s",
                            (property_id,),
                        )
        except psycopg.errors.UniqueViolation as e:
            raise ConflictError("Concurrent identifier issue for property") from e

        return MasterIdentifier(
            identifier_id=identifier_id,
            property_id=property_id,
            token=token,
            issued_at=issued_at,
            privacy_settings=settings,
        )

    def revoke_identifier(self, property_id: str, revoked_at: datetime) -> MasterIdentifier | None:
        with self._connect() as conn:
            with conn.transaction():
                with conn.cursor() as cur:
                    cur.execute(
                        "SELECT property_id FROM properties WHERE property_id = %s FOR UPDATE",
                        (property_id,),
                    )
                    if cur.fetchone() is None:
                        raise EntityNotFoundError(f"Property {property_id} not found")
                    cur.execute(
                        "UPDATE master_identifiers SET revoked_at = %s"
                        " WHERE property_id = %s AND revoked_at IS NULL",
                        (revoked_at, property_id),
                    )
                    cur.execute(
                        f"SELECT {_IDENTIFIER_COLUMNS} FROM master_identifiers"
                        " WHERE property_id = %s ORDER BY issued_at DESC LIMIT 1",
                        (property_id,),
                    )
                    row = cur.fetchone()
        return _row_to_identifier(row) if row else None

    def save_privacy_settings(self, identifier_id: str, settings: PrivacySettings) -> None:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "UPDATE master_identifiers SET privacy_settings = %s"
                    " WHERE identifier_id = %s AND revoked_at IS NULL",
                    (Jsonb(settings.to_dict()), identifier_id),
                )
                if cur.rowcount == 0:
                    raise ConflictError("Identifier has been revoked", revoked=True)

    def seeded_privacy_settings(self, property_id: str) -> PrivacySettings | None:
        row = self._fetch_one(
            "SELECT seeded_privacy FROM properties WHERE property_id = %s", (property_id,)
        )
        if row is None or row["seeded_privacy"] is None:
            return None
        return PrivacySettings.from_dict(row["seeded_privacy"])

    def seed_privacy_settings(self, property_id: str, settings: PrivacySettings) -> None:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "UPDATE properties SET seeded_privacy = %s WHERE property_id = %s"
                    " AND NOT EXISTS (SELECT 1 FROM master_identifiers WHERE property_id = %s)",
                    (Jsonb(settings.to_dict()), property_id, property_id),
                )
                if cur.rowcount == 0:
                    cur.execute("SELECT 1 FROM properties WHERE property_id = %s", (property_id,))
                    if cur.fetchone() is None:
                        raise EntityNotFoundError(f"Property {property_id} not found")
                    raise ConflictError("Identifier already issued for property")


def _row_to_property(row: dict[str, Any]) -> Property:
    return Property(
        property_id=row["property_id"],
        owner_id=row["owner_id"],
        name=row["name"],
        address=Address(
            street=row["street"],
            number=row["number"],
            city=row["city"],
            state=row["state"],
            postal_code=row["postal_code"],
            complement=row["complement"],
            country=row["country"],
        ),
        property_type=PropertyType(row["property_type"]),
        created_at=row["created_at"],
    )


def _row_to_asset(row: dict[str, Any]) -> Asset:
    return Asset(
        asset_id=row["asset_id"],
        property_id=row["property_id"],
        name=row["name"],
        category=row["category"],
        asset_type=AssetType(row["asset_type"] or AssetType.INFRASTRUCTURE.value),
        brand=row["brand"],
        model=row["model"],
        serial=row["serial"],
        status=row["status"],
        installed_at=row["installed_at"],
        warranty_until=row["warranty_until"],
        installer_id=row["installer_id"],
        installer_name=row["installer_name"],
        purchase_price=row["purchase_price"],
        created_at=row["created_at"],
    )


def _row_to_event(row: dict[str, Any]) -> AssetEvent:
    return AssetEvent(
        event_id=row["event_id"],
        asset_id=row["asset_id"],
        event_type=AssetEventType(row["event_type"]),
        description=row["description"],
        performed_by=row["performed_by"],
        contractor_name=row["contractor_name"],
        amount=row["amount"],
        created_at=row["created_at"],
    )


def _row_to_document(row: dict[str, Any]) -> Document:
    return Document(
        document_id=row["document_id"],
        property_id=row["property_id"],
        title=row["title"],
        document_type=DocumentType(row["document_type"]),
        asset_id=row["asset_id"],
        uploaded_by=row["uploaded_by"],
        amount=row["amount"],
        issued_on=row["issued_on"],
        uploaded_at=row["uploaded_at"],
    )


def _row_to_identifier(row: dict[str, Any]) -> MasterIdentifier:
    return MasterIdentifier(
        identifier_id=row["identifier_id"],
        property_id=row["property_id"],
        token=row["token"],
        issued_at=row["issued_at"],
        revoked_at=row["revoked_at"],
        privacy_settings=PrivacySettings.from_dict(row["privacy_settings"]),
    )
