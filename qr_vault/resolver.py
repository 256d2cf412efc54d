"""Visibility resolver.

``resolve`` and ``resolve_asset`` are pure: given a viewer and the stored
records they compute the exact projection that viewer may see. The owner
view and the public view go through the same functions so they cannot
drift apart.

Two independent axes decide what a public viewer sees:

* asset classification: only ``INFRASTRUCTURE`` assets (and the events and
  documents attached to them) are ever disclosed;
* privacy settings of the active identifier: each flag removes a whole group
  of keys. Nothing is ever partially masked.
"""

from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from qr_vault.classifier import classification, is_disclosable
from qr_vault.exceptions import NOT_ACCESSIBLE, EntityNotFoundError
from qr_vault.models import (
    DEFAULT_PRIVACY,
    Asset,
    AssetEvent,
    Document,
    MasterIdentifier,
    OwnerViewer,
    PrivacySettings,
    ProjectedAsset,
    ProjectedView,
    Property,
    PublicViewer,
    Viewer,
)
from qr_vault.sinks.serialization import serialize_value

CONTRACTOR_FIELDS = frozenset({"installerId", "installerName", "performedBy", "contractorName"})
COST_FIELDS = frozenset({"purchasePrice", "amount"})
OWNER_ONLY_FIELDS = frozenset({"ownerId", "uploadedBy", "assetType"})


def _asset_record(asset: Asset) -> dict[str, Any]:
    return {
        "id": asset.asset_id,
        "name": asset.name,
        "category": serialize_value(asset.category),
        "assetType": classification(asset).value,
        "brand": asset.brand,
        "model": asset.model,
        "serial": asset.serial,
        "status": asset.status,
        "installedAt": serialize_value(asset.installed_at),
        "warrantyUntil": serialize_value(asset.warranty_until),
        "installerId": asset.installer_id,
        "installerName": asset.installer_name,
        "purchasePrice": serialize_value(asset.purchase_price),
    }


def _event_record(event: AssetEvent, asset_name: str | None) -> dict[str, Any]:
    return {
        "id": event.event_id,
        "assetId": event.asset_id,
        "assetName": asset_name,
        "type": event.event_type.value,
        "description": event.description,
        "performedBy": event.performed_by,
        "contractorName": event.contractor_name,
        "amount": serialize_value(event.amount),
        "createdAt": serialize_value(event.created_at),
    }


def _document_record(document: Document) -> dict[str, Any]:
    return {
        "id": document.document_id,
        "assetId": document.asset_id,
        "title": document.title,
        "type": document.document_type.value,
        "uploadedBy": document.uploaded_by,
        "amount": serialize_value(document.amount),
        "issuedOn": serialize_value(document.issued_on),
        "uploadedAt": serialize_value(document.uploaded_at),
    }


def _property_record(prop: Property, full_address: bool) -> dict[str, Any]:
    return {
        "id": prop.property_id,
        "name": prop.name,
        "type": prop.property_type.value,
        "ownerId": prop.owner_id,
        "address": prop.address.full() if full_address else prop.address.city_state(),
    }


def _strip(record: dict[str, Any], keys: Iterable[str]) -> dict[str, Any]:
    drop = set(keys)
    return {k: v for k, v in record.items() if k not in drop}


def _hidden_fields(settings: PrivacySettings | None) -> frozenset[str]:
    """Keys removed for a viewer; ``None`` means the owner."""
    if settings is None:
        return frozenset()
    hidden = set(OWNER_ONLY_FIELDS)
    if not settings.show_contractors:
        hidden |= CONTRACTOR_FIELDS
    if not settings.show_costs:
        hidden |= COST_FIELDS
    return frozenset(hidden)


_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _instant(value: datetime | None) -> datetime:
    """Comparable instant; naive values are read as UTC."""
    if value is None:
        return _OLDEST
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _timeline(dated: list[tuple[datetime | None, str, dict[str, Any]]]) -> list[dict[str, Any]]:
    """Newest first by timestamp."""
    ordered = sorted(dated, key=lambda item: _instant(item[0]), reverse=True)
    date_keys = {"event": "createdAt", "document": "uploadedAt"}
    return [{"type": kind, "date": record.get(date_keys[kind]), "data": record} for _, kind, record in ordered]


def public_settings(
    viewer: PublicViewer,
    prop: Property,
    identifier: MasterIdentifier | None,
) -> PrivacySettings:
    """Settings governing a public viewer, or the generic not-found error."""
    if (
        identifier is None
        or not identifier.is_active
        or not viewer.token
        or identifier.token != viewer.token
        or identifier.property_id != prop.property_id
    ):
        raise EntityNotFoundError(NOT_ACCESSIBLE)
    return identifier.privacy_settings


def _viewer_settings(
    viewer: Viewer,
    prop: Property,
    identifier: MasterIdentifier | None,
) -> PrivacySettings | None:
    """``None`` for the property's owner, the governing settings otherwise."""
    if isinstance(viewer, OwnerViewer):
        if viewer.property_id != prop.property_id or viewer.account_id != prop.owner_id:
            raise EntityNotFoundError(NOT_ACCESSIBLE)
        return None
    return public_settings(viewer, prop, identifier)


def resolve(
    viewer: Viewer,
    prop: Property,
    assets: Iterable[Asset],
    identifier: MasterIdentifier | None,
    events: Iterable[AssetEvent] = (),
    documents: Iterable[Document] = (),
    settings: PrivacySettings | None = None,
) -> ProjectedView:
    """Compute the property projection for ``viewer``.

    Parameters
    ----------
    viewer : Viewer
        ``OwnerViewer`` or ``PublicViewer``.
    prop : Property
        The property being viewed.
    assets : Iterable[Asset]
        Every asset of the property, both classifications.
    identifier : MasterIdentifier | None
        The property's current identifier.
    events, documents : Iterable
        Service history and documents of the property.
    settings : PrivacySettings | None
        Settings echoed to the owner when no identifier exists yet
        (pre-seeded values). Ignored for public viewers.

    Raises
    ------
    EntityNotFoundError
        With the same message for an unknown, revoked or foreign token,
        and for an owner viewer that does not own the property.
    """
    public = _viewer_settings(viewer, prop, identifier)
    hidden = _hidden_fields(public)

    owned = [a for a in assets if a.property_id == prop.property_id]
    visible = owned if public is None else [a for a in owned if is_disclosable(a)]
    names = {a.asset_id: a.name for a in visible}

    history: dict[str, list[dict[str, Any]]] = {asset_id: [] for asset_id in names}
    event_records: list[dict[str, Any]] = []
    dated: list[tuple[datetime | None, str, dict[str, Any]]] = []
    for event in events:
        if event.asset_id not in names:
            continue
        if public is not None and not event.event_type.disclosable:
            continue
        record = _strip(_event_record(event, names[event.asset_id]), hidden)
        history[event.asset_id].append(record)
        event_records.append(record)
        dated.append((event.created_at, "event", record))

    document_records: list[dict[str, Any]] = []
    if public is None or public.show_documents:
        for document in documents:
            if document.property_id != prop.property_id:
                continue
            if document.asset_id is not None and document.asset_id not in names:
                continue
            record = _strip(_document_record(document), hidden)
            document_records.append(record)
            dated.append((document.uploaded_at, "document", record))

    asset_records = [
        {**_strip(_asset_record(a), hidden), "history": history[a.asset_id]}
        for a in visible
    ]

    if public is None:
        owner_settings = identifier.privacy_settings if identifier is not None else (settings or DEFAULT_PRIVACY)
        return ProjectedView(
            property=_property_record(prop, full_address=True),
            assets=asset_records,
            events=event_records,
            documents=document_records,
            timeline=_timeline(dated),
            is_owner=True,
            privacy_settings=owner_settings,
        )

    return ProjectedView(
        property=_strip(_property_record(prop, public.show_full_address), hidden),
        assets=asset_records,
        events=event_records,
        documents=document_records,
        timeline=_timeline(dated),
    )


def resolve_asset(
    viewer: Viewer,
    prop: Property,
    asset: Asset,
    identifier: MasterIdentifier | None,
    events: Iterable[AssetEvent] = (),
    documents: Iterable[Document] = (),
) -> ProjectedAsset:
    """Apply the property projection rules to a single asset.

    A ``PERSONAL`` asset is answered with the same not-found error a public
    viewer gets for a bad token.
    """
    if asset.property_id != prop.property_id:
        raise EntityNotFoundError(NOT_ACCESSIBLE)

    view = resolve(
        viewer,
        prop,
        [asset],
        identifier,
        events=[e for e in events if e.asset_id == asset.asset_id],
        documents=[d for d in documents if d.asset_id == asset.asset_id],
    )
    if not view.assets:
        raise EntityNotFoundError(NOT_ACCESSIBLE)

    record = dict(view.assets[0])
    record.pop("history")
    return ProjectedAsset(
        asset=record,
        events=view.events,
        documents=view.documents,
        is_owner=view.is_owner,
    )
