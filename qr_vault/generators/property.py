"""Demo property generator."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal

from qr_vault.generators.base import BaseGenerator
from qr_vault.models import (
    Address,
    Asset,
    AssetCategory,
    AssetEvent,
    AssetEventType,
    AssetType,
    Document,
    DocumentType,
    Property,
    PropertyType,
)
from qr_vault.store.memory import PropertyDataStore


@dataclass
class PropertyBundle:
    """A property and everything recorded against it."""

    property: Property
    assets: list[Asset] = field(default_factory=list)
    events: list[AssetEvent] = field(default_factory=list)
    documents: list[Document] = field(default_factory=list)


class PropertyGenerator(BaseGenerator):
    """Generate homes with a realistic mix of public and private assets."""

    # (name, category, classification, price range in USD)
    CATALOG = [
        ("Central Air Conditioner", AssetCategory.HVAC, AssetType.INFRASTRUCTURE, (3500, 9000)),
        ("Gas Furnace", AssetCategory.HVAC, AssetType.INFRASTRUCTURE, (2500, 6000)),
        ("Water Heater", AssetCategory.WATER_HEATER, AssetType.INFRASTRUCTURE, (900, 3200)),
        ("Electrical Panel", AssetCategory.ELECTRICAL, AssetType.INFRASTRUCTURE, (1200, 4000)),
        ("Sump Pump", AssetCategory.PLUMBING, AssetType.INFRASTRUCTURE, (300, 1500)),
        ("Asphalt Shingle Roof", AssetCategory.ROOFING, AssetType.INFRASTRUCTURE, (8000, 25000)),
        ("Dishwasher", AssetCategory.APPLIANCE, AssetType.INFRASTRUCTURE, (500, 1800)),
        ("Engagement Ring", AssetCategory.JEWELRY, AssetType.PERSONAL, (2000, 15000)),
        ("Home Theater System", AssetCategory.ELECTRONICS, AssetType.PERSONAL, (1500, 8000)),
        ("Antique Dresser", AssetCategory.FURNITURE, AssetType.PERSONAL, (600, 5000)),
    ]

    BRANDS = {
        AssetCategory.HVAC: ["Carrier", "Trane", "Lennox", "Rheem"],
        AssetCategory.WATER_HEATER: ["A.O. Smith", "Bradford White", "Rheem"],
        AssetCategory.ELECTRICAL: ["Square D", "Siemens", "Eaton"],
        AssetCategory.PLUMBING: ["Zoeller", "Wayne"],
        AssetCategory.ROOFING: ["GAF", "Owens Corning", "CertainTeed"],
        AssetCategory.APPLIANCE: ["Bosch", "Whirlpool", "KitchenAid"],
    }

    FOLLOW_UP_EVENTS = [
        AssetEventType.SERVICE,
        AssetEventType.INSPECTION,
        AssetEventType.WARRANTY,
        AssetEventType.NOTE,
    ]

    def generate(self, owner_id: str, assets_per_property: int = 6) -> PropertyBundle:
        """Generate a single property with assets, events and documents.

        Parameters
        ----------
        owner_id : str
            Account that owns the property.
        assets_per_property : int
            Number of assets to attach.

        Returns
        -------
        PropertyBundle
            Generated records, not yet stored.
        """
        prop = Property(
            property_id=self.fake.uuid4(),
            owner_id=owner_id,
            name=f"{self.fake.last_name()} Residence",
            address=Address(
                street=self.fake.street_name(),
                number=self.fake.building_number(),
                city=self.fake.city(),
                state=self.fake.state_abbr(),
                postal_code=self.fake.postcode(),
            ),
            property_type=self.rng.choice(list(PropertyType)),
            created_at=self.fake.date_time_between(start_date="-5y", end_date="-1y"),
        )
        bundle = PropertyBundle(property=prop)

        count = min(assets_per_property, len(self.CATALOG))
        for name, category, asset_type, price_range in self.rng.sample(self.CATALOG, count):
            asset = self._asset(prop, name, category, asset_type, price_range)
            bundle.assets.append(asset)
            bundle.events.extend(self._events(asset))
            bundle.documents.extend(self._documents(prop, asset))

        bundle.documents.append(
            Document(
                document_id=self.fake.uuid4(),
                property_id=prop.property_id,
                title="Home Inspection Report",
                document_type=DocumentType.INSPECTION,
                uploaded_by=owner_id,
                amount=Decimal(self.rng.randint(350, 700)),
                uploaded_at=prop.created_at,
            )
        )
        return bundle

    def _asset(
        self,
        prop: Property,
        name: str,
        category: AssetCategory,
        asset_type: AssetType,
        price_range: tuple[int, int],
    ) -> Asset:
        installed_at = self.fake.date_time_between(start_date=prop.created_at, end_date="now")
        contracted = asset_type is AssetType.INFRASTRUCTURE
        return Asset(
            asset_id=self.fake.uuid4(),
            property_id=prop.property_id,
            name=name,
            category=category.value,
            asset_type=asset_type,
            brand=self.rng.choice(self.BRANDS.get(category, [self.fake.company()])),
            model=self.fake.bothify("??-####").upper(),
            serial=self.fake.bothify("SN########"),
            installed_at=installed_at,
            warranty_until=(installed_at + timedelta(days=365 * self.rng.randint(1, 10))).date(),
            installer_id=self.fake.uuid4() if contracted else None,
            installer_name=self.fake.company() if contracted else None,
            purchase_price=Decimal(self.rng.randint(*price_range)),
            created_at=installed_at,
        )

    def _events(self, asset: Asset) -> list[AssetEvent]:
        start = asset.installed_at or datetime.now()
        events = [
            AssetEvent(
                event_id=self.fake.uuid4(),
                asset_id=asset.asset_id,
                event_type=AssetEventType.INSTALL,
                description=f"Installed {asset.name}",
                performed_by=asset.installer_id,
                contractor_name=asset.installer_name,
                amount=asset.purchase_price,
                created_at=start,
            )
        ]
        if asset.asset_type is AssetType.PERSONAL:
            return events

        for _ in range(self.rng.randint(0, 3)):
            event_type = self.rng.choice(self.FOLLOW_UP_EVENTS)
            events.append(
                AssetEvent(
                    event_id=self.fake.uuid4(),
                    asset_id=asset.asset_id,
                    event_type=event_type,
                    description=self.fake.sentence(nb_words=6),
                    performed_by=asset.installer_id,
                    contractor_name=asset.installer_name,
                    amount=Decimal(self.rng.randint(80, 600)),
                    created_at=self.fake.date_time_between(start_date=start, end_date="now"),
                )
            )
        return events

    def _documents(self, prop: Property, asset: Asset) -> list[Document]:
        return [
            Document(
                document_id=self.fake.uuid4(),
                property_id=prop.property_id,
                asset_id=asset.asset_id,
                title=f"{asset.name} receipt",
                document_type=DocumentType.RECEIPT,
                uploaded_by=prop.owner_id,
                amount=asset.purchase_price,
                issued_on=asset.installed_at.date() if asset.installed_at else None,
                uploaded_at=asset.installed_at,
            )
        ]

    def populate(
        self,
        store: PropertyDataStore,
        owner_id: str,
        count: int = 1,
        assets_per_property: int = 6,
    ) -> list[PropertyBundle]:
        """Generate ``count`` properties and add them to ``store``."""
        bundles = []
        for _ in range(count):
            bundle = self.generate(owner_id, assets_per_property)
            store.add_property(bundle.property)
            for asset in bundle.assets:
                store.add_asset(asset)
            for event in bundle.events:
                store.add_event(event)
            for document in bundle.documents:
                store.add_document(document)
            bundles.append(bundle)
        return bundles
