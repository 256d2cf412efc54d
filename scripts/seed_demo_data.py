#!/usr/bin/env python3
"""Seed demo properties and optionally issue their master identifiers.

Generates homes with a mix of infrastructure and personal assets, service
history and documents, and loads them into the configured store:
- memory: records are generated and summarised (useful for inspecting output)
- postgres: records are written through PostgresPropertyStore
"""

import argparse
import json
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from qr_vault.config import QrVaultConfig
from qr_vault.generators import PropertyGenerator
from qr_vault.logging import get_logger, setup_logging
from qr_vault.models import OwnerSession
from qr_vault.service import build_service
from qr_vault.sinks.serialization import serialize_value
from qr_vault.store.memory import PropertyDataStore

logger = get_logger(__name__)


def load_postgres(bundles: list, postgres_url: str) -> None:
    """Write generated bundles to PostgreSQL."""
    from qr_vault.store.postgres import PostgresPropertyStore

    store = PostgresPropertyStore(postgres_url)
    store.create_tables()
    for bundle in bundles:
        store.add_property(bundle.property)
        for asset in bundle.assets:
            store.add_asset(asset)
        for event in bundle.events:
            store.add_event(event)
        for document in bundle.documents:
            store.add_document(document)
    logger.info("Loaded %d properties to PostgreSQL", len(bundles))


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Seed demo properties for qr-vault")
    parser.add_argument(
        "--properties",
        type=int,
        default=3,
        help="Number of properties to generate (default: 3)",
    )
    parser.add_argument(
        "--assets",
        type=int,
        default=6,
        help="Assets per property (default: 6)",
    )
    parser.add_argument(
        "--owner",
        type=str,
        default="owner-demo",
        help="Owner account id (default: owner-demo)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed for reproducibility (default: 42)",
    )
    parser.add_argument(
        "--postgres-url",
        type=str,
        default=None,
        help="Load into PostgreSQL instead of memory",
    )
    parser.add_argument(
        "--issue",
        action="store_true",
        help="Issue a master identifier for every property (memory only)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the public projection of each issued identifier as JSON",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Log level (default: INFO)",
    )
    args = parser.parse_args()

    setup_logging(args.log_level)

    generator = PropertyGenerator(seed=args.seed)
    store = PropertyDataStore()
    bundles = generator.populate(
        store,
        args.owner,
        count=args.properties,
        assets_per_property=args.assets,
    )
    logger.info("Generated: %s", store.summary())

    if args.postgres_url:
        load_postgres(bundles, args.postgres_url)
        return

    if not args.issue:
        return

    service = build_service(QrVaultConfig(), store=store)
    session = OwnerSession(account_id=args.owner)
    for bundle in bundles:
        status = service.submit(bundle.property.property_id, session, regenerate=True)
        logger.info("%s -> %s", bundle.property.name, status.public_url)
        if args.json:
            view = service.public_property(status.token)
            print(json.dumps(serialize_value(view.to_dict()), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
