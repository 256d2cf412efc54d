"""Persisted records for properties, assets and identifiers."""

from qr_vault.store.base import PropertyStore
from qr_vault.store.memory import PropertyDataStore

__all__ = ["PropertyDataStore", "PropertyStore"]
