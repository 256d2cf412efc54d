"""Demo data generators."""

from qr_vault.generators.property import PropertyBundle, PropertyGenerator

__all__ = ["PropertyBundle", "PropertyGenerator"]
