"""Client-side synchronization of identifier state."""

from qr_vault.sync.cache import DASHBOARD_KEY, QueryCache, identifier_key
from qr_vault.sync.synchronizer import ClientSynchronizer, IdentifierSurface, SurfaceState
from qr_vault.sync.transport import HttpTransport, ServiceTransport, Transport

__all__ = [
    "ClientSynchronizer",
    "DASHBOARD_KEY",
    "HttpTransport",
    "IdentifierSurface",
    "QueryCache",
    "ServiceTransport",
    "SurfaceState",
    "Transport",
    "identifier_key",
]
