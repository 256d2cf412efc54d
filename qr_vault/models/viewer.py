"""Callers of the resolver."""

from dataclasses import dataclass


@dataclass(frozen=True)
class OwnerSession:
    """Authenticated session handed over by the auth collaborator."""

    account_id: str


@dataclass(frozen=True)
class OwnerViewer:
    """Authenticated owner looking at one of their properties."""

    account_id: str
    property_id: str


@dataclass(frozen=True)
class PublicViewer:
    """Anonymous visitor holding a scanned token."""

    token: str


Viewer = OwnerViewer | PublicViewer
