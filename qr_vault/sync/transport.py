"""Request/response channels between the client synchronizer and the service."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

import httpx

from qr_vault.exceptions import (
    ConflictError,
    EntityNotFoundError,
    ForbiddenError,
    QrVaultError,
    TransportError,
    ValidationError,
)
from qr_vault.models import OwnerSession
from qr_vault.models.identifier import WIRE_KEYS
from qr_vault.service import IdentifierService

logger = logging.getLogger(__name__)


class Transport(ABC):
    """Owner-scoped identifier endpoints as seen by a client."""

    @abstractmethod
    def fetch(self, property_id: str) -> dict[str, Any]:
        """``GET /identifier/{property_id}``."""

    @abstractmethod
    def submit(
        self,
        property_id: str,
        privacy_settings: Mapping[str, bool] | None,
        regenerate: bool,
    ) -> dict[str, Any]:
        """``POST /identifier/{property_id}``."""

    @abstractmethod
    def revoke(self, property_id: str) -> dict[str, Any]:
        """``POST /identifier/{property_id}/revoke``."""


_ATTR_TO_WIRE = {attr: wire for wire, attr in WIRE_KEYS.items()}


def _wire(settings: Mapping[str, bool] | None) -> dict[str, bool] | None:
    """Normalise attribute names to wire names."""
    if settings is None:
        return None
    return {_ATTR_TO_WIRE.get(key, key): value for key, value in settings.items()}


class HttpTransport(Transport):
    """Talk to the API over HTTP with httpx.

    Parameters
    ----------
    base_url : str
        API origin, e.g. ``https://vault.example.com``.
    account_id : str
        Account asserted in ``X-Account-Id``.
    client : httpx.Client | None
        Pre-built client (tests pass one with a mock transport).
    timeout : float
        Per-request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str,
        account_id: str,
        client: httpx.Client | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.client = client or httpx.Client(base_url=base_url, timeout=timeout)
        self.headers = {"X-Account-Id": account_id}

    def _request(self, method: str, path: str, json: Any = None) -> dict[str, Any]:
        try:
            response = self.client.request(method, path, json=json, headers=self.headers)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        if response.status_code < 400:
            return response.json()

        try:
            body = response.json()
        except ValueError:
            body = {}
        message = body.get("error", response.reason_phrase) if isinstance(body, dict) else response.reason_phrase
        status = response.status_code
        logger.debug("%s %s -> %d %s", method, path, status, message)
        if status == 400:
            raise ValidationError(message)
        if status == 403:
            raise ForbiddenError(message)
        if status == 404:
            raise EntityNotFoundError(message)
        if status == 409:
            raise ConflictError(message, revoked=bool(body.get("revoked")))
        raise QrVaultError(f"{method} {path} returned {status}: {message}")

    def fetch(self, property_id: str) -> dict[str, Any]:
        return self._request("GET", f"/identifier/{property_id}")

    def submit(
        self,
        property_id: str,
        privacy_settings: Mapping[str, bool] | None,
        regenerate: bool,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"regenerate": regenerate}
        if privacy_settings is not None:
            body["privacySettings"] = _wire(privacy_settings)
        return self._request("POST", f"/identifier/{property_id}", json=body)

    def revoke(self, property_id: str) -> dict[str, Any]:
        return self._request("POST", f"/identifier/{property_id}/revoke")

    def close(self) -> None:
        self.client.close()


class ServiceTransport(Transport):
    """Call an in-process ``IdentifierService`` directly."""

    def __init__(self, service: IdentifierService, session: OwnerSession) -> None:
        self.service = service
        self.session = session

    def fetch(self, property_id: str) -> dict[str, Any]:
        return self.service.get_identifier(property_id, self.session).to_dict()

    def submit(
        self,
        property_id: str,
        privacy_settings: Mapping[str, bool] | None,
        regenerate: bool,
    ) -> dict[str, Any]:
        status = self.service.submit(property_id, self.session, privacy_settings, regenerate=regenerate)
        return status.to_dict()

    def revoke(self, property_id: str) -> dict[str, Any]:
        self.service.revoke(property_id, self.session)
        return {"success": True}
