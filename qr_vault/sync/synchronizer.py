"""Client-side mirror of a property's identifier state.

Each property gets an ``IdentifierSurface`` moving through::

    LOADING -> {UNISSUED, ACTIVE, REVOKED} -> MUTATING -> new state | rollback

Privacy toggles are optimistic: the new value is shown at once and rolled
back to the last confirmed settings if the server refuses it. Generate and
revoke are never guessed at; the surface stays in ``MUTATING`` until the
server answers. Every successful mutation invalidates the identifier and
dashboard cache entries.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from qr_vault.exceptions import ConflictError, QrVaultError, ValidationError
from qr_vault.models import DEFAULT_PRIVACY, PrivacySettings
from qr_vault.privacy import REGENERATE_TO_MODIFY
from qr_vault.sync.cache import QueryCache, affected_keys, identifier_key
from qr_vault.sync.transport import Transport

logger = logging.getLogger(__name__)

CONFIRM_REPLACE = "Regenerating invalidates every printed sticker and shared link. Confirm to continue."


class SurfaceState(str, Enum):
    LOADING = "LOADING"
    UNISSUED = "UNISSUED"
    ACTIVE = "ACTIVE"
    REVOKED = "REVOKED"
    MUTATING = "MUTATING"
    ERROR = "ERROR"


@dataclass
class IdentifierSurface:
    """What the owner UI shows for one property."""

    property_id: str
    state: SurfaceState = SurfaceState.LOADING
    token: str | None = None
    public_url: str | None = None
    revoked_at: str | None = None
    privacy_settings: PrivacySettings = field(default_factory=lambda: DEFAULT_PRIVACY)
    confirmed_settings: PrivacySettings = field(default_factory=lambda: DEFAULT_PRIVACY)
    settled_state: SurfaceState | None = None
    pending_action: str | None = None
    error: QrVaultError | None = None
    message: str | None = None

    @property
    def controls_enabled(self) -> bool:
        """Privacy toggles are usable only with a settled, non-revoked identifier."""
        return self.state in (SurfaceState.UNISSUED, SurfaceState.ACTIVE)

    @property
    def is_pending(self) -> bool:
        return self.state is SurfaceState.MUTATING


Listener = Callable[[IdentifierSurface], None]


class ClientSynchronizer:
    """Keeps ``IdentifierSurface`` objects consistent with the server.

    Parameters
    ----------
    transport : Transport
        Channel to the identifier endpoints.
    cache : QueryCache | None
        Shared read-view cache, also used by dashboard code.
    origin : str | None
        Used to build public URLs when a response does not carry one.
    stale_after : float | None
        Seconds after which a cached view is re-fetched by ``load``.
        ``None`` keeps cached views until they are invalidated.
    """

    def __init__(
        self,
        transport: Transport,
        cache: QueryCache | None = None,
        origin: str | None = None,
        stale_after: float | None = None,
    ) -> None:
        self.transport = transport
        self.cache = cache if cache is not None else QueryCache()
        self.origin = origin
        self.stale_after = stale_after
        self._surfaces: dict[str, IdentifierSurface] = {}
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns an unsubscribe callable."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _notify(self, surface: IdentifierSurface) -> None:
        snapshot = replace(surface)
        for listener in list(self._listeners):
            listener(snapshot)

    def surface(self, property_id: str) -> IdentifierSurface:
        if property_id not in self._surfaces:
            self._surfaces[property_id] = IdentifierSurface(property_id=property_id)
        return self._surfaces[property_id]

    def public_url_for(self, token: str) -> str | None:
        if self.origin is None:
            return None
        return f"{self.origin.rstrip('/')}/property/public/{token}"

    def _apply(self, surface: IdentifierSurface, data: dict[str, Any]) -> None:
        """Replace the surface with an authoritative server response."""
        token = data.get("masterIdentifier")
        revoked_at = data.get("revokedAt")
        settings = PrivacySettings.from_dict(data.get("publicVisibility"))

        if token is None:
            state = SurfaceState.UNISSUED
        elif revoked_at:
            state = SurfaceState.REVOKED
        else:
            state = SurfaceState.ACTIVE

        surface.state = state
        surface.settled_state = state
        surface.token = token
        surface.revoked_at = revoked_at
        surface.public_url = (
            (data.get("publicUrl") or self.public_url_for(token))
            if state is SurfaceState.ACTIVE
            else None
        )
        surface.privacy_settings = settings
        surface.confirmed_settings = settings
        surface.pending_action = None
        surface.error = None
        surface.message = REGENERATE_TO_MODIFY if state is SurfaceState.REVOKED else None

    def _fail(self, surface: IdentifierSurface, error: QrVaultError) -> None:
        """Return to the last settled state and surface ``error``."""
        surface.state = surface.settled_state or SurfaceState.ERROR
        surface.privacy_settings = surface.confirmed_settings
        surface.pending_action = None
        surface.error = error
        surface.message = str(error)
        logger.warning("Identifier action on %s failed: %s", surface.property_id, error)

    def _invalidate(self, property_id: str) -> None:
        self.cache.invalidate_many(affected_keys(property_id))

    def load(self, property_id: str, force: bool = False) -> IdentifierSurface:
        """Populate the surface from cache, or from the server when missing or forced."""
        surface = self.surface(property_id)
        key = identifier_key(property_id)
        data = None if force else self.cache.get(key)
        if data is not None and self.stale_after is not None and self.cache.age(key) > self.stale_after:
            logger.debug("Cached view of %s is stale", property_id)
            data = None

        if data is None:
            if surface.settled_state is None:
                surface.state = SurfaceState.LOADING
            try:
                data = self.transport.fetch(property_id)
            except QrVaultError as e:
                self._fail(surface, e)
                self._notify(surface)
                return surface
            self.cache.set(key, data)

        self._apply(surface, data)
        self._notify(surface)
        return surface

    def on_focus(self, property_id: str) -> IdentifierSurface:
        """Re-fetch when the view regains focus or visibility."""
        return self.load(property_id, force=True)

    def toggle_privacy(self, property_id: str, key: str, value: bool) -> IdentifierSurface:
        """Optimistically flip one disclosure flag."""
        surface = self.surface(property_id)
        if not surface.controls_enabled:
            if surface.state is SurfaceState.REVOKED:
                surface.message = REGENERATE_TO_MODIFY
            self._notify(surface)
            return surface

        try:
            optimistic = surface.privacy_settings.merged({key: value})
        except ValidationError as e:
            surface.error = e
            surface.message = str(e)
            self._notify(surface)
            return surface

        surface.privacy_settings = optimistic
        surface.state = SurfaceState.MUTATING
        surface.pending_action = "privacy"
        self._notify(surface)

        try:
            data = self.transport.submit(property_id, {key: value}, regenerate=False)
        except ConflictError as e:
            self._fail(surface, e)
            surface.state = SurfaceState.REVOKED
            surface.settled_state = SurfaceState.REVOKED
            surface.message = REGENERATE_TO_MODIFY
            self.cache.invalidate(identifier_key(property_id))
            self._notify(surface)
            return surface
        except QrVaultError as e:
            self._fail(surface, e)
            self._notify(surface)
            return surface

        self._invalidate(property_id)
        self._apply(surface, data)
        self._notify(surface)
        return surface

    def generate(
        self,
        property_id: str,
        confirm_replace: bool = False,
        privacy_settings: dict[str, bool] | None = None,
    ) -> IdentifierSurface:
        """Issue (or replace) the identifier. Not optimistic."""
        surface = self.surface(property_id)
        if surface.is_pending:
            return surface
        if surface.state is SurfaceState.ACTIVE and not confirm_replace:
            surface.error = ConflictError(CONFIRM_REPLACE)
            surface.message = CONFIRM_REPLACE
            self._notify(surface)
            return surface
        return self._destructive(
            surface,
            "generate",
            lambda: self.transport.submit(property_id, privacy_settings, regenerate=True),
        )

    def revoke(self, property_id: str) -> IdentifierSurface:
        """Revoke the identifier. Not optimistic."""
        surface = self.surface(property_id)
        if surface.is_pending:
            return surface
        return self._destructive(surface, "revoke", lambda: self.transport.revoke(property_id))

    def _destructive(
        self,
        surface: IdentifierSurface,
        action: str,
        call: Callable[[], dict[str, Any]],
    ) -> IdentifierSurface:
        surface.state = SurfaceState.MUTATING
        surface.pending_action = action
        surface.error = None
        self._notify(surface)

        try:
            call()
        except QrVaultError as e:
            self._fail(surface, e)
            self._notify(surface)
            return surface

        logger.info("Identifier %s succeeded for %s", action, surface.property_id)
        self._invalidate(surface.property_id)
        # A failed refresh must not fall back to the pre-mutation state
        surface.settled_state = None
        return self.load(surface.property_id, force=True)
