from __future__ import annotations

import logging
from typing import Awaitable, Callable, List, Optional, Protocol

from storyline.components.session_identity import SessionIdentity

logger = logging.getLogger(__name__)

SessionCallback = Callable[[Optional[SessionIdentity]], None]
Unsubscribe = Callable[[], None]


class SessionProvider(Protocol):
    """Source of the signed-in identity and login/logout notifications."""

    @property
    def current_identity(self) -> Optional[SessionIdentity]:
        ...

    def subscribe(self, callback: SessionCallback) -> Unsubscribe:
        ...

    async def sign_out(self) -> None:
        ...


class SessionHub:
    """In-process session provider fed by an external auth adapter.

    The adapter calls :meth:`set_identity` whenever its own auth observer
    fires. Subscribers are told about the current identity as soon as they
    subscribe, then whenever the identity changes. Repeating the same
    identity is a no-op.
    """

    def __init__(
        self,
        *,
        sign_out_handler: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self._identity: Optional[SessionIdentity] = None
        self._callbacks: List[SessionCallback] = []
        self._sign_out_handler = sign_out_handler

    @property
    def current_identity(self) -> Optional[SessionIdentity]:
        return self._identity

    def subscribe(self, callback: SessionCallback) -> Unsubscribe:
        self._callbacks.append(callback)
        callback(self._identity)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def set_identity(self, identity: Optional[SessionIdentity]) -> None:
        if identity == self._identity:
            return
        previous = self._identity.account_id if self._identity else None
        current = identity.account_id if identity else None
        self._identity = identity
        if previous != current:
            logger.info("Session changed: %s -> %s", previous or "guest", current or "guest")
        for callback in list(self._callbacks):
            callback(identity)

    async def sign_out(self) -> None:
        if self._sign_out_handler is not None:
            await self._sign_out_handler()
        self.set_identity(None)
