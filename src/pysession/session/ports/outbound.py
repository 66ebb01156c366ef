# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Session store port — the persistence contract behind the session controller."""

from __future__ import annotations

import abc
from collections.abc import Callable
from enum import Enum
from types import SimpleNamespace
from typing import Any

import structlog

from pysession.kernel.exceptions import SessionNotFoundException
from pysession.session.session import NOT_FOUND_ERRORS, Session, SessionContext

logger = structlog.get_logger("pysession.session")

StoreListener = Callable[[], None]


class StoreEvent(str, Enum):
    """Lifecycle notifications a store emits to its subscribers."""

    CONNECT = "connect"
    DISCONNECT = "disconnect"


class SessionStore(abc.ABC):
    """Abstract session persistence interface.

    All session backends (in-memory, Redis, etc.) extend this class.
    ``get``/``set``/``destroy`` are required; ``touch``, ``all``, ``length``
    and ``clear`` are optional capabilities that raise
    ``NotImplementedError`` unless a backend overrides them.

    Snapshots are JSON-ready dicts: the session payload plus a ``cookie``
    entry (see :meth:`Session.to_snapshot`).

    A missing id is a successful empty result, never an error: ``get``
    returns ``None`` and ``destroy``/``touch`` do nothing.
    """

    def __init__(self) -> None:
        self._listeners: dict[StoreEvent, list[StoreListener]] = {}

    # -- readiness ------------------------------------------------------------

    def subscribe(self, event: StoreEvent, listener: StoreListener) -> None:
        """Call ``listener`` every time the store emits ``event``."""
        self._listeners.setdefault(event, []).append(listener)

    def emit(self, event: StoreEvent) -> None:
        """Notify subscribers; backends call this when connectivity changes."""
        logger.debug("session_store_event", store=type(self).__name__, store_event=event.value)
        for listener in list(self._listeners.get(event, ())):
            listener()

    async def start(self) -> None:
        """Announce that the store is ready."""
        self.emit(StoreEvent.CONNECT)

    async def stop(self) -> None:
        """Announce that the store is no longer usable."""
        self.emit(StoreEvent.DISCONNECT)

    # -- required operations --------------------------------------------------

    @abc.abstractmethod
    async def get(self, session_id: str) -> dict[str, Any] | None:
        """Return the stored snapshot, or ``None`` when there is none."""

    @abc.abstractmethod
    async def set(self, session_id: str, snapshot: dict[str, Any]) -> None:
        """Insert or replace the snapshot stored under ``session_id``."""

    @abc.abstractmethod
    async def destroy(self, session_id: str) -> None:
        """Delete the snapshot stored under ``session_id``."""

    # -- optional operations --------------------------------------------------

    async def touch(self, session_id: str, snapshot: dict[str, Any]) -> None:
        """Refresh a session's expiry without rewriting its payload."""
        raise NotImplementedError

    async def all(self) -> dict[str, dict[str, Any]]:
        """Return every live session keyed by id."""
        raise NotImplementedError

    async def length(self) -> int:
        """Return the number of live sessions."""
        raise NotImplementedError

    async def clear(self) -> None:
        """Delete every session."""
        raise NotImplementedError

    @property
    def supports_touch(self) -> bool:
        return type(self).touch is not SessionStore.touch

    # -- shared behaviour -----------------------------------------------------

    def create_session(
        self,
        request: Any,
        snapshot: dict[str, Any],
        generate: Callable[[Any], Any] | None = None,
    ) -> Session:
        """Reconstruct the session stored for ``request.state.session_id``.

        The result is bound to ``request`` and this store; attaching it to
        ``request.state.session`` is left to the caller.
        """
        context = SessionContext(request=request, store=self, generate=generate)
        return Session.from_snapshot(request.state.session_id, snapshot, context)

    async def regenerate(self, request: Any, generate: Callable[[Any], Any]) -> Any:
        """Destroy the request's current session, then generate a new one."""
        try:
            await self.destroy(request.state.session_id)
        except NOT_FOUND_ERRORS:
            logger.debug("session_already_gone", session_id=request.state.session_id)
        return generate(request)

    async def load(self, session_id: str) -> Session:
        """Fetch and reconstruct a session outside of any HTTP request.

        Raises:
            SessionNotFoundException: Nothing is stored under ``session_id``.
        """
        snapshot = await self.get(session_id)
        if snapshot is None:
            raise SessionNotFoundException(
                "session not found",
                code="SESSION_NOT_FOUND",
                context={"session_id": session_id},
            )
        detached = SimpleNamespace(state=SimpleNamespace(session_id=session_id, session_store=self))
        return self.create_session(detached, snapshot)
