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
"""Session — per-request session record."""

from __future__ import annotations

from collections.abc import Callable, Iterator, MutableMapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pysession.kernel.exceptions import InvalidArgumentException, SessionMissingException, SessionNotFoundException
from pysession.session.cookie import SessionCookie

if TYPE_CHECKING:
    from pysession.session.ports.outbound import SessionStore

RESERVED_KEY = "cookie"

# Backend errors meaning "nothing is stored under this id".
NOT_FOUND_ERRORS = (SessionNotFoundException, FileNotFoundError)


@dataclass(frozen=True)
class SessionContext:
    """Non-owning binding of a session to the request and store it came from.

    Attributes:
        request: The request whose ``state.session`` holds the session.
        store: The store that ``save``/``reload``/``destroy`` delegate to.
        generate: Creates and attaches a fresh session for ``request``;
            supplied by the session controller and used by ``regenerate``.
    """

    request: Any
    store: SessionStore
    generate: Callable[[Any], Any] | None = None


class Session(MutableMapping[str, Any]):
    """Mapping of application keys to JSON-serializable values, plus id and cookie.

    Attributes:
        id: The session identifier; immutable once assigned.
        cookie: The :class:`SessionCookie` owned by this session.
    """

    def __init__(
        self,
        session_id: str,
        cookie: SessionCookie | None = None,
        data: dict[str, Any] | None = None,
        *,
        context: SessionContext | None = None,
    ) -> None:
        self._id = session_id
        self.cookie = cookie if cookie is not None else SessionCookie()
        self._data: dict[str, Any] = {}
        self._context = context
        if data:
            self._data.update((k, v) for k, v in data.items() if k != RESERVED_KEY)

    @property
    def id(self) -> str:
        return self._id

    @property
    def context(self) -> SessionContext | None:
        return self._context

    # -- mapping protocol -----------------------------------------------------

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        if key == RESERVED_KEY:
            raise InvalidArgumentException(
                "'cookie' is reserved for the session cookie",
                code="SESSION_RESERVED_KEY",
            )
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Session(id={self._id!r}, data={self._data!r})"

    # -- expiry ---------------------------------------------------------------

    def touch(self) -> Session:
        """Refresh the cookie's expiry; normally done by the session filter."""
        return self.reset_max_age()

    def reset_max_age(self) -> Session:
        """Reset ``cookie.max_age`` to ``cookie.original_max_age``."""
        self.cookie.max_age = self.cookie.original_max_age
        return self

    # -- snapshots ------------------------------------------------------------

    def to_snapshot(self) -> dict[str, Any]:
        """Payload plus the cookie snapshot, ready to be JSON-encoded by a store."""
        return {**self._data, RESERVED_KEY: self.cookie.to_snapshot()}

    @classmethod
    def from_snapshot(
        cls,
        session_id: str,
        snapshot: dict[str, Any],
        context: SessionContext | None = None,
    ) -> Session:
        """Rebuild a session from a stored snapshot."""
        cookie = SessionCookie.from_snapshot(snapshot.get(RESERVED_KEY) or {})
        return cls(session_id, cookie, snapshot, context=context)

    # -- store operations -----------------------------------------------------

    def _bound(self) -> SessionContext:
        if self._context is None:
            raise InvalidArgumentException(
                "session is not bound to a store",
                code="SESSION_UNBOUND",
                context={"session_id": self._id},
            )
        return self._context

    async def save(self) -> Session:
        """Write the session back to the store, replacing what it holds.

        The session filter does this automatically at the end of a request
        when the session changed; call it for redirects or long-lived requests.
        """
        await self._bound().store.set(self._id, self.to_snapshot())
        return self

    async def reload(self) -> Session:
        """Replace cookie and payload, in place, with what the store holds.

        Raises:
            SessionMissingException: The store has no record for this id.
        """
        context = self._bound()
        try:
            snapshot = await context.store.get(self._id)
        except NOT_FOUND_ERRORS:
            snapshot = None
        if snapshot is None:
            raise SessionMissingException(
                "failed to load session",
                code="SESSION_MISSING",
                context={"session_id": self._id},
            )
        restored = Session.from_snapshot(self._id, snapshot)
        self.cookie = restored.cookie
        self._data = restored._data
        return self

    async def destroy(self) -> Session:
        """Detach the session from the request and delete it from the store."""
        context = self._bound()
        if context.request is not None:
            context.request.state.session = None
        try:
            await context.store.destroy(self._id)
        except NOT_FOUND_ERRORS:
            pass
        return self

    async def regenerate(self) -> Any:
        """Destroy this session and attach a fresh one, with a new id, to the request.

        Returns:
            The new session now held by ``request.state.session``.
        """
        context = self._bound()
        if context.generate is None:
            raise InvalidArgumentException(
                "session cannot be regenerated outside a request",
                code="SESSION_UNBOUND",
                context={"session_id": self._id},
            )
        return await context.store.regenerate(context.request, context.generate)
