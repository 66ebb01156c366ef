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
"""SessionController — decides, once per request, what happens to the session.

Pre-processing resolves the incoming signed cookie to a stored session
(*inflate*) or creates a new one (*generate*) and attaches it to
``request.state.session``. After the downstream handler returns,
post-processing compares the session against what it looked like on
arrival and chooses between destroy, save, touch and doing nothing, and
whether the cookie has to be (re)issued.

Framework-agnostic: the request is accessed via ``url``, ``headers``,
``cookies`` and ``state``; the response via ``set_cookie`` and
``raw_headers``. Starlette objects satisfy both.
"""

from __future__ import annotations

from collections.abc import Awaitable, Iterator, MutableMapping
from dataclasses import dataclass
from functools import partial
from typing import Any

import structlog

from pysession.kernel.exceptions import InvalidArgumentException
from pysession.session.adapters.memory import InMemorySessionStore
from pysession.session.cookie import SessionCookie
from pysession.session.hashing import hash_session
from pysession.session.options import SessionOptions
from pysession.session.ports.outbound import SessionStore, StoreEvent
from pysession.session.session import NOT_FOUND_ERRORS, Session, SessionContext
from pysession.session.signing import CookieSigner
from pysession.web.ports.filter import CallNext

logger = structlog.get_logger("pysession.session")


def is_secure(request: Any, trust_proxy: bool = False) -> bool:
    """Return ``True`` if the request arrived over TLS.

    With ``trust_proxy`` the first ``X-Forwarded-Proto`` value is honoured.
    """
    if request.url.scheme in ("https", "wss"):
        return True
    if not trust_proxy:
        return False
    header = request.headers.get("x-forwarded-proto") or ""
    return header.split(",", 1)[0].strip().lower() == "https"


class StoreReadiness:
    """Connected/disconnected cell driven by a store's lifecycle events.

    Starts out ready: stores that never emit events are always usable.
    """

    def __init__(self, store: SessionStore) -> None:
        self._ready = True
        store.subscribe(StoreEvent.CONNECT, self._on_connect)
        store.subscribe(StoreEvent.DISCONNECT, self._on_disconnect)

    @property
    def ready(self) -> bool:
        return self._ready

    def _on_connect(self) -> None:
        self._ready = True

    def _on_disconnect(self) -> None:
        self._ready = False


@dataclass
class RequestState:
    """What one request's session looked like on arrival and when last saved.

    Attributes:
        cookie_id: Session id carried by the incoming cookie (``None`` if absent or forged).
        original_id: Id of the session attached during pre-processing.
        original_hash: Payload hash at attach time.
        saved_hash: Payload hash at the last ``save()``; preset on inflate unless ``resave``.
        touched: Whether the cookie's max-age was already reset this request.
    """

    cookie_id: str | None
    original_id: str | None = None
    original_hash: str | None = None
    saved_hash: str | None = None
    touched: bool = False

    def is_modified(self, session: Any) -> bool:
        return self.original_id != session.id or self.original_hash != hash_session(session)

    def is_saved(self, session: Any) -> bool:
        return self.original_id == session.id and self.saved_hash == hash_session(session)


class TrackedSession(MutableMapping[str, Any]):
    """Request-scoped wrapper that records the payload hash on every ``save()``.

    This is what handlers see on ``request.state.session``; everything else
    is delegated to the wrapped :class:`Session`.
    """

    def __init__(self, session: Session, state: RequestState) -> None:
        self._session = session
        self._state = state

    @property
    def id(self) -> str:
        return self._session.id

    @property
    def cookie(self) -> SessionCookie:
        return self._session.cookie

    @cookie.setter
    def cookie(self, value: SessionCookie) -> None:
        self._session.cookie = value

    @property
    def context(self) -> SessionContext | None:
        return self._session.context

    def unwrap(self) -> Session:
        return self._session

    def __getitem__(self, key: str) -> Any:
        return self._session[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._session[key] = value

    def __delitem__(self, key: str) -> None:
        del self._session[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._session)

    def __len__(self) -> int:
        return len(self._session)

    def __repr__(self) -> str:
        return f"TrackedSession({self._session!r})"

    def touch(self) -> TrackedSession:
        self._session.touch()
        return self

    def reset_max_age(self) -> TrackedSession:
        self._session.reset_max_age()
        return self

    def to_snapshot(self) -> dict[str, Any]:
        return self._session.to_snapshot()

    async def save(self) -> TrackedSession:
        logger.debug("session_saving", session_id=self.id)
        self._state.saved_hash = hash_session(self._session)
        await self._session.save()
        return self

    async def reload(self) -> TrackedSession:
        logger.debug("session_reloading", session_id=self.id)
        await self._session.reload()
        return self

    async def destroy(self) -> TrackedSession:
        await self._session.destroy()
        return self

    async def regenerate(self) -> Any:
        return await self._session.regenerate()


class SessionController:
    """Per-request session lifecycle decision engine.

    One controller serves every request for a given store; all per-request
    bookkeeping lives in a :class:`RequestState` created by :meth:`handle`.

    Failure policy: the session is dropped, never the request. A store that
    is disconnected, a missing secret, or a failed lookup lets the request
    through (the last with a freshly generated session). Store writes after
    the handler are not swallowed: they are logged and re-raised.
    """

    def __init__(self, options: SessionOptions, store: SessionStore | None = None) -> None:
        self._options = options
        self._store = store if store is not None else InMemorySessionStore()
        self._signer = CookieSigner(options.secrets) if options.secrets else None
        self._readiness = StoreReadiness(self._store)

    @property
    def options(self) -> SessionOptions:
        return self._options

    @property
    def store(self) -> SessionStore:
        return self._store

    @property
    def ready(self) -> bool:
        return self._readiness.ready

    # -- request handling -----------------------------------------------------

    async def handle(self, request: Any, call_next: CallNext) -> Any:
        """Attach a session, run the downstream handler, then commit the session.

        If the handler raises, nothing is persisted and the error propagates.
        """
        if getattr(request.state, "session", None) is not None:
            return await call_next(request)

        if not self._readiness.ready:
            logger.debug("session_store_disconnected")
            return await call_next(request)

        if not request.url.path.startswith(self._options.cookie.path or "/"):
            logger.debug("session_path_mismatch", path=request.url.path)
            return await call_next(request)

        if self._signer is None:
            logger.error("session_secret_missing", hint="secret option required for sessions")
            return await call_next(request)

        state = RequestState(cookie_id=self._signer.verify(request.cookies, self._options.name))
        request.state.session_store = self._store
        request.state.session_id = state.cookie_id

        await self._resolve(request, state)
        response = await call_next(request)
        await self._commit(request, response, state)
        return response

    async def _resolve(self, request: Any, state: RequestState) -> None:
        if state.cookie_id is None:
            logger.debug("session_id_absent")
            self._generate(request, state)
            return

        logger.debug("session_fetching", session_id=state.cookie_id)
        try:
            snapshot = await self._store.get(state.cookie_id)
        except NOT_FOUND_ERRORS:
            snapshot = None
        except Exception as exc:
            logger.warning(
                "session_store_get_failed",
                session_id=state.cookie_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            self._generate(request, state)
            return

        if snapshot is None:
            logger.debug("session_not_found", session_id=state.cookie_id)
            self._generate(request, state)
            return

        try:
            self._inflate(request, state, snapshot)
        except (InvalidArgumentException, ValueError, AttributeError) as exc:
            logger.warning(
                "session_inflate_failed",
                session_id=state.cookie_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            self._generate(request, state)

    def _create(self, request: Any, state: RequestState) -> TrackedSession:
        """Attach a brand-new session to the request; also used by ``regenerate()``."""
        session_id = self._options.genid()
        cookie = self._options.cookie.build()
        if cookie.secure == "auto":
            cookie.secure = is_secure(request, self._options.proxy)

        context = SessionContext(request=request, store=self._store, generate=partial(self._create, state=state))
        session = TrackedSession(Session(session_id, cookie, context=context), state)
        request.state.session_id = session_id
        request.state.session = session
        return session

    def _generate(self, request: Any, state: RequestState) -> None:
        session = self._create(request, state)
        state.original_id = session.id
        state.original_hash = hash_session(session)
        logger.debug("session_generated", session_id=session.id)

    def _inflate(self, request: Any, state: RequestState, snapshot: dict[str, Any]) -> None:
        session = self._store.create_session(request, snapshot, generate=partial(self._create, state=state))
        request.state.session = TrackedSession(session, state)
        state.original_id = session.id
        state.original_hash = hash_session(session)
        if not self._options.resave:
            state.saved_hash = state.original_hash
        logger.debug("session_inflated", session_id=session.id)

    async def _commit(self, request: Any, response: Any, state: RequestState) -> None:
        session = getattr(request.state, "session", None)
        session_id = getattr(request.state, "session_id", None)

        if self.should_destroy(session_id, session):
            logger.debug("session_destroying", session_id=session_id)
            await self._store_call("destroy", session_id, self._store.destroy(session_id), missing_ok=True)
            return

        if session is None:
            logger.debug("session_absent_after_request")
            return

        if not state.touched:
            session.touch()
            state.touched = True

        if self.should_save(state, session_id, session):
            await self._store_call("save", session_id, session.save())
        elif self._store.supports_touch and self.should_touch(state, session_id, session):
            logger.debug("session_touching", session_id=session_id)
            await self._store_call(
                "touch", session_id, self._store.touch(session_id, session.to_snapshot()), missing_ok=True
            )

        if self.should_set_cookie(state, session_id, session):
            self._set_cookie(request, response, session_id, session)

    async def _store_call(
        self, operation: str, session_id: str, call: Awaitable[Any], missing_ok: bool = False
    ) -> None:
        try:
            await call
        except Exception as exc:
            if missing_ok and isinstance(exc, NOT_FOUND_ERRORS):
                logger.debug("session_already_gone", operation=operation, session_id=session_id)
                return
            logger.error(
                "session_store_write_failed",
                operation=operation,
                session_id=session_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise

    # -- decision rules -------------------------------------------------------

    def should_destroy(self, session_id: Any, session: Any) -> bool:
        """The application unset the session and ``unset="destroy"`` is configured."""
        return bool(session_id) and self._options.unset_destroy and session is None

    def should_save(self, state: RequestState, session_id: Any, session: Any) -> bool:
        if not isinstance(session_id, str):
            logger.debug("session_id_invalid", session_id=repr(session_id))
            return False

        if not self._options.save_uninitialized and state.saved_hash is None and state.cookie_id != session_id:
            return state.is_modified(session)
        return not state.is_saved(session)

    def should_touch(self, state: RequestState, session_id: Any, session: Any) -> bool:
        if not isinstance(session_id, str):
            logger.debug("session_id_invalid", session_id=repr(session_id))
            return False

        return state.cookie_id == session_id and not self.should_save(state, session_id, session)

    def should_set_cookie(self, state: RequestState, session_id: Any, session: Any) -> bool:
        if not isinstance(session_id, str):
            return False

        if state.cookie_id != session_id:
            return self._options.save_uninitialized or state.is_modified(session)
        return self._options.rolling or (session.cookie.expires is not None and state.is_modified(session))

    # -- cookie ---------------------------------------------------------------

    def _set_cookie(self, request: Any, response: Any, session_id: str, session: Any) -> None:
        assert self._signer is not None
        cookie: SessionCookie = session.cookie
        secure_request = is_secure(request, self._options.proxy)
        secure = secure_request if cookie.secure == "auto" else bool(cookie.secure)

        if secure and not secure_request:
            logger.debug("session_cookie_not_secured", session_id=session_id)
            return

        response.set_cookie(
            key=self._options.name,
            value=self._signer.sign(session_id),
            expires=cookie.expires,
            path=cookie.path or "/",
            domain=cookie.domain,
            secure=secure,
            httponly=bool(cookie.http_only),
            samesite=_same_site(cookie.same_site),
        )
        _append_attributes(response, cookie)


def _same_site(value: Any) -> str | None:
    if value is True:
        return "strict"
    if not value:
        return None
    return str(value).lower()


def _append_attributes(response: Any, cookie: SessionCookie) -> None:
    """Add ``Priority`` and ``Partitioned`` to the Set-Cookie header just written."""
    extras: list[str] = []
    if cookie.priority:
        extras.append(f"Priority={cookie.priority.capitalize()}")
    if cookie.partitioned:
        extras.append("Partitioned")
    if not extras:
        return

    name, value = response.raw_headers[-1]
    response.raw_headers[-1] = (name, value + "; ".join(["", *extras]).encode("latin-1"))
