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
"""Redis-backed session store."""

from __future__ import annotations

import json
import math
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any, cast

import structlog
from redis.exceptions import RedisError

from pysession.kernel.exceptions import ServiceUnavailableException, StoreIOException
from pysession.session.ports.outbound import SessionStore

logger = structlog.get_logger("pysession.session")

_DEFAULT_PREFIX = "sess:"
_DEFAULT_TTL = 86400  # one day, for session-only cookies


@contextmanager
def _store_errors(operation: str, session_id: str | None = None) -> Iterator[None]:
    try:
        yield
    except RedisError as exc:
        raise StoreIOException(
            f"Redis session {operation} failed: {exc}",
            code="SESSION_STORE_IO",
            context={"operation": operation, "session_id": session_id},
        ) from exc


class RedisSessionStore(SessionStore):
    """Session store backed by ``redis.asyncio``.

    Snapshots are JSON-serialized under ``<prefix><session id>`` keys. Each
    key expires with the session cookie; session-only cookies fall back to
    ``ttl`` seconds. Redis errors surface as :class:`StoreIOException`.
    """

    def __init__(self, client: Any, prefix: str = _DEFAULT_PREFIX, ttl: int = _DEFAULT_TTL) -> None:
        super().__init__()
        self._client = client
        self._prefix = prefix
        self._ttl = ttl

    def _key(self, session_id: str) -> str:
        return f"{self._prefix}{session_id}"

    def _expiry(self, snapshot: dict[str, Any]) -> int:
        """Seconds until the snapshot's cookie expires, or the default TTL."""
        expires = (snapshot.get("cookie") or {}).get("expires")
        if expires is None:
            return self._ttl
        if isinstance(expires, str):
            expires = datetime.fromisoformat(expires)
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=UTC)
        return math.ceil((expires - datetime.now(UTC)).total_seconds())

    async def start(self) -> None:
        """Check connectivity, then announce readiness."""
        try:
            await self._client.ping()
        except RedisError as exc:
            raise ServiceUnavailableException(
                f"Redis session store is unreachable: {exc}",
                code="SESSION_STORE_UNAVAILABLE",
            ) from exc
        await super().start()

    async def stop(self) -> None:
        """Announce shutdown and close the client."""
        await super().stop()
        await self._client.aclose()

    async def get(self, session_id: str) -> dict[str, Any] | None:
        """Retrieve and deserialize a snapshot."""
        with _store_errors("get", session_id):
            raw = await self._client.get(self._key(session_id))
        if raw is None:
            return None
        try:
            return cast(dict[str, Any], json.loads(raw))
        except (json.JSONDecodeError, TypeError):
            logger.warning("session_deserialize_failed", session_id=session_id)
            return None

    async def set(self, session_id: str, snapshot: dict[str, Any]) -> None:
        """Serialize and store a snapshot; an already expired one is deleted instead."""
        ttl = self._expiry(snapshot)
        if ttl <= 0:
            await self.destroy(session_id)
            return
        with _store_errors("set", session_id):
            await self._client.set(self._key(session_id), json.dumps(snapshot).encode(), ex=ttl)

    async def destroy(self, session_id: str) -> None:
        """Remove a session."""
        with _store_errors("destroy", session_id):
            await self._client.delete(self._key(session_id))

    async def touch(self, session_id: str, snapshot: dict[str, Any]) -> None:
        """Rewrite the cookie of an existing session and extend its key expiry."""
        current = await self.get(session_id)
        if current is None:
            return
        current["cookie"] = snapshot.get("cookie")
        await self.set(session_id, current)

    async def _keys(self) -> list[str]:
        with _store_errors("scan"):
            return [
                key.decode() if isinstance(key, bytes) else key
                async for key in self._client.scan_iter(match=f"{self._prefix}*")
            ]

    async def all(self) -> dict[str, dict[str, Any]]:
        """Return every session under the key prefix."""
        sessions: dict[str, dict[str, Any]] = {}
        for key in await self._keys():
            session_id = key.removeprefix(self._prefix)
            snapshot = await self.get(session_id)
            if snapshot is not None:
                sessions[session_id] = snapshot
        return sessions

    async def length(self) -> int:
        """Count keys under the prefix."""
        return len(await self._keys())

    async def clear(self) -> None:
        """Delete every key under the prefix."""
        keys = await self._keys()
        if keys:
            with _store_errors("clear"):
                await self._client.delete(*keys)
