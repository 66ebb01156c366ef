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
"""In-memory session store with lazy expiry."""

from __future__ import annotations

import asyncio
import json
from datetime import UTC, datetime
from typing import Any

from pysession.session.ports.outbound import SessionStore


class InMemorySessionStore(SessionStore):
    """In-memory session store keyed by session id, guarded by an asyncio.Lock.

    Snapshots are held as JSON strings, so callers never share mutable state
    with the store. Expired sessions are dropped when they are next read;
    there is no background sweep. Suitable for development, testing, and
    single-process applications.
    """

    def __init__(self) -> None:
        super().__init__()
        self._sessions: dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def get(self, session_id: str) -> dict[str, Any] | None:
        """Retrieve a snapshot. Returns ``None`` if missing or expired."""
        async with self._lock:
            return self._read(session_id)

    async def set(self, session_id: str, snapshot: dict[str, Any]) -> None:
        """Store a snapshot."""
        async with self._lock:
            self._sessions[session_id] = json.dumps(snapshot)

    async def destroy(self, session_id: str) -> None:
        """Remove a session."""
        async with self._lock:
            self._sessions.pop(session_id, None)

    async def touch(self, session_id: str, snapshot: dict[str, Any]) -> None:
        """Replace only the cookie of an existing session; no-op if absent."""
        async with self._lock:
            current = self._read(session_id)
            if current is None:
                return
            current["cookie"] = snapshot.get("cookie")
            self._sessions[session_id] = json.dumps(current)

    async def all(self) -> dict[str, dict[str, Any]]:
        """Return every unexpired session keyed by id."""
        async with self._lock:
            sessions: dict[str, dict[str, Any]] = {}
            for session_id in list(self._sessions):
                snapshot = self._read(session_id)
                if snapshot is not None:
                    sessions[session_id] = snapshot
            return sessions

    async def length(self) -> int:
        """Return the number of unexpired sessions."""
        return len(await self.all())

    async def clear(self) -> None:
        """Delete every session."""
        async with self._lock:
            self._sessions.clear()

    def _read(self, session_id: str) -> dict[str, Any] | None:
        """Decode a stored snapshot, deleting it if its cookie has expired. Caller holds the lock."""
        raw = self._sessions.get(session_id)
        if raw is None:
            return None

        snapshot: dict[str, Any] = json.loads(raw)
        cookie = snapshot.get("cookie") or {}
        expires = cookie.get("expires")
        if isinstance(expires, str):
            expires = datetime.fromisoformat(expires)
            if expires.tzinfo is None:
                expires = expires.replace(tzinfo=UTC)
        if isinstance(expires, datetime) and expires <= datetime.now(UTC):
            del self._sessions[session_id]
            return None

        return snapshot
