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
"""Tests for Session — mapping behaviour, expiry and store-bound operations."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

import pytest

from pysession.kernel.exceptions import InvalidArgumentException, SessionMissingException
from pysession.session import cookie as cookie_module
from pysession.session.adapters.memory import InMemorySessionStore
from pysession.session.cookie import SessionCookie
from pysession.session.session import Session, SessionContext


def _request(session_id: str = "sid") -> SimpleNamespace:
    return SimpleNamespace(state=SimpleNamespace(session_id=session_id, session=None))


def _bound(store: InMemorySessionStore, session_id: str = "sid", **data) -> Session:
    request = _request(session_id)
    session = Session(session_id, SessionCookie(max_age=60), data, context=SessionContext(request, store))
    request.state.session = session
    return session


class TestSessionMapping:
    def test_behaves_like_a_dict(self):
        session = Session("sid")
        session["user"] = "ada"
        session["views"] = 3
        assert session["user"] == "ada"
        assert len(session) == 2
        assert set(session) == {"user", "views"}
        del session["views"]
        assert "views" not in session
        assert session.get("views", 0) == 0

    def test_id_is_read_only(self):
        session = Session("sid")
        with pytest.raises(AttributeError):
            session.id = "other"  # type: ignore[misc]

    def test_cookie_key_is_reserved(self):
        session = Session("sid")
        with pytest.raises(InvalidArgumentException):
            session["cookie"] = {}

    def test_cookie_key_dropped_from_payload(self):
        session = Session("sid", data={"cookie": {"path": "/x"}, "user": "ada"})
        assert dict(session) == {"user": "ada"}
        assert session.cookie.path == "/"


class TestSessionExpiry:
    def test_reset_max_age_restores_original(self, monkeypatch):
        start = datetime(2026, 1, 1, tzinfo=UTC)
        monkeypatch.setattr(cookie_module, "_now", lambda: start)
        session = Session("sid", SessionCookie(max_age=60))

        monkeypatch.setattr(cookie_module, "_now", lambda: start + timedelta(seconds=50))
        assert session.cookie.max_age == 10
        assert session.reset_max_age() is session
        assert session.cookie.max_age == session.cookie.original_max_age == 60

    def test_touch_is_reset_max_age(self):
        session = Session("sid", SessionCookie())
        assert session.touch() is session
        assert session.cookie.max_age is None


class TestSessionSnapshot:
    def test_round_trip_through_snapshot(self):
        original = Session("sid", SessionCookie(max_age=60, same_site="lax"), {"cart": [1, 2]})
        restored = Session.from_snapshot("sid", original.to_snapshot())
        assert restored.id == original.id
        assert dict(restored) == dict(original)
        assert restored.cookie == original.cookie
        assert restored.cookie.original_max_age == 60


class TestSessionStoreOperations:
    @pytest.mark.asyncio
    async def test_save_writes_snapshot(self):
        store = InMemorySessionStore()
        session = _bound(store, user="ada")
        assert await session.save() is session
        stored = await store.get("sid")
        assert stored is not None
        assert stored["user"] == "ada"
        assert stored["cookie"]["originalMaxAge"] == 60

    @pytest.mark.asyncio
    async def test_reload_replaces_payload_in_place(self):
        store = InMemorySessionStore()
        session = _bound(store, user="ada")
        await session.save()
        session["user"] = "grace"
        session["extra"] = True

        assert await session.reload() is session
        assert dict(session) == {"user": "ada"}

    @pytest.mark.asyncio
    async def test_reload_missing_raises(self):
        session = _bound(InMemorySessionStore())
        with pytest.raises(SessionMissingException):
            await session.reload()

    @pytest.mark.asyncio
    async def test_destroy_detaches_and_deletes(self):
        store = InMemorySessionStore()
        session = _bound(store)
        await session.save()

        await session.destroy()
        assert session.context.request.state.session is None
        assert await store.get("sid") is None

    @pytest.mark.asyncio
    async def test_destroy_twice_is_noop(self):
        store = InMemorySessionStore()
        session = _bound(store)
        await session.destroy()
        await session.destroy()
        assert await store.length() == 0

    @pytest.mark.asyncio
    async def test_regenerate_replaces_session(self):
        store = InMemorySessionStore()
        request = _request("old")

        def generate(req):
            fresh = Session("new", context=SessionContext(req, store))
            req.state.session_id = "new"
            req.state.session = fresh
            return fresh

        session = Session("old", data={"user": "ada"}, context=SessionContext(request, store, generate))
        request.state.session = session
        await session.save()

        fresh = await session.regenerate()
        assert fresh.id == "new"
        assert request.state.session is fresh
        assert "user" not in fresh
        assert await store.get("old") is None

    @pytest.mark.asyncio
    async def test_unbound_session_cannot_save(self):
        with pytest.raises(InvalidArgumentException):
            await Session("sid").save()

    @pytest.mark.asyncio
    async def test_regenerate_without_generator(self):
        session = _bound(InMemorySessionStore())
        with pytest.raises(InvalidArgumentException):
            await session.regenerate()
