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
"""Tests for SessionCookie — max-age/expires derivation, export and snapshots."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from pysession.kernel.exceptions import InvalidArgumentException
from pysession.session import cookie as cookie_module
from pysession.session.cookie import SessionCookie

NOW = datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def frozen_now(monkeypatch: pytest.MonkeyPatch):
    clock = {"now": NOW}
    monkeypatch.setattr(cookie_module, "_now", lambda: clock["now"])
    return clock


class TestDefaults:
    def test_default_attributes(self):
        cookie = SessionCookie()
        assert cookie.path == "/"
        assert cookie.http_only is True
        assert cookie.secure is False
        assert cookie.same_site is None
        assert cookie.partitioned is False
        assert cookie.expires is None
        assert cookie.max_age is None
        assert cookie.original_max_age is None


class TestMaxAge:
    def test_seconds_set_expires_from_now(self, frozen_now):
        cookie = SessionCookie(max_age=60)
        assert cookie.expires == NOW + timedelta(seconds=60)
        assert cookie.original_max_age == 60
        assert cookie.max_age == 60

    def test_timedelta_accepted(self, frozen_now):
        cookie = SessionCookie(max_age=timedelta(minutes=5))
        assert cookie.original_max_age == 300
        assert cookie.max_age == 300

    def test_remaining_time_decreases(self, frozen_now):
        cookie = SessionCookie(max_age=60)
        frozen_now["now"] = NOW + timedelta(seconds=45)
        assert cookie.max_age == 15
        assert cookie.original_max_age == 60

    def test_read_clamps_to_zero(self, frozen_now):
        cookie = SessionCookie(max_age=10)
        frozen_now["now"] = NOW + timedelta(hours=1)
        assert cookie.max_age == 0

    def test_none_clears_expiry(self, frozen_now):
        cookie = SessionCookie(max_age=60)
        cookie.max_age = None
        assert cookie.expires is None
        assert cookie.original_max_age is None

    def test_datetime_is_treated_as_expires(self, frozen_now):
        cookie = SessionCookie()
        cookie.max_age = NOW + timedelta(seconds=30)
        assert cookie.expires == NOW + timedelta(seconds=30)
        assert cookie.original_max_age == 30

    @pytest.mark.parametrize("value", ["60", True, [60]])
    def test_invalid_values_rejected(self, value):
        cookie = SessionCookie()
        with pytest.raises(InvalidArgumentException):
            cookie.max_age = value


class TestExpires:
    def test_setting_expires_recomputes_original_max_age(self, frozen_now):
        cookie = SessionCookie()
        cookie.expires = NOW + timedelta(seconds=90)
        assert cookie.original_max_age == 90
        assert cookie.max_age == 90

    def test_past_expires_gives_zero(self, frozen_now):
        cookie = SessionCookie(expires=NOW - timedelta(seconds=5))
        assert cookie.max_age == 0
        assert cookie.original_max_age == 0

    def test_naive_datetime_is_utc(self, frozen_now):
        cookie = SessionCookie(expires=datetime(2026, 1, 1, 12, 1, 0))
        assert cookie.expires == NOW + timedelta(minutes=1)

    def test_non_datetime_rejected(self):
        cookie = SessionCookie()
        with pytest.raises(InvalidArgumentException):
            cookie.expires = "tomorrow"  # type: ignore[assignment]

    def test_reset_restores_original_max_age(self, frozen_now):
        cookie = SessionCookie(max_age=100)
        frozen_now["now"] = NOW + timedelta(seconds=40)
        cookie.max_age = cookie.original_max_age
        assert cookie.max_age == cookie.original_max_age == 100


class TestDataAndSnapshot:
    def test_data_uses_camel_case_keys(self, frozen_now):
        cookie = SessionCookie(max_age=60, same_site="lax", priority="high", domain="example.com")
        data = cookie.data
        assert data["originalMaxAge"] == 60
        assert data["httpOnly"] is True
        assert data["sameSite"] == "lax"
        assert data["priority"] == "high"
        assert data["domain"] == "example.com"
        assert data["expires"] == NOW + timedelta(seconds=60)

    def test_auto_secure_exported_as_none(self):
        assert SessionCookie(secure="auto").data["secure"] is None

    def test_snapshot_serializes_expires(self, frozen_now):
        snapshot = SessionCookie(max_age=60).to_snapshot()
        assert snapshot["expires"] == (NOW + timedelta(seconds=60)).isoformat()

    def test_from_snapshot_restores_original_max_age_verbatim(self, frozen_now):
        snapshot = SessionCookie(max_age=60, same_site="strict").to_snapshot()
        frozen_now["now"] = NOW + timedelta(seconds=20)

        restored = SessionCookie.from_snapshot(snapshot)
        assert restored.expires == NOW + timedelta(seconds=60)
        assert restored.original_max_age == 60
        assert restored.max_age == 40
        assert restored.same_site == "strict"

    def test_from_snapshot_without_expiry(self):
        restored = SessionCookie.from_snapshot(SessionCookie().to_snapshot())
        assert restored == SessionCookie()
