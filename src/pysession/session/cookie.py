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
"""SessionCookie — attribute policy of the cookie that carries the session id.

Durations are seconds, instants are timezone-aware UTC datetimes. The
``max_age`` and ``expires`` setters keep each other consistent: assigning
either one recomputes the other (and ``original_max_age``) from "now", and
reading ``max_age`` never goes below zero.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any, Literal

import structlog

from pysession.kernel.exceptions import InvalidArgumentException

logger = structlog.get_logger("pysession.session")

SameSite = bool | Literal["lax", "strict", "none"] | None
Secure = bool | Literal["auto"]

SAME_SITE_VALUES = ("lax", "strict", "none")
PRIORITY_VALUES = ("low", "medium", "high")


def _now() -> datetime:
    return datetime.now(UTC)


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


class SessionCookie:
    """Cookie policy owned by exactly one :class:`~pysession.session.session.Session`.

    Attributes:
        path: ``Path`` attribute; also the prefix a request path must start with.
        domain: ``Domain`` attribute, or ``None`` for host-only cookies.
        http_only: ``HttpOnly`` flag.
        secure: ``True``, ``False`` or ``"auto"`` (secure iff the request is).
        same_site: ``True`` (strict), ``False``/``None`` (omitted) or a keyword.
        priority: ``"low"``, ``"medium"``, ``"high"`` or ``None``.
        partitioned: ``Partitioned`` flag.
        original_max_age: The max-age snapshot that ``Session.touch()`` restores.
    """

    def __init__(
        self,
        *,
        path: str | None = "/",
        domain: str | None = None,
        http_only: bool | None = True,
        secure: Secure | None = False,
        same_site: SameSite = None,
        priority: str | None = None,
        partitioned: bool | None = False,
        max_age: float | timedelta | None = None,
        expires: datetime | None = None,
    ) -> None:
        self.path = path
        self.domain = domain
        self.http_only = http_only
        self.secure = secure
        self.same_site = same_site
        self.priority = priority
        self.partitioned = partitioned
        self._expires: datetime | None = None
        self.original_max_age: float | None = None

        if expires is not None:
            self.expires = expires
        if max_age is not None:
            self.max_age = max_age

    @property
    def expires(self) -> datetime | None:
        return self._expires

    @expires.setter
    def expires(self, value: datetime | None) -> None:
        if value is not None and not isinstance(value, datetime):
            raise InvalidArgumentException(
                "expires must be a datetime or None",
                code="INVALID_COOKIE_EXPIRES",
                context={"value": repr(value)},
            )
        self._expires = _as_utc(value) if value is not None else None
        self.original_max_age = self.max_age

    @property
    def max_age(self) -> float | None:
        """Seconds until ``expires``, clamped to zero; ``None`` for session-only cookies."""
        if self._expires is None:
            return None
        return max(0.0, (self._expires - _now()).total_seconds())

    @max_age.setter
    def max_age(self, value: float | timedelta | datetime | None) -> None:
        if value is None:
            self._expires = None
            self.original_max_age = None
            return

        if isinstance(value, datetime):
            logger.warning("cookie_max_age_datetime_deprecated", hint="pass a number of seconds instead")
            self.expires = value
            return

        if isinstance(value, timedelta):
            seconds: float = value.total_seconds()
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            seconds = value
        else:
            raise InvalidArgumentException(
                "max_age must be a number of seconds, a timedelta or a datetime",
                code="INVALID_COOKIE_MAX_AGE",
                context={"value": repr(value)},
            )

        self._expires = _now() + timedelta(seconds=seconds)
        self.original_max_age = seconds

    @property
    def data(self) -> dict[str, Any]:
        """Exportable attribute set; ``secure="auto"`` is exported as ``None``."""
        return {
            "originalMaxAge": self.original_max_age,
            "partitioned": self.partitioned,
            "expires": self._expires,
            "secure": None if self.secure == "auto" else self.secure,
            "httpOnly": self.http_only,
            "domain": self.domain,
            "path": self.path,
            "sameSite": self.same_site,
            "priority": self.priority,
        }

    def to_snapshot(self) -> dict[str, Any]:
        """JSON-ready form persisted alongside the session payload."""
        snapshot = self.data
        if self._expires is not None:
            snapshot["expires"] = self._expires.isoformat()
        return snapshot

    @classmethod
    def from_snapshot(cls, snapshot: dict[str, Any]) -> SessionCookie:
        """Rebuild a cookie from its persisted form.

        ``originalMaxAge`` is restored verbatim: the ``expires`` setter would
        otherwise recompute it as the time remaining right now.
        """
        cookie = cls(
            path=snapshot.get("path"),
            domain=snapshot.get("domain"),
            http_only=snapshot.get("httpOnly"),
            secure=snapshot.get("secure"),
            same_site=snapshot.get("sameSite"),
            priority=snapshot.get("priority"),
            partitioned=snapshot.get("partitioned"),
        )

        expires = snapshot.get("expires")
        if isinstance(expires, str):
            expires = datetime.fromisoformat(expires)
        cookie.expires = expires
        cookie.original_max_age = snapshot.get("originalMaxAge")
        return cookie

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SessionCookie):
            return NotImplemented
        return self.data == other.data and self.secure == other.secure

    def __repr__(self) -> str:
        return f"SessionCookie(path={self.path!r}, expires={self._expires!r}, original_max_age={self.original_max_age!r})"
