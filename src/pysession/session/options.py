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
"""Session middleware options."""

from __future__ import annotations

import secrets as _secrets
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Literal

from pysession.kernel.exceptions import ConfigurationException
from pysession.session.cookie import PRIORITY_VALUES, SAME_SITE_VALUES, SameSite, Secure, SessionCookie

DEFAULT_COOKIE_NAME = "connect.sid"

Secret = str | bytes


def generate_session_id() -> str:
    """Default ``genid``: 24 random bytes, URL-safe base64 encoded."""
    return _secrets.token_urlsafe(24)


@dataclass(frozen=True)
class CookieOptions:
    """Defaults applied to the cookie of every newly generated session.

    ``max_age`` is in seconds; ``None`` issues a session-only cookie.
    """

    path: str = "/"
    domain: str | None = None
    http_only: bool = True
    secure: Secure = False
    same_site: SameSite = None
    priority: Literal["low", "medium", "high"] | None = None
    partitioned: bool = False
    max_age: float | None = None

    def __post_init__(self) -> None:
        if isinstance(self.same_site, str) and self.same_site.lower() not in SAME_SITE_VALUES:
            raise ConfigurationException(
                f"cookie same_site must be a boolean or one of {', '.join(SAME_SITE_VALUES)}",
                code="INVALID_COOKIE_OPTION",
                context={"same_site": self.same_site},
            )
        if self.priority is not None and self.priority not in PRIORITY_VALUES:
            raise ConfigurationException(
                f"cookie priority must be one of {', '.join(PRIORITY_VALUES)}",
                code="INVALID_COOKIE_OPTION",
                context={"priority": self.priority},
            )
        if self.secure not in (True, False, "auto"):
            raise ConfigurationException(
                'cookie secure must be True, False or "auto"',
                code="INVALID_COOKIE_OPTION",
                context={"secure": self.secure},
            )

    def build(self) -> SessionCookie:
        """Create a fresh cookie carrying these defaults."""
        return SessionCookie(
            path=self.path,
            domain=self.domain,
            http_only=self.http_only,
            secure=self.secure,
            same_site=self.same_site,
            priority=self.priority,
            partitioned=self.partitioned,
            max_age=self.max_age,
        )


@dataclass(frozen=True)
class SessionOptions:
    """Options recognised by the session controller.

    Attributes:
        secret: Secret (or secrets) signing the session cookie. Only the
            first signs; all of them verify, which allows rotation. ``None``
            disables sessions with an error logged on every request.
        genid: Returns a new session id.
        name: Name of the session cookie.
        cookie: Defaults for the cookie of new sessions.
        proxy: Trust ``X-Forwarded-Proto`` when deciding if a request is secure.
        resave: Save sessions back to the store even when unmodified.
        rolling: Re-issue the cookie on every response, resetting its expiry.
        save_uninitialized: Save new sessions even if the application never modified them.
        unset: ``"destroy"`` deletes the stored session when the application
            sets ``request.state.session`` to ``None``; ``"keep"`` leaves it.

    Raises:
        ConfigurationException: On a non-callable ``genid``, an ``unset``
            other than ``"destroy"``/``"keep"``, or an empty secret list.
    """

    secret: Secret | Sequence[Secret] | None
    genid: Callable[[], str] = generate_session_id
    name: str = DEFAULT_COOKIE_NAME
    cookie: CookieOptions = field(default_factory=CookieOptions)
    proxy: bool = False
    resave: bool = False
    rolling: bool = False
    save_uninitialized: bool = True
    unset: Literal["destroy", "keep"] = "keep"

    def __post_init__(self) -> None:
        if not callable(self.genid):
            raise ConfigurationException("genid option must be a function", code="INVALID_SESSION_OPTION")

        if self.unset not in ("destroy", "keep"):
            raise ConfigurationException(
                'unset option must be "destroy" or "keep"',
                code="INVALID_SESSION_OPTION",
                context={"unset": self.unset},
            )

        if self.secret is not None and not isinstance(self.secret, (str, bytes)) and len(self.secret) == 0:
            raise ConfigurationException(
                "secret option array must contain one or more strings",
                code="SESSION_SECRET_EMPTY",
            )

    @property
    def secrets(self) -> tuple[Secret, ...]:
        """The secret list, first (signing) secret first; empty when unset."""
        if not self.secret:
            return ()
        if isinstance(self.secret, (str, bytes)):
            return (self.secret,)
        return tuple(self.secret)

    @property
    def unset_destroy(self) -> bool:
        return self.unset == "destroy"
