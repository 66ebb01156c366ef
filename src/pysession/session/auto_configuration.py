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
"""Session subsystem auto-configuration."""

from __future__ import annotations

import structlog

from pysession.config.auto import AutoConfiguration
from pysession.config.properties.session import SessionProperties, split_secrets
from pysession.core.config import Config
from pysession.session.filter import SessionFilter
from pysession.session.options import CookieOptions, SessionOptions
from pysession.session.ports.outbound import SessionStore

logger = structlog.get_logger("pysession.session")


class SessionAutoConfiguration:
    """Builds the session store and filter from ``pysession.session.*`` properties."""

    def __init__(self, config: Config) -> None:
        self._config = config
        self._properties = config.bind(SessionProperties)

    @property
    def properties(self) -> SessionProperties:
        return self._properties

    @property
    def enabled(self) -> bool:
        return self._properties.enabled

    def session_store(self) -> SessionStore:
        props = self._properties
        provider = AutoConfiguration.resolve_session_store_provider(props.store)

        if provider == "redis":
            import redis.asyncio as aioredis

            from pysession.session.adapters.redis import RedisSessionStore

            url = str(self._config.get("pysession.session.redis.url", props.redis.url))
            client = aioredis.from_url(url)  # type: ignore[no-untyped-call,unused-ignore]
            logger.info("session_store_configured", provider=provider, prefix=props.redis.prefix)
            return RedisSessionStore(client=client, prefix=props.redis.prefix, ttl=props.redis.ttl)

        from pysession.session.adapters.memory import InMemorySessionStore

        logger.info("session_store_configured", provider="memory")
        return InMemorySessionStore()

    def session_options(self) -> SessionOptions:
        props = self._properties
        # The secret is usually injected via PYSESSION_SESSION_SECRET.
        secret = split_secrets(self._config.get("pysession.session.secret", props.secret))
        cookie = props.cookie
        return SessionOptions(
            secret=secret or None,
            name=props.cookie_name,
            cookie=CookieOptions(
                path=cookie.path,
                domain=cookie.domain,
                http_only=cookie.http_only,
                secure=cookie.secure,
                same_site=cookie.same_site,
                priority=cookie.priority,
                partitioned=cookie.partitioned,
                max_age=cookie.max_age,
            ),
            proxy=props.proxy,
            resave=props.resave,
            rolling=props.rolling,
            save_uninitialized=props.save_uninitialized,
            unset=props.unset,
        )

    def session_filter(self, session_store: SessionStore | None = None) -> SessionFilter | None:
        """Return the configured filter, or ``None`` when sessions are disabled."""
        if not self.enabled:
            logger.info("session_disabled")
            return None
        store = session_store if session_store is not None else self.session_store()
        return SessionFilter(self.session_options(), store)
