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
"""Session subsystem configuration properties."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from pysession.core.config import config_properties


def split_secrets(value: object) -> object:
    """Turn a single secret, or a comma-separated list of them, into a list."""
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


class CookieProperties(BaseModel):
    """Default attributes of the session cookie (pysession.session.cookie.*)."""

    path: str = "/"
    domain: str | None = None
    http_only: bool = True
    secure: bool | Literal["auto"] = False
    same_site: bool | Literal["lax", "strict", "none"] | None = None
    priority: Literal["low", "medium", "high"] | None = None
    partitioned: bool = False
    max_age: float | None = Field(default=None, ge=0)


class RedisStoreProperties(BaseModel):
    """Connection settings for the Redis session store (pysession.session.redis.*)."""

    url: str = "redis://localhost:6379/0"
    prefix: str = "sess:"
    ttl: int = Field(default=86400, ge=1)


@config_properties(prefix="pysession.session")
class SessionProperties(BaseModel):
    """Configuration for the session subsystem (pysession.session.*)."""

    enabled: bool = True
    store: Literal["auto", "memory", "redis"] = "memory"
    secret: list[str] | None = None
    cookie_name: str = "connect.sid"
    proxy: bool = False
    resave: bool = False
    rolling: bool = False
    save_uninitialized: bool = True
    unset: Literal["destroy", "keep"] = "keep"
    cookie: CookieProperties = Field(default_factory=CookieProperties)
    redis: RedisStoreProperties = Field(default_factory=RedisStoreProperties)

    @field_validator("secret", mode="before")
    @classmethod
    def _split_secret(cls, value: object) -> object:
        return split_secrets(value)
