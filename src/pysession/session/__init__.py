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
"""PySession Session — cookie-based server-side sessions with pluggable stores.

Import concrete store types from the adapter package::

    from pysession.session.adapters.memory import InMemorySessionStore
    from pysession.session.adapters.redis import RedisSessionStore
"""

from pysession.session.controller import SessionController, StoreReadiness, TrackedSession
from pysession.session.cookie import SessionCookie
from pysession.session.filter import SessionFilter
from pysession.session.hashing import hash_session
from pysession.session.options import CookieOptions, SessionOptions, generate_session_id
from pysession.session.ports.outbound import SessionStore, StoreEvent
from pysession.session.session import Session, SessionContext
from pysession.session.signing import CookieSigner

__all__ = [
    "CookieOptions",
    "CookieSigner",
    "Session",
    "SessionContext",
    "SessionController",
    "SessionCookie",
    "SessionFilter",
    "SessionOptions",
    "SessionStore",
    "StoreEvent",
    "StoreReadiness",
    "TrackedSession",
    "generate_session_id",
    "hash_session",
]
