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
"""SessionFilter — attaches a session to every request via a signed cookie."""

from __future__ import annotations

from typing import Any

from pysession.container.ordering import HIGHEST_PRECEDENCE
from pysession.session.controller import SessionController
from pysession.session.options import SessionOptions
from pysession.session.ports.outbound import SessionStore
from pysession.web.filters import OncePerRequestFilter
from pysession.web.ports.filter import CallNext


class SessionFilter(OncePerRequestFilter):
    """Manages server-side sessions via a signed cookie.

    Reads the session cookie from the incoming request, loads the session
    from the ``SessionStore``, attaches it to ``request.state.session``, and
    after the response decides whether to save, touch or destroy it and
    whether to (re)issue the cookie. The decisions are made by
    :class:`SessionController`.
    """

    __pysession_order__ = HIGHEST_PRECEDENCE + 150

    def __init__(self, options: SessionOptions, store: SessionStore | None = None) -> None:
        self._controller = SessionController(options, store)

    @property
    def controller(self) -> SessionController:
        return self._controller

    @property
    def store(self) -> SessionStore:
        return self._controller.store

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        return await self._controller.handle(request, call_next)
