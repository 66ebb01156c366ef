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
"""Filter port: the contract the session layer plugs into.

``SessionFilter`` and any application filters implement :class:`WebFilter`.
Request and response are typed ``Any``; the session controller only relies
on the Starlette-shaped attributes it reads (``url``, ``headers``,
``cookies``, ``state``) and writes (``set_cookie``, ``raw_headers``), so
Starlette itself stays inside ``web.adapters.starlette``.
"""

from __future__ import annotations

from collections.abc import Callable, Coroutine
from typing import Any, Protocol, runtime_checkable

# Downstream of a filter: the next filter, or the route handler at the end.
CallNext = Callable[..., Coroutine[Any, Any, Any]]


@runtime_checkable
class WebFilter(Protocol):
    """One step of the request pipeline run by ``WebFilterChainMiddleware``.

    The chain sorts filters by ``@order``; lower values run first and so see
    the response last. The session filter sits near the top so that every
    later filter and the handler find ``request.state.session`` populated.
    """

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        """Process ``request``, await ``call_next(request)`` and return the response.

        A filter may act before and after ``call_next``; the session filter
        resolves the session before and persists it after.
        """
        ...

    def should_not_filter(self, request: Any) -> bool:
        """``True`` when the chain should bypass this filter for ``request``."""
        ...
