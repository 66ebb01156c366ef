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
"""Base class for filters restricted to a set of request paths."""

from __future__ import annotations

import abc
from fnmatch import fnmatch
from typing import Any

from pysession.web.ports.filter import CallNext


def _matches(path: str, patterns: list[str]) -> bool:
    return any(fnmatch(path, pattern) for pattern in patterns)


class OncePerRequestFilter(abc.ABC):
    """A :class:`~pysession.web.ports.filter.WebFilter` with path matching built in.

    ``url_patterns`` and ``exclude_patterns`` are ``fnmatch`` globs matched
    against ``request.url.path``. With no ``url_patterns`` every path is
    included; an exclude match always wins. ``SessionFilter`` uses the
    defaults and applies its own cookie-path check inside the controller.
    """

    url_patterns: list[str] = []
    exclude_patterns: list[str] = []

    def should_not_filter(self, request: Any) -> bool:
        path: str = request.url.path
        if self.url_patterns and not _matches(path, self.url_patterns):
            return True
        return _matches(path, self.exclude_patterns)

    @abc.abstractmethod
    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        """Filter logic; must ``await call_next(request)`` to continue the chain."""
        ...
