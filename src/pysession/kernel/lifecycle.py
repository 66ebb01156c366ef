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
"""Unified lifecycle protocol for session stores.

Stores that own connections or pools implement this protocol. ``start()``
announces readiness to subscribed session controllers and ``stop()``
withdraws it.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Lifecycle(Protocol):
    """Standard lifecycle for infrastructure adapters.

    The application calls start() during startup and stop() during shutdown,
    in registration order and reverse order respectively.
    """

    async def start(self) -> None:
        """Initialize connections and validate connectivity.

        If the connection fails, raise an exception -- the caller decides
        whether to abort startup.
        """
        ...

    async def stop(self) -> None:
        """Release connections and clean up resources.

        Best-effort cleanup -- exceptions are logged but do not prevent
        shutdown of other adapters.
        """
        ...
