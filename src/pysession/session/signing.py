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
"""CookieSigner — signs and verifies the session id carried in the cookie."""

from __future__ import annotations

import hashlib
from collections.abc import Mapping, Sequence

from itsdangerous import BadSignature, Signer

from pysession.kernel.exceptions import ConfigurationException

Secret = str | bytes

_SALT = "pysession.session-cookie"


class CookieSigner:
    """HMAC-SHA256 signer over a list of secrets, supporting key rotation.

    The first secret signs new cookies; every secret in the list is accepted
    when verifying incoming ones.
    """

    def __init__(self, secrets: Sequence[Secret]) -> None:
        if not secrets:
            raise ConfigurationException(
                "secret option must contain one or more values",
                code="SESSION_SECRET_EMPTY",
            )
        # itsdangerous signs with the last key of the list and verifies against all of them.
        self._signer = Signer(list(reversed(secrets)), salt=_SALT, digest_method=hashlib.sha256)

    def sign(self, value: str) -> str:
        """Return ``value`` with a signature appended."""
        return self._signer.sign(value).decode("utf-8")

    def unsign(self, signed_value: str | None) -> str | None:
        """Return the original value, or ``None`` if it is absent or badly signed."""
        if not signed_value:
            return None
        try:
            return self._signer.unsign(signed_value).decode("utf-8")
        except (BadSignature, UnicodeError):
            return None

    def verify(self, cookies: Mapping[str, str], name: str) -> str | None:
        """Resolve the session id from the incoming cookie called ``name``."""
        return self.unsign(cookies.get(name))
