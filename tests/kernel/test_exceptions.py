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
"""Tests for the PySession exception hierarchy."""

from __future__ import annotations

from pysession.kernel.exceptions import (
    BusinessException,
    ConfigurationException,
    InfrastructureException,
    InvalidArgumentException,
    PySessionException,
    ResourceNotFoundException,
    ServiceUnavailableException,
    SessionMissingException,
    SessionNotFoundException,
    StoreIOException,
)


class TestPySessionException:
    def test_basic_creation(self):
        exc = PySessionException("something went wrong")
        assert str(exc) == "something went wrong"
        assert exc.code is None
        assert exc.context == {}

    def test_with_error_code(self):
        exc = PySessionException("bad cookie", code="INVALID_COOKIE_EXPIRES")
        assert exc.code == "INVALID_COOKIE_EXPIRES"

    def test_with_context(self):
        exc = PySessionException("not found", code="SESSION_NOT_FOUND", context={"session_id": "abc"})
        assert exc.context["session_id"] == "abc"

    def test_context_defaults_to_empty_dict(self):
        exc = PySessionException("test")
        exc.context["key"] = "value"
        exc2 = PySessionException("test2")
        assert exc2.context == {}


class TestExceptionHierarchy:
    def test_configuration_is_pysession(self):
        assert issubclass(ConfigurationException, PySessionException)

    def test_invalid_argument_is_business(self):
        assert issubclass(InvalidArgumentException, BusinessException)

    def test_session_not_found_is_resource_not_found(self):
        assert issubclass(SessionNotFoundException, ResourceNotFoundException)
        assert issubclass(ResourceNotFoundException, BusinessException)

    def test_session_missing_is_session_not_found(self):
        assert issubclass(SessionMissingException, SessionNotFoundException)

    def test_store_io_is_infrastructure(self):
        assert issubclass(StoreIOException, InfrastructureException)

    def test_service_unavailable_is_infrastructure(self):
        assert issubclass(ServiceUnavailableException, InfrastructureException)

    def test_catch_all_pysession_exceptions(self):
        """Verify all exceptions can be caught with a single handler."""
        exceptions = [
            ConfigurationException("bad genid"),
            InvalidArgumentException("bad max_age"),
            SessionMissingException("gone", code="SESSION_MISSING"),
            StoreIOException("redis down"),
        ]
        for exc in exceptions:
            try:
                raise exc
            except PySessionException as caught:
                assert caught is exc
