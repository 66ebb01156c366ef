"""Unified exception hierarchy for PySession.

All library exceptions inherit from PySessionException, enabling unified
error handling across modules.

Categories:
- ConfigurationException: Invalid setup, raised eagerly at construction time
- BusinessException: Invalid arguments, missing sessions
- InfrastructureException: Session store failures
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class PySessionException(Exception):
    """Base exception for all PySession errors.

    Carries an optional error code and context dict for structured error data.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "SESSION_NOT_FOUND").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationException(PySessionException):
    """Invalid session configuration (bad ``genid``, ``unset`` or secret list)."""


# =============================================================================
# Business Exceptions
# =============================================================================


class BusinessException(PySessionException):
    """Domain rule violations and invalid usage."""


class InvalidArgumentException(BusinessException):
    """A value of the wrong type or shape was supplied."""


class ResourceNotFoundException(BusinessException):
    """Requested resource does not exist."""


class SessionNotFoundException(ResourceNotFoundException):
    """No session is stored under the requested identifier.

    Stores may raise this from ``get``; the session controller treats it
    exactly like an empty result.
    """


class SessionMissingException(SessionNotFoundException):
    """The store no longer holds the session being reloaded."""


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(PySessionException):
    """Infrastructure failures: session backends, network."""


class ServiceUnavailableException(InfrastructureException):
    """The session store is not connected."""


class StoreIOException(InfrastructureException):
    """A session store read or write failed."""
