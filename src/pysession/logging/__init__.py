"""PySession Logging — hexagonal logging port and structlog adapter."""

from pysession.logging.port import LoggingPort
from pysession.logging.structlog_adapter import StructlogAdapter

__all__ = ["LoggingPort", "StructlogAdapter"]
