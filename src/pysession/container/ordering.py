"""Filter ordering — @order decorator and precedence constants."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

T = TypeVar("T", bound=type)

HIGHEST_PRECEDENCE: int = -(2**31)
LOWEST_PRECEDENCE: int = 2**31 - 1


def order(value: int) -> Callable[[T], T]:
    """Set the execution order for a filter class.

    Lower value = higher priority (runs first, i.e. outermost in the chain).
    Default order for undecorated classes is 0.
    """

    def decorator(cls: T) -> T:
        cls.__pysession_order__ = value  # type: ignore[attr-defined]
        return cls

    return decorator


def get_order(obj: Any) -> int:
    """Get the order value for a class or instance, defaulting to 0."""
    return getattr(obj, "__pysession_order__", 0)
