"""Typed errors raised by the marketplace services."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import InterfaceError, OperationalError


class MarketplaceError(Exception):
    """Base class for service errors; ``code`` is a stable machine identifier."""

    def __init__(self, code: str, detail: str | None = None) -> None:
        super().__init__(code)
        self.code = code
        self.detail = detail or code


class ValidationError(MarketplaceError, ValueError):
    """Invalid input supplied by the caller. Never retried."""


class InvalidFilterError(ValidationError):
    """Search filters that cannot be satisfied together."""


class StateTransitionError(MarketplaceError, ValueError):
    """Lifecycle transition that is not allowed from the current state."""


class NotFoundError(MarketplaceError, LookupError):
    """Referenced entity does not exist."""


class ConflictError(MarketplaceError):
    """Concurrent write lost a race; retry after a fresh availability check."""


class StoreUnavailableError(MarketplaceError):
    """The relational store could not be reached."""


@contextmanager
def store_errors() -> Iterator[None]:
    """Re-raise connectivity failures from SQLAlchemy as ``StoreUnavailableError``."""
    try:
        yield
    except (OperationalError, InterfaceError) as exc:
        raise StoreUnavailableError("STORE_UNAVAILABLE", str(exc.orig or exc)) from exc


__all__ = [
    "ConflictError",
    "InvalidFilterError",
    "MarketplaceError",
    "NotFoundError",
    "StateTransitionError",
    "StoreUnavailableError",
    "ValidationError",
    "store_errors",
]
