"""
Service-layer base pieces.

Request-path services raise core.exceptions errors and let the API layer
render them. Background callers (webhook handlers run by Celery) report
outcomes instead, as a ServiceResult the task records on the event.

    class EscrowService(BaseService):
        def release(self, transaction_id) -> Transaction:
            with self.atomic():
                ...
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Generic, Iterator, TypeVar

from django.db import DEFAULT_DB_ALIAS, transaction

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """Outcome of a background operation; falsy when it failed."""

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def ok(cls, data: T | None = None) -> ServiceResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def from_exception(cls, exc: Exception, error_code: str | None = None) -> ServiceResult[T]:
        """Failed result carrying the error's message and code (class name if it has none)."""
        code = error_code or getattr(exc, "error_code", None) or type(exc).__name__.upper()
        return cls(success=False, error=getattr(exc, "message", str(exc)), error_code=code)

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Services carry the database alias they write to.

    Mutating methods wrap their work in atomic(); a service calling
    another on the same alias nests as a savepoint, so both commit or
    roll back together.
    """

    using: str = DEFAULT_DB_ALIAS

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with transaction.atomic(using=self.using):
            yield
