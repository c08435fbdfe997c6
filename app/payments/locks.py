"""
Optimistic concurrency control for marketplace records.

Every financially relevant write (order status, transaction status, return
decisions) is a compare-and-swap: an UPDATE that only matches the row when
its version, and usually its status, still hold the values the caller read.
Losing the race raises StaleRecordError (HTTP 409) instead of silently
overwriting the winner.

Usage:
    from payments.locks import lock_record, save_if_unchanged

    with transaction.atomic(using=using):
        txn = lock_record(Transaction, txn_id, using=using)
        read_version, read_status = txn.version, txn.status
        txn.release()  # django-fsm transition, in memory only
        save_if_unchanged(
            txn,
            expected_version=read_version,
            expected_status=read_status,
            update_fields=["status", "released_at"],
            using=using,
        )

Note:
    lock_record() adds SELECT ... FOR UPDATE on backends that support it.
    The conditional UPDATE is what guarantees correctness everywhere,
    including backends without row locks.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeVar

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DEFAULT_DB_ALIAS, models
from django.db.models import F
from django.utils import timezone

from core.exceptions import NotFoundError
from payments.exceptions import StaleRecordError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from typing import Any

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=models.Model)


def lock_record(
    model_class: type[T],
    pk: Any,
    *,
    using: str = DEFAULT_DB_ALIAS,
    not_found_error: type[NotFoundError] = NotFoundError,
) -> T:
    """
    Fetch a record for update inside the caller's transaction.

    Raises:
        NotFoundError (or the given subclass): If the record doesn't exist
    """
    try:
        return model_class._default_manager.using(using).select_for_update().get(pk=pk)
    except (model_class.DoesNotExist, DjangoValidationError):
        raise not_found_error(
            f"{model_class.__name__} {pk} not found",
            details={"pk": str(pk)},
        ) from None


def save_if_unchanged(
    instance: T,
    *,
    expected_version: int,
    update_fields: Iterable[str],
    expected_status: str | None = None,
    status_field: str = "status",
    using: str = DEFAULT_DB_ALIAS,
) -> T:
    """
    Persist ``update_fields`` only if the row still has the version read.

    Increments the version by one in the same UPDATE. On success the
    in-memory instance carries the new version.

    Args:
        instance: Model instance holding the new field values
        expected_version: Version the caller read before mutating
        update_fields: Names of the concrete fields to write
        expected_status: Optional status value the row must still hold
        status_field: Name of the status field checked with expected_status
        using: Database alias

    Raises:
        StaleRecordError: If another writer changed the row first
    """
    model_class = type(instance)
    opts = model_class._meta

    values: dict[str, Any] = {}
    for name in update_fields:
        field = opts.get_field(name)
        values[field.attname] = getattr(instance, field.attname)

    field_names = {f.name for f in opts.concrete_fields}
    if "updated_at" in field_names:
        values["updated_at"] = timezone.now()

    filters: dict[str, Any] = {"pk": instance.pk, "version": expected_version}
    if expected_status is not None:
        filters[status_field] = expected_status

    rows = (
        model_class._default_manager.using(using)
        .filter(**filters)
        .update(version=F("version") + 1, **values)
    )

    if rows == 0:
        logger.warning(
            f"Concurrent modification detected on {model_class.__name__}",
            extra={
                "model": model_class.__name__,
                "pk": str(instance.pk),
                "expected_version": expected_version,
                "expected_status": expected_status,
            },
        )
        raise StaleRecordError(
            f"{model_class.__name__} {instance.pk} was modified by another request",
            details={
                "model": model_class.__name__,
                "pk": str(instance.pk),
                "expected_version": expected_version,
            },
        )

    instance.version = expected_version + 1
    if "updated_at" in values:
        instance.updated_at = values["updated_at"]
    return instance
