"""
Abstract field mixins. List them before BaseModel:

    class Transaction(UUIDPrimaryKeyMixin, VersionedMixin, BaseModel):
        ...
"""

from __future__ import annotations

import uuid

from django.db import models
from django.db.models import F


class UUIDPrimaryKeyMixin(models.Model):
    """Random UUID keys; ids are sent to the gateway as transactionRef."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    class Meta:
        abstract = True


class VersionedMixin(models.Model):
    """
    Write counter for compare-and-swap updates.

    Service writes go through payments.locks.save_if_unchanged, which
    matches the version the caller read. Any other save() of an existing
    row bumps the counter in SQL so admin edits also invalidate readers.
    """

    version = models.PositiveIntegerField(default=1)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        updating = not self._state.adding and not kwargs.get("force_insert", False)
        if updating:
            self.version = F("version") + 1
        super().save(*args, **kwargs)
        if updating:
            self.refresh_from_db(fields=["version"])
