from __future__ import annotations

from django.db import models


class BaseModel(models.Model):
    """
    created_at / updated_at for every marketplace table.

    QuerySet.update() skips auto_now; conditional updates pass updated_at
    themselves.
    """

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{type(self).__name__} {self.pk}"
