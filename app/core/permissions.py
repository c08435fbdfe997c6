"""
Role-based permission classes shared by the marketplace APIs.

- IsMarketplaceAdmin: User acts as the admin arbiter
- IsBuyer / IsSeller: User holds the given marketplace role

Object-level ownership (is this the buyer of that order?) is checked by
the services, which raise the matching application error.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

from authentication.models import UserRole

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class _HasRole(permissions.BasePermission):
    role: str = ""

    def has_permission(self, request: Request, view: APIView) -> bool:
        user = request.user
        return bool(user and user.is_authenticated and user.role == self.role)


class IsMarketplaceAdmin(_HasRole):
    message = "Only marketplace admins can perform this action."
    role = UserRole.ADMIN


class IsBuyer(_HasRole):
    message = "Only buyers can perform this action."
    role = UserRole.BUYER


class IsSeller(_HasRole):
    message = "Only sellers can perform this action."
    role = UserRole.SELLER
