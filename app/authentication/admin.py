from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from authentication.models import User, UserRole


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    """Email accounts; sellers' commission rate is edited here."""

    list_display = ("email", "role", "commission_rate", "is_active", "date_joined")
    list_filter = ("role", "is_active", "is_staff")
    search_fields = ("email",)
    ordering = ("-date_joined",)
    readonly_fields = ("date_joined", "last_login")

    fieldsets = (
        (None, {"fields": ("email", "password", "role", "commission_rate")}),
        ("Access", {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")}),
        ("Activity", {"fields": ("date_joined", "last_login")}),
    )
    add_fieldsets = (
        (None, {"classes": ("wide",), "fields": ("email", "role", "password1", "password2")}),
    )

    def get_readonly_fields(self, request, obj=None):
        fields = super().get_readonly_fields(request, obj)
        # Non-sellers keep the default rate; it only applies once they sell
        if obj is not None and obj.role != UserRole.SELLER:
            return (*fields, "commission_rate")
        return fields
