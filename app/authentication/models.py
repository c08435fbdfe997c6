"""
Marketplace users.

One User model covers buyers, sellers and admins. A seller's
commission_rate is copied onto each escrow Transaction when it is created
(payments.commission), so changing it never affects money already held.
"""

from decimal import Decimal

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from authentication.managers import UserManager


def default_commission_rate():
    return settings.DEFAULT_COMMISSION_RATE


class UserRole(models.TextChoices):
    BUYER = "buyer", "Buyer"
    SELLER = "seller", "Seller"
    ADMIN = "admin", "Admin"


class User(AbstractBaseUser, PermissionsMixin):
    """
    Email login, one role per account.

    Example:
        seller = User.objects.create_seller("shop@example.com", commission_rate=Decimal("15.00"))
    """

    email = models.EmailField(unique=True)
    role = models.CharField(
        max_length=10,
        choices=UserRole.choices,
        default=UserRole.BUYER,
        db_index=True,
    )
    commission_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=default_commission_rate,
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
        help_text="Percent of each sale kept by the platform (sellers only)",
    )
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False, help_text="Can log into the admin site")
    date_joined = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        ordering = ["-date_joined"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(commission_rate__gte=0, commission_rate__lte=100),
                name="user_commission_rate_percentage",
            ),
        ]

    def __str__(self):
        return f"{self.email} ({self.role})"

    @property
    def is_buyer(self) -> bool:
        return self.role == UserRole.BUYER

    @property
    def is_seller(self) -> bool:
        return self.role == UserRole.SELLER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
