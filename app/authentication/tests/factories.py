"""
Factory Boy factories for authentication models.

Usage:
    from authentication.tests.factories import BuyerFactory, SellerFactory

    buyer = BuyerFactory()
    seller = SellerFactory(commission_rate=Decimal("15.00"))
    admin = AdminFactory()
"""

from decimal import Decimal

import factory

from authentication.models import User, UserRole


class UserFactory(factory.django.DjangoModelFactory):
    """
    Factory for User model.

    Creates active buyers by default through UserManager.create_user().
    """

    class Meta:
        model = User
        skip_postgeneration_save = True

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    role = UserRole.BUYER
    is_active = True

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        """Override create to use UserManager.create_user()."""
        password = kwargs.pop("password", "TestPass123!")
        return model_class.objects.create_user(
            email=kwargs.pop("email"), password=password, **kwargs
        )


class BuyerFactory(UserFactory):
    email = factory.Sequence(lambda n: f"buyer{n}@example.com")
    role = UserRole.BUYER


class SellerFactory(UserFactory):
    email = factory.Sequence(lambda n: f"seller{n}@example.com")
    role = UserRole.SELLER
    commission_rate = Decimal("20.00")


class AdminFactory(UserFactory):
    email = factory.Sequence(lambda n: f"admin{n}@example.com")
    role = UserRole.ADMIN
    is_staff = True
