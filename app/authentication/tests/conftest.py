"""
Test configuration and fixtures for authentication tests.

Role fixtures (buyer, seller, admin_user) and API clients live in the
root conftest.py because every app's tests use them.
"""

import pytest

from authentication.models import User


@pytest.fixture
def superuser(db):
    """Create a superuser with admin privileges."""
    return User.objects.create_superuser(
        email="superuser@example.com",
        password="SuperPass123!",
    )
