"""
Project-wide pytest fixtures and test markers.

Provides the marketplace parties (buyer, seller, admin_user) and DRF
API clients authenticated as each of them. App-specific fixtures are
defined in each app's tests/conftest.py.
"""

import pytest
from rest_framework.test import APIClient

MARKERS_BY_FILE = {
    "test_models.py": "unit",
    "test_serializers.py": "unit",
    "test_managers.py": "unit",
    "test_money.py": "unit",
    "test_commission.py": "unit",
    "test_state_machines.py": "unit",
    "test_exception_handler.py": "unit",
}


def pytest_collection_modifyitems(items):
    """
    Tag each test unit or integration by its file name.

    Files not listed are integration: most tests here touch the database.
    A marker set explicitly on the test wins.
    """
    for item in items:
        if {m.name for m in item.iter_markers()} & {"unit", "integration"}:
            continue
        marker = MARKERS_BY_FILE.get(item.path.name, "integration")
        item.add_marker(getattr(pytest.mark, marker))


# =============================================================================
# Parties
# =============================================================================


@pytest.fixture
def buyer(db):
    from authentication.tests.factories import BuyerFactory

    return BuyerFactory()


@pytest.fixture
def seller(db):
    """Seller at the default 20% commission rate."""
    from authentication.tests.factories import SellerFactory

    return SellerFactory()


@pytest.fixture
def admin_user(db):
    from authentication.tests.factories import AdminFactory

    return AdminFactory()


# =============================================================================
# API Clients
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated DRF test client."""
    return APIClient()


def _client_for(user) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def buyer_client(buyer):
    return _client_for(buyer)


@pytest.fixture
def seller_client(seller):
    return _client_for(seller)


@pytest.fixture
def admin_client(admin_user):
    """
    API client authenticated as the marketplace admin.

    Overrides pytest-django's admin_client (a Django test Client) with a
    DRF APIClient so JSON bodies work the same across role clients.
    """
    return _client_for(admin_user)
