"""
Tests for ReturnRequest constraints.
"""

from decimal import Decimal

import pytest
from django.db import IntegrityError, transaction

from returns.state_machines import ReturnStatus
from returns.tests.factories import ReturnRequestFactory


class TestReturnRequestModel:
    def test_refunded_requires_approved_amount(self, db):
        """
        Given a return request marked refunded
        When it has no approved refund amount
        Then the database rejects it
        """
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                ReturnRequestFactory(status=ReturnStatus.REFUNDED, approved_refund_amount=None)

    def test_refunded_with_approved_amount(self, db):
        request = ReturnRequestFactory(
            status=ReturnStatus.REFUNDED, approved_refund_amount=Decimal("40.00")
        )

        assert request.approved_refund_amount == Decimal("40.00")

    def test_requested_amount_must_be_positive(self, db):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                ReturnRequestFactory(requested_refund_amount=Decimal("0.00"))

    def test_one_active_request_per_order(self, db):
        first = ReturnRequestFactory()

        with pytest.raises(IntegrityError):
            with transaction.atomic():
                ReturnRequestFactory(order=first.order)
