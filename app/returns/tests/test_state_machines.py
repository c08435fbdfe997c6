"""
Tests for the return request transition table.
"""

import pytest

from returns.exceptions import InvalidReturnTransitionError
from returns.state_machines import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    ReturnStatus,
    check_return_transition,
)

pytestmark = pytest.mark.unit


class TestCheckReturnTransition:
    @pytest.mark.parametrize(
        "current,target",
        [
            (ReturnStatus.PENDING, ReturnStatus.SELLER_APPROVED),
            (ReturnStatus.PENDING, ReturnStatus.SELLER_REJECTED),
            (ReturnStatus.PENDING, ReturnStatus.ADMIN_APPROVED),
            (ReturnStatus.SELLER_REJECTED, ReturnStatus.ADMIN_APPROVED),
            (ReturnStatus.SELLER_APPROVED, ReturnStatus.ADMIN_REJECTED),
            (ReturnStatus.ADMIN_APPROVED, ReturnStatus.REFUNDED),
            (ReturnStatus.ADMIN_REJECTED, ReturnStatus.COMPLETED),
        ],
    )
    def test_allowed(self, current, target):
        check_return_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (ReturnStatus.SELLER_APPROVED, ReturnStatus.SELLER_REJECTED),
            (ReturnStatus.PENDING, ReturnStatus.REFUNDED),
            (ReturnStatus.ADMIN_REJECTED, ReturnStatus.REFUNDED),
            (ReturnStatus.REFUNDED, ReturnStatus.PENDING),
            (ReturnStatus.COMPLETED, ReturnStatus.ADMIN_APPROVED),
        ],
    )
    def test_rejected(self, current, target):
        with pytest.raises(InvalidReturnTransitionError) as exc_info:
            check_return_transition(current, target)

        assert exc_info.value.error_code == "INVALID_RETURN_TRANSITION"
        assert exc_info.value.http_status == 400

    def test_terminal_statuses_have_no_exits(self):
        for terminal in TERMINAL_STATUSES:
            for target in ReturnStatus.values:
                with pytest.raises(InvalidReturnTransitionError):
                    check_return_transition(terminal, target)

    def test_active_and_terminal_partition_all_statuses(self):
        assert ACTIVE_STATUSES | TERMINAL_STATUSES == set(ReturnStatus.values)
        assert not ACTIVE_STATUSES & TERMINAL_STATUSES
