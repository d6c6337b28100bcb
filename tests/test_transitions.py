import pytest

from exceptions import ForbiddenError, InvalidTransitionError, ValidationError
from models.user import Actor
from services.transitions import (
    assert_role,
    assert_transition,
    check_pagination,
    is_terminal,
    require_payment_proof,
    require_positive_amount,
    require_rejection_reason,
)


def test_matching_role_and_status_passes():
    assert_transition("PENDING", "PENDING", "FINANCE", "FINANCE", action="review", entity="reimbursement")

def test_wrong_role_is_forbidden():
    with pytest.raises(ForbiddenError):
        assert_transition("PENDING", "PENDING", "STAFF", "FINANCE", action="review", entity="reimbursement")

def test_wrong_status_is_invalid_transition():
    with pytest.raises(InvalidTransitionError) as exc_info:
        assert_transition("APPROVED", "REVIEWED", "ADMIN", "ADMIN", action="approve", entity="reimbursement")
    err = exc_info.value
    assert err.current_status == "APPROVED"
    assert err.required_status == "REVIEWED"
    assert str(err) == "Cannot approve reimbursement with status APPROVED. Must be REVIEWED."

def test_role_is_checked_before_status():
    # Both wrong: the caller learns about permissions, not the entity's state
    with pytest.raises(ForbiddenError):
        assert_transition("PAID", "PENDING", "STAFF", "FINANCE")

def test_assert_role_accepts_any_allowed_role():
    assert_role(Actor(id="a", role="ADMIN"), "ADMIN", "FINANCE")
    with pytest.raises(ForbiddenError) as exc_info:
        assert_role(Actor(id="s", role="STAFF"), "ADMIN", "FINANCE", action="list expenses")
    assert exc_info.value.details["role"] == "STAFF"

@pytest.mark.parametrize("status", ["PAID", "REJECTED"])
def test_paid_and_rejected_are_terminal(status):
    assert is_terminal(status)

@pytest.mark.parametrize("status", ["PENDING", "REVIEWED", "APPROVED"])
def test_open_statuses_are_not_terminal(status):
    assert not is_terminal(status)

@pytest.mark.parametrize("reason", [None, "", "   ", "too short"])
def test_rejection_reason_needs_ten_characters(reason):
    with pytest.raises(ValidationError) as exc_info:
        require_rejection_reason(reason)
    assert exc_info.value.field == "reason"

def test_rejection_reason_is_trimmed():
    assert require_rejection_reason("  Duplicate claim  ") == "Duplicate claim"

def test_rejection_reason_with_custom_minimum():
    assert require_rejection_reason("No", min_length=1) == "No"
    with pytest.raises(ValidationError, match="Rejection reason is required"):
        require_rejection_reason(" ", min_length=1)

def test_payment_proof_required():
    with pytest.raises(ValidationError, match="Payment proof required"):
        require_payment_proof("")
    assert require_payment_proof("http://files/p.png") == "http://files/p.png"

@pytest.mark.parametrize("amount", [0, -1, -0.01, None, float("nan"), float("inf"), float("-inf")])
def test_non_positive_amounts_rejected(amount):
    with pytest.raises(ValidationError, match="Amount must be positive"):
        require_positive_amount(amount)

def test_pagination_bounds():
    check_pagination(1, 100)
    with pytest.raises(ValidationError):
        check_pagination(0, 10)
    with pytest.raises(ValidationError):
        check_pagination(1, 0)
    with pytest.raises(ValidationError):
        check_pagination(1, 101)
