import pytest
from sqlalchemy.exc import OperationalError

from breeze.errors.exceptions import BadRequest, InsufficientPoints, NotFound
from breeze.extensions import db
from breeze.services import loyalty
from breeze.services.loyalty import LoyaltyService


def test_award_and_balance(customer):
    assert LoyaltyService.get_balance(customer.id) == 0
    assert LoyaltyService.award(customer.id) is True
    assert LoyaltyService.award(customer.id, points=2) is True
    assert LoyaltyService.get_balance(customer.id) == 3


def test_award_rejects_non_positive_points(customer):
    with pytest.raises(BadRequest):
        LoyaltyService.award(customer.id, points=0)


def test_award_unknown_customer_returns_false(app):
    assert LoyaltyService.award("missing-customer") is False


def test_balance_unknown_customer(app):
    with pytest.raises(NotFound):
        LoyaltyService.get_balance("missing-customer")


def test_redeem_exact_balance_then_fail(customer):
    customer.update(loyalty_points=10)
    assert LoyaltyService.redeem(customer.id, 10) is True
    assert LoyaltyService.get_balance(customer.id) == 0

    with pytest.raises(InsufficientPoints) as exc:
        LoyaltyService.redeem(customer.id, 10)
    assert exc.value.balance == 0
    assert exc.value.requested == 10
    assert exc.value.status == 409


def test_redeem_never_goes_negative(customer):
    customer.update(loyalty_points=15)
    LoyaltyService.redeem(customer.id, 10)
    with pytest.raises(InsufficientPoints):
        LoyaltyService.redeem(customer.id, 10)
    assert LoyaltyService.get_balance(customer.id) == 5


def test_refund(customer):
    assert LoyaltyService.refund(customer.id, 0) is False
    assert LoyaltyService.refund(customer.id, 10) is True
    assert LoyaltyService.get_balance(customer.id) == 10


def test_award_failure_alerts_instead_of_raising(customer, monkeypatch):
    alerts = []
    monkeypatch.setattr(
        loyalty,
        "log_critical_infrastructure",
        lambda message, component, send_alert: alerts.append((component, send_alert)),
    )

    def broken_execute(*args, **kwargs):
        raise OperationalError("UPDATE customers", {}, Exception("database is locked"))

    monkeypatch.setattr(db.session, "execute", broken_execute)
    assert LoyaltyService.award(customer.id) is False
    assert alerts == [("LOYALTY", True)]


def test_award_for_order_credits_once(customer, place_order):
    order = place_order()
    assert LoyaltyService.award_for_order(order) is True
    assert LoyaltyService.award_for_order(order) is False
    assert LoyaltyService.get_balance(customer.id) == 1


def test_redeeming_order_earns_nothing(customer, place_order):
    customer.update(loyalty_points=10)
    order = place_order(redeem_points=True)
    assert order.loyalty_points_redeemed == 10
    assert LoyaltyService.award_for_order(order) is False
    assert LoyaltyService.get_balance(customer.id) == 0


def test_history(customer, place_order):
    first = place_order()
    customer.update(loyalty_points=10)
    second = place_order(redeem_points=True)

    history = LoyaltyService.get_history(customer.id)
    assert {entry["order_id"] for entry in history} == {first.id, second.id}
    by_order = {entry["order_id"]: entry for entry in history}
    assert by_order[first.id]["type"] == "earned"
    assert by_order[first.id]["points"] == 1
    assert by_order[second.id]["type"] == "redeemed"
    assert by_order[second.id]["points"] == -10
    assert by_order[second.id]["id"] == f"redeemed-{second.id}"
