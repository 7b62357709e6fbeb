import pytest
import requests

from breeze.enums.order import OrderStatus
from breeze.errors.exceptions import BadRequest, Forbidden, PaymentGatewayError
from breeze.extensions import db
from breeze.models import Advertisement, Order, Payment
from breeze.services.order import OrderService
from breeze.services.payment import PaymentService
from breeze.third_parties import paystack
from breeze.third_parties.paystack import PaystackClient, to_minor_units

CALLBACK = "https://breeze.example/payment/callback"


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def json(self):
        return self._payload


@pytest.fixture
def gateway(monkeypatch):
    """Paystack stand-in recording calls; ``charges`` maps reference -> verify data."""

    class Gateway:
        initialized = []
        verified = []
        charges = {}

    def initialize(email, amount, reference, callback_url, metadata=None):
        Gateway.initialized.append(
            {"email": email, "amount": amount, "reference": reference, "metadata": metadata}
        )
        return {
            "status": True,
            "message": "Authorization URL created",
            "data": {
                "authorization_url": f"https://checkout.paystack.com/{reference}",
                "access_code": "ac_123",
                "reference": reference,
            },
        }, 200

    def verify(reference):
        Gateway.verified.append(reference)
        return {"status": True, "message": "Verification successful", "data": Gateway.charges[reference]}, 200

    monkeypatch.setattr(PaystackClient, "initialize", staticmethod(initialize))
    monkeypatch.setattr(PaystackClient, "verify", staticmethod(verify))
    return Gateway


def _charge(payment, status="success", **extra):
    data = {
        "status": status,
        "reference": payment.reference,
        "amount": to_minor_units(payment.amount),
        "channel": "card",
        "paid_at": "2026-10-19T12:30:00.000Z",
        "metadata": payment.meta,
    }
    data.update(extra)
    return data


def test_to_minor_units():
    assert to_minor_units(9550) == 955000
    assert to_minor_units(12.345) == 1235
    assert to_minor_units("100.10") == 10010


def test_client_reports_connection_errors(app, monkeypatch):
    def offline(*args, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(paystack.requests, "post", offline)
    body, status = PaystackClient.initialize("a@b.co", 100, "ref", CALLBACK)
    assert status == 500
    assert body["status"] is False


def test_client_sends_kobo_and_bearer_token(app, monkeypatch):
    seen = {}

    def fake_post(url, json=None, headers=None, timeout=None):
        seen.update(url=url, json=json, headers=headers)
        return FakeResponse({"status": True, "data": {}})

    monkeypatch.setattr(paystack.requests, "post", fake_post)
    PaystackClient.initialize("a@b.co", 9550, "order_1", CALLBACK, {"order_id": "o1"})
    assert seen["url"] == "https://api.paystack.co/transaction/initialize"
    assert seen["json"]["amount"] == 955000
    assert seen["headers"]["Authorization"] == "Bearer sk_test_breeze"


def test_initialize_order_payment(place_order, gateway):
    order = place_order()
    result = PaymentService.initialize_order_payment(order.id, "ada@example.com", CALLBACK)

    assert result["reference"].startswith("order_")
    assert result["authorization_url"].endswith(result["reference"])
    assert gateway.initialized[0]["amount"] == order.total_amount
    assert gateway.initialized[0]["metadata"]["order_id"] == order.id

    payment = PaymentService.find_payment(result["reference"])
    assert payment.status == "pending"
    assert payment.order_id == order.id
    assert db.session.get(Order, order.id).status == "awaiting_payment"


def test_initialize_rejects_confirmed_orders(place_order, gateway):
    order = place_order()
    OrderService.transition(order.id, OrderStatus.CONFIRMED)
    with pytest.raises(BadRequest):
        PaymentService.initialize_order_payment(order.id, "ada@example.com", CALLBACK)


def test_gateway_rejection_surfaces_its_message(place_order, monkeypatch):
    order = place_order()
    monkeypatch.setattr(
        PaystackClient,
        "initialize",
        staticmethod(lambda **kwargs: ({"status": False, "message": "Invalid key"}, 401)),
    )
    with pytest.raises(PaymentGatewayError) as exc:
        PaymentService.initialize_order_payment(order.id, "ada@example.com", CALLBACK)
    assert exc.value.message == "Invalid key"
    assert Payment.query.count() == 0
    assert db.session.get(Order, order.id).status == "pending"


def test_verify_confirms_order_once(place_order, gateway):
    order = place_order()
    reference = PaymentService.initialize_order_payment(order.id, "a@b.co", CALLBACK)["reference"]
    payment = PaymentService.find_payment(reference)
    gateway.charges[reference] = _charge(payment)

    order = PaymentService.verify_order_payment(order.id, reference)
    assert order.status == "confirmed"
    assert order.payment_status == "paid"
    assert order.payment_method == "card"

    payment = PaymentService.find_payment(reference)
    assert payment.status == "success"
    assert payment.transaction_date.hour == 12

    # second verify does not hit the gateway again
    order = PaymentService.verify_order_payment(order.id, reference)
    assert order.status == "confirmed"
    assert gateway.verified == [reference]


def test_verify_failed_charge(place_order, gateway):
    order = place_order()
    reference = PaymentService.initialize_order_payment(order.id, "a@b.co", CALLBACK)["reference"]
    payment = PaymentService.find_payment(reference)
    gateway.charges[reference] = _charge(payment, status="failed")

    with pytest.raises(BadRequest):
        PaymentService.verify_order_payment(order.id, reference)
    assert PaymentService.find_payment(reference).status == "failed"
    assert db.session.get(Order, order.id).status == "awaiting_payment"


def test_verify_amount_mismatch(place_order, gateway):
    order = place_order()
    reference = PaymentService.initialize_order_payment(order.id, "a@b.co", CALLBACK)["reference"]
    payment = PaymentService.find_payment(reference)
    gateway.charges[reference] = _charge(payment, amount=100)

    with pytest.raises(BadRequest):
        PaymentService.verify_order_payment(order.id, reference)
    assert PaymentService.find_payment(reference).status == "pending"


def test_verify_wrong_order(place_order, gateway):
    first = place_order()
    second = place_order()
    reference = PaymentService.initialize_order_payment(first.id, "a@b.co", CALLBACK)["reference"]
    with pytest.raises(BadRequest):
        PaymentService.verify_order_payment(second.id, reference)


def test_webhook_and_verify_apply_once(place_order, gateway):
    order = place_order()
    reference = PaymentService.initialize_order_payment(order.id, "a@b.co", CALLBACK)["reference"]
    payment = PaymentService.find_payment(reference)
    charge = _charge(payment)
    gateway.charges[reference] = charge

    result = PaymentService.handle_webhook({"event": "charge.success", "data": charge})
    assert result["handled"] is True
    assert result["order_id"] == order.id

    # redelivery and a late verify are both no-ops
    PaymentService.handle_webhook({"event": "charge.success", "data": charge})
    order = PaymentService.verify_order_payment(order.id, reference)
    assert order.status == "confirmed"
    assert gateway.verified == []


def test_webhook_ignores_other_events(app):
    result = PaymentService.handle_webhook({"event": "transfer.success", "data": {}})
    assert result["handled"] is False


def test_webhook_unknown_reference(app):
    result = PaymentService.handle_webhook(
        {"event": "charge.success", "data": {"reference": "nope", "metadata": {}}}
    )
    assert result["handled"] is False


def test_late_payment_on_progressed_order(place_order, gateway):
    order = place_order()
    reference = PaymentService.initialize_order_payment(order.id, "a@b.co", CALLBACK)["reference"]
    OrderService.transition(order.id, OrderStatus.CONFIRMED)
    OrderService.transition(order.id, OrderStatus.PREPARING)
    payment = PaymentService.find_payment(reference)
    gateway.charges[reference] = _charge(payment)

    order = PaymentService.verify_order_payment(order.id, reference)
    assert order.status == "preparing"
    assert order.payment_status == "paid"


class TestAdPayments:

    def test_initialize_and_verify_creates_one_campaign(self, vendor, gateway):
        result = PaymentService.initialize_ad_payment(vendor.id, "standard", None, CALLBACK)
        reference = result["reference"]
        assert reference.startswith("ad_")
        assert gateway.initialized[0]["amount"] == 3500
        assert gateway.initialized[0]["email"] == vendor.email

        payment = PaymentService.find_payment(reference)
        gateway.charges[reference] = _charge(payment)

        advertisement = PaymentService.verify_ad_payment(reference, vendor.id)
        assert advertisement.vendor_id == vendor.id
        assert advertisement.package_name == "Standard"
        assert advertisement.status == "active"
        assert (advertisement.end_date - advertisement.start_date).total_seconds() == 86400

        again = PaymentService.verify_ad_payment(reference, vendor.id)
        assert again.id == advertisement.id
        PaymentService.handle_webhook({"event": "charge.success", "data": gateway.charges[reference]})
        assert Advertisement.query.count() == 1

    def test_unknown_package(self, vendor, gateway):
        with pytest.raises(BadRequest):
            PaymentService.initialize_ad_payment(vendor.id, "GOLD", "v@b.co", CALLBACK)

    def test_one_active_campaign_per_vendor(self, vendor, gateway):
        reference = PaymentService.initialize_ad_payment(vendor.id, "BASIC", "v@b.co", CALLBACK)["reference"]
        gateway.charges[reference] = _charge(PaymentService.find_payment(reference))
        PaymentService.verify_ad_payment(reference, vendor.id)

        with pytest.raises(BadRequest):
            PaymentService.initialize_ad_payment(vendor.id, "PREMIUM", "v@b.co", CALLBACK)

    def test_verify_by_other_vendor(self, vendor, gateway):
        reference = PaymentService.initialize_ad_payment(vendor.id, "BASIC", "v@b.co", CALLBACK)["reference"]
        with pytest.raises(Forbidden):
            PaymentService.verify_ad_payment(reference, "someone-else")
