from datetime import datetime, timedelta

import pytest

from breeze.errors.exceptions import BadRequest, NotFound
from breeze.extensions import db
from breeze.models import MenuItem, Order
from breeze.services.loyalty import LoyaltyService
from breeze.services.order import OrderService


def test_create_order_prices_the_cart(customer, place_order):
    before = datetime.utcnow()
    order = place_order()

    assert order.status == "pending"
    assert order.payment_status == "pending"
    assert order.subtotal == 8000
    assert order.delivery_fee == 550
    assert order.service_fee == 400  # 4 items
    assert order.vat == 600
    assert order.original_amount == 9550
    assert order.discount_amount == 0
    assert order.total_amount == 9550
    assert order.order_code.startswith("BRZ-")
    assert order.contact_number == customer.phone_number

    eta = order.estimated_delivery_time - before
    assert timedelta(minutes=24) < eta <= timedelta(minutes=26)

    assert len(order.items) == 2
    assert {item.menu_item_name for item in order.items} == {"Jollof Rice", "Suya"}
    assert sum(item.total_price for item in order.items) == order.subtotal


def test_item_snapshot_survives_menu_changes(place_order, menu_items):
    order = place_order()
    jollof, _ = menu_items
    jollof.update(price=9999, name="Party Jollof")

    order = db.session.get(Order, order.id)
    snapshot = next(item for item in order.items if item.menu_item_id == jollof.id)
    assert snapshot.unit_price == 2500
    assert snapshot.menu_item_name == "Jollof Rice"


def test_create_order_with_redemption(customer, place_order):
    customer.update(loyalty_points=11)
    order = place_order(redeem_points=True)

    assert order.discount_amount == 4000
    assert order.total_amount == 5550
    assert order.loyalty_points_redeemed == 10
    assert LoyaltyService.get_balance(customer.id) == 1


def test_redemption_without_points_is_ignored(customer, place_order):
    customer.update(loyalty_points=3)
    order = place_order(redeem_points=True)
    assert order.discount_amount == 0
    assert order.loyalty_points_redeemed == 0
    assert LoyaltyService.get_balance(customer.id) == 3


def test_duplicate_lines_are_merged(customer, vendor, menu_items, delivery_address):
    jollof, _ = menu_items
    order = OrderService.create_order(
        customer_id=customer.id,
        vendor_id=vendor.id,
        items=[
            {"menu_item_id": jollof.id, "quantity": 1},
            {"menu_item_id": jollof.id, "quantity": 2},
        ],
        delivery_address=delivery_address,
        distance_km=1,
    )
    assert len(order.items) == 1
    assert order.items[0].quantity == 3
    assert order.subtotal == 7500


def test_rejects_items_from_another_vendor(customer, vendor, delivery_address):
    from breeze.models import Vendor

    other = Vendor(name="Other Place").save()
    foreign = MenuItem(vendor_id=other.id, name="Pizza", price=5000).save()

    with pytest.raises(BadRequest):
        OrderService.create_order(
            customer_id=customer.id,
            vendor_id=vendor.id,
            items=[{"menu_item_id": foreign.id, "quantity": 1}],
            delivery_address=delivery_address,
            distance_km=1,
        )
    assert Order.query.count() == 0


def test_rejects_unavailable_items(customer, vendor, menu_items, delivery_address):
    jollof, _ = menu_items
    jollof.update(is_available=False)
    with pytest.raises(BadRequest):
        OrderService.create_order(
            customer_id=customer.id,
            vendor_id=vendor.id,
            items=[{"menu_item_id": jollof.id, "quantity": 1}],
            delivery_address=delivery_address,
            distance_km=1,
        )


@pytest.mark.parametrize(
    "items",
    [[], [{"menu_item_id": "x", "quantity": 0}], [{"quantity": 1}]],
)
def test_rejects_bad_carts(customer, vendor, delivery_address, items):
    with pytest.raises(BadRequest):
        OrderService.create_order(
            customer_id=customer.id,
            vendor_id=vendor.id,
            items=items,
            delivery_address=delivery_address,
            distance_km=1,
        )


def test_rejects_incomplete_address(customer, vendor, menu_items):
    jollof, _ = menu_items
    with pytest.raises(BadRequest):
        OrderService.create_order(
            customer_id=customer.id,
            vendor_id=vendor.id,
            items=[{"menu_item_id": jollof.id, "quantity": 1}],
            delivery_address={"address": "1 Road", "city": "", "state": "Abuja"},
            distance_km=1,
        )


def test_unknown_customer_or_vendor(customer, vendor, menu_items, delivery_address):
    jollof, _ = menu_items
    items = [{"menu_item_id": jollof.id, "quantity": 1}]
    with pytest.raises(NotFound):
        OrderService.create_order("ghost", vendor.id, items, delivery_address, distance_km=1)
    with pytest.raises(NotFound):
        OrderService.create_order(customer.id, "ghost", items, delivery_address, distance_km=1)


def test_distance_is_resolved_when_missing(customer, vendor, menu_items, monkeypatch):
    jollof, _ = menu_items
    monkeypatch.setattr(
        OrderService, "resolve_route", staticmethod(lambda vendor, address: (2.0, 360))
    )
    order = OrderService.create_order(
        customer_id=customer.id,
        vendor_id=vendor.id,
        items=[{"menu_item_id": jollof.id, "quantity": 1}],
        delivery_address={"address": "2 Road", "city": "Garki", "state": "Abuja"},
    )
    assert order.distance_km == 2.0
    assert order.delivery_fee == 400


def test_failed_checkout_keeps_points(customer, place_order, monkeypatch):
    customer.update(loyalty_points=10)

    def boom(now=None):
        raise RuntimeError("code generator down")

    monkeypatch.setattr("breeze.services.order.generate_order_code", boom)
    with pytest.raises(RuntimeError):
        place_order(redeem_points=True)
    assert LoyaltyService.get_balance(customer.id) == 10
    assert Order.query.count() == 0


def test_quote_for_customer_uses_balance(customer):
    customer.update(loyalty_points=10)
    quote = OrderService.quote_for_customer(customer.id, 10000, 5, 2, True)
    assert quote["total"] == 6600
    # quoting never spends points
    assert LoyaltyService.get_balance(customer.id) == 10
