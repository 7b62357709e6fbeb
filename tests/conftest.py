import pytest
from flask_jwt_extended import create_access_token

from breeze import create_app
from breeze.config import TestingConfig
from breeze.extensions import db
from breeze.models import Customer, MenuItem, Vendor
from breeze.services.order_events import order_events


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()
    order_events.clear()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def customer(app):
    return Customer(
        name="Ada Obi",
        email="ada@example.com",
        phone_number="08030000000",
        address="12 Aminu Kano Crescent",
        city="Wuse",
        state="Abuja",
        loyalty_points=0,
    ).save()


@pytest.fixture
def vendor(app):
    return Vendor(
        name="Mama Put Kitchen",
        email="kitchen@example.com",
        address="3 Ademola Adetokunbo Crescent",
        city="Wuse",
        state="Abuja",
        latitude=9.0643,
        longitude=7.4892,
    ).save()


@pytest.fixture
def menu_items(vendor):
    jollof = MenuItem(vendor_id=vendor.id, name="Jollof Rice", price=2500).save()
    suya = MenuItem(vendor_id=vendor.id, name="Suya", price=1500).save()
    return jollof, suya


@pytest.fixture
def token_for(app):
    def make(identity, role):
        return create_access_token(identity=identity, additional_claims={"role": role})

    return make


@pytest.fixture
def auth_header(token_for):
    def make(identity, role):
        return {"Authorization": f"Bearer {token_for(identity, role)}"}

    return make


@pytest.fixture
def delivery_address():
    return {
        "address": "5 Mike Akhigbe Way",
        "city": "Garki",
        "state": "Abuja",
    }


@pytest.fixture
def place_order(customer, vendor, menu_items, delivery_address):
    """Create an order 5 km away: 2 x Jollof + 2 x Suya = 8000 subtotal."""
    from breeze.services.order import OrderService

    def make(redeem_points=False, distance_km=5, customer_id=None):
        jollof, suya = menu_items
        return OrderService.create_order(
            customer_id=customer_id or customer.id,
            vendor_id=vendor.id,
            items=[
                {"menu_item_id": jollof.id, "quantity": 2},
                {"menu_item_id": suya.id, "quantity": 2},
            ],
            delivery_address=delivery_address,
            redeem_points=redeem_points,
            distance_km=distance_km,
        )

    return make
