from breeze.models.customer import Customer
from breeze.models.vendor import Vendor
from breeze.models.menu_item import MenuItem
from breeze.models.order import Order
from breeze.models.order_item import OrderItem
from breeze.models.payment import Payment
from breeze.models.advertisement import Advertisement

__all__ = [
    "Customer",
    "Vendor",
    "MenuItem",
    "Order",
    "OrderItem",
    "Payment",
    "Advertisement",
]
