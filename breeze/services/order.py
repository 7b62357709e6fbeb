from datetime import datetime, timedelta

from sqlalchemy import select, update

from breeze.enums.order import OrderPaymentStatus, OrderStatus
from breeze.errors.exceptions import (
    BadRequest,
    Forbidden,
    InvalidTransition,
    NotFound,
)
from breeze.extensions import db
from breeze.lib.logger import logger
from breeze.lib.string import generate_order_code
from breeze.models import Customer, MenuItem, Order, OrderItem, Vendor
from breeze.services.geo import Address, Coordinates, GeoService, validate_address
from breeze.services.loyalty import LoyaltyService
from breeze.services.order_events import order_events
from breeze.services.pricing import PricingService

S = OrderStatus

TRANSITIONS = {
    S.PENDING: {S.AWAITING_PAYMENT, S.CONFIRMED, S.CANCELLED},
    S.AWAITING_PAYMENT: {S.CONFIRMED, S.CANCELLED},
    S.CONFIRMED: {S.PREPARING, S.CANCELLED},
    S.PREPARING: {S.READY, S.CANCELLED},
    S.READY: {S.PICKED_UP, S.OUT_FOR_DELIVERY, S.CANCELLED},
    S.PICKED_UP: {S.OUT_FOR_DELIVERY, S.DELIVERED, S.CANCELLED},
    S.OUT_FOR_DELIVERY: {S.DELIVERED, S.CANCELLED},
    S.DELIVERED: set(),
    S.CANCELLED: set(),
}

# statuses each role may move an order into
ROLE_TARGETS = {
    "vendor": {S.CONFIRMED, S.PREPARING, S.READY, S.CANCELLED},
    "rider": {S.PICKED_UP, S.OUT_FOR_DELIVERY, S.DELIVERED},
    "customer": {S.CANCELLED},
}


class OrderService:

    @staticmethod
    def find_order(order_id):
        order = db.session.get(Order, order_id)
        if not order:
            raise NotFound(message=f"Order {order_id} not found")
        return order

    @staticmethod
    def get_orders(customer_id=None, vendor_id=None, rider_id=None, status=None):
        query = Order.query
        if customer_id:
            query = query.filter(Order.customer_id == customer_id)
        if vendor_id:
            query = query.filter(Order.vendor_id == vendor_id)
        if rider_id:
            query = query.filter(Order.rider_id == rider_id)
        if status:
            parsed = OrderStatus.parse(status)
            if not parsed:
                raise BadRequest(message=f"Unknown order status '{status}'")
            query = query.filter(Order.status == parsed.value)
        return query.order_by(Order.created_at.desc()).all()

    @staticmethod
    def can_transition(current, target):
        current = OrderStatus.parse(current)
        target = OrderStatus.parse(target)
        if current is None or target is None:
            return False
        return target in TRANSITIONS[current]

    @staticmethod
    def next_statuses(current):
        current = OrderStatus.parse(current)
        if current is None:
            return []
        return sorted(status.value for status in TRANSITIONS[current])

    @staticmethod
    def authorize_transition(order, target, role, actor_id):
        """Raise Forbidden unless ``role``/``actor_id`` may move ``order`` to ``target``."""
        target = OrderStatus.parse(target)
        if role == "admin":
            return
        if target not in ROLE_TARGETS.get(role, set()):
            raise Forbidden(message=f"A {role} cannot set an order to '{target.value}'")

        if role == "vendor" and order.vendor_id != actor_id:
            raise Forbidden(message="Order belongs to another vendor")
        if role == "customer":
            if order.customer_id != actor_id:
                raise Forbidden(message="Order belongs to another customer")
            if not order.status_enum.is_pre_confirmation:
                raise Forbidden(message="Order can no longer be cancelled by the customer")
        if role == "rider" and order.rider_id and order.rider_id != actor_id:
            raise Forbidden(message="Order is assigned to another rider")

    @staticmethod
    def transition(
        order_id,
        new_status,
        rider_id=None,
        payment_status=None,
        payment_method=None,
    ):
        target = OrderStatus.parse(new_status)
        if target is None:
            raise BadRequest(message=f"Unknown order status '{new_status}'")

        order = OrderService.find_order(order_id)
        current = order.status_enum
        if current is None:
            raise InvalidTransition(order.status, target)

        if current == target and not current.is_terminal and payment_status is None:
            return order
        if not OrderService.can_transition(current, target):
            raise InvalidTransition(current, target)

        now = datetime.utcnow()
        values = {"status": target.value, "updated_at": now}
        if target == S.DELIVERED:
            values["actual_delivery_time"] = now
        if rider_id and target in (S.PICKED_UP, S.OUT_FOR_DELIVERY, S.DELIVERED):
            values["rider_id"] = rider_id
        if payment_status:
            values["payment_status"] = payment_status
        if payment_method:
            values["payment_method"] = payment_method

        # compare-and-set on the status we validated against
        result = db.session.execute(
            update(Order)
            .where(Order.id == order.id, Order.status == current.value)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.session.rollback()
            latest = OrderService.find_order(order_id)
            raise InvalidTransition(
                latest.status,
                target,
                message=f"Order changed to '{latest.status}' while updating",
            )
        db.session.commit()

        order = OrderService.find_order(order_id)
        logger.bind(order_id=order.id).info(
            f"Order {order.order_code}: {current.value} -> {target.value}"
        )

        if target == S.DELIVERED:
            LoyaltyService.award_for_order(order)
        elif (
            target == S.CANCELLED
            and current.is_pre_confirmation
            and order.loyalty_points_redeemed
        ):
            LoyaltyService.refund(
                order.customer_id, order.loyalty_points_redeemed, order_id=order.id
            )

        order_events.publish(order, previous_status=current.value)
        return order

    @staticmethod
    def mark_paid(order_id, payment_method=None):
        """Payment confirmed by the gateway: pending/awaiting_payment -> confirmed."""
        order = OrderService.find_order(order_id)
        if not order.status_enum.is_pre_confirmation:
            # already past checkout; only the payment flag can still change
            if order.status_enum == S.CANCELLED:
                logger.bind(order_id=order.id).warning(
                    f"Payment confirmed for cancelled order {order.order_code}"
                )
            if order.payment_status != OrderPaymentStatus.PAID.value:
                order.update(
                    payment_status=OrderPaymentStatus.PAID.value,
                    payment_method=payment_method or order.payment_method,
                )
            return order
        return OrderService.transition(
            order_id,
            S.CONFIRMED,
            payment_status=OrderPaymentStatus.PAID.value,
            payment_method=payment_method,
        )

    @staticmethod
    def resolve_route(vendor, address):
        """Road distance (km) and duration (s) from the vendor to ``address``."""
        if vendor.latitude is not None and vendor.longitude is not None:
            origin = Coordinates(vendor.latitude, vendor.longitude)
        else:
            origin = GeoService.geocode_address(
                Address(
                    address=vendor.address or "",
                    city=vendor.city or "",
                    state=vendor.state or "",
                )
            ).coordinates
        destination = GeoService.geocode_address(address).coordinates
        route = GeoService.calculate_route(origin, destination)
        return route.distance_km, route.duration_seconds

    @staticmethod
    def _load_cart(vendor_id, items):
        if not items:
            raise BadRequest(message="At least one item is required")

        quantities = {}
        for item in items:
            menu_item_id = item.get("menu_item_id")
            quantity = int(item.get("quantity") or 0)
            if not menu_item_id or quantity <= 0:
                raise BadRequest(message="Each item needs a menu_item_id and a positive quantity")
            quantities[menu_item_id] = quantities.get(menu_item_id, 0) + quantity

        menu_items = (
            db.session.execute(select(MenuItem).where(MenuItem.id.in_(quantities.keys())))
            .scalars()
            .all()
        )
        by_id = {menu_item.id: menu_item for menu_item in menu_items}

        lines = []
        for menu_item_id, quantity in quantities.items():
            menu_item = by_id.get(menu_item_id)
            if not menu_item or menu_item.vendor_id != vendor_id:
                raise BadRequest(message=f"Menu item {menu_item_id} is not sold by this vendor")
            if not menu_item.is_available:
                raise BadRequest(message=f"{menu_item.name} is currently unavailable")
            lines.append((menu_item, quantity))
        return lines

    @staticmethod
    def quote_for_customer(customer_id, subtotal, distance_km, item_count, redeem_points):
        balance = LoyaltyService.get_balance(customer_id)
        return PricingService.quote(
            subtotal=subtotal,
            distance_km=distance_km,
            item_count=item_count,
            redeem_points=redeem_points,
            loyalty_balance=balance,
        )

    @staticmethod
    def create_order(
        customer_id,
        vendor_id,
        items,
        delivery_address,
        payment_method="card",
        redeem_points=False,
        distance_km=None,
        contact_number=None,
        special_instructions=None,
    ):
        """Checkout: price the cart, spend points if asked, persist a pending order."""
        customer = db.session.get(Customer, customer_id)
        if not customer:
            raise NotFound(message=f"Customer {customer_id} not found")
        vendor = db.session.get(Vendor, vendor_id)
        if not vendor:
            raise NotFound(message=f"Vendor {vendor_id} not found")

        address = (
            delivery_address
            if isinstance(delivery_address, Address)
            else Address.from_dict(delivery_address)
        )
        if not validate_address(address):
            raise BadRequest(message="Delivery address, city and state are required")

        lines = OrderService._load_cart(vendor_id, items)
        subtotal = sum(menu_item.price * quantity for menu_item, quantity in lines)
        item_count = sum(quantity for _, quantity in lines)

        route_duration = None
        if distance_km is None:
            distance_km, route_duration = OrderService.resolve_route(vendor, address)

        quote = PricingService.quote(
            subtotal=subtotal,
            distance_km=distance_km,
            item_count=item_count,
            redeem_points=redeem_points,
            loyalty_balance=customer.loyalty_points,
            route_duration_seconds=route_duration,
        )

        now = datetime.utcnow()
        try:
            if quote["points_redeemed"]:
                LoyaltyService.redeem(customer_id, quote["points_redeemed"], commit=False)

            order = Order(
                order_code=generate_order_code(now),
                customer_id=customer_id,
                vendor_id=vendor_id,
                status=S.PENDING.value,
                payment_status=OrderPaymentStatus.PENDING.value,
                payment_method=payment_method,
                subtotal=quote["subtotal"],
                delivery_fee=quote["delivery_fee"],
                service_fee=quote["service_fee"],
                vat=quote["vat"],
                original_amount=quote["original_amount"],
                discount_amount=quote["discount"],
                total_amount=quote["total"],
                loyalty_points_redeemed=quote["points_redeemed"],
                delivery_address=address.address,
                delivery_city=address.city,
                delivery_state=address.state,
                delivery_zip=address.zip_code,
                distance_km=distance_km or 0,
                contact_number=contact_number or customer.phone_number,
                special_instructions=special_instructions,
                estimated_delivery_time=now
                + timedelta(minutes=quote["estimated_delivery_minutes"]),
                created_at=now,
                updated_at=now,
            )
            db.session.add(order)
            db.session.flush()

            for menu_item, quantity in lines:
                db.session.add(
                    OrderItem(
                        order_id=order.id,
                        menu_item_id=menu_item.id,
                        menu_item_name=menu_item.name,
                        unit_price=menu_item.price,
                        quantity=quantity,
                        total_price=menu_item.price * quantity,
                    )
                )
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.bind(order_id=order.id).info(
            f"Order {order.order_code} created for customer {customer_id}: "
            f"total {order.total_amount}, redeemed {order.loyalty_points_redeemed} pts"
        )
        order_events.publish(order, event="order.created")
        return order

    @staticmethod
    def advance_expired_orders(now=None):
        """Move every preparing order whose estimated time has passed to ready.

        Returns the promoted order ids. Running it again is a no-op because
        promoted orders no longer match the preparing filter."""
        now = now or datetime.utcnow()
        expired_ids = (
            db.session.execute(
                select(Order.id).where(
                    Order.status == S.PREPARING.value,
                    Order.estimated_delivery_time.isnot(None),
                    Order.estimated_delivery_time <= now,
                )
            )
            .scalars()
            .all()
        )
        if not expired_ids:
            return []

        db.session.execute(
            update(Order)
            .where(Order.id.in_(expired_ids), Order.status == S.PREPARING.value)
            .values(status=S.READY.value, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        db.session.commit()

        promoted = Order.query.filter(
            Order.id.in_(expired_ids),
            Order.status == S.READY.value,
        ).all()
        for order in promoted:
            order_events.publish(order, previous_status=S.PREPARING.value)
        return [order.id for order in promoted]
