from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

import const
from breeze.errors.exceptions import BadRequest, InsufficientPoints, NotFound
from breeze.extensions import db
from breeze.lib.logger import log_critical_infrastructure, log_loyalty_message
from breeze.models import Customer, Order


class LoyaltyService:
    """Customer point balance.

    Balances change only through single conditional UPDATE statements, so two
    concurrent redemptions can never both spend the same points."""

    @staticmethod
    def get_balance(customer_id):
        customer = db.session.get(Customer, customer_id)
        if not customer:
            raise NotFound(message=f"Customer {customer_id} not found")
        return customer.loyalty_points or 0

    @staticmethod
    def _credit_statement(customer_id, points):
        return (
            update(Customer)
            .where(Customer.id == customer_id)
            .values(loyalty_points=Customer.loyalty_points + points)
        )

    @staticmethod
    def _write_with_retries(write, description, order_id=None):
        """Run ``write`` (returns True/False) and commit, retrying on DB errors.

        Exhausted retries are logged as critical and alerted, never raised."""
        retries = max(int(current_app.config.get("LOYALTY_AWARD_RETRIES", 3)), 1)
        last_error = None
        for attempt in range(1, retries + 1):
            try:
                if not write():
                    db.session.rollback()
                    return False
                db.session.commit()
                return True
            except SQLAlchemyError as e:
                db.session.rollback()
                last_error = e
                log_loyalty_message(
                    f"{description} failed (attempt {attempt}/{retries}): {e}",
                    order_id=order_id,
                    level="WARNING",
                )

        log_critical_infrastructure(
            f"{description} gave up after {retries} attempt(s): {last_error}",
            component="LOYALTY",
            send_alert=True,
        )
        return False

    @staticmethod
    def award(customer_id, points=const.POINTS_PER_ORDER, order_id=None):
        """Best-effort credit. Returns False instead of raising."""
        if points <= 0:
            raise BadRequest(message="points must be positive")

        def write():
            result = db.session.execute(
                LoyaltyService._credit_statement(customer_id, points)
            )
            if result.rowcount == 0:
                log_loyalty_message(
                    f"Customer {customer_id} not found, {points} point(s) not awarded",
                    order_id=order_id,
                    level="ERROR",
                )
                return False
            return True

        awarded = LoyaltyService._write_with_retries(
            write, f"Award {points} point(s) to {customer_id}", order_id
        )
        if awarded:
            log_loyalty_message(
                f"Awarded {points} point(s) to customer {customer_id}", order_id=order_id
            )
        return awarded

    @staticmethod
    def award_for_order(order):
        """Credit the order's customer once. Orders that spent points earn none."""
        if order.loyalty_points_redeemed:
            return False

        def write():
            claimed = db.session.execute(
                update(Order)
                .where(Order.id == order.id, Order.loyalty_points_awarded == 0)
                .values(loyalty_points_awarded=1)
            )
            if claimed.rowcount == 0:
                log_loyalty_message(
                    "Order already credited", order_id=order.id, level="DEBUG"
                )
                return False
            credited = db.session.execute(
                LoyaltyService._credit_statement(
                    order.customer_id, const.POINTS_PER_ORDER
                )
            )
            if credited.rowcount == 0:
                log_loyalty_message(
                    f"Customer {order.customer_id} not found, order not credited",
                    order_id=order.id,
                    level="ERROR",
                )
                return False
            return True

        awarded = LoyaltyService._write_with_retries(
            write, f"Award order points to {order.customer_id}", order.id
        )
        if awarded:
            log_loyalty_message(
                f"Awarded {const.POINTS_PER_ORDER} point(s) to customer {order.customer_id}",
                order_id=order.id,
            )
        return awarded

    @staticmethod
    def redeem(customer_id, points=const.REDEMPTION_THRESHOLD, commit=True):
        """Spend points. Raises InsufficientPoints when the balance is short.

        With ``commit=False`` the decrement joins the caller's transaction."""
        if points <= 0:
            raise BadRequest(message="points must be positive")

        result = db.session.execute(
            update(Customer)
            .where(Customer.id == customer_id, Customer.loyalty_points >= points)
            .values(loyalty_points=Customer.loyalty_points - points)
        )
        if result.rowcount == 0:
            balance = LoyaltyService.get_balance(customer_id)
            raise InsufficientPoints(balance=balance, requested=points)

        if commit:
            db.session.commit()
        log_loyalty_message(f"Redeemed {points} point(s) from customer {customer_id}")
        return True

    @staticmethod
    def refund(customer_id, points, order_id=None):
        """Give back points spent on an order that never went through."""
        if not points:
            return False

        def write():
            result = db.session.execute(
                LoyaltyService._credit_statement(customer_id, points)
            )
            return result.rowcount > 0

        refunded = LoyaltyService._write_with_retries(
            write, f"Refund {points} point(s) to {customer_id}", order_id
        )
        if refunded:
            log_loyalty_message(
                f"Refunded {points} point(s) to customer {customer_id}", order_id=order_id
            )
        return refunded

    @staticmethod
    def get_history(customer_id):
        """One entry per order: 'redeemed' if it spent points, else 'earned'."""
        orders = (
            Order.query.filter(Order.customer_id == customer_id)
            .order_by(Order.created_at.desc())
            .all()
        )
        history = []
        for order in orders:
            redeemed = order.loyalty_points_redeemed or 0
            entry_type = "redeemed" if redeemed > 0 else "earned"
            history.append(
                {
                    "id": f"{entry_type}-{order.id}",
                    "order_id": order.id,
                    "order_code": order.order_code,
                    "type": entry_type,
                    "points": -redeemed if redeemed else const.POINTS_PER_ORDER,
                    "created_at": order._to_json().get("created_at"),
                }
            )
        return history
