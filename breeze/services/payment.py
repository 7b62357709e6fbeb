import json
from datetime import datetime

import pytz
from dateutil import parser as date_parser
from sqlalchemy import update

from breeze.enums.order import OrderPaymentStatus, OrderStatus
from breeze.enums.payment import PaymentStatus, PaymentType
from breeze.errors.exceptions import (
    BadRequest,
    Forbidden,
    NotFound,
    PaymentGatewayError,
)
from breeze.extensions import db
from breeze.lib.logger import log_payment_message
from breeze.lib.string import generate_payment_reference
from breeze.models import Advertisement, Payment, Vendor
from breeze.services.advertisement import AdvertisementService
from breeze.services.order import OrderService
from breeze.third_parties.paystack import PaystackClient, to_minor_units


def _parse_paid_at(value):
    """Gateway timestamp -> naive UTC datetime."""
    if not value:
        return datetime.utcnow()
    try:
        paid_at = date_parser.isoparse(value)
    except (TypeError, ValueError):
        return datetime.utcnow()
    if paid_at.tzinfo is not None:
        paid_at = paid_at.astimezone(pytz.utc).replace(tzinfo=None)
    return paid_at


def _metadata(data):
    metadata = data.get("metadata") or {}
    if isinstance(metadata, str):
        try:
            metadata = json.loads(metadata)
        except ValueError:
            metadata = {}
    return metadata if isinstance(metadata, dict) else {}


class PaymentService:
    """Paystack checkout for orders and advertisement packages.

    Confirmation is idempotent: the pending -> success flip of a Payment is
    a conditional UPDATE, so only one of several concurrent verify calls or
    webhook deliveries applies the side effects."""

    @staticmethod
    def find_payment(reference):
        payment = Payment.query.filter(Payment.reference == reference).first()
        if not payment:
            raise NotFound(message=f"Payment {reference} not found")
        return payment

    @staticmethod
    def _initialize(email, amount, reference, callback_url, metadata):
        if not email:
            raise BadRequest(message="email is required")
        body, status_code = PaystackClient.initialize(
            email=email,
            amount=amount,
            reference=reference,
            callback_url=callback_url,
            metadata=metadata,
        )
        if status_code != 200 or not body.get("status"):
            log_payment_message(
                f"Initialize {reference} rejected ({status_code}): {body.get('message')}",
                order_id=metadata.get("order_id"),
                level="ERROR",
            )
            raise PaymentGatewayError(
                message=body.get("message") or "Payment initialization failed"
            )
        return body.get("data") or {}

    @staticmethod
    def _verify(reference):
        body, status_code = PaystackClient.verify(reference)
        if status_code != 200 or not body.get("status"):
            log_payment_message(
                f"Verify {reference} rejected ({status_code}): {body.get('message')}",
                level="ERROR",
            )
            raise PaymentGatewayError(
                message=body.get("message") or "Payment verification failed"
            )
        return body.get("data") or {}

    @staticmethod
    def _check_charge(payment, data):
        """Raise unless ``data`` is a successful charge for the full amount."""
        gateway_status = data.get("status")
        if gateway_status != "success":
            if gateway_status in ("failed", "abandoned", "reversed"):
                db.session.execute(
                    update(Payment)
                    .where(
                        Payment.id == payment.id,
                        Payment.status == PaymentStatus.PENDING.value,
                    )
                    .values(status=PaymentStatus.FAILED.value)
                    .execution_options(synchronize_session=False)
                )
                db.session.commit()
            raise BadRequest(
                message=data.get("gateway_response") or "Payment was not successful",
                data={"reference": payment.reference, "gateway_status": gateway_status},
            )

        paid = data.get("amount")
        if paid is not None and int(paid) != to_minor_units(payment.amount):
            log_payment_message(
                f"Amount mismatch on {payment.reference}: paid {paid}, "
                f"expected {to_minor_units(payment.amount)}",
                order_id=payment.order_id,
                level="ERROR",
            )
            raise BadRequest(
                message="Paid amount does not match the payment",
                data={"reference": payment.reference},
            )

    @staticmethod
    def _claim(payment, data):
        """pending -> success. True for the single caller that flipped it.

        Leaves the transaction open."""
        result = db.session.execute(
            update(Payment)
            .where(
                Payment.id == payment.id,
                Payment.status.in_(
                    [PaymentStatus.PENDING.value, PaymentStatus.FAILED.value]
                ),
            )
            .values(
                status=PaymentStatus.SUCCESS.value,
                payment_method=data.get("channel") or payment.payment_method,
                transaction_date=_parse_paid_at(data.get("paid_at")),
                updated_at=datetime.utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    # ---------------------------------------------------------------- orders

    @staticmethod
    def initialize_order_payment(order_id, email, callback_base):
        order = OrderService.find_order(order_id)
        if not order.status_enum.is_pre_confirmation:
            raise BadRequest(message=f"Order is already {order.status}")
        if order.payment_status == OrderPaymentStatus.PAID.value:
            raise BadRequest(message="Order is already paid")

        reference = generate_payment_reference("order")
        metadata = {
            "order_id": order.id,
            "customer_id": order.customer_id,
            "type": PaymentType.ORDER.value,
        }
        data = PaymentService._initialize(
            email=email,
            amount=order.total_amount,
            reference=reference,
            callback_url=f"{callback_base}?order_id={order.id}&reference={reference}",
            metadata=metadata,
        )

        payment = Payment(
            reference=reference,
            amount=order.total_amount,
            status=PaymentStatus.PENDING.value,
            payment_type=PaymentType.ORDER.value,
            payment_method=order.payment_method,
            order_id=order.id,
            customer_id=order.customer_id,
            vendor_id=order.vendor_id,
            meta=metadata,
        ).save()

        if order.status_enum == OrderStatus.PENDING:
            OrderService.transition(order.id, OrderStatus.AWAITING_PAYMENT)

        log_payment_message(f"Initialized payment {reference}", order_id=order.id)
        return {
            "authorization_url": data.get("authorization_url"),
            "access_code": data.get("access_code"),
            "reference": reference,
            "payment": payment.to_dict(),
        }

    @staticmethod
    def _confirm_order(payment, data):
        PaymentService._check_charge(payment, data)
        claimed = PaymentService._claim(payment, data)
        db.session.commit()
        if claimed:
            log_payment_message(
                f"Payment {payment.reference} confirmed", order_id=payment.order_id
            )
        else:
            log_payment_message(
                f"Payment {payment.reference} already confirmed",
                order_id=payment.order_id,
                level="DEBUG",
            )
        # safe to repeat: a confirmed order only gets its payment flag checked
        return OrderService.mark_paid(
            payment.order_id, payment_method=data.get("channel")
        )

    @staticmethod
    def verify_order_payment(order_id, reference):
        payment = PaymentService.find_payment(reference)
        if payment.order_id != order_id:
            raise BadRequest(message="Payment does not belong to this order")

        if payment.is_processed:
            order = OrderService.find_order(order_id)
            if order.payment_status == OrderPaymentStatus.PAID.value:
                return order
            # claimed earlier but the order update never landed
            return OrderService.mark_paid(order_id, payment_method=payment.payment_method)

        data = PaymentService._verify(reference)
        return PaymentService._confirm_order(payment, data)

    # ------------------------------------------------------- advertisements

    @staticmethod
    def initialize_ad_payment(vendor_id, package_name, email, callback_base):
        vendor = db.session.get(Vendor, vendor_id)
        if not vendor:
            raise NotFound(message=f"Vendor {vendor_id} not found")
        package = AdvertisementService.get_package(package_name)
        if AdvertisementService.has_active_campaign(vendor_id):
            raise BadRequest(message="Vendor already has an active campaign")

        package_key = str(package_name).upper()
        reference = generate_payment_reference("ad")
        metadata = {
            "vendor_id": vendor_id,
            "package_name": package_key,
            "type": PaymentType.AD.value,
        }
        data = PaymentService._initialize(
            email=email or vendor.email,
            amount=package["price"],
            reference=reference,
            callback_url=f"{callback_base}?reference={reference}",
            metadata=metadata,
        )

        payment = Payment(
            reference=reference,
            amount=package["price"],
            status=PaymentStatus.PENDING.value,
            payment_type=PaymentType.AD.value,
            vendor_id=vendor_id,
            meta=metadata,
        ).save()

        log_payment_message(f"Initialized ad payment {reference} for vendor {vendor_id}")
        return {
            "authorization_url": data.get("authorization_url"),
            "access_code": data.get("access_code"),
            "reference": reference,
            "payment": payment.to_dict(),
        }

    @staticmethod
    def _confirm_ad(payment, data):
        PaymentService._check_charge(payment, data)
        try:
            if PaymentService._claim(payment, data):
                advertisement = AdvertisementService.create_from_payment(payment)
                db.session.commit()
                log_payment_message(
                    f"Ad payment {payment.reference} confirmed, "
                    f"advertisement {advertisement.id} started"
                )
                return advertisement
            db.session.rollback()
        except Exception:
            db.session.rollback()
            raise

        db.session.refresh(payment)
        if not payment.advertisement_id:
            raise BadRequest(message="Payment is being processed, retry shortly")
        return db.session.get(Advertisement, payment.advertisement_id)

    @staticmethod
    def verify_ad_payment(reference, vendor_id):
        payment = PaymentService.find_payment(reference)
        if payment.payment_type != PaymentType.AD.value:
            raise BadRequest(message="Not an advertisement payment")
        if payment.vendor_id != vendor_id:
            raise Forbidden(message="Payment belongs to another vendor")

        if payment.is_processed and payment.advertisement_id:
            return db.session.get(Advertisement, payment.advertisement_id)

        data = PaymentService._verify(reference)
        return PaymentService._confirm_ad(payment, data)

    # --------------------------------------------------------------- webhook

    @staticmethod
    def handle_webhook(event):
        """Apply a gateway event. Unknown events are acknowledged and ignored."""
        event_type = (event or {}).get("event")
        data = (event or {}).get("data") or {}
        reference = data.get("reference")

        if event_type != "charge.success":
            log_payment_message(f"Ignoring webhook event {event_type}", level="DEBUG")
            return {"handled": False, "event": event_type, "reference": reference}

        payment = Payment.query.filter(Payment.reference == reference).first()
        if not payment:
            log_payment_message(
                f"Webhook for unknown reference {reference}", level="WARNING"
            )
            return {"handled": False, "event": event_type, "reference": reference}

        metadata = _metadata(data)
        if metadata.get("order_id") and payment.order_id:
            if metadata["order_id"] != payment.order_id:
                raise BadRequest(message="Webhook order does not match the payment")
            order = PaymentService._confirm_order(payment, data)
            return {
                "handled": True,
                "event": event_type,
                "reference": reference,
                "order_id": order.id,
            }

        if metadata.get("vendor_id") and payment.payment_type == PaymentType.AD.value:
            if metadata["vendor_id"] != payment.vendor_id:
                raise BadRequest(message="Webhook vendor does not match the payment")
            advertisement = PaymentService._confirm_ad(payment, data)
            return {
                "handled": True,
                "event": event_type,
                "reference": reference,
                "advertisement_id": advertisement.id,
            }

        log_payment_message(
            f"Webhook {reference} carries no order or vendor", level="WARNING"
        )
        return {"handled": False, "event": event_type, "reference": reference}
