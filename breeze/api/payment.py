# coding: utf8
from flask import request
from flask_jwt_extended import get_jwt_identity
from flask_restx import Namespace, Resource

from breeze.decorators import current_role, parameters, roles_required
from breeze.errors.exceptions import Forbidden
from breeze.lib.logger import log_payment_message
from breeze.lib.response import Response
from breeze.services.order import OrderService
from breeze.services.payment import PaymentService

ns = Namespace("payment", description="Payment API")


def _callback_base(args, path):
    return args.get("callback_url") or f"{request.host_url.rstrip('/')}{path}"


@ns.route("/initialize_order")
class APIInitializeOrderPayment(Resource):

    @roles_required("customer")
    @parameters(
        type="object",
        properties={
            "order_id": {"type": "string"},
            "email": {"type": "string", "format": "email"},
            "callback_url": {"type": "string"},
        },
        required=["order_id", "email"],
    )
    def post(self, args):
        order = OrderService.find_order(args["order_id"])
        if current_role() != "admin" and order.customer_id != get_jwt_identity():
            raise Forbidden(message="Order belongs to another customer")

        result = PaymentService.initialize_order_payment(
            order_id=order.id,
            email=args["email"],
            callback_base=_callback_base(args, "/payment/callback"),
        )
        return Response(data=result, message="Payment initialized").to_dict()


@ns.route("/verify_order")
class APIVerifyOrderPayment(Resource):

    @roles_required("customer")
    @parameters(
        type="object",
        properties={
            "order_id": {"type": "string"},
            "reference": {"type": "string"},
        },
        required=["order_id", "reference"],
    )
    def get(self, args):
        order = OrderService.find_order(args["order_id"])
        if current_role() != "admin" and order.customer_id != get_jwt_identity():
            raise Forbidden(message="Order belongs to another customer")

        order = PaymentService.verify_order_payment(order.id, args["reference"])
        return Response(data=order.to_dict(), message="Payment verified").to_dict()


@ns.route("/webhook")
class APIPaymentWebhook(Resource):

    def post(self):
        event = request.get_json(silent=True) or {}
        log_payment_message(f"Webhook received: {event.get('event')}")
        result = PaymentService.handle_webhook(event)
        return Response(data=result, message="Webhook received").to_dict()


@ns.route("/initialize_ad")
class APIInitializeAdPayment(Resource):

    @roles_required("vendor")
    @parameters(
        type="object",
        properties={
            "package_name": {"type": "string"},
            "email": {"type": "string", "format": "email"},
            "callback_url": {"type": "string"},
        },
        required=["package_name"],
    )
    def post(self, args):
        result = PaymentService.initialize_ad_payment(
            vendor_id=get_jwt_identity(),
            package_name=args["package_name"],
            email=args.get("email"),
            callback_base=_callback_base(args, "/advertisement/callback"),
        )
        return Response(data=result, message="Payment initialized").to_dict()


@ns.route("/verify_ad")
class APIVerifyAdPayment(Resource):

    @roles_required("vendor")
    @parameters(
        type="object",
        properties={"reference": {"type": "string"}},
        required=["reference"],
    )
    def get(self, args):
        advertisement = PaymentService.verify_ad_payment(
            args["reference"], get_jwt_identity()
        )
        return Response(
            data=advertisement._to_json(), message="Advertisement activated"
        ).to_dict()
