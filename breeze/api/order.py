# coding: utf8
from flask_jwt_extended import get_jwt_identity, jwt_required
from flask_restx import Namespace, Resource

from breeze.api.geo import ADDRESS_SCHEMA
from breeze.decorators import current_role, parameters, roles_required
from breeze.enums.order import OrderStatus
from breeze.errors.exceptions import Forbidden
from breeze.lib.response import Response
from breeze.services.order import OrderService

ns = Namespace(name="order", description="Order API")


def _check_access(order, role, actor_id):
    if role == "admin":
        return
    owner = {
        "customer": order.customer_id,
        "vendor": order.vendor_id,
        "rider": order.rider_id,
    }.get(role)
    # unassigned orders are visible to riders looking for work
    if role == "rider" and owner is None and order.status == OrderStatus.READY.value:
        return
    if owner != actor_id:
        raise Forbidden(message="You do not have access to this order")


@ns.route("/quote")
class APIOrderQuote(Resource):

    @roles_required("customer")
    @parameters(
        type="object",
        properties={
            "subtotal": {"type": "number", "minimum": 0},
            "distance_km": {"type": "number", "minimum": 0},
            "item_count": {"type": "integer", "minimum": 0},
            "redeem_points": {"type": "boolean"},
        },
        required=["subtotal", "distance_km", "item_count"],
    )
    def post(self, args):
        quote = OrderService.quote_for_customer(
            customer_id=get_jwt_identity(),
            subtotal=args["subtotal"],
            distance_km=args["distance_km"],
            item_count=args["item_count"],
            redeem_points=args.get("redeem_points", False),
        )
        return Response(data=quote, message="Quote calculated").to_dict()


@ns.route("/create")
class APIOrderCreate(Resource):

    @roles_required("customer")
    @parameters(
        type="object",
        properties={
            "vendor_id": {"type": "string"},
            "items": {
                "type": "array",
                "minItems": 1,
                "items": {
                    "type": "object",
                    "properties": {
                        "menu_item_id": {"type": "string"},
                        "quantity": {"type": "integer", "minimum": 1},
                    },
                    "required": ["menu_item_id", "quantity"],
                },
            },
            "delivery_address": ADDRESS_SCHEMA,
            "payment_method": {"type": "string"},
            "redeem_points": {"type": "boolean"},
            "distance_km": {"type": "number", "minimum": 0},
            "contact_number": {"type": "string"},
            "special_instructions": {"type": "string"},
        },
        required=["vendor_id", "items", "delivery_address"],
    )
    def post(self, args):
        order = OrderService.create_order(
            customer_id=get_jwt_identity(),
            vendor_id=args["vendor_id"],
            items=args["items"],
            delivery_address=args["delivery_address"],
            payment_method=args.get("payment_method") or "card",
            redeem_points=args.get("redeem_points", False),
            distance_km=args.get("distance_km"),
            contact_number=args.get("contact_number"),
            special_instructions=args.get("special_instructions"),
        )
        return Response(
            data=order.to_dict(), message="Order created", code=201, status=201
        ).to_dict()


@ns.route("/list")
class APIOrderList(Resource):

    @jwt_required()
    @parameters(
        type="object",
        properties={"status": {"type": "string"}},
    )
    def get(self, args):
        role = current_role()
        actor_id = get_jwt_identity()
        filters = {"status": args.get("status")}
        if role == "customer":
            filters["customer_id"] = actor_id
        elif role == "vendor":
            filters["vendor_id"] = actor_id
        elif role == "rider":
            filters["rider_id"] = actor_id
        elif role != "admin":
            raise Forbidden(message="Unknown role")

        orders = OrderService.get_orders(**filters)
        return Response(
            data=[order.to_dict() for order in orders], message="Orders"
        ).to_dict()


@ns.route("/<string:order_id>")
class APIOrderDetail(Resource):

    @jwt_required()
    def get(self, order_id):
        order = OrderService.find_order(order_id)
        _check_access(order, current_role(), get_jwt_identity())
        data = order.to_dict()
        data["next_statuses"] = OrderService.next_statuses(order.status)
        return Response(data=data, message="Order").to_dict()


@ns.route("/<string:order_id>/status")
class APIOrderStatus(Resource):

    @roles_required("vendor", "rider", "customer")
    @parameters(
        type="object",
        properties={
            "status": {
                "type": "string",
                "enum": [status.value for status in OrderStatus],
            },
        },
        required=["status"],
    )
    def post(self, args, order_id):
        role = current_role()
        actor_id = get_jwt_identity()
        order = OrderService.find_order(order_id)
        OrderService.authorize_transition(order, args["status"], role, actor_id)

        order = OrderService.transition(
            order_id,
            args["status"],
            rider_id=actor_id if role == "rider" else None,
        )
        return Response(data=order.to_dict(), message="Order status updated").to_dict()


@ns.route("/<string:order_id>/cancel")
class APIOrderCancel(Resource):

    @roles_required("vendor", "customer")
    def post(self, order_id):
        order = OrderService.find_order(order_id)
        OrderService.authorize_transition(
            order, OrderStatus.CANCELLED, current_role(), get_jwt_identity()
        )
        order = OrderService.transition(order_id, OrderStatus.CANCELLED)
        return Response(data=order.to_dict(), message="Order cancelled").to_dict()
