# coding: utf8
from flask_restx import Namespace, Resource

from breeze.decorators import parameters
from breeze.errors.exceptions import BadRequest
from breeze.lib.response import Response
from breeze.services.geo import Address, Coordinates, GeoService, validate_address

ns = Namespace(name="geo", description="Distance and delivery estimate API")

POINT_SCHEMA = {
    "type": "object",
    "properties": {
        "lat": {"type": "number", "minimum": -90, "maximum": 90},
        "lng": {"type": "number", "minimum": -180, "maximum": 180},
    },
    "required": ["lat", "lng"],
}

ADDRESS_SCHEMA = {
    "type": "object",
    "properties": {
        "address": {"type": "string"},
        "city": {"type": "string"},
        "state": {"type": "string"},
        "zip_code": {"type": ["string", "null"]},
    },
    "required": ["address", "city", "state"],
}


@ns.route("/distance")
class APIDistance(Resource):

    @parameters(
        type="object",
        properties={"origin": POINT_SCHEMA, "destination": POINT_SCHEMA},
        required=["origin", "destination"],
    )
    def post(self, args):
        origin = Coordinates(args["origin"]["lat"], args["origin"]["lng"])
        destination = Coordinates(args["destination"]["lat"], args["destination"]["lng"])
        route = GeoService.calculate_route(origin, destination)
        return Response(
            data={
                "haversine_km": round(GeoService.haversine(origin, destination), 2),
                "route": route.to_dict(),
            },
            message="Distance calculated",
        ).to_dict()


@ns.route("/delivery_details")
class APIDeliveryDetails(Resource):

    @parameters(
        type="object",
        properties={"vendor_address": ADDRESS_SCHEMA, "customer_address": ADDRESS_SCHEMA},
        required=["vendor_address", "customer_address"],
    )
    def post(self, args):
        vendor_address = Address.from_dict(args["vendor_address"])
        customer_address = Address.from_dict(args["customer_address"])
        if not validate_address(vendor_address) or not validate_address(customer_address):
            raise BadRequest(message="Address, city and state are required")

        details = GeoService.delivery_details(vendor_address, customer_address)
        return Response(data=details, message="Delivery details calculated").to_dict()
