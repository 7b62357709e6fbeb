# coding: utf8
from flask_jwt_extended import get_jwt_identity
from flask_restx import Namespace, Resource

from breeze.decorators import current_role, parameters, roles_required
from breeze.enums.payment import AdvertisementEvent
from breeze.lib.response import Response
from breeze.services.advertisement import AdvertisementService

ns = Namespace(name="advertisement", description="Vendor advertisement API")


@ns.route("/packages")
class APIAdPackages(Resource):

    def get(self):
        return Response(
            data=AdvertisementService.get_packages(), message="Packages"
        ).to_dict()


@ns.route("/active")
class APIActiveAds(Resource):

    @parameters(
        type="object",
        properties={"vendor_id": {"type": "string"}},
    )
    def get(self, args):
        advertisements = AdvertisementService.get_active(vendor_id=args.get("vendor_id"))
        return Response(
            data=[advertisement._to_json() for advertisement in advertisements],
            message="Active advertisements",
        ).to_dict()


@ns.route("/<string:ad_id>/event")
class APIAdEvent(Resource):

    @parameters(
        type="object",
        properties={
            "kind": {
                "type": "string",
                "enum": [event.value for event in AdvertisementEvent],
            },
        },
        required=["kind"],
    )
    def post(self, args, ad_id):
        advertisement = AdvertisementService.record_event(ad_id, args["kind"])
        return Response(data=advertisement._to_json(), message="Event recorded").to_dict()


@ns.route("/<string:ad_id>/terminate")
class APIAdTerminate(Resource):

    @roles_required("vendor")
    def post(self, ad_id):
        vendor_id = None if current_role() == "admin" else get_jwt_identity()
        advertisement = AdvertisementService.terminate(ad_id, vendor_id)
        return Response(
            data=advertisement._to_json(), message="Advertisement terminated"
        ).to_dict()
