# coding: utf8
from flask_jwt_extended import get_jwt_identity
from flask_restx import Namespace, Resource

import const
from breeze.decorators import roles_required
from breeze.lib.response import Response
from breeze.services.loyalty import LoyaltyService
from breeze.services.pricing import PricingService

ns = Namespace(name="loyalty", description="Loyalty points API")


@ns.route("/balance")
class APILoyaltyBalance(Resource):

    @roles_required("customer")
    def get(self):
        balance = LoyaltyService.get_balance(get_jwt_identity())
        return Response(
            data={
                "balance": balance,
                "can_redeem": PricingService.can_redeem(balance),
                "redemption_threshold": const.REDEMPTION_THRESHOLD,
            },
            message="Loyalty balance",
        ).to_dict()


@ns.route("/history")
class APILoyaltyHistory(Resource):

    @roles_required("customer")
    def get(self):
        history = LoyaltyService.get_history(get_jwt_identity())
        return Response(data=history, message="Loyalty history").to_dict()
