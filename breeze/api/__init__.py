# coding: utf8
from flask import Blueprint
from flask_restx import Api

from breeze.api.advertisement import ns as advertisement_ns
from breeze.api.geo import ns as geo_ns
from breeze.api.loyalty import ns as loyalty_ns
from breeze.api.order import ns as order_ns
from breeze.api.payment import ns as payment_ns

bp = Blueprint("api", __name__, url_prefix="/api/v1")

api = Api(
    bp, version="1.0", title="Breeze API", description="Breeze delivery API", doc="/docs/"
)


api.add_namespace(ns=geo_ns)
api.add_namespace(ns=order_ns)
api.add_namespace(ns=loyalty_ns)
api.add_namespace(ns=payment_ns)
api.add_namespace(ns=advertisement_ns)
