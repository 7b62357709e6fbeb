# coding: utf8
from logging import DEBUG

from flask import Flask
from flask_cors import CORS
from flask_jwt_extended.exceptions import NoAuthorizationError
from werkzeug.exceptions import default_exceptions

from .errors.handler import api_error_handler
from .extensions import db, jwt, redis_client
from .lib.response import Response


def create_app(config_app):
    app = Flask(__name__)
    app.config.from_object(config_app)

    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_SCHEME", "*")}})
    __init_app(app)
    __config_logging(app)
    __register_blueprint(app)
    __config_error_handlers(app)

    return app


def __config_logging(app):
    app.logger.setLevel(DEBUG)
    app.logger.info("Start flask...")


def __register_blueprint(app):
    from breeze.api import bp as api_bp

    app.register_blueprint(api_bp)


def __init_app(app):
    db.init_app(app)
    redis_client.init_app(app)
    jwt.init_app(app)

    app.logger.info("Initial app...")


def __config_error_handlers(app):
    for exp in default_exceptions:
        app.register_error_handler(exp, api_error_handler)
    app.register_error_handler(Exception, api_error_handler)

    @app.errorhandler(NoAuthorizationError)
    def handle_auth_error(e):
        return Response(
            code=401, message="Missing Authorization Header", status=401
        ).to_dict()

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return Response(code=401, message="The token has expired", status=401).to_dict()

    @jwt.invalid_token_loader
    def invalid_token_callback(reason):
        return Response(code=401, message="Invalid token", status=401).to_dict()

    @jwt.unauthorized_loader
    def unauthorized_callback(reason):
        return Response(
            code=401, message="Missing Authorization Header", status=401
        ).to_dict()
