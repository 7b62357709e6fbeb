# coding: utf8
import os


class Config(object):
    SECRET_KEY = os.environ.get("SECRET_KEY") or "<your secret key>"

    REDIS_URL = os.environ.get("REDIS_URL") or "redis://localhost:6379/0"

    SQLALCHEMY_DATABASE_URI = "{engine}://{user}:{password}@{host}:{port}/{db}".format(
        engine=os.environ.get("SQLALCHEMY_ENGINE") or "mysql+pymysql",
        user=os.environ.get("SQLALCHEMY_USER") or "root",
        password=os.environ.get("SQLALCHEMY_PASSWORD") or "",
        host=os.environ.get("SQLALCHEMY_HOST") or "127.0.0.1",
        port=int(os.environ.get("SQLALCHEMY_PORT", 3306)),
        db=os.environ.get("SQLALCHEMY_DATABASE") or "breeze",
    )

    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_size": 20,
        "max_overflow": 50,
        "pool_timeout": 10,
        "pool_recycle": 900,
        "pool_pre_ping": True,
    }

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY") or "secret"
    JWT_ACCESS_TOKEN_EXPIRES = False

    PAYSTACK_SECRET_KEY = os.environ.get("PAYSTACK_SECRET_KEY") or ""
    PAYSTACK_BASE_URL = os.environ.get("PAYSTACK_BASE_URL") or "https://api.paystack.co"

    NOMINATIM_URL = (
        os.environ.get("NOMINATIM_URL") or "https://nominatim.openstreetmap.org/search"
    )
    OSRM_URL = (
        os.environ.get("OSRM_URL") or "https://router.project-osrm.org/route/v1/driving"
    )
    GEOCODER_USER_AGENT = (
        os.environ.get("GEOCODER_USER_AGENT")
        or "BREEZE-Delivery-App/1.0 (contact@breeze.com)"
    )
    HTTP_TIMEOUT = int(os.environ.get("HTTP_TIMEOUT") or 10)

    EXPIRY_POLL_INTERVAL_SECONDS = int(
        os.environ.get("EXPIRY_POLL_INTERVAL_SECONDS") or 60
    )
    LOYALTY_AWARD_RETRIES = int(os.environ.get("LOYALTY_AWARD_RETRIES") or 3)

    ORDER_EVENTS_REDIS = (os.environ.get("ORDER_EVENTS_REDIS") or "1") == "1"
    ORDER_EVENTS_CHANNEL = os.environ.get("ORDER_EVENTS_CHANNEL") or "order_events"

    CORS_SCHEME = os.environ.get("CORS_SCHEME") or "*"

    # flask-restx hands unregistered errors back to the Flask error handlers
    PROPAGATE_EXCEPTIONS = True
    RESTX_ERROR_404_HELP = False


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    PAYSTACK_SECRET_KEY = "sk_test_breeze"
    ORDER_EVENTS_REDIS = False
    LOYALTY_AWARD_RETRIES = 1


class DevelopmentConfig(Config):
    DEBUG = True


class ProductionConfig(Config):
    DEBUG = False
    TESTING = False


configs = {
    "develop": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
