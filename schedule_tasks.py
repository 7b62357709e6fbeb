import os
import signal
import time
from logging import DEBUG
from pathlib import Path

from dotenv import load_dotenv

env_path = Path(__file__).parent / ".env"
load_dotenv(dotenv_path=env_path, override=True)

from flask import Flask  # noqa
from werkzeug.exceptions import default_exceptions  # noqa

from breeze.config import configs as config  # noqa
from breeze.errors.handler import api_error_handler  # noqa
from breeze.extensions import db, redis_client  # noqa
from breeze.schedules.expiry_poller import ExpiryPoller  # noqa


def create_app():
    config_name = os.environ.get("FLASK_CONFIG", "develop")
    config_app = config.get(config_name, config["develop"])

    app = Flask(__name__)
    app.config.from_object(config_app)

    db.init_app(app)
    redis_client.init_app(app)

    configure_logging(app)
    configure_error_handlers(app)

    return app


def configure_logging(app):
    app.logger.setLevel(DEBUG)
    app.logger.info("Start Schedule Tasks...")


def configure_error_handlers(app):
    for exp in default_exceptions:
        app.register_error_handler(exp, api_error_handler)
    app.register_error_handler(Exception, api_error_handler)


def start_scheduler(app):
    poller = ExpiryPoller(app)
    poller.start()
    app.logger.info("Scheduler started successfully.")
    return poller


if __name__ == "__main__":
    app = create_app()
    poller = start_scheduler(app)

    def shutdown(signum, frame):
        raise KeyboardInterrupt

    signal.signal(signal.SIGTERM, shutdown)

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        app.logger.info("Shutting down scheduler...")
        poller.stop()
