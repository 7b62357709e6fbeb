# coding: utf8
import os

from dotenv import load_dotenv

dotenv_path = os.path.join(os.path.dirname(__file__), ".env")
load_dotenv(dotenv_path=dotenv_path, override=True)

from breeze import create_app  # noqa
from breeze.config import configs as config  # noqa
from breeze.extensions import db  # noqa

config_name = os.environ.get("FLASK_CONFIG") or "develop"
config_app = config[config_name]
application = create_app(config_app)


@application.route("/", methods=["GET"])
def index():
    return {
        "message": "Welcome to the Breeze API",
    }


@application.cli.command("create-db")
def create_db():
    """Create every table that does not exist yet."""
    import breeze.models  # noqa

    db.create_all()
    application.logger.info("Tables created")


if __name__ == "__main__":
    application.run()
