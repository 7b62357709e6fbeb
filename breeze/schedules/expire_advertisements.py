from breeze.extensions import db
from breeze.lib.logger import log_poller_message
from breeze.services.advertisement import AdvertisementService


def expire_advertisements(app):
    with app.app_context():
        try:
            count = AdvertisementService.expire_finished_campaigns()
            if count:
                log_poller_message(f"Expired {count} finished campaign(s)")
            return count
        except Exception as e:
            db.session.rollback()
            log_poller_message(f"Error in expire_advertisements: {str(e)}", level="ERROR")
            return 0
        finally:
            db.session.remove()
