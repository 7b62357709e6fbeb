import atexit
from datetime import datetime

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from breeze.extensions import db
from breeze.lib.logger import log_poller_message
from breeze.schedules.expire_advertisements import expire_advertisements
from breeze.services.order import OrderService


def advance_expired_orders(app, now=None):
    """One poll: preparing orders past their estimate become ready."""
    with app.app_context():
        try:
            promoted = OrderService.advance_expired_orders(now=now)
            if promoted:
                log_poller_message(f"Moved {len(promoted)} order(s) to ready")
            return promoted
        except Exception as e:
            db.session.rollback()
            log_poller_message(f"Error in advance_expired_orders: {str(e)}", level="ERROR")
            return []
        finally:
            # return the connection to the pool between ticks
            db.session.remove()


class ExpiryPoller:
    """Runs advance_expired_orders every ``interval_seconds`` in the background.

    A tick that overruns is never overlapped by the next one; missed ticks
    collapse into one."""

    JOB_ID = "advance_expired_orders"
    ADS_JOB_ID = "expire_advertisements"

    def __init__(self, app, interval_seconds=None, expire_ads=True):
        self.app = app
        self.interval_seconds = int(
            interval_seconds or app.config.get("EXPIRY_POLL_INTERVAL_SECONDS", 60)
        )
        self.expire_ads = expire_ads
        self.scheduler = None
        self._exit_hook_registered = False

    @property
    def running(self):
        return self.scheduler is not None and self.scheduler.running

    def run_once(self, now=None):
        promoted = advance_expired_orders(self.app, now=now)
        if self.expire_ads:
            expire_advertisements(self.app)
        return promoted

    def start(self):
        if self.running:
            return self.scheduler

        scheduler = BackgroundScheduler()
        trigger = IntervalTrigger(seconds=self.interval_seconds)

        scheduler.add_job(
            func=lambda: advance_expired_orders(self.app),
            trigger=trigger,
            id=self.JOB_ID,
            next_run_time=datetime.now(),
            max_instances=1,
            coalesce=True,
        )
        if self.expire_ads:
            scheduler.add_job(
                func=lambda: expire_advertisements(self.app),
                trigger=trigger,
                id=self.ADS_JOB_ID,
                max_instances=1,
                coalesce=True,
            )

        if not self._exit_hook_registered:
            atexit.register(self.stop, False)
            self._exit_hook_registered = True
        scheduler.start()
        self.scheduler = scheduler

        log_poller_message(f"Expiry poller started, every {self.interval_seconds}s")
        return scheduler

    def stop(self, wait=True):
        if not self.running:
            return
        self.scheduler.shutdown(wait=wait)
        self.scheduler = None
        log_poller_message("Expiry poller stopped")
