# ================== LOGURU LOGGER CONFIG =====================
import sys
import os
from loguru import logger

LOG_DIR = os.environ.get("LOG_DIR") or "logs"
os.makedirs(LOG_DIR, exist_ok=True)

log_format = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>order:{extra[order_id]}</cyan> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)

logger.remove()
logger.configure(extra={"order_id": "NO_ORDER"})
logger.add(sys.stderr, colorize=True, format=log_format, level="INFO")
logger.add(
    os.path.join(LOG_DIR, "breeze_service.json"),
    rotation="100 MB",
    retention="10 days",
    compression="zip",
    serialize=True,
    level="DEBUG",
    enqueue=True,
    catch=True,
)
configured_logger = logger.patch(
    lambda record: record["extra"].setdefault("order_id", "NO_ORDER")
)


def log_payment_message(message, order_id=None, level="INFO"):
    configured_logger.bind(
        component="PAYMENT", order_id=order_id or "NO_ORDER"
    ).log(level, message)


def log_poller_message(message, level="INFO"):
    configured_logger.bind(component="POLLER").log(level, message)


def log_loyalty_message(message, order_id=None, level="INFO"):
    configured_logger.bind(
        component="LOYALTY", order_id=order_id or "NO_ORDER"
    ).log(level, message)


# ================== CRITICAL LOGGING =====================
def log_critical_infrastructure(message, component="SYSTEM", send_alert=False):
    """Log a critical infrastructure problem and optionally alert Slack."""
    configured_logger.critical(f"[CRITICAL-{component}] {message}")
    if send_alert:
        from breeze.third_parties.slack import send_slack_message

        try:
            if send_slack_message(f"[{component}] {message}"):
                configured_logger.info(f"Critical alert sent for component: {component}")
        except Exception as e:
            configured_logger.error(f"Sending critical alert failed: {e}")

