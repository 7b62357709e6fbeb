import json
import threading
import uuid

from flask import current_app, has_app_context

from breeze.extensions import redis_client
from breeze.lib.logger import logger


class OrderEventBus:
    """Observe order changes matching a filter.

    Subscribers register field filters (``status="ready"``,
    ``vendor_id=...``); a filter value may also be a list/tuple/set of
    accepted values. Each committed change is delivered as the order's JSON
    snapshot plus the previous status. With ORDER_EVENTS_REDIS on, the same
    message is published on ORDER_EVENTS_CHANNEL for other processes."""

    def __init__(self):
        self._subscribers = {}
        self._lock = threading.Lock()

    def subscribe(self, callback, **filters):
        token = str(uuid.uuid4())
        with self._lock:
            self._subscribers[token] = (callback, filters)

        def unsubscribe():
            with self._lock:
                self._subscribers.pop(token, None)

        return unsubscribe

    def clear(self):
        with self._lock:
            self._subscribers.clear()

    @staticmethod
    def _matches(snapshot, filters):
        for field, expected in filters.items():
            value = snapshot.get(field)
            if isinstance(expected, (list, tuple, set, frozenset)):
                if value not in expected:
                    return False
            elif value != expected:
                return False
        return True

    def publish(self, order, previous_status=None, event="order.updated"):
        snapshot = order._to_json()
        message = {
            "event": event,
            "previous_status": previous_status,
            "order": snapshot,
        }

        with self._lock:
            subscribers = list(self._subscribers.values())

        delivered = 0
        for callback, filters in subscribers:
            if not self._matches(snapshot, filters):
                continue
            try:
                callback(message)
                delivered += 1
            except Exception as e:
                logger.bind(order_id=snapshot.get("id")).error(
                    f"Order event subscriber failed: {e}"
                )

        self._publish_redis(message)
        return delivered

    @staticmethod
    def _publish_redis(message):
        if not has_app_context() or not current_app.config.get("ORDER_EVENTS_REDIS"):
            return
        try:
            redis_client.publish(
                current_app.config.get("ORDER_EVENTS_CHANNEL", "order_events"),
                json.dumps(message, ensure_ascii=False),
            )
        except Exception as e:
            logger.warning(f"Publishing order event to redis failed: {e}")


order_events = OrderEventBus()
