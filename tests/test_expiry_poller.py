from datetime import datetime, timedelta

from breeze.enums.order import OrderStatus
from breeze.extensions import db
from breeze.models import Order
from breeze.schedules.expiry_poller import ExpiryPoller, advance_expired_orders
from breeze.services.order import OrderService
from breeze.services.order_events import order_events


def _preparing_order(place_order, minutes_from_now):
    order = place_order()
    OrderService.transition(order.id, OrderStatus.CONFIRMED)
    order = OrderService.transition(order.id, OrderStatus.PREPARING)
    order.update(
        estimated_delivery_time=datetime.utcnow() + timedelta(minutes=minutes_from_now)
    )
    return order


def test_promotes_only_expired_preparing_orders(place_order):
    expired = _preparing_order(place_order, -1)
    not_yet = _preparing_order(place_order, 30)
    pending = place_order()
    pending.update(estimated_delivery_time=datetime.utcnow() - timedelta(minutes=5))

    promoted = OrderService.advance_expired_orders()

    assert promoted == [expired.id]
    assert db.session.get(Order, expired.id).status == "ready"
    assert db.session.get(Order, not_yet.id).status == "preparing"
    assert db.session.get(Order, pending.id).status == "pending"


def test_running_twice_is_idempotent(place_order):
    order = _preparing_order(place_order, -1)
    assert OrderService.advance_expired_orders() == [order.id]
    assert OrderService.advance_expired_orders() == []
    assert db.session.get(Order, order.id).status == "ready"


def test_boundary_is_inclusive(place_order):
    order = _preparing_order(place_order, 10)
    now = order.estimated_delivery_time
    assert OrderService.advance_expired_orders(now=now) == [order.id]


def test_promotion_publishes_events(place_order):
    order = _preparing_order(place_order, -1)
    received = []
    order_events.subscribe(received.append, status="ready")

    OrderService.advance_expired_orders()

    assert len(received) == 1
    assert received[0]["previous_status"] == "preparing"
    assert received[0]["order"]["id"] == order.id


def test_poll_job_runs_in_its_own_context(app, place_order):
    order = _preparing_order(place_order, -1)
    assert advance_expired_orders(app) == [order.id]

    db.session.expire_all()
    assert db.session.get(Order, order.id).status == "ready"


def test_poll_job_logs_and_swallows_errors(app, monkeypatch):
    def broken(now=None):
        raise RuntimeError("db down")

    monkeypatch.setattr(OrderService, "advance_expired_orders", staticmethod(broken))
    assert advance_expired_orders(app) == []


def test_poller_start_and_stop(app):
    poller = ExpiryPoller(app, interval_seconds=3600, expire_ads=False)
    assert poller.interval_seconds == 3600
    assert not poller.running

    scheduler = poller.start()
    try:
        assert poller.running
        job = scheduler.get_job(ExpiryPoller.JOB_ID)
        assert job is not None
        assert job.max_instances == 1
        assert job.coalesce is True
        assert poller.start() is scheduler
    finally:
        poller.stop()
    assert not poller.running


def test_restart_registers_one_exit_hook(app, monkeypatch):
    from breeze.schedules import expiry_poller

    hooks = []
    monkeypatch.setattr(expiry_poller.atexit, "register", lambda *args: hooks.append(args))
    poller = ExpiryPoller(app, interval_seconds=3600, expire_ads=False)
    for _ in range(3):
        poller.start()
        poller.stop()
    assert len(hooks) == 1


def test_poller_interval_from_config(app):
    assert ExpiryPoller(app).interval_seconds == 60


def test_run_once(app, place_order):
    order = _preparing_order(place_order, -1)
    poller = ExpiryPoller(app)
    assert poller.run_once() == [order.id]
    assert poller.run_once() == []
