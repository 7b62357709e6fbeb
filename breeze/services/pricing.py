import math
from decimal import ROUND_HALF_UP, Decimal

import const
from breeze.errors.exceptions import BadRequest

CENT = Decimal("0.01")
UNIT = Decimal("1")


def _money(value) -> float:
    return float(Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP))


def _require_finite(value, field):
    try:
        finite = math.isfinite(value)
    except TypeError:
        finite = False
    if not finite:
        raise BadRequest(message=f"{field} must be a finite number")


class PricingService:
    """Price breakdown for a prospective order. No I/O."""

    @staticmethod
    def calculate_delivery_fee(distance_km) -> float:
        if distance_km is None:
            return float(const.MIN_FEE)
        _require_finite(distance_km, "distance_km")
        if distance_km <= 0:
            return float(const.MIN_FEE)

        fee = Decimal(const.BASE_FEE) + Decimal(str(distance_km)) * Decimal(
            const.PER_KM_RATE
        )
        fee = min(max(fee, Decimal(const.MIN_FEE)), Decimal(const.MAX_FEE))
        return _money(fee)

    @staticmethod
    def calculate_service_fee(item_count) -> float:
        fee = const.SERVICE_FEE_BASE + max(int(item_count or 0), 0) * const.SERVICE_FEE_PER_ITEM
        return float(min(fee, const.SERVICE_FEE_CAP))

    @staticmethod
    def calculate_vat(subtotal) -> float:
        vat = Decimal(str(subtotal)) * Decimal(const.VAT_RATE)
        return float(vat.quantize(UNIT, rounding=ROUND_HALF_UP))

    @staticmethod
    def can_redeem(loyalty_balance) -> bool:
        return int(loyalty_balance or 0) >= const.REDEMPTION_THRESHOLD

    @staticmethod
    def calculate_estimated_delivery_time(distance_km, route_duration_seconds=None) -> int:
        """Minutes from placing the order to the door."""
        if distance_km is None:
            return const.PREPARATION_TIME_MIN
        _require_finite(distance_km, "distance_km")
        if distance_km <= 0:
            return const.PREPARATION_TIME_MIN

        if (
            route_duration_seconds
            and math.isfinite(route_duration_seconds)
            and route_duration_seconds > 0
        ):
            travel_minutes = route_duration_seconds / 60
        else:
            travel_minutes = distance_km / const.AVG_SPEED_KM_PER_MIN

        return int(math.ceil(const.PREPARATION_TIME_MIN + travel_minutes))

    @staticmethod
    def quote(
        subtotal,
        distance_km,
        item_count,
        redeem_points=False,
        loyalty_balance=0,
        route_duration_seconds=None,
    ):
        if subtotal is None:
            raise BadRequest(message="subtotal must be a non-negative amount")
        _require_finite(subtotal, "subtotal")
        if subtotal < 0:
            raise BadRequest(message="subtotal must be a non-negative amount")
        if distance_km is not None:
            _require_finite(distance_km, "distance_km")
        if item_count is None or int(item_count) < 0:
            raise BadRequest(message="item_count must be a non-negative integer")

        delivery_fee = PricingService.calculate_delivery_fee(distance_km)
        service_fee = PricingService.calculate_service_fee(item_count)
        vat = PricingService.calculate_vat(subtotal)
        can_redeem = PricingService.can_redeem(loyalty_balance)

        subtotal_d = Decimal(str(subtotal))
        original = subtotal_d + Decimal(str(delivery_fee)) + Decimal(str(service_fee)) + Decimal(str(vat))

        discount = Decimal("0")
        if redeem_points and can_redeem:
            discount = (subtotal_d * Decimal(const.REDEMPTION_DISCOUNT_RATE)).quantize(
                CENT, rounding=ROUND_HALF_UP
            )
        # total never goes below zero
        discount = min(discount, original)
        points_redeemed = const.REDEMPTION_THRESHOLD if discount > 0 else 0

        return {
            "subtotal": _money(subtotal_d),
            "delivery_fee": delivery_fee,
            "service_fee": service_fee,
            "vat": vat,
            "discount": _money(discount),
            "original_amount": _money(original),
            "total": _money(original - discount),
            "points_redeemed": points_redeemed,
            "can_redeem": can_redeem,
            "estimated_delivery_minutes": PricingService.calculate_estimated_delivery_time(
                distance_km, route_duration_seconds
            ),
        }
