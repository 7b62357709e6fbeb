from datetime import datetime, timedelta

from sqlalchemy import update

import const
from breeze.enums.payment import AdvertisementEvent, AdvertisementStatus
from breeze.errors.exceptions import BadRequest, Forbidden, NotFound
from breeze.extensions import db
from breeze.lib.logger import logger
from breeze.models import Advertisement


class AdvertisementService:

    @staticmethod
    def get_packages():
        packages = [
            {"key": key, **package} for key, package in const.AD_PACKAGES.items()
        ]
        return sorted(packages, key=lambda package: package["order_index"])

    @staticmethod
    def get_package(package_name):
        package = const.AD_PACKAGES.get(str(package_name or "").upper())
        if not package:
            raise BadRequest(message=f"Unknown advertisement package '{package_name}'")
        return package

    @staticmethod
    def find_advertisement(ad_id):
        advertisement = db.session.get(Advertisement, ad_id)
        if not advertisement:
            raise NotFound(message=f"Advertisement {ad_id} not found")
        return advertisement

    @staticmethod
    def has_active_campaign(vendor_id, now=None):
        now = now or datetime.utcnow()
        return (
            Advertisement.query.filter(
                Advertisement.vendor_id == vendor_id,
                Advertisement.status == AdvertisementStatus.ACTIVE.value,
                Advertisement.end_date > now,
            ).first()
            is not None
        )

    @staticmethod
    def get_active(vendor_id=None, now=None):
        now = now or datetime.utcnow()
        query = Advertisement.query.filter(
            Advertisement.status == AdvertisementStatus.ACTIVE.value,
            Advertisement.start_date <= now,
            Advertisement.end_date > now,
        )
        if vendor_id:
            query = query.filter(Advertisement.vendor_id == vendor_id)
        return query.order_by(Advertisement.package_price.desc()).all()

    @staticmethod
    def create_from_payment(payment, now=None):
        """Start the campaign a successful ad payment bought.

        Does not commit; the caller owns the transaction."""
        meta = payment.meta or {}
        package = AdvertisementService.get_package(meta.get("package_name"))
        now = now or datetime.utcnow()

        advertisement = Advertisement(
            vendor_id=payment.vendor_id,
            package_name=package["name"],
            package_price=payment.amount,
            start_date=now,
            end_date=now + timedelta(hours=const.AD_DURATION_HOURS),
            status=AdvertisementStatus.ACTIVE.value,
        )
        db.session.add(advertisement)
        db.session.flush()
        payment.advertisement_id = advertisement.id
        return advertisement

    @staticmethod
    def expire_finished_campaigns(now=None):
        now = now or datetime.utcnow()
        result = db.session.execute(
            update(Advertisement)
            .where(
                Advertisement.status == AdvertisementStatus.ACTIVE.value,
                Advertisement.end_date < now,
            )
            .values(status=AdvertisementStatus.EXPIRED.value, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        db.session.commit()
        if result.rowcount:
            logger.info(f"Expired {result.rowcount} advertisement(s)")
        return result.rowcount

    @staticmethod
    def record_event(ad_id, kind):
        try:
            event = AdvertisementEvent(kind)
        except ValueError:
            raise BadRequest(message=f"Unknown advertisement event '{kind}'")

        column = getattr(Advertisement, event.value)
        result = db.session.execute(
            update(Advertisement)
            .where(
                Advertisement.id == ad_id,
                Advertisement.status == AdvertisementStatus.ACTIVE.value,
            )
            .values({column: column + 1})
            .execution_options(synchronize_session=False)
        )
        db.session.commit()
        if result.rowcount == 0:
            AdvertisementService.find_advertisement(ad_id)
            raise BadRequest(message="Advertisement is not active")
        advertisement = AdvertisementService.find_advertisement(ad_id)
        db.session.refresh(advertisement)
        return advertisement

    @staticmethod
    def terminate(ad_id, vendor_id=None):
        advertisement = AdvertisementService.find_advertisement(ad_id)
        if vendor_id and advertisement.vendor_id != vendor_id:
            raise Forbidden(message="Advertisement belongs to another vendor")
        if advertisement.status != AdvertisementStatus.ACTIVE.value:
            raise BadRequest(message="Advertisement is not active")

        advertisement.update(status=AdvertisementStatus.TERMINATED.value)
        logger.info(f"Advertisement {ad_id} terminated by vendor {vendor_id}")
        return advertisement
