from breeze.enums.payment import AdvertisementStatus
from breeze.extensions import db
from breeze.lib.string import generate_id
from breeze.models.base import BaseModel


class Advertisement(db.Model, BaseModel):
    __tablename__ = "advertisements"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    vendor_id = db.Column(
        db.String(36), db.ForeignKey("vendors.id"), nullable=False, index=True
    )
    package_name = db.Column(db.String(50), nullable=False)
    package_price = db.Column(db.Float, nullable=False)
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)
    impressions = db.Column(db.Integer, nullable=False, default=0)
    clicks = db.Column(db.Integer, nullable=False, default=0)
    conversions = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(
        db.String(20), nullable=False, default=AdvertisementStatus.ACTIVE.value
    )
