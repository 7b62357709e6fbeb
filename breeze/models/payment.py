from breeze.enums.payment import PaymentStatus, PaymentType
from breeze.extensions import db
from breeze.lib.string import generate_id
from breeze.models.base import BaseModel


class Payment(db.Model, BaseModel):
    __tablename__ = "payments"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    reference = db.Column(db.String(100), nullable=False, unique=True)
    amount = db.Column(db.Float, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=PaymentStatus.PENDING.value)
    payment_type = db.Column(
        db.String(20), nullable=False, default=PaymentType.ORDER.value
    )
    payment_method = db.Column(db.String(50), nullable=True)
    transaction_date = db.Column(db.DateTime, nullable=True)
    meta = db.Column("metadata", db.JSON, nullable=True)

    order_id = db.Column(db.String(36), db.ForeignKey("orders.id"), nullable=True)
    customer_id = db.Column(db.String(36), nullable=True)
    vendor_id = db.Column(db.String(36), nullable=True)
    advertisement_id = db.Column(
        db.String(36), db.ForeignKey("advertisements.id"), nullable=True
    )

    @property
    def is_processed(self):
        return self.status == PaymentStatus.SUCCESS.value

    def to_dict(self):
        data = self._to_json()
        data["metadata"] = data.pop("meta", None)
        return data
