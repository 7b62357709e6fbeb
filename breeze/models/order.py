from breeze.enums.order import OrderPaymentStatus, OrderStatus
from breeze.extensions import db
from breeze.lib.string import generate_id
from breeze.models.base import BaseModel


class Order(db.Model, BaseModel):
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_status_estimated", "status", "estimated_delivery_time"),
    )

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    order_code = db.Column(db.String(32), nullable=False, unique=True)
    customer_id = db.Column(
        db.String(36), db.ForeignKey("customers.id"), nullable=False, index=True
    )
    vendor_id = db.Column(db.String(36), db.ForeignKey("vendors.id"), nullable=False)
    rider_id = db.Column(db.String(36), nullable=True)

    status = db.Column(db.String(32), nullable=False, default=OrderStatus.PENDING.value)
    payment_status = db.Column(
        db.String(32), nullable=False, default=OrderPaymentStatus.PENDING.value
    )
    payment_method = db.Column(db.String(50), nullable=True)

    subtotal = db.Column(db.Float, nullable=False, default=0)
    delivery_fee = db.Column(db.Float, nullable=False, default=0)
    service_fee = db.Column(db.Float, nullable=False, default=0)
    vat = db.Column(db.Float, nullable=False, default=0)
    original_amount = db.Column(db.Float, nullable=False, default=0)
    discount_amount = db.Column(db.Float, nullable=False, default=0)
    total_amount = db.Column(db.Float, nullable=False, default=0)
    loyalty_points_redeemed = db.Column(db.Integer, nullable=False, default=0)
    loyalty_points_awarded = db.Column(db.Integer, nullable=False, default=0)

    delivery_address = db.Column(db.String(500), nullable=True)
    delivery_city = db.Column(db.String(100), nullable=True)
    delivery_state = db.Column(db.String(100), nullable=True)
    delivery_zip = db.Column(db.String(20), nullable=True)
    distance_km = db.Column(db.Float, nullable=False, default=0)
    contact_number = db.Column(db.String(50), nullable=True)
    special_instructions = db.Column(db.Text, nullable=True)

    estimated_delivery_time = db.Column(db.DateTime, nullable=True)
    actual_delivery_time = db.Column(db.DateTime, nullable=True)

    items = db.relationship(
        "OrderItem", lazy="selectin", order_by="OrderItem.created_at"
    )

    to_json_filter = ("loyalty_points_awarded",)

    @property
    def status_enum(self):
        return OrderStatus.parse(self.status)

    def to_dict(self):
        data = self._to_json()
        data["items"] = [item._to_json() for item in self.items]
        return data
