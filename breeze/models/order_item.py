from breeze.extensions import db
from breeze.lib.string import generate_id
from breeze.models.base import BaseModel


class OrderItem(db.Model, BaseModel):
    """Menu item as it was priced when the order was placed."""

    __tablename__ = "order_items"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    order_id = db.Column(
        db.String(36), db.ForeignKey("orders.id"), nullable=False, index=True
    )
    menu_item_id = db.Column(db.String(36), nullable=False)
    menu_item_name = db.Column(db.String(255), nullable=False)
    unit_price = db.Column(db.Float, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    total_price = db.Column(db.Float, nullable=False)
    special_requests = db.Column(db.String(500), nullable=True)
