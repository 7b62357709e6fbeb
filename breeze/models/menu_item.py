from breeze.extensions import db
from breeze.lib.string import generate_id
from breeze.models.base import BaseModel


class MenuItem(db.Model, BaseModel):
    __tablename__ = "menu_items"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    vendor_id = db.Column(db.String(36), db.ForeignKey("vendors.id"), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    price = db.Column(db.Float, nullable=False)
    is_available = db.Column(db.Boolean, default=True)
