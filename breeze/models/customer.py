from breeze.extensions import db
from breeze.lib.string import generate_id
from breeze.models.base import BaseModel


class Customer(db.Model, BaseModel):
    __tablename__ = "customers"
    __table_args__ = (
        db.CheckConstraint("loyalty_points >= 0", name="ck_customers_loyalty_points"),
    )

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    name = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    phone_number = db.Column(db.String(50), nullable=True)
    address = db.Column(db.String(500), nullable=True)
    city = db.Column(db.String(100), nullable=True)
    state = db.Column(db.String(100), nullable=True)
    zip_code = db.Column(db.String(20), nullable=True)
    loyalty_points = db.Column(db.Integer, nullable=False, default=0)
