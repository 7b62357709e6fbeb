import random
import string
import uuid
from datetime import datetime


def generate_order_code(now=None):
    """Human order code, e.g. BRZ-20261019-4K7Q2M."""
    now = now or datetime.utcnow()
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=6))
    return f"BRZ-{now.strftime('%Y%m%d')}-{suffix}"


def generate_payment_reference(prefix="order"):
    return f"{prefix}_{uuid.uuid4()}"


def generate_id():
    return str(uuid.uuid4())
