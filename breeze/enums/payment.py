from enum import Enum


class PaymentStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


class PaymentType(str, Enum):
    ORDER = "order"
    AD = "ad"


class AdvertisementStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    TERMINATED = "terminated"


class AdvertisementEvent(str, Enum):
    IMPRESSION = "impressions"
    CLICK = "clicks"
    CONVERSION = "conversions"
