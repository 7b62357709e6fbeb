# Delivery fee, whole currency units
BASE_FEE = 300
PER_KM_RATE = 50
MIN_FEE = 300
MAX_FEE = 2000

# Service fee
SERVICE_FEE_BASE = 200
SERVICE_FEE_PER_ITEM = 50
SERVICE_FEE_CAP = 500

VAT_RATE = "0.075"

# Loyalty
POINTS_PER_ORDER = 1
REDEMPTION_THRESHOLD = 10
REDEMPTION_DISCOUNT_RATE = "0.50"

# Delivery time
PREPARATION_TIME_MIN = 15
AVG_SPEED_KM_PER_MIN = 0.5

# Geo
EARTH_RADIUS_KM = 6371
MIN_ROUTE_DISTANCE_KM = 0.1
MIN_ROUTE_DURATION_SECONDS = 60
FALLBACK_SECONDS_PER_KM = 120
SAME_POINT_DEGREES = 0.001
LOW_CONFIDENCE_THRESHOLD = 0.5

CONFIDENCE_EXACT = 1.0
CONFIDENCE_KNOWN_AREA = 0.9
CONFIDENCE_CITY_FALLBACK = 0.3

# Gateway amounts are sent in kobo
MINOR_UNITS_PER_UNIT = 100

AD_DURATION_HOURS = 24

AD_PACKAGES = {
    "BASIC": {
        "name": "Basic",
        "price": 2000,
        "description": "Listed in the featured strip for 24 hours",
        "order_index": 1,
    },
    "STANDARD": {
        "name": "Standard",
        "price": 3500,
        "description": "Featured strip and search boost for 24 hours",
        "order_index": 2,
    },
    "PREMIUM": {
        "name": "Premium",
        "price": 5000,
        "description": "Homepage carousel, featured strip and search boost for 24 hours",
        "order_index": 3,
    },
}
