import math
from dataclasses import asdict, dataclass
from typing import List, Optional

import requests
from flask import current_app, has_app_context

import const
from breeze.config import Config
from breeze.lib.logger import logger
from breeze.services.pricing import PricingService


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float


@dataclass
class Address:
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: Optional[str] = None
    country: str = "Nigeria"

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        return cls(
            address=(data.get("address") or "").strip(),
            city=(data.get("city") or "").strip(),
            state=(data.get("state") or "").strip(),
            zip_code=data.get("zip_code") or data.get("zipCode"),
            country=data.get("country") or "Nigeria",
        )

    def display(self):
        parts = [self.address, self.city, self.state, self.zip_code]
        return ", ".join(part for part in parts if part)


@dataclass
class GeocodeResult:
    coordinates: Coordinates
    formatted_address: str
    confidence: float

    def to_dict(self):
        return asdict(self)


@dataclass
class RouteResult:
    distance_km: float
    duration_seconds: float
    source: str = "osrm"

    def to_dict(self):
        return asdict(self)


# Neighbourhoods the public geocoder places badly. Multi-word keys first.
KNOWN_AREAS = [
    (("godab", "lifecamp"), Coordinates(9.1375, 7.4095)),
    (("rubochi", "garki"), Coordinates(9.0585, 7.4955)),
    (("lifecamp",), Coordinates(9.1372, 7.4098)),
    (("garki",), Coordinates(9.0579, 7.4951)),
    (("wuse",), Coordinates(9.0643, 7.4892)),
    (("maitama",), Coordinates(9.0982, 7.4951)),
    (("asokoro",), Coordinates(9.0496, 7.5248)),
    (("gwarinpa",), Coordinates(9.1108, 7.4165)),
    (("kubwa",), Coordinates(9.1658, 7.3364)),
    (("karshi",), Coordinates(8.7833, 7.4833)),
    (("victoria island",), Coordinates(6.4281, 3.4219)),
    (("lekki",), Coordinates(6.4698, 3.5852)),
    (("ikeja",), Coordinates(6.5954, 3.3364)),
]

CITY_COORDINATES = {
    "abuja(fct)": Coordinates(9.0765, 7.3986),
    "abuja": Coordinates(9.0765, 7.3986),
    "garki": Coordinates(9.0579, 7.4951),
    "lifecamp": Coordinates(9.1372, 7.4098),
    "wuse": Coordinates(9.0643, 7.4892),
    "maitama": Coordinates(9.0982, 7.4951),
    "asokoro": Coordinates(9.0496, 7.5248),
    "gwarinpa": Coordinates(9.1108, 7.4165),
    "kubwa": Coordinates(9.1658, 7.3364),
    "karshi": Coordinates(8.7833, 7.4833),
    "lagos": Coordinates(6.5244, 3.3792),
    "ikeja": Coordinates(6.5954, 3.3364),
    "victoria island": Coordinates(6.4281, 3.4219),
    "lekki": Coordinates(6.4698, 3.5852),
    "kano": Coordinates(12.0022, 8.592),
    "ibadan": Coordinates(7.3775, 3.947),
    "port harcourt": Coordinates(4.8156, 7.0498),
    "kaduna": Coordinates(10.5105, 7.4165),
    "jos": Coordinates(9.8965, 8.8583),
}

STATE_FALLBACKS = [
    (("abuja", "fct"), "abuja"),
    (("lagos",), "lagos"),
    (("kano",), "kano"),
    (("oyo",), "ibadan"),
    (("rivers",), "port harcourt"),
    (("kaduna",), "kaduna"),
    (("plateau",), "jos"),
]

DEFAULT_CITY = "abuja"


def _setting(key):
    if has_app_context():
        return current_app.config.get(key, getattr(Config, key))
    return getattr(Config, key)


def validate_address(address: Address) -> bool:
    return bool(
        address
        and address.address
        and address.address.strip()
        and address.city
        and address.city.strip()
        and address.state
        and address.state.strip()
    )


class GeoService:

    @staticmethod
    def haversine(a: Coordinates, b: Coordinates) -> float:
        """Great-circle distance in km, rounded to 2 decimals."""
        d_lat = math.radians(b.lat - a.lat)
        d_lng = math.radians(b.lng - a.lng)
        h = (
            math.sin(d_lat / 2) ** 2
            + math.cos(math.radians(a.lat))
            * math.cos(math.radians(b.lat))
            * math.sin(d_lng / 2) ** 2
        )
        c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
        return round(const.EARTH_RADIUS_KM * c, 2)

    @staticmethod
    def validate_coordinates(coordinates) -> bool:
        if coordinates is None:
            return False
        lat, lng = coordinates.lat, coordinates.lng
        if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
            return False
        if math.isnan(lat) or math.isnan(lng):
            return False
        return -90 <= lat <= 90 and -180 <= lng <= 180

    @staticmethod
    def known_area_coordinates(address: Address) -> Optional[Coordinates]:
        text = f"{address.address} {address.city} {address.state}".lower()
        for keywords, coordinates in KNOWN_AREAS:
            if all(keyword in text for keyword in keywords):
                return coordinates
        return None

    @staticmethod
    def nominatim_queries(address: Address) -> List[str]:
        country = address.country or "Nigeria"
        queries = []
        if address.address and address.city and address.state:
            queries.append(f"{address.address}, {address.city}, {address.state}, {country}")
        if address.address and address.city:
            queries.append(f"{address.address}, {address.city}, {country}")
        if address.city and address.state:
            queries.append(f"{address.city}, {address.state}, {country}")
        if address.city:
            queries.append(f"{address.city}, {country}")
        return queries

    @staticmethod
    def fallback_coordinates(address: Address) -> GeocodeResult:
        """City/state lookup table. Always returns a coordinate pair."""
        city = (address.city or "").lower()
        state = (address.state or "").lower()

        coordinates = CITY_COORDINATES.get(city)
        if not coordinates and city:
            for name, coords in CITY_COORDINATES.items():
                if name in city or city in name:
                    coordinates = coords
                    break

        if not coordinates:
            for keywords, name in STATE_FALLBACKS:
                if any(keyword in state for keyword in keywords):
                    coordinates = CITY_COORDINATES[name]
                    break

        if not coordinates:
            coordinates = CITY_COORDINATES[DEFAULT_CITY]

        return GeocodeResult(
            coordinates=coordinates,
            formatted_address=address.display(),
            confidence=const.CONFIDENCE_CITY_FALLBACK,
        )

    @staticmethod
    def geocode_address(address: Address) -> GeocodeResult:
        known = GeoService.known_area_coordinates(address)
        if known:
            return GeocodeResult(
                coordinates=known,
                formatted_address=address.display(),
                confidence=const.CONFIDENCE_KNOWN_AREA,
            )

        headers = {"User-Agent": _setting("GEOCODER_USER_AGENT")}
        for query in GeoService.nominatim_queries(address):
            params = {
                "q": query,
                "format": "json",
                "addressdetails": 1,
                "limit": 3,
                "countrycodes": "ng",
            }
            try:
                res = requests.get(
                    _setting("NOMINATIM_URL"),
                    params=params,
                    headers=headers,
                    timeout=_setting("HTTP_TIMEOUT"),
                )
                if res.status_code != 200:
                    logger.warning(f"Nominatim returned {res.status_code} for '{query}'")
                    continue
                data = res.json()
                if not data:
                    continue
                first = data[0]
                coordinates = Coordinates(float(first["lat"]), float(first["lon"]))
                if not GeoService.validate_coordinates(coordinates):
                    continue
                return GeocodeResult(
                    coordinates=coordinates,
                    formatted_address=first.get("display_name") or address.display(),
                    confidence=const.CONFIDENCE_EXACT,
                )
            except (requests.RequestException, ValueError, KeyError, TypeError) as e:
                logger.warning(f"Nominatim query '{query}' failed: {e}")
                continue

        logger.info(f"Geocoding fell back to city table for '{address.display()}'")
        return GeoService.fallback_coordinates(address)

    @staticmethod
    def straight_line_route(origin: Coordinates, destination: Coordinates) -> RouteResult:
        distance = GeoService.haversine(origin, destination)
        return RouteResult(
            distance_km=max(distance, const.MIN_ROUTE_DISTANCE_KM),
            duration_seconds=max(
                distance * const.FALLBACK_SECONDS_PER_KM,
                const.MIN_ROUTE_DURATION_SECONDS,
            ),
            source="haversine",
        )

    @staticmethod
    def calculate_route(origin: Coordinates, destination: Coordinates) -> RouteResult:
        if (
            abs(origin.lat - destination.lat) < const.SAME_POINT_DEGREES
            and abs(origin.lng - destination.lng) < const.SAME_POINT_DEGREES
        ):
            return RouteResult(
                distance_km=const.MIN_ROUTE_DISTANCE_KM,
                duration_seconds=const.MIN_ROUTE_DURATION_SECONDS,
                source="same_point",
            )

        url = (
            f"{_setting('OSRM_URL').rstrip('/')}/"
            f"{origin.lng},{origin.lat};{destination.lng},{destination.lat}"
        )
        params = {
            "overview": "false",
            "alternatives": "false",
            "steps": "false",
        }
        try:
            res = requests.get(url, params=params, timeout=_setting("HTTP_TIMEOUT"))
            if res.status_code != 200:
                raise ValueError(f"OSRM returned {res.status_code}")
            body = res.json()
            if not isinstance(body, dict):
                raise ValueError("Unexpected OSRM response body")
            routes = body.get("routes") or []
            if not routes:
                raise ValueError("No route found")
            route = routes[0]
            return RouteResult(
                distance_km=round(float(route["distance"]) / 1000, 2),
                duration_seconds=float(route["duration"]),
            )
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Route calculation failed, using straight line: {e}")
            return GeoService.straight_line_route(origin, destination)

    @staticmethod
    def delivery_details(vendor_address: Address, customer_address: Address):
        vendor_geocode = GeoService.geocode_address(vendor_address)
        customer_geocode = GeoService.geocode_address(customer_address)
        route = GeoService.calculate_route(
            vendor_geocode.coordinates, customer_geocode.coordinates
        )

        low_confidence = min(
            vendor_geocode.confidence, customer_geocode.confidence
        ) < const.LOW_CONFIDENCE_THRESHOLD

        return {
            "distance_km": route.distance_km,
            "route_duration_seconds": route.duration_seconds,
            "route_source": route.source,
            "delivery_fee": PricingService.calculate_delivery_fee(route.distance_km),
            "estimated_delivery_minutes": PricingService.calculate_estimated_delivery_time(
                route.distance_km, route.duration_seconds
            ),
            "vendor": vendor_geocode.to_dict(),
            "customer": customer_geocode.to_dict(),
            "low_confidence": low_confidence,
        }
