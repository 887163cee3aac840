"""Data models for itinerary planning."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .profiles import (
    DEFAULT_BUDGET,
    DEFAULT_PACE,
    MAX_TRAVELER_PROFILES,
    VALID_ACCOMMODATION_TYPES,
    VALID_BUDGETS,
    VALID_PACES,
    VALID_PROFILE_IDS,
    normalize_category,
)

MAX_TRIP_LENGTH = 365


def _optional_int(value: Any, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (ValueError, TypeError):
        raise ValueError(f"Invalid {field_name}")


def _optional_float(value: Any, field_name: str) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (ValueError, TypeError):
        raise ValueError(f"Invalid {field_name}")


def _text(value: Any, field_name: str) -> str:
    """Coerce a scalar to stripped text; None becomes ''."""
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raise ValueError(f"Invalid {field_name}")
    return str(value).strip()


TRUE_STRINGS = ("true", "1", "yes", "on")
FALSE_STRINGS = ("false", "0", "no", "off", "")


def parse_bool(value: Any, field_name: str = "flag") -> bool:
    """Parse a JSON boolean, accepting "true"/"false" style strings and 0/1."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    raise ValueError(f"Invalid {field_name}")


def parse_trip_length(value: Any) -> int:
    """Parse and bound-check a trip length in days."""
    try:
        trip_length = int(value)
    except (ValueError, TypeError):
        raise ValueError("Invalid number of days")
    if trip_length < 1 or trip_length > MAX_TRIP_LENGTH:
        raise ValueError(f"Number of days must be between 1 and {MAX_TRIP_LENGTH}")
    return trip_length


@dataclass
class Activity:
    """A single scheduled item within an itinerary day."""

    title: str = "New Activity"
    day_number: int = 1
    position: int = 0
    description: str = ""
    location: str = ""
    city_name: Optional[str] = None
    category: str = "other"
    duration_minutes: Optional[int] = 60
    estimated_cost_min: Optional[int] = None
    estimated_cost_max: Optional[int] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    time_of_day: Optional[str] = None
    booking_url: Optional[str] = None
    booking_required: bool = False
    custom_notes: str = ""

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], day_number: Optional[int] = None,
                  position: Optional[int] = None) -> "Activity":
        """Build an activity from request or LLM data, filling defaults.

        Raises ValueError on non-numeric values in numeric fields.
        """
        day = day_number if day_number is not None else _optional_int(data.get("day_number"), "day_number")
        if day is None or day < 1:
            day = 1

        pos = position if position is not None else _optional_int(data.get("position"), "position")

        duration = _optional_int(data.get("duration_minutes"), "duration_minutes")

        return cls(
            title=_text(data.get("title"), "title") or "New Activity",
            day_number=day,
            position=pos or 0,
            description=_text(data.get("description"), "description"),
            location=_text(data.get("location"), "location"),
            city_name=_text(data.get("city_name"), "city_name") or None,
            category=normalize_category(data.get("category")),
            duration_minutes=duration if duration else 60,
            estimated_cost_min=_optional_int(data.get("estimated_cost_min"), "estimated_cost_min"),
            estimated_cost_max=_optional_int(data.get("estimated_cost_max"), "estimated_cost_max"),
            latitude=_optional_float(data.get("latitude"), "latitude"),
            longitude=_optional_float(data.get("longitude"), "longitude"),
            time_of_day=_text(data.get("time_of_day"), "time_of_day") or None,
            booking_url=_text(data.get("booking_url"), "booking_url") or None,
            booking_required=parse_bool(data.get("booking_required"), "booking_required"),
            custom_notes=_text(data.get("custom_notes"), "custom_notes"),
        )

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "day_number": self.day_number,
            "position": self.position,
            "description": self.description,
            "location": self.location,
            "city_name": self.city_name,
            "category": self.category,
            "duration_minutes": self.duration_minutes,
            "estimated_cost_min": self.estimated_cost_min,
            "estimated_cost_max": self.estimated_cost_max,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "time_of_day": self.time_of_day,
            "booking_url": self.booking_url,
            "booking_required": self.booking_required,
            "custom_notes": self.custom_notes,
        }


@dataclass
class Accommodation:
    """A place to stay suggested for an itinerary."""

    name: str
    type: str = "hotel"
    location: str = ""
    price_per_night: Optional[int] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Accommodation":
        acc_type = data.get("type") or "other"
        if acc_type not in VALID_ACCOMMODATION_TYPES:
            acc_type = "other"
        return cls(
            name=_text(data.get("name"), "name") or "Accommodation",
            type=acc_type,
            location=_text(data.get("location"), "location"),
            price_per_night=_optional_int(data.get("price_per_night"), "price_per_night"),
            latitude=_optional_float(data.get("latitude"), "latitude"),
            longitude=_optional_float(data.get("longitude"), "longitude"),
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.type,
            "location": self.location,
            "price_per_night": self.price_per_night,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }


@dataclass
class TripRequest:
    """The preferences an itinerary is generated from."""

    destination: str
    trip_length: int
    travel_pace: str = DEFAULT_PACE
    budget: str = DEFAULT_BUDGET
    traveler_profiles: List[str] = field(default_factory=list)
    itinerary_id: Optional[int] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "TripRequest":
        """Build from the camelCase body sent by the planner UI."""
        destination = str(data.get("destination") or "").strip()
        if not destination:
            raise ValueError("Please enter a destination")

        trip_length = parse_trip_length(data.get("tripLength", 7))

        pace = data.get("travelPace") or DEFAULT_PACE
        if pace not in VALID_PACES:
            pace = DEFAULT_PACE

        budget = data.get("budget") or DEFAULT_BUDGET
        if budget not in VALID_BUDGETS:
            budget = DEFAULT_BUDGET

        profiles = data.get("travelerProfiles") or []
        if not isinstance(profiles, list):
            raise ValueError("travelerProfiles must be a list")

        return cls(
            destination=destination,
            trip_length=trip_length,
            travel_pace=pace,
            budget=budget,
            traveler_profiles=[str(p) for p in profiles],
            itinerary_id=_optional_int(data.get("itineraryId"), "itineraryId"),
        )

    @classmethod
    def from_itinerary(cls, itinerary: Dict[str, Any]) -> "TripRequest":
        """Build from a stored itinerary row."""
        return cls(
            destination=itinerary.get("destination") or "",
            trip_length=itinerary.get("trip_length") or 1,
            travel_pace=itinerary.get("travel_pace") or DEFAULT_PACE,
            budget=itinerary.get("budget") or DEFAULT_BUDGET,
            traveler_profiles=list(itinerary.get("traveler_profiles") or []),
            itinerary_id=itinerary.get("id"),
        )

    def validate_profiles(self) -> None:
        """Enforce the profile rules of the itinerary creation form."""
        if not self.traveler_profiles:
            raise ValueError("Please select at least one traveler profile")
        if len(self.traveler_profiles) > MAX_TRAVELER_PROFILES:
            raise ValueError(f"Please select up to {MAX_TRAVELER_PROFILES} traveler profiles")
        unknown = [p for p in self.traveler_profiles if p not in VALID_PROFILE_IDS]
        if unknown:
            raise ValueError(f"Unknown traveler profile: {unknown[0]}")

    @property
    def default_title(self) -> str:
        return f"{self.destination} - {self.trip_length} days"


@dataclass
class GeneratedItinerary:
    """Result of an itinerary generation."""

    summary: str
    activities: List[Activity] = field(default_factory=list)
    accommodations: List[Accommodation] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "summary": self.summary,
            "activities": [a.to_dict() for a in self.activities],
            "accommodations": [a.to_dict() for a in self.accommodations],
        }
