"""Map data for itineraries, and geocoding of activities using OpenStreetMap/Nominatim."""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

import requests

from .ordering import sort_activities
from .profiles import get_category_info

# Maximum number of activities to geocode in one pass (to avoid long waits)
MAX_GEOCODE_LOCATIONS = 50

# Nominatim requires a delay between requests (1 request per second)
NOMINATIM_DELAY = 1.1
NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
USER_AGENT = "TravelAtlas/1.0"

GOOGLE_MAPS_SEARCH_URL = "https://www.google.com/maps/search/?api=1&query={lat},{lng}"
GOOGLE_MAPS_DIRECTIONS_URL = "https://www.google.com/maps/dir/"


def has_coordinates(activity: Dict[str, Any]) -> bool:
    return activity.get("latitude") is not None and activity.get("longitude") is not None


def filter_activities(activities: List[Dict[str, Any]], day: Optional[int] = None) -> List[Dict[str, Any]]:
    """Activities with coordinates, optionally only those of one day, in visiting order."""
    located = [a for a in sort_activities(activities) if has_coordinates(a)]
    if day is None:
        return located
    return [a for a in located if a.get("day_number") == day]


def google_maps_search_url(activity: Dict[str, Any]) -> str:
    return GOOGLE_MAPS_SEARCH_URL.format(lat=activity["latitude"], lng=activity["longitude"])


def google_maps_directions_url(activities: List[Dict[str, Any]]) -> Optional[str]:
    """Directions through every activity in order, or None without waypoints."""
    waypoints = [f"{a['latitude']},{a['longitude']}" for a in activities if has_coordinates(a)]
    if not waypoints:
        return None
    return GOOGLE_MAPS_DIRECTIONS_URL + "/".join(waypoints)


def build_map_data(itinerary: Dict[str, Any], activities: List[Dict[str, Any]],
                   day: Optional[int] = None) -> Dict[str, Any]:
    """Build markers and route links for the planner map view.

    With ``day`` None every located activity is included and labelled with
    its day (``D2``); otherwise markers are numbered within the day.
    """
    located = filter_activities(activities)
    days = sorted({a.get("day_number") for a in located if a.get("day_number") is not None})
    selected = filter_activities(activities, day)

    markers = []
    for index, activity in enumerate(selected):
        info = get_category_info(activity.get("category"))
        markers.append({
            "id": activity.get("id"),
            "title": activity.get("title"),
            "day_number": activity.get("day_number"),
            "position": {"lat": float(activity["latitude"]), "lng": float(activity["longitude"])},
            "label": f"D{activity.get('day_number')}" if day is None else str(index + 1),
            "category": info["value"],
            "color": info["color"],
            "emoji": info["emoji"],
            "location": activity.get("location"),
            "duration_minutes": activity.get("duration_minutes"),
            "estimated_cost_min": activity.get("estimated_cost_min"),
            "estimated_cost_max": activity.get("estimated_cost_max"),
            "maps_url": google_maps_search_url(activity),
        })

    if markers:
        center = {
            "lat": sum(m["position"]["lat"] for m in markers) / len(markers),
            "lng": sum(m["position"]["lng"] for m in markers) / len(markers),
        }
        zoom = 12
    else:
        center = {"lat": 0, "lng": 0}
        zoom = 2

    return {
        "itinerary_id": itinerary.get("id"),
        "destination": itinerary.get("destination"),
        "selected_day": day if day is not None else "all",
        "days": days,
        "center": center,
        "zoom": zoom,
        "markers": markers,
        "directions_url": google_maps_directions_url(selected),
        "total_located": len(located),
        "total_activities": len(activities),
    }


class Geocoder:
    """Geocode activity locations with Nominatim (OpenStreetMap)."""

    def __init__(self):
        self._geocode_failures = 0
        self._last_geocode_time = 0  # Rate limiting for Nominatim
        self._cache: Dict[str, Optional[dict]] = {}

    def geocode_activities(self, activities: List[Dict[str, Any]], region_hint: str = "") -> int:
        """Fill latitude/longitude on activities that lack them.

        Activities are updated in place. Returns the number geocoded.
        """
        pending = [a for a in activities if not has_coordinates(a)]
        geocoded = 0

        for activity in pending[:MAX_GEOCODE_LOCATIONS]:
            # Stop if too many failures (likely network/rate limit issue)
            if self._geocode_failures >= 3:
                print(f"[GEOCODING] Stopping after {self._geocode_failures} consecutive failures")
                break
            if self._geocode_activity(activity, region_hint):
                geocoded += 1

        if len(pending) > MAX_GEOCODE_LOCATIONS:
            print(f"[GEOCODING] Only geocoded {MAX_GEOCODE_LOCATIONS} of {len(pending)} activities")

        return geocoded

    def _geocode_activity(self, activity: Dict[str, Any], region_hint: str = "") -> bool:
        title = activity.get("title") or ""
        location = activity.get("location") or ""

        queries = []
        if location:
            if region_hint and region_hint.lower() not in location.lower():
                queries.append(f"{location}, {region_hint}")
            queries.append(location)
        if title:
            if region_hint:
                queries.append(f"{title}, {region_hint}")
            queries.append(title)

        for query in queries:
            result = self.geocode(query)
            if result:
                activity["latitude"] = result["lat"]
                activity["longitude"] = result["lng"]
                self._geocode_failures = 0
                return True

        # No results found
        self._geocode_failures += 1
        return False

    def geocode(self, query: str) -> Optional[dict]:
        """Look up a query and return ``{lat, lng, address}`` or None."""
        if query in self._cache:
            return self._cache[query]

        try:
            # Rate limiting - Nominatim requires max 1 request per second
            elapsed = time.time() - self._last_geocode_time
            if elapsed < NOMINATIM_DELAY:
                time.sleep(NOMINATIM_DELAY - elapsed)

            params = {
                "q": query,
                "format": "json",
                "limit": 5,
            }
            headers = {"User-Agent": USER_AGENT}

            self._last_geocode_time = time.time()
            response = requests.get(NOMINATIM_URL, params=params, headers=headers, timeout=10)
            data = response.json()
        except requests.Timeout:
            print(f"[GEOCODING] Timed out for: {query}")
            return None
        except Exception as e:
            print(f"[GEOCODING] Failed for {query}: {e}")
            return None

        result = None
        if data:
            # Prefer places and attractions over streets
            preferred_classes = ['place', 'tourism', 'building', 'amenity', 'leisure', 'natural']
            best = next((r for r in data if r.get('class', '') in preferred_classes), data[0])
            result = {
                "lat": float(best["lat"]),
                "lng": float(best["lon"]),
                "address": best.get("display_name", ""),
            }

        self._cache[query] = result
        return result
