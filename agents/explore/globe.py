"""Globe markers for published atlas files.

Destinations are placed with a built-in table of city and country
coordinates; files whose destination is not in the table get no marker.
"""

from typing import Any, Dict, List, Optional

CITY_COORDS = {
    'tokyo': {'lat': 35.6762, 'lng': 139.6503},
    'paris': {'lat': 48.8566, 'lng': 2.3522},
    'rome': {'lat': 41.9028, 'lng': 12.4964},
    'bali': {'lat': -8.3405, 'lng': 115.092},
    'new york': {'lat': 40.7128, 'lng': -74.006},
    'dubai': {'lat': 25.2048, 'lng': 55.2708},
    'london': {'lat': 51.5074, 'lng': -0.1278},
    'barcelona': {'lat': 41.3874, 'lng': 2.1686},
    'bangkok': {'lat': 13.7563, 'lng': 100.5018},
    'sydney': {'lat': -33.8688, 'lng': 151.2093},
    'istanbul': {'lat': 41.0082, 'lng': 28.9784},
    'cape town': {'lat': -33.9249, 'lng': 18.4241},
    'rio de janeiro': {'lat': -22.9068, 'lng': -43.1729},
    'marrakech': {'lat': 31.6295, 'lng': -7.9811},
    'kyoto': {'lat': 35.0116, 'lng': 135.7681},
    'lisbon': {'lat': 38.7223, 'lng': -9.1393},
    'amsterdam': {'lat': 52.3676, 'lng': 4.9041},
    'prague': {'lat': 50.0755, 'lng': 14.4378},
    'buenos aires': {'lat': -34.6037, 'lng': -58.3816},
    'singapore': {'lat': 1.3521, 'lng': 103.8198},
    'japan': {'lat': 36.2048, 'lng': 138.2529},
    'italy': {'lat': 41.8719, 'lng': 12.5674},
    'france': {'lat': 46.2276, 'lng': 2.2137},
    'spain': {'lat': 40.4637, 'lng': -3.7492},
    'greece': {'lat': 39.0742, 'lng': 21.8243},
    'thailand': {'lat': 15.8700, 'lng': 100.9925},
    'portugal': {'lat': 39.3999, 'lng': -8.2245},
    'morocco': {'lat': 31.7917, 'lng': -7.0926},
    'mexico': {'lat': 23.6345, 'lng': -102.5528},
    'peru': {'lat': -9.1900, 'lng': -75.0152},
}


def get_coords(destination: Optional[str]) -> Optional[Dict[str, float]]:
    """Look up a destination: exact name first, then a substring either way."""
    if not destination:
        return None
    lower = destination.lower().strip()
    if not lower:
        return None
    if lower in CITY_COORDS:
        return CITY_COORDS[lower]
    for key, coords in CITY_COORDS.items():
        if key in lower or lower in key:
            return coords
    return None


def build_markers(atlas_files: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    markers = []
    for atlas_file in atlas_files:
        coords = get_coords(atlas_file.get('destination'))
        if not coords:
            continue
        markers.append({
            **coords,
            'id': atlas_file.get('id'),
            'title': atlas_file.get('title'),
            'destination': atlas_file.get('destination'),
        })
    return markers
