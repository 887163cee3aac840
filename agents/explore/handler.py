"""API handlers for browsing: destinations, favorite places and the globe."""

from typing import Any, Dict

import database as db

from .globe import build_markers


def destinations_handler() -> Dict[str, Any]:
    return {'data': db.get_destinations()}, 200


def list_favorite_places_handler() -> Dict[str, Any]:
    return {'success': True, 'places': db.get_favorite_places()}, 200


def add_favorite_place_handler(data: Dict[str, Any]) -> Dict[str, Any]:
    """Add a favorite place. The name is trimmed and must not be blank."""
    name = str(data.get('place_name') or data.get('placeName') or '').strip()
    if not name:
        return {'error': 'Please enter a place name'}, 400

    place = db.add_favorite_place(name)
    if not place:
        return {'error': 'Failed to save place'}, 500

    return {'success': True, 'place': place}, 200


def globe_markers_handler() -> Dict[str, Any]:
    """Markers for published atlas files with a known destination."""
    return {'success': True, 'markers': build_markers(db.get_published_atlas_files())}, 200
