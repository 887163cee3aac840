"""Explore Agent - Destinations, favorite places and the atlas globe."""

from .handler import (
    destinations_handler,
    list_favorite_places_handler,
    add_favorite_place_handler,
    globe_markers_handler,
)

__all__ = [
    'destinations_handler',
    'list_favorite_places_handler',
    'add_favorite_place_handler',
    'globe_markers_handler',
]
