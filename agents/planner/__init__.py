"""Planner Agent - AI itinerary generation, chat and drag-and-drop editing."""

from .handler import (
    options_handler,
    generate_itinerary_handler,
    chat_handler,
    create_itinerary_handler,
    list_itineraries_handler,
    get_itinerary_handler,
    update_itinerary_handler,
    delete_itinerary_handler,
    duplicate_itinerary_handler,
    share_itinerary_handler,
    save_itinerary_handler,
    generation_status_handler,
    map_handler,
    list_activities_handler,
    add_activity_handler,
    update_activity_handler,
    delete_activity_handler,
    load_activities_handler,
    reorder_activities_handler,
    move_activity_handler,
)

__all__ = [
    'options_handler',
    'generate_itinerary_handler',
    'chat_handler',
    'create_itinerary_handler',
    'list_itineraries_handler',
    'get_itinerary_handler',
    'update_itinerary_handler',
    'delete_itinerary_handler',
    'duplicate_itinerary_handler',
    'share_itinerary_handler',
    'save_itinerary_handler',
    'generation_status_handler',
    'map_handler',
    'list_activities_handler',
    'add_activity_handler',
    'update_activity_handler',
    'delete_activity_handler',
    'load_activities_handler',
    'reorder_activities_handler',
    'move_activity_handler',
]
