"""Atlas Agent - Publish itineraries as day-by-day travel guides."""

from .handler import (
    list_atlas_files_handler,
    get_atlas_file_handler,
    create_atlas_file_handler,
    update_atlas_file_handler,
    delete_atlas_file_handler,
    import_itinerary_handler,
    add_day_handler,
    remove_day_handler,
)

__all__ = [
    'list_atlas_files_handler',
    'get_atlas_file_handler',
    'create_atlas_file_handler',
    'update_atlas_file_handler',
    'delete_atlas_file_handler',
    'import_itinerary_handler',
    'add_day_handler',
    'remove_day_handler',
]
