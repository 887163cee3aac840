"""API handlers for Atlas Files (published travel guides)."""

from datetime import datetime, timezone
from typing import Any, Dict

import auth
import database as db
from agents.planner.models import parse_bool

from .content import add_day, import_from_itinerary, normalize_content, remove_day


def _with_owner(atlas_file: Dict[str, Any], user_id: str) -> Dict[str, Any]:
    return {**atlas_file, 'is_owner': atlas_file.get('author_id') == user_id,
            'is_public': atlas_file.get('published_at') is not None}


def _owned_atlas_file(user_id: str, atlas_id: int):
    atlas_file = db.get_atlas_file(atlas_id)
    if atlas_file and atlas_file.get('author_id') == user_id:
        return atlas_file
    return None


def _atlas_values(data: Dict[str, Any], existing: Dict[str, Any] = None) -> Dict[str, Any]:
    """Validate an editor body and convert it to column values."""
    title = str(data.get('title') or '').strip()
    if not title:
        raise ValueError("Please enter a title")

    source = data.get('content', existing.get('content') if existing else None)
    content = normalize_content(source)

    if 'is_public' in data:
        is_public = parse_bool(data['is_public'], 'is_public')
    else:
        is_public = bool(existing and existing.get('published_at'))

    if not is_public:
        published_at = None
    elif existing and existing.get('published_at'):
        published_at = existing['published_at']
    else:
        published_at = datetime.now(timezone.utc).isoformat()

    return {
        'title': title,
        'description': data.get('description', existing.get('description') if existing else '') or '',
        'destination': str(data.get('destination', existing.get('destination') if existing else '') or '').strip(),
        'cover_image_url': data.get('cover_image_url', existing.get('cover_image_url') if existing else None) or None,
        'content': content,
        'trip_length': len(content['days']),
        'published_at': published_at,
    }


def list_atlas_files_handler(user_id: str, mine: bool = False) -> Dict[str, Any]:
    """Published atlas files, or the user's own including drafts."""
    if mine:
        files = db.get_user_atlas_files(user_id)
    else:
        files = db.get_published_atlas_files()
    return {'success': True, 'atlas_files': [_with_owner(f, user_id) for f in files]}, 200


def get_atlas_file_handler(user_id: str, atlas_id: int) -> Dict[str, Any]:
    atlas_file = db.get_atlas_file(atlas_id)
    if not atlas_file:
        return {'error': 'Atlas file not found'}, 404

    # Drafts are only visible to their author
    if atlas_file.get('published_at') is None and atlas_file.get('author_id') != user_id:
        return {'error': 'Atlas file not found'}, 404

    return {'success': True, 'atlas_file': _with_owner(atlas_file, user_id)}, 200


def create_atlas_file_handler(user: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
    """Create an atlas file authored by the user.

    Args:
        user: The resolved user (id, email, metadata)
        data: Editor fields: title, description, destination,
            cover_image_url, content, is_public

    Returns:
        The stored atlas file or error
    """
    try:
        values = _atlas_values(data)
    except ValueError as e:
        return {'error': str(e)}, 400

    values['author'] = auth.get_display_name(user)
    atlas_file = db.create_atlas_file(user['id'], values)
    if not atlas_file:
        return {'error': 'Failed to save atlas file'}, 500

    return {'success': True, 'atlas_file': _with_owner(atlas_file, user['id'])}, 200


def update_atlas_file_handler(user: Dict[str, Any], atlas_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
    existing = _owned_atlas_file(user['id'], atlas_id)
    if not existing:
        return {'error': 'Atlas file not found'}, 404

    try:
        values = _atlas_values(data, existing)
    except ValueError as e:
        return {'error': str(e)}, 400

    values['author'] = auth.get_display_name(user)
    if not db.update_atlas_file(atlas_id, values):
        return {'error': 'Failed to save atlas file'}, 500

    return {'success': True, 'atlas_file': _with_owner(db.get_atlas_file(atlas_id), user['id'])}, 200


def delete_atlas_file_handler(user_id: str, atlas_id: int) -> Dict[str, Any]:
    if not _owned_atlas_file(user_id, atlas_id):
        return {'error': 'Atlas file not found'}, 404

    if not db.delete_atlas_file(atlas_id):
        return {'error': 'Failed to delete atlas file'}, 500

    return {'success': True}, 200


def import_itinerary_handler(user_id: str, itinerary_id: Any) -> Dict[str, Any]:
    """Build an atlas file draft from one of the user's itineraries."""
    try:
        itinerary_id = int(itinerary_id)
    except (ValueError, TypeError):
        return {'error': 'fromItinerary must be an itinerary id'}, 400

    itinerary = db.get_itinerary(itinerary_id)
    if not itinerary or (itinerary.get('user_id') != user_id and not itinerary.get('is_published')):
        return {'error': 'Itinerary not found'}, 404

    draft = import_from_itinerary(itinerary, db.get_activities(itinerary_id))
    return {'success': True, 'atlas_file': draft}, 200


def add_day_handler(user_id: str, atlas_id: int) -> Dict[str, Any]:
    existing = _owned_atlas_file(user_id, atlas_id)
    if not existing:
        return {'error': 'Atlas file not found'}, 404

    content = add_day(existing.get('content'))
    if not db.update_atlas_file(atlas_id, {'content': content, 'trip_length': len(content['days'])}):
        return {'error': 'Failed to add day'}, 500

    return {'success': True, 'atlas_file': _with_owner(db.get_atlas_file(atlas_id), user_id)}, 200


def remove_day_handler(user_id: str, atlas_id: int, day_number: int) -> Dict[str, Any]:
    existing = _owned_atlas_file(user_id, atlas_id)
    if not existing:
        return {'error': 'Atlas file not found'}, 404

    try:
        content = remove_day(existing.get('content'), day_number)
    except ValueError as e:
        return {'error': str(e)}, 400

    if not db.update_atlas_file(atlas_id, {'content': content, 'trip_length': len(content['days'])}):
        return {'error': 'Failed to remove day'}, 500

    return {'success': True, 'atlas_file': _with_owner(db.get_atlas_file(atlas_id), user_id)}, 200
