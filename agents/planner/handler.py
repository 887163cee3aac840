"""API handlers for the itinerary planner.

Each handler returns a ``(payload, status)`` tuple. Errors are returned as
``{'error': message}`` with a non-200 status for the server to report.
"""

import traceback
from typing import Any, Dict, List, Optional

import database as db
import generation_worker

from .chat import PlannerAssistant, welcome_message
from .generator import ItineraryGenerator, normalize_activities
from .mapper import build_map_data
from .models import Activity, TripRequest, parse_bool, parse_trip_length
from .ordering import changed_positions, move_to_day, next_position, reorder
from .profiles import VALID_BUDGETS, VALID_PACES, get_all_options

# camelCase keys sent by the planner UI -> column names
ITINERARY_KEY_MAP = {
    'tripLength': 'trip_length',
    'startDate': 'start_date',
    'endDate': 'end_date',
    'travelPace': 'travel_pace',
    'travelerProfiles': 'traveler_profiles',
    'isPublished': 'is_published',
    'thumbnailUrl': 'thumbnail_url',
}


def _owned_itinerary(user_id: str, itinerary_id: int) -> Optional[Dict[str, Any]]:
    """Get an itinerary only if it belongs to the user."""
    itinerary = db.get_itinerary(itinerary_id)
    if itinerary and itinerary.get('user_id') == user_id:
        return itinerary
    return None


def _readable_itinerary(user_id: str, itinerary_id: int) -> Optional[Dict[str, Any]]:
    """Get an itinerary the user owns or that has been published."""
    itinerary = db.get_itinerary(itinerary_id)
    if itinerary and (itinerary.get('user_id') == user_id or itinerary.get('is_published')):
        return itinerary
    return None


def _owned_activity(user_id: str, activity_id: int) -> Optional[Dict[str, Any]]:
    activity = db.get_activity(activity_id)
    if activity and _owned_itinerary(user_id, activity['itinerary_id']):
        return activity
    return None


def _check_day(itinerary: Dict[str, Any], day_number: Any) -> int:
    try:
        day = int(day_number)
    except (ValueError, TypeError):
        raise ValueError("Invalid day number")
    if day < 1 or day > (itinerary.get('trip_length') or 1):
        raise ValueError(f"Day must be between 1 and {itinerary.get('trip_length')}")
    return day


def options_handler() -> Dict[str, Any]:
    """Enumerations used by the itinerary creation form."""
    return {'success': True, **get_all_options()}, 200


# ============ AI endpoints ============

def generate_itinerary_handler(user_id: str, data: Dict[str, Any],
                               generator: Optional[ItineraryGenerator] = None) -> Dict[str, Any]:
    """Generate an itinerary for a trip request.

    When ``itineraryId`` names one of the user's itineraries the result
    replaces that itinerary's activities and accommodations.
    """
    try:
        request = TripRequest.from_payload(data)
    except ValueError as e:
        return {'error': str(e)}, 400

    itinerary = None
    if request.itinerary_id is not None:
        itinerary = _owned_itinerary(user_id, request.itinerary_id)
        if not itinerary:
            return {'error': 'Itinerary not found'}, 404

    generator = generator or ItineraryGenerator()
    try:
        result = generator.generate(request)
    except Exception as e:
        traceback.print_exc()
        return {'error': f'Failed to generate itinerary: {e}'}, 500

    persisted = False
    if itinerary:
        rows = db.replace_itinerary_plan(
            itinerary['id'],
            [a.to_dict() for a in result.activities],
            [a.to_dict() for a in result.accommodations],
        )
        if rows is None:
            return {'error': 'Failed to save generated itinerary'}, 500
        db.set_generation_status(itinerary['id'], 'ready')
        persisted = True

    return {'success': True, 'itinerary': result.to_dict(), 'persisted': persisted}, 200


def chat_handler(user_id: str, data: Dict[str, Any],
                 assistant: Optional[PlannerAssistant] = None) -> Dict[str, Any]:
    """Answer a chat message about an itinerary.

    Args:
        user_id: The user's ID
        data: Request data with message, optional itineraryId and
            conversationHistory

    Returns:
        The assistant's response, any suggested activities, and a welcome
        message when the conversation has no history yet
    """
    message = str(data.get('message') or '').strip()
    if not message:
        return {'error': 'Message is required'}, 400

    history = data.get('conversationHistory', data.get('history')) or []
    if not isinstance(history, list):
        return {'error': 'conversationHistory must be a list'}, 400

    itinerary_id = data.get('itineraryId')
    if itinerary_id is not None:
        try:
            itinerary = _owned_itinerary(user_id, int(itinerary_id))
        except (ValueError, TypeError):
            return {'error': 'Invalid itineraryId'}, 400
        if not itinerary:
            return {'error': 'Itinerary not found'}, 404
        activities = db.get_activities(itinerary['id'])
    else:
        try:
            trip_length = parse_trip_length(data.get('tripLength', 1))
        except ValueError as e:
            return {'error': str(e)}, 400
        itinerary = {
            'destination': data.get('destination') or 'your destination',
            'trip_length': trip_length,
            'traveler_profiles': data.get('travelerProfiles') or [],
        }
        activities = []

    assistant = assistant or PlannerAssistant()
    try:
        response_text, suggested = assistant.reply(itinerary, activities, message, history)
    except Exception as e:
        traceback.print_exc()
        return {'error': f'Chat failed: {e}'}, 500

    return {
        'success': True,
        'response': response_text,
        'updatedActivities': [a.to_dict() for a in suggested] if suggested else None,
        # Greeting for the chat panel on the first message of a conversation
        'welcomeMessage': None if history else welcome_message(itinerary),
    }, 200


# ============ Itineraries ============

def create_itinerary_handler(user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Create an itinerary and queue its generation.

    Generation is skipped when the body has ``generate: false``.
    """
    try:
        request = TripRequest.from_payload(data)
        request.validate_profiles()
    except ValueError as e:
        return {'error': str(e)}, 400

    title = str(data.get('title') or '').strip() or request.default_title

    itinerary = db.create_itinerary(user_id, {
        'title': title,
        'destination': request.destination,
        'trip_length': request.trip_length,
        'start_date': data.get('startDate') or None,
        'end_date': data.get('endDate') or None,
        'travel_pace': request.travel_pace,
        'budget': request.budget,
        'traveler_profiles': request.traveler_profiles,
        'is_published': False,
    })
    if not itinerary:
        return {'error': 'Failed to create itinerary'}, 500

    if data.get('generate', True) is not False:
        generation_worker.queue_generation(itinerary['id'])
        itinerary = db.get_itinerary(itinerary['id'])

    return {'success': True, 'itinerary': itinerary}, 200


def list_itineraries_handler(user_id: str) -> Dict[str, Any]:
    return {'success': True, 'itineraries': db.get_user_itineraries(user_id)}, 200


def get_itinerary_handler(user_id: str, itinerary_id: int) -> Dict[str, Any]:
    """Get an itinerary with its activities and accommodations."""
    itinerary = _readable_itinerary(user_id, itinerary_id)
    if not itinerary:
        return {'error': 'Itinerary not found'}, 404

    return {
        'success': True,
        'itinerary': itinerary,
        'activities': db.get_activities(itinerary_id),
        'accommodations': db.get_accommodations(itinerary_id),
        'is_owner': itinerary.get('user_id') == user_id,
    }, 200


def _itinerary_updates(data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate and convert an itinerary update body to column values."""
    updates = {}
    for key, value in data.items():
        updates[ITINERARY_KEY_MAP.get(key, key)] = value

    updates = {k: v for k, v in updates.items() if k in db.ITINERARY_FIELDS}

    if 'title' in updates:
        updates['title'] = str(updates['title'] or '').strip()
        if not updates['title']:
            raise ValueError("Title is required")
    if 'destination' in updates:
        updates['destination'] = str(updates['destination'] or '').strip()
        if not updates['destination']:
            raise ValueError("Please enter a destination")
    if 'trip_length' in updates:
        updates['trip_length'] = parse_trip_length(updates['trip_length'])
    if 'travel_pace' in updates and updates['travel_pace'] not in VALID_PACES:
        raise ValueError(f"Unknown travel pace: {updates['travel_pace']}")
    if 'budget' in updates and updates['budget'] not in VALID_BUDGETS:
        raise ValueError(f"Unknown budget: {updates['budget']}")
    if 'traveler_profiles' in updates:
        TripRequest(destination='', trip_length=1,
                    traveler_profiles=list(updates['traveler_profiles'] or [])).validate_profiles()
    if 'is_published' in updates:
        updates['is_published'] = parse_bool(updates['is_published'], 'isPublished')
    return updates


def update_itinerary_handler(user_id: str, itinerary_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
    if not _owned_itinerary(user_id, itinerary_id):
        return {'error': 'Itinerary not found'}, 404

    try:
        updates = _itinerary_updates(data)
    except ValueError as e:
        return {'error': str(e)}, 400

    if not updates:
        return {'error': 'No valid fields to update'}, 400

    if not db.update_itinerary(itinerary_id, updates):
        return {'error': 'Failed to update itinerary'}, 500

    return {'success': True, 'itinerary': db.get_itinerary(itinerary_id)}, 200


def delete_itinerary_handler(user_id: str, itinerary_id: int) -> Dict[str, Any]:
    if not _owned_itinerary(user_id, itinerary_id):
        return {'error': 'Itinerary not found'}, 404

    if not db.delete_itinerary(itinerary_id):
        return {'error': 'Failed to delete itinerary'}, 500

    return {'success': True}, 200


def duplicate_itinerary_handler(user_id: str, itinerary_id: int) -> Dict[str, Any]:
    """Copy an itinerary (own or published) into the user's itineraries."""
    if not _readable_itinerary(user_id, itinerary_id):
        return {'error': 'Itinerary not found'}, 404

    copy = db.duplicate_itinerary(itinerary_id, user_id)
    if not copy:
        return {'error': 'Failed to duplicate itinerary'}, 500

    return {'success': True, 'itinerary': copy}, 200


def share_itinerary_handler(user_id: str, itinerary_id: int) -> Dict[str, Any]:
    """Publish an itinerary and return its share path."""
    if not _owned_itinerary(user_id, itinerary_id):
        return {'error': 'Itinerary not found'}, 404

    if not db.update_itinerary(itinerary_id, {'is_published': True}):
        return {'error': 'Failed to share itinerary'}, 500

    return {'success': True, 'share_url': f'/itinerary/{itinerary_id}'}, 200


def save_itinerary_handler(user_id: str, itinerary_id: int) -> Dict[str, Any]:
    if not _owned_itinerary(user_id, itinerary_id):
        return {'error': 'Itinerary not found'}, 404

    if not db.touch_itinerary(itinerary_id):
        return {'error': 'Failed to save itinerary'}, 500

    itinerary = db.get_itinerary(itinerary_id)
    return {'success': True, 'saved_at': itinerary.get('updated_at')}, 200


def generation_status_handler(user_id: str, itinerary_id: int) -> Dict[str, Any]:
    """Polling endpoint for background generation."""
    itinerary = _readable_itinerary(user_id, itinerary_id)
    if not itinerary:
        return {'error': 'Itinerary not found'}, 404

    status = itinerary.get('generation_status') or 'idle'
    result = {
        'success': True,
        'itinerary_id': itinerary_id,
        'status': status,
        'ready': status == 'ready',
        'error': itinerary.get('generation_error'),
    }
    if status == 'ready':
        result['activity_count'] = len(db.get_activities(itinerary_id))
    elif status in ('pending', 'processing'):
        result['queue_size'] = generation_worker.get_queue_size()
    return result, 200


def map_handler(user_id: str, itinerary_id: int, day: Optional[str] = None) -> Dict[str, Any]:
    """Map markers for all days, or one day when ``day`` is a number."""
    itinerary = _readable_itinerary(user_id, itinerary_id)
    if not itinerary:
        return {'error': 'Itinerary not found'}, 404

    selected_day = None
    if day not in (None, '', 'all'):
        try:
            selected_day = int(day)
        except ValueError:
            return {'error': 'Invalid day'}, 400

    activities = db.get_activities(itinerary_id)
    return {'success': True, 'map': build_map_data(itinerary, activities, selected_day)}, 200


# ============ Activities ============

def list_activities_handler(user_id: str, itinerary_id: int) -> Dict[str, Any]:
    if not _readable_itinerary(user_id, itinerary_id):
        return {'error': 'Itinerary not found'}, 404
    return {'success': True, 'activities': db.get_activities(itinerary_id)}, 200


def add_activity_handler(user_id: str, itinerary_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
    """Append a new activity to the end of a day."""
    itinerary = _owned_itinerary(user_id, itinerary_id)
    if not itinerary:
        return {'error': 'Itinerary not found'}, 404

    try:
        day = _check_day(itinerary, data.get('day_number', data.get('dayNumber', 1)))
        position = next_position(db.get_activities(itinerary_id), day)
        activity = Activity.from_dict(data, day_number=day, position=position)
    except ValueError as e:
        return {'error': str(e)}, 400

    row = db.add_activity(itinerary_id, activity.to_dict())
    if not row:
        return {'error': 'Failed to add activity'}, 500

    return {'success': True, 'activity': row}, 200


def update_activity_handler(user_id: str, activity_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
    existing = _owned_activity(user_id, activity_id)
    if not existing:
        return {'error': 'Activity not found'}, 404

    fields = [k for k in data if k in db.ACTIVITY_FIELDS]
    if not fields:
        return {'error': 'No valid fields to update'}, 400

    try:
        if 'day_number' in data:
            _check_day(db.get_itinerary(existing['itinerary_id']), data['day_number'])
        normalized = Activity.from_dict({**existing, **data}).to_dict()
    except ValueError as e:
        return {'error': str(e)}, 400

    if not db.update_activity(activity_id, {k: normalized[k] for k in fields}):
        return {'error': 'Failed to update activity'}, 500

    return {'success': True, 'activity': db.get_activity(activity_id)}, 200


def delete_activity_handler(user_id: str, activity_id: int) -> Dict[str, Any]:
    if not _owned_activity(user_id, activity_id):
        return {'error': 'Activity not found'}, 404

    if not db.delete_activity(activity_id):
        return {'error': 'Failed to delete activity'}, 500

    return {'success': True}, 200


def load_activities_handler(user_id: str, itinerary_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
    """Replace an itinerary's activities with a suggested list."""
    itinerary = _owned_itinerary(user_id, itinerary_id)
    if not itinerary:
        return {'error': 'Itinerary not found'}, 404

    raw = data.get('activities')
    if not isinstance(raw, list):
        return {'error': 'activities must be a list'}, 400

    try:
        activities = normalize_activities(raw, itinerary.get('trip_length') or 1)
    except ValueError as e:
        return {'error': str(e)}, 400

    rows = db.replace_itinerary_plan(itinerary_id, [a.to_dict() for a in activities])
    if rows is None:
        return {'error': 'Failed to load activities'}, 500

    return {'success': True, 'activities': rows}, 200


def _write_positions(itinerary_id: int, before: List[Dict[str, Any]],
                     after: Optional[List[Dict[str, Any]]]) -> Dict[str, Any]:
    if after is None:
        return {'success': True, 'activities': before, 'changed': 0}, 200

    changes = changed_positions(before, after)
    if not db.update_activity_positions(changes):
        return {'error': 'Failed to update activity order'}, 500

    return {'success': True, 'activities': db.get_activities(itinerary_id), 'changed': len(changes)}, 200


def reorder_activities_handler(user_id: str, itinerary_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
    """Apply a drag-and-drop of ``activeId`` onto ``overId``."""
    if not _owned_itinerary(user_id, itinerary_id):
        return {'error': 'Itinerary not found'}, 404

    activities = db.get_activities(itinerary_id)
    return _write_positions(itinerary_id, activities,
                            reorder(activities, data.get('activeId'), data.get('overId')))


def move_activity_handler(user_id: str, itinerary_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
    """Move an activity into another day, optionally at an index within it."""
    itinerary = _owned_itinerary(user_id, itinerary_id)
    if not itinerary:
        return {'error': 'Itinerary not found'}, 404

    try:
        day = _check_day(itinerary, data.get('dayNumber'))
        index = data.get('index')
        index = int(index) if index is not None else None
    except (ValueError, TypeError) as e:
        return {'error': str(e) or 'Invalid index'}, 400

    activities = db.get_activities(itinerary_id)
    moved = move_to_day(activities, data.get('activityId'), day, index)
    if moved is None:
        return {'error': 'Activity not found'}, 404

    return _write_positions(itinerary_id, activities, moved)
