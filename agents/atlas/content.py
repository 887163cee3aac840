"""Atlas File content: intro, day-by-day sections and tips.

Content is stored as JSON::

    {"intro": "<p>...</p>",
     "days": [{"dayNumber": 1, "title": "Day 1", "content": "<p>...</p>", "images": []}],
     "tips": "<p>...</p>"}
"""

from html import escape
from typing import Any, Dict, List, Optional

from agents.planner.ordering import group_by_day


def new_day(day_number: int, title: Optional[str] = None) -> Dict[str, Any]:
    return {'dayNumber': day_number, 'title': title or f'Day {day_number}', 'content': '', 'images': []}


def normalize_content(content: Any) -> Dict[str, Any]:
    """Return well-formed content with days renumbered 1..n.

    Missing or empty day lists become a single empty ``Day 1``.
    """
    if not isinstance(content, dict):
        content = {}

    days = []
    for raw in content.get('days') or []:
        if not isinstance(raw, dict):
            continue
        number = len(days) + 1
        images = raw.get('images') or []
        if not isinstance(images, list):
            images = []
        days.append({
            'dayNumber': number,
            'title': str(raw.get('title') or '').strip() or f'Day {number}',
            'content': raw.get('content') or '',
            'images': [str(url) for url in images if url],
        })

    if not days:
        days = [new_day(1)]

    return {
        'intro': content.get('intro') or '',
        'days': days,
        'tips': content.get('tips') or '',
    }


def renumber_days(days: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Set dayNumber to 1..n in list order, keeping custom titles."""
    return [{**day, 'dayNumber': i + 1} for i, day in enumerate(days)]


def add_day(content: Dict[str, Any]) -> Dict[str, Any]:
    """Append an empty day titled ``Day n+1``."""
    content = normalize_content(content)
    content['days'].append(new_day(len(content['days']) + 1))
    return content


def remove_day(content: Dict[str, Any], day_number: int) -> Dict[str, Any]:
    """Remove a day and renumber the rest.

    Raises:
        ValueError: if the day does not exist or it is the only day
    """
    content = normalize_content(content)
    days = content['days']
    if day_number < 1 or day_number > len(days):
        raise ValueError(f"Day {day_number} does not exist")
    if len(days) <= 1:
        raise ValueError("An atlas file needs at least one day")

    content['days'] = renumber_days(days[:day_number - 1] + days[day_number:])
    return content


def format_duration(minutes: int) -> str:
    """Duration as ``Xh Ym``."""
    return f"{minutes // 60}h {minutes % 60}m"


def activity_html(activity: Dict[str, Any]) -> str:
    html = f"<h3>{escape(activity.get('title') or '')}</h3>"
    if activity.get('description'):
        html += f"<p>{escape(activity['description'])}</p>"
    if activity.get('location'):
        html += f"<p><strong>Location:</strong> {escape(activity['location'])}</p>"
    if activity.get('duration_minutes'):
        html += f"<p><strong>Duration:</strong> {format_duration(int(activity['duration_minutes']))}</p>"
    return html


def import_from_itinerary(itinerary: Dict[str, Any], activities: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Build an unsaved atlas file draft from an itinerary and its activities.

    Activities left on days past the trip length get days of their own after
    the last trip day.
    """
    days = []
    for bucket in group_by_day(activities, itinerary.get('trip_length') or 1):
        day_number = len(days) + 1
        day_activities = bucket['activities']
        city = day_activities[0].get('city_name') if day_activities else None
        title = f"Day {day_number} — {city}" if city else f"Day {day_number}"
        days.append({
            'dayNumber': day_number,
            'title': title,
            'content': ''.join(activity_html(a) for a in day_activities),
            'images': [],
        })

    return {
        'title': itinerary.get('title') or '',
        'description': f"A {itinerary.get('trip_length')}-day trip to {itinerary.get('destination')}",
        'destination': itinerary.get('destination') or '',
        'trip_length': len(days),
        'cover_image_url': itinerary.get('thumbnail_url') or '',
        'content': {'intro': '', 'days': days, 'tips': ''},
        'is_public': False,
    }
