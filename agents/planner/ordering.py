"""Ordering of activities within an itinerary.

Activities are displayed grouped by day and sorted by ``(day_number, position)``.
Drag-and-drop edits are applied here to a copy of the list and then written
back; only rows whose day or position actually changed need an update.

Positions are reassigned to the activity's index in the full sorted list, so
they are unique across the itinerary and not restarted per day.
"""

from typing import Any, Dict, List, Optional, Tuple


def _sort_key(activity: Dict[str, Any]) -> Tuple[int, int, int]:
    return (
        activity.get("day_number") or 0,
        activity.get("position") or 0,
        activity.get("id") or 0,
    )


def sort_activities(activities: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Return activities sorted by day, then position, then id."""
    return sorted(activities, key=_sort_key)


def array_move(items: List[Any], old_index: int, new_index: int) -> List[Any]:
    """Return a copy of items with the element at old_index moved to new_index."""
    result = list(items)
    result.insert(new_index, result.pop(old_index))
    return result


def reindex(activities: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Return copies of activities with position set to their list index."""
    return [{**activity, "position": index} for index, activity in enumerate(activities)]


def reorder(activities: List[Dict[str, Any]], active_id: Any, over_id: Any) -> Optional[List[Dict[str, Any]]]:
    """Apply a drag of ``active_id`` onto ``over_id``.

    The dragged activity takes the slot of the activity it was dropped on and
    joins that activity's day. Returns the reindexed list, or None when the
    drop does not change anything.
    """
    if active_id is None or over_id is None or active_id == over_id:
        return None

    ordered = sort_activities(activities)
    ids = [a.get("id") for a in ordered]
    if active_id not in ids or over_id not in ids:
        return None

    old_index = ids.index(active_id)
    new_index = ids.index(over_id)
    target_day = ordered[new_index].get("day_number")

    moved = array_move(ordered, old_index, new_index)
    moved[new_index] = {**moved[new_index], "day_number": target_day}
    return reindex(moved)


def move_to_day(activities: List[Dict[str, Any]], activity_id: Any, day_number: int,
                index: Optional[int] = None) -> Optional[List[Dict[str, Any]]]:
    """Move an activity into a day bucket.

    ``index`` is the slot within the target day; by default the activity is
    appended to the end of that day. Returns None if the activity is unknown.
    """
    ordered = sort_activities(activities)
    ids = [a.get("id") for a in ordered]
    if activity_id not in ids:
        return None

    moving = {**ordered.pop(ids.index(activity_id)), "day_number": day_number}

    day_slots = [i for i, a in enumerate(ordered) if a.get("day_number") == day_number]
    if day_slots:
        if index is None or index >= len(day_slots):
            insert_at = day_slots[-1] + 1
        else:
            insert_at = day_slots[max(index, 0)]
    else:
        # Empty day: insert before the first activity of a later day
        insert_at = len(ordered)
        for i, a in enumerate(ordered):
            if (a.get("day_number") or 0) > day_number:
                insert_at = i
                break

    ordered.insert(insert_at, moving)
    return reindex(ordered)


def next_position(activities: List[Dict[str, Any]], day_number: int) -> int:
    """Position for a new activity appended to the end of a day."""
    positions = [a.get("position") or 0 for a in activities if a.get("day_number") == day_number]
    return max(positions) + 1 if positions else 0


def changed_positions(before: List[Dict[str, Any]], after: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Return ``{id, day_number, position}`` for each activity that moved."""
    previous = {a.get("id"): (a.get("day_number"), a.get("position")) for a in before}
    changes = []
    for activity in after:
        current = (activity.get("day_number"), activity.get("position"))
        if previous.get(activity.get("id")) != current:
            changes.append({
                "id": activity.get("id"),
                "day_number": current[0],
                "position": current[1],
            })
    return changes


def group_by_day(activities: List[Dict[str, Any]], trip_length: int) -> List[Dict[str, Any]]:
    """Bucket activities into days 1..trip_length.

    Days outside that range that still hold activities (e.g. after the trip
    was shortened) are appended so nothing disappears from view.
    """
    buckets: Dict[int, List[Dict[str, Any]]] = {day: [] for day in range(1, (trip_length or 0) + 1)}
    for activity in sort_activities(activities):
        day = activity.get("day_number") or 1
        buckets.setdefault(day, []).append(activity)

    return [
        {"day_number": day, "activities": buckets[day]}
        for day in sorted(buckets)
    ]
