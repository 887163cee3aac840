"""Background worker that generates itinerary activities after creation.

The client polls ``generation_status`` on the itinerary:
idle -> pending -> processing -> ready | error
"""

import os
import threading
import traceback
from queue import Empty, Queue
from typing import Optional

import database as db

# Queue of itinerary IDs waiting for generation
_generation_queue = Queue()
_worker_thread = None


def geocoding_enabled() -> bool:
    """Check if generated activities should be geocoded with Nominatim."""
    return os.environ.get("GEOCODE_ACTIVITIES", "").lower() == "true"


def process_generation(itinerary_id: int, generator=None) -> bool:
    """Generate and store the plan for one itinerary.

    Args:
        itinerary_id: The itinerary to generate activities for
        generator: Optional ItineraryGenerator (a default one is created)

    Returns:
        True if the itinerary is ready, False if generation failed
    """
    from agents.planner.generator import ItineraryGenerator
    from agents.planner.mapper import Geocoder
    from agents.planner.models import TripRequest

    itinerary = db.get_itinerary(itinerary_id)
    if not itinerary:
        print(f"[GENERATION] Itinerary {itinerary_id} no longer exists, skipping")
        return False

    try:
        print(f"[GENERATION] Starting generation for itinerary {itinerary_id} ({itinerary.get('destination')})")
        db.set_generation_status(itinerary_id, "processing")

        request = TripRequest.from_itinerary(itinerary)
        result = (generator or ItineraryGenerator()).generate(request)

        activities = [a.to_dict() for a in result.activities]
        if geocoding_enabled():
            geocoded = Geocoder().geocode_activities(activities, region_hint=request.destination)
            print(f"[GEOCODING] Geocoded {geocoded} activities for itinerary {itinerary_id}")

        rows = db.replace_itinerary_plan(
            itinerary_id,
            activities,
            [a.to_dict() for a in result.accommodations],
        )
        if rows is None:
            raise RuntimeError("Failed to save generated activities")

        db.set_generation_status(itinerary_id, "ready")
        print(f"[GENERATION] Completed itinerary {itinerary_id}: {len(rows)} activities")
        return True

    except Exception as e:
        traceback.print_exc()
        db.set_generation_status(itinerary_id, "error", str(e))
        print(f"[GENERATION] Failed for itinerary {itinerary_id}: {e}")
        return False


def queue_generation(itinerary_id: int):
    """Mark an itinerary pending and add it to the generation queue."""
    db.set_generation_status(itinerary_id, "pending")
    _generation_queue.put(itinerary_id)
    print(f"[GENERATION] Queued itinerary {itinerary_id} for background generation")

    # Ensure worker is running
    start_worker(recover=False)


def _worker_loop():
    """Background worker that processes the generation queue."""
    print("[GENERATION] Worker started")
    while True:
        try:
            # Wait for a task (with timeout to allow thread to exit gracefully)
            try:
                itinerary_id = _generation_queue.get(timeout=5)
            except Empty:
                continue

            process_generation(itinerary_id)
            _generation_queue.task_done()

        except Exception as e:
            print(f"[GENERATION] Worker error: {e}")
            traceback.print_exc()


def start_worker(recover: bool = True):
    """Start the background worker thread if not already running."""
    global _worker_thread

    if _worker_thread is None or not _worker_thread.is_alive():
        _worker_thread = threading.Thread(target=_worker_loop, daemon=True)
        _worker_thread.start()
        print("[GENERATION] Background worker thread started")

        # Recover stale pending tasks on startup
        if recover:
            recover_stale_tasks()


def recover_stale_tasks() -> int:
    """Re-queue itineraries stuck in pending/processing status after a restart."""
    try:
        pending = db.get_pending_generation_itineraries()
    except Exception as e:
        print(f"[GENERATION] Error recovering stale tasks: {e}")
        traceback.print_exc()
        return 0

    if pending:
        print(f"[GENERATION] Recovering {len(pending)} stale generation tasks")
    for itinerary in pending:
        db.set_generation_status(itinerary['id'], "pending")
        _generation_queue.put(itinerary['id'])
        print(f"[GENERATION] Re-queued: {itinerary['id']} ({itinerary.get('title')})")
    return len(pending)


def get_queue_size() -> int:
    """Get the number of pending generation tasks."""
    return _generation_queue.qsize()
