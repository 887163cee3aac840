"""Shared fixtures: a temporary SQLite database, no auth and no LLM."""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Never reach real services from tests
for var in ("ANTHROPIC_API_KEY", "OPENAI_API_KEY", "DATABASE_URL", "SUPABASE_URL", "GEOCODE_ACTIVITIES"):
    os.environ.pop(var, None)
os.environ["AUTH_DISABLED"] = "true"

import auth  # noqa: E402
import database as db  # noqa: E402
import generation_worker  # noqa: E402


@pytest.fixture(autouse=True)
def temp_db(tmp_path, monkeypatch):
    """Point the database at a fresh SQLite file for each test."""
    monkeypatch.setattr(db, "DB_PATH", str(tmp_path / "travel_atlas_test.db"))
    monkeypatch.setattr(db, "USE_POSTGRES", False)
    db.init_db()
    yield


@pytest.fixture(autouse=True)
def no_background_worker(monkeypatch):
    """Queue generation without starting the worker thread."""
    monkeypatch.setattr(generation_worker, "start_worker", lambda recover=True: None)
    yield
    queue = generation_worker._generation_queue
    while not queue.empty():
        queue.get_nowait()


@pytest.fixture(autouse=True)
def auth_disabled(monkeypatch):
    monkeypatch.setenv("AUTH_DISABLED", "true")
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    auth.clear_sessions()
    yield


@pytest.fixture
def itinerary():
    """A 3-day Paris itinerary owned by the local user."""
    return db.create_itinerary(auth.DEFAULT_USER_ID, {
        'title': 'Paris - 3 days',
        'destination': 'Paris',
        'trip_length': 3,
        'travel_pace': 'balanced',
        'budget': 'medium',
        'traveler_profiles': ['cultural-explorer'],
    })


@pytest.fixture
def planned_itinerary(itinerary):
    """The Paris itinerary with two activities on day 1 and one on day 2."""
    db.replace_itinerary_plan(itinerary['id'], [
        {'title': 'Louvre', 'day_number': 1, 'position': 0, 'category': 'culture',
         'location': 'Musee du Louvre', 'latitude': 48.8606, 'longitude': 2.3376, 'duration_minutes': 180},
        {'title': 'Cafe de Flore', 'day_number': 1, 'position': 1, 'category': 'food',
         'latitude': 48.8540, 'longitude': 2.3325},
        {'title': 'Versailles', 'day_number': 2, 'position': 2, 'category': 'culture',
         'city_name': 'Versailles'},
    ])
    return itinerary


@pytest.fixture
def add_destination():
    """Insert a destination row; the API only reads destinations."""
    def insert(data):
        with db.get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO destinations (name, country, description) VALUES (?, ?, ?)",
                (data['name'], data.get('country'), data.get('description')),
            )
            return cursor.lastrowid
    return insert
