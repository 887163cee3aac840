"""Database module for itineraries, activities, atlas files and favorite places.

Uses PostgreSQL (the hosted Supabase database) when DATABASE_URL is set,
SQLite for local development and tests.
"""

import os
import json
from datetime import date, datetime
from typing import Optional, List, Dict, Any
from contextlib import contextmanager

# Always import sqlite3 for local dev fallback
import sqlite3

# Try to import psycopg2 for production
try:
    import psycopg2
    HAS_POSTGRES = True
except ImportError:
    HAS_POSTGRES = False

# Database URL from environment (Supabase / Render connection string)
DATABASE_URL = os.environ.get("DATABASE_URL")

# Use PostgreSQL if available, otherwise SQLite for local development
USE_POSTGRES = HAS_POSTGRES and DATABASE_URL is not None

DB_PATH = os.environ.get("DATABASE_PATH", os.path.join(os.path.dirname(__file__), "travel_atlas.db"))

JSON_FIELDS = ("traveler_profiles", "content")
BOOLEAN_FIELDS = ("is_published", "booking_required")

ITINERARY_FIELDS = (
    "title", "destination", "trip_length", "start_date", "end_date", "travel_pace",
    "budget", "traveler_profiles", "is_published", "thumbnail_url",
)

ACTIVITY_FIELDS = (
    "day_number", "position", "title", "description", "location", "city_name", "category",
    "duration_minutes", "estimated_cost_min", "estimated_cost_max", "latitude", "longitude",
    "time_of_day", "booking_url", "booking_required", "custom_notes",
)

ACCOMMODATION_FIELDS = ("name", "type", "location", "price_per_night", "latitude", "longitude")

ATLAS_FILE_FIELDS = (
    "title", "description", "destination", "trip_length", "cover_image_url", "content",
    "author", "published_at",
)


def get_connection():
    """Get a database connection."""
    if USE_POSTGRES:
        # Some providers use postgres:// but psycopg2 needs postgresql://
        url = DATABASE_URL
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        return psycopg2.connect(url)
    else:
        # SQLite for local development
        conn = sqlite3.connect(DB_PATH)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn


@contextmanager
def get_db():
    """Context manager for database connections."""
    conn = get_connection()
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _sql(query: str) -> str:
    """Adapt a query written with ? placeholders to the active driver."""
    if USE_POSTGRES:
        return query.replace("?", "%s")
    return query


def _normalize_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """Make a row JSON-serializable and driver-independent."""
    for key, value in row.items():
        if isinstance(value, (datetime, date)):
            row[key] = value.isoformat()
        elif key in JSON_FIELDS and isinstance(value, str):
            row[key] = json.loads(value) if value else None
        elif key in BOOLEAN_FIELDS and value is not None:
            row[key] = bool(value)
    return row


def _fetchall(cursor) -> List[Dict[str, Any]]:
    if USE_POSTGRES:
        columns = [col[0] for col in cursor.description]
        rows = [dict(zip(columns, row)) for row in cursor.fetchall()]
    else:
        rows = [dict(row) for row in cursor.fetchall()]
    return [_normalize_row(row) for row in rows]


def _fetchone(cursor) -> Optional[Dict[str, Any]]:
    rows = _fetchall(cursor)
    return rows[0] if rows else None


def _encode(column: str, value: Any) -> Any:
    if column in JSON_FIELDS and value is not None and not isinstance(value, str):
        return json.dumps(value)
    return value


def _insert(cursor, table: str, values: Dict[str, Any]) -> int:
    """Insert a row and return its id."""
    columns = list(values.keys())
    params = tuple(_encode(col, values[col]) for col in columns)
    placeholders = ", ".join(["?"] * len(columns))
    query = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"

    if USE_POSTGRES:
        cursor.execute(_sql(query) + " RETURNING id", params)
        return cursor.fetchone()[0]
    cursor.execute(query, params)
    return cursor.lastrowid


def _update(table: str, row_id: int, updates: Dict[str, Any], allowed: tuple, touch: bool = False) -> bool:
    """Update allowed columns of a row. Returns True if the row exists."""
    fields = {k: v for k, v in updates.items() if k in allowed}
    if not fields and not touch:
        return False

    set_parts = [f"{col} = ?" for col in fields]
    params = [_encode(col, fields[col]) for col in fields]
    if touch:
        set_parts.append("updated_at = CURRENT_TIMESTAMP")
    params.append(row_id)

    with get_db() as conn:
        cursor = conn.cursor()
        try:
            cursor.execute(_sql(f"UPDATE {table} SET {', '.join(set_parts)} WHERE id = ?"), tuple(params))
            return cursor.rowcount > 0
        except Exception as e:
            print(f"[DB] Error updating {table} {row_id}: {e}")
            return False


def _delete(table: str, row_id: int) -> bool:
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(_sql(f"DELETE FROM {table} WHERE id = ?"), (row_id,))
        return cursor.rowcount > 0


def init_db():
    """Initialize database tables."""
    with get_db() as conn:
        cursor = conn.cursor()

        if USE_POSTGRES:
            # PostgreSQL schema
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS destinations (
                    id SERIAL PRIMARY KEY,
                    name VARCHAR(255) NOT NULL,
                    country VARCHAR(255),
                    description TEXT,
                    image_url TEXT,
                    latitude DOUBLE PRECISION,
                    longitude DOUBLE PRECISION,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS itineraries (
                    id SERIAL PRIMARY KEY,
                    user_id VARCHAR(255) NOT NULL,
                    title VARCHAR(255) NOT NULL,
                    destination VARCHAR(255) NOT NULL,
                    trip_length INTEGER NOT NULL,
                    start_date DATE,
                    end_date DATE,
                    travel_pace VARCHAR(50),
                    budget VARCHAR(50),
                    traveler_profiles JSONB,
                    is_published BOOLEAN DEFAULT FALSE,
                    thumbnail_url TEXT,
                    generation_status VARCHAR(50) DEFAULT 'idle',
                    generation_error TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS activities (
                    id SERIAL PRIMARY KEY,
                    itinerary_id INTEGER REFERENCES itineraries(id) ON DELETE CASCADE,
                    day_number INTEGER NOT NULL DEFAULT 1,
                    position INTEGER NOT NULL DEFAULT 0,
                    title VARCHAR(255) NOT NULL,
                    description TEXT,
                    location TEXT,
                    city_name VARCHAR(255),
                    category VARCHAR(50) DEFAULT 'other',
                    duration_minutes INTEGER,
                    estimated_cost_min INTEGER,
                    estimated_cost_max INTEGER,
                    latitude DOUBLE PRECISION,
                    longitude DOUBLE PRECISION,
                    time_of_day VARCHAR(50),
                    booking_url TEXT,
                    booking_required BOOLEAN DEFAULT FALSE,
                    custom_notes TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS accommodations (
                    id SERIAL PRIMARY KEY,
                    itinerary_id INTEGER REFERENCES itineraries(id) ON DELETE CASCADE,
                    name VARCHAR(255) NOT NULL,
                    type VARCHAR(50),
                    location TEXT,
                    price_per_night INTEGER,
                    latitude DOUBLE PRECISION,
                    longitude DOUBLE PRECISION,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS atlas_files (
                    id SERIAL PRIMARY KEY,
                    author_id VARCHAR(255) NOT NULL,
                    author VARCHAR(255),
                    title VARCHAR(255) NOT NULL,
                    description TEXT,
                    destination VARCHAR(255),
                    trip_length INTEGER DEFAULT 1,
                    cover_image_url TEXT,
                    content JSONB,
                    published_at TIMESTAMP,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS favorite_places (
                    id SERIAL PRIMARY KEY,
                    place_name VARCHAR(255) NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
        else:
            # SQLite schema
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS destinations (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    country TEXT,
                    description TEXT,
                    image_url TEXT,
                    latitude REAL,
                    longitude REAL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS itineraries (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    destination TEXT NOT NULL,
                    trip_length INTEGER NOT NULL,
                    start_date TEXT,
                    end_date TEXT,
                    travel_pace TEXT,
                    budget TEXT,
                    traveler_profiles TEXT,
                    is_published INTEGER DEFAULT 0,
                    thumbnail_url TEXT,
                    generation_status TEXT DEFAULT 'idle',
                    generation_error TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS activities (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    itinerary_id INTEGER REFERENCES itineraries(id) ON DELETE CASCADE,
                    day_number INTEGER NOT NULL DEFAULT 1,
                    position INTEGER NOT NULL DEFAULT 0,
                    title TEXT NOT NULL,
                    description TEXT,
                    location TEXT,
                    city_name TEXT,
                    category TEXT DEFAULT 'other',
                    duration_minutes INTEGER,
                    estimated_cost_min INTEGER,
                    estimated_cost_max INTEGER,
                    latitude REAL,
                    longitude REAL,
                    time_of_day TEXT,
                    booking_url TEXT,
                    booking_required INTEGER DEFAULT 0,
                    custom_notes TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS accommodations (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    itinerary_id INTEGER REFERENCES itineraries(id) ON DELETE CASCADE,
                    name TEXT NOT NULL,
                    type TEXT,
                    location TEXT,
                    price_per_night INTEGER,
                    latitude REAL,
                    longitude REAL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS atlas_files (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    author_id TEXT NOT NULL,
                    author TEXT,
                    title TEXT NOT NULL,
                    description TEXT,
                    destination TEXT,
                    trip_length INTEGER DEFAULT 1,
                    cover_image_url TEXT,
                    content TEXT,
                    published_at TIMESTAMP,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS favorite_places (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    place_name TEXT NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_itineraries_user_id ON itineraries(user_id)
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_activities_itinerary ON activities(itinerary_id, day_number, position)
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_atlas_files_author ON atlas_files(author_id)
        """)


# ============ Destination Functions ============

def get_destinations() -> List[Dict[str, Any]]:
    """Get all destinations ordered by name."""
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM destinations ORDER BY name")
        return _fetchall(cursor)


# ============ Itinerary Functions ============

def create_itinerary(user_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Create an itinerary for a user. Returns the stored row or None if failed."""
    values = {k: data.get(k) for k in ITINERARY_FIELDS if k in data}
    values["user_id"] = user_id
    values["generation_status"] = data.get("generation_status", "idle")
    try:
        with get_db() as conn:
            itinerary_id = _insert(conn.cursor(), "itineraries", values)
    except Exception as e:
        print(f"[DB] Error creating itinerary: {e}")
        return None
    return get_itinerary(itinerary_id)


def get_itinerary(itinerary_id: int) -> Optional[Dict[str, Any]]:
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(_sql("SELECT * FROM itineraries WHERE id = ?"), (itinerary_id,))
        return _fetchone(cursor)


def get_user_itineraries(user_id: str) -> List[Dict[str, Any]]:
    """Get all itineraries for a user, most recently updated first."""
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(_sql("""
            SELECT * FROM itineraries WHERE user_id = ?
            ORDER BY updated_at DESC, id DESC
        """), (user_id,))
        return _fetchall(cursor)


def update_itinerary(itinerary_id: int, updates: Dict[str, Any]) -> bool:
    """Update an itinerary's editable fields and bump updated_at."""
    if not any(k in ITINERARY_FIELDS for k in updates):
        return False
    return _update("itineraries", itinerary_id, updates, ITINERARY_FIELDS, touch=True)


def touch_itinerary(itinerary_id: int) -> bool:
    """Mark an itinerary as saved now."""
    return _update("itineraries", itinerary_id, {}, ITINERARY_FIELDS, touch=True)


def delete_itinerary(itinerary_id: int) -> bool:
    """Delete an itinerary with its activities and accommodations."""
    return _delete("itineraries", itinerary_id)


def set_generation_status(itinerary_id: int, status: str, error: Optional[str] = None) -> bool:
    """Record the background generation status of an itinerary."""
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(_sql("""
            UPDATE itineraries SET generation_status = ?, generation_error = ?
            WHERE id = ?
        """), (status, error, itinerary_id))
        return cursor.rowcount > 0


def get_pending_generation_itineraries() -> List[Dict[str, Any]]:
    """Itineraries whose generation was queued but never finished.

    Used on startup to recover generation tasks after a server restart.
    """
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            SELECT id, title, destination FROM itineraries
            WHERE generation_status IN ('pending', 'processing')
            ORDER BY id
        """)
        return _fetchall(cursor)


def duplicate_itinerary(itinerary_id: int, user_id: str) -> Optional[Dict[str, Any]]:
    """Copy an itinerary and its activities to a user as '<title> (Copy)'."""
    source = get_itinerary(itinerary_id)
    if not source:
        return None

    values = {k: source.get(k) for k in ITINERARY_FIELDS}
    values["title"] = f"{source['title']} (Copy)"
    values["is_published"] = False
    values["user_id"] = user_id
    values["generation_status"] = "idle"

    activities = get_activities(itinerary_id)
    accommodations = get_accommodations(itinerary_id)

    try:
        with get_db() as conn:
            cursor = conn.cursor()
            new_id = _insert(cursor, "itineraries", values)
            for activity in activities:
                row = {k: activity.get(k) for k in ACTIVITY_FIELDS}
                row["itinerary_id"] = new_id
                _insert(cursor, "activities", row)
            for accommodation in accommodations:
                row = {k: accommodation.get(k) for k in ACCOMMODATION_FIELDS}
                row["itinerary_id"] = new_id
                _insert(cursor, "accommodations", row)
    except Exception as e:
        print(f"[DB] Error duplicating itinerary {itinerary_id}: {e}")
        return None

    return get_itinerary(new_id)


# ============ Activity Functions ============

def get_activities(itinerary_id: int) -> List[Dict[str, Any]]:
    """Get an itinerary's activities ordered by day and position."""
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(_sql("""
            SELECT * FROM activities WHERE itinerary_id = ?
            ORDER BY day_number ASC, position ASC, id ASC
        """), (itinerary_id,))
        return _fetchall(cursor)


def get_activity(activity_id: int) -> Optional[Dict[str, Any]]:
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(_sql("SELECT * FROM activities WHERE id = ?"), (activity_id,))
        return _fetchone(cursor)


def add_activity(itinerary_id: int, activity: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Insert one activity. Returns the stored row or None if failed."""
    values = {k: activity.get(k) for k in ACTIVITY_FIELDS}
    values["itinerary_id"] = itinerary_id
    try:
        with get_db() as conn:
            activity_id = _insert(conn.cursor(), "activities", values)
    except Exception as e:
        print(f"[DB] Error adding activity: {e}")
        return None
    return get_activity(activity_id)


def update_activity(activity_id: int, updates: Dict[str, Any]) -> bool:
    return _update("activities", activity_id, updates, ACTIVITY_FIELDS)


def delete_activity(activity_id: int) -> bool:
    return _delete("activities", activity_id)


def update_activity_positions(changes: List[Dict[str, Any]]) -> bool:
    """Write back day/position changes for several activities in one transaction."""
    if not changes:
        return True
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            for change in changes:
                cursor.execute(_sql("""
                    UPDATE activities SET day_number = ?, position = ? WHERE id = ?
                """), (change["day_number"], change["position"], change["id"]))
        return True
    except Exception as e:
        print(f"[DB] Error updating activity positions: {e}")
        return False


def replace_itinerary_plan(itinerary_id: int, activities: List[Dict[str, Any]],
                           accommodations: Optional[List[Dict[str, Any]]] = None) -> Optional[List[Dict[str, Any]]]:
    """Replace all activities (and optionally accommodations) of an itinerary.

    Runs in one transaction. Returns the new activity rows, or None on failure.
    """
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(_sql("DELETE FROM activities WHERE itinerary_id = ?"), (itinerary_id,))
            for activity in activities:
                row = {k: activity.get(k) for k in ACTIVITY_FIELDS}
                row["itinerary_id"] = itinerary_id
                _insert(cursor, "activities", row)

            if accommodations is not None:
                cursor.execute(_sql("DELETE FROM accommodations WHERE itinerary_id = ?"), (itinerary_id,))
                for accommodation in accommodations:
                    row = {k: accommodation.get(k) for k in ACCOMMODATION_FIELDS}
                    row["itinerary_id"] = itinerary_id
                    _insert(cursor, "accommodations", row)

            cursor.execute(_sql("UPDATE itineraries SET updated_at = CURRENT_TIMESTAMP WHERE id = ?"), (itinerary_id,))
    except Exception as e:
        print(f"[DB] Error replacing plan for itinerary {itinerary_id}: {e}")
        return None

    return get_activities(itinerary_id)


# ============ Accommodation Functions ============

def get_accommodations(itinerary_id: int) -> List[Dict[str, Any]]:
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(_sql("SELECT * FROM accommodations WHERE itinerary_id = ? ORDER BY id"), (itinerary_id,))
        return _fetchall(cursor)


# ============ Atlas File Functions ============

def create_atlas_file(author_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Create an atlas file. Returns the stored row or None if failed."""
    values = {k: data.get(k) for k in ATLAS_FILE_FIELDS if k in data}
    values["author_id"] = author_id
    try:
        with get_db() as conn:
            atlas_id = _insert(conn.cursor(), "atlas_files", values)
    except Exception as e:
        print(f"[DB] Error creating atlas file: {e}")
        return None
    return get_atlas_file(atlas_id)


def get_atlas_file(atlas_id: int) -> Optional[Dict[str, Any]]:
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(_sql("SELECT * FROM atlas_files WHERE id = ?"), (atlas_id,))
        return _fetchone(cursor)


def get_published_atlas_files() -> List[Dict[str, Any]]:
    """Get all published atlas files, newest first."""
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("""
            SELECT * FROM atlas_files WHERE published_at IS NOT NULL
            ORDER BY created_at DESC, id DESC
        """)
        return _fetchall(cursor)


def get_user_atlas_files(author_id: str) -> List[Dict[str, Any]]:
    """Get a user's atlas files including drafts, newest first."""
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(_sql("""
            SELECT * FROM atlas_files WHERE author_id = ?
            ORDER BY created_at DESC, id DESC
        """), (author_id,))
        return _fetchall(cursor)


def update_atlas_file(atlas_id: int, updates: Dict[str, Any]) -> bool:
    if not any(k in ATLAS_FILE_FIELDS for k in updates):
        return False
    return _update("atlas_files", atlas_id, updates, ATLAS_FILE_FIELDS, touch=True)


def delete_atlas_file(atlas_id: int) -> bool:
    return _delete("atlas_files", atlas_id)


# ============ Favorite Place Functions ============

def get_favorite_places() -> List[Dict[str, Any]]:
    """Get all favorite places, newest first."""
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM favorite_places ORDER BY created_at DESC, id DESC")
        return _fetchall(cursor)


def add_favorite_place(place_name: str) -> Optional[Dict[str, Any]]:
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            place_id = _insert(cursor, "favorite_places", {"place_name": place_name})
            cursor.execute(_sql("SELECT * FROM favorite_places WHERE id = ?"), (place_id,))
            return _fetchone(cursor)
    except Exception as e:
        print(f"[DB] Error adding favorite place: {e}")
        return None
