"""Travel Atlas API Server - JSON endpoints for the planner, atlas files and image uploads."""

import json
import os
import re
import sys
import traceback
from pathlib import Path
from http.server import HTTPServer, SimpleHTTPRequestHandler
from urllib.parse import parse_qs, urlparse

# Add agents to path
sys.path.insert(0, str(Path(__file__).parent))

from agents.planner import handler as planner_handler
from agents.atlas import handler as atlas_handler
from agents.explore import handler as explore_handler
from agents.planner import llm

# Import authentication, database and storage
import auth
import database as db
import storage

# Import generation worker for async itinerary generation
import generation_worker

# Allow OUTPUT_DIR to be configured via environment variable (uploads are served from here)
OUTPUT_DIR = Path(os.environ.get("OUTPUT_DIR", Path(__file__).parent / "output"))

# Origin allowed to call the API from the browser
CORS_ORIGIN = os.environ.get("CORS_ORIGIN", "*")

DEFAULT_PORT = 3001

ITINERARY_PATH = re.compile(r"^/api/itineraries/(\d+)$")
ITINERARY_ACTION_PATH = re.compile(r"^/api/itineraries/(\d+)/([a-z-]+)$")
ITINERARY_ACTIVITIES_ACTION_PATH = re.compile(r"^/api/itineraries/(\d+)/activities/([a-z]+)$")
ACTIVITY_PATH = re.compile(r"^/api/activities/(\d+)$")
ATLAS_FILE_PATH = re.compile(r"^/api/atlas-files/(\d+)$")
ATLAS_DAYS_PATH = re.compile(r"^/api/atlas-files/(\d+)/days$")
ATLAS_DAY_PATH = re.compile(r"^/api/atlas-files/(\d+)/days/(\d+)$")


class TravelAtlasHandler(SimpleHTTPRequestHandler):
    """HTTP request handler for the Travel Atlas API."""

    def __init__(self, *args, **kwargs):
        # Serve uploaded files from output directory
        super().__init__(*args, directory=str(OUTPUT_DIR), **kwargs)

    def end_headers(self):
        """Add CORS headers to every response."""
        self.send_header('Access-Control-Allow-Origin', CORS_ORIGIN)
        self.send_header('Access-Control-Allow-Methods', 'GET, POST, PUT, DELETE, OPTIONS')
        self.send_header('Access-Control-Allow-Headers', 'Content-Type, Authorization')
        super().end_headers()

    def list_directory(self, path):
        """Never list upload folders; only individual files are served."""
        self.send_json_error("Not found", status=404)
        return None

    # ============ Authentication ============

    def get_current_user(self):
        """Get the user for this request, or None if not signed in."""
        return auth.get_request_user(self.headers.get('Authorization'))

    def get_current_user_id(self):
        user = self.get_current_user()
        return user['id'] if user else None

    def require_user(self):
        """Get the signed-in user, sending a 401 if there is none."""
        user = self.get_current_user()
        if not user:
            self.send_json_error("Authentication required", status=401)
        return user

    # ============ Request dispatch ============

    def do_OPTIONS(self):
        """Answer CORS preflight requests."""
        self.send_response(204)
        self.send_header('Content-Length', '0')
        self.end_headers()

    def do_GET(self):
        """Handle GET requests."""
        parsed = urlparse(self.path)
        path = parsed.path.rstrip('/') or '/'
        query = parse_qs(parsed.query)

        # Uploaded images saved locally
        if path.startswith("/uploads/"):
            if ".." in path:
                self.send_error(403, "Forbidden")
                return
            super().do_GET()
            return

        try:
            self.route_get(path, query)
        except Exception as e:
            self.handle_unexpected_error(e)

    def route_get(self, path: str, query: dict):
        if path == "/health":
            self.send_json_response({"status": "ok", "message": "Travel Atlas API is running"})
            return

        if path == "/api/destinations":
            self.handle_destinations()
            return

        if path == "/api/options":
            self.send_result(*planner_handler.options_handler())
            return

        # Itineraries
        if path == "/api/itineraries":
            user = self.require_user()
            if user:
                self.send_result(*planner_handler.list_itineraries_handler(user['id']))
            return

        match = ITINERARY_PATH.match(path)
        if match:
            itinerary_id = int(match.group(1))
            self.send_result(*planner_handler.get_itinerary_handler(self.get_current_user_id(), itinerary_id))
            return

        match = ITINERARY_ACTION_PATH.match(path)
        if match:
            itinerary_id, action = int(match.group(1)), match.group(2)
            user_id = self.get_current_user_id()
            if action == "generation-status":
                self.send_result(*planner_handler.generation_status_handler(user_id, itinerary_id))
            elif action == "map":
                day = query.get('day', [None])[0]
                self.send_result(*planner_handler.map_handler(user_id, itinerary_id, day))
            elif action == "activities":
                self.send_result(*planner_handler.list_activities_handler(user_id, itinerary_id))
            else:
                self.send_json_error("Not found", status=404)
            return

        # Atlas files
        if path == "/api/atlas-files":
            mine = query.get('mine', ['false'])[0].lower() == 'true'
            if mine:
                user = self.require_user()
                if not user:
                    return
                self.send_result(*atlas_handler.list_atlas_files_handler(user['id'], mine=True))
            else:
                self.send_result(*atlas_handler.list_atlas_files_handler(self.get_current_user_id()))
            return

        if path == "/api/atlas-files/markers":
            self.send_result(*explore_handler.globe_markers_handler())
            return

        if path == "/api/atlas-files/import":
            user = self.require_user()
            if user:
                itinerary_id = query.get('fromItinerary', [None])[0]
                self.send_result(*atlas_handler.import_itinerary_handler(user['id'], itinerary_id))
            return

        match = ATLAS_FILE_PATH.match(path)
        if match:
            atlas_id = int(match.group(1))
            self.send_result(*atlas_handler.get_atlas_file_handler(self.get_current_user_id(), atlas_id))
            return

        # Favorite places
        if path == "/api/favorite-places":
            self.send_result(*explore_handler.list_favorite_places_handler())
            return

        self.send_json_error("Not found", status=404)

    def do_POST(self):
        """Handle POST requests."""
        path = urlparse(self.path).path.rstrip('/')
        try:
            self.route_post(path)
        except Exception as e:
            self.handle_unexpected_error(e)

    def route_post(self, path: str):
        # Image uploads carry multipart bodies, not JSON
        if path == "/api/uploads/images":
            self.handle_image_upload()
            return

        data = self.read_json_body()
        if data is None:
            return

        # AI endpoints work without an account; persisting needs one
        if path == "/api/ai/generate-itinerary":
            self.send_result(*planner_handler.generate_itinerary_handler(self.get_current_user_id(), data))
            return

        if path == "/api/ai/chat":
            self.send_result(*planner_handler.chat_handler(self.get_current_user_id(), data))
            return

        user = self.require_user()
        if not user:
            return
        user_id = user['id']

        if path == "/api/itineraries":
            self.send_result(*planner_handler.create_itinerary_handler(user_id, data))
            return

        match = ITINERARY_ACTION_PATH.match(path)
        if match:
            itinerary_id, action = int(match.group(1)), match.group(2)
            if action == "duplicate":
                self.send_result(*planner_handler.duplicate_itinerary_handler(user_id, itinerary_id))
            elif action == "share":
                self.send_result(*planner_handler.share_itinerary_handler(user_id, itinerary_id))
            elif action == "save":
                self.send_result(*planner_handler.save_itinerary_handler(user_id, itinerary_id))
            elif action == "activities":
                self.send_result(*planner_handler.add_activity_handler(user_id, itinerary_id, data))
            else:
                self.send_json_error("Not found", status=404)
            return

        match = ITINERARY_ACTIVITIES_ACTION_PATH.match(path)
        if match:
            itinerary_id, action = int(match.group(1)), match.group(2)
            if action == "load":
                self.send_result(*planner_handler.load_activities_handler(user_id, itinerary_id, data))
            elif action == "reorder":
                self.send_result(*planner_handler.reorder_activities_handler(user_id, itinerary_id, data))
            elif action == "move":
                self.send_result(*planner_handler.move_activity_handler(user_id, itinerary_id, data))
            else:
                self.send_json_error("Not found", status=404)
            return

        if path == "/api/atlas-files":
            self.send_result(*atlas_handler.create_atlas_file_handler(user, data))
            return

        match = ATLAS_DAYS_PATH.match(path)
        if match:
            self.send_result(*atlas_handler.add_day_handler(user_id, int(match.group(1))))
            return

        if path == "/api/favorite-places":
            self.send_result(*explore_handler.add_favorite_place_handler(data))
            return

        self.send_json_error("Not found", status=404)

    def do_PUT(self):
        """Handle PUT requests (updates)."""
        path = urlparse(self.path).path.rstrip('/')
        try:
            data = self.read_json_body()
            if data is None:
                return
            user = self.require_user()
            if not user:
                return

            match = ITINERARY_PATH.match(path)
            if match:
                self.send_result(*planner_handler.update_itinerary_handler(user['id'], int(match.group(1)), data))
                return

            match = ACTIVITY_PATH.match(path)
            if match:
                self.send_result(*planner_handler.update_activity_handler(user['id'], int(match.group(1)), data))
                return

            match = ATLAS_FILE_PATH.match(path)
            if match:
                self.send_result(*atlas_handler.update_atlas_file_handler(user, int(match.group(1)), data))
                return

            self.send_json_error("Not found", status=404)
        except Exception as e:
            self.handle_unexpected_error(e)

    def do_DELETE(self):
        """Handle DELETE requests."""
        path = urlparse(self.path).path.rstrip('/')
        try:
            # Consume any request body
            content_length = int(self.headers.get('Content-Length', 0))
            if content_length > 0:
                self.rfile.read(content_length)

            user = self.require_user()
            if not user:
                return

            match = ITINERARY_PATH.match(path)
            if match:
                self.send_result(*planner_handler.delete_itinerary_handler(user['id'], int(match.group(1))))
                return

            match = ACTIVITY_PATH.match(path)
            if match:
                self.send_result(*planner_handler.delete_activity_handler(user['id'], int(match.group(1))))
                return

            match = ATLAS_FILE_PATH.match(path)
            if match:
                self.send_result(*atlas_handler.delete_atlas_file_handler(user['id'], int(match.group(1))))
                return

            match = ATLAS_DAY_PATH.match(path)
            if match:
                self.send_result(*atlas_handler.remove_day_handler(
                    user['id'], int(match.group(1)), int(match.group(2))))
                return

            self.send_json_error("Not found", status=404)
        except Exception as e:
            self.handle_unexpected_error(e)

    # ============ Endpoint handlers ============

    def handle_destinations(self):
        """List destinations. Errors are reported as a bare ``{error}`` body."""
        try:
            result, status = explore_handler.destinations_handler()
        except Exception as e:
            print(f"[DB] Error loading destinations: {e}")
            self.send_json_response({"error": str(e)}, status=500)
            return
        self.send_json_response(result, status=status)

    def handle_image_upload(self):
        """Handle a multipart image upload to storage."""
        user = self.require_user()
        if not user:
            return

        content_type = self.headers.get('Content-Type', '')
        if not content_type.startswith('multipart/form-data'):
            self.send_json_error("Expected multipart/form-data")
            return

        # Get boundary from content type
        if 'boundary=' not in content_type:
            self.send_json_error("Missing boundary in multipart/form-data")
            return
        boundary = content_type.split('boundary=')[1].split(';')[0].strip('"')

        content_length = int(self.headers.get('Content-Length', 0))
        if content_length > storage.MAX_IMAGE_SIZE * 2:
            self.send_json_error("Image must be under 5MB.")
            return
        body = self.rfile.read(content_length)

        file_data, filename, file_type = self.parse_multipart(body, boundary)
        if not file_data or not filename:
            self.send_json_error("No file provided")
            return

        try:
            result = storage.upload_image(user['id'], file_data, filename, file_type)
        except storage.UploadError as e:
            self.send_json_error(str(e))
            return
        except storage.StorageError as e:
            self.send_json_error(str(e), status=500)
            return

        self.send_json_response({"success": True, **result})

    # ============ Helpers ============

    def read_json_body(self):
        """Read the JSON request body. Sends a 400 and returns None if invalid."""
        content_length = int(self.headers.get('Content-Length', 0))
        if content_length == 0:
            return {}
        body = self.rfile.read(content_length)
        try:
            data = json.loads(body.decode('utf-8'))
        except (json.JSONDecodeError, UnicodeDecodeError):
            self.send_json_error("Invalid JSON in request body")
            return None
        if not isinstance(data, dict):
            self.send_json_error("Request body must be a JSON object")
            return None
        return data

    def parse_multipart(self, body: bytes, boundary: str) -> tuple:
        """Parse multipart form data to extract the file, its name and content type."""
        boundary_bytes = f"--{boundary}".encode()
        parts = body.split(boundary_bytes)

        for part in parts:
            if b'filename="' in part:
                header_end = part.find(b'\r\n\r\n')
                if header_end == -1:
                    continue

                header = part[:header_end].decode('utf-8', errors='ignore')
                filename_match = re.search(r'filename="([^"]+)"', header)
                if not filename_match:
                    continue

                filename = filename_match.group(1)
                type_match = re.search(r'Content-Type:\s*([^\r\n]+)', header, re.IGNORECASE)
                file_type = type_match.group(1).strip() if type_match else None

                # Extract file data (skip headers and trailing boundary markers)
                file_data = part[header_end + 4:]
                if file_data.endswith(b'\r\n'):
                    file_data = file_data[:-2]

                return file_data, filename, file_type

        return None, None, None

    def send_result(self, result: dict, status: int):
        """Send a handler's ``(payload, status)`` result."""
        if status == 200:
            self.send_json_response(result)
        else:
            self.send_json_error(result.get('error', 'Unknown error'), status=status)

    def handle_unexpected_error(self, error: Exception):
        traceback.print_exc()
        self.send_json_error(f"Server error: {error}", status=500)

    def send_json_response(self, data: dict, status: int = 200):
        """Send JSON response."""
        body = json.dumps(data).encode()
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.send_header('Content-Length', str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def send_json_error(self, message: str, status: int = 400):
        """Send JSON error response."""
        self.send_json_response({"success": False, "error": message}, status=status)


def initialize_server():
    """Initialize output directories and database tables."""
    try:
        (OUTPUT_DIR / "uploads").mkdir(parents=True, exist_ok=True)
    except Exception as e:
        print(f"[SERVER] Warning: Could not create output directory: {e}")

    db.init_db()


def run_server(port: int = DEFAULT_PORT):
    """Run the Travel Atlas API server."""
    initialize_server()

    # Start generation worker (also recovers stale pending tasks from database)
    generation_worker.start_worker()

    # Bind to 0.0.0.0 for cloud deployment
    server = HTTPServer(('0.0.0.0', port), TravelAtlasHandler)

    if auth.is_auth_enabled():
        auth_info = """
║   Authentication: ENABLED (Supabase bearer tokens)        ║
║   Set AUTH_DISABLED=true to disable authentication        ║"""
    else:
        auth_info = """
║   Authentication: DISABLED (all requests as local-user)   ║
║   Set SUPABASE_URL to enable authentication               ║"""

    database_info = "PostgreSQL" if db.USE_POSTGRES else f"SQLite ({db.DB_PATH})"
    llm_info = llm.provider_name()

    print(f"""
╔═══════════════════════════════════════════════════════════╗
║                                                           ║
║   THE TRAVEL ATLAS - API                                  ║
║                                                           ║
║   Server running at: http://localhost:{port:<5}               ║
║                                                           ║{auth_info}
║                                                           ║
║   Press Ctrl+C to stop                                    ║
║                                                           ║
╚═══════════════════════════════════════════════════════════╝
""")
    print(f"[SERVER] Database: {database_info}")
    print(f"[SERVER] Itinerary generation: {llm_info}")

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nServer stopped.")
        server.shutdown()


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="Run the Travel Atlas API server")
    parser.add_argument("-p", "--port", type=int, default=None, help=f"Port to run on (default: {DEFAULT_PORT})")
    args = parser.parse_args()

    # Use --port arg, then PORT env var, then default
    port = args.port or int(os.environ.get("PORT", DEFAULT_PORT))
    run_server(port)
