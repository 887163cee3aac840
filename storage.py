"""Image uploads for atlas files and itineraries.

Images go to a Supabase storage bucket when SUPABASE_URL is set, otherwise
they are written under OUTPUT_DIR/uploads and served by the web server.
"""

import mimetypes
import os
import uuid
from pathlib import Path
from typing import Optional

import requests

MAX_IMAGE_SIZE = 5 * 1024 * 1024  # 5MB
ALLOWED_TYPES = ['image/jpeg', 'image/png', 'image/webp', 'image/gif']
DEFAULT_BUCKET = "atlas-images"

# Extensions used when the uploaded filename has none
TYPE_EXTENSIONS = {
    'image/jpeg': 'jpg',
    'image/png': 'png',
    'image/webp': 'webp',
    'image/gif': 'gif',
}


class UploadError(Exception):
    """An upload rejected because of the file itself (shown to the user)."""


class StorageError(Exception):
    """The storage service failed to store the file."""


def get_bucket() -> str:
    return os.environ.get("SUPABASE_STORAGE_BUCKET") or DEFAULT_BUCKET


def get_output_dir() -> Path:
    """Get the output directory from environment."""
    return Path(os.environ.get("OUTPUT_DIR", Path(__file__).parent / "output"))


def detect_content_type(filename: str, content_type: Optional[str] = None) -> Optional[str]:
    """Content type of an upload, from its part header or else its filename."""
    if content_type and content_type != 'application/octet-stream':
        return content_type.split(';')[0].strip().lower()
    guessed, _ = mimetypes.guess_type(filename or '')
    return guessed


def validate_image(file_data: bytes, filename: str, content_type: Optional[str] = None) -> str:
    """Check type and size of an image. Returns its content type.

    Raises:
        UploadError: if the file is not an allowed image or is too large
    """
    if not file_data:
        raise UploadError("No file provided")

    content_type = detect_content_type(filename, content_type)
    if content_type not in ALLOWED_TYPES:
        raise UploadError("Please upload a JPG, PNG, WebP, or GIF image.")

    if len(file_data) > MAX_IMAGE_SIZE:
        raise UploadError("Image must be under 5MB.")

    return content_type


def build_object_path(user_id: str, filename: str, content_type: str) -> str:
    """Storage path ``{user_id}/{uuid}.{ext}``."""
    ext = filename.rsplit('.', 1)[-1].lower() if filename and '.' in filename else ''
    if not ext:
        ext = TYPE_EXTENSIONS.get(content_type, 'bin')
    return f"{user_id}/{uuid.uuid4()}.{ext}"


def _upload_to_supabase(supabase_url: str, path: str, file_data: bytes, content_type: str) -> str:
    bucket = get_bucket()
    key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY") or os.environ.get("SUPABASE_ANON_KEY") or ""
    headers = {
        "Authorization": f"Bearer {key}",
        "apikey": key,
        "Content-Type": content_type,
    }

    try:
        response = requests.post(
            f"{supabase_url}/storage/v1/object/{bucket}/{path}",
            data=file_data,
            headers=headers,
            timeout=30,
        )
    except requests.RequestException as e:
        raise StorageError(f"Upload failed: {e}")

    if response.status_code not in (200, 201):
        print(f"[STORAGE] Supabase upload failed ({response.status_code}): {response.text[:200]}")
        raise StorageError("Upload failed. Please try again.")

    return f"{supabase_url}/storage/v1/object/public/{bucket}/{path}"


def _save_locally(path: str, file_data: bytes) -> str:
    target = get_output_dir() / "uploads" / path
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(file_data)
    return f"/uploads/{path}"


def upload_image(user_id: str, file_data: bytes, filename: str, content_type: Optional[str] = None) -> dict:
    """Validate and store an image.

    Returns:
        Dict with the public ``url`` and storage ``path``

    Raises:
        UploadError: for invalid files
        StorageError: if the storage service rejects the upload
    """
    content_type = validate_image(file_data, filename, content_type)
    path = build_object_path(user_id, filename, content_type)

    supabase_url = os.environ.get("SUPABASE_URL")
    if supabase_url:
        url = _upload_to_supabase(supabase_url.rstrip('/'), path, file_data, content_type)
    else:
        url = _save_locally(path, file_data)

    print(f"[STORAGE] Stored {len(file_data)} bytes at {path}")
    return {"url": url, "path": path}
