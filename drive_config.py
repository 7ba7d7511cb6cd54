# drive_config.py
"""
Configuration for the Drive folder tree walker.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Canonical MIME type Drive uses for folders
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"

# Metadata is all the walker ever reads
SCOPES = ["https://www.googleapis.com/auth/drive.metadata.readonly"]

DEFAULT_API_URL = "https://www.googleapis.com/drive/v3/files"
SUPPORTED_API_VERSION = "v3"
MAX_PAGE_SIZE = 1000

VALID_BACKENDS = {"sdk", "rest"}


def validate_backend(name: str) -> str:
    """Normalize a backend name, rejecting anything but sdk/rest."""
    normalized = (name or "").strip().lower()
    if normalized not in VALID_BACKENDS:
        raise ValueError(f"DRIVE_TREE_BACKEND must be one of {VALID_BACKENDS}, got {name!r}")
    return normalized


def validate_page_size(value) -> int:
    try:
        size = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"DRIVE_TREE_PAGE_SIZE must be an integer, got {value!r}") from None
    if not 1 <= size <= MAX_PAGE_SIZE:
        raise ValueError(f"DRIVE_TREE_PAGE_SIZE must be between 1 and {MAX_PAGE_SIZE}, got {size}")
    return size


def _read_timeout(value) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"DRIVE_TREE_HTTP_TIMEOUT must be a number, got {value!r}") from None
    if timeout <= 0:
        raise ValueError(f"DRIVE_TREE_HTTP_TIMEOUT must be positive, got {timeout}")
    return timeout


ROOT_FOLDER_ID = os.getenv("DRIVE_TREE_ROOT_ID", "root")
BACKEND = validate_backend(os.getenv("DRIVE_TREE_BACKEND", "sdk"))
PAGE_SIZE = validate_page_size(os.getenv("DRIVE_TREE_PAGE_SIZE", str(MAX_PAGE_SIZE)))
HTTP_TIMEOUT = _read_timeout(os.getenv("DRIVE_TREE_HTTP_TIMEOUT", "30"))
API_URL = os.getenv("DRIVE_TREE_API_URL", DEFAULT_API_URL)
IMPERSONATE_EMAIL = os.getenv("DRIVE_TREE_IMPERSONATE_EMAIL") or None
