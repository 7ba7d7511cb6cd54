import re
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Dict, List, Optional
from urllib.parse import parse_qs, unquote, urlsplit

import pytest
import requests
from googleapiclient.errors import HttpError

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from drive_config import FOLDER_MIME_TYPE
from drive_rest import DriveRestClient
from drive_service import DriveManager
from folder_tree import FolderTreeLister

API_URL = "https://www.googleapis.com/drive/v3/files"

_QUERY_RE = re.compile(
    r"^'(?P<parent>[^']+)' in parents and mimeType(?P<op>!?=)'(?P<mime>[^']+)' and trashed=false$"
)


class FakeDriveStore:
    """In-memory Drive: items keyed by id, listed in insertion order."""

    def __init__(self, page_size: int = 1000):
        self.items: Dict[str, dict] = {}
        self.page_size = page_size
        self.failures: Dict[str, int] = {}
        self.list_calls: List[dict] = []
        self.get_calls: List[str] = []

    def add_folder(self, folder_id: str, name: str, parent: Optional[str] = None, trashed=False):
        self.items[folder_id] = {
            "id": folder_id,
            "name": name,
            "mimeType": FOLDER_MIME_TYPE,
            "parents": [parent] if parent else [],
            "trashed": trashed,
        }
        return self

    def add_file(self, file_id: str, name: str, parent: str, mime_type="text/plain", trashed=False):
        self.items[file_id] = {
            "id": file_id,
            "name": name,
            "mimeType": mime_type,
            "parents": [parent],
            "trashed": trashed,
        }
        return self

    def fail(self, folder_id: str, status: int = 403):
        self.failures[folder_id] = status
        return self

    def get(self, file_id: str) -> dict:
        self.get_calls.append(file_id)
        return {"name": self.items[file_id]["name"]}

    def list_page(self, params: dict) -> dict:
        self.list_calls.append(dict(params))
        match = _QUERY_RE.match(params["q"])
        assert match, f"unexpected query {params['q']!r}"
        assert str(params["supportsAllDrives"]).lower() == "true"
        assert str(params["includeItemsFromAllDrives"]).lower() == "true"

        parent, op, mime = match.group("parent"), match.group("op"), match.group("mime")
        matches = [
            item
            for item in self.items.values()
            if parent in item["parents"]
            and not item["trashed"]
            and ((item["mimeType"] == mime) if op == "=" else (item["mimeType"] != mime))
        ]

        size = min(int(params["pageSize"]), self.page_size)
        offset = int(params.get("pageToken") or 0)
        page = matches[offset : offset + size]
        body = {"files": [{k: i[k] for k in ("id", "name", "mimeType")} for i in page]}
        if offset + size < len(matches):
            body["nextPageToken"] = str(offset + size)
        return body

    def parent_of(self, params: dict) -> str:
        return _QUERY_RE.match(params["q"]).group("parent")


# ----------------------------------------------------------------------
# google-api-python-client stand-in
# ----------------------------------------------------------------------
class FakeRequest:
    def __init__(self, store: FakeDriveStore, kind: str, params: dict):
        self.store = store
        self.kind = kind
        self.params = params

    def execute(self):
        if self.kind == "get":
            folder_id = self.params["fileId"]
            if folder_id in self.store.failures:
                raise _http_error(self.store.failures[folder_id])
            return self.store.get(folder_id)

        parent = self.store.parent_of(self.params)
        if parent in self.store.failures:
            raise _http_error(self.store.failures[parent])
        return self.store.list_page(self.params)


def _http_error(status: int) -> HttpError:
    resp = SimpleNamespace(status=status, reason="Forbidden" if status == 403 else "Error")
    return HttpError(resp, b'{"error": {"message": "denied"}}')


class FakeFilesResource:
    def __init__(self, store: FakeDriveStore):
        self.store = store

    def list(self, **params):
        return FakeRequest(self.store, "list", params)

    def list_next(self, previous_request, previous_response):
        token = previous_response.get("nextPageToken")
        if not token:
            return None
        params = dict(previous_request.params, pageToken=token)
        return FakeRequest(self.store, "list", params)

    def get(self, **params):
        return FakeRequest(self.store, "get", params)


class FakeDriveService:
    def __init__(self, store: FakeDriveStore):
        self.store = store

    def files(self):
        return FakeFilesResource(self.store)


# ----------------------------------------------------------------------
# requests.Session stand-in
# ----------------------------------------------------------------------
class FakeResponse:
    def __init__(self, status_code: int, body: dict):
        self.status_code = status_code
        self._body = body

    def json(self):
        return self._body

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class FakeSession:
    def __init__(self, store: FakeDriveStore):
        self.store = store
        self.requests: List[dict] = []

    def get(self, url, headers=None, timeout=None):
        self.requests.append({"url": url, "headers": headers, "timeout": timeout})
        parts = urlsplit(url)
        params = {k: v[-1] for k, v in parse_qs(parts.query).items()}
        path = parts.path.rstrip("/")

        if path.endswith("/files"):
            parent = self.store.parent_of(params)
            if parent in self.store.failures:
                return FakeResponse(self.store.failures[parent], {"error": {}})
            return FakeResponse(200, self.store.list_page(params))

        folder_id = unquote(path.rsplit("/", 1)[-1])
        assert params["fields"] == "name"
        if folder_id in self.store.failures:
            return FakeResponse(self.store.failures[folder_id], {"error": {}})
        return FakeResponse(200, self.store.get(folder_id))


# ----------------------------------------------------------------------
# Fixtures
# ----------------------------------------------------------------------
def build_source(backend: str, store: FakeDriveStore):
    if backend == "sdk":
        return DriveManager(service=FakeDriveService(store), correlation_id="test")
    return DriveRestClient(
        access_token="test-token",
        session=FakeSession(store),
        api_url=API_URL,
        correlation_id="test",
    )


@pytest.fixture(params=["sdk", "rest"])
def backend(request):
    return request.param


@pytest.fixture()
def make_lister(backend):
    def factory(store: FakeDriveStore, root_id: str = "R") -> FolderTreeLister:
        return FolderTreeLister(build_source(backend, store), root_id=root_id)

    return factory


@pytest.fixture()
def sample_store():
    """R "Top" > A "A" (f1.txt) > B "B"."""
    return (
        FakeDriveStore()
        .add_folder("R", "Top")
        .add_folder("A", "A", parent="R")
        .add_file("f1", "f1.txt", parent="A")
        .add_folder("B", "B", parent="A")
    )
