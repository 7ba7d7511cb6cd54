# drive_rest.py
"""
Drive folder source that talks to the REST endpoint directly.

Query strings are built by hand and the nextPageToken loop is explicit,
so the only dependency beyond google-auth (for tokens) is requests.
"""

import logging
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional
from urllib.parse import quote

import requests

import drive_config
from drive_config import SCOPES, SUPPORTED_API_VERSION
from drive_errors import DriveConfigurationError, DriveRequestError
from drive_service import children_query
from google_auth_utils import CredentialsTokenProvider, StaticTokenProvider, load_credentials
from tree_models import FileEntry, FolderRef


logger = logging.getLogger(__name__)

TokenProvider = Callable[[], str]


def add_query_parameters(url: str, params: Mapping[str, Any]) -> str:
    """
    Append params to url as a query string.

    List values become repeated keys and every value is percent-encoded.
    An empty url yields the bare query string without a leading "?".
    """
    if url is None or params is None or not isinstance(url, str):
        raise ValueError("Please give URL (str) and query parameters (mapping).")

    pairs = []
    for key, value in params.items():
        values = value if isinstance(value, (list, tuple)) else [value]
        for v in values:
            if isinstance(v, bool):
                v = "true" if v else "false"
            pairs.append(f"{key}={quote(str(v), safe='')}")

    query = "&".join(pairs)
    return query if url == "" else f"{url}?{query}"


class DriveRestClient:
    def __init__(
        self,
        token_provider: Optional[TokenProvider] = None,
        *,
        access_token: Optional[str] = None,
        subject: Optional[str] = None,
        session: Optional[requests.Session] = None,
        api_url: Optional[str] = None,
        page_size: Optional[int] = None,
        timeout: Optional[float] = None,
        correlation_id: Optional[str] = None,
    ):
        self.correlation_id = correlation_id or "no-correlation-id"
        self.api_url = (api_url or drive_config.API_URL).rstrip("/")
        self.page_size = drive_config.validate_page_size(
            page_size if page_size is not None else drive_config.PAGE_SIZE
        )
        self.timeout = timeout if timeout is not None else drive_config.HTTP_TIMEOUT

        if f"/drive/{SUPPORTED_API_VERSION}/" not in self.api_url + "/":
            raise DriveConfigurationError(
                f"Drive REST endpoint must be the {SUPPORTED_API_VERSION} files "
                f"collection, got {self.api_url!r}"
            )

        if token_provider is not None and access_token is not None:
            raise DriveConfigurationError("Pass either token_provider or access_token, not both")
        if subject and (token_provider is not None or access_token is not None):
            raise DriveConfigurationError(
                "impersonation requires service account credentials; "
                "a ready token cannot be delegated"
            )
        if access_token is not None:
            token_provider = StaticTokenProvider(access_token)
        if token_provider is None:
            credentials, _ = load_credentials(SCOPES, subject=subject)
            token_provider = CredentialsTokenProvider(credentials)

        self.token_provider = token_provider
        self.session = session or requests.Session()

    # -------------------------------
    # Internal HTTP helper
    # -------------------------------
    def _get(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        full_url = add_query_parameters(url, params)
        headers = {"Authorization": f"Bearer {self.token_provider()}"}

        try:
            response = self.session.get(full_url, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            logger.error(
                "drive_http_error",
                extra={"url": url, "status": status, "correlation_id": self.correlation_id},
            )
            raise DriveRequestError(
                f"Drive API request failed with HTTP {status}: {url}",
                url=url,
                status_code=status,
            ) from exc
        except requests.RequestException as exc:
            logger.error(
                "drive_transport_error",
                extra={"url": url, "error": str(exc), "correlation_id": self.correlation_id},
            )
            raise DriveRequestError(f"Drive API request failed: {exc}", url=url) from exc

        return response.json()

    # -------------------------------
    # Paged listing
    # -------------------------------
    def iter_children(self, parent_id: str, want_folders: bool) -> Iterator[Dict]:
        query = {
            "q": children_query(parent_id, want_folders),
            "fields": "files(id,name,mimeType),nextPageToken",
            "pageSize": self.page_size,
            "supportsAllDrives": True,
            "includeItemsFromAllDrives": True,
        }
        pages = 0
        while True:
            body = self._get(self.api_url, query)
            pages += 1
            yield from body.get("files", [])
            page_token = body.get("nextPageToken")
            if not page_token:
                break
            query["pageToken"] = page_token

        logger.debug(
            "listing_pages_exhausted",
            extra={
                "folder_id": parent_id,
                "pages": pages,
                "folders": want_folders,
                "correlation_id": self.correlation_id,
            },
        )

    # -------------------------------
    # FolderSource
    # -------------------------------
    def get_folder_meta(self, folder_id: str) -> FolderRef:
        body = self._get(
            f"{self.api_url}/{quote(folder_id, safe='')}",
            {"supportsAllDrives": True, "fields": "name"},
        )
        return FolderRef(id=folder_id, name=body["name"])

    def list_child_folders(self, parent_id: str) -> List[FolderRef]:
        folders = [
            FolderRef(id=item["id"], name=item["name"])
            for item in self.iter_children(parent_id, want_folders=True)
        ]
        logger.info(
            "listed_child_folders",
            extra={"folder_id": parent_id, "count": len(folders), "correlation_id": self.correlation_id},
        )
        return folders

    def list_child_files(self, parent_id: str) -> List[FileEntry]:
        files = [
            FileEntry(name=item["name"], id=item["id"], mime_type=item.get("mimeType", ""))
            for item in self.iter_children(parent_id, want_folders=False)
        ]
        logger.info(
            "listed_child_files",
            extra={"folder_id": parent_id, "count": len(files), "correlation_id": self.correlation_id},
        )
        return files
