# drive_service.py

import logging
from typing import Any, Dict, Iterator, List, Optional

from googleapiclient.discovery import build

import drive_config
from drive_config import FOLDER_MIME_TYPE, SCOPES, SUPPORTED_API_VERSION
from drive_errors import DriveConfigurationError
from google_auth_utils import delegate_credentials, load_credentials
from tree_models import FileEntry, FolderRef


# Configure logger
logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


def children_query(parent_id: str, want_folders: bool) -> str:
    """Drive `q` expression selecting the untrashed folders (or non-folders) under parent_id."""
    op = "=" if want_folders else "!="
    return f"'{parent_id}' in parents and mimeType{op}'{FOLDER_MIME_TYPE}' and trashed=false"


class DriveManager:
    def __init__(
        self,
        service: Any = None,
        *,
        credentials: Any = None,
        subject: Optional[str] = None,
        api_version: str = SUPPORTED_API_VERSION,
        page_size: Optional[int] = None,
        correlation_id: Optional[str] = None,
    ):
        """
        Drive folder source backed by google-api-python-client.

        Pass a ready `service` (a Drive v3 resource), or let the manager
        build one from `credentials`, falling back to the configured
        service account or Application Default Credentials.

        Args:
            subject: user to impersonate when building from a service account
            page_size: items requested per page (default DRIVE_TREE_PAGE_SIZE)
            correlation_id: Optional correlation ID for tracing requests
        """
        self.correlation_id = correlation_id or "no-correlation-id"
        self.page_size = drive_config.validate_page_size(
            page_size if page_size is not None else drive_config.PAGE_SIZE
        )

        if api_version != SUPPORTED_API_VERSION:
            raise DriveConfigurationError(
                f"Drive API {SUPPORTED_API_VERSION} is required, got {api_version!r}"
            )

        if service is not None and subject:
            raise DriveConfigurationError(
                "impersonation requires service account credentials; "
                "a ready service cannot be delegated"
            )

        if service is None:
            if credentials is None:
                credentials, project_id = load_credentials(SCOPES, subject=subject)
                logger.info(
                    "Using Google credentials (project: %s)",
                    project_id,
                    extra={"correlation_id": self.correlation_id},
                )
            else:
                credentials = delegate_credentials(credentials, subject)
            service = build("drive", api_version, credentials=credentials, cache_discovery=False)

        if not callable(getattr(service, "files", None)):
            raise DriveConfigurationError(
                "Drive service object has no files() collection; build it with "
                "googleapiclient.discovery.build('drive', 'v3', ...)"
            )

        self.service = service

    # ------------------------------------------------------------------
    # Paged listing
    # ------------------------------------------------------------------
    def iter_children(self, parent_id: str, want_folders: bool) -> Iterator[Dict]:
        """
        Yield every child item of parent_id, page after page.
        Pagination is left to files().list_next, which returns None once
        the last page has been read.
        """
        files = self.service.files()
        request = files.list(
            q=children_query(parent_id, want_folders),
            fields="nextPageToken, files(id,name,mimeType)",
            pageSize=self.page_size,
            supportsAllDrives=True,
            includeItemsFromAllDrives=True,
        )
        pages = 0
        while request is not None:
            response = request.execute()
            pages += 1
            yield from response.get("files", [])
            request = files.list_next(request, response)

        logger.debug(
            "listing_pages_exhausted",
            extra={
                "folder_id": parent_id,
                "pages": pages,
                "folders": want_folders,
                "correlation_id": self.correlation_id,
            },
        )

    # ------------------------------------------------------------------
    # FolderSource
    # ------------------------------------------------------------------
    def get_folder_meta(self, folder_id: str) -> FolderRef:
        meta = (
            self.service.files()
            .get(fileId=folder_id, fields="name", supportsAllDrives=True)
            .execute()
        )
        return FolderRef(id=folder_id, name=meta["name"])

    def list_child_folders(self, parent_id: str) -> List[FolderRef]:
        """List every untrashed folder directly under parent_id."""
        folders = [
            FolderRef(id=item["id"], name=item["name"])
            for item in self.iter_children(parent_id, want_folders=True)
        ]
        logger.info(
            "listed_child_folders",
            extra={
                "folder_id": parent_id,
                "count": len(folders),
                "correlation_id": self.correlation_id,
            },
        )
        return folders

    def list_child_files(self, parent_id: str) -> List[FileEntry]:
        """List every untrashed non-folder item directly under parent_id."""
        files = [
            FileEntry(name=item["name"], id=item["id"], mime_type=item.get("mimeType", ""))
            for item in self.iter_children(parent_id, want_folders=False)
        ]
        logger.info(
            "listed_child_files",
            extra={
                "folder_id": parent_id,
                "count": len(files),
                "correlation_id": self.correlation_id,
            },
        )
        return files
