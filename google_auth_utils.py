import json
import logging
import os
from typing import Optional, Sequence, Tuple

import google.auth
from google.auth.credentials import Credentials
from google.auth.exceptions import DefaultCredentialsError
from google.auth.transport.requests import Request
from google.oauth2 import service_account

import drive_config
from drive_errors import DriveConfigurationError


logger = logging.getLogger(__name__)


def delegate_credentials(creds: Credentials, subject: Optional[str]) -> Credentials:
    """Return creds acting as subject; credentials that cannot delegate are refused."""
    if not subject:
        return creds
    if not callable(getattr(creds, "with_subject", None)):
        raise DriveConfigurationError(
            f"impersonation requires service account credentials; "
            f"{type(creds).__name__} cannot act as {subject}"
        )
    logger.info("impersonating_user", extra={"subject": subject})
    return creds.with_subject(subject)


def load_service_account_credentials(
    scopes: Sequence[str],
    subject: Optional[str] = None,
) -> Optional[Tuple[service_account.Credentials, Optional[str]]]:
    """Load service account credentials; returns (creds, project_id) or None.

    Lookup order: GOOGLE_APPLICATION_CREDENTIALS, DRIVE_TREE_SA_JSON_CONTENT
    (inline JSON), DRIVE_TREE_SA_JSON (path or inline JSON). `subject`
    switches on domain-wide delegation for that user.
    """

    subject = subject or drive_config.IMPERSONATE_EMAIL
    creds_path = os.getenv("GOOGLE_APPLICATION_CREDENTIALS")
    sa_json = os.getenv("DRIVE_TREE_SA_JSON")
    sa_inline = os.getenv("DRIVE_TREE_SA_JSON_CONTENT")

    if creds_path:
        if os.path.exists(creds_path):
            creds = service_account.Credentials.from_service_account_file(
                creds_path, scopes=scopes
            )
            return delegate_credentials(creds, subject), getattr(creds, "project_id", None)
        logger.warning("GOOGLE_APPLICATION_CREDENTIALS path %s does not exist", creds_path)

    if sa_inline:
        info = json.loads(sa_inline)
        creds = service_account.Credentials.from_service_account_info(info, scopes=scopes)
        return delegate_credentials(creds, subject), info.get("project_id")

    if sa_json:
        if os.path.exists(sa_json):
            creds = service_account.Credentials.from_service_account_file(sa_json, scopes=scopes)
            return delegate_credentials(creds, subject), getattr(creds, "project_id", None)
        try:
            info = json.loads(sa_json)
            creds = service_account.Credentials.from_service_account_info(info, scopes=scopes)
            return delegate_credentials(creds, subject), info.get("project_id")
        except json.JSONDecodeError:
            logger.warning("DRIVE_TREE_SA_JSON is not valid JSON or file path")

    return None


def load_credentials(
    scopes: Sequence[str],
    subject: Optional[str] = None,
) -> Tuple[Credentials, Optional[str]]:
    """Service account first, then Application Default Credentials."""
    subject = subject or drive_config.IMPERSONATE_EMAIL
    creds_tuple = load_service_account_credentials(scopes, subject=subject)
    if creds_tuple:
        return creds_tuple

    try:
        creds, project_id = google.auth.default(scopes=scopes)
    except DefaultCredentialsError as exc:
        raise DriveConfigurationError(
            "No Google credentials configured; set GOOGLE_APPLICATION_CREDENTIALS, "
            "DRIVE_TREE_SA_JSON or DRIVE_TREE_SA_JSON_CONTENT, or run "
            "`gcloud auth application-default login`."
        ) from exc

    logger.info("using_application_default_credentials", extra={"project_id": project_id})
    return delegate_credentials(creds, subject), project_id


class CredentialsTokenProvider:
    """Callable returning a bearer token, refreshing the credentials when stale."""

    def __init__(self, credentials: Credentials, request: Optional[Request] = None):
        self.credentials = credentials
        self._request = request

    def __call__(self) -> str:
        if not self.credentials.valid:
            if self._request is None:
                self._request = Request()
            self.credentials.refresh(self._request)
            logger.debug("access_token_refreshed")
        return self.credentials.token


class StaticTokenProvider:
    """Callable for a token obtained elsewhere (e.g. handed over by another service)."""

    def __init__(self, token: str):
        if not token:
            raise DriveConfigurationError("An explicit access token must be a non-empty string")
        self.token = token

    def __call__(self) -> str:
        return self.token
