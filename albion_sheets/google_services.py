"""
Google Sheets / Drive adapters.

Thin wrappers around the ``googleapiclient`` discovery clients that expose
the two capabilities the provisioner needs:

``SheetsService``
    ``create(title)``, ``write_range(id, range_ref, values)``,
    ``batch_format(id, requests)``

``DriveAccessService``
    ``grant_owner(id, email)``, ``list_permissions(id)``,
    ``delete_permission(id, permission_id)``

Both are constructed explicitly and handed to the ``Provisioner``; nothing
here is cached at module level.  Every remote failure surfaces as a
``RemoteServiceError``.

Authentication
--------------
Uses a Google Cloud service-account JSON key.  Set the path via the
``ALBION_GOOGLE_CREDENTIALS`` environment variable, or pass it directly to
``build_services``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2.service_account import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from albion_sheets.errors import RemoteServiceError
from albion_sheets.models import Cell, Document, Permission

logger = logging.getLogger("albion.google_services")

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]

USER_ENTERED = "USER_ENTERED"


def _http_status(error: HttpError) -> Optional[int]:
    status = getattr(error, "status_code", None)
    if status is None:
        resp = getattr(error, "resp", None)
        status = getattr(resp, "status", None) if resp is not None else None
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


def _execute(request, operation: str):
    """Run a prepared API request, translating client errors."""
    try:
        return request.execute()
    except HttpError as exc:
        status = _http_status(exc)
        raise RemoteServiceError(
            f"{operation} failed (HTTP {status}): {exc}", operation=operation, status=status
        ) from exc
    except (GoogleAuthError, httplib2.HttpLib2Error, OSError) as exc:
        raise RemoteServiceError(f"{operation} failed: {exc}", operation=operation) from exc


# ---------------------------------------------------------------------------
# Sheets
# ---------------------------------------------------------------------------
class SheetsService:
    """Spreadsheet capability backed by the Sheets v4 API."""

    def __init__(self, service):
        self.service = service

    @classmethod
    def from_credentials(cls, credentials) -> "SheetsService":
        return cls(build("sheets", "v4", credentials=credentials, cache_discovery=False))

    def create(self, title: str) -> Document:
        body = {"properties": {"title": title}}
        data = _execute(
            self.service.spreadsheets().create(
                body=body, fields="spreadsheetId,spreadsheetUrl"
            ),
            "spreadsheets.create",
        )
        logger.info("Created spreadsheet '%s' (%s)", title, data["spreadsheetId"])
        return Document(id=data["spreadsheetId"], url=data["spreadsheetUrl"], title=title)

    def write_range(self, spreadsheet_id: str, range_ref: str, values: list[list[Cell]]) -> None:
        _execute(
            self.service.spreadsheets().values().update(
                spreadsheetId=spreadsheet_id,
                range=range_ref,
                valueInputOption=USER_ENTERED,
                body={"values": values},
            ),
            "spreadsheets.values.update",
        )
        logger.debug("Wrote %d rows to %s", len(values), range_ref)

    def batch_format(self, spreadsheet_id: str, requests: list[dict]) -> None:
        if not requests:
            return
        _execute(
            self.service.spreadsheets().batchUpdate(
                spreadsheetId=spreadsheet_id, body={"requests": requests}
            ),
            "spreadsheets.batchUpdate",
        )
        logger.debug("Applied %d formatting requests", len(requests))


# ---------------------------------------------------------------------------
# Drive permissions
# ---------------------------------------------------------------------------
class DriveAccessService:
    """Permission capability backed by the Drive v3 API."""

    def __init__(self, service):
        self.service = service

    @classmethod
    def from_credentials(cls, credentials) -> "DriveAccessService":
        return cls(build("drive", "v3", credentials=credentials, cache_discovery=False))

    def grant_owner(self, file_id: str, email: str) -> str:
        """Transfer ownership of *file_id* to *email*; returns the permission id."""
        data = _execute(
            self.service.permissions().create(
                fileId=file_id,
                body={"type": "user", "role": "owner", "emailAddress": email},
                fields="id",
                transferOwnership=True,
            ),
            "permissions.create",
        )
        logger.info("Transferred ownership of %s to %s", file_id, email)
        return data.get("id", "")

    def list_permissions(self, file_id: str) -> list[Permission]:
        results: list[Permission] = []
        page_token = None
        while True:
            resp = _execute(
                self.service.permissions().list(
                    fileId=file_id,
                    fields="nextPageToken, permissions(id, role, type, emailAddress)",
                    pageToken=page_token,
                ),
                "permissions.list",
            )
            results.extend(Permission.from_api(p) for p in resp.get("permissions", []))
            page_token = resp.get("nextPageToken")
            if not page_token:
                break
        return results

    def delete_permission(self, file_id: str, permission_id: str) -> None:
        _execute(
            self.service.permissions().delete(fileId=file_id, permissionId=permission_id),
            "permissions.delete",
        )
        logger.info("Deleted permission %s on %s", permission_id, file_id)


def load_credentials(credentials_path: str | Path) -> Credentials:
    """Load service-account credentials with the Sheets and Drive scopes."""
    path = Path(credentials_path)
    if not path.exists():
        raise FileNotFoundError(f"Credentials file not found: {path}")
    return Credentials.from_service_account_file(str(path), scopes=SCOPES)


def build_services(credentials_path: str | Path) -> tuple[SheetsService, DriveAccessService]:
    """Construct both service capabilities from one service-account key."""
    credentials = load_credentials(credentials_path)
    return (
        SheetsService.from_credentials(credentials),
        DriveAccessService.from_credentials(credentials),
    )
