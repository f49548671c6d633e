# portal/services/drive_client.py
"""
Google Drive storage adapter.

Every operation returns an AdapterResult instead of raising. Folder lookup is
search-then-create, so repeated calls with the same name and parent reuse the
existing folder. The two steps are not atomic: two concurrent requests for the
same folder can both miss the search and create duplicates. A per-investor
advisory lock around hierarchy/unit folder creation would close that window.
"""
from __future__ import annotations

import io
import json
import logging
import os
import re
from typing import Any, Dict, Optional

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.http import MediaIoBaseUpload

from portal.services.files import decode_data_url
from portal.services.results import AdapterResult

log = logging.getLogger(__name__)

FOLDER_MIME = "application/vnd.google-apps.folder"
DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive"]
PERSONAL_FOLDER_NAME = "Personal Documents"

_ILLEGAL_RE = re.compile(r'[<>:"/\\|?*]')


def sanitize_folder_name(name: str) -> str:
    return _ILLEGAL_RE.sub("_", name or "").strip()


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _load_credentials_info(credentials_json: Optional[str], credentials_file: Optional[str]) -> Optional[dict]:
    if credentials_json:
        info = json.loads(credentials_json)
    elif credentials_file and os.path.exists(credentials_file):
        with open(credentials_file, "r", encoding="utf-8") as f:
            info = json.load(f)
    else:
        return None
    if info.get("private_key"):
        info["private_key"] = info["private_key"].replace("\\n", "\n")
    return info


class DriveClient:
    def __init__(self, parent_folder_id: Optional[str] = None, service: Any = None):
        self.parent_folder_id = parent_folder_id
        self.service = service
        self.init_error: Optional[str] = None

    def init_app(self, app) -> None:
        self.parent_folder_id = app.config.get("GOOGLE_DRIVE_PARENT_FOLDER_ID")
        self.service = app.config.get("DRIVE_SERVICE")
        self.init_error = None
        if self.service is None:
            self.initialize(app.config.get("GOOGLE_DRIVE_CREDENTIALS"), app.config.get("GOOGLE_CREDENTIALS_FILE"))
        app.extensions["drive"] = self

    @property
    def available(self) -> bool:
        return self.service is not None

    def initialize(self, credentials_json: Optional[str] = None, credentials_file: Optional[str] = None) -> bool:
        """Build the Drive v3 service from service-account credentials and check it responds."""
        try:
            info = _load_credentials_info(credentials_json, credentials_file)
            if info is None:
                self.init_error = "No Google Drive credentials found"
                log.info(self.init_error)
                return False

            creds = service_account.Credentials.from_service_account_info(info, scopes=DRIVE_SCOPES)
            service = build("drive", "v3", credentials=creds, cache_discovery=False)
            service.about().get(fields="user").execute()
            self.service = service
            self.init_error = None
            log.info("Google Drive API initialized successfully")
            return True
        except Exception as e:
            self.service = None
            self.init_error = str(e)
            log.error("Failed to initialize Google Drive: %s", e)
            return False

    # ---------- folders ----------
    def ensure_folder(self, name: str, parent_id: Optional[str]) -> AdapterResult:
        """Return the id of folder ``name`` under ``parent_id``, creating it if absent."""
        if not self.available:
            return AdapterResult.failure("Google Drive not initialized")
        if not parent_id:
            return AdapterResult.failure("No parent folder id")

        safe_name = sanitize_folder_name(name)
        if not safe_name:
            return AdapterResult.failure("Folder name is empty after sanitizing")
        try:
            found = (
                self.service.files()
                .list(
                    q=(
                        f"name='{_quote(safe_name)}' and '{_quote(parent_id)}' in parents "
                        f"and mimeType='{FOLDER_MIME}' and trashed=false"
                    ),
                    fields="files(id, name)",
                    supportsAllDrives=True,
                    includeItemsFromAllDrives=True,
                )
                .execute()
            )
            files = found.get("files") or []
            if files:
                log.info("Folder '%s' already exists: %s", safe_name, files[0]["id"])
                return AdapterResult.success(files[0]["id"], created=False)

            created = (
                self.service.files()
                .create(
                    body={"name": safe_name, "parents": [parent_id], "mimeType": FOLDER_MIME},
                    fields="id, name",
                    supportsAllDrives=True,
                )
                .execute()
            )
            log.info("Created folder '%s': %s", safe_name, created["id"])
            return AdapterResult.success(created["id"], created=True)
        except Exception as e:
            log.error("Failed to create/find folder '%s': %s", safe_name, e)
            return AdapterResult.failure(str(e))

    def ensure_folder_with_retries(self, name: str, parent_id: Optional[str], max_attempts: int = 3) -> AdapterResult:
        """Bounded retry loop (no backoff). ``attempts`` and every attempt's error are reported."""
        attempt_errors = []
        result = AdapterResult.failure("Folder creation not attempted")
        attempts = 0
        while attempts < max(1, max_attempts):
            attempts += 1
            result = self.ensure_folder(name, parent_id)
            if result.ok:
                break
            attempt_errors.append(f"Attempt {attempts}: {result.error}")
            log.warning("Folder '%s' attempt %d failed: %s", name, attempts, result.error)
        result.attempts = attempts
        result.details["attemptErrors"] = attempt_errors
        return result

    def ensure_investor_hierarchy(self, investor_name: str, investor_ref: str) -> AdapterResult:
        """
        Root folder for the investor under the configured parent, plus its
        "Personal Documents" subfolder. An inaccessible parent is the one hard
        failure: nothing else can be created for the investor.
        """
        empty = {"mainFolderId": None, "personalDocsFolderId": None}
        if not self.available:
            return AdapterResult(ok=False, value=empty, error="Google Drive not initialized")
        if not self.parent_folder_id:
            return AdapterResult(ok=False, value=empty, error="GOOGLE_DRIVE_PARENT_FOLDER_ID is not configured")

        try:
            self.service.files().get(
                fileId=self.parent_folder_id, fields="id,name", supportsAllDrives=True
            ).execute()
        except Exception as e:
            log.error("Cannot access parent folder %s: %s", self.parent_folder_id, e)
            return AdapterResult(ok=False, value=empty, error=f"Cannot access parent folder: {e}")

        main = self.ensure_folder(investor_name or investor_ref, self.parent_folder_id)
        if not main.ok:
            return AdapterResult(ok=False, value=empty, error=f"Failed to create main investor folder: {main.error}")

        personal = self.ensure_folder(PERSONAL_FOLDER_NAME, main.value)
        value = {"mainFolderId": main.value, "personalDocsFolderId": personal.value if personal.ok else None}
        log.info("Investor folder hierarchy for %s: %s", investor_ref, value)
        return AdapterResult(ok=True, value=value, error=None if personal.ok else personal.error)

    # ---------- files ----------
    def upload(self, file_data: Optional[str], file_name: str, mime_type: Optional[str], folder_id: Optional[str]) -> AdapterResult:
        try:
            raw = decode_data_url(file_data)
        except ValueError as e:
            return AdapterResult.failure(str(e))
        if not self.available or not folder_id:
            return AdapterResult.failure("Google Drive not available or no folder ID")

        try:
            media = MediaIoBaseUpload(io.BytesIO(raw), mimetype=mime_type or "application/octet-stream", resumable=False)
            resp = (
                self.service.files()
                .create(
                    body={"name": file_name, "parents": [folder_id]},
                    media_body=media,
                    fields="id,name,webViewLink,webContentLink,size",
                    supportsAllDrives=True,
                )
                .execute()
            )
        except Exception as e:
            log.error("Google Drive upload of %s failed: %s", file_name, e)
            return AdapterResult.failure(str(e))

        meta: Dict[str, Any] = {
            "fileId": resp.get("id"),
            "fileName": resp.get("name"),
            "webViewLink": resp.get("webViewLink"),
            "webContentLink": resp.get("webContentLink"),
            "size": resp.get("size"),
        }
        log.info("File uploaded to Google Drive: %s", meta["fileId"])
        return AdapterResult.success(meta)

    def status(self) -> Dict[str, Any]:
        if not self.available:
            return {"status": "Not initialized", "parentFolderId": self.parent_folder_id, "error": self.init_error}
        try:
            about = self.service.about().get(fields="user,storageQuota").execute()
            return {"status": "Connected", "parentFolderId": self.parent_folder_id, "about": about}
        except Exception as e:
            return {"status": "Error", "parentFolderId": self.parent_folder_id, "error": str(e)}
