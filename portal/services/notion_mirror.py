# portal/services/notion_mirror.py
"""Best-effort mirror of investor and document records into Notion databases."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from notion_client import Client

from portal.models import today_iso
from portal.services.files import absolute_file_url

log = logging.getLogger(__name__)


def _text(value: Any) -> Dict[str, Any]:
    return {"rich_text": [{"text": {"content": str(value or "")}}]}


def _title(value: Any) -> Dict[str, Any]:
    return {"title": [{"text": {"content": str(value or "Unknown")}}]}


def investor_properties(investor: Dict[str, Any]) -> Dict[str, Any]:
    birth = investor.get("birthDate")
    return {
        "Name": _title(investor.get("name")),
        "Email": {"email": investor.get("email") or None},
        "Phone": {"phone_number": investor.get("phone") or None},
        "Nationality": _text(investor.get("nationality")),
        "Birth Date": {"date": {"start": birth} if birth else None},
        "Password": _text(investor.get("password")),
        "Google Drive Folder ID": _text(investor.get("googleDriveFolderId")),
        "Personal Docs Folder ID": _text(investor.get("personalDocsFolderId")),
    }


def document_properties(document: Dict[str, Any], base_url: str) -> Dict[str, Any]:
    props: Dict[str, Any] = {
        "Document ID": _title(document.get("documentId") or document.get("id")),
        "Investor Name": _text(document.get("investorName") or "Unknown"),
        "Document Type": _text(document.get("documentType") or document.get("type") or "Other"),
        "Upload Date": {"date": {"start": document.get("uploadDate") or today_iso()}},
        "Status": _text(document.get("status") or "Processing"),
    }
    drive = document.get("googleDrive") or {}
    if drive.get("webViewLink"):
        props["Google Drive Link"] = {"url": drive["webViewLink"]}
    file_url = absolute_file_url(document.get("fileUrl"), base_url)
    if file_url:
        props["File"] = {"url": file_url}
    return props


class NotionMirror:
    def __init__(
        self,
        api_key: Optional[str] = None,
        investors_db_id: Optional[str] = None,
        documents_db_id: Optional[str] = None,
        base_url: str = "http://localhost:3001",
        client: Any = None,
    ):
        self.investors_db_id = investors_db_id
        self.documents_db_id = documents_db_id
        self.base_url = base_url
        self.client = client
        if self.client is None and api_key:
            self.client = Client(auth=api_key)

    def init_app(self, app) -> None:
        self.investors_db_id = app.config.get("NOTION_INVESTORS_DB_ID")
        self.documents_db_id = app.config.get("NOTION_DOCUMENTS_DB_ID")
        self.base_url = app.config.get("BASE_URL", self.base_url)
        self.client = app.config.get("NOTION_CLIENT")
        if self.client is None and app.config.get("NOTION_API_KEY"):
            self.client = Client(auth=app.config["NOTION_API_KEY"])
        app.extensions["notion_mirror"] = self

    @property
    def investors_enabled(self) -> bool:
        return bool(self.client and self.investors_db_id)

    @property
    def documents_enabled(self) -> bool:
        return bool(self.client and self.documents_db_id)

    def _create_page(self, database_id: str, properties: Dict[str, Any], label: str) -> Optional[str]:
        try:
            page = self.client.pages.create(parent={"database_id": database_id}, properties=properties)
            return page.get("id")
        except Exception as e:
            log.error("Notion %s save error: %s", label, e)
            return None

    def mirror_investor(self, investor: Dict[str, Any]) -> Optional[str]:
        """Page id on success, None when skipped or failed."""
        if not self.investors_enabled:
            return None
        return self._create_page(self.investors_db_id, investor_properties(investor), "investor")

    def mirror_document(self, document: Dict[str, Any]) -> Optional[str]:
        if not self.documents_enabled:
            return None
        return self._create_page(self.documents_db_id, document_properties(document, self.base_url), "document")
