# portal/services/documents.py
"""Shared pieces of the document upload pipeline."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from portal.models import (
    STATUS_ERROR,
    STATUS_PROCESSED,
    STATUS_PROCESSING,
    new_id,
    now_iso,
    to_number,
    today_iso,
)
from portal.services.files import decode_data_url, save_file_locally

log = logging.getLogger(__name__)


@dataclass
class IngestResult:
    status: str
    extracted: Optional[Dict[str, Any]] = None
    file_url: Optional[str] = None
    ai_error: Optional[str] = None
    payload_error: Optional[str] = None


def ingest_payload(data: Dict[str, Any], llm, uploads_dir: str) -> IngestResult:
    """
    Validate the base64 payload, run extraction and keep a local copy.
    A corrupt payload marks the document Error; extraction failures still
    count as processed (the fallback payload stands in).
    """
    file_data = data.get("fileData")
    if not file_data:
        return IngestResult(status=STATUS_PROCESSING)
    try:
        decode_data_url(file_data)
    except ValueError as e:
        log.warning("Rejected payload for %s: %s", data.get("name"), e)
        return IngestResult(status=STATUS_ERROR, payload_error=str(e))

    extracted, ai_error = llm.extract_document(file_data, data.get("type"), data.get("name") or "document")
    file_url = save_file_locally(file_data, data.get("name") or "document", uploads_dir)
    return IngestResult(status=STATUS_PROCESSED, extracted=extracted, file_url=file_url, ai_error=ai_error)


def legacy_target(investor: Dict[str, Any], data: Dict[str, Any], units) -> Tuple[Optional[str], str]:
    """Folder targeting used by the original /api/createDocument endpoint."""
    if data.get("type") == "Personal" or data.get("category") == "personal":
        return investor.get("personalDocsFolderId"), "personal_documents"
    if data.get("unitId"):
        unit = units.find(id=data["unitId"], investorId=investor["id"])
        if unit and unit.get("googleDriveFolderId"):
            return unit["googleDriveFolderId"], "unit_specific"
        return investor.get("googleDriveFolderId"), "main_investor"
    return investor.get("personalDocsFolderId") or investor.get("googleDriveFolderId"), "default_personal"


def build_document_record(
    data: Dict[str, Any],
    investor: Dict[str, Any],
    ingest: IngestResult,
    drive_meta: Optional[Dict[str, Any]],
    drive_error: Optional[str],
    folder_type: str,
    target_folder_id: Optional[str],
) -> Dict[str, Any]:
    extracted = ingest.extracted or {}
    return {
        "id": data.get("id") or new_id(),
        "documentId": extracted.get("documentId") or new_id(),
        "investorId": investor["id"],
        "investorName": investor.get("name"),
        "unitId": data.get("unitId") or None,
        "documentType": data.get("type"),
        "fileName": data.get("name"),
        "fileType": data.get("fileType"),
        "fileSize": data.get("fileSize"),
        "fileData": data.get("fileData"),
        "uploadDate": today_iso(),
        "status": ingest.status,
        "fileUrl": ingest.file_url,
        "extractedData": ingest.extracted,
        "aiError": ingest.ai_error,
        "payloadError": ingest.payload_error,
        "amount": to_number(extracted.get("amount")),
        "googleDrive": drive_meta,
        "googleDriveError": drive_error,
        "targetFolder": folder_type,
        "targetFolderId": target_folder_id,
        "notionId": None,
        "createdAt": now_iso(),
    }
