# portal/services/files.py
from __future__ import annotations

import base64
import binascii
import logging
import os
import time
from typing import Optional

from werkzeug.utils import secure_filename

log = logging.getLogger(__name__)

MIME_TYPES = {
    ".pdf": "application/pdf",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


def mime_for(filename: str) -> str:
    return MIME_TYPES.get(os.path.splitext(filename or "")[1].lower(), "application/octet-stream")


def decode_data_url(file_data: Optional[str]) -> bytes:
    """Decode a ``data:<mime>;base64,<payload>`` string. Raises ValueError when malformed."""
    if not file_data or "," not in file_data:
        raise ValueError("Invalid file data format")
    payload = file_data.split(",", 1)[1].strip()
    if not payload:
        raise ValueError("No base64 data found")
    try:
        raw = base64.b64decode(payload)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e
    if not raw:
        raise ValueError("Decoded file is empty")
    return raw


def unique_upload_name(filename: str) -> str:
    """``<basename>_<ms timestamp><ext>``"""
    safe = secure_filename(filename or "") or "upload"
    base, ext = os.path.splitext(safe)
    return f"{base}_{int(time.time() * 1000)}{ext}"


def save_file_locally(file_data: str, filename: str, uploads_dir: str) -> Optional[str]:
    """Write the decoded payload under uploads_dir; returns ``/uploads/<name>`` or None."""
    try:
        raw = decode_data_url(file_data)
        os.makedirs(uploads_dir, exist_ok=True)
        stored = unique_upload_name(filename)
        with open(os.path.join(uploads_dir, stored), "wb") as f:
            f.write(raw)
    except (ValueError, OSError) as e:
        log.error("Error saving %s locally: %s", filename, e)
        return None
    log.info("File saved locally: %s", stored)
    return f"/uploads/{stored}"


def absolute_file_url(file_url: Optional[str], base_url: str) -> Optional[str]:
    if not file_url:
        return None
    if file_url.startswith("http"):
        return file_url
    return f"{base_url.rstrip('/')}{file_url}"
