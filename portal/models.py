# portal/models.py
"""
Record shapes for the JSON collections.

Records stay plain dicts (camelCase keys, as the SPA consumes them); the
helpers here build new records with every field defaulted and coerce the
loosely-typed values that arrive from the client or the AI extractor.
"""
from __future__ import annotations

import math
import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# ---- categories ----
PERSONAL_DOCUMENTS = "Personal Documents"
OTHER_DOCUMENTS = "Other Documents"
UNIT_DOCUMENTS = "Unit Documents"
UNIT_CATEGORY_ALIASES = {UNIT_DOCUMENTS, "Units"}

# ---- document status ----
STATUS_PROCESSING = "Processing"
STATUS_PROCESSED = "Processed"
STATUS_ERROR = "Error"

# ---- canonical document types ----
TYPE_PASSPORT = "Passport"
TYPE_OTP = "OTP"
TYPE_VISA = "Visa"
TYPE_SOA = "SOA"
TYPE_PERSONAL = "Personal"
TYPE_OTHER = "Other"
CANONICAL_TYPES = (TYPE_PASSPORT, TYPE_OTP, TYPE_VISA, TYPE_SOA, TYPE_PERSONAL, TYPE_OTHER)

# ---- orders ----
ORDER_STATUSES = ("pending_payment", "payment_submitted", "confirmed", "processing", "completed")

_id_lock = threading.Lock()
_last_id = 0


def new_id() -> str:
    """Millisecond timestamp id, bumped so two ids in the same ms never collide."""
    global _last_id
    with _id_lock:
        candidate = int(time.time() * 1000)
        if candidate <= _last_id:
            candidate = _last_id + 1
        _last_id = candidate
    return str(candidate)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def today_iso() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def to_number(value: Any) -> float:
    """parseFloat-style coercion: anything unusable becomes 0, never NaN."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        num = float(value)
    else:
        text = str(value).strip().replace(",", "")
        for prefix in ("AED", "USD", "$"):
            if text.upper().startswith(prefix):
                text = text[len(prefix):].strip()
        try:
            num = float(text)
        except ValueError:
            return 0.0
    if math.isnan(num) or math.isinf(num):
        return 0.0
    return num


def as_text(value: Any) -> str:
    """Stripped string form of a loosely-typed field; None becomes ""."""
    return "" if value is None else str(value).strip()


def normalize_type(declared: Optional[str]) -> str:
    """Map free-text document types ("OTP Document", "Visa/EID", ...) to a canonical type."""
    s = as_text(declared).lower()
    if not s:
        return TYPE_OTHER
    if "otp" in s or "offer to purchase" in s:
        return TYPE_OTP
    if "soa" in s or "statement of account" in s:
        return TYPE_SOA
    if "passport" in s:
        return TYPE_PASSPORT
    if "visa" in s or "eid" in s or "emirates id" in s:
        return TYPE_VISA
    if "personal" in s:
        return TYPE_PERSONAL
    return TYPE_OTHER


def effective_type(doc: Dict[str, Any]) -> str:
    """
    Declared type wins when it names a specific type; otherwise the type the
    extractor reported; otherwise Other.
    """
    declared = normalize_type(doc.get("documentType") or doc.get("type"))
    if declared != TYPE_OTHER:
        return declared
    extracted = doc.get("extractedData") or {}
    if isinstance(extracted, dict):
        ext_type = str(extracted.get("type") or "").strip()
        for canonical in CANONICAL_TYPES:
            if ext_type.lower() == canonical.lower():
                return canonical
    return TYPE_OTHER


def is_unit_category(category: Optional[str]) -> bool:
    return as_text(category) in UNIT_CATEGORY_ALIASES


def unit_folder_name(unit: Dict[str, Any]) -> str:
    name = unit_display_name(unit)
    number = as_text(unit.get("unitNumber"))
    if number and number != "N/A":
        return f"{name} ({number})"
    return name


def unit_display_name(unit: Dict[str, Any]) -> str:
    return as_text(unit.get("name") or unit.get("unitName")) or f"Unit {unit.get('id')}"


def build_investor(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": new_id(),
        "name": data["name"],
        "email": data["email"],
        "phone": data.get("phone") or "",
        "nationality": data.get("nationality") or "",
        "birthDate": data.get("birthDate") or "",
        "password": data["password"],
        "googleDriveFolderId": None,
        "personalDocsFolderId": None,
        "googleDriveError": None,
        "createdAt": now_iso(),
    }


def build_unit(data: Dict[str, Any]) -> Dict[str, Any]:
    """Canonical unit; accepts both the current (name/project/area) and legacy
    (unitName/developer/sqft/amount) field names."""
    name = as_text(data.get("name") or data.get("unitName"))
    legacy_amount = to_number(data.get("amount"))
    return {
        "id": data.get("id") or new_id(),
        "investorId": data["investorId"],
        "name": name,
        "unitNumber": as_text(data.get("unitNumber")),
        "project": as_text(data.get("project") or data.get("developer")),
        "type": data.get("type") or "Studio",
        "area": str(data.get("area") or data.get("sqft") or "0"),
        "currentValue": to_number(data.get("currentValue")) or legacy_amount,
        "purchaseValue": to_number(data.get("purchaseValue")) or legacy_amount,
        "monthlyRental": to_number(data.get("monthlyRental")),
        "occupancyStatus": data.get("occupancyStatus") or "Vacant",
        "location": data.get("location") or "Dubai, UAE",
        "unitDetails": data.get("unitDetails") or "",
        "googleDriveFolderId": None,
        "googleDriveError": None,
        "folderCreationAttempts": 0,
        "createdAt": now_iso(),
    }


UNIT_NUMERIC_FIELDS = ("currentValue", "purchaseValue", "monthlyRental")
UNIT_TEXT_FIELDS = ("name", "unitNumber", "project")


def coerce_unit_changes(changes: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(changes)
    out.pop("id", None)
    out.pop("investorId", None)
    for key in UNIT_NUMERIC_FIELDS:
        if key in out:
            out[key] = to_number(out[key])
    if "area" in out and out["area"] is not None:
        out["area"] = str(out["area"])
    for key in UNIT_TEXT_FIELDS:
        if key in out:
            out[key] = as_text(out[key])
    return out


def is_portfolio_unit(unit: Dict[str, Any]) -> bool:
    return to_number(unit.get("purchaseValue")) > 0
