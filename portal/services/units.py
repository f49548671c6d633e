# portal/services/units.py
"""
Unit creation, investor folder backfill, and deriving portfolio units from
processed OTP / SOA documents.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from portal.models import (
    TYPE_OTP,
    TYPE_SOA,
    as_text,
    build_unit,
    effective_type,
    is_unit_category,
    new_id,
    now_iso,
    to_number,
    unit_display_name,
    unit_folder_name,
)
from portal.services.drive_client import PERSONAL_FOLDER_NAME
from portal.services.openai_client import is_fallback_extraction

log = logging.getLogger(__name__)

_PLACEHOLDERS = {"", "n/a", "manual review required", "unknown project"}
_AREA_PLACEHOLDERS = _PLACEHOLDERS | {"0"}


def _usable(value: Any, placeholders=_PLACEHOLDERS) -> bool:
    return as_text(value).lower() not in placeholders


def ensure_investor_folders(store, drive, investor: Dict[str, Any]) -> Optional[str]:
    """Backfill missing root/personal folders on an investor. Returns an error string or None."""
    if investor.get("personalDocsFolderId") or not drive.available:
        return None

    if not investor.get("googleDriveFolderId"):
        result = drive.ensure_investor_hierarchy(investor.get("name"), investor.get("email") or investor["id"])
        changes = {
            "googleDriveFolderId": (result.value or {}).get("mainFolderId"),
            "personalDocsFolderId": (result.value or {}).get("personalDocsFolderId"),
            "googleDriveError": result.error,
        }
        error = result.error
    else:
        result = drive.ensure_folder(PERSONAL_FOLDER_NAME, investor["googleDriveFolderId"])
        changes = {"personalDocsFolderId": result.value if result.ok else None}
        error = result.error

    if any(changes.get(k) for k in ("googleDriveFolderId", "personalDocsFolderId")):
        store.investors.update(investor["id"], changes)
    return error


def create_unit_with_folder(store, drive, investor: Dict[str, Any], data: Dict[str, Any], max_attempts: int = 3):
    """
    Persist a new unit and try (up to ``max_attempts`` times) to create its
    folder under the investor root. Returns (unit, folder_creation dict).
    """
    unit = build_unit({**data, "investorId": investor["id"]})
    folder_name = unit_folder_name(unit)

    ensure_investor_folders(store, drive, investor)
    root = investor.get("googleDriveFolderId")
    if root:
        result = drive.ensure_folder_with_retries(folder_name, root, max_attempts=max_attempts)
        folder_id = result.value if result.ok else None
        error = None if result.ok else result.error
        attempts = result.attempts
        attempt_errors = result.details.get("attemptErrors") or []
    else:
        folder_id, attempts, attempt_errors = None, 0, []
        error = "Investor does not have a main Google Drive folder. Unit stored locally only."

    unit.update({"googleDriveFolderId": folder_id, "googleDriveError": error, "folderCreationAttempts": attempts})
    store.units.add(unit)
    log.info("Created unit %s (%s) folder=%s attempts=%d", unit["id"], unit["name"], folder_id, attempts)

    folder_creation = {
        "success": bool(folder_id),
        "attempts": attempts,
        "folderId": folder_id,
        "folderName": folder_name,
        "error": error,
        "attemptErrors": attempt_errors,
    }
    return unit, folder_creation


# ---------------------------------------------------------------------------
# derivation from documents
# ---------------------------------------------------------------------------
def _otp_amount(extracted: Dict[str, Any]) -> float:
    return to_number(extracted.get("amount")) or to_number(extracted.get("purchaseAmount"))


def _otp_changes(unit: Dict[str, Any], extracted: Dict[str, Any]) -> Dict[str, Any]:
    changes: Dict[str, Any] = {}
    amount = _otp_amount(extracted)
    if amount > 0:
        changes["purchaseValue"] = amount
        changes["currentValue"] = max(to_number(unit.get("currentValue")), amount)
        if not to_number(unit.get("monthlyRental")):
            changes["monthlyRental"] = to_number(extracted.get("estimatedRental")) or round(amount * 0.05 / 12)
    developer = extracted.get("developer") or extracted.get("project")
    if _usable(developer) and not _usable(unit.get("project")):
        changes["project"] = as_text(developer)
    sqft = extracted.get("sqft") or extracted.get("area")
    if _usable(sqft, _AREA_PLACEHOLDERS) and as_text(unit.get("area")) in ("", "0"):
        changes["area"] = as_text(sqft)
    if _usable(extracted.get("unitDetails")) and not unit.get("unitDetails"):
        changes["unitDetails"] = extracted["unitDetails"]
    return changes


def _otp_project(extracted: Dict[str, Any]) -> str:
    return as_text(extracted.get("developer") or extracted.get("project")) or "Unknown Project"


def _unit_from_otp(extracted: Dict[str, Any], file_name: str) -> Dict[str, Any]:
    amount = _otp_amount(extracted)
    return {
        "id": f"{new_id()}_unit",
        "name": as_text(extracted.get("unitDetails") or extracted.get("unitNumber")) or f"Unit from {file_name}",
        "unitNumber": as_text(extracted.get("unitNumber")) or "N/A",
        "project": _otp_project(extracted),
        "type": extracted.get("unitType") or "2 Bedroom",
        "area": str(extracted.get("sqft") or extracted.get("area") or "0"),
        "currentValue": amount,
        "purchaseValue": amount,
        "monthlyRental": to_number(extracted.get("estimatedRental")) or round(amount * 0.05 / 12),
        "occupancyStatus": "Vacant",
        "location": extracted.get("location") or "Dubai, UAE",
        "unitDetails": extracted.get("unitDetails") or "",
    }


def _match_soa_unit(units, soa: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    number = as_text(soa.get("unitNumber"))
    details = as_text(soa.get("unitDetails"))
    project = as_text(soa.get("project") or soa.get("developer"))
    for unit in units:
        if number and as_text(unit.get("unitNumber")) == number:
            return unit
        if details and details in as_text(unit.get("name")):
            return unit
        if project and as_text(unit.get("project")) == project:
            return unit
    return None


def _link_document(store, document: Dict[str, Any], unit: Dict[str, Any], how: str) -> None:
    meta = dict(document.get("persistenceMetadata") or {})
    meta.update({"linkedBy": how, "linkedAt": now_iso(), "unitName": unit_display_name(unit)})
    store.documents.update(document["id"], {
        "unitId": unit["id"],
        "category": unit_display_name(unit),
        "persistenceMetadata": meta,
    })


def derive_unit_from_document(store, drive, investor, document, resolved_unit=None, max_attempts: int = 3) -> Dict[str, Any]:
    """
    OTP on a unit category updates (or creates) the matching unit with the
    purchase amount; SOA links to an existing unit or creates a pending one.
    Amount 0 never promotes a unit into the portfolio.
    """
    none = {"action": "none", "unitId": None}
    extracted = document.get("extractedData")
    if not isinstance(extracted, dict) or not is_unit_category(document.get("originalCategory")):
        return none

    etype = effective_type(document)
    investor_units = store.units.filter(investorId=investor["id"])

    if etype == TYPE_OTP:
        target = resolved_unit
        if target is None and _usable(extracted.get("unitNumber")):
            number, project = as_text(extracted["unitNumber"]), _otp_project(extracted)
            target = next(
                (
                    u for u in investor_units
                    if as_text(u.get("unitNumber")) == number and as_text(u.get("project")) == project
                ),
                None,
            )
        if target is not None:
            changes = _otp_changes(target, extracted)
            if target is not resolved_unit:
                _link_document(store, document, target, "otp_match")
            if not changes:
                return {"action": "linked" if target is not resolved_unit else "none", "unitId": target["id"]}
            changes["updatedAt"] = now_iso()
            store.units.update(target["id"], changes)
            log.info("OTP %s updated unit %s: %s", document.get("fileName"), target["id"], sorted(changes))
            return {"action": "updated", "unitId": target["id"]}

        if is_fallback_extraction(extracted):
            return none
        unit, _ = create_unit_with_folder(
            store, drive, investor, _unit_from_otp(extracted, document.get("fileName") or "document"), max_attempts
        )
        _link_document(store, document, unit, "otp_created")
        return {"action": "created", "unitId": unit["id"]}

    if etype == TYPE_SOA and resolved_unit is None:
        match = _match_soa_unit(investor_units, extracted)
        if match is not None:
            _link_document(store, document, match, "soa_match")
            return {"action": "linked", "unitId": match["id"]}
        if _usable(extracted.get("unitNumber")) or _usable(extracted.get("unitDetails")):
            pending = {
                "id": f"{new_id()}_soa_unit",
                "name": as_text(extracted.get("unitDetails") or extracted.get("unitNumber")),
                "unitNumber": as_text(extracted.get("unitNumber")) or "N/A",
                "project": as_text(extracted.get("project")) or "Unknown Project",
                "type": "Unknown",
                "area": "0",
                "purchaseValue": 0,
                "currentValue": 0,
            }
            unit, _ = create_unit_with_folder(store, drive, investor, pending, max_attempts)
            _link_document(store, document, unit, "soa_created")
            return {"action": "created", "unitId": unit["id"]}

    return none
