# portal/services/categorization.py
"""
Decides which bucket (and which Drive folder) a document belongs to.

Buckets are "Personal Documents", a unit's name, or "Other Documents". Rules
are evaluated first-match-wins:

1. unit category + unitId  -> the unit (its folder, created on demand)
2. personal category/type   -> Personal Documents
3. anything else            -> Other Documents
"""
from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from portal.models import (
    OTHER_DOCUMENTS,
    PERSONAL_DOCUMENTS,
    TYPE_PERSONAL,
    is_unit_category,
    unit_display_name,
    unit_folder_name,
)

log = logging.getLogger(__name__)


@dataclass
class CategoryResolution:
    category: str
    folder_type: str
    target_folder_id: Optional[str] = None
    unit: Optional[Dict[str, Any]] = None
    attempts: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "finalCategory": self.category,
            "folderType": self.folder_type,
            "targetFolderId": self.target_folder_id,
            "unitId": self.unit["id"] if self.unit else None,
            "unitName": unit_display_name(self.unit) if self.unit else None,
            "folderAttempts": self.attempts,
            "folderErrors": list(self.errors),
        }


def find_investor_unit(units, investor_id: str, unit_id: Optional[str]) -> Optional[Dict[str, Any]]:
    if not unit_id:
        return None
    return units.find(id=unit_id, investorId=investor_id)


def resolve_unit_folder(unit: Dict[str, Any], investor: Dict[str, Any], units, drive, max_attempts: int = 3) -> CategoryResolution:
    """Target the unit's folder, creating it under the investor root if needed."""
    category = unit_display_name(unit)
    if unit.get("googleDriveFolderId"):
        return CategoryResolution(category, "unit_specific", unit["googleDriveFolderId"], unit)

    root = investor.get("googleDriveFolderId")
    if not root:
        return CategoryResolution(category, "none", None, unit, errors=["Investor has no main Google Drive folder"])

    result = drive.ensure_folder_with_retries(unit_folder_name(unit), root, max_attempts=max_attempts)
    errors = list(result.details.get("attemptErrors") or [])
    if result.ok:
        units.update(unit["id"], {
            "googleDriveFolderId": result.value,
            "googleDriveError": None,
            "folderCreationAttempts": result.attempts,
        })
        return CategoryResolution(category, "unit_created", result.value, unit, result.attempts, errors)

    units.update(unit["id"], {"googleDriveError": result.error, "folderCreationAttempts": result.attempts})
    return CategoryResolution(category, "main_investor_fallback", root, unit, result.attempts, errors)


def resolve_document_category(
    investor: Dict[str, Any],
    declared_category: Optional[str],
    unit_id: Optional[str],
    document_type: Optional[str],
    units,
    drive,
    max_attempts: int = 3,
) -> CategoryResolution:
    if is_unit_category(declared_category) and unit_id:
        unit = find_investor_unit(units, investor["id"], unit_id)
        if unit is not None:
            return resolve_unit_folder(unit, investor, units, drive, max_attempts)
        log.warning("Unit %s not found for investor %s; filing under Other Documents", unit_id, investor["id"])
        return CategoryResolution(OTHER_DOCUMENTS, "unit_not_found_fallback", investor.get("googleDriveFolderId"))

    if (declared_category or "").strip() == PERSONAL_DOCUMENTS or (document_type or "").strip() == TYPE_PERSONAL:
        return CategoryResolution(PERSONAL_DOCUMENTS, "personal_documents", investor.get("personalDocsFolderId"))

    return CategoryResolution(
        OTHER_DOCUMENTS,
        "default_other",
        investor.get("personalDocsFolderId") or investor.get("googleDriveFolderId"),
    )


def library_bucket(doc: Dict[str, Any], units_by_id: Dict[str, Dict[str, Any]]) -> str:
    """Bucket for an already-stored document; Personal is never reassigned to a unit."""
    if doc.get("unitId") and doc.get("category") != PERSONAL_DOCUMENTS:
        unit = units_by_id.get(doc["unitId"])
        if unit is not None:
            return unit_display_name(unit)
    if doc.get("category") == PERSONAL_DOCUMENTS or doc.get("targetFolder") == "personal_documents":
        return PERSONAL_DOCUMENTS
    return OTHER_DOCUMENTS


def group_documents(documents: List[Dict[str, Any]], units: List[Dict[str, Any]]) -> "OrderedDict[str, List[Dict[str, Any]]]":
    grouped: "OrderedDict[str, List[Dict[str, Any]]]" = OrderedDict()
    grouped[PERSONAL_DOCUMENTS] = []
    grouped[OTHER_DOCUMENTS] = []
    for unit in units:
        grouped.setdefault(unit_display_name(unit), [])
    units_by_id = {u["id"]: u for u in units}
    for doc in documents:
        grouped[library_bucket(doc, units_by_id)].append(doc)
    return grouped
