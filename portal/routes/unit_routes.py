# portal/routes/unit_routes.py
from flask import Blueprint, current_app, jsonify, request

from portal.extensions import drive, store
from portal.models import coerce_unit_changes, now_iso, unit_display_name
from portal.services.units import create_unit_with_folder

unit_bp = Blueprint("units", __name__, url_prefix="/api")


def _payload():
    return (request.get_json(silent=True) or {}).get("data") or {}


def _dropdown_row(unit):
    name = unit_display_name(unit)
    details = unit.get("unitDetails") or f"{unit.get('project') or 'Unknown Project'} - {unit.get('area') or '0'} sqft"
    return {
        "id": unit["id"],
        "unitName": name,
        "displayName": name,
        "dropdownLabel": name,
        "unitNumber": unit.get("unitNumber"),
        "project": unit.get("project"),
        "purchaseValue": unit.get("purchaseValue"),
        "googleDriveFolderId": unit.get("googleDriveFolderId"),
        "createdAt": unit.get("createdAt"),
        "fullDetails": details,
    }


def _folder_warnings(folder_creation):
    if folder_creation["error"]:
        return [folder_creation["error"]]
    return []


@unit_bp.post("/createUnitWithForceFolder")
def create_unit_with_force_folder():
    try:
        data = _payload()
        if not data.get("investorId") or not (data.get("name") or data.get("unitName")):
            return jsonify(success=False, error="Investor ID and unit name are required"), 400

        investor = store.investors.find(id=data["investorId"])
        if investor is None:
            return jsonify(success=False, error="Investor not found"), 404

        attempts = int(current_app.config.get("FOLDER_CREATE_ATTEMPTS", 3))
        unit, folder_creation = create_unit_with_folder(store, drive, investor, data, max_attempts=attempts)
        return jsonify(
            success=True,
            data=unit,
            storage={
                "local": True,
                "googleDrive": folder_creation["success"],
                "googleDriveError": folder_creation["error"],
            },
            folderCreation=folder_creation,
            warnings=_folder_warnings(folder_creation),
        )
    except Exception as e:
        current_app.logger.exception("createUnitWithForceFolder failed")
        return jsonify(success=False, error=str(e)), 500


@unit_bp.post("/createUnit")
def create_unit():
    """Original single-attempt variant; takes unitName/unitDetails/developer/amount/sqft."""
    try:
        data = _payload()
        if not data.get("investorId") or not data.get("unitName"):
            return jsonify(success=False, error="Investor ID and unit name are required"), 400

        investor = store.investors.find(id=data["investorId"])
        if investor is None:
            return jsonify(success=False, error="Investor not found"), 404

        unit, folder_creation = create_unit_with_folder(store, drive, investor, data, max_attempts=1)
        return jsonify(success=True, data=unit, warnings=_folder_warnings(folder_creation))
    except Exception as e:
        current_app.logger.exception("createUnit failed")
        return jsonify(success=False, error=str(e)), 500


@unit_bp.post("/updateUnit")
def update_unit():
    try:
        data = _payload()
        if not data.get("id"):
            return jsonify(success=False, error="Unit ID is required"), 400

        changes = coerce_unit_changes(data)
        changes["updatedAt"] = now_iso()
        unit = store.units.update(data["id"], changes)
        if unit is None:
            return jsonify(success=False, error="Unit not found"), 404
        return jsonify(success=True, data=unit, message="Unit updated successfully")
    except Exception as e:
        current_app.logger.exception("updateUnit failed")
        return jsonify(success=False, error=str(e)), 500


@unit_bp.get("/getAllUnits")
def get_all_units():
    units = store.units.all()
    return jsonify(success=True, data=units, total=len(units))


@unit_bp.post("/getUnits")
def get_units():
    try:
        investor_id = (request.get_json(silent=True) or {}).get("investorId")
        if not investor_id:
            return jsonify(success=False, error="Investor ID is required"), 400

        rows = [_dropdown_row(u) for u in store.units.filter(investorId=investor_id)]
        return jsonify(success=True, data=rows, total=len(rows), investorId=investor_id)
    except Exception as e:
        current_app.logger.exception("getUnits failed")
        return jsonify(success=False, error=str(e)), 500
