# portal/routes/investor_routes.py
from flask import Blueprint, current_app, jsonify, request

from portal.extensions import drive, mirror, store
from portal.models import build_investor, now_iso
from portal.services.units import ensure_investor_folders

investor_bp = Blueprint("investor", __name__, url_prefix="/api")

_IMMUTABLE = ("id", "createdAt")


def _payload():
    return (request.get_json(silent=True) or {}).get("data") or {}


def _find_by_email(email):
    wanted = (email or "").strip().lower()
    for inv in store.investors.all():
        if (inv.get("email") or "").strip().lower() == wanted:
            return inv
    return None


def _create_investor(data):
    """Shared body of createInvestor / createInvestorFixed. Returns (investor, storage, warnings)."""
    if drive.available:
        folders = drive.ensure_investor_hierarchy(data["name"], data["email"])
    else:
        folders = None
    folder_error = folders.error if folders else "Google Drive not initialized"

    investor = build_investor(data)
    if folders and folders.value:
        investor["googleDriveFolderId"] = folders.value.get("mainFolderId")
        investor["personalDocsFolderId"] = folders.value.get("personalDocsFolderId")
    investor["googleDriveError"] = folder_error
    store.investors.add(investor)

    notion_id, notion_error = None, None
    if mirror.investors_enabled:
        notion_id = mirror.mirror_investor(investor)
        if notion_id:
            store.investors.update(investor["id"], {"notionId": notion_id})
        else:
            notion_error = "Notion mirror failed"

    storage = {
        "local": True,
        "googleDrive": bool(investor["googleDriveFolderId"]),
        "googleDriveError": folder_error,
        "notion": bool(notion_id),
        "notionError": notion_error,
    }
    warnings = []
    if folder_error:
        warnings.append(f"Google Drive: {folder_error}")
    if notion_error:
        warnings.append(f"Notion: {notion_error}")
    current_app.logger.info("Created investor %s (%s)", investor["id"], investor["email"])
    return investor, storage, warnings


def _validate_new_investor(data):
    if not data or not data.get("name") or not data.get("email") or not data.get("password"):
        return "Name, email, and password are required"
    if _find_by_email(data["email"]):
        return "An account with this email already exists"
    return None


@investor_bp.post("/createInvestor")
def create_investor():
    try:
        data = _payload()
        error = _validate_new_investor(data)
        if error:
            return jsonify(success=False, error=error), 400
        investor, storage, _ = _create_investor(data)
        return jsonify(success=True, data=investor, storage=storage)
    except Exception as e:
        current_app.logger.exception("createInvestor failed")
        return jsonify(success=False, error=str(e)), 500


@investor_bp.post("/createInvestorFixed")
def create_investor_fixed():
    try:
        data = _payload()
        error = _validate_new_investor(data)
        if error:
            return jsonify(success=False, error=error), 400
        investor, storage, warnings = _create_investor(data)
        return jsonify(success=True, data=investor, storage=storage, warnings=warnings)
    except Exception as e:
        current_app.logger.exception("createInvestorFixed failed")
        return jsonify(success=False, error=str(e)), 500


@investor_bp.post("/findInvestorByEmail")
def find_investor_by_email():
    """Lookup by email; backfills missing Drive folders on the way out."""
    try:
        email = (request.get_json(silent=True) or {}).get("email")
        if not email:
            return jsonify(success=False, error="Email is required"), 400

        investor = _find_by_email(email)
        warnings = []
        if investor:
            error = ensure_investor_folders(store, drive, investor)
            if error:
                warnings.append(f"Google Drive: {error}")
        return jsonify(success=True, data=investor, source="memory", warnings=warnings)
    except Exception as e:
        current_app.logger.exception("findInvestorByEmail failed")
        return jsonify(success=False, error=str(e)), 500


@investor_bp.post("/updateInvestor")
def update_investor():
    try:
        data = _payload()
        if not data.get("id"):
            return jsonify(success=False, error="Investor ID is required"), 400

        changes = {k: v for k, v in data.items() if k not in _IMMUTABLE}
        changes["updatedAt"] = now_iso()
        investor = store.investors.update(data["id"], changes)
        if investor is None:
            return jsonify(success=False, error="Investor not found"), 404
        return jsonify(success=True, data=investor, message="Profile updated successfully")
    except Exception as e:
        current_app.logger.exception("updateInvestor failed")
        return jsonify(success=False, error=str(e)), 500
