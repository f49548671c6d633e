# portal/routes/documents_routes.py
from flask import Blueprint, current_app, jsonify, request

from portal.extensions import drive, llm, mirror, store
from portal.models import STATUS_PROCESSED, now_iso
from portal.services.categorization import group_documents, resolve_document_category
from portal.services.documents import build_document_record, ingest_payload, legacy_target
from portal.services.units import derive_unit_from_document, ensure_investor_folders

documents_bp = Blueprint("documents", __name__, url_prefix="/api")


# ─────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────
def _payload():
    return (request.get_json(silent=True) or {}).get("data")


def _investor_id():
    return (request.get_json(silent=True) or {}).get("investorId")


def _upload_to_drive(data, folder_id):
    if not data.get("fileData"):
        return None, "No file data provided"
    if not folder_id:
        return None, "No target folder available"
    result = drive.upload(data["fileData"], data.get("name") or "document", data.get("fileType"), folder_id)
    return (result.value if result.ok else None), result.error


def _mirror(record):
    """Mirror to Notion; returns an error string or None."""
    if not mirror.documents_enabled:
        return None
    notion_id = mirror.mirror_document(record)
    if not notion_id:
        return "Notion mirror failed"
    store.documents.update(record["id"], {"notionId": notion_id})
    return None


def _collect_warnings(ingest, drive_error, notion_error, extra=()):
    warnings = list(extra)
    if ingest.payload_error:
        warnings.append(f"File: {ingest.payload_error}")
    if ingest.ai_error:
        warnings.append(f"AI extraction: {ingest.ai_error}")
    if drive_error:
        warnings.append(f"Google Drive: {drive_error}")
    if notion_error:
        warnings.append(f"Notion: {notion_error}")
    return warnings


# ─────────────────────────────────────────────────────────────
# Upload (category-aware)
# ─────────────────────────────────────────────────────────────
@documents_bp.post("/createDocumentWithCategory")
def create_document_with_category():
    try:
        data = _payload()
        if not data:
            return jsonify(success=False, error="No document data provided"), 400

        investor = store.investors.find(id=data.get("investorId"))
        if investor is None:
            return jsonify(success=False, error="Investor not found"), 404

        extra_warnings = []
        backfill_error = ensure_investor_folders(store, drive, investor)
        if backfill_error:
            extra_warnings.append(f"Google Drive folders: {backfill_error}")

        ingest = ingest_payload(data, llm, current_app.config["UPLOADS_DIR"])

        attempts = int(current_app.config.get("FOLDER_CREATE_ATTEMPTS", 3))
        resolution = resolve_document_category(
            investor, data.get("category"), data.get("unitId"), data.get("type"), store.units, drive, attempts
        )
        if resolution.folder_type in ("main_investor_fallback", "none"):
            extra_warnings.extend(resolution.errors)

        drive_meta, drive_error = _upload_to_drive(data, resolution.target_folder_id)

        record = build_document_record(
            data, investor, ingest, drive_meta, drive_error, resolution.folder_type, resolution.target_folder_id
        )
        record["unitId"] = resolution.unit["id"] if resolution.unit else record["unitId"]
        record["category"] = resolution.category
        record["originalCategory"] = data.get("category")
        record["persistenceMetadata"] = {
            "uploadedAt": now_iso(),
            "categoryDetermined": resolution.category,
            "folderTypeUsed": resolution.folder_type,
            "unitName": resolution.to_dict()["unitName"],
        }
        store.documents.add(record)
        current_app.logger.info(
            "Stored document %s category=%s folder=%s", record["fileName"], record["category"], resolution.folder_type
        )

        notion_error = _mirror(record)

        derivation = {"action": "none", "unitId": None}
        if record["status"] == STATUS_PROCESSED:
            # the document is already stored; a derivation failure only warns
            try:
                derivation = derive_unit_from_document(
                    store, drive, investor, record, resolution.unit, max_attempts=attempts
                )
            except Exception as e:
                current_app.logger.exception("Unit derivation failed for %s", record["id"])
                extra_warnings.append(f"Unit derivation: {e}")

        record = store.documents.find(id=record["id"])
        categorization = resolution.to_dict()
        categorization["originalCategory"] = data.get("category")
        return jsonify(
            success=True,
            data=record,
            extractedData=record["extractedData"],
            categorization=categorization,
            storageLocations={
                "local": bool(record["fileUrl"]),
                "googleDrive": bool(drive_meta),
                "googleDriveError": drive_error,
                "notion": bool(record.get("notionId")),
                "notionError": notion_error,
                "targetFolder": resolution.folder_type,
            },
            unitDerivation=derivation,
            warnings=_collect_warnings(ingest, drive_error, notion_error, extra_warnings),
        )
    except Exception as e:
        current_app.logger.exception("createDocumentWithCategory failed")
        return jsonify(success=False, error=str(e)), 500


@documents_bp.post("/createDocument")
def create_document():
    """Original upload path: type/unit based folder targeting, no derivation."""
    try:
        data = _payload()
        if not data:
            return jsonify(success=False, error="No document data provided"), 400

        investor = store.investors.find(id=data.get("investorId"))
        if investor is None:
            return jsonify(success=False, error="Investor not found"), 404

        ensure_investor_folders(store, drive, investor)
        ingest = ingest_payload(data, llm, current_app.config["UPLOADS_DIR"])
        folder_id, folder_type = legacy_target(investor, data, store.units)
        drive_meta, drive_error = _upload_to_drive(data, folder_id)

        record = build_document_record(data, investor, ingest, drive_meta, drive_error, folder_type, folder_id)
        record["originalCategory"] = data.get("category")
        store.documents.add(record)
        notion_error = _mirror(record)

        record = store.documents.find(id=record["id"])
        return jsonify(
            success=True,
            data=record,
            extractedData=record["extractedData"],
            storageLocations={
                "local": bool(record["fileUrl"]),
                "googleDrive": bool(drive_meta),
                "notion": bool(record.get("notionId")),
                "targetFolder": folder_type,
            },
            warnings=_collect_warnings(ingest, drive_error, notion_error),
        )
    except Exception as e:
        current_app.logger.exception("createDocument failed")
        return jsonify(success=False, error=str(e)), 500


# ─────────────────────────────────────────────────────────────
# Reads
# ─────────────────────────────────────────────────────────────
@documents_bp.post("/getInvestorData")
def get_investor_data():
    investor_id = _investor_id()
    if not investor_id:
        return jsonify(success=False, error="Investor ID is required"), 400
    return jsonify(
        success=True,
        data={
            "units": store.units.filter(investorId=investor_id),
            "documents": store.documents.filter(investorId=investor_id),
            "payments": [],
        },
    )


@documents_bp.post("/refreshDocumentLibrary")
def refresh_document_library():
    try:
        investor_id = _investor_id()
        if not investor_id:
            return jsonify(success=False, error="Investor ID is required"), 400

        documents = store.documents.filter(investorId=investor_id)
        units = store.units.filter(investorId=investor_id)
        return jsonify(
            success=True,
            data={
                "categorized": group_documents(documents, units),
                "units": units,
                "totalDocuments": len(documents),
            },
            message="Document library refreshed successfully",
        )
    except Exception as e:
        current_app.logger.exception("refreshDocumentLibrary failed")
        return jsonify(success=False, error=str(e)), 500
