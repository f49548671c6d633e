# portal/routes/debug_routes.py
from flask import Blueprint, jsonify, request

from portal.extensions import drive, mirror, store
from portal.models import effective_type
from portal.services.categorization import group_documents

debug_bp = Blueprint("debug", __name__, url_prefix="/api/debug")


@debug_bp.get("/comprehensive")
def comprehensive():
    return jsonify(
        success=True,
        data={
            "googleDrive": drive.status(),
            "notion": {"investors": mirror.investors_enabled, "documents": mirror.documents_enabled},
            "counts": store.counts(),
        },
    )


@debug_bp.post("/document-categorization")
def document_categorization():
    investor_id = (request.get_json(silent=True) or {}).get("investorId")
    if not investor_id:
        return jsonify(success=False, error="Investor ID is required"), 400

    documents = store.documents.filter(investorId=investor_id)
    units = store.units.filter(investorId=investor_id)
    grouped = group_documents(documents, units)
    return jsonify(
        success=True,
        data={
            "summary": {bucket: len(docs) for bucket, docs in grouped.items()},
            "documents": [
                {
                    "id": d.get("id"),
                    "fileName": d.get("fileName"),
                    "documentType": d.get("documentType"),
                    "effectiveType": effective_type(d),
                    "category": d.get("category"),
                    "originalCategory": d.get("originalCategory"),
                    "unitId": d.get("unitId"),
                    "targetFolder": d.get("targetFolder"),
                }
                for d in documents
            ],
            "units": [{"id": u["id"], "name": u.get("name"), "folderId": u.get("googleDriveFolderId")} for u in units],
        },
    )
