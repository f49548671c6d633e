import json

from conftest import data_url
from portal.models import OTHER_DOCUMENTS, PERSONAL_DOCUMENTS


def _upload(client, **fields):
    data = {
        "investorId": "test-investor-1",
        "name": "contract.pdf",
        "fileType": "application/pdf",
        "fileSize": 1024,
        "fileData": data_url(),
        "type": "Other",
        "category": "Other Documents",
    }
    data.update(fields)
    return client.post("/api/createDocumentWithCategory", json={"data": data})


def _unit(records, name="Apartment 2A", **fields):
    unit = {
        "id": f"unit-{name}",
        "investorId": "test-investor-1",
        "name": name,
        "unitNumber": "",
        "project": "Emaar",
        "area": "0",
        "purchaseValue": 0,
        "currentValue": 0,
        "monthlyRental": 0,
        "googleDriveFolderId": None,
    }
    unit.update(fields)
    return records.units.add(unit)


def test_otp_upload_into_unit_without_folder(client, records, drive_service, fake_llm):
    unit = _unit(records)
    fake_llm.queue(json.dumps({"type": "OTP", "amount": 250000, "developer": "Emaar", "unitDetails": "2A"}))

    resp = _upload(client, name="otp.pdf", type="OTP", category="Unit Documents", unitId=unit["id"])
    body = resp.get_json()

    assert body["success"] is True
    assert body["categorization"]["finalCategory"] == "Apartment 2A"
    assert body["categorization"]["folderType"] == "unit_created"
    assert body["categorization"]["originalCategory"] == "Unit Documents"
    assert body["data"]["category"] == "Apartment 2A"
    assert body["data"]["unitId"] == unit["id"]
    assert body["data"]["status"] == "Processed"

    folder = next(f for f in drive_service.folders if f["name"] == "Apartment 2A")
    assert records.units.find(id=unit["id"])["googleDriveFolderId"] == folder["id"]
    assert drive_service.uploads[-1]["parents"] == [folder["id"]]

    assert body["unitDerivation"] == {"action": "updated", "unitId": unit["id"]}
    assert records.units.find(id=unit["id"])["purchaseValue"] == 250000


def test_units_alias_routes_to_unit(client, records):
    unit = _unit(records, googleDriveFolderId="existing-folder")
    body = _upload(client, category="Units", unitId=unit["id"]).get_json()
    assert body["categorization"]["folderType"] == "unit_specific"
    assert body["categorization"]["targetFolderId"] == "existing-folder"


def test_unit_category_with_missing_unit_falls_back_to_other(client):
    body = _upload(client, category="Unit Documents", unitId="no-such-unit").get_json()
    assert body["data"]["category"] == OTHER_DOCUMENTS
    assert body["categorization"]["folderType"] == "unit_not_found_fallback"


def test_unit_of_another_investor_is_not_used(client, records):
    _unit(records, name="Foreign Unit", investorId="someone-else")
    body = _upload(client, category="Unit Documents", unitId="unit-Foreign Unit").get_json()
    assert body["data"]["category"] == OTHER_DOCUMENTS


def test_personal_never_becomes_unit(client, records):
    unit = _unit(records)
    body = _upload(client, type="Passport", category="Personal Documents", unitId=unit["id"]).get_json()
    assert body["data"]["category"] == PERSONAL_DOCUMENTS
    assert body["categorization"]["folderType"] == "personal_documents"

    investor = records.investors.find(id="test-investor-1")
    assert body["categorization"]["targetFolderId"] == investor["personalDocsFolderId"]


def test_personal_type_routes_personal(client):
    body = _upload(client, type="Personal", category=None).get_json()
    assert body["data"]["category"] == PERSONAL_DOCUMENTS


def test_default_other_bucket(client):
    body = _upload(client, type="Other", category="Misc").get_json()
    assert body["data"]["category"] == OTHER_DOCUMENTS
    assert body["categorization"]["folderType"] == "default_other"


def test_corrupt_payload_marks_document_error(client, records):
    body = _upload(client, fileData="data:application/pdf;base64,").get_json()
    assert body["success"] is True
    assert body["data"]["status"] == "Error"
    assert body["storageLocations"]["googleDrive"] is False
    assert records.documents.find(id=body["data"]["id"]) is not None


def test_missing_investor_is_404(client):
    resp = _upload(client, investorId="ghost")
    assert resp.status_code == 404


def test_library_groups_documents(client, records):
    unit = _unit(records)
    _upload(client, name="passport.pdf", type="Passport", category="Personal Documents")
    _upload(client, name="floorplan.pdf", category="Unit Documents", unitId=unit["id"])
    _upload(client, name="misc.pdf")

    body = client.post("/api/refreshDocumentLibrary", json={"investorId": "test-investor-1"}).get_json()
    grouped = body["data"]["categorized"]
    assert [d["fileName"] for d in grouped["Personal Documents"]] == ["passport.pdf"]
    assert [d["fileName"] for d in grouped["Apartment 2A"]] == ["floorplan.pdf"]
    assert [d["fileName"] for d in grouped["Other Documents"]] == ["misc.pdf"]
    assert body["data"]["totalDocuments"] == 3

    debug = client.post("/api/debug/document-categorization", json={"investorId": "test-investor-1"}).get_json()
    assert debug["data"]["summary"]["Apartment 2A"] == 1
