from conftest import PARENT_FOLDER_ID, FakeDriveService, data_url
from portal.services.drive_client import DriveClient, sanitize_folder_name


def _client():
    service = FakeDriveService()
    return DriveClient(parent_folder_id=PARENT_FOLDER_ID, service=service), service


def test_ensure_folder_is_idempotent():
    drive, service = _client()
    first = drive.ensure_folder("Unit 5", PARENT_FOLDER_ID)
    second = drive.ensure_folder("Unit 5", PARENT_FOLDER_ID)
    assert first.ok and second.ok
    assert first.value == second.value
    assert first.details["created"] is True
    assert second.details["created"] is False
    assert service.folder_names().count("Unit 5") == 1


def test_same_name_under_different_parents_is_distinct():
    drive, service = _client()
    a = drive.ensure_folder("Personal Documents", "p1")
    b = drive.ensure_folder("Personal Documents", "p2")
    assert a.value != b.value


def test_folder_names_are_sanitized():
    assert sanitize_folder_name('A/B: "C"?') == "A_B_ _C__"


def test_retries_report_attempts():
    drive, service = _client()
    service.folder_failures = 5
    result = drive.ensure_folder_with_retries("Unit 9", PARENT_FOLDER_ID, max_attempts=3)
    assert not result.ok
    assert result.attempts == 3
    assert len(result.details["attemptErrors"]) == 3


def test_hierarchy_fails_on_inaccessible_parent():
    drive, _ = _client()
    drive.parent_folder_id = "missing-parent"
    result = drive.ensure_investor_hierarchy("Jane", "jane@example.com")
    assert not result.ok
    assert result.value == {"mainFolderId": None, "personalDocsFolderId": None}
    assert "parent folder" in result.error


def test_upload_rejects_corrupt_payload_without_raising():
    drive, service = _client()
    for bad in (None, "not-a-data-url", "data:application/pdf;base64,", "data:application/pdf;base64,@@@"):
        result = drive.upload(bad, "x.pdf", "application/pdf", "folder-1")
        assert result.ok is False
        assert result.error
    assert service.uploads == []


def test_upload_returns_links():
    drive, service = _client()
    result = drive.upload(data_url(), "x.pdf", "application/pdf", "folder-1")
    assert result.ok
    assert result.value["fileId"] == service.uploads[0]["id"]
    assert result.value["webViewLink"].endswith("/view")


def test_unavailable_drive_fails_softly():
    drive = DriveClient(parent_folder_id=PARENT_FOLDER_ID)
    assert drive.available is False
    assert drive.ensure_folder("x", PARENT_FOLDER_ID).error == "Google Drive not initialized"
    assert drive.status()["status"] == "Not initialized"
