import pytest

from portal.models import (
    as_text,
    build_unit,
    coerce_unit_changes,
    effective_type,
    new_id,
    normalize_type,
    to_number,
    unit_folder_name,
)


@pytest.mark.parametrize("declared,expected", [
    ("OTP Document", "OTP"),
    ("Statement of Account", "SOA"),
    ("passport", "Passport"),
    ("Visa/EID", "Visa"),
    ("Emirates ID", "Visa"),
    ("Personal", "Personal"),
    ("Floor plan", "Other"),
    (None, "Other"),
])
def test_normalize_type(declared, expected):
    assert normalize_type(declared) == expected


def test_effective_type_precedence():
    assert effective_type({"documentType": "Passport", "extractedData": {"type": "OTP"}}) == "Passport"
    assert effective_type({"documentType": "Contract", "extractedData": {"type": "otp"}}) == "OTP"
    assert effective_type({"documentType": "Contract", "extractedData": {"type": "Brochure"}}) == "Other"
    assert effective_type({"documentType": None, "extractedData": None}) == "Other"


@pytest.mark.parametrize("raw,expected", [
    (250000, 250000.0),
    ("1,500,000", 1500000.0),
    ("AED 900,000", 900000.0),
    ("$12.5", 12.5),
    ("n/a", 0.0),
    (None, 0.0),
    (float("nan"), 0.0),
])
def test_to_number(raw, expected):
    assert to_number(raw) == expected


def test_ids_are_unique():
    ids = [new_id() for _ in range(200)]
    assert len(set(ids)) == 200


def test_unit_folder_name():
    assert unit_folder_name({"name": "Tower A", "unitNumber": "1204"}) == "Tower A (1204)"
    assert unit_folder_name({"name": "Tower A", "unitNumber": "N/A"}) == "Tower A"
    assert unit_folder_name({"name": "Tower A", "unitNumber": ""}) == "Tower A"


def test_build_unit_defaults():
    unit = build_unit({"investorId": "i1", "name": "Studio 9"})
    assert unit["type"] == "Studio"
    assert unit["area"] == "0"
    assert unit["occupancyStatus"] == "Vacant"
    assert unit["location"] == "Dubai, UAE"
    assert unit["purchaseValue"] == 0


def test_as_text_handles_non_strings():
    assert as_text(None) == ""
    assert as_text(1204) == "1204"
    assert as_text("  Marina ") == "Marina"


def test_numeric_unit_fields_become_text():
    unit = build_unit({"investorId": "inv-1", "name": 42, "unitNumber": 1204, "project": 3})
    assert (unit["name"], unit["unitNumber"], unit["project"]) == ("42", "1204", "3")
    assert unit_folder_name(unit) == "42 (1204)"
    assert coerce_unit_changes({"unitNumber": 77, "name": 5})["unitNumber"] == "77"
