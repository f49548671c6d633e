import json

from conftest import data_url
from portal.services.portfolio import format_usd, portfolio_summary, portfolio_value


def _doc(doc_type, amount=None, **extra):
    extracted = {"type": extra.pop("extracted_type", doc_type)}
    if amount is not None:
        extracted["amount"] = amount
    return {"id": f"d-{doc_type}-{amount}", "documentType": doc_type, "extractedData": extracted, **extra}


def test_no_otp_documents_means_zero():
    result = portfolio_value([_doc("Passport"), _doc("Visa"), _doc("Other")])
    assert result["portfolioValue"] == 0
    assert result["otpCount"] == 0
    assert result["formattedValue"] == "$0.00"


def test_only_otp_amounts_count():
    docs = [_doc("OTP", 250000), _doc("SOA", 99999), _doc("Passport", extracted_type="OTP", amount=5)]
    result = portfolio_value(docs)
    assert result["portfolioValue"] == 250000
    assert len(result["breakdown"]) == 1
    assert result["totalDocuments"] == 3


def test_extracted_otp_counts_for_generic_declared_type():
    result = portfolio_value([_doc("Other", 120000, extracted_type="OTP")])
    assert result["portfolioValue"] == 120000


def test_zero_and_garbage_amounts_excluded_from_breakdown():
    result = portfolio_value([_doc("OTP", 0), _doc("OTP", "n/a"), _doc("OTP", "AED 1,000")])
    assert result["otpCount"] == 3
    assert result["portfolioValue"] == 1000
    assert len(result["breakdown"]) == 1


def test_format_usd():
    assert format_usd(1234567.891) == "$1,234,567.89"


def test_summary_excludes_units_without_purchase_value():
    units = [
        {"id": "a", "name": "A", "purchaseValue": 100000, "currentValue": 120000, "monthlyRental": 500},
        {"id": "b", "name": "B", "purchaseValue": 200000, "currentValue": 210000, "monthlyRental": 1000},
        {"id": "c", "name": "C", "purchaseValue": 0, "currentValue": 0, "monthlyRental": 0},
    ]
    summary = portfolio_summary(units)
    assert [u["id"] for u in summary["otpUnits"]] == ["a", "b"]
    assert [u["id"] for u in summary["pendingUnits"]] == ["c"]
    assert summary["totalPortfolioValue"] == 330000
    assert summary["totalGains"] == 30000
    assert summary["overallROI"] == 10.0
    assert [a["unitId"] for a in summary["analysis"]] == ["a", "b"]


def test_portfolio_value_endpoint(client, fake_llm):
    fake_llm.queue(json.dumps({"type": "OTP", "amount": 250000, "developer": "Emaar"}))
    client.post("/api/createDocumentWithCategory", json={"data": {
        "investorId": "test-investor-1", "name": "otp.pdf", "fileData": data_url(), "type": "OTP",
        "category": "Other Documents",
    }})
    body = client.post("/api/getPortfolioValue", json={"investorId": "test-investor-1"}).get_json()
    assert body["data"]["portfolioValue"] == 250000
    assert body["data"]["calculation"] == "OTP_DOCUMENTS_ONLY"
    assert len(body["data"]["breakdown"]) == 1


def test_portfolio_value_requires_investor(client):
    assert client.post("/api/getPortfolioValue", json={}).status_code == 400


def test_unit_enters_summary_after_purchase_value_set(client, records):
    records.units.add({"id": "u1", "investorId": "test-investor-1", "name": "Loft", "purchaseValue": 0})

    body = client.post("/api/getPortfolioSummary", json={"investorId": "test-investor-1"}).get_json()
    assert body["data"]["otpUnits"] == []
    assert len(body["data"]["pendingUnits"]) == 1

    client.post("/api/updateUnit", json={"data": {"id": "u1", "purchaseValue": 500000, "currentValue": 550000}})
    body = client.post("/api/getPortfolioSummary", json={"investorId": "test-investor-1"}).get_json()
    assert [u["id"] for u in body["data"]["otpUnits"]] == ["u1"]
    assert body["data"]["totalPurchaseValue"] == 500000
