# portal/services/portfolio.py
from __future__ import annotations

from typing import Any, Dict, List

from portal.models import TYPE_OTP, effective_type, is_portfolio_unit, to_number


def format_usd(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def document_amount(doc: Dict[str, Any]) -> float:
    """extractedData.amount when usable, else the document's own amount, else 0."""
    extracted = doc.get("extractedData") or {}
    amount = to_number(extracted.get("amount")) if isinstance(extracted, dict) else 0.0
    if amount:
        return amount
    return to_number(doc.get("amount"))


def is_otp_document(doc: Dict[str, Any]) -> bool:
    return effective_type(doc) == TYPE_OTP


def portfolio_value(documents: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Monetary total over OTP documents only."""
    otp_docs = [d for d in documents if is_otp_document(d)]
    total = 0.0
    breakdown = []
    for doc in otp_docs:
        amount = document_amount(doc)
        if amount <= 0:
            continue
        total += amount
        extracted = doc.get("extractedData") or {}
        breakdown.append({
            "documentId": doc.get("id"),
            "fileName": doc.get("fileName"),
            "amount": amount,
            "unitId": doc.get("unitId"),
            "unitDetails": extracted.get("unitDetails") or "N/A",
            "developer": extracted.get("developer") or "N/A",
        })
    return {
        "portfolioValue": total,
        "formattedValue": format_usd(total),
        "otpCount": len(otp_docs),
        "totalDocuments": len(documents),
        "breakdown": breakdown,
    }


def _pct(numerator: float, denominator: float) -> float:
    return (numerator / denominator * 100.0) if denominator else 0.0


def unit_analysis(unit: Dict[str, Any]) -> Dict[str, Any]:
    purchase = to_number(unit.get("purchaseValue"))
    current = to_number(unit.get("currentValue"))
    annual_rental = to_number(unit.get("monthlyRental")) * 12
    capital_gain = current - purchase
    return {
        "unitId": unit.get("id"),
        "name": unit.get("name"),
        "purchaseValue": purchase,
        "currentValue": current,
        "capitalGain": capital_gain,
        "capitalROI": _pct(capital_gain, purchase),
        "annualRental": annual_rental,
        "rentalYield": _pct(annual_rental, current),
        "totalROI": _pct(capital_gain + annual_rental, purchase),
    }


def portfolio_summary(units: List[Dict[str, Any]]) -> Dict[str, Any]:
    otp_units = [u for u in units if is_portfolio_unit(u)]
    pending_units = [u for u in units if not is_portfolio_unit(u)]

    total_current = sum(to_number(u.get("currentValue")) for u in otp_units)
    total_purchase = sum(to_number(u.get("purchaseValue")) for u in otp_units)
    total_gains = total_current - total_purchase
    analysis = sorted((unit_analysis(u) for u in otp_units), key=lambda a: a["capitalROI"], reverse=True)

    return {
        "otpUnits": otp_units,
        "pendingUnits": pending_units,
        "totalPortfolioValue": total_current,
        "totalPurchaseValue": total_purchase,
        "totalGains": total_gains,
        "totalMonthlyRental": sum(to_number(u.get("monthlyRental")) for u in units),
        "overallROI": _pct(total_gains, total_purchase),
        "analysis": analysis,
    }
