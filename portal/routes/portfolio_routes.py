# portal/routes/portfolio_routes.py
from flask import Blueprint, current_app, jsonify, request

from portal.extensions import store
from portal.services.portfolio import portfolio_summary, portfolio_value

portfolio_bp = Blueprint("portfolio", __name__, url_prefix="/api")


def _investor_id():
    return (request.get_json(silent=True) or {}).get("investorId")


@portfolio_bp.post("/getPortfolioValue")
def get_portfolio_value():
    """Sum of OTP purchase amounts; other document types never count."""
    investor_id = _investor_id()
    if not investor_id:
        return jsonify(success=False, error="Investor ID is required"), 400
    try:
        result = portfolio_value(store.documents.filter(investorId=investor_id))
        current_app.logger.info(
            "Portfolio value for %s: %s over %d OTP document(s)",
            investor_id, result["formattedValue"], result["otpCount"],
        )
        return jsonify(success=True, data={**result, "calculation": "OTP_DOCUMENTS_ONLY"})
    except Exception as e:
        current_app.logger.exception("getPortfolioValue failed")
        return jsonify(success=False, error=str(e)), 500


@portfolio_bp.post("/getPortfolioSummary")
def get_portfolio_summary():
    investor_id = _investor_id()
    if not investor_id:
        return jsonify(success=False, error="Investor ID is required"), 400
    try:
        return jsonify(success=True, data=portfolio_summary(store.units.filter(investorId=investor_id)))
    except Exception as e:
        current_app.logger.exception("getPortfolioSummary failed")
        return jsonify(success=False, error=str(e)), 500
