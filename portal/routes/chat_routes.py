# portal/routes/chat_routes.py
from flask import Blueprint, current_app, jsonify, request

from portal.extensions import llm, store
from portal.services.chat_assistant import fallback_reply, portfolio_context, suggestions

chat_bp = Blueprint("chat", __name__, url_prefix="/api")


@chat_bp.post("/chat")
def chat():
    body = request.get_json(silent=True) or {}
    message = (body.get("message") or "").strip()
    if not message:
        return jsonify(success=False, error="Message is required"), 400

    investor_id = body.get("investorId")
    investor = store.investors.find(id=investor_id) if investor_id else None
    units = store.units.filter(investorId=investor_id) if investor_id else []

    source = "ai"
    try:
        reply = llm.assistant_reply(message, portfolio_context(investor, units))
    except Exception as e:
        current_app.logger.warning("Chat completion failed, using canned reply: %s", e)
        reply, source = fallback_reply(message), "fallback"

    return jsonify(
        success=True,
        data={"reply": reply, "source": source, "fallback": source == "fallback", "suggestions": suggestions(units)},
    )
