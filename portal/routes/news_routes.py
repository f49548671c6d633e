# portal/routes/news_routes.py
from flask import Blueprint, current_app, jsonify, request

from portal.extensions import news

news_bp = Blueprint("news", __name__, url_prefix="/api")

NEWS_TYPES = ("general", "official", "dubailand")


@news_bp.post("/getNews")
def get_news():
    news_type = ((request.get_json(silent=True) or {}).get("type") or "general").strip().lower()
    if news_type not in NEWS_TYPES:
        news_type = "general"
    try:
        return jsonify(success=True, data=news.get_articles(news_type))
    except Exception as e:
        # serve whatever is cached rather than an empty page
        current_app.logger.exception("getNews failed")
        return jsonify(
            success=True,
            data={"articles": news.cache.get("articles") or [], "type": news_type},
            error=str(e),
        )
