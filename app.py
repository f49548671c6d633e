# app.py
import os
from pathlib import Path
from typing import Optional

from flask import Flask, Response, abort, jsonify, request, send_from_directory
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from portal.config import Config
from portal.extensions import drive, init_extensions, store
from portal.models import now_iso

# ===== Blueprints =====
from portal.routes.chat_routes import chat_bp
from portal.routes.debug_routes import debug_bp
from portal.routes.documents_routes import documents_bp
from portal.routes.files_routes import files_bp
from portal.routes.investor_routes import investor_bp
from portal.routes.news_routes import news_bp
from portal.routes.orders_routes import orders_bp
from portal.routes.portfolio_routes import portfolio_bp
from portal.routes.unit_routes import unit_bp
from portal.scheduler import start_scheduler


def _resolve_frontend_dist(configured: str = "") -> Optional[Path]:
    """Locate the built SPA (Vite dist), if there is one."""
    here = Path(__file__).resolve().parent

    if configured.strip():
        p = Path(configured).resolve()
        if p.is_dir():
            return p

    for candidate in (here / "frontend" / "dist", here / "dist"):
        if candidate.is_dir():
            return candidate.resolve()
    return None


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        if isinstance(e, HTTPException):
            return e
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify(success=False, error=str(e)), 500


# ---------- app factory ----------
def create_app(overrides: Optional[dict] = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    dist_dir = _resolve_frontend_dist(app.config.get("FRONTEND_DIST") or "")
    os.makedirs(app.config["UPLOADS_DIR"], exist_ok=True)

    init_extensions(app)

    CORS(
        app,
        supports_credentials=True,
        resources={r"/*": {"origins": app.config["CORS_ALLOWED_ORIGINS"]}},
        allow_headers=["Content-Type", "Authorization"],
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    )

    @app.before_request
    def log_request():
        app.logger.info("%s %s", request.method, request.path)

    _register_error_handlers(app)

    @app.get("/health")
    def health():
        return jsonify(status="ok")

    app.register_blueprint(investor_bp)
    app.register_blueprint(unit_bp)
    app.register_blueprint(documents_bp)
    app.register_blueprint(portfolio_bp)
    app.register_blueprint(news_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(chat_bp)
    app.register_blueprint(debug_bp)
    app.register_blueprint(files_bp)

    if app.config.get("RUN_SCHEDULER"):
        app.extensions["scheduler"] = start_scheduler(app)

    @app.get("/")
    def index():
        if dist_dir and (dist_dir / "index.html").is_file():
            return send_from_directory(dist_dir, "index.html")
        return jsonify(
            message="Investor portal API is running",
            status="active",
            timestamp=now_iso(),
            data=store.counts(),
            googleDrive=drive.available,
        )

    # SPA fallback
    @app.route("/<path:path>")
    def spa(path: str):
        if path.startswith("api/"):
            abort(404)
        if not dist_dir:
            return Response("Frontend build not found.\n", status=404, mimetype="text/plain")
        if (dist_dir / path).is_file():
            return send_from_directory(dist_dir, path)
        return send_from_directory(dist_dir, "index.html")

    app.logger.info(
        "Portal ready: data=%s uploads=%s frontend=%s drive=%s",
        app.config["DATA_DIR"], app.config["UPLOADS_DIR"], dist_dir or "(none, API only)", drive.available,
    )
    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "3001")), debug=True, threaded=True)
