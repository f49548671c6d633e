# portal/routes/files_routes.py
import os

from flask import Blueprint, abort, current_app, send_from_directory

from portal.services.files import mime_for

files_bp = Blueprint("files", __name__)


@files_bp.get("/uploads/<path:filename>")
def serve_upload(filename):
    root = current_app.config["UPLOADS_DIR"]
    # send_from_directory rejects traversal itself; the isfile check keeps misses a plain 404
    path = os.path.realpath(os.path.join(root, filename))
    if not path.startswith(os.path.realpath(root) + os.sep) or not os.path.isfile(path):
        abort(404)
    resp = send_from_directory(root, filename, mimetype=mime_for(filename))
    resp.headers["Content-Disposition"] = f'inline; filename="{os.path.basename(filename)}"'
    return resp
