from __future__ import annotations

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from . import api, site
from .config import Settings
from .extensions import EXTENSION
from .stores import ContentStore, PostStore, build_content_store


def create_app(
    settings: Settings | None = None,
    *,
    content_store: ContentStore | None = None,
    post_store: PostStore | None = None,
) -> Flask:
    """Create the Flask app.

    Stores are injected for tests; by default they are built from ``settings``.
    """
    settings = settings or Settings.from_env()
    app = Flask(__name__)
    app.secret_key = settings.secret_key
    app.config.update(SETTINGS=settings, SESSION_COOKIE_SAMESITE="Lax")
    app.extensions[EXTENSION] = {
        "content": content_store or build_content_store(settings),
        "posts": post_store or PostStore(settings.posts_dir),
    }
    app.register_blueprint(api.bp)
    app.register_blueprint(site.bp)

    @app.errorhandler(HTTPException)
    def api_errors(exc: HTTPException):
        # API callers get a bare {"message": ...}; pages keep the HTML error.
        if not request.path.startswith("/api/"):
            return exc
        message = "Method not allowed" if exc.code == 405 else exc.description
        response = jsonify({"message": message})
        response.status_code = exc.code or 500
        for header, value in exc.get_headers():
            if header.lower() == "allow":
                response.headers[header] = value
        return response

    return app
