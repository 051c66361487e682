"""JSON endpoints: publishing the content document, blog posts, admin session."""

from __future__ import annotations

import logging
from typing import Any

from flask import Blueprint, abort, jsonify, request, session

from .auth import AdminPolicy
from .draft import AUTH_KEY, DraftError, PendingEdit
from .extensions import content_store, current_settings, post_store
from .stores import ContentStoreError

logger = logging.getLogger(__name__)

bp = Blueprint("api", __name__, url_prefix="/api")

ANY_METHOD = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE"]
POST_FIELDS = ("date", "title", "tagline", "preview", "image")
DEV_ONLY = "This route works in development mode only"


def _json_body() -> Any:
    body = request.get_json(silent=True)
    return {} if body is None else body


def _as_mapping(body: Any) -> dict[str, Any]:
    return body if isinstance(body, dict) else {}


def publish_document(document: Any, success: str, failure: str):
    """Replace the stored content document in full; the single write path."""
    if not isinstance(document, dict):
        return jsonify({"status": "ERROR", "message": "Content document must be a JSON object"}), 400
    store = content_store()
    try:
        store.replace(document)
    except ContentStoreError:
        logger.exception("Error publishing portfolio to %s store", store.name)
        return jsonify({"status": "ERROR", "message": failure}), 500
    logger.info("Portfolio document replaced (%s store, %d keys)", store.name, len(document))
    return jsonify({"status": "DONE", "message": success}), 200


@bp.route("/admin/publish", methods=ANY_METHOD, provide_automatic_options=False)
def publish():
    if request.method != "POST":
        abort(405, valid_methods=["POST"], description="Method not allowed")
    body = _as_mapping(_json_body())
    if not AdminPolicy(current_settings()).is_authorized(request.headers, body):
        abort(401, description="Unauthorized: Invalid admin password")
    return publish_document(
        body.get("data"),
        success="Portfolio published to production successfully",
        failure="Failed to publish portfolio to production",
    )


@bp.route("/portfolio", methods=ANY_METHOD, provide_automatic_options=False)
def portfolio():
    if request.method != "POST":
        # No read-back of the stored document here.
        return jsonify({"name": "Portfolio API endpoint"})
    settings = current_settings()
    raw = _json_body()
    body = _as_mapping(raw)
    if not AdminPolicy(settings, allow_development=True).is_authorized(request.headers, body):
        abort(401, description="Unauthorized: Admin password required in production mode")
    if "data" in body:
        document = body["data"]
    elif isinstance(raw, dict):
        document = {k: v for k, v in raw.items() if k != "password"}
    else:
        document = raw
    success = "Portfolio saved successfully"
    if not settings.is_development:
        success += " (production mode)"
    return publish_document(document, success=success, failure="Failed to save portfolio")


@bp.route("/blog/edit", methods=ANY_METHOD, provide_automatic_options=False)
def edit_post():
    if not current_settings().is_development:
        abort(403, description=DEV_ONLY)
    if request.method != "POST":
        return jsonify({"name": DEV_ONLY})
    body = _as_mapping(_json_body())
    slug = body.get("slug")
    variables = body.get("variables")
    if not isinstance(slug, str) or not slug.strip() or not isinstance(variables, dict):
        return jsonify({"status": "ERROR", "message": "slug and variables are required"}), 400
    metadata = {field: variables.get(field) for field in POST_FIELDS}
    content = body.get("content")
    try:
        path = post_store().write(slug, "" if content is None else str(content), metadata)
    except ContentStoreError:
        logger.exception("Error saving blog post %s", slug)
        return jsonify({"status": "ERROR", "message": "Failed to save blog post"}), 500
    logger.info("Blog post written to %s", path)
    return jsonify({"status": "DONE"})


def _pending_edit() -> PendingEdit:
    try:
        return PendingEdit.from_session(session)
    except DraftError:
        logger.warning("Discarding unreadable draft from session", exc_info=True)
        return PendingEdit(authenticated=session.get(AUTH_KEY) is True)


def _require_session() -> PendingEdit:
    edit = _pending_edit()
    if not edit.authenticated:
        abort(401, description="Unauthorized: log in first")
    return edit


@bp.post("/admin/login")
def login():
    body = _as_mapping(_json_body())
    provided = body.get("password")
    if not AdminPolicy(current_settings()).check_password(provided if isinstance(provided, str) else ""):
        abort(401, description="Unauthorized: Invalid admin password")
    edit = _pending_edit()
    PendingEdit(authenticated=True, document=edit.document).save(session)
    return jsonify({"ok": True})


@bp.post("/admin/logout")
def logout():
    session.clear()
    return jsonify({"ok": True})


@bp.route("/admin/draft", methods=["GET", "POST", "DELETE"])
def draft():
    edit = _require_session()
    if request.method == "GET":
        if edit.document is not None:
            return jsonify({"source": "draft", "data": edit.document})
        try:
            document = content_store().read()
        except ContentStoreError:
            logger.exception("Error reading portfolio document")
            return jsonify({"status": "ERROR", "message": "Failed to read portfolio"}), 500
        return jsonify({"source": "live", "data": document})
    if request.method == "DELETE":
        PendingEdit(authenticated=True).save(session)
        return jsonify({"status": "DONE"})
    document = _as_mapping(_json_body()).get("data")
    if not isinstance(document, dict):
        return jsonify({"status": "ERROR", "message": "Content document must be a JSON object"}), 400
    PendingEdit(authenticated=True, document=document).save(session)
    return jsonify({"status": "DONE"})
