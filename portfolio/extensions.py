from __future__ import annotations

from flask import current_app

from .config import Settings
from .stores import ContentStore, PostStore

EXTENSION = "portfolio"


def current_settings() -> Settings:
    return current_app.config["SETTINGS"]


def content_store() -> ContentStore:
    return current_app.extensions[EXTENSION]["content"]


def post_store() -> PostStore:
    return current_app.extensions[EXTENSION]["posts"]
