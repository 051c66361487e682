"""Command line entry points.

    portfolio serve [--host H] [--port P]
    portfolio publish FILE [--url URL] [--password PW]
    portfolio push [FILE] [--backend github|postgres]
    portfolio new-post SLUG FILE --title TITLE [--date D] [--tagline T] [--preview] [--image I]
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

import requests

from .config import Settings
from .stores import ContentStoreError, JsonFileContentStore, PostStore, build_content_store

logger = logging.getLogger(__name__)


def _load_document(path: Path) -> dict:
    document = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(document, dict):
        raise SystemExit(f"{path} must contain a JSON object")
    return document


def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    from .app import create_app

    app = create_app(settings)
    app.run(host=args.host, port=args.port, debug=settings.is_development)
    return 0


def cmd_publish(args: argparse.Namespace, settings: Settings) -> int:
    document = _load_document(Path(args.file))
    password = args.password or settings.admin_password
    try:
        r = requests.post(
            args.url.rstrip("/") + "/api/admin/publish",
            json={"data": document},
            headers={"x-admin-password": password},
            timeout=20,
        )
    except requests.RequestException as exc:
        logger.error("Publish request failed: %s", exc)
        return 1
    try:
        message = r.json().get("message", "")
    except ValueError:
        message = r.text[:200]
    if r.status_code != 200:
        logger.error("Publish failed (%s): %s", r.status_code, message)
        return 1
    logger.info(message)
    return 0


def cmd_push(args: argparse.Namespace, settings: Settings) -> int:
    """Copy the local JSON document into the configured remote backing."""
    source = Path(args.file) if args.file else settings.data_file
    document = JsonFileContentStore(source).read()
    backend = args.backend or settings.content_backend
    if backend == "file":
        logger.error("Choose a remote backend with --backend or CONTENT_BACKEND")
        return 2
    store = build_content_store(replace(settings, content_backend=backend))
    try:
        store.replace(document)
    except ContentStoreError as exc:
        logger.error("Push to %s failed: %s", backend, exc)
        if args.strict:
            raise
        return 1
    logger.info("Pushed %s to %s backend", source, backend)
    return 0


def cmd_new_post(args: argparse.Namespace, settings: Settings) -> int:
    content = Path(args.file).read_text(encoding="utf-8")
    metadata = {
        "date": args.date,
        "title": args.title,
        "tagline": args.tagline,
        "preview": args.preview,
        "image": args.image,
    }
    try:
        path = PostStore(settings.posts_dir).write(args.slug, content, metadata)
    except ContentStoreError as exc:
        logger.error("Error saving blog post: %s", exc)
        return 1
    logger.info("Wrote %s", path)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="portfolio", description="Portfolio site tools")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the development server")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=int(os.getenv("PORT", "5000")))
    serve.set_defaults(func=cmd_serve)

    publish = sub.add_parser("publish", help="Send a content document to a running site")
    publish.add_argument("file")
    publish.add_argument("--url", default="http://127.0.0.1:5000")
    publish.add_argument("--password", help="Defaults to ADMIN_PASSWORD")
    publish.set_defaults(func=cmd_publish)

    push = sub.add_parser("push", help="Copy the local document to the GitHub or Postgres backing")
    push.add_argument("file", nargs="?")
    push.add_argument("--backend", choices=["github", "postgres"])
    push.add_argument("--strict", action="store_true", help="Raise instead of returning non-zero on failure")
    push.set_defaults(func=cmd_push)

    post = sub.add_parser("new-post", help="Write a markdown post with front matter")
    post.add_argument("slug")
    post.add_argument("file", help="Markdown body")
    post.add_argument("--title", required=True)
    post.add_argument("--date")
    post.add_argument("--tagline")
    post.add_argument("--preview", action="store_true")
    post.add_argument("--image")
    post.set_defaults(func=cmd_new_post)
    return parser


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    args = build_parser().parse_args(argv)
    return args.func(args, Settings.from_env())


if __name__ == "__main__":
    sys.exit(main())
