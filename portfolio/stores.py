"""Storage backings for the content document and blog posts.

The content document is only ever read whole or replaced whole. Each backing
implements ``read()`` and ``replace(document)``; handlers never touch paths,
HTTP or SQL directly, so the backing can be swapped through configuration.
"""

from __future__ import annotations

import base64
import json
import logging
import os
import re
import stat
import tempfile
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

import frontmatter
import requests

from .config import Settings

logger = logging.getLogger(__name__)

DOCUMENT_ID = "portfolio"
NEW_FILE_MODE = 0o644
ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")


class ContentStoreError(Exception):
    """Raised when a backing cannot read or write its document."""


def dump_document(document: dict[str, Any]) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)


class ContentStore:
    name = "abstract"

    def read(self) -> dict[str, Any]:
        raise NotImplementedError

    def replace(self, document: dict[str, Any]) -> None:
        raise NotImplementedError


class JsonFileContentStore(ContentStore):
    """Content document kept as an indented JSON file on local disk."""

    name = "file"

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            loaded = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise ContentStoreError(f"cannot read {self.path}: {exc}") from exc
        return loaded if isinstance(loaded, dict) else {}

    def replace(self, document: dict[str, Any]) -> None:
        text = dump_document(document)
        # Write a sibling temp file and swap it in, the old file survives a failed write.
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".portfolio-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
            # mkstemp creates 0600; keep the mode the content file already had.
            mode = stat.S_IMODE(self.path.stat().st_mode) if self.path.exists() else NEW_FILE_MODE
            os.chmod(tmp_name, mode)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise ContentStoreError(f"cannot write {self.path}: {exc}") from exc


class GitHubContentStore(ContentStore):
    """Content document committed to a GitHub repository via the contents API."""

    name = "github"

    def __init__(self, token: str, repo: str, branch: str = "main", path: str = "data/portfolio.json") -> None:
        self.token = token
        self.repo = repo
        self.branch = branch
        self.path = path

    @property
    def configured(self) -> bool:
        return bool(self.token and self.repo)

    @property
    def url(self) -> str:
        return f"https://api.github.com/repos/{self.repo}/contents/{self.path}"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}" if self.token else "",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "Portfolio-Publisher/1.0",
        }

    def _get(self) -> requests.Response:
        if not self.configured:
            raise ContentStoreError("missing token or repo")
        try:
            return requests.get(
                self.url,
                headers=self._headers(),
                params={"ref": self.branch},
                allow_redirects=False,
                timeout=15,
            )
        except requests.RequestException as exc:
            raise ContentStoreError(f"GitHub request failed: {exc}") from exc

    def file_sha(self) -> str | None:
        r = self._get()
        if r.status_code == 200:
            return r.json().get("sha")
        return None

    def read(self) -> dict[str, Any]:
        r = self._get()
        if r.status_code == 404:
            return {}
        if r.status_code != 200:
            raise ContentStoreError(f"GitHub read failed ({r.status_code})")
        raw = base64.b64decode(r.json().get("content", "")).decode("utf-8")
        try:
            loaded = json.loads(raw or "{}")
        except ValueError as exc:
            raise ContentStoreError(f"GitHub file is not JSON: {exc}") from exc
        return loaded if isinstance(loaded, dict) else {}

    def replace(self, document: dict[str, Any], message: str = "Update portfolio content") -> None:
        sha = self.file_sha()
        payload = {
            "message": message,
            "content": base64.b64encode(dump_document(document).encode("utf-8")).decode("utf-8"),
            "branch": self.branch,
        }
        if sha:
            payload["sha"] = sha
        try:
            r = requests.put(self.url, headers=self._headers(), json=payload, allow_redirects=False, timeout=20)
        except requests.RequestException as exc:
            raise ContentStoreError(f"GitHub request failed: {exc}") from exc
        if r.status_code in (200, 201):
            logger.info("Committed %s to %s@%s", self.path, self.repo, self.branch)
            return
        try:
            err = r.json().get("message", "")
        except ValueError:
            err = r.text[:300]
        if r.is_redirect:
            err = f"redirected to {r.headers.get('Location', '')}"
        raise ContentStoreError(f"GitHub commit failed ({r.status_code}): {err}")


def normalize_dsn(raw: str) -> str:
    """Normalize DATABASE_URL values copied from dashboards or CLI.

    Accepts quoted values and accidentally copied ``psql <uri>`` strings.
    """
    s = (raw or "").strip()
    if not s:
        return s
    if s.lower().startswith("psql "):
        s = s.split(None, 1)[1].strip()
    if (s.startswith("'") and s.endswith("'")) or (s.startswith('"') and s.endswith('"')):
        s = s[1:-1].strip()
    for scheme in ("postgresql://", "postgres://"):
        idx = s.find(scheme)
        if idx != -1:
            s = s[idx:].strip()
            break
    return s


class PostgresContentStore(ContentStore):
    """Content document kept as a single JSONB row."""

    name = "postgres"

    def __init__(self, dsn: str, table: str = "site_content") -> None:
        self.dsn = normalize_dsn(dsn)
        self.table = table

    def _connect(self):
        # Imported here so the file backing runs without libpq available
        import psycopg

        if not self.dsn:
            raise ContentStoreError("DATABASE_URL not set")
        return psycopg.connect(self.dsn)

    def _statements(self):
        from psycopg import sql

        table = sql.Identifier(self.table)
        create = sql.SQL(
            "CREATE TABLE IF NOT EXISTS {} ("
            " id TEXT PRIMARY KEY,"
            " document JSONB NOT NULL,"
            " updated_at TIMESTAMPTZ"
            ")"
        ).format(table)
        select = sql.SQL("SELECT document FROM {} WHERE id = %s").format(table)
        upsert = sql.SQL(
            "INSERT INTO {} (id, document, updated_at) VALUES (%s, %s, %s) "
            "ON CONFLICT (id) DO UPDATE SET "
            "document = EXCLUDED.document, updated_at = EXCLUDED.updated_at"
        ).format(table)
        return create, select, upsert

    def read(self) -> dict[str, Any]:
        import psycopg

        create, select, _ = self._statements()
        try:
            with self._connect() as conn:
                with conn.cursor() as cur:
                    cur.execute(create)
                    cur.execute(select, (DOCUMENT_ID,))
                    row = cur.fetchone()
        except psycopg.Error as exc:
            raise ContentStoreError(f"database read failed: {exc}") from exc
        if not row:
            return {}
        document = row[0]
        if isinstance(document, str):
            document = json.loads(document)
        return document if isinstance(document, dict) else {}

    def replace(self, document: dict[str, Any]) -> None:
        import psycopg
        from psycopg.types.json import Jsonb

        create, _, upsert = self._statements()
        try:
            with self._connect() as conn:
                with conn.cursor() as cur:
                    cur.execute(create)
                    cur.execute(upsert, (DOCUMENT_ID, Jsonb(document), datetime.now(timezone.utc)))
        except psycopg.Error as exc:
            raise ContentStoreError(f"database write failed: {exc}") from exc
        logger.info("Upserted portfolio document into table '%s'", self.table)


def build_content_store(settings: Settings) -> ContentStore:
    backend = settings.content_backend
    if backend == "file":
        return JsonFileContentStore(settings.data_file)
    if backend == "github":
        return GitHubContentStore(
            settings.github_token,
            settings.github_repo,
            settings.github_branch,
            settings.github_content_path,
        )
    if backend == "postgres":
        return PostgresContentStore(settings.database_url, settings.content_table)
    raise ValueError(f"unknown content backend: {backend!r}")


def _front_matter_value(value: Any) -> Any:
    if isinstance(value, str) and ISO_DATE.fullmatch(value.strip()):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return value
    return value


class PostStore:
    """Markdown posts with YAML front matter, one ``<slug>.md`` per post."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def path_for(self, slug: str) -> Path:
        return self.directory / f"{slug}.md"

    def render(self, content: str, metadata: dict[str, Any]) -> str:
        meta = {k: _front_matter_value(v) for k, v in metadata.items()}
        post = frontmatter.Post(content or "", **meta)
        return frontmatter.dumps(post, sort_keys=False) + "\n"

    def write(self, slug: str, content: str, metadata: dict[str, Any]) -> Path:
        # No collision check: an existing post with the same slug is overwritten.
        target = self.path_for(slug)
        text = self.render(content, metadata)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise ContentStoreError(f"cannot write {target}: {exc}") from exc
        return target

    def get(self, slug: str) -> frontmatter.Post | None:
        target = self.path_for(slug)
        if not target.is_file():
            return None
        return frontmatter.load(str(target))

    def list(self) -> list[dict[str, Any]]:
        if not self.directory.is_dir():
            return []
        posts: list[dict[str, Any]] = []
        for md_file in self.directory.glob("*.md"):
            post = frontmatter.load(str(md_file))
            posts.append({"slug": md_file.stem, **post.metadata})
        posts.sort(key=lambda p: str(p.get("date") or ""), reverse=True)
        return posts
