from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]

DEFAULT_ADMIN_PASSWORD = "admin123"
DEVELOPMENT = "development"


@dataclass(frozen=True)
class Settings:
    admin_password: str = DEFAULT_ADMIN_PASSWORD
    app_env: str = "production"
    data_file: Path = ROOT / "data" / "portfolio.json"
    posts_dir: Path = ROOT / "_posts"
    content_backend: str = "file"
    secret_key: str = "dev-key"
    github_token: str = ""
    github_repo: str = ""  # e.g. "someone/portfolio"
    github_branch: str = "main"
    github_content_path: str = "data/portfolio.json"
    database_url: str = ""
    content_table: str = "site_content"

    @property
    def is_development(self) -> bool:
        return self.app_env == DEVELOPMENT

    @classmethod
    def from_env(cls) -> "Settings":
        # An empty ADMIN_PASSWORD falls back to the default, same as unset.
        return cls(
            admin_password=os.getenv("ADMIN_PASSWORD") or DEFAULT_ADMIN_PASSWORD,
            app_env=(os.getenv("APP_ENV") or "production").strip().lower(),
            data_file=Path(os.getenv("PORTFOLIO_DATA") or ROOT / "data" / "portfolio.json"),
            posts_dir=Path(os.getenv("POSTS_DIR") or ROOT / "_posts"),
            content_backend=(os.getenv("CONTENT_BACKEND") or "file").strip().lower(),
            secret_key=os.getenv("FLASK_SECRET_KEY", "dev-key"),
            github_token=os.getenv("GITHUB_TOKEN", ""),
            github_repo=os.getenv("GITHUB_REPO", ""),
            github_branch=os.getenv("GITHUB_BRANCH", "main"),
            github_content_path=os.getenv("GITHUB_CONTENT_PATH", "data/portfolio.json"),
            database_url=os.getenv("DATABASE_URL", "").strip(),
            content_table=(os.getenv("CONTENT_TABLE") or "site_content").strip(),
        )
