from __future__ import annotations

import hmac
from dataclasses import dataclass
from typing import Any, Mapping

from .config import Settings

PASSWORD_HEADER = "x-admin-password"


def provided_password(headers: Mapping[str, str], body: Mapping[str, Any] | None) -> str:
    """Secret from the ``x-admin-password`` header, else the body's ``password`` field."""
    header = headers.get(PASSWORD_HEADER)
    if header:
        return header
    value = (body or {}).get("password")
    return value if isinstance(value, str) else ""


@dataclass(frozen=True)
class AdminPolicy:
    settings: Settings
    allow_development: bool = False

    def check_password(self, provided: str) -> bool:
        if not provided:
            return False
        return hmac.compare_digest(provided.encode("utf-8"), self.settings.admin_password.encode("utf-8"))

    def is_authorized(self, headers: Mapping[str, str], body: Mapping[str, Any] | None) -> bool:
        if self.allow_development and self.settings.is_development:
            return True
        return self.check_password(provided_password(headers, body))
