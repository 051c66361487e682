"""Unpublished edits held in the admin's browser session."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, MutableMapping

AUTH_KEY = "adminAuthenticated"
DRAFT_KEY = "previewData"


class DraftError(ValueError):
    """The session holds draft text that is not a JSON object."""


@dataclass(frozen=True)
class PendingEdit:
    """Authentication flag plus an optional candidate content document.

    The document travels as JSON text so the session only ever carries the
    same serialization the publish endpoint accepts.
    """

    authenticated: bool = False
    document: dict[str, Any] | None = None

    @staticmethod
    def encode(document: dict[str, Any]) -> str:
        return json.dumps(document, ensure_ascii=False)

    @staticmethod
    def decode(raw: str) -> dict[str, Any]:
        try:
            loaded = json.loads(raw)
        except (TypeError, ValueError) as exc:
            raise DraftError(f"draft is not valid JSON: {exc}") from exc
        if not isinstance(loaded, dict):
            raise DraftError("draft must be a JSON object")
        return loaded

    @classmethod
    def from_session(cls, session: MutableMapping[str, Any]) -> "PendingEdit":
        """Load the pending edit; raises DraftError when the stored draft is corrupt.

        An unauthenticated session never yields a document.
        """
        authenticated = session.get(AUTH_KEY) is True
        raw = session.get(DRAFT_KEY)
        if not authenticated or raw is None:
            return cls(authenticated=authenticated)
        return cls(authenticated=True, document=cls.decode(raw))

    def save(self, session: MutableMapping[str, Any]) -> None:
        session[AUTH_KEY] = self.authenticated
        if self.document is None:
            session.pop(DRAFT_KEY, None)
        else:
            session[DRAFT_KEY] = self.encode(self.document)
