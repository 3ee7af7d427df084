"""Credential storage for the WhiskGen client.

The remote service is reached with three values the user copies out of their
browser session: the ``Authorization`` bearer token, the next-auth session
cookie, and the workflow id. They are kept in a single JSON record so the
next launch picks them up again.

Loading is intentionally forgiving: a missing, empty, or corrupt file yields
an all-empty record rather than an exception, in which case the UI asks the
user to paste credentials before the first batch.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class Credentials(BaseModel):
    """Transport credentials for the image-generation service.

    Attributes:
        bearer_token: Value of the ``Authorization: Bearer`` header.
        session_token: Value of the ``__Secure-next-auth.session-token`` cookie.
        workflow_id: Workflow identifier sent as the correlation field.
    """

    model_config = {"frozen": True}

    bearer_token: str = Field(default="", description="Authorization bearer token.")
    session_token: str = Field(default="", description="next-auth session cookie value.")
    workflow_id: str = Field(default="", description="Workflow identifier.")

    @property
    def is_configured(self) -> bool:
        """Whether generation may be attempted (bearer token present)."""
        return bool(self.bearer_token)


class CredentialStore:
    """File-backed single-record store for :class:`Credentials`."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Credentials:
        """Return the last saved credentials, or an all-empty record."""
        if not self.path.exists():
            return Credentials()

        try:
            with open(self.path, encoding="utf-8") as handle:
                raw = json.load(handle)
            return Credentials.model_validate(raw)
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable credentials file {self.path}: {e}")
            return Credentials()

    def save(self, credentials: Credentials) -> None:
        """Overwrite the persisted record."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as handle:
            json.dump(credentials.model_dump(), handle, indent=2)
        logger.info(f"Saved credentials to {self.path}")
