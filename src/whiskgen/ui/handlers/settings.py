"""Credential settings handlers."""

import logging

from whiskgen.core.credentials import Credentials

from ..models import UIState
from ..state import initialize_ui_state

logger = logging.getLogger(__name__)


def load_credentials(state: UIState) -> tuple[str, str, str, UIState]:
    """Populate the settings fields from the saved record.

    Args:
        state: UI state

    Returns:
        Tuple of (bearer_token, session_token, workflow_id, updated_state)
    """
    state = initialize_ui_state(state)
    credentials = state.credential_store.load()
    return credentials.bearer_token, credentials.session_token, credentials.workflow_id, state


def save_credentials(
    bearer_token: str, session_token: str, workflow_id: str, state: UIState
) -> tuple[str, UIState]:
    """Persist the settings fields. Applies to every later batch and retry.

    Args:
        bearer_token: Authorization bearer token (a leading "Bearer " is stripped)
        session_token: next-auth session cookie value
        workflow_id: Workflow identifier
        state: UI state

    Returns:
        Tuple of (status_markdown, updated_state)
    """
    state = initialize_ui_state(state)

    bearer_token = (bearer_token or "").strip()
    if bearer_token.lower().startswith("bearer "):
        bearer_token = bearer_token[len("bearer ") :].strip()

    credentials = Credentials(
        bearer_token=bearer_token,
        session_token=(session_token or "").strip(),
        workflow_id=(workflow_id or "").strip(),
    )

    try:
        state.credential_store.save(credentials)
    except OSError as e:
        logger.error(f"Failed to save credentials: {e}", exc_info=True)
        return f"❌ **Error**\n\nCould not save credentials: `{e}`", state

    if not credentials.is_configured:
        return "⚠️ Saved, but the bearer token is empty. Generation stays disabled.", state
    return "✅ Credentials saved", state
