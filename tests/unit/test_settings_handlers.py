"""Unit tests for credential settings handlers."""

from unittest.mock import patch

from whiskgen.core.credentials import Credentials
from whiskgen.ui.handlers.settings import load_credentials, save_credentials


class TestLoadCredentials:
    """Tests for load_credentials handler."""

    def test_empty_when_nothing_saved(self, initialized_state):
        bearer, session, workflow, _ = load_credentials(initialized_state)
        assert (bearer, session, workflow) == ("", "", "")

    def test_returns_saved_values(self, initialized_state, credentials):
        initialized_state.credential_store.save(credentials)

        bearer, session, workflow, _ = load_credentials(initialized_state)

        assert bearer == "test-bearer"
        assert session == "test-session"
        assert workflow == "wf-123"


class TestSaveCredentials:
    """Tests for save_credentials handler."""

    def test_saves_stripped_values(self, initialized_state):
        status, state = save_credentials("  tok  ", " sess\n", " wf ", initialized_state)

        assert status == "✅ Credentials saved"
        assert state.credential_store.load() == Credentials(
            bearer_token="tok", session_token="sess", workflow_id="wf"
        )

    def test_strips_bearer_prefix(self, initialized_state):
        """Test that a pasted ``Authorization`` header value is accepted."""
        save_credentials("Bearer ya29.abc", "", "", initialized_state)
        assert initialized_state.credential_store.load().bearer_token == "ya29.abc"

    def test_empty_bearer_warns(self, initialized_state):
        status, state = save_credentials("", "sess", "wf", initialized_state)

        assert "bearer token is empty" in status
        assert state.credential_store.load().session_token == "sess"
        assert not state.credential_store.load().is_configured

    def test_none_values(self, initialized_state):
        status, state = save_credentials(None, None, None, initialized_state)

        assert "bearer token is empty" in status
        assert state.credential_store.load() == Credentials()

    def test_overwrites_previous_record(self, initialized_state, credentials):
        initialized_state.credential_store.save(credentials)

        save_credentials("new-token", "", "", initialized_state)

        assert initialized_state.credential_store.load() == Credentials(bearer_token="new-token")

    def test_write_failure_reported(self, initialized_state):
        with patch.object(
            initialized_state.credential_store, "save", side_effect=OSError("disk full")
        ):
            status, _ = save_credentials("tok", "", "", initialized_state)

        assert "Error" in status
        assert "disk full" in status
