"""State management utilities for WhiskGen UI.

This module handles the initialization of per-session UI state: the job
queue (with its remote client) and the credential store.
"""

import logging

from whiskgen.core.config import config
from whiskgen.core.credentials import CredentialStore
from whiskgen.core.queue import JobQueue
from whiskgen.core.whisk_client import WhiskClient

from .models import UIState

logger = logging.getLogger(__name__)


def initialize_ui_state(state: UIState | None = None) -> UIState:
    """Initialize or ensure UI state is ready.

    Components are created lazily so that a session only builds its queue
    on the first interaction.

    Args:
        state: Existing UIState or None

    Returns:
        Initialized UIState instance
    """
    if state is None:
        logger.info("Creating new UIState")
        state = UIState()

    if state.is_initialized():
        return state

    if state.credential_store is None:
        logger.info(f"Initializing CredentialStore at {config.credentials_path}")
        state.credential_store = CredentialStore(config.credentials_path)

    if state.job_queue is None:
        logger.info("Initializing JobQueue")
        state.job_queue = JobQueue(WhiskClient.from_config(config))

    logger.info(f"UIState initialization complete: {state}")
    return state


def cleanup_ui_state(state: UIState) -> None:
    """Drop the session's jobs and cached images.

    Runs still in flight finish on their own; their updates are discarded.

    Args:
        state: UI state to clean up
    """
    logger.info("Cleaning up UIState resources")

    if state.job_queue is not None:
        state.job_queue.clear()

    state.rendered_snapshot = None
    state.gallery_job_ids = []
    state.image_cache.clear()
