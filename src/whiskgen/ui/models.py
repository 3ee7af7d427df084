"""Data models for WhiskGen UI state."""

import logging
from dataclasses import dataclass, field
from typing import Any

from whiskgen.core.jobs import AspectRatio

logger = logging.getLogger(__name__)


@dataclass
class UIState:
    """Session state for the Gradio UI.

    Each browser session gets its own UIState, and therefore its own job
    queue. The UI never mutates jobs directly: it reads
    ``job_queue.snapshot()`` and issues queue commands.

    Attributes
    ----------
    job_queue : Any | None
        JobQueue instance owning this session's jobs
    credential_store : Any | None
        CredentialStore used to load/save the user's credentials
    rendered_snapshot : tuple | None
        Last job snapshot pushed to the browser (skip redraws when unchanged)
    gallery_job_ids : list[str]
        Job id of each gallery tile, in display order
    image_cache : dict[str, Any]
        Decoded PIL images keyed by job id
    """

    job_queue: Any | None = None  # JobQueue instance
    credential_store: Any | None = None  # CredentialStore instance

    # Gallery state
    rendered_snapshot: tuple | None = None
    gallery_job_ids: list[str] = field(default_factory=list)
    image_cache: dict[str, Any] = field(default_factory=dict)

    def is_initialized(self) -> bool:
        """Check if the queue and credential store are ready."""
        return self.job_queue is not None and self.credential_store is not None

    def __repr__(self) -> str:
        jobs = len(self.job_queue.snapshot()) if self.job_queue is not None else 0
        return f"UIState(initialized={self.is_initialized()}, jobs={jobs})"


# Radio labels shown in the UI, mapped to the service's aspect ratio enum
ASPECT_RATIOS = {
    "Landscape": AspectRatio.LANDSCAPE,
    "Portrait": AspectRatio.PORTRAIT,
    "Square": AspectRatio.SQUARE,
}


def aspect_ratio_label(aspect_ratio: AspectRatio) -> str:
    """Radio label for an aspect ratio."""
    return next(label for label, value in ASPECT_RATIOS.items() if value == aspect_ratio)


# Job table columns
JOB_TABLE_HEADERS = ["Status", "Prompt", "Note", "Created"]

STATUS_ICONS = {
    "pending": "⏳ Queued",
    "processing": "🔄 Generating",
    "success": "✅ Done",
    "failed": "❌ Failed",
}
