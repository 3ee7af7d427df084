"""UI event handlers organized by feature area.

This package provides handlers for all Gradio UI events, organized into logical modules:
- generation: Batch submission, retry, clear, and reference image selection
- gallery: Gallery/job table rendering and image download
- settings: Credential loading and saving
"""

from .gallery import (
    RETRY_LABEL,
    button_updates,
    download_selected_image,
    format_stats,
    refresh_gallery,
)
from .generation import (
    clear_jobs,
    count_prompts,
    generate_batch,
    remove_reference_image,
    retry_failed_jobs,
)
from .settings import (
    load_credentials,
    save_credentials,
)

__all__ = [
    # Generation handlers
    "clear_jobs",
    "count_prompts",
    "generate_batch",
    "remove_reference_image",
    "retry_failed_jobs",
    # Gallery handlers
    "RETRY_LABEL",
    "button_updates",
    "download_selected_image",
    "format_stats",
    "refresh_gallery",
    # Settings handlers
    "load_credentials",
    "save_credentials",
]
