"""Batch submission, retry, and clear handlers."""

import logging

import gradio as gr

from whiskgen.core.exceptions import ConfigurationError

from ..models import UIState
from ..state import cleanup_ui_state, initialize_ui_state
from ..validation import (
    ValidationError,
    parse_prompt_lines,
    resolve_aspect_ratio,
    validate_reference_image,
)

logger = logging.getLogger(__name__)

MISSING_CREDENTIALS_MSG = (
    "🔑 **Credentials required**\n\n"
    "Paste your bearer token, session token and workflow id in **Settings** and save."
)
BUSY_MSG = "⏳ A batch is still generating. Wait for it to finish before starting another."


async def generate_batch(
    prompts_text: str,
    reference_image_path: str | None,
    aspect_ratio_label: str,
    state: UIState,
) -> tuple[str, str, gr.update, UIState]:
    """Queue one job per prompt line and start generating.

    Args:
        prompts_text: Bulk prompt textarea (one prompt per line)
        reference_image_path: Optional subject image filepath
        aspect_ratio_label: Selected aspect ratio radio label
        state: UI state

    Returns:
        Tuple of (prompts_textbox_value, status_markdown, settings_accordion_update, updated_state)
    """
    state = initialize_ui_state(state)
    queue = state.job_queue

    if queue.is_generating:
        return prompts_text, BUSY_MSG, gr.update(), state

    credentials = state.credential_store.load()
    if not credentials.is_configured:
        logger.info("Generate requested without credentials")
        return prompts_text, MISSING_CREDENTIALS_MSG, gr.update(open=True), state

    try:
        prompts = parse_prompt_lines(prompts_text)
        reference_image = validate_reference_image(reference_image_path)
        aspect_ratio = resolve_aspect_ratio(aspect_ratio_label)
        queue.submit(prompts, reference_image, aspect_ratio, credentials)

    except ValidationError as e:
        logger.warning(f"Validation error: {e}")
        return prompts_text, f"❌ **Validation Error**\n\n{e}", gr.update(), state

    except ConfigurationError:
        return prompts_text, MISSING_CREDENTIALS_MSG, gr.update(open=True), state

    subject_info = " with reference subject" if reference_image else ""
    info = f"✅ Queued **{len(prompts)}** prompts ({aspect_ratio.label.lower()}){subject_info}"
    return "", info, gr.update(), state


async def retry_failed_jobs(state: UIState) -> tuple[str, gr.update, UIState]:
    """Re-queue every failed job using the currently saved credentials.

    Args:
        state: UI state

    Returns:
        Tuple of (status_markdown, settings_accordion_update, updated_state)
    """
    state = initialize_ui_state(state)
    queue = state.job_queue

    if queue.is_generating:
        return BUSY_MSG, gr.update(), state

    try:
        count = queue.retry_failed(state.credential_store.load())
    except ConfigurationError:
        return MISSING_CREDENTIALS_MSG, gr.update(open=True), state

    if count == 0:
        return "*No failed jobs to retry*", gr.update(), state
    return f"🔁 Retrying **{count}** failed jobs", gr.update(), state


async def clear_jobs(state: UIState) -> tuple[str, UIState]:
    """Remove every job from the gallery.

    Args:
        state: UI state

    Returns:
        Tuple of (status_markdown, updated_state)
    """
    state = initialize_ui_state(state)
    cleanup_ui_state(state)
    return "🧹 Gallery cleared", state


def remove_reference_image() -> None:
    """Cancel the reference image selection (clears the image input)."""
    return None


def count_prompts(prompts_text: str) -> str:
    """Live prompt counter shown under the textarea."""
    count = sum(1 for line in (prompts_text or "").splitlines() if line.strip())
    return f"{count} prompts"
