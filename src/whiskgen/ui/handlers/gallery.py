"""Gallery rendering and image download handlers."""

import logging
from datetime import datetime

import gradio as gr

from whiskgen.core.config import config
from whiskgen.core.jobs import JobStatus, load_image, save_job_image

from ..models import STATUS_ICONS, UIState
from ..state import initialize_ui_state

logger = logging.getLogger(__name__)

RETRY_LABEL = "🔁 Retry Failed"


def format_stats(state: UIState) -> str:
    """One-line job summary (counts by status plus a generating marker)."""
    stats = state.job_queue.stats()
    line = (
        f"**{stats['total']}** jobs · ✅ {stats['success']} success · "
        f"❌ {stats['failed']} failed · ⏳ {stats['pending'] + stats['processing']} in queue"
    )
    if state.job_queue.is_generating:
        line += " · 🔄 *generating...*"
    return line


def button_updates(state: UIState) -> tuple[gr.update, gr.update]:
    """Label and visibility of the retry and clear buttons."""
    stats = state.job_queue.stats()
    failed = stats["failed"]
    retry_btn = gr.update(value=f"{RETRY_LABEL} ({failed})", visible=failed > 0)
    clear_btn = gr.update(visible=stats["total"] > 0)
    return retry_btn, clear_btn


async def refresh_gallery(
    state: UIState,
) -> tuple[list, list[list[str]], str, gr.update, gr.update, UIState]:
    """Re-render the gallery and job table from the queue snapshot.

    Called on a timer. When the snapshot has not changed since the last
    call, the gallery and table are left untouched so the browser keeps its
    selection. The retry button shows the failed count and is hidden when
    nothing failed; the clear button is hidden while the gallery is empty.

    Args:
        state: UI state

    Returns:
        Tuple of (gallery_items, job_table_rows, stats_markdown,
        retry_button_update, clear_button_update, updated_state)
    """
    state = initialize_ui_state(state)
    snapshot = state.job_queue.snapshot()
    stats = format_stats(state)
    retry_btn, clear_btn = button_updates(state)

    if snapshot is state.rendered_snapshot:
        return gr.update(), gr.update(), stats, retry_btn, clear_btn, state

    gallery_items = []
    gallery_job_ids = []
    rows = []

    for job in snapshot:
        created = datetime.fromtimestamp(job.created_at).strftime("%H:%M:%S")
        rows.append(
            [STATUS_ICONS[job.status.value], job.prompt, job.error_message or "", created]
        )

        if job.status != JobStatus.SUCCESS:
            continue

        image = state.image_cache.get(job.id)
        if image is None:
            try:
                image = load_image(job.image_data)
            except Exception as e:
                logger.warning(f"Could not decode image of job {job.id}: {e}")
                continue
            state.image_cache[job.id] = image

        gallery_items.append((image, job.prompt))
        gallery_job_ids.append(job.id)

    # Forget images of jobs that are gone or were re-queued
    live_ids = set(gallery_job_ids)
    for job_id in list(state.image_cache):
        if job_id not in live_ids:
            del state.image_cache[job_id]

    state.gallery_job_ids = gallery_job_ids
    state.rendered_snapshot = snapshot
    return gallery_items, rows, stats, retry_btn, clear_btn, state


async def download_selected_image(evt: gr.SelectData, state: UIState) -> tuple[str | None, UIState]:
    """Export the clicked gallery image to the downloads directory.

    Args:
        evt: Gradio SelectData event containing the selected index
        state: UI state

    Returns:
        Tuple of (file_path_for_download, updated_state)
    """
    state = initialize_ui_state(state)
    index = evt.index

    if index is None or index >= len(state.gallery_job_ids):
        return None, state

    job = state.job_queue.get(state.gallery_job_ids[index])
    if job is None or job.status != JobStatus.SUCCESS:
        return None, state

    try:
        path = save_job_image(job, config.downloads_dir)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to export job {job.id}: {e}", exc_info=True)
        return None, state

    return str(path), state
