"""Unit tests for batch submission handlers."""

import asyncio
import inspect

import pytest

from whiskgen.core.exceptions import RemoteRequestError
from whiskgen.core.jobs import AspectRatio, JobStatus
from whiskgen.ui.handlers.gallery import download_selected_image, refresh_gallery
from whiskgen.ui.handlers.generation import (
    BUSY_MSG,
    MISSING_CREDENTIALS_MSG,
    clear_jobs,
    count_prompts,
    generate_batch,
    remove_reference_image,
    retry_failed_jobs,
)


@pytest.fixture
def configured_state(initialized_state, credentials):
    """Initialized state whose credential store holds a usable record."""
    initialized_state.credential_store.save(credentials)
    return initialized_state


class TestGenerateBatch:
    """Tests for generate_batch handler."""

    @pytest.mark.asyncio
    async def test_queues_one_job_per_line(self, configured_state, mock_client):
        """Test that each prompt line becomes a job and the textarea is cleared."""
        prompts, status, accordion, state = await generate_batch(
            "a cat\n\na dog\n", None, "Square", configured_state
        )

        assert prompts == ""
        assert "Queued **2** prompts (square)" in status
        assert "reference subject" not in status
        assert "open" not in accordion
        assert [job.prompt for job in state.job_queue.snapshot()] == ["a cat", "a dog"]

        await state.job_queue.join()

        assert all(job.status == JobStatus.SUCCESS for job in state.job_queue.snapshot())
        assert mock_client.generate_text_only.await_count == 2
        mock_client.generate_text_only.assert_any_await(
            "a cat", AspectRatio.SQUARE, state.credential_store.load()
        )

    @pytest.mark.asyncio
    async def test_with_reference_image(self, configured_state, mock_client, png_file):
        """Test that a selected reference image is uploaded once for the batch."""
        _, status, _, state = await generate_batch(
            "a cat\na dog", str(png_file), "Portrait", configured_state
        )

        assert "with reference subject" in status
        await state.job_queue.join()

        mock_client.upload_reference_image.assert_awaited_once()
        assert mock_client.generate_with_reference.await_count == 2
        mock_client.generate_text_only.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_credentials_opens_settings(self, initialized_state, mock_client):
        """Test that without a bearer token nothing is queued and settings open."""
        prompts, status, accordion, state = await generate_batch(
            "a cat", None, "Landscape", initialized_state
        )

        assert prompts == "a cat"
        assert status == MISSING_CREDENTIALS_MSG
        assert accordion["open"] is True
        assert state.job_queue.snapshot() == ()
        mock_client.generate_text_only.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_prompts_rejected(self, configured_state):
        """Test that blank input yields a validation message and no jobs."""
        prompts, status, _, state = await generate_batch("\n  \n", None, "Landscape", configured_state)

        assert prompts == "\n  \n"
        assert "Validation Error" in status
        assert "at least one prompt" in status
        assert state.job_queue.snapshot() == ()

    @pytest.mark.asyncio
    async def test_invalid_reference_image_rejected(self, configured_state, temp_dir):
        """Test that an unreadable reference image blocks the batch."""
        bogus = temp_dir / "bogus.png"
        bogus.write_text("not an image")

        _, status, _, state = await generate_batch("a cat", str(bogus), "Landscape", configured_state)

        assert "not a valid image" in status
        assert state.job_queue.snapshot() == ()

    @pytest.mark.asyncio
    async def test_busy_queue_rejects_new_batch(self, configured_state):
        """Test that a second batch is refused while one is generating."""
        configured_state.job_queue.is_generating = True

        prompts, status, _, state = await generate_batch("a cat", None, "Landscape", configured_state)

        assert prompts == "a cat"
        assert status == BUSY_MSG
        assert state.job_queue.snapshot() == ()


class TestRetryFailedJobs:
    """Tests for retry_failed_jobs handler."""

    @pytest.mark.asyncio
    async def test_nothing_to_retry(self, configured_state):
        status, _, _ = await retry_failed_jobs(configured_state)
        assert status == "*No failed jobs to retry*"

    @pytest.mark.asyncio
    async def test_retries_failed_jobs(self, configured_state, mock_client, encoded_png):
        """Test that failed jobs are re-queued and processed again."""
        mock_client.generate_text_only.side_effect = [
            RemoteRequestError("Generation failed (500): boom", status_code=500),
            encoded_png,
        ]
        _, _, _, state = await generate_batch("a cat", None, "Square", configured_state)
        await state.job_queue.join()
        assert state.job_queue.snapshot()[0].status == JobStatus.FAILED

        status, _, state = await retry_failed_jobs(state)
        assert status == "🔁 Retrying **1** failed jobs"
        await state.job_queue.join()

        job = state.job_queue.snapshot()[0]
        assert job.status == JobStatus.SUCCESS
        assert job.error_message is None

    @pytest.mark.asyncio
    async def test_retry_without_credentials_opens_settings(
        self, configured_state, mock_client, credentials
    ):
        """Test that retry is refused once the saved bearer token is cleared."""
        mock_client.generate_text_only.side_effect = RuntimeError("boom")
        _, _, _, state = await generate_batch("a cat", None, "Square", configured_state)
        await state.job_queue.join()

        state.credential_store.save(credentials.model_copy(update={"bearer_token": ""}))
        status, accordion, state = await retry_failed_jobs(state)

        assert status == MISSING_CREDENTIALS_MSG
        assert accordion["open"] is True
        assert state.job_queue.snapshot()[0].status == JobStatus.FAILED

    @pytest.mark.asyncio
    async def test_busy_queue_rejects_retry(self, configured_state):
        configured_state.job_queue.is_generating = True

        status, _, _ = await retry_failed_jobs(configured_state)

        assert status == BUSY_MSG


class TestClearJobs:
    """Tests for clear_jobs handler."""

    @pytest.mark.asyncio
    async def test_clear_removes_jobs_and_cache(self, configured_state):
        _, _, _, state = await generate_batch("a cat\na dog", None, "Square", configured_state)
        await state.job_queue.join()
        state.image_cache["stale"] = object()
        state.gallery_job_ids = ["stale"]

        status, state = await clear_jobs(state)

        assert status == "🧹 Gallery cleared"
        assert state.job_queue.snapshot() == ()
        assert state.image_cache == {}
        assert state.gallery_job_ids == []
        assert state.rendered_snapshot is None

    @pytest.mark.asyncio
    async def test_clear_during_generation(self, configured_state, mock_client, encoded_png):
        """Test that a clear issued mid-run stays cleared once the run finishes."""
        release = asyncio.Event()

        async def slow_generate(prompt, aspect_ratio, credentials):
            await release.wait()
            return encoded_png

        mock_client.generate_text_only.side_effect = slow_generate
        _, _, _, state = await generate_batch("a cat\na dog", None, "Square", configured_state)
        while mock_client.generate_text_only.await_count == 0:
            await asyncio.sleep(0)

        status, state = await clear_jobs(state)
        release.set()
        await state.job_queue.join()

        assert status == "🧹 Gallery cleared"
        assert state.job_queue.snapshot() == ()
        assert state.job_queue.stats()["total"] == 0

        status, _, state = await retry_failed_jobs(state)
        assert status == "*No failed jobs to retry*"


class TestHandlersShareTheEventLoop:
    """Handlers touching the job queue must run on the loop that owns it."""

    @pytest.mark.parametrize(
        "handler",
        [generate_batch, retry_failed_jobs, clear_jobs, refresh_gallery, download_selected_image],
    )
    def test_queue_handlers_are_coroutines(self, handler):
        """Gradio runs plain functions in worker threads and coroutines on its loop."""
        assert inspect.iscoroutinefunction(handler)


class TestSmallHandlers:
    """Tests for the prompt counter and reference image removal."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("", "0 prompts"),
            (None, "0 prompts"),
            ("a cat", "1 prompts"),
            ("a cat\n\n  \na dog\n", "2 prompts"),
        ],
    )
    def test_count_prompts(self, text, expected):
        assert count_prompts(text) == expected

    def test_remove_reference_image(self):
        assert remove_reference_image() is None
