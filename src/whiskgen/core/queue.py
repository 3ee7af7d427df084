"""Job queue engine: owns the job collection and drives the remote client.

Lifecycle of a job::

    pending ──► processing ──► success
                    │
                    └────────► failed ──(retry_failed)──► pending

Submitting a batch creates one pending job per non-blank prompt line,
prepends the batch to the visible collection (newest first), and schedules
:meth:`JobQueue.process_batch` as an asyncio task on the running loop. Jobs
of a batch are processed strictly one after another in submission order.

State changes are applied as events (:class:`~whiskgen.core.jobs.JobCreated`,
:class:`~whiskgen.core.jobs.JobStarted`, ...). Each application replaces the
whole collection tuple, so readers always observe a consistent snapshot.
Events for ids that are no longer present (after :meth:`JobQueue.clear`)
are silently dropped.

The engine does not guard against overlapping runs. Callers are expected to
check :attr:`JobQueue.is_generating` before issuing a new submit or retry.
All state is owned by one event loop; nothing here is thread-safe. Every
caller (including the Gradio handlers) must run on that loop.

A batch keeps its context (reference image, aspect ratio, credentials)
only while some of its jobs are not yet successful.

Usage Example
-------------
    queue = JobQueue(WhiskClient.from_config(config))
    batch_id = queue.submit(["a cat", "a dog"], None, AspectRatio.SQUARE, credentials)
    await queue.join()
    for job in queue.snapshot():
        print(job.prompt, job.status)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence

from whiskgen.core.credentials import Credentials
from whiskgen.core.exceptions import ConfigurationError
from whiskgen.core.jobs import (
    AspectRatio,
    BatchContext,
    Job,
    JobCreated,
    JobEvent,
    JobFailed,
    JobRequeued,
    JobStarted,
    JobStatus,
    JobSucceeded,
    ReferenceImage,
    new_job_id,
    normalize_image_data,
)

logger = logging.getLogger(__name__)

UPLOADING_NOTE = "Uploading subject..."
UPLOAD_FAILED_MESSAGE = "Subject upload failed"
UNKNOWN_ERROR_MESSAGE = "Unknown error"


class JobQueue:
    """Ordered collection of generation jobs and the loop that processes them.

    Args:
        client: Remote generation client exposing ``upload_reference_image``,
            ``generate_text_only`` and ``generate_with_reference`` coroutines
            (normally a :class:`~whiskgen.core.whisk_client.WhiskClient`)
    """

    def __init__(self, client):
        self.client = client
        self.is_generating = False
        self._jobs: tuple[Job, ...] = ()
        self._batches: dict[str, BatchContext] = {}
        self._tasks: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def snapshot(self) -> tuple[Job, ...]:
        """Current jobs, most recent batch first."""
        return self._jobs

    def get(self, job_id: str) -> Job | None:
        return next((job for job in self._jobs if job.id == job_id), None)

    def stats(self) -> dict[str, int]:
        """Job counts by status, plus ``total``."""
        counts = {status.value: 0 for status in JobStatus}
        for job in self._jobs:
            counts[job.status.value] += 1
        counts["total"] = len(self._jobs)
        return counts

    def batch_context(self, batch_id: str) -> BatchContext | None:
        return self._batches.get(batch_id)

    # ------------------------------------------------------------------
    # Event application
    # ------------------------------------------------------------------

    def apply(self, *events: JobEvent) -> None:
        """Apply events to the collection in one replacement.

        Created jobs are prepended as a block, preserving their order.
        Other events update the job with the matching id, or do nothing
        if that id is gone.
        """
        created = tuple(event.job for event in events if isinstance(event, JobCreated))
        jobs = created + self._jobs
        for event in events:
            if isinstance(event, JobCreated):
                continue
            jobs = tuple(event.apply(job) if job.id == event.job_id else job for job in jobs)
        self._jobs = jobs

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def submit(
        self,
        prompt_lines: Iterable[str],
        reference_image: ReferenceImage | None = None,
        aspect_ratio: AspectRatio = AspectRatio.LANDSCAPE,
        credentials: Credentials | None = None,
    ) -> str | None:
        """Create a batch of jobs and start processing it in the background.

        Must be called from within a running event loop.

        Args:
            prompt_lines: One prompt per entry; blank entries are dropped
            reference_image: Optional subject shared by every job of the batch
            aspect_ratio: Output shape for every job of the batch
            credentials: Transport credentials captured for this batch

        Returns:
            The new batch id, or None when no non-blank line was given

        Raises:
            ConfigurationError: If the bearer token is empty (no job is created)
        """
        if credentials is None or not credentials.is_configured:
            raise ConfigurationError("Bearer token is not configured")

        prompts = [line.strip() for line in prompt_lines if line and line.strip()]
        if not prompts:
            logger.info("Submit ignored: no non-blank prompts")
            return None

        batch_id = new_job_id()
        context = BatchContext(
            batch_id=batch_id,
            aspect_ratio=AspectRatio(aspect_ratio),
            credentials=credentials,
            reference_image=reference_image,
        )
        self._batches[batch_id] = context

        jobs = [Job.create(prompt, batch_id) for prompt in prompts]
        self.apply(*(JobCreated(job.id, job) for job in jobs))
        logger.info(
            f"Submitted batch {batch_id}: {len(jobs)} jobs, "
            f"aspect={context.aspect_ratio.label}, reference={reference_image is not None}"
        )

        self._schedule([(context, jobs)])
        return batch_id

    def retry_failed(self, credentials: Credentials | None = None) -> int:
        """Re-queue every failed job and process them again in the background.

        Jobs are regrouped by their originating batch and each group is
        reprocessed with that batch's reference image and aspect ratio.
        Credentials default to the ones captured when the batch was
        submitted; pass ``credentials`` to use a newer record instead.

        Returns:
            Number of jobs re-queued (0 means nothing changed)

        Raises:
            ConfigurationError: If ``credentials`` is given without a bearer token
        """
        if credentials is not None and not credentials.is_configured:
            raise ConfigurationError("Bearer token is not configured")

        failed = [job for job in self._jobs if job.status == JobStatus.FAILED]
        if not failed:
            return 0

        groups: dict[str, list[Job]] = {}
        for job in failed:
            groups.setdefault(job.batch_id, []).append(job)

        self.apply(*(JobRequeued(job.id) for job in failed))

        runs = []
        for batch_id, jobs in groups.items():
            context = self._batches[batch_id]
            if credentials is not None:
                context = BatchContext(
                    batch_id=context.batch_id,
                    aspect_ratio=context.aspect_ratio,
                    credentials=credentials,
                    reference_image=context.reference_image,
                )
            runs.append((context, jobs))

        logger.info(f"Retrying {len(failed)} failed jobs across {len(runs)} batches")
        self._schedule(runs)
        return len(failed)

    def clear(self) -> None:
        """Empty the collection. In-flight runs keep going; their updates are dropped."""
        logger.info(f"Clearing {len(self._jobs)} jobs")
        self._jobs = ()
        self._batches.clear()

    async def join(self) -> None:
        """Wait for every scheduled processing run to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def _schedule(self, runs: list[tuple[BatchContext, Sequence[Job]]]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._run(runs))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, runs: list[tuple[BatchContext, Sequence[Job]]]) -> None:
        for context, jobs in runs:
            await self.process_batch(
                jobs,
                context.reference_image,
                context.aspect_ratio,
                context.credentials,
            )
            self._release_batch(context.batch_id)

    def _release_batch(self, batch_id: str) -> None:
        """Forget a batch context once every one of its jobs has succeeded.

        Contexts of batches with failed or unfinished jobs are kept for
        :meth:`retry_failed`.
        """
        if any(job.batch_id == batch_id and job.status != JobStatus.SUCCESS for job in self._jobs):
            return
        if self._batches.pop(batch_id, None) is not None:
            logger.info(f"Released context of completed batch {batch_id}")

    async def process_batch(
        self,
        jobs: Sequence[Job],
        reference_image: ReferenceImage | None,
        aspect_ratio: AspectRatio,
        credentials: Credentials,
    ) -> None:
        """Process one batch sequentially. Never raises.

        With a reference image, the subject is uploaded once first; if that
        fails every job of the batch fails with ``"Subject upload failed"``
        and no generation call is made.
        """
        job_ids = [job.id for job in jobs]
        self.is_generating = True
        logger.info(f"Processing {len(job_ids)} jobs")

        try:
            media_id = None
            if reference_image is not None:
                self.apply(*(JobStarted(job_id, UPLOADING_NOTE) for job_id in job_ids))
                try:
                    media_id = await self.client.upload_reference_image(reference_image, credentials)
                except Exception as e:
                    logger.warning(f"Subject upload failed: {e}", exc_info=True)
                    self.apply(*(JobFailed(job_id, UPLOAD_FAILED_MESSAGE) for job_id in job_ids))
                    return

            for job in jobs:
                await self._process_job(job, media_id, aspect_ratio, credentials)
        finally:
            self.is_generating = False
            logger.info("Processing run finished")

    async def _process_job(
        self,
        job: Job,
        media_id: str | None,
        aspect_ratio: AspectRatio,
        credentials: Credentials,
    ) -> None:
        self.apply(JobStarted(job.id))

        try:
            if media_id:
                encoded = await self.client.generate_with_reference(
                    job.prompt, media_id, aspect_ratio, credentials
                )
            else:
                encoded = await self.client.generate_text_only(
                    job.prompt, aspect_ratio, credentials
                )
            image_data = normalize_image_data(encoded)
        except Exception as e:
            message = str(e) or UNKNOWN_ERROR_MESSAGE
            logger.warning(f"Job {job.id} failed: {message}", exc_info=True)
            self.apply(JobFailed(job.id, message))
            return

        self.apply(JobSucceeded(job.id, image_data))
        logger.info(f"Job {job.id} succeeded")
