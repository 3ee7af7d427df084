"""Job records, queue events, and image payload helpers.

A :class:`Job` tracks one prompt's generation attempt. Jobs are immutable:
every state change produces a new instance via one of the ``with_*``
helpers, which keeps the status/payload invariants in one place:

==========  ==============  =======================================
Status      image_data      error_message
==========  ==============  =======================================
pending     unset           unset
processing  unset           optional progress note
success     data URI        unset
failed      unset           failure reason
==========  ==============  =======================================

The queue applies :class:`JobEvent` instances to its collection; see
:mod:`whiskgen.core.queue`.
"""

from __future__ import annotations

import base64
import io
import logging
import re
import time
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path

from PIL import Image

from whiskgen.core.credentials import Credentials

logger = logging.getLogger(__name__)

DATA_URI_PREFIX = "data:image"
JPEG_DATA_URI_PREFIX = "data:image/jpeg;base64,"

_FILENAME_UNSAFE = re.compile(r"[^a-zA-Z0-9]")


class AspectRatio(str, Enum):
    """Output image shape, as named by the remote service."""

    LANDSCAPE = "IMAGE_ASPECT_RATIO_LANDSCAPE"
    PORTRAIT = "IMAGE_ASPECT_RATIO_PORTRAIT"
    SQUARE = "IMAGE_ASPECT_RATIO_SQUARE"

    @property
    def label(self) -> str:
        """Short display name (e.g. ``LANDSCAPE``)."""
        return self.value.rsplit("_", 1)[-1]


class JobStatus(str, Enum):
    """Lifecycle state of a job."""

    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"


def new_job_id() -> str:
    """Return a short opaque job identifier."""
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True)
class Job:
    """One prompt's tracked generation attempt and its current outcome."""

    id: str
    prompt: str
    batch_id: str
    status: JobStatus = JobStatus.PENDING
    image_data: str | None = None
    error_message: str | None = None
    created_at: float = field(default_factory=time.time)

    @classmethod
    def create(cls, prompt: str, batch_id: str) -> Job:
        """Create a pending job for a stripped, non-empty prompt.

        Raises:
            ValueError: If the prompt is blank
        """
        prompt = prompt.strip()
        if not prompt:
            raise ValueError("Job prompt must not be blank")
        return cls(id=new_job_id(), prompt=prompt, batch_id=batch_id)

    def with_pending(self) -> Job:
        return replace(self, status=JobStatus.PENDING, image_data=None, error_message=None)

    def with_processing(self, note: str | None = None) -> Job:
        return replace(self, status=JobStatus.PROCESSING, image_data=None, error_message=note)

    def with_success(self, image_data: str) -> Job:
        return replace(self, status=JobStatus.SUCCESS, image_data=image_data, error_message=None)

    def with_failure(self, message: str) -> Job:
        return replace(self, status=JobStatus.FAILED, image_data=None, error_message=message)

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.SUCCESS, JobStatus.FAILED)


@dataclass(frozen=True)
class ReferenceImage:
    """A subject image attached to a batch.

    Attributes:
        data: Raw encoded image bytes (PNG, JPEG, ...)
        mime_type: MIME type matching ``data``
        name: Original filename, for logging only
    """

    data: bytes
    mime_type: str = "image/png"
    name: str = ""

    @classmethod
    def from_path(cls, path: str | Path) -> ReferenceImage:
        """Load an image file, using Pillow to verify it and detect its type.

        Raises:
            OSError: If the file cannot be read or is not a recognised image
        """
        path = Path(path)
        data = path.read_bytes()
        with Image.open(io.BytesIO(data)) as image:
            image.verify()
            mime_type = Image.MIME.get(image.format or "", "image/png")
        return cls(data=data, mime_type=mime_type, name=path.name)

    def to_data_uri(self) -> str:
        """Encode as a ``data:<mime>;base64,...`` string."""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


@dataclass(frozen=True)
class BatchContext:
    """Everything needed to (re)process the jobs of one batch."""

    batch_id: str
    aspect_ratio: AspectRatio
    credentials: Credentials
    reference_image: ReferenceImage | None = None


# ---------------------------------------------------------------------------
# Queue events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class JobEvent:
    """Base class for state changes applied to a single job."""

    job_id: str

    def apply(self, job: Job) -> Job:
        raise NotImplementedError


@dataclass(frozen=True)
class JobCreated(JobEvent):
    job: Job

    def apply(self, job: Job) -> Job:
        return job


@dataclass(frozen=True)
class JobStarted(JobEvent):
    note: str | None = None

    def apply(self, job: Job) -> Job:
        return job.with_processing(self.note)


@dataclass(frozen=True)
class JobSucceeded(JobEvent):
    image_data: str

    def apply(self, job: Job) -> Job:
        return job.with_success(self.image_data)


@dataclass(frozen=True)
class JobFailed(JobEvent):
    message: str

    def apply(self, job: Job) -> Job:
        return job.with_failure(self.message)


@dataclass(frozen=True)
class JobRequeued(JobEvent):
    def apply(self, job: Job) -> Job:
        return job.with_pending()


# ---------------------------------------------------------------------------
# Image payload helpers
# ---------------------------------------------------------------------------


def normalize_image_data(encoded: str) -> str:
    """Make an encoded image directly renderable.

    Values already carrying a ``data:image`` prefix are returned unchanged;
    bare base64 is declared as JPEG.
    """
    if encoded.startswith(DATA_URI_PREFIX):
        return encoded
    return f"{JPEG_DATA_URI_PREFIX}{encoded}"


def decode_image_data(image_data: str) -> bytes:
    """Return the raw bytes of a data URI (or bare base64) image string."""
    _, sep, payload = image_data.partition(",")
    if not sep:
        payload = image_data
    return base64.b64decode(payload)


def load_image(image_data: str) -> Image.Image:
    """Decode a data URI image string into a Pillow image."""
    image = Image.open(io.BytesIO(decode_image_data(image_data)))
    image.load()
    return image


def download_filename(job: Job) -> str:
    """Name of the exported image file for a job.

    The job id followed by the first 20 prompt characters, with everything
    outside ``[a-zA-Z0-9]`` replaced by underscores.
    """
    prefix = _FILENAME_UNSAFE.sub("_", job.prompt[:20])
    return f"{job.id}_{prefix}.jpg"


def save_job_image(job: Job, directory: Path) -> Path:
    """Write a successful job's image into ``directory``.

    Returns:
        Path of the written file

    Raises:
        ValueError: If the job has no image
    """
    if job.status != JobStatus.SUCCESS or not job.image_data:
        raise ValueError(f"Job {job.id} has no image to export")

    directory.mkdir(parents=True, exist_ok=True)
    path = directory / download_filename(job)
    path.write_bytes(decode_image_data(job.image_data))
    logger.info(f"Exported job {job.id} to {path}")
    return path
