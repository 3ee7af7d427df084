"""Whisk API client for subject uploads and image generation.

Three calls are exposed, all stateless and independent of each other:

- :meth:`WhiskClient.upload_reference_image` - upload a subject image and
  return its ``uploadMediaGenerationId``
- :meth:`WhiskClient.generate_text_only` - text-to-image (``IMAGEN_3_5``)
- :meth:`WhiskClient.generate_with_reference` - recipe generation conditioned
  on an uploaded subject (``GEM_PIX``)

Every call carries the bearer token as ``Authorization``, the session token
as the next-auth cookie, and the workflow id plus a per-call ``sessionId`` in
the ``clientContext`` block.

Response parsing is explicit: each required field lives at a fixed JSON path
declared below and is read with :func:`extract_path`, which raises
:class:`~whiskgen.core.exceptions.MalformedResponseError` naming the path
that was missing.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from whiskgen.core.credentials import Credentials
from whiskgen.core.exceptions import (
    MalformedResponseError,
    RemoteNetworkError,
    RemoteRequestError,
)
from whiskgen.core.jobs import AspectRatio, ReferenceImage

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "__Secure-next-auth.session-token"

TOOL_NAME = "BACKBONE"
TEXT_MODEL = "IMAGEN_3_5"
RECIPE_MODEL = "GEM_PIX"
SUBJECT_CATEGORY = "MEDIA_CATEGORY_SUBJECT"
BOARD_CATEGORY = "MEDIA_CATEGORY_BOARD"

# Fixed JSON paths of the fields the client needs from each response.
UPLOAD_ID_PATH: tuple[str | int, ...] = (
    "result",
    "data",
    "json",
    "result",
    "uploadMediaGenerationId",
)
ENCODED_IMAGE_PATH: tuple[str | int, ...] = (
    "imagePanels",
    0,
    "generatedImages",
    0,
    "encodedImage",
)


def extract_path(data: Any, path: tuple[str | int, ...]) -> Any:
    """Walk a fixed key/index path through decoded JSON.

    Args:
        data: Decoded JSON document
        path: Sequence of dict keys (str) and list indexes (int)

    Returns:
        The value found at the end of the path

    Raises:
        MalformedResponseError: If any step is missing or the final value is empty
    """
    current = data
    for step in path:
        try:
            current = current[step]
        except (KeyError, IndexError, TypeError):
            dotted = ".".join(str(s) for s in path)
            raise MalformedResponseError(f"Response is missing '{dotted}'") from None

    if current in (None, ""):
        dotted = ".".join(str(s) for s in path)
        raise MalformedResponseError(f"Response has empty '{dotted}'")
    return current


def _session_id() -> str:
    """Per-call correlation id (epoch milliseconds, as the web client sends)."""
    return str(int(time.time() * 1000))


def _error_detail(response: httpx.Response) -> str:
    """Best-effort human-readable reason from an error response."""
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase or response.text[:200]

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
    return response.reason_phrase or str(body)[:200]


class WhiskClient:
    """HTTP client for the Whisk image-generation endpoints."""

    def __init__(
        self,
        upload_url: str,
        generate_url: str,
        recipe_url: str,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            upload_url: Subject upload endpoint
            generate_url: Text-to-image endpoint
            recipe_url: Reference-conditioned generation endpoint
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests inject ``httpx.MockTransport``)
        """
        self.upload_url = upload_url
        self.generate_url = generate_url
        self.recipe_url = recipe_url
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_config(cls, config) -> WhiskClient:
        """Build a client from a :class:`~whiskgen.core.config.WhiskGenConfig`."""
        return cls(
            upload_url=config.upload_url,
            generate_url=config.generate_url,
            recipe_url=config.recipe_url,
            timeout=config.request_timeout,
        )

    @staticmethod
    def build_headers(credentials: Credentials) -> dict[str, str]:
        """Transport credentials for a single request."""
        headers = {
            "Authorization": f"Bearer {credentials.bearer_token}",
            "Content-Type": "application/json",
        }
        if credentials.session_token:
            headers["Cookie"] = f"{SESSION_COOKIE_NAME}={credentials.session_token}"
        return headers

    async def _post(self, url: str, payload: dict, credentials: Credentials, action: str) -> Any:
        """POST a JSON payload and return the decoded JSON body.

        Raises:
            RemoteNetworkError: Timeout or connection failure
            RemoteRequestError: Non-2xx status
            MalformedResponseError: Body is not JSON
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    url,
                    headers=self.build_headers(credentials),
                    json=payload,
                )
        except httpx.TimeoutException as e:
            raise RemoteNetworkError(f"{action} timed out after {self.timeout}s: {e}") from e
        except httpx.HTTPError as e:
            raise RemoteNetworkError(f"{action} network error: {e}") from e

        if not response.is_success:
            detail = _error_detail(response)
            raise RemoteRequestError(
                f"{action} failed ({response.status_code}): {detail}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(f"{action} returned a non-JSON body") from e

    async def upload_reference_image(self, image: ReferenceImage, credentials: Credentials) -> str:
        """Upload a subject image.

        Args:
            image: Reference image to upload
            credentials: Transport credentials

        Returns:
            The media generation id to reuse in recipe calls
        """
        payload = {
            "json": {
                "clientContext": {
                    "workflowId": credentials.workflow_id,
                    "sessionId": _session_id(),
                },
                "uploadMediaInput": {
                    "mediaCategory": SUBJECT_CATEGORY,
                    "rawBytes": image.to_data_uri(),
                    "caption": "",
                },
            }
        }
        logger.info(f"Uploading subject image {image.name or '(unnamed)'} ({len(image.data)} bytes)")
        data = await self._post(self.upload_url, payload, credentials, "Upload")
        media_id = extract_path(data, UPLOAD_ID_PATH)
        logger.info(f"Subject uploaded: {media_id}")
        return str(media_id)

    async def generate_text_only(
        self, prompt: str, aspect_ratio: AspectRatio, credentials: Credentials
    ) -> str:
        """Generate an image from a prompt alone.

        Returns:
            Encoded image as returned by the service (usually bare base64)
        """
        payload = {
            "clientContext": {
                "workflowId": credentials.workflow_id,
                "tool": TOOL_NAME,
                "sessionId": _session_id(),
            },
            "imageModelSettings": {
                "imageModel": TEXT_MODEL,
                "aspectRatio": AspectRatio(aspect_ratio).value,
            },
            "prompt": prompt,
            "mediaCategory": BOARD_CATEGORY,
        }
        data = await self._post(self.generate_url, payload, credentials, "Generation")
        return str(extract_path(data, ENCODED_IMAGE_PATH))

    async def generate_with_reference(
        self,
        prompt: str,
        media_id: str,
        aspect_ratio: AspectRatio,
        credentials: Credentials,
    ) -> str:
        """Generate an image conditioned on an uploaded subject.

        Returns:
            Encoded image as returned by the service (usually bare base64)
        """
        payload = {
            "clientContext": {
                "workflowId": credentials.workflow_id,
                "tool": TOOL_NAME,
                "sessionId": _session_id(),
            },
            "imageModelSettings": {
                "imageModel": RECIPE_MODEL,
                "aspectRatio": AspectRatio(aspect_ratio).value,
            },
            "userInstruction": prompt,
            "recipeMediaInputs": [
                {
                    "caption": media_id,
                    "mediaInput": {
                        "mediaCategory": SUBJECT_CATEGORY,
                        "mediaGenerationId": media_id,
                    },
                }
            ],
        }
        data = await self._post(self.recipe_url, payload, credentials, "Recipe generation")
        return str(extract_path(data, ENCODED_IMAGE_PATH))
