"""Validation utilities for WhiskGen UI inputs."""

import logging

from whiskgen.core.jobs import AspectRatio, ReferenceImage

from .models import ASPECT_RATIOS

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """User-friendly validation error.

    This exception is raised when user input fails validation.
    The message is intended to be displayed directly to the user.
    """

    pass


def parse_prompt_lines(text: str | None) -> list[str]:
    """Split the bulk prompt box into one prompt per non-blank line.

    Args:
        text: Raw textarea content

    Returns:
        Stripped prompts in their original order

    Raises:
        ValidationError: If no line contains text
    """
    prompts = [line.strip() for line in (text or "").splitlines() if line.strip()]
    if not prompts:
        raise ValidationError("Please enter at least one prompt (one per line)")

    for prompt in prompts:
        validate_prompt_content(prompt)
    return prompts


def validate_prompt_content(prompt: str, max_length: int = 10000) -> None:
    """Validate a single prompt's text.

    Args:
        prompt: Prompt text to validate
        max_length: Maximum allowed prompt length in characters

    Raises:
        ValidationError: If prompt is too long
    """
    if len(prompt) > max_length:
        raise ValidationError(
            f"Prompt is too long ({len(prompt)} characters). Maximum is {max_length} characters."
        )


def validate_reference_image(path: str | None) -> ReferenceImage | None:
    """Load the optional reference image selected in the UI.

    Args:
        path: Filepath provided by the Gradio image component, or None

    Returns:
        ReferenceImage, or None when no image is selected

    Raises:
        ValidationError: If the file is missing or is not a readable image
    """
    if not path:
        return None

    try:
        return ReferenceImage.from_path(path)
    except FileNotFoundError as e:
        raise ValidationError(f"Reference image not found: {path}") from e
    except (OSError, SyntaxError, ValueError) as e:
        logger.warning(f"Rejected reference image {path}: {e}")
        raise ValidationError("Reference image is not a valid image file") from e


def resolve_aspect_ratio(label: str | None) -> AspectRatio:
    """Map an aspect ratio radio label (or enum value) to :class:`AspectRatio`.

    Raises:
        ValidationError: If the label is unknown
    """
    if label in ASPECT_RATIOS:
        return ASPECT_RATIOS[label]
    try:
        return AspectRatio(label)
    except ValueError as e:
        raise ValidationError(f"Unknown aspect ratio: {label}") from e
