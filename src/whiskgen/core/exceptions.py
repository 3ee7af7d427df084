"""Error hierarchy for WhiskGen.

This module defines the exceptions raised by the core components:
- WhiskGenError: Base for all application errors
- ConfigurationError: Credentials missing, submission refused before any call
- RemoteError: Base for failures talking to the image-generation service
  - RemoteNetworkError: Timeouts and connection failures
  - RemoteRequestError: Non-2xx responses
  - MalformedResponseError: Response lacks the expected JSON field

The job queue never lets these escape a processing run: they are captured
into the failing job's ``error_message``.
"""


class WhiskGenError(Exception):
    """Base exception for all WhiskGen errors."""

    pass


class ConfigurationError(WhiskGenError):
    """Credentials are incomplete (empty bearer token).

    Raised by :meth:`JobQueue.submit` before any job is created. The
    caller is expected to ask the user for credentials instead.
    """

    pass


class RemoteError(WhiskGenError):
    """Base exception for remote generation client errors."""

    pass


class RemoteNetworkError(RemoteError):
    """Network timeout or connection failure."""

    pass


class RemoteRequestError(RemoteError):
    """The service answered with a non-2xx status.

    Attributes:
        status_code: HTTP status returned by the service
    """

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class MalformedResponseError(RemoteError):
    """Response body is not JSON or lacks a required field."""

    pass
