"""WhiskGen - Bulk prompt-to-image generation against the Whisk API."""

__version__ = "0.1.0"

from whiskgen.core.config import WhiskGenConfig, config
from whiskgen.core.queue import JobQueue
from whiskgen.core.whisk_client import WhiskClient

__all__ = [
    "JobQueue",
    "WhiskClient",
    "WhiskGenConfig",
    "config",
]
