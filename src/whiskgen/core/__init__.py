"""Core functionality for batch image generation.

This module provides the core components of WhiskGen:

- **JobQueue**: Owns the job collection and drives generation sequentially
- **WhiskClient**: Stateless HTTP adapter for the remote image service
- **CredentialStore**: Single-record JSON persistence of user credentials
- **WhiskGenConfig**: Configuration management using Pydantic Settings
- **config**: Global configuration instance (loads from environment variables)

Architecture Overview
---------------------
1. **Configuration Layer** (config.py):
   - Environment-based configuration using Pydantic Settings
   - All settings prefixed with WHISKGEN_ in .env files

2. **Model Layer** (jobs.py, credentials.py, exceptions.py):
   - Immutable job records and the events that change them
   - Credentials record and its file-backed store
   - Error taxonomy shared by client and queue

3. **Remote Layer** (whisk_client.py):
   - Request shaping and fixed-path response parsing

4. **Engine Layer** (queue.py):
   - Batch submission, sequential processing, retry and clear

Usage Example
-------------
    from whiskgen.core import JobQueue, WhiskClient, config

    queue = JobQueue(WhiskClient.from_config(config))
"""

from whiskgen.core.config import WhiskGenConfig, config
from whiskgen.core.credentials import CredentialStore, Credentials
from whiskgen.core.jobs import AspectRatio, Job, JobStatus, ReferenceImage
from whiskgen.core.queue import JobQueue
from whiskgen.core.whisk_client import WhiskClient

__all__ = [
    "AspectRatio",
    "CredentialStore",
    "Credentials",
    "Job",
    "JobQueue",
    "JobStatus",
    "ReferenceImage",
    "WhiskClient",
    "WhiskGenConfig",
    "config",
]
