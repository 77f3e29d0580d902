"""Durable job queue and worker pool."""

from media_uplink.infrastructure.queue.base import JobQueueBase
from media_uplink.infrastructure.queue.document_queue import DocumentJobQueue
from media_uplink.infrastructure.queue.worker import (
    CompletedListener,
    FailedListener,
    JobHandler,
    JobOutcome,
    QueueWorker,
)

__all__ = [
    # Queue
    "JobQueueBase",
    "DocumentJobQueue",
    # Worker
    "QueueWorker",
    "JobOutcome",
    "JobHandler",
    "CompletedListener",
    "FailedListener",
]
