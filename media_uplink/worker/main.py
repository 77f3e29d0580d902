"""Worker process: pulls push-to-s3 jobs and uploads staged media.

Usage:
    python -m media_uplink.worker [--config-dir DIR] [--environment ENV]
                                  [--concurrency N]
"""

import argparse
import asyncio
import logging
import signal
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from media_uplink.commons.settings import Settings, get_settings
from media_uplink.commons.telemetry import configure_logging, get_logger
from media_uplink.domain.models.job import QueuedJob
from media_uplink.infrastructure.factory import InfrastructureFactory

logger = get_logger(__name__)


def _setup_logging(settings: Settings) -> None:
    """Configure package logging from settings."""
    log_level = settings.telemetry.log_level or settings.app.log_level
    configure_logging(
        level=log_level,
        format_type=settings.telemetry.log_format,
        logger_name="media_uplink",
    )
    logging.getLogger().setLevel(getattr(logging, log_level.upper()))


def _log_completed(job: QueuedJob, result: Any) -> None:
    logger.info(
        "Upload job completed",
        extra={"job_id": job.id, "record_id": job.data.get("recordId")},
    )


def _log_failed(job: QueuedJob, error: BaseException) -> None:
    logger.warning(
        "Upload job attempt failed",
        extra={
            "job_id": job.id,
            "record_id": job.data.get("recordId"),
            "attempts_made": job.attempts_made,
            "max_attempts": job.opts.attempts,
            "error": str(error),
        },
    )


async def _check_health(factory: InfrastructureFactory) -> bool:
    """Log the reachability of the object store and document database."""
    statuses = {
        "blob_storage": await factory.get_blob_storage().health_check(),
        "document_db": await factory.get_document_db().health_check(),
    }
    for service, status in statuses.items():
        extra = {"service": service, "latency_ms": round(status.latency_ms, 2)}
        if status.healthy:
            logger.info("Service reachable", extra=extra)
        else:
            logger.warning(
                "Service unreachable", extra={**extra, "detail": status.message}
            )
    return all(status.healthy for status in statuses.values())


async def run_worker(settings: Settings, concurrency: int | None = None) -> None:
    """Build the pipeline once and process jobs until signalled."""
    factory = InfrastructureFactory(settings)
    try:
        await _check_health(factory)
        bucket = settings.blob_storage.buckets.media
        blob = factory.get_blob_storage()
        if await blob.create_bucket(bucket):
            logger.info("Bucket created", extra={"bucket": bucket})
        await factory.get_job_queue().ensure_indexes()

        worker = factory.create_worker(concurrency)
        worker.on_completed(_log_completed)
        worker.on_failed(_log_failed)

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, worker.stop)

        await worker.run()
    finally:
        await factory.close_all()


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Upload staged media from the job queue to object storage",
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Directory holding appsettings*.json (default: ./config)",
    )
    parser.add_argument(
        "--environment",
        default=None,
        help="Settings environment overlay (dev, staging, prod)",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Jobs processed in parallel (default: queue.concurrency)",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)
    settings = get_settings(args.config_dir, args.environment)
    _setup_logging(settings)
    asyncio.run(run_worker(settings, args.concurrency))
