#!/usr/bin/env python3
"""
Operator script to inspect and re-drive the upload job queue.

Usage:
    python scripts/inspect_jobs.py [--counts | --failed | --retry JOB_ID... | --retry-all]

Options:
    --counts      Show the number of jobs per state (default)
    --failed      List failed jobs with their last error
    --retry       Re-queue the given failed jobs with fresh attempts
    --retry-all   Re-queue every failed job
    --limit       Maximum jobs listed or retried (default: 50)
"""

import argparse
import asyncio
import sys
from pathlib import Path

from media_uplink.commons.settings import get_settings
from media_uplink.domain.models.job import JobState
from media_uplink.infrastructure.factory import InfrastructureFactory
from media_uplink.infrastructure.queue import DocumentJobQueue


async def show_counts(queue: DocumentJobQueue) -> None:
    print(f"\n=== Queue '{queue.name}' ===")
    for state, count in (await queue.counts()).items():
        print(f"  {state.value:<10} {count}")


async def show_failed(queue: DocumentJobQueue, limit: int) -> None:
    jobs = await queue.list_jobs(JobState.FAILED, limit=limit)
    print(f"\n=== Failed jobs ({len(jobs)}) ===")
    for job in jobs:
        finished = job.finished_at.isoformat() if job.finished_at else "-"
        print(
            f"  {job.id}  record={job.data.get('recordId')}  "
            f"attempts={job.attempts_made}/{job.opts.attempts}  finished={finished}"
        )
        print(f"    {job.failed_reason}")


async def retry(queue: DocumentJobQueue, job_ids: list[str]) -> int:
    failures = 0
    for job_id in job_ids:
        if await queue.retry_job(job_id):
            print(f"  Re-queued {job_id}")
        else:
            print(f"  {job_id} is not a failed job, skipping...")
            failures += 1
    return failures


async def run(args: argparse.Namespace) -> int:
    settings = get_settings(args.config_dir, args.environment)
    factory = InfrastructureFactory(settings)
    queue = factory.get_job_queue()
    try:
        if args.retry_all:
            jobs = await queue.list_jobs(JobState.FAILED, limit=args.limit)
            return await retry(queue, [job.id for job in jobs])
        if args.retry:
            return await retry(queue, args.retry)
        if args.failed:
            await show_failed(queue, args.limit)
            return 0
        await show_counts(queue)
        return 0
    finally:
        await factory.close_all()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--counts", action="store_true", help="Show job counts")
    parser.add_argument("--failed", action="store_true", help="List failed jobs")
    parser.add_argument(
        "--retry", nargs="+", metavar="JOB_ID", help="Re-queue failed jobs"
    )
    parser.add_argument(
        "--retry-all", action="store_true", help="Re-queue every failed job"
    )
    parser.add_argument("--limit", type=int, default=50)
    parser.add_argument("--config-dir", type=Path, default=None)
    parser.add_argument("--environment", default=None)
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    failures = asyncio.run(run(args))
    if failures:
        print(f"Completed with {failures} job(s) not re-queued")
        sys.exit(1)


if __name__ == "__main__":
    main()
