#!/usr/bin/env python3
"""
Return stuck history jobs to the pool.
Usage: python scripts/reset_expired_history_jobs.py [JOB_ID ...]
Without ids, the currently expired jobs are looked up and reset.
"""

import asyncio
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dmn_audit.jobs.context import command_context
from dmn_audit.jobs.recovery import ExpiredHistoryJobRecoverer, find_expired_history_job_ids


async def reset(job_ids: list[str]) -> list[str]:
    async with command_context() as ctx:
        if not job_ids:
            job_ids = await find_expired_history_job_ids(ctx, datetime.now(timezone.utc))
        await ExpiredHistoryJobRecoverer(job_ids).execute(ctx)
    return job_ids


def main():
    job_ids = asyncio.run(reset(sys.argv[1:]))
    print(f"Reset {len(job_ids)} history jobs")
    for job_id in job_ids:
        print(f"  {job_id}")


if __name__ == "__main__":
    main()
