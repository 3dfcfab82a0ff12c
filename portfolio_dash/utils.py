import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Hashable, Mapping, TypeVar

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")

def now_utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()

async def gather_settled(jobs: Mapping[K, Awaitable[T]], limit: int | None = None) -> tuple[dict[K, T], dict[K, BaseException]]:
    """
    Run every job to completion and split the outcomes by key.
    One failing job never cancels or hides the others.
    """
    semaphore = asyncio.Semaphore(limit) if limit and limit > 0 else None

    async def _run(job):
        if semaphore is None:
            return await job
        async with semaphore:
            return await job

    keys = list(jobs)
    results = await asyncio.gather(*(_run(jobs[k]) for k in keys), return_exceptions=True)
    ok: dict[K, T] = {}
    failed: dict[K, BaseException] = {}
    for key, result in zip(keys, results):
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            failed[key] = result
        else:
            ok[key] = result
    return ok, failed
