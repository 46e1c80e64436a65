#!/usr/bin/env python3
"""
Async Filesystem Helpers

Thin wrappers that run blocking os calls in the event loop's default executor.
Every call goes through a shared semaphore so the number of filesystem
operations in flight stays bounded no matter how wide the recursion fans out.
"""

import asyncio
import os
from typing import Callable, Optional, TypeVar

T = TypeVar("T")

DEFAULT_MAX_JOBS = 64


class FsLimiter:
    """Run blocking filesystem calls off the event loop with bounded concurrency"""

    def __init__(self, max_jobs: int = DEFAULT_MAX_JOBS):
        if max_jobs < 1:
            raise ValueError(f"max_jobs must be at least 1, got {max_jobs}")
        self.max_jobs = max_jobs
        self._semaphore = asyncio.Semaphore(max_jobs)

    async def run(self, func: Callable[..., T], *args) -> T:
        """Run func(*args) in the default executor while holding one permit"""
        # The permit covers only the blocking call, never a wait on child tasks
        async with self._semaphore:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, func, *args)

    async def scandir(self, path: str) -> list[os.DirEntry]:
        """List a directory's entries. Raises OSError if it cannot be listed."""

        def _scandir():
            with os.scandir(path) as entries:
                return list(entries)

        return await self.run(_scandir)

    async def subdirectories(self, path: str) -> list[str]:
        """List the immediate subdirectories of path (directory symlinks are not followed)"""

        def _subdirs():
            with os.scandir(path) as entries:
                return [entry.path for entry in entries if entry.is_dir(follow_symlinks=False)]

        return await self.run(_subdirs)

    async def file_size(self, entry: os.DirEntry) -> Optional[int]:
        """Size of entry if it is a regular file (symlinks followed), else None

        Raises:
            OSError: If the file's metadata cannot be read
        """

        def _file_size():
            if entry.is_file():
                return entry.stat().st_size
            return None

        return await self.run(_file_size)

    async def stat(self, path: str) -> os.stat_result:
        return await self.run(os.stat, path)

    async def isfile(self, path: str) -> bool:
        return await self.run(os.path.isfile, path)

    async def exists(self, path: str) -> bool:
        return await self.run(os.path.exists, path)


async def gather_or_cancel(coros) -> list:
    """Run coroutines concurrently and wait for all of them

    If one fails, the others are cancelled before the error is re-raised so no
    orphaned task outlives the failed parent.
    """
    tasks = [asyncio.ensure_future(coro) for coro in coros]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        raise
