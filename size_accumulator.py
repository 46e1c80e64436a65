#!/usr/bin/env python3
"""
Size Accumulator Module

Computes the total byte size of every regular file below a path, fanning out
one concurrent task per directory entry.
"""

import logging
import os
from typing import Optional

from async_fs import FsLimiter, gather_or_cancel

logger = logging.getLogger(__name__)


class SizeAccumulator:
    """Recursive, concurrent directory size measurement"""

    def __init__(self, limiter: Optional[FsLimiter] = None):
        self.limiter = limiter or FsLimiter()

    async def size_of(self, path: str) -> int:
        """Return the total bytes of all regular files transitively under path

        Args:
            path: A file or directory path

        Returns:
            Size in bytes. Directories that cannot be listed count as 0.

        Raises:
            OSError: If the metadata of a regular file cannot be read
        """
        if await self.limiter.isfile(path):
            stat = await self.limiter.stat(path)
            return stat.st_size
        return await self._directory_size(path)

    async def _directory_size(self, path: str) -> int:
        try:
            entries = await self.limiter.scandir(path)
        except OSError as e:
            logger.debug("Cannot list %s, counting it as empty: %s", path, e)
            return 0

        sizes = await gather_or_cancel(self._entry_size(entry) for entry in entries)
        return sum(sizes)

    async def _entry_size(self, entry: os.DirEntry) -> int:
        size = await self.limiter.file_size(entry)
        if size is not None:
            return size
        return await self._directory_size(entry.path)
