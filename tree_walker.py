#!/usr/bin/env python3
"""
Tree Walker Module

Recursively walks a directory tree, fanning out one concurrent task per
subdirectory, and reports every Rust build directory it finds to a
ClassificationStore.

A directory is an artifact root when it is named "target" and its parent
holds a Cargo.toml. Recursion stops at artifact roots and at ".git"
directories.
"""

import logging
import os
import pathlib
from typing import Callable, Optional

from async_fs import FsLimiter, gather_or_cancel
from classification_store import ArtifactRecord, ClassificationStore
from size_accumulator import SizeAccumulator

logger = logging.getLogger(__name__)

VCS_MARKER = ".git"
ARTIFACT_MARKER = "target"
MANIFEST_FILE = "Cargo.toml"

PROGRESS_INTERVAL = 200


class TreeWalker:
    """Concurrent discovery of artifact roots"""

    def __init__(
        self,
        limiter: Optional[FsLimiter] = None,
        progress_callback: Optional[Callable[[int], None]] = None,
    ):
        """Initialize tree walker

        Args:
            limiter: Bounds the number of filesystem calls in flight, shared
                with the size measurement
            progress_callback: Called with the number of directories visited
                so far, every PROGRESS_INTERVAL directories
        """
        self.limiter = limiter or FsLimiter()
        self.sizes = SizeAccumulator(self.limiter)
        self.progress_callback = progress_callback
        self.dirs_scanned = 0
        self.records_emitted = 0

    async def walk(self, root: str, store: ClassificationStore):
        """Walk root and add one record per artifact root to store

        Raises:
            OSError: Any filesystem failure other than an unreadable directory
        """
        # "." and ".." have no name of their own, so the directory the user
        # runs from is always walked into, never classified
        name = os.path.basename(os.path.normpath(root))
        check_markers = name not in ("", os.curdir, os.pardir)

        root = os.path.abspath(root)
        logger.debug("Walking %s", root)
        await self._visit(root, store, check_markers)
        logger.debug("Visited %s directories, found %s artifact roots", self.dirs_scanned, self.records_emitted)

    async def _visit(self, path: str, store: ClassificationStore, check_markers: bool = True):
        self._count_directory()

        if check_markers:
            name = os.path.basename(path)
            if name == VCS_MARKER:
                return

            if name == ARTIFACT_MARKER and await self._has_manifest(path):
                await self._emit(path, store)
                return

        try:
            subdirs = await self.limiter.subdirectories(path)
        except OSError as e:
            logger.debug("Cannot list %s, treating it as empty: %s", path, e)
            return

        await gather_or_cancel(self._visit(subdir, store) for subdir in subdirs)

    async def _has_manifest(self, path: str) -> bool:
        parent = os.path.dirname(path)
        return await self.limiter.exists(os.path.join(parent, MANIFEST_FILE))

    async def _emit(self, path: str, store: ClassificationStore):
        stat = await self.limiter.stat(path)
        size = await self.sizes.size_of(path)
        record = ArtifactRecord(path=pathlib.Path(path), last_modified=stat.st_mtime, size_bytes=size)
        logger.debug("Found artifact root %s (%s bytes)", path, size)
        await store.add(record)
        self.records_emitted += 1

    def _count_directory(self):
        self.dirs_scanned += 1
        if self.progress_callback and self.dirs_scanned % PROGRESS_INTERVAL == 0:
            self.progress_callback(self.dirs_scanned)
