#!/usr/bin/env python3
"""
Classification Store Module

Collects the artifact roots found by concurrent walker branches and splits
them into the ones to keep and the ones to clean.

The store owns its state exclusively. Every operation is posted to a mailbox
and applied by a single consumer task, so appends from many producers are
serialized without explicit locking:

    async with ClassificationStore(policy) as store:
        await TreeWalker().walk(root, store)
        print(await store.report())
"""

import asyncio
import inspect
import logging
import pathlib
import shutil
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from auxiliary import format_bytes, format_timestamp

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024
SECONDS_PER_DAY = 60 * 60 * 24


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ArtifactRecord:
    """One discovered artifact root"""

    path: pathlib.Path
    last_modified: float
    size_bytes: int

    @property
    def project_name(self) -> Optional[str]:
        """Name of the project directory that owns this artifact root"""
        return self.path.parent.name or None

    def render(self, timezone=None) -> str:
        timestamp = format_timestamp(self.last_modified, timezone)
        size = format_bytes(self.size_bytes)
        if self.project_name:
            return f"  {self.project_name} : {self.path}\n      {timestamp}, {size}"
        return f" {self.path}      {timestamp}    {size}"


@dataclass(frozen=True)
class ClassificationPolicy:
    """Age and size thresholds below which an artifact root is always kept"""

    keep_days: int = 0
    keep_size_bytes: int = 0

    def __post_init__(self):
        if self.keep_days < 0:
            raise ValueError(f"keep_days cannot be negative, got {self.keep_days}")
        if self.keep_size_bytes < 0:
            raise ValueError(f"keep_size_bytes cannot be negative, got {self.keep_size_bytes}")

    @classmethod
    def from_megabytes(cls, keep_days: int, keep_size_mb: int) -> "ClassificationPolicy":
        return cls(keep_days=keep_days, keep_size_bytes=keep_size_mb * BYTES_PER_MB)

    def is_kept(self, record: ArtifactRecord, now: float) -> bool:
        """True if the record must be kept regardless of the other threshold"""
        return record.size_bytes <= self.keep_size_bytes or age_in_days(record.last_modified, now) < self.keep_days


def age_in_days(last_modified: float, now: float) -> int:
    """Whole 24 hour periods elapsed since last_modified, 0 if it lies in the future"""
    elapsed = now - last_modified
    if elapsed < 0:
        return 0
    return int(elapsed // SECONDS_PER_DAY)


class CleanupError(OSError):
    """Deleting an artifact root failed"""

    def __init__(self, path: pathlib.Path, cause: OSError):
        super().__init__(f"Failed to clean {path}: {cause.strerror or cause}")
        self.path = path
        self.cause = cause


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class ClassificationStore:
    """Serialized owner of the ignored/selected partition"""

    def __init__(
        self,
        policy: ClassificationPolicy,
        clock: Callable[[], float] = time.time,
        timezone=None,
    ):
        """Initialize an empty store

        Args:
            policy: Thresholds used to classify every added record
            clock: Returns the current POSIX time, used to age records
            timezone: Zone used to render timestamps in the report
        """
        self.policy = policy
        self.clock = clock
        self.timezone = timezone
        self._ignored: list[ArtifactRecord] = []
        self._selected: list[ArtifactRecord] = []
        self._mailbox: Optional[asyncio.Queue] = None
        self._consumer: Optional[asyncio.Task] = None

    async def __aenter__(self) -> "ClassificationStore":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        await self.stop()

    # -- mailbox -------------------------------------------------------------

    def start(self):
        """Start the consumer task on the running event loop"""
        if self._consumer is not None:
            raise RuntimeError("ClassificationStore is already running")
        self._mailbox = asyncio.Queue()
        self._consumer = asyncio.create_task(self._consume())

    async def stop(self):
        """Drain pending messages and stop the consumer task"""
        if self._consumer is None:
            return
        await self._mailbox.put(None)
        await self._consumer
        self._consumer = None
        self._mailbox = None

    async def _consume(self):
        while True:
            message = await self._mailbox.get()
            if message is None:
                return
            func, future = message
            try:
                result = func()
                if inspect.isawaitable(result):
                    result = await result
            except Exception as e:
                if not future.cancelled():
                    future.set_exception(e)
            else:
                if not future.cancelled():
                    future.set_result(result)

    async def _call(self, func: Callable[[], Any]) -> Any:
        if self._consumer is None:
            raise RuntimeError("ClassificationStore is not running, use 'async with'")
        future = asyncio.get_running_loop().create_future()
        await self._mailbox.put((func, future))
        return await future

    # -- operations ----------------------------------------------------------

    async def add(self, record: ArtifactRecord):
        """Classify record and append it to exactly one of ignored or selected"""
        await self._call(lambda: self._push(record))

    async def report(self) -> str:
        """Render the partition and the freeable total. Does not modify state."""
        return await self._call(self._render)

    async def clean(self, progress_callback: Optional[Callable[[ArtifactRecord], None]] = None) -> int:
        """Delete every selected artifact root, stopping at the first failure

        Args:
            progress_callback: Called with each record after it was deleted

        Returns:
            Bytes reclaimed

        Raises:
            CleanupError: If a directory could not be removed. Directories
                deleted before the failure stay deleted.
        """
        return await self._call(lambda: self._remove_selected(progress_callback))

    # -- state (only touched by the consumer task) ---------------------------

    @property
    def ignored(self) -> tuple[ArtifactRecord, ...]:
        return tuple(self._ignored)

    @property
    def selected(self) -> tuple[ArtifactRecord, ...]:
        return tuple(self._selected)

    @property
    def freeable_bytes(self) -> int:
        return sum(record.size_bytes for record in self._selected)

    def _push(self, record: ArtifactRecord):
        if self.policy.is_kept(record, self.clock()):
            logger.debug("Keeping %s", record.path)
            self._ignored.append(record)
        else:
            logger.debug("Selecting %s", record.path)
            self._selected.append(record)

    def _render(self) -> str:
        lines = []
        if self._ignored:
            lines.append("Ignoring the following project directories:")
            lines.extend(record.render(self.timezone) for record in self._ignored)
        if self._selected:
            lines.append("Selected the following project directories for cleaning:")
            lines.extend(record.render(self.timezone) for record in self._selected)
        total = len(self._ignored) + len(self._selected)
        lines.append(
            f"Selected {len(self._selected)}/{total} projects, "
            f"total freeable size: {format_bytes(self.freeable_bytes)}"
        )
        return "\n".join(lines)

    async def _remove_selected(self, progress_callback: Optional[Callable[[ArtifactRecord], None]]) -> int:
        loop = asyncio.get_running_loop()
        reclaimed = 0
        for record in self._selected:
            try:
                await loop.run_in_executor(None, shutil.rmtree, record.path)
            except OSError as e:
                raise CleanupError(record.path, e) from e
            logger.debug("Removed %s", record.path)
            reclaimed += record.size_bytes
            if progress_callback:
                progress_callback(record)
        return reclaimed
