"""
Subject Lock Registry

Serialises message processing per subject inside one node process. Two
messages about the same subject never interleave their read-modify-write of
the proposal/result/vote rows; messages about different subjects run fully
in parallel.

Usage:
    locks = SubjectLockRegistry()

    async with locks.hold("item-42"):
        # read, decide, write, commit
        pass
"""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)


class _Entry:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        # Tasks holding or waiting for the lock
        self.holders = 0


class SubjectLockRegistry:
    """One asyncio.Lock per subject, created on demand and dropped when idle."""

    def __init__(self, timeout_seconds: Optional[float] = None):
        self.timeout_seconds = timeout_seconds
        self._entries: dict[str, _Entry] = {}

    @asynccontextmanager
    async def hold(self, subject: str) -> AsyncGenerator[None, None]:
        """
        Hold the processing lock of a subject for the duration of the block.

        Raises:
            asyncio.TimeoutError: the lock was not acquired within the timeout
        """
        entry = self._entries.get(subject)
        if entry is None:
            entry = self._entries[subject] = _Entry()
        entry.holders += 1

        try:
            if self.timeout_seconds is None:
                await entry.lock.acquire()
            else:
                await asyncio.wait_for(entry.lock.acquire(), self.timeout_seconds)
        except BaseException:
            self._release_entry(subject, entry)
            raise

        try:
            yield
        finally:
            entry.lock.release()
            self._release_entry(subject, entry)

    def _release_entry(self, subject: str, entry: _Entry) -> None:
        entry.holders -= 1
        if entry.holders == 0 and self._entries.get(subject) is entry:
            del self._entries[subject]

    def is_locked(self, subject: str) -> bool:
        entry = self._entries.get(subject)
        return entry is not None and entry.lock.locked()

    def __len__(self) -> int:
        return len(self._entries)
