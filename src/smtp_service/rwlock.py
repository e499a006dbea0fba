# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Asyncio reader/writer lock.

Many tasks may hold the lock for reading at the same time; a writer holds
it alone. Writers are preferred: once a writer is waiting, new readers
queue behind it, so a stream of senders cannot starve a reconnect.

The lock is not reentrant. A reader that needs to write must release its
read hold, acquire the write hold and re-check whatever it observed, since
another writer may have run in between. ``downgrade()`` turns a write
hold into a read hold without letting any other writer in.

Example:
    Shared and exclusive sections::

        lock = ReadWriteLock()

        async with lock.read():
            ...  # many tasks at once

        async with lock.write():
            ...  # alone
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class ReadWriteLock:
    """Writer-preferring reader/writer lock for asyncio tasks.

    Attributes:
        readers: Number of tasks currently holding the lock for reading.
        writer: True while a task holds the lock for writing.
    """

    def __init__(self):
        self._cond = asyncio.Condition()
        self.readers = 0
        self.writer = False
        self._waiting_writers = 0

    async def acquire_read(self) -> None:
        async with self._cond:
            await self._cond.wait_for(lambda: not self.writer and not self._waiting_writers)
            self.readers += 1

    # Releases change the state before awaiting anything, and the wake-up
    # that follows is shielded, so a cancelled caller never leaks a hold.

    async def release_read(self) -> None:
        if self.readers <= 0:
            raise RuntimeError("release_read() called without a read hold")
        self.readers -= 1
        if not self.readers:
            await asyncio.shield(self._notify_all())

    async def acquire_write(self) -> None:
        async with self._cond:
            self._waiting_writers += 1
            try:
                await self._cond.wait_for(lambda: not self.writer and not self.readers)
            except BaseException:
                # Readers queued behind this writer may proceed now.
                self._waiting_writers -= 1
                self._cond.notify_all()
                raise
            self._waiting_writers -= 1
            self.writer = True

    async def release_write(self) -> None:
        if not self.writer:
            raise RuntimeError("release_write() called without a write hold")
        self.writer = False
        await asyncio.shield(self._notify_all())

    async def downgrade(self) -> None:
        """Atomically turn the caller's write hold into a read hold."""
        if not self.writer:
            raise RuntimeError("downgrade() called without a write hold")
        self.writer = False
        self.readers += 1
        await asyncio.shield(self._notify_all())

    async def _notify_all(self) -> None:
        async with self._cond:
            self._cond.notify_all()

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        await self.acquire_read()
        try:
            yield
        finally:
            await self.release_read()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        await self.acquire_write()
        try:
            yield
        finally:
            await self.release_write()
