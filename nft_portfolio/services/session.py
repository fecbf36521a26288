"""
Keep one aggregation run in flight per consumer.

Starting a new run cancels the previous one, and a cancelled or superseded
run never publishes its result.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..types import Portfolio

logger = logging.getLogger(__name__)

RunFactory = Callable[[str, str], Awaitable[Portfolio]]


class PortfolioSession:
    def __init__(self, run: RunFactory):
        self._run = run
        self._task: Optional[asyncio.Task] = None
        self._generation = 0
        self.current: Optional[Portfolio] = None
        self.error: Optional[BaseException] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, contract: str, owner: str) -> asyncio.Task:
        """Cancel any in-flight run and start a new one for these inputs."""
        self.cancel()
        self._generation += 1
        generation = self._generation
        self.current = None
        self.error = None
        self._task = asyncio.create_task(self._execute(generation, contract, owner))
        return self._task

    async def _execute(self, generation: int, contract: str, owner: str) -> Portfolio:
        try:
            portfolio = await self._run(contract, owner)
        except asyncio.CancelledError:
            logger.info("Portfolio run for %s cancelled", owner)
            raise
        except Exception as exc:
            if generation == self._generation:
                self.error = exc
            raise
        if generation == self._generation:
            self.current = portfolio
        return portfolio

    def cancel(self) -> None:
        if self.running:
            self._task.cancel()
        self._task = None

    async def wait(self) -> Portfolio:
        """Wait for the latest run; raises its fatal error if it had one."""
        if self._task is None:
            if self.current is not None:
                return self.current
            raise RuntimeError("No portfolio run has been started")
        return await self._task

    async def close(self) -> None:
        task = self._task
        self.cancel()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.debug("Discarded error from closed run", exc_info=True)
