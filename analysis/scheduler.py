#!/usr/bin/env python3
"""
Analysis Scheduler

Debounced, last-request-wins execution of analysis passes for interactive
hosts (e.g. a viewer that re-analyzes while the user pans or zooms).

"""

import asyncio
from typing import Callable, Optional, Any
import logging

from .types import AnalysisBundle

logger = logging.getLogger(__name__)


class AnalysisScheduler:
    """
    Debounces analysis requests and runs passes off the event loop.

    A request made while an earlier one is still waiting out its debounce
    window supersedes it; the superseded request resolves to ``None``. A
    pass whose request has been superseded by the time it finishes is
    discarded. Passes are never cancelled.
    """

    def __init__(self, analyze: Callable[[Any], AnalysisBundle],
                 debounce_ms: float = 180.0, executor=None):
        """
        Initialize the scheduler.

        Args:
            analyze: Synchronous pass, e.g. ``CompositionAnalyzer.analyze``
            debounce_ms: Quiet period before a pass starts
            executor: ``concurrent.futures`` executor; the loop default when None
        """

        self.analyze = analyze
        self.debounce_ms = debounce_ms
        self.executor = executor

        self._generation = 0
        self._latest: Optional[AnalysisBundle] = None

    @property
    def latest(self) -> Optional[AnalysisBundle]:
        """Bundle of the most recent accepted pass."""
        return self._latest

    async def request(self, frame: Any) -> Optional[AnalysisBundle]:
        """
        Request an analysis of ``frame``.

        Returns:
            The bundle, or None if a newer request superseded this one

        Raises:
            Exception: Whatever the pass raised, for the current request only
        """

        self._generation += 1
        generation = self._generation

        await asyncio.sleep(self.debounce_ms / 1000.0)

        if generation != self._generation:
            logger.debug(f"Request {generation} superseded during debounce")
            return None

        loop = asyncio.get_running_loop()

        try:
            bundle = await loop.run_in_executor(self.executor, self.analyze, frame)

        except Exception as e:
            if generation != self._generation:
                logger.debug(f"Discarding failure of superseded request {generation}: {str(e)}")
                return None

            logger.error(f"Analysis pass {generation} failed: {str(e)}")
            raise

        if generation != self._generation:
            logger.debug(f"Discarding stale result of request {generation}")
            return None

        self._latest = bundle
        return bundle
