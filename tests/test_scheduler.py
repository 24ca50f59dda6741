"""
Unit tests for the debounced, last-request-wins analysis scheduler.
"""

import os
import sys
import time
import asyncio
import threading
import pytest

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from analysis.scheduler import AnalysisScheduler


class RecordingAnalyzer:
    """Fake analysis pass that records the frames it ran on."""

    def __init__(self, delays=None):
        self.delays = delays or {}
        self.calls = []
        self.lock = threading.Lock()

    def __call__(self, frame):
        with self.lock:
            self.calls.append(frame)

        time.sleep(self.delays.get(frame, 0.0))

        if frame == 'bad':
            raise RuntimeError("pass failed")

        return f"bundle-{frame}"


class TestAnalysisScheduler:
    """Tests for AnalysisScheduler."""

    @pytest.fixture
    def analyzer(self):
        return RecordingAnalyzer()

    def test_single_request(self, analyzer):
        scheduler = AnalysisScheduler(analyzer, debounce_ms=10)

        result = asyncio.run(scheduler.request('a'))

        assert result == 'bundle-a'
        assert scheduler.latest == 'bundle-a'
        assert analyzer.calls == ['a']

    def test_debounce_supersedes_earlier_request(self, analyzer):
        scheduler = AnalysisScheduler(analyzer, debounce_ms=50)

        async def scenario():
            first = asyncio.create_task(scheduler.request('a'))
            await asyncio.sleep(0.01)
            second = asyncio.create_task(scheduler.request('b'))
            return await first, await second

        first, second = asyncio.run(scenario())

        assert first is None
        assert second == 'bundle-b'
        assert analyzer.calls == ['b']
        assert scheduler.latest == 'bundle-b'

    def test_stale_result_is_discarded(self):
        analyzer = RecordingAnalyzer(delays={'slow': 0.2})
        scheduler = AnalysisScheduler(analyzer, debounce_ms=10)

        async def scenario():
            first = asyncio.create_task(scheduler.request('slow'))

            # Let the slow pass start before the next request arrives
            await asyncio.sleep(0.08)
            second = asyncio.create_task(scheduler.request('fast'))
            return await first, await second

        first, second = asyncio.run(scenario())

        assert first is None
        assert second == 'bundle-fast'
        assert analyzer.calls == ['slow', 'fast']
        assert scheduler.latest == 'bundle-fast'

    def test_failure_keeps_latest_and_raises(self, analyzer):
        scheduler = AnalysisScheduler(analyzer, debounce_ms=0)

        asyncio.run(scheduler.request('a'))

        with pytest.raises(RuntimeError):
            asyncio.run(scheduler.request('bad'))

        assert scheduler.latest == 'bundle-a'

    def test_latest_starts_empty(self, analyzer):
        assert AnalysisScheduler(analyzer).latest is None


if __name__ == '__main__':
    pytest.main([__file__])
