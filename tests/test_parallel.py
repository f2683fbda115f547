"""Tests for the parallel layer processor."""

import threading
import time

import pytest

from layerframe.errors import RenderCancelled
from layerframe.parallel import map_parallel


class TestMapParallel:
    def test_results_follow_input_order_when_first_is_slowest(self):
        finished = []
        lock = threading.Lock()

        def _work(i):
            if i == 0:
                time.sleep(0.3)
            with lock:
                finished.append(i)
            return i * 10

        results = map_parallel(range(5), _work, max_workers=5)
        assert results == [0, 10, 20, 30, 40]
        assert finished[-1] == 0  # completed last, still first in the output

    def test_empty_input(self):
        assert map_parallel([], lambda x: x) == []

    def test_single_item_runs_inline(self):
        caller = threading.get_ident()
        assert map_parallel([1], lambda x: threading.get_ident()) == [caller]

    def test_one_worker_runs_inline_in_order(self):
        seen = []
        results = map_parallel([3, 1, 2], lambda x: seen.append(x) or x, max_workers=1)
        assert results == [3, 1, 2]
        assert seen == [3, 1, 2]

    def test_failure_fails_the_batch(self):
        def _work(i):
            if i == 2:
                raise ValueError("layer 2 is broken")
            return i

        with pytest.raises(ValueError, match="layer 2 is broken"):
            map_parallel(range(4), _work, max_workers=4)

    def test_failure_cancels_pending_work(self):
        started = []
        lock = threading.Lock()

        def _work(i):
            with lock:
                started.append(i)
            if i == 0:
                raise ValueError("boom")
            time.sleep(0.05)
            return i

        with pytest.raises(ValueError, match="boom"):
            map_parallel(range(50), _work, max_workers=2)
        assert len(started) < 50

    def test_cancelled_before_start(self):
        event = threading.Event()
        event.set()
        with pytest.raises(RenderCancelled):
            map_parallel([1, 2, 3], lambda x: x, cancel_event=event)

    def test_cancelled_mid_batch(self):
        event = threading.Event()

        def _work(i):
            if i == 0:
                event.set()
            time.sleep(0.01)
            return i

        with pytest.raises(RenderCancelled):
            map_parallel(range(20), _work, max_workers=1, cancel_event=event)

    def test_cancelled_mid_batch_on_pool(self):
        event = threading.Event()

        def _work(i):
            if i == 0:
                event.set()
            time.sleep(0.01)
            return i

        with pytest.raises(RenderCancelled):
            map_parallel(range(20), _work, max_workers=2, cancel_event=event)

    def test_default_pool_is_bounded(self):
        threads = set()
        lock = threading.Lock()

        def _work(i):
            with lock:
                threads.add(threading.get_ident())
            time.sleep(0.01)
            return i

        results = map_parallel(range(200), _work)
        assert results == list(range(200))
        assert len(threads) <= 32

    def test_pool_never_larger_than_batch(self):
        threads = set()
        lock = threading.Lock()

        def _work(i):
            with lock:
                threads.add(threading.get_ident())
            time.sleep(0.01)
            return i

        assert map_parallel(range(3), _work, max_workers=16) == [0, 1, 2]
        assert len(threads) <= 3
