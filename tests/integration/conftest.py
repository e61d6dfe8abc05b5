"""Fixtures for cross-component placement tests.

These tests drive OrderPlacement from many threads at once, and through the
real catalogue and ordering repositories. Worker threads do not inherit the
active domain context, so every worker pushes the ordering context itself.
"""

import threading

import pytest


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield


@pytest.fixture
def run_concurrently(ordering_bed):
    """Run ``target(index)`` on ``count`` threads released together; return results by index."""

    def run(count, target):
        barrier = threading.Barrier(count)
        results = [None] * count

        def worker(index):
            with ordering_bed.domain_context():
                barrier.wait()
                try:
                    results[index] = target(index)
                except Exception as exc:
                    results[index] = exc

        threads = [threading.Thread(target=worker, args=(i,), name=f"placement-{i}") for i in range(count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)
        return results

    return run
