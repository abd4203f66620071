"""Unit tests for the work queue."""

from __future__ import annotations

import threading

import pytest

from application_operator.controller.queue import WorkQueue


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def queue(clock: FakeClock) -> WorkQueue:
    return WorkQueue(backoff_base=1.0, backoff_max=8.0, clock=clock)


@pytest.mark.unit
@pytest.mark.kubernetes
class TestDeduplication:
    """Test an item is queued and processed once at a time."""

    def test_duplicate_adds_collapse(self, queue: WorkQueue) -> None:
        queue.add("ns1/demo")
        queue.add("ns1/demo")
        queue.add("ns1/other")

        assert len(queue) == 2
        assert queue.get(timeout=0) == "ns1/demo"
        assert queue.get(timeout=0) == "ns1/other"
        assert queue.get(timeout=0) is None

    def test_add_while_processing_requeues_on_done(self, queue: WorkQueue) -> None:
        """An item added during processing is not handed out until done."""
        queue.add("ns1/demo")
        item = queue.get(timeout=0)

        queue.add("ns1/demo")
        assert len(queue) == 0
        assert queue.get(timeout=0) is None

        queue.done(item)
        assert queue.get(timeout=0) == "ns1/demo"

    def test_done_without_readd(self, queue: WorkQueue) -> None:
        queue.add("ns1/demo")
        queue.done(queue.get(timeout=0))
        assert len(queue) == 0


@pytest.mark.unit
@pytest.mark.kubernetes
class TestDelayedAdds:
    """Test add_after and rate-limited adds."""

    def test_add_after_waits_for_delay(self, queue: WorkQueue, clock: FakeClock) -> None:
        queue.add_after("ns1/demo", 30)

        assert queue.get(timeout=0) is None
        clock.advance(30)
        assert queue.get(timeout=0) == "ns1/demo"

    def test_add_after_non_positive_is_immediate(self, queue: WorkQueue) -> None:
        queue.add_after("ns1/demo", 0)
        assert queue.get(timeout=0) == "ns1/demo"

    def test_rate_limited_backoff_doubles_and_caps(self, queue: WorkQueue) -> None:
        delays = [queue.add_rate_limited("ns1/demo") for _ in range(6)]

        assert delays == [1.0, 2.0, 4.0, 8.0, 8.0, 8.0]
        assert queue.num_requeues("ns1/demo") == 6

    def test_forget_resets_backoff(self, queue: WorkQueue) -> None:
        queue.add_rate_limited("ns1/demo")
        queue.add_rate_limited("ns1/demo")
        queue.forget("ns1/demo")

        assert queue.num_requeues("ns1/demo") == 0
        assert queue.add_rate_limited("ns1/demo") == 1.0

    def test_delayed_items_come_out_in_due_order(
        self, queue: WorkQueue, clock: FakeClock
    ) -> None:
        queue.add_after("late", 10)
        queue.add_after("early", 5)
        clock.advance(10)

        assert queue.get(timeout=0) == "early"
        assert queue.get(timeout=0) == "late"


@pytest.mark.unit
@pytest.mark.kubernetes
class TestShutdown:
    """Test shutdown behaviour."""

    def test_get_returns_none_after_shutdown(self, queue: WorkQueue) -> None:
        queue.add("ns1/demo")
        queue.shut_down()

        assert queue.shutting_down is True
        assert queue.get(timeout=0) is None

    def test_adds_ignored_after_shutdown(self, queue: WorkQueue) -> None:
        queue.shut_down()
        queue.add("ns1/demo")
        queue.add_after("ns1/demo", 1)
        assert len(queue) == 0

    def test_shutdown_wakes_blocked_consumer(self) -> None:
        """A consumer blocked without timeout returns once the queue shuts down."""
        queue = WorkQueue()
        results: list[object] = []
        consumer = threading.Thread(target=lambda: results.append(queue.get()))
        consumer.start()

        queue.shut_down()
        consumer.join(timeout=5)

        assert not consumer.is_alive()
        assert results == [None]
