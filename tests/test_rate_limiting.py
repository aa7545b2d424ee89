"""
Tests for the sliding window rate limiter.

Run with: pytest tests/test_rate_limiting.py -v
"""

import threading
from unittest.mock import Mock

import pytest

from streamguard.core.security import RateLimiter, describe_window


def run_concurrently(target, workers: int):
    barrier = threading.Barrier(workers)
    results = []
    results_lock = threading.Lock()

    def worker(index):
        barrier.wait()
        outcome = target(index)
        with results_lock:
            results.extend(outcome)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results


class TestSlidingWindow:
    """Admission decisions for a single key."""

    def test_admits_max_requests_at_same_instant(self):
        limiter = RateLimiter(window_ms=900_000, max_requests=100)
        assert all(limiter.allow("client", now=0) for _ in range(100))
        assert limiter.allow("client", now=0) is False

    def test_readmits_after_window_passes(self):
        limiter = RateLimiter(window_ms=900_000, max_requests=100)
        for _ in range(100):
            limiter.allow("client", now=0)

        assert limiter.allow("client", now=899_999) is False
        assert limiter.allow("client", now=900_001) is True

    def test_entries_at_window_edge_expire(self):
        limiter = RateLimiter(window_ms=1000, max_requests=1)
        assert limiter.allow("client", now=0) is True
        assert limiter.allow("client", now=999) is False
        # Entries <= now - window are dropped
        assert limiter.allow("client", now=1000) is True

    def test_rejections_do_not_consume_slots(self):
        limiter = RateLimiter(window_ms=1000, max_requests=2)
        assert limiter.allow("client", now=0)
        assert limiter.allow("client", now=0)
        for _ in range(50):
            assert not limiter.allow("client", now=500)

        assert limiter.allow("client", now=1000)
        assert limiter.allow("client", now=1000)
        assert not limiter.allow("client", now=1000)

    def test_window_slides_instead_of_resetting(self):
        limiter = RateLimiter(window_ms=1000, max_requests=2)
        assert limiter.allow("client", now=0)
        assert limiter.allow("client", now=600)
        assert not limiter.allow("client", now=900)
        # Only the request at 0 has expired
        assert limiter.allow("client", now=1001)
        assert not limiter.allow("client", now=1100)
        assert limiter.allow("client", now=1601)

    def test_keys_are_independent(self):
        limiter = RateLimiter(window_ms=1000, max_requests=1)
        assert limiter.allow("a", now=0)
        assert not limiter.allow("a", now=0)
        assert limiter.allow("b", now=0)

    def test_uses_injected_clock(self, clock):
        limiter = RateLimiter(window_ms=1000, max_requests=1, clock=clock)
        assert limiter.allow("client")
        assert not limiter.allow("client")
        clock.advance(1000)
        assert limiter.allow("client")

    def test_check_reports_remaining_and_retry_hint(self):
        limiter = RateLimiter(window_ms=900_000, max_requests=3)
        first = limiter.check("client", now=0)
        assert first.allowed is True
        assert first.limit == 3
        assert first.remaining == 2

        limiter.check("client", now=0)
        limiter.check("client", now=0)
        rejected = limiter.check("client", now=0)
        assert rejected.allowed is False
        assert rejected.remaining == 0
        assert rejected.retry_after == 900

    def test_separate_instances_do_not_share_state(self):
        first = RateLimiter(window_ms=1000, max_requests=1)
        second = RateLimiter(window_ms=1000, max_requests=1)
        assert first.allow("client", now=0)
        assert second.allow("client", now=0)

    @pytest.mark.parametrize("window_ms,max_requests", [(0, 10), (-1, 10), (1000, 0), (1000, -5)])
    def test_rejects_invalid_configuration(self, window_ms, max_requests):
        with pytest.raises(ValueError):
            RateLimiter(window_ms=window_ms, max_requests=max_requests)


class TestRetryHint:
    """Human-readable retry hints derived from the window."""

    def test_default_window_hint(self):
        limiter = RateLimiter(window_ms=900_000, max_requests=100)
        assert limiter.retry_after == 900
        assert limiter.retry_after_text == "15 minutes"

    @pytest.mark.parametrize(
        "window_ms,expected",
        [
            (1000, "1 second"),
            (90_000, "90 seconds"),
            (60_000, "1 minute"),
            (3_600_000, "1 hour"),
            (7_200_000, "2 hours"),
            (1500, "1500 milliseconds"),
        ],
    )
    def test_describe_window(self, window_ms, expected):
        assert describe_window(window_ms) == expected

    def test_sub_second_window_rounds_retry_up(self):
        limiter = RateLimiter(window_ms=250, max_requests=1)
        assert limiter.retry_after == 1


class TestConcurrency:
    """No over-admission when many threads hit the same key."""

    def test_same_key_never_over_admits(self):
        limiter = RateLimiter(window_ms=60_000, max_requests=50)

        def attempt(_):
            return [limiter.allow("shared", now=1000) for _ in range(25)]

        results = run_concurrently(attempt, workers=16)
        assert len(results) == 16 * 25
        assert sum(results) == 50

    def test_each_key_gets_its_own_budget(self):
        limiter = RateLimiter(window_ms=60_000, max_requests=10)
        keys = ["a", "b", "c", "d"]

        def attempt(index):
            key = keys[index % len(keys)]
            return [(key, limiter.allow(key, now=0)) for _ in range(20)]

        results = run_concurrently(attempt, workers=12)
        for key in keys:
            assert sum(1 for k, allowed in results if k == key and allowed) == 10

    def test_eviction_during_checks_never_over_admits(self):
        limiter = RateLimiter(window_ms=1000, max_requests=20, cleanup_interval=1)

        def attempt(_):
            return [limiter.allow("shared", now=5000) for _ in range(30)]

        results = run_concurrently(attempt, workers=10)
        assert sum(results) == 20

    def test_concurrent_explicit_eviction(self):
        limiter = RateLimiter(window_ms=1000, max_requests=15)
        stop = threading.Event()

        def evictor():
            while not stop.is_set():
                limiter.evict_stale(now=5000)

        thread = threading.Thread(target=evictor)
        thread.start()
        try:
            results = run_concurrently(
                lambda _: [limiter.allow("shared", now=5000) for _ in range(10)],
                workers=8,
            )
        finally:
            stop.set()
            thread.join()

        assert sum(results) == 15


class TestEviction:
    """Stale key retention and the opt-in eviction policy."""

    def test_stale_keys_are_kept_by_default(self):
        limiter = RateLimiter(window_ms=1000, max_requests=5)
        limiter.allow("old", now=0)
        limiter.allow("new", now=10_000)
        assert set(limiter.tracked_keys()) == {"old", "new"}

    def test_evict_stale_drops_only_keys_without_live_entries(self):
        limiter = RateLimiter(window_ms=1000, max_requests=5)
        limiter.allow("old", now=0)
        limiter.allow("new", now=1500)

        assert limiter.evict_stale(now=2000) == 1
        assert limiter.tracked_keys() == ["new"]

    def test_cleanup_interval_evicts_automatically(self):
        limiter = RateLimiter(window_ms=1000, max_requests=5, cleanup_interval=2)
        limiter.allow("old", now=0)
        limiter.allow("new", now=5000)
        assert "old" not in limiter.tracked_keys()

    def test_evicted_key_starts_fresh(self):
        limiter = RateLimiter(window_ms=1000, max_requests=1)
        limiter.allow("client", now=0)
        limiter.evict_stale(now=5000)
        assert limiter.allow("client", now=5000)
        assert not limiter.allow("client", now=5000)

    def test_reset_single_key_and_all(self):
        limiter = RateLimiter(window_ms=1000, max_requests=1)
        limiter.allow("a", now=0)
        limiter.allow("b", now=0)

        limiter.reset("a")
        assert limiter.allow("a", now=0)
        assert not limiter.allow("b", now=0)

        limiter.reset()
        assert limiter.tracked_keys() == []


class TestRequestKey:
    """Client identity derived from the request."""

    def _request(self, host="10.0.0.1", forwarded=None):
        request = Mock()
        request.client = Mock(host=host) if host else None
        request.headers = {"X-Forwarded-For": forwarded} if forwarded else {}
        return request

    def test_uses_client_address(self):
        limiter = RateLimiter(trust_proxy_headers=False)
        assert limiter.get_key_for_request(self._request()) == "ip:10.0.0.1"

    def test_ignores_forwarded_header_by_default(self):
        limiter = RateLimiter(trust_proxy_headers=False)
        request = self._request(forwarded="203.0.113.5, 10.0.0.1")
        assert limiter.get_key_for_request(request) == "ip:10.0.0.1"

    def test_uses_first_forwarded_hop_when_trusted(self):
        limiter = RateLimiter(trust_proxy_headers=True)
        request = self._request(forwarded="203.0.113.5, 10.0.0.1")
        assert limiter.get_key_for_request(request) == "ip:203.0.113.5"

    def test_missing_client(self):
        limiter = RateLimiter(trust_proxy_headers=False)
        assert limiter.get_key_for_request(self._request(host=None)) == "ip:unknown"
