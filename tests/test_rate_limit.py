"""
Task Management API: Rate Limiter Unit Tests
============================================

What:  Tests for FixedWindowRateLimiter in isolation.
How:   A fake clock drives window rollover and sweeping deterministically.
"""

import asyncio

import pytest

from taskmanager.middleware.rate_limit import FixedWindowRateLimiter, is_exempt


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_limiter(clock, limit=5, window=60.0, retention=300.0, interval=300.0):
    return FixedWindowRateLimiter(
        limit=limit,
        window_seconds=window,
        retention_seconds=retention,
        cleanup_interval=interval,
        clock=clock,
    )


class TestFixedWindow:

    def setup_method(self):
        self.clock = FakeClock()
        self.limiter = make_limiter(self.clock)

    def test_allows_up_to_limit_then_rejects(self):
        decisions = [self.limiter.hit("ip:1.2.3.4") for _ in range(6)]

        assert [d.allowed for d in decisions] == [True] * 5 + [False]
        assert [d.remaining for d in decisions] == [4, 3, 2, 1, 0, 0]
        assert decisions[-1].retry_after == 60

    def test_retry_after_counts_down_within_window(self):
        for _ in range(5):
            self.limiter.hit("ip:a")
        self.clock.advance(45.5)

        decision = self.limiter.hit("ip:a")

        assert not decision.allowed
        assert decision.retry_after == 15

    def test_window_rollover_resets_counter_to_one(self):
        for _ in range(6):
            self.limiter.hit("ip:a")
        self.clock.advance(60.5)

        decision = self.limiter.hit("ip:a")

        assert decision.allowed
        assert self.limiter.counter_for("ip:a").request_count == 1
        assert self.limiter.counter_for("ip:a").window_start == self.clock.now

    def test_hit_at_exact_window_end_still_counts_against_old_window(self):
        limiter = make_limiter(self.clock, limit=2, window=60)
        started = self.clock.now
        limiter.hit("ip:a")
        limiter.hit("ip:a")
        self.clock.advance(60)

        decision = limiter.hit("ip:a")

        assert not decision.allowed
        assert decision.retry_after == 1
        assert limiter.counter_for("ip:a").request_count == 3
        assert limiter.counter_for("ip:a").window_start == started

    def test_window_is_fixed_not_sliding(self):
        self.limiter.hit("ip:a")
        self.clock.advance(59)
        for _ in range(4):
            self.limiter.hit("ip:a")
        self.clock.advance(2)

        # the first window started 61s ago, so the burst above does not carry over
        assert self.limiter.hit("ip:a").remaining == 4

    def test_clients_are_counted_separately(self):
        for _ in range(5):
            self.limiter.hit("ip:a")

        assert not self.limiter.hit("ip:a").allowed
        assert self.limiter.hit("ip:b").allowed
        assert self.limiter.hit("user:alice").allowed

    def test_headers_describe_window(self):
        decision = self.limiter.hit("ip:a")
        assert decision.headers() == {
            "X-RateLimit-Limit": "5",
            "X-RateLimit-Remaining": "4",
            "X-RateLimit-Reset": str(int(self.clock.now + 60)),
        }


class TestSweep:

    def test_sweep_evicts_counters_older_than_retention(self):
        clock = FakeClock()
        limiter = make_limiter(clock, retention=300)
        limiter.hit("ip:old")
        clock.advance(200)
        limiter.hit("ip:new")
        clock.advance(150)

        assert limiter.sweep() == 1
        assert limiter.counter_for("ip:old") is None
        assert limiter.counter_for("ip:new") is not None

    def test_evicted_client_starts_fresh(self):
        clock = FakeClock()
        limiter = make_limiter(clock, window=600, retention=60)
        for _ in range(6):
            limiter.hit("ip:a")
        clock.advance(61)
        limiter.sweep()

        assert limiter.hit("ip:a").allowed

    @pytest.mark.asyncio
    async def test_background_sweep_runs_until_stopped(self):
        clock = FakeClock()
        limiter = make_limiter(clock, retention=10, interval=0.01)
        limiter.hit("ip:a")
        clock.advance(11)

        limiter.start()
        await asyncio.sleep(0.05)
        await limiter.stop()

        assert len(limiter) == 0
        assert limiter._sweeper is None

    @pytest.mark.asyncio
    async def test_stop_without_start_is_harmless(self):
        limiter = make_limiter(FakeClock())
        await limiter.stop()


class TestExemptPaths:

    @pytest.mark.parametrize("path", ["/health", "/docs", "/docs/oauth2-redirect", "/openapi.json", "/redoc", "/auth/test-users"])
    def test_exempt(self, path):
        assert is_exempt(path)

    @pytest.mark.parametrize("path", [
        "/tasks", "/auth/login", "/", "/healthz", "/docs-anything", "/auth/test-users-x", "/redocs",
    ])
    def test_not_exempt(self, path):
        assert not is_exempt(path)
