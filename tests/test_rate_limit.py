import pytest

from vms.core.exceptions import RateLimitExceeded
from vms.core.rate_limit import FixedWindowRateLimiter, enforce_rate_limit, rate_limit_key


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_denies_the_call_after_max_attempts():
    limiter = FixedWindowRateLimiter(clock=FakeClock())

    results = [limiter.hit("login:a@b.com", 5, 900) for _ in range(6)]

    assert [r.allowed for r in results] == [True] * 5 + [False]
    assert results[4].remaining == 0


def test_allows_again_once_window_expires():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(clock=clock)
    for _ in range(3):
        limiter.hit("k", 3, 60)
    assert not limiter.hit("k", 3, 60).allowed

    clock.now += 60
    result = limiter.hit("k", 3, 60)

    assert result.allowed
    assert result.remaining == 2


def test_reset_in_counts_down_within_window():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(clock=clock)
    limiter.hit("k", 1, 100)
    clock.now += 40

    assert limiter.hit("k", 1, 100).reset_in == pytest.approx(60)


def test_keys_are_independent():
    limiter = FixedWindowRateLimiter(clock=FakeClock())
    limiter.hit("a", 1, 60)

    assert not limiter.hit("a", 1, 60).allowed
    assert limiter.hit("b", 1, 60).allowed


def test_sweep_drops_expired_windows():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(sweep_interval=30, clock=clock)
    limiter.hit("old", 5, 10)
    assert len(limiter) == 1

    clock.now += 31
    limiter.hit("new", 5, 10)

    assert len(limiter) == 1


def test_key_format():
    assert rate_limit_key("security-pin", "10.0.0.1") == "security-pin:10.0.0.1"


def test_enforce_raises_with_retry_hint():
    for _ in range(2):
        enforce_rate_limit("register", "1.2.3.4", 2, 3600)

    with pytest.raises(RateLimitExceeded) as exc_info:
        enforce_rate_limit("register", "1.2.3.4", 2, 3600)

    assert exc_info.value.status_code == 429
    assert exc_info.value.reset_in > 0
