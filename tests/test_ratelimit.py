from __future__ import annotations

import pytest

from pyworldstate.exceptions import RateLimitExceededError
from pyworldstate.ratelimit import RateLimiter, client_identity


class _FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_eleventh_request_in_window_is_rejected() -> None:
    limiter = RateLimiter(limit=10, window=60, clock=_FakeClock())
    admitted = [limiter.admit("203.0.113.7") for _ in range(11)]
    assert admitted == [True] * 10 + [False]
    assert limiter.remaining("203.0.113.7") == 0


def test_first_request_after_window_reset_is_admitted() -> None:
    clock = _FakeClock()
    limiter = RateLimiter(limit=10, window=60, clock=clock)
    for _ in range(10):
        limiter.admit("a")
    assert not limiter.admit("a")

    clock.now = 60.001
    assert limiter.admit("a")
    assert limiter.remaining("a") == 9


def test_rejected_requests_do_not_extend_the_window() -> None:
    clock = _FakeClock()
    limiter = RateLimiter(limit=1, window=60, clock=clock)
    assert limiter.admit("a")
    clock.now = 59
    assert not limiter.admit("a")
    clock.now = 60.5
    assert limiter.admit("a")


def test_identities_are_counted_separately() -> None:
    limiter = RateLimiter(limit=1, window=60, clock=_FakeClock())
    assert limiter.admit("a")
    assert limiter.admit("b")
    assert not limiter.admit("a")


def test_window_boundary_allows_double_burst() -> None:
    clock = _FakeClock()
    limiter = RateLimiter(limit=10, window=60, clock=clock)
    clock.now = 59.9
    first_burst = sum(limiter.admit("a") for _ in range(10))
    clock.now = 120
    second_burst = sum(limiter.admit("a") for _ in range(10))
    assert first_burst + second_burst == 20


def test_check_raises_with_identity_and_limit() -> None:
    limiter = RateLimiter(limit=1, window=60, clock=_FakeClock())
    limiter.check("a")
    with pytest.raises(RateLimitExceededError) as exc_info:
        limiter.check("a")
    assert exc_info.value.identity == "a"
    assert exc_info.value.limit == 1


def test_reset_forgets_all_identities() -> None:
    limiter = RateLimiter(limit=1, window=60, clock=_FakeClock())
    limiter.admit("a")
    limiter.reset()
    assert limiter.remaining("a") == 1


@pytest.mark.parametrize(("limit", "window"), [(0, 60), (10, 0)])
def test_invalid_limiter_settings_rejected(limit: int, window: float) -> None:
    with pytest.raises(ValueError):
        RateLimiter(limit=limit, window=window)


@pytest.mark.parametrize(
    ("headers", "expected"),
    [
        ({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"}, "203.0.113.7"),
        ({"x-forwarded-for": " 198.51.100.2 "}, "198.51.100.2"),
        ({"X-Forwarded-For": ""}, "unknown"),
        ({}, "unknown"),
    ],
)
def test_client_identity_uses_first_forwarded_hop(headers: dict[str, str], expected: str) -> None:
    assert client_identity(headers) == expected


def test_stale_identities_are_swept_once_threshold_reached() -> None:
    clock = _FakeClock()
    limiter = RateLimiter(limit=10, window=60, clock=clock, sweep_threshold=3)
    for identity in ("a", "b", "c"):
        limiter.admit(identity)
    assert len(limiter) == 3

    clock.now = 30
    limiter.admit("d")
    # Every window is still open, so nothing can be dropped yet.
    assert len(limiter) == 4

    clock.now = 61
    limiter.admit("e")
    assert len(limiter) == 2
    assert limiter.remaining("d") == 9
    assert limiter.remaining("a") == 10


def test_known_identity_does_not_trigger_sweep() -> None:
    clock = _FakeClock()
    limiter = RateLimiter(limit=10, window=60, clock=clock, sweep_threshold=2)
    limiter.admit("a")
    limiter.admit("b")
    clock.now = 61
    assert limiter.admit("a")
    assert len(limiter) == 2
