from spacevox.utils.rate_limit import FixedWindowRateLimiter


def test_window_counts_and_resets():
    limiter = FixedWindowRateLimiter(max_requests=2, window_seconds=60, message="slow down")

    assert limiter.hit("1.2.3.4", now=0.0) == (True, 1, 60)
    assert limiter.hit("1.2.3.4", now=10.0) == (True, 0, 50)
    allowed, remaining, reset_in = limiter.hit("1.2.3.4", now=20.0)
    assert not allowed
    assert remaining == 0
    assert reset_in == 40

    # other clients have their own window
    assert limiter.hit("5.6.7.8", now=20.0)[0]

    # a new window starts once the old one has elapsed
    assert limiter.hit("1.2.3.4", now=61.0) == (True, 1, 60)


def test_reset_single_key():
    limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60, message="slow down")
    limiter.hit("a", now=0.0)
    limiter.hit("b", now=0.0)
    limiter.reset("a")
    assert limiter.hit("a", now=1.0)[0]
    assert not limiter.hit("b", now=1.0)[0]


def test_expired_windows_are_forgotten():
    limiter = FixedWindowRateLimiter(max_requests=5, window_seconds=10, message="slow down")
    for i in range(1000):
        limiter.hit(f"10.0.{i // 256}.{i % 256}", now=0.0)
    assert limiter.tracked_clients() == 1000

    # a client still inside its window is kept
    limiter.hit("192.0.2.1", now=5.0)
    assert limiter.tracked_clients() == 1001

    limiter.hit("192.0.2.2", now=10000.0)
    assert limiter.tracked_clients() == 1
