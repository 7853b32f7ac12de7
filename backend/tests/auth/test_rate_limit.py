from clinic_api.services.rate_limit import SimpleRateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_window_slides():
    clock = FakeClock()
    limiter = SimpleRateLimiter(max_events=2, window_seconds=60, clock=clock)

    assert limiter.allow("a")
    clock.now += 30
    assert limiter.allow("a")
    assert not limiter.allow("a")

    clock.now += 31
    assert limiter.allow("a")
    assert not limiter.allow("a")


def test_keys_are_independent_and_resettable():
    limiter = SimpleRateLimiter(max_events=1, window_seconds=60, clock=FakeClock())

    assert limiter.allow("a")
    assert limiter.allow("b")
    assert not limiter.allow("a")

    limiter.reset("a")
    assert limiter.allow("a")

    limiter.clear()
    assert limiter.allow("a")
    assert limiter.allow("b")


def test_idle_keys_are_dropped():
    clock = FakeClock()
    limiter = SimpleRateLimiter(max_events=1, window_seconds=60, clock=clock)

    for key in ("10.0.0.1", "10.0.0.2", "10.0.0.3"):
        assert limiter.allow(key)
    assert len(limiter._events) == 3

    clock.now += 61
    assert limiter.allow("10.0.0.4")
    assert set(limiter._events) == {"10.0.0.4"}
    assert limiter.allow("10.0.0.1")
