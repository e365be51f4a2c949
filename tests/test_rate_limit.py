import threading
from invoice_match.services.rate_limit import InMemoryRateLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_allows_until_limit():
    limiter = InMemoryRateLimiter(max_requests=3, window_seconds=60, clock=FakeClock())
    for _ in range(3):
        assert limiter.check("1.2.3.4")
        limiter.record("1.2.3.4")
    assert limiter.check("1.2.3.4") is False


def test_keys_are_independent():
    limiter = InMemoryRateLimiter(max_requests=1, window_seconds=60, clock=FakeClock())
    limiter.record("a")
    assert limiter.check("a") is False
    assert limiter.check("b") is True


def test_window_resets():
    clock = FakeClock()
    limiter = InMemoryRateLimiter(max_requests=1, window_seconds=60, clock=clock)
    limiter.record("a")
    assert limiter.check("a") is False

    clock.now += 60  # still inside the window
    assert limiter.check("a") is False

    clock.now += 1
    assert limiter.check("a") is True


def test_record_after_expiry_starts_new_window():
    clock = FakeClock()
    limiter = InMemoryRateLimiter(max_requests=2, window_seconds=10, clock=clock)
    limiter.record("a")
    limiter.record("a")
    clock.now += 11
    limiter.record("a")
    assert limiter.check("a") is True


def test_reset():
    limiter = InMemoryRateLimiter(max_requests=1, window_seconds=60, clock=FakeClock())
    limiter.record("a")
    limiter.reset()
    assert limiter.check("a") is True


def test_expired_windows_are_swept():
    clock = FakeClock()
    limiter = InMemoryRateLimiter(max_requests=5, window_seconds=60, clock=clock)
    for i in range(10_000):
        limiter.record(f"10.0.{i // 256}.{i % 256}")
    assert len(limiter._windows) == 10_000

    clock.now += 61
    limiter.record("192.168.1.1")
    assert list(limiter._windows) == ["192.168.1.1"]


def test_sweep_keeps_live_windows():
    clock = FakeClock()
    limiter = InMemoryRateLimiter(max_requests=1, window_seconds=60, clock=clock)
    limiter.record("old")
    clock.now += 30
    limiter.record("recent")
    clock.now += 31
    limiter.record("new")
    assert set(limiter._windows) == {"recent", "new"}
    assert limiter.check("recent") is False


def test_concurrent_check_and_record():
    clock = FakeClock()
    limiter = InMemoryRateLimiter(max_requests=1_000_000, window_seconds=60, clock=clock)
    errors = []

    def worker(offset):
        try:
            for i in range(2_000):
                key = f"k{(i + offset) % 50}"
                limiter.check(key)
                limiter.record(key)
                if i % 100 == 0:
                    clock.now += 61
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
