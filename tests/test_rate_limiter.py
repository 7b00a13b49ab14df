import pytest

from appointly.rate_limiter import check_rate_limit, memory_cache, reset_rate_limits


@pytest.fixture(autouse=True)
def clean_counters():
    reset_rate_limits()
    yield
    reset_rate_limits()


def test_requests_over_the_limit_are_refused():
    results = [check_rate_limit("book_appointment:1.2.3.4", 2, 60)[0] for _ in range(3)]
    assert results == [True, True, False]


def test_limits_are_per_key():
    check_rate_limit("book_appointment:1.1.1.1", 1, 60)
    allowed, count, ttl = check_rate_limit("book_appointment:2.2.2.2", 1, 60)
    assert allowed is True
    assert count == 1
    assert 0 < ttl <= 60


def test_expired_window_starts_over():
    check_rate_limit("book_appointment:3.3.3.3", 1, 60)
    memory_cache["book_appointment:3.3.3.3"]["reset_time"] = 0

    allowed, count, _ = check_rate_limit("book_appointment:3.3.3.3", 1, 60)
    assert allowed is True
    assert count == 1
