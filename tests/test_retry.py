from unittest.mock import AsyncMock

import pytest

from daily_wisdom.utils.retry import BackoffStrategy, compute_delay_ms, retry_with_backoff


class Flaky:
    def __init__(self, failures: int, result: str = "ok"):
        self.failures = failures
        self.result = result
        self.calls = 0
        self.errors = []

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            error = RuntimeError(f"boom {self.calls}")
            self.errors.append(error)
            raise error
        return self.result


def test_compute_delay_exponential_and_linear():
    assert [compute_delay_ms(a, 1000) for a in (1, 2, 3)] == [1000, 2000, 4000]
    assert [compute_delay_ms(a, 1000, BackoffStrategy.LINEAR) for a in (1, 2, 3)] == [1000, 2000, 3000]


async def test_succeeds_after_two_failures(sleep_calls):
    operation = Flaky(failures=2, result="third")

    result = await retry_with_backoff(operation, max_attempts=3, base_delay_ms=100)

    assert result == "third"
    assert operation.calls == 3
    assert sleep_calls == [0.1, 0.2]


async def test_first_success_does_not_sleep(sleep_calls):
    operation = AsyncMock(return_value=42)

    assert await retry_with_backoff(operation, max_attempts=5, base_delay_ms=1000) == 42
    operation.assert_awaited_once()
    assert sleep_calls == []


async def test_exhaustion_reraises_last_error_unchanged(sleep_calls):
    operation = Flaky(failures=10)

    with pytest.raises(RuntimeError) as excinfo:
        await retry_with_backoff(operation, max_attempts=3, base_delay_ms=50)

    assert excinfo.value is operation.errors[-1]
    assert operation.calls == 3
    # No sleep after the final attempt
    assert sleep_calls == [0.05, 0.1]


async def test_on_retry_receives_attempt_and_error():
    operation = Flaky(failures=2)
    seen = []

    await retry_with_backoff(operation, max_attempts=3, base_delay_ms=10, on_retry=lambda a, e: seen.append((a, e)))

    assert seen == [(1, operation.errors[0]), (2, operation.errors[1])]


async def test_linear_vs_exponential_schedule(sleep_calls):
    await retry_with_backoff(Flaky(failures=3), max_attempts=4, base_delay_ms=1000, strategy=BackoffStrategy.LINEAR)
    assert sleep_calls == [1.0, 2.0, 3.0]

    sleep_calls.clear()
    await retry_with_backoff(Flaky(failures=3), max_attempts=4, base_delay_ms=1000)
    assert sleep_calls == [1.0, 2.0, 4.0]


async def test_single_attempt_never_sleeps(sleep_calls):
    with pytest.raises(RuntimeError):
        await retry_with_backoff(Flaky(failures=1), max_attempts=1, base_delay_ms=1000)
    assert sleep_calls == []


async def test_zero_base_delay_retries_immediately(sleep_calls):
    assert await retry_with_backoff(Flaky(failures=1), max_attempts=2, base_delay_ms=0) == "ok"
    assert sleep_calls == [0.0]


@pytest.mark.parametrize("kwargs", [{"max_attempts": 0}, {"base_delay_ms": -1}])
async def test_invalid_arguments(kwargs):
    operation = AsyncMock()
    with pytest.raises(ValueError):
        await retry_with_backoff(operation, **kwargs)
    operation.assert_not_awaited()


async def test_non_retryable_error_is_raised_immediately(sleep_calls):
    error = KeyError("config")
    operation = AsyncMock(side_effect=error)

    with pytest.raises(KeyError) as excinfo:
        await retry_with_backoff(
            operation, max_attempts=5, base_delay_ms=10, retryable=lambda e: not isinstance(e, KeyError)
        )

    assert excinfo.value is error
    assert operation.await_count == 1
    assert sleep_calls == []
