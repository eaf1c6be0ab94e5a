import pytest
from unittest.mock import AsyncMock

from retailer_sync.core.exceptions import ShopifyAPIError, ShopifyGraphQLError, ShopifyTransportError
from retailer_sync.core.retry import NO_RETRY, RetryPolicy, with_retry


def test_delay_doubles_per_attempt():
    policy = RetryPolicy(max_retries=3, base_delay=1.0)
    assert [policy.delay_for(n) for n in (1, 2, 3)] == [1.0, 2.0, 4.0]


def test_jitter_stays_within_bound():
    policy = RetryPolicy(base_delay=1.0, jitter=0.5)
    for _ in range(20):
        assert 1.0 <= policy.delay_for(1) <= 1.5


def test_policy_from_settings(settings):
    policy = RetryPolicy.from_settings(settings)
    assert policy.max_retries == settings.INVENTORY_MAX_RETRIES
    assert policy.base_delay == settings.INVENTORY_RETRY_BASE_DELAY


@pytest.mark.asyncio
async def test_returns_first_success_without_sleeping():
    fn = AsyncMock(return_value={"ok": True})
    sleep = AsyncMock()

    result = await with_retry(fn, RetryPolicy(), sleep=sleep)

    assert result == {"ok": True}
    fn.assert_awaited_once()
    sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_transient_error_is_retried_then_succeeds():
    fn = AsyncMock(side_effect=[ShopifyTransportError("timeout"), ShopifyTransportError("503"), "done"])
    sleep = AsyncMock()

    result = await with_retry(fn, RetryPolicy(max_retries=3, base_delay=1.0), sleep=sleep)

    assert result == "done"
    assert fn.await_count == 3
    assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]


@pytest.mark.asyncio
async def test_gives_up_after_max_retries():
    """max_retries=3 means four calls in total"""
    fn = AsyncMock(side_effect=ShopifyTransportError("still down"))
    sleep = AsyncMock()

    with pytest.raises(ShopifyTransportError, match="still down"):
        await with_retry(fn, RetryPolicy(max_retries=3, base_delay=0.0), sleep=sleep)

    assert fn.await_count == 4
    assert sleep.await_count == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [
    ShopifyAPIError("HTTP 401", status_code=401),
    ShopifyGraphQLError([{"message": "Field 'foo' doesn't exist"}]),
    ValueError("bad payload"),
])
async def test_non_transient_errors_are_not_retried(error):
    fn = AsyncMock(side_effect=error)
    sleep = AsyncMock()

    with pytest.raises(type(error)):
        await with_retry(fn, RetryPolicy(max_retries=3), sleep=sleep)

    fn.assert_awaited_once()
    sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_no_retry_policy_calls_once():
    fn = AsyncMock(side_effect=ShopifyTransportError("down"))

    with pytest.raises(ShopifyTransportError):
        await with_retry(fn, NO_RETRY, sleep=AsyncMock())

    fn.assert_awaited_once()
