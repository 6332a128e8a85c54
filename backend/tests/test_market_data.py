"""
Tests for the reference index sources used by the benchmark overlay.

No network access: requests.get and yfinance are mocked throughout.
"""
import pytest
import pandas as pd
import requests
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import MagicMock, patch

from invest_journal.services.market_data import (
    AlphaVantageClient,
    AlphaVantageRateLimiter,
    BenchmarkService,
    MarketDataUnavailable,
    YahooFinanceClient,
)

pytestmark = pytest.mark.unit

DAILY_RESPONSE = {
    "Meta Data": {"2. Symbol": "SPY"},
    "Time Series (Daily)": {
        "2025-01-10": {"1. open": "589.0", "4. close": "580.49"},
        "2025-01-13": {"1. open": "575.8", "4. close": "581.39"},
        "2025-01-14": {"1. open": "584.4", "4. close": "not-a-number"},
    },
}


def json_response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


@pytest.fixture
def no_retry_delay():
    with patch("invest_journal.services.market_data.time.sleep"):
        yield


class TestAlphaVantageClient:
    """TIME_SERIES_DAILY parsing and error handling."""

    def test_daily_closes(self):
        client = AlphaVantageClient(api_key="demo")
        with patch("invest_journal.services.market_data.requests.get",
                   return_value=json_response(DAILY_RESPONSE)) as get:
            closes = client.fetch_daily_closes("SPY", "compact")

        assert closes == {"2025-01-10": Decimal("580.49"), "2025-01-13": Decimal("581.39")}
        params = get.call_args.kwargs["params"]
        assert params["function"] == "TIME_SERIES_DAILY"
        assert params["symbol"] == "SPY"
        assert params["outputsize"] == "compact"

    def test_missing_api_key(self):
        client = AlphaVantageClient(api_key="")
        with patch("invest_journal.services.market_data.requests.get") as get:
            with pytest.raises(MarketDataUnavailable):
                client.fetch_daily_closes("SPY")
        get.assert_not_called()

    @pytest.mark.parametrize("payload", [
        {"Error Message": "Invalid API call."},
        {"Note": "Thank you for using Alpha Vantage! Our standard API call frequency is 5 calls per minute"},
        {"Information": "You have reached the daily rate limit."},
        {"Meta Data": {}},
        {"Time Series (Daily)": {}},
    ])
    def test_error_payloads(self, payload):
        client = AlphaVantageClient(api_key="demo")
        with patch("invest_journal.services.market_data.requests.get",
                   return_value=json_response(payload)):
            with pytest.raises(MarketDataUnavailable):
                client.fetch_daily_closes("SPY")

    def test_network_error_retries_then_fails(self, no_retry_delay):
        client = AlphaVantageClient(api_key="demo")
        with patch("invest_journal.services.market_data.requests.get",
                   side_effect=requests.exceptions.ConnectionError("down")) as get:
            with pytest.raises(MarketDataUnavailable):
                client.fetch_daily_closes("SPY")

        from invest_journal.config import settings
        assert get.call_count == settings.alpha_vantage_max_retries

    def test_rate_limit_fails_fast(self):
        client = AlphaVantageClient(api_key="demo")
        client.rate_limiter.can_make_request = MagicMock(return_value=False)
        with patch("invest_journal.services.market_data.requests.get") as get:
            with pytest.raises(MarketDataUnavailable):
                client.fetch_daily_closes("SPY")
        get.assert_not_called()


class TestAlphaVantageRateLimiter:
    def test_minute_limit(self):
        limiter = AlphaVantageRateLimiter()
        with patch("invest_journal.services.market_data.settings") as settings:
            settings.alpha_vantage_requests_per_minute = 2
            settings.alpha_vantage_requests_per_day = 25
            assert limiter.can_make_request()
            limiter.record_request()
            limiter.record_request()
            assert not limiter.can_make_request()

    def test_day_counter_resets_on_new_day(self):
        limiter = AlphaVantageRateLimiter()
        limiter.day_calls = 10_000
        limiter.current_day = date.today() - timedelta(days=1)
        assert limiter.can_make_request()
        assert limiter.day_calls == 0


class TestYahooFinanceClient:
    def test_daily_closes(self):
        history = pd.DataFrame(
            {"Close": [580.49, float("nan"), 581.39]},
            index=pd.to_datetime(["2025-01-10", "2025-01-11", "2025-01-13"]),
        )
        with patch("invest_journal.services.market_data.yf.Ticker") as ticker:
            ticker.return_value.history.return_value = history
            closes = YahooFinanceClient().fetch_daily_closes("SPY", date(2025, 1, 1))

        ticker.return_value.history.assert_called_once_with(start="2025-01-01", interval="1d")
        assert closes == {"2025-01-10": Decimal("580.49"), "2025-01-13": Decimal("581.39")}

    def test_empty_history(self):
        with patch("invest_journal.services.market_data.yf.Ticker") as ticker:
            ticker.return_value.history.return_value = pd.DataFrame()
            with pytest.raises(MarketDataUnavailable):
                YahooFinanceClient().fetch_daily_closes("SPY")


class TestBenchmarkService:
    """Caching and failure reporting."""

    @pytest.fixture
    def cache(self):
        stub = MagicMock()
        stub.get.return_value = None
        stub.set.return_value = True
        return stub

    @pytest.mark.asyncio
    async def test_returns_closes_and_caches(self, cache):
        alpha_vantage = MagicMock()
        alpha_vantage.fetch_daily_closes.return_value = {"2025-01-10": Decimal("580.49")}
        service = BenchmarkService(cache=cache, alpha_vantage=alpha_vantage, source="alpha_vantage")

        closes = await service.get_reference_series("SPY", date.today() - timedelta(days=30))

        assert closes == {"2025-01-10": Decimal("580.49")}
        alpha_vantage.fetch_daily_closes.assert_called_once_with("SPY", "compact")
        key, value, _ttl = cache.set.call_args.args
        assert key == "benchmark:alpha_vantage:SPY:compact"
        assert value == {"2025-01-10": "580.49"}

    @pytest.mark.asyncio
    async def test_old_start_requests_full_history(self, cache):
        alpha_vantage = MagicMock()
        alpha_vantage.fetch_daily_closes.return_value = {"2020-01-02": Decimal("324.87")}
        service = BenchmarkService(cache=cache, alpha_vantage=alpha_vantage, source="alpha_vantage")

        await service.get_reference_series("SPY", date(2020, 1, 1))

        alpha_vantage.fetch_daily_closes.assert_called_once_with("SPY", "full")

    @pytest.mark.asyncio
    async def test_cache_hit(self, cache):
        cache.get.return_value = {"2025-01-10": "580.49"}
        alpha_vantage = MagicMock()
        service = BenchmarkService(cache=cache, alpha_vantage=alpha_vantage, source="alpha_vantage")

        closes = await service.get_reference_series("SPY")

        assert closes == {"2025-01-10": Decimal("580.49")}
        alpha_vantage.fetch_daily_closes.assert_not_called()

    @pytest.mark.asyncio
    async def test_failure_reports_unavailable(self, cache):
        alpha_vantage = MagicMock()
        alpha_vantage.fetch_daily_closes.side_effect = MarketDataUnavailable("rate limited")
        service = BenchmarkService(cache=cache, alpha_vantage=alpha_vantage, source="alpha_vantage")

        assert await service.get_reference_series("SPY") is None
        cache.set.assert_not_called()

    @pytest.mark.asyncio
    async def test_unexpected_error_reports_unavailable(self, cache):
        yahoo = MagicMock()
        yahoo.fetch_daily_closes.side_effect = RuntimeError("boom")
        service = BenchmarkService(cache=cache, yahoo=yahoo, source="yahoo")

        assert await service.get_reference_series("SPY") is None

    @pytest.mark.asyncio
    async def test_yahoo_source_fetches_with_slack(self, cache):
        yahoo = MagicMock()
        yahoo.fetch_daily_closes.return_value = {"2024-12-27": Decimal("595.0")}
        service = BenchmarkService(cache=cache, yahoo=yahoo, source="yahoo")

        await service.get_reference_series("SPY", date(2025, 1, 1))

        yahoo.fetch_daily_closes.assert_called_once_with("SPY", date(2024, 12, 25))
