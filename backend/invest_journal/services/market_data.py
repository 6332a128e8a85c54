"""
Reference index data for the benchmark overlay.

Fetches daily closes of the benchmark symbol (SPY by default) from Alpha
Vantage or Yahoo Finance. The overlay is optional: any failure (missing API
key, rate limit, network error, empty response) is logged and reported as
None so the chart renders without it. No synthetic data is ever substituted.
"""
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional
import asyncio
import logging
import threading
import time

import requests
import yfinance as yf

from invest_journal.config import settings
from invest_journal.services.cache import CacheService, get_cache

logger = logging.getLogger(__name__)

# Alpha Vantage "compact" covers roughly the last 100 trading days
COMPACT_HISTORY_DAYS = 140


class MarketDataUnavailable(Exception):
    """The reference series could not be obtained from the source."""


class AlphaVantageRateLimiter:
    """Rate limiter for Alpha Vantage API calls.

    Handles both per-minute and per-day limits of the free tier.
    """

    def __init__(self):
        self.minute_calls = 0
        self.day_calls = 0
        self.last_minute_reset = time.time()
        self.current_day = date.today()
        self._lock = threading.Lock()

    def can_make_request(self) -> bool:
        """Check if we can make an API call without exceeding rate limits."""
        current_time = time.time()

        with self._lock:
            if current_time - self.last_minute_reset >= 60:
                self.minute_calls = 0
                self.last_minute_reset = current_time

            if date.today() != self.current_day:
                self.day_calls = 0
                self.current_day = date.today()

            if self.minute_calls >= settings.alpha_vantage_requests_per_minute:
                logger.debug(f"Minute rate limit reached: {self.minute_calls}/{settings.alpha_vantage_requests_per_minute}")
                return False

            if self.day_calls >= settings.alpha_vantage_requests_per_day:
                logger.debug(f"Daily rate limit reached: {self.day_calls}/{settings.alpha_vantage_requests_per_day}")
                return False

            return True

    def record_request(self) -> None:
        """Record that an API call was made."""
        with self._lock:
            self.minute_calls += 1
            self.day_calls += 1
            logger.debug(f"Recorded API call: minute={self.minute_calls}, day={self.day_calls}")


class AlphaVantageClient:
    """Alpha Vantage API client for daily closes."""

    def __init__(self, api_key: Optional[str] = None):
        self.base_url = str(settings.alpha_vantage_base_url)
        self.api_key = settings.alpha_vantage_api_key if api_key is None else api_key
        self.timeout = settings.alpha_vantage_timeout
        self.rate_limiter = AlphaVantageRateLimiter()

    def _make_api_request(self, function: str, symbol: str, **kwargs) -> Dict:
        """Make an API request to Alpha Vantage with proper error handling."""
        if not self.api_key:
            raise MarketDataUnavailable("Alpha Vantage API key not configured")

        # Requests run inside a user request, so a reached limit fails fast
        if not self.rate_limiter.can_make_request():
            raise MarketDataUnavailable("Alpha Vantage rate limit reached")

        params = {
            'function': function,
            'symbol': symbol,
            'apikey': self.api_key,
            **kwargs
        }

        for attempt in range(settings.alpha_vantage_max_retries):
            try:
                logger.debug(f"Making Alpha Vantage request: function={function}, symbol={symbol}")

                response = requests.get(self.base_url, params=params, timeout=self.timeout)
                response.raise_for_status()
                data = response.json()
            except (requests.exceptions.RequestException, ValueError) as e:
                logger.warning(f"Alpha Vantage request attempt {attempt + 1} failed: {str(e)}")
                if attempt < settings.alpha_vantage_max_retries - 1:
                    time.sleep(settings.alpha_vantage_retry_delay * (attempt + 1))
                    continue
                raise MarketDataUnavailable(f"Alpha Vantage request failed: {e}") from e

            self.rate_limiter.record_request()

            if 'Error Message' in data:
                raise MarketDataUnavailable(f"Alpha Vantage API error: {data['Error Message']}")

            # Both keys are used for rate limit and quota notices
            for key in ('Note', 'Information'):
                if key in data:
                    raise MarketDataUnavailable(f"Alpha Vantage API limit: {data[key]}")

            return data

        raise MarketDataUnavailable("Max retries exceeded for Alpha Vantage API request")

    def fetch_daily_closes(self, symbol: str, outputsize: str = "compact") -> Dict[str, Decimal]:
        """
        Daily closing prices keyed by ISO date.

        Raises:
            MarketDataUnavailable: On any API failure or an empty series
        """
        data = self._make_api_request("TIME_SERIES_DAILY", symbol, outputsize=outputsize)
        time_series = data.get("Time Series (Daily)")
        if not time_series:
            raise MarketDataUnavailable(f"No daily series returned for {symbol}")

        closes = {}
        for day, values in time_series.items():
            try:
                closes[day] = Decimal(str(values["4. close"]))
            except (KeyError, TypeError, InvalidOperation) as e:
                logger.warning(f"Error parsing daily data point for {symbol} on {day}: {e}")

        if not closes:
            raise MarketDataUnavailable(f"No parsable closes for {symbol}")
        return closes


class YahooFinanceClient:
    """Daily closes from Yahoo Finance."""

    def fetch_daily_closes(self, symbol: str, start: Optional[date] = None) -> Dict[str, Decimal]:
        ticker = yf.Ticker(symbol)
        if start is None:
            hist = ticker.history(period="max", interval="1d")
        else:
            hist = ticker.history(start=start.isoformat(), interval="1d")

        if hist.empty:
            raise MarketDataUnavailable(f"No Yahoo Finance history for {symbol}")

        return {
            timestamp.strftime("%Y-%m-%d"): Decimal(str(close))
            for timestamp, close in hist["Close"].dropna().items()
        }


class BenchmarkService:
    """Cached access to the reference series for the comparison overlay."""

    FETCH_TIMEOUT = 60.0

    def __init__(
        self,
        cache: Optional[CacheService] = None,
        alpha_vantage: Optional[AlphaVantageClient] = None,
        yahoo: Optional[YahooFinanceClient] = None,
        source: Optional[str] = None
    ):
        self._cache = cache
        self.alpha_vantage = alpha_vantage or AlphaVantageClient()
        self.yahoo = yahoo or YahooFinanceClient()
        self.source = source or settings.benchmark_source

    @property
    def cache(self) -> CacheService:
        if self._cache is None:
            self._cache = get_cache()
        return self._cache

    def _outputsize(self, start: Optional[date]) -> str:
        if start is None or (date.today() - start).days > COMPACT_HISTORY_DAYS:
            return "full"
        return settings.alpha_vantage_output_size

    def _fetch(self, symbol: str, start: Optional[date]) -> Dict[str, Decimal]:
        if self.source == "yahoo":
            # A week of slack covers journal dates that fall on a market holiday
            return self.yahoo.fetch_daily_closes(
                symbol, start - timedelta(days=7) if start else None
            )
        return self.alpha_vantage.fetch_daily_closes(symbol, self._outputsize(start))

    async def get_reference_series(
        self,
        symbol: Optional[str] = None,
        start: Optional[date] = None
    ) -> Optional[Dict[str, Decimal]]:
        """
        Daily closes of the reference symbol, or None when unavailable.

        Args:
            symbol: Ticker to fetch (defaults to settings.benchmark_symbol)
            start: Earliest date the caller needs covered
        """
        symbol = symbol or settings.benchmark_symbol
        cache_key = f"benchmark:{self.source}:{symbol}:{self._outputsize(start)}"
        if self.source == "yahoo":
            cache_key = f"benchmark:yahoo:{symbol}:{start.isoformat() if start else 'max'}"

        cached = self.cache.get(cache_key)
        if cached:
            logger.debug(f"Cache hit for reference series: {symbol}")
            return {day: Decimal(close) for day, close in cached.items()}

        loop = asyncio.get_running_loop()
        try:
            closes = await asyncio.wait_for(
                loop.run_in_executor(None, self._fetch, symbol, start),
                timeout=self.FETCH_TIMEOUT
            )
        except MarketDataUnavailable as e:
            logger.warning(f"Reference series for {symbol} unavailable: {e}")
            return None
        except asyncio.TimeoutError:
            logger.warning(f"Timed out fetching reference series for {symbol}")
            return None
        except Exception as e:
            logger.error(f"Unexpected error fetching reference series for {symbol}: {e}")
            return None

        if not closes:
            return None

        self.cache.set(
            cache_key,
            {day: str(close) for day, close in closes.items()},
            settings.benchmark_cache_ttl
        )
        logger.info(
            f"Fetched {len(closes)} {symbol} closes from {self.source} "
            f"at {datetime.utcnow().isoformat()}"
        )
        return closes


# Global instance
_benchmark_service: Optional[BenchmarkService] = None


def get_benchmark_service() -> BenchmarkService:
    """Get or create the global benchmark service instance."""
    global _benchmark_service
    if _benchmark_service is None:
        _benchmark_service = BenchmarkService()
    return _benchmark_service


async def get_reference_series(
    symbol: Optional[str] = None,
    start: Optional[date] = None
) -> Optional[Dict[str, Decimal]]:
    """Reference series from the global benchmark service."""
    return await get_benchmark_service().get_reference_series(symbol, start)
