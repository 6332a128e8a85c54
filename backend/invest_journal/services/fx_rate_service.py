"""
Foreign exchange rate fetching and caching service.

Every valuation is expressed in the local currency, so foreign stocks,
cryptocurrency and USD cash are converted with the current USD rate. The rate
comes from Yahoo Finance, is cached in Redis, and falls back to a configured
static rate when the source cannot be reached.
"""
from decimal import Decimal
from typing import Optional
import asyncio
import logging

import yfinance as yf

from invest_journal.config import settings
from invest_journal.services.cache import CacheService, get_cache

logger = logging.getLogger(__name__)


def _is_currency_code(code) -> bool:
    return isinstance(code, str) and len(code) == 3 and code.isupper() and code.isalpha()


class FXRateService:
    """Service for fetching, caching, and falling back on exchange rates."""

    RATE_LIMIT_DELAY = 0.1  # seconds between retries
    MAX_RETRIES = 3
    FETCH_TIMEOUT = 10.0

    def __init__(self, cache: Optional[CacheService] = None):
        self._cache = cache

    @property
    def cache(self) -> CacheService:
        if self._cache is None:
            self._cache = get_cache()
        return self._cache

    async def get_usd_rate(self, use_cache: bool = True) -> Decimal:
        """Current USD -> local currency rate, never failing."""
        return await self.get_current_rate("USD", settings.local_currency, use_cache=use_cache)

    async def get_current_rate(
        self,
        from_currency: str,
        to_currency: str,
        use_cache: bool = True,
        use_fallback: bool = True
    ) -> Decimal:
        """
        Get the current exchange rate from one currency to another.

        Args:
            from_currency: Source currency code (e.g., "USD")
            to_currency: Target currency code (e.g., "KRW")
            use_cache: Whether to check cache first (default True)
            use_fallback: Whether to use fallback rate on failure (default True)

        Returns:
            Exchange rate as Decimal (e.g., 1300 for 1 USD = 1300 KRW)

        Raises:
            ValueError: If rate cannot be fetched and use_fallback is False
        """
        if from_currency == to_currency:
            return Decimal("1")

        if use_cache:
            cached_rate = self._get_cached_rate(from_currency, to_currency)
            if cached_rate is not None:
                logger.debug(f"Cache hit for {from_currency}/{to_currency}: {cached_rate}")
                return cached_rate

        rate = await self._fetch_with_retries(from_currency, to_currency)

        if rate is None:
            if use_fallback:
                logger.warning(f"Failed to fetch {from_currency}/{to_currency}, using fallback")
                return self._get_fallback_rate(from_currency, to_currency)
            raise ValueError(f"Failed to fetch rate for {from_currency}/{to_currency}")

        self._cache_rate(from_currency, to_currency, rate)
        logger.info(f"Fetched {from_currency}/{to_currency}: {rate}")
        return rate

    # Private helper methods

    @staticmethod
    def _cache_key(from_currency: str, to_currency: str) -> str:
        return f"fx_rate:{from_currency}:{to_currency}"

    def _get_cached_rate(self, from_currency: str, to_currency: str) -> Optional[Decimal]:
        cached = self.cache.get(self._cache_key(from_currency, to_currency))
        if cached is None:
            return None
        try:
            rate = Decimal(str(cached))
        except ArithmeticError:
            return None
        return rate if rate > 0 else None

    def _cache_rate(self, from_currency: str, to_currency: str, rate: Decimal) -> None:
        key = self._cache_key(from_currency, to_currency)
        if self.cache.set(key, str(rate), settings.fx_rate_cache_ttl):
            logger.debug(f"Cached {from_currency}/{to_currency}: {rate} (TTL: {settings.fx_rate_cache_ttl}s)")

    async def _fetch_with_retries(self, from_currency: str, to_currency: str) -> Optional[Decimal]:
        """Fetch rate from source with retry logic."""
        if not _is_currency_code(from_currency) or not _is_currency_code(to_currency):
            logger.error(f"Invalid currency pair {from_currency}/{to_currency} (must be 3-letter ISO codes)")
            return None

        for attempt in range(self.MAX_RETRIES):
            if attempt > 0:
                await asyncio.sleep(self.RATE_LIMIT_DELAY)

            try:
                rate = await self._fetch_rate_from_source(from_currency, to_currency)
            except Exception as e:
                logger.debug(
                    f"Attempt {attempt + 1}/{self.MAX_RETRIES} error fetching "
                    f"{from_currency}/{to_currency}: {e}"
                )
                continue

            if rate is not None and rate > 0:
                return rate

            logger.debug(
                f"Attempt {attempt + 1}/{self.MAX_RETRIES} failed for "
                f"{from_currency}/{to_currency}"
            )

        return None

    async def _fetch_rate_from_source(self, from_currency: str, to_currency: str) -> Optional[Decimal]:
        """Fetch the latest close of the Yahoo Finance FX ticker (e.g. USDKRW=X)."""
        fx_ticker = f"{from_currency}{to_currency}=X"

        def _fetch():
            hist = yf.Ticker(fx_ticker).history(period="5d")
            if hist.empty:
                return None
            return hist["Close"].dropna().iloc[-1]

        loop = asyncio.get_running_loop()
        close = await asyncio.wait_for(
            loop.run_in_executor(None, _fetch),
            timeout=self.FETCH_TIMEOUT
        )
        if close is None:
            logger.warning(f"No FX rate data for {fx_ticker}")
            return None

        return Decimal(str(close))

    def _get_fallback_rate(self, from_currency: str, to_currency: str) -> Decimal:
        """
        Static fallback rate from settings, or its inverse.

        Using a fallback indicates the source is down; valuations drift from
        market reality for as long as it lasts.
        """
        local = settings.local_currency
        fallback = settings.default_usd_krw_rate

        if (from_currency, to_currency) == ("USD", local):
            logger.warning(f"Using fallback rate for USD/{local}: {fallback}")
            return fallback

        if (from_currency, to_currency) == (local, "USD"):
            rate = Decimal(1) / fallback
            logger.warning(f"Using inverse fallback rate for {local}/USD: {rate}")
            return rate

        logger.warning(
            f"No fallback rate available for {from_currency}/{to_currency}, using 1.0 "
            f"(this may cause inaccurate conversions)"
        )
        return Decimal("1")


# Global instance
_fx_service: Optional[FXRateService] = None


def get_fx_service() -> FXRateService:
    """Get or create the global FX rate service instance."""
    global _fx_service
    if _fx_service is None:
        _fx_service = FXRateService()
    return _fx_service
