"""
ExchangeRateClient - cached access to the Open Exchange Rates API.

One GET per base currency per TTL window.  The whole rate table for the
base is cached, so lookups for any other target currency with the same
base are served from cache as well.
"""

from __future__ import annotations

import logging
import time
from decimal import Decimal, InvalidOperation
from typing import Callable

import requests

from repositories.rate_cache import InMemoryRateCache, RateCache
from .config import DEFAULT_EXCHANGE_RATES_URL
from .models import ExchangeRateSnapshot, RateError, RateResult


logger = logging.getLogger(__name__)

DEFAULT_TTL = 3600


class ExchangeRateClient:
    """Fetches and caches exchange rates keyed by base currency.

    Usage:
        client = ExchangeRateClient(app_id='...')
        result = client.rate_for('USD', 'GBP')
        if result.success:
            print(result.rate)
    """

    def __init__(
        self,
        app_id: str,
        cache: RateCache | None = None,
        url: str = DEFAULT_EXCHANGE_RATES_URL,
        ttl: int = DEFAULT_TTL,
        http: requests.Session | None = None,
        timeout: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.app_id = app_id
        self.cache = cache if cache is not None else InMemoryRateCache(clock=clock)
        self.url = url
        self.ttl = ttl
        self.timeout = timeout
        self._http = http if http is not None else requests.Session()
        self._clock = clock

    # ------------------------------------------------------------------ #
    # Public API                                                           #
    # ------------------------------------------------------------------ #

    def rate_for(self, base_currency: str, target_currency: str) -> RateResult:
        """Return the rate converting one unit of ``base_currency`` into ``target_currency``."""
        snapshot = self.cache.get(base_currency)
        if snapshot is not None:
            rate = snapshot.rate(target_currency)
            if rate is not None:
                return RateResult(success=True, rate=rate, from_cache=True)

        fetched = self.fetch_snapshot(base_currency)
        if isinstance(fetched, RateResult):
            return fetched

        rate = fetched.rate(target_currency)
        if rate is None:
            return RateResult(
                success=False,
                error=RateError.RATE_NOT_FOUND,
                message=f'No {target_currency} rate published for base {base_currency}.',
            )
        return RateResult(success=True, rate=rate)

    def fetch_snapshot(self, base_currency: str) -> ExchangeRateSnapshot | RateResult:
        """Request the latest rates for ``base_currency`` and cache them.

        Returns the new snapshot, or a failed RateResult.  Nothing is
        cached on failure.
        """
        params = {'app_id': self.app_id, 'base': base_currency}
        try:
            response = self._http.get(self.url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning('Exchange rate request for %s failed: %s', base_currency, exc)
            return RateResult(
                success=False,
                error=RateError.UPSTREAM_UNAVAILABLE,
                message=str(exc),
            )

        if response.status_code != 200:
            logger.warning(
                'Exchange rate request for %s returned HTTP %s', base_currency, response.status_code
            )
            return RateResult(
                success=False,
                error=RateError.UPSTREAM_STATUS,
                message=f'HTTP {response.status_code}',
            )

        rates = self._parse_rates(response)
        if rates is None:
            logger.warning('Exchange rate response for %s had no usable rates', base_currency)
            return RateResult(
                success=False,
                error=RateError.MALFORMED_BODY,
                message='Response body has no rates mapping.',
            )

        snapshot = ExchangeRateSnapshot(
            base_currency=base_currency,
            rates=rates,
            fetched_at=self._clock(),
        )
        self.cache.set(snapshot, self.ttl)
        logger.info('Cached %d exchange rates for base %s', len(rates), base_currency)
        return snapshot

    # ------------------------------------------------------------------ #
    # Helpers                                                              #
    # ------------------------------------------------------------------ #

    @staticmethod
    def _parse_rates(response) -> dict[str, Decimal] | None:
        try:
            body = response.json(parse_float=Decimal)
        except ValueError:
            return None
        if not isinstance(body, dict) or not isinstance(body.get('rates'), dict):
            return None

        rates: dict[str, Decimal] = {}
        for code, value in body['rates'].items():
            if isinstance(value, bool):
                continue
            try:
                rate = Decimal(str(value))
            except (InvalidOperation, TypeError):
                continue
            # the decoder accepts NaN and Infinity literals
            if rate.is_finite():
                rates[code] = rate
        return rates
