"""
Time-bounded exchange-rate snapshot caches.

One snapshot per base currency.  Both backends are last-write-wins and
never return a snapshot older than its TTL; an expired entry simply
reads as a miss so the client refetches.
"""

from __future__ import annotations

import json
import time
from decimal import Decimal
from typing import Callable, Protocol

from repositories.db import get_connection
from services.models import ExchangeRateSnapshot


Clock = Callable[[], float]


class RateCache(Protocol):
    def get(self, base_currency: str) -> ExchangeRateSnapshot | None: ...

    def set(self, snapshot: ExchangeRateSnapshot, ttl: int) -> None: ...


class InMemoryRateCache:
    """Process-local cache, shared by every request served by this process."""

    def __init__(self, clock: Clock = time.time) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[ExchangeRateSnapshot, float]] = {}

    def get(self, base_currency: str) -> ExchangeRateSnapshot | None:
        entry = self._entries.get(base_currency)
        if entry is None:
            return None
        snapshot, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[base_currency]
            return None
        return snapshot

    def set(self, snapshot: ExchangeRateSnapshot, ttl: int) -> None:
        self._entries[snapshot.base_currency] = (snapshot, self._clock() + ttl)


class MySQLRateCache:
    """Cache backed by the ``local_pricing_exchange_rates`` table.

    Lets several app processes share one snapshot per base currency.
    Rates are stored as JSON strings so no precision is lost on the way
    back to Decimal.
    """

    def __init__(self, clock: Clock = time.time) -> None:
        self._clock = clock

    def get(self, base_currency: str) -> ExchangeRateSnapshot | None:
        sql = (
            'SELECT base_currency, rates_json, fetched_at FROM local_pricing_exchange_rates '
            'WHERE base_currency = %s AND expires_at > %s LIMIT 1'
        )
        with get_connection() as conn:
            cursor = conn.cursor(dictionary=True)
            cursor.execute(sql, (base_currency, self._clock()))
            row = cursor.fetchone()
            cursor.close()
        if row is None:
            return None
        rates = json.loads(row['rates_json'])
        return ExchangeRateSnapshot(
            base_currency=row['base_currency'],
            rates={code: Decimal(value) for code, value in rates.items()},
            fetched_at=float(row['fetched_at']),
        )

    def set(self, snapshot: ExchangeRateSnapshot, ttl: int) -> None:
        sql = (
            'INSERT INTO local_pricing_exchange_rates '
            '(base_currency, rates_json, fetched_at, expires_at) VALUES (%s, %s, %s, %s) '
            'ON DUPLICATE KEY UPDATE rates_json = VALUES(rates_json), '
            'fetched_at = VALUES(fetched_at), expires_at = VALUES(expires_at)'
        )
        rates_json = json.dumps({code: str(value) for code, value in snapshot.rates.items()})
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(sql, (
                snapshot.base_currency,
                rates_json,
                snapshot.fetched_at,
                self._clock() + ttl,
            ))
            conn.commit()
            cursor.close()
