"""
Runtime settings for the local-pricing service layer.

Values come from the process environment (``.env`` is loaded by the
caller via python-dotenv).  Nothing here touches Flask, so the same
Settings object can be built in scripts and tests.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


DEFAULT_EXCHANGE_RATES_URL = 'https://openexchangerates.org/api/latest.json'

_TRUTHY = {'1', 'true', 'yes', 'on'}


def parse_country_map(raw: str | None) -> dict[str, str]:
    """Parse ``"ZA:LEKKER, CA:CANADA10"`` into ``{'ZA': 'LEKKER', 'CA': 'CANADA10'}``.

    Country codes are upper-cased; values are kept verbatim because
    discount-code comparisons differ in case sensitivity between call sites.
    """
    result: dict[str, str] = {}
    if not raw:
        return result
    for pair in raw.split(','):
        pair = pair.strip()
        if not pair:
            continue
        country, sep, value = pair.partition(':')
        country = country.strip().upper()
        value = value.strip()
        if not sep or len(country) != 2 or not value:
            raise ValueError(f'Invalid country mapping entry: {pair!r}')
        result[country] = value
    return result


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def _env_float(name: str) -> float | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return float(raw)


@dataclass
class Settings:
    """Everything the local-pricing components need to be constructed."""
    secret_key: str = 'your-secret-key-change-in-production'
    site_currency: str = 'USD'
    exchange_rates_app_id: str = ''
    exchange_rates_url: str = DEFAULT_EXCHANGE_RATES_URL
    geoip_db_path: str = 'GeoLite2-Country.mmdb'
    test_ip: str | None = None
    cache_failed_lookups: bool = False
    rate_ttl: int = 3600
    rate_cache_backend: str = 'memory'
    http_timeout: float | None = None
    discounted_countries: dict[str, str] = field(default_factory=dict)
    currency_overrides: dict[str, str] = field(default_factory=dict)
    stripe_secret_key: str | None = None
    stripe_publishable_key: str | None = None
    trusted_proxy_hops: int = 0

    @classmethod
    def from_env(cls) -> 'Settings':
        """Build Settings from environment variables.

        Raises ValueError on malformed values.
        """
        backend = os.getenv('LOCAL_PRICING_RATE_CACHE', 'memory').strip().lower()
        if backend not in ('memory', 'mysql'):
            raise ValueError(f'Unknown LOCAL_PRICING_RATE_CACHE backend: {backend!r}')

        overrides = {
            country: currency.upper()
            for country, currency in parse_country_map(
                os.getenv('LOCAL_PRICING_CURRENCY_OVERRIDES')
            ).items()
        }

        return cls(
            secret_key=os.getenv('SECRET_KEY', cls.secret_key),
            site_currency=os.getenv('SITE_CURRENCY', 'USD').strip().upper(),
            exchange_rates_app_id=os.getenv('OPENEXCHANGERATES_APP_ID', ''),
            exchange_rates_url=os.getenv('EXCHANGE_RATES_URL', DEFAULT_EXCHANGE_RATES_URL),
            geoip_db_path=os.getenv('GEOIP_DB_PATH', 'GeoLite2-Country.mmdb'),
            test_ip=os.getenv('LOCAL_PRICING_TEST_IP') or None,
            cache_failed_lookups=_env_bool('LOCAL_PRICING_CACHE_FAILED_LOOKUPS'),
            rate_ttl=int(os.getenv('LOCAL_PRICING_RATE_TTL', '3600')),
            rate_cache_backend=backend,
            http_timeout=_env_float('LOCAL_PRICING_HTTP_TIMEOUT'),
            discounted_countries=parse_country_map(
                os.getenv('LOCAL_PRICING_DISCOUNTED_COUNTRIES')
            ),
            currency_overrides=overrides,
            stripe_secret_key=os.getenv('STRIPE_SECRET_KEY'),
            stripe_publishable_key=os.getenv('STRIPE_PUBLISHABLE_KEY'),
            trusted_proxy_hops=int(os.getenv('TRUSTED_PROXY_HOPS', '0')),
        )
