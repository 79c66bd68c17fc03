from __future__ import annotations

import json
from decimal import Decimal
from types import SimpleNamespace

import geoip2.errors
import pytest

from repositories.rate_cache import InMemoryRateCache
from services.config import Settings
from services.discount_service import DiscountCountryMap
from services.exchange_rates import ExchangeRateClient
from services.hooks import HookRegistry
from services.location_service import LocationResolver
from services.models import CheckoutLevel
from services.pricing_service import PriceLocalizer
from services.session import CheckoutSession


class ManualClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubCountryReader:
    """Stands in for geoip2.database.Reader; records every lookup."""

    def __init__(self, countries: dict[str, str | None] | None = None) -> None:
        self.countries = countries or {}
        self.calls: list[str] = []

    def country(self, ip_address: str):
        self.calls.append(ip_address)
        if ip_address not in self.countries:
            raise geoip2.errors.AddressNotFoundError(f'{ip_address} not in database')
        return SimpleNamespace(country=SimpleNamespace(iso_code=self.countries[ip_address]))


class StubResponse:
    def __init__(self, status_code: int = 200, payload=None, text: str | None = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self._text = text

    def json(self, **kwargs):
        raw = self._text if self._text is not None else json.dumps(self._payload)
        return json.loads(raw, **kwargs)


class StubHttp:
    """Stands in for requests.Session; replays queued responses."""

    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.calls: list[dict] = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({'url': url, 'params': params, 'timeout': timeout})
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


class InMemoryLevelCatalog:
    """Level catalogue with case-insensitive discount-code lookup, like the MySQL one."""

    def __init__(self) -> None:
        self.levels: dict[int, CheckoutLevel] = {}
        self.codes: dict[tuple[str, int], dict] = {}

    def add_level(self, level: CheckoutLevel) -> CheckoutLevel:
        self.levels[level.id] = level
        return level

    def add_code(self, code: str, level_id: int, **terms) -> None:
        self.codes[(code.upper(), level_id)] = terms

    def get_level_at_checkout(self, level_id: int, discount_code: str | None = None):
        level = self.levels.get(level_id)
        if level is None or not discount_code:
            return level
        terms = self.codes.get((discount_code.upper(), level_id))
        if terms is None:
            return level
        data = {
            'id': level.id,
            'name': level.name,
            'initial_payment': level.initial_payment,
            'billing_amount': level.billing_amount,
            'cycle_number': level.cycle_number,
            'cycle_period': level.cycle_period,
            'discount_code': discount_code,
        }
        data.update(terms)
        return CheckoutLevel.from_dict(data)

    def discount_code_exists(self, code: str, level_id: int) -> bool:
        return (code.upper(), level_id) in self.codes


def rates_response(base: str = 'USD', **rates) -> StubResponse:
    return StubResponse(200, {'base': base, 'rates': rates})


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def reader() -> StubCountryReader:
    return StubCountryReader({
        '81.2.69.160': 'GB',
        '41.0.0.1': 'ZA',
        '24.48.0.1': 'CA',
        '8.8.8.8': 'US',
        '1.1.1.1': 'AQ',
    })


@pytest.fixture
def resolver(reader) -> LocationResolver:
    return LocationResolver(reader=reader)


@pytest.fixture
def session() -> CheckoutSession:
    return CheckoutSession({})


@pytest.fixture
def catalog() -> InMemoryLevelCatalog:
    levels = InMemoryLevelCatalog()
    levels.add_level(CheckoutLevel(
        id=1, name='Gold', initial_payment=Decimal('100'), billing_amount=Decimal('100'),
        cycle_number=1, cycle_period='Month',
    ))
    levels.add_level(CheckoutLevel(
        id=2, name='Starter', initial_payment=Decimal('50'), billing_amount=Decimal('20'),
        cycle_number=1, cycle_period='Month',
    ))
    levels.add_level(CheckoutLevel(id=3, name='Free'))
    levels.add_level(CheckoutLevel(id=4, name='Lifetime', initial_payment=Decimal('300')))
    levels.add_code('LEKKER', 1, initial_payment='60', billing_amount='60')
    levels.add_code('CANADA10', 1, initial_payment='90', billing_amount='90')
    return levels


@pytest.fixture
def http() -> StubHttp:
    return StubHttp(rates_response(GBP=0.79, ZAR=18.25, CAD=1.37, EUR=0.92, JPY=149.5))


@pytest.fixture
def rate_client(http, clock) -> ExchangeRateClient:
    return ExchangeRateClient(
        app_id='test-app-id',
        cache=InMemoryRateCache(clock=clock),
        http=http,
        clock=clock,
    )


@pytest.fixture
def hooks() -> HookRegistry:
    return HookRegistry()


@pytest.fixture
def country_map(hooks) -> DiscountCountryMap:
    return DiscountCountryMap({'ZA': 'LEKKER', 'CA': 'CANADA10'}, hooks)


@pytest.fixture
def localizer(catalog, rate_client, resolver, country_map) -> PriceLocalizer:
    return PriceLocalizer(
        levels=catalog,
        rates=rate_client,
        resolver=resolver,
        country_map=country_map,
        site_currency='USD',
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        secret_key='test-secret',
        site_currency='USD',
        exchange_rates_app_id='test-app-id',
        discounted_countries={'ZA': 'LEKKER', 'CA': 'CANADA10'},
        stripe_publishable_key='pk_test_123',
    )
