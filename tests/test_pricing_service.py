from __future__ import annotations

from decimal import Decimal

import pytest

from conftest import StubHttp, StubResponse, rates_response
from repositories.rate_cache import InMemoryRateCache
from services.exchange_rates import ExchangeRateClient
from services.models import CheckoutLevel
from services.pricing_service import PriceLocalizer, round_price_as_string
from services.session import COUNTRY_KEY, CheckoutSession


def _session(country: str | None) -> CheckoutSession:
    return CheckoutSession({COUNTRY_KEY: country} if country else {})


def _localizer_with_rates(catalog, resolver, country_map, clock, **rates) -> PriceLocalizer:
    client = ExchangeRateClient(
        app_id='x',
        cache=InMemoryRateCache(clock=clock),
        http=StubHttp(rates_response(**rates)),
        clock=clock,
    )
    return PriceLocalizer(catalog, client, resolver, country_map, site_currency='USD')


@pytest.mark.parametrize(
    'amount, expected',
    [(Decimal('79'), '79.00'), (Decimal('12.345'), '12.35'), (Decimal('1234567.891'), '1234567.89')],
)
def test_round_price_as_string(amount, expected) -> None:
    assert round_price_as_string(amount) == expected


def test_flat_level_renders_single_amount(localizer) -> None:
    html = localizer.localized_price_message(_session('GB'), 1)

    assert '~GBP 79.00' in html
    assert 'In your local currency, the price is <strong>~GBP 79.00</strong>.' in html
    assert 'now and then' not in html
    assert 'pmpro-local-exchange-rate-hint' in html
    assert 'converted at checkout based on current exchange rates' in html
    assert 'pmpro-local-discount-nudge' not in html


def test_split_level_renders_both_amounts_and_period(localizer) -> None:
    html = localizer.localized_price_message(_session('GB'), 2)

    assert ('<strong>~GBP 39.50</strong> now and then <strong>~GBP 15.80 per Month</strong>.') in html


def test_nudge_shown_for_country_with_code_when_no_code_entered(localizer) -> None:
    html = localizer.localized_price_message(_session('ZA'), 1)

    assert '~ZAR 1825.00' in html
    assert ('<p id="pmpro-local-discount-nudge">Use the discount code <strong>LEKKER</strong> '
            'to receive a discounted regional price.</p>') in html


def test_nudge_hidden_once_a_code_is_supplied(localizer) -> None:
    html = localizer.localized_price_message(_session('ZA'), 1, 'LEKKER')

    assert '~ZAR 1095.00' in html
    assert 'pmpro-local-discount-nudge' not in html


def test_same_currency_as_site_shows_nothing(localizer, http) -> None:
    assert localizer.localized_price_message(_session('US'), 1) is None
    assert http.calls == []


@pytest.mark.parametrize('country', [None, 'AQ'])
def test_unknown_country_or_currency_shows_nothing(localizer, country) -> None:
    assert localizer.localized_price_message(_session(country), 1) is None


def test_unknown_level_shows_nothing(localizer) -> None:
    assert localizer.localized_price_message(_session('GB'), 99) is None


def test_upstream_failure_shows_nothing(catalog, resolver, country_map, clock) -> None:
    client = ExchangeRateClient(
        app_id='x',
        cache=InMemoryRateCache(clock=clock),
        http=StubHttp(StubResponse(500, {})),
        clock=clock,
    )
    localizer = PriceLocalizer(catalog, client, resolver, country_map, site_currency='USD')

    assert localizer.localized_price_message(_session('GB'), 1) is None


@pytest.mark.parametrize('rate', [0, 0.05, 0.0999])
def test_implausible_rate_shows_nothing(catalog, resolver, country_map, clock, rate) -> None:
    localizer = _localizer_with_rates(catalog, resolver, country_map, clock, GBP=rate)
    assert localizer.localized_price_message(_session('GB'), 1) is None


def test_rate_at_threshold_is_accepted(catalog, resolver, country_map, clock) -> None:
    localizer = _localizer_with_rates(catalog, resolver, country_map, clock, GBP=0.1)
    assert '~GBP 10.00' in localizer.localized_price_message(_session('GB'), 1)


def test_converted_amount_below_one_unit_shows_nothing(catalog, resolver, country_map, clock) -> None:
    catalog.add_level(CheckoutLevel(
        id=7, name='Cheap', initial_payment=Decimal('1.5'), billing_amount=Decimal('1.5'),
        cycle_number=1, cycle_period='Month',
    ))
    localizer = _localizer_with_rates(catalog, resolver, country_map, clock, GBP=0.5)

    assert localizer.localized_price_message(_session('GB'), 7) is None


def test_interpolated_values_are_escaped(catalog, resolver, hooks, clock) -> None:
    from services.discount_service import DiscountCountryMap

    catalog.add_level(CheckoutLevel(
        id=8, name='Odd', initial_payment=Decimal('10'), billing_amount=Decimal('5'),
        cycle_number=1, cycle_period='<script>',
    ))
    country_map = DiscountCountryMap({'GB': '<b>X</b>'}, hooks)
    localizer = _localizer_with_rates(catalog, resolver, country_map, clock, GBP=0.79)

    html = localizer.localized_price_message(_session('GB'), 8)
    assert '<script>' not in html
    assert '&lt;script&gt;' in html
    assert '&lt;b&gt;X&lt;/b&gt;' in html


def test_currency_overrides_apply(catalog, resolver, country_map, clock) -> None:
    client = ExchangeRateClient(
        app_id='x',
        cache=InMemoryRateCache(clock=clock),
        http=StubHttp(rates_response(EUR=0.92)),
        clock=clock,
    )
    localizer = PriceLocalizer(
        catalog, client, resolver, country_map, site_currency='USD', currency_overrides={'AQ': 'EUR'}
    )

    assert '~EUR 92.00' in localizer.localized_price_message(_session('AQ'), 1)


@pytest.mark.parametrize('raw_rate', ['NaN', 'Infinity'])
def test_non_finite_rate_hides_local_price(catalog, resolver, country_map, clock, raw_rate) -> None:
    client = ExchangeRateClient(
        app_id='x',
        cache=InMemoryRateCache(clock=clock),
        http=StubHttp(StubResponse(200, text='{"rates": {"GBP": %s}}' % raw_rate)),
        clock=clock,
    )
    localizer = PriceLocalizer(catalog, client, resolver, country_map, site_currency='USD')

    assert localizer.localized_price_message(_session('GB'), 1) is None
    assert localizer.localized_price_message(_session('GB'), 2) is None
