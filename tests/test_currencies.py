from __future__ import annotations

import pytest

from services.currencies import COUNTRY_CURRENCIES, currency_for_country


@pytest.mark.parametrize(
    'country, currency',
    [('GB', 'GBP'), ('ZA', 'ZAR'), ('CA', 'CAD'), ('DE', 'EUR'), ('JP', 'JPY'), ('US', 'USD')],
)
def test_known_countries(country, currency) -> None:
    assert currency_for_country(country) == currency


def test_lookup_is_case_insensitive() -> None:
    assert currency_for_country('gb') == 'GBP'


@pytest.mark.parametrize('country', ['AQ', 'ZZ', '', None])
def test_unmapped_countries_return_none(country) -> None:
    assert currency_for_country(country) is None


def test_overrides_take_precedence_without_mutating_table() -> None:
    assert currency_for_country('AQ', {'AQ': 'USD'}) == 'USD'
    assert currency_for_country('GB', {'GB': 'EUR'}) == 'EUR'
    assert COUNTRY_CURRENCIES['GB'] == 'GBP'
    assert 'AQ' not in COUNTRY_CURRENCIES


def test_table_entries_are_iso_shaped() -> None:
    for country, currency in COUNTRY_CURRENCIES.items():
        assert len(country) == 2 and country.isupper()
        assert len(currency) == 3 and currency.isupper()
