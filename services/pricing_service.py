"""
PriceLocalizer - renders the approximate price in the visitor's currency.

The message is advisory only: the real charge is made in the site
currency.  Every failure (unknown country, same currency, no rate,
implausible numbers) returns None so the page simply shows nothing.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping

from markupsafe import Markup

from repositories.level_repository import LevelCatalog
from .currencies import currency_for_country
from .discount_service import DiscountCountryMap
from .exchange_rates import ExchangeRateClient
from .location_service import LocationResolver
from .session import CheckoutSession


logger = logging.getLogger(__name__)

MIN_PLAUSIBLE_RATE = Decimal('0.1')
MIN_LOCAL_AMOUNT = Decimal('1')

SINGLE_AMOUNT_TEMPLATE = 'In your local currency, the price is <strong>~{amount}</strong>.'
DUAL_AMOUNT_TEMPLATE = (
    'In your local currency, the price is <strong>~{initial}</strong> '
    'now and then <strong>~{billing} per {period}</strong>.'
)
HINT_TEXT = 'Your actual price will be converted at checkout based on current exchange rates.'
NUDGE_TEMPLATE = 'Use the discount code {code} to receive a discounted regional price.'


def round_price_as_string(amount: Decimal, decimals: int = 2) -> str:
    """Round half-up to ``decimals`` places; no thousands separators.

    Examples:
        Decimal('79')      -> '79.00'
        Decimal('12.345')  -> '12.35'
    """
    quantum = Decimal(1).scaleb(-decimals)
    return str(Decimal(amount).quantize(quantum, rounding=ROUND_HALF_UP))


class PriceLocalizer:
    """Builds the localized-price HTML fragment for a checkout level.

    Usage:
        localizer = PriceLocalizer(levels, rates, resolver, country_map, site_currency='USD')
        html = localizer.localized_price_message(session, level_id=1)
    """

    def __init__(
        self,
        levels: LevelCatalog,
        rates: ExchangeRateClient,
        resolver: LocationResolver,
        country_map: DiscountCountryMap,
        site_currency: str,
        currency_overrides: Mapping[str, str] | None = None,
    ) -> None:
        self.levels = levels
        self.rates = rates
        self.resolver = resolver
        self.country_map = country_map
        self.site_currency = site_currency
        self.currency_overrides = dict(currency_overrides or {})

    def local_currency(self, session: CheckoutSession) -> str | None:
        """Return the visitor's currency, or None if unknown or same as the site's."""
        country = self.resolver.get_local_country(session)
        if not country:
            return None
        currency = currency_for_country(country, self.currency_overrides)
        if not currency or currency == self.site_currency:
            return None
        return currency

    def localized_price_message(
        self,
        session: CheckoutSession,
        level_id: int,
        discount_code: str | None = None,
    ) -> Markup | None:
        level = self.levels.get_level_at_checkout(int(level_id), discount_code or None)
        if level is None:
            logger.debug('No checkout level %s; local price hidden', level_id)
            return None

        currency = self.local_currency(session)
        if currency is None:
            return None

        result = self.rates.rate_for(self.site_currency, currency)
        if not result.success:
            logger.debug('No %s->%s rate (%s); local price hidden',
                         self.site_currency, currency, result.error)
            return None

        rate = result.rate
        if not rate.is_finite() or rate < MIN_PLAUSIBLE_RATE:
            logger.info('Ignoring implausible %s->%s rate %s', self.site_currency, currency, rate)
            return None

        local_initial = level.initial_payment * rate
        local_billing = level.billing_amount * rate
        if local_initial < MIN_LOCAL_AMOUNT:
            return None

        initial_text = f'{currency} {round_price_as_string(local_initial)}'
        if level.initial_payment == level.billing_amount:
            sentence = Markup(SINGLE_AMOUNT_TEMPLATE).format(amount=initial_text)
        else:
            sentence = Markup(DUAL_AMOUNT_TEMPLATE).format(
                initial=initial_text,
                billing=f'{currency} {round_price_as_string(local_billing)}',
                period=level.cycle_period or '',
            )

        parts = [
            Markup('<p id="pmpro-local-exchange-rate">{}</p>').format(sentence),
            Markup('<p id="pmpro-local-exchange-rate-hint">{}</p>').format(HINT_TEXT),
        ]

        regional_code = self.country_map.code_for(session.country)
        if regional_code and not discount_code:
            nudge = Markup(NUDGE_TEMPLATE).format(
                code=Markup('<strong>{}</strong>').format(regional_code)
            )
            parts.append(Markup('<p id="pmpro-local-discount-nudge">{}</p>').format(nudge))

        return Markup('').join(parts)
