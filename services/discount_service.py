"""
Country-restricted discount codes.

Some discount codes may only be redeemed by visitors from one country.
The gate runs twice: when a code is applied on the checkout page and
again when the checkout form is submitted.
"""

from __future__ import annotations

import logging
from typing import Mapping

from .hooks import HookRegistry
from .models import CheckoutLevel, CheckoutMessages


logger = logging.getLogger(__name__)

DISCOUNTED_COUNTRIES_FILTER = 'local_pricing_discounted_countries'

NOT_QUALIFIED_MESSAGE = 'Sorry, you do not qualify to redeem this discount code.'


class DiscountCountryMap:
    """Country code -> the one discount code that country may redeem.

    The configured mapping is passed through the
    ``local_pricing_discounted_countries`` filter on every read so other
    components can add or remove entries.
    """

    def __init__(self, mapping: Mapping[str, str] | None = None, hooks: HookRegistry | None = None) -> None:
        self._mapping = dict(mapping or {})
        self._hooks = hooks

    def as_dict(self) -> dict[str, str]:
        mapping = dict(self._mapping)
        if self._hooks is not None:
            mapping = self._hooks.apply_filters(DISCOUNTED_COUNTRIES_FILTER, mapping)
        return mapping

    def code_for(self, country: str | None) -> str | None:
        if not country:
            return None
        return self.as_dict().get(country) or None


class DiscountEligibilityGate:
    """Decides whether a visitor's country may redeem a discount code."""

    def __init__(self, country_map: DiscountCountryMap) -> None:
        self.country_map = country_map

    def check_discount_code(self, okay, discount_code: str | None, country: str | None):
        """Validate a code as it is applied on the checkout page.

        Returns ``okay`` untouched when an earlier check already rejected
        the code, otherwise ``True`` or a rejection message.  The entered
        code is upper-cased before it is compared.
        """
        if okay is not True:
            return okay

        country_discount = self.country_map.as_dict()
        entered = (discount_code or '').upper()

        if entered not in country_discount.values():
            return True

        allowed = country_discount.get(country) if country else None
        if not allowed:
            logger.info('Restricted code %s rejected: no code for country %s', entered, country)
            return NOT_QUALIFIED_MESSAGE
        if entered == allowed:
            return True

        logger.info('Restricted code %s rejected for country %s', entered, country)
        return NOT_QUALIFIED_MESSAGE

    def registration_checks(
        self,
        okay: bool,
        checkout_level: CheckoutLevel | None,
        country: str | None,
        messages: CheckoutMessages,
    ) -> bool:
        """Re-check the code when the checkout form is submitted.

        Unlike ``check_discount_code`` the submitted code is not
        upper-cased, so it must match the country's code exactly; a case
        variant of a restricted code is still treated as restricted.
        On rejection the checkout notice is set on ``messages``.
        """
        if not okay:
            return okay
        if checkout_level is None or not checkout_level.discount_code:
            return okay

        discount_code = checkout_level.discount_code
        country_discount = self.country_map.as_dict()
        restricted = {code.upper() for code in country_discount.values()}

        if discount_code.upper() in restricted:
            allowed = country_discount.get(country) if country else None
            okay = bool(allowed) and discount_code == allowed

        if not okay:
            logger.info('Registration blocked: code %s not allowed for country %s', discount_code, country)
            messages.set(NOT_QUALIFIED_MESSAGE, 'pmpro_error')

        return okay
