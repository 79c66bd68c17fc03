"""
LocalPricing - wires the local-pricing components into the host's hooks.

The host app owns the checkout flow and fires named hooks at fixed
points; ``LocalPricing.register`` attaches the callbacks below to a
HookRegistry.  Everything the callbacks need from the request is passed
in explicitly (CheckoutSession, CheckoutRequest, CheckoutMessages).
"""

from __future__ import annotations

import logging

from markupsafe import Markup

from repositories.level_repository import LevelCatalog
from repositories.rate_cache import InMemoryRateCache, MySQLRateCache, RateCache
from .config import Settings
from .discount_service import DiscountCountryMap, DiscountEligibilityGate
from .exchange_rates import ExchangeRateClient
from .hooks import HookRegistry
from .location_service import LocationResolver
from .models import CheckoutLevel, CheckoutMessages, CheckoutRequest
from .pricing_service import PriceLocalizer
from .session import CheckoutSession


logger = logging.getLogger(__name__)

AJAX_ACTION = 'pmpro_local_get_local_cost_text'
APPLY_DISCOUNT_ACTION = 'applydiscountcode'

PRIVACY_POLICY_NAME = 'Membership Checkout - Local Pricing'
PRIVACY_POLICY_HEADING = 'Data collected to show localized pricing at checkout.'
PRIVACY_POLICY_TEXT = (
    'At checkout, we will use your IP address to find your general location to show a '
    'localized rate in your local currency for your convenience. This information is stored '
    'temporarily during checkout and clears after checkout is completed.'
)


class LocalPricing:
    """Facade over the resolver, localizer and discount gate.

    Usage:
        pricing = LocalPricing.from_settings(settings, levels, hooks)
        pricing.register(hooks)
    """

    def __init__(
        self,
        resolver: LocationResolver,
        localizer: PriceLocalizer,
        gate: DiscountEligibilityGate,
    ) -> None:
        self.resolver = resolver
        self.localizer = localizer
        self.gate = gate

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        levels: LevelCatalog,
        hooks: HookRegistry,
        resolver: LocationResolver | None = None,
        rates: ExchangeRateClient | None = None,
    ) -> 'LocalPricing':
        """Build every component from Settings; explicit collaborators win."""
        if resolver is None:
            resolver = LocationResolver(
                db_path=settings.geoip_db_path,
                test_ip=settings.test_ip,
                cache_failed_lookups=settings.cache_failed_lookups,
            )
        if rates is None:
            rates = ExchangeRateClient(
                app_id=settings.exchange_rates_app_id,
                cache=_rate_cache_for(settings.rate_cache_backend),
                url=settings.exchange_rates_url,
                ttl=settings.rate_ttl,
                timeout=settings.http_timeout,
            )

        country_map = DiscountCountryMap(settings.discounted_countries, hooks)
        localizer = PriceLocalizer(
            levels=levels,
            rates=rates,
            resolver=resolver,
            country_map=country_map,
            site_currency=settings.site_currency,
            currency_overrides=settings.currency_overrides,
        )
        return cls(resolver, localizer, DiscountEligibilityGate(country_map))

    def register(self, hooks: HookRegistry) -> None:
        hooks.add_action('checkout_preheader', self.on_checkout_preheader)
        hooks.add_filter('level_cost_text', self.insert_local_price_div)
        hooks.add_filter('check_discount_code', self.check_discount_code)
        hooks.add_filter('registration_checks', self.registration_checks, priority=100)
        hooks.add_action('after_checkout', self.on_after_checkout)
        hooks.add_filter('privacy_policy_content', self.add_privacy_policy)

    # ------------------------------------------------------------------ #
    # Hook callbacks                                                       #
    # ------------------------------------------------------------------ #

    def on_checkout_preheader(self, session: CheckoutSession, ip_address: str | None) -> None:
        self.resolver.resolve_country(session, ip_address)

    def insert_local_price_div(
        self,
        cost: Markup,
        level: CheckoutLevel,
        session: CheckoutSession,
        request: CheckoutRequest,
    ) -> Markup:
        """Append the ``#pmpro-local-price`` container to the level cost text.

        On the checkout page the container starts empty and the client
        script fills it.  While a discount code is being applied the
        local price is rendered into it straight away.
        """
        if level.is_free:
            return cost

        applying_code = request.action == APPLY_DISCOUNT_ACTION
        if not request.is_checkout_page and not applying_code:
            return cost

        inner = Markup('')
        if applying_code:
            message = self.localizer.localized_price_message(session, level.id, request.code or None)
            inner = Markup('<div class="pmpro-local-price_inner">{}</div>').format(message or '')

        return Markup(cost) + Markup('<div id="pmpro-local-price">{}</div>').format(inner)

    def check_discount_code(self, okay, discount_code: str | None, level_id: int, session: CheckoutSession):
        return self.gate.check_discount_code(okay, discount_code, session.country)

    def registration_checks(
        self,
        okay: bool,
        checkout_level: CheckoutLevel | None,
        session: CheckoutSession,
        messages: CheckoutMessages,
    ) -> bool:
        return self.gate.registration_checks(okay, checkout_level, session.country, messages)

    def on_after_checkout(self, session: CheckoutSession) -> None:
        logger.debug('Checkout complete; clearing local pricing country %s', session.country)
        self.resolver.clear(session)

    @staticmethod
    def add_privacy_policy(content: list[dict]) -> list[dict]:
        """Register the data-collection notice for the site's privacy page."""
        html = Markup('<h2>{}</h2><p>{}</p>').format(PRIVACY_POLICY_HEADING, PRIVACY_POLICY_TEXT)
        return [*content, {'name': PRIVACY_POLICY_NAME, 'content': html}]

    # ------------------------------------------------------------------ #
    # AJAX                                                                 #
    # ------------------------------------------------------------------ #

    def local_cost_fragment(self, session: CheckoutSession, checkout_level: CheckoutLevel | None) -> Markup:
        """Body for the ``pmpro_local_get_local_cost_text`` endpoint; empty when nothing applies."""
        if checkout_level is None or not checkout_level.id:
            return Markup('')
        message = self.localizer.localized_price_message(
            session, checkout_level.id, checkout_level.discount_code or None
        )
        return message or Markup('')


def _rate_cache_for(backend: str) -> RateCache:
    if backend == 'mysql':
        return MySQLRateCache()
    return InMemoryRateCache()
