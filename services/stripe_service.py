"""
StripeService - takes payment for a membership level via Stripe Checkout.

The level is always charged in the site currency; the localized price
shown on the checkout page is advisory only.
"""

import logging
from decimal import Decimal

import stripe

from .models import BillingPeriod, CheckoutLevel


logger = logging.getLogger(__name__)

# Currencies without minor units (no cents). See Stripe docs for full list.
ZERO_DECIMAL_CURRENCIES = {
    'bif', 'clp', 'djf', 'gnf', 'jpy', 'kmf', 'krw', 'mga', 'pyg',
    'rwf', 'vnd', 'vuv', 'xaf', 'xof', 'xpf'
}

# Checkout Session payment_status values that mean the checkout completed.
PAID_STATUSES = {'paid', 'no_payment_required'}

# Stripe recurring intervals and the trial length that defers the first
# recurring charge by one billing cycle.
_INTERVALS = {
    BillingPeriod.DAY: ('day', 1),
    BillingPeriod.WEEK: ('week', 7),
    BillingPeriod.MONTH: ('month', 30),
    BillingPeriod.YEAR: ('year', 365),
}


class StripeService:
    """Handles all communication with the Stripe API.

    Usage:
        service = StripeService(
            secret_key="sk_test_...",
            publishable_key="pk_test_...",
        )
    """

    def __init__(self, secret_key: str, publishable_key: str = None):
        self.publishable_key = publishable_key
        stripe.api_key = secret_key

    # ------------------------------------------------------------------ #
    # Utility helpers                                                      #
    # ------------------------------------------------------------------ #

    @staticmethod
    def to_minor_unit(amount_major, currency: str) -> int | None:
        """Convert a major-unit decimal amount to the currency's minor unit.

        Examples:
            12.34 USD -> 1234
            1000 JPY -> 1000  (JPY has no minor unit)
        """
        try:
            amt = Decimal(str(amount_major))
        except ArithmeticError:
            return None

        if currency and currency.lower() in ZERO_DECIMAL_CURRENCIES:
            return int(amt.quantize(Decimal('1')))

        return int((amt * 100).quantize(Decimal('1')))

    @staticmethod
    def line_items_for_level(level: CheckoutLevel, currency: str) -> tuple[str, list, dict]:
        """Return (mode, line_items, subscription_data) for a level's price terms.

        Recurring levels charge the initial payment once, then the billing
        amount every cycle starting one cycle later.
        """
        currency = currency.lower()
        product = {'name': level.name or f'Membership level {level.id}'}

        if not level.is_recurring:
            return 'payment', [{
                'price_data': {
                    'currency': currency,
                    'unit_amount': StripeService.to_minor_unit(level.initial_payment, currency),
                    'product_data': product,
                },
                'quantity': 1,
            }], {}

        try:
            interval, cycle_days = _INTERVALS[BillingPeriod(level.cycle_period)]
        except ValueError:
            raise ValueError(f'Unsupported billing period: {level.cycle_period!r}') from None

        line_items = [{
            'price_data': {
                'currency': currency,
                'unit_amount': StripeService.to_minor_unit(level.billing_amount, currency),
                'product_data': product,
                'recurring': {'interval': interval, 'interval_count': level.cycle_number},
            },
            'quantity': 1,
        }]
        subscription_data = {}
        if level.initial_payment > 0:
            line_items.append({
                'price_data': {
                    'currency': currency,
                    'unit_amount': StripeService.to_minor_unit(level.initial_payment, currency),
                    'product_data': {'name': f'{product["name"]} (initial payment)'},
                },
                'quantity': 1,
            })
            subscription_data['trial_period_days'] = cycle_days * level.cycle_number
        return 'subscription', line_items, subscription_data

    # ------------------------------------------------------------------ #
    # Checkout                                                             #
    # ------------------------------------------------------------------ #

    def create_checkout_session(
        self,
        level: CheckoutLevel,
        currency: str,
        success_url: str,
        cancel_url: str,
        email: str | None = None,
    ) -> dict:
        """Create a Stripe Checkout Session and return {'url': ..., 'sessionId': ...}.

        Raises ValueError for free levels or unsupported billing periods.
        Raises stripe.error.StripeError on Stripe API errors.
        """
        if level.is_free:
            raise ValueError('Free levels do not need a payment session')

        mode, line_items, subscription_data = self.line_items_for_level(level, currency)

        session_data = {
            'mode': mode,
            'line_items': line_items,
            'payment_method_types': ['card'],
            'locale': 'auto',
            'allow_promotion_codes': False,
            'success_url': success_url,
            'cancel_url': cancel_url,
            'metadata': {
                'level_id': str(level.id),
                'discount_code': level.discount_code or '',
            },
        }
        if subscription_data:
            session_data['subscription_data'] = subscription_data
        if email:
            session_data['customer_email'] = email

        # submit_type is only valid for one-time payments
        if mode == 'payment':
            session_data['submit_type'] = 'pay'

        checkout_session = stripe.checkout.Session.create(**session_data)
        logger.info('Created checkout session %s for level %s', checkout_session.id, level.id)
        return {'url': checkout_session.url, 'sessionId': checkout_session.id}

    # ------------------------------------------------------------------ #
    # Success page data                                                    #
    # ------------------------------------------------------------------ #

    def get_checkout_session_details(self, session_id: str) -> dict:
        """Return payment details for the success page.

        Returns {'paid': bool, 'amount': float | None, 'currency': str | None}.
        """
        try:
            checkout_session = stripe.checkout.Session.retrieve(session_id)
        except stripe.error.StripeError as exc:
            logger.warning('Error fetching checkout session %s: %s', session_id, exc)
            return {'paid': False, 'amount': None, 'currency': None}

        details = {
            'paid': checkout_session.payment_status in PAID_STATUSES,
            'amount': None,
            'currency': None,
        }
        total = checkout_session.amount_total
        currency = checkout_session.currency
        if total is not None and currency:
            divisor = 1 if currency.lower() in ZERO_DECIMAL_CURRENCIES else 100
            details['amount'] = total / divisor
            details['currency'] = currency.upper()
        return details
