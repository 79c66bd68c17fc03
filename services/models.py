"""
Domain models and enums for the local-pricing service layer.

Using str-based enums means enum members can be compared with and
serialised as plain strings without calling .value.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class BillingPeriod(str, Enum):
    """Billing periods a membership level can recur on."""
    DAY   = 'Day'
    WEEK  = 'Week'
    MONTH = 'Month'
    YEAR  = 'Year'


@dataclass
class CheckoutLevel:
    """Price terms for a membership level at checkout.

    When a discount code is applied the amounts are the discounted ones
    and ``discount_code`` holds the code as submitted.
    """
    id: int
    name: str
    initial_payment: Decimal = Decimal('0')
    billing_amount: Decimal = Decimal('0')
    cycle_number: int = 0
    cycle_period: str | None = None
    discount_code: str | None = None

    @property
    def is_free(self) -> bool:
        return self.initial_payment <= 0 and self.billing_amount <= 0

    @property
    def is_recurring(self) -> bool:
        return self.billing_amount > 0 and self.cycle_number > 0

    @classmethod
    def from_dict(cls, data: dict) -> 'CheckoutLevel':
        """Build a CheckoutLevel from a raw row / request dict."""
        return cls(
            id=int(data['id']),
            name=data.get('name') or '',
            initial_payment=Decimal(str(data.get('initial_payment') or 0)),
            billing_amount=Decimal(str(data.get('billing_amount') or 0)),
            cycle_number=int(data.get('cycle_number') or 0),
            cycle_period=data.get('cycle_period') or None,
            discount_code=data.get('discount_code') or None,
        )


@dataclass
class ExchangeRateSnapshot:
    """All rates published for one base currency at one point in time."""
    base_currency: str
    rates: dict[str, Decimal] = field(default_factory=dict)
    fetched_at: float = 0.0

    def rate(self, currency: str) -> Decimal | None:
        return self.rates.get(currency)


class RateError(str, Enum):
    """Machine-readable reasons an exchange-rate lookup failed."""
    UPSTREAM_STATUS = 'upstream_status'
    UPSTREAM_UNAVAILABLE = 'upstream_unavailable'
    MALFORMED_BODY = 'malformed_body'
    RATE_NOT_FOUND = 'rate_not_found'


@dataclass
class RateResult:
    """Outcome of an exchange-rate lookup."""
    success: bool
    rate: Decimal | None = None
    error: RateError | None = None
    message: str | None = None
    from_cache: bool = False


@dataclass
class CheckoutMessages:
    """User-facing checkout notice, set by registration checks."""
    msg: str | None = None
    msgt: str | None = None

    def set(self, msg: str, msgt: str = 'pmpro_error') -> None:
        self.msg = msg
        self.msgt = msgt


@dataclass
class CheckoutRequest:
    """Per-request state the level-cost-text filter needs from the host."""
    is_checkout_page: bool = False
    action: str | None = None
    code: str | None = None
