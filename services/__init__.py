from .models import CheckoutLevel, CheckoutMessages, CheckoutRequest, ExchangeRateSnapshot, RateResult
from .stripe_service import StripeService

__all__ = [
    'CheckoutLevel', 'CheckoutMessages', 'CheckoutRequest', 'ExchangeRateSnapshot', 'RateResult',
    'StripeService',
]
