from flask import Flask, Response, abort, jsonify, redirect, render_template, request, session, url_for
import logging
import os

import stripe
from dotenv import load_dotenv
from markupsafe import Markup
from werkzeug.middleware.proxy_fix import ProxyFix

from repositories.level_repository import LevelCatalog, LevelRepository
from services.config import Settings
from services.exchange_rates import ExchangeRateClient
from services.hooks import HookRegistry
from services.local_pricing import APPLY_DISCOUNT_ACTION, LocalPricing
from services.location_service import LocationResolver
from services.models import CheckoutLevel, CheckoutMessages, CheckoutRequest
from services.pricing_service import round_price_as_string
from services.session import CheckoutSession
from services.stripe_service import StripeService

load_dotenv()

logging.basicConfig(
    level=os.getenv('LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
)
logger = logging.getLogger(__name__)


def _client_ip():
    """Visitor IP; X-Forwarded-For is honoured only through ProxyFix's trusted hops."""
    return request.remote_addr or ''


def _level_cost_text(level: CheckoutLevel, currency: str) -> Markup:
    """Host's own description of a level's price, in the site currency."""
    if level.is_free:
        return Markup('<p class="pmpro-level-cost">This membership is free.</p>')

    initial = f'{currency} {round_price_as_string(level.initial_payment)}'
    if not level.is_recurring:
        text = Markup('The price for membership is <strong>{}</strong> now.').format(initial)
    elif level.initial_payment == level.billing_amount:
        text = Markup('The price for membership is <strong>{} per {}</strong>.').format(
            initial, level.cycle_period
        )
    else:
        billing = f'{currency} {round_price_as_string(level.billing_amount)}'
        text = Markup(
            'The price for membership is <strong>{}</strong> now and then <strong>{} per {}</strong>.'
        ).format(initial, billing, level.cycle_period)
    return Markup('<p class="pmpro-level-cost">{}</p>').format(text)


def create_app(
    settings: Settings | None = None,
    levels: LevelCatalog | None = None,
    resolver: LocationResolver | None = None,
    rates: ExchangeRateClient | None = None,
    stripe_service: StripeService | None = None,
    hooks: HookRegistry | None = None,
) -> Flask:
    """Build the checkout app; any collaborator left as None is built from settings."""
    settings = settings or Settings.from_env()
    levels = levels or LevelRepository()
    hooks = hooks or HookRegistry()
    stripe_service = stripe_service or StripeService(
        settings.stripe_secret_key, settings.stripe_publishable_key
    )

    pricing = LocalPricing.from_settings(settings, levels, hooks, resolver=resolver, rates=rates)
    pricing.register(hooks)

    app = Flask(__name__)
    app.secret_key = settings.secret_key
    if settings.trusted_proxy_hops > 0:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=settings.trusted_proxy_hops)
    app.extensions['local_pricing'] = pricing
    app.extensions['hooks'] = hooks

    def checkout_session() -> CheckoutSession:
        return CheckoutSession(session)

    def level_from_request(level_key: str = 'level', code_key: str = 'discount_code'):
        level_id = request.values.get(level_key, type=int)
        if not level_id:
            return None
        code = (request.values.get(code_key) or '').strip() or None
        return levels.get_level_at_checkout(level_id, code)

    def render_checkout(level: CheckoutLevel, message: str | None = None, status: int = 200):
        cost_text = hooks.apply_filters(
            'level_cost_text',
            _level_cost_text(level, settings.site_currency),
            level,
            checkout_session(),
            CheckoutRequest(is_checkout_page=True),
        )
        return render_template(
            'checkout.html',
            level=level,
            cost_text=cost_text,
            message=message,
            ajax_url=url_for('local_cost_text'),
            apply_code_url=url_for('apply_discount_code'),
            publishable_key=stripe_service.publishable_key,
        ), status

    # ============== Checkout ==============

    @app.route('/checkout', methods=['GET'])
    def checkout():
        hooks.do_action('checkout_preheader', checkout_session(), _client_ip())
        level = level_from_request()
        if level is None:
            abort(404)
        return render_checkout(level)

    @app.route('/checkout', methods=['POST'])
    def submit_checkout():
        hooks.do_action('checkout_preheader', checkout_session(), _client_ip())
        level = level_from_request()
        if level is None:
            abort(404)

        code = (request.form.get('discount_code') or '').strip()
        if code and not levels.discount_code_exists(code, level.id):
            return render_checkout(level, f'The discount code {code} could not be found.', 400)

        messages = CheckoutMessages()
        okay = hooks.apply_filters('registration_checks', True, level, checkout_session(), messages)
        if not okay:
            return render_checkout(level, messages.msg or 'Unable to complete checkout.', 400)

        if level.is_free:
            hooks.do_action('after_checkout', checkout_session())
            return redirect(url_for('success'))

        try:
            result = stripe_service.create_checkout_session(
                level,
                currency=settings.site_currency,
                success_url=request.host_url + 'success?session_id={CHECKOUT_SESSION_ID}',
                cancel_url=request.host_url + f'checkout?level={level.id}',
                email=request.form.get('email') or None,
            )
        except ValueError as exc:
            return render_checkout(level, str(exc), 400)
        except stripe.error.StripeError as exc:
            logger.error('Stripe checkout failed for level %s: %s', level.id, exc)
            return render_checkout(level, 'Payment provider error, please try again.', 502)

        return redirect(result['url'], code=303)

    @app.route('/success')
    def success():
        session_id = request.args.get('session_id')
        details = {'paid': False, 'amount': None, 'currency': None}
        if session_id:
            details = stripe_service.get_checkout_session_details(session_id)
            # free levels fire after_checkout before redirecting here
            if details['paid']:
                hooks.do_action('after_checkout', checkout_session())
        return render_template(
            'success.html',
            session_id=session_id,
            amount=details['amount'],
            currency=details['currency'],
        )

    # ============== AJAX ==============

    @app.route('/ajax/pmpro_local_get_local_cost_text', methods=['GET', 'POST'])
    def local_cost_text():
        fragment = pricing.local_cost_fragment(checkout_session(), level_from_request())
        return Response(str(fragment), mimetype='text/html')

    @app.route('/ajax/applydiscountcode', methods=['POST'])
    def apply_discount_code():
        level_id = request.values.get('level', type=int)
        code = (request.values.get('code') or '').strip()
        if not level_id or not code:
            return jsonify({'success': False, 'message': 'A level and discount code are required.'}), 400

        if not levels.discount_code_exists(code, level_id):
            return jsonify({'success': False, 'message': f'The discount code {code} could not be found.'}), 400

        okay = hooks.apply_filters('check_discount_code', True, code, level_id, checkout_session())
        if okay is not True:
            return jsonify({'success': False, 'message': okay or 'This discount code is not valid.'}), 400

        level = levels.get_level_at_checkout(level_id, code)
        if level is None:
            abort(404)
        cost_text = hooks.apply_filters(
            'level_cost_text',
            _level_cost_text(level, settings.site_currency),
            level,
            checkout_session(),
            CheckoutRequest(action=APPLY_DISCOUNT_ACTION, code=code),
        )
        return jsonify({'success': True, 'code': code, 'cost_text': str(cost_text)})

    # ============== Privacy ==============

    @app.route('/privacy')
    def privacy():
        sections = hooks.apply_filters('privacy_policy_content', [])
        return render_template('privacy.html', sections=sections)

    return app


app = create_app()

if __name__ == '__main__':
    app.run(debug=True)
