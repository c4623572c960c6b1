from flask import current_app
from app.exceptions import PaymentError
import logging
import stripe

logger = logging.getLogger(__name__)


def is_configured():
    return bool(current_app.config.get('STRIPE_SECRET_KEY'))


def _client():
    if not is_configured():
        raise PaymentError('Stripe chưa được cấu hình.')
    stripe.api_key = current_app.config['STRIPE_SECRET_KEY']
    return stripe


def to_gateway_amount(price_vnd, vnd_per_unit=1000):
    """Convert integer VND to gateway cents at a fixed, lossy ratio.

    Rounds to whole dollars and never goes below the 1 USD minimum.
    """
    return max(100, round(price_vnd / vnd_per_unit) * 100)


def build_line_items(lines):
    ratio = current_app.config.get('VND_PER_GATEWAY_UNIT', 1000)
    currency = current_app.config.get('STRIPE_CURRENCY', 'usd')
    items = []
    for line in lines:
        name = line.product.title
        if line.option:
            name = f"{name} ({line.option})"
        product_data = {'name': name}
        if line.product.description:
            product_data['description'] = line.product.description
        items.append({
            'price_data': {
                'currency': currency,
                'product_data': product_data,
                'unit_amount': to_gateway_amount(line.product.price, ratio),
            },
            'quantity': line.quantity,
        })
    return items


def create_checkout_session(lines, origin):
    client = _client()
    try:
        session = client.checkout.Session.create(
            payment_method_types=['card'],
            line_items=build_line_items(lines),
            mode='payment',
            success_url=(
                origin + '/stripe-success?session_id={CHECKOUT_SESSION_ID}'
            ),
            cancel_url=origin + '/checkout',
        )
    except stripe.StripeError as e:
        logger.error("Stripe create session error: %s", e)
        raise PaymentError(str(e)) from e
    logger.info("Stripe checkout session created: %s", session.id)
    return session


def retrieve_checkout_session(session_id):
    client = _client()
    if not session_id:
        return None
    try:
        return client.checkout.Session.retrieve(session_id)
    except stripe.StripeError as e:
        logger.error("Stripe retrieve session error: %s", e)
        raise PaymentError(str(e)) from e
