from flask import (
    Blueprint,
    request,
    jsonify,
    render_template,
    redirect,
    url_for,
    session,
)
from flask_login import login_required, current_user
from app.exceptions import EmptyCartError, OrderStateError, PaymentError
from app.services import checkout_service, order_service, payment_service
from app.services.image_service import safe_image
from app.utils import get_session_cart, store_session_cart
import logging

logger = logging.getLogger(__name__)

bp = Blueprint('orders', __name__)


def _finish_checkout(shipping_info):
    order = checkout_service.checkout(
        get_session_cart(), shipping_info, current_user)
    store_session_cart({})
    return render_template(
        'shop/checkout_success.html', order_id=order.id, total=order.total)


@bp.route('/checkout', methods=['GET'])
@login_required
def checkout_page():
    lines = checkout_service.cart_lines(get_session_cart())
    if not lines:
        return redirect(url_for('cart.view_cart'))
    items = [(line, safe_image(line.product.image, line.product.title))
             for line in lines]
    return render_template(
        'shop/checkout.html',
        items=items,
        total=checkout_service.cart_total(lines),
        default_address=order_service.default_address(current_user.id),
        stripe_enabled=payment_service.is_configured(),
    )


@bp.route('/checkout', methods=['POST'])
@login_required
def checkout():
    info = order_service.shipping_info_from(request.form)
    try:
        return _finish_checkout(info)
    except EmptyCartError:
        return redirect(url_for('cart.view_cart'))


@bp.route('/create-stripe-session', methods=['POST'])
def create_stripe_session():
    if not payment_service.is_configured():
        return jsonify({'error': 'Stripe not configured'}), 400
    if not current_user.is_authenticated:
        return jsonify({'error': 'Not authenticated'}), 401

    data = request.get_json(silent=True) or request.form
    info = order_service.shipping_info_from(data)
    # Re-read on /stripe-success to attach the address to the order.
    if order_service.has_shipping_info(info):
        session['checkout_address'] = info
    else:
        session.pop('checkout_address', None)

    lines = checkout_service.cart_lines(get_session_cart())
    if not lines:
        return jsonify({'error': 'Cart is empty'}), 400

    origin = request.host_url.rstrip('/')
    try:
        stripe_session = payment_service.create_checkout_session(
            lines, origin)
    except PaymentError as e:
        return jsonify({'error': e.message}), 500
    return jsonify({'id': stripe_session.id})


@bp.route('/stripe-success', methods=['GET'])
@login_required
def stripe_success():
    if not payment_service.is_configured():
        return redirect(url_for('orders.checkout_page'))
    session_id = request.args.get('session_id')
    if not session_id:
        return redirect(url_for('orders.checkout_page'))
    try:
        stripe_session = payment_service.retrieve_checkout_session(session_id)
    except PaymentError:
        return redirect(url_for('orders.checkout_page'))
    if getattr(stripe_session, 'payment_status', None) != 'paid':
        logger.warning("Stripe session %s is not paid", session_id)
        return redirect(url_for('orders.checkout_page'))

    # Uses the cart as it is now, not as it was when the intent was made.
    info = session.pop('checkout_address', None)
    try:
        return _finish_checkout(info)
    except EmptyCartError:
        logger.warning(
            "Stripe success for user %s with an empty cart",
            current_user.id)
        return redirect(url_for('orders.checkout_page'))


@bp.route('/orders', methods=['GET'])
@login_required
def order_list():
    return render_template(
        'shop/orders.html',
        orders=order_service.user_orders(current_user.id))


@bp.route('/order-status', methods=['GET'])
@login_required
def order_status():
    return render_template(
        'shop/order_status.html',
        orders=order_service.user_orders(current_user.id))


@bp.route('/order/<int:order_id>', methods=['GET'])
@login_required
def order_detail(order_id):
    order = order_service.get_user_order_or_404(order_id, current_user.id)
    return render_template(
        'shop/order_detail.html',
        order=order,
        items=order.items.all(),
        order_address=order.address,
        default_address=order_service.default_address(current_user.id),
    )


@bp.route('/order/<int:order_id>/edit', methods=['GET'])
@login_required
def edit_order(order_id):
    order = order_service.get_user_order_or_404(order_id, current_user.id)
    if not order.is_editable:
        raise OrderStateError()
    return render_template(
        'shop/order_edit.html',
        order=order,
        items=order.items.all(),
        order_address=order.address,
        user=current_user,
    )


@bp.route('/order/<int:order_id>/update', methods=['POST'])
@login_required
def update_order(order_id):
    order = order_service.get_user_order_or_404(order_id, current_user.id)
    order_service.update_order_address(
        order, current_user.id, order_service.shipping_info_from(request.form))
    return redirect(url_for('orders.order_status'))


@bp.route('/order/<int:order_id>/cancel', methods=['POST'])
@login_required
def cancel_order(order_id):
    order = order_service.get_user_order_or_404(order_id, current_user.id)
    try:
        order_service.cancel_order(order)
    except OrderStateError:
        logger.info("Ignored cancel of %s order %s",
                    order.status.value, order.id)
    return redirect(url_for('orders.order_status'))
