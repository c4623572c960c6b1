from flask import Blueprint, request, render_template, redirect, url_for
from flask_login import current_user
from app.extensions import db
from app.models import Product
from app.services import cart_service, checkout_service, order_service
from app.services.image_service import safe_image
from app.utils import (
    form_list,
    get_session_cart,
    store_session_cart,
    to_int,
)
import logging

logger = logging.getLogger(__name__)

bp = Blueprint('cart', __name__)


@bp.route('/cart', methods=['GET'])
def view_cart():
    lines = checkout_service.cart_lines(get_session_cart())
    items = [(line, safe_image(line.product.image, line.product.title))
             for line in lines]

    # Recent orders let the shopper follow status changes from here.
    recent_orders = []
    if current_user.is_authenticated:
        recent_orders = order_service.user_orders(current_user.id, limit=5)

    return render_template(
        'shop/cart.html',
        items=items,
        total=checkout_service.cart_total(lines),
        recent_orders=recent_orders,
    )


@bp.route('/cart/add', methods=['POST'])
def add_to_cart():
    product_id = to_int(request.form.get('productId'), None)
    product = None
    if product_id is not None:
        product = db.session.get(Product, product_id)
    if not product:
        return 'Invalid product', 400

    cart = cart_service.add_item(
        get_session_cart(),
        product.id,
        (request.form.get('option') or '').strip() or None,
        request.form.get('qty'),
    )
    store_session_cart(cart)
    return redirect(url_for('cart.view_cart'))


@bp.route('/cart/update', methods=['POST'])
def update_cart():
    product_ids = form_list('productId')
    qtys = form_list('qty')

    # Multi-row submit (productId[] / repeated fields): rebuild the cart.
    if 'productId[]' in request.form or len(product_ids) > 1:
        cart = cart_service.bulk_replace(
            product_ids, qtys, form_list('option'))
        store_session_cart(cart)
        return redirect(url_for('cart.view_cart'))

    if not product_ids:
        return redirect(url_for('cart.view_cart'))
    key = product_ids[0]
    qty = qtys[0] if qtys else 0
    store_session_cart(
        cart_service.set_quantity(get_session_cart(), key, qty))
    return redirect(url_for('cart.view_cart'))


@bp.route('/cart/remove', methods=['POST'])
def remove_from_cart():
    product_id = (request.form.get('productId') or '').strip()
    if product_id:
        store_session_cart(
            cart_service.remove_item(get_session_cart(), product_id))
    return redirect(url_for('cart.view_cart'))


@bp.route('/buy-now', methods=['POST'])
def buy_now():
    if not current_user.is_authenticated:
        return redirect(url_for('auth.login'))
    order = checkout_service.buy_now(
        request.form.get('productId'),
        request.form.get('qty'),
        (request.form.get('option') or '').strip() or None,
        current_user,
    )
    if not order:
        return redirect(url_for('public.index'))
    return render_template(
        'shop/checkout_success.html', order_id=order.id, total=order.total)
