from app.extensions import db
from app.models import Order, OrderItem, OrderStatus, Product
from app.exceptions import EmptyCartError
from app.services import cart_service, mail_service
from app.services.order_service import add_address, has_shipping_info
from dataclasses import dataclass
from typing import Optional
import logging

logger = logging.getLogger(__name__)


@dataclass
class CheckoutLine:
    product: Product
    quantity: int
    option: Optional[str] = None
    key: Optional[str] = None

    @property
    def line_total(self):
        return self.product.price * self.quantity


def cart_lines(cart):
    """Resolve cart keys against the current catalog.

    Prices are read now, not when the item was added; unknown products are
    dropped silently.
    """
    lines = []
    for key, qty in (cart or {}).items():
        pid, option = cart_service.decode_key(key)
        try:
            qty = int(qty)
            product_id = int(pid)
        except (TypeError, ValueError):
            continue
        if qty <= 0:
            continue
        product = db.session.get(Product, product_id)
        if not product:
            continue
        lines.append(CheckoutLine(product, qty, option, key))
    return lines


def cart_total(lines):
    return sum(line.line_total for line in lines)


def _place_order(user, lines, status, address_id=None):
    order = Order(
        user_id=user.id,
        total=cart_total(lines),
        status=status,
        address_id=address_id,
    )
    db.session.add(order)
    db.session.flush()
    for line in lines:
        db.session.add(OrderItem(
            order_id=order.id,
            product_id=line.product.id,
            quantity=line.quantity,
            price=line.product.price,
            option=line.option or None,
        ))
    db.session.commit()
    logger.info(
        "Order %s created user=%s total=%s items=%d status=%s",
        order.id, user.id, order.total, len(lines), status.value)
    return order


def checkout(cart, shipping_info, user):
    """Turn a cart snapshot into a paid order.

    The caller owns the session cart and must reset it afterwards; the
    persisted cart is cleared here.
    """
    lines = cart_lines(cart)
    if not lines:
        raise EmptyCartError()

    address_id = None
    if has_shipping_info(shipping_info):
        address = add_address(
            user.id, shipping_info, validate=False, commit=False)
        address_id = address.id

    order = _place_order(user, lines, OrderStatus.PAID, address_id)
    cart_service.save_cart(user.id, {})
    mail_service.send_order_confirmation(user, order)
    return order


def buy_now(product_id, qty, option, user):
    product = None
    try:
        product = db.session.get(Product, int(product_id))
    except (TypeError, ValueError):
        pass
    if not product:
        return None
    try:
        qty = int(qty)
    except (TypeError, ValueError):
        qty = 1
    if qty <= 0:
        qty = 1
    line = CheckoutLine(product, qty, option or None)
    return _place_order(user, [line], OrderStatus.PAID)
