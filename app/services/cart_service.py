"""Cart line keys, pure cart operations and per-user cart persistence.

A cart is a plain ``dict`` mapping a line key to a positive quantity. The
line key is the product id, or ``"<product id>::<option>"`` when a variant
option such as a size was chosen. Every operation below returns a new dict
and leaves its inputs alone; the caller decides where the result lives.
"""
from app.extensions import db
from app.models import Cart
from app.utils import to_int
import json
import logging

logger = logging.getLogger(__name__)

KEY_SEPARATOR = '::'


def encode_key(product_id, option=None):
    pid = str(product_id).strip()
    if option:
        return f'{pid}{KEY_SEPARATOR}{option}'
    return pid


def decode_key(key):
    """Split a line key on the first separator into ``(product_id, option)``."""
    pid, sep, option = str(key).partition(KEY_SEPARATOR)
    return pid, (option if sep and option else None)


def product_id_of(key):
    return decode_key(key)[0]


def add_item(cart, product_id, option=None, qty=1):
    qty = to_int(qty)
    if qty <= 0:
        qty = 1
    key = encode_key(product_id, option)
    new_cart = dict(cart or {})
    new_cart[key] = to_int(new_cart.get(key)) + qty
    return new_cart


def remove_item(cart, product_id):
    new_cart = dict(cart or {})
    key = str(product_id)
    if key in new_cart:
        del new_cart[key]
        return new_cart
    return {
        k: q for k, q in new_cart.items()
        if product_id_of(k) != key
    }


def set_quantity(cart, key, qty):
    new_cart = dict(cart or {})
    qty = to_int(qty)
    if qty <= 0:
        new_cart.pop(str(key), None)
    else:
        new_cart[str(key)] = qty
    return new_cart


def bulk_replace(product_ids, qtys, options=None):
    """Rebuild a cart from the parallel arrays of a multi-row form."""
    options = list(options or [])
    new_cart = {}
    for i, pid in enumerate(product_ids or []):
        qty = to_int(qtys[i]) if i < len(qtys) else 0
        if qty <= 0:
            continue
        option = options[i] if i < len(options) else None
        key = encode_key(pid, option)
        new_cart[key] = new_cart.get(key, 0) + qty
    return new_cart


def merge(a, b):
    merged = {}
    for source in (a or {}, b or {}):
        for key, qty in source.items():
            qty = to_int(qty)
            if qty <= 0:
                continue
            merged[key] = merged.get(key, 0) + qty
    return merged


def cart_count(cart):
    return sum(max(to_int(q), 0) for q in (cart or {}).values())


def load_cart(user_id):
    row = Cart.query.filter_by(user_id=user_id).first()
    if not row or not row.items:
        return {}
    try:
        data = json.loads(row.items)
    except ValueError:
        logger.warning("Corrupt persisted cart for user %s", user_id)
        return {}
    if not isinstance(data, dict):
        return {}
    return {str(k): to_int(v) for k, v in data.items() if to_int(v) > 0}


def save_cart(user_id, cart):
    payload = json.dumps(cart or {}, ensure_ascii=False)
    row = Cart.query.filter_by(user_id=user_id).first()
    if row:
        row.items = payload
    else:
        db.session.add(Cart(user_id=user_id, items=payload))
    db.session.commit()
