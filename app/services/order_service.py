from app.extensions import db
from app.models import (
    Address,
    Order,
    OrderItem,
    OrderStatus,
    Product,
    can_transition,
)
from app.exceptions import OrderStateError, ValidationError
from sqlalchemy import func
from datetime import datetime, timedelta
import re
import logging

logger = logging.getLogger(__name__)

PHONE_RE = re.compile(r'^0\d{9}$')

SALES_PERIOD_DAYS = {'day': 1, 'week': 7, 'month': 30}

ADDRESS_FIELDS = ('recipient', 'phone', 'street', 'city', 'postcode')


def clean_phone(phone):
    return re.sub(r'\s+', '', str(phone or ''))


def is_valid_phone(phone):
    return bool(PHONE_RE.match(clean_phone(phone)))


def shipping_info_from(form):
    return {f: (form.get(f) or '').strip() for f in ADDRESS_FIELDS}


def has_shipping_info(info):
    info = info or {}
    return all(info.get(f) for f in ('recipient', 'phone', 'street', 'city'))


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------

def add_address(user_id, info, validate=True, commit=True):
    info = info or {}
    if validate:
        if not has_shipping_info(info):
            raise ValidationError('Vui lòng điền đầy đủ thông tin địa chỉ.')
        if not is_valid_phone(info.get('phone')):
            raise ValidationError(
                'Số điện thoại không hợp lệ. Vui lòng nhập 10 chữ số '
                'và bắt đầu bằng 0.')
    address = Address(
        user_id=user_id,
        recipient=info.get('recipient'),
        phone=clean_phone(info.get('phone')) if validate else info.get(
            'phone'),
        street=info.get('street'),
        city=info.get('city'),
        postcode=info.get('postcode') or None,
        is_default=False,
    )
    db.session.add(address)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return address


def delete_address(user_id, address_id):
    deleted = Address.query.filter_by(
        id=address_id, user_id=user_id).delete()
    db.session.commit()
    return deleted


def set_default_address(user_id, address_id):
    """Make one address the default in a single transaction.

    Clears every default flag of the user, then sets the chosen one; on
    failure nothing is changed.
    """
    try:
        Address.query.filter_by(user_id=user_id).update(
            {Address.is_default: False}, synchronize_session=False)
        updated = Address.query.filter_by(
            id=address_id, user_id=user_id).update(
            {Address.is_default: True}, synchronize_session=False)
        if not updated:
            db.session.rollback()
            return False
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Setting default address %s failed", address_id)
        raise
    return True


def default_address(user_id):
    return Address.query.filter_by(user_id=user_id, is_default=True).first()


def user_addresses(user_id):
    return Address.query.filter_by(user_id=user_id).order_by(
        Address.created_at.desc(), Address.id.desc()).all()


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------

def orders_with_items(query):
    return [(order, order.items.all()) for order in query.all()]


def user_orders(user_id, limit=None):
    q = Order.query.filter_by(user_id=user_id).order_by(
        Order.created_at.desc(), Order.id.desc())
    if limit:
        q = q.limit(limit)
    return orders_with_items(q)


def all_orders():
    return orders_with_items(
        Order.query.order_by(Order.created_at.desc(), Order.id.desc()))


def get_user_order_or_404(order_id, user_id):
    return Order.query.filter_by(id=order_id, user_id=user_id).first_or_404()


def cancel_order(order):
    if not can_transition(order.status, OrderStatus.CANCELLED):
        raise OrderStateError()
    order.status = OrderStatus.CANCELLED
    db.session.commit()
    logger.info("Order %s cancelled by user %s", order.id, order.user_id)
    return order


def update_order_address(order, user_id, info):
    if order.status.is_terminal:
        raise OrderStateError()
    address = add_address(user_id, info, validate=False, commit=False)
    order.address_id = address.id
    db.session.commit()
    return address


def admin_set_status(order, status):
    target = OrderStatus.parse(status)
    if target is None:
        raise ValidationError('Trạng thái không hợp lệ.')
    if not can_transition(order.status, target, by_admin=True):
        raise OrderStateError()
    order.status = target
    db.session.commit()
    logger.info("Admin set order %s status=%s", order.id, target.value)
    return order


def admin_update_order(order, status, address_id):
    target = OrderStatus.parse(status) or OrderStatus.PENDING
    if not can_transition(order.status, target, by_admin=True):
        raise OrderStateError()
    if address_id:
        try:
            address_id = int(address_id)
        except (TypeError, ValueError):
            raise ValidationError('Địa chỉ không hợp lệ.')
        if not Address.query.filter_by(
                id=address_id, user_id=order.user_id).first():
            raise ValidationError('Địa chỉ không hợp lệ.')
    order.status = target
    order.address_id = address_id or None
    db.session.commit()
    return order


def admin_delete_order(order):
    if order.status.is_terminal:
        raise OrderStateError('Không thể xoá đơn này')
    OrderItem.query.filter_by(order_id=order.id).delete()
    db.session.delete(order)
    db.session.commit()
    logger.info("Admin deleted order %s", order.id)


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------

def sales_report(period='month', now=None):
    period = period if period in SALES_PERIOD_DAYS else 'month'
    now = now or datetime.utcnow()
    since = now - timedelta(days=SALES_PERIOD_DAYS[period])

    total_qty = func.sum(OrderItem.quantity).label('total_qty')
    revenue = func.sum(OrderItem.quantity * OrderItem.price).label('revenue')
    rows = db.session.query(
        OrderItem.product_id,
        Product.title,
        Product.image,
        total_qty,
        revenue,
    ).join(
        Order, Order.id == OrderItem.order_id
    ).outerjoin(
        Product, Product.id == OrderItem.product_id
    ).filter(
        Order.status != OrderStatus.CANCELLED,
        Order.created_at >= since,
    ).group_by(
        OrderItem.product_id, Product.title, Product.image
    ).order_by(total_qty.desc()).limit(50).all()

    report = [{
        'product_id': r.product_id,
        'title': r.title or f'Sản phẩm #{r.product_id}',
        'image': r.image,
        'total_qty': int(r.total_qty or 0),
        'revenue': int(r.revenue or 0),
    } for r in rows]
    total_revenue = sum(r['revenue'] for r in report)
    return {
        'period': period,
        'since': since,
        'rows': report,
        'total_revenue': total_revenue,
    }


def related_products(product, limit=50):
    """Same-category products by units sold, the product itself first."""
    if not product.category:
        return [product]
    sold = db.session.query(
        OrderItem.product_id.label('product_id'),
        func.sum(OrderItem.quantity).label('qty_sum'),
    ).group_by(OrderItem.product_id).subquery()
    sold_qty = func.coalesce(sold.c.qty_sum, 0)
    rows = db.session.query(Product).outerjoin(
        sold, sold.c.product_id == Product.id
    ).filter(
        Product.category == product.category,
        Product.id != product.id,
    ).order_by(sold_qty.desc(), Product.id).limit(limit).all()
    return [product] + rows


def categories():
    rows = db.session.query(Product.category).filter(
        Product.category.isnot(None)).distinct().order_by(
        Product.category).all()
    return [r[0] for r in rows if r[0]]
