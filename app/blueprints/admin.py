from flask import Blueprint, request, render_template, redirect, url_for
from flask import current_app
from app.extensions import db
from app.exceptions import OrderStateError, ValidationError
from app.models import Order, OrderItem, Product, User, OrderStatus
from app.middleware import admin_required
from app.services import order_service
from app.services.image_service import safe_image
from app.utils import collect_uploads, save_upload, remove_upload, to_int
from app.utils import form_list
import logging

logger = logging.getLogger(__name__)

bp = Blueprint('admin', __name__)


def _back_to_orders():
    return redirect(url_for('admin.admin_orders'))


@bp.route('/admin', methods=['GET'])
@admin_required
def dashboard():
    products = Product.query.order_by(Product.id).all()
    return render_template(
        'admin/index.html',
        products=products,
        active_admin='products')


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------

@bp.route('/admin/orders', methods=['GET'])
@admin_required
def admin_orders():
    return render_template(
        'admin/orders.html',
        orders=order_service.all_orders(),
        statuses=list(OrderStatus),
        active_admin='orders')


@bp.route('/admin/orders/<int:order_id>', methods=['GET'])
@admin_required
def order_detail(order_id):
    order = Order.query.get_or_404(order_id)
    return render_template(
        'admin/order_detail.html',
        order=order,
        items=order.items.all(),
        user=db.session.get(User, order.user_id),
        order_address=order.address,
        default_address=order_service.default_address(order.user_id),
        active_admin='orders')


@bp.route('/admin/orders/<int:order_id>/status', methods=['POST'])
@admin_required
def set_order_status(order_id):
    order = Order.query.get_or_404(order_id)
    try:
        order_service.admin_set_status(order, request.form.get('status'))
    except (OrderStateError, ValidationError) as e:
        logger.info("Rejected status change on order %s: %s",
                    order.id, e.message)
    return _back_to_orders()


@bp.route('/admin/orders/<int:order_id>/delete', methods=['POST'])
@admin_required
def delete_order(order_id):
    order = Order.query.get_or_404(order_id)
    try:
        order_service.admin_delete_order(order)
    except OrderStateError:
        logger.info("Rejected delete of %s order %s",
                    order.status.value, order.id)
    return _back_to_orders()


@bp.route('/admin/orders/<int:order_id>/edit', methods=['GET'])
@admin_required
def edit_order(order_id):
    order = Order.query.get_or_404(order_id)
    if not order.is_editable:
        return _back_to_orders()
    return render_template(
        'admin/order_edit.html',
        order=order,
        items=order.items.all(),
        user=db.session.get(User, order.user_id),
        addresses=order_service.user_addresses(order.user_id),
        statuses=list(OrderStatus),
        active_admin='orders')


@bp.route('/admin/orders/<int:order_id>/update', methods=['POST'])
@admin_required
def update_order(order_id):
    order = Order.query.get_or_404(order_id)
    try:
        order_service.admin_update_order(
            order,
            request.form.get('status'),
            request.form.get('address_id'))
    except (OrderStateError, ValidationError) as e:
        logger.info("Rejected update on order %s: %s", order.id, e.message)
    return _back_to_orders()


# ---------------------------------------------------------------------------
# Sales report
# ---------------------------------------------------------------------------

@bp.route('/admin/sales', methods=['GET'])
@admin_required
def sales():
    report = order_service.sales_report(request.args.get('period', 'month'))
    rows = [dict(r, safe_image=safe_image(r['image'], r['title']))
            for r in report['rows']]
    return render_template(
        'admin/sales.html',
        rows=rows,
        period=report['period'],
        total_revenue=report['total_revenue'],
        active_admin='sales')


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

def _product_fields(form):
    return {
        'title': (form.get('title') or '').strip(),
        'description': form.get('description') or '',
        'price': to_int(form.get('price')),
        'stock': to_int(form.get('stock')),
        'category': (form.get('category') or '').strip() or None,
    }


@bp.route('/admin/new', methods=['GET'])
@admin_required
def new_product_form():
    return render_template('admin/new.html', active_admin='new')


@bp.route('/admin/new', methods=['POST'])
@admin_required
def create_product():
    product = Product(**_product_fields(request.form))
    images = [save_upload(f) for f in collect_uploads(request.files)]
    product.set_images(
        images, fallback=current_app.config['DEFAULT_PRODUCT_IMAGE'])
    db.session.add(product)
    db.session.commit()
    logger.info("Product created: %s (%d images)", product.id, len(images))
    return redirect(url_for('admin.dashboard'))


@bp.route('/admin/edit/<int:product_id>', methods=['GET'])
@admin_required
def edit_product_form(product_id):
    product = Product.query.get_or_404(product_id)
    return render_template(
        'admin/edit.html',
        product=product,
        images=product.get_images(),
        active_admin='products')


@bp.route('/admin/edit/<int:product_id>', methods=['POST'])
@admin_required
def update_product(product_id):
    product = Product.query.get_or_404(product_id)
    for field, value in _product_fields(request.form).items():
        setattr(product, field, value)

    images = product.get_images()
    to_remove = form_list('removeImages')
    if to_remove:
        images = [img for img in images if img not in to_remove]
        for path in to_remove:
            remove_upload(path)
    images += [save_upload(f) for f in collect_uploads(request.files)]

    product.set_images(images)
    db.session.commit()
    logger.info("Product updated: %s", product.id)
    return redirect(url_for('admin.dashboard'))


@bp.route('/admin/delete/<int:product_id>', methods=['POST'])
@admin_required
def delete_product(product_id):
    product = Product.query.get_or_404(product_id)
    # Order history keeps its lines with a null product.
    OrderItem.query.filter_by(product_id=product.id).update(
        {OrderItem.product_id: None}, synchronize_session=False)
    db.session.delete(product)
    db.session.commit()
    logger.info("Product deleted: %s", product_id)
    return redirect(url_for('admin.dashboard'))
