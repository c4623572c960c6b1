from flask import Blueprint, render_template, jsonify, request, current_app
from flask import abort
from app.extensions import db
from app.models import Product, User
from app.services.image_service import safe_image
from app.utils import is_loopback_request
import logging
import os

logger = logging.getLogger(__name__)

bp = Blueprint('public', __name__)


def with_safe_images(products):
    return [(p, safe_image(p.image, p.title)) for p in products]


@bp.route('/')
def index():
    category = (request.args.get('category') or '').strip() or None
    query = Product.query
    if category:
        query = query.filter_by(category=category)
    products = query.order_by(Product.id).all()

    # A category page hides the hero banner and the top search box.
    return render_template(
        'shop/index.html',
        products=with_safe_images(products),
        active_category=category,
        hide_hero=bool(category),
        q=None,
    )


@bp.route('/_health')
def health():
    try:
        product_count = db.session.query(Product.id).count()
        user_count = db.session.query(User.id).count()
    except Exception as e:
        logger.error("Health check failed: %s", e)
        return jsonify({'ok': False, 'error': str(e)}), 500
    return jsonify({
        'ok': True,
        'productCount': product_count,
        'userCount': user_count,
        'pid': os.getpid(),
    })


@bp.route('/__last_error')
def last_error():
    if current_app.config.get('APP_ENV') == 'production':
        abort(404)
    if not is_loopback_request():
        abort(403)
    path = current_app.config.get('LAST_ERROR_FILE')
    text = ''
    try:
        with open(path, encoding='utf-8') as fh:
            text = fh.read()
    except (OSError, TypeError):
        pass
    return (text or 'No error logged'), 200, {
        'Content-Type': 'text/plain; charset=utf-8'}
