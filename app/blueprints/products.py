from flask import Blueprint, request, jsonify, render_template, current_app
from app.extensions import db
from app.models import Product
from app.services.image_service import (
    product_view,
    primary_image,
    resolve_images,
)
from app.services.order_service import related_products
from app.services.search_service import search_catalog
from app.blueprints.public import with_safe_images
import logging

logger = logging.getLogger(__name__)

bp = Blueprint('products', __name__)


@bp.route('/search', methods=['GET'])
def search():
    q = request.args.get('q', '').strip()
    products = search_catalog(
        q,
        candidate_limit=current_app.config['SEARCH_CANDIDATE_LIMIT'],
        result_limit=current_app.config['SEARCH_RESULT_LIMIT'],
    )
    return render_template(
        'shop/index.html',
        products=with_safe_images(products),
        active_category=None,
        hide_hero=True,
        q=q,
        title='Tìm kiếm: ' + q,
    )


@bp.route('/product/<int:product_id>', methods=['GET'])
def product_detail(product_id):
    product = Product.query.get_or_404(product_id)
    images = resolve_images(product)
    main_image = primary_image(product, resolved=images)

    # Left/right navigation cycles through related items.
    related = [{
        'id': p.id,
        'title': p.title,
        'image': main_image if p.id == product.id else primary_image(p),
    } for p in related_products(product)]

    return render_template(
        'shop/product.html',
        product=product,
        images=images,
        main_image=main_image,
        related_products=related,
    )


@bp.route('/product-json/<int:product_id>', methods=['GET'])
def product_json(product_id):
    product = db.session.get(Product, product_id)
    if not product:
        return jsonify({'error': 'Not found'}), 404
    return jsonify({'product': product_view(product)})
