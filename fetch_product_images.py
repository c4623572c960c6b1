"""Replace missing or placeholder product pictures with downloaded ones."""
from app import create_app
from app.extensions import db
from app.models import Product
from app.services.image_service import fetch_missing_images

app = create_app()


def _store_image(product, rel_path):
    images = [p for p in product.get_images() if p != product.image]
    product.set_images([rel_path] + images)
    db.session.commit()
    print(f"Saved {rel_path} for product {product.id}")


with app.app_context():
    products = Product.query.order_by(Product.id).all()
    added = fetch_missing_images(
        products, root=app.static_folder, on_saved=_store_image)
    print(f"Done. Images added: {added}")
