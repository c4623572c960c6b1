from flask import current_app
import os
import time
import logging
import requests
from urllib.parse import quote

logger = logging.getLogger(__name__)

HERO_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.webp', '.avif', '.gif', '.svg')

# (dir under static root, url prefix), checked in order
HERO_CANDIDATES = (
    ('image', '/image/'),
    ('hero', '/hero/'),
    (os.path.join('images', 'hero'), '/images/hero/'),
)


def _static_root(root=None):
    return os.path.abspath(root or current_app.static_folder)


def _abs_path(rel_path, root=None):
    base = _static_root(root)
    candidate = os.path.abspath(
        os.path.join(base, str(rel_path).lstrip('/\\')))
    # Refuse anything that escapes the static root.
    if os.path.commonpath([base, candidate]) != base:
        return None
    return candidate


def _min_bytes():
    try:
        return current_app.config.get('MIN_IMAGE_BYTES', 1024)
    except RuntimeError:
        return 1024


def is_valid_image_path(rel_path, root=None):
    if not rel_path:
        return False
    abs_path = _abs_path(rel_path, root)
    if not abs_path or not os.path.isfile(abs_path):
        return False
    return os.path.getsize(abs_path) > _min_bytes()


def choose_placeholder(title, placeholders=None):
    placeholders = placeholders or current_app.config['PLACEHOLDER_IMAGES']
    n = sum(ord(c) for c in str(title or ''))
    return placeholders[n % len(placeholders)]


def safe_image(rel_path, title, root=None):
    if is_valid_image_path(rel_path, root):
        return rel_path
    return choose_placeholder(title)


def resolve_images(product, root=None):
    return [
        safe_image(path, product.title, root)
        for path in product.get_images()
    ]


def primary_image(product, root=None, resolved=None):
    resolved = resolve_images(product, root) if resolved is None else resolved
    if resolved:
        return resolved[0]
    return choose_placeholder(product.title)


def product_view(product, root=None):
    """Serializable view of a product with servable image paths."""
    images = resolve_images(product, root)
    return {
        'id': product.id,
        'title': product.title,
        'description': product.description,
        'price': product.price,
        'category': product.category,
        'stock': product.stock,
        'image': product.image,
        'images': images,
        'safeImage': primary_image(product, root, images),
    }


def find_hero_images(root=None, fallback=()):
    base = _static_root(root)
    for sub_dir, prefix in HERO_CANDIDATES:
        folder = os.path.join(base, sub_dir)
        if not os.path.isdir(folder):
            continue
        files = sorted(
            f for f in os.listdir(folder)
            if f.lower().endswith(HERO_EXTENSIONS)
        )
        if files:
            return [prefix + f for f in files]
    return list(fallback)


# ----------------------------------------------------------------------
# Maintenance: replace missing or stub product pictures
# ----------------------------------------------------------------------

def needs_replacement_image(rel_path, root=None):
    """Download heuristic: svg or placeholder paths always count as stubs.

    Stricter than ``is_valid_image_path``, which decides what to serve.
    """
    if not rel_path:
        return True
    lower = rel_path.lower()
    if 'placeholder' in lower or 'default.svg' in lower or lower.endswith(
            '.svg'):
        return True
    abs_path = _abs_path(rel_path, root)
    if not abs_path or not os.path.isfile(abs_path):
        return True
    return os.path.getsize(abs_path) < 1024


def keyword_for_category(category):
    if not category:
        return 'clothing'
    c = str(category).lower()
    if any(k in c for k in ('áo', 'ao', 'shirt', 'polo', 'hoodie')):
        return 'shirt'
    if any(k in c for k in ('quần', 'quan', 'jeans', 'trousers', 'short')):
        return 'pants'
    if any(k in c for k in ('váy', 'dam', 'dress')):
        return 'dress'
    if any(k in c for k in ('mũ', 'mu', 'cap', 'beanie', 'bucket')):
        return 'hat'
    if any(k in c for k in ('khoác', 'coat', 'jacket')):
        return 'jacket'
    return 'clothing'


def download_image(url, dest, session=None, timeout=30):
    # requests follows redirects itself (unsplash -> images.unsplash.com)
    http = session or requests
    with http.get(url, stream=True, timeout=timeout) as response:
        response.raise_for_status()
        try:
            with open(dest, 'wb') as fh:
                for chunk in response.iter_content(chunk_size=8192):
                    if chunk:
                        fh.write(chunk)
        except OSError:
            if os.path.exists(dest):
                os.remove(dest)
            raise
    return dest


def fetch_missing_images(products, root=None, session=None, delay=0.3,
                         on_saved=None):
    """Download a stand-in picture for every product with a stub image.

    ``on_saved(product, rel_path)`` is called after each successful
    download; the caller persists the new path. Returns the number of
    images added.
    """
    images_dir = os.path.join(_static_root(root), 'images')
    os.makedirs(images_dir, exist_ok=True)
    added = 0
    for product in products:
        if not needs_replacement_image(product.image, root):
            continue
        keyword = keyword_for_category(product.category or product.title)
        filename = f"{int(time.time() * 1000)}-{product.id}.jpg"
        dest = os.path.join(images_dir, filename)
        url = f"https://source.unsplash.com/800x800/?{quote(keyword)}"
        logger.info(
            "Fetching image for product %s (%s) keyword=%s",
            product.id, product.title, keyword)
        try:
            try:
                download_image(url, dest, session=session)
            except requests.RequestException as e:
                logger.warning(
                    "Unsplash failed for product %s, falling back to "
                    "picsum: %s", product.id, e)
                seed = quote(f"{keyword}-{product.id}"[:80])
                download_image(
                    f"https://picsum.photos/seed/{seed}/800/800",
                    dest, session=session)
        except (requests.RequestException, OSError) as e:
            logger.error(
                "Failed to download image for product %s: %s",
                product.id, e)
            continue
        rel = '/images/' + filename
        if on_saved:
            on_saved(product, rel)
        added += 1
        if delay:
            time.sleep(delay)
    return added
