from flask import current_app, request, session
from werkzeug.utils import secure_filename
import os
import time
import logging

logger = logging.getLogger(__name__)


def wants_json_response() -> bool:
    accept = request.headers.get('Accept', '') or ''
    xrw = request.headers.get('X-Requested-With')
    return (
        request.is_json
        or ('application/json' in accept)
        or (xrw == 'XMLHttpRequest')
    )


def is_loopback_request() -> bool:
    return request.remote_addr in ('127.0.0.1', '::1')


def form_list(name):
    """Values of a repeated form field, accepting both ``x`` and ``x[]``."""
    values = request.form.getlist(name + '[]')
    if values:
        return values
    return request.form.getlist(name)


def to_int(value, default=0):
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


# ---------------------------------------------------------------------------
# Session cart: read once, pass explicitly, write back
# ---------------------------------------------------------------------------

def get_session_cart():
    cart = session.get('cart')
    return dict(cart) if isinstance(cart, dict) else {}


def store_session_cart(cart):
    session['cart'] = dict(cart or {})


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------

def collect_uploads(files, field=None):
    """Flatten single or multi-file form fields into one ordered list.

    Empty file inputs (no filename) are dropped.
    """
    names = [field] if field else list(files.keys())
    uploads = []
    for name in names:
        for f in files.getlist(name):
            if f and f.filename:
                uploads.append(f)
    return uploads


def save_upload(file_storage):
    """Store an upload under the static images dir, return its URL path."""
    sub_dir = current_app.config.get('UPLOAD_SUBDIR', 'images')
    abs_dir = os.path.join(current_app.static_folder, sub_dir)
    os.makedirs(abs_dir, exist_ok=True)

    filename = secure_filename(file_storage.filename or '') or 'upload'
    new_name = f"{int(time.time() * 1000)}-{filename}"
    file_storage.save(os.path.join(abs_dir, new_name))
    return f"/{sub_dir}/{new_name}"


def remove_upload(rel_path):
    """Best-effort removal of a previously uploaded image."""
    sub_dir = current_app.config.get('UPLOAD_SUBDIR', 'images')
    if not rel_path or not rel_path.startswith(f'/{sub_dir}/'):
        return False
    base = os.path.abspath(os.path.join(current_app.static_folder, sub_dir))
    abs_path = os.path.abspath(
        os.path.join(current_app.static_folder, rel_path.lstrip('/')))
    if os.path.commonpath([base, abs_path]) != base:
        return False
    try:
        os.remove(abs_path)
    except OSError as e:
        logger.warning("Could not remove image %s: %s", rel_path, e)
        return False
    return True
