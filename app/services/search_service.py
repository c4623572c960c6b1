from app.models import Product
import re
import unicodedata
import logging

logger = logging.getLogger(__name__)


def normalize_text(text):
    """Strip Vietnamese diacritics and lowercase ("Áo" -> "ao").

    Note that "đ" has no canonical decomposition and is kept as is.
    """
    if not text:
        return ''
    decomposed = unicodedata.normalize('NFD', str(text))
    stripped = ''.join(c for c in decomposed if not unicodedata.combining(c))
    return stripped.lower()


def tokenize(query):
    return normalize_text(query).split()


def matches(haystack, tokens):
    if not tokens:
        return False
    for token in tokens:
        # Whole words only: "mu" must not hit "mua".
        if not re.search(r'\b' + re.escape(token) + r'\b', haystack):
            return False
    return True


def search_products(products, raw_query, limit=100):
    tokens = tokenize((raw_query or '').strip())
    if not tokens:
        return []
    results = []
    for product in products:
        haystack = normalize_text(
            f"{product.title or ''} {product.description or ''}")
        if matches(haystack, tokens):
            results.append(product)
            if len(results) >= limit:
                break
    return results


def search_catalog(raw_query, candidate_limit=500, result_limit=100):
    """Search the first ``candidate_limit`` catalog rows.

    Products beyond the window are never considered; this is a known
    ceiling of the in-Python matching.
    """
    q = (raw_query or '').strip()
    if not q:
        return Product.query.order_by(Product.id).limit(result_limit).all()
    candidates = Product.query.order_by(Product.id).limit(
        candidate_limit).all()
    results = search_products(candidates, q, limit=result_limit)
    logger.info("Search q=%r candidates=%d hits=%d",
                q, len(candidates), len(results))
    return results
