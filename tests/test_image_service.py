import pytest
from app.services import image_service
from app.services.image_service import (
    choose_placeholder,
    find_hero_images,
    is_valid_image_path,
    keyword_for_category,
    needs_replacement_image,
    safe_image,
)

PLACEHOLDERS = (
    '/images/placeholder-blue.svg',
    '/images/placeholder-green.svg',
    '/images/placeholder-gray.svg',
)


@pytest.fixture
def static_root(tmp_path):
    images = tmp_path / 'images'
    images.mkdir()
    (images / 'small.jpg').write_bytes(b'x' * 500)
    (images / 'big.jpg').write_bytes(b'x' * 2000)
    (images / 'exact.jpg').write_bytes(b'x' * 1024)
    return tmp_path


def test_image_must_exist_and_exceed_min_size(app, static_root):
    root = str(static_root)
    assert is_valid_image_path('/images/big.jpg', root)
    assert not is_valid_image_path('/images/small.jpg', root)
    assert not is_valid_image_path('/images/exact.jpg', root)
    assert not is_valid_image_path('/images/nope.jpg', root)
    assert not is_valid_image_path('', root)
    assert not is_valid_image_path(None, root)


def test_path_outside_static_root_is_invalid(app, static_root):
    assert not is_valid_image_path('/../../etc/passwd', str(static_root))


def test_choose_placeholder_is_code_point_sum_mod_three(app):
    title = 'Áo'
    expected = PLACEHOLDERS[sum(ord(c) for c in title) % 3]
    assert choose_placeholder(title) == expected
    assert choose_placeholder(title) == choose_placeholder(title)
    assert choose_placeholder('') == PLACEHOLDERS[0]


def test_safe_image_falls_back_to_placeholder(app, static_root):
    root = str(static_root)
    assert safe_image('/images/big.jpg', 'Mũ len', root) == '/images/big.jpg'
    assert safe_image('/images/small.jpg', 'Mũ len', root) in PLACEHOLDERS


def test_product_view_exposes_safe_image(app, static_root, make_product):
    product = make_product(image='/images/small.jpg')
    product.set_images(['/images/small.jpg', '/images/big.jpg'])
    view = image_service.product_view(product, root=str(static_root))
    assert view['images'][1] == '/images/big.jpg'
    assert view['safeImage'] in PLACEHOLDERS
    assert view['price'] == product.price


def test_hero_images_first_non_empty_folder(tmp_path):
    (tmp_path / 'hero').mkdir()
    (tmp_path / 'hero' / 'b.png').write_bytes(b'1')
    (tmp_path / 'hero' / 'a.jpg').write_bytes(b'1')
    (tmp_path / 'hero' / 'notes.txt').write_bytes(b'1')
    assert find_hero_images(str(tmp_path), ['/fallback.jpg']) == [
        '/hero/a.jpg', '/hero/b.png']


def test_hero_images_fallback(tmp_path):
    assert find_hero_images(str(tmp_path), ('/x.jpg',)) == ['/x.jpg']


def test_replacement_heuristic_is_stricter(static_root):
    root = str(static_root)
    assert needs_replacement_image('/images/placeholder-blue.svg', root)
    assert needs_replacement_image('/images/logo.svg', root)
    assert needs_replacement_image('/images/small.jpg', root)
    assert needs_replacement_image(None, root)
    assert not needs_replacement_image('/images/big.jpg', root)


@pytest.mark.parametrize('category, keyword', [
    ('Áo', 'shirt'),
    ('Quần', 'pants'),
    ('Mũ', 'hat'),
    ('dress', 'dress'),
    (None, 'clothing'),
    ('Giày', 'clothing'),
])
def test_keyword_for_category(category, keyword):
    assert keyword_for_category(category) == keyword


class _FakeResponse:
    def __init__(self, payload):
        self.payload = payload

    def raise_for_status(self):
        pass

    def iter_content(self, chunk_size=8192):
        yield self.payload

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class _FakeSession:
    def __init__(self):
        self.urls = []

    def get(self, url, stream=False, timeout=None):
        self.urls.append(url)
        return _FakeResponse(b'j' * 4096)


def test_fetch_missing_images_only_touches_stubs(static_root, make_product):
    stub = make_product(title='Mũ len', category='Mũ',
                        image='/images/placeholder-gray.svg')
    real = make_product(title='Áo', image='/images/big.jpg')
    saved = []
    session = _FakeSession()

    added = image_service.fetch_missing_images(
        [stub, real], root=str(static_root), session=session, delay=0,
        on_saved=lambda p, rel: saved.append((p.id, rel)))

    assert added == 1
    assert len(session.urls) == 1
    assert 'hat' in session.urls[0]
    assert saved[0][0] == stub.id
    assert (static_root / saved[0][1].lstrip('/')).stat().st_size == 4096
