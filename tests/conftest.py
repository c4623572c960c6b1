import pytest
from app import create_app
from app.config import TestingConfig
from app.extensions import db
from app.models import Product, User, UserRole

STRONG_PASSWORD = 'Secret@123'


@pytest.fixture
def app(tmp_path):
    class Config(TestingConfig):
        LAST_ERROR_FILE = str(tmp_path / 'last_error.log')

    app = create_app(Config)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(email='khach@example.com', password=STRONG_PASSWORD,
              role=UserRole.USER, name='Khách'):
        user = User(name=name, email=email, role=role)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def make_product(app):
    def _make(title='Áo thun basic', price=150000, category='Áo',
              image='/images/missing.jpg', stock=10, description=''):
        product = Product(
            title=title, price=price, category=category,
            stock=stock, description=description)
        product.set_images([image] if image else [])
        db.session.add(product)
        db.session.commit()
        return product
    return _make


@pytest.fixture
def login(client):
    def _login(email='khach@example.com', password=STRONG_PASSWORD):
        return client.post(
            '/login', data={'email': email, 'password': password})
    return _login


def session_cart(client):
    with client.session_transaction() as sess:
        return dict(sess.get('cart') or {})


def set_session_cart(client, cart):
    with client.session_transaction() as sess:
        sess['cart'] = dict(cart)
