from types import SimpleNamespace
import pytest
import stripe
from app.models import Order, OrderStatus
from app.services import payment_service
from app.services.checkout_service import CheckoutLine
from tests.conftest import session_cart, set_session_cart


@pytest.mark.parametrize('vnd, cents', [
    (150000, 15000),
    (90000, 9000),
    (1499, 100),
    (400, 100),
    (0, 100),
])
def test_to_gateway_amount(vnd, cents):
    assert payment_service.to_gateway_amount(vnd) == cents


def test_line_items_carry_option_and_quantity(app, make_product):
    product = make_product(title='Áo hoodie', price=280000)
    items = payment_service.build_line_items(
        [CheckoutLine(product, 2, 'XL', f'{product.id}::XL')])
    assert items == [{
        'price_data': {
            'currency': 'usd',
            'product_data': {'name': 'Áo hoodie (XL)'},
            'unit_amount': 28000,
        },
        'quantity': 2,
    }]


@pytest.fixture
def fake_stripe(app, monkeypatch):
    app.config['STRIPE_SECRET_KEY'] = 'sk_test_dummy'
    calls = {}

    def create(**kwargs):
        calls['create'] = kwargs
        return SimpleNamespace(id='cs_test_123')

    def retrieve(session_id):
        calls['retrieve'] = session_id
        if session_id == 'bad':
            raise stripe.InvalidRequestError('No such session', 'id')
        status = 'unpaid' if session_id == 'cs_unpaid' else 'paid'
        return SimpleNamespace(id=session_id, payment_status=status)

    monkeypatch.setattr(stripe.checkout.Session, 'create', create)
    monkeypatch.setattr(stripe.checkout.Session, 'retrieve', retrieve)
    return calls


def test_stripe_session_not_configured(client):
    resp = client.post('/create-stripe-session', json={})
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Stripe not configured'


def test_stripe_session_requires_login(client, fake_stripe):
    resp = client.post('/create-stripe-session', json={})
    assert resp.status_code == 401


def test_stripe_session_empty_cart(client, fake_stripe, make_user, login):
    make_user()
    login()
    resp = client.post('/create-stripe-session', json={})
    assert resp.status_code == 400
    assert 'create' not in fake_stripe


def test_stripe_round_trip(client, fake_stripe, make_user, make_product,
                           login):
    user = make_user()
    product = make_product(price=150000)
    login()
    set_session_cart(client, {f'{product.id}::M': 2})

    resp = client.post('/create-stripe-session', json={
        'recipient': 'Lan', 'phone': '0912345678',
        'street': '5 Hai Bà Trưng', 'city': 'Hà Nội'})
    assert resp.get_json() == {'id': 'cs_test_123'}
    created = fake_stripe['create']
    assert created['mode'] == 'payment'
    assert created['line_items'][0]['price_data']['unit_amount'] == 15000
    assert created['success_url'].endswith(
        '/stripe-success?session_id={CHECKOUT_SESSION_ID}')

    resp = client.get('/stripe-success?session_id=cs_test_123')
    assert resp.status_code == 200
    order = Order.query.filter_by(user_id=user.id).one()
    assert order.status == OrderStatus.PAID
    assert order.total == 300000
    assert order.items.one().option == 'M'
    assert order.address.street == '5 Hai Bà Trưng'
    assert session_cart(client) == {}


def test_stripe_success_with_bad_session(client, fake_stripe, make_user,
                                         make_product, login):
    make_user()
    product = make_product()
    login()
    set_session_cart(client, {str(product.id): 1})
    resp = client.get('/stripe-success?session_id=bad')
    assert resp.status_code == 302
    assert resp.headers['Location'].endswith('/checkout')
    assert Order.query.count() == 0


def test_stripe_success_without_session_id(client, fake_stripe, make_user,
                                           make_product, login):
    make_user()
    product = make_product()
    login()
    set_session_cart(client, {str(product.id): 1})
    resp = client.get('/stripe-success')
    assert resp.status_code == 302
    assert resp.headers['Location'].endswith('/checkout')
    assert 'retrieve' not in fake_stripe
    assert Order.query.count() == 0
    assert session_cart(client) == {str(product.id): 1}


def test_stripe_success_with_unpaid_session(client, fake_stripe, make_user,
                                            make_product, login):
    make_user()
    product = make_product()
    login()
    set_session_cart(client, {str(product.id): 1})
    resp = client.get('/stripe-success?session_id=cs_unpaid')
    assert resp.status_code == 302
    assert resp.headers['Location'].endswith('/checkout')
    assert Order.query.count() == 0


def test_abandoned_stripe_address_is_dropped(client, fake_stripe, make_user,
                                             make_product, login):
    user = make_user()
    product = make_product()
    login()
    set_session_cart(client, {str(product.id): 1})

    client.post('/create-stripe-session', json={
        'recipient': 'Lan', 'phone': '0912345678',
        'street': '5 Hai Bà Trưng', 'city': 'Hà Nội'})
    with client.session_transaction() as sess:
        assert sess['checkout_address']['street'] == '5 Hai Bà Trưng'

    client.post('/create-stripe-session', json={})
    with client.session_transaction() as sess:
        assert 'checkout_address' not in sess

    resp = client.get('/stripe-success?session_id=cs_test_123')
    assert resp.status_code == 200
    order = Order.query.filter_by(user_id=user.id).one()
    assert order.address_id is None
