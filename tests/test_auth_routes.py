from app.extensions import db
from app.models import User, UserRole
from app.services import cart_service
from tests.conftest import STRONG_PASSWORD, session_cart, set_session_cart


def test_register_creates_user(client):
    resp = client.post('/register', data={
        'name': 'Lan', 'email': '  Lan@Example.COM ',
        'password': STRONG_PASSWORD})
    assert resp.status_code == 302
    assert resp.headers['Location'].endswith('/login')
    user = User.query.filter_by(email='lan@example.com').first()
    assert user is not None
    assert user.role == UserRole.USER
    assert user.check_password(STRONG_PASSWORD)


def test_register_password_policy(client):
    for weak in ('short@A', 'nouppercase@1', 'NoSpecial123'):
        resp = client.post('/register', data={
            'email': 'a@b.vn', 'password': weak})
        assert resp.status_code == 200
        assert 'ít nhất 8 ký tự' in resp.get_data(as_text=True)
    assert User.query.count() == 0


def test_register_requires_at_sign(client):
    resp = client.post('/register', data={
        'email': 'khongcoacong', 'password': STRONG_PASSWORD})
    assert 'thiếu @' in resp.get_data(as_text=True)


def test_register_rejects_line_breaks_in_email(client):
    resp = client.post('/register', data={
        'email': 'khach@example.com\nBcc: spy@x.vn',
        'password': STRONG_PASSWORD})
    assert resp.status_code == 200
    assert 'Email không hợp lệ.' in resp.get_data(as_text=True)
    assert User.query.count() == 0


def test_register_duplicate_email(client, make_user):
    make_user(email='lan@example.com')
    resp = client.post('/register', data={
        'email': 'LAN@example.com', 'password': STRONG_PASSWORD})
    assert resp.status_code == 200
    assert 'Email đã được sử dụng.' in resp.get_data(as_text=True)
    assert User.query.count() == 1


def test_login_errors(client, make_user):
    make_user()
    resp = client.post('/login', data={'email': '', 'password': ''})
    assert 'Vui lòng nhập email và mật khẩu.' in resp.get_data(as_text=True)
    resp = client.post('/login', data={
        'email': 'ai@example.com', 'password': 'x'})
    assert 'Email chưa được đăng ký.' in resp.get_data(as_text=True)
    resp = client.post('/login', data={
        'email': 'khach@example.com', 'password': 'wrong'})
    assert 'Mật khẩu không đúng.' in resp.get_data(as_text=True)


def test_login_merges_carts(client, make_user, login):
    user = make_user()
    cart_service.save_cart(user.id, {'1': 2, '3::L': 1})
    set_session_cart(client, {'1': 1, '2': 4})

    resp = login()
    assert resp.status_code == 302
    assert resp.headers['Location'].endswith('/')

    expected = {'1': 3, '3::L': 1, '2': 4}
    assert session_cart(client) == expected
    assert cart_service.load_cart(user.id) == expected


def test_logout_persists_session_cart(client, make_user, login):
    user = make_user()
    login()
    set_session_cart(client, {'7': 2})
    client.post('/logout')
    assert cart_service.load_cart(user.id) == {'7': 2}
    assert session_cart(client) == {}


def test_admin_login_goes_to_back_office(client, make_user, login):
    make_user(email='admin@local', role=UserRole.ADMIN)
    resp = login('admin@local')
    assert resp.headers['Location'].endswith('/admin')


def test_admin_routes_forbidden_for_anonymous_and_users(
        client, make_user, login):
    assert client.get('/admin').status_code == 403
    make_user()
    login()
    assert client.get('/admin').status_code == 403
    assert client.get('/admin/orders').status_code == 403


def test_revoked_admin_loses_access_next_request(client, make_user, login):
    admin = make_user(email='admin@local', role=UserRole.ADMIN)
    login('admin@local')
    assert client.get('/admin').status_code == 200

    admin.role = UserRole.USER
    db.session.commit()
    assert client.get('/admin').status_code == 403


def test_admin_is_redirected_away_from_account_pages(
        client, make_user, login):
    make_user(email='admin@local', role=UserRole.ADMIN)
    login('admin@local')
    resp = client.get('/account')
    assert resp.status_code == 302
    assert resp.headers['Location'].endswith('/admin')


def test_normalize_email():
    from app.blueprints.auth import normalize_email
    assert normalize_email('  Lan@Example.COM ') == 'lan@example.com'
    assert normalize_email(None) == ''
    assert normalize_email('a@b.vn\r\nBcc: c@d.vn') == ''
