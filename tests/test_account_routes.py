import io
from app.extensions import db
from app.models import Address, User
from tests.conftest import STRONG_PASSWORD


def test_account_requires_login(client):
    resp = client.get('/account')
    assert resp.status_code == 302
    assert '/login' in resp.headers['Location']


def test_update_profile(client, make_user, login):
    user = make_user()
    login()
    resp = client.post('/account', data={
        'name': 'Lan Anh', 'phone': '0912 345 678',
        'gender': 'Nữ', 'dob': '1999-02-03'})
    assert resp.status_code == 302
    user = db.session.get(User, user.id)
    assert user.name == 'Lan Anh'
    assert user.phone == '0912345678'


def test_update_profile_rejects_bad_phone(client, make_user, login):
    make_user()
    login()
    resp = client.post('/account', data={'phone': '123'})
    assert '/account?error=' in resp.headers['Location']


def test_change_password(client, make_user, login):
    user = make_user()
    login()
    resp = client.post('/account/password', data={
        'currentPassword': STRONG_PASSWORD,
        'newPassword': 'moi123', 'confirmPassword': 'moi123'})
    assert resp.headers['Location'].endswith('success=1')
    assert db.session.get(User, user.id).check_password('moi123')


def test_change_password_wrong_current(client, make_user, login):
    make_user()
    login()
    resp = client.post('/account/password', data={
        'currentPassword': 'sai', 'newPassword': 'abcdef',
        'confirmPassword': 'abcdef'})
    assert 'error=' in resp.headers['Location']


def test_address_book(client, make_user, login):
    user = make_user()
    login()
    info = {'recipient': 'Lan', 'phone': '0912345678',
            'street': '1 Lê Duẩn', 'city': 'Hà Nội'}
    client.post('/account/addresses', data=info)
    client.post('/account/addresses', data=info)
    first, second = Address.query.filter_by(user_id=user.id).order_by(
        Address.id).all()

    client.post(f'/account/addresses/{first.id}/set-default')
    client.post(f'/account/addresses/{second.id}/set-default')
    defaults = Address.query.filter_by(user_id=user.id, is_default=True).all()
    assert [a.id for a in defaults] == [second.id]

    client.post(f'/account/addresses/{first.id}/delete')
    assert Address.query.filter_by(user_id=user.id).count() == 1
    assert client.get('/account').status_code == 200


def test_address_validation_message(client, make_user, login):
    make_user()
    login()
    resp = client.post('/account/addresses', data={
        'recipient': 'Lan', 'phone': '999', 'street': 'x', 'city': 'y'})
    assert 'error=' in resp.headers['Location']


def test_avatar_upload(app, client, make_user, login, tmp_path):
    app.static_folder = str(tmp_path)
    user = make_user()
    login()
    client.post('/account/avatar', data={
        'avatar': (io.BytesIO(b'x' * 100), 'me.png')},
        content_type='multipart/form-data')
    assert db.session.get(User, user.id).avatar.endswith('-me.png')
