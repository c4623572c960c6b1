import pytest


@pytest.fixture
def boom_client(app):
    def boom():
        raise RuntimeError('kho hàng bị khóa')

    app.add_url_rule('/boom', 'boom', boom)
    return app.test_client()


def test_server_error_shows_stack_on_loopback(app, boom_client):
    resp = boom_client.get('/boom')
    assert resp.status_code == 500
    body = resp.get_data(as_text=True)
    assert body.startswith('<pre>Server error')
    assert 'RuntimeError: kho hàng bị khóa' in body
    assert 'Traceback' in body


def test_server_error_is_generic_for_remote_clients(boom_client):
    resp = boom_client.get(
        '/boom', environ_base={'REMOTE_ADDR': '10.0.0.5'})
    assert resp.status_code == 500
    assert resp.get_data(as_text=True) == 'Server error'


def test_server_error_is_generic_in_production(app, boom_client):
    app.config['APP_ENV'] = 'production'
    resp = boom_client.get('/boom')
    assert resp.status_code == 500
    assert resp.get_data(as_text=True) == 'Server error'


def test_server_error_json_clients(boom_client):
    resp = boom_client.get(
        '/boom', headers={'Accept': 'application/json'})
    assert resp.status_code == 500
    assert resp.get_json() == {'error': 'Server error'}


def test_server_error_records_last_error(app, boom_client):
    boom_client.get('/boom', environ_base={'REMOTE_ADDR': '10.0.0.5'})
    with open(app.config['LAST_ERROR_FILE'], encoding='utf-8') as fh:
        recorded = fh.read()
    assert 'Traceback' in recorded
    assert 'RuntimeError: kho hàng bị khóa' in recorded

    resp = boom_client.get('/__last_error')
    assert 'kho hàng bị khóa' in resp.get_data(as_text=True)


def test_not_found_is_not_a_server_error(app, boom_client):
    resp = boom_client.get('/khong-ton-tai')
    assert resp.status_code == 404
    assert resp.get_data(as_text=True) == 'Not found'
