import pytest

from conftest import BUYER_EMAIL, OPERATOR

ACCOUNT = '0xABC'


def _add(client, product='Widget', price='9.99', account=ACCOUNT):
    return client.post('/addToCart', json={'productName': product, 'price': price, 'userAccount': account})


@pytest.mark.parametrize('path', ['/', '/cart', '/checkout', '/buy', '/ordertrack', '/orderdetails/7', '/confirm'])
def test_buyer_pages_redirect_anonymous_to_login(client, path):
    response = client.get(path)

    assert response.status_code == 302
    assert response.headers['Location'].endswith('/login')


@pytest.mark.parametrize('path', ['/', '/cart', '/checkout', '/ordertrack?orderId=3', '/orderdetails?orderId=3'])
def test_buyer_pages_render_for_logged_in_user(client, login, path):
    login(BUYER_EMAIL)
    assert client.get(path).status_code == 200


def test_add_same_widget_twice_then_get_cart(client):
    assert _add(client).get_json()['cartCount'] == 1
    assert _add(client).get_json()['cartCount'] == 2

    body = client.get('/getCart?account=0xABC').get_json()

    assert body['success'] is True
    assert len(body['items']) == 2
    assert body['items'][0]['id'] != body['items'][1]['id']
    assert body['items'][0]['productName'] == 'Widget'
    assert body['items'][0]['price'] == 9.99
    assert body['total'] == 19.98


def test_get_cart_for_unknown_account_is_empty(client):
    body = client.get('/getCart?account=0xEMPTY').get_json()
    assert body == {'success': True, 'items': [], 'total': 0.0}


def test_get_cart_total_matches_the_items_it_returns(app, client, monkeypatch):
    store = app.extensions['cart_store']
    _add(client)
    list_items = store.list_items

    def list_then_add(account):
        items = list_items(account)
        store.add_item(account, 'Gadget', '5')
        return items

    monkeypatch.setattr(store, 'list_items', list_then_add)
    body = client.get('/getCart?account=0xABC').get_json()

    assert [item['productName'] for item in body['items']] == ['Widget']
    assert body['total'] == 9.99


def test_remove_from_cart_without_cart_is_404(client):
    response = client.post('/removeFromCart', json={'userAccount': '0xNOCART', 'itemId': 1})

    assert response.status_code == 404
    assert response.get_json() == {'success': False, 'message': 'Cart not found'}


def test_remove_unknown_item_keeps_count(client):
    _add(client)
    _add(client, 'Gadget', 5)

    response = client.post('/removeFromCart', json={'userAccount': ACCOUNT, 'itemId': 42})

    assert response.status_code == 200
    assert response.get_json()['cartCount'] == 2


def test_remove_item_by_id(client):
    _add(client)
    _add(client, 'Gadget', 5)
    items = client.get('/getCart?account=0xABC').get_json()['items']

    response = client.post('/removeFromCart', json={'userAccount': ACCOUNT, 'itemId': str(items[0]['id'])})

    assert response.get_json()['cartCount'] == 1
    body = client.get('/getCart?account=0xABC').get_json()
    assert [item['productName'] for item in body['items']] == ['Gadget']
    assert body['total'] == 5.0


def test_remove_with_bad_item_id_is_400(client):
    _add(client)
    response = client.post('/removeFromCart', json={'userAccount': ACCOUNT, 'itemId': 'abc'})
    assert response.status_code == 400


def test_add_to_cart_rejects_bad_price(client):
    response = _add(client, price='free')

    assert response.status_code == 400
    assert response.get_json() == {'success': False, 'message': 'Invalid price.'}


def test_add_to_cart_without_account_is_400(client):
    response = client.post('/addToCart', json={'productName': 'Widget', 'price': 1})
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Account is required.'


def test_cart_falls_back_to_session_wallet(client, login):
    login(BUYER_EMAIL)
    client.post('/web3ConnectData', json={'acct': OPERATOR.lower()})

    client.post('/addToCart', json={'productName': 'Widget', 'price': '2.50'})

    body = client.get('/getCart').get_json()
    assert body['total'] == 2.5
    assert client.get(f'/getCart?account={OPERATOR}').get_json()['total'] == 2.5


def test_clear_cart(client):
    _add(client)
    assert client.post('/clearCart', json={'userAccount': ACCOUNT}).status_code == 200
    assert client.post('/clearCart', json={'userAccount': ACCOUNT}).status_code == 200
    assert client.post('/removeFromCart', json={'userAccount': ACCOUNT, 'itemId': 1}).status_code == 404


def test_process_checkout_summarizes_and_deletes_cart(client):
    _add(client)
    _add(client)

    response = client.post('/processCheckout', json={
        'userAccount': ACCOUNT,
        'name': 'Ada',
        'email': 'ada@mail.com',
        'address': '1 Main St',
    })

    body = response.get_json()
    assert response.status_code == 200
    assert body['message'] == 'Checkout completed successfully'
    assert body['checkoutData']['total'] == 19.98
    assert len(body['checkoutData']['items']) == 2
    assert body['checkoutData']['name'] == 'Ada'
    assert client.get('/getCart?account=0xABC').get_json()['items'] == []
    assert client.post('/removeFromCart', json={'userAccount': ACCOUNT, 'itemId': 1}).status_code == 404


def test_process_checkout_uses_posted_items(client):
    response = client.post('/processCheckout', json={
        'userAccount': ACCOUNT,
        'cartItems': [{'productName': 'A', 'price': 1.25, 'quantity': 2}, {'productName': 'B', 'price': '0.5'}],
    })
    assert response.get_json()['checkoutData']['total'] == 3.0


def test_process_checkout_with_empty_cart_is_400(client):
    response = client.post('/processCheckout', json={'userAccount': ACCOUNT})

    assert response.status_code == 400
    assert response.get_json()['message'] == 'Cart is empty.'


def test_order_apis_require_login(client):
    assert client.post('/createOrder', json={'orderId': 1}).status_code == 401
    assert client.get('/getOrderData?orderId=1').status_code == 401


def test_create_order_and_confirm_delivery(client, login):
    login(BUYER_EMAIL)

    created = client.post('/createOrder', json={'orderId': 5, 'txHash': '0x01'}).get_json()
    refund = client.post('/confirmDelivery', json={'orderId': 5, 'received': False}).get_json()

    assert created == {'success': True, 'message': 'Order created', 'orderId': 5, 'txHash': '0x01'}
    assert refund['message'] == 'Refund requested'


def test_tracking_info_reads_through_gateway(client, login, gateway):
    gateway.tracking[7] = 'TRK-7'
    login(BUYER_EMAIL)

    info = client.get('/trackingInfo?orderId=7').get_json()
    order = client.get('/getOrderData?orderId=7').get_json()

    assert info['trackingNumber'] == 'TRK-7'
    assert info['history'] == ['TRK-7']
    assert order['trackingInfo'] == [7, 'TRK-7', 1]


def test_tracking_info_needs_numeric_order_id(client, login):
    login(BUYER_EMAIL)
    assert client.get('/trackingInfo?orderId=x').status_code == 400
