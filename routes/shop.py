import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from flask import Blueprint, render_template, request

from services.cart_service import CENTS, cart_total, get_cart_store, parse_price
from utils.auth_utils import current_principal, login_required
from utils.contract_utils import get_gateway, to_jsonable
from utils.errors import ValidationError
from utils.http_utils import json_success, request_data

logger = logging.getLogger(__name__)

shop_bp = Blueprint('shop', __name__)


def _account_from(value):
    """Explicit account from the request, else the wallet bound to the session"""
    account = (value or '').strip() if isinstance(value, str) else value
    account = account or current_principal().account
    if not account:
        raise ValidationError('Account is required.')
    return account


def _checkout_total(items):
    total = Decimal('0')
    for item in items:
        if not isinstance(item, dict):
            raise ValidationError('Invalid cart item.')
        try:
            quantity = int(item.get('quantity', 1))
        except (TypeError, ValueError):
            raise ValidationError('Invalid cart item quantity.')
        if quantity < 1:
            raise ValidationError('Invalid cart item quantity.')
        total += parse_price(item.get('price')) * quantity
    return total.quantize(CENTS, rounding=ROUND_HALF_UP)


# Pages

@shop_bp.route('/')
@login_required
def home():
    return render_template('index.html')


@shop_bp.route('/cart')
@login_required
def cart():
    return render_template('cart.html')


@shop_bp.route('/checkout')
@login_required
def checkout():
    return render_template('checkout.html')


@shop_bp.route('/buy')
@login_required
def buy():
    """Order summary"""
    return render_template('buy.html')


@shop_bp.route('/ordertrack')
@login_required
def order_track():
    return render_template('ordertrack.html', order_id=request.args.get('orderId', ''))


@shop_bp.route('/orderdetails')
@shop_bp.route('/orderdetails/<order_id>')
@login_required
def order_details(order_id=None):
    order_id = order_id or request.args.get('orderId', '')
    return render_template('orderdetails.html', order_id=order_id)


@shop_bp.route('/confirm')
@login_required
def confirm():
    """Delivery confirmation page"""
    return render_template('confirm.html', order_id=request.args.get('orderId', ''))


# Cart API

@shop_bp.route('/addToCart', methods=['POST'])
def add_to_cart():
    data = request_data()
    account = _account_from(data.get('userAccount'))
    count = get_cart_store().add_item(account, data.get('productName'), data.get('price'))
    return json_success('Item added to cart', cartCount=count)


@shop_bp.route('/getCart')
def get_cart():
    account = _account_from(request.args.get('account'))
    items = get_cart_store().list_items(account)
    return json_success(
        items=[item.to_dict() for item in items],
        total=float(cart_total(items))
    )


@shop_bp.route('/removeFromCart', methods=['POST'])
def remove_from_cart():
    data = request_data()
    account = _account_from(data.get('userAccount'))
    try:
        item_id = int(data.get('itemId'))
    except (TypeError, ValueError):
        raise ValidationError('Invalid item id.')
    count = get_cart_store().remove_item(account, item_id)
    return json_success('Item removed from cart', cartCount=count)


@shop_bp.route('/clearCart', methods=['POST'])
def clear_cart():
    data = request_data()
    account = _account_from(data.get('userAccount'))
    get_cart_store().clear(account)
    return json_success('Cart cleared', cartCount=0)


@shop_bp.route('/processCheckout', methods=['POST'])
def process_checkout():
    """Summarize the order and empty the cart"""
    data = request_data()
    account = _account_from(data.get('userAccount'))
    store = get_cart_store()

    items = data.get('cartItems')
    if items is None:
        items = [item.to_dict() for item in store.list_items(account)]
    if not isinstance(items, list) or not items:
        raise ValidationError('Cart is empty.')

    checkout_data = {
        'userAccount': account,
        'name': data.get('name'),
        'email': data.get('email'),
        'address': data.get('address'),
        'items': items,
        'timestamp': datetime.utcnow().isoformat(),
        'total': float(_checkout_total(items)),
    }
    store.clear(account)
    logger.info(f"Checkout completed for {account}: {len(items)} item(s), total {checkout_data['total']}")
    return json_success('Checkout completed successfully', checkoutData=checkout_data)


# Orders

@shop_bp.route('/createOrder', methods=['POST'])
@login_required(api=True)
def create_order():
    """Record an order the browser placed on-chain"""
    data = request_data()
    order_id = data.get('orderId')
    if order_id in (None, ''):
        raise ValidationError('Order id is required.')
    logger.info(f"Order created: {order_id} (tx {data.get('txHash')})")
    return json_success('Order created', orderId=order_id, txHash=data.get('txHash'))


@shop_bp.route('/confirmDelivery', methods=['POST'])
@login_required(api=True)
def confirm_delivery():
    data = request_data()
    order_id = data.get('orderId')
    if order_id in (None, ''):
        raise ValidationError('Order id is required.')
    received = bool(data.get('received'))
    logger.info(f"Delivery confirmation for {order_id}: received={received} (tx {data.get('txHash')})")
    return json_success('Delivery confirmed' if received else 'Refund requested', orderId=order_id)


def _order_id_arg():
    try:
        return int(request.args.get('orderId'))
    except (TypeError, ValueError):
        raise ValidationError('A numeric order id is required.')


@shop_bp.route('/getOrderData')
@login_required(api=True)
def get_order_data():
    order_id = _order_id_arg()
    info = get_gateway().call('getFullTrackingInfo', order_id)
    return json_success(orderId=order_id, trackingInfo=to_jsonable(info))


@shop_bp.route('/trackingInfo')
@login_required(api=True)
def tracking_info():
    order_id = _order_id_arg()
    gateway = get_gateway()
    return json_success(
        orderId=order_id,
        trackingNumber=to_jsonable(gateway.call('getTrackingNumber', order_id)),
        history=to_jsonable(gateway.call('getTrackingHistory', order_id))
    )
