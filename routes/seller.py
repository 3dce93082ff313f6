import logging
from flask import Blueprint, render_template

from services.best_effort import get_dispatcher
from utils.auth_utils import current_principal, seller_required
from utils.contract_utils import get_gateway
from utils.errors import ValidationError
from utils.http_utils import json_success, request_data

logger = logging.getLogger(__name__)

seller_bp = Blueprint('seller', __name__)


def _require_order_id(data):
    order_id = data.get('orderId')
    if order_id in (None, ''):
        raise ValidationError('Order id is required.')
    try:
        return int(order_id)
    except (TypeError, ValueError):
        raise ValidationError('Order id must be a number.')


def _seller_account():
    """Wallet the seller connected; every seller write is sent from it"""
    account = current_principal().account
    if not account:
        raise ValidationError('Connect a wallet first.')
    return account


@seller_bp.route('/seller')
@seller_required
def dashboard():
    """Seller dashboard"""
    return render_template('seller.html', account=current_principal().account)


@seller_bp.route('/createSellerProfile', methods=['POST'])
@seller_required(api=True)
def create_seller_profile():
    data = request_data()
    seller_name = (data.get('sellerName') or '').strip()
    if not seller_name:
        raise ValidationError('Seller name is required.')
    logger.info(f"Seller profile created: {seller_name} (tx {data.get('txHash')})")
    return json_success('Seller profile created successfully', sellerName=seller_name)


@seller_bp.route('/acceptOrder', methods=['POST'])
@seller_required(api=True)
def accept_order():
    data = request_data()
    order_id = _require_order_id(data)
    logger.info(f"Order accepted: {order_id} (tx {data.get('txHash')})")
    return json_success('Order accepted successfully', orderId=order_id)


@seller_bp.route('/shipOrder', methods=['POST'])
@seller_required(api=True)
def ship_order():
    """Mark an order shipped.

    Without a txHash the tracking number is written to the seller contract
    here. The copy on the order contract is best-effort.
    """
    data = request_data()
    order_id = _require_order_id(data)
    tracking_number = (data.get('trackingNumber') or '').strip()
    if not tracking_number:
        raise ValidationError('Tracking number is required.')

    account = _seller_account()
    gateway = get_gateway()
    tx_hash = data.get('txHash')
    if not tx_hash:
        receipt = gateway.send('updateTrackingNumber', order_id, tracking_number, acting_as=account)
        tx_hash = receipt.get('transactionHash')
        if isinstance(tx_hash, (bytes, bytearray)):
            tx_hash = '0x' + bytes(tx_hash).hex()

    get_dispatcher().submit(
        f"Mirroring tracking number for order {order_id}",
        gateway.send,
        'updateTrackingNumber',
        order_id,
        tracking_number,
        acting_as=account,
        contract='OrderContract'
    )

    logger.info(f"Order shipped: {order_id} tracking {tracking_number} (tx {tx_hash})")
    return json_success(
        'Order shipped successfully',
        orderId=order_id,
        trackingNumber=tracking_number,
        txHash=tx_hash
    )


@seller_bp.route('/releasePayment', methods=['POST'])
@seller_required(api=True)
def release_payment():
    data = request_data()
    order_id = _require_order_id(data)
    logger.info(f"Payment released: {order_id} (tx {data.get('txHash')})")
    return json_success('Payment released successfully', orderId=order_id)


@seller_bp.route('/setSellerConfirmAllowed', methods=['POST'])
@seller_required(api=True)
def set_seller_confirm_allowed():
    """Allow or forbid the seller to confirm delivery for an order"""
    data = request_data()
    order_id = _require_order_id(data)
    allowed = data.get('allowed')
    if isinstance(allowed, str):
        allowed = allowed.strip().lower() in ('1', 'true', 'yes', 'on')
    get_gateway().send('setSellerConfirmAllowed', order_id, bool(allowed), acting_as=_seller_account())
    return json_success('Seller confirmation updated', orderId=order_id, allowed=bool(allowed))
