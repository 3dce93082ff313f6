import logging
from flask import Blueprint, current_app, flash, render_template

from utils.auth_utils import admin_required, current_principal, promote_admin
from utils.contract_utils import get_gateway, to_jsonable
from utils.errors import GatewayError
from utils.http_utils import json_success, request_data

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__, url_prefix='/admin')


def _registered_users(gateway):
    """Every user record in the registry, in index order"""
    count = int(gateway.call('getUserCount'))
    return [to_jsonable(gateway.call('getUserByIndex', index)) for index in range(count)]


@admin_bp.route('')
@admin_bp.route('/dashboard')
@admin_required
def dashboard():
    """Admin dashboard"""
    gateway = get_gateway()
    order_count = None
    users = []
    try:
        order_count = int(gateway.call('getOrderCount'))
        users = _registered_users(gateway)
    except GatewayError as e:
        logger.error(f"❌ Error loading admin dashboard data: {e.message}")
        flash(f'Could not load registry data: {e.message}', 'error')

    return render_template('admin_dashboard.html', order_count=order_count, users=users)


@admin_bp.route('/api/users')
@admin_required(api=True)
def list_users():
    users = _registered_users(get_gateway())
    return json_success(count=len(users), users=users)


@admin_bp.route('/api/order-count')
@admin_required(api=True)
def order_count():
    return json_success(orderCount=int(get_gateway().call('getOrderCount')))


@admin_bp.route('/api/promote', methods=['POST'])
@admin_required(api=True)
def promote():
    """Grant the admin role to a registered email"""
    data = request_data()
    acting_as = current_principal().account or current_app.config.get('OPERATOR_ACCOUNT')
    promote_admin(get_gateway(), data.get('email'), acting_as)
    return json_success('User promoted to admin')
