import logging
from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for
from web3 import Web3

from models.session import Role
from utils.auth_utils import current_principal, login_required, register_user, verify_credentials
from utils.contract_utils import get_gateway
from utils.errors import AuthError, ValidationError
from utils.http_utils import json_success, request_data
from utils.session_utils import (
    ADMIN_SESSION_COOKIE,
    USER_SESSION_COOKIE,
    clear_session_cookie,
    get_session_store,
    set_session_cookie,
)

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)

# Where each role lands after logging in
LANDING_ENDPOINTS = {
    Role.USER: 'shop.home',
    Role.SELLER: 'seller.dashboard',
    Role.ADMIN: 'admin.dashboard',
}


def _start_session(response, cookie_name, identity_hash, role):
    """Issue a fresh session token, replacing any previous one in this cookie"""
    store = get_session_store()
    store.destroy(request.cookies.get(cookie_name))
    token = store.create_session(identity_hash, role)
    return set_session_cookie(response, cookie_name, token)


@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    """Buyer/seller/admin login against the user registry"""
    if request.method == 'GET':
        return render_template('login.html')

    data = request_data()
    try:
        role, identity_hash = verify_credentials(get_gateway(), data.get('email'), data.get('password'))
        if role == Role.NONE:
            raise AuthError('Invalid email or password.')
    except (ValidationError, AuthError) as e:
        if request.is_json:
            raise
        flash(e.message, 'error')
        return render_template('login.html'), e.status_code

    landing = url_for(LANDING_ENDPOINTS[role])
    logger.info(f"User logged in: {identity_hash[:10]}... as {role.name}")
    if request.is_json:
        response, status = json_success(
            'Logged in successfully',
            isLoggedIn=True,
            role=int(role),
            redirect=landing
        )
    else:
        flash('Logged in successfully.', 'success')
        response = redirect(landing)
    return _start_session(response, USER_SESSION_COOKIE, identity_hash, role)


@auth_bp.route('/admin-login', methods=['GET', 'POST'])
def admin_login():
    """Admin-only login; issues the admin_session cookie"""
    if request.method == 'GET':
        return render_template('admin_login.html')

    data = request_data()
    try:
        role, identity_hash = verify_credentials(get_gateway(), data.get('email'), data.get('password'))
        if role != Role.ADMIN:
            raise AuthError('Admin access required.')
    except (ValidationError, AuthError) as e:
        if request.is_json:
            raise
        flash(e.message, 'error')
        return render_template('admin_login.html'), e.status_code

    logger.info(f"Admin logged in: {identity_hash[:10]}...")
    if request.is_json:
        response, status = json_success(
            'Admin login successful',
            isLoggedIn=True,
            role=int(role),
            redirect=url_for('admin.dashboard')
        )
    else:
        flash('Admin login successful!', 'success')
        response = redirect(url_for('admin.dashboard'))
    return _start_session(response, ADMIN_SESSION_COOKIE, identity_hash, role)


@auth_bp.route('/register')
def register():
    """Signup page"""
    return render_template('register.html')


@auth_bp.route('/signup', methods=['POST'])
def signup():
    """Register a user or seller account in the registry"""
    data = request_data()
    acting_as = data.get('account') or current_app.config.get('OPERATOR_ACCOUNT')
    try:
        register_user(
            get_gateway(),
            data.get('email'),
            data.get('password'),
            data.get('confirmPassword') or data.get('confirm_password'),
            data.get('accountType') or data.get('account_type'),
            acting_as
        )
    except ValidationError as e:
        if request.is_json:
            raise
        flash(e.message, 'error')
        return render_template('register.html'), e.status_code

    if request.is_json:
        return json_success('Registration successful. Please log in.', redirect=url_for('auth.login'))
    flash('Registration successful. Please log in.', 'success')
    return redirect(url_for('auth.login'))


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Destroy both sessions and clear their cookies"""
    store = get_session_store()
    for cookie_name in (USER_SESSION_COOKIE, ADMIN_SESSION_COOKIE):
        store.destroy(request.cookies.get(cookie_name))

    if request.is_json:
        response, status = json_success('Logged out successfully', isLoggedIn=False)
    else:
        flash('Successfully logged out!', 'success')
        response = redirect(url_for('auth.login'))
    clear_session_cookie(response, USER_SESSION_COOKIE)
    return clear_session_cookie(response, ADMIN_SESSION_COOKIE)


@auth_bp.route('/web3ConnectData', methods=['POST'])
@login_required(api=True)
def web3_connect_data():
    """Bind the wallet connected in the browser to the caller's session"""
    data = request_data()
    account = data.get('acct') or data.get('account')
    if not account or not Web3.is_address(account):
        raise ValidationError('A valid wallet address is required.')

    account = Web3.to_checksum_address(account)
    principal = current_principal()
    get_session_store().bind_account(principal.token, account)
    logger.info(f"Connected account: {account}")
    return json_success('Connected successfully', account=account)
