import logging
from dataclasses import dataclass
from functools import wraps
from urllib.parse import unquote

from flask import g, redirect, request, url_for, flash
from web3 import Web3

from models.session import Role
from utils.errors import AuthError, ValidationError
from utils.session_utils import ADMIN_SESSION_COOKIE, USER_SESSION_COOKIE, get_session_store

logger = logging.getLogger(__name__)

# Account types a visitor may pick on signup. Admin is only granted by promotion.
SIGNUP_ACCOUNT_TYPES = {
    'user': Role.USER,
    'seller': Role.SELLER,
}


@dataclass(frozen=True)
class Principal:
    """Who is making the current request"""
    role: Role = Role.NONE
    identity_hash: str = None
    account: str = None
    token: str = None

    @property
    def is_authenticated(self):
        return self.role != Role.NONE


ANONYMOUS = Principal()


def normalize_email(email):
    return (email or '').strip().lower()


def hash_email(email):
    """keccak256 of the normalized email, as the user registry stores it"""
    return Web3.keccak(text=normalize_email(email))


def hash_password(password):
    """keccak256 of the raw password"""
    return Web3.keccak(text=password or '')


def to_hex(value):
    if isinstance(value, (bytes, bytearray)):
        return Web3.to_hex(value)
    return value


def parse_cookie_header(header):
    """Parse 'k1=v1; k2=v2' into a dict, URL-decoding values.

    Pairs without '=' are skipped. The first occurrence of a key wins.
    """
    cookies = {}
    if not header:
        return cookies
    for pair in header.split(';'):
        if '=' not in pair:
            continue
        key, value = pair.split('=', 1)
        key = key.strip()
        if not key or key in cookies:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1]
        cookies[key] = unquote(value)
    return cookies


def resolve(cookies, store=None):
    """Resolve the caller from a Cookie header string or a cookie mapping.

    An admin_session that resolves to an admin session wins over whatever
    the user_session says; otherwise the user_session role is used.
    """
    if isinstance(cookies, str):
        cookies = parse_cookie_header(cookies)
    store = store or get_session_store()

    admin_session = store.lookup(cookies.get(ADMIN_SESSION_COOKIE))
    if admin_session and admin_session.role == Role.ADMIN:
        return Principal(
            role=Role.ADMIN,
            identity_hash=admin_session.identity_hash,
            account=admin_session.account,
            token=admin_session.token
        )

    user_session = store.lookup(cookies.get(USER_SESSION_COOKIE))
    if user_session and user_session.role != Role.NONE:
        return Principal(
            role=user_session.role,
            identity_hash=user_session.identity_hash,
            account=user_session.account,
            token=user_session.token
        )

    return ANONYMOUS


def current_principal():
    """Principal for the current request, resolved once per request"""
    if 'principal' not in g:
        g.principal = resolve(request.headers.get('Cookie', ''))
    return g.principal


def _guard(allowed, login_endpoint, api, message):
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            principal = current_principal()
            if not allowed(principal):
                if api:
                    raise AuthError(message)
                flash(message, 'error')
                return redirect(url_for(login_endpoint))
            return view(*args, **kwargs)
        return wrapped
    return decorator


def login_required(view=None, api=False):
    """Any authenticated role; pages redirect to /login"""
    decorator = _guard(
        lambda p: p.is_authenticated, 'auth.login', api, 'Please log in first.'
    )
    return decorator(view) if view else decorator


def seller_required(view=None, api=False):
    """Seller role only; admins get no seller access"""
    decorator = _guard(
        lambda p: p.role == Role.SELLER, 'auth.login', api, 'Seller access required.'
    )
    return decorator(view) if view else decorator


def admin_required(view=None, api=False):
    """Admin role only; pages redirect to /admin-login"""
    decorator = _guard(
        lambda p: p.role == Role.ADMIN, 'auth.admin_login', api, 'Admin access required.'
    )
    return decorator(view) if view else decorator


def verify_credentials(gateway, email, password):
    """Check credentials against the user registry.

    Returns (role, identity_hash). Role.NONE means the login is rejected.
    """
    if not normalize_email(email) or not password:
        raise ValidationError('Email and password are required.')

    result = gateway.call('verifyCredentials', hash_email(email), hash_password(password))
    if isinstance(result, dict):
        is_valid = result.get('isValid')
        role = result.get('role')
        identity_hash = result.get('identityHash')
    else:
        is_valid, role, identity_hash = result

    try:
        role = Role(int(role))
    except (TypeError, ValueError):
        role = Role.NONE
    if not is_valid:
        role = Role.NONE

    return role, to_hex(identity_hash) or to_hex(hash_email(email))


def register_user(gateway, email, password, confirm_password, account_type, acting_as):
    """Register a user or seller in the registry. Returns the transaction receipt."""
    if not normalize_email(email) or not password or not confirm_password or not account_type:
        raise ValidationError('All fields are required.')
    if password != confirm_password:
        raise ValidationError('Passwords do not match.')
    role = SIGNUP_ACCOUNT_TYPES.get(account_type.strip().lower())
    if role is None:
        raise ValidationError('Invalid account type.')
    if not acting_as:
        raise ValidationError('A wallet account is required to register.')

    receipt = gateway.send(
        'registerUserByEmailWithRole',
        hash_email(email),
        hash_password(password),
        int(role),
        acting_as=acting_as
    )
    logger.info(f"✅ Registered {normalize_email(email)} as {role.name}")
    return receipt


def promote_admin(gateway, email, acting_as):
    """Grant the admin role to an already registered email"""
    if not normalize_email(email):
        raise ValidationError('Email is required.')
    if not acting_as:
        raise ValidationError('A wallet account is required to promote users.')

    receipt = gateway.send('setAdminByEmailHash', hash_email(email), acting_as=acting_as)
    logger.info(f"✅ Promoted {normalize_email(email)} to admin")
    return receipt


def create_default_admin(gateway, email, password, acting_as):
    """Seed the first admin: register the email, then promote it"""
    register_user(gateway, email, password, password, 'user', acting_as)
    return promote_admin(gateway, email, acting_as)
