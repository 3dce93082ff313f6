import logging
import secrets
import threading
from dataclasses import replace
from flask import current_app
from models.session import Role, Session

logger = logging.getLogger(__name__)

USER_SESSION_COOKIE = 'user_session'
ADMIN_SESSION_COOKIE = 'admin_session'


class SessionStore:
    """Process-lifetime map of session token -> Session.

    Admin and user logins share this store; the role lives on the record.
    Sessions never expire, they are only removed by destroy().
    """

    def __init__(self):
        self._sessions = {}
        self._lock = threading.Lock()

    def create_session(self, identity_hash, role, account=None):
        """Store a new session and return its token"""
        role = Role(role)
        with self._lock:
            token = secrets.token_urlsafe(32)
            while token in self._sessions:
                token = secrets.token_urlsafe(32)
            self._sessions[token] = Session(
                token=token,
                identity_hash=identity_hash,
                role=role,
                account=account
            )
        logger.info(f"Session created for {identity_hash[:10]}... with role {role.name}")
        return token

    def lookup(self, token):
        """Return the session for a token, or None if unknown or destroyed"""
        if not token:
            return None
        with self._lock:
            return self._sessions.get(token)

    def destroy(self, token):
        if not token:
            return
        with self._lock:
            removed = self._sessions.pop(token, None)
        if removed:
            logger.info(f"Session destroyed for {removed.identity_hash[:10]}...")

    def bind_account(self, token, account):
        """Attach a wallet address to an existing session"""
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return None
            session = replace(session, account=account)
            self._sessions[token] = session
        return session

    def __len__(self):
        with self._lock:
            return len(self._sessions)


def get_session_store():
    return current_app.extensions['session_store']


def set_session_cookie(response, name, token):
    """Place a session token in an HttpOnly cookie"""
    response.set_cookie(
        name,
        token,
        httponly=True,
        samesite='Lax',
        path='/',
        secure=current_app.config.get('COOKIE_SECURE', False)
    )
    return response


def clear_session_cookie(response, name):
    response.set_cookie(
        name,
        '',
        max_age=0,
        httponly=True,
        samesite='Lax',
        path='/',
        secure=current_app.config.get('COOKIE_SECURE', False)
    )
    return response
