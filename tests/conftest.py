import os
import sys

import pytest
from web3 import Web3

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from app import create_app  # noqa: E402
from models.session import Role  # noqa: E402
from utils.auth_utils import hash_email, hash_password  # noqa: E402
from utils.errors import GatewayError  # noqa: E402

ADMIN_EMAIL = 'c373@mail.com'
ADMIN_PASSWORD = 'C3732026!'
BUYER_EMAIL = 'buyer@mail.com'
SELLER_EMAIL = 'seller@mail.com'
PASSWORD = 'Secret123!'
OPERATOR = '0x90F8bf6A479f320ead074411a4B0e7944Ea8c9C1'
SELLER_WALLET = '0xFFcf8FDEE72ac11b5c542428B35EEF5769C409f0'


class FakeGateway:
    """In-memory stand-in for the user registry and order contracts"""

    def __init__(self):
        self.users = {}
        self.calls = []
        self.sends = []
        self.order_count = 2
        self.tracking = {}
        self.fail_methods = {}
        self.forgotten = []

    def add_user(self, email, password, role):
        self.users[hash_email(email)] = (hash_password(password), Role(role))

    def _maybe_fail(self, method, contract):
        error = self.fail_methods.get((method, contract)) or self.fail_methods.get((method, None))
        if error:
            raise error

    def call(self, method, *args, contract=None):
        self.calls.append((method, args, contract))
        self._maybe_fail(method, contract)
        if method == 'verifyCredentials':
            email_hash, password_hash = args
            record = self.users.get(email_hash)
            if not record or record[0] != password_hash:
                return (False, 0, b'\x00' * 32)
            return (True, int(record[1]), email_hash)
        if method == 'getOrderCount':
            return self.order_count
        if method == 'getUserCount':
            return len(self.users)
        if method == 'getUserByIndex':
            email_hash, (_, role) = list(self.users.items())[args[0]]
            return (email_hash, int(role))
        if method == 'getTrackingNumber':
            return self.tracking.get(args[0], '')
        if method == 'getTrackingHistory':
            return [self.tracking[args[0]]] if args[0] in self.tracking else []
        if method == 'getFullTrackingInfo':
            return (args[0], self.tracking.get(args[0], ''), 1)
        raise GatewayError(f'Unknown method {method}')

    def send(self, method, *args, acting_as, gas=None, contract=None):
        self.sends.append((method, args, acting_as, contract))
        self._maybe_fail(method, contract)
        if method == 'registerUserByEmailWithRole':
            email_hash, password_hash, role = args
            self.users[email_hash] = (password_hash, Role(role))
        elif method == 'setAdminByEmailHash':
            password_hash, _ = self.users[args[0]]
            self.users[args[0]] = (password_hash, Role.ADMIN)
        elif method == 'updateTrackingNumber':
            self.tracking[args[0]] = args[1]
        return {'status': 1, 'transactionHash': Web3.keccak(text=f'{method}{args}'), 'blockNumber': 1}

    def forget_contract(self, contract_name):
        self.forgotten.append(contract_name)

    def sent(self, method):
        return [entry for entry in self.sends if entry[0] == method]


@pytest.fixture()
def gateway():
    fake = FakeGateway()
    fake.add_user(ADMIN_EMAIL, ADMIN_PASSWORD, Role.ADMIN)
    fake.add_user(BUYER_EMAIL, PASSWORD, Role.USER)
    fake.add_user(SELLER_EMAIL, PASSWORD, Role.SELLER)
    return fake


@pytest.fixture()
def app(gateway, tmp_path):
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'BUILD_DIR': str(tmp_path),
        'OPERATOR_ACCOUNT': OPERATOR,
        'BEST_EFFORT_INLINE': True,
    }, gateway=gateway)
    yield app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def login(client):
    """Log the test client in through POST /login"""
    def _login(email, password=PASSWORD):
        response = client.post('/login', json={'email': email, 'password': password})
        assert response.status_code == 200, response.get_json()
        return response
    return _login
