"""
Runtime settings for the marketplace storefront.
Every value can be overridden from the environment.
"""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

# Flask
SECRET_KEY = os.environ.get('SECRET_KEY') or 'change-this-marketplace-secret'
DATABASE_URL = os.environ.get('DATABASE_URL') or 'sqlite:///marketplace.db'
FLASK_PORT = int(os.environ.get('PORT') or 3001)
LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'

# Set to true when served over HTTPS
COOKIE_SECURE = (os.environ.get('COOKIE_SECURE') or '').lower() in ('1', 'true', 'yes')

# Blockchain (Ganache by default)
RPC_URL = os.environ.get('RPC_URL') or 'http://127.0.0.1:7545'
GATEWAY_TIMEOUT = float(os.environ.get('GATEWAY_TIMEOUT') or 10)
DEFAULT_GAS = int(os.environ.get('DEFAULT_GAS') or 500000)
BUILD_DIR = os.environ.get('BUILD_DIR') or str(BASE_DIR / 'public' / 'build')

# Account used for registry writes that have no logged-in wallet behind them
# (signup, seeding the first admin)
OPERATOR_ACCOUNT = os.environ.get('OPERATOR_ACCOUNT') or None

# Best-effort secondary writes
BEST_EFFORT_WORKERS = int(os.environ.get('BEST_EFFORT_WORKERS') or 4)

# Which deployed contract answers each gateway method
METHOD_CONTRACTS = {
    'verifyCredentials': 'UserRegistry',
    'registerUserByEmailWithRole': 'UserRegistry',
    'registerUserByEmail': 'UserRegistry',
    'setAdminByEmailHash': 'UserRegistry',
    'getUserCount': 'UserRegistry',
    'getUserByIndex': 'UserRegistry',
    'getOrderCount': 'OrderContract',
    'setSellerConfirmAllowed': 'SellerOrderContract',
    'updateTrackingNumber': 'SellerOrderContract',
    'getTrackingNumber': 'SellerOrderContract',
    'getTrackingHistory': 'SellerOrderContract',
    'getFullTrackingInfo': 'SellerOrderContract',
}
