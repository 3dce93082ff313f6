from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException
from datetime import datetime
import logging
import click

from config import settings

# Import models
from models import db

# Import utilities
from utils.auth_utils import create_default_admin, current_principal
from utils.contract_utils import get_gateway, store_contract
from utils.errors import MarketplaceError
from utils.session_utils import SessionStore

# Import services
from services.best_effort import BestEffortDispatcher
from services.cart_service import CartStore
from services.web3_service import Web3Service

# Import routes
from routes.auth import auth_bp
from routes.shop import shop_bp
from routes.seller import seller_bp
from routes.admin import admin_bp
from routes.listings import listings_bp

logger = logging.getLogger(__name__)


def create_app(config_overrides=None, gateway=None):
    """Build the storefront app.

    `gateway` replaces the Web3-backed contract gateway, e.g. in tests.
    """
    app = Flask(__name__)
    app.config.from_mapping(
        SECRET_KEY=settings.SECRET_KEY,
        SQLALCHEMY_DATABASE_URI=settings.DATABASE_URL,
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        LOG_LEVEL=settings.LOG_LEVEL,
        COOKIE_SECURE=settings.COOKIE_SECURE,
        RPC_URL=settings.RPC_URL,
        BUILD_DIR=settings.BUILD_DIR,
        GATEWAY_TIMEOUT=settings.GATEWAY_TIMEOUT,
        DEFAULT_GAS=settings.DEFAULT_GAS,
        OPERATOR_ACCOUNT=settings.OPERATOR_ACCOUNT,
        BEST_EFFORT_WORKERS=settings.BEST_EFFORT_WORKERS,
        BEST_EFFORT_INLINE=False,
    )
    if config_overrides:
        app.config.update(config_overrides)

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    # Initialize database
    db.init_app(app)

    # In-memory state and the contract gateway
    app.extensions['session_store'] = SessionStore()
    app.extensions['cart_store'] = CartStore()
    app.extensions['contract_gateway'] = gateway or Web3Service(
        rpc_url=app.config['RPC_URL'],
        build_dir=app.config['BUILD_DIR'],
        timeout=app.config['GATEWAY_TIMEOUT'],
        default_gas=app.config['DEFAULT_GAS']
    )
    app.extensions['best_effort'] = BestEffortDispatcher(
        max_workers=app.config['BEST_EFFORT_WORKERS'],
        run_inline=app.config['BEST_EFFORT_INLINE']
    )

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(shop_bp)
    app.register_blueprint(seller_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(listings_bp)

    register_error_handlers(app)
    register_template_helpers(app)
    register_commands(app)

    with app.app_context():
        db.create_all()

    return app


def register_error_handlers(app):
    @app.errorhandler(MarketplaceError)
    def handle_marketplace_error(error):
        if error.status_code >= 500:
            logger.error(f"❌ {request.method} {request.path}: {error.message}")
        return jsonify({'success': False, 'message': error.message}), error.status_code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        if isinstance(error, HTTPException):
            return error
        logger.exception(f"❌ Unexpected error in {request.method} {request.path}")
        return jsonify({'success': False, 'message': 'Unexpected server error'}), 500


def register_template_helpers(app):
    @app.template_filter('datetime')
    def datetime_filter(value):
        """Format a datetime or Unix timestamp for display"""
        if isinstance(value, datetime):
            return value.strftime('%Y-%m-%d %H:%M')
        try:
            return datetime.fromtimestamp(value).strftime('%Y-%m-%d %H:%M:%S')
        except (TypeError, ValueError, OverflowError, OSError):
            return 'Unknown'

    # Context processor to make the caller available in all templates
    @app.context_processor
    def inject_principal():
        return {'principal': current_principal()}


def register_commands(app):
    @app.cli.command('register-contract')
    @click.argument('contract_type')
    @click.argument('address')
    @click.option('--network-id', default=None, help='Network the address is deployed on.')
    def register_contract(contract_type, address, network_id):
        """Point the gateway at a deployed contract."""
        contract = store_contract(contract_type, address, network_id=network_id)
        click.echo(f"Registered {contract.contract_type} at {contract.contract_address}")

    @app.cli.command('seed-admin')
    @click.option('--email', default='c373@mail.com')
    @click.option('--password', default='C3732026!')
    @click.option('--account', default=None, help='Wallet to send the registry writes from.')
    def seed_admin(email, password, account):
        """Register an email in the user registry and promote it to admin."""
        acting_as = account or app.config.get('OPERATOR_ACCOUNT')
        create_default_admin(get_gateway(), email, password, acting_as)
        click.echo(f"{email} is now an admin")


if __name__ == '__main__':
    create_app().run(debug=True, host='0.0.0.0', port=settings.FLASK_PORT)
