import logging
import threading
import time
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from flask import current_app

from models.cart import CartItem
from utils.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

CENTS = Decimal('0.01')
LOCK_STRIPES = 64


def parse_price(value):
    """Parse a non-negative decimal price from a JSON number or string"""
    if isinstance(value, bool) or value is None:
        raise ValidationError('Invalid price.')
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError('Invalid price.')
    if not price.is_finite() or price < 0:
        raise ValidationError('Invalid price.')
    return price


def cart_total(items):
    return sum((item.subtotal for item in items), Decimal('0')).quantize(CENTS, rounding=ROUND_HALF_UP)


class CartStore:
    """In-memory carts keyed by account.

    A cart exists only while it holds items: removing the last line or
    clearing it deletes the entry. Mutations are serialized per account
    through a fixed set of lock stripes, so unknown accounts cost nothing.
    """

    def __init__(self):
        self._carts = {}
        self._locks = [threading.Lock() for _ in range(LOCK_STRIPES)]
        self._id_lock = threading.Lock()
        self._last_id = 0

    def _lock_for(self, account):
        return self._locks[hash(account) % LOCK_STRIPES]

    def _next_id(self):
        """Millisecond timestamp, bumped so ids stay strictly increasing"""
        with self._id_lock:
            self._last_id = max(time.time_ns() // 1_000_000, self._last_id + 1)
            return self._last_id

    @staticmethod
    def _require_account(account):
        account = (account or '').strip() if isinstance(account, str) else account
        if not account:
            raise ValidationError('Account is required.')
        return account

    def add_item(self, account, product_name, price):
        """Append a new line with quantity 1 and return the line count"""
        account = self._require_account(account)
        if not product_name or not str(product_name).strip():
            raise ValidationError('Product name is required.')

        item = CartItem(
            id=self._next_id(),
            product_name=str(product_name).strip(),
            price=parse_price(price)
        )
        with self._lock_for(account):
            cart = self._carts.setdefault(account, [])
            cart.append(item)
            count = len(cart)

        logger.info(f"Item added to cart for {account}: {item.product_name} @ {item.price}")
        return count

    def list_items(self, account):
        if not account:
            return []
        with self._lock_for(account):
            return list(self._carts.get(account, ()))

    def remove_item(self, account, item_id):
        """Drop the line with item_id and return the remaining count.

        Raises NotFoundError if the account has no cart. An unknown id
        leaves the cart unchanged.
        """
        account = self._require_account(account)
        with self._lock_for(account):
            cart = self._carts.get(account)
            if cart is None:
                raise NotFoundError('Cart not found')
            remaining = [item for item in cart if item.id != item_id]
            if remaining:
                self._carts[account] = remaining
            else:
                del self._carts[account]
        return len(remaining)

    def clear(self, account):
        if not account:
            return
        with self._lock_for(account):
            self._carts.pop(account, None)

    def total(self, account):
        return cart_total(self.list_items(account))

    def __contains__(self, account):
        return account in self._carts


def get_cart_store():
    return current_app.extensions['cart_store']
