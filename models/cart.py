from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class CartItem:
    """One cart line. Lines are never merged, so quantity stays at 1."""
    id: int
    product_name: str
    price: Decimal
    quantity: int = 1

    @property
    def subtotal(self):
        return self.price * self.quantity

    def to_dict(self):
        return {
            'id': self.id,
            'productName': self.product_name,
            'price': float(self.price),
            'quantity': self.quantity,
        }
