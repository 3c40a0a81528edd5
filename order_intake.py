"""Cart validation and pricing: turns cart lines into an immutable order snapshot."""

from decimal import Decimal

from errors import Conflict
from extensions import db
from models import ZERO, MenuItem, money


def price_cart(restaurant_id, lines):
    """
    Validate cart lines against the restaurant's current menu.

    Args:
        restaurant_id: restaurant the order is for
        lines: iterable of objects with ``item_id`` and ``quantity``

    Returns:
        (snapshot, total) where snapshot is a list of
        ``{itemId, name, quantity, price}`` dicts and total is a Decimal
    """
    snapshot = []
    total = ZERO
    for line in lines:
        item = db.session.get(MenuItem, line.item_id)
        if item is None or not item.is_available:
            raise Conflict(f"Item {line.item_id} not available")
        if item.restaurant_id != restaurant_id:
            raise Conflict("Invalid menu item for this restaurant")

        price = Decimal(item.price)
        total += price * line.quantity
        snapshot.append(
            {
                "itemId": item.id,
                "name": item.name,
                "quantity": line.quantity,
                "price": money(price),
            }
        )
    return snapshot, total
