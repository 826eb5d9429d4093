"""Invoice aggregation: totals, remaining amount and status.

Handles:
- Line item validation
- Total calculation with exact decimal arithmetic
- Remaining amount and status derivation

Every save of an invoice's items or paid amount must persist the
total / remaining / status triple returned by ``aggregate``; none of
these fields is ever written on its own.
"""
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Union

from ledger.models.enums import InvoiceStatus
from ledger.utils.errors import ValidationError
from ledger.utils.helpers import clean_string, to_decimal, to_money


class LineItem:
    """One service/quantity/price row of an invoice.

    Attributes:
        service_id: Catalog service ID (None for a manual line)
        name: Label copied from the service at invoice time
        quantity: Number of units (>= 1)
        price: Unit price (>= 0)
    """

    def __init__(self, name: str, quantity: int, price: Decimal,
                 service_id: Optional[str] = None):
        self.service_id = service_id
        self.name = name
        self.quantity = quantity
        self.price = to_money(price, 'prix')

    @property
    def subtotal(self) -> Decimal:
        """Quantity × unit price."""
        return self.price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        """Storage form: price kept as text so the JSON column stays exact."""
        return {
            'service_id': self.service_id,
            'name': self.name,
            'quantity': self.quantity,
            'price': str(self.price)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LineItem':
        """Build and validate a line item.

        Raises:
            ValidationError: missing name, quantity < 1, negative price
                or a price finer than a cent
        """
        if not isinstance(data, dict):
            raise ValidationError('Ligne de facture invalide')

        name = clean_string(data.get('name'), 150)
        if not name:
            raise ValidationError('Le nom de la ligne est requis')

        raw_quantity = data.get('quantity', 1)
        try:
            quantity = int(raw_quantity)
        except (TypeError, ValueError):
            raise ValidationError('Quantité invalide')
        if isinstance(raw_quantity, bool) or quantity != to_decimal(raw_quantity, 'quantité'):
            raise ValidationError('La quantité doit être un nombre entier')
        if quantity < 1:
            raise ValidationError('La quantité doit être au moins 1')

        price = to_money(data.get('price', 0), 'prix')
        if price < 0:
            raise ValidationError('Le prix ne peut pas être négatif')

        return cls(
            name=name,
            quantity=quantity,
            price=price,
            service_id=clean_string(data.get('service_id')),
        )


def _as_line_item(item: Union[LineItem, Dict[str, Any]]) -> LineItem:
    return item if isinstance(item, LineItem) else LineItem.from_dict(item)


def parse_items(items: Iterable[Dict[str, Any]]) -> List[LineItem]:
    """Validate raw item dicts, keeping their order."""
    if items is None:
        raise ValidationError('Les lignes de la facture sont requises')
    return [_as_line_item(item) for item in items]


def compute_total(items: Iterable[Union[LineItem, Dict[str, Any]]]) -> Decimal:
    """Sum of quantity × price over all items."""
    return sum((_as_line_item(item).subtotal for item in items), Decimal('0'))


def derive_remaining(total, paid_amount) -> Decimal:
    return to_decimal(total) - to_decimal(paid_amount)


def derive_status(total, paid_amount) -> InvoiceStatus:
    """Paid when nothing remains, PartiallyPaid once something was paid.

    Overdue is never derived here.
    """
    if derive_remaining(total, paid_amount) <= 0:
        return InvoiceStatus.PAID
    if to_decimal(paid_amount) > 0:
        return InvoiceStatus.PARTIALLY_PAID
    return InvoiceStatus.PENDING


def aggregate(items: Iterable[Union[LineItem, Dict[str, Any]]], paid_amount=Decimal('0')) -> Dict[str, Any]:
    """Fields to persist on every invoice save.

    Returns:
        dict: total, remaining_amount and status (value string)
    """
    total = compute_total(items)
    return {
        'total': total,
        'remaining_amount': derive_remaining(total, paid_amount),
        'status': derive_status(total, paid_amount).value
    }
