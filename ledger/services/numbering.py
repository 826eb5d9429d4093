"""Sequential numbering for invoices and vouchers.

The next number is computed from a snapshot of the existing records
(max + 1), not from a persisted counter. Two writers racing on the same
tenant can compute the same number; the unique (tenant_id, number)
constraints turn that race into a write conflict that the store retries.
"""
from typing import Any, Iterable, Mapping, Union

INVOICE_NUMBER_FIELD = 'invoice_number'
VOUCHER_NUMBER_FIELD = 'voucher_number'


def next_number(existing: Iterable[Union[int, Mapping[str, Any]]], floor: int,
                field: str = 'number') -> int:
    """Return the next sequential number.

    Args:
        existing: Records (mappings holding ``field``) or bare integers
        floor: Number returned when there is no record yet
        field: Key holding the number in each mapping

    Returns:
        int: ``floor`` if ``existing`` is empty, else max + 1
    """
    numbers = []
    for record in existing:
        value = record if isinstance(record, int) else record.get(field)
        if value is not None:
            numbers.append(int(value))

    if not numbers:
        return floor
    return max(numbers) + 1


def format_invoice_number(number: int) -> str:
    """INV-1001"""
    return f"INV-{number}"


def format_voucher_number(number: int) -> str:
    """VCH-1"""
    return f"VCH-{number}"
