"""Payment service: applies a voucher against an invoice.

Handles:
- Amount validation (strictly positive, optional overpayment guard)
- Voucher number allocation
- Atomic invoice update + voucher insertion

The invoice read, the paid/remaining/status write and the voucher insert
run in one store transaction. A concurrent payment on the same invoice
bumps its version, so the losing attempt is retried from the read.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, Optional

from flask import current_app

from ledger.models.enums import InvoiceStatus
from ledger.services.ledger_store import ledger_store
from ledger.services.numbering import VOUCHER_NUMBER_FIELD, next_number
from ledger.utils.errors import InvalidAmount, ValidationError
from ledger.utils.helpers import parse_date, to_money

logger = logging.getLogger(__name__)


class PaymentService:
    """Service for recording invoice payments."""

    @classmethod
    def validate_amount(cls, amount) -> Decimal:
        """Parse a payment amount.

        Raises:
            InvalidAmount: not a number, zero, negative or finer than a cent
        """
        try:
            value = to_money(amount, 'montant')
        except ValidationError as e:
            raise InvalidAmount(e.message)
        if value <= 0:
            raise InvalidAmount('Le montant doit être supérieur à 0')
        return value

    @classmethod
    def record_payment(cls, tenant_id: str, invoice_id: str, amount,
                       voucher_meta: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Record a payment and return the created voucher.

        Args:
            tenant_id: Owner of the invoice
            invoice_id: Invoice to pay
            amount: Payment amount (> 0)
            voucher_meta: Optional voucher fields (``date``)

        Returns:
            dict: Voucher record

        Raises:
            InvalidAmount: amount <= 0, or above the balance in strict mode
            NotFound: invoice absent (checked again on every retry)
            ConflictError: write conflicts persisted through every attempt
        """
        amount = cls.validate_amount(amount)
        meta = voucher_meta or {}
        voucher_date = parse_date(meta['date']) if meta.get('date') else None
        strict = current_app.config.get('LEDGER_STRICT_OVERPAYMENT', False)
        floor = current_app.config.get('LEDGER_VOUCHER_NUMBER_START', 1)

        def apply(tx):
            invoice = tx.get('invoices', invoice_id)

            if strict and amount > invoice['remaining_amount']:
                raise InvalidAmount(
                    f"Le montant dépasse le reste à payer ({invoice['remaining_amount']})"
                )

            new_paid = invoice['paid_amount'] + amount
            new_remaining = invoice['total'] - new_paid
            new_status = InvoiceStatus.PAID if new_remaining <= 0 else InvoiceStatus.PARTIALLY_PAID

            tx.update('invoices', invoice_id, {
                'paid_amount': new_paid,
                'remaining_amount': new_remaining,
                'status': new_status.value
            })

            voucher = {
                'voucher_number': next_number(tx.query('vouchers'), floor, VOUCHER_NUMBER_FIELD),
                'invoice_id': invoice_id,
                'invoice_number': invoice['invoice_number'],
                'customer_id': invoice['customer_id'],
                'customer_name': invoice['customer_name'],
                'amount': amount
            }
            if voucher_date:
                voucher['date'] = voucher_date

            voucher_id = tx.create('vouchers', voucher)
            return tx.get('vouchers', voucher_id)

        voucher = ledger_store.transact(tenant_id, apply)
        logger.info(
            f"Payment of {amount} recorded on invoice {invoice_id} "
            f"(voucher #{voucher['voucher_number']}, tenant {tenant_id})"
        )
        return voucher
