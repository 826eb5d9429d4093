"""Invoice service for invoice lifecycle operations.

Handles:
- Invoice creation (customer snapshot, number allocation, aggregation)
- Invoice editing with re-aggregation against the stored paid amount
- Hard delete (vouchers are kept)
- Payable invoices lookup for the payment form
- Manual overdue marking
"""
import logging
from typing import Any, Dict, List, Optional

from flask import current_app

from ledger.models.enums import InvoiceStatus
from ledger.services.invoice_aggregator import aggregate, parse_items
from ledger.services.ledger_store import ledger_store
from ledger.services.numbering import INVOICE_NUMBER_FIELD, next_number
from ledger.utils.errors import ValidationError
from ledger.utils.helpers import parse_date

logger = logging.getLogger(__name__)


class InvoiceService:
    """Service for invoice operations."""

    EDITABLE_FIELDS = ('customer_id', 'date', 'items')

    @classmethod
    def _validated_items(cls, items) -> List[Dict[str, Any]]:
        if not isinstance(items, list):
            raise ValidationError('Les lignes de la facture doivent être une liste')
        line_items = parse_items(items)
        if not line_items:
            raise ValidationError('La facture doit contenir au moins une ligne')
        return [item.to_dict() for item in line_items]

    @classmethod
    def create_invoice(cls, tenant_id: str, customer_id: str, items: List[Dict[str, Any]],
                       date=None) -> Dict[str, Any]:
        """Create an invoice for a customer.

        The number is allocated inside the transaction; two creations
        racing on the same number hit the unique constraint and the
        loser is retried with a fresh snapshot.

        Args:
            tenant_id: Owner
            customer_id: Billed customer
            items: Raw line items [{service_id, name, quantity, price}]
            date: Invoice date (default: today)

        Returns:
            dict: Created invoice

        Raises:
            ValidationError: invalid items or date
            NotFound: customer absent
        """
        if not customer_id:
            raise ValidationError('Le client est requis')
        stored_items = cls._validated_items(items)
        invoice_date = parse_date(date) if date else None
        floor = current_app.config.get('LEDGER_INVOICE_NUMBER_START', 1001)

        def create(tx):
            customer = tx.get('customers', customer_id)
            record = {
                'invoice_number': next_number(tx.query('invoices'), floor, INVOICE_NUMBER_FIELD),
                'customer_id': customer_id,
                'customer_name': customer['name'],
                'items': stored_items,
                'paid_amount': 0,
                **aggregate(stored_items, 0)
            }
            if invoice_date:
                record['date'] = invoice_date
            return tx.get('invoices', tx.create('invoices', record))

        invoice = ledger_store.transact(tenant_id, create)
        logger.info(f"Invoice #{invoice['invoice_number']} created for tenant {tenant_id} (total {invoice['total']})")
        return invoice

    @classmethod
    def update_invoice(cls, tenant_id: str, invoice_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Edit customer, date or items.

        Total, remaining and status are re-derived with the paid amount
        read in the same transaction. An Overdue invoice stays Overdue
        while something remains to be paid.

        Raises:
            ValidationError: non-editable field or invalid value
            NotFound: invoice or new customer absent
        """
        if not isinstance(data, dict):
            raise ValidationError('Données invalides')
        forbidden = [key for key in data if key not in cls.EDITABLE_FIELDS]
        if forbidden:
            raise ValidationError(f"Champs non modifiables: {', '.join(sorted(forbidden))}")

        new_items = cls._validated_items(data['items']) if 'items' in data else None
        new_date = parse_date(data['date']) if data.get('date') else None

        def update(tx):
            invoice = tx.get('invoices', invoice_id)
            fields = {}

            if data.get('customer_id') and data['customer_id'] != invoice['customer_id']:
                customer = tx.get('customers', data['customer_id'])
                fields['customer_id'] = customer['id']
                fields['customer_name'] = customer['name']

            if new_date:
                fields['date'] = new_date

            items = new_items
            if items is None:
                items = [
                    {**item, 'price': str(item['price'])} for item in invoice['items']
                ]
            else:
                fields['items'] = items

            derived = aggregate(items, invoice['paid_amount'])
            if (invoice['status'] == InvoiceStatus.OVERDUE.value
                    and derived['status'] != InvoiceStatus.PAID.value):
                derived['status'] = InvoiceStatus.OVERDUE.value
            fields.update(derived)

            tx.update('invoices', invoice_id, fields)
            return tx.get('invoices', invoice_id)

        invoice = ledger_store.transact(tenant_id, update)
        logger.info(f"Invoice #{invoice['invoice_number']} updated for tenant {tenant_id}")
        return invoice

    @classmethod
    def mark_overdue(cls, tenant_id: str, invoice_id: str) -> Dict[str, Any]:
        """Flag an unpaid invoice as Overdue.

        Raises:
            ValidationError: invoice already fully paid
            NotFound: invoice absent
        """
        def mark(tx):
            invoice = tx.get('invoices', invoice_id)
            if invoice['remaining_amount'] <= 0:
                raise ValidationError('Une facture payée ne peut pas être en retard')
            tx.update('invoices', invoice_id, {'status': InvoiceStatus.OVERDUE.value})
            return tx.get('invoices', invoice_id)

        return ledger_store.transact(tenant_id, mark)

    @classmethod
    def delete_invoice(cls, tenant_id: str, invoice_id: str):
        """Hard delete. Vouchers referencing the invoice stay queryable."""
        ledger_store.delete(tenant_id, 'invoices', invoice_id)

    @classmethod
    def get_invoice(cls, tenant_id: str, invoice_id: str) -> Dict[str, Any]:
        return ledger_store.get(tenant_id, 'invoices', invoice_id)

    @classmethod
    def list_invoices(cls, tenant_id: str, status: Optional[str] = None,
                      customer_id: Optional[str] = None) -> List[Dict[str, Any]]:
        filters = []
        if status:
            if not InvoiceStatus.is_valid(status):
                raise ValidationError(f'Statut invalide: {status}')
            filters.append(('status', '==', status))
        if customer_id:
            filters.append(('customer_id', '==', customer_id))
        return ledger_store.query(tenant_id, 'invoices', filters)

    @classmethod
    def get_payable_invoices(cls, tenant_id: str, customer_id: str) -> List[Dict[str, Any]]:
        """Invoices of a customer still awaiting payment.

        Each record carries ``suggested_amount``, the remaining balance
        proposed as the default payment amount.
        """
        invoices = ledger_store.query(tenant_id, 'invoices', [
            ('customer_id', '==', customer_id),
            ('status', 'in', InvoiceStatus.payable())
        ])
        for invoice in invoices:
            invoice['suggested_amount'] = invoice['remaining_amount']
        return invoices

    @classmethod
    def get_invoice_vouchers(cls, tenant_id: str, invoice_id: str) -> List[Dict[str, Any]]:
        """Vouchers recorded against an invoice (also after its deletion)"""
        return ledger_store.query(tenant_id, 'vouchers', [('invoice_id', '==', invoice_id)])
