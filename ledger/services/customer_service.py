"""Customer service: tenant customer records."""
import logging
import re
from typing import Any, Dict, List

from ledger.services.ledger_store import ledger_store
from ledger.utils.errors import ValidationError
from ledger.utils.helpers import clean_string

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


class CustomerService:
    """Service for customer operations.

    join_date is set by the store at creation and never changes.
    """

    EDITABLE_FIELDS = ('name', 'email', 'phone')

    @classmethod
    def _clean(cls, data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
        if not isinstance(data, dict):
            raise ValidationError('Données invalides')

        forbidden = [key for key in data if key not in cls.EDITABLE_FIELDS]
        if forbidden:
            raise ValidationError(f"Champs non modifiables: {', '.join(sorted(forbidden))}")

        fields = {}
        if 'name' in data or not partial:
            name = clean_string(data.get('name'), 150)
            if not name:
                raise ValidationError('Le nom du client est requis')
            fields['name'] = name

        if 'email' in data:
            email = clean_string(data.get('email'), 120)
            if email and not EMAIL_PATTERN.match(email):
                raise ValidationError('Email invalide')
            fields['email'] = email.lower() if email else None

        if 'phone' in data:
            fields['phone'] = clean_string(data.get('phone'), 30)

        return fields

    @classmethod
    def create_customer(cls, tenant_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        customer_id = ledger_store.create(tenant_id, 'customers', cls._clean(data))
        logger.info(f"Customer {customer_id} created for tenant {tenant_id}")
        return ledger_store.get(tenant_id, 'customers', customer_id)

    @classmethod
    def update_customer(cls, tenant_id: str, customer_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Partial update of name, email or phone.

        Invoices keep the customer name they were issued with.
        """
        ledger_store.update(tenant_id, 'customers', customer_id, cls._clean(data, partial=True))
        return ledger_store.get(tenant_id, 'customers', customer_id)

    @classmethod
    def delete_customer(cls, tenant_id: str, customer_id: str):
        ledger_store.delete(tenant_id, 'customers', customer_id)

    @classmethod
    def get_customer(cls, tenant_id: str, customer_id: str) -> Dict[str, Any]:
        return ledger_store.get(tenant_id, 'customers', customer_id)

    @classmethod
    def list_customers(cls, tenant_id: str) -> List[Dict[str, Any]]:
        return ledger_store.query(tenant_id, 'customers')
