"""Catalog service: services sold by a tenant."""
import logging
from typing import Any, Dict, List

from ledger.services.ledger_store import ledger_store
from ledger.utils.errors import ValidationError
from ledger.utils.helpers import clean_string, to_money

logger = logging.getLogger(__name__)


class CatalogService:
    """Service for catalog entries.

    Editing a price only affects invoices created afterwards; existing
    line items keep the price they copied.
    """

    EDITABLE_FIELDS = ('name', 'description', 'price')

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
                raise ValidationError('Le nom du service est requis')
            fields['name'] = name

        if 'description' in data:
            fields['description'] = clean_string(data.get('description'))

        if 'price' in data or not partial:
            price = to_money(data.get('price'), 'prix')
            if price < 0:
                raise ValidationError('Le prix ne peut pas être négatif')
            fields['price'] = price

        return fields

    @classmethod
    def create_service(cls, tenant_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        service_id = ledger_store.create(tenant_id, 'services', cls._clean(data))
        logger.info(f"Service {service_id} created for tenant {tenant_id}")
        return ledger_store.get(tenant_id, 'services', service_id)

    @classmethod
    def update_service(cls, tenant_id: str, service_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        ledger_store.update(tenant_id, 'services', service_id, cls._clean(data, partial=True))
        return ledger_store.get(tenant_id, 'services', service_id)

    @classmethod
    def delete_service(cls, tenant_id: str, service_id: str):
        ledger_store.delete(tenant_id, 'services', service_id)

    @classmethod
    def get_service(cls, tenant_id: str, service_id: str) -> Dict[str, Any]:
        return ledger_store.get(tenant_id, 'services', service_id)

    @classmethod
    def list_services(cls, tenant_id: str) -> List[Dict[str, Any]]:
        return ledger_store.query(tenant_id, 'services')
