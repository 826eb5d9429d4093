"""
Routes - Gestion des Clients
============================

CRUD des clients du tenant et factures à payer d'un client.
"""

from flask import Blueprint, request, jsonify
from ledger.services.customer_service import CustomerService
from ledger.services.invoice_service import InvoiceService
from ledger.utils.decorators import tenant_required

customers_bp = Blueprint('customers', __name__)


@customers_bp.route('', methods=['GET'])
@tenant_required
def list_customers(tenant_id):
    customers = CustomerService.list_customers(tenant_id)
    return jsonify({'customers': customers, 'total': len(customers)})


@customers_bp.route('', methods=['POST'])
@tenant_required
def create_customer(tenant_id):
    """
    Crée un client

    Body: {name, email?, phone?}
    """
    data = request.get_json(silent=True)
    if data is None:
        return jsonify({'error': 'Données JSON requises'}), 400

    customer = CustomerService.create_customer(tenant_id, data)
    return jsonify({'message': 'Client créé', 'customer': customer}), 201


@customers_bp.route('/<customer_id>', methods=['GET'])
@tenant_required
def get_customer(customer_id, tenant_id):
    return jsonify({'customer': CustomerService.get_customer(tenant_id, customer_id)})


@customers_bp.route('/<customer_id>', methods=['PUT'])
@tenant_required
def update_customer(customer_id, tenant_id):
    data = request.get_json(silent=True)
    if data is None:
        return jsonify({'error': 'Données JSON requises'}), 400

    customer = CustomerService.update_customer(tenant_id, customer_id, data)
    return jsonify({'message': 'Client mis à jour', 'customer': customer})


@customers_bp.route('/<customer_id>', methods=['DELETE'])
@tenant_required
def delete_customer(customer_id, tenant_id):
    CustomerService.delete_customer(tenant_id, customer_id)
    return jsonify({'message': 'Client supprimé'})


@customers_bp.route('/<customer_id>/payable-invoices', methods=['GET'])
@tenant_required
def payable_invoices(customer_id, tenant_id):
    """Factures en attente ou partiellement payées, avec le montant suggéré"""
    invoices = InvoiceService.get_payable_invoices(tenant_id, customer_id)
    return jsonify({'invoices': invoices, 'total': len(invoices)})
