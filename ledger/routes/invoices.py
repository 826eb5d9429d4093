"""
Routes - Gestion des Factures
=============================

CRUD des factures. Les montants (total, reste, statut) sont toujours
recalculés côté serveur; le montant payé n'évolue que par les bons.
"""

from flask import Blueprint, request, jsonify
from ledger.services.invoice_service import InvoiceService
from ledger.utils.decorators import tenant_required

invoices_bp = Blueprint('invoices', __name__)


@invoices_bp.route('', methods=['GET'])
@tenant_required
def list_invoices(tenant_id):
    """
    Liste des factures

    Query params:
        - status: pending, partially_paid, paid, overdue
        - customer_id: Filtrer par client
    """
    invoices = InvoiceService.list_invoices(
        tenant_id,
        status=request.args.get('status'),
        customer_id=request.args.get('customer_id')
    )
    return jsonify({'invoices': invoices, 'total': len(invoices)})


@invoices_bp.route('', methods=['POST'])
@tenant_required
def create_invoice(tenant_id):
    """
    Crée une facture

    Body:
        - customer_id: ID du client (requis)
        - items: [{service_id?, name, quantity, price}] (requis)
        - date: YYYY-MM-DD (défaut: aujourd'hui)
    """
    data = request.get_json(silent=True)
    if data is None:
        return jsonify({'error': 'Données JSON requises'}), 400

    invoice = InvoiceService.create_invoice(
        tenant_id,
        customer_id=data.get('customer_id'),
        items=data.get('items'),
        date=data.get('date')
    )
    return jsonify({'message': 'Facture créée', 'invoice': invoice}), 201


@invoices_bp.route('/<invoice_id>', methods=['GET'])
@tenant_required
def get_invoice(invoice_id, tenant_id):
    return jsonify({'invoice': InvoiceService.get_invoice(tenant_id, invoice_id)})


@invoices_bp.route('/<invoice_id>', methods=['PUT'])
@tenant_required
def update_invoice(invoice_id, tenant_id):
    """
    Modifie une facture

    Body: {customer_id?, date?, items?}
    """
    data = request.get_json(silent=True)
    if data is None:
        return jsonify({'error': 'Données JSON requises'}), 400

    invoice = InvoiceService.update_invoice(tenant_id, invoice_id, data)
    return jsonify({'message': 'Facture mise à jour', 'invoice': invoice})


@invoices_bp.route('/<invoice_id>', methods=['DELETE'])
@tenant_required
def delete_invoice(invoice_id, tenant_id):
    """Suppression définitive; les bons de paiement sont conservés"""
    InvoiceService.delete_invoice(tenant_id, invoice_id)
    return jsonify({'message': 'Facture supprimée'})


@invoices_bp.route('/<invoice_id>/vouchers', methods=['GET'])
@tenant_required
def invoice_vouchers(invoice_id, tenant_id):
    vouchers = InvoiceService.get_invoice_vouchers(tenant_id, invoice_id)
    return jsonify({'vouchers': vouchers, 'total': len(vouchers)})


@invoices_bp.route('/<invoice_id>/overdue', methods=['POST'])
@tenant_required
def mark_overdue(invoice_id, tenant_id):
    invoice = InvoiceService.mark_overdue(tenant_id, invoice_id)
    return jsonify({'message': 'Facture marquée en retard', 'invoice': invoice})
