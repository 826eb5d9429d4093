"""
Routes - Bons de paiement
=========================

Enregistrement des paiements et reçus PDF.
Un bon n'est jamais modifié ni supprimé.
"""

from flask import Blueprint, current_app, request, jsonify, make_response
from ledger.services.ledger_store import ledger_store
from ledger.services.payment_service import PaymentService
from ledger.services.receipt_service import ReceiptService
from ledger.utils.decorators import tenant_required

vouchers_bp = Blueprint('vouchers', __name__)


@vouchers_bp.route('', methods=['GET'])
@tenant_required
def list_vouchers(tenant_id):
    """
    Liste des bons

    Query params:
        - invoice_id: Filtrer par facture
    """
    filters = []
    if request.args.get('invoice_id'):
        filters.append(('invoice_id', '==', request.args['invoice_id']))
    vouchers = ledger_store.query(tenant_id, 'vouchers', filters)
    return jsonify({'vouchers': vouchers, 'total': len(vouchers)})


@vouchers_bp.route('', methods=['POST'])
@tenant_required
def record_payment(tenant_id):
    """
    Enregistre un paiement sur une facture

    Body:
        - invoice_id: Facture payée (requis)
        - amount: Montant > 0 (requis)
        - date: YYYY-MM-DD (défaut: aujourd'hui)
    """
    data = request.get_json(silent=True)
    if data is None:
        return jsonify({'error': 'Données JSON requises'}), 400
    if not data.get('invoice_id'):
        return jsonify({'error': 'La facture est requise', 'code': 'VALIDATION_ERROR'}), 400

    voucher = PaymentService.record_payment(
        tenant_id,
        data['invoice_id'],
        data.get('amount'),
        voucher_meta={'date': data.get('date')}
    )
    return jsonify({'message': 'Paiement enregistré', 'voucher': voucher}), 201


@vouchers_bp.route('/<voucher_id>', methods=['GET'])
@tenant_required
def get_voucher(voucher_id, tenant_id):
    return jsonify({'voucher': ledger_store.get(tenant_id, 'vouchers', voucher_id)})


@vouchers_bp.route('/<voucher_id>/receipt', methods=['GET'])
@tenant_required
def download_receipt(voucher_id, tenant_id):
    """Reçu PDF du bon"""
    voucher = ledger_store.get(tenant_id, 'vouchers', voucher_id)
    service = ReceiptService(
        company_name=current_app.config.get('RECEIPT_COMPANY_NAME', 'Ledger'),
        currency=current_app.config.get('RECEIPT_CURRENCY', 'SAR')
    )
    pdf_data = service.render_voucher(voucher)

    response = make_response(pdf_data)
    response.headers['Content-Type'] = 'application/pdf'
    response.headers['Content-Disposition'] = f'attachment; filename="{service.filename(voucher)}"'
    response.headers['Content-Length'] = len(pdf_data)
    return response
