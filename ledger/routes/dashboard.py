"""
Routes - Dashboard
Statistiques du tableau de bord (ventes, bénéfice estimé, séries mensuelles)
"""

from flask import Blueprint, jsonify
from ledger.services.dashboard_service import DashboardService
from ledger.utils.decorators import tenant_required

dashboard_bp = Blueprint('dashboard', __name__)


@dashboard_bp.route('', methods=['GET'])
@tenant_required
def get_dashboard(tenant_id):
    """
    Statistiques générales du dashboard

    Returns:
        - total_sales, estimated_profit
        - monthly_sales: [{name, sales}]
        - recent_invoices: 5 dernières factures par date
        - customer_count, invoice_count
    """
    return jsonify(DashboardService.get_dashboard(tenant_id))
