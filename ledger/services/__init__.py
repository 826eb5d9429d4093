"""
Services de l'application
Logique métier réutilisable
"""

from ledger.services.ledger_store import LedgerStore, Subscription, ledger_store
from ledger.services.invoice_service import InvoiceService
from ledger.services.payment_service import PaymentService
from ledger.services.dashboard_service import DashboardService, DashboardFeed
from ledger.services.customer_service import CustomerService
from ledger.services.catalog_service import CatalogService
from ledger.services.auth_service import AuthService
from ledger.services.receipt_service import ReceiptService

__all__ = [
    'LedgerStore',
    'Subscription',
    'ledger_store',
    'InvoiceService',
    'PaymentService',
    'DashboardService',
    'DashboardFeed',
    'CustomerService',
    'CatalogService',
    'AuthService',
    'ReceiptService'
]
