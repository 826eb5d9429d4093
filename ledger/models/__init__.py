"""
Modèles de l'application
Export centralisé de tous les modèles SQLAlchemy
"""

from ledger.models.enums import InvoiceStatus, MONTH_NAMES, get_month_name
from ledger.models.profile import Profile
from ledger.models.customer import Customer
from ledger.models.service import Service
from ledger.models.invoice import Invoice
from ledger.models.voucher import Voucher

__all__ = [
    # Enums
    'InvoiceStatus',
    'MONTH_NAMES',
    'get_month_name',
    # Models
    'Profile',
    'Customer',
    'Service',
    'Invoice',
    'Voucher'
]
