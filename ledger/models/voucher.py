"""
Modèle Voucher - Bons de paiement (reçus)
Un bon atteste un paiement appliqué à une facture
"""

from ledger import db
from datetime import datetime, date
from decimal import Decimal
import uuid


class Voucher(db.Model):
    """
    Bon de paiement
    Créé uniquement par la transaction de paiement, jamais modifié.
    invoice_id n'est pas une clé étrangère: supprimer la facture
    laisse ses bons en place.
    """
    __tablename__ = 'vouchers'
    __table_args__ = (
        db.UniqueConstraint('tenant_id', 'voucher_number', name='uq_vouchers_tenant_number'),
    )

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = db.Column(db.String(64), nullable=False, index=True)

    voucher_number = db.Column(db.Integer, nullable=False)

    # Facture payée (numéro dénormalisé)
    invoice_id = db.Column(db.String(36), nullable=False, index=True)
    invoice_number = db.Column(db.Integer)

    # Payeur (nom dénormalisé)
    customer_id = db.Column(db.String(36))
    customer_name = db.Column(db.String(150))

    amount = db.Column(db.Numeric(18, 2), nullable=False)
    date = db.Column(db.Date, nullable=False, default=date.today)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        """Sérialisation en dictionnaire"""
        return {
            'id': self.id,
            'voucher_number': self.voucher_number,
            'invoice_id': self.invoice_id,
            'invoice_number': self.invoice_number,
            'customer_id': self.customer_id,
            'customer_name': self.customer_name,
            'amount': Decimal(self.amount or 0),
            'date': self.date.isoformat() if self.date else None,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
