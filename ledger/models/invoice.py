"""
Modèle Invoice - Factures clients
Les lignes sont embarquées (JSON), les montants sont dérivés par l'agrégateur
"""

from ledger import db
from ledger.models.enums import InvoiceStatus
from datetime import datetime, date
from decimal import Decimal
import uuid


class Invoice(db.Model):
    """
    Facture émise pour un client
    paid_amount n'est modifié que par la transaction de paiement
    """
    __tablename__ = 'invoices'
    __table_args__ = (
        db.UniqueConstraint('tenant_id', 'invoice_number', name='uq_invoices_tenant_number'),
    )

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = db.Column(db.String(64), nullable=False, index=True)

    # Numéro séquentiel par tenant (1001, 1002, ...)
    invoice_number = db.Column(db.Integer, nullable=False)

    # Client (nom dénormalisé au moment de la facture)
    customer_id = db.Column(db.String(36), index=True)
    customer_name = db.Column(db.String(150))

    date = db.Column(db.Date, nullable=False, default=date.today)

    # Lignes: [{service_id, name, quantity, price}] avec price en texte
    items = db.Column(db.JSON, nullable=False, default=list)

    # Montants
    total = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal('0'))
    paid_amount = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal('0'))
    remaining_amount = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal('0'))

    status = db.Column(db.String(20), nullable=False, default=InvoiceStatus.PENDING.value)

    # Compteur de version pour la détection des écritures concurrentes
    version = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __mapper_args__ = {'version_id_col': version}

    def to_dict(self):
        """Sérialisation en dictionnaire"""
        items = []
        for item in self.items or []:
            quantity = int(item.get('quantity', 0))
            price = Decimal(str(item.get('price', '0')))
            items.append({
                'service_id': item.get('service_id'),
                'name': item.get('name'),
                'quantity': quantity,
                'price': price,
                'subtotal': price * quantity
            })

        return {
            'id': self.id,
            'invoice_number': self.invoice_number,
            'customer_id': self.customer_id,
            'customer_name': self.customer_name,
            'date': self.date.isoformat() if self.date else None,
            'items': items,
            'total': Decimal(self.total or 0),
            'paid_amount': Decimal(self.paid_amount or 0),
            'remaining_amount': Decimal(self.remaining_amount or 0),
            'status': self.status,
            'version': self.version,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }
