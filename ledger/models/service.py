"""
Modèle Service - Catalogue des prestations
Le prix est recopié dans les lignes de facture à la création
"""

from ledger import db
from datetime import datetime
from decimal import Decimal
import uuid


class Service(db.Model):
    """Prestation vendue par le tenant"""
    __tablename__ = 'services'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = db.Column(db.String(64), nullable=False, index=True)

    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text)
    price = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal('0'))

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'price': Decimal(self.price or 0),
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
