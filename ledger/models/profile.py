"""
Modèle Profile - Comptes utilisateurs
Le nom d'utilisateur sert d'identifiant de tenant
"""

from ledger import db
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash


class Profile(db.Model):
    """Compte d'un opérateur: une partition de données isolée"""
    __tablename__ = 'profiles'

    username = db.Column(db.String(64), primary_key=True)
    password_hash = db.Column(db.String(256), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'username': self.username,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
