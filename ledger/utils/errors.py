"""
Erreurs métier du ledger
========================

Toutes les erreurs levées par le cœur dérivent de LedgerError.
Chaque erreur porte un code stable et le statut HTTP correspondant,
ce qui permet à l'application Flask de les convertir en réponse JSON.
"""


class LedgerError(Exception):
    """Erreur de base du ledger"""
    status_code = 500
    code = 'LEDGER_ERROR'

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.details = details or {}

    def to_dict(self):
        data = {'error': self.message, 'code': self.code}
        if self.details:
            data['details'] = self.details
        return data


class ValidationError(LedgerError):
    """Données invalides (champ manquant, montant négatif, doublon...)"""
    status_code = 400
    code = 'VALIDATION_ERROR'


class InvalidAmount(ValidationError):
    """Montant de paiement nul, négatif ou refusé"""
    code = 'INVALID_AMOUNT'


class AuthenticationError(LedgerError):
    """Identifiants incorrects"""
    status_code = 401
    code = 'UNAUTHORIZED'


class NotFound(LedgerError):
    """Enregistrement introuvable pour ce tenant"""
    status_code = 404
    code = 'NOT_FOUND'


class ConflictError(LedgerError):
    """Conflit d'écriture persistant après toutes les tentatives"""
    status_code = 409
    code = 'CONFLICT'


class StoreUnavailable(LedgerError):
    """Base de données injoignable"""
    status_code = 503
    code = 'STORE_UNAVAILABLE'
