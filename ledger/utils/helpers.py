"""
Fonctions utilitaires
Helpers réutilisables dans toute l'application
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from ledger.utils.errors import ValidationError


def to_decimal(value, field: str = 'montant') -> Decimal:
    """
    Convertit une valeur en Decimal exact

    Les floats passent par leur représentation texte pour éviter
    d'importer l'erreur binaire (0.1 -> Decimal('0.1')).

    Raises:
        ValidationError: si la valeur n'est pas un nombre
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None:
        raise ValidationError(f'{field.capitalize()} invalide')
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f'{field.capitalize()} invalide')

    if not result.is_finite():
        raise ValidationError(f'{field.capitalize()} invalide')
    return result


CENT = Decimal('0.01')
MONEY_LIMIT = Decimal('1E16')


def to_money(value, field: str = 'montant') -> Decimal:
    """
    Convertit un montant monétaire: au plus 2 décimales, ramené au centime

    '19.9' -> Decimal('19.90'), '0.005' -> ValidationError.
    Les colonnes Numeric(18, 2) arrondiraient silencieusement les
    fractions de centime.

    Raises:
        ValidationError: valeur non numérique, trop grande ou trop précise
    """
    result = to_decimal(value, field)
    if abs(result) >= MONEY_LIMIT:
        raise ValidationError(f'{field.capitalize()} trop élevé')
    quantized = result.quantize(CENT)
    if quantized != result:
        raise ValidationError(f'{field.capitalize()} invalide: au plus 2 décimales')
    return quantized


def parse_date(value, field: str = 'date') -> date:
    """
    Convertit une valeur (date, datetime ou texte YYYY-MM-DD) en date

    Raises:
        ValidationError: si le format est invalide
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.strptime(value[:10], '%Y-%m-%d').date()
        except ValueError:
            pass
    raise ValidationError(f'Format de {field} invalide (attendu: YYYY-MM-DD)')


def clean_string(value, max_length: int = None):
    """Supprime les espaces superflus, retourne None pour une chaîne vide"""
    if value is None:
        return None
    value = str(value).strip()
    if not value:
        return None
    if max_length:
        value = value[:max_length]
    return value
