"""
Enums - Types énumérés pour les modèles
=======================================

Centralise les types énumérés pour éviter les "magic strings"
et garantir la cohérence des données.
"""

import enum


class InvoiceStatus(enum.Enum):
    """Statuts possibles d'une facture"""
    PENDING = 'pending'                  # Aucun paiement reçu
    PARTIALLY_PAID = 'partially_paid'    # Paiement partiel
    PAID = 'paid'                        # Reste dû <= 0
    OVERDUE = 'overdue'                  # En retard (attribué manuellement)

    @classmethod
    def get_label(cls, status: str, lang: str = 'en') -> str:
        """Retourne le label traduit d'un statut"""
        labels = {
            'en': {
                'pending': 'Pending',
                'partially_paid': 'Partially paid',
                'paid': 'Paid',
                'overdue': 'Overdue'
            },
            'fr': {
                'pending': 'En attente',
                'partially_paid': 'Payée partiellement',
                'paid': 'Payée',
                'overdue': 'En retard'
            },
            'ar': {
                'pending': 'قيد الانتظار',
                'partially_paid': 'مدفوعة جزئياً',
                'paid': 'مدفوعة',
                'overdue': 'متأخرة'
            }
        }
        return labels.get(lang, labels['en']).get(status, status)

    @classmethod
    def is_valid(cls, status: str) -> bool:
        """Vérifie si un statut est valide"""
        return status in [s.value for s in cls]

    @classmethod
    def payable(cls) -> list:
        """Statuts pour lesquels un paiement est encore attendu"""
        return [cls.PENDING.value, cls.PARTIALLY_PAID.value]


# Noms de mois utilisés par le dashboard (index 0 = janvier)
MONTH_NAMES = {
    'en': ['January', 'February', 'March', 'April', 'May', 'June',
           'July', 'August', 'September', 'October', 'November', 'December'],
    'fr': ['Janvier', 'Février', 'Mars', 'Avril', 'Mai', 'Juin',
           'Juillet', 'Août', 'Septembre', 'Octobre', 'Novembre', 'Décembre'],
    'ar': ['يناير', 'فبراير', 'مارس', 'أبريل', 'مايو', 'يونيو',
           'يوليو', 'أغسطس', 'سبتمبر', 'أكتوبر', 'نوفمبر', 'ديسمبر'],
}


def get_month_name(month: int, lang: str = 'en') -> str:
    """Nom du mois (1-12) dans la table demandée"""
    names = MONTH_NAMES.get(lang, MONTH_NAMES['en'])
    return names[month - 1]
