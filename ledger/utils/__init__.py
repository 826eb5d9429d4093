from ledger.utils.errors import (
    LedgerError, ValidationError, InvalidAmount, AuthenticationError,
    NotFound, ConflictError, StoreUnavailable
)

__all__ = [
    'LedgerError', 'ValidationError', 'InvalidAmount', 'AuthenticationError',
    'NotFound', 'ConflictError', 'StoreUnavailable'
]
