"""Ledger store: tenant-scoped collections on top of SQLAlchemy.

Handles:
- Point reads, filtered queries (``==`` and ``in``)
- Single-record create / update / delete
- Atomic multi-record transactions with conflict detection and retry
- Live subscriptions re-emitting the full result set after each commit

Every call takes an explicit tenant id. Records are plain dicts built by
the models' ``to_dict``; money values are ``Decimal``, dates ISO strings.
"""
import logging
import threading
import time
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ledger import db
from ledger.models import Customer, Invoice, Service, Voucher
from ledger.utils.errors import (
    ConflictError, LedgerError, NotFound, StoreUnavailable, ValidationError
)
from ledger.utils.helpers import parse_date, to_money

logger = logging.getLogger(__name__)

COLLECTIONS = {
    'customers': Customer,
    'services': Service,
    'invoices': Invoice,
    'vouchers': Voucher,
}

FILTER_OPERATORS = ('==', 'in')

# Champs gérés par le store, jamais écrits par l'appelant
PROTECTED_FIELDS = {'id', 'tenant_id', 'version', 'created_at', 'updated_at'}

# Champs dérivés: écrits uniquement par les transactions des services
DERIVED_FIELDS = {
    'invoices': {'invoice_number', 'total', 'paid_amount', 'remaining_amount', 'status'},
    'vouchers': {'voucher_number', 'invoice_id', 'invoice_number', 'amount'},
}

Filter = Tuple[str, str, Any]


def _json_safe(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


class Subscription:
    """Live view of a collection.

    The callback receives the full current result set once at
    subscription time, then after every committed change to the
    collection. ``close()`` is idempotent; the handle is also a context
    manager so the listener is released on every exit path.
    """

    def __init__(self, store: 'LedgerStore', tenant_id: str, collection: str,
                 callback: Callable[[List[Dict[str, Any]]], None],
                 filters: Optional[Sequence[Filter]] = None):
        self._store = store
        self.tenant_id = tenant_id
        self.collection = collection
        self.filters = list(filters or [])
        self._callback = callback
        self.active = True

    def emit(self, records: List[Dict[str, Any]]):
        if not self.active:
            return
        try:
            self._callback(records)
        except Exception:
            logger.exception(f"Subscription callback failed for {self.tenant_id}/{self.collection}")

    def close(self):
        if self.active:
            self.active = False
            self._store._unregister(self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class LedgerTransaction:
    """Operations scoped to one transaction attempt.

    Every instance read or written here is held until the attempt ends.
    The session's identity map only keeps weak references, so without
    this an update would reload the row and lose the version it was read
    with. Held instances keep that version and a concurrent commit makes
    the flush fail with StaleDataError instead of being overwritten.
    """

    def __init__(self, store: 'LedgerStore', session, tenant_id: str):
        self._store = store
        self._session = session
        self.tenant_id = tenant_id
        self.touched = set()
        self._held: Dict[Tuple[str, str], Any] = {}

    def _hold(self, collection: str, record_id: str):
        key = (collection, record_id)
        obj = self._held.get(key)
        if obj is None:
            model = self._store._model(collection)
            obj = self._store._load(self._session, model, self.tenant_id, record_id)
            self._held[key] = obj
        return obj

    def get(self, collection: str, record_id: str) -> Dict[str, Any]:
        return self._hold(collection, record_id).to_dict()

    def query(self, collection: str, filters: Optional[Sequence[Filter]] = None) -> List[Dict[str, Any]]:
        model = self._store._model(collection)
        stmt = self._store._select(model, self.tenant_id, filters)
        records = []
        for obj in self._session.execute(stmt).scalars():
            self._held.setdefault((collection, obj.id), obj)
            records.append(obj.to_dict())
        return records

    def create(self, collection: str, record: Dict[str, Any]) -> str:
        model = self._store._model(collection)
        obj = model(tenant_id=self.tenant_id, **self._store._prepare(model, record))
        self._session.add(obj)
        self._session.flush()
        self._held[(collection, obj.id)] = obj
        self.touched.add(collection)
        return obj.id

    def update(self, collection: str, record_id: str, fields: Dict[str, Any]):
        model = self._store._model(collection)
        values = self._store._prepare(model, fields)
        obj = self._hold(collection, record_id)
        for key, value in values.items():
            setattr(obj, key, value)
        self.touched.add(collection)

    def delete(self, collection: str, record_id: str):
        self._session.delete(self._hold(collection, record_id))
        self._held.pop((collection, record_id), None)
        self.touched.add(collection)


class LedgerStore:
    """Persistence abstraction used by every ledger service."""

    def __init__(self):
        self._subscribers: Dict[Tuple[str, str], List[Subscription]] = {}
        self._lock = threading.Lock()

    # ==================== Lecture ====================

    def get(self, tenant_id: str, collection: str, record_id: str) -> Dict[str, Any]:
        """Point read.

        Raises:
            NotFound: no such record for this tenant
        """
        model = self._model(collection)
        stmt = select(model).where(
            model.id == record_id,
            model.tenant_id == tenant_id
        ).execution_options(populate_existing=True)
        obj = self._execute(lambda: db.session.execute(stmt).scalar_one_or_none())
        if obj is None:
            raise NotFound(self._not_found_message(collection))
        return obj.to_dict()

    def query(self, tenant_id: str, collection: str,
              filters: Optional[Sequence[Filter]] = None) -> List[Dict[str, Any]]:
        """Filtered read, oldest first.

        Args:
            filters: List of (field, op, value) with op in ``==`` / ``in``
        """
        model = self._model(collection)
        stmt = self._select(model, tenant_id, filters).execution_options(populate_existing=True)
        objs = self._execute(lambda: db.session.execute(stmt).scalars().all())
        return [obj.to_dict() for obj in objs]

    # ==================== Écriture simple ====================

    def create(self, tenant_id: str, collection: str, record: Dict[str, Any]) -> str:
        """Insert a record and return its store-assigned id."""
        model = self._model(collection)
        obj = model(tenant_id=tenant_id, **self._prepare(model, record))
        db.session.add(obj)
        self._commit()
        logger.debug(f"Created {collection}/{obj.id} for tenant {tenant_id}")
        self._publish(tenant_id, {collection})
        return obj.id

    def update(self, tenant_id: str, collection: str, record_id: str, fields: Dict[str, Any]):
        """Partial update.

        Derived fields (invoice totals and status, voucher amounts) are
        rejected here; they only change through a service transaction.

        Raises:
            ValidationError: unknown, protected or derived field
            NotFound: no such record for this tenant
        """
        model = self._model(collection)
        values = self._prepare(model, fields)
        derived = sorted(DERIVED_FIELDS.get(collection, set()).intersection(values))
        if derived:
            raise ValidationError(f"Champ non modifiable: {', '.join(derived)}")
        obj = self._execute(lambda: self._load(db.session, model, tenant_id, record_id, refresh=True))
        for key, value in values.items():
            setattr(obj, key, value)
        self._commit()
        self._publish(tenant_id, {collection})

    def delete(self, tenant_id: str, collection: str, record_id: str):
        """Hard delete. Related records are left untouched.

        Raises:
            NotFound: no such record for this tenant
        """
        model = self._model(collection)
        obj = self._execute(lambda: self._load(db.session, model, tenant_id, record_id, refresh=True))
        db.session.delete(obj)
        self._commit()
        logger.info(f"Deleted {collection}/{record_id} for tenant {tenant_id}")
        self._publish(tenant_id, {collection})

    # ==================== Transactions ====================

    def transact(self, tenant_id: str, fn: Callable[[LedgerTransaction], Any],
                 max_attempts: Optional[int] = None) -> Any:
        """Run ``fn(tx)`` atomically.

        A stale version or a unique-constraint violation aborts the
        attempt; the whole function is run again after an exponential
        backoff. Any other exception rolls back and propagates.

        Raises:
            ConflictError: conflicts persisted through every attempt
            StoreUnavailable: the database could not be reached
        """
        config = current_app.config
        max_attempts = max_attempts or config.get('LEDGER_TRANSACTION_MAX_ATTEMPTS', 5)
        backoff = config.get('LEDGER_TRANSACTION_BACKOFF', 0.05)
        session = db.session

        for attempt in range(1, max_attempts + 1):
            # Toutes les lectures de la tentative partent de l'état commité
            session.expire_all()
            tx = LedgerTransaction(self, session, tenant_id)
            try:
                result = fn(tx)
                session.commit()
            except (StaleDataError, IntegrityError) as e:
                session.rollback()
                if attempt >= max_attempts:
                    logger.error(f"Transaction for tenant {tenant_id} still conflicting after {attempt} attempts: {e}")
                    raise ConflictError(
                        'Conflit d\'écriture, veuillez réessayer',
                        details={'attempts': attempt}
                    ) from e
                delay = backoff * (2 ** (attempt - 1))
                logger.warning(f"Write conflict for tenant {tenant_id} (attempt {attempt}/{max_attempts}), retrying in {delay:.3f}s")
                if delay:
                    time.sleep(delay)
                continue
            except OperationalError as e:
                session.rollback()
                logger.error(f"Store unavailable during transaction: {e}")
                raise StoreUnavailable('Base de données indisponible') from e
            except Exception:
                session.rollback()
                raise

            self._publish(tenant_id, tx.touched)
            return result

    # ==================== Abonnements ====================

    def subscribe(self, tenant_id: str, collection: str,
                  callback: Callable[[List[Dict[str, Any]]], None],
                  filters: Optional[Sequence[Filter]] = None) -> Subscription:
        """Register a live listener and emit the current result set."""
        model = self._model(collection)
        self._select(model, tenant_id, filters)

        subscription = Subscription(self, tenant_id, collection, callback, filters)
        with self._lock:
            self._subscribers.setdefault((tenant_id, collection), []).append(subscription)

        try:
            subscription.emit(self.query(tenant_id, collection, subscription.filters))
        except LedgerError:
            subscription.close()
            raise
        return subscription

    def subscriber_count(self, tenant_id: str, collection: str) -> int:
        with self._lock:
            return len(self._subscribers.get((tenant_id, collection), []))

    def _unregister(self, subscription: Subscription):
        key = (subscription.tenant_id, subscription.collection)
        with self._lock:
            listeners = self._subscribers.get(key, [])
            if subscription in listeners:
                listeners.remove(subscription)
            if not listeners:
                self._subscribers.pop(key, None)

    def _publish(self, tenant_id: str, collections: Iterable[str]):
        for collection in collections:
            with self._lock:
                listeners = list(self._subscribers.get((tenant_id, collection), []))
            for subscription in listeners:
                try:
                    records = self.query(tenant_id, collection, subscription.filters)
                except LedgerError as e:
                    logger.error(f"Could not refresh subscription {tenant_id}/{collection}: {e.message}")
                    continue
                subscription.emit(records)

    # ==================== Interne ====================

    def _model(self, collection: str):
        model = COLLECTIONS.get(collection)
        if model is None:
            raise ValidationError(f'Collection inconnue: {collection}')
        return model

    def _not_found_message(self, collection: str) -> str:
        labels = {
            'customers': 'Client non trouvé',
            'services': 'Service non trouvé',
            'invoices': 'Facture non trouvée',
            'vouchers': 'Bon de paiement non trouvé',
        }
        return labels.get(collection, 'Ressource non trouvée')

    def _load(self, session, model, tenant_id: str, record_id: str, refresh: bool = False):
        stmt = select(model).where(model.id == record_id, model.tenant_id == tenant_id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        obj = session.execute(stmt).scalar_one_or_none()
        if obj is None:
            raise NotFound(self._not_found_message(model.__tablename__))
        return obj

    def _select(self, model, tenant_id: str, filters: Optional[Sequence[Filter]]):
        stmt = select(model).where(model.tenant_id == tenant_id)
        for flt in filters or []:
            try:
                field, op, value = flt
            except (TypeError, ValueError):
                raise ValidationError('Filtre invalide, attendu: (champ, opérateur, valeur)')
            column = self._column(model, field)
            if op == '==':
                stmt = stmt.where(column == self._coerce(model, field, value))
            elif op == 'in':
                if not isinstance(value, (list, tuple, set, frozenset)):
                    raise ValidationError(f"L'opérateur 'in' attend une liste pour {field}")
                stmt = stmt.where(column.in_([self._coerce(model, field, v) for v in value]))
            else:
                raise ValidationError(f"Opérateur non supporté: {op} (valeurs: {', '.join(FILTER_OPERATORS)})")
        return stmt.order_by(model.created_at, model.id)

    def _column(self, model, field: str):
        if field == 'tenant_id' or field not in model.__table__.columns:
            raise ValidationError(f'Champ inconnu: {field}')
        return getattr(model, field)

    def _coerce(self, model, field: str, value):
        if value is None:
            return None
        column_type = model.__table__.columns[field].type
        if isinstance(column_type, db.Date):
            return parse_date(value, field)
        if isinstance(column_type, db.Numeric):
            return to_money(value, field)
        if isinstance(column_type, db.Integer):
            try:
                return int(value)
            except (TypeError, ValueError):
                raise ValidationError(f'{field} doit être un entier')
        if isinstance(column_type, db.JSON):
            return _json_safe(value)
        return value

    def _prepare(self, model, record: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(record, dict):
            raise ValidationError('Données invalides')
        values = {}
        for field, value in record.items():
            if field in PROTECTED_FIELDS:
                raise ValidationError(f'Champ non modifiable: {field}')
            self._column(model, field)
            values[field] = self._coerce(model, field, value)
        return values

    def _execute(self, operation: Callable[[], Any]):
        try:
            return operation()
        except OperationalError as e:
            db.session.rollback()
            logger.error(f"Store unavailable: {e}")
            raise StoreUnavailable('Base de données indisponible') from e

    def _commit(self):
        try:
            db.session.commit()
        except (StaleDataError, IntegrityError) as e:
            db.session.rollback()
            logger.warning(f"Write conflict on commit: {e}")
            raise ConflictError('Conflit d\'écriture, veuillez réessayer') from e
        except OperationalError as e:
            db.session.rollback()
            logger.error(f"Store unavailable on commit: {e}")
            raise StoreUnavailable('Base de données indisponible') from e


ledger_store = LedgerStore()
