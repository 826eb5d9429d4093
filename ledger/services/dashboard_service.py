"""Dashboard service: read-side rollup of a tenant's invoices.

Handles:
- Total sales and estimated profit
- Monthly sales series (month-name buckets, first-seen order)
- Recent invoices
- Customer and invoice counts
- Live feed recomputed on every invoice or customer change

The rollup is recomputed wholesale from the collection snapshot, never
maintained incrementally.
"""
import logging
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional

from flask import current_app

from ledger.models.enums import get_month_name
from ledger.services.ledger_store import ledger_store
from ledger.utils.helpers import parse_date, to_decimal

logger = logging.getLogger(__name__)

DEFAULT_PROFIT_MARGIN = Decimal('0.25')
DEFAULT_RECENT_LIMIT = 5


class DashboardService:
    """Pure projections over invoice snapshots."""

    @classmethod
    def total_sales(cls, invoices: Iterable[Dict[str, Any]]) -> Decimal:
        return sum((to_decimal(inv.get('total', 0)) for inv in invoices), Decimal('0'))

    @classmethod
    def monthly_sales(cls, invoices: Iterable[Dict[str, Any]], locale: str = 'en') -> List[Dict[str, Any]]:
        """Sum totals per calendar month name.

        Buckets are keyed by month name only (March 2024 and March 2025
        share a bucket) and listed in order of first appearance.
        """
        buckets: Dict[str, Dict[str, Any]] = {}
        for inv in invoices:
            if not inv.get('date'):
                continue
            name = get_month_name(parse_date(inv['date']).month, locale)
            if name not in buckets:
                buckets[name] = {'name': name, 'sales': Decimal('0')}
            buckets[name]['sales'] += to_decimal(inv.get('total', 0))
        return list(buckets.values())

    @classmethod
    def recent_invoices(cls, invoices: Iterable[Dict[str, Any]],
                        limit: int = DEFAULT_RECENT_LIMIT) -> List[Dict[str, Any]]:
        """Most recent invoices by date, newest first."""
        dated = [inv for inv in invoices if inv.get('date')]
        return sorted(dated, key=lambda inv: parse_date(inv['date']), reverse=True)[:limit]

    @classmethod
    def compute(cls, invoices: List[Dict[str, Any]], customer_count: int = 0,
                profit_margin=None, locale: Optional[str] = None,
                recent_limit: Optional[int] = None) -> Dict[str, Any]:
        """Build the full dashboard payload.

        Args:
            invoices: Invoice records of the tenant
            customer_count: Number of customers
            profit_margin: Ratio applied to total sales (default 0.25)
            locale: Month-name table (en, fr, ar)
            recent_limit: Number of recent invoices

        Returns:
            dict: total_sales, estimated_profit, monthly_sales,
            recent_invoices, customer_count, invoice_count
        """
        margin = to_decimal(profit_margin if profit_margin is not None else DEFAULT_PROFIT_MARGIN, 'marge')
        total = cls.total_sales(invoices)

        return {
            'total_sales': total,
            'estimated_profit': total * margin,
            'monthly_sales': cls.monthly_sales(invoices, locale or 'en'),
            'recent_invoices': cls.recent_invoices(invoices, recent_limit or DEFAULT_RECENT_LIMIT),
            'customer_count': customer_count,
            'invoice_count': len(invoices)
        }

    @classmethod
    def settings(cls) -> Dict[str, Any]:
        """Rollup settings from the app config"""
        config = current_app.config
        return {
            'profit_margin': config.get('LEDGER_PROFIT_MARGIN', DEFAULT_PROFIT_MARGIN),
            'locale': config.get('LEDGER_MONTH_LOCALE', 'en'),
            'recent_limit': config.get('LEDGER_RECENT_INVOICES', DEFAULT_RECENT_LIMIT)
        }

    @classmethod
    def get_dashboard(cls, tenant_id: str) -> Dict[str, Any]:
        """One-shot dashboard for a tenant"""
        invoices = ledger_store.query(tenant_id, 'invoices')
        customers = ledger_store.query(tenant_id, 'customers')
        return cls.compute(invoices, len(customers), **cls.settings())


class DashboardFeed:
    """Live dashboard.

    Listens to invoices and customers as two independent streams and
    pushes a recomputed payload to ``on_update`` after each event. A
    customer event only refreshes the count; the invoice figures keep
    their last known values.
    """

    def __init__(self, tenant_id: str, on_update: Callable[[Dict[str, Any]], None]):
        self.tenant_id = tenant_id
        self._on_update = on_update
        self._settings = DashboardService.settings()
        self._invoices: List[Dict[str, Any]] = []
        self._customer_count = 0
        self.snapshot: Optional[Dict[str, Any]] = None
        self._subscriptions = []

        try:
            self._subscriptions.append(
                ledger_store.subscribe(tenant_id, 'invoices', self._on_invoices)
            )
            self._subscriptions.append(
                ledger_store.subscribe(tenant_id, 'customers', self._on_customers)
            )
        except Exception:
            self.close()
            raise

    def _on_invoices(self, records):
        self._invoices = records
        self._refresh()

    def _on_customers(self, records):
        self._customer_count = len(records)
        self._refresh()

    def _refresh(self):
        self.snapshot = DashboardService.compute(self._invoices, self._customer_count, **self._settings)
        self._on_update(self.snapshot)

    def close(self):
        """Release both subscriptions (idempotent)"""
        for subscription in self._subscriptions:
            subscription.close()
        self._subscriptions = []
        logger.debug(f"Dashboard feed closed for tenant {self.tenant_id}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
