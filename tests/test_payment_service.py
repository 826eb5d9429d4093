from decimal import Decimal

import pytest

from ledger.services.invoice_service import InvoiceService
from ledger.services.ledger_store import LedgerTransaction, ledger_store
from ledger.services.payment_service import PaymentService
from ledger.utils.errors import ConflictError, InvalidAmount, NotFound


def _vouchers(tenant, invoice_id):
    return InvoiceService.get_invoice_vouchers(tenant, invoice_id)


def test_round_trip_full_payment(tenant, make_invoice):
    invoice = make_invoice([(3, '50')])
    assert invoice['total'] == Decimal('150')
    assert invoice['status'] == 'pending'

    voucher = PaymentService.record_payment(tenant, invoice['id'], 150)

    invoice = InvoiceService.get_invoice(tenant, invoice['id'])
    assert invoice['status'] == 'paid'
    assert invoice['remaining_amount'] == Decimal('0')
    vouchers = _vouchers(tenant, invoice['id'])
    assert len(vouchers) == 1
    assert vouchers[0]['id'] == voucher['id']
    assert vouchers[0]['amount'] == Decimal('150')
    assert vouchers[0]['invoice_id'] == invoice['id']


def test_voucher_carries_denormalized_fields(tenant, customer, make_invoice):
    invoice = make_invoice()
    voucher = PaymentService.record_payment(tenant, invoice['id'], '40', {'date': '2024-03-05'})

    assert voucher['voucher_number'] == 1
    assert voucher['invoice_number'] == invoice['invoice_number']
    assert voucher['customer_id'] == customer['id']
    assert voucher['customer_name'] == 'Khalid Stores'
    assert voucher['date'] == '2024-03-05'
    assert voucher['created_at'] is not None


def test_paid_amount_matches_vouchers_after_every_payment(tenant, make_invoice):
    invoice = make_invoice([(1, '100')])
    expected_statuses = ['partially_paid', 'partially_paid', 'paid', 'paid']

    for amount, expected in zip(['10', '25.50', '64.50', '5'], expected_statuses):
        PaymentService.record_payment(tenant, invoice['id'], amount)
        current = InvoiceService.get_invoice(tenant, invoice['id'])
        paid = sum((v['amount'] for v in _vouchers(tenant, invoice['id'])), Decimal('0'))
        assert current['paid_amount'] == paid
        assert current['remaining_amount'] == current['total'] - current['paid_amount']
        assert current['status'] == expected

    assert current['remaining_amount'] == Decimal('-5')


def test_cent_amounts_keep_vouchers_and_paid_amount_equal(tenant, make_invoice):
    invoice = make_invoice([(3, '0.33'), (1, '0.01')])
    assert invoice['total'] == Decimal('1.00')

    for amount in ('0.01', 0.1, '0.10', '0.79'):
        PaymentService.record_payment(tenant, invoice['id'], amount)

    invoice = InvoiceService.get_invoice(tenant, invoice['id'])
    vouchers = _vouchers(tenant, invoice['id'])
    assert sorted(v['amount'] for v in vouchers) == [Decimal('0.01'), Decimal('0.10'), Decimal('0.10'), Decimal('0.79')]
    assert invoice['paid_amount'] == sum((v['amount'] for v in vouchers), Decimal('0'))
    assert invoice['remaining_amount'] == Decimal('0')
    assert invoice['status'] == 'paid'


def test_sub_cent_payments_leave_no_trace(tenant, make_invoice):
    invoice = make_invoice([(1, '1')])

    for _ in range(3):
        with pytest.raises(InvalidAmount):
            PaymentService.record_payment(tenant, invoice['id'], '0.005')

    invoice = InvoiceService.get_invoice(tenant, invoice['id'])
    assert invoice['paid_amount'] == Decimal('0')
    assert invoice['status'] == 'pending'
    assert _vouchers(tenant, invoice['id']) == []


def test_voucher_numbers_are_sequential_across_invoices(tenant, make_invoice):
    first = make_invoice()
    second = make_invoice()

    numbers = [
        PaymentService.record_payment(tenant, first['id'], 10)['voucher_number'],
        PaymentService.record_payment(tenant, second['id'], 10)['voucher_number'],
        PaymentService.record_payment(tenant, first['id'], 10)['voucher_number'],
    ]
    assert numbers == [1, 2, 3]


@pytest.mark.parametrize('amount', [0, -5, '0', 'abc', None, True, '0.001', '0.005', '10.999', 0.125])
def test_invalid_amount(tenant, make_invoice, amount):
    invoice = make_invoice()
    with pytest.raises(InvalidAmount):
        PaymentService.record_payment(tenant, invoice['id'], amount)

    assert InvoiceService.get_invoice(tenant, invoice['id'])['paid_amount'] == Decimal('0')
    assert _vouchers(tenant, invoice['id']) == []


def test_missing_invoice(tenant):
    with pytest.raises(NotFound):
        PaymentService.record_payment(tenant, 'does-not-exist', 10)
    assert ledger_store.query(tenant, 'vouchers') == []


def test_other_tenant_cannot_pay_invoice(app, tenant, make_invoice):
    invoice = make_invoice()
    with pytest.raises(NotFound):
        PaymentService.record_payment('someoneelse', invoice['id'], 10)


def test_overpayment_allowed_by_default(tenant, make_invoice):
    invoice = make_invoice([(1, '100')])
    PaymentService.record_payment(tenant, invoice['id'], 120)

    invoice = InvoiceService.get_invoice(tenant, invoice['id'])
    assert invoice['status'] == 'paid'
    assert invoice['remaining_amount'] == Decimal('-20')


def test_strict_mode_rejects_overpayment(app, tenant, make_invoice):
    app.config['LEDGER_STRICT_OVERPAYMENT'] = True
    invoice = make_invoice([(1, '100')])

    PaymentService.record_payment(tenant, invoice['id'], 60)
    with pytest.raises(InvalidAmount):
        PaymentService.record_payment(tenant, invoice['id'], 50)
    PaymentService.record_payment(tenant, invoice['id'], 40)

    invoice = InvoiceService.get_invoice(tenant, invoice['id'])
    assert invoice['paid_amount'] == Decimal('100')
    assert len(_vouchers(tenant, invoice['id'])) == 2


def test_payment_on_overdue_invoice(tenant, make_invoice):
    invoice = make_invoice([(1, '100')])
    InvoiceService.mark_overdue(tenant, invoice['id'])

    PaymentService.record_payment(tenant, invoice['id'], 30)
    assert InvoiceService.get_invoice(tenant, invoice['id'])['status'] == 'partially_paid'


def _race_on_invoice_read(monkeypatch, app, tenant, invoice_id, amount, times=1):
    """Run a competing payment, from another app context, right after each
    invoice read of the outer transaction."""
    real_get = LedgerTransaction.get
    state = {'remaining': times, 'depth': 0}

    def racing_get(self, collection, record_id):
        record = real_get(self, collection, record_id)
        if collection == 'invoices' and state['depth'] == 0 and state['remaining'] > 0:
            state['remaining'] -= 1
            state['depth'] += 1
            try:
                with app.app_context():
                    PaymentService.record_payment(tenant, invoice_id, amount)
            finally:
                state['depth'] -= 1
        return record

    monkeypatch.setattr(LedgerTransaction, 'get', racing_get)


def test_concurrent_payments_do_not_lose_updates(monkeypatch, app, tenant, make_invoice):
    invoice = make_invoice([(1, '100')])
    _race_on_invoice_read(monkeypatch, app, tenant, invoice['id'], 50)

    PaymentService.record_payment(tenant, invoice['id'], 50)

    invoice = InvoiceService.get_invoice(tenant, invoice['id'])
    assert invoice['paid_amount'] == Decimal('100')
    assert invoice['remaining_amount'] == Decimal('0')
    assert invoice['status'] == 'paid'
    vouchers = _vouchers(tenant, invoice['id'])
    assert sorted(v['voucher_number'] for v in vouchers) == [1, 2]
    assert sum(v['amount'] for v in vouchers) == Decimal('100')


def test_conflict_error_when_attempts_exhausted(monkeypatch, app, tenant, make_invoice):
    app.config['LEDGER_TRANSACTION_MAX_ATTEMPTS'] = 2
    invoice = make_invoice([(1, '100')])
    _race_on_invoice_read(monkeypatch, app, tenant, invoice['id'], 10, times=10)

    with pytest.raises(ConflictError):
        PaymentService.record_payment(tenant, invoice['id'], 50)

    # Only the two competing payments were committed
    invoice = InvoiceService.get_invoice(tenant, invoice['id'])
    vouchers = _vouchers(tenant, invoice['id'])
    assert len(vouchers) == 2
    assert invoice['paid_amount'] == Decimal('20')


def test_deleting_invoice_keeps_vouchers(tenant, make_invoice):
    invoice = make_invoice([(1, '100')])
    voucher = PaymentService.record_payment(tenant, invoice['id'], 40)

    InvoiceService.delete_invoice(tenant, invoice['id'])

    with pytest.raises(NotFound):
        InvoiceService.get_invoice(tenant, invoice['id'])
    assert ledger_store.get(tenant, 'vouchers', voucher['id']) == voucher
    assert _vouchers(tenant, invoice['id']) == [voucher]
