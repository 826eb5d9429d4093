from decimal import Decimal

from ledger.services.payment_service import PaymentService
from ledger.services.receipt_service import ReceiptService


def test_format_amount():
    service = ReceiptService(currency='SAR')
    assert service.format_amount(Decimal('1234.5')) == '1,234.50 SAR'
    assert service.format_amount(150) == '150.00 SAR'


def test_render_voucher_pdf(tenant, make_invoice):
    invoice = make_invoice([(1, '250')])
    voucher = PaymentService.record_payment(tenant, invoice['id'], 250)

    service = ReceiptService(company_name='Acme & Sons')
    pdf = service.render_voucher(voucher)

    assert pdf.startswith(b'%PDF')
    assert len(pdf) > 1000
    assert service.filename(voucher) == 'receipt-VCH-1.pdf'


def test_render_voucher_without_invoice_number():
    voucher = {
        'id': 'v1',
        'voucher_number': 7,
        'invoice_number': None,
        'customer_name': None,
        'amount': Decimal('10'),
        'date': None,
    }
    assert ReceiptService().render_voucher(voucher).startswith(b'%PDF')
