from ledger.services.numbering import (
    INVOICE_NUMBER_FIELD, VOUCHER_NUMBER_FIELD,
    format_invoice_number, format_voucher_number, next_number
)


def test_empty_sequence_returns_floor():
    assert next_number([], 1001) == 1001
    assert next_number([], 1) == 1


def test_max_plus_one():
    records = [{'number': 1001}, {'number': 1005}]
    assert next_number(records, 1001) == 1006


def test_gaps_are_not_filled():
    assert next_number([1001, 1003], 1001) == 1004


def test_named_fields():
    invoices = [{INVOICE_NUMBER_FIELD: 1002}, {INVOICE_NUMBER_FIELD: 1001}]
    vouchers = [{VOUCHER_NUMBER_FIELD: 7}]
    assert next_number(invoices, 1001, INVOICE_NUMBER_FIELD) == 1003
    assert next_number(vouchers, 1, VOUCHER_NUMBER_FIELD) == 8


def test_records_without_number_are_ignored():
    assert next_number([{'number': None}, {'other': 4}], 1) == 1


def test_display_formats():
    assert format_invoice_number(1001) == 'INV-1001'
    assert format_voucher_number(3) == 'VCH-3'
