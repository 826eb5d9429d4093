#!/usr/bin/env python3
"""
Seed initial data for the ledger backend.

Creates:
  1. Database tables (if missing)
  2. Demo profile (tenant)
  3. Customers and catalog services
  4. Two invoices, one of them partially paid

Usage:
    python seed.py
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from dotenv import load_dotenv
load_dotenv()

from ledger import create_app, db


# ── Configuration ────────────────────────────────────────────
DEMO_USERNAME = 'demo'
DEMO_PASSWORD = 'demo123'

CUSTOMERS = [
    {'name': 'Mohammed Al-Harbi', 'email': 'm.harbi@example.com', 'phone': '+966500000001'},
    {'name': 'Sara Al-Qahtani', 'email': 'sara.q@example.com', 'phone': '+966500000002'},
]

SERVICES = [
    {'name': 'Website design', 'description': 'Landing page + 3 pages', 'price': '1500'},
    {'name': 'Hosting (monthly)', 'price': '150'},
    {'name': 'Maintenance hour', 'price': '200'},
]


def seed():
    from ledger.models import Profile
    from ledger.services.auth_service import AuthService
    from ledger.services.catalog_service import CatalogService
    from ledger.services.customer_service import CustomerService
    from ledger.services.invoice_service import InvoiceService
    from ledger.services.payment_service import PaymentService

    app = create_app(os.environ.get('FLASK_ENV', 'development'))

    with app.app_context():
        db.create_all()
        print('✓ Tables créées / vérifiées')

        if db.session.get(Profile, DEMO_USERNAME):
            print(f'✓ Profil existe déjà: {DEMO_USERNAME}')
            return

        AuthService.register(DEMO_USERNAME, DEMO_PASSWORD)
        print(f'✓ Profil créé: {DEMO_USERNAME} / {DEMO_PASSWORD}')

        customers = [CustomerService.create_customer(DEMO_USERNAME, data) for data in CUSTOMERS]
        print(f'✓ {len(customers)} clients créés')

        services = [CatalogService.create_service(DEMO_USERNAME, data) for data in SERVICES]
        print(f'✓ {len(services)} services créés')

        design, hosting, maintenance = services
        first = InvoiceService.create_invoice(DEMO_USERNAME, customers[0]['id'], [
            {'service_id': design['id'], 'name': design['name'], 'quantity': 1, 'price': design['price']},
            {'service_id': hosting['id'], 'name': hosting['name'], 'quantity': 12, 'price': hosting['price']},
        ])
        second = InvoiceService.create_invoice(DEMO_USERNAME, customers[1]['id'], [
            {'service_id': maintenance['id'], 'name': maintenance['name'], 'quantity': 3, 'price': maintenance['price']},
        ])
        print(f"✓ Factures créées: #{first['invoice_number']}, #{second['invoice_number']}")

        voucher = PaymentService.record_payment(DEMO_USERNAME, first['id'], '1000')
        print(f"✓ Paiement enregistré: bon #{voucher['voucher_number']} ({voucher['amount']})")

        print('\n' + '=' * 50)
        print('SEED TERMINÉ')
        print('=' * 50)
        print(f'\nProfil:  {DEMO_USERNAME} / {DEMO_PASSWORD}')


if __name__ == '__main__':
    seed()
