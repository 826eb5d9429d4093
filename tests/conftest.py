import pytest

from ledger import create_app, db
from ledger.services.auth_service import AuthService
from ledger.services.customer_service import CustomerService
from ledger.services.invoice_service import InvoiceService

TENANT = 'acme'
PASSWORD = 'secret123'


@pytest.fixture
def app(tmp_path):
    app = create_app('testing', {
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'ledger.db'}"
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def tenant(app):
    AuthService.register(TENANT, PASSWORD)
    return TENANT


@pytest.fixture
def auth_headers(app, tenant):
    token = AuthService.login(TENANT, PASSWORD)['access_token']
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def customer(tenant):
    return CustomerService.create_customer(tenant, {
        'name': 'Khalid Stores',
        'email': 'khalid@example.com',
        'phone': '+966511111111'
    })


@pytest.fixture
def make_invoice(tenant, customer):
    """Factory: make_invoice([(quantity, price), ...], date=None)"""
    def factory(lines=((1, '100'),), date=None, customer_id=None):
        items = [
            {'name': f'Service {index}', 'quantity': quantity, 'price': price}
            for index, (quantity, price) in enumerate(lines, start=1)
        ]
        return InvoiceService.create_invoice(tenant, customer_id or customer['id'], items, date=date)
    return factory
