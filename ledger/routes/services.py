"""
Routes - Catalogue des Services
===============================
"""

from flask import Blueprint, request, jsonify
from ledger.services.catalog_service import CatalogService
from ledger.utils.decorators import tenant_required

services_bp = Blueprint('services', __name__)


@services_bp.route('', methods=['GET'])
@tenant_required
def list_services(tenant_id):
    services = CatalogService.list_services(tenant_id)
    return jsonify({'services': services, 'total': len(services)})


@services_bp.route('', methods=['POST'])
@tenant_required
def create_service(tenant_id):
    """
    Crée un service

    Body: {name, price, description?}
    """
    data = request.get_json(silent=True)
    if data is None:
        return jsonify({'error': 'Données JSON requises'}), 400

    service = CatalogService.create_service(tenant_id, data)
    return jsonify({'message': 'Service créé', 'service': service}), 201


@services_bp.route('/<service_id>', methods=['GET'])
@tenant_required
def get_service(service_id, tenant_id):
    return jsonify({'service': CatalogService.get_service(tenant_id, service_id)})


@services_bp.route('/<service_id>', methods=['PUT'])
@tenant_required
def update_service(service_id, tenant_id):
    data = request.get_json(silent=True)
    if data is None:
        return jsonify({'error': 'Données JSON requises'}), 400

    service = CatalogService.update_service(tenant_id, service_id, data)
    return jsonify({'message': 'Service mis à jour', 'service': service})


@services_bp.route('/<service_id>', methods=['DELETE'])
@tenant_required
def delete_service(service_id, tenant_id):
    CatalogService.delete_service(tenant_id, service_id)
    return jsonify({'message': 'Service supprimé'})
