"""
Routes d'authentification
=========================

Inscription, connexion et profil courant.
Le nom d'utilisateur sert d'identifiant de tenant dans le token JWT.
"""

from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity
from ledger import limiter
from ledger.services.auth_service import AuthService
import logging

auth_bp = Blueprint('auth', __name__)
logger = logging.getLogger(__name__)


# Limites strictes sur les endpoints d'authentification
auth_limit = limiter.limit("10 per minute", error_message="Trop de tentatives. Réessayez dans 1 minute.")
register_limit = limiter.limit("5 per hour", error_message="Trop d'inscriptions. Réessayez plus tard.")


def _credentials():
    data = request.get_json(silent=True) or {}
    return data.get('username'), data.get('password')


@auth_bp.route('/register', methods=['POST'])
@register_limit
def register():
    """
    Crée un profil et retourne un token d'accès

    Body: {username, password}
    """
    username, password = _credentials()
    result = AuthService.register(username, password)
    return jsonify({'message': 'Compte créé', **result}), 201


@auth_bp.route('/login', methods=['POST'])
@auth_limit
def login():
    """
    Connexion

    Body: {username, password, create_if_missing?}
    Avec create_if_missing, un nom inconnu crée le profil (formulaire unique).
    """
    data = request.get_json(silent=True) or {}
    username, password = _credentials()
    if data.get('create_if_missing'):
        result = AuthService.sign_in(username, password)
    else:
        result = AuthService.login(username, password)
    return jsonify(result)


@auth_bp.route('/me', methods=['GET'])
@jwt_required()
def me():
    """Profil de l'utilisateur connecté"""
    return jsonify({'profile': AuthService.get_profile(get_jwt_identity())})
