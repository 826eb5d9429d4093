from functools import wraps
from flask import jsonify
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
from ledger import db
from ledger.models import Profile
import logging

logger = logging.getLogger(__name__)


def tenant_required(fn):
    """
    Décorateur qui vérifie:
    1. JWT valide
    2. Profil existant pour l'identité du token

    Le tenant_id (= nom d'utilisateur) est passé explicitement à la vue
    en argument nommé, jamais stocké dans un contexte global.
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            verify_jwt_in_request()
        except (JWTExtendedException, PyJWTError) as e:
            logger.info(f"JWT verification failed: {e}")
            return jsonify({'error': 'Token invalide', 'code': 'UNAUTHORIZED'}), 401

        tenant_id = get_jwt_identity()
        if not tenant_id or not db.session.get(Profile, tenant_id):
            logger.warning(f"Token for unknown profile '{tenant_id}'")
            return jsonify({'error': 'Profil introuvable', 'code': 'UNAUTHORIZED'}), 401

        return fn(*args, tenant_id=tenant_id, **kwargs)

    return wrapper
