"""
Application Flask - Ledger Backend
API REST de facturation: clients, services, factures et bons de paiement
"""

from flask import Flask, request
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from config import config
import logging
import os

db = SQLAlchemy()
jwt = JWTManager()
migrate = Migrate()


def get_rate_limit_key():
    """
    Retourne la clé pour le rate limiting.
    - 'preflight' pour les requêtes OPTIONS (CORS preflight)
    - IP de l'utilisateur sinon
    """
    if request.method == 'OPTIONS':
        return 'preflight'

    ip = get_remote_address()
    if not ip:
        ip = request.headers.get('X-Forwarded-For', request.headers.get('X-Real-IP', '127.0.0.1'))
        if ',' in ip:
            ip = ip.split(',')[0].strip()

    return ip or '127.0.0.1'


limiter = Limiter(
    key_func=get_rate_limit_key,
    default_limits=["2000 per day", "500 per hour"],
    storage_uri=os.environ.get('REDIS_URL', 'memory://')
)

# Configuration logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(config_name='default', config_overrides=None):
    """
    Factory function pour créer l'application Flask

    Args:
        config_name: Nom de la configuration (development, production, testing)
        config_overrides: Valeurs de configuration à surcharger (tests)

    Returns:
        Flask app configurée
    """
    app = Flask(__name__)
    app.config.from_object(config[config_name])
    if config_overrides:
        app.config.update(config_overrides)

    logging.getLogger().setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Vérifications de sécurité en production
    if config_name == 'production':
        config[config_name].init_app(app)

    # Initialisation des extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    limiter.init_app(app)

    cors_origins = app.config.get('CORS_ORIGINS', ['http://localhost:3000'])
    CORS(app, resources={
        r"/api/*": {
            "origins": cors_origins,
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": app.config.get('CORS_ALLOW_HEADERS', ["Content-Type", "Authorization"]),
            "expose_headers": app.config.get('CORS_EXPOSE_HEADERS', ["Content-Disposition"])
        }
    })

    # Headers de sécurité
    @app.after_request
    def add_security_headers(response):
        if config_name == 'production':
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'

        return response

    # ==================== JWT ====================

    @jwt.unauthorized_loader
    def missing_token(reason):
        return {'error': 'Token manquant', 'code': 'UNAUTHORIZED'}, 401

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return {'error': 'Token invalide', 'code': 'UNAUTHORIZED'}, 401

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return {'error': 'Token expiré', 'code': 'TOKEN_EXPIRED'}, 401

    # ==================== BLUEPRINTS ====================

    from ledger.routes.auth import auth_bp
    app.register_blueprint(auth_bp, url_prefix='/api/auth')

    from ledger.routes.customers import customers_bp
    app.register_blueprint(customers_bp, url_prefix='/api/customers')

    from ledger.routes.services import services_bp
    app.register_blueprint(services_bp, url_prefix='/api/services')

    from ledger.routes.invoices import invoices_bp
    app.register_blueprint(invoices_bp, url_prefix='/api/invoices')

    from ledger.routes.vouchers import vouchers_bp
    app.register_blueprint(vouchers_bp, url_prefix='/api/vouchers')

    from ledger.routes.dashboard import dashboard_bp
    app.register_blueprint(dashboard_bp, url_prefix='/api/dashboard')

    # ==================== ERROR HANDLERS ====================

    from ledger.utils.errors import LedgerError

    @app.errorhandler(LedgerError)
    def ledger_error(error):
        if error.status_code >= 500:
            logger.error(f"{error.code}: {error.message}")
        return error.to_dict(), error.status_code

    @app.errorhandler(400)
    def bad_request(error):
        return {'error': 'Requête invalide', 'code': 'BAD_REQUEST'}, 400

    @app.errorhandler(401)
    def unauthorized(error):
        return {'error': 'Non autorisé', 'code': 'UNAUTHORIZED'}, 401

    @app.errorhandler(404)
    def not_found(error):
        return {'error': 'Ressource non trouvée', 'code': 'NOT_FOUND'}, 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return {'error': 'Méthode non autorisée', 'code': 'METHOD_NOT_ALLOWED'}, 405

    @app.errorhandler(409)
    def conflict(error):
        return {'error': 'Conflit d\'écriture', 'code': 'CONFLICT'}, 409

    @app.errorhandler(429)
    def rate_limit_exceeded(error):
        return {'error': 'Trop de requêtes. Réessayez plus tard.', 'code': 'RATE_LIMITED'}, 429

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Erreur interne: {str(error)}")
        return {'error': 'Erreur interne du serveur', 'code': 'INTERNAL_ERROR'}, 500

    @app.errorhandler(503)
    def service_unavailable(error):
        return {'error': 'Service temporairement indisponible', 'code': 'SERVICE_UNAVAILABLE'}, 503

    # ==================== HEALTH CHECK ====================

    @app.route('/api/health')
    def health_check():
        """Endpoint de vérification de santé"""
        return {'status': 'healthy', 'version': '1.0.0'}

    # Créer les tables de la base de données (dev uniquement)
    if os.environ.get('AUTO_CREATE_DB', 'false').lower() == 'true':
        with app.app_context():
            db.create_all()

    logger.info(f"Application démarrée en mode {config_name}")

    return app
