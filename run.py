"""
Serveur de développement du ledger

    python run.py

Variables lues: FLASK_ENV, HOST, PORT. Hors production, les tables
manquantes sont créées au démarrage (SQLite local).
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()

from ledger import create_app, db  # noqa: E402

logger = logging.getLogger('ledger.run')

env = os.environ.get('FLASK_ENV', 'development')
app = create_app(env)


def main():
    if env != 'production':
        with app.app_context():
            db.create_all()
        logger.info('Tables de la base vérifiées')

    host = os.environ.get('HOST', '127.0.0.1')
    port = int(os.environ.get('PORT', 5000))
    logger.info(f"Ledger API sur http://{host}:{port} ({env})")
    app.run(host=host, port=port, debug=app.config.get('DEBUG', False))


if __name__ == '__main__':
    main()
