"""
Módulo Principal da Aplicação (Application Factory)
"""

import os
import platform
import resource
import time
from datetime import datetime, timezone

from flask import Flask, jsonify
from werkzeug.middleware.proxy_fix import ProxyFix  # Importação necessária para o Cloud Run
from config import Config

from .core.errors import registar_handlers
from .core.extensions import csrf, limiter, oauth
from .core.i18n import obter_idioma
from .core.logger import get_logger

logger = get_logger(__name__)

__version__ = '0.1.0'


def create_app(config_class=Config):
    """
    Cria e configura uma instância da aplicação Flask.
    """

    app = Flask(__name__, instance_relative_config=True)
    arranque = time.monotonic()

    # === CORREÇÃO HTTPS (Cloud Run) ===
    # Atrás do proxy do Cloud Run as URLs de callback têm de sair com 'https://'
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    # 1. Carrega a configuração
    app.config.from_object(config_class)
    app.json.sort_keys = app.config.get('JSON_SORT_KEYS', False)

    # 2. Extensões (Authlib, CSRF, Rate limiting)
    oauth.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)

    google_client_id = app.config.get('GOOGLE_CLIENT_ID')
    google_client_secret = app.config.get('GOOGLE_CLIENT_SECRET')

    if google_client_id and google_client_secret:
        oauth.register(
            name='google',
            client_id=google_client_id,
            client_secret=google_client_secret,
            server_metadata_url='https://accounts.google.com/.well-known/openid-configuration',
            client_kwargs={
                'scope': 'openid email profile'
            }
        )
    else:
        logger.warning("GOOGLE_CLIENT_ID ou GOOGLE_CLIENT_SECRET não definidos.")

    # 3. Erros em JSON localizado
    registar_handlers(app)

    @app.after_request
    def definir_idioma(response):
        response.headers.setdefault('Content-Language', obter_idioma())
        return response

    # 4. Configura os Blueprints (Módulos)

    # Módulo de Autenticação
    from .auth import auth_bp
    app.register_blueprint(auth_bp, url_prefix='/')

    # Catálogo de Atividades e Taxonomias (/api)
    from .atividades import atividades_bp
    app.register_blueprint(atividades_bp)

    # Programas e Construtor (/api/programas)
    from .programas import programas_bp
    app.register_blueprint(programas_bp)

    # Módulo Admin
    # O url_prefix='/admin' já está definido dentro do admin/__init__.py
    from .admin import admin_bp
    app.register_blueprint(admin_bp)

    # 5. Rotas de Health Check e Métricas
    @app.route("/health")
    @limiter.exempt
    def health_check():
        return jsonify({'status': 'ok', 'service': 'scout-toolkit'}), 200

    @app.route("/metrics")
    @limiter.exempt
    def metrics():
        # ru_maxrss vem em KB no Linux
        uso = resource.getrusage(resource.RUSAGE_SELF)
        return jsonify({
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'uptime_seconds': round(time.monotonic() - arranque, 3),
            'version': __version__,
            'environment': app.config.get('ENVIRONMENT', 'production'),
            'system': {
                'platform': platform.system().lower(),
                'python_version': platform.python_version(),
                'pid': os.getpid(),
            },
            'memory': {'max_rss_kb': uso.ru_maxrss},
        }), 200

    return app
