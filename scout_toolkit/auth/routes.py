"""
Rotas do Módulo de Autenticação

Gerencia /login, /google/login, /google/callback, /logout e /me.
"""

from flask import (
    current_app,
    jsonify,
    redirect,
    request,
    session,
    url_for,
)
from flask_wtf.csrf import generate_csrf

from . import auth_bp
from . import services as auth_services
from scout_toolkit.core.acesso import exigir_login
from scout_toolkit.core.errors import resposta_erro
from scout_toolkit.core.extensions import limiter, oauth
from scout_toolkit.core.logger import get_logger

logger = get_logger(__name__)


def _destino_pos_login() -> str:
    return session.pop('next', None) or url_for('atividades_bp.listar')


@auth_bp.route('/login')
def login():
    """Se já existe sessão segue em frente; senão vai para o Google."""
    destino = request.args.get('next')
    # Só caminhos relativos, para não abrir um redirect externo
    if destino and destino.startswith('/') and not destino.startswith('//'):
        session['next'] = destino

    if 'user_profile' in session:
        return redirect(_destino_pos_login())
    return redirect(url_for('auth_bp.google_login'))


@auth_bp.route('/google/login')
@limiter.limit("20 per minute")
def google_login():
    """ Redireciona para o Google, sugerindo o domínio permitido (hd). """
    redirect_uri = url_for('auth_bp.google_callback', _external=True)
    return oauth.google.authorize_redirect(redirect_uri, hd=current_app.config['ALLOWED_EMAIL_DOMAIN'])


@auth_bp.route('/google/callback')
@limiter.limit("20 per minute")
def google_callback():
    """ Retorno do Google após login. """
    dominio = current_app.config['ALLOWED_EMAIL_DOMAIN']
    try:
        token = oauth.google.authorize_access_token()
        user_info = token.get('userinfo') or oauth.google.userinfo(token=token)
    except Exception as e:
        logger.error(f"Erro no login: {e}", exc_info=True)
        return resposta_erro('UNAUTHORIZED', 401)

    if not user_info:
        return resposta_erro('UNAUTHORIZED', 401)

    email = user_info.get('email')
    # O 'hd' enviado ao Google é só uma sugestão: a verificação é aqui
    if not user_info.get('email_verified', False) or not auth_services.email_autorizado(email, dominio):
        logger.warning(f"Login recusado fora do domínio {dominio}: {email}")
        return resposta_erro('DOMAIN_NOT_ALLOWED', 403, dominio=dominio)

    google_profile = {
        'email': email,
        'nome': user_info.get('name'),
        'google_id': user_info.get('sub'),
        'imagem': user_info.get('picture'),
    }

    try:
        session['user_profile'] = auth_services.verificar_ou_criar_utilizador(google_profile)
    except Exception as e:
        logger.error(f"Erro ao registar utilizador {email}: {e}", exc_info=True)
        return resposta_erro('INTERNAL_ERROR', 500)

    return redirect(_destino_pos_login())


@auth_bp.route('/logout')
def logout():
    # As cópias de trabalho do construtor também são descartadas
    session.pop('user_profile', None)
    session.pop('construtores', None)
    return redirect(url_for('atividades_bp.listar'))


@auth_bp.route('/me')
def me():
    user_profile = exigir_login()
    # Token para o cabeçalho X-CSRFToken dos pedidos de escrita
    return jsonify({'user': user_profile, 'csrf_token': generate_csrf()})
