"""
Controlo de Acesso por Sessão.

O perfil do utilizador autenticado fica em session['user_profile']
(preenchido no callback do Google).
"""

from typing import Optional

from flask import abort, session

from .logger import get_logger

logger = get_logger(__name__)


def utilizador_atual() -> Optional[dict]:
    return session.get('user_profile')


def exigir_login() -> dict:
    """Devolve o perfil da sessão ou responde 401."""
    user_profile = utilizador_atual()
    if not user_profile:
        abort(401)
    return user_profile


def verificar_admin() -> bool:
    user_profile = utilizador_atual()
    if not user_profile:
        return False
    es_admin = user_profile.get('role') == 'admin'
    if not es_admin:
        logger.warning(f"Acesso negado: {user_profile.get('email')}")
    return es_admin
