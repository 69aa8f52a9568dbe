"""
Módulo de Autenticação (Blueprint)

Rotas de login com Google (restrito ao domínio configurado),
callback, logout e perfil do utilizador atual.
"""

from flask import Blueprint

auth_bp = Blueprint('auth_bp', __name__)

# Importa as rotas no final para evitar dependência circular
from . import routes  # noqa: E402,F401
