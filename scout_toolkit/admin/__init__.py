"""
Módulo Admin (Blueprint)

Moderação do catálogo (aprovação e imagens das atividades) e gestão
dos roles dos utilizadores.
"""

from flask import Blueprint

admin_bp = Blueprint(
    'admin_bp',
    __name__,
    url_prefix='/admin'  # Todas as rotas começarão com /admin
)

from . import routes  # noqa: E402,F401
