"""
Módulo do Catálogo de Atividades (Blueprint)

Pesquisa e detalhe das atividades aprovadas, avaliações e taxonomias.
"""

from flask import Blueprint

atividades_bp = Blueprint('atividades_bp', __name__, url_prefix='/api')

from . import routes  # noqa: E402,F401
