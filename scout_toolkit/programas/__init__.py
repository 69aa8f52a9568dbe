"""
Módulo de Programas (Blueprint)

CRUD de programas, construtor de horários e exportação CSV.
"""

from flask import Blueprint

programas_bp = Blueprint('programas_bp', __name__, url_prefix='/api/programas')

from . import routes  # noqa: E402,F401
