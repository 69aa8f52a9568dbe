"""
Módulo de Conexão com o Banco de Dados (Core)

Cliente do Google Firestore partilhado pelas camadas de serviço.
É criado no primeiro uso; as credenciais vêm de
'GOOGLE_APPLICATION_CREDENTIALS' (definida no .env).
"""

from flask import current_app, has_app_context
from google.cloud import firestore

from .logger import get_logger

logger = get_logger(__name__)

_db_client = None

# Coleções
UTILIZADORES = 'utilizadores'
ATIVIDADES = 'atividades'
PROGRAMAS = 'programas'
AVALIACOES = 'avaliacoes'
TIPOS_ATIVIDADE = 'tipos_atividade'
OBJETIVOS_EDUCATIVOS = 'objetivos_educativos'
ODS = 'ods'


def get_db() -> firestore.Client:
    global _db_client
    if _db_client is None:
        projeto = current_app.config.get('GOOGLE_CLOUD_PROJECT') if has_app_context() else None
        try:
            _db_client = firestore.Client(project=projeto)
            logger.info("Conexão com o Firestore estabelecida com sucesso.")
        except Exception as e:
            logger.critical(f"Erro ao conectar com o Firestore: {e}", exc_info=True)
            raise ConnectionError("Não foi possível conectar ao Firestore.") from e
    return _db_client
