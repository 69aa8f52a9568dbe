"""
Módulo de Integração com Google Cloud Storage (Service Layer)

Guarda as imagens das atividades. Os ficheiros nunca são públicos:
o acesso é feito por Signed URLs temporárias.
"""

from datetime import timedelta
from typing import Any, Optional
from google.cloud import storage
from flask import current_app
import uuid

from .constants import FORMATOS_IMAGEM
from .logger import get_logger

logger = get_logger(__name__)


def _get_client() -> storage.Client:
    return storage.Client(project=current_app.config['GOOGLE_CLOUD_PROJECT'])


def _get_bucket():
    bucket_name = current_app.config.get('GCS_BUCKET_NAME')
    if not bucket_name:
        raise ValueError("GCS_BUCKET_NAME não configurado")
    return _get_client().bucket(bucket_name)


def detetar_tipo_imagem(cabecalho: bytes) -> Optional[str]:
    """
    Identifica o formato pelos Magic Numbers (não confia na extensão).

    Returns:
        O content-type ('image/png', ...) ou None se não for suportado.
    """
    for content_type, assinatura in FORMATOS_IMAGEM.items():
        if cabecalho.startswith(assinatura):
            if content_type == 'image/webp' and cabecalho[8:12] != b'WEBP':
                continue
            return content_type
    return None


def generate_signed_url(blob_name: str, expiration: int = 3600) -> Optional[str]:
    """
    Gera uma Signed URL temporária para a imagem.
    Args:
        blob_name: ID interno do arquivo no GCS.
        expiration: Tempo em segundos (padrão 1 hora).
    """
    if not blob_name:
        return None
    try:
        blob = _get_bucket().blob(blob_name)
        return blob.generate_signed_url(
            version="v4",
            expiration=timedelta(seconds=expiration),
            method="GET"
        )
    except Exception as e:
        logger.error(f"Erro ao gerar Signed URL para {blob_name}: {e}")
        return None


def upload_imagem(arquivo_storage: Any, atividade_id: str, content_type: str) -> str:
    """
    Faz o upload da imagem de uma atividade.

    Returns:
        str: Nome do blob (ID interno), a guardar no documento da atividade.
    """
    bucket = _get_bucket()
    nome_blob = f"atividades/{atividade_id}/{uuid.uuid4().hex}"

    blob = bucket.blob(nome_blob)
    arquivo_storage.seek(0)
    blob.upload_from_file(arquivo_storage, content_type=content_type)

    logger.info(f"Imagem carregada: {nome_blob}")
    return nome_blob


def delete_file(blob_name: str) -> None:
    """Remove arquivo do Bucket pelo nome do blob."""
    if not blob_name or not current_app.config.get('GCS_BUCKET_NAME'):
        return

    try:
        _get_bucket().blob(blob_name).delete()
    except Exception as e:
        logger.error(f"Erro ao deletar arquivo {blob_name}: {e}")
