"""
Taxonomia de Erros da Aplicação.

Erros de validação são rejeitados de forma síncrona e nunca alteram estado.
Referências partidas no catálogo são apenas avisos (DataIntegrityWarning).
Os handlers registados em 'registar_handlers' convertem tudo em JSON localizado.
"""

from typing import Optional

from flask import jsonify
from werkzeug.exceptions import HTTPException

from .i18n import mensagem
from .logger import get_logger

logger = get_logger(__name__)


class ValidationError(ValueError):
    """Dados de entrada inválidos. A operação é rejeitada sem efeitos."""

    codigo = 'VALIDATION_ERROR'
    status = 400

    def __init__(self, detalhe: str, campo: Optional[str] = None):
        super().__init__(detalhe)
        self.detalhe = detalhe
        self.campo = campo


class InvalidIndex(ValidationError):
    codigo = 'INVALID_INDEX'


class SessionBusy(ValidationError):
    """Alteração pedida enquanto um 'guardar' ainda está em curso."""

    codigo = 'SESSION_BUSY'
    status = 409


class PersistenceFailure(Exception):
    """Falha ao gravar no Firestore (camada de serviço)."""


class DataIntegrityWarning(UserWarning):
    """
    Referência a uma atividade que já não existe no catálogo.

    Nunca é lançado: é devolvido junto dos resultados e registado no log.
    """

    def __init__(self, atividade_id: str, entrada_id: Optional[str] = None):
        super().__init__(f"Atividade '{atividade_id}' não encontrada (entrada {entrada_id}).")
        self.atividade_id = atividade_id
        self.entrada_id = entrada_id

    def para_dict(self) -> dict:
        return {'atividade_id': self.atividade_id, 'entrada_id': self.entrada_id}


def resposta_erro(codigo: str, status: int, detalhe: Optional[str] = None, **kwargs):
    """Resposta JSON padrão: {"error": {"code", "message", ["detail"]}}."""
    corpo = {'code': codigo, 'message': mensagem(codigo, **kwargs)}
    if detalhe:
        corpo['detail'] = detalhe
    return jsonify({'error': corpo}), status


_CODIGOS_HTTP = {
    400: 'VALIDATION_ERROR',
    401: 'UNAUTHORIZED',
    403: 'FORBIDDEN',
    404: 'NOT_FOUND',
    413: 'FILE_TOO_LARGE',
    429: 'RATE_LIMIT_EXCEEDED',
}


def registar_handlers(app):
    """Liga a taxonomia acima às respostas HTTP da aplicação."""

    @app.errorhandler(ValidationError)
    def _validacao(erro):
        corpo = {'code': erro.codigo, 'message': mensagem(erro.codigo), 'detail': erro.detalhe}
        if erro.campo:
            corpo['field'] = erro.campo
        return jsonify({'error': corpo}), erro.status

    @app.errorhandler(HTTPException)
    def _http(erro):
        codigo = getattr(erro, 'codigo', None) or _CODIGOS_HTTP.get(erro.code)
        if codigo is None:
            return jsonify({'error': {'code': erro.name, 'message': erro.description}}), erro.code
        return resposta_erro(codigo, erro.code)

    @app.errorhandler(Exception)
    def _inesperado(erro):
        logger.error(f"Erro não tratado: {erro}", exc_info=True)
        return resposta_erro('INTERNAL_ERROR', 500)
