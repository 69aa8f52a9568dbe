"""
Módulo de Internacionalização (pt / en).

Resolve o idioma do pedido e converte conteúdo multilingue
(mapas {"pt": ..., "en": ...} ou JSON serializado) em texto simples.
"""

import json
from typing import Any, Optional

from flask import current_app, has_app_context, has_request_context, request, session

IDIOMAS_SUPORTADOS = ('pt', 'en')
IDIOMA_PADRAO = 'pt'

MENSAGENS = {
    'pt': {
        'VALIDATION_ERROR': 'Dados inválidos',
        'INVALID_INDEX': 'Posição fora do intervalo',
        'SESSION_BUSY': 'O programa está a ser guardado. Aguarde.',
        'UNAUTHORIZED': 'Não está autenticado',
        'FORBIDDEN': 'Acesso negado',
        'NOT_FOUND': 'Recurso não encontrado',
        'ACTIVITY_NOT_FOUND': 'Atividade não encontrada',
        'PROGRAM_NOT_FOUND': 'Programa não encontrado',
        'USER_NOT_FOUND': 'Utilizador não encontrado',
        'INVALID_FILE_TYPE': 'Tipo de ficheiro inválido',
        'FILE_TOO_LARGE': 'Ficheiro demasiado grande',
        'DOMAIN_NOT_ALLOWED': 'Apenas contas do domínio {dominio} podem entrar.',
        'PERSISTENCE_FAILURE': 'Não foi possível guardar o programa',
        'RATE_LIMIT_EXCEEDED': 'Limite de pedidos excedido',
        'INTERNAL_ERROR': 'Erro interno do servidor',
    },
    'en': {
        'VALIDATION_ERROR': 'Invalid data',
        'INVALID_INDEX': 'Position out of range',
        'SESSION_BUSY': 'The program is being saved. Please wait.',
        'UNAUTHORIZED': 'Not authenticated',
        'FORBIDDEN': 'Access denied',
        'NOT_FOUND': 'Resource not found',
        'ACTIVITY_NOT_FOUND': 'Activity not found',
        'PROGRAM_NOT_FOUND': 'Program not found',
        'USER_NOT_FOUND': 'User not found',
        'INVALID_FILE_TYPE': 'Invalid file type',
        'FILE_TOO_LARGE': 'File too large',
        'DOMAIN_NOT_ALLOWED': 'Only {dominio} accounts may sign in.',
        'PERSISTENCE_FAILURE': 'The program could not be saved',
        'RATE_LIMIT_EXCEEDED': 'Rate limit exceeded',
        'INTERNAL_ERROR': 'Internal server error',
    },
}


def _idioma_padrao() -> str:
    if has_app_context():
        return current_app.config.get('DEFAULT_LOCALE', IDIOMA_PADRAO)
    return IDIOMA_PADRAO


def obter_idioma() -> str:
    """
    Determina o idioma do pedido atual.

    Ordem: parâmetro '?lang=' (fica guardado na sessão), valor da sessão,
    cabeçalho Accept-Language e, por fim, o idioma padrão da configuração.
    """
    if not has_request_context():
        return IDIOMA_PADRAO

    pedido = request.args.get('lang')
    if pedido in IDIOMAS_SUPORTADOS:
        session['idioma'] = pedido
        return pedido

    guardado = session.get('idioma')
    if guardado in IDIOMAS_SUPORTADOS:
        return guardado

    return request.accept_languages.best_match(IDIOMAS_SUPORTADOS) or _idioma_padrao()


def resolver_texto(valor: Any, idioma: Optional[str] = None, padrao: str = IDIOMA_PADRAO) -> str:
    """
    Converte um campo multilingue em texto.

    Aceita texto simples, dicionários por idioma ou a versão serializada
    em JSON desses dicionários. Se o idioma pedido não existir, usa o padrão
    e depois o primeiro valor não vazio.
    """
    if valor is None:
        return ''

    if isinstance(valor, str):
        texto = valor.strip()
        if not (texto.startswith('{') and texto.endswith('}')):
            return valor
        try:
            valor = json.loads(texto)
        except ValueError:
            return valor
        if not isinstance(valor, dict):
            return texto

    if isinstance(valor, dict):
        idioma = idioma or padrao
        for chave in (idioma, padrao):
            if valor.get(chave):
                return str(valor[chave])
        for texto in valor.values():
            if texto:
                return str(texto)
        return ''

    return str(valor)


def mensagem(chave: str, idioma: Optional[str] = None, **kwargs) -> str:
    """Devolve a mensagem do catálogo no idioma indicado (ou no do pedido)."""
    idioma = idioma or obter_idioma()
    catalogo = MENSAGENS.get(idioma, MENSAGENS[IDIOMA_PADRAO])
    texto = catalogo.get(chave) or MENSAGENS[IDIOMA_PADRAO].get(chave, chave)
    return texto.format(**kwargs) if kwargs else texto
