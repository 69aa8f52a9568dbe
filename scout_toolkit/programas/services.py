"""
Camada de Serviço dos Programas

Os programas vivem na coleção 'programas' e guardam as entradas num
campo lista ('entradas'), já ordenado e renumerado.
"""

import math
from typing import List, Optional, Sequence

from google.cloud import firestore
from scout_toolkit.atividades.services import CatalogoEmCache
from scout_toolkit.core.database import PROGRAMAS, get_db
from scout_toolkit.core.errors import PersistenceFailure, ValidationError
from scout_toolkit.core.logger import get_logger
from .agenda import (
    Entrada,
    EntradaAtividade,
    calcular_horario,
    entrada_de_dict,
    entrada_para_dict,
    renumerar,
)
from .construtor import Falha, Resultado, Sucesso

logger = get_logger(__name__)

CAMPOS_EDITAVEIS = ('nome', 'data', 'hora_inicio', 'publico')
ORDENACOES = {'name': 'nome', 'date': 'data', 'created_at': 'criado_em'}


def _doc_para_programa(doc) -> dict:
    dados = doc.to_dict()
    dados['id'] = doc.id
    dados.setdefault('entradas', [])
    return dados


def criar_programa(dono: str, dados: dict) -> dict:
    doc_ref = get_db().collection(PROGRAMAS).document()
    programa = {campo: dados.get(campo) for campo in CAMPOS_EDITAVEIS}
    programa.update({
        'publico': bool(dados.get('publico')),
        'dono': dono.lower(),
        'entradas': [],
        'criado_em': firestore.SERVER_TIMESTAMP,
        'atualizado_em': firestore.SERVER_TIMESTAMP,
    })
    doc_ref.set(programa)
    logger.info(f"Programa criado: {doc_ref.id} ({dono})")
    return obter_programa(doc_ref.id)


def obter_programa(programa_id: str) -> Optional[dict]:
    doc = get_db().collection(PROGRAMAS).document(programa_id).get()
    if not doc.exists:
        return None
    return _doc_para_programa(doc)


def pode_ver(programa: dict, email: Optional[str]) -> bool:
    return bool(programa.get('publico')) or e_dono(programa, email)


def e_dono(programa: dict, email: Optional[str]) -> bool:
    return bool(email) and programa.get('dono') == email.lower()


def obter_programa_acessivel(programa_id: str, email: Optional[str], escrita: bool = False) -> Optional[dict]:
    """
    Programa visível para o utilizador, ou None.

    Programas privados de outros utilizadores são tratados como
    inexistentes, para não revelar que existem.
    """
    programa = obter_programa(programa_id)
    if programa is None:
        return None
    permitido = e_dono(programa, email) if escrita else pode_ver(programa, email)
    return programa if permitido else None


def carregar_entradas(programa: dict) -> List[Entrada]:
    return renumerar([entrada_de_dict(e) for e in programa.get('entradas') or []])


def ids_atividades(entradas: Sequence[Entrada]) -> List[str]:
    return [e.atividade_id for e in entradas if isinstance(e, EntradaAtividade)]


def listar_programas_do_utilizador(email: str, ordenacao: str = 'created_at', ordem: str = 'desc',
                                   pagina: int = 1, limite: int = 20) -> dict:
    docs = get_db().collection(PROGRAMAS).where('dono', '==', email.lower()).stream()
    programas = [_doc_para_programa(doc) for doc in docs]

    campo = ORDENACOES.get(ordenacao)
    if campo is None:
        raise ValidationError(f"Ordenação inválida: {ordenacao}.", campo='sort')
    # Programas sem valor no campo ficam no fim (ordem ascendente)
    programas.sort(key=lambda p: (p.get(campo) is None, p.get(campo) or ''), reverse=(ordem == 'desc'))

    total = len(programas)
    inicio = (pagina - 1) * limite
    pagina_atual = programas[inicio:inicio + limite]

    entradas_por_programa = {p['id']: carregar_entradas(p) for p in pagina_atual}
    consulta = CatalogoEmCache(i for entradas in entradas_por_programa.values() for i in ids_atividades(entradas))

    itens = []
    for programa in pagina_atual:
        entradas = entradas_por_programa[programa['id']]
        horario = calcular_horario(entradas, programa['hora_inicio'], consulta)
        itens.append({
            **resumo_listagem(programa),
            'entry_count': len(entradas),
            'total_duration_minutes': horario.duracao_total,
        })

    return {
        'programs': itens,
        'pagination': {
            'page': pagina,
            'limit': limite,
            'total': total,
            'total_pages': math.ceil(total / limite) if total else 0,
        },
    }


def resumo_listagem(programa: dict) -> dict:
    """Campos públicos do programa (sem as entradas)."""
    dados = {campo: programa.get(campo) for campo in ('id', 'nome', 'data', 'hora_inicio', 'publico', 'dono')}
    for campo in ('criado_em', 'atualizado_em'):
        valor = programa.get(campo)
        dados[campo] = valor.isoformat() if hasattr(valor, 'isoformat') else valor
    return dados


def atualizar_programa(programa_id: str, alteracoes: dict) -> dict:
    """Atualiza nome, data, hora de início e visibilidade. O dono nunca muda."""
    dados = {campo: alteracoes[campo] for campo in CAMPOS_EDITAVEIS if campo in alteracoes}
    dados['atualizado_em'] = firestore.SERVER_TIMESTAMP
    get_db().collection(PROGRAMAS).document(programa_id).update(dados)
    logger.info(f"Programa atualizado: {programa_id}")
    return obter_programa(programa_id)


def apagar_programa(programa_id: str) -> None:
    get_db().collection(PROGRAMAS).document(programa_id).delete()
    logger.info(f"Programa apagado: {programa_id}")


def guardar_entradas_programa(programa_id: str, entradas: Sequence[Entrada]) -> Resultado:
    """Grava a lista de entradas do construtor. Nunca lança: devolve Falha."""
    try:
        doc_ref = get_db().collection(PROGRAMAS).document(programa_id)
        if not doc_ref.get().exists:
            raise PersistenceFailure(f"Programa {programa_id} não existe.")
        ordenadas = renumerar(entradas)
        doc_ref.update({
            'entradas': [entrada_para_dict(e) for e in ordenadas],
            'atualizado_em': firestore.SERVER_TIMESTAMP,
        })
    except Exception as e:
        logger.error(f"Erro ao gravar entradas do programa {programa_id}: {e}", exc_info=True)
        return Falha(str(e))
    return Sucesso(tuple(ordenadas))
