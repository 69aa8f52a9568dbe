"""
Camada de Serviço do Catálogo de Atividades

Leitura das atividades no Firestore, filtros e paginação do catálogo,
avaliações (1 a 5) e taxonomias. Os filtros correm em memória sobre as
atividades aprovadas, evitando índices compostos no Firestore.
"""

import math
import operator
from typing import Dict, Iterable, List, Mapping, Optional

from google.cloud import firestore
from scout_toolkit.core import storage
from scout_toolkit.core.constants import (
    FAIXAS_ETARIAS,
    LOCAIS,
    NIVEIS_ESFORCO,
    PAGINA_MAXIMA,
    PAGINA_PADRAO,
    TAMANHOS_GRUPO,
)
from scout_toolkit.core.database import (
    ATIVIDADES,
    AVALIACOES,
    OBJETIVOS_EDUCATIVOS,
    ODS,
    TIPOS_ATIVIDADE,
    get_db,
)
from scout_toolkit.core.errors import ValidationError
from scout_toolkit.core.i18n import resolver_texto
from scout_toolkit.core.logger import get_logger

logger = get_logger(__name__)

TAXONOMIAS = {
    'tipos': TIPOS_ATIVIDADE,
    'objetivos': OBJETIVOS_EDUCATIVOS,
    'ods': ODS,
}

OPERADORES_DURACAO = {
    '>=': operator.ge,
    '<=': operator.le,
    '=': operator.eq,
    '>': operator.gt,
    '<': operator.lt,
}

# parâmetro da query -> campo da atividade
FILTROS_CATEGORICOS = {
    'group_size': ('tamanho_grupo', TAMANHOS_GRUPO),
    'effort_level': ('nivel_esforco', NIVEIS_ESFORCO),
    'location': ('local', LOCAIS),
    'age_group': ('faixa_etaria', FAIXAS_ETARIAS),
}

ORDENACOES = ('name', 'duration', 'created_at')


# === LEITURA ===

def _doc_para_atividade(doc) -> dict:
    dados = doc.to_dict()
    dados['id'] = doc.id
    return dados


def listar_atividades_aprovadas() -> List[dict]:
    docs = get_db().collection(ATIVIDADES).where('aprovada', '==', True).stream()
    return [_doc_para_atividade(doc) for doc in docs]


def listar_atividades_pendentes() -> List[dict]:
    docs = get_db().collection(ATIVIDADES).where('aprovada', '==', False).stream()
    return [_doc_para_atividade(doc) for doc in docs]


def obter_atividade(atividade_id: str) -> Optional[dict]:
    doc = get_db().collection(ATIVIDADES).document(atividade_id).get()
    if not doc.exists:
        return None
    return _doc_para_atividade(doc)


def obter_atividades(ids: Iterable[str]) -> Dict[str, dict]:
    """Carrega várias atividades num só pedido (get_all)."""
    ids = list(dict.fromkeys(i for i in ids if i))
    if not ids:
        return {}
    db = get_db()
    refs = [db.collection(ATIVIDADES).document(i) for i in ids]
    return {doc.id: _doc_para_atividade(doc) for doc in db.get_all(refs) if doc.exists}


class CatalogoEmCache:
    """
    Consulta get(id) -> atividade | None com cache para a duração de um pedido.

    Usada pelo construtor: as atividades já conhecidas são carregadas em lote
    e as que forem adicionadas depois são lidas uma a uma.
    """

    def __init__(self, ids: Iterable[str] = ()):
        self._cache: Dict[str, Optional[dict]] = dict(obter_atividades(ids))

    def __call__(self, atividade_id: str) -> Optional[dict]:
        if atividade_id not in self._cache:
            self._cache[atividade_id] = obter_atividade(atividade_id)
        return self._cache[atividade_id]


# === FILTROS ===

def _lista(valor: Optional[str]) -> Optional[List[str]]:
    if not valor:
        return None
    itens = [v.strip() for v in valor.split(',') if v.strip()]
    return itens or None


def _inteiro(args: Mapping, chave: str, padrao: Optional[int] = None) -> Optional[int]:
    valor = args.get(chave)
    if valor in (None, ''):
        return padrao
    try:
        return int(valor)
    except (TypeError, ValueError):
        raise ValidationError(f"'{chave}' deve ser um número inteiro.", campo=chave)


def ler_filtros(args: Mapping) -> dict:
    """Lê e valida os filtros da query string do catálogo."""
    filtros = {'search': (args.get('search') or '').strip() or None}

    for parametro, (_, valores) in FILTROS_CATEGORICOS.items():
        selecionados = _lista(args.get(parametro))
        if selecionados:
            desconhecidos = [v for v in selecionados if v not in valores]
            if desconhecidos:
                raise ValidationError(f"Valores inválidos em '{parametro}': {', '.join(desconhecidos)}.",
                                      campo=parametro)
        filtros[parametro] = selecionados

    filtros['activity_type'] = _lista(args.get('activity_type'))
    filtros['sdgs'] = _lista(args.get('sdgs'))
    filtros['educational_goals'] = _lista(args.get('educational_goals'))

    filtros['duration_min'] = _inteiro(args, 'duration_min')
    filtros['duration_max'] = _inteiro(args, 'duration_max')
    operador = args.get('duration_operator') or None
    if operador is not None and operador not in OPERADORES_DURACAO:
        raise ValidationError(f"Operador de duração inválido: {operador}.", campo='duration_operator')
    filtros['duration_operator'] = operador

    ordenacao = args.get('sort') or 'name'
    if ordenacao not in ORDENACOES:
        raise ValidationError(f"Ordenação inválida: {ordenacao}.", campo='sort')
    filtros['sort'] = ordenacao
    filtros['order'] = 'desc' if args.get('order') == 'desc' else 'asc'

    filtros['page'] = max(_inteiro(args, 'page', 1), 1)
    filtros['limit'] = min(max(_inteiro(args, 'limit', PAGINA_PADRAO), 1), PAGINA_MAXIMA)
    return filtros


def _textos_pesquisaveis(atividade: dict) -> str:
    partes = []
    for campo in ('nome', 'descricao', 'materiais'):
        valor = atividade.get(campo)
        if isinstance(valor, dict):
            partes.extend(str(v) for v in valor.values() if v)
        elif valor:
            partes.append(resolver_texto(valor))
    return ' '.join(partes).casefold()


def _ids(itens) -> set:
    return {item.get('id') for item in itens or []}


def _passa_duracao(duracao: int, filtros: dict) -> bool:
    minimo, maximo = filtros.get('duration_min'), filtros.get('duration_max')
    if minimo is not None and maximo is not None:
        return minimo <= duracao <= maximo
    if minimo is not None:
        return OPERADORES_DURACAO[filtros.get('duration_operator') or '>='](duracao, minimo)
    if maximo is not None:
        return OPERADORES_DURACAO[filtros.get('duration_operator') or '<='](duracao, maximo)
    return True


def filtrar_atividades(atividades: Iterable[dict], filtros: dict) -> List[dict]:
    """Aplica todos os filtros do catálogo (sem paginação)."""
    pesquisa = (filtros.get('search') or '').casefold()
    resultado = []

    for atividade in atividades:
        if pesquisa and pesquisa not in _textos_pesquisaveis(atividade):
            continue
        if any(
            filtros.get(parametro) and atividade.get(campo) not in filtros[parametro]
            for parametro, (campo, _) in FILTROS_CATEGORICOS.items()
        ):
            continue
        if filtros.get('activity_type') and atividade.get('tipo_atividade_id') not in filtros['activity_type']:
            continue
        if filtros.get('sdgs') and not _ids(atividade.get('ods')) & set(filtros['sdgs']):
            continue
        if filtros.get('educational_goals') and \
                not _ids(atividade.get('objetivos_educativos')) & set(filtros['educational_goals']):
            continue
        if not _passa_duracao(int(atividade.get('duracao_minutos') or 0), filtros):
            continue
        resultado.append(atividade)

    return resultado


def ordenar_atividades(atividades: List[dict], ordenacao: str, ordem: str, idioma: str) -> List[dict]:
    if ordenacao == 'duration':
        chave = lambda a: int(a.get('duracao_minutos') or 0)  # noqa: E731
    elif ordenacao == 'created_at':
        # atividades sem data ficam no fim (ordem ascendente)
        chave = lambda a: (a.get('criado_em') is None, a.get('criado_em'))  # noqa: E731
    else:
        chave = lambda a: resolver_texto(a.get('nome'), idioma).casefold()  # noqa: E731
    return sorted(atividades, key=chave, reverse=(ordem == 'desc'))


def paginar(itens: List, pagina: int, limite: int) -> dict:
    total = len(itens)
    inicio = (pagina - 1) * limite
    return {
        'itens': itens[inicio:inicio + limite],
        'pagination': {
            'page': pagina,
            'limit': limite,
            'total': total,
            'total_pages': math.ceil(total / limite) if total else 0,
        },
    }


def filtros_disponiveis(atividades: Iterable[dict]) -> dict:
    """Valores distintos (pela ordem em que aparecem) no resultado filtrado."""
    disponiveis = {'group_sizes': {}, 'effort_levels': {}, 'locations': {}, 'age_groups': {},
                   'activity_types': {}}
    campos = {
        'group_sizes': 'tamanho_grupo',
        'effort_levels': 'nivel_esforco',
        'locations': 'local',
        'age_groups': 'faixa_etaria',
        'activity_types': 'tipo_atividade_id',
    }
    for atividade in atividades:
        for nome, campo in campos.items():
            valor = atividade.get(campo)
            if valor:
                disponiveis[nome].setdefault(valor, None)
    return {nome: list(valores) for nome, valores in disponiveis.items()}


def pesquisar_catalogo(filtros: dict, idioma: str) -> dict:
    """Catálogo filtrado, ordenado e paginado, já serializado."""
    filtradas = filtrar_atividades(listar_atividades_aprovadas(), filtros)
    ordenadas = ordenar_atividades(filtradas, filtros['sort'], filtros['order'], idioma)
    pagina = paginar(ordenadas, filtros['page'], filtros['limit'])

    aplicados = {k: v for k, v in filtros.items() if v is not None and k not in ('page', 'limit')}
    return {
        'activities': [serializar_atividade(a, idioma) for a in pagina['itens']],
        'pagination': pagina['pagination'],
        'filters': {'applied': aplicados, 'available': filtros_disponiveis(filtradas)},
    }


# === SERIALIZAÇÃO ===

def _rotulo(tabela: dict, valor: Optional[str], idioma: str) -> Optional[str]:
    if valor not in tabela:
        return None
    return tabela[valor].get(idioma) or tabela[valor]['pt']


def serializar_atividade(atividade: dict, idioma: str, com_imagem: bool = False) -> dict:
    """Resolve os campos multilingues e junta os rótulos das taxonomias fixas."""
    dados = {
        'id': atividade['id'],
        'nome': resolver_texto(atividade.get('nome'), idioma),
        'descricao': resolver_texto(atividade.get('descricao'), idioma),
        'materiais': resolver_texto(atividade.get('materiais'), idioma),
        'duracao_minutos': int(atividade.get('duracao_minutos') or 0),
        'tipo_atividade_id': atividade.get('tipo_atividade_id'),
        'objetivos_educativos': [
            {**o, 'titulo': resolver_texto(o.get('titulo'), idioma)}
            for o in atividade.get('objetivos_educativos') or []
        ],
        'ods': [
            {**o, 'nome': resolver_texto(o.get('nome'), idioma)}
            for o in atividade.get('ods') or []
        ],
    }
    for campo, tabela in (('tamanho_grupo', TAMANHOS_GRUPO), ('nivel_esforco', NIVEIS_ESFORCO),
                          ('local', LOCAIS), ('faixa_etaria', FAIXAS_ETARIAS)):
        dados[campo] = atividade.get(campo)
        dados[f'{campo}_rotulo'] = _rotulo(tabela, atividade.get(campo), idioma)

    if com_imagem:
        dados['imagem_url'] = storage.generate_signed_url(atividade.get('imagem_blob'))
    return dados


# === AVALIAÇÕES ===

def _avaliacao_id(atividade_id: str, email: str) -> str:
    return f"{atividade_id}__{email.lower()}"


def guardar_avaliacao(atividade_id: str, email: str, nota: int, comentario: Optional[str]) -> dict:
    """Cria ou substitui a avaliação do utilizador (uma por atividade)."""
    doc_ref = get_db().collection(AVALIACOES).document(_avaliacao_id(atividade_id, email))
    dados = {
        'atividade_id': atividade_id,
        'email': email.lower(),
        'nota': nota,
        'comentario': comentario or None,
        'atualizado_em': firestore.SERVER_TIMESTAMP,
    }
    if not doc_ref.get().exists:
        dados['criado_em'] = firestore.SERVER_TIMESTAMP
    doc_ref.set(dados, merge=True)
    logger.info(f"Avaliação {nota} de {email} para a atividade {atividade_id}.")
    return {'atividade_id': atividade_id, 'nota': nota, 'comentario': comentario or None}


def estatisticas_avaliacao(atividade_id: str, email: Optional[str] = None) -> dict:
    notas = []
    minha = None
    for doc in get_db().collection(AVALIACOES).where('atividade_id', '==', atividade_id).stream():
        dados = doc.to_dict()
        notas.append(dados.get('nota', 0))
        if email and dados.get('email') == email.lower():
            minha = dados.get('nota')
    return {
        'media': round(sum(notas) / len(notas), 2) if notas else None,
        'total': len(notas),
        'minha': minha,
    }


# === TAXONOMIAS ===

def listar_taxonomia(nome: str, idioma: str) -> Optional[List[dict]]:
    colecao = TAXONOMIAS.get(nome)
    if colecao is None:
        return None
    itens = []
    for doc in get_db().collection(colecao).stream():
        dados = doc.to_dict()
        dados.pop('criado_em', None)
        for campo in ('nome', 'titulo', 'descricao'):
            if campo in dados:
                dados[campo] = resolver_texto(dados[campo], idioma)
        itens.append({'id': doc.id, **dados})
    if nome == 'ods':
        itens.sort(key=lambda o: o.get('numero') or 0)
    return itens


# === ADMIN ===

def aprovar_atividade(atividade_id: str) -> bool:
    doc_ref = get_db().collection(ATIVIDADES).document(atividade_id)
    if not doc_ref.get().exists:
        return False
    doc_ref.update({'aprovada': True, 'atualizado_em': firestore.SERVER_TIMESTAMP})
    logger.info(f"Atividade aprovada: {atividade_id}")
    return True


def definir_imagem(atividade_id: str, nome_blob: str) -> Optional[str]:
    """Guarda o novo blob e devolve o anterior (para ser apagado)."""
    doc_ref = get_db().collection(ATIVIDADES).document(atividade_id)
    anterior = (doc_ref.get().to_dict() or {}).get('imagem_blob')
    doc_ref.update({'imagem_blob': nome_blob, 'atualizado_em': firestore.SERVER_TIMESTAMP})
    return anterior
