"""
Agenda de um Programa.

Define os dois tipos de entrada (atividade do catálogo ou bloco
personalizado), calcula o horário sequencial a partir da hora de início
e reordena a lista de entradas (arrastar e largar).
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, time
from typing import Any, Callable, ClassVar, List, Mapping, Optional, Sequence, Tuple, Union

from scout_toolkit.core.errors import DataIntegrityWarning, InvalidIndex, ValidationError
from scout_toolkit.core.logger import get_logger

logger = get_logger(__name__)

MINUTOS_POR_DIA = 24 * 60

TIPO_ATIVIDADE = 'activity'
TIPO_PERSONALIZADO = 'custom'

FORMATOS_HORA = ('%H:%M', '%H:%M:%S')


@dataclass(frozen=True)
class EntradaAtividade:
    id: str
    atividade_id: str
    posicao: int = 0

    tipo: ClassVar[str] = TIPO_ATIVIDADE


@dataclass(frozen=True)
class EntradaPersonalizada:
    id: str
    titulo: str
    duracao_minutos: int
    posicao: int = 0

    tipo: ClassVar[str] = TIPO_PERSONALIZADO


Entrada = Union[EntradaAtividade, EntradaPersonalizada]

# Um dicionário {id: atividade} ou uma função get(id) -> atividade | None
ConsultaAtividades = Union[Mapping[str, dict], Callable[[str], Optional[dict]]]


def novo_id() -> str:
    return uuid.uuid4().hex


def validar_duracao(valor: Any, campo: str = 'duracao_minutos') -> int:
    # bool é subclasse de int e não é uma duração
    if isinstance(valor, bool) or not isinstance(valor, int) or valor <= 0:
        raise ValidationError(f"A duração deve ser um inteiro positivo (recebido: {valor!r}).", campo=campo)
    return valor


def validar_titulo(valor: Any) -> str:
    if not isinstance(valor, str) or not valor.strip():
        raise ValidationError("O título do bloco é obrigatório.", campo='titulo')
    return valor.strip()


def entrada_de_dict(dados: Mapping[str, Any]) -> Entrada:
    """Reconstrói uma entrada a partir do formato guardado no Firestore."""
    tipo = dados.get('tipo')
    entrada_id = dados.get('id') or novo_id()
    posicao = dados.get('posicao', 0)

    if tipo == TIPO_ATIVIDADE:
        atividade_id = dados.get('atividade_id')
        if not atividade_id:
            raise ValidationError("Entrada de atividade sem 'atividade_id'.", campo='atividade_id')
        return EntradaAtividade(id=entrada_id, atividade_id=atividade_id, posicao=posicao)

    if tipo == TIPO_PERSONALIZADO:
        return EntradaPersonalizada(
            id=entrada_id,
            titulo=validar_titulo(dados.get('titulo')),
            duracao_minutos=validar_duracao(dados.get('duracao_minutos')),
            posicao=posicao,
        )

    raise ValidationError(f"Tipo de entrada desconhecido: {tipo!r}.", campo='tipo')


def entrada_para_dict(entrada: Entrada) -> dict:
    dados = {'id': entrada.id, 'posicao': entrada.posicao, 'tipo': entrada.tipo}
    if isinstance(entrada, EntradaAtividade):
        dados['atividade_id'] = entrada.atividade_id
    else:
        dados['titulo'] = entrada.titulo
        dados['duracao_minutos'] = entrada.duracao_minutos
    return dados


# === HORAS ===

def ler_hora(valor: Union[time, str]) -> time:
    """Aceita datetime.time ou texto 'HH:MM' / 'HH:MM:SS'. Ignora os segundos."""
    if isinstance(valor, time):
        return valor.replace(second=0, microsecond=0, tzinfo=None)

    if isinstance(valor, str):
        for formato in FORMATOS_HORA:
            try:
                return datetime.strptime(valor.strip(), formato).time().replace(second=0)
            except ValueError:
                continue

    raise ValidationError(f"Hora inválida: {valor!r}.", campo='hora_inicio')


def formatar_hora(valor: time) -> str:
    return valor.strftime('%H:%M')


def _para_minutos(valor: time) -> int:
    return valor.hour * 60 + valor.minute


def _de_minutos(minutos: int) -> time:
    minutos %= MINUTOS_POR_DIA
    return time(minutos // 60, minutos % 60)


def somar_minutos(valor: time, minutos: int) -> time:
    return _de_minutos(_para_minutos(valor) + minutos)


# === DURAÇÃO EFETIVA ===

def obter_atividade(consulta: ConsultaAtividades, atividade_id: str) -> Optional[dict]:
    if isinstance(consulta, Mapping):
        return consulta.get(atividade_id)
    return consulta(atividade_id)


def duracao_efetiva(entrada: Entrada, consulta: ConsultaAtividades) -> Tuple[int, Optional[DataIntegrityWarning]]:
    """
    Minutos que a entrada ocupa no horário.

    Blocos personalizados usam a sua própria duração; atividades herdam a
    duração aproximada do catálogo. Uma atividade em falta vale zero minutos
    e devolve um aviso em vez de interromper o cálculo.
    """
    if isinstance(entrada, EntradaPersonalizada):
        return entrada.duracao_minutos, None

    atividade = obter_atividade(consulta, entrada.atividade_id)
    if atividade is None:
        return 0, DataIntegrityWarning(entrada.atividade_id, entrada.id)

    return int(atividade.get('duracao_minutos') or 0), None


# === HORÁRIO ===

@dataclass(frozen=True)
class Intervalo:
    entrada: Entrada
    inicio: time
    fim: time
    duracao_minutos: int

    def para_dict(self) -> dict:
        return {
            **entrada_para_dict(self.entrada),
            'hora_inicio': formatar_hora(self.inicio),
            'hora_fim': formatar_hora(self.fim),
            'duracao_efetiva_minutos': self.duracao_minutos,
        }


@dataclass
class Horario:
    intervalos: List[Intervalo] = field(default_factory=list)
    avisos: List[DataIntegrityWarning] = field(default_factory=list)

    @property
    def duracao_total(self) -> int:
        return sum(i.duracao_minutos for i in self.intervalos)


def calcular_horario(entradas: Sequence[Entrada], hora_inicio: Union[time, str],
                     consulta: ConsultaAtividades) -> Horario:
    """
    Calcula início e fim de cada entrada por acumulação sequencial.

    A primeira entrada começa à hora de início do programa e cada uma das
    seguintes começa quando a anterior termina (relógio de 24 horas).
    """
    inicio = ler_hora(hora_inicio)
    horario = Horario()
    cursor = _para_minutos(inicio)

    for entrada in entradas:
        minutos, aviso = duracao_efetiva(entrada, consulta)
        if aviso is not None:
            logger.warning(str(aviso))
            horario.avisos.append(aviso)
        horario.intervalos.append(
            Intervalo(entrada=entrada, inicio=_de_minutos(cursor), fim=_de_minutos(cursor + minutos),
                      duracao_minutos=minutos)
        )
        cursor += minutos

    return horario


# === REORDENAÇÃO ===

def renumerar(entradas: Sequence[Entrada]) -> List[Entrada]:
    """Nova lista em que 'posicao' coincide com o índice (0..n-1)."""
    return [e if e.posicao == i else replace(e, posicao=i) for i, e in enumerate(entradas)]


def reordenar(entradas: Sequence[Entrada], de: int, para: int) -> List[Entrada]:
    """
    Move uma entrada (não é uma troca) e renumera as posições.

    A lista original nunca é alterada.
    """
    total = len(entradas)
    for indice, nome in ((de, 'de'), (para, 'para')):
        if isinstance(indice, bool) or not isinstance(indice, int) or not 0 <= indice < total:
            raise InvalidIndex(f"Índice '{nome}' fora do intervalo: {indice!r} (total {total}).", campo=nome)

    nova = list(entradas)
    nova.insert(para, nova.pop(de))
    return renumerar(nova)
