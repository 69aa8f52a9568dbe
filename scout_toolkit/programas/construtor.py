"""
Sessão do Construtor de Programas.

Cada construtor aberto tem a sua própria SessaoConstrutor com a cópia de
trabalho das entradas. Todas as alterações são locais e recalculam o
horário e o resumo antes de devolver; só 'guardar()' fala com a camada de
persistência e devolve um Resultado (Sucesso / Falha) em vez de lançar.
"""

from dataclasses import dataclass, replace
from datetime import time
from typing import Any, Callable, ClassVar, List, Mapping, Sequence, Tuple, Union

from scout_toolkit.core.errors import SessionBusy, ValidationError
from scout_toolkit.core.logger import get_logger
from .agenda import (
    ConsultaAtividades,
    Entrada,
    EntradaAtividade,
    EntradaPersonalizada,
    Horario,
    calcular_horario,
    entrada_de_dict,
    entrada_para_dict,
    formatar_hora,
    ler_hora,
    novo_id,
    renumerar,
    reordenar,
    validar_duracao,
    validar_titulo,
)
from .resumo import ResumoPrograma, resumir

logger = get_logger(__name__)

ESTADO_VAZIO = 'Empty'
ESTADO_PREENCHIDO = 'Populated'

# A cópia de trabalho vai no cookie de sessão (limite de ~4 KB)
MAXIMO_ENTRADAS = 80


@dataclass(frozen=True)
class Sucesso:
    entradas: Tuple[Entrada, ...] = ()

    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class Falha:
    motivo: str

    ok: ClassVar[bool] = False


Resultado = Union[Sucesso, Falha]
GuardarEntradas = Callable[[str, List[Entrada]], Resultado]

_CAMPOS_EDITAVEIS = {
    EntradaAtividade: {'atividade_id'},
    EntradaPersonalizada: {'titulo', 'duracao_minutos'},
}


def _validar_atividade_id(valor: Any) -> str:
    if not isinstance(valor, str) or not valor.strip():
        raise ValidationError("Identificador de atividade inválido.", campo='atividade_id')
    return valor.strip()


class SessaoConstrutor:
    """Estado de trabalho de um programa no construtor."""

    def __init__(self, programa_id: str, hora_inicio: Union[time, str],
                 consulta: ConsultaAtividades, guardar_entradas: GuardarEntradas,
                 entradas: Sequence[Entrada] = (), alterada: bool = False):
        self.programa_id = programa_id
        self.hora_inicio = ler_hora(hora_inicio)
        self.alterada = alterada
        self._consulta = consulta
        self._guardar_entradas = guardar_entradas
        self._entradas: List[Entrada] = renumerar(entradas)
        self._a_guardar = False
        self._recalcular()

    # === VISTA ===

    @property
    def entradas(self) -> Tuple[Entrada, ...]:
        return tuple(self._entradas)

    @property
    def estado(self) -> str:
        return ESTADO_PREENCHIDO if self._entradas else ESTADO_VAZIO

    @property
    def consulta(self) -> ConsultaAtividades:
        return self._consulta

    @property
    def a_guardar(self) -> bool:
        return self._a_guardar

    @property
    def horario(self) -> Horario:
        return self._horario

    @property
    def resumo(self) -> ResumoPrograma:
        return self._resumo

    @property
    def avisos(self):
        return list(self._horario.avisos)

    def _recalcular(self) -> None:
        self._horario = calcular_horario(self._entradas, self.hora_inicio, self._consulta)
        self._resumo = resumir(self._entradas, self._consulta, self.hora_inicio)

    def _verificar_livre(self) -> None:
        if self._a_guardar:
            raise SessionBusy("Existe um 'guardar' em curso para este programa.")

    def _aplicar(self, novas: Sequence[Entrada]) -> None:
        self._entradas = renumerar(novas)
        self.alterada = True
        self._recalcular()

    def _verificar_espaco(self) -> None:
        if len(self._entradas) >= MAXIMO_ENTRADAS:
            raise ValidationError(f"Um programa pode ter no máximo {MAXIMO_ENTRADAS} entradas.", campo='entradas')

    def _indice(self, entrada_id: str) -> int:
        for indice, entrada in enumerate(self._entradas):
            if entrada.id == entrada_id:
                return indice
        raise ValidationError(f"Entrada '{entrada_id}' não existe neste programa.", campo='entrada_id')

    # === OPERAÇÕES ===

    def adicionar_atividade(self, atividade_id: str) -> Entrada:
        self._verificar_livre()
        self._verificar_espaco()
        entrada = EntradaAtividade(id=novo_id(), atividade_id=_validar_atividade_id(atividade_id),
                                   posicao=len(self._entradas))
        self._aplicar(self._entradas + [entrada])
        return entrada

    def adicionar_bloco_personalizado(self, titulo: str, duracao_minutos: int) -> Entrada:
        self._verificar_livre()
        self._verificar_espaco()
        entrada = EntradaPersonalizada(
            id=novo_id(),
            titulo=validar_titulo(titulo),
            duracao_minutos=validar_duracao(duracao_minutos),
            posicao=len(self._entradas),
        )
        self._aplicar(self._entradas + [entrada])
        return entrada

    def remover_entrada(self, entrada_id: str) -> Entrada:
        self._verificar_livre()
        indice = self._indice(entrada_id)
        removida = self._entradas[indice]
        self._aplicar(self._entradas[:indice] + self._entradas[indice + 1:])
        return removida

    def mover_entrada(self, de: int, para: int) -> None:
        self._verificar_livre()
        self._aplicar(reordenar(self._entradas, de, para))

    def atualizar_entrada(self, entrada_id: str, alteracoes: Mapping[str, Any]) -> Entrada:
        """Altera campos de uma entrada sem mudar a sua posição."""
        self._verificar_livre()
        indice = self._indice(entrada_id)
        atual = self._entradas[indice]

        permitidos = _CAMPOS_EDITAVEIS[type(atual)]
        invalidos = set(alteracoes) - permitidos
        if invalidos:
            raise ValidationError(
                f"Campos não editáveis para '{atual.tipo}': {', '.join(sorted(invalidos))}.",
                campo=sorted(invalidos)[0],
            )

        valores = {}
        if 'titulo' in alteracoes:
            valores['titulo'] = validar_titulo(alteracoes['titulo'])
        if 'duracao_minutos' in alteracoes:
            valores['duracao_minutos'] = validar_duracao(alteracoes['duracao_minutos'])
        if 'atividade_id' in alteracoes:
            valores['atividade_id'] = _validar_atividade_id(alteracoes['atividade_id'])

        nova = replace(atual, **valores)
        novas = list(self._entradas)
        novas[indice] = nova
        self._aplicar(novas)
        return nova

    def guardar(self) -> Resultado:
        """
        Entrega a lista ordenada à persistência.

        O estado local nunca é alterado por uma falha, por isso o chamador
        pode simplesmente voltar a tentar.
        """
        if self._a_guardar:
            return Falha("Já existe um 'guardar' em curso.")

        self._a_guardar = True
        try:
            resultado = self._guardar_entradas(self.programa_id, list(self._entradas))
        except Exception as e:
            logger.error(f"Erro ao guardar programa {self.programa_id}: {e}", exc_info=True)
            resultado = Falha(str(e))
        finally:
            self._a_guardar = False

        if resultado.ok:
            self.alterada = False
            logger.info(f"Programa {self.programa_id} guardado ({len(self._entradas)} entradas).")
        else:
            logger.warning(f"Falha ao guardar programa {self.programa_id}: {resultado.motivo}")
        return resultado

    # === SERIALIZAÇÃO ===

    def para_dict(self) -> dict:
        """Cópia de trabalho compacta (cabe no cookie de sessão)."""
        return {
            'programa_id': self.programa_id,
            'hora_inicio': formatar_hora(self.hora_inicio),
            'alterada': self.alterada,
            'entradas': [entrada_para_dict(e) for e in self._entradas],
        }

    @classmethod
    def de_dict(cls, dados: Mapping[str, Any], consulta: ConsultaAtividades,
                guardar_entradas: GuardarEntradas) -> 'SessaoConstrutor':
        return cls(
            programa_id=dados['programa_id'],
            hora_inicio=dados['hora_inicio'],
            consulta=consulta,
            guardar_entradas=guardar_entradas,
            entradas=[entrada_de_dict(e) for e in dados.get('entradas', [])],
            alterada=bool(dados.get('alterada', False)),
        )

    def vista(self) -> dict:
        return {
            'programa_id': self.programa_id,
            'estado': self.estado,
            'alterada': self.alterada,
            'entradas': [i.para_dict() for i in self._horario.intervalos],
            'resumo': self._resumo.para_dict(),
        }
