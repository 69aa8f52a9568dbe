"""
Resumo de um Programa.

Agrega as entradas: duração total, contagens por tipo, objetivos
educativos e ODS (sem repetições, pela ordem em que aparecem) e
distribuições por tamanho de grupo, esforço, local e faixa etária.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import time
from typing import Dict, List, Sequence, Union

from scout_toolkit.core.errors import DataIntegrityWarning
from .agenda import (
    ConsultaAtividades,
    Entrada,
    EntradaAtividade,
    duracao_efetiva,
    formatar_hora,
    ler_hora,
    obter_atividade,
    somar_minutos,
)

# Campo da atividade -> nome da distribuição no resumo
CAMPOS_DISTRIBUICAO = {
    'tamanho_grupo': 'tamanhos_grupo',
    'nivel_esforco': 'niveis_esforco',
    'local': 'locais',
    'faixa_etaria': 'faixas_etarias',
}


@dataclass
class ResumoPrograma:
    hora_inicio: time
    hora_fim: time
    duracao_total_minutos: int = 0
    total_atividades: int = 0
    total_blocos: int = 0
    objetivos_educativos: List[dict] = field(default_factory=list)
    ods: List[dict] = field(default_factory=list)
    distribuicoes: Dict[str, Dict[str, int]] = field(default_factory=dict)
    avisos: List[DataIntegrityWarning] = field(default_factory=list)

    def para_dict(self) -> dict:
        return {
            'hora_inicio': formatar_hora(self.hora_inicio),
            'hora_fim': formatar_hora(self.hora_fim),
            'duracao_total_minutos': self.duracao_total_minutos,
            'total_atividades': self.total_atividades,
            'total_blocos': self.total_blocos,
            'objetivos_educativos': self.objetivos_educativos,
            'ods': self.ods,
            'distribuicoes': self.distribuicoes,
            'avisos': [a.para_dict() for a in self.avisos],
        }


def _juntar_por_id(destino: Dict[str, dict], itens) -> None:
    for item in itens or []:
        item_id = item.get('id')
        if item_id is not None and item_id not in destino:
            destino[item_id] = item


def resumir(entradas: Sequence[Entrada], consulta: ConsultaAtividades,
            hora_inicio: Union[time, str]) -> ResumoPrograma:
    """Calcula o resumo. Função pura: o mesmo input dá sempre o mesmo output."""
    inicio = ler_hora(hora_inicio)
    objetivos: Dict[str, dict] = {}
    ods: Dict[str, dict] = {}
    contagens = {nome: Counter() for nome in CAMPOS_DISTRIBUICAO.values()}
    total = atividades = blocos = 0
    avisos = []

    for entrada in entradas:
        minutos, aviso = duracao_efetiva(entrada, consulta)
        total += minutos

        if not isinstance(entrada, EntradaAtividade):
            blocos += 1
            continue

        atividades += 1
        if aviso is not None:
            avisos.append(aviso)
            continue

        atividade = obter_atividade(consulta, entrada.atividade_id)
        _juntar_por_id(objetivos, atividade.get('objetivos_educativos'))
        _juntar_por_id(ods, atividade.get('ods'))
        for campo, nome in CAMPOS_DISTRIBUICAO.items():
            valor = atividade.get(campo)
            if valor:
                contagens[nome][valor] += 1

    return ResumoPrograma(
        hora_inicio=inicio,
        hora_fim=somar_minutos(inicio, total),
        duracao_total_minutos=total,
        total_atividades=atividades,
        total_blocos=blocos,
        objetivos_educativos=list(objetivos.values()),
        ods=list(ods.values()),
        distribuicoes={nome: dict(contador) for nome, contador in contagens.items()},
        avisos=avisos,
    )
