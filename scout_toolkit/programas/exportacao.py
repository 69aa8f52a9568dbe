"""
Exportação do horário de um programa em CSV.

Uma linha por entrada, pela ordem do horário, com os cabeçalhos no
idioma pedido. O ficheiro começa com BOM para abrir bem no Excel.
"""

import csv
import io

from scout_toolkit.core.constants import (
    COLUNAS_EXPORTACAO,
    LOCAIS,
    NIVEIS_ESFORCO,
    TAMANHOS_GRUPO,
    TIPOS_ENTRADA,
)
from scout_toolkit.core.i18n import resolver_texto
from .agenda import EntradaAtividade, Horario, obter_atividade

SEM_ATIVIDADE = {'pt': 'Atividade desconhecida', 'en': 'Unknown activity'}


def _rotulo(tabela: dict, valor, idioma: str) -> str:
    return tabela[valor][idioma] if valor in tabela else ''


def linhas_exportacao(horario: Horario, consulta, idioma: str):
    for numero, intervalo in enumerate(horario.intervalos, start=1):
        entrada = intervalo.entrada
        linha = [
            numero,
            intervalo.inicio.strftime('%H:%M'),
            intervalo.fim.strftime('%H:%M'),
            TIPOS_ENTRADA[entrada.tipo][idioma],
        ]
        if isinstance(entrada, EntradaAtividade):
            atividade = obter_atividade(consulta, entrada.atividade_id) or {}
            linha += [
                resolver_texto(atividade.get('nome'), idioma) or SEM_ATIVIDADE[idioma],
                intervalo.duracao_minutos,
                _rotulo(TAMANHOS_GRUPO, atividade.get('tamanho_grupo'), idioma),
                _rotulo(NIVEIS_ESFORCO, atividade.get('nivel_esforco'), idioma),
                _rotulo(LOCAIS, atividade.get('local'), idioma),
            ]
        else:
            linha += [entrada.titulo, intervalo.duracao_minutos, '', '', '']
        yield linha


def exportar_csv(horario: Horario, consulta, idioma: str = 'pt') -> str:
    if idioma not in COLUNAS_EXPORTACAO:
        idioma = 'pt'
    buffer = io.StringIO()
    buffer.write('\ufeff')
    writer = csv.writer(buffer)
    writer.writerow(COLUNAS_EXPORTACAO[idioma])
    writer.writerows(linhas_exportacao(horario, consulta, idioma))
    return buffer.getvalue()
