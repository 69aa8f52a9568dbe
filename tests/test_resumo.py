
import itertools
import unittest
from datetime import time

from scout_toolkit.programas.agenda import EntradaAtividade, EntradaPersonalizada, renumerar
from scout_toolkit.programas.resumo import resumir

CATALOGO = {
    'jogo-a': {
        'id': 'jogo-a',
        'duracao_minutos': 30,
        'tamanho_grupo': 'small',
        'nivel_esforco': 'high',
        'local': 'outside',
        'faixa_etaria': 'scouts',
        'objetivos_educativos': [{'id': 'og-1', 'titulo': 'Cooperação', 'codigo': 'SOC1'}],
        'ods': [{'id': 'ods-13', 'numero': 13, 'nome': 'Ação Climática'}],
    },
    'jogo-b': {
        'id': 'jogo-b',
        'duracao_minutos': 45,
        'tamanho_grupo': 'small',
        'nivel_esforco': 'low',
        'local': 'inside',
        'faixa_etaria': 'scouts',
        'objetivos_educativos': [
            {'id': 'og-2', 'titulo': 'Criatividade', 'codigo': 'CRI1'},
            {'id': 'og-1', 'titulo': 'Cooperação', 'codigo': 'SOC1'},
        ],
        'ods': [{'id': 'ods-4', 'numero': 4, 'nome': 'Educação de Qualidade'}],
    },
}


class TestResumo(unittest.TestCase):

    def test_resumo_completo(self):
        entradas = [
            EntradaAtividade(id='e1', atividade_id='jogo-a', posicao=0),
            EntradaPersonalizada(id='e2', titulo='Intervalo', duracao_minutos=15, posicao=1),
            EntradaAtividade(id='e3', atividade_id='jogo-b', posicao=2),
        ]
        resumo = resumir(entradas, CATALOGO, '09:00')

        self.assertEqual(resumo.duracao_total_minutos, 90)
        self.assertEqual(resumo.hora_fim, time(10, 30))
        self.assertEqual(resumo.total_atividades, 2)
        self.assertEqual(resumo.total_blocos, 1)
        # Sem repetições, pela ordem em que aparecem
        self.assertEqual([o['id'] for o in resumo.objetivos_educativos], ['og-1', 'og-2'])
        self.assertEqual([o['id'] for o in resumo.ods], ['ods-13', 'ods-4'])
        self.assertEqual(resumo.distribuicoes['tamanhos_grupo'], {'small': 2})
        self.assertEqual(resumo.distribuicoes['niveis_esforco'], {'high': 1, 'low': 1})
        self.assertEqual(resumo.distribuicoes['faixas_etarias'], {'scouts': 2})

    def test_resumo_vazio(self):
        resumo = resumir([], CATALOGO, '18:00')
        self.assertEqual(resumo.duracao_total_minutos, 0)
        self.assertEqual(resumo.hora_fim, time(18, 0))
        self.assertEqual(resumo.objetivos_educativos, [])
        self.assertEqual(resumo.distribuicoes['locais'], {})

    def test_referencia_partida(self):
        entradas = [
            EntradaAtividade(id='e1', atividade_id='desaparecida', posicao=0),
            EntradaAtividade(id='e2', atividade_id='jogo-a', posicao=1),
        ]
        resumo = resumir(entradas, CATALOGO, '09:00')

        self.assertEqual(resumo.total_atividades, 2)
        self.assertEqual(resumo.duracao_total_minutos, 30)
        self.assertEqual(resumo.distribuicoes['tamanhos_grupo'], {'small': 1})
        self.assertEqual(resumo.para_dict()['avisos'], [{'atividade_id': 'desaparecida', 'entrada_id': 'e1'}])

    def test_totais_nao_dependem_da_ordem(self):
        entradas = [
            EntradaAtividade(id='e1', atividade_id='jogo-a', posicao=0),
            EntradaPersonalizada(id='e2', titulo='Intervalo', duracao_minutos=15, posicao=1),
            EntradaAtividade(id='e3', atividade_id='jogo-b', posicao=2),
            EntradaPersonalizada(id='e4', titulo='Canção', duracao_minutos=5, posicao=3),
        ]
        base = resumir(entradas, CATALOGO, '09:00')

        for ordem in itertools.permutations(entradas):
            with self.subTest(ordem=[e.id for e in ordem]):
                resumo = resumir(renumerar(ordem), CATALOGO, '09:00')
                self.assertEqual(resumo.duracao_total_minutos, base.duracao_total_minutos)
                self.assertEqual(resumo.hora_fim, base.hora_fim)
                self.assertEqual({o['id'] for o in resumo.objetivos_educativos},
                                 {o['id'] for o in base.objetivos_educativos})
                self.assertEqual({o['id'] for o in resumo.ods}, {o['id'] for o in base.ods})
                self.assertEqual(resumo.distribuicoes, base.distribuicoes)

    def test_resumo_e_deterministico(self):
        entradas = [EntradaAtividade(id='e1', atividade_id='jogo-b', posicao=0)]
        self.assertEqual(
            resumir(entradas, CATALOGO, '09:00').para_dict(),
            resumir(entradas, CATALOGO, '09:00').para_dict(),
        )


if __name__ == '__main__':
    unittest.main()
