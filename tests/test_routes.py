import os
from unittest.mock import patch

from scout_toolkit.programas.construtor import MAXIMO_ENTRADAS, Falha, Sucesso

CATALOGO = {
    'jogo-a': {'id': 'jogo-a', 'nome': {'pt': 'Jogo A', 'en': 'Game A'}, 'duracao_minutos': 30,
               'tamanho_grupo': 'small', 'nivel_esforco': 'high', 'local': 'outside', 'aprovada': True},
    'jogo-b': {'id': 'jogo-b', 'nome': 'Jogo B', 'duracao_minutos': 45, 'aprovada': True},
    'pendente': {'id': 'pendente', 'nome': 'Por aprovar', 'duracao_minutos': 10, 'aprovada': False},
}


def _programa(**extra):
    programa = {
        'id': 'p1',
        'nome': 'Reunião de Sábado',
        'data': '2026-03-14',
        'hora_inicio': '09:00',
        'publico': False,
        'dono': 'lider@escoteiros.pt',
        'entradas': [],
    }
    programa.update(extra)
    return programa


def _patch_programa(programa):
    return patch('scout_toolkit.programas.services.obter_programa', return_value=programa)


def _patch_catalogo():
    return patch('scout_toolkit.programas.routes.CatalogoEmCache', return_value=CATALOGO.get)


# === GERAIS ===

def test_health_check(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert response.get_json()['status'] == 'ok'


def test_metrics(client):
    response = client.get('/metrics')
    assert response.status_code == 200
    dados = response.get_json()
    assert dados['version'] == '0.1.0'
    assert dados['uptime_seconds'] >= 0
    assert dados['system']['pid'] == os.getpid()
    assert set(dados) >= {'timestamp', 'environment', 'memory'}


def test_404_em_json(client):
    response = client.get('/rota-que-nao-existe?lang=pt')
    assert response.status_code == 404
    assert response.get_json()['error'] == {'code': 'NOT_FOUND', 'message': 'Recurso não encontrado'}


def test_404_localizado(client):
    response = client.get('/rota-que-nao-existe', headers={'Accept-Language': 'en'})
    assert response.get_json()['error']['message'] == 'Resource not found'


def test_programas_exige_login(client):
    response = client.get('/api/programas')
    assert response.status_code == 401
    assert response.get_json()['error']['code'] == 'UNAUTHORIZED'


# === CATÁLOGO ===

def test_listar_atividades(client):
    aprovadas = [a for a in CATALOGO.values() if a['aprovada']]
    with patch('scout_toolkit.atividades.services.listar_atividades_aprovadas', return_value=aprovadas):
        response = client.get('/api/atividades?limit=1&sort=duration&order=desc&lang=en')

    dados = response.get_json()
    assert response.status_code == 200
    assert [a['id'] for a in dados['activities']] == ['jogo-b']
    assert dados['pagination'] == {'page': 1, 'limit': 1, 'total': 2, 'total_pages': 2}
    assert dados['filters']['applied']['sort'] == 'duration'


def test_listar_atividades_filtro_invalido(client):
    with patch('scout_toolkit.atividades.services.listar_atividades_aprovadas', return_value=[]):
        response = client.get('/api/atividades?effort_level=extremo')
    assert response.status_code == 400
    assert response.get_json()['error']['field'] == 'effort_level'


def test_detalhe_atividade_por_aprovar_fica_oculto(client):
    with patch('scout_toolkit.atividades.services.obter_atividade', return_value=CATALOGO['pendente']):
        response = client.get('/api/atividades/pendente')
    assert response.status_code == 404
    assert response.get_json()['error']['code'] == 'ACTIVITY_NOT_FOUND'


def test_detalhe_atividade(client):
    with patch('scout_toolkit.atividades.services.obter_atividade', return_value=CATALOGO['jogo-a']), \
            patch('scout_toolkit.atividades.services.estatisticas_avaliacao',
                  return_value={'media': 4.5, 'total': 2, 'minha': None}), \
            patch('scout_toolkit.core.storage.generate_signed_url', return_value=None):
        response = client.get('/api/atividades/jogo-a?lang=en')

    atividade = response.get_json()['activity']
    assert atividade['nome'] == 'Game A'
    assert atividade['avaliacao']['media'] == 4.5


def test_avaliar_exige_login(client):
    response = client.put('/api/atividades/jogo-a/avaliacao', json={'nota': 5})
    assert response.status_code == 401


def test_avaliar_nota_invalida(client_lider):
    with patch('scout_toolkit.atividades.services.obter_atividade', return_value=CATALOGO['jogo-a']), \
            patch('scout_toolkit.atividades.services.guardar_avaliacao') as guardar:
        response = client_lider.put('/api/atividades/jogo-a/avaliacao', json={'nota': 6})
    assert response.status_code == 400
    assert response.get_json()['error']['field'] == 'nota'
    guardar.assert_not_called()


def test_avaliar(client_lider):
    with patch('scout_toolkit.atividades.services.obter_atividade', return_value=CATALOGO['jogo-a']), \
            patch('scout_toolkit.atividades.services.guardar_avaliacao',
                  return_value={'atividade_id': 'jogo-a', 'nota': 4, 'comentario': None}) as guardar, \
            patch('scout_toolkit.atividades.services.estatisticas_avaliacao',
                  return_value={'media': 4.0, 'total': 1, 'minha': 4}):
        response = client_lider.put('/api/atividades/jogo-a/avaliacao', json={'nota': 4})
    assert response.status_code == 200
    guardar.assert_called_once_with('jogo-a', 'lider@escoteiros.pt', 4, None)


def test_taxonomia_desconhecida(client):
    response = client.get('/api/taxonomias/cores')
    assert response.status_code == 404


# === PROGRAMAS ===

def test_criar_programa(client_lider):
    with patch('scout_toolkit.programas.services.criar_programa', return_value=_programa()) as criar, \
            _patch_catalogo():
        response = client_lider.post('/api/programas', json={
            'nome': 'Reunião de Sábado', 'data': '2026-03-14', 'hora_inicio': '09:00', 'publico': False,
        })

    assert response.status_code == 201
    criar.assert_called_once_with('lider@escoteiros.pt', {
        'nome': 'Reunião de Sábado', 'data': '2026-03-14', 'hora_inicio': '09:00', 'publico': False,
    })
    assert response.get_json()['program']['resumo']['duracao_total_minutos'] == 0


def test_criar_programa_hora_invalida(client_lider):
    with patch('scout_toolkit.programas.services.criar_programa') as criar:
        response = client_lider.post('/api/programas', json={'nome': 'Noite', 'hora_inicio': '25:00'})
    assert response.status_code == 400
    assert response.get_json()['error']['field'] == 'hora_inicio'
    criar.assert_not_called()


def test_programa_privado_de_outro_dono_devolve_404(client, entrar):
    entrar(client, {'email': 'outro@escoteiros.pt', 'role': 'user'})
    with _patch_programa(_programa()):
        assert client.get('/api/programas/p1').status_code == 404
        assert client.get('/api/programas/p1/exportar.csv').status_code == 404
        assert client.put('/api/programas/p1', json={'nome': 'X', 'hora_inicio': '10:00'}).status_code == 404
        assert client.get('/api/programas/p1/construtor').status_code == 404


def test_programa_publico_visivel_sem_login(client):
    entradas = [{'id': 'e1', 'posicao': 0, 'tipo': 'custom', 'titulo': 'Abertura', 'duracao_minutos': 10}]
    with _patch_programa(_programa(publico=True, entradas=entradas)), _patch_catalogo():
        response = client.get('/api/programas/p1')
    programa = response.get_json()['program']
    assert response.status_code == 200
    assert programa['entradas'][0]['hora_fim'] == '09:10'


def test_programa_publico_nao_editavel_por_outros(client, entrar):
    entrar(client, {'email': 'outro@escoteiros.pt', 'role': 'user'})
    with _patch_programa(_programa(publico=True)), \
            patch('scout_toolkit.programas.services.apagar_programa') as apagar:
        response = client.delete('/api/programas/p1')
    assert response.status_code == 404
    apagar.assert_not_called()


def test_exportar_csv(client_lider):
    entradas = [
        {'id': 'e1', 'posicao': 0, 'tipo': 'activity', 'atividade_id': 'jogo-a'},
        {'id': 'e2', 'posicao': 1, 'tipo': 'custom', 'titulo': 'Lanche', 'duracao_minutos': 15},
    ]
    with _patch_programa(_programa(entradas=entradas)), _patch_catalogo():
        response = client_lider.get('/api/programas/p1/exportar.csv?lang=en')

    assert response.status_code == 200
    assert response.mimetype == 'text/csv'
    linhas = response.data.decode('utf-8-sig').splitlines()
    assert linhas[0] == 'Position,Start,End,Type,Title,Duration (min),Group size,Effort,Location'
    assert linhas[1] == '1,09:00,09:30,Activity,Game A,30,Small,High,Outside'
    assert linhas[2] == '2,09:30,09:45,Custom block,Lanche,15,,,'


# === CONSTRUTOR ===

def test_fluxo_do_construtor(client_lider):
    with _patch_programa(_programa()), _patch_catalogo(), \
            patch('scout_toolkit.programas.services.guardar_entradas_programa',
                  side_effect=lambda programa_id, entradas: Sucesso(tuple(entradas))) as guardar:
        vazio = client_lider.get('/api/programas/p1/construtor').get_json()['builder']
        assert vazio['estado'] == 'Empty'

        client_lider.post('/api/programas/p1/construtor/atividades', json={'atividade_id': 'jogo-a'})
        client_lider.post('/api/programas/p1/construtor/blocos', json={'titulo': 'Intervalo', 'duracao_minutos': 15})
        response = client_lider.post('/api/programas/p1/construtor/atividades', json={'atividade_id': 'jogo-b'})
        assert response.status_code == 201

        construtor = response.get_json()['builder']
        horas = [(e['hora_inicio'], e['hora_fim']) for e in construtor['entradas']]
        assert horas == [('09:00', '09:30'), ('09:30', '09:45'), ('09:45', '10:30')]
        assert construtor['resumo']['duracao_total_minutos'] == 90
        assert construtor['alterada'] is True

        # Duração negativa é rejeitada e nada muda
        response = client_lider.post('/api/programas/p1/construtor/blocos',
                                     json={'titulo': 'Break', 'duracao_minutos': -5})
        assert response.status_code == 400
        assert len(client_lider.get('/api/programas/p1/construtor').get_json()['builder']['entradas']) == 3

        # Remover a entrada do meio renumera as posições
        meio = construtor['entradas'][1]['id']
        construtor = client_lider.delete(f'/api/programas/p1/construtor/entradas/{meio}').get_json()['builder']
        assert [e['posicao'] for e in construtor['entradas']] == [0, 1]
        assert construtor['entradas'][1]['hora_inicio'] == '09:30'

        response = client_lider.post('/api/programas/p1/construtor/mover', json={'de': 1, 'para': 0})
        assert [e['atividade_id'] for e in response.get_json()['builder']['entradas']] == ['jogo-b', 'jogo-a']

        response = client_lider.post('/api/programas/p1/construtor/guardar')
        assert response.status_code == 200
        assert response.get_json()['builder']['alterada'] is False

    programa_id, entradas = guardar.call_args[0]
    assert programa_id == 'p1'
    assert [e.atividade_id for e in entradas] == ['jogo-b', 'jogo-a']
    with client_lider.session_transaction() as sess:
        assert 'p1' not in sess.get('construtores', {})


def test_construtor_mover_fora_do_intervalo(client_lider):
    with _patch_programa(_programa()), _patch_catalogo():
        client_lider.post('/api/programas/p1/construtor/blocos', json={'titulo': 'Abertura', 'duracao_minutos': 5})
        response = client_lider.post('/api/programas/p1/construtor/mover', json={'de': 0, 'para': 3})
    assert response.status_code == 400
    assert response.get_json()['error']['code'] == 'INVALID_INDEX'


def test_construtor_atividade_por_aprovar(client_lider):
    with _patch_programa(_programa()), _patch_catalogo():
        response = client_lider.post('/api/programas/p1/construtor/atividades', json={'atividade_id': 'pendente'})
    assert response.status_code == 404
    assert response.get_json()['error']['code'] == 'ACTIVITY_NOT_FOUND'


def test_construtor_atualizar_entrada(client_lider):
    with _patch_programa(_programa()), _patch_catalogo():
        response = client_lider.post('/api/programas/p1/construtor/blocos',
                                     json={'titulo': 'Abertura', 'duracao_minutos': 5})
        entrada_id = response.get_json()['builder']['entradas'][0]['id']

        response = client_lider.patch(f'/api/programas/p1/construtor/entradas/{entrada_id}',
                                      json={'duracao_minutos': 25})
        assert response.get_json()['builder']['entradas'][0]['hora_fim'] == '09:25'

        response = client_lider.patch(f'/api/programas/p1/construtor/entradas/{entrada_id}',
                                      json={'atividade_id': 'jogo-a'})
        assert response.status_code == 400


def test_construtor_trocar_para_atividade_por_aprovar(client_lider):
    with _patch_programa(_programa()), _patch_catalogo():
        response = client_lider.post('/api/programas/p1/construtor/atividades', json={'atividade_id': 'jogo-a'})
        entrada_id = response.get_json()['builder']['entradas'][0]['id']

        response = client_lider.patch(f'/api/programas/p1/construtor/entradas/{entrada_id}',
                                      json={'atividade_id': 'pendente'})
        assert response.status_code == 404
        assert response.get_json()['error']['code'] == 'ACTIVITY_NOT_FOUND'

        response = client_lider.patch(f'/api/programas/p1/construtor/entradas/{entrada_id}',
                                      json={'atividade_id': 'inexistente'})
        assert response.status_code == 404

        construtor = client_lider.get('/api/programas/p1/construtor').get_json()['builder']
    assert construtor['entradas'][0]['atividade_id'] == 'jogo-a'


def test_construtor_copia_nao_excede_o_cookie(client_lider):
    with _patch_programa(_programa()), _patch_catalogo():
        for _ in range(MAXIMO_ENTRADAS):
            # Títulos aleatórios não comprimem
            response = client_lider.post('/api/programas/p1/construtor/blocos',
                                         json={'titulo': os.urandom(100).hex(), 'duracao_minutos': 5})
            if response.status_code != 201:
                break

    assert response.status_code == 400
    assert response.get_json()['error']['code'] == 'VALIDATION_ERROR'
    with client_lider.session_transaction() as sess:
        guardadas = len(sess['construtores']['p1']['entradas'])
    assert 0 < guardadas < MAXIMO_ENTRADAS


def test_construtor_falha_ao_guardar_mantem_copia(client_lider):
    with _patch_programa(_programa()), _patch_catalogo(), \
            patch('scout_toolkit.programas.services.guardar_entradas_programa',
                  return_value=Falha('Firestore indisponível')):
        client_lider.post('/api/programas/p1/construtor/blocos', json={'titulo': 'Abertura', 'duracao_minutos': 5})
        response = client_lider.post('/api/programas/p1/construtor/guardar')

    assert response.status_code == 502
    erro = response.get_json()['error']
    assert erro['code'] == 'PERSISTENCE_FAILURE'
    assert erro['detail'] == 'Firestore indisponível'
    with client_lider.session_transaction() as sess:
        assert len(sess['construtores']['p1']['entradas']) == 1


def test_construtor_descartar(client_lider):
    with _patch_programa(_programa()), _patch_catalogo():
        client_lider.post('/api/programas/p1/construtor/blocos', json={'titulo': 'Abertura', 'duracao_minutos': 5})
        assert client_lider.delete('/api/programas/p1/construtor').status_code == 204
        construtor = client_lider.get('/api/programas/p1/construtor').get_json()['builder']
    assert construtor['estado'] == 'Empty'
