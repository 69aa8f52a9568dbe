"""
Rotas do Catálogo de Atividades

Todas as respostas são JSON. O idioma vem de ?lang, da sessão ou do
cabeçalho Accept-Language.
"""

from flask import jsonify, request

from . import atividades_bp
from . import services
from .forms import AvaliacaoForm
from scout_toolkit.core.acesso import exigir_login, utilizador_atual
from scout_toolkit.core.errors import resposta_erro
from scout_toolkit.core.extensions import limiter
from scout_toolkit.core.i18n import obter_idioma


@atividades_bp.route('/atividades')
def listar():
    filtros = services.ler_filtros(request.args)
    return jsonify(services.pesquisar_catalogo(filtros, obter_idioma()))


@atividades_bp.route('/atividades/<atividade_id>')
def detalhe(atividade_id):
    atividade = services.obter_atividade(atividade_id)
    # Atividades por aprovar só são visíveis para admins
    user_profile = utilizador_atual() or {}
    if not atividade or (not atividade.get('aprovada') and user_profile.get('role') != 'admin'):
        return resposta_erro('ACTIVITY_NOT_FOUND', 404)

    dados = services.serializar_atividade(atividade, obter_idioma(), com_imagem=True)
    dados['avaliacao'] = services.estatisticas_avaliacao(atividade_id, user_profile.get('email'))
    return jsonify({'activity': dados})


@atividades_bp.route('/atividades/<atividade_id>/avaliacao', methods=['PUT'])
@limiter.limit("30 per minute")
def avaliar(atividade_id):
    user_profile = exigir_login()
    atividade = services.obter_atividade(atividade_id)
    if not atividade or not atividade.get('aprovada'):
        return resposta_erro('ACTIVITY_NOT_FOUND', 404)

    form = AvaliacaoForm.do_pedido().validar()
    avaliacao = services.guardar_avaliacao(
        atividade_id, user_profile['email'], form.nota.data, form.comentario.data or None
    )
    return jsonify({
        'rating': avaliacao,
        'stats': services.estatisticas_avaliacao(atividade_id, user_profile['email']),
    })


@atividades_bp.route('/taxonomias/<nome>')
def taxonomia(nome):
    itens = services.listar_taxonomia(nome, obter_idioma())
    if itens is None:
        return resposta_erro('NOT_FOUND', 404)
    return jsonify({nome: itens})
