"""
Rotas do Módulo de Programas

A cópia de trabalho de cada construtor fica na sessão do utilizador
(session['construtores'][programa_id]) até ser guardada ou descartada.
A hora de início vem sempre do registo do programa.
"""

from flask import Response, current_app, jsonify, request, session

from . import programas_bp
from . import services
from .agenda import calcular_horario, obter_atividade
from .construtor import SessaoConstrutor
from .exportacao import exportar_csv
from .forms import AdicionarAtividadeForm, BlocoPersonalizadoForm, MoverForm, ProgramaForm
from .resumo import resumir
from scout_toolkit.atividades.services import CatalogoEmCache
from scout_toolkit.core.acesso import exigir_login, utilizador_atual
from scout_toolkit.core.constants import PAGINA_MAXIMA, PAGINA_PADRAO
from scout_toolkit.core.errors import ValidationError, resposta_erro
from scout_toolkit.core.extensions import limiter
from scout_toolkit.core.i18n import obter_idioma

# Os browsers recusam cookies acima de ~4 KB
LIMITE_COOKIE_SESSAO = 4000


# === FUNÇÕES AUXILIARES ===

def _email_atual():
    return (utilizador_atual() or {}).get('email')


def _inteiro(nome, padrao):
    try:
        return int(request.args.get(nome, padrao))
    except (TypeError, ValueError):
        raise ValidationError(f"'{nome}' deve ser um número inteiro.", campo=nome)


def _programa_do_dono(programa_id):
    """Programa do utilizador autenticado, ou None (responder 404)."""
    user_profile = exigir_login()
    return services.obter_programa_acessivel(programa_id, user_profile['email'], escrita=True)


def _vista_programa(programa):
    entradas = services.carregar_entradas(programa)
    consulta = CatalogoEmCache(services.ids_atividades(entradas))
    horario = calcular_horario(entradas, programa['hora_inicio'], consulta)
    return {
        **services.resumo_listagem(programa),
        'entradas': [i.para_dict() for i in horario.intervalos],
        'resumo': resumir(entradas, consulta, programa['hora_inicio']).para_dict(),
    }


def _abrir_construtor(programa) -> SessaoConstrutor:
    copia = session.get('construtores', {}).get(programa['id'])
    if copia:
        entradas_ids = [e.get('atividade_id') for e in copia.get('entradas', [])]
        consulta = CatalogoEmCache(entradas_ids)
        # A hora de início pode ter mudado desde que a cópia foi aberta
        return SessaoConstrutor.de_dict({**copia, 'hora_inicio': programa['hora_inicio']},
                                        consulta, services.guardar_entradas_programa)

    entradas = services.carregar_entradas(programa)
    return SessaoConstrutor(
        programa_id=programa['id'],
        hora_inicio=programa['hora_inicio'],
        consulta=CatalogoEmCache(services.ids_atividades(entradas)),
        guardar_entradas=services.guardar_entradas_programa,
        entradas=entradas,
    )


def _guardar_copia(sessao: SessaoConstrutor):
    construtores = dict(session.get('construtores', {}))
    construtores[sessao.programa_id] = sessao.para_dict()

    serializador = current_app.session_interface.get_signing_serializer(current_app)
    if serializador is not None:
        tamanho = len(serializador.dumps({**session, 'construtores': construtores}))
        if tamanho > LIMITE_COOKIE_SESSAO:
            raise ValidationError(
                "A cópia de trabalho excede o espaço da sessão. Guarde o programa ou remova entradas.",
                campo='entradas',
            )

    session['construtores'] = construtores


def _descartar_copia(programa_id):
    construtores = session.get('construtores', {})
    if construtores.pop(programa_id, None) is not None:
        session.modified = True


def _resposta_construtor(sessao: SessaoConstrutor, status=200):
    return jsonify({'builder': sessao.vista()}), status


def _alterar_construtor(programa_id, operacao, status=200):
    """Abre a cópia de trabalho, aplica a operação e guarda-a na sessão."""
    programa = _programa_do_dono(programa_id)
    if not programa:
        return resposta_erro('PROGRAM_NOT_FOUND', 404)
    sessao = _abrir_construtor(programa)
    resposta = operacao(sessao)
    if resposta is not None:
        return resposta
    _guardar_copia(sessao)
    return _resposta_construtor(sessao, status)


# === PROGRAMAS ===

@programas_bp.route('', methods=['GET'])
def listar():
    user_profile = exigir_login()
    limite = min(max(_inteiro('limit', PAGINA_PADRAO), 1), PAGINA_MAXIMA)
    pagina = max(_inteiro('page', 1), 1)
    ordem = 'asc' if request.args.get('order') == 'asc' else 'desc'
    return jsonify(services.listar_programas_do_utilizador(
        user_profile['email'], request.args.get('sort', 'created_at'), ordem, pagina, limite
    ))


@programas_bp.route('', methods=['POST'])
@limiter.limit("30 per minute")
def criar():
    user_profile = exigir_login()
    form = ProgramaForm.do_pedido().validar()
    programa = services.criar_programa(user_profile['email'], form.para_dict())
    return jsonify({'program': _vista_programa(programa)}), 201


@programas_bp.route('/<programa_id>', methods=['GET'])
def detalhe(programa_id):
    programa = services.obter_programa_acessivel(programa_id, _email_atual())
    if not programa:
        return resposta_erro('PROGRAM_NOT_FOUND', 404)
    return jsonify({'program': _vista_programa(programa)})


@programas_bp.route('/<programa_id>', methods=['PUT'])
def atualizar(programa_id):
    programa = _programa_do_dono(programa_id)
    if not programa:
        return resposta_erro('PROGRAM_NOT_FOUND', 404)
    form = ProgramaForm.do_pedido().validar()
    programa = services.atualizar_programa(programa_id, form.para_dict())
    return jsonify({'program': _vista_programa(programa)})


@programas_bp.route('/<programa_id>', methods=['DELETE'])
def apagar(programa_id):
    if not _programa_do_dono(programa_id):
        return resposta_erro('PROGRAM_NOT_FOUND', 404)
    services.apagar_programa(programa_id)
    _descartar_copia(programa_id)
    return '', 204


@programas_bp.route('/<programa_id>/exportar.csv')
def exportar(programa_id):
    programa = services.obter_programa_acessivel(programa_id, _email_atual())
    if not programa:
        return resposta_erro('PROGRAM_NOT_FOUND', 404)

    entradas = services.carregar_entradas(programa)
    consulta = CatalogoEmCache(services.ids_atividades(entradas))
    horario = calcular_horario(entradas, programa['hora_inicio'], consulta)
    conteudo = exportar_csv(horario, consulta, obter_idioma())

    nome_ficheiro = f"programa-{programa_id}.csv"
    return Response(
        conteudo,
        mimetype='text/csv; charset=utf-8',
        headers={'Content-Disposition': f'attachment; filename="{nome_ficheiro}"'},
    )


# === CONSTRUTOR ===

@programas_bp.route('/<programa_id>/construtor', methods=['GET'])
def abrir_construtor(programa_id):
    programa = _programa_do_dono(programa_id)
    if not programa:
        return resposta_erro('PROGRAM_NOT_FOUND', 404)
    return _resposta_construtor(_abrir_construtor(programa))


@programas_bp.route('/<programa_id>/construtor', methods=['DELETE'])
def descartar_construtor(programa_id):
    if not _programa_do_dono(programa_id):
        return resposta_erro('PROGRAM_NOT_FOUND', 404)
    _descartar_copia(programa_id)
    return '', 204


@programas_bp.route('/<programa_id>/construtor/atividades', methods=['POST'])
def adicionar_atividade(programa_id):
    form = AdicionarAtividadeForm.do_pedido().validar()

    def operacao(sessao):
        atividade = obter_atividade(sessao.consulta, form.atividade_id.data)
        if not atividade or not atividade.get('aprovada'):
            return resposta_erro('ACTIVITY_NOT_FOUND', 404)
        sessao.adicionar_atividade(form.atividade_id.data)

    return _alterar_construtor(programa_id, operacao, 201)


@programas_bp.route('/<programa_id>/construtor/blocos', methods=['POST'])
def adicionar_bloco(programa_id):
    form = BlocoPersonalizadoForm.do_pedido().validar()

    def operacao(sessao):
        sessao.adicionar_bloco_personalizado(form.titulo.data, form.duracao_minutos.data)

    return _alterar_construtor(programa_id, operacao, 201)


@programas_bp.route('/<programa_id>/construtor/entradas/<entrada_id>', methods=['PATCH'])
def atualizar_entrada(programa_id, entrada_id):
    alteracoes = request.get_json(silent=True)
    if not isinstance(alteracoes, dict) or not alteracoes:
        raise ValidationError("O corpo do pedido deve ser um objeto JSON com as alterações.")

    def operacao(sessao):
        # Outros tipos são rejeitados pela validação do construtor
        if isinstance(alteracoes.get('atividade_id'), str):
            atividade = obter_atividade(sessao.consulta, alteracoes['atividade_id'].strip())
            if not atividade or not atividade.get('aprovada'):
                return resposta_erro('ACTIVITY_NOT_FOUND', 404)
        sessao.atualizar_entrada(entrada_id, alteracoes)

    return _alterar_construtor(programa_id, operacao)


@programas_bp.route('/<programa_id>/construtor/entradas/<entrada_id>', methods=['DELETE'])
def remover_entrada(programa_id, entrada_id):
    def operacao(sessao):
        sessao.remover_entrada(entrada_id)

    return _alterar_construtor(programa_id, operacao)


@programas_bp.route('/<programa_id>/construtor/mover', methods=['POST'])
def mover_entrada(programa_id):
    form = MoverForm.do_pedido().validar()

    def operacao(sessao):
        sessao.mover_entrada(form.de.data, form.para.data)

    return _alterar_construtor(programa_id, operacao)


@programas_bp.route('/<programa_id>/construtor/guardar', methods=['POST'])
@limiter.limit("30 per minute")
def guardar(programa_id):
    programa = _programa_do_dono(programa_id)
    if not programa:
        return resposta_erro('PROGRAM_NOT_FOUND', 404)

    sessao = _abrir_construtor(programa)
    resultado = sessao.guardar()
    if not resultado.ok:
        # A cópia de trabalho fica intacta para nova tentativa
        _guardar_copia(sessao)
        return resposta_erro('PERSISTENCE_FAILURE', 502, detalhe=resultado.motivo)

    _descartar_copia(programa_id)
    return _resposta_construtor(sessao)
