"""
Rotas do Módulo Admin

Todas exigem sessão com role 'admin'. As imagens são validadas pelos
Magic Numbers e pelo tamanho antes de irem para o Cloud Storage.
"""

from flask import current_app, jsonify, request

from . import admin_bp
from .forms import RoleForm
from scout_toolkit.atividades import services as atividades_services
from scout_toolkit.auth import services as auth_services
from scout_toolkit.core import storage
from scout_toolkit.core.acesso import exigir_login, verificar_admin
from scout_toolkit.core.errors import ValidationError, resposta_erro
from scout_toolkit.core.extensions import limiter
from scout_toolkit.core.i18n import obter_idioma
from scout_toolkit.core.logger import get_logger

logger = get_logger(__name__)


@admin_bp.before_request
def restringir_acesso():
    exigir_login()
    if not verificar_admin():
        return resposta_erro('FORBIDDEN', 403)


# === ATIVIDADES ===

@admin_bp.route('/atividades/pendentes')
def atividades_pendentes():
    idioma = obter_idioma()
    pendentes = atividades_services.listar_atividades_pendentes()
    return jsonify({'activities': [atividades_services.serializar_atividade(a, idioma) for a in pendentes]})


@admin_bp.route('/atividades/<atividade_id>/aprovar', methods=['POST'])
def aprovar_atividade(atividade_id):
    if not atividades_services.aprovar_atividade(atividade_id):
        return resposta_erro('ACTIVITY_NOT_FOUND', 404)
    return jsonify({'id': atividade_id, 'aprovada': True})


def _tamanho(arquivo) -> int:
    arquivo.seek(0, 2)
    tamanho = arquivo.tell()
    arquivo.seek(0)
    return tamanho


@admin_bp.route('/atividades/<atividade_id>/imagem', methods=['POST'])
@limiter.limit("10 per minute")
def carregar_imagem(atividade_id):
    if not atividades_services.obter_atividade(atividade_id):
        return resposta_erro('ACTIVITY_NOT_FOUND', 404)

    arquivo = request.files.get('imagem')
    if arquivo is None or arquivo.filename == '':
        raise ValidationError("Nenhuma imagem enviada.", campo='imagem')

    if _tamanho(arquivo.stream) > current_app.config['MAX_IMAGE_SIZE']:
        return resposta_erro('FILE_TOO_LARGE', 413)

    # Validação de Magic Numbers (não confia na extensão nem no mimetype)
    cabecalho = arquivo.stream.read(12)
    arquivo.stream.seek(0)
    content_type = storage.detetar_tipo_imagem(cabecalho)
    if content_type is None:
        logger.warning(f"Upload rejeitado (Magic Number inválido): {arquivo.filename}")
        return resposta_erro('INVALID_FILE_TYPE', 400)

    nome_blob = storage.upload_imagem(arquivo.stream, atividade_id, content_type)
    anterior = atividades_services.definir_imagem(atividade_id, nome_blob)
    if anterior and anterior != nome_blob:
        storage.delete_file(anterior)

    return jsonify({
        'id': atividade_id,
        'imagem_blob': nome_blob,
        'imagem_url': storage.generate_signed_url(nome_blob),
    }), 201


# === UTILIZADORES ===

@admin_bp.route('/utilizadores')
def listar_utilizadores():
    return jsonify({'users': auth_services.listar_utilizadores()})


@admin_bp.route('/utilizadores/<email>/role', methods=['POST'])
def alterar_role(email):
    form = RoleForm.do_pedido().validar()
    proprio = exigir_login()['email'].lower()
    if email.lower() == proprio and form.role.data != 'admin':
        raise ValidationError("Um administrador não pode retirar o seu próprio acesso.", campo='role')

    if not auth_services.definir_role(email, form.role.data):
        return resposta_erro('USER_NOT_FOUND', 404)
    return jsonify({'email': email.lower(), 'role': form.role.data})
