"""
Camada de Serviço (Service Layer) da Autenticação

Responsável pelos utilizadores no Firestore: restrição de domínio,
criação no primeiro login e gestão de roles (user / admin).
"""

from typing import List, Optional

from google.cloud import firestore
from scout_toolkit.core.constants import ROLES
from scout_toolkit.core.database import UTILIZADORES, get_db
from scout_toolkit.core.errors import ValidationError
from scout_toolkit.core.logger import get_logger

logger = get_logger(__name__)


def email_autorizado(email: Optional[str], dominio: str) -> bool:
    """True se o e-mail pertence exatamente ao domínio configurado."""
    if not email or '@' not in email:
        return False
    return email.rsplit('@', 1)[1].lower() == dominio.lower()


def verificar_ou_criar_utilizador(google_profile: dict) -> dict:
    """
    Verifica ou cria um utilizador no Firestore.
    Novos registos recebem sempre role='user'.
    """
    user_email = (google_profile.get('email') or '').lower()
    if not user_email:
        logger.error("Perfil do Google recebido sem e-mail.")
        raise ValueError("Perfil do Google não contém e-mail.")

    doc_ref = get_db().collection(UTILIZADORES).document(user_email)

    try:
        doc = doc_ref.get()

        if doc.exists:
            user_data = doc.to_dict()
            user_data['email'] = user_email
            user_data.pop('criado_em', None)

            # Registos antigos sem role
            if user_data.get('role') not in ROLES:
                user_data['role'] = 'user'

            logger.info(f"Login efetuado: {user_email} (Role: {user_data.get('role')})")
            return user_data

        logger.info(f"Criando novo utilizador: {user_email}")

        novo_utilizador = {
            'nome': google_profile.get('nome'),
            'google_id': google_profile.get('google_id'),
            'imagem': google_profile.get('imagem'),
            'role': 'user',  # ninguém nasce admin
            'criado_em': firestore.SERVER_TIMESTAMP
        }
        doc_ref.set(novo_utilizador)

        # Prepara objeto para sessão (sem o Timestamp)
        dados_sessao = {k: v for k, v in novo_utilizador.items() if k != 'criado_em'}
        dados_sessao['email'] = user_email
        return dados_sessao

    except Exception as e:
        logger.error(f"Erro ao processar login para {user_email}: {e}", exc_info=True)
        raise


def listar_utilizadores() -> List[dict]:
    utilizadores = []
    for doc in get_db().collection(UTILIZADORES).order_by('nome').stream():
        dados = doc.to_dict()
        utilizadores.append({
            'email': doc.id,
            'nome': dados.get('nome'),
            'role': dados.get('role', 'user'),
        })
    return utilizadores


def definir_role(email: str, role: str) -> bool:
    """
    Altera a role de um utilizador existente.

    Returns:
        bool: False se o utilizador não existir.
    """
    if role not in ROLES:
        raise ValidationError(f"Role inválida: {role!r}.", campo='role')

    doc_ref = get_db().collection(UTILIZADORES).document(email.lower())
    if not doc_ref.get().exists:
        return False

    doc_ref.update({'role': role})
    logger.info(f"Role de {email} alterada para '{role}'.")
    return True
