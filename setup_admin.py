"""
Script Utilitário: setup_admin.py
Use este script para promover um utilizador a Administrador manualmente.
"""

import sys

from scout_toolkit import create_app
from scout_toolkit.auth.services import definir_role

# Inicializa a aplicação para carregar configurações e banco de dados
app = create_app()


def promover_utilizador(email):
    print(f"--- Promovendo utilizador: {email} ---")

    # Precisamos do contexto da aplicação para acessar o Firestore corretamente
    with app.app_context():
        if not definir_role(email, 'admin'):
            print(f"❌ ERRO: O utilizador '{email}' não foi encontrado no banco de dados.")
            print("DICA: Faça login na aplicação pelo navegador pelo menos uma vez para criar o registo inicial.")
            return False

        print(f"✅ SUCESSO! O utilizador '{email}' agora é um ADMIN.")
        print("⚠️  IMPORTANTE: Para que a mudança surta efeito, é preciso fazer LOGOUT e LOGIN novamente.")
        return True


if __name__ == "__main__":
    email_alvo = sys.argv[1] if len(sys.argv) > 1 else input("Digite o e-mail do utilizador que será Admin: ")
    sys.exit(0 if promover_utilizador(email_alvo.strip()) else 1)
