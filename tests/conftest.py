import os

# config.py falha no import sem estas variáveis
os.environ.setdefault('SECRET_KEY', 'chave-de-teste')
os.environ.setdefault('GOOGLE_CLIENT_ID', 'client-id-teste')
os.environ.setdefault('GOOGLE_CLIENT_SECRET', 'client-secret-teste')
os.environ.setdefault('GCS_BUCKET_NAME', 'bucket-teste')

import pytest  # noqa: E402

from config import Config  # noqa: E402
from scout_toolkit import create_app  # noqa: E402


class TestConfig(Config):
    TESTING = True
    WTF_CSRF_ENABLED = False
    RATELIMIT_ENABLED = False
    SERVER_NAME = 'localhost'


LIDER = {'email': 'lider@escoteiros.pt', 'nome': 'Chefe Ana', 'role': 'user'}
ADMIN = {'email': 'admin@escoteiros.pt', 'nome': 'Admin', 'role': 'admin'}


@pytest.fixture
def app():
    app = create_app(TestConfig)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


def _entrar(client, perfil):
    with client.session_transaction() as sess:
        sess['user_profile'] = dict(perfil)


@pytest.fixture
def entrar():
    """Coloca um perfil na sessão do client (login sem passar pelo Google)."""
    return _entrar


@pytest.fixture
def client_lider(client):
    _entrar(client, LIDER)
    return client


@pytest.fixture
def client_admin(client):
    _entrar(client, ADMIN)
    return client
