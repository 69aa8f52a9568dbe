"""
Módulo Central de Extensões.
Evita importações circulares centralizando as instâncias das extensões.
"""
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_wtf.csrf import CSRFProtect
from authlib.integrations.flask_client import OAuth

# 1. Limiter (Rate Limiting); limites e storage vêm da Config (RATELIMIT_*)
limiter = Limiter(key_func=get_remote_address)

# 2. CSRF Protection
csrf = CSRFProtect()

# 3. OAuth (Authlib), registado na Application Factory
oauth = OAuth()
