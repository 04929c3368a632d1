"""
Extensões Flask compartilhadas pelos blueprints.

Criadas sem app e ligadas em create_app() via init_app(), o que evita
importações circulares entre rotas e factory.
"""
from authlib.integrations.flask_client import OAuth
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_wtf.csrf import CSRFProtect

# Rate limiting por IP. Backend em RATELIMIT_STORAGE_URI (config.py);
# login e envio público do censo têm limites próprios nas rotas.
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000 per day", "200 per hour"],
)

csrf = CSRFProtect()

# Provedor de identidade externo; o cliente 'google' só é registrado com credenciais
oauth = OAuth()
