"""
Módulo de Usuários e Perfis de Acesso (Blueprint)

Cadastro de usuários, perfis e permissões por seção.
"""

from flask import Blueprint

users_bp = Blueprint(
    'users_bp',
    __name__,
    url_prefix='/admin/usuarios',
)

# Importa as rotas no final para evitar dependência circular
from . import routes
