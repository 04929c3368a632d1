"""
Módulo de Autenticação (Blueprint)

Define o Blueprint do Flask para as rotas de autenticação
(Login, Logout, Callback do Google).
"""

from flask import Blueprint

auth_bp = Blueprint(
    'auth_bp',
    __name__,
)

# Importa as rotas no final para evitar dependência circular
from . import routes
