"""
Módulo Admin (Blueprint)

Painel de submissões, detalhe/exclusão, exportação CSV e configurações
(escolas, profissionais, home e formulário).
"""

from flask import Blueprint

admin_bp = Blueprint(
    'admin_bp',
    __name__,
    url_prefix='/admin'  # Todas as rotas começarão com /admin
)

from . import routes
