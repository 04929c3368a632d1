"""
Módulo do Formulário do Censo (Blueprint)

Formulário público de coleta: salas, modalidades, tecnologia, alocações de
professores e campos dinâmicos configurados pelo administrador.
"""

from flask import Blueprint

census_bp = Blueprint(
    'census_bp',
    __name__,
)

# Importa as rotas no final para evitar dependência circular
from . import routes
