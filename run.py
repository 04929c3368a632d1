"""
Ponto de Entrada da Aplicação

Cria a aplicação do Censo Escolar pela factory (censo.create_app) e sobe o
servidor de desenvolvimento. Em produção (Cloud Run) o WSGI server importa
'run:app' diretamente.

$ python run.py
"""

import atexit
import os

from censo import create_app
from censo.core.contexto import CHAVE_EXTENSAO

app = create_app()

# Fecha os watches on_snapshot e as assinaturas do canal ao encerrar o processo
atexit.register(app.extensions[CHAVE_EXTENSAO].encerrar)

if __name__ == "__main__":
    porta = int(os.environ.get('PORT', 5000))
    app.run(host='0.0.0.0', port=porta, debug=app.config['DEBUG'])
