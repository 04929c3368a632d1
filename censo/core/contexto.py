"""
Contexto da Aplicação

Objeto criado uma única vez pela Application Factory com tudo que as rotas
precisam (configuração, cliente do banco, canal de mudanças, read model de
usuários e serviço de configurações). Fica em app.extensions['censo'] e é
repassado explicitamente aos serviços.
"""

from dataclasses import dataclass
from typing import Any, Optional

from flask import current_app

CHAVE_EXTENSAO = 'censo'


@dataclass
class ContextoApp:
    config: Any
    db: Any
    canal: Any
    usuarios: Any
    configuracoes: Any
    ponte: Optional[Any] = None

    def encerrar(self) -> None:
        """Cancela assinaturas e watches abertos."""
        if self.ponte is not None:
            self.ponte.encerrar()
        if self.usuarios is not None:
            self.usuarios.descartar()


def obter_contexto() -> ContextoApp:
    return current_app.extensions[CHAVE_EXTENSAO]
