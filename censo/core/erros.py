"""
Taxonomia de Erros do Censo.

Os serviços levantam estas exceções; as rotas decidem como apresentá-las
(flash transitório em formulários, painel de erro em telas de leitura).
"""

from typing import Optional


class ErroCenso(Exception):
    """Base de todos os erros de domínio da aplicação."""


class ErroConexao(ErroCenso, ConnectionError):
    """Banco de dados indisponível ou falha de comunicação com o Firestore."""


class ErroValidacao(ErroCenso, ValueError):
    """
    Dados malformados ou campo obrigatório ausente.

    'indice' identifica o elemento problemático em importações em lote.
    """

    def __init__(self, mensagem: str, indice: Optional[int] = None):
        super().__init__(mensagem)
        self.mensagem = mensagem
        self.indice = indice


class NaoEncontrado(ErroCenso, LookupError):
    """Escola, submissão ou registro referenciado não existe."""


class PermissaoNegada(ErroCenso):
    """O perfil do usuário não possui a permissão da seção."""
