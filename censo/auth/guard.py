"""
Guard de Acesso (Middleware de Permissões)

Avalia, antes de a view rodar, se o perfil da sessão tem a permissão da
seção exigida. Nunca levanta exceção: o resultado é "segue" ou
"avisa e redireciona" para a página administrativa padrão.
"""

from enum import Enum
from functools import wraps
from typing import Callable, Optional

from flask import current_app, flash, redirect, session, url_for

from censo.core.constants import PERMISSOES
from censo.core.logger import get_logger

logger = get_logger(__name__)

MENSAGEM_NEGADO = "Acesso Negado: você não tem permissão para acessar esta página."
MENSAGEM_SEM_CADASTRO = "Acesso Negado: sua conta não está cadastrada ou não possui perfil de acesso."


class EstadoAcesso(Enum):
    CARREGANDO = 'carregando'
    AUTORIZADO = 'autorizado'
    NAO_AUTORIZADO = 'nao_autorizado'


def possui_permissao(perfil: Optional[dict], permissao: str) -> bool:
    if not perfil:
        return False
    papel = perfil.get('role') or {}
    return permissao in (papel.get('permissions') or [])


def avaliar_acesso(perfil: Optional[dict], permissao: str, carregando: bool = False) -> EstadoAcesso:
    """
    Máquina de estados do guard: enquanto o perfil está sendo resolvido o
    estado é CARREGANDO; depois, AUTORIZADO ou NAO_AUTORIZADO (terminal).
    """
    if permissao not in PERMISSOES:
        raise ValueError(f"Permissão desconhecida: {permissao}")
    if carregando:
        return EstadoAcesso.CARREGANDO
    if possui_permissao(perfil, permissao):
        return EstadoAcesso.AUTORIZADO
    return EstadoAcesso.NAO_AUTORIZADO


def perfil_da_sessao() -> Optional[dict]:
    return session.get('user_profile')


def perfil_cadastrado(perfil: Optional[dict]) -> bool:
    """Perfil vindo de um documento em 'users' com role resolvida."""
    return bool(perfil and perfil.get('roleId') and perfil.get('role'))


def _redirecionar_login():
    return redirect(url_for('auth_bp.login'))


def _recusar_sem_cadastro(perfil: dict):
    logger.warning(f"Sessão sem cadastro ou sem perfil de acesso: {perfil.get('email')}")
    session.pop('user_profile', None)
    flash(MENSAGEM_SEM_CADASTRO, "error")
    return _redirecionar_login()


def requer_login(view: Callable) -> Callable:
    """Páginas administrativas que só exigem usuário cadastrado e com perfil."""
    @wraps(view)
    def _wrapped(*args, **kwargs):
        perfil = perfil_da_sessao()
        if not perfil:
            return _redirecionar_login()
        if not perfil_cadastrado(perfil):
            return _recusar_sem_cadastro(perfil)
        return view(*args, **kwargs)
    return _wrapped


def requer_permissao(permissao: str) -> Callable:
    """
    Decorator de view: exige login e a permissão da seção informada.
    Sem permissão: flash de acesso negado + redirect para PAGINA_ADMIN_PADRAO.
    """
    if permissao not in PERMISSOES:
        raise ValueError(f"Permissão desconhecida: {permissao}")

    def _decorator(view: Callable) -> Callable:
        @wraps(view)
        def _wrapped(*args, **kwargs):
            perfil = perfil_da_sessao()
            if not perfil:
                return _redirecionar_login()
            if not perfil_cadastrado(perfil):
                return _recusar_sem_cadastro(perfil)

            estado = avaliar_acesso(perfil, permissao)
            if estado is EstadoAcesso.AUTORIZADO:
                return view(*args, **kwargs)

            logger.warning(f"Acesso negado a '{permissao}': {perfil.get('email')}")
            flash(MENSAGEM_NEGADO, "error")
            destino = current_app.config.get('PAGINA_ADMIN_PADRAO', 'admin_bp.dashboard')
            return redirect(url_for(destino))
        return _wrapped
    return _decorator
