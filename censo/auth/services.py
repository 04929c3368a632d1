"""
Camada de Serviço (Service Layer) da Autenticação

Resolve o perfil do usuário autenticado pelo provedor de identidade: busca o
documento em 'users' pelo e-mail e embute o perfil de acesso ('roles')
referenciado por roleId.
"""

from typing import Any, Optional

from censo.core.constants import COLECAO_PERFIS, COLECAO_USUARIOS
from censo.core.database import buscar_documento, doc_para_dict, exigir_db
from censo.core.erros import ErroConexao, PermissaoNegada
from censo.core.logger import get_logger

# Inicializa o logger para este módulo
logger = get_logger(__name__)


def resolver_papel(db: Any, role_id: Optional[str]) -> Optional[dict]:
    """Perfil de acesso embutido; roleId vazio ou inexistente vira None."""
    if not role_id:
        return None
    papel = buscar_documento(db, COLECAO_PERFIS, role_id)
    if papel is None:
        logger.warning(f"roleId '{role_id}' não existe na coleção de perfis.")
        return None
    return {'id': papel['id'], 'name': papel.get('name', ''), 'permissions': list(papel.get('permissions') or [])}


def _buscar_usuario_por_email(db: Any, email: str) -> Optional[dict]:
    docs = db.collection(COLECAO_USUARIOS).where('email', '==', email).limit(1).stream()
    for doc in docs:
        return doc_para_dict(doc)
    return None


def resolver_perfil(db: Any, identidade: dict) -> dict:
    """
    Monta o perfil de sessão a partir dos dados do provedor de identidade.

    Só contas criadas por um administrador em 'users' entram.

    Raises:
        ValueError: identidade sem e-mail.
        PermissaoNegada: e-mail sem cadastro ou conta marcada como inativa.
        ErroConexao: banco indisponível.
    """
    exigir_db(db)

    email = identidade.get('email')
    if not email:
        logger.error("Perfil do provedor recebido sem e-mail.")
        raise ValueError("Perfil do provedor de identidade não contém e-mail.")

    try:
        usuario = _buscar_usuario_por_email(db, email)
    except Exception as e:
        logger.error(f"Erro ao processar login para {email}: {e}", exc_info=True)
        raise ErroConexao(f"Falha ao buscar usuário: {e}") from e

    if usuario is None:
        logger.warning(f"Login recusado (sem cadastro em 'users'): {email}")
        raise PermissaoNegada("Conta não cadastrada. Peça acesso a um administrador.")

    if usuario.get('status') == 'inactive':
        logger.warning(f"Login recusado (conta desativada): {email}")
        raise PermissaoNegada("Sua conta foi desativada. Entre em contato com um administrador.")

    papel = resolver_papel(db, usuario.get('roleId'))
    perfil = {
        'id': usuario['id'],
        'name': usuario.get('name') or identidade.get('name') or '',
        'email': email,
        'roleId': usuario.get('roleId') or '',
        'role': papel,
        'status': usuario.get('status', 'active'),
        'schoolId': usuario.get('schoolId'),
    }
    logger.info(f"Login efetuado: {email} (Perfil: {papel['name'] if papel else 'nenhum'})")
    return perfil
