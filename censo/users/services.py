"""
Camada de Serviço de Usuários e Perfis de Acesso

Escritas vão para o Firestore e, em seguida, são publicadas no canal de
mudanças. O ModeloLeituraUsuarios consome o canal e mantém a listagem do
painel sempre atual sem reler as coleções a cada requisição.
"""

import threading
from typing import Any, Dict, List, Optional

from censo.core.canal import ADICIONADO, MODIFICADO, REMOVIDO, CanalDeMudancas, EventoMudanca
from censo.core.constants import COLECAO_PERFIS, COLECAO_USUARIOS, NAO_ENCONTRADO, PERMISSOES
from censo.core.database import doc_para_dict, exigir_db, listar_colecao
from censo.core.erros import ErroConexao, ErroValidacao, NaoEncontrado
from censo.core.logger import get_logger

logger = get_logger(__name__)

STATUS_ATIVO = 'active'
STATUS_INATIVO = 'inactive'


class ModeloLeituraUsuarios:
    """
    Cópia em memória de 'users' e 'roles'. Carregada uma vez do banco e
    depois mantida pelos eventos do canal até descartar().
    """

    def __init__(self, canal: CanalDeMudancas):
        self._usuarios: Dict[str, dict] = {}
        self._perfis: Dict[str, dict] = {}
        self._lock = threading.Lock()
        self.carregado = False
        self._assinaturas = [
            canal.assinar(self.aplicar, colecao=COLECAO_USUARIOS),
            canal.assinar(self.aplicar, colecao=COLECAO_PERFIS),
        ]

    def sincronizar(self, db: Any) -> None:
        """Leitura completa das duas coleções (substitui o estado atual)."""
        usuarios = listar_colecao(db, COLECAO_USUARIOS)
        perfis = listar_colecao(db, COLECAO_PERFIS)
        with self._lock:
            self._usuarios = {u['id']: u for u in usuarios}
            self._perfis = {p['id']: p for p in perfis}
            self.carregado = True
        logger.info(f"Read model de usuários sincronizado ({len(usuarios)} usuários, {len(perfis)} perfis).")

    def garantir_carregado(self, db: Any) -> None:
        if not self.carregado:
            self.sincronizar(db)

    def aplicar(self, evento: EventoMudanca) -> None:
        destino = self._usuarios if evento.colecao == COLECAO_USUARIOS else self._perfis
        with self._lock:
            if evento.tipo == REMOVIDO:
                destino.pop(evento.doc_id, None)
            else:
                destino[evento.doc_id] = {**evento.dados, 'id': evento.doc_id}

    def descartar(self) -> None:
        for assinatura in self._assinaturas:
            assinatura.cancelar()
        self._assinaturas = []

    def perfis(self) -> List[dict]:
        with self._lock:
            return sorted(self._perfis.values(), key=lambda p: str(p.get('name', '')).lower())

    def usuarios(self) -> List[dict]:
        """Usuários ordenados por nome, com o nome do perfil já resolvido."""
        with self._lock:
            perfis = dict(self._perfis)
            usuarios = list(self._usuarios.values())
        resultado = []
        for usuario in usuarios:
            perfil = perfis.get(usuario.get('roleId') or '')
            resultado.append({**usuario, 'roleName': perfil.get('name') if perfil else NAO_ENCONTRADO})
        return sorted(resultado, key=lambda u: str(u.get('name', '')).lower())

    def usuario(self, usuario_id: str) -> Optional[dict]:
        with self._lock:
            return self._usuarios.get(usuario_id)


def _publicar(canal: Optional[CanalDeMudancas], colecao: str, tipo: str, doc_id: str, dados: dict = None) -> None:
    if canal is not None:
        canal.publicar(EventoMudanca(colecao=colecao, tipo=tipo, doc_id=doc_id, dados=dados or {}))


def _email_em_uso(db: Any, email: str, exceto_id: Optional[str] = None) -> bool:
    for doc in db.collection(COLECAO_USUARIOS).where('email', '==', email).stream():
        if doc.id != exceto_id:
            return True
    return False


# === PERFIS (ROLES) ===

def salvar_perfil(db: Any, canal: Optional[CanalDeMudancas], nome: str, permissoes: List[str],
                  perfil_id: Optional[str] = None) -> str:
    """
    Cria (sem perfil_id) ou atualiza um perfil de acesso.

    Raises:
        ErroValidacao: nome vazio ou permissão desconhecida.
        ErroConexao: falha na escrita.
    """
    exigir_db(db)
    nome = (nome or '').strip()
    if not nome:
        raise ErroValidacao("O nome do perfil é obrigatório.")
    desconhecidas = [p for p in permissoes if p not in PERMISSOES]
    if desconhecidas:
        raise ErroValidacao(f"Permissões desconhecidas: {', '.join(desconhecidas)}")

    colecao = db.collection(COLECAO_PERFIS)
    ref = colecao.document(perfil_id) if perfil_id else colecao.document()
    dados = {'id': ref.id, 'name': nome, 'permissions': list(dict.fromkeys(permissoes))}
    try:
        ref.set(dados, merge=True)
    except Exception as e:
        logger.error(f"Erro ao salvar perfil '{nome}': {e}", exc_info=True)
        raise ErroConexao(f"Falha ao salvar o perfil: {e}") from e

    _publicar(canal, COLECAO_PERFIS, MODIFICADO if perfil_id else ADICIONADO, ref.id, dados)
    logger.info(f"Perfil '{nome}' ({ref.id}) salvo com permissões {dados['permissions']}")
    return ref.id


def excluir_perfil(db: Any, canal: Optional[CanalDeMudancas], perfil_id: str) -> None:
    """
    Raises:
        ErroValidacao: perfil ainda atribuído a algum usuário.
    """
    exigir_db(db)
    em_uso = list(db.collection(COLECAO_USUARIOS).where('roleId', '==', perfil_id).limit(1).stream())
    if em_uso:
        raise ErroValidacao("Este perfil ainda está atribuído a usuários e não pode ser excluído.")
    try:
        db.collection(COLECAO_PERFIS).document(perfil_id).delete()
    except Exception as e:
        logger.error(f"Erro ao excluir perfil {perfil_id}: {e}", exc_info=True)
        raise ErroConexao(f"Falha ao excluir o perfil: {e}") from e
    _publicar(canal, COLECAO_PERFIS, REMOVIDO, perfil_id)
    logger.info(f"Perfil {perfil_id} excluído")


# === USUÁRIOS ===

def salvar_usuario(db: Any, canal: Optional[CanalDeMudancas], dados: dict, usuario_id: Optional[str] = None) -> str:
    """
    Cria ou atualiza o cadastro em 'users'. O e-mail é a chave usada no login
    e não pode se repetir; na edição ele não é alterado.

    Raises:
        ErroValidacao: campos obrigatórios ausentes, e-mail repetido ou perfil inexistente.
        NaoEncontrado: usuario_id informado não existe.
        ErroConexao: falha na escrita.
    """
    exigir_db(db)
    nome = (dados.get('name') or '').strip()
    role_id = dados.get('roleId') or ''
    if not nome:
        raise ErroValidacao("O nome do usuário é obrigatório.")
    if not role_id or not db.collection(COLECAO_PERFIS).document(role_id).get().exists:
        raise ErroValidacao("Selecione um perfil de acesso válido.")

    registro = {
        'name': nome,
        'roleId': role_id,
        'schoolId': dados.get('schoolId') or None,
        'status': dados.get('status') or STATUS_ATIVO,
    }

    colecao = db.collection(COLECAO_USUARIOS)
    if usuario_id:
        ref = colecao.document(usuario_id)
        atual = ref.get()
        if not atual.exists:
            raise NaoEncontrado(f"Usuário '{usuario_id}' não encontrado.")
        tipo = MODIFICADO
        try:
            ref.update(registro)
        except Exception as e:
            logger.error(f"Erro ao atualizar usuário {usuario_id}: {e}", exc_info=True)
            raise ErroConexao(f"Falha ao salvar o usuário: {e}") from e
        registro = {**(atual.to_dict() or {}), **registro}
    else:
        email = (dados.get('email') or '').strip().lower()
        if not email:
            raise ErroValidacao("O e-mail é obrigatório para novos usuários.")
        if _email_em_uso(db, email):
            raise ErroValidacao("Este email já está em uso por outra conta.")
        ref = colecao.document()
        tipo = ADICIONADO
        registro['email'] = email
        try:
            ref.set(registro)
        except Exception as e:
            logger.error(f"Erro ao criar usuário {email}: {e}", exc_info=True)
            raise ErroConexao(f"Falha ao salvar o usuário: {e}") from e

    _publicar(canal, COLECAO_USUARIOS, tipo, ref.id, registro)
    logger.info(f"Usuário {ref.id} salvo (perfil {role_id}, status {registro['status']})")
    return ref.id


def alterar_status_usuario(db: Any, canal: Optional[CanalDeMudancas], usuario_id: str, ativo: bool) -> None:
    exigir_db(db)
    ref = db.collection(COLECAO_USUARIOS).document(usuario_id)
    atual = ref.get()
    if not atual.exists:
        raise NaoEncontrado(f"Usuário '{usuario_id}' não encontrado.")
    status = STATUS_ATIVO if ativo else STATUS_INATIVO
    try:
        ref.update({'status': status})
    except Exception as e:
        logger.error(f"Erro ao alterar status de {usuario_id}: {e}", exc_info=True)
        raise ErroConexao(f"Falha ao alterar o status: {e}") from e
    _publicar(canal, COLECAO_USUARIOS, MODIFICADO, usuario_id, {**doc_para_dict(atual), 'status': status})
    logger.info(f"Usuário {usuario_id} agora está '{status}'")


def excluir_usuario(db: Any, canal: Optional[CanalDeMudancas], usuario_id: str) -> None:
    """Remove apenas o cadastro em 'users', o que revoga o acesso."""
    exigir_db(db)
    try:
        db.collection(COLECAO_USUARIOS).document(usuario_id).delete()
    except Exception as e:
        logger.error(f"Erro ao excluir usuário {usuario_id}: {e}", exc_info=True)
        raise ErroConexao(f"Falha ao excluir o usuário: {e}") from e
    _publicar(canal, COLECAO_USUARIOS, REMOVIDO, usuario_id)
    logger.info(f"Usuário {usuario_id} excluído")
