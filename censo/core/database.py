"""
Módulo de Conexão com o Banco de Dados (Core)

Cria o cliente do Google Firestore usado pelos "Service Layers" da aplicação.
O cliente é criado uma única vez pela Application Factory e repassado
explicitamente aos serviços (ver ContextoApp em censo/__init__.py).
"""

from typing import Any, Iterable, Optional

from google.cloud import firestore

from censo.core.erros import ErroConexao
from censo.core.logger import get_logger

logger = get_logger(__name__)


def conectar_firestore(projeto: Optional[str] = None) -> Optional[firestore.Client]:
    """
    Inicializa o cliente do Firestore.

    O SDK busca as credenciais na variável de ambiente
    'GOOGLE_APPLICATION_CREDENTIALS'. Em caso de falha retorna None;
    cada serviço trata a ausência do banco como ErroConexao.
    """
    try:
        db = firestore.Client(project=projeto) if projeto else firestore.Client()
        logger.info("Conexão com o Firestore estabelecida com sucesso.")
        return db
    except Exception as e:
        logger.error(f"ERRO AO CONECTAR COM O FIRESTORE: {e}", exc_info=True)
        return None


def exigir_db(db: Any) -> Any:
    """Garante que há um cliente disponível antes de qualquer leitura/escrita."""
    if db is None:
        logger.critical("Tentativa de acesso ao Firestore falhou: Cliente DB é None.")
        raise ErroConexao("Não foi possível conectar ao Firestore.")
    return db


def doc_para_dict(doc) -> dict:
    """Converte um DocumentSnapshot em dict incluindo o 'id'."""
    dados = doc.to_dict() or {}
    dados['id'] = doc.id
    return dados


def listar_colecao(db: Any, colecao: str) -> list:
    """
    Lê todos os documentos de uma coleção.

    Raises:
        ErroConexao: se o banco estiver indisponível ou a leitura falhar.
    """
    exigir_db(db)
    try:
        return [doc_para_dict(doc) for doc in db.collection(colecao).stream()]
    except Exception as e:
        logger.error(f"Erro ao ler coleção '{colecao}': {e}", exc_info=True)
        raise ErroConexao(f"Falha ao ler '{colecao}': {e}") from e


def buscar_documento(db: Any, colecao: str, doc_id: str) -> Optional[dict]:
    """Retorna o documento como dict ou None se não existir."""
    exigir_db(db)
    try:
        doc = db.collection(colecao).document(doc_id).get()
    except Exception as e:
        logger.error(f"Erro ao ler {colecao}/{doc_id}: {e}", exc_info=True)
        raise ErroConexao(f"Falha ao ler '{colecao}/{doc_id}': {e}") from e
    return doc_para_dict(doc) if doc.exists else None


def ids_da_colecao(db: Any, colecao: str) -> Iterable[str]:
    """Ids atualmente gravados (usado pelas substituições em lote)."""
    return [doc.id for doc in db.collection(colecao).stream()]
