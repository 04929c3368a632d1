"""
Canal de Mudanças (Publish/Subscribe)

Substitui as "listas ao vivo" do painel de usuários: quem precisa de uma visão
sempre atualizada registra interesse no canal, recebe os eventos na ordem em
que foram publicados e cancela a assinatura ao ser descartado.
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from censo.core.logger import get_logger

logger = get_logger(__name__)

ADICIONADO = 'ADDED'
MODIFICADO = 'MODIFIED'
REMOVIDO = 'REMOVED'


@dataclass(frozen=True)
class EventoMudanca:
    colecao: str
    tipo: str
    doc_id: str
    dados: Dict[str, Any] = field(default_factory=dict)


class Assinatura:
    """Handle devolvido por CanalDeMudancas.assinar()."""

    def __init__(self, canal: 'CanalDeMudancas', chave: int):
        self._canal = canal
        self._chave = chave
        self.ativa = True

    def cancelar(self) -> None:
        if self.ativa:
            self._canal._remover(self._chave)
            self.ativa = False


class CanalDeMudancas:
    """
    Entrega síncrona e ordenada: publicar() só retorna depois que todos os
    assinantes processaram o evento. Um lock serializa publicações vindas de
    threads diferentes (ex.: callbacks on_snapshot do Firestore).
    """

    def __init__(self):
        self._assinantes: Dict[int, tuple] = {}
        self._proxima_chave = 0
        self._lock = threading.RLock()

    def assinar(self, callback: Callable[[EventoMudanca], None], colecao: Optional[str] = None) -> Assinatura:
        with self._lock:
            chave = self._proxima_chave
            self._proxima_chave += 1
            self._assinantes[chave] = (colecao, callback)
        return Assinatura(self, chave)

    def publicar(self, evento: EventoMudanca) -> None:
        with self._lock:
            for colecao, callback in list(self._assinantes.values()):
                if colecao is not None and colecao != evento.colecao:
                    continue
                try:
                    callback(evento)
                except Exception as e:
                    logger.error(f"Assinante falhou ao processar {evento.tipo} {evento.colecao}/{evento.doc_id}: {e}",
                                 exc_info=True)

    @property
    def total_assinantes(self) -> int:
        return len(self._assinantes)

    def _remover(self, chave: int) -> None:
        with self._lock:
            self._assinantes.pop(chave, None)


class PonteFirestore:
    """
    Converte os watches on_snapshot de uma coleção em eventos do canal.
    encerrar() cancela todos os watches abertos.
    """

    def __init__(self, db: Any, canal: CanalDeMudancas):
        self._db = db
        self._canal = canal
        self._watches = []

    def observar(self, colecao: str) -> None:
        def _ao_mudar(_snapshots, mudancas, _read_time):
            for mudanca in mudancas:
                documento = mudanca.document
                self._canal.publicar(EventoMudanca(
                    colecao=colecao,
                    tipo=mudanca.type.name,
                    doc_id=documento.id,
                    dados=documento.to_dict() or {},
                ))

        self._watches.append(self._db.collection(colecao).on_snapshot(_ao_mudar))
        logger.info(f"Assinatura ao vivo aberta para '{colecao}'.")

    def encerrar(self) -> None:
        for watch in self._watches:
            try:
                watch.unsubscribe()
            except Exception as e:
                logger.warning(f"Falha ao encerrar watch: {e}")
        self._watches = []
