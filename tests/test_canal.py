import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock

from censo.core.canal import (
    ADICIONADO,
    MODIFICADO,
    REMOVIDO,
    CanalDeMudancas,
    EventoMudanca,
    PonteFirestore,
)


class TestCanalDeMudancas(unittest.TestCase):

    def setUp(self):
        self.canal = CanalDeMudancas()

    def test_entrega_na_ordem_de_publicacao(self):
        recebidos = []
        self.canal.assinar(recebidos.append)
        for i in range(5):
            self.canal.publicar(EventoMudanca('users', MODIFICADO, f'u{i}'))
        self.assertEqual([e.doc_id for e in recebidos], ['u0', 'u1', 'u2', 'u3', 'u4'])

    def test_filtro_por_colecao(self):
        usuarios, todos = [], []
        self.canal.assinar(usuarios.append, colecao='users')
        self.canal.assinar(todos.append)

        self.canal.publicar(EventoMudanca('roles', ADICIONADO, 'r1'))
        self.canal.publicar(EventoMudanca('users', ADICIONADO, 'u1'))

        self.assertEqual([e.doc_id for e in usuarios], ['u1'])
        self.assertEqual([e.doc_id for e in todos], ['r1', 'u1'])

    def test_cancelar_interrompe_a_entrega(self):
        recebidos = []
        assinatura = self.canal.assinar(recebidos.append)
        self.canal.publicar(EventoMudanca('users', ADICIONADO, 'u1'))

        assinatura.cancelar()
        assinatura.cancelar()
        self.canal.publicar(EventoMudanca('users', ADICIONADO, 'u2'))

        self.assertEqual(len(recebidos), 1)
        self.assertFalse(assinatura.ativa)
        self.assertEqual(self.canal.total_assinantes, 0)

    def test_falha_de_um_assinante_nao_afeta_os_demais(self):
        recebidos = []
        defeituoso = MagicMock(side_effect=RuntimeError("quebrou"))
        self.canal.assinar(defeituoso)
        self.canal.assinar(recebidos.append)

        with self.assertLogs('censo.core.canal', level='ERROR'):
            self.canal.publicar(EventoMudanca('users', REMOVIDO, 'u1'))

        defeituoso.assert_called_once()
        self.assertEqual(len(recebidos), 1)


class TestPonteFirestore(unittest.TestCase):

    def _mudanca(self, tipo, doc_id, dados):
        documento = MagicMock(id=doc_id)
        documento.to_dict.return_value = dados
        return SimpleNamespace(type=SimpleNamespace(name=tipo), document=documento)

    def test_snapshot_vira_evento_e_encerrar_cancela_watch(self):
        db = MagicMock()
        canal = CanalDeMudancas()
        recebidos = []
        canal.assinar(recebidos.append)

        ponte = PonteFirestore(db, canal)
        ponte.observar('users')

        db.collection.assert_called_once_with('users')
        callback = db.collection.return_value.on_snapshot.call_args[0][0]
        callback([], [self._mudanca('ADDED', 'u1', {'name': 'Ana'}),
                      self._mudanca('REMOVED', 'u2', None)], None)

        self.assertEqual(recebidos, [
            EventoMudanca('users', ADICIONADO, 'u1', {'name': 'Ana'}),
            EventoMudanca('users', REMOVIDO, 'u2', {}),
        ])

        watch = db.collection.return_value.on_snapshot.return_value
        ponte.encerrar()
        watch.unsubscribe.assert_called_once()


if __name__ == '__main__':
    unittest.main()
