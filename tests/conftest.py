"""
Fixtures da suíte: Firestore em memória + app/client Flask com TestConfig.
"""

import copy
import os
import uuid
from datetime import datetime, timezone

import pytest

# config.py falha sem SECRET_KEY (fail fast); precisa existir antes do import
os.environ.setdefault('SECRET_KEY', 'chave-de-teste')

from google.cloud import firestore

from config import TestConfig


def _resolver_sentinelas(dados):
    resolvido = {}
    for chave, valor in dados.items():
        resolvido[chave] = datetime.now(timezone.utc) if valor is firestore.SERVER_TIMESTAMP else valor
    return resolvido


class FakeSnapshot:
    def __init__(self, doc_id, dados):
        self.id = doc_id
        self._dados = dados
        self.exists = dados is not None

    def to_dict(self):
        return copy.deepcopy(self._dados) if self._dados is not None else None


class FakeDocRef:
    def __init__(self, colecao, doc_id):
        self._colecao = colecao
        self.id = doc_id

    def get(self):
        self._colecao.db.verificar_falha()
        return FakeSnapshot(self.id, self._colecao.docs.get(self.id))

    def set(self, dados, merge=False):
        self._colecao.db.verificar_falha()
        dados = _resolver_sentinelas(copy.deepcopy(dados))
        if merge and self.id in self._colecao.docs:
            self._colecao.docs[self.id].update(dados)
        else:
            self._colecao.docs[self.id] = dados

    def update(self, dados):
        self._colecao.db.verificar_falha()
        if self.id not in self._colecao.docs:
            raise KeyError(f"404 No document to update: {self.id}")
        self._colecao.docs[self.id].update(_resolver_sentinelas(copy.deepcopy(dados)))

    def delete(self):
        self._colecao.db.verificar_falha()
        self._colecao.docs.pop(self.id, None)


class FakeConsulta:
    def __init__(self, colecao, filtros=(), limite=None):
        self._colecao = colecao
        self._filtros = list(filtros)
        self._limite = limite

    def where(self, campo, operador, valor):
        assert operador == '==', "o double só implementa igualdade"
        return FakeConsulta(self._colecao, self._filtros + [(campo, valor)], self._limite)

    def limit(self, n):
        return FakeConsulta(self._colecao, self._filtros, n)

    def stream(self):
        self._colecao.db.verificar_falha()
        resultado = []
        for doc_id, dados in list(self._colecao.docs.items()):
            if all(dados.get(campo) == valor for campo, valor in self._filtros):
                resultado.append(FakeSnapshot(doc_id, dados))
        if self._limite is not None:
            resultado = resultado[:self._limite]
        return iter(resultado)


class FakeColecao(FakeConsulta):
    def __init__(self, db, nome):
        super().__init__(self)
        self.db = db
        self.nome = nome
        self.docs = {}

    def document(self, doc_id=None):
        return FakeDocRef(self, doc_id or uuid.uuid4().hex[:20])

    def add(self, dados):
        ref = self.document()
        ref.set(dados)
        return datetime.now(timezone.utc), ref


class FakeBatch:
    def __init__(self, db):
        self._db = db
        self.operacoes = []

    def set(self, ref, dados):
        self.operacoes.append(('set', ref, dados))

    def delete(self, ref):
        self.operacoes.append(('delete', ref, None))

    def commit(self):
        # Tudo ou nada: uma falha no commit não aplica nenhuma operação
        self._db.verificar_falha()
        for tipo, ref, dados in self.operacoes:
            if tipo == 'set':
                ref._colecao.docs[ref.id] = copy.deepcopy(dados)
            else:
                ref._colecao.docs.pop(ref.id, None)
        self._db.lotes_confirmados += 1


class FakeFirestore:
    """Subconjunto do google.cloud.firestore.Client usado pela aplicação."""

    def __init__(self):
        self._colecoes = {}
        self.falhar = False
        self.lotes_confirmados = 0

    def collection(self, nome):
        if nome not in self._colecoes:
            self._colecoes[nome] = FakeColecao(self, nome)
        return self._colecoes[nome]

    def batch(self):
        return FakeBatch(self)

    def verificar_falha(self):
        if self.falhar:
            raise RuntimeError("Firestore indisponível (simulado)")

    # Atalhos para montar cenários
    def semear(self, colecao, doc_id, dados):
        self.collection(colecao).docs[doc_id] = copy.deepcopy(dados)

    def dados(self, colecao):
        return copy.deepcopy(self.collection(colecao).docs)


@pytest.fixture
def fake_db():
    return FakeFirestore()


@pytest.fixture
def app(fake_db, tmp_path):
    from censo import create_app

    aplicacao = create_app(TestConfig, db=fake_db)
    aplicacao.instance_path = str(tmp_path)
    aplicacao.extensions['censo'].configuracoes.pasta_cache = str(tmp_path)
    yield aplicacao
    aplicacao.extensions['censo'].encerrar()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def logar(client):
    """Grava na sessão um perfil com as permissões informadas."""
    def _logar(permissoes=(), **extra):
        perfil = {
            'id': 'u1',
            'name': 'Admin Teste',
            'email': 'admin@escola.gov.br',
            'roleId': 'r1',
            'role': {'id': 'r1', 'name': 'Teste', 'permissions': list(permissoes)},
            'status': 'active',
            **extra,
        }
        with client.session_transaction() as sessao:
            sessao['user_profile'] = perfil
        return perfil
    return _logar
