import unittest

import pytest

from censo.auth import services as auth_services
from censo.core.erros import ErroConexao, PermissaoNegada


class TestResolverPerfil(unittest.TestCase):

    @pytest.fixture(autouse=True)
    def _banco(self, fake_db):
        self.db = fake_db
        self.db.semear('roles', 'r1', {'name': 'Diretoria', 'permissions': ['general', 'users']})
        self.db.semear('users', 'u1', {'name': 'Ana', 'email': 'ana@escola.gov.br', 'roleId': 'r1',
                                       'status': 'active', 'schoolId': '111'})

    def test_usuario_cadastrado_recebe_role_embutida(self):
        perfil = auth_services.resolver_perfil(self.db, {'email': 'ana@escola.gov.br', 'name': 'Ana G.'})
        self.assertEqual(perfil['id'], 'u1')
        self.assertEqual(perfil['name'], 'Ana')
        self.assertEqual(perfil['role'], {'id': 'r1', 'name': 'Diretoria', 'permissions': ['general', 'users']})
        self.assertEqual(perfil['schoolId'], '111')

    def test_usuario_sem_cadastro_e_recusado(self):
        with self.assertRaises(PermissaoNegada):
            auth_services.resolver_perfil(self.db, {'email': 'qualquer@gmail.com', 'sub': 'g-123'})

    def test_conta_inativa_e_recusada(self):
        self.db.semear('users', 'u2', {'name': 'Bia', 'email': 'bia@escola.gov.br', 'roleId': 'r1',
                                       'status': 'inactive'})
        with self.assertRaises(PermissaoNegada):
            auth_services.resolver_perfil(self.db, {'email': 'bia@escola.gov.br'})

    def test_role_inexistente_vira_none(self):
        self.db.semear('users', 'u3', {'name': 'Caio', 'email': 'caio@escola.gov.br', 'roleId': 'apagada'})
        perfil = auth_services.resolver_perfil(self.db, {'email': 'caio@escola.gov.br'})
        self.assertIsNone(perfil['role'])
        self.assertEqual(perfil['roleId'], 'apagada')

    def test_identidade_sem_email(self):
        with self.assertRaises(ValueError):
            auth_services.resolver_perfil(self.db, {'name': 'Sem e-mail'})

    def test_banco_indisponivel(self):
        with self.assertRaises(ErroConexao):
            auth_services.resolver_perfil(None, {'email': 'ana@escola.gov.br'})
        self.db.falhar = True
        with self.assertRaises(ErroConexao):
            auth_services.resolver_perfil(self.db, {'email': 'ana@escola.gov.br'})


def test_login_ja_logado_vai_para_o_painel(client, logar):
    logar()
    resposta = client.get('/login')
    assert resposta.status_code == 302
    assert resposta.headers['Location'].endswith('/admin/')


def test_google_login_sem_credenciais(client):
    resposta = client.get('/google/login')
    assert resposta.status_code == 302
    assert resposta.headers['Location'].endswith('/login')


def test_logout_limpa_a_sessao(client, logar):
    logar(permissoes=['users'])
    client.get('/logout')
    with client.session_transaction() as sessao:
        assert 'user_profile' not in sessao
