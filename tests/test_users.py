import pytest

from censo.core.canal import ADICIONADO, CanalDeMudancas, EventoMudanca
from censo.core.erros import ErroValidacao, NaoEncontrado
from censo.users import services as users_services


@pytest.fixture
def canal():
    return CanalDeMudancas()


@pytest.fixture
def modelo(canal, fake_db):
    fake_db.semear('roles', 'r1', {'name': 'Secretaria', 'permissions': ['general']})
    fake_db.semear('users', 'u1', {'name': 'Zeca', 'email': 'zeca@escola.gov.br', 'roleId': 'r1'})
    fake_db.semear('users', 'u2', {'name': 'Ana', 'email': 'ana@escola.gov.br', 'roleId': 'sumiu'})
    modelo = users_services.ModeloLeituraUsuarios(canal)
    modelo.sincronizar(fake_db)
    yield modelo
    modelo.descartar()


def test_listagem_ordenada_com_nome_do_perfil(modelo):
    usuarios = modelo.usuarios()
    assert [u['name'] for u in usuarios] == ['Ana', 'Zeca']
    assert [u['roleName'] for u in usuarios] == ['N/A', 'Secretaria']


def test_escritas_chegam_ao_read_model_pelo_canal(modelo, canal, fake_db):
    perfil_id = users_services.salvar_perfil(fake_db, canal, 'Direção', ['general', 'users'])
    usuario_id = users_services.salvar_usuario(fake_db, canal, {
        'name': 'Bia', 'email': ' Bia@Escola.gov.br ', 'roleId': perfil_id})

    assert modelo.usuario(usuario_id)['email'] == 'bia@escola.gov.br'
    assert 'Direção' in [p['name'] for p in modelo.perfis()]

    users_services.alterar_status_usuario(fake_db, canal, usuario_id, ativo=False)
    assert modelo.usuario(usuario_id)['status'] == users_services.STATUS_INATIVO
    assert fake_db.dados('users')[usuario_id]['status'] == users_services.STATUS_INATIVO

    users_services.excluir_usuario(fake_db, canal, usuario_id)
    assert modelo.usuario(usuario_id) is None
    assert usuario_id not in fake_db.dados('users')


def test_descartar_para_de_receber_eventos(modelo, canal):
    modelo.descartar()
    canal.publicar(EventoMudanca('users', ADICIONADO, 'u9', {'name': 'Novo'}))
    assert modelo.usuario('u9') is None
    assert canal.total_assinantes == 0


def test_email_repetido_e_rejeitado(modelo, canal, fake_db):
    with pytest.raises(ErroValidacao) as erro:
        users_services.salvar_usuario(fake_db, canal, {'name': 'Outro', 'email': 'ZECA@escola.gov.br',
                                                       'roleId': 'r1'})
    assert erro.value.mensagem == "Este email já está em uso por outra conta."


def test_edicao_nao_altera_email(modelo, canal, fake_db):
    users_services.salvar_usuario(fake_db, canal, {'name': 'José', 'email': 'outro@x.y', 'roleId': 'r1'},
                                  usuario_id='u1')
    armazenado = fake_db.dados('users')['u1']
    assert armazenado['name'] == 'José'
    assert armazenado['email'] == 'zeca@escola.gov.br'
    assert modelo.usuario('u1')['name'] == 'José'


def test_validacoes_de_usuario(fake_db, canal):
    fake_db.semear('roles', 'r1', {'name': 'Secretaria', 'permissions': []})
    with pytest.raises(ErroValidacao):
        users_services.salvar_usuario(fake_db, canal, {'name': '', 'email': 'a@b.c', 'roleId': 'r1'})
    with pytest.raises(ErroValidacao):
        users_services.salvar_usuario(fake_db, canal, {'name': 'A', 'email': 'a@b.c', 'roleId': 'inexistente'})
    with pytest.raises(NaoEncontrado):
        users_services.salvar_usuario(fake_db, canal, {'name': 'A', 'roleId': 'r1'}, usuario_id='fantasma')


def test_perfil_com_permissao_desconhecida(fake_db, canal):
    with pytest.raises(ErroValidacao):
        users_services.salvar_perfil(fake_db, canal, 'Financeiro', ['financeiro'])
    assert fake_db.dados('roles') == {}


def test_perfil_em_uso_nao_pode_ser_excluido(modelo, canal, fake_db):
    with pytest.raises(ErroValidacao):
        users_services.excluir_perfil(fake_db, canal, 'r1')
    assert 'r1' in fake_db.dados('roles')

    fake_db.semear('roles', 'r2', {'name': 'Livre', 'permissions': []})
    users_services.excluir_perfil(fake_db, canal, 'r2')
    assert 'r2' not in fake_db.dados('roles')


# === ROTAS ===

def test_tela_lista_usuarios(client, fake_db, logar):
    fake_db.semear('roles', 'r1', {'name': 'Secretaria', 'permissions': ['users']})
    fake_db.semear('users', 'u1', {'name': 'Zeca', 'email': 'zeca@escola.gov.br', 'roleId': 'r1'})
    logar(permissoes=['users'])

    html = client.get('/admin/usuarios/').get_data(as_text=True)

    assert 'zeca@escola.gov.br' in html
    assert 'Secretaria' in html


def test_rota_cria_usuario_e_atualiza_listagem(client, fake_db, logar, app):
    fake_db.semear('roles', 'r1', {'name': 'Secretaria', 'permissions': ['users']})
    logar(permissoes=['users'])
    client.get('/admin/usuarios/')

    resposta = client.post('/admin/usuarios/salvar', data={
        'name': 'Carla', 'email': 'carla@escola.gov.br', 'roleId': 'r1', 'status': 'active'})

    assert resposta.status_code == 302
    emails = [u['email'] for u in fake_db.dados('users').values()]
    assert emails == ['carla@escola.gov.br']
    assert [u['name'] for u in app.extensions['censo'].usuarios.usuarios()] == ['Carla']


def test_rota_recusa_exclusao_de_perfil_em_uso(client, fake_db, logar):
    fake_db.semear('roles', 'r1', {'name': 'Secretaria', 'permissions': ['users']})
    fake_db.semear('users', 'u1', {'name': 'Zeca', 'email': 'zeca@escola.gov.br', 'roleId': 'r1'})
    logar(permissoes=['users'])

    client.post('/admin/usuarios/perfis/r1/excluir')

    assert 'r1' in fake_db.dados('roles')
    with client.session_transaction() as sessao:
        categorias = [c for c, _ in sessao.get('_flashes', [])]
    assert categorias == ['error']
