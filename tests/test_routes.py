from datetime import datetime, timezone


def _semear_censo(fake_db):
    fake_db.semear('schools', '111', {'name': 'EMEF Monteiro Lobato', 'inep': '111'})
    fake_db.semear('schools', '222', {'name': 'EMEI Cecília Meireles', 'inep': '222'})
    fake_db.semear('submissions', 's1', {
        'schoolId': '111',
        'submittedAt': datetime(2025, 3, 10, 15, 0, tzinfo=timezone.utc),
        'submittedBy': 'u1',
        'infrastructure': {'status': 'completed', 'classrooms': [
            {'id': 'sala_1', 'name': 'Sala 1', 'occupationType': 'turnos', 'studentCapacity': 30,
             'gradeMorning': '1º Ano', 'studentsMorning': 28},
        ]},
        'teachingModalities': [{'name': 'Fundamental', 'offered': True, 'studentCount': 28}],
        'dynamicData': {'general': {'f_desk_total': 40}},
    })
    fake_db.semear('submissions', 's2', {'schoolId': '222', 'submittedBy': 'anonimo'})


def test_home_page(client):
    """Página inicial pública com os textos padrão."""
    response = client.get('/')
    assert response.status_code == 200
    assert "Bem-vindo ao School Central" in response.get_data(as_text=True)


def test_health_check(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert b"Censo Escolar no ar!" in response.data


def test_404_page(client):
    """Rotas inexistentes usam a página de erro."""
    response = client.get('/rota-que-nao-existe')
    assert response.status_code == 404
    assert b"404" in response.data
    # Decodifica o conteúdo para verificar a string com acentos
    content = response.data.decode('utf-8')
    assert "Página não encontrada" in content


def test_dashboard_exige_login(client):
    response = client.get('/admin/')
    assert response.status_code == 302
    assert '/login' in response.headers['Location']


def test_dashboard_filtrado(client, fake_db, logar):
    _semear_censo(fake_db)
    logar()

    content = client.get('/admin/?q=lobato').get_data(as_text=True)

    assert "Total de escolas: 1" in content
    assert "Total de carteiras: 40" in content
    assert "EMEF Monteiro Lobato" in content
    assert "EMEI Cecília Meireles" not in content


def test_dashboard_com_banco_fora_do_ar(client, fake_db, logar):
    logar()
    fake_db.falhar = True
    response = client.get('/admin/')
    content = response.get_data(as_text=True)
    assert response.status_code == 200
    assert "Não foi possível carregar os dados do censo" in content
    assert "Firestore indisponível (simulado)" in content


def test_exportar_csv(client, fake_db, logar):
    _semear_censo(fake_db)
    logar()

    response = client.get('/admin/exportar.csv?q=111')

    assert response.mimetype == 'text/csv'
    assert 'export_censo_escolar.csv' in response.headers['Content-Disposition']
    assert response.data.startswith(b'\xef\xbb\xbf')
    linhas = response.data.decode('utf-8-sig').strip().splitlines()
    assert len(linhas) == 2
    assert linhas[1].startswith('EMEF Monteiro Lobato')


def test_detalhe_da_submissao(client, fake_db, logar):
    _semear_censo(fake_db)
    logar()

    response = client.get('/admin/submissoes/s1')
    content = response.get_data(as_text=True)

    assert response.status_code == 200
    assert "EMEF Monteiro Lobato" in content
    assert "Sala 1" in content
    assert client.get('/admin/submissoes/nao-existe').status_code == 404


def test_excluir_submissao_exige_permissao(client, fake_db, logar):
    _semear_censo(fake_db)
    logar(permissoes=['general'])
    client.post('/admin/submissoes/s1/excluir')
    assert 's1' in fake_db.dados('submissions')

    logar(permissoes=['users'])
    response = client.post('/admin/submissoes/s1/excluir')
    assert response.status_code == 302
    assert 's1' not in fake_db.dados('submissions')


def test_configuracoes_importa_escolas(client, fake_db, logar):
    logar(permissoes=['users'])
    texto = '[{"UNIDADE EDUCACIONAL":"A","INEP":"1"},{"name":"B","inep":"1"}]'

    response = client.post('/admin/configuracoes/escolas', data={'escolas-conteudo': texto})

    assert response.status_code == 200
    assert "1 escolas salvas com sucesso!" in response.get_data(as_text=True)
    assert fake_db.dados('schools') == {'1': {'name': 'B', 'inep': '1'}}


def test_configuracoes_rejeita_escola_sem_inep(client, fake_db, logar):
    fake_db.semear('schools', '999', {'name': 'Existente', 'inep': '999'})
    logar(permissoes=['users'])

    response = client.post('/admin/configuracoes/escolas', data={'escolas-conteudo': '[{"name":"A"}]'})

    assert response.status_code == 400
    assert "Erro no JSON de escolas" in response.get_data(as_text=True)
    assert set(fake_db.dados('schools')) == {'999'}


def test_configuracoes_salva_home(client, fake_db, logar):
    logar(permissoes=['users'])

    response = client.post('/admin/configuracoes/home', data={
        'appName': 'Censo Municipal', 'title': 'Censo 2025', 'primaryColor': '#1a2b3c'})

    assert response.status_code == 302
    assert fake_db.dados('settings')['homePage']['title'] == 'Censo 2025'
    assert "Censo 2025" in client.get('/').get_data(as_text=True)


def test_configuracoes_formulario_invalido(client, fake_db, logar):
    logar(permissoes=['users'])
    response = client.post('/admin/configuracoes/formulario', data={'formulario-conteudo': '{"version": 1'})
    assert response.status_code == 400
    assert "JSON inválido" in response.get_data(as_text=True)
    assert fake_db.dados('settings') == {}
