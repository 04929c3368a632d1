import json
import os
import unittest

import pytest

from censo.core.erros import ErroConexao, ErroValidacao
from censo.core.formulario import configuracao_padrao
from censo.settings.services import ServicoConfiguracoes, home_padrao, mesclar_home


class TestMesclarHome(unittest.TestCase):

    def test_salvo_sobrescreve_padrao(self):
        home = mesclar_home({'title': 'Censo 2025', 'primaryColor': '#112233', 'desconhecido': 'x',
                             'subtitle': None})
        self.assertEqual(home['title'], 'Censo 2025')
        self.assertEqual(home['primaryColor'], '#112233')
        self.assertEqual(home['subtitle'], home_padrao()['subtitle'])
        self.assertNotIn('desconhecido', home)

    def test_sem_documento(self):
        self.assertEqual(mesclar_home(None)['appName'], 'School Central')


@pytest.fixture
def servico(fake_db, tmp_path):
    return ServicoConfiguracoes(fake_db, str(tmp_path))


def test_salvar_home_grava_no_banco_e_no_cache(servico, fake_db, tmp_path):
    servico.salvar_home({'appName': 'Censo Municipal', 'title': 'Bem-vindo'})

    assert fake_db.dados('settings')['homePage']['appName'] == 'Censo Municipal'
    with open(os.path.join(tmp_path, 'cache_homePage.json'), encoding='utf-8') as f:
        assert json.load(f)['title'] == 'Bem-vindo'


def test_home_usa_cache_quando_o_banco_cai(servico, fake_db):
    servico.salvar_home({'appName': 'Censo Municipal'})
    fake_db.falhar = True
    assert servico.carregar_home()['appName'] == 'Censo Municipal'


def test_home_sem_banco_e_sem_cache_usa_padrao(tmp_path):
    servico = ServicoConfiguracoes(None, str(tmp_path))
    assert servico.carregar_home() == home_padrao()
    with pytest.raises(ErroConexao):
        servico.salvar_home({'appName': 'X'})


def test_formulario_invalido_nao_e_gravado(servico, fake_db):
    with pytest.raises(ErroValidacao):
        servico.salvar_formulario({'version': 1, 'sections': [{'id': '', 'name': 'Sem id'}]})
    assert fake_db.dados('settings') == {}


def test_formulario_salvo_e_recarregado(servico, fake_db):
    dados = {'sections': [{'id': 'cultural', 'name': 'Cultural', 'fields': [
        {'id': 'f_feira', 'sectionId': 'cultural', 'name': 'Feira de ciências', 'type': 'boolean'}]}]}

    servico.salvar_formulario(dados)
    config = servico.carregar_formulario()

    assert config.campo('cultural', 'f_feira').type == 'boolean'
    assert config.secao('professionals') is not None
    assert fake_db.dados('settings')['formConfig']['version'] == 1


def test_formulario_com_banco_fora_do_ar(servico, fake_db):
    servico.salvar_formulario({'sections': [{'id': 'tech', 'name': 'Tecnologia'}]})
    fake_db.falhar = True
    assert [s.id for s in servico.carregar_formulario().sections] == ['tech', 'professionals']

    sem_cache = ServicoConfiguracoes(fake_db, None)
    assert sem_cache.carregar_formulario() == configuracao_padrao()


def test_documento_corrompido_no_banco_cai_para_o_padrao(servico, fake_db):
    fake_db.semear('settings', 'formConfig', {'version': 7, 'sections': []})
    assert servico.carregar_formulario() == configuracao_padrao()
