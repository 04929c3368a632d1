"""
Rotas do Formulário do Censo

Um único endpoint (/censo). Botões com name="acao" editam as listas do
formulário (salas, modalidades, alocações) sem gravar nada; o envio final
valida tudo e grava a submissão.
"""

from flask import flash, redirect, render_template, request, url_for

from . import census_bp
from . import services as census_services
from .forms import CensusForm
from censo.auth.guard import perfil_da_sessao
from censo.core.contexto import obter_contexto
from censo.core.erros import ErroCenso, NaoEncontrado
from censo.core.extensions import limiter
from censo.core.formulario import ler_dados_dinamicos, nome_entrada
from censo.core.logger import get_logger

logger = get_logger(__name__)

ACAO_ENVIAR = 'enviar'


def _reconstruir(lista, itens) -> None:
    """Recria as entradas de um FieldList a partir de dados simples."""
    lista.entries = []
    lista.last_index = -1
    for item in itens:
        lista.append_entry(item)


def _remover(lista, indice: int) -> None:
    itens = lista.data
    if 0 <= indice < len(itens) and len(itens) > 1:
        del itens[indice]
        _reconstruir(lista, itens)


def _indice(acao: str) -> int:
    try:
        return int(acao.split(':', 1)[1])
    except (IndexError, ValueError):
        return -1


def _gerar_alocacoes(form: CensusForm) -> None:
    salas = [census_services.montar_sala(dados) for dados in form.classrooms.data]
    # Salas novas recebem id aqui para que as alocações apontem para elas
    for entrada, sala in zip(form.classrooms.entries, salas):
        entrada.form.id.data = sala['id']
    alocacoes = census_services.derivar_alocacoes(salas, form.allocations.data)
    _reconstruir(form.allocations, alocacoes)


def _aplicar_acao(form: CensusForm, acao: str) -> None:
    nome = acao.split(':', 1)[0]
    if nome == 'adicionar_sala':
        form.classrooms.append_entry()
    elif nome == 'remover_sala':
        _remover(form.classrooms, _indice(acao))
    elif nome == 'adicionar_modalidade':
        form.teachingModalities.append_entry()
    elif nome == 'remover_modalidade':
        _remover(form.teachingModalities, _indice(acao))
    elif nome == 'gerar_alocacoes':
        _gerar_alocacoes(form)
    elif nome in ('adicionar_professor', 'adicionar_professor2026'):
        indice = _indice(acao)
        if 0 <= indice < len(form.allocations.entries):
            alocacao = form.allocations.entries[indice].form
            lista = alocacao.teachers if nome == 'adicionar_professor' else alocacao.teachers2026
            lista.append_entry()
    else:
        logger.warning(f"Ação desconhecida no formulário do censo: {acao}")


@census_bp.route('/censo', methods=['GET', 'POST'])
@limiter.limit("30 per minute", methods=['POST'])
def formulario():
    ctx = obter_contexto()
    config_form = ctx.configuracoes.carregar_formulario()
    form = CensusForm()

    # Lista de escolas: falha não bloqueia a tela, só deixa o seletor vazio
    try:
        escolas = census_services.listar_escolas(ctx.db)
    except ErroCenso as e:
        logger.warning(f"Não foi possível carregar as escolas: {e}")
        flash("Não foi possível carregar a lista de escolas. Tente recarregar a página.", "warning")
        escolas = []
    form.schoolId.choices = [('', 'Selecione uma escola...')] + [
        (e['id'], f"{e.get('name', '')} ({e.get('inep', '')})") for e in escolas
    ]

    try:
        profissionais = census_services.listar_profissionais(ctx.db)
    except ErroCenso as e:
        logger.warning(f"Não foi possível carregar os profissionais: {e}")
        profissionais = []

    erros_dinamicos = {}
    if request.method == 'POST':
        acao = request.form.get('acao') or ACAO_ENVIAR
        if acao != ACAO_ENVIAR:
            _aplicar_acao(form, acao)
        else:
            dados_dinamicos, erros_dinamicos = ler_dados_dinamicos(config_form, request.form)
            form_valido = form.validate_on_submit()
            if form_valido and not erros_dinamicos:
                try:
                    submissao = census_services.montar_submissao(form.data, dados_dinamicos)
                    perfil = perfil_da_sessao()
                    census_services.registrar_submissao(ctx.db, submissao, perfil.get('id') if perfil else None)
                except NaoEncontrado as e:
                    flash(f"{e} Selecione outra escola e envie novamente.", "error")
                except ErroCenso as e:
                    logger.error(f"Erro ao registrar submissão: {e}", exc_info=True)
                    flash("Erro ao enviar o formulário. Verifique sua conexão e tente novamente.", "error")
                else:
                    flash("Formulário enviado com sucesso! Obrigado pela participação.", "success")
                    return redirect(url_for('census_bp.formulario'))
            else:
                flash("Existem campos inválidos. Verifique os itens destacados.", "error")

    return render_template(
        'census/formulario.html',
        form=form,
        secoes=config_form.secoes_dinamicas(),
        nome_entrada=nome_entrada,
        valores=request.form if request.method == 'POST' else {},
        erros_dinamicos=erros_dinamicos,
        profissionais=profissionais,
    )
