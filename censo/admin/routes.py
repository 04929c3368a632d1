"""
Rotas do Módulo Admin

Painel (métricas, projeções, submissões), detalhe e exclusão de submissão,
exportação CSV e a tela de configurações.
"""

import json

from flask import (
    Response,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)

from . import admin_bp
from . import importacao
from censo.auth.guard import requer_login, requer_permissao
from censo.core import agregador
from censo.core.constants import COLECAO_ESCOLAS, COLECAO_PROFISSIONAIS, COLECAO_SUBMISSOES
from censo.core.contexto import obter_contexto
from censo.core.database import buscar_documento, exigir_db, listar_colecao
from censo.core.erros import ErroCenso, ErroConexao, ErroValidacao
from censo.core.formulario import secoes_formatadas
from censo.core.logger import get_logger
from censo.settings.forms import FormularioConfigForm, HomeForm, ImportacaoForm

logger = get_logger(__name__)


def _carregar_dados(ctx):
    escolas = listar_colecao(ctx.db, COLECAO_ESCOLAS)
    submissoes = listar_colecao(ctx.db, COLECAO_SUBMISSOES)
    return escolas, submissoes


# === PAINEL ===

@admin_bp.route('/')
@requer_login
def dashboard():
    ctx = obter_contexto()
    consulta = request.args.get('q', '').strip()
    fuso = ctx.config.get('FUSO_HORARIO', agregador.FUSO_PADRAO)

    try:
        escolas, submissoes = _carregar_dados(ctx)
        profissionais = listar_colecao(ctx.db, COLECAO_PROFISSIONAIS)
    except ErroCenso as e:
        logger.error(f"Erro ao carregar o painel: {e}", exc_info=True)
        return render_template('admin/dashboard.html', consulta=consulta,
                               erro=f"Não foi possível carregar os dados do censo: {e}")

    mapa = agregador.mapa_escolas(escolas)
    filtradas = agregador.filtrar_submissoes(submissoes, mapa, consulta)
    linhas = [
        {
            'id': s['id'],
            'escola': (mapa.get(s.get('schoolId')) or {}).get('name', agregador.NAO_ENCONTRADO),
            'inep': (mapa.get(s.get('schoolId')) or {}).get('inep', agregador.NAO_ENCONTRADO),
            'enviado_em': agregador.formatar_data_hora(s.get('submittedAt'), fuso),
            'completa': agregador.submissao_completa(s),
        }
        for s in filtradas
    ]

    return render_template(
        'admin/dashboard.html',
        consulta=consulta,
        metricas=agregador.calcular_metricas(filtradas, agregador.filtrar_escolas(escolas, consulta)),
        por_dia=agregador.contagem_por_dia(filtradas, fuso),
        modalidades=agregador.contagem_modalidades(filtradas),
        projecoes_turmas=agregador.linhas_projecao_turmas(filtradas, mapa),
        projecoes_professores=agregador.linhas_projecao_professores(
            filtradas, mapa, agregador.mapa_profissionais(profissionais)),
        submissoes=linhas,
    )


@admin_bp.route('/exportar.csv')
@requer_login
def exportar_csv():
    ctx = obter_contexto()
    consulta = request.args.get('q', '').strip()
    try:
        escolas, submissoes = _carregar_dados(ctx)
    except ErroCenso as e:
        logger.error(f"Erro ao exportar CSV: {e}", exc_info=True)
        flash("Não foi possível exportar os dados agora.", "error")
        return redirect(url_for('admin_bp.dashboard', q=consulta))

    mapa = agregador.mapa_escolas(escolas)
    filtradas = agregador.filtrar_submissoes(submissoes, mapa, consulta)
    conteudo = agregador.exportar_csv(filtradas, mapa, ctx.config.get('FUSO_HORARIO', agregador.FUSO_PADRAO))
    return Response(
        '\ufeff' + conteudo,
        mimetype='text/csv',
        headers={'Content-Disposition': 'attachment; filename=export_censo_escolar.csv'},
    )


# === DETALHE DA SUBMISSÃO ===

@admin_bp.route('/submissoes/<submissao_id>')
@requer_login
def detalhe_submissao(submissao_id):
    ctx = obter_contexto()
    try:
        submissao = buscar_documento(ctx.db, COLECAO_SUBMISSOES, submissao_id)
        if submissao is None:
            return render_template('admin/submissao.html', submissao=None), 404
        escola = None
        if submissao.get('schoolId'):
            escola = buscar_documento(ctx.db, COLECAO_ESCOLAS, submissao['schoolId'])
        profissionais = agregador.mapa_profissionais(listar_colecao(ctx.db, COLECAO_PROFISSIONAIS))
    except ErroCenso as e:
        logger.error(f"Erro ao carregar submissão {submissao_id}: {e}", exc_info=True)
        return render_template('admin/submissao.html', submissao=None,
                               erro="Não foi possível carregar a submissão."), 503

    config_form = ctx.configuracoes.carregar_formulario()
    return render_template(
        'admin/submissao.html',
        submissao=submissao,
        escola=escola,
        profissionais=profissionais,
        enviado_em=agregador.formatar_data_hora(submissao.get('submittedAt'),
                                                ctx.config.get('FUSO_HORARIO', agregador.FUSO_PADRAO)),
        secoes=secoes_formatadas(config_form, submissao.get('dynamicData')),
    )


@admin_bp.route('/submissoes/<submissao_id>/excluir', methods=['POST'])
@requer_permissao('users')
def excluir_submissao(submissao_id):
    ctx = obter_contexto()
    try:
        exigir_db(ctx.db)
        ctx.db.collection(COLECAO_SUBMISSOES).document(submissao_id).delete()
        logger.info(f"Submissão {submissao_id} excluída")
        flash("Submissão excluída com sucesso.", "success")
    except ErroConexao as e:
        flash(str(e), "error")
    except Exception as e:
        logger.error(f"Erro ao excluir submissão {submissao_id}: {e}", exc_info=True)
        flash("Erro ao excluir a submissão.", "error")
    return redirect(url_for('admin_bp.dashboard'))


# === CONFIGURAÇÕES ===

def _texto_colecao(ctx, colecao: str, campos=None) -> str:
    try:
        registros = sorted(listar_colecao(ctx.db, colecao), key=lambda r: str(r.get('name', '')).lower())
    except ErroCenso as e:
        logger.warning(f"Não foi possível carregar '{colecao}' para edição: {e}")
        return '[]'
    if campos:
        registros = [{k: v for k, v in r.items() if k in campos} for r in registros]
    return importacao.para_texto(registros)


def _render_configuracoes(ctx, form_escolas=None, form_profissionais=None, form_home=None, form_formulario=None,
                          status=200):
    if form_escolas is None:
        form_escolas = ImportacaoForm(formdata=None, prefix='escolas',
                                      data={'conteudo': _texto_colecao(ctx, COLECAO_ESCOLAS)})
    if form_profissionais is None:
        form_profissionais = ImportacaoForm(formdata=None, prefix='profissionais',
                                            data={'conteudo': _texto_colecao(ctx, COLECAO_PROFISSIONAIS,
                                                                             ('id', 'name'))})
    if form_home is None:
        form_home = HomeForm(formdata=None, data=ctx.configuracoes.carregar_home())
    if form_formulario is None:
        config = ctx.configuracoes.carregar_formulario()
        form_formulario = FormularioConfigForm(
            formdata=None, prefix='formulario',
            data={'conteudo': json.dumps(config.model_dump(), indent=2, ensure_ascii=False)})

    return render_template(
        'admin/configuracoes.html',
        form_escolas=form_escolas,
        form_profissionais=form_profissionais,
        form_home=form_home,
        form_formulario=form_formulario,
    ), status


@admin_bp.route('/configuracoes')
@requer_permissao('users')
def configuracoes():
    return _render_configuracoes(obter_contexto())


@admin_bp.route('/configuracoes/escolas', methods=['POST'])
@requer_permissao('users')
def salvar_escolas():
    ctx = obter_contexto()
    form = ImportacaoForm(prefix='escolas')
    if not form.validate_on_submit():
        flash("Cole a lista de escolas em formato JSON.", "error")
        return _render_configuracoes(ctx, form_escolas=form, status=400)

    try:
        escolas = importacao.substituir_escolas(ctx.db, importacao.interpretar_escolas(form.conteudo.data))
    except ErroValidacao as e:
        flash(f"Erro no JSON de escolas: {e.mensagem}", "error")
        return _render_configuracoes(ctx, form_escolas=form, status=400)
    except ErroCenso as e:
        logger.error(f"Erro ao importar escolas: {e}", exc_info=True)
        flash("Erro ao salvar as escolas. Nenhuma alteração foi gravada.", "error")
        return _render_configuracoes(ctx, form_escolas=form, status=503)

    flash(f"{len(escolas)} escolas salvas com sucesso!", "success")
    form = ImportacaoForm(formdata=None, prefix='escolas', data={'conteudo': importacao.para_texto(escolas)})
    return _render_configuracoes(ctx, form_escolas=form)


@admin_bp.route('/configuracoes/profissionais', methods=['POST'])
@requer_permissao('users')
def salvar_profissionais():
    ctx = obter_contexto()
    form = ImportacaoForm(prefix='profissionais')
    if not form.validate_on_submit():
        flash("Cole a lista de profissionais em formato JSON.", "error")
        return _render_configuracoes(ctx, form_profissionais=form, status=400)

    try:
        profissionais = importacao.substituir_profissionais(
            ctx.db, importacao.interpretar_profissionais(form.conteudo.data))
    except ErroValidacao as e:
        flash(f"Erro no JSON de profissionais: {e.mensagem}", "error")
        return _render_configuracoes(ctx, form_profissionais=form, status=400)
    except ErroCenso as e:
        logger.error(f"Erro ao importar profissionais: {e}", exc_info=True)
        flash("Erro ao salvar os profissionais. Nenhuma alteração foi gravada.", "error")
        return _render_configuracoes(ctx, form_profissionais=form, status=503)

    flash(f"{len(profissionais)} profissionais salvos com sucesso!", "success")
    form = ImportacaoForm(formdata=None, prefix='profissionais',
                          data={'conteudo': importacao.para_texto(profissionais)})
    return _render_configuracoes(ctx, form_profissionais=form)


@admin_bp.route('/configuracoes/home', methods=['POST'])
@requer_permissao('users')
def salvar_home():
    ctx = obter_contexto()
    form = HomeForm()
    if not form.validate_on_submit():
        flash("Verifique os campos da página inicial.", "error")
        return _render_configuracoes(ctx, form_home=form, status=400)

    dados = {k: v for k, v in form.data.items() if k != 'csrf_token'}
    try:
        ctx.configuracoes.salvar_home(dados)
    except ErroCenso as e:
        logger.error(f"Erro ao salvar a home: {e}", exc_info=True)
        flash("Erro ao salvar as configurações da página inicial.", "error")
        return _render_configuracoes(ctx, form_home=form, status=503)

    flash("Configurações da página inicial salvas!", "success")
    return redirect(url_for('admin_bp.configuracoes'))


@admin_bp.route('/configuracoes/formulario', methods=['POST'])
@requer_permissao('users')
def salvar_formulario():
    ctx = obter_contexto()
    form = FormularioConfigForm(prefix='formulario')
    if not form.validate_on_submit():
        flash("Informe a configuração do formulário em JSON.", "error")
        return _render_configuracoes(ctx, form_formulario=form, status=400)

    try:
        dados = json.loads(form.conteudo.data)
        if not isinstance(dados, dict):
            raise ErroValidacao("A configuração deve ser um objeto JSON com 'version' e 'sections'.")
        ctx.configuracoes.salvar_formulario(dados)
    except json.JSONDecodeError as e:
        flash(f"JSON inválido: {e}", "error")
        return _render_configuracoes(ctx, form_formulario=form, status=400)
    except ErroValidacao as e:
        flash(e.mensagem, "error")
        return _render_configuracoes(ctx, form_formulario=form, status=400)
    except ErroCenso as e:
        logger.error(f"Erro ao salvar a configuração do formulário: {e}", exc_info=True)
        flash("Erro ao salvar a configuração do formulário.", "error")
        return _render_configuracoes(ctx, form_formulario=form, status=503)

    flash("Configuração do formulário salva!", "success")
    return redirect(url_for('admin_bp.configuracoes'))
