"""
Rotas de Usuários e Perfis

Todas exigem a permissão 'users'. A listagem vem do read model alimentado
pelo canal de mudanças; as escritas passam pelos serviços, que publicam o
evento correspondente.
"""

from flask import flash, redirect, render_template, request, url_for

from . import services as users_services
from . import users_bp
from .forms import PerfilForm, UsuarioForm
from censo.auth.guard import requer_permissao
from censo.core.constants import COLECAO_ESCOLAS
from censo.core.contexto import obter_contexto
from censo.core.database import listar_colecao
from censo.core.erros import ErroCenso, ErroValidacao
from censo.core.logger import get_logger

logger = get_logger(__name__)


def _preencher_opcoes(form: UsuarioForm, perfis, escolas) -> None:
    form.roleId.choices = [('', 'Selecione...')] + [(p['id'], p.get('name', p['id'])) for p in perfis]
    form.schoolId.choices = [('', 'Nenhuma')] + [(e['id'], e.get('name', e['id'])) for e in escolas]


def _escolas(ctx):
    try:
        return listar_colecao(ctx.db, COLECAO_ESCOLAS)
    except ErroCenso as e:
        logger.warning(f"Escolas indisponíveis na tela de usuários: {e}")
        return []


@users_bp.route('/')
@requer_permissao('users')
def listar():
    ctx = obter_contexto()
    erro = None
    try:
        ctx.usuarios.garantir_carregado(ctx.db)
    except ErroCenso as e:
        logger.error(f"Erro ao carregar usuários: {e}", exc_info=True)
        erro = "Não foi possível carregar usuários e perfis."

    perfis = ctx.usuarios.perfis()
    escolas = _escolas(ctx)
    form_usuario = UsuarioForm()
    _preencher_opcoes(form_usuario, perfis, escolas)

    return render_template(
        'admin/usuarios.html',
        usuarios=ctx.usuarios.usuarios(),
        perfis=perfis,
        escolas={e['id']: e.get('name', '') for e in escolas},
        form_usuario=form_usuario,
        form_perfil=PerfilForm(),
        erro=erro,
    )


@users_bp.route('/salvar', methods=['POST'])
@requer_permissao('users')
def salvar_usuario():
    ctx = obter_contexto()
    form = UsuarioForm()
    _preencher_opcoes(form, ctx.usuarios.perfis(), _escolas(ctx))
    if not form.validate_on_submit():
        for campo, erros in form.errors.items():
            flash(f"{getattr(form, campo).label.text}: {erros[0]}", "error")
        return redirect(url_for('users_bp.listar'))

    try:
        users_services.salvar_usuario(ctx.db, ctx.canal, form.data, usuario_id=form.id.data or None)
        flash("Usuário salvo com sucesso!", "success")
    except ErroValidacao as e:
        flash(e.mensagem, "error")
    except ErroCenso as e:
        logger.error(f"Erro ao salvar usuário: {e}", exc_info=True)
        flash("Ocorreu um erro ao salvar o usuário. Tente novamente.", "error")
    return redirect(url_for('users_bp.listar'))


@users_bp.route('/<usuario_id>/status', methods=['POST'])
@requer_permissao('users')
def alterar_status(usuario_id):
    ctx = obter_contexto()
    ativo = request.form.get('ativo') == '1'
    try:
        users_services.alterar_status_usuario(ctx.db, ctx.canal, usuario_id, ativo)
        flash("Usuário ativado." if ativo else "Usuário desativado.", "success")
    except ErroCenso as e:
        logger.error(f"Erro ao alterar status de {usuario_id}: {e}", exc_info=True)
        flash(str(e), "error")
    return redirect(url_for('users_bp.listar'))


@users_bp.route('/<usuario_id>/excluir', methods=['POST'])
@requer_permissao('users')
def excluir_usuario(usuario_id):
    ctx = obter_contexto()
    try:
        users_services.excluir_usuario(ctx.db, ctx.canal, usuario_id)
        flash("Usuário removido com sucesso.", "success")
    except ErroCenso as e:
        flash(str(e), "error")
    return redirect(url_for('users_bp.listar'))


@users_bp.route('/perfis/salvar', methods=['POST'])
@requer_permissao('users')
def salvar_perfil():
    ctx = obter_contexto()
    form = PerfilForm()
    if not form.validate_on_submit():
        flash("Formulário de perfil inválido.", "error")
        return redirect(url_for('users_bp.listar'))

    try:
        users_services.salvar_perfil(ctx.db, ctx.canal, form.name.data, form.permissions.data or [],
                                     perfil_id=form.id.data or None)
        flash("Perfil salvo com sucesso!", "success")
    except ErroValidacao as e:
        flash(e.mensagem, "error")
    except ErroCenso as e:
        logger.error(f"Erro ao salvar perfil: {e}", exc_info=True)
        flash("Erro ao salvar perfil.", "error")
    return redirect(url_for('users_bp.listar'))


@users_bp.route('/perfis/<perfil_id>/excluir', methods=['POST'])
@requer_permissao('users')
def excluir_perfil(perfil_id):
    ctx = obter_contexto()
    try:
        users_services.excluir_perfil(ctx.db, ctx.canal, perfil_id)
        flash("Perfil excluído com sucesso.", "success")
    except ErroValidacao as e:
        flash(e.mensagem, "error")
    except ErroCenso as e:
        logger.error(f"Erro ao excluir perfil {perfil_id}: {e}", exc_info=True)
        flash("Erro ao excluir perfil.", "error")
    return redirect(url_for('users_bp.listar'))
