"""
Rotas do Módulo de Autenticação

Gerencia as rotas para /login, /logout e o callback do Google (Authlib).
"""

from flask import (
    render_template,
    redirect,
    url_for,
    session,
    flash,
    current_app
)

from . import services as auth_services
from . import auth_bp
from censo.core.contexto import obter_contexto
from censo.core.erros import ErroCenso
from censo.core.extensions import limiter, oauth
from censo.core.logger import get_logger

logger = get_logger(__name__)


@auth_bp.route('/login')
def login():
    """ Exibe a página de login (ou vai direto ao painel se já logado). """
    if 'user_profile' in session:
        return redirect(url_for('admin_bp.dashboard'))
    oauth_configurado = bool(current_app.config.get('GOOGLE_CLIENT_ID'))
    return render_template('login.html', oauth_configurado=oauth_configurado)


@auth_bp.route('/google/login')
@limiter.limit("20 per minute")
def google_login():
    """ Redireciona para o Google. """
    if not current_app.config.get('GOOGLE_CLIENT_ID'):
        flash("Login com Google não está configurado.", "error")
        return redirect(url_for('auth_bp.login'))
    redirect_uri = url_for('auth_bp.google_callback', _external=True)
    return oauth.google.authorize_redirect(redirect_uri)


@auth_bp.route('/google/callback')
@limiter.limit("20 per minute")
def google_callback():
    """ Retorno do Google após login: resolve o perfil e o guarda na sessão. """
    try:
        token = oauth.google.authorize_access_token()
        user_info = oauth.google.userinfo(token=token)
        if not user_info:
            flash("Falha ao obter dados do Google.", "error")
            return redirect(url_for('auth_bp.login'))

        identidade = {
            'email': user_info.get('email'),
            'name': user_info.get('name'),
            'sub': user_info.get('sub'),
        }
        perfil = auth_services.resolver_perfil(obter_contexto().db, identidade)
    except (ErroCenso, ValueError) as e:
        logger.warning(f"Login recusado: {e}")
        flash(str(e), "error")
        return redirect(url_for('auth_bp.login'))
    except Exception as e:
        logger.error(f"Erro no login: {e}", exc_info=True)
        flash("Não foi possível concluir o login. Tente novamente.", "error")
        return redirect(url_for('auth_bp.login'))

    session['user_profile'] = perfil
    return redirect(url_for('admin_bp.dashboard'))


@auth_bp.route('/logout')
def logout():
    session.pop('user_profile', None)
    return redirect(url_for('auth_bp.login'))
