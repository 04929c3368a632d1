"""
Módulo Principal da Aplicação (Application Factory)
"""

from flask import Flask, render_template
from werkzeug.middleware.proxy_fix import ProxyFix  # Importação necessária para o Cloud Run
from config import Config

from .core.canal import CanalDeMudancas, PonteFirestore
from .core.constants import COLECAO_PERFIS, COLECAO_USUARIOS, DADOS_CENSO
from .core.contexto import CHAVE_EXTENSAO, ContextoApp
from .core.database import conectar_firestore
from .core.extensions import csrf, limiter, oauth
from .core.logger import get_logger

logger = get_logger(__name__)

SEM_BANCO = object()


def create_app(config_class=Config, db=SEM_BANCO):
    """
    Cria e configura uma instância da aplicação Flask.

    'db' permite injetar o cliente do banco (testes); sem ele o cliente do
    Firestore é criado a partir de GOOGLE_CLOUD_PROJECT.
    """

    app = Flask(__name__,
                instance_relative_config=True,
                static_folder='static',
                template_folder='templates')

    # === CORREÇÃO HTTPS (Cloud Run) ===
    # Ajusta o Flask para entender que está atrás de um Proxy (Cloud Run)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    # 1. Carrega a configuração
    app.config.from_object(config_class)

    # 2. Extensões
    csrf.init_app(app)
    limiter.init_app(app)
    oauth.init_app(app)

    google_client_id = app.config.get('GOOGLE_CLIENT_ID')
    google_client_secret = app.config.get('GOOGLE_CLIENT_SECRET')

    if google_client_id and google_client_secret:
        oauth.register(
            name='google',
            client_id=google_client_id,
            client_secret=google_client_secret,
            server_metadata_url='https://accounts.google.com/.well-known/openid-configuration',
            client_kwargs={
                'scope': 'openid email profile'
            }
        )
    else:
        logger.warning("GOOGLE_CLIENT_ID ou GOOGLE_CLIENT_SECRET não definidos. Login desativado.")

    # 3. Contexto explícito (banco, canal de mudanças, read model, configurações)
    if db is SEM_BANCO:
        db = conectar_firestore(app.config.get('GOOGLE_CLOUD_PROJECT'))

    from .settings.services import ServicoConfiguracoes
    from .users.services import ModeloLeituraUsuarios

    canal = CanalDeMudancas()
    contexto = ContextoApp(
        config=app.config,
        db=db,
        canal=canal,
        usuarios=ModeloLeituraUsuarios(canal),
        configuracoes=ServicoConfiguracoes(db, app.instance_path),
    )
    if app.config.get('ASSINATURAS_AO_VIVO') and db is not None:
        try:
            ponte = PonteFirestore(db, canal)
            ponte.observar(COLECAO_USUARIOS)
            ponte.observar(COLECAO_PERFIS)
            contexto.ponte = ponte
        except Exception as e:
            logger.error(f"Não foi possível abrir as assinaturas ao vivo: {e}", exc_info=True)
    app.extensions[CHAVE_EXTENSAO] = contexto

    # === Context Processor ===
    # Injeta as listas do censo e as configurações da home em todos os templates
    @app.context_processor
    def inject_census_data():
        return dict(DADOS_CENSO=DADOS_CENSO, home=contexto.configuracoes.carregar_home())

    # 4. Configura os Blueprints (Módulos)
    from .auth import auth_bp
    app.register_blueprint(auth_bp, url_prefix='/')

    from .census import census_bp
    app.register_blueprint(census_bp)

    # O url_prefix='/admin' já está definido dentro do admin/__init__.py
    from .admin import admin_bp
    app.register_blueprint(admin_bp)

    from .users import users_bp
    app.register_blueprint(users_bp)

    # 5. Páginas públicas e Health Check
    @app.route('/')
    def home():
        return render_template('home.html')

    @app.route("/health")
    def health_check():
        return "Censo Escolar no ar!", 200

    # 6. Páginas de erro
    @app.errorhandler(403)
    def acesso_negado(e):
        return render_template('erro.html', codigo=403, mensagem="Acesso negado."), 403

    @app.errorhandler(404)
    def nao_encontrada(e):
        return render_template('erro.html', codigo=404, mensagem="Página não encontrada."), 404

    @app.errorhandler(500)
    def erro_interno(e):
        logger.error(f"Erro interno: {e}", exc_info=True)
        return render_template('erro.html', codigo=500, mensagem="Erro interno do servidor."), 500

    return app
