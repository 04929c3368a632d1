"""
Módulo de Configuração (Blindado)

Define as classes de configuração da aplicação. Implementa o padrão 'Fail Fast':
se uma variável crítica estiver faltando, a aplicação nem inicia.
"""

import os
from dotenv import load_dotenv

# Carrega variáveis do arquivo .env
load_dotenv()

if os.environ.get('FLASK_DEBUG') == '1':
    os.environ['OAUTHLIB_INSECURE_TRANSPORT'] = '1'


def _flag(nome: str, padrao: str = 'False') -> bool:
    return os.environ.get(nome, padrao).lower() in ('true', '1', 'sim')


class Config:
    """
    Classe de configuração base da aplicação.
    """

    # === SEGURANÇA CRÍTICA (Fail Fast) ===
    SECRET_KEY = os.environ.get('SECRET_KEY')
    if not SECRET_KEY:
        raise ValueError("ERRO CRÍTICO: 'SECRET_KEY' não encontrada no .env. A aplicação não pode iniciar insegura.")

    # === GOOGLE CLOUD (Firestore) ===
    GOOGLE_CLOUD_PROJECT = os.environ.get('GOOGLE_CLOUD_PROJECT')

    # === FLASK ===
    DEBUG = _flag('FLASK_DEBUG')
    TESTING = False

    # === OAUTH (LOGIN) ===
    GOOGLE_CLIENT_ID = os.environ.get('GOOGLE_CLIENT_ID')
    GOOGLE_CLIENT_SECRET = os.environ.get('GOOGLE_CLIENT_SECRET')

    if not GOOGLE_CLIENT_ID or not GOOGLE_CLIENT_SECRET:
        print("AVISO: Credenciais OAuth (CLIENT_ID/SECRET) ausentes. O login administrativo não funcionará.")

    # === CENSO ===
    # Fuso usado para agrupar submissões por dia no dashboard
    FUSO_HORARIO = os.environ.get('FUSO_HORARIO', 'America/Sao_Paulo')
    # Endpoint para onde o guard de permissões redireciona
    PAGINA_ADMIN_PADRAO = os.environ.get('PAGINA_ADMIN_PADRAO', 'admin_bp.dashboard')
    # Liga a ponte on_snapshot do Firestore -> canal de mudanças (usuários/perfis)
    ASSINATURAS_AO_VIVO = _flag('ASSINATURAS_AO_VIVO', 'True')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # === RATE LIMIT ===
    RATELIMIT_ENABLED = _flag('RATELIMIT_ENABLED', 'True')
    # Com várias instâncias no Cloud Run, apontar para Redis ou Memcached
    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI', 'memory://')


class TestConfig(Config):
    """
    Configuração usada pela suíte de testes (sem CSRF, sem rate limit).
    """
    TESTING = True
    WTF_CSRF_ENABLED = False
    RATELIMIT_ENABLED = False
    ASSINATURAS_AO_VIVO = False
    GOOGLE_CLIENT_ID = None
    GOOGLE_CLIENT_SECRET = None
