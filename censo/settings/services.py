"""
Serviço de Configurações do Site

Lê e grava 'settings/homePage' e 'settings/formConfig'. Cada gravação bem
sucedida é espelhada num JSON local (pasta instance/ do Flask), usado como
fallback quando o Firestore não responde.
"""

import json
import os
from datetime import datetime
from typing import Any, Optional

from censo.core.constants import COLECAO_CONFIGURACOES, DOC_FORMULARIO, DOC_HOME
from censo.core.database import exigir_db
from censo.core.erros import ErroCenso, ErroConexao, ErroValidacao
from censo.core.formulario import ConfiguracaoFormulario, carregar_configuracao, configuracao_padrao
from censo.core.logger import get_logger

logger = get_logger(__name__)

CAMPOS_HOME = (
    'appName', 'title', 'subtitle', 'description', 'footerText',
    'logoUrl', 'facebookUrl', 'instagramUrl', 'twitterUrl', 'primaryColor',
)


def home_padrao() -> dict:
    return {
        'appName': 'School Central',
        'title': 'Bem-vindo ao School Central',
        'subtitle': 'Sua plataforma completa para gerenciamento de censo escolar.',
        'description': ('Nossa plataforma simplifica a coleta e análise de dados do censo escolar, '
                        'fornecendo insights valiosos para gestores e administradores.'),
        'footerText': f"© {datetime.now().year} School Central. Todos os Direitos Reservados.",
        'logoUrl': '',
        'facebookUrl': '#',
        'instagramUrl': '#',
        'twitterUrl': '#',
        'primaryColor': '',
    }


def mesclar_home(salvo: Optional[dict]) -> dict:
    """Valores salvos sobrescrevem os padrões; chaves desconhecidas são ignoradas."""
    home = home_padrao()
    for chave, valor in (salvo or {}).items():
        if chave in CAMPOS_HOME and valor is not None:
            home[chave] = valor
    return home


class ServicoConfiguracoes:

    def __init__(self, db: Any, pasta_cache: Optional[str] = None):
        self.db = db
        self.pasta_cache = pasta_cache

    # === CACHE LOCAL ===

    def _arquivo_cache(self, doc_id: str) -> Optional[str]:
        if not self.pasta_cache:
            return None
        return os.path.join(self.pasta_cache, f"cache_{doc_id}.json")

    def _ler_cache(self, doc_id: str) -> Optional[dict]:
        caminho = self._arquivo_cache(doc_id)
        if not caminho or not os.path.exists(caminho):
            return None
        try:
            with open(caminho, encoding='utf-8') as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Cache local ilegível ({caminho}): {e}")
            return None

    def _gravar_cache(self, doc_id: str, dados: dict) -> None:
        caminho = self._arquivo_cache(doc_id)
        if not caminho:
            return
        try:
            os.makedirs(self.pasta_cache, exist_ok=True)
            with open(caminho, 'w', encoding='utf-8') as f:
                json.dump(dados, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.warning(f"Não foi possível gravar o cache local ({caminho}): {e}")

    # === FIRESTORE ===

    def _ler_documento(self, doc_id: str) -> Optional[dict]:
        exigir_db(self.db)
        try:
            doc = self.db.collection(COLECAO_CONFIGURACOES).document(doc_id).get()
        except Exception as e:
            logger.error(f"Erro ao ler settings/{doc_id}: {e}", exc_info=True)
            raise ErroConexao(f"Falha ao ler as configurações: {e}") from e
        return doc.to_dict() if doc.exists else None

    def _gravar_documento(self, doc_id: str, dados: dict) -> None:
        exigir_db(self.db)
        try:
            self.db.collection(COLECAO_CONFIGURACOES).document(doc_id).set(dados)
        except Exception as e:
            logger.error(f"Erro ao gravar settings/{doc_id}: {e}", exc_info=True)
            raise ErroConexao(f"Falha ao salvar as configurações: {e}") from e
        self._gravar_cache(doc_id, dados)
        logger.info(f"Configurações '{doc_id}' salvas.")

    # === HOME ===

    def carregar_home(self) -> dict:
        try:
            return mesclar_home(self._ler_documento(DOC_HOME))
        except ErroConexao:
            logger.warning("Firestore indisponível; usando configurações da home em cache/padrão.")
            return mesclar_home(self._ler_cache(DOC_HOME))

    def salvar_home(self, dados: dict) -> dict:
        home = mesclar_home(dados)
        self._gravar_documento(DOC_HOME, home)
        return home

    # === FORMULÁRIO DINÂMICO ===

    def carregar_formulario(self) -> ConfiguracaoFormulario:
        """
        Nunca falha: documento inválido ou banco fora do ar caem para o cache
        e depois para a configuração padrão.
        """
        try:
            return carregar_configuracao(self._ler_documento(DOC_FORMULARIO))
        except ErroCenso as e:
            logger.warning(f"Usando configuração de formulário alternativa: {e}")

        try:
            return carregar_configuracao(self._ler_cache(DOC_FORMULARIO))
        except ErroValidacao:
            return configuracao_padrao()

    def salvar_formulario(self, dados: dict) -> ConfiguracaoFormulario:
        """
        Raises:
            ErroValidacao: documento fora do schema (nada é gravado).
            ErroConexao: falha na escrita.
        """
        config = carregar_configuracao(dados)
        self._gravar_documento(DOC_FORMULARIO, config.model_dump())
        return config
