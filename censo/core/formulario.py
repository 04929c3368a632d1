"""
Schema Dinâmico do Formulário (Form Builder)

O administrador configura seções e campos extras do censo. A configuração é
guardada como documento versionado em 'settings/formConfig' e validada ao ser
carregada. Cada resposta dinâmica é um valor tipado (variante marcada por
'tipo'), guardado numa mapping ordenada pela ordem dos campos no schema.
"""

import math
from datetime import date, datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field, ValidationError, model_validator

from censo.core.erros import ErroValidacao
from censo.core.logger import get_logger

logger = get_logger(__name__)

VERSAO_ATUAL = 1

TipoCampo = Literal['text', 'number', 'boolean', 'date', 'select', 'file', 'rating']
# Previstos no editor mas ainda sem suporte no formulário
TIPOS_DESABILITADOS = {'file', 'rating'}

# Seções com formulário próprio (salas e alocações) e sem campos dinâmicos
SECOES_ESTATICAS = ('infrastructure', 'professionals')

VALORES_VERDADEIROS = {'y', 'on', 'true', '1', 'sim'}


class CampoConfig(BaseModel):
    id: str = Field(..., min_length=1)
    sectionId: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    type: TipoCampo = 'text'
    required: bool = False
    options: List[str] = Field(default_factory=list)

    @property
    def habilitado(self) -> bool:
        return self.type not in TIPOS_DESABILITADOS

    @model_validator(mode='after')
    def _select_exige_opcoes(self):
        if self.type == 'select' and not self.options:
            raise ValueError(f"Campo '{self.id}' do tipo select precisa de opções.")
        return self


class SecaoConfig(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    fields: List[CampoConfig] = Field(default_factory=list)

    @model_validator(mode='after')
    def _campos_consistentes(self):
        vistos = set()
        for campo in self.fields:
            if campo.sectionId != self.id:
                raise ValueError(f"Campo '{campo.id}' declara a seção '{campo.sectionId}' mas está em '{self.id}'.")
            if campo.id in vistos:
                raise ValueError(f"Campo duplicado '{campo.id}' na seção '{self.id}'.")
            vistos.add(campo.id)
        return self

    @property
    def estatica(self) -> bool:
        return self.id.startswith('infra') or self.id in SECOES_ESTATICAS


class ConfiguracaoFormulario(BaseModel):
    version: int = VERSAO_ATUAL
    sections: List[SecaoConfig] = Field(default_factory=list)

    @model_validator(mode='after')
    def _versao_e_secoes(self):
        if self.version < 1 or self.version > VERSAO_ATUAL:
            raise ValueError(f"Versão de configuração não suportada: {self.version}")
        ids = [s.id for s in self.sections]
        if len(ids) != len(set(ids)):
            raise ValueError("Existem seções com o mesmo id.")
        return self

    def secao(self, secao_id: str) -> Optional[SecaoConfig]:
        return next((s for s in self.sections if s.id == secao_id), None)

    def campo(self, secao_id: str, campo_id: str) -> Optional[CampoConfig]:
        secao = self.secao(secao_id)
        if not secao:
            return None
        return next((c for c in secao.fields if c.id == campo_id), None)

    def secoes_dinamicas(self) -> List[SecaoConfig]:
        return [s for s in self.sections if not s.estatica]

    def com_secao_profissionais(self) -> 'ConfiguracaoFormulario':
        """
        Configurações antigas não têm a seção 'professionals'; ela é inserida
        logo após a de infraestrutura (ou no final).
        """
        if self.secao('professionals'):
            return self
        secoes = list(self.sections)
        nova = SecaoConfig(id='professionals', name='Profissionais',
                           description='Alocação de profissionais por turma.')
        indice_infra = next((i for i, s in enumerate(secoes) if s.id.startswith('infra')), None)
        if indice_infra is None:
            secoes.append(nova)
        else:
            secoes.insert(indice_infra + 1, nova)
        return ConfiguracaoFormulario(version=self.version, sections=secoes)


# === VALORES TIPADOS ===

class ValorTexto(BaseModel):
    tipo: Literal['text'] = 'text'
    valor: str


class ValorNumero(BaseModel):
    tipo: Literal['number'] = 'number'
    valor: Union[int, float]


class ValorBooleano(BaseModel):
    tipo: Literal['boolean'] = 'boolean'
    valor: bool


class ValorData(BaseModel):
    tipo: Literal['date'] = 'date'
    valor: date


class ValorOpcao(BaseModel):
    tipo: Literal['select'] = 'select'
    valor: str


ValorCampo = Annotated[
    Union[ValorTexto, ValorNumero, ValorBooleano, ValorData, ValorOpcao],
    Field(discriminator='tipo'),
]


def _interpretar_numero(texto: str) -> Union[int, float]:
    normalizado = texto.strip().replace(',', '.')
    numero = _finito(float(normalizado))
    return int(numero) if numero.is_integer() and '.' not in normalizado else numero


def _finito(numero: Union[int, float]) -> Union[int, float]:
    if not math.isfinite(numero):
        raise ValueError(f"número inválido: '{numero}'")
    return numero


def _interpretar_data(texto: str) -> date:
    texto = texto.strip()
    for formato in ('%Y-%m-%d', '%d/%m/%Y'):
        try:
            return datetime.strptime(texto, formato).date()
        except ValueError:
            continue
    raise ValueError(f"Data inválida: '{texto}'")


def converter_valor(campo: CampoConfig, bruto: Any) -> Optional[ValorCampo]:
    """
    Converte a entrada crua (texto de formulário ou valor JSON) na variante
    tipada do campo. Retorna None para campo vazio não obrigatório.

    Raises:
        ErroValidacao: tipo desabilitado, obrigatório vazio ou valor inválido.
    """
    if not campo.habilitado:
        raise ErroValidacao(f"O tipo '{campo.type}' ainda não é suportado ({campo.name}).")

    if campo.type == 'boolean':
        if isinstance(bruto, bool):
            return ValorBooleano(valor=bruto)
        marcado = str(bruto).strip().lower() in VALORES_VERDADEIROS if bruto is not None else False
        if campo.required and not marcado:
            raise ErroValidacao(f"O campo '{campo.name}' é obrigatório.")
        return ValorBooleano(valor=marcado)

    if bruto is None or (isinstance(bruto, str) and not bruto.strip()):
        if campo.required:
            raise ErroValidacao(f"O campo '{campo.name}' é obrigatório.")
        return None

    try:
        if campo.type == 'number':
            if isinstance(bruto, (int, float)) and not isinstance(bruto, bool):
                return ValorNumero(valor=_finito(bruto))
            return ValorNumero(valor=_interpretar_numero(str(bruto)))
        if campo.type == 'date':
            if isinstance(bruto, date):
                return ValorData(valor=bruto)
            return ValorData(valor=_interpretar_data(str(bruto)))
        if campo.type == 'select':
            if str(bruto) not in campo.options:
                raise ValueError(f"'{bruto}' não é uma opção válida")
            return ValorOpcao(valor=str(bruto))
        return ValorTexto(valor=str(bruto).strip())
    except (ValueError, ValidationError) as e:
        raise ErroValidacao(f"Valor inválido para '{campo.name}': {e}") from e


def para_firestore(valor: Optional[ValorCampo]) -> Any:
    """Valor simples para gravação (datas em ISO)."""
    if valor is None:
        return None
    if isinstance(valor, ValorData):
        return valor.valor.isoformat()
    return valor.valor


def formatar_valor(campo: CampoConfig, armazenado: Any) -> str:
    """Texto de exibição usado na tela de detalhe da submissão."""
    if armazenado is None or armazenado == '':
        return 'Não informado'
    if isinstance(armazenado, bool):
        return 'Sim' if armazenado else 'Não'
    if campo.type == 'date':
        try:
            return _interpretar_data(str(armazenado)).strftime('%d/%m/%Y')
        except ValueError:
            return str(armazenado)
    return str(armazenado)


def nome_entrada(secao_id: str, campo_id: str) -> str:
    """Nome do input HTML de um campo dinâmico."""
    return f"dyn-{secao_id}-{campo_id}"


def ler_dados_dinamicos(config: ConfiguracaoFormulario, formdata) -> Tuple[Dict[str, Dict[str, Any]], Dict[str, str]]:
    """
    Lê os campos dinâmicos do request.

    Returns:
        (dados, erros): dados = {secao: {campo: valor}} na ordem do schema;
        erros = {nome_entrada: mensagem}.
    """
    dados: Dict[str, Dict[str, Any]] = {}
    erros: Dict[str, str] = {}
    for secao in config.secoes_dinamicas():
        valores: Dict[str, Any] = {}
        for campo in secao.fields:
            if not campo.habilitado:
                continue
            entrada = nome_entrada(secao.id, campo.id)
            try:
                valor = converter_valor(campo, formdata.get(entrada))
            except ErroValidacao as e:
                erros[entrada] = e.mensagem
                continue
            valores[campo.id] = para_firestore(valor)
        dados[secao.id] = valores
    return dados, erros


def carregar_configuracao(dados: Optional[dict]) -> ConfiguracaoFormulario:
    """
    Valida o documento salvo. Documentos antigos (sem 'version') são tratados
    como versão 1; ausência de documento usa a configuração padrão.

    Raises:
        ErroValidacao: documento fora do schema.
    """
    if not dados:
        return configuracao_padrao()
    try:
        config = ConfiguracaoFormulario.model_validate(dados)
    except ValidationError as e:
        logger.warning(f"Configuração de formulário inválida: {e}")
        raise ErroValidacao(f"Configuração de formulário inválida: {e}") from e
    return config.com_secao_profissionais()


def configuracao_padrao() -> ConfiguracaoFormulario:
    def campo(secao, campo_id, nome, tipo='text', **extra):
        return {'id': campo_id, 'sectionId': secao, 'name': nome, 'type': tipo, 'required': False, **extra}

    return ConfiguracaoFormulario.model_validate({
        'version': VERSAO_ATUAL,
        'sections': [
            {
                'id': 'general',
                'name': 'Dados Gerais e Modalidades',
                'fields': [
                    campo('general', 'f_nucleo', 'Núcleo', 'select', options=[str(i) for i in range(1, 13)]),
                    campo('general', 'f_endereco', 'Endereço'),
                    campo('general', 'f_bairro', 'Bairro'),
                    campo('general', 'f_cep', 'CEP'),
                    campo('general', 'f_telefone', 'Telefone (Fone)'),
                    campo('general', 'f_gestor_nome', 'Nome do Gestor(a)'),
                    campo('general', 'f_desk_total', 'Total de Carteiras', 'number'),
                    campo('general', 'f_mod_ei', 'Educação Infantil', 'boolean'),
                    campo('general', 'f_mod_1', 'Ensino Fundamental - Anos Iniciais', 'boolean'),
                    campo('general', 'f_mod_2', 'Ensino Fundamental - Anos Finais', 'boolean'),
                    campo('general', 'f_mod_3', 'Educação de Jovens e Adultos - EJA', 'boolean'),
                ],
            },
            {'id': 'infrastructure', 'name': 'Infraestrutura', 'fields': []},
            {'id': 'professionals', 'name': 'Profissionais', 'fields': []},
            {
                'id': 'tech',
                'name': 'Tecnologia',
                'fields': [
                    campo('tech', 'f_tech_1', 'Possui Internet?', 'boolean'),
                    campo('tech', 'f_tech_2', 'Velocidade (Mbps)', 'number'),
                ],
            },
            {'id': 'cultural', 'name': 'Cultural', 'fields': []},
            {'id': 'maintenance', 'name': 'Manutenção', 'fields': []},
        ],
    })


def secoes_formatadas(config: ConfiguracaoFormulario, dados_dinamicos: Optional[dict]) -> List[dict]:
    """[{id, name, campos: [(rotulo, texto)]}] para a tela de detalhe."""
    dados_dinamicos = dados_dinamicos or {}
    resultado = []
    for secao in config.secoes_dinamicas():
        valores = dados_dinamicos.get(secao.id) or {}
        campos = [(c.name, formatar_valor(c, valores.get(c.id))) for c in secao.fields if c.habilitado]
        resultado.append({'id': secao.id, 'name': secao.name, 'campos': campos})
    return resultado
