"""
Constantes Globais do Sistema.
Fonte Única da Verdade (Single Source of Truth) para dados do censo escolar.
"""

# === COLEÇÕES DO FIRESTORE ===
COLECAO_ESCOLAS = 'schools'
COLECAO_SUBMISSOES = 'submissions'
COLECAO_PROFISSIONAIS = 'professionals'
COLECAO_USUARIOS = 'users'
COLECAO_PERFIS = 'roles'
COLECAO_CONFIGURACOES = 'settings'

DOC_HOME = 'homePage'
DOC_FORMULARIO = 'formConfig'

# Marcador gravado em submittedBy quando não há usuário logado
USUARIO_ANONIMO = 'anonimo'

# === SEÇÕES TEMÁTICAS DA SUBMISSÃO ===
# Uma submissão só está "completa" quando as cinco estão 'completed'
SECOES_TEMATICAS = ('general', 'infrastructure', 'technology', 'cultural', 'maintenance')
STATUS_PENDENTE = 'pending'
STATUS_COMPLETO = 'completed'

# === PERMISSÕES (por seção) ===
PERMISSOES = {
    'general': 'Dados Gerais',
    'infrastructure': 'Infraestrutura',
    'professionals': 'Profissionais',
    'technology': 'Tecnologia',
    'cultural': 'Cultural',
    'maintenance': 'Manutenção',
    'users': 'Gerenciar Usuários',
}

# === TURNOS ===
TURNOS = {
    'morning': 'Manhã',
    'afternoon': 'Tarde',
    'night': 'Noite',
    'integral': 'Integral',
}
# Sufixo usado nos campos da sala (gradeMorning, studentsMorning, ...)
SUFIXO_TURNO = {
    'morning': 'Morning',
    'afternoon': 'Afternoon',
    'night': 'Night',
    'integral': 'Integral',
}
OCUPACAO_TURNOS = 'turnos'
OCUPACAO_INTEGRAL = 'integral'

SERIES = [
    'Berçário I', 'Berçário II', 'Maternal I', 'Maternal II', 'Pré I', 'Pré II',
    '1º Ano', '2º Ano', '3º Ano', '4º Ano', '5º Ano',
    '6º Ano', '7º Ano', '8º Ano', '9º Ano',
    'Não se aplica',
]

TIPOS_CARTEIRA = ['Vermelha', 'Verde', 'Azul', 'Laranja', 'Hexagonal']

TIPOS_CONTRATO = ['Efetivo', 'Contratado', 'Estagiário', 'Cedido']

# Recursos tecnológicos oferecidos como "toggle" no formulário
TECNOLOGIAS = [
    'Kits de Robótica',
    'Chromebooks',
    'Notebooks',
    'Modems',
    'Impressoras',
    'Modems com Defeito',
]

# Prefixo do campo dinâmico (seção 'general') que guarda o total de carteiras.
# FIXME: convenção frágil por nome de campo; migrar para um campo fixo do schema.
PREFIXO_CARTEIRAS = 'f_desk'

# Firestore aceita no máximo 500 operações por WriteBatch
LIMITE_OPERACOES_LOTE = 500

NAO_ENCONTRADO = 'N/A'

DADOS_CENSO = {
    'series': SERIES,
    'turnos': TURNOS,
    'tipos_contrato': TIPOS_CONTRATO,
    'tipos_carteira': TIPOS_CARTEIRA,
    'tecnologias': TECNOLOGIAS,
    'permissoes': PERMISSOES,
}
