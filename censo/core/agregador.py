"""
Agregador de Submissões (Read Model do Dashboard)

Funções puras sobre (submissões, escolas). Nenhuma função altera as listas ou
dicionários recebidos; todas retornam estruturas novas, prontas para as
tabelas do painel administrativo e para a exportação CSV.
"""

import csv
import io
import math
from collections import Counter, OrderedDict
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo

from censo.core.constants import (
    NAO_ENCONTRADO,
    OCUPACAO_INTEGRAL,
    PREFIXO_CARTEIRAS,
    SECOES_TEMATICAS,
    STATUS_COMPLETO,
    SUFIXO_TURNO,
    TURNOS,
)

FUSO_PADRAO = 'America/Sao_Paulo'


# === LOOKUPS ===

def mapa_escolas(escolas: Iterable[dict]) -> Dict[str, dict]:
    """Índice id -> escola. Ids repetidos: vale o último."""
    return {escola['id']: escola for escola in escolas if escola.get('id') is not None}


def mapa_profissionais(profissionais: Iterable[dict]) -> Dict[str, str]:
    return {p['id']: p.get('name', '') for p in profissionais if p.get('id') is not None}


def _salas(submissao: dict) -> List[dict]:
    infra = submissao.get('infrastructure') or {}
    return infra.get('classrooms') or []


# === FILTRO ===

def _corresponde(escola: dict, termo: str) -> bool:
    nome = str(escola.get('name') or '').lower()
    inep = str(escola.get('inep') or '').lower()
    return termo in nome or termo in inep


def filtrar_submissoes(submissoes: Iterable[dict], escolas: Dict[str, dict], consulta: str = '') -> List[dict]:
    """
    Filtra por nome ou INEP da escola (contém, sem diferenciar maiúsculas).

    Consulta vazia devolve a visão sem filtro (inclusive submissões de escolas
    desconhecidas). Com consulta, submissões sem escola correspondente somem.
    """
    termo = (consulta or '').strip().lower()
    if not termo:
        return list(submissoes)

    resultado = []
    for submissao in submissoes:
        escola = escolas.get(submissao.get('schoolId'))
        if escola and _corresponde(escola, termo):
            resultado.append(submissao)
    return resultado


def filtrar_escolas(escolas: Iterable[dict], consulta: str = '') -> List[dict]:
    termo = (consulta or '').strip().lower()
    return [e for e in escolas if not termo or _corresponde(e, termo)]


# === MÉTRICAS ===

def submissao_completa(submissao: dict) -> bool:
    """Completa = as cinco seções temáticas com status 'completed'."""
    return all((submissao.get(secao) or {}).get('status') == STATUS_COMPLETO for secao in SECOES_TEMATICAS)


def _eh_numero(valor: Any) -> bool:
    return isinstance(valor, (int, float)) and not isinstance(valor, bool)


def carteiras_da_submissao(submissao: dict) -> float:
    """
    Procura, em dynamicData.general, a primeira chave que começa com
    PREFIXO_CARTEIRAS. Valor não numérico conta como zero.
    """
    geral = (submissao.get('dynamicData') or {}).get('general') or {}
    for chave, valor in geral.items():
        if chave.startswith(PREFIXO_CARTEIRAS):
            return valor if _eh_numero(valor) and math.isfinite(valor) else 0
    return 0


def calcular_metricas(submissoes: List[dict], escolas: List[dict]) -> Dict[str, Any]:
    total_escolas = len(escolas)
    completas = sum(1 for s in submissoes if submissao_completa(s))
    return {
        'total_escolas': total_escolas,
        'total_salas': sum(len(_salas(s)) for s in submissoes),
        'total_carteiras': sum(carteiras_da_submissao(s) for s in submissoes),
        'capacidade_total': sum(int(sala.get('studentCapacity') or 0) for s in submissoes for sala in _salas(s)),
        'submissoes_completas': completas,
        'submissoes_iniciadas': len(submissoes) - completas,
    }


# === DATAS ===

def normalizar_data(valor: Any) -> Optional[datetime]:
    """
    Aceita datetime (inclusive o DatetimeWithNanoseconds do Firestore),
    Timestamp serializado {seconds, nanoseconds}, string ISO ou epoch.
    Datas sem fuso são tratadas como UTC. Retorna None se não conseguir.
    """
    if valor is None:
        return None
    try:
        if isinstance(valor, datetime):
            data = valor
        elif isinstance(valor, date):
            data = datetime(valor.year, valor.month, valor.day)
        elif isinstance(valor, dict) and 'seconds' in valor:
            data = datetime.fromtimestamp(valor['seconds'] + valor.get('nanoseconds', 0) / 1e9, tz=timezone.utc)
        elif _eh_numero(valor):
            data = datetime.fromtimestamp(valor, tz=timezone.utc)
        elif isinstance(valor, str):
            data = datetime.fromisoformat(valor.replace('Z', '+00:00'))
        else:
            return None
    except (ValueError, OverflowError, OSError, TypeError):
        return None
    if data.tzinfo is None:
        data = data.replace(tzinfo=timezone.utc)
    return data


def formatar_data_hora(valor: Any, fuso: str = FUSO_PADRAO) -> str:
    data = normalizar_data(valor)
    if not data:
        return NAO_ENCONTRADO
    return data.astimezone(ZoneInfo(fuso)).strftime('%d/%m/%Y %H:%M')


def contagem_por_dia(submissoes: Iterable[dict], fuso: str = FUSO_PADRAO) -> List[Dict[str, Any]]:
    """Submissões por dia (dd/mm/yyyy no fuso informado), do mais antigo ao mais recente."""
    zona = ZoneInfo(fuso)
    por_dia: Counter = Counter()
    for submissao in submissoes:
        data = normalizar_data(submissao.get('submittedAt'))
        if data:
            por_dia[data.astimezone(zona).date()] += 1
    return [{'dia': dia.strftime('%d/%m/%Y'), 'total': por_dia[dia]} for dia in sorted(por_dia)]


# === PROJEÇÕES 2026 ===

def _turnos_da_sala(sala: dict) -> List[str]:
    if sala.get('occupationType') == OCUPACAO_INTEGRAL:
        return ['integral']
    return ['morning', 'afternoon', 'night']


def linhas_projecao_turmas(submissoes: Iterable[dict], escolas: Dict[str, dict]) -> List[Dict[str, Any]]:
    """
    Uma linha por (sala, turno com série definida), comparando série e alunos
    atuais com a série projetada para 2026.
    """
    linhas = []
    for submissao in submissoes:
        escola = escolas.get(submissao.get('schoolId'))
        if not escola:
            continue
        for sala in _salas(submissao):
            for turno in _turnos_da_sala(sala):
                sufixo = SUFIXO_TURNO[turno]
                serie = sala.get(f'grade{sufixo}')
                if not serie:
                    continue
                linhas.append({
                    'escola': escola.get('name', ''),
                    'inep': escola.get('inep', ''),
                    'sala': sala.get('name', ''),
                    'turno': TURNOS[turno],
                    'serie_atual': serie,
                    'alunos_atuais': int(sala.get(f'students{sufixo}') or 0),
                    'serie_projetada_2026': sala.get(f'gradeProjection2026{sufixo}') or NAO_ENCONTRADO,
                })
    return linhas


def linhas_projecao_professores(submissoes: Iterable[dict], escolas: Dict[str, dict],
                                profissionais: Dict[str, str]) -> List[Dict[str, Any]]:
    """
    Uma linha por professor projetado para 2026 em cada alocação.
    Alocação sem professores projetados gera uma única linha sem professor.
    """
    linhas = []
    for submissao in submissoes:
        escola = escolas.get(submissao.get('schoolId'))
        if not escola:
            continue
        alocacoes = (submissao.get('professionals') or {}).get('allocations') or []
        for alocacao in alocacoes:
            base = {
                'escola': escola.get('name', ''),
                'sala': alocacao.get('classroomName', ''),
                'serie': alocacao.get('grade', ''),
                'turno': TURNOS.get(alocacao.get('turn'), TURNOS['integral']),
            }
            projetados = alocacao.get('teachers2026') or []
            if not projetados:
                linhas.append({**base, **_professor_vazio()})
                continue
            for professor in projetados:
                linhas.append({
                    **base,
                    'professor': profissionais.get(professor.get('professionalId') or '', NAO_ENCONTRADO),
                    'matricula': professor.get('matricula', ''),
                    'tipo_contrato': professor.get('contractType', ''),
                    'carga_horaria': professor.get('workload', ''),
                    'situacao': professor.get('situation', ''),
                    'anotacoes': professor.get('annotations', ''),
                })
    return linhas


def _professor_vazio() -> Dict[str, str]:
    return {
        'professor': '',
        'matricula': '',
        'tipo_contrato': '',
        'carga_horaria': '',
        'situacao': '',
        'anotacoes': '',
    }


# === GRÁFICOS / EXPORTAÇÃO ===

def contagem_modalidades(submissoes: Iterable[dict]) -> Dict[str, int]:
    """Quantas submissões oferecem cada modalidade, na ordem em que aparecem."""
    contagem: Dict[str, int] = OrderedDict()
    for submissao in submissoes:
        for modalidade in submissao.get('teachingModalities') or []:
            if modalidade.get('offered'):
                nome = modalidade.get('name', '')
                contagem[nome] = contagem.get(nome, 0) + 1
    return dict(contagem)


CABECALHO_CSV = [
    'Nome da Escola', 'INEP', 'Data da Submissão', 'Status Geral', 'Status Infraestrutura',
    'Status Tecnologia', 'Status Cultural', 'Status Manutenção', 'Total de Salas',
    'Capacidade Total Alunos', 'Acesso à Internet', 'Recursos Tecnológicos', 'Modalidades Ofertadas',
]


def exportar_csv(submissoes: Iterable[dict], escolas: Dict[str, dict], fuso: str = FUSO_PADRAO) -> str:
    """CSV da visão filtrada; submissões sem escola conhecida ficam de fora."""
    buffer = io.StringIO()
    escritor = csv.writer(buffer)
    escritor.writerow(CABECALHO_CSV)
    for submissao in submissoes:
        escola = escolas.get(submissao.get('schoolId'))
        if not escola:
            continue
        salas = _salas(submissao)
        tecnologia = submissao.get('technology') or {}
        recursos = '; '.join(f"{r.get('name')}: {r.get('quantity', 0)}" for r in tecnologia.get('resources') or [])
        modalidades = '; '.join(m.get('name', '') for m in submissao.get('teachingModalities') or [] if m.get('offered'))
        escritor.writerow([
            escola.get('name', ''),
            escola.get('inep', ''),
            formatar_data_hora(submissao.get('submittedAt'), fuso),
            *[(submissao.get(secao) or {}).get('status', 'pending') for secao in SECOES_TEMATICAS],
            len(salas),
            sum(int(sala.get('studentCapacity') or 0) for sala in salas),
            'Sim' if tecnologia.get('hasInternetAccess') else 'Não',
            recursos,
            modalidades,
        ])
    return buffer.getvalue()
