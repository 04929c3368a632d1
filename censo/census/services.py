"""
Camada de Serviço do Censo (Census Submission Builder)

Transforma os dados validados do formulário no documento de submissão,
deriva as alocações por turma e grava a submissão no Firestore com
timestamp do servidor.
"""

import uuid
from typing import Any, Dict, Iterable, List, Optional

from google.cloud import firestore

from censo.core.constants import (
    COLECAO_ESCOLAS,
    COLECAO_PROFISSIONAIS,
    COLECAO_SUBMISSOES,
    OCUPACAO_INTEGRAL,
    OCUPACAO_TURNOS,
    STATUS_COMPLETO,
    STATUS_PENDENTE,
    SUFIXO_TURNO,
    TECNOLOGIAS,
    USUARIO_ANONIMO,
)
from censo.core.database import buscar_documento, exigir_db, listar_colecao
from censo.core.erros import ErroConexao, NaoEncontrado
from censo.core.logger import get_logger

logger = get_logger(__name__)

TURNOS_SALA = ('morning', 'afternoon', 'night')
CONTADORES_SALA = ('studentCapacity', 'outlets', 'tvCount', 'chairCount', 'fanCount')


def _inteiro(valor: Any) -> int:
    return int(valor) if valor not in (None, '') else 0


def _texto(valor: Any) -> str:
    return (valor or '').strip() if isinstance(valor, str) else ''


def listar_escolas(db: Any) -> List[dict]:
    escolas = listar_colecao(db, COLECAO_ESCOLAS)
    return sorted(escolas, key=lambda e: str(e.get('name', '')).lower())


def listar_profissionais(db: Any) -> List[dict]:
    profissionais = listar_colecao(db, COLECAO_PROFISSIONAIS)
    return sorted(profissionais, key=lambda p: str(p.get('name', '')).lower())


def novo_id_sala() -> str:
    return f"sala_{uuid.uuid4().hex[:10]}"


def montar_sala(dados: dict) -> dict:
    """
    Normaliza uma sala vinda do formulário. Campos do modo de ocupação que
    não foi escolhido são descartados.
    """
    ocupacao = dados.get('occupationType') or OCUPACAO_TURNOS
    sala = {
        'id': _texto(dados.get('id')) or novo_id_sala(),
        'name': _texto(dados.get('name')),
        'hasInternet': bool(dados.get('hasInternet')),
        'hasAirConditioning': bool(dados.get('hasAirConditioning')),
        'deskType': _texto(dados.get('deskType')),
        'occupationType': ocupacao,
        'observations': _texto(dados.get('observations')),
    }
    for contador in CONTADORES_SALA:
        sala[contador] = _inteiro(dados.get(contador))

    turnos = ['integral'] if ocupacao == OCUPACAO_INTEGRAL else list(TURNOS_SALA)
    for turno in turnos:
        sufixo = SUFIXO_TURNO[turno]
        sala[f'grade{sufixo}'] = _texto(dados.get(f'grade{sufixo}'))
        sala[f'students{sufixo}'] = _inteiro(dados.get(f'students{sufixo}'))
        sala[f'gradeProjection2026{sufixo}'] = _texto(dados.get(f'gradeProjection2026{sufixo}'))
    return sala


def _professores(itens: Iterable[dict], campos: Iterable[str]) -> List[dict]:
    """Descarta linhas de professor totalmente em branco."""
    resultado = []
    for item in itens or []:
        limpo = {}
        for campo in campos:
            valor = item.get(campo)
            limpo[campo] = valor if isinstance(valor, int) else _texto(valor)
        if any(v not in ('', None) for v in limpo.values()):
            resultado.append(limpo)
    return resultado


CAMPOS_PROFESSOR = ('professionalId', 'contractType', 'workload', 'observations')
CAMPOS_PROFESSOR_2026 = ('professionalId', 'matricula', 'classroomName', 'turn', 'contractType', 'workload',
                         'situation', 'annotations')


def derivar_alocacoes(salas: List[dict], informadas: Optional[List[dict]] = None) -> List[dict]:
    """
    Uma alocação por (sala, turno com série definida). Professores já
    informados para o mesmo (classroomId, turn) são preservados; alocações
    de salas ou turnos que não existem mais são descartadas.
    """
    existentes = {(a.get('classroomId'), a.get('turn')): a for a in informadas or []}
    alocacoes = []
    for sala in salas:
        turnos = ['integral'] if sala.get('occupationType') == OCUPACAO_INTEGRAL else list(TURNOS_SALA)
        for turno in turnos:
            serie = sala.get(f'grade{SUFIXO_TURNO[turno]}')
            if not serie:
                continue
            anterior = existentes.get((sala['id'], turno)) or {}
            alocacoes.append({
                'classroomId': sala['id'],
                'classroomName': sala['name'],
                'turn': turno,
                'grade': serie,
                'teachers': _professores(anterior.get('teachers'), CAMPOS_PROFESSOR),
                'teachers2026': _professores(anterior.get('teachers2026'), CAMPOS_PROFESSOR_2026),
            })
    return alocacoes


def montar_recursos(tecnologias: Iterable[dict]) -> List[dict]:
    """Apenas os recursos marcados e que fazem parte da lista fixa."""
    recursos = []
    for item in tecnologias or []:
        if item.get('ativo') and item.get('name') in TECNOLOGIAS:
            recursos.append({'name': item['name'], 'quantity': _inteiro(item.get('quantity'))})
    return recursos


def _tem_valor(secao: Optional[dict]) -> bool:
    return any(bool(v) for v in (secao or {}).values())


def _status(completo: bool) -> str:
    return STATUS_COMPLETO if completo else STATUS_PENDENTE


def calcular_status(submissao: dict) -> Dict[str, str]:
    """Status de cada seção temática a partir do conteúdo preenchido."""
    dinamicos = submissao.get('dynamicData') or {}
    tecnologia = submissao.get('technology') or {}
    return {
        'general': _status(_tem_valor(dinamicos.get('general'))),
        'infrastructure': _status(bool((submissao.get('infrastructure') or {}).get('classrooms'))),
        'technology': _status(bool(tecnologia.get('resources')) or bool(tecnologia.get('hasInternetAccess'))
                              or _tem_valor(dinamicos.get('tech'))),
        'cultural': _status(_tem_valor(dinamicos.get('cultural'))),
        'maintenance': _status(_tem_valor(dinamicos.get('maintenance'))),
    }


def montar_submissao(dados: dict, dados_dinamicos: Optional[Dict[str, Dict[str, Any]]] = None) -> dict:
    """
    Monta o documento de submissão a partir de form.data (CensusForm).
    Não inclui submittedAt/submittedBy (definidos na gravação).
    """
    salas = [montar_sala(s) for s in dados.get('classrooms') or []]
    modalidades = [
        {
            'name': _texto(m.get('name')),
            'offered': bool(m.get('offered')),
            'studentCount': _inteiro(m.get('studentCount')),
        }
        for m in dados.get('teachingModalities') or []
    ]
    alocacoes = derivar_alocacoes(salas, dados.get('allocations'))

    submissao = {
        'schoolId': dados.get('schoolId'),
        'infrastructure': {'classrooms': salas},
        'teachingModalities': modalidades,
        'technology': {
            'resources': montar_recursos(dados.get('technologies')),
            'hasInternetAccess': bool(dados.get('hasInternetAccess')),
        },
        'professionals': {'allocations': alocacoes},
        'dynamicData': dados_dinamicos or {},
    }

    status = calcular_status(submissao)
    submissao['general'] = {'status': status['general']}
    submissao['infrastructure']['status'] = status['infrastructure']
    submissao['technology']['status'] = status['technology']
    submissao['cultural'] = {'status': status['cultural']}
    submissao['maintenance'] = {'status': status['maintenance']}
    submissao['professionals']['status'] = _status(any(a['teachers'] for a in alocacoes))
    return submissao


def registrar_submissao(db: Any, submissao: dict, usuario_id: Optional[str]) -> str:
    """
    Grava um novo documento em 'submissions'.

    Raises:
        NaoEncontrado: a escola referenciada não existe.
        ErroConexao: banco indisponível ou falha na escrita.
    """
    exigir_db(db)
    escola_id = submissao.get('schoolId')
    if not escola_id or buscar_documento(db, COLECAO_ESCOLAS, escola_id) is None:
        raise NaoEncontrado(f"Escola '{escola_id}' não encontrada.")

    documento = {
        **submissao,
        'submittedAt': firestore.SERVER_TIMESTAMP,
        'submittedBy': usuario_id or USUARIO_ANONIMO,
    }
    try:
        _, ref = db.collection(COLECAO_SUBMISSOES).add(documento)
    except Exception as e:
        logger.error(f"Erro ao gravar submissão da escola {escola_id}: {e}", exc_info=True)
        raise ErroConexao(f"Falha ao gravar a submissão: {e}") from e

    logger.info(f"Submissão {ref.id} registrada para a escola {escola_id} por {documento['submittedBy']}")
    return ref.id
