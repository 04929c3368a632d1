"""
Importação em Lote de Dados de Referência (Escolas e Profissionais)

O administrador cola um array JSON; o texto é validado por inteiro antes de
qualquer escrita e a coleção é substituída num único WriteBatch (tudo ou
nada). O resultado volta para a caixa de texto com os ids definitivos.
"""

import json
from typing import Any, Dict, List

from censo.core.constants import COLECAO_ESCOLAS, COLECAO_PROFISSIONAIS, LIMITE_OPERACOES_LOTE
from censo.core.database import exigir_db, ids_da_colecao
from censo.core.erros import ErroConexao, ErroValidacao
from censo.core.logger import get_logger

logger = get_logger(__name__)

# Planilhas da secretaria usam os cabeçalhos em maiúsculas
CHAVES_NOME = ('name', 'UNIDADE EDUCACIONAL')
CHAVES_INEP = ('inep', 'INEP')
CAMPOS_OPCIONAIS_ESCOLA = ('address', 'number', 'neighborhood', 'zipCode', 'email', 'phoneNumbers')


def _ler_array(texto: str) -> List[Any]:
    try:
        dados = json.loads(texto)
    except (TypeError, json.JSONDecodeError) as e:
        raise ErroValidacao(f"JSON inválido: {e}") from e
    if not isinstance(dados, list):
        raise ErroValidacao("O JSON deve ser um array de objetos.")
    return dados


def _primeiro_valor(item: dict, chaves) -> Any:
    for chave in chaves:
        valor = item.get(chave)
        if valor is not None and str(valor).strip() != '':
            return valor
    return None


def _inep_para_id(inep: Any) -> str:
    """INEP numérico ou texto vira a mesma chave ('123' == 123 == 123.0)."""
    if isinstance(inep, bool):
        raise ValueError("INEP não pode ser booleano")
    if isinstance(inep, float) and inep.is_integer():
        inep = int(inep)
    return str(inep).strip()


def interpretar_escolas(texto: str) -> List[Dict[str, Any]]:
    """
    Valida o JSON de escolas.

    Cada item precisa de nome ('name' ou 'UNIDADE EDUCACIONAL') e INEP
    ('inep' ou 'INEP'). O id é o INEP em texto; INEPs repetidos colapsam num
    único registro (vale o último, mantendo a posição do primeiro).

    Raises:
        ErroValidacao: com o índice do primeiro item inválido.
    """
    escolas: Dict[str, Dict[str, Any]] = {}
    for indice, item in enumerate(_ler_array(texto)):
        if not isinstance(item, dict):
            raise ErroValidacao(f"Item {indice}: esperado um objeto.", indice=indice)
        nome = _primeiro_valor(item, CHAVES_NOME)
        inep = _primeiro_valor(item, CHAVES_INEP)
        if nome is None or inep is None:
            raise ErroValidacao(f"Item {indice}: 'name' e 'inep' são obrigatórios.", indice=indice)
        try:
            escola_id = _inep_para_id(inep)
        except ValueError as e:
            raise ErroValidacao(f"Item {indice}: {e}", indice=indice) from e

        escola = {'id': escola_id, 'name': str(nome).strip(), 'inep': escola_id}
        for campo in CAMPOS_OPCIONAIS_ESCOLA:
            if item.get(campo) not in (None, ''):
                escola[campo] = item[campo]
        escolas[escola_id] = escola
    return list(escolas.values())


def interpretar_profissionais(texto: str) -> List[Dict[str, Any]]:
    """
    Valida o JSON de profissionais: cada item precisa de 'name' (texto não
    vazio). Um 'id' existente é reaproveitado.
    """
    profissionais = []
    for indice, item in enumerate(_ler_array(texto)):
        if not isinstance(item, dict):
            raise ErroValidacao(f"Item {indice}: esperado um objeto.", indice=indice)
        nome = item.get('name')
        if not isinstance(nome, str) or not nome.strip():
            raise ErroValidacao(f"Item {indice}: o campo 'name' é obrigatório.", indice=indice)
        prof_id = item.get('id')
        profissionais.append({'id': str(prof_id) if prof_id not in (None, '') else None, 'name': nome.strip()})
    return profissionais


def _verificar_limite(total_operacoes: int) -> None:
    if total_operacoes > LIMITE_OPERACOES_LOTE:
        raise ErroValidacao(
            f"Importação grande demais para um único lote ({total_operacoes} operações; "
            f"limite {LIMITE_OPERACOES_LOTE})."
        )


def substituir_escolas(db: Any, escolas: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Substitui a coleção 'schools' pelo conteúdo importado, atomicamente.
    Escolas gravadas que não aparecem na importação são removidas.
    """
    exigir_db(db)
    colecao = db.collection(COLECAO_ESCOLAS)
    try:
        novos_ids = {e['id'] for e in escolas}
        removidos = [doc_id for doc_id in ids_da_colecao(db, COLECAO_ESCOLAS) if doc_id not in novos_ids]
        _verificar_limite(len(escolas) + len(removidos))

        lote = db.batch()
        for escola in escolas:
            dados = {k: v for k, v in escola.items() if k != 'id'}
            lote.set(colecao.document(escola['id']), dados)
        for doc_id in removidos:
            lote.delete(colecao.document(doc_id))
        lote.commit()
    except ErroValidacao:
        raise
    except Exception as e:
        logger.error(f"Falha ao gravar lote de escolas: {e}", exc_info=True)
        raise ErroConexao(f"Não foi possível salvar a lista de escolas: {e}") from e

    logger.info(f"Lista de escolas substituída: {len(escolas)} gravadas, {len(removidos)} removidas.")
    return escolas


def substituir_profissionais(db: Any, profissionais: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Substitui a coleção 'professionals'. Itens sem id recebem um id gerado
    pelo Firestore; apenas o nome é persistido.
    """
    exigir_db(db)
    colecao = db.collection(COLECAO_PROFISSIONAIS)
    try:
        resultado = []
        refs = []
        for prof in profissionais:
            ref = colecao.document(prof['id']) if prof.get('id') else colecao.document()
            refs.append((ref, prof['name']))
            resultado.append({'id': ref.id, 'name': prof['name']})

        novos_ids = {p['id'] for p in resultado}
        removidos = [doc_id for doc_id in ids_da_colecao(db, COLECAO_PROFISSIONAIS) if doc_id not in novos_ids]
        _verificar_limite(len(refs) + len(removidos))

        lote = db.batch()
        for ref, nome in refs:
            lote.set(ref, {'name': nome})
        for doc_id in removidos:
            lote.delete(colecao.document(doc_id))
        lote.commit()
    except ErroValidacao:
        raise
    except Exception as e:
        logger.error(f"Falha ao gravar lote de profissionais: {e}", exc_info=True)
        raise ErroConexao(f"Não foi possível salvar a lista de profissionais: {e}") from e

    logger.info(f"Lista de profissionais substituída: {len(resultado)} gravados, {len(removidos)} removidos.")
    return resultado


def para_texto(registros: List[Dict[str, Any]]) -> str:
    """Forma canônica devolvida para a caixa de texto do editor."""
    return json.dumps(registros, ensure_ascii=False, indent=2)
