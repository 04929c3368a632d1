"""
Módulo de Logging Centralizado.

Substitui o uso de 'print' por logs estruturados, essenciais para
monitoramento em ambientes Cloud (Google Cloud Logging).
"""

import logging
import os
import sys

FORMATO_PADRAO = '[%(asctime)s] %(levelname)s in %(module)s: %(message)s'


def get_logger(name: str) -> logging.Logger:
    """
    Configura e retorna uma instância de logger com formatação padronizada.

    O nível vem da variável de ambiente LOG_LEVEL (padrão INFO).

    Args:
        name (str): O nome do módulo que está chamando o log (geralmente __name__).

    Returns:
        logging.Logger: Instância configurada do logger.
    """
    logger = logging.getLogger(name)

    # Evita adicionar múltiplos handlers se o logger já estiver configurado
    if not logger.handlers:
        nivel = os.environ.get('LOG_LEVEL', 'INFO').upper()
        logger.setLevel(getattr(logging, nivel, logging.INFO))

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(FORMATO_PADRAO))
        logger.addHandler(handler)
        # O handler próprio já imprime; não duplica no root
        logger.propagate = False

    return logger
