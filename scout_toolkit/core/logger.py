"""
Módulo de Logging Centralizado.

Todos os módulos obtêm o seu logger aqui, com o mesmo formato e o
nível definido em LOG_LEVEL (stdout, para o Cloud Logging).
"""

import logging
import os
import sys

FORMATO = '[%(asctime)s] %(levelname)s in %(module)s: %(message)s'


def get_logger(name: str) -> logging.Logger:
    """
    Devolve o logger do módulo, configurado uma única vez.

    Args:
        name (str): Nome do módulo (normalmente __name__).

    Returns:
        logging.Logger: Logger com handler para stdout.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        nivel = os.environ.get('LOG_LEVEL', 'INFO').upper()
        logger.setLevel(getattr(logging, nivel, logging.INFO))

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(FORMATO))
        logger.addHandler(handler)

    return logger
