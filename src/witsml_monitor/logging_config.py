"""
Configuracion de logging del proyecto WITSML Monitor.

- Todos los modulos usan logging.getLogger(__name__), que cuelga del logger "witsml_monitor".
- El nivel sale de SETTINGS.nivel_log salvo que se pida otro explicitamente.
- Streamlit re-ejecuta main.py en cada interaccion: setup_logging se puede llamar
  muchas veces y siempre deja un solo juego de handlers.
"""

import logging
import sys
from typing import Optional, Union

from witsml_monitor.config.settings import SETTINGS
from witsml_monitor.model.errores import ConfigError

LOGGER_RAIZ = "witsml_monitor"

FORMATO = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
FORMATO_HORA = "%H:%M:%S"


def nivel_de_log(nivel: Union[int, str, None] = None) -> int:
    """Traduce "INFO" / "debug" / logging.INFO a un nivel numerico (None -> SETTINGS.nivel_log)."""
    if nivel is None:
        nivel = SETTINGS.nivel_log

    if isinstance(nivel, str):
        valor = logging.getLevelName(nivel.strip().upper())
        if not isinstance(valor, int):
            raise ConfigError(f"Nivel de log invalido: '{nivel}'")
        return valor

    return int(nivel)


def setup_logging(
    nivel: Union[int, str, None] = None,
    archivo_log: Optional[str] = None,
) -> logging.Logger:
    """
    Prepara el logger "witsml_monitor": consola (stdout) y, si se indica, un archivo.

    Los handlers de una llamada anterior se cierran antes de agregar los nuevos,
    asi un archivo de log no queda abierto dos veces.
    """
    nivel = nivel_de_log(nivel)

    logger = logging.getLogger(LOGGER_RAIZ)
    logger.setLevel(nivel)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(FORMATO, datefmt=FORMATO_HORA)

    handlers = [logging.StreamHandler(sys.stdout)]
    if archivo_log:
        handlers.append(logging.FileHandler(archivo_log, mode="a", encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(nivel)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug(f"Logging listo (nivel {logging.getLevelName(nivel)})")
    return logger
