"""
Catalogo de canales WITSML del sistema.

- CANALES_FIJOS: canales que todo punto generado contiene, en el orden de escritura.
- PARAMETROS_DEFAULT: parametros configurables que ofrece el generador por defecto.
- Normalizacion de alias: un archivo puede traer "bitDepth", "BITDEPTH" o "DBTM" para el mismo canal.
  Se traduce todo al nombre canonico UNA sola vez, cuando el dataset entra al playback.

Regla de precedencia:
- Si un punto trae el nombre canonico y un alias a la vez, gana el canonico.
- Entre dos alias, gana el primero que aparece en el punto.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping

from witsml_monitor.model.errores import ConfigError
from witsml_monitor.model.muestra import Dataset, ParameterSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CanalFijo:
    name: str
    mnemonic: str
    label: str
    unit: str
    data_kind: str = "double"


CANALES_FIJOS = (
    CanalFijo("timestamp", "TIME", "Time", "s", "date time"),
    CanalFijo("bitDepth", "DBTM", "Bit Depth", "m", "measured depth"),
    CanalFijo("holeDepth", "DMEA", "Hole Depth", "m", "measured depth"),
    CanalFijo("blockPosition", "BLOCKPOSITION", "Block Position", "ft"),
    CanalFijo("stroke1", "STROKE1", "Stroke 1", "spm"),
    CanalFijo("stroke2", "STROKE2", "Stroke 2", "spm"),
    CanalFijo("stroke3", "STROKE3", "Stroke 3", "spm"),
    CanalFijo("mudFlowOut", "MUDFLOWOUT", "Mud Flow Out", "gal/min"),
)

NOMBRES_FIJOS = tuple(c.name for c in CANALES_FIJOS)
MNEMONICOS_FIJOS = {c.mnemonic: c for c in CANALES_FIJOS}


PARAMETROS_DEFAULT = (
    ParameterSpec("hookLoad", "Hook Load", 140, 160, "kips"),
    ParameterSpec("weightOnBit", "Weight on Bit", 10, 20, "klbs"),
    ParameterSpec("rop", "Rate of Penetration", 25, 45, "ft/hr"),
    ParameterSpec("rotarySpeed", "Rotary Speed", 90, 110, "rpm"),
    ParameterSpec("torque", "Torque", 6500, 7500, "ft-lbs"),
    ParameterSpec("mudFlowIn", "Mud Flow In", 280, 320, "gal/min"),
    ParameterSpec("pumpPressure", "Pump Pressure", 3000, 3300, "psi"),
    ParameterSpec("tempIn", "Temp In", 55, 62, "°F"),
    ParameterSpec("tempOut", "Temp Out", 60, 68, "°F"),
)


def mnemonico(name: str) -> str:
    """Tag XML de un canal: mnemonico fijo (DBTM, DMEA, ...) o el nombre en mayusculas."""
    for canal in CANALES_FIJOS:
        if canal.name == name:
            return canal.mnemonic
    return name.upper()


def habilitados(parametros: Iterable[ParameterSpec]) -> list:
    return [p for p in parametros if p.enabled]


def validar_parametros(parametros: Iterable[ParameterSpec]) -> list:
    """
    Valida el conjunto de parametros y retorna solo los habilitados (en orden).

    Errores (ConfigError):
    - nombre repetido
    - nombre que pisa un canal fijo (bitDepth, stroke3, ...)
    - dos nombres que terminan en el mismo tag XML (ej: "rop" y "ROP")
    """
    vistos = set()
    tags = {}
    reservados = {n.lower() for n in NOMBRES_FIJOS} | {m.lower() for m in MNEMONICOS_FIJOS}

    for p in parametros:
        if p.name in vistos:
            raise ConfigError(f"Parametro repetido: '{p.name}'")
        vistos.add(p.name)

        if p.name.lower() in reservados:
            raise ConfigError(f"El parametro '{p.name}' choca con un canal fijo")

        tag = mnemonico(p.name)
        if tag in tags:
            raise ConfigError(
                f"Los parametros '{tags[tag]}' y '{p.name}' comparten el tag XML '{tag}'"
            )
        tags[tag] = p.name

    return habilitados(parametros)


def construir_alias(parametros: Iterable[ParameterSpec] = ()) -> dict:
    """
    Mapa alias -> nombre canonico.

    Incluye los canales fijos (nombre, MAYUSCULAS, mnemonico), los parametros propios del
    dataset y los parametros por defecto, en ese orden de prioridad: un parametro "Torque"
    del dataset se queda con el tag TORQUE aunque exista el "torque" por defecto.
    """
    alias = {}

    for canal in CANALES_FIJOS:
        alias[canal.name] = canal.name
        alias[canal.name.upper()] = canal.name
        alias[canal.mnemonic] = canal.name

    for p in list(parametros) + list(PARAMETROS_DEFAULT):
        alias.setdefault(p.name, p.name)
        alias.setdefault(mnemonico(p.name), p.name)

    return alias


def normalizar_punto(punto: Mapping, alias: Mapping) -> dict:
    """
    Traduce las claves de un punto a su nombre canonico.

    Las claves desconocidas se conservan tal cual.
    """
    salida = {}

    for clave, valor in punto.items():
        canonico = alias.get(clave, clave)

        if canonico == clave:
            if canonico in salida and salida[canonico] != valor:
                logger.debug(f"Canal '{canonico}': se usa el valor canonico sobre el alias")
            salida[canonico] = valor
        elif canonico not in salida:
            salida[canonico] = valor

    return salida


def normalizar_dataset(dataset: Dataset) -> Dataset:
    """Retorna un Dataset nuevo con todos los puntos en nombres canonicos."""
    alias = construir_alias(dataset.parameters)
    return Dataset(
        metadata=dataset.metadata,
        parameters=dataset.parameters,
        data=[normalizar_punto(p, alias) for p in dataset.data],
    )
