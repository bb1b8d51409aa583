"""
Este modulo decodifica los archivos que sube el usuario (XML o JSON) a un Dataset.

Objetivo:
- Convertir el contenido de un archivo generado (o compatible) en un Dataset listo para playback.

Formatos aceptados (por extension):
- .json -> {metadata, parameters, data} o directamente una lista de puntos
- .xml  -> cualquier documento con elementos <Point>; cada hijo es un canal (tag -> valor)

Notas:
- El parser NO normaliza nombres de canal: conserva "DBTM", "HOOKLOAD", "bitDepth" tal como llegan.
  La normalizacion se hace una vez al cargar el dataset en el playback.
- Cualquier problema se reporta como ParseError con un mensaje legible.
"""

import json
import logging
import math
import xml.etree.ElementTree as ET
from datetime import datetime
from pathlib import PurePath
from typing import Mapping, Optional, Union

from witsml_monitor.config.settings import SETTINGS
from witsml_monitor.model.canales import MNEMONICOS_FIJOS, construir_alias
from witsml_monitor.model.errores import ConfigError, ParseError
from witsml_monitor.model.muestra import Dataset, DatasetMetadata, ParameterSpec

logger = logging.getLogger(__name__)

EXTENSIONES = (".json", ".xml")

_ALIAS_BASE = construir_alias()


# ============================================================
# Entrada principal
# ============================================================

def parse_file(nombre: str, contenido: Union[bytes, str]) -> Dataset:
    """
    Decodifica un archivo subido y retorna un Dataset.

    Parametros:
    - nombre: nombre del archivo (se usa la extension para elegir el formato)
    - contenido: bytes (o texto) del archivo

    Errores:
    - ParseError si la extension no es .json/.xml o si el contenido no se puede interpretar
    """
    extension = PurePath(nombre or "").suffix.lower()

    if extension not in EXTENSIONES:
        raise ParseError(
            f"Formato no soportado '{extension or '(sin extension)'}': sube un archivo .xml o .json",
            nombre,
        )

    texto = _decodificar_texto(nombre, contenido)

    if extension == ".json":
        dataset = _parse_json(nombre, texto)
    else:
        dataset = _parse_xml(nombre, texto)

    logger.info(f"Archivo '{nombre}' cargado: {len(dataset)} puntos")
    return dataset


def _decodificar_texto(nombre: str, contenido: Union[bytes, str]) -> str:
    if isinstance(contenido, str):
        return contenido
    try:
        # utf-8-sig tolera el BOM que agregan algunos editores
        return bytes(contenido).decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError("El archivo no es texto UTF-8 valido", nombre) from e


# ============================================================
# JSON
# ============================================================

def _parse_json(nombre: str, texto: str) -> Dataset:
    try:
        crudo = json.loads(texto)
    except json.JSONDecodeError as e:
        raise ParseError(f"JSON mal formado (linea {e.lineno}, columna {e.colno})", nombre) from e

    if isinstance(crudo, list):
        puntos = crudo
        metadata_cruda = None
        parametros_crudos = []
    elif isinstance(crudo, dict) and isinstance(crudo.get("data"), list):
        puntos = crudo["data"]
        metadata_cruda = crudo.get("metadata")
        parametros_crudos = crudo.get("parameters") or []
    else:
        raise ParseError("El JSON debe ser un objeto con un arreglo 'data' o una lista de puntos", nombre)

    if len(puntos) == 0:
        raise ParseError("El archivo no contiene puntos", nombre)

    for i, p in enumerate(puntos):
        if not isinstance(p, dict):
            raise ParseError(f"El punto {i} no es un objeto", nombre)

    if not isinstance(parametros_crudos, list):
        raise ParseError("'parameters' debe ser una lista", nombre)

    try:
        parametros = [ParameterSpec.from_dict(p) for p in parametros_crudos]
    except (ConfigError, AttributeError, TypeError) as e:
        raise ParseError(f"Parametro invalido: {e}", nombre) from e

    parametros = [p for p in parametros if p.enabled]

    if isinstance(metadata_cruda, dict):
        metadata = _metadata_desde_json(metadata_cruda, puntos)
    else:
        metadata = _metadata_desde_puntos(puntos)

    return Dataset(metadata=metadata, parameters=parametros, data=puntos)


def _metadata_desde_json(m: Mapping, puntos: list) -> DatasetMetadata:
    """
    Lee el bloque metadata. Acepta tambien las claves del generador antiguo
    (dataPoints, timeInterval, generated).
    """
    derivada = _metadata_desde_puntos(puntos)

    def _num(claves, defecto):
        # json.loads acepta NaN / Infinity: se tratan como ausentes
        for clave in claves:
            valor = m.get(clave)
            if isinstance(valor, (int, float)) and not isinstance(valor, bool) and math.isfinite(valor):
                return valor
        return defecto

    intervalo = _num(("timeIntervalSeconds", "timeInterval"), derivada.time_interval_s)
    if not intervalo > 0:
        intervalo = derivada.time_interval_s

    generated_at = m.get("generatedAt", m.get("generated", derivada.generated_at))

    return DatasetMetadata(
        point_count=len(puntos),
        start_depth=float(_num(("startDepth",), derivada.start_depth)),
        end_depth=float(_num(("endDepth",), derivada.end_depth)),
        time_interval_s=float(intervalo),
        generated_at=str(generated_at),
    )


# ============================================================
# XML
# ============================================================

def _nombre_local(tag: str) -> str:
    # "{http://...witsmlv2}Point" -> "Point"
    return tag.rsplit("}", 1)[-1]


def _coercionar(texto: Optional[str]) -> Union[float, str]:
    """Convierte a float si el texto lo permite; si no, conserva el string."""
    texto = (texto or "").strip()
    try:
        return float(texto)
    except ValueError:
        return texto


def _parse_xml(nombre: str, texto: str) -> Dataset:
    try:
        raiz = ET.fromstring(texto)
    except ET.ParseError as e:
        raise ParseError(f"XML mal formado: {e}", nombre) from e

    puntos = []
    for elemento in raiz.iter():
        if _nombre_local(elemento.tag) != "Point":
            continue
        punto = {}
        for hijo in elemento:
            punto[_nombre_local(hijo.tag)] = _coercionar(hijo.text)
        puntos.append(punto)

    if len(puntos) == 0:
        raise ParseError("El XML no contiene elementos <Point>", nombre)

    parametros = _parametros_desde_xml(nombre, raiz, puntos)

    creation = None
    for elemento in raiz.iter():
        if _nombre_local(elemento.tag) == "Creation" and elemento.text:
            creation = elemento.text.strip()
            break

    metadata = _metadata_desde_puntos(puntos, generated_at=creation)
    return Dataset(metadata=metadata, parameters=parametros, data=puntos)


def _texto_hijo(elemento: ET.Element, nombre: str) -> str:
    for hijo in elemento:
        if _nombre_local(hijo.tag) == nombre:
            return (hijo.text or "").strip()
    return ""


def _parametros_desde_xml(nombre: str, raiz: ET.Element, puntos: list) -> list:
    """
    Reconstruye los ParameterSpec desde los <Channel> que no son canales fijos.

    min/max se toman del rango observado en los puntos (el XML no guarda el rango configurado).
    """
    parametros = []
    for channel in raiz.iter():
        if _nombre_local(channel.tag) != "Channel":
            continue

        mnemonic = _texto_hijo(channel, "Mnemonic")
        if not mnemonic or mnemonic in MNEMONICOS_FIJOS:
            continue

        uid = channel.get("uid", "")
        name = uid[3:] if uid.startswith("ch-") and len(uid) > 3 else mnemonic

        valores = [
            p[mnemonic] for p in puntos
            if isinstance(p.get(mnemonic), float) and math.isfinite(p[mnemonic])
        ]
        minimo = min(valores) if valores else 0.0
        maximo = max(valores) if valores else 0.0

        try:
            parametros.append(ParameterSpec(
                name=name,
                label=_texto_hijo(channel, "GlobalMnemonic") or name,
                min=minimo,
                max=maximo,
                unit=_texto_hijo(channel, "Uom"),
            ))
        except ConfigError as e:
            raise ParseError(f"Canal '{mnemonic}' invalido: {e}", nombre) from e

    return parametros


# ============================================================
# Metadata derivada
# ============================================================

def _a_float(valor) -> Optional[float]:
    if isinstance(valor, bool):
        return None
    if isinstance(valor, (int, float)):
        return float(valor)
    if isinstance(valor, str):
        try:
            return float(valor)
        except ValueError:
            return None
    return None


def _leer_canal(punto: Mapping, canal: str):
    for clave, valor in punto.items():
        if _ALIAS_BASE.get(clave) == canal:
            return valor
    return None


def _instante(valor) -> Optional[datetime]:
    if not isinstance(valor, str):
        return None
    try:
        return datetime.fromisoformat(valor.replace("Z", "+00:00"))
    except ValueError:
        return None


def _metadata_desde_puntos(puntos: list, generated_at: Optional[str] = None) -> DatasetMetadata:
    """
    Metadata best-effort cuando el archivo no la trae:
    - profundidad inicial/final: primer y ultimo bitDepth
    - intervalo: diferencia entre los dos primeros timestamps (si no, el default de SETTINGS)
    """
    primero = puntos[0]
    ultimo = puntos[-1]

    inicio = _a_float(_leer_canal(primero, "bitDepth"))
    fin = _a_float(_leer_canal(ultimo, "bitDepth"))

    intervalo = SETTINGS.intervalo_default_s
    if len(puntos) >= 2:
        t0 = _instante(_leer_canal(puntos[0], "timestamp"))
        t1 = _instante(_leer_canal(puntos[1], "timestamp"))
        if t0 is not None and t1 is not None:
            try:
                delta = (t1 - t0).total_seconds()
            except TypeError:
                # mezcla de timestamps con y sin zona horaria
                delta = 0.0
            if delta > 0:
                intervalo = delta

    if generated_at is None:
        generated_at = str(_leer_canal(primero, "timestamp") or "")

    return DatasetMetadata(
        point_count=len(puntos),
        start_depth=inicio if inicio is not None else 0.0,
        end_depth=fin if fin is not None else 0.0,
        time_interval_s=intervalo,
        generated_at=generated_at,
    )
