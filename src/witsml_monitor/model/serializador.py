"""
Serializacion de un Dataset a texto descargable.

Formatos:
- JSON: {metadata, parameters, data} tal cual, indentado.
- XML: subconjunto inspirado en WITSML 2.x:

    WitsmlData
      Log (uid, schemaVersion)
        Citation (Title, Originator, Creation)
        RunNumber / PassNumber / LoggingMethod / Wellbore
        ChannelSet
          Index (TIME, date time, increasing)
          Channels -> un Channel por canal fijo + parametro habilitado
          Data/DataPoints[count] -> un Point por fila, un tag por canal

Contrato estructural del XML:
- La lista de Channel y los tags hijos de cada Point tienen el mismo orden y los mismos mnemonicos.
- Cada parametro habilitado aparece con su nombre en MAYUSCULAS como tag.
"""

import json
import logging
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from typing import Optional

from witsml_monitor.config.settings import SETTINGS
from witsml_monitor.model.canales import CANALES_FIJOS, mnemonico, normalizar_dataset
from witsml_monitor.model.errores import ConfigError
from witsml_monitor.model.generador import timestamp_iso
from witsml_monitor.model.muestra import Dataset

logger = logging.getLogger(__name__)

NS_WITSML = "http://www.energistics.org/energyml/data/witsmlv2"
NS_XSI = "http://www.w3.org/2001/XMLSchema-instance"

ET.register_namespace("", NS_WITSML)
ET.register_namespace("xsi", NS_XSI)

FORMATOS = ("xml", "json")

MIME_TYPES = {
    "xml": "application/xml",
    "json": "application/json",
}


# ============================================================
# Helpers
# ============================================================

def _tag(nombre: str) -> str:
    return f"{{{NS_WITSML}}}{nombre}"


def _sub(padre: ET.Element, nombre: str, texto=None, **attrs) -> ET.Element:
    elemento = ET.SubElement(padre, _tag(nombre), attrs)
    if texto is not None:
        elemento.text = str(texto)
    return elemento


def _canales(dataset: Dataset) -> list:
    """
    Lista ordenada de canales a escribir: (name, mnemonic, label, unit, data_kind, property_kind).
    """
    canales = []
    for c in CANALES_FIJOS:
        if c.name == "timestamp":
            kind = "time"
        elif c.data_kind == "measured depth":
            kind = "measured depth"
        else:
            kind = c.label
        canales.append((c.name, mnemonico(c.name), c.label, c.unit, c.data_kind, kind))

    for p in dataset.parameters:
        if p.enabled:
            canales.append((p.name, mnemonico(p.name), p.label, p.unit, "double", p.label))

    return canales


def _epoch_ms(ahora: Optional[datetime] = None) -> int:
    ahora = ahora if ahora is not None else datetime.now(timezone.utc)
    return int(ahora.timestamp() * 1000)


# ============================================================
# JSON
# ============================================================

def to_json(dataset: Dataset) -> str:
    return json.dumps(dataset.to_dict(), indent=2, ensure_ascii=False)


# ============================================================
# XML
# ============================================================

def to_xml(dataset: Dataset, ahora: Optional[datetime] = None) -> str:
    """
    Serializa el dataset al XML tipo WITSML.

    Si algun punto no tiene todos los canales se levanta ConfigError antes de escribir nada.
    """
    dataset = normalizar_dataset(dataset)
    canales = _canales(dataset)

    for i, punto in enumerate(dataset.data):
        for name, *_ in canales:
            if name not in punto:
                raise ConfigError(f"Punto {i} sin canal '{name}': no se puede serializar a XML")

    ahora = ahora if ahora is not None else datetime.now(timezone.utc)

    raiz = ET.Element(
        _tag("WitsmlData"),
        {f"{{{NS_XSI}}}schemaLocation": f"{NS_WITSML} Log.xsd"},
    )

    log = _sub(raiz, "Log", uid=f"log-{_epoch_ms(ahora)}", schemaVersion="2.1")

    citation = _sub(log, "Citation")
    _sub(citation, "Title", "Simulated Drilling Data")
    _sub(citation, "Originator", "WITSML Generator")
    _sub(citation, "Creation", dataset.metadata.generated_at or timestamp_iso(ahora))

    _sub(log, "RunNumber", 1)
    _sub(log, "PassNumber", 1)
    _sub(log, "LoggingMethod", "MWD")
    wellbore = _sub(log, "Wellbore")
    _sub(wellbore, "WellboreName", "Simulated Well")

    channel_set = _sub(log, "ChannelSet", uid="channelset-1")

    index = _sub(channel_set, "Index")
    _sub(index, "IndexKind", "date time")
    _sub(index, "Mnemonic", "TIME")
    _sub(index, "Uom", "s")
    _sub(index, "Direction", "increasing")

    channels = _sub(channel_set, "Channels")
    for name, mnemonic, label, unit, data_kind, property_kind in canales:
        channel = _sub(channels, "Channel", uid=f"ch-{name}")
        _sub(channel, "Mnemonic", mnemonic)
        _sub(channel, "GlobalMnemonic", label)
        _sub(channel, "DataKind", data_kind)
        _sub(channel, "Uom", unit)
        _sub(channel, "ChannelPropertyKind", property_kind)

    data = _sub(channel_set, "Data")
    data_points = _sub(data, "DataPoints", count=str(len(dataset)))
    for punto in dataset.data:
        point = _sub(data_points, "Point")
        for name, mnemonic, *_ in canales:
            _sub(point, mnemonic, punto[name])

    ET.indent(raiz, space="  ")
    cuerpo = ET.tostring(raiz, encoding="unicode")
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + cuerpo + "\n"


# ============================================================
# Descarga
# ============================================================

def serializar(dataset: Dataset, formato: str) -> str:
    formato = formato.lower().lstrip(".")
    logger.debug(f"Serializando {len(dataset)} puntos a {formato}")
    if formato == "xml":
        return to_xml(dataset)
    if formato == "json":
        return to_json(dataset)
    raise ConfigError(f"Formato no soportado: '{formato}' (usar xml o json)")


def nombre_archivo(formato: str, ahora: Optional[datetime] = None) -> str:
    """witsml-data-<epoch ms>.<formato>"""
    formato = formato.lower().lstrip(".")
    if formato not in FORMATOS:
        raise ConfigError(f"Formato no soportado: '{formato}' (usar xml o json)")
    return f"{SETTINGS.prefijo_archivo}-{_epoch_ms(ahora)}.{formato}"
