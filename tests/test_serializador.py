import json
import re
import xml.etree.ElementTree as ET
from dataclasses import replace
from datetime import datetime, timezone

import pytest

from witsml_monitor.model.canales import PARAMETROS_DEFAULT
from witsml_monitor.model.errores import ConfigError
from witsml_monitor.model.serializador import (
    MIME_TYPES,
    NS_WITSML,
    nombre_archivo,
    serializar,
    to_json,
    to_xml,
)


def _local(tag):
    return tag.rsplit("}", 1)[-1]


def _buscar(raiz, nombre):
    return [e for e in raiz.iter() if _local(e.tag) == nombre]


def test_json_estructura(dataset):
    doc = json.loads(to_json(dataset))

    assert list(doc) == ["metadata", "parameters", "data"]
    assert list(doc["metadata"]) == [
        "pointCount", "startDepth", "endDepth", "timeIntervalSeconds", "generatedAt",
    ]
    assert doc["metadata"]["pointCount"] == 10
    assert [p["name"] for p in doc["parameters"]] == [p.name for p in PARAMETROS_DEFAULT]
    assert list(doc["parameters"][0]) == ["name", "label", "min", "max", "unit", "enabled"]
    assert doc["data"] == [dict(p) for p in dataset.data]


def test_json_indentado(dataset):
    texto = to_json(dataset)
    assert texto.startswith("{\n  \"metadata\"")


def test_xml_canales_coinciden_con_cada_punto(dataset):
    raiz = ET.fromstring(to_xml(dataset))

    assert raiz.tag == f"{{{NS_WITSML}}}WitsmlData"

    channels = _buscar(raiz, "Channels")[0]
    mnemonicos = [
        c.find(f"{{{NS_WITSML}}}Mnemonic").text
        for c in channels
        if _local(c.tag) == "Channel"
    ]
    assert mnemonicos[:8] == [
        "TIME", "DBTM", "DMEA", "BLOCKPOSITION", "STROKE1", "STROKE2", "STROKE3", "MUDFLOWOUT",
    ]
    assert mnemonicos[8:] == [p.name.upper() for p in PARAMETROS_DEFAULT]

    puntos = _buscar(raiz, "Point")
    assert len(puntos) == 10
    for punto in puntos:
        assert [_local(h.tag) for h in punto] == mnemonicos

    data_points = _buscar(raiz, "DataPoints")[0]
    assert data_points.get("count") == "10"


def test_xml_valores_de_los_puntos(dataset):
    raiz = ET.fromstring(to_xml(dataset))
    primero = _buscar(raiz, "Point")[0]
    valores = {_local(h.tag): h.text for h in primero}

    assert valores["TIME"] == dataset.data[0]["timestamp"]
    assert float(valores["DBTM"]) == dataset.data[0]["bitDepth"]
    assert float(valores["HOOKLOAD"]) == dataset.data[0]["hookLoad"]
    assert float(valores["STROKE3"]) == 0


def test_xml_sin_parametros_deshabilitados(generador, config):
    parametros = [replace(p, enabled=(p.name != "torque")) for p in PARAMETROS_DEFAULT]
    texto = to_xml(generador.generate(config, parametros))

    assert "TORQUE" not in texto
    assert "ch-torque" not in texto
    assert "<HOOKLOAD>" in texto


def test_xml_cabecera_y_citation(dataset):
    texto = to_xml(dataset)
    assert texto.startswith('<?xml version="1.0" encoding="UTF-8"?>')

    raiz = ET.fromstring(texto)
    assert _buscar(raiz, "Title")[0].text == "Simulated Drilling Data"
    assert _buscar(raiz, "Creation")[0].text == dataset.metadata.generated_at
    assert _buscar(raiz, "LoggingMethod")[0].text == "MWD"


def test_serializar_por_formato(dataset):
    assert serializar(dataset, "json") == to_json(dataset)
    assert serializar(dataset, ".JSON") == to_json(dataset)
    with pytest.raises(ConfigError):
        serializar(dataset, "csv")


def test_nombre_de_archivo():
    ahora = datetime(2025, 1, 1, tzinfo=timezone.utc)
    assert nombre_archivo("xml", ahora) == "witsml-data-1735689600000.xml"
    assert nombre_archivo("json", ahora) == "witsml-data-1735689600000.json"
    assert re.fullmatch(r"witsml-data-\d+\.xml", nombre_archivo("xml"))
    with pytest.raises(ConfigError):
        nombre_archivo("csv", ahora)


def test_mime_types():
    assert MIME_TYPES == {"xml": "application/xml", "json": "application/json"}
