"""
Estado de visualizacion que consume la vista (tarjetas de metricas + graficos).

- current: ultimo punto emitido, como registro plano numerico (campos faltantes = 0)
- history: ventana acotada de filas derivadas para los graficos (max SETTINGS.historial_max)

Los puntos ya llegan normalizados (nombres canonicos) desde el playback.
"""

from collections import deque
from types import MappingProxyType
from typing import Mapping, Optional

from witsml_monitor.config.settings import SETTINGS


# Campos que muestra el dashboard (tarjetas)
CAMPOS_DASHBOARD = (
    "bitDepth",
    "holeDepth",
    "hookLoad",
    "blockPosition",
    "weightOnBit",
    "rop",
    "rotarySpeed",
    "torque",
    "mudFlowIn",
    "pumpPressure",
    "stroke1",
    "stroke2",
    "stroke3",
    "mudFlowOut",
    "tempIn",
    "tempOut",
)

# Columna del grafico -> canal de origen
SERIES_HISTORIAL = {
    "depth": "bitDepth",
    "rop": "rop",
    "torque": "torque",
    "speed": "rotarySpeed",
    "flowIn": "mudFlowIn",
    "flowOut": "mudFlowOut",
    "pressure": "pumpPressure",
}


def _numero(valor) -> float:
    if isinstance(valor, bool):
        return 0.0
    if isinstance(valor, (int, float)):
        return float(valor)
    if isinstance(valor, str):
        try:
            return float(valor)
        except ValueError:
            return 0.0
    return 0.0


class DisplayState:
    def __init__(self, historial_max: int = SETTINGS.historial_max):
        self._current = self._registro_vacio()
        self._timestamp: Optional[str] = None
        self._history = deque(maxlen=historial_max)

    @staticmethod
    def _registro_vacio() -> dict:
        registro = {campo: 0.0 for campo in CAMPOS_DASHBOARD}
        registro["tempDelta"] = 0.0
        return registro

    @property
    def current(self) -> Mapping[str, float]:
        return MappingProxyType(self._current)

    @property
    def history(self) -> tuple:
        return tuple(self._history)

    @property
    def timestamp(self) -> Optional[str]:
        return self._timestamp

    def actualizar(self, punto: Mapping, indice: int) -> None:
        """
        Registra un punto emitido por el playback.

        - current se reemplaza completo (campos del dashboard + cualquier otro canal numerico)
        - se agrega una fila al historial; si se pasa del maximo, se descarta la mas antigua
        """
        registro = self._registro_vacio()

        for clave, valor in punto.items():
            if clave == "timestamp":
                continue
            if clave in registro or isinstance(valor, (int, float)):
                registro[clave] = _numero(valor)

        registro["tempDelta"] = round(registro["tempOut"] - registro["tempIn"], SETTINGS.decimales)

        self._current = registro
        timestamp = punto.get("timestamp")
        self._timestamp = str(timestamp) if timestamp is not None else None

        fila = {"time": indice}
        for columna, canal in SERIES_HISTORIAL.items():
            fila[columna] = registro.get(canal, 0.0)
        self._history.append(MappingProxyType(fila))

    def limpiar(self) -> None:
        self._current = self._registro_vacio()
        self._timestamp = None
        self._history.clear()
