"""
Generador de datos sinteticos de perforacion.

Idea:
- Produce un Dataset completo a partir de SeriesConfig + lista de ParameterSpec.
- Cada parametro habilitado se muestrea uniforme dentro de [min, max].
- Los canales auxiliares (blockPosition, stroke1, stroke2, mudFlowOut) usan rangos fijos de SETTINGS.
- stroke3 siempre vale 0 (bomba 3 fuera de servicio en la simulacion).

La fuente de aleatoriedad es inyectable (random.Random con semilla) para que los tests
sean reproducibles.
"""

import logging
import random
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from witsml_monitor.config.settings import SETTINGS
from witsml_monitor.model.canales import validar_parametros
from witsml_monitor.model.errores import ConfigError
from witsml_monitor.model.muestra import Dataset, DatasetMetadata, ParameterSpec, SeriesConfig

logger = logging.getLogger(__name__)


def timestamp_iso(instante: datetime) -> str:
    """ISO-8601 en UTC con milisegundos y sufijo Z (ej: 2025-01-01T00:00:00.000Z)."""
    if instante.tzinfo is None:
        instante = instante.replace(tzinfo=timezone.utc)
    texto = instante.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return texto.replace("+00:00", "Z")


class SampleGenerator:
    """
    Generador de datasets simulados.

    Parametros:
    - rng: fuente de aleatoriedad (por defecto un random.Random sin semilla)
    - inicio: instante de inicio de la simulacion (por defecto "ahora" en UTC)
    """

    def __init__(self, rng: Optional[random.Random] = None, inicio: Optional[datetime] = None):
        self.rng = rng if rng is not None else random.Random()
        self.inicio = inicio

    def generate(self, config: SeriesConfig, parameters: Iterable[ParameterSpec]) -> Dataset:
        """
        Genera exactamente config.point_count puntos.

        Toda la validacion ocurre antes de generar el primer punto (no hay datasets parciales).
        """
        if not isinstance(config, SeriesConfig):
            raise ConfigError("generate() requiere un SeriesConfig")

        activos = validar_parametros(list(parameters))

        inicio = self.inicio if self.inicio is not None else datetime.now(timezone.utc)
        incremento = config.depth_increment
        # paso entero en ms: evita que el error de punto flotante desplace un timestamp
        paso_ms = round(config.time_interval_s * 1000)

        data = []
        for i in range(config.point_count):
            instante = inicio + timedelta(milliseconds=i * paso_ms)
            profundidad = round(config.start_depth + i * incremento, SETTINGS.decimales)

            punto = {
                "timestamp": timestamp_iso(instante),
                "bitDepth": profundidad,
                "holeDepth": profundidad,
                "blockPosition": self._uniforme(*SETTINGS.block_position_rango),
                "stroke1": self._uniforme(*SETTINGS.stroke1_rango),
                "stroke2": self._uniforme(*SETTINGS.stroke2_rango),
                "stroke3": 0.0,
                "mudFlowOut": self._uniforme(*SETTINGS.mud_flow_out_rango),
            }

            for p in activos:
                punto[p.name] = self._uniforme(p.min, p.max)

            data.append(punto)

        metadata = DatasetMetadata(
            point_count=config.point_count,
            start_depth=config.start_depth,
            end_depth=config.end_depth,
            time_interval_s=config.time_interval_s,
            generated_at=timestamp_iso(inicio),
        )

        logger.info(
            f"Dataset generado: {config.point_count} puntos, "
            f"{config.start_depth}-{config.end_depth} m, {len(activos)} parametros"
        )
        return Dataset(metadata=metadata, parameters=activos, data=data)

    def _uniforme(self, minimo: float, maximo: float) -> float:
        valor = round(minimo + self.rng.random() * (maximo - minimo), SETTINGS.decimales)
        # el redondeo no puede sacar el valor del rango
        return min(max(valor, minimo), maximo)
