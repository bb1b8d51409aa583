import random
from datetime import datetime, timezone

import pytest

from witsml_monitor.controller.playback import PlaybackController
from witsml_monitor.model.canales import PARAMETROS_DEFAULT
from witsml_monitor.model.generador import SampleGenerator
from witsml_monitor.model.muestra import Dataset, DatasetMetadata, SeriesConfig


class RelojFalso:
    """Reloj manual para controlar el temporizador del playback."""

    def __init__(self, t: float = 0.0):
        self.t = t

    def __call__(self) -> float:
        return self.t

    def avanzar(self, segundos: float) -> None:
        self.t += segundos


def crear_dataset(n: int, intervalo_s: float = 1.0) -> Dataset:
    """Dataset chico hecho a mano (el generador exige al menos 10 puntos)."""
    data = [
        {
            "timestamp": f"2025-01-01T00:00:{i:02d}.000Z",
            "bitDepth": 100.0 + i,
            "holeDepth": 100.0 + i,
            "rop": 30.0 + i,
        }
        for i in range(n)
    ]
    metadata = DatasetMetadata(
        point_count=n,
        start_depth=100.0,
        end_depth=100.0 + n,
        time_interval_s=intervalo_s,
        generated_at="2025-01-01T00:00:00.000Z",
    )
    return Dataset(metadata=metadata, parameters=(), data=data)


@pytest.fixture
def inicio():
    return datetime(2025, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def generador(inicio):
    return SampleGenerator(rng=random.Random(1234), inicio=inicio)


@pytest.fixture
def config():
    return SeriesConfig(point_count=10, start_depth=6400, end_depth=6500, time_interval_s=1)


@pytest.fixture
def dataset(generador, config):
    return generador.generate(config, PARAMETROS_DEFAULT)


@pytest.fixture
def reloj():
    return RelojFalso()


@pytest.fixture
def ctrl(reloj):
    return PlaybackController(reloj=reloj)
