"""
Estructura de datos del sistema WITSML Monitor.

- ParameterSpec: rango configurado por el usuario para un canal (hookLoad, torque, ...)
- SeriesConfig: cantidad de puntos, rango de profundidad e intervalo de tiempo
- DataPoint: un registro canal -> valor (timestamp, bitDepth, holeDepth, ...)
- Dataset: metadata + parametros habilitados + puntos, producido por el generador o por el parser

Estas clases son el contrato comun entre generador, serializador, parser, playback y vista.
Todas son inmutables una vez construidas.
"""

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Union

from witsml_monitor.config.settings import SETTINGS
from witsml_monitor.model.errores import ConfigError


Valor = Union[float, str]

# Un punto es un mapping de solo lectura: canal -> valor numerico (o string para timestamp)
DataPoint = Mapping[str, Valor]


@dataclass(frozen=True)
class ParameterSpec:
    name: str
    label: str
    min: float
    max: float
    unit: str = ""
    enabled: bool = True

    def __post_init__(self):
        if not str(self.name).strip():
            raise ConfigError("Parametro invalido: name no puede estar vacio")

        try:
            minimo = float(self.min)
            maximo = float(self.max)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Parametro '{self.name}': min/max deben ser numericos") from e

        if minimo > maximo:
            raise ConfigError(
                f"Parametro '{self.name}': max ({maximo}) es menor que min ({minimo})"
            )

        object.__setattr__(self, "min", minimo)
        object.__setattr__(self, "max", maximo)
        object.__setattr__(self, "enabled", bool(self.enabled))

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "label": self.label,
            "min": self.min,
            "max": self.max,
            "unit": self.unit,
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, d: Mapping) -> "ParameterSpec":
        """
        Construye un ParameterSpec desde un dict (JSON).

        Claves extra (ej: el "id" del formulario original) se ignoran.
        """
        try:
            name = str(d["name"])
            return cls(
                name=name,
                label=str(d.get("label", name)),
                min=d["min"],
                max=d["max"],
                unit=str(d.get("unit", "")),
                enabled=d.get("enabled", True),
            )
        except KeyError as e:
            raise ConfigError(f"Parametro sin campo obligatorio: {e.args[0]}") from e


@dataclass(frozen=True)
class SeriesConfig:
    point_count: int = SETTINGS.puntos_default
    start_depth: float = SETTINGS.profundidad_inicio_default
    end_depth: float = SETTINGS.profundidad_fin_default
    time_interval_s: float = SETTINGS.intervalo_default_s

    def __post_init__(self):
        try:
            point_count = int(self.point_count)
            start_depth = float(self.start_depth)
            end_depth = float(self.end_depth)
            time_interval_s = float(self.time_interval_s)
        except (TypeError, ValueError) as e:
            raise ConfigError("SeriesConfig invalida: valores no numericos") from e

        if point_count < SETTINGS.puntos_min or point_count > SETTINGS.puntos_max:
            raise ConfigError(
                f"Cantidad de puntos invalida: debe estar entre "
                f"{SETTINGS.puntos_min} y {SETTINGS.puntos_max} (llego {point_count})"
            )

        if not math.isfinite(time_interval_s) or time_interval_s <= 0:
            raise ConfigError(
                f"Intervalo de tiempo invalido: debe ser > 0 s (llego {time_interval_s})"
            )

        # Con timestamps en milisegundos, el intervalo tiene que ser un multiplo entero de 1 ms
        pasos = time_interval_s / SETTINGS.resolucion_tiempo_s
        if pasos < 1 or abs(pasos - round(pasos)) > 1e-6:
            raise ConfigError(
                f"Intervalo de tiempo invalido: debe ser multiplo de "
                f"{SETTINGS.resolucion_tiempo_s} s (llego {time_interval_s})"
            )

        object.__setattr__(self, "point_count", point_count)
        object.__setattr__(self, "start_depth", start_depth)
        object.__setattr__(self, "end_depth", end_depth)
        object.__setattr__(self, "time_interval_s", time_interval_s)

    @property
    def depth_increment(self) -> float:
        return (self.end_depth - self.start_depth) / self.point_count

    @property
    def duration_minutes(self) -> float:
        """Duracion simulada total (minutos)."""
        return self.point_count * self.time_interval_s / 60.0


@dataclass(frozen=True)
class DatasetMetadata:
    point_count: int
    start_depth: float
    end_depth: float
    time_interval_s: float
    generated_at: str

    def to_dict(self) -> dict:
        return {
            "pointCount": self.point_count,
            "startDepth": self.start_depth,
            "endDepth": self.end_depth,
            "timeIntervalSeconds": self.time_interval_s,
            "generatedAt": self.generated_at,
        }


@dataclass(frozen=True)
class Dataset:
    metadata: DatasetMetadata
    parameters: tuple = ()
    data: tuple = ()

    def __post_init__(self):
        object.__setattr__(self, "parameters", tuple(self.parameters))
        object.__setattr__(
            self, "data", tuple(MappingProxyType(dict(p)) for p in self.data)
        )

    def __len__(self) -> int:
        return len(self.data)

    def to_dict(self) -> dict:
        return {
            "metadata": self.metadata.to_dict(),
            "parameters": [p.to_dict() for p in self.parameters],
            "data": [dict(p) for p in self.data],
        }
