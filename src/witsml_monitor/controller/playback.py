"""
Controller de playback (capa Controller del patron MVC).

Recorre dataset.data con un cursor y un temporizador, y empuja cada punto al DisplayState
que lee la vista.

Estados:
- STOPPED  (indice 0)
- PLAYING  (el temporizador esta armado)
- PAUSED   (indice congelado, sin temporizador)
- FINISHED (indice = ultimo punto)

Temporizador:
- Es un unico campo del controller (_timer) con el instante del proximo tick.
- Toda transicion que arma un tick cancela primero el anterior: nunca hay dos timers vivos.
- No hay hilos: la vista llama a actualizar() en su ciclo de refresco y se disparan
  los ticks vencidos (modelo cooperativo, igual que el tick() del experimento en vivo).

Contrato con la View:
- ctrl.cargar_archivo(nombre, contenido) / ctrl.load_dataset(dataset)
- ctrl.play() / ctrl.pause() / ctrl.reset()
- ctrl.next_speed() / ctrl.set_speed(x)
- ctrl.actualizar()
- ctrl.get_estado(), ctrl.display.current, ctrl.display.history
"""

import logging
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from witsml_monitor.config.settings import SETTINGS
from witsml_monitor.controller.parser import parse_file
from witsml_monitor.model.canales import normalizar_dataset
from witsml_monitor.model.display import DisplayState
from witsml_monitor.model.errores import EmptyDatasetError
from witsml_monitor.model.muestra import Dataset, DataPoint

logger = logging.getLogger(__name__)


class EstadoPlayback(str, Enum):
    STOPPED = "STOPPED"
    PLAYING = "PLAYING"
    PAUSED = "PAUSED"
    FINISHED = "FINISHED"


@dataclass
class _TickProgramado:
    deadline_s: float
    intervalo_s: float


class PlaybackController:
    def __init__(
        self,
        reloj: Callable[[], float] = time.monotonic,
        display: Optional[DisplayState] = None,
    ):
        self._reloj = reloj
        self.display = display if display is not None else DisplayState()

        self._dataset: Optional[Dataset] = None
        self._indice = 0
        self._estado = EstadoPlayback.STOPPED
        self._velocidad = SETTINGS.velocidad_default

        self._timer: Optional[_TickProgramado] = None
        self._suscriptores = []

    # ----------------------------
    # Lectura de estado
    # ----------------------------

    def get_estado(self) -> EstadoPlayback:
        return self._estado

    def get_indice(self) -> int:
        return self._indice

    def get_dataset(self) -> Optional[Dataset]:
        return self._dataset

    def get_velocidad(self) -> float:
        return self._velocidad

    def get_historial(self) -> tuple:
        return self.display.history

    @property
    def progreso(self) -> float:
        """Fraccion del dataset ya mostrada (0.0 - 1.0)."""
        if self._sin_datos():
            return 0.0
        return (self._indice + 1) / len(self._dataset)

    def intervalo_tick_s(self) -> float:
        if self._dataset is None:
            return SETTINGS.intervalo_default_s / self._velocidad
        return self._dataset.metadata.time_interval_s / self._velocidad

    def timer_activo(self) -> bool:
        return self._timer is not None

    def segundos_para_tick(self) -> Optional[float]:
        """Tiempo hasta el proximo tick (None si no hay timer armado)."""
        if self._timer is None:
            return None
        return max(0.0, self._timer.deadline_s - self._reloj())

    def suscribir(self, callback: Callable[[int, DataPoint], None]) -> None:
        """Registra un observador que recibe (indice, punto) en cada emision."""
        self._suscriptores.append(callback)

    # ----------------------------
    # Carga de datos
    # ----------------------------

    def load_dataset(self, dataset: Dataset) -> None:
        """
        Reemplaza el dataset completo: STOPPED(0), historial vacio y emite el punto 0.

        Los alias de canal (DBTM, HOOKLOAD, ...) se normalizan aqui, una sola vez.
        """
        if dataset is None or len(dataset) == 0:
            raise EmptyDatasetError("El dataset no tiene puntos")

        normalizado = normalizar_dataset(dataset)

        self._cancelar_timer()
        self._dataset = normalizado
        self._indice = 0
        self._estado = EstadoPlayback.STOPPED
        self.display.limpiar()
        self._emitir()

        logger.info(f"Dataset cargado en playback: {len(normalizado)} puntos")

    def cargar_archivo(self, nombre: str, contenido: Union[bytes, str]) -> Dataset:
        """
        Decodifica un archivo subido y lo carga.

        Si el parser falla (ParseError) el dataset anterior, el indice y el historial
        quedan intactos: el parseo termina antes de tocar el estado.
        """
        dataset = parse_file(nombre, contenido)
        self.load_dataset(dataset)
        return self._dataset

    # ----------------------------
    # Transiciones
    # ----------------------------

    def play(self) -> None:
        if self._sin_datos():
            logger.warning("play() sin datos cargados")
            raise EmptyDatasetError("No hay datos cargados para reproducir")

        if self._estado == EstadoPlayback.PLAYING:
            return

        if self._estado == EstadoPlayback.FINISHED:
            self.reset()

        self._estado = EstadoPlayback.PLAYING
        self._programar_tick()
        logger.debug(f"Playback iniciado en indice {self._indice} (x{self._velocidad})")

    def pause(self) -> None:
        if self._estado != EstadoPlayback.PLAYING:
            return
        self._cancelar_timer()
        self._estado = EstadoPlayback.PAUSED

    def reset(self) -> None:
        self._cancelar_timer()
        self._indice = 0
        self._estado = EstadoPlayback.STOPPED
        self.display.limpiar()

        if not self._sin_datos():
            self._emitir()

    def set_speed(self, multiplicador: float) -> None:
        """
        Cambia la velocidad sin tocar el indice.

        Si esta reproduciendo, el tick pendiente se reprograma con el nuevo intervalo contado
        desde el inicio del intervalo en curso (el tiempo ya transcurrido no se pierde).
        Si ese instante ya paso, el tick queda vencido para el proximo actualizar().
        """
        multiplicador = float(multiplicador)
        if not math.isfinite(multiplicador) or multiplicador <= 0:
            raise ValueError(f"Velocidad invalida: {multiplicador} (debe ser > 0)")

        self._velocidad = multiplicador

        if self._estado == EstadoPlayback.PLAYING:
            inicio = None
            if self._timer is not None:
                inicio = self._timer.deadline_s - self._timer.intervalo_s
            self._programar_tick(desde=inicio)

            ahora = self._reloj()
            if self._timer.deadline_s < ahora:
                self._timer.deadline_s = ahora

    def next_speed(self) -> float:
        """Avanza a la siguiente velocidad del ciclo 0.5 -> 1 -> 2 -> 5 -> 10 -> 0.5."""
        opciones = SETTINGS.velocidades

        if self._velocidad in opciones:
            i = (opciones.index(self._velocidad) + 1) % len(opciones)
        else:
            mayores = [j for j, v in enumerate(opciones) if v > self._velocidad]
            i = mayores[0] if mayores else 0

        self.set_speed(opciones[i])
        return self._velocidad

    def tick(self) -> bool:
        """
        Avanza el cursor un punto.

        Retorna True si se emitio un punto; False si se llego al final (pasa a FINISHED).
        """
        if self._sin_datos():
            raise EmptyDatasetError("No hay datos cargados")

        if self._estado == EstadoPlayback.FINISHED:
            return False

        siguiente = self._indice + 1

        if siguiente >= len(self._dataset):
            self._cancelar_timer()
            self._estado = EstadoPlayback.FINISHED
            logger.info(f"Playback finalizado ({len(self._dataset)} puntos)")
            return False

        self._indice = siguiente
        self._emitir()
        return True

    def actualizar(self) -> int:
        """
        Dispara todos los ticks vencidos segun el reloj.

        Se llama desde el ciclo de refresco de la vista. Retorna la cantidad de ticks disparados.
        """
        disparados = 0
        ahora = self._reloj()

        while (
            self._estado == EstadoPlayback.PLAYING
            and self._timer is not None
            and ahora >= self._timer.deadline_s
        ):
            vencido = self._timer.deadline_s
            self._timer = None

            self.tick()
            disparados += 1

            if self._estado == EstadoPlayback.PLAYING:
                # se programa desde el deadline vencido para no acumular deriva
                self._programar_tick(desde=vencido)

        return disparados

    # ----------------------------
    # Internos
    # ----------------------------

    def _sin_datos(self) -> bool:
        return self._dataset is None or len(self._dataset) == 0

    def _programar_tick(self, desde: Optional[float] = None) -> None:
        self._cancelar_timer()

        base = self._reloj() if desde is None else desde
        intervalo = self.intervalo_tick_s()
        self._timer = _TickProgramado(deadline_s=base + intervalo, intervalo_s=intervalo)

    def _cancelar_timer(self) -> None:
        self._timer = None

    def _emitir(self) -> None:
        punto = self._dataset.data[self._indice]
        self.display.actualizar(punto, self._indice)

        for callback in self._suscriptores:
            callback(self._indice, punto)
