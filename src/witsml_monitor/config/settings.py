"""
Configuracion central del proyecto WITSML Monitor.

Idea:
- Aqui van los parametros fijos del sistema (limites del generador, rangos auxiliares, playback).
- El generador y el controller de playback usan estos valores para validar y ejecutar.
- La View puede leer estos limites para bloquear inputs (cantidad de puntos, intervalo, etc.).
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    # -------------------------------
    # Generador (serie de datos)
    # -------------------------------
    puntos_min: int = 10             # cantidad minima de puntos por dataset
    puntos_max: int = 10_000         # limite duro (el navegador se pone lento con mas)
    puntos_default: int = 100

    profundidad_inicio_default: float = 6400.0   # m
    profundidad_fin_default: float = 6500.0      # m
    intervalo_default_s: float = 1.0             # segundos entre lecturas
    intervalo_min_s: float = 0.1                 # paso minimo del input en la vista
    resolucion_tiempo_s: float = 0.001           # los timestamps se escriben en milisegundos

    decimales: int = 2               # todos los valores numericos se redondean a 2 decimales

    # -------------------------------
    # Canales auxiliares (rangos fijos, no configurables por el usuario)
    # -------------------------------
    block_position_rango: tuple = (20.0, 30.0)   # ft
    stroke1_rango: tuple = (35.0, 43.0)          # spm
    stroke2_rango: tuple = (30.0, 38.0)          # spm
    mud_flow_out_rango: tuple = (38.0, 48.0)     # gal/min

    # -------------------------------
    # Playback
    # -------------------------------
    velocidades: tuple = (0.5, 1.0, 2.0, 5.0, 10.0)   # multiplicadores de "siguiente velocidad"
    velocidad_default: float = 1.0
    historial_max: int = 50          # filas en la ventana de graficos (se descarta la mas antigua)
    refresh_s: float = 0.2           # periodo de refresco de la vista Streamlit

    # -------------------------------
    # Salida de datos
    # -------------------------------
    prefijo_archivo: str = "witsml-data"     # witsml-data-<timestamp>.xml / .json
    nivel_log: str = "INFO"


# Instancia global utilizada por el resto del proyecto
SETTINGS = Settings()
