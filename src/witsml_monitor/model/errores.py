"""
Errores del sistema WITSML Monitor.

- ConfigError: entradas invalidas del generador (puntos, intervalo, rangos).
- ParseError: archivo subido que no se puede leer (extension, JSON/XML mal formado, sin puntos).
- EmptyDatasetError: accion de playback sin datos cargados.

Ninguno es fatal: la vista los captura y los muestra al usuario.
"""


class ConfigError(ValueError):
    """Configuracion invalida del generador."""


class ParseError(ValueError):
    """El archivo subido no se pudo interpretar como dataset."""

    def __init__(self, mensaje: str, nombre: str = ""):
        self.mensaje = mensaje
        self.nombre = nombre
        texto = f"{nombre}: {mensaje}" if nombre else mensaje
        super().__init__(texto)


class EmptyDatasetError(RuntimeError):
    """No hay dataset cargado (o esta vacio)."""
